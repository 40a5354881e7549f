from collections import defaultdict
from typing import Dict, List, Sequence

from ..scoring import table_tennis
from ..schemas import PointOut, SetOut


class ValidationError(Exception):
    """Raised when stored match data breaks a scoring invariant."""

    def __init__(self, detail: str) -> None:
        super().__init__(detail)
        self.detail = detail


def validate_best_of(best_of) -> int:
    # Reject booleans explicitly (bool is a subclass of int in Python)
    if isinstance(best_of, bool) or not isinstance(best_of, int):
        raise ValidationError("best_of must be an integer.")
    if best_of <= 0 or best_of % 2 == 0:
        raise ValidationError("best_of must be a positive odd integer.")
    return best_of


def validate_set_rows(
    sets: Sequence[SetOut],
    points: Sequence[PointOut],
    *,
    best_of: int = 5,
    points_to: int = 11,
    win_by: int = 2,
) -> None:
    """Validate stored sets and points for one match.

    Rules:
    - Set numbers run 1..n without gaps (``sets`` ordered by number)
    - Scores are integers >= 0
    - ``player_score + opponent_score`` equals the points stored for the set
    - Points of a set are numbered 1..k in order and credit the right side
    - No set follows a set that decided the match
    """

    validate_best_of(best_of)

    by_set: Dict[str, List[PointOut]] = defaultdict(list)
    known = {s.id for s in sets}
    for p in points:
        if p.set_id not in known:
            raise ValidationError(f"Point {p.id} references unknown set {p.set_id}.")
        by_set[p.set_id].append(p)

    decided_at = None
    history = []
    for i, s in enumerate(sets, start=1):
        if s.set_number != i:
            raise ValidationError(
                f"Set numbers must be sequential; expected {i}, got {s.set_number}."
            )
        if decided_at is not None:
            raise ValidationError(
                f"Set #{i} exists after the match was decided in set #{decided_at}."
            )
        a, b = s.player_score, s.opponent_score
        if a < 0 or b < 0:
            raise ValidationError(f"Set #{i} scores must be >= 0.")

        set_points = sorted(by_set.get(s.id, []), key=lambda p: p.point_number)
        if a + b != len(set_points):
            raise ValidationError(
                f"Set #{i} score {a}-{b} does not match its {len(set_points)} points."
            )
        numbers = [p.point_number for p in set_points]
        if numbers != list(range(1, len(set_points) + 1)):
            raise ValidationError(f"Set #{i} points must be numbered 1..{len(set_points)}.")
        won_by_player = sum(1 for p in set_points if p.winner == "player")
        if won_by_player != a:
            raise ValidationError(
                f"Set #{i} player score {a} does not match {won_by_player} points won."
            )

        history.append((a, b))
        if table_tennis.is_match_complete(
            history, best_of, points_to=points_to, win_by=win_by
        ):
            decided_at = i

    return None
