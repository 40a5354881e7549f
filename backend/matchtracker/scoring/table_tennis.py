"""Table tennis scoring rules.

Rally-point scoring to 11 points with a win-by-2 requirement. Matches default
to best-of-5 sets. Service alternates every two points and every point once
both sides reach 10 (deuce); the side opening service alternates each set.
"""

from typing import Dict, Iterable, Optional, Tuple

SIDES = ("player", "opponent")

ScorePair = Tuple[int, int]


def _other(side: str) -> str:
    return "opponent" if side == "player" else "player"


def is_set_complete(
    player: int, opponent: int, *, points_to: int = 11, win_by: int = 2
) -> bool:
    lead = abs(player - opponent)
    return max(player, opponent) >= points_to and lead >= win_by


def set_winner(
    player: int, opponent: int, *, points_to: int = 11, win_by: int = 2
) -> Optional[str]:
    """Return the side that won a completed set, or ``None`` if still open."""
    if not is_set_complete(player, opponent, points_to=points_to, win_by=win_by):
        return None
    return "player" if player > opponent else "opponent"


def sets_needed(best_of: int) -> int:
    if best_of <= 0 or best_of % 2 == 0:
        raise ValueError("best_of must be a positive odd integer")
    return best_of // 2 + 1


def sets_won(
    scores: Iterable[ScorePair], *, points_to: int = 11, win_by: int = 2
) -> Dict[str, int]:
    """Count completed sets per side. Unfinished sets are ignored."""
    won = {"player": 0, "opponent": 0}
    for player, opponent in scores:
        winner = set_winner(player, opponent, points_to=points_to, win_by=win_by)
        if winner:
            won[winner] += 1
    return won


def match_winner(
    scores: Iterable[ScorePair],
    best_of: int,
    *,
    points_to: int = 11,
    win_by: int = 2,
) -> Optional[str]:
    needed = sets_needed(best_of)
    won = sets_won(scores, points_to=points_to, win_by=win_by)
    for side in SIDES:
        if won[side] >= needed:
            return side
    return None


def is_match_complete(
    scores: Iterable[ScorePair],
    best_of: int,
    *,
    points_to: int = 11,
    win_by: int = 2,
) -> bool:
    return (
        match_winner(scores, best_of, points_to=points_to, win_by=win_by)
        is not None
    )


def format_score(a: int, b: int) -> str:
    return f"{a}-{b}"


def match_score(
    scores: Iterable[ScorePair], *, points_to: int = 11, win_by: int = 2
) -> str:
    """Render sets won as ``"won-lost"`` from the player's point of view."""
    won = sets_won(scores, points_to=points_to, win_by=win_by)
    return format_score(won["player"], won["opponent"])


def set_opener(initial_server: str, set_number: int) -> str:
    """Side serving first in ``set_number`` (1-based)."""
    if initial_server not in SIDES:
        raise ValueError(f"invalid server {initial_server!r}")
    return initial_server if set_number % 2 == 1 else _other(initial_server)


def server_for(
    initial_server: str,
    set_number: int,
    player: int,
    opponent: int,
    *,
    points_to: int = 11,
) -> str:
    """Return the side serving the next rally at the given set score."""
    opener = set_opener(initial_server, set_number)
    deuce_at = points_to - 1
    played = player + opponent

    if player >= deuce_at and opponent >= deuce_at:
        changes = deuce_at + (played - 2 * deuce_at)
    else:
        changes = played // 2

    return opener if changes % 2 == 0 else _other(opener)


def tally(winners: Iterable[str]) -> ScorePair:
    """Set score implied by the winners of its points."""
    player = opponent = 0
    for side in winners:
        if side == "player":
            player += 1
        elif side == "opponent":
            opponent += 1
        else:
            raise ValueError(f"invalid point winner {side!r}")
    return (player, opponent)
