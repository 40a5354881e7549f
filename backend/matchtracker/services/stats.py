from __future__ import annotations

from collections import Counter, defaultdict
from typing import Dict, List, Optional, Sequence, Tuple

from ..scoring import table_tennis
from ..schemas import MatchOut, PointOut
from .catalog import ShotCatalog


def compute_streaks(results: Sequence[bool]) -> Dict[str, int]:
    """Compute current, longest win, and longest loss streaks."""
    longest_win = longest_loss = 0
    curr_win = curr_loss = 0
    for r in results:
        if r:
            curr_win += 1
            curr_loss = 0
            longest_win = max(longest_win, curr_win)
        else:
            curr_loss += 1
            curr_win = 0
            longest_loss = max(longest_loss, curr_loss)
    current = 0
    if results:
        last = results[-1]
        count = 0
        for r in reversed(results):
            if r == last:
                count += 1
            else:
                break
        current = count if last else -count
    return {
        "current": current,
        "longestWin": longest_win,
        "longestLoss": longest_loss,
    }


def point_streaks(points: Sequence[PointOut]) -> List[Tuple[str, int]]:
    """Pair each point's winner with the length of the run it extends."""
    streaks: List[Tuple[str, int]] = []
    run = {"player": 0, "opponent": 0}
    for p in points:
        loser = "opponent" if p.winner == "player" else "player"
        run[loser] = 0
        run[p.winner] += 1
        streaks.append((p.winner, run[p.winner]))
    return streaks


def set_breakdown(
    scores: Sequence[Tuple[int, int]], *, points_to: int = 11, win_by: int = 2
) -> List[Dict]:
    rows = []
    for number, (a, b) in enumerate(scores, start=1):
        rows.append(
            {
                "set_number": number,
                "score": table_tennis.format_score(a, b),
                "player_score": a,
                "opponent_score": b,
                "winner": table_tennis.set_winner(
                    a, b, points_to=points_to, win_by=win_by
                ),
            }
        )
    return rows


def shot_effectiveness(
    points: Sequence[PointOut], catalog: Optional[ShotCatalog] = None
) -> List[Dict]:
    """Per shot: winners the player hit with it and errors made attempting it.

    Sorted by wins, then by fewest losses.
    """
    wins: Counter = Counter()
    losses: Counter = Counter()
    for p in points:
        if p.winner == "player":
            wins[p.winning_shot_id] += 1
        else:
            losses[p.other_shot_id] += 1

    rows = []
    for shot_id in set(wins) | set(losses):
        w, l = wins[shot_id], losses[shot_id]
        rows.append(
            {
                "shot_id": shot_id,
                "name": catalog.display_name(shot_id) if catalog else shot_id,
                "wins": w,
                "losses": l,
                "winPct": w / (w + l),
            }
        )
    rows.sort(key=lambda r: (-r["wins"], r["losses"], r["name"]))
    return rows


def hand_breakdown(points: Sequence[PointOut]) -> Dict[str, Dict[str, int]]:
    """Forehand/backhand winners and errors, for both sides."""
    stats: Dict[str, Dict[str, int]] = defaultdict(
        lambda: {"fh_wins": 0, "bh_wins": 0, "fh_errors": 0, "bh_errors": 0}
    )
    for p in points:
        loser = "opponent" if p.winner == "player" else "player"
        if p.winning_hand:
            stats[p.winner][f"{p.winning_hand}_wins"] += 1
        if p.other_hand:
            stats[loser][f"{p.other_hand}_errors"] += 1
    return {side: dict(stats[side]) for side in table_tennis.SIDES}


def lucky_shots(points: Sequence[PointOut]) -> Dict[str, int]:
    counts = {"player": 0, "opponent": 0}
    for p in points:
        if p.is_lucky_shot:
            counts[p.winner] += 1
    return counts


def match_summary(
    match: MatchOut,
    scores: Sequence[Tuple[int, int]],
    points: Sequence[PointOut],
    *,
    points_to: int = 11,
    win_by: int = 2,
) -> Dict:
    won = table_tennis.sets_won(scores, points_to=points_to, win_by=win_by)
    total_won = sum(1 for p in points if p.winner == "player")
    return {
        "match_id": match.id,
        "opponent_name": match.opponent_name,
        "match_score": table_tennis.format_score(won["player"], won["opponent"]),
        "sets_won": won["player"],
        "sets_lost": won["opponent"],
        "winner": table_tennis.match_winner(
            scores, match.best_of, points_to=points_to, win_by=win_by
        ),
        "points_won": total_won,
        "points_lost": len(points) - total_won,
        "sets": set_breakdown(scores, points_to=points_to, win_by=win_by),
        "streaks": compute_streaks([p.winner == "player" for p in points]),
        "lucky_shots": lucky_shots(points),
    }
