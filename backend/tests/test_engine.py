import pytest

from backend.matchtracker.exceptions import InvalidState
from backend.matchtracker.schemas import ShotRef
from backend.matchtracker.services.engine import MatchScoringEngine, Phase

from conftest import make_match_data, play_point, play_points, win_set


pytestmark = pytest.mark.anyio


def _state(engine):
    return (
        engine.set_scores,
        [p.id for p in engine.point_log],
        engine.current_set_number,
        engine.match_complete,
    )


async def test_start_creates_match_and_first_set(gateway, start_engine):
    engine = await start_engine(opponent_name="  Ma Long ")

    assert engine.match.opponent_name == "Ma Long"
    assert engine.current_set_number == 1
    assert engine.set_scores == [(0, 0)]
    assert engine.phase is Phase.IDLE
    assert not engine.can_undo
    [stored] = await gateway.list_sets_by_match(engine.match_id)
    assert stored.set_number == 1
    assert engine.current_set_id == stored.id


async def test_score_sum_matches_recorded_points(gateway, start_engine):
    engine = await start_engine()
    for side in ["player", "opponent", "opponent", "player", "player"] * 5:
        await play_point(engine, side)

    for stored in await gateway.list_sets_by_match(engine.match_id):
        points = gateway.points_in(stored.id)
        assert stored.player_score + stored.opponent_score == len(points)
        assert stored.score == f"{stored.player_score}-{stored.opponent_score}"

    local = {s.set_id: s for s in engine.snapshot().sets}
    for set_id, progress in local.items():
        assert progress.player_score + progress.opponent_score == len(
            gateway.points_in(set_id)
        )


async def test_point_records_shots_and_numbers(gateway, start_engine):
    engine = await start_engine()
    engine.select_point_winner("opponent")
    assert engine.phase is Phase.WINNER_SELECTED
    assert await engine.select_winning_shot(
        ShotRef(shot_id="smash", hand="fh", lucky=True)
    ) is None
    assert engine.phase is Phase.WINNING_SHOT_SELECTED
    point = await engine.select_other_shot(ShotRef(shot_id="lob", hand="bh"))

    assert point.point_number == 1
    assert point.winner == "opponent"
    assert point.winning_shot_id == "smash"
    assert point.is_lucky_shot is True
    assert point.other_shot_id == "lob"
    assert point.other_hand == "bh"
    assert point.set_id == engine.current_set_id
    assert engine.phase is Phase.IDLE
    assert engine.selected_winner is None
    assert engine.pending_winning_shot is None
    assert engine.pending_other_shot is None

    second = await play_point(engine, "player")
    assert second.point_number == 2
    assert engine.set_scores == [(1, 1)]


async def test_other_shot_first_then_winning_shot_commits(start_engine):
    engine = await start_engine()
    engine.select_point_winner("player")
    assert await engine.select_other_shot(ShotRef(shot_id="push")) is None
    assert engine.phase is Phase.OTHER_SHOT_SELECTED
    point = await engine.select_winning_shot(ShotRef(shot_id="flick"))
    assert point.winning_shot_id == "flick"
    assert engine.set_scores == [(1, 0)]


async def test_current_server_is_pure(start_engine):
    engine = await start_engine()
    await play_points(engine, "player", 3)

    before = engine.snapshot()
    first = engine.get_current_server()
    assert [engine.get_current_server() for _ in range(5)] == [first] * 5
    assert engine.snapshot() == before


async def test_server_sequence_follows_two_point_cadence(start_engine):
    engine = await start_engine(initial_server="player")
    servers = [engine.get_current_server()]
    for side in ["player", "opponent", "player"]:
        await play_point(engine, side)
        servers.append(engine.get_current_server())

    assert engine.set_scores == [(2, 1)]
    assert servers == ["player", "player", "opponent", "opponent"]


async def test_server_changes_every_point_from_ten_all(start_engine):
    engine = await start_engine(initial_server="opponent")
    for _ in range(10):
        await play_point(engine, "player")
        await play_point(engine, "opponent")
    assert engine.set_scores == [(10, 10)]

    at_deuce = engine.get_current_server()
    await play_point(engine, "player")
    assert engine.get_current_server() != at_deuce
    await play_point(engine, "opponent")
    assert engine.get_current_server() == at_deuce


async def test_second_set_opened_by_the_other_side(start_engine):
    engine = await start_engine(initial_server="player")
    await win_set(engine, "opponent")
    assert engine.current_set_number == 2
    assert engine.get_current_server() == "opponent"


async def test_set_boundary_at_eleven_with_two_point_lead(start_engine):
    engine = await start_engine()
    for _ in range(10):
        await play_point(engine, "player")
        await play_point(engine, "opponent")
    await play_point(engine, "player")
    assert engine.set_scores == [(11, 10)]
    assert engine.current_set_number == 1

    await play_point(engine, "player")
    assert engine.set_scores == [(12, 10), (0, 0)]
    assert engine.current_set_number == 2
    assert [s.number for s in engine.completed_sets] == [1]


async def test_best_of_five_ends_after_three_straight_sets(gateway, start_engine):
    engine = await start_engine(best_of=5)
    for _ in range(3):
        await win_set(engine, "player")

    assert engine.match_complete is True
    assert engine.current_set_number == 3
    assert len(await gateway.list_sets_by_match(engine.match_id)) == 3
    assert gateway.matches[engine.match_id].match_score == "3-0"
    assert engine.match.match_score == "3-0"

    with pytest.raises(InvalidState):
        engine.select_point_winner("player")
    with pytest.raises(InvalidState):
        await engine.advance_to_next_set()


async def test_best_of_five_continues_at_two_sets_to_one(gateway, start_engine):
    engine = await start_engine(best_of=5)
    await win_set(engine, "player")
    await win_set(engine, "opponent")
    await win_set(engine, "player")

    assert engine.match_complete is False
    assert engine.current_set_number == 4
    stored = await gateway.list_sets_by_match(engine.match_id)
    assert [(s.set_number, s.player_score, s.opponent_score) for s in stored][-1] == (
        4,
        0,
        0,
    )
    assert engine.match.match_score == "2-1"


async def test_best_of_one_eleven_nil(gateway, start_engine):
    engine = await start_engine(best_of=1, initial_server="player")
    await play_points(engine, "player", 11)

    assert engine.snapshot().sets[0].complete is True
    assert engine.match_complete is True
    assert gateway.matches[engine.match_id].match_score == "1-0"
    assert len(await gateway.list_sets_by_match(engine.match_id)) == 1
    assert gateway.count("create_set") == 1


async def test_shot_selection_without_winner_is_rejected(gateway, start_engine):
    engine = await start_engine()
    with pytest.raises(InvalidState):
        await engine.select_winning_shot(ShotRef(shot_id="loop"))
    with pytest.raises(InvalidState):
        await engine.select_other_shot(ShotRef(shot_id="block"))

    assert engine.set_scores == [(0, 0)]
    assert engine.pending_winning_shot is None
    assert gateway.count("create_point") == 0


async def test_winner_cannot_be_selected_twice(start_engine):
    engine = await start_engine()
    engine.select_point_winner("player")
    with pytest.raises(InvalidState):
        engine.select_point_winner("opponent")
    assert engine.selected_winner == "player"


async def test_unknown_side_is_rejected(start_engine):
    engine = await start_engine()
    with pytest.raises(InvalidState):
        engine.select_point_winner("nobody")
    assert engine.phase is Phase.IDLE


async def test_undo_shot_selection_keeps_committed_state(start_engine):
    engine = await start_engine()
    await play_point(engine, "player")
    engine.select_point_winner("opponent")
    await engine.select_winning_shot(ShotRef(shot_id="loop"))

    engine.undo_winning_shot_selection()
    assert engine.pending_winning_shot is None
    assert engine.selected_winner == "opponent"
    assert engine.set_scores == [(1, 0)]

    engine.undo_other_shot_selection()
    engine.reset_point_entry()
    assert engine.phase is Phase.IDLE


async def test_undo_round_trip_restores_state(gateway, start_engine):
    engine = await start_engine()
    await play_points(engine, "opponent", 4)
    before = _state(engine)

    point = await play_point(engine, "player")
    undone = await engine.undo_last_point()

    assert undone.id == point.id
    assert _state(engine) == before
    assert point.id not in gateway.points
    stored = gateway.sets[engine.current_set_id]
    assert (stored.player_score, stored.opponent_score) == (0, 4)


async def test_undo_across_set_boundary(gateway, start_engine):
    engine = await start_engine()
    await play_points(engine, "player", 10)
    first_set = engine.current_set_id

    await play_point(engine, "player")
    assert engine.current_set_number == 2
    assert engine.match.match_score == "1-0"
    second_set = engine.current_set_id

    await engine.undo_last_point()

    assert engine.current_set_number == 1
    assert engine.set_scores == [(10, 0)]
    assert engine.current_set_id == first_set
    assert second_set not in gateway.sets
    assert gateway.sets[first_set].score == "10-0"
    assert gateway.matches[engine.match_id].match_score == "0-0"
    assert engine.match.match_score == "0-0"


async def test_undo_locates_set_by_point_reference(start_engine):
    engine = await start_engine()
    await win_set(engine, "opponent")
    await play_points(engine, "player", 2)
    assert engine.set_scores == [(0, 11), (2, 0)]

    await engine.undo_last_point()
    await engine.undo_last_point()
    assert engine.set_scores == [(0, 11), (0, 0)]
    assert engine.current_set_number == 2

    await engine.undo_last_point()
    assert engine.set_scores == [(0, 10)]
    assert engine.current_set_number == 1


async def test_undo_reopens_completed_match(gateway, start_engine):
    engine = await start_engine(best_of=3)
    await win_set(engine, "player")
    await win_set(engine, "player")
    assert engine.match_complete

    await engine.undo_last_point()
    assert engine.match_complete is False
    assert engine.set_scores == [(11, 0), (10, 0)]
    assert gateway.matches[engine.match_id].match_score == "1-0"

    await play_point(engine, "player")
    assert engine.match_complete


async def test_undo_disabled_when_log_empties(start_engine):
    engine = await start_engine()
    with pytest.raises(InvalidState):
        await engine.undo_last_point()

    await play_point(engine, "player")
    assert engine.can_undo
    await engine.undo_last_point()
    assert not engine.can_undo


async def test_undo_rejected_during_point_entry(start_engine):
    engine = await start_engine()
    await play_point(engine, "player")
    engine.select_point_winner("opponent")
    with pytest.raises(InvalidState):
        await engine.undo_last_point()
    assert len(engine.point_log) == 1


async def test_advance_to_next_set_forces_boundary(gateway, start_engine):
    engine = await start_engine()
    await play_points(engine, "opponent", 5)

    number = await engine.advance_to_next_set()

    assert number == 2
    assert engine.current_set_number == 2
    assert engine.set_scores == [(0, 5), (0, 0)]
    assert engine.match.match_score == "0-0"
    stored = await gateway.list_sets_by_match(engine.match_id)
    assert [s.set_number for s in stored] == [1, 2]
    assert engine.current_set_id == stored[1].id

    # undoing the last point of set 1 drops the empty forced set
    await engine.undo_last_point()
    assert engine.current_set_number == 1
    assert engine.set_scores == [(0, 4)]
    assert len(await gateway.list_sets_by_match(engine.match_id)) == 1


async def test_advance_rejected_during_point_entry(start_engine):
    engine = await start_engine()
    engine.select_point_winner("player")
    with pytest.raises(InvalidState):
        await engine.advance_to_next_set()


async def test_advance_without_known_set_id_persists_current_set(gateway):
    match = await gateway.create_match(make_match_data())
    engine = MatchScoringEngine(gateway, match)
    assert engine.current_set_id is None

    await engine.advance_to_next_set()
    stored = await gateway.list_sets_by_match(match.id)
    assert [s.set_number for s in stored] == [1, 2]


async def test_events_are_published_in_order(gateway):
    events = []

    async def publish(match_id, message):
        events.append((match_id, message["type"]))

    engine = await MatchScoringEngine.start(
        gateway, make_match_data(best_of=1), publish=publish
    )
    await play_points(engine, "player", 11)
    await engine.undo_last_point()

    types = [t for _, t in events]
    assert types[:10] == ["point"] * 10
    assert types[10:] == ["point", "set_complete", "match_complete", "undo"]
    assert {mid for mid, _ in events} == {engine.match_id}


async def test_snapshot_reports_progress(start_engine):
    engine = await start_engine(opponent_name="Fan Zhendong")
    await win_set(engine, "player")
    await play_point(engine, "opponent")
    engine.select_point_winner("player")

    snap = engine.snapshot()
    assert snap.opponent_name == "Fan Zhendong"
    assert snap.match_score == "1-0"
    assert snap.current_set_number == 2
    assert snap.point_count == 12
    assert snap.phase == "winner_selected"
    assert snap.selected_winner == "player"
    assert snap.sets[0].winner == "player"
    assert snap.sets[1].complete is False
    assert engine.get_total_points_in_current_set() == 1
