"""Live scoring state machine for a single table tennis match.

The engine owns the in-memory progress of a match (per-set scores, the point
log, the in-progress point entry) and mediates every mutation against a
:class:`~matchtracker.gateway.PersistenceGateway`.

Local state only changes once every gateway call of an operation has
succeeded. Calls that did succeed before a failure are journaled, so retrying
the same operation resumes where it stopped instead of writing twice.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Awaitable, Callable, List, Optional, Set, Tuple

from ..config import ScoringConfig
from ..exceptions import (
    DomainException,
    InvalidState,
    PersistenceFailure,
    ReconciliationConflict,
)
from ..gateway.base import PersistenceGateway
from ..schemas import (
    EngineSnapshot,
    MatchCreate,
    MatchOut,
    MatchUpdate,
    PointCreate,
    PointOut,
    SetCreate,
    SetOut,
    SetScoreOut,
    SetUpdate,
    ShotRef,
)
from ..scoring import table_tennis
from .validation import ValidationError, validate_set_rows

logger = logging.getLogger(__name__)

Publisher = Callable[[str, dict], Awaitable[None]]


class Phase(str, Enum):
    IDLE = "idle"
    WINNER_SELECTED = "winner_selected"
    WINNING_SHOT_SELECTED = "winning_shot_selected"
    OTHER_SHOT_SELECTED = "other_shot_selected"
    BOTH_SHOTS_SELECTED = "both_shots_selected"
    COMMITTING = "committing"


@dataclass
class SetProgress:
    number: int
    player_score: int = 0
    opponent_score: int = 0
    set_id: Optional[str] = None

    @property
    def total(self) -> int:
        return self.player_score + self.opponent_score

    def pair(self) -> Tuple[int, int]:
        return (self.player_score, self.opponent_score)


@dataclass
class _CommitJournal:
    winner: str
    winning_shot: ShotRef
    other_shot: ShotRef
    set_number: int
    point_number: int
    player_score: int
    opponent_score: int
    set_id: Optional[str] = None
    set_updated: bool = False
    point: Optional[PointOut] = None
    match: Optional[MatchOut] = None
    next_set: Optional[SetOut] = None


@dataclass
class _UndoJournal:
    point_id: str
    point_deleted: bool = False
    deleted_sets: Set[str] = field(default_factory=set)
    set_updated: bool = False
    match: Optional[MatchOut] = None


class ScoringEngine(ABC):
    """Capability interface the presentation layer talks to."""

    @property
    @abstractmethod
    def match_id(self) -> str: ...

    @property
    @abstractmethod
    def current_set_number(self) -> int: ...

    @property
    @abstractmethod
    def match_complete(self) -> bool: ...

    @property
    @abstractmethod
    def can_undo(self) -> bool: ...

    @property
    @abstractmethod
    def phase(self) -> Phase: ...

    @abstractmethod
    def select_point_winner(self, side: str) -> None: ...

    @abstractmethod
    async def select_winning_shot(self, shot: ShotRef) -> Optional[PointOut]: ...

    @abstractmethod
    async def select_other_shot(self, shot: ShotRef) -> Optional[PointOut]: ...

    @abstractmethod
    def undo_winning_shot_selection(self) -> None: ...

    @abstractmethod
    def undo_other_shot_selection(self) -> None: ...

    @abstractmethod
    def reset_point_entry(self) -> None: ...

    @abstractmethod
    async def commit_point(self) -> PointOut: ...

    @abstractmethod
    async def undo_last_point(self) -> PointOut: ...

    @abstractmethod
    async def advance_to_next_set(self) -> int: ...

    @abstractmethod
    async def resync(self) -> None: ...

    @abstractmethod
    def get_current_server(self) -> str: ...

    @abstractmethod
    def get_total_points_in_current_set(self) -> int: ...

    @abstractmethod
    def snapshot(self) -> EngineSnapshot: ...


class MatchScoringEngine(ScoringEngine):
    """Default :class:`ScoringEngine` backed by a persistence gateway.

    Not safe for concurrent use: the caller must await one operation before
    issuing the next. Overlapping commit, undo or advance calls are rejected
    with :class:`InvalidState`.
    """

    def __init__(
        self,
        gateway: PersistenceGateway,
        match: MatchOut,
        *,
        config: ScoringConfig | None = None,
        publish: Publisher | None = None,
        sets: List[SetProgress] | None = None,
        points: List[PointOut] | None = None,
    ) -> None:
        self._gateway = gateway
        self._match = match
        self._config = config or ScoringConfig(best_of=match.best_of)
        table_tennis.sets_needed(self._config.best_of)
        self._publish = publish

        self._sets: List[SetProgress] = list(sets) if sets else [SetProgress(1)]
        self._points: List[PointOut] = list(points or [])
        self._match_complete = self._decided(self._pairs())

        self.selected_winner: Optional[str] = None
        self.pending_winning_shot: Optional[ShotRef] = None
        self.pending_other_shot: Optional[ShotRef] = None

        self._busy = False
        self._commit_journal: Optional[_CommitJournal] = None
        self._undo_journal: Optional[_UndoJournal] = None

    # ------------------------------------------------------------------
    # construction

    @classmethod
    async def start(
        cls,
        gateway: PersistenceGateway,
        data: MatchCreate,
        *,
        config: ScoringConfig | None = None,
        publish: Publisher | None = None,
    ) -> "MatchScoringEngine":
        """Create the match record and its first set, then return an engine."""
        match = await _call_gateway("create_match", None, gateway.create_match, data)
        first = await _call_gateway(
            "create_set",
            match.id,
            gateway.create_set,
            SetCreate(match_id=match.id, set_number=1),
        )
        logger.info("Started match %s against %s", match.id, match.opponent_name)
        return cls(
            gateway,
            match,
            config=config,
            publish=publish,
            sets=[SetProgress(1, set_id=first.id)],
        )

    @classmethod
    async def resume(
        cls,
        gateway: PersistenceGateway,
        match_id: str,
        *,
        config: ScoringConfig | None = None,
        publish: Publisher | None = None,
    ) -> "MatchScoringEngine":
        """Rebuild an engine from what the store holds for ``match_id``."""
        match = await _call_gateway("get_match", match_id, gateway.get_match, match_id)
        engine = cls(gateway, match, config=config, publish=publish)
        await engine._load_server_state()
        logger.info(
            "Resumed match %s at set %d with %d points",
            match_id,
            engine.current_set_number,
            len(engine._points),
        )
        return engine

    # ------------------------------------------------------------------
    # read-only state

    @property
    def match(self) -> MatchOut:
        return self._match

    @property
    def match_id(self) -> str:
        return self._match.id

    @property
    def config(self) -> ScoringConfig:
        return self._config

    @property
    def initial_server(self) -> str:
        return self._match.initial_server

    @property
    def current_set_number(self) -> int:
        return len(self._sets)

    @property
    def current_set_id(self) -> Optional[str]:
        return self._current.set_id

    @property
    def set_scores(self) -> List[Tuple[int, int]]:
        return self._pairs()

    @property
    def point_log(self) -> List[PointOut]:
        return list(self._points)

    @property
    def completed_sets(self) -> List[SetProgress]:
        return [
            SetProgress(s.number, s.player_score, s.opponent_score, s.set_id)
            for s in self._sets
            if self._set_complete(s.pair())
        ]

    @property
    def match_complete(self) -> bool:
        return self._match_complete

    @property
    def can_undo(self) -> bool:
        return bool(self._points) and not self._busy

    @property
    def phase(self) -> Phase:
        if self._busy:
            return Phase.COMMITTING
        if self.selected_winner is None:
            return Phase.IDLE
        if self.pending_winning_shot and self.pending_other_shot:
            return Phase.BOTH_SHOTS_SELECTED
        if self.pending_winning_shot:
            return Phase.WINNING_SHOT_SELECTED
        if self.pending_other_shot:
            return Phase.OTHER_SHOT_SELECTED
        return Phase.WINNER_SELECTED

    def get_total_points_in_current_set(self) -> int:
        return self._current.total

    def get_current_server(self) -> str:
        current = self._current
        return table_tennis.server_for(
            self.initial_server,
            current.number,
            current.player_score,
            current.opponent_score,
            points_to=self._config.points_to,
        )

    def snapshot(self) -> EngineSnapshot:
        return EngineSnapshot(
            match_id=self.match_id,
            opponent_name=self._match.opponent_name,
            match_score=self._match_score(self._pairs()),
            current_set_number=self.current_set_number,
            sets=[
                SetScoreOut(
                    set_number=s.number,
                    player_score=s.player_score,
                    opponent_score=s.opponent_score,
                    set_id=s.set_id,
                    complete=self._set_complete(s.pair()),
                    winner=table_tennis.set_winner(
                        *s.pair(),
                        points_to=self._config.points_to,
                        win_by=self._config.win_by,
                    ),
                )
                for s in self._sets
            ],
            point_count=len(self._points),
            current_server=self.get_current_server(),
            phase=self.phase.value,
            selected_winner=self.selected_winner,
            pending_winning_shot=self.pending_winning_shot,
            pending_other_shot=self.pending_other_shot,
            can_undo=self.can_undo,
            match_complete=self._match_complete,
        )

    # ------------------------------------------------------------------
    # point entry

    def select_point_winner(self, side: str) -> None:
        self._require_idle_engine()
        if side not in table_tennis.SIDES:
            raise InvalidState(f"unknown side {side!r}")
        if self._match_complete:
            raise InvalidState("match is complete")
        if self.selected_winner is not None:
            raise InvalidState("a point entry is already in progress")
        self.selected_winner = side

    async def select_winning_shot(self, shot: ShotRef) -> Optional[PointOut]:
        self._require_winner("winning shot")
        self.pending_winning_shot = shot
        return await self._commit_if_ready()

    async def select_other_shot(self, shot: ShotRef) -> Optional[PointOut]:
        self._require_winner("other shot")
        self.pending_other_shot = shot
        return await self._commit_if_ready()

    def undo_winning_shot_selection(self) -> None:
        self._require_idle_engine()
        self.pending_winning_shot = None

    def undo_other_shot_selection(self) -> None:
        self._require_idle_engine()
        self.pending_other_shot = None

    def reset_point_entry(self) -> None:
        self._require_idle_engine()
        journal = self._commit_journal
        if journal is not None and (journal.set_updated or journal.point is not None):
            raise InvalidState(
                "a point was partially recorded; retry the commit or resync"
            )
        self._commit_journal = None
        self._clear_selection()

    async def _commit_if_ready(self) -> Optional[PointOut]:
        if self.pending_winning_shot and self.pending_other_shot:
            return await self.commit_point()
        return None

    async def retry_commit(self) -> PointOut:
        return await self.commit_point()

    async def commit_point(self) -> PointOut:
        self._require_idle_engine()
        if self._match_complete:
            raise InvalidState("match is complete")
        if (
            self.selected_winner is None
            or self.pending_winning_shot is None
            or self.pending_other_shot is None
        ):
            raise InvalidState("a winner and both shots must be selected")

        journal = self._commit_journal
        if journal is None or journal.set_number != self.current_set_number:
            journal = self._new_commit_journal()
            self._commit_journal = journal

        self._busy = True
        try:
            await self._write_point(journal)
        finally:
            self._busy = False

        return await self._apply_commit(journal)

    def _new_commit_journal(self) -> _CommitJournal:
        current = self._current
        player, opponent = current.pair()
        if self.selected_winner == "player":
            player += 1
        else:
            opponent += 1
        return _CommitJournal(
            winner=self.selected_winner,
            winning_shot=self.pending_winning_shot,
            other_shot=self.pending_other_shot,
            set_number=current.number,
            point_number=current.total + 1,
            player_score=player,
            opponent_score=opponent,
            set_id=current.set_id,
        )

    async def _write_point(self, journal: _CommitJournal) -> None:
        if journal.set_id is None:
            journal.set_id = await self._resolve_set_id(self._current)

        if not journal.set_updated:
            await self._call(
                "update_set",
                self._gateway.update_set,
                journal.set_id,
                SetUpdate(
                    player_score=journal.player_score,
                    opponent_score=journal.opponent_score,
                ),
            )
            journal.set_updated = True

        if journal.point is not None and not journal.point.records_shots(
            self.pending_winning_shot, self.pending_other_shot
        ):
            # shots were changed after a failed commit; replace the stale point
            await self._call("delete_point", self._gateway.delete_point, journal.point.id)
            journal.point = None
        journal.winning_shot = self.pending_winning_shot
        journal.other_shot = self.pending_other_shot

        if journal.point is None:
            journal.point = await self._call(
                "create_point",
                self._gateway.create_point,
                PointCreate.from_refs(
                    match_id=self.match_id,
                    set_id=journal.set_id,
                    point_number=journal.point_number,
                    winner=journal.winner,
                    winning_shot=journal.winning_shot,
                    other_shot=journal.other_shot,
                ),
            )

        after = self._pairs()
        after[-1] = (journal.player_score, journal.opponent_score)
        if not self._set_complete(after[-1]):
            return

        if journal.match is None:
            journal.match = await self._call(
                "update_match",
                self._gateway.update_match,
                self.match_id,
                MatchUpdate(match_score=self._match_score(after)),
            )

        if not self._decided(after) and journal.next_set is None:
            journal.next_set = await self._create_set(journal.set_number + 1)

    async def _apply_commit(self, journal: _CommitJournal) -> PointOut:
        current = self._current
        current.player_score = journal.player_score
        current.opponent_score = journal.opponent_score
        current.set_id = journal.set_id
        point = journal.point
        self._points.append(point)
        self._commit_journal = None
        self._clear_selection()

        logger.info(
            "Match %s set %d: point %d to %s (%d-%d)",
            self.match_id,
            current.number,
            point.point_number,
            point.winner,
            current.player_score,
            current.opponent_score,
        )
        events = [
            {
                "type": "point",
                "set_number": current.number,
                "score": table_tennis.format_score(*current.pair()),
                "point": point.model_dump(mode="json"),
            }
        ]

        if journal.match is not None:
            self._match = journal.match
            winner = table_tennis.set_winner(
                *current.pair(),
                points_to=self._config.points_to,
                win_by=self._config.win_by,
            )
            logger.info(
                "Match %s: set %d won by %s, match score %s",
                self.match_id,
                current.number,
                winner,
                self._match.match_score,
            )
            events.append(
                {
                    "type": "set_complete",
                    "set_number": current.number,
                    "score": table_tennis.format_score(*current.pair()),
                    "winner": winner,
                    "match_score": self._match.match_score,
                }
            )
            if self._decided(self._pairs()):
                self._match_complete = True
                logger.info(
                    "Match %s complete (%s)", self.match_id, self._match.match_score
                )
                events.append(
                    {
                        "type": "match_complete",
                        "match_score": self._match.match_score,
                        "winner": winner,
                    }
                )
            else:
                self._sets.append(
                    SetProgress(journal.next_set.set_number, set_id=journal.next_set.id)
                )
                events.append(
                    {"type": "set_started", "set_number": journal.next_set.set_number}
                )

        # local state is complete before any subscriber runs
        for message in events:
            await self._emit(message)
        return point

    # ------------------------------------------------------------------
    # undo

    async def undo_last_point(self) -> PointOut:
        self._require_idle_engine()
        if not self._points:
            raise InvalidState("there is no point to undo")
        if self.selected_winner is not None:
            raise InvalidState("finish or reset the point entry before undoing")

        point = self._points[-1]
        index = next(
            (i for i, s in enumerate(self._sets) if s.set_id == point.set_id), None
        )
        if index is None:
            raise ReconciliationConflict(
                f"point '{point.id}' belongs to set '{point.set_id}' which is not "
                "tracked locally"
            )
        owner = self._sets[index]
        trailing = self._sets[index + 1:]
        if any(s.total for s in trailing):
            raise ReconciliationConflict(
                f"sets after set {owner.number} already have points"
            )

        player, opponent = owner.pair()
        if point.winner == "player":
            player -= 1
        else:
            opponent -= 1
        if player < 0 or opponent < 0:
            raise ReconciliationConflict(
                f"set {owner.number} score {owner.player_score}-{owner.opponent_score} "
                f"cannot lose a point won by {point.winner}"
            )

        before = self._pairs()
        after = before[:index] + [(player, opponent)]

        journal = self._undo_journal
        if journal is None or journal.point_id != point.id:
            journal = _UndoJournal(point_id=point.id)
            self._undo_journal = journal

        self._busy = True
        try:
            if not journal.point_deleted:
                await self._call("delete_point", self._gateway.delete_point, point.id)
                journal.point_deleted = True

            for stale in reversed(trailing):
                if stale.set_id and stale.set_id not in journal.deleted_sets:
                    await self._call("delete_set", self._gateway.delete_set, stale.set_id)
                    journal.deleted_sets.add(stale.set_id)

            if not journal.set_updated:
                await self._call(
                    "update_set",
                    self._gateway.update_set,
                    owner.set_id,
                    SetUpdate(player_score=player, opponent_score=opponent),
                )
                journal.set_updated = True

            new_score = self._match_score(after)
            if journal.match is None and new_score != self._match_score(before):
                journal.match = await self._call(
                    "update_match",
                    self._gateway.update_match,
                    self.match_id,
                    MatchUpdate(match_score=new_score),
                )
        finally:
            self._busy = False

        owner.player_score, owner.opponent_score = player, opponent
        del self._sets[index + 1:]
        self._points.pop()
        if journal.match is not None:
            self._match = journal.match
        self._match_complete = self._decided(self._pairs())
        self._undo_journal = None

        logger.info(
            "Match %s: undid point %d of set %d (%d-%d)",
            self.match_id,
            point.point_number,
            owner.number,
            player,
            opponent,
        )
        await self._emit(
            {
                "type": "undo",
                "point_id": point.id,
                "set_number": owner.number,
                "score": table_tennis.format_score(player, opponent),
                "match_score": self._match_score(self._pairs()),
            }
        )
        return point

    # ------------------------------------------------------------------
    # set navigation and reconciliation

    async def advance_to_next_set(self) -> int:
        """Open a new 0-0 set without the current one being won."""
        self._require_idle_engine()
        if self._match_complete:
            raise InvalidState("match is complete")
        if self.selected_winner is not None:
            raise InvalidState("finish or reset the point entry before advancing")

        self._busy = True
        try:
            current = self._current
            current_id = current.set_id or await self._resolve_set_id(current)
            created = await self._create_set(current.number + 1)
        finally:
            self._busy = False

        current.set_id = current_id
        self._sets.append(SetProgress(created.set_number, set_id=created.id))
        logger.info(
            "Match %s: advanced to set %d manually", self.match_id, created.set_number
        )
        await self._emit({"type": "set_started", "set_number": created.set_number})
        return created.set_number

    async def resync(self) -> None:
        """Replace the local view with the store's and drop journals.

        The pending point entry is discarded.
        """
        self._require_idle_engine()
        self._busy = True
        try:
            self._match = await self._call(
                "get_match", self._gateway.get_match, self.match_id
            )
            await self._load_server_state()
        finally:
            self._busy = False
        self._commit_journal = None
        self._undo_journal = None
        self._clear_selection()
        logger.info(
            "Match %s resynced: set %d, %d points",
            self.match_id,
            self.current_set_number,
            len(self._points),
        )

    async def _load_server_state(self) -> None:
        sets = await self._call(
            "list_sets_by_match", self._gateway.list_sets_by_match, self.match_id
        )
        points = await self._call(
            "list_points_by_match", self._gateway.list_points_by_match, self.match_id
        )
        sets = await self._repair_set_scores(sets, points)
        try:
            validate_set_rows(
                sets,
                points,
                best_of=self._config.best_of,
                points_to=self._config.points_to,
                win_by=self._config.win_by,
            )
        except ValidationError as exc:
            raise ReconciliationConflict(exc.detail) from exc

        progress = [
            SetProgress(s.set_number, s.player_score, s.opponent_score, s.id)
            for s in sets
        ] or [SetProgress(1)]
        pairs = [p.pair() for p in progress]

        # finish a commit that stopped between recording a point and
        # opening the next set
        expected = self._match_score(pairs)
        if self._match.match_score != expected:
            logger.warning(
                "Match %s score %s disagrees with sets (%s); rewriting",
                self.match_id,
                self._match.match_score,
                expected,
            )
            self._match = await self._call(
                "update_match",
                self._gateway.update_match,
                self.match_id,
                MatchUpdate(match_score=expected),
            )
        if self._set_complete(pairs[-1]) and not self._decided(pairs):
            created = await self._create_set(progress[-1].number + 1)
            progress.append(SetProgress(created.set_number, set_id=created.id))

        self._sets = progress
        self._points = list(points)
        self._match_complete = self._decided(self._pairs())

    async def _repair_set_scores(
        self, sets: List[SetOut], points: List[PointOut]
    ) -> List[SetOut]:
        """Rewrite stored set scores that disagree with the stored points.

        A write interrupted between the set update and the point insert (or
        the point delete and the set update, on undo) leaves the set one
        point off.
        """
        repaired = []
        for stored in sets:
            pair = table_tennis.tally(p.winner for p in points if p.set_id == stored.id)
            if pair != (stored.player_score, stored.opponent_score):
                logger.warning(
                    "Match %s: set %d stored as %s but its points give %s; rewriting",
                    self.match_id,
                    stored.set_number,
                    table_tennis.format_score(stored.player_score, stored.opponent_score),
                    table_tennis.format_score(*pair),
                )
                stored = await self._call(
                    "update_set",
                    self._gateway.update_set,
                    stored.id,
                    SetUpdate(player_score=pair[0], opponent_score=pair[1]),
                )
            repaired.append(stored)
        return repaired

    async def _resolve_set_id(self, progress: SetProgress) -> str:
        """Known id, else the stored set with this number, else a new one."""
        if progress.set_id:
            return progress.set_id
        stored = await self._call(
            "list_sets_by_match", self._gateway.list_sets_by_match, self.match_id
        )
        existing = next((s for s in stored if s.set_number == progress.number), None)
        if existing is None:
            created = await self._create_set(progress.number, expected=progress.pair())
            progress.set_id = created.id
            return created.id
        self._check_adoptable(existing, progress.pair())
        progress.set_id = existing.id
        return existing.id

    async def _create_set(
        self, number: int, *, expected: Tuple[int, int] = (0, 0)
    ) -> SetOut:
        data = SetCreate(
            match_id=self.match_id,
            set_number=number,
            player_score=expected[0],
            opponent_score=expected[1],
        )
        try:
            return await self._call("create_set", self._gateway.create_set, data)
        except DomainException as failure:
            # the set may exist already (earlier attempt, other client)
            try:
                stored = await self._call(
                    "list_sets_by_match",
                    self._gateway.list_sets_by_match,
                    self.match_id,
                )
            except PersistenceFailure:
                raise failure
            existing = next((s for s in stored if s.set_number == number), None)
            if existing is None:
                raise failure
            self._check_adoptable(existing, expected)
            logger.warning(
                "Match %s: adopting stored set %d (%s)",
                self.match_id,
                number,
                existing.id,
            )
            return existing

    def _check_adoptable(self, stored: SetOut, expected: Tuple[int, int]) -> None:
        if (stored.player_score, stored.opponent_score) != expected:
            raise ReconciliationConflict(
                f"stored set {stored.set_number} is {stored.player_score}-"
                f"{stored.opponent_score}, expected "
                f"{table_tennis.format_score(*expected)}; resync required"
            )

    # ------------------------------------------------------------------
    # helpers

    @property
    def _current(self) -> SetProgress:
        return self._sets[-1]

    def _pairs(self) -> List[Tuple[int, int]]:
        return [s.pair() for s in self._sets]

    def _set_complete(self, pair: Tuple[int, int]) -> bool:
        return table_tennis.is_set_complete(
            *pair, points_to=self._config.points_to, win_by=self._config.win_by
        )

    def _decided(self, pairs: List[Tuple[int, int]]) -> bool:
        return table_tennis.is_match_complete(
            pairs,
            self._config.best_of,
            points_to=self._config.points_to,
            win_by=self._config.win_by,
        )

    def _match_score(self, pairs: List[Tuple[int, int]]) -> str:
        return table_tennis.match_score(
            pairs, points_to=self._config.points_to, win_by=self._config.win_by
        )

    def _require_idle_engine(self) -> None:
        if self._busy:
            raise InvalidState("another operation is still in progress")

    def _require_winner(self, what: str) -> None:
        self._require_idle_engine()
        if self.selected_winner is None:
            raise InvalidState(f"select the point winner before the {what}")

    def _clear_selection(self) -> None:
        self.selected_winner = None
        self.pending_winning_shot = None
        self.pending_other_shot = None

    async def _call(self, operation: str, fn: Callable[..., Awaitable[Any]], *args):
        return await _call_gateway(operation, self.match_id, fn, *args)

    async def _emit(self, message: dict) -> None:
        if self._publish is not None:
            await self._publish(self.match_id, message)


async def _call_gateway(
    operation: str,
    match_id: Optional[str],
    fn: Callable[..., Awaitable[Any]],
    *args,
):
    """Await a gateway call, turning any failure into a typed outcome."""
    try:
        return await fn(*args)
    except ReconciliationConflict:
        raise
    except Exception as exc:
        logger.error(
            "%s failed for match %s", operation, match_id, exc_info=True
        )
        raise PersistenceFailure(operation, f"{operation} failed: {exc}") from exc


__all__ = [
    "MatchScoringEngine",
    "Phase",
    "ScoringEngine",
    "SetProgress",
]
