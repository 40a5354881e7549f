import os
import sys
import asyncio
import uuid
from datetime import date
from typing import Dict, List, Optional

import pytest

sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), "..", "..")))

# Honour any externally provided DATABASE_URL but fall back to an in-memory
# SQLite database so local runs remain isolated.
DEFAULT_DB_URL = os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")

from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine  # noqa: E402
from sqlalchemy.orm import sessionmaker  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from backend.matchtracker import db, models  # noqa: F401,E402
from backend.matchtracker.gateway.base import PersistenceGateway  # noqa: E402
from backend.matchtracker.exceptions import RecordNotFound  # noqa: E402
from backend.matchtracker.schemas import (  # noqa: E402
    MatchCreate,
    MatchOut,
    MatchUpdate,
    PointCreate,
    PointOut,
    SetCreate,
    SetOut,
    SetUpdate,
)
from backend.matchtracker.services.engine import MatchScoringEngine  # noqa: E402


class GatewayDown(Exception):
    """Stand-in for a transport error raised by a real gateway."""


class FakeGateway(PersistenceGateway):
    """In-memory gateway that records calls and fails on demand.

    ``fail("create_point")`` makes the next call to that operation raise
    before touching any data; ``fail(..., after=True)`` applies the write
    first and then raises, like a response lost in transit.
    """

    def __init__(self) -> None:
        self.matches: Dict[str, MatchOut] = {}
        self.sets: Dict[str, SetOut] = {}
        self.points: Dict[str, PointOut] = {}
        self.calls: List[str] = []
        self._failures: Dict[str, List[bool]] = {}

    def fail(self, operation: str, times: int = 1, *, after: bool = False) -> None:
        self._failures.setdefault(operation, []).extend([after] * times)

    def _check(self, operation: str) -> Optional[bool]:
        self.calls.append(operation)
        pending = self._failures.get(operation)
        if not pending:
            return None
        after = pending.pop(0)
        if not after:
            raise GatewayDown(f"{operation} unavailable")
        return after

    def count(self, operation: str) -> int:
        return self.calls.count(operation)

    def _raise_late(self, late: Optional[bool], operation: str) -> None:
        if late:
            raise GatewayDown(f"{operation} response lost")

    async def create_match(self, data: MatchCreate) -> MatchOut:
        late = self._check("create_match")
        match = MatchOut(id=uuid.uuid4().hex, **data.model_dump())
        self.matches[match.id] = match
        self._raise_late(late, "create_match")
        return match

    async def get_match(self, match_id: str) -> MatchOut:
        self._check("get_match")
        if match_id not in self.matches:
            raise RecordNotFound("match", match_id)
        return self.matches[match_id]

    async def update_match(self, match_id: str, data: MatchUpdate) -> MatchOut:
        late = self._check("update_match")
        if match_id not in self.matches:
            raise RecordNotFound("match", match_id)
        match = self.matches[match_id].model_copy(
            update=data.model_dump(exclude_unset=True)
        )
        self.matches[match_id] = match
        self._raise_late(late, "update_match")
        return match

    async def list_sets_by_match(self, match_id: str) -> List[SetOut]:
        self._check("list_sets_by_match")
        rows = [s for s in self.sets.values() if s.match_id == match_id]
        return sorted(rows, key=lambda s: s.set_number)

    async def create_set(self, data: SetCreate) -> SetOut:
        late = self._check("create_set")
        for s in self.sets.values():
            if s.match_id == data.match_id and s.set_number == data.set_number:
                raise GatewayDown("duplicate set_number")
        row = SetOut(
            id=uuid.uuid4().hex,
            score=f"{data.player_score}-{data.opponent_score}",
            **data.model_dump(),
        )
        self.sets[row.id] = row
        self._raise_late(late, "create_set")
        return row

    async def update_set(self, set_id: str, data: SetUpdate) -> SetOut:
        late = self._check("update_set")
        if set_id not in self.sets:
            raise RecordNotFound("set", set_id)
        row = self.sets[set_id].model_copy(
            update={
                "player_score": data.player_score,
                "opponent_score": data.opponent_score,
                "score": f"{data.player_score}-{data.opponent_score}",
            }
        )
        self.sets[set_id] = row
        self._raise_late(late, "update_set")
        return row

    async def delete_set(self, set_id: str) -> None:
        late = self._check("delete_set")
        if set_id not in self.sets:
            raise RecordNotFound("set", set_id)
        del self.sets[set_id]
        self._raise_late(late, "delete_set")

    async def create_point(self, data: PointCreate) -> PointOut:
        late = self._check("create_point")
        if data.set_id not in self.sets:
            raise RecordNotFound("set", data.set_id)
        point = PointOut(id=uuid.uuid4().hex, **data.model_dump())
        self.points[point.id] = point
        self._raise_late(late, "create_point")
        return point

    async def delete_point(self, point_id: str) -> None:
        late = self._check("delete_point")
        if point_id not in self.points:
            raise RecordNotFound("point", point_id)
        del self.points[point_id]
        self._raise_late(late, "delete_point")

    async def list_points_by_match(self, match_id: str) -> List[PointOut]:
        self._check("list_points_by_match")
        numbers = {s.id: s.set_number for s in self.sets.values()}
        rows = [p for p in self.points.values() if p.match_id == match_id]
        return sorted(rows, key=lambda p: (numbers.get(p.set_id, 0), p.point_number))

    def points_in(self, set_id: str) -> List[PointOut]:
        return [p for p in self.points.values() if p.set_id == set_id]


@pytest.fixture(scope="module")
def anyio_backend():
    return "asyncio"


@pytest.fixture()
def gateway() -> FakeGateway:
    return FakeGateway()


def make_match_data(**overrides) -> MatchCreate:
    data = {
        "opponent_name": "Opponent",
        "date": date(2024, 5, 1),
        "initial_server": "player",
        "best_of": 5,
    }
    data.update(overrides)
    return MatchCreate(**data)


@pytest.fixture()
def start_engine(gateway):
    """Return a coroutine factory creating a fresh engine on the fake gateway."""

    async def _start(**overrides) -> MatchScoringEngine:
        return await MatchScoringEngine.start(gateway, make_match_data(**overrides))

    return _start


@pytest.fixture()
def session_maker():
    """An isolated in-memory SQLite database with every table created."""

    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    maker = sessionmaker(engine, expire_on_commit=False, class_=AsyncSession)

    async def init_models():
        async with engine.begin() as conn:
            await conn.run_sync(db.Base.metadata.create_all)

    asyncio.run(init_models())
    yield maker
    asyncio.run(engine.dispose())


async def play_point(engine, side: str, shot: str = "loop", other: str = "block"):
    """Run the whole point-entry flow for one point."""
    from backend.matchtracker.schemas import ShotRef

    engine.select_point_winner(side)
    await engine.select_winning_shot(ShotRef(shot_id=shot))
    return await engine.select_other_shot(ShotRef(shot_id=other, hand="bh"))


async def play_points(engine, side: str, count: int) -> None:
    for _ in range(count):
        await play_point(engine, side)


async def win_set(engine, side: str) -> None:
    await play_points(engine, side, 11)
