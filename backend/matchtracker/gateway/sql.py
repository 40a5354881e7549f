import logging
import uuid
from typing import List

from sqlalchemy import delete, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import sessionmaker

from ..db_errors import is_unique_violation
from ..exceptions import ReconciliationConflict, RecordNotFound
from ..models import Match, MatchSet, Point
from ..schemas import (
    MatchCreate,
    MatchOut,
    MatchUpdate,
    PointCreate,
    PointOut,
    SetCreate,
    SetOut,
    SetUpdate,
)
from ..scoring.table_tennis import format_score
from .base import PersistenceGateway

logger = logging.getLogger(__name__)


class SqlAlchemyGateway(PersistenceGateway):
    """Gateway over the relational store, one short session per call."""

    def __init__(self, session_maker: sessionmaker) -> None:
        self._session_maker = session_maker

    async def _get(self, session: AsyncSession, model, record_id: str, kind: str):
        row = await session.get(model, record_id)
        if row is None:
            raise RecordNotFound(kind, record_id)
        return row

    async def create_match(self, data: MatchCreate) -> MatchOut:
        async with self._session_maker() as session:
            match = Match(id=uuid.uuid4().hex, match_score="0-0", **data.model_dump())
            session.add(match)
            await session.commit()
            await session.refresh(match)
            return MatchOut.model_validate(match)

    async def get_match(self, match_id: str) -> MatchOut:
        async with self._session_maker() as session:
            match = await self._get(session, Match, match_id, "match")
            return MatchOut.model_validate(match)

    async def update_match(self, match_id: str, data: MatchUpdate) -> MatchOut:
        async with self._session_maker() as session:
            match = await self._get(session, Match, match_id, "match")
            for key, value in data.model_dump(exclude_unset=True).items():
                setattr(match, key, value)
            await session.commit()
            await session.refresh(match)
            return MatchOut.model_validate(match)

    async def list_sets_by_match(self, match_id: str) -> List[SetOut]:
        async with self._session_maker() as session:
            rows = (
                await session.execute(
                    select(MatchSet)
                    .where(MatchSet.match_id == match_id)
                    .order_by(MatchSet.set_number)
                )
            ).scalars().all()
            return [SetOut.model_validate(r) for r in rows]

    async def create_set(self, data: SetCreate) -> SetOut:
        async with self._session_maker() as session:
            row = MatchSet(
                id=uuid.uuid4().hex,
                score=format_score(data.player_score, data.opponent_score),
                **data.model_dump(),
            )
            session.add(row)
            try:
                await session.commit()
            except IntegrityError as exc:
                await session.rollback()
                if is_unique_violation(exc, "set_number"):
                    logger.warning(
                        "Set %s already exists for match %s",
                        data.set_number,
                        data.match_id,
                    )
                    raise ReconciliationConflict(
                        f"set {data.set_number} already exists for match "
                        f"'{data.match_id}'"
                    ) from exc
                raise
            await session.refresh(row)
            return SetOut.model_validate(row)

    async def update_set(self, set_id: str, data: SetUpdate) -> SetOut:
        async with self._session_maker() as session:
            row = await self._get(session, MatchSet, set_id, "set")
            row.player_score = data.player_score
            row.opponent_score = data.opponent_score
            row.score = format_score(data.player_score, data.opponent_score)
            await session.commit()
            await session.refresh(row)
            return SetOut.model_validate(row)

    async def delete_set(self, set_id: str) -> None:
        async with self._session_maker() as session:
            await self._get(session, MatchSet, set_id, "set")
            await session.execute(delete(Point).where(Point.set_id == set_id))
            await session.execute(delete(MatchSet).where(MatchSet.id == set_id))
            await session.commit()

    async def create_point(self, data: PointCreate) -> PointOut:
        async with self._session_maker() as session:
            await self._get(session, MatchSet, data.set_id, "set")
            point = Point(id=uuid.uuid4().hex, **data.model_dump())
            session.add(point)
            await session.commit()
            await session.refresh(point)
            return PointOut.model_validate(point)

    async def delete_point(self, point_id: str) -> None:
        async with self._session_maker() as session:
            point = await self._get(session, Point, point_id, "point")
            await session.delete(point)
            await session.commit()

    async def list_points_by_match(self, match_id: str) -> List[PointOut]:
        async with self._session_maker() as session:
            rows = (
                await session.execute(
                    select(Point)
                    .join(MatchSet, MatchSet.id == Point.set_id)
                    .where(Point.match_id == match_id)
                    .order_by(MatchSet.set_number, Point.point_number)
                )
            ).scalars().all()
            return [PointOut.model_validate(r) for r in rows]
