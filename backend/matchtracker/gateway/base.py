from abc import ABC, abstractmethod
from typing import List

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


class PersistenceGateway(ABC):
    """Storage contract the scoring engine depends on.

    Every call is a single request/response round-trip. Implementations raise
    on any failure (transport or application level); the engine treats all
    exceptions alike.
    """

    @abstractmethod
    async def create_match(self, data: MatchCreate) -> MatchOut: ...

    @abstractmethod
    async def get_match(self, match_id: str) -> MatchOut: ...

    @abstractmethod
    async def update_match(self, match_id: str, data: MatchUpdate) -> MatchOut: ...

    @abstractmethod
    async def list_sets_by_match(self, match_id: str) -> List[SetOut]:
        """Return the sets of a match ordered by ``set_number``."""

    @abstractmethod
    async def create_set(self, data: SetCreate) -> SetOut: ...

    @abstractmethod
    async def update_set(self, set_id: str, data: SetUpdate) -> SetOut: ...

    @abstractmethod
    async def delete_set(self, set_id: str) -> None: ...

    @abstractmethod
    async def create_point(self, data: PointCreate) -> PointOut: ...

    @abstractmethod
    async def delete_point(self, point_id: str) -> None: ...

    @abstractmethod
    async def list_points_by_match(self, match_id: str) -> List[PointOut]:
        """Return the points of a match in play order."""
