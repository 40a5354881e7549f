"""Read-only lookup of the selectable shots, grouped by category."""

from __future__ import annotations

from typing import Dict, Iterable, List, Optional, Tuple

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from ..models import Shot, ShotCategory
from ..schemas import ShotCategoryOut, ShotOut


class ShotCatalog:
    """Immutable view over shot categories and shots.

    The presentation layer owns the instance and passes it where needed;
    nothing here is cached at module level.
    """

    def __init__(
        self, categories: Iterable[ShotCategoryOut], shots: Iterable[ShotOut]
    ) -> None:
        self._categories = sorted(categories, key=lambda c: (c.display_order, c.name))
        self._by_category_id = {c.id: c for c in self._categories}
        self._shots = sorted(shots, key=lambda s: (s.display_order, s.name))
        self._by_id: Dict[str, ShotOut] = {s.id: s for s in self._shots}

    def __len__(self) -> int:
        return len(self._shots)

    def __contains__(self, shot_id: object) -> bool:
        return shot_id in self._by_id

    @property
    def categories(self) -> List[ShotCategoryOut]:
        return list(self._categories)

    def get(self, shot_id: str) -> Optional[ShotOut]:
        return self._by_id.get(shot_id)

    def display_name(self, shot_id: str) -> str:
        """Display name of a shot, falling back to the raw id for unknown shots."""
        shot = self._by_id.get(shot_id)
        return shot.display_name if shot else shot_id

    def category_of(self, shot_id: str) -> Optional[ShotCategoryOut]:
        shot = self._by_id.get(shot_id)
        if shot is None:
            return None
        return self._by_category_id.get(shot.category_id)

    def shots_by_category(self, category_name: str) -> List[ShotOut]:
        category = next(
            (c for c in self._categories if c.name == category_name), None
        )
        if category is None:
            return []
        return [s for s in self._shots if s.category_id == category.id]

    def grouped(self) -> List[Tuple[ShotCategoryOut, List[ShotOut]]]:
        return [(c, self.shots_by_category(c.name)) for c in self._categories]


async def load_shot_catalog(session: AsyncSession) -> ShotCatalog:
    categories = (
        await session.execute(
            select(ShotCategory).order_by(ShotCategory.display_order)
        )
    ).scalars().all()
    shots = (
        await session.execute(select(Shot).order_by(Shot.display_order))
    ).scalars().all()
    return ShotCatalog(
        [ShotCategoryOut.model_validate(c) for c in categories],
        [ShotOut.model_validate(s) for s in shots],
    )
