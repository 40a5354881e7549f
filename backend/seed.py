import asyncio

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from backend.matchtracker.config import configure_logging
from backend.matchtracker.db import create_all, dispose, get_session_maker
from backend.matchtracker.models import Shot, ShotCategory

DEFAULT_CATALOG = [
    (
        "serve",
        [
            ("pendulum", "Pendulum serve"),
            ("reverse_pendulum", "Reverse pendulum serve"),
            ("tomahawk", "Tomahawk serve"),
            ("backspin_serve", "Backspin serve"),
        ],
    ),
    (
        "attack",
        [
            ("loop", "Loop"),
            ("counter_loop", "Counter loop"),
            ("drive", "Drive"),
            ("flick", "Flick"),
            ("smash", "Smash"),
        ],
    ),
    (
        "defence",
        [
            ("block", "Block"),
            ("chop", "Chop"),
            ("lob", "Lob"),
        ],
    ),
    (
        "touch",
        [
            ("push", "Push"),
            ("drop_shot", "Drop shot"),
            ("short_touch", "Short touch"),
        ],
    ),
]


async def seed_catalog(s: AsyncSession) -> int:
    """Insert missing default categories and shots; return how many rows were added."""
    added = 0
    existing = {x.id for x in (await s.execute(select(ShotCategory))).scalars().all()}
    for order, (cid, _) in enumerate(DEFAULT_CATALOG):
        if cid not in existing:
            s.add(ShotCategory(id=cid, name=cid, display_order=order))
            added += 1
    await s.commit()

    have = {x.id for x in (await s.execute(select(Shot))).scalars().all()}
    for cid, shots in DEFAULT_CATALOG:
        for order, (sid, display_name) in enumerate(shots):
            if sid not in have:
                s.add(
                    Shot(
                        id=sid,
                        category_id=cid,
                        name=sid,
                        display_name=display_name,
                        display_order=order,
                    )
                )
                added += 1
    await s.commit()
    return added


async def main():
    configure_logging()
    await create_all()
    Session = get_session_maker()
    async with Session() as s:
        await seed_catalog(s)
    await dispose()


if __name__ == "__main__":
    asyncio.run(main())
