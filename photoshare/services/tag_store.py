from typing import Dict, List

import sqlalchemy as sa
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.ext.asyncio import AsyncSession

from photoshare.db.models.tag import Tag, photo_tags

DIALECT_INSERTS = {
    "postgresql": postgresql.insert,
    "sqlite": sqlite.insert,
}


class TagStore:
    # add_tags() rewrites the association set inside one SAVEPOINT

    async def add_tags(self, db: AsyncSession, photo_id: int, names: List[str]) -> None:
        async with db.begin_nested():
            tag_ids = await self._upsert_tags(db, names)

            await db.execute(
                sa.delete(photo_tags).where(
                    photo_tags.c.photo_id == photo_id,
                    photo_tags.c.tag_id.not_in(list(tag_ids.values())),
                )
            )

            current = set(await db.scalars(
                sa.select(photo_tags.c.tag_id).where(photo_tags.c.photo_id == photo_id)
            ))
            missing = [
                {"photo_id": photo_id, "tag_id": tag_id}
                for tag_id in tag_ids.values()
                if tag_id not in current
            ]
            if missing:
                await db.execute(sa.insert(photo_tags), missing)

    async def clear_tags(self, db: AsyncSession, photo_id: int) -> None:
        await db.execute(sa.delete(photo_tags).where(photo_tags.c.photo_id == photo_id))

    @staticmethod
    async def _upsert_tags(db: AsyncSession, names: List[str]) -> Dict[str, int]:
        if not names:
            return {}

        existing = dict((await db.execute(
            sa.select(Tag.name, Tag.id).where(Tag.name.in_(names))
        )).all())

        new_names = [name for name in names if name not in existing]
        if new_names:
            # another writer may have created some of these since the select
            insert = DIALECT_INSERTS[db.bind.dialect.name](Tag.__table__)
            await db.execute(
                insert.on_conflict_do_nothing(index_elements=["name"]),
                [{"name": name} for name in new_names],
            )
            existing.update((await db.execute(
                sa.select(Tag.name, Tag.id).where(Tag.name.in_(new_names))
            )).all())

        return existing
