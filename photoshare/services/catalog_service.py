import logging
from dataclasses import dataclass, field
from typing import List, Optional

import sqlalchemy as sa
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import aliased

from photoshare.db.models.photo import Photo
from photoshare.db.models.tag import Tag, TagCount, photo_tags, tag_counts
from photoshare.db.models.user import User
from photoshare.services.tag_store import TagStore
from photoshare.utils.pagination import PAGE_SIZE, get_offset, get_num_pages
from photoshare.utils.search import build_search_subquery
from photoshare.utils.tags import normalize_tags

logger = logging.getLogger(__name__)


class AlreadyVoted(Exception):
    pass


@dataclass
class PhotoList:
    photos: List[Photo]
    total: int
    current_page: int
    num_pages: int

    @classmethod
    def build(cls, photos: List[Photo], total: int, page: int) -> "PhotoList":
        return cls(photos=list(photos), total=total, current_page=page, num_pages=get_num_pages(total))


@dataclass
class Permissions:
    edit: bool = False
    delete: bool = False
    vote: bool = False

    @classmethod
    def for_caller(cls, photo: Photo, caller) -> "Permissions":
        return cls(
            edit=photo.can_edit(caller),
            delete=photo.can_delete(caller),
            vote=photo.can_vote(caller),
        )


@dataclass
class PhotoDetail:
    photo: Photo
    owner_name: str
    permissions: Permissions = field(default_factory=Permissions)

    @property
    def tags(self) -> List[str]:
        return self.photo.tags


class CatalogService:
    # mutating calls commit the whole unit of work or roll back and re-raise

    def __init__(self, db: AsyncSession, tag_store: Optional[TagStore] = None):
        self.db = db
        self.tag_store = tag_store or TagStore()

    async def insert(self, photo: Photo) -> Photo:
        try:
            self.db.add(photo)
            await self.db.flush()
            await self._sync_tags(photo)
            await self.db.commit()

        except Exception:
            await self.db.rollback()
            raise

        logger.info("Inserted photo %s for owner %s", photo.id, photo.owner_id)
        return photo

    async def update(self, photo: Photo) -> Photo:
        try:
            self.db.add(photo)
            await self.db.commit()

        except Exception:
            await self.db.rollback()
            raise

        return photo

    async def vote(self, photo: Photo, voter_id: int, up: bool) -> Photo:
        photo_id = photo.id
        counter = Photo.up_votes if up else Photo.down_votes
        try:
            # the voter row lock serializes concurrent votes by the same user
            voter = await self.db.scalar(
                sa.select(User)
                .where(User.id == voter_id)
                .with_for_update()
                .execution_options(populate_existing=True)
            )
            if photo_id in (voter.votes or []):
                raise AlreadyVoted(f"User {voter_id} already voted on photo {photo_id}.")

            await self.db.execute(
                sa.update(Photo)
                .where(Photo.id == photo_id)
                .values({counter: counter + 1})
                .execution_options(synchronize_session=False)
            )
            voter.votes = [*(voter.votes or []), photo_id]
            await self.db.commit()

        except Exception:
            await self.db.rollback()
            raise

        await self.db.refresh(photo)
        return photo

    async def delete(self, photo: Photo) -> None:
        try:
            await self.db.delete(photo)
            await self.db.commit()

        except Exception:
            await self.db.rollback()
            raise

        logger.info("Deleted photo %s", photo.id)

    async def update_tags(self, photo: Photo) -> None:
        try:
            await self._sync_tags(photo)
            await self.db.commit()

        except Exception:
            await self.db.rollback()
            raise

    async def _sync_tags(self, photo: Photo) -> None:
        names = normalize_tags(photo.tags)
        if not names and photo.id:
            await self.tag_store.clear_tags(self.db, photo.id)
            return

        await self.tag_store.add_tags(self.db, photo.id, names)

    async def get(self, photo_id: int) -> Optional[Photo]:
        return await self.db.get(Photo, photo_id)

    async def get_detail(self, photo_id: int, caller=None) -> Optional[PhotoDetail]:
        row = (await self.db.execute(
            sa.select(Photo, User.name)
            .join(User, User.id == Photo.owner_id)
            .where(Photo.id == photo_id)
        )).first()

        if row is None:
            return None

        photo, owner_name = row
        photo.tags = list(await self.db.scalars(
            sa.select(Tag.name)
            .join(photo_tags, photo_tags.c.tag_id == Tag.id)
            .where(photo_tags.c.photo_id == photo.id)
            .order_by(Tag.name)
        ))

        return PhotoDetail(
            photo=photo,
            owner_name=owner_name,
            permissions=Permissions.for_caller(photo, caller),
        )

    async def all(self, page: int, order_by: str = "") -> PhotoList:
        if order_by == "votes":
            ordering = [Photo.score.desc(), Photo.created_at.desc()]
        else:
            ordering = [Photo.created_at.desc()]

        total = await self.db.scalar(sa.select(sa.func.count(Photo.id)))

        photos = await self.db.scalars(
            sa.select(Photo)
            .order_by(*ordering)
            .limit(PAGE_SIZE)
            .offset(get_offset(page))
        )
        return PhotoList.build(photos.all(), total, page)

    async def by_owner_id(self, page: int, owner_id: int) -> PhotoList:
        total = await self.db.scalar(
            sa.select(sa.func.count(Photo.id)).where(Photo.owner_id == owner_id)
        )

        photos = await self.db.scalars(
            sa.select(Photo)
            .where(Photo.owner_id == owner_id)
            .order_by(Photo.score.desc(), Photo.created_at.desc())
            .limit(PAGE_SIZE)
            .offset(get_offset(page))
        )
        return PhotoList.build(photos.all(), total, page)

    async def search(self, page: int, q: str) -> PhotoList:
        matches = build_search_subquery(q)
        if matches is None:
            return PhotoList.build([], 0, page)

        total = await self.db.scalar(sa.select(sa.func.count()).select_from(matches))

        found = aliased(Photo, matches)
        photos = await self.db.scalars(
            sa.select(found)
            .order_by(found.score.desc(), found.created_at.desc())
            .limit(PAGE_SIZE)
            .offset(get_offset(page))
        )
        return PhotoList.build(photos.all(), total, page)

    async def get_tag_counts(self) -> List[TagCount]:
        rows = await self.db.execute(sa.select(tag_counts).order_by(tag_counts.c.name))
        return [TagCount(**row._mapping) for row in rows]
