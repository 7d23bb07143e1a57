from typing import List, Optional

import sqlalchemy as sa
from sqlalchemy import orm
from sqlalchemy.ext.hybrid import hybrid_property

from photoshare.db.base import Base


class Photo(Base):
    __tablename__ = "photos"

    id = sa.Column(sa.Integer, primary_key=True, autoincrement=True)

    owner_id = sa.Column(
        sa.Integer,
        sa.ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )

    # set by the before_insert hook in photoshare.db.events
    created_at = sa.Column(sa.DateTime(timezone=True), nullable=False)

    title = sa.Column(sa.String(200), nullable=False, server_default="")
    photo = sa.Column(sa.String(200), nullable=False)  # {uuid4().hex}.{ext}, never changes

    up_votes = sa.Column(sa.Integer, nullable=False, server_default="0", default=0)
    down_votes = sa.Column(sa.Integer, nullable=False, server_default="0", default=0)

    def __init__(self, tags: Optional[List[str]] = None, **kwargs):
        super().__init__(**kwargs)
        # tags live in photo_tags, not in this row
        self.tags: List[str] = list(tags or [])

    @orm.reconstructor
    def _init_on_load(self):
        self.tags = []

    @hybrid_property
    def score(self) -> int:
        return self.up_votes - self.down_votes

    def can_edit(self, caller) -> bool:
        if caller is None or not caller.is_authenticated:
            return False
        return caller.is_admin or self.owner_id == caller.id

    def can_delete(self, caller) -> bool:
        return self.can_edit(caller)

    def can_vote(self, caller) -> bool:
        if caller is None or not caller.is_authenticated:
            return False
        if self.owner_id == caller.id:
            return False

        return not caller.has_voted(self.id)
