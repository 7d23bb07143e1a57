from dataclasses import dataclass

import sqlalchemy as sa

from photoshare.db.base import Base


class Tag(Base):
    __tablename__ = "tags"

    id = sa.Column(sa.Integer, primary_key=True, autoincrement=True)
    name = sa.Column(sa.String(64), nullable=False, unique=True, index=True)


photo_tags = sa.Table(
    "photo_tags",
    Base.metadata,
    sa.Column("photo_id", sa.Integer, sa.ForeignKey("photos.id", ondelete="CASCADE"), primary_key=True),
    sa.Column("tag_id", sa.Integer, sa.ForeignKey("tags.id", ondelete="CASCADE"), primary_key=True, index=True),
)


# tag_counts is a view, so it stays out of Base.metadata and create_all()
view_metadata = sa.MetaData()

tag_counts = sa.Table(
    "tag_counts",
    view_metadata,
    sa.Column("name", sa.String(64), primary_key=True),
    sa.Column("photo", sa.String(200)),
    sa.Column("num_photos", sa.Integer),
)

TAG_COUNTS_SELECT = (
    "SELECT t.name AS name, MAX(p.photo) AS photo, COUNT(p.id) AS num_photos "
    "FROM tags t "
    "JOIN photo_tags pt ON pt.tag_id = t.id "
    "JOIN photos p ON p.id = pt.photo_id "
    "GROUP BY t.name"
)

CREATE_TAG_COUNTS = sa.DDL(f"CREATE OR REPLACE VIEW tag_counts AS {TAG_COUNTS_SELECT}")
CREATE_TAG_COUNTS_SQLITE = sa.DDL(f"CREATE VIEW IF NOT EXISTS tag_counts AS {TAG_COUNTS_SELECT}")
DROP_TAG_COUNTS = sa.DDL("DROP VIEW IF EXISTS tag_counts")

sa.event.listen(Base.metadata, "after_create", CREATE_TAG_COUNTS.execute_if(dialect="postgresql"))
sa.event.listen(Base.metadata, "after_create", CREATE_TAG_COUNTS_SQLITE.execute_if(dialect="sqlite"))
sa.event.listen(Base.metadata, "before_drop", DROP_TAG_COUNTS)


@dataclass
class TagCount:
    name: str
    photo: str
    num_photos: int
