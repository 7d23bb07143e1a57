from typing import List, Optional

import sqlalchemy as sa

from photoshare.db.models.photo import Photo
from photoshare.db.models.tag import Tag, photo_tags
from photoshare.db.models.user import User

MAX_SEARCH_TOKENS = 6

LIKE_ESCAPE = "\\"


def tokenize(q: str) -> List[str]:
    return [token for token in (q or "").split() if token][:MAX_SEARCH_TOKENS]


def escape_like(token: str) -> str:
    return (
        token.replace(LIKE_ESCAPE, LIKE_ESCAPE * 2)
        .replace("%", LIKE_ESCAPE + "%")
        .replace("_", LIKE_ESCAPE + "_")
    )


def token_match(token: str) -> sa.Select:
    pattern = sa.func.upper(sa.literal(f"%{escape_like(token)}%", type_=sa.String))

    return (
        sa.select(*Photo.__table__.c)
        .distinct()
        .join(User, User.id == Photo.owner_id)
        .outerjoin(photo_tags, photo_tags.c.photo_id == Photo.id)
        .outerjoin(Tag, Tag.id == photo_tags.c.tag_id)
        .where(
            sa.or_(
                sa.func.upper(Photo.title).like(pattern, escape=LIKE_ESCAPE),
                sa.func.upper(User.name).like(pattern, escape=LIKE_ESCAPE),
                sa.func.upper(Tag.name).like(pattern, escape=LIKE_ESCAPE),
            )
        )
    )


def build_search_subquery(q: str) -> Optional[sa.Subquery]:
    # every token has to match somewhere
    tokens = tokenize(q)
    if not tokens:
        return None

    clauses = [token_match(token) for token in tokens]
    if len(clauses) == 1:
        return clauses[0].subquery("q")

    return sa.intersect(*clauses).subquery("q")
