from typing import Any, Dict, List, NamedTuple

from sqlalchemy import func
from sqlmodel import select

MAX_PAGE_SIZE = 200


class Page(NamedTuple):
    items: List[Any]
    pagination: Dict[str, int]


def paginate(*, session, query, page: int = 1, limit: int = 10) -> Page:
    """Run ``query`` for one page; unpacks as ``items, pagination``."""
    page = max(page, 1)
    limit = min(limit, MAX_PAGE_SIZE) if limit >= 1 else 10

    total = session.exec(
        select(func.count()).select_from(query.subquery())
    ).one()

    items = session.exec(
        query.offset((page - 1) * limit).limit(limit)
    ).all()

    return Page(
        items=list(items),
        pagination={
            "page": page,
            "limit": limit,
            "total": total,
            "pages": -(-total // limit),
        },
    )
