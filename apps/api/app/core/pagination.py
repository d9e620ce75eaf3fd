from __future__ import annotations

import math
from typing import Any, Generic, TypeVar

from pydantic import BaseModel
from sqlalchemy import Select, func, select
from sqlalchemy.orm import Session


T = TypeVar("T")


class PaginationMeta(BaseModel):
    total: int
    count: int
    per_page: int
    current_page: int
    total_pages: int


class PageMeta(BaseModel):
    pagination: PaginationMeta


class Page(BaseModel, Generic[T]):
    data: list[T]
    meta: PageMeta


def clamp_per_page(per_page: int | None, *, default: int, maximum: int) -> int:
    """Oversized page sizes are clamped to ``maximum``; missing or non-positive ones use ``default``."""

    if per_page is None or per_page < 1:
        return default
    return min(per_page, maximum)


def paginate(session: Session, query: Select[Any], *, page: int, per_page: int) -> tuple[list[Any], PaginationMeta]:
    page = max(page, 1)
    total = session.scalar(select(func.count()).select_from(query.order_by(None).subquery())) or 0
    items = list(session.scalars(query.offset((page - 1) * per_page).limit(per_page)))
    meta = PaginationMeta(
        total=total,
        count=len(items),
        per_page=per_page,
        current_page=page,
        total_pages=math.ceil(total / per_page) if total else 0,
    )
    return items, meta

