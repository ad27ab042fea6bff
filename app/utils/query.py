# app/utils/query.py
"""
Filter, sort and pagination builders over SQLAlchemy queries.
"""
import math
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Iterable, List, Optional, Sequence, Tuple

from sqlalchemy import and_, or_
from sqlalchemy.orm import Query

DEFAULT_LIMIT = 20


@dataclass
class PaginatedResult:
    data: List[Any] = field(default_factory=list)
    total: int = 0
    page: int = 1
    limit: int = DEFAULT_LIMIT
    pages: int = 0

    def to_dict(self) -> dict:
        return {
            "data": self.data,
            "total": self.total,
            "page": self.page,
            "limit": self.limit,
            "pages": self.pages,
        }


def build_pagination(page: int, limit: int) -> Tuple[int, int]:
    """Returns (skip, limit) for a 1-indexed page"""
    return (page - 1) * limit, limit


LIKE_ESCAPE = "\\"


def escape_like(term: str) -> str:
    """Escape LIKE wildcards so % and _ in user input match literally"""
    return term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def build_text_search(model, term: Optional[str], fields: Sequence[str]):
    """
    OR of case-insensitive substring matches, one per field.
    Blank terms produce no filter.
    """
    if not term or not term.strip():
        return None
    pattern = f"%{escape_like(term.strip())}%"
    clauses = [getattr(model, name).ilike(pattern, escape=LIKE_ESCAPE) for name in fields]
    return or_(*clauses)


def build_sort(
    model,
    sort_by: Optional[str],
    order: Optional[str] = "desc",
    allowed: Optional[dict] = None,
    default: str = "created_at",
):
    """
    Map a public field name and asc/desc to an ORDER BY clause.

    allowed maps request names (e.g. "viewCount") to column names; anything
    outside it falls back to default.
    """
    allowed = allowed or {}
    column_name = allowed.get(sort_by, default) if sort_by else default
    column = getattr(model, column_name)
    return column.asc() if (order or "").lower() == "asc" else column.desc()


def build_date_range(column, start: Optional[datetime] = None, end: Optional[datetime] = None):
    clauses = []
    if start is not None:
        clauses.append(column >= start)
    if end is not None:
        clauses.append(column <= end)
    return and_(*clauses) if clauses else None


def build_array_filter(column, values: Optional[Iterable[Any]]):
    values = [v for v in (values or []) if v not in (None, "")]
    return column.in_(values) if values else None


def build_user_filter(model, user_id: Optional[int], field_name: str = "user_id"):
    if user_id is None:
        return None
    return getattr(model, field_name) == user_id


def build_active_filter(model, field_name: str = "is_active"):
    return getattr(model, field_name).is_(True)


def build_not_deleted_filter(model):
    """Rows where is_deleted is false or unset"""
    return or_(model.is_deleted.is_(False), model.is_deleted.is_(None))


def combine_filters(*clauses):
    present = [c for c in clauses if c is not None]
    if not present:
        return None
    if len(present) == 1:
        return present[0]
    return and_(*present)


def execute_paginated_query(
    query: Query,
    skip: int = 0,
    limit: int = DEFAULT_LIMIT,
    order_by=None,
    options: Sequence[Any] = (),
) -> PaginatedResult:
    """
    Count plus one skip/limit fetch. Not transactional: under concurrent
    writes the total may be off by the rows changed in between.
    """
    limit = limit or DEFAULT_LIMIT
    total = query.order_by(None).count()

    if order_by is None:
        entity = query.column_descriptions[0]["entity"]
        order_by = entity.created_at.desc()

    rows_query = query.order_by(*order_by) if isinstance(order_by, (list, tuple)) else query.order_by(order_by)
    if options:
        rows_query = rows_query.options(*options)
    rows = rows_query.offset(skip).limit(limit).all()

    return PaginatedResult(
        data=rows,
        total=total,
        page=skip // limit + 1,
        limit=limit,
        pages=math.ceil(total / limit),
    )
