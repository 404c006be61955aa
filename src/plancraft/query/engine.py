# Rev 0.1.4
"""Generic list contract: filter, sort, paginate, count.

The engine is stateless: it compiles a typed query into a Predicate and SortPlan,
then asks one record store for the page and the total under the same predicate.
Page numbers are never clamped here; list view-models clamp once they know `total`.
"""
from __future__ import annotations

from dataclasses import dataclass, field, fields
from datetime import date, datetime, timedelta
from enum import IntEnum
from typing import Any, Generic, List, Tuple, TypeVar

from ..models.entities import TIMESTAMP_FIELDS
from ..models.errors import FieldViolation, ValidationError
from ..utils.logging_setup import get_logger
from .params import CONTROL_FIELDS, QueryParams
from .predicate import Eq, In, IsNull, LikeAny, Predicate, Range, SortPlan

E = TypeVar("E")

_SUFFIXES = (
    ("_is_null", "is_null"),
    ("_like", "like"),
    ("_gte", "gte"),
    ("_lte", "lte"),
    ("_in", "in"),
)


@dataclass
class ListResult(Generic[E]):
    data: List[E] = field(default_factory=list)
    total: int = 0
    page_size: int = 0

    @property
    def pages(self) -> int:
        if self.total == 0 or self.page_size < 1:
            return 0
        return -(-self.total // self.page_size)


def _plain(value: Any) -> Any:
    """Bring a filter value into the primitive form rows are stored in."""
    if isinstance(value, (date, datetime)):
        return value.isoformat()
    if isinstance(value, IntEnum):
        return int(value)
    return value


def _range(column: str, op: str, value: Any) -> Range:
    # Timestamps are stored with a time part, so a bare date covers its whole day
    if column in TIMESTAMP_FIELDS and isinstance(value, date) and not isinstance(value, datetime):
        if op == "lte":
            return Range(column, "<", (value + timedelta(days=1)).isoformat())
        return Range(column, ">=", value.isoformat())
    return Range(column, ">=" if op == "gte" else "<=", _plain(value))


def split_filter_name(name: str) -> Tuple[str, str]:
    for suffix, op in _SUFFIXES:
        if name.endswith(suffix):
            return name[: -len(suffix)], op
    return name, "eq"


def entity_columns(entity_cls) -> set[str]:
    return {f.name for f in fields(entity_cls)}


def compile_query(query: QueryParams) -> Tuple[str, Predicate, SortPlan]:
    """Return (table, predicate, sort plan) or raise ValidationError for bad paging/sorting."""
    entity_cls = type(query).ENTITY
    columns = entity_columns(entity_cls)

    problems: List[FieldViolation] = []
    if isinstance(query.page, bool) or not isinstance(query.page, int) or query.page < 1:
        problems.append(FieldViolation("page", "min", "page must be >= 1"))
    if isinstance(query.page_size, bool) or not isinstance(query.page_size, int) or query.page_size < 1:
        problems.append(FieldViolation("page_size", "min", "page_size must be >= 1"))

    keys = []
    for order in query.sort or ():
        if order.field not in columns:
            problems.append(FieldViolation("sort", "field", f"cannot sort by {order.field!r}"))
        elif order.direction not in ("asc", "desc"):
            problems.append(FieldViolation("sort", "direction", f"unknown direction {order.direction!r}"))
        else:
            keys.append((order.field, order.direction == "desc"))
    if problems:
        raise ValidationError(problems)

    conditions: List[Any] = []
    likes: List[Tuple[str, str]] = []
    for f in fields(query):
        if f.name in CONTROL_FIELDS:
            continue
        value = getattr(query, f.name)
        if value is None:
            continue
        column, op = split_filter_name(f.name)
        if column not in columns:
            raise TypeError(f"{type(query).__name__}.{f.name} does not map to a column of {entity_cls.TABLE}")
        if op == "like":
            if value != "":
                likes.append((column, str(value)))
        elif op == "in":
            values = tuple(_plain(v) for v in value)
            if values:
                conditions.append(In(column, values))
        elif op in ("gte", "lte"):
            conditions.append(_range(column, op, value))
        elif op == "is_null":
            conditions.append(IsNull(column, bool(value)))
        else:
            conditions.append(Eq(column, _plain(value)))
    if likes:
        conditions.append(LikeAny(tuple(likes)))

    return entity_cls.TABLE, Predicate(tuple(conditions)), SortPlan(tuple(keys))


class QueryEngine:
    """Runs compiled queries against a record store."""

    def __init__(self):
        self._log = get_logger("QueryEngine")

    def run(self, store, query: QueryParams) -> ListResult:
        table, predicate, sort = compile_query(query)
        entity_cls = type(query).ENTITY
        total = store.count_matching(table, predicate)
        rows = store.find_matching(table, predicate, sort, query.offset, query.page_size)
        self._log.debug("list %s page=%s size=%s -> %s/%s", table, query.page, query.page_size, len(rows), total)
        return ListResult(data=[entity_cls.from_row(r) for r in rows], total=total, page_size=query.page_size)
