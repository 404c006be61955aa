# Rev 0.1.4
"""Store-neutral filter and sort plans.

A Predicate is an AND of conditions. Every condition can test a row in memory and
render itself as a SQLite WHERE fragment, so the draft store and the SQLite store
answer the same question the same way. Column names always come from entity field
lists, never from callers, so they are safe to splice into SQL.
"""
from __future__ import annotations

import operator
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple

Row = Dict[str, Any]


def _escape_like(term: str) -> str:
    return term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


_COMPARE = {">=": operator.ge, "<=": operator.le, "<": operator.lt}


@dataclass(frozen=True)
class Eq:
    column: str
    value: Any

    def matches(self, row: Row) -> bool:
        v = row.get(self.column)
        return v is not None and v == self.value

    def to_sql(self) -> Tuple[str, List[Any]]:
        return f"{self.column} = ?", [self.value]


@dataclass(frozen=True)
class In:
    column: str
    values: Tuple[Any, ...]

    def matches(self, row: Row) -> bool:
        v = row.get(self.column)
        return v is not None and v in self.values

    def to_sql(self) -> Tuple[str, List[Any]]:
        marks = ", ".join("?" for _ in self.values)
        return f"{self.column} IN ({marks})", list(self.values)


@dataclass(frozen=True)
class Range:
    column: str
    op: str  # ">=", "<=" or "<"
    value: Any

    def matches(self, row: Row) -> bool:
        v = row.get(self.column)
        if v is None:
            return False
        return _COMPARE[self.op](v, self.value)

    def to_sql(self) -> Tuple[str, List[Any]]:
        return f"{self.column} {self.op} ?", [self.value]


@dataclass(frozen=True)
class IsNull:
    column: str
    is_null: bool = True

    def matches(self, row: Row) -> bool:
        return (row.get(self.column) is None) == self.is_null

    def to_sql(self) -> Tuple[str, List[Any]]:
        return f"{self.column} IS {'NULL' if self.is_null else 'NOT NULL'}", []


@dataclass(frozen=True)
class LikeAny:
    """Case-insensitive substring match; true if any (column, term) pair matches."""
    terms: Tuple[Tuple[str, str], ...]

    def matches(self, row: Row) -> bool:
        for column, term in self.terms:
            v = row.get(column)
            if v is not None and term.lower() in str(v).lower():
                return True
        return False

    def to_sql(self) -> Tuple[str, List[Any]]:
        parts, params = [], []
        for column, term in self.terms:
            # py_lower is registered by Database; SQLite's LOWER() folds ASCII only
            parts.append(f"py_lower(COALESCE({column}, '')) LIKE ? ESCAPE '\\'")
            params.append(f"%{_escape_like(term.lower())}%")
        return "(" + " OR ".join(parts) + ")", params


@dataclass(frozen=True)
class Predicate:
    conditions: Tuple[Any, ...] = ()

    @classmethod
    def where(cls, *conditions) -> "Predicate":
        return cls(tuple(conditions))

    def matches(self, row: Row) -> bool:
        return all(c.matches(row) for c in self.conditions)

    def to_sql(self) -> Tuple[str, List[Any]]:
        if not self.conditions:
            return "1 = 1", []
        parts, params = [], []
        for c in self.conditions:
            sql, p = c.to_sql()
            parts.append(sql)
            params.extend(p)
        return " AND ".join(parts), params


MATCH_ALL = Predicate()


@dataclass(frozen=True)
class SortPlan:
    """Ordered (column, descending) keys; id ascending is always the final tie-breaker."""
    keys: Tuple[Tuple[str, bool], ...] = ()

    def to_sql(self) -> str:
        parts = [f"{col} {'DESC' if desc else 'ASC'}" for col, desc in self.keys]
        if not any(col == "id" for col, _ in self.keys):
            parts.append("id ASC")
        return ", ".join(parts)

    def sort_rows(self, rows: Iterable[Row]) -> List[Row]:
        # SQLite puts NULLs first ascending and last descending; (is-not-null, value)
        # keys reproduce that under both directions.
        out = sorted(rows, key=lambda r: r["id"])
        for col, desc in reversed(self.keys):
            out.sort(key=lambda r, c=col: (r.get(c) is not None, r.get(c)), reverse=desc)
        return out


BY_ID = SortPlan()


def paginate(rows: Sequence[Row], offset: int, limit: Optional[int]) -> List[Row]:
    if limit is None:
        return list(rows[offset:])
    return list(rows[offset:offset + limit])
