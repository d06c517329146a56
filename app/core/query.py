from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple, Union

from sqlalchemy import bindparam, text
from sqlalchemy.sql.elements import TextClause
from sqlalchemy.types import TypeEngine

MAX_PAGE_LIMIT = 100
MAX_PAGE = 1_000_000

_MISSING = object()


class Op(Enum):
    EQ = "="
    SEARCH = "search"
    GTE = ">="
    LTE = "<="


def placeholder(index: int) -> str:
    return f"p{index}"


@dataclass(frozen=True)
class Filter:
    """One optional predicate fragment.

    ``column`` may be a tuple for SEARCH, in which case every column is
    matched against the same bound value and the matches are OR'd.
    The filter is applied when ``present`` is true; by default that means
    the value is not None.
    """

    column: Union[str, Tuple[str, ...]]
    op: Op
    value: Any
    present: Optional[bool] = None
    type_: Optional[TypeEngine] = None

    @property
    def is_present(self) -> bool:
        if self.present is not None:
            return bool(self.present)
        return self.value is not None


@dataclass
class Clause:
    sql: str
    params: List[Any]
    next_index: int
    types: Dict[int, TypeEngine] = field(default_factory=dict)

    def statement(self, sql: str, *extra: Any) -> TextClause:
        """Compile ``sql`` (which embeds this clause) with every parameter bound."""
        values = list(self.params) + list(extra)
        binds = [
            bindparam(placeholder(i + 1), v, type_=self.types.get(i + 1))
            for i, v in enumerate(values)
        ]
        return text(sql).bindparams(*binds)


def _fragment(f: Filter, name: str) -> str:
    if f.op is Op.SEARCH:
        columns = f.column if isinstance(f.column, tuple) else (f.column,)
        parts = [f"LOWER({col}) LIKE LOWER(:{name})" for col in columns]
        if len(parts) == 1:
            return parts[0]
        return "(" + " OR ".join(parts) + ")"
    return f"{f.column} {f.op.value} :{name}"


def build_where(
    base: str,
    base_params: Sequence[Any],
    filters: Iterable[Filter],
    base_types: Optional[Mapping[int, TypeEngine]] = None,
) -> Clause:
    """Conjoin ``base`` with every present filter, in declaration order.

    ``base`` uses :p1..:pN for its own ``base_params``; filter placeholders
    continue from N+1. Search values are wrapped as ``%term%`` without
    escaping LIKE wildcards.
    """
    parts = [base]
    params = list(base_params)
    types: Dict[int, TypeEngine] = dict(base_types or {})
    index = len(params) + 1

    for f in filters:
        if not f.is_present:
            continue
        value = f"%{f.value}%" if f.op is Op.SEARCH else f.value
        parts.append(_fragment(f, placeholder(index)))
        params.append(value)
        if f.type_ is not None:
            types[index] = f.type_
        index += 1

    return Clause(sql=" AND ".join(parts), params=params, next_index=index, types=types)


def build_set(
    fields: Mapping[str, Any],
    columns: Sequence[str],
    start_index: int = 1,
    column_types: Optional[Mapping[str, TypeEngine]] = None,
) -> Clause:
    """SET clause for the keys actually present in ``fields``.

    Keys are emitted in ``columns`` order. An explicit None is kept. An empty
    ``fields`` mapping yields an empty clause so callers can skip the UPDATE.
    """
    unknown = set(fields) - set(columns)
    if unknown:
        raise ValueError(f"Unknown column(s): {', '.join(sorted(unknown))}")

    parts: List[str] = []
    params: List[Any] = []
    types: Dict[int, TypeEngine] = {}
    index = start_index
    for column in columns:
        value = fields.get(column, _MISSING)
        if value is _MISSING:
            continue
        parts.append(f"{column} = :{placeholder(index)}")
        params.append(value)
        if column_types and column in column_types:
            types[index] = column_types[column]
        index += 1

    if not parts:
        return Clause(sql="", params=[], next_index=start_index)

    parts.append("updated_at = CURRENT_TIMESTAMP")
    return Clause(sql=", ".join(parts), params=params, next_index=index, types=types)


def clamp_pagination(
    page: Optional[int],
    limit: Optional[int],
    default_limit: int = 10,
) -> Tuple[int, int, int]:
    page = min(page, MAX_PAGE) if page and page > 0 else 1
    if limit is None or limit < 1:
        limit = default_limit
    limit = min(limit, MAX_PAGE_LIMIT)
    return page, limit, (page - 1) * limit


def bound(sql: str, *values: Any) -> TextClause:
    """Bind ``values`` to :p1..:pN of a hand-written statement."""
    return Clause(sql="", params=[], next_index=1).statement(sql, *values)
