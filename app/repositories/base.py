from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

from sqlalchemy.orm import Session

from app.core.query import Clause, Filter, Op, bound, build_set, build_where, clamp_pagination, placeholder

Row = Dict[str, Any]


@dataclass(frozen=True)
class Page:
    items: List[Row]
    total: int
    page: int
    limit: int


@dataclass(frozen=True)
class TenantScope:
    """How a table's rows belong to a company.

    ``condition`` is used in SELECTs (it may reference ``joins``), and
    ``ownership`` in UPDATEs, where joins are not available. Both are format
    strings: ``{a}`` is the table alias and ``{p}`` the company placeholder.
    """

    condition: str = "{a}.company_id = :{p}"
    ownership: str = "company_id = :{p}"
    joins: str = ""

    def where(self, alias: str, name: str) -> str:
        return self.condition.format(a=alias, p=name)

    def owns(self, name: str) -> str:
        return self.ownership.format(p=name)


DIRECT = TenantScope()


class TenantRepository:
    """Soft-delete aware CRUD and pagination for one tenant-owned table.

    Subclasses set ``model`` and, where rows are owned through a parent,
    ``scope``. Every read and write conjoins the tenant predicate; "not
    found" is always a ``None`` return.
    """

    model: Any = None
    alias = "t"
    scope: TenantScope = DIRECT
    updatable: Tuple[str, ...] = ()
    search_columns: Tuple[str, ...] = ()
    order_by: Tuple[str, ...] = ("created_at DESC", "id DESC")
    default_limit = 10

    def __init__(self, db: Session) -> None:
        self.db = db

    @property
    def table(self):
        return self.model.__table__

    def col(self, name: str) -> str:
        return f"{self.alias}.{name}"

    def filter(self, name: str, op: Op, value: Any, present: Optional[bool] = None) -> Filter:
        return Filter(self.col(name), op, value, present=present, type_=self.table.c[name].type)

    def search(self, term: Optional[str]) -> Filter:
        columns = tuple(self.col(name) for name in self.search_columns)
        return Filter(columns, Op.SEARCH, term or None)

    def _select_list(self) -> str:
        return ", ".join(self.col(c.name) for c in self.table.c)

    def _from(self) -> str:
        joins = self.scope.joins.format(a=self.alias)
        return f"{self.table.name} {self.alias} {joins}".rstrip()

    def _order(self) -> str:
        return ", ".join(self.col(part) for part in self.order_by)

    def clause(self, company_id: int, filters: Iterable[Filter] = ()) -> Clause:
        base = f"{self.col('deleted_at')} IS NULL AND {self.scope.where(self.alias, placeholder(1))}"
        return build_where(base, [company_id], filters)

    def fetch(self, clause: Clause, sql: str, *extra: Any) -> List[Row]:
        stmt = clause.statement(sql, *extra).columns(*self.table.c)
        return [dict(row) for row in self.db.execute(stmt).mappings().all()]

    def select_sql(self, clause: Clause, order: Optional[str] = None) -> str:
        return (
            f"SELECT {self._select_list()} FROM {self._from()} "
            f"WHERE {clause.sql} ORDER BY {order or self._order()}"
        )

    def find_by_id(self, id: int, company_id: int) -> Optional[Row]:
        clause = self.clause(company_id, [self.filter("id", Op.EQ, id)])
        rows = self.fetch(clause, self.select_sql(clause))
        return rows[0] if rows else None

    def find_all(
        self,
        company_id: int,
        filters: Iterable[Filter] = (),
        order: Optional[str] = None,
    ) -> List[Row]:
        clause = self.clause(company_id, filters)
        return self.fetch(clause, self.select_sql(clause, order))

    def count(self, company_id: int, filters: Iterable[Filter] = ()) -> int:
        clause = self.clause(company_id, filters)
        sql = f"SELECT COUNT(*) FROM {self._from()} WHERE {clause.sql}"
        return int(self.db.execute(clause.statement(sql)).scalar() or 0)

    def list(
        self,
        company_id: int,
        filters: Sequence[Filter] = (),
        page: Optional[int] = None,
        limit: Optional[int] = None,
        order: Optional[str] = None,
    ) -> Page:
        page, limit, offset = clamp_pagination(page, limit, self.default_limit)
        clause = self.clause(company_id, filters)

        count_sql = f"SELECT COUNT(*) FROM {self._from()} WHERE {clause.sql}"
        total = int(self.db.execute(clause.statement(count_sql)).scalar() or 0)

        n = clause.next_index
        data_sql = (
            f"{self.select_sql(clause, order)} "
            f"LIMIT :{placeholder(n)} OFFSET :{placeholder(n + 1)}"
        )
        items = self.fetch(clause, data_sql, limit, offset)
        return Page(items=items, total=total, page=page, limit=limit)

    def count_by(self, company_id: int, column: str, filters: Iterable[Filter] = ()) -> Dict[str, int]:
        clause = self.clause(company_id, filters)
        sql = (
            f"SELECT {self.col(column)}, COUNT(*) FROM {self._from()} "
            f"WHERE {clause.sql} GROUP BY {self.col(column)}"
        )
        rows = self.db.execute(clause.statement(sql)).all()
        return {str(key): int(n) for key, n in rows if key is not None}

    def create(self, company_id: int, values: Mapping[str, Any]) -> Row:
        values = dict(values)
        if self.scope is DIRECT:
            values.setdefault("company_id", company_id)
        row = self.model(**values)
        self.db.add(row)
        self.db.flush()
        created = self.find_by_id(row.id, company_id)
        if created is None:
            raise RuntimeError(f"{self.table.name} row {row.id} not visible to company {company_id}")
        return created

    def update(self, id: int, company_id: int, fields: Mapping[str, Any]) -> Optional[Row]:
        column_types = {name: self.table.c[name].type for name in self.updatable}
        set_clause = build_set(fields, self.updatable, column_types=column_types)
        if not set_clause.sql:
            return self.find_by_id(id, company_id)

        n = set_clause.next_index
        sql = (
            f"UPDATE {self.table.name} SET {set_clause.sql} "
            f"WHERE id = :{placeholder(n)} AND deleted_at IS NULL "
            f"AND {self.scope.owns(placeholder(n + 1))}"
        )
        result = self.db.execute(set_clause.statement(sql, id, company_id))
        if result.rowcount != 1:
            return None
        return self.find_by_id(id, company_id)

    def soft_delete(self, id: int, company_id: int) -> bool:
        sql = (
            f"UPDATE {self.table.name} "
            "SET deleted_at = CURRENT_TIMESTAMP, updated_at = CURRENT_TIMESTAMP "
            f"WHERE id = :p1 AND deleted_at IS NULL AND {self.scope.owns('p2')}"
        )
        result = self.db.execute(bound(sql, id, company_id))
        return result.rowcount == 1

    def restore(self, id: int, company_id: int) -> Optional[Row]:
        """Bring back a soft-deleted row; live rows are left untouched."""
        sql = (
            f"UPDATE {self.table.name} "
            "SET deleted_at = NULL, updated_at = CURRENT_TIMESTAMP "
            f"WHERE id = :p1 AND deleted_at IS NOT NULL AND {self.scope.owns('p2')}"
        )
        result = self.db.execute(bound(sql, id, company_id))
        if result.rowcount != 1:
            return None
        return self.find_by_id(id, company_id)
