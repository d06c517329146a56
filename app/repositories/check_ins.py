from typing import Dict, Iterable, Optional

from sqlalchemy import Numeric
from sqlalchemy.orm import Session

from app.core.query import Clause, Filter, bound, build_set, placeholder
from app.models.check_in import CheckInLog
from app.repositories.base import Row, TenantRepository, TenantScope

VIA_USER = TenantScope(
    joins="INNER JOIN users cu ON cu.id = {a}.user_id",
    condition="cu.company_id = :{p}",
    ownership="user_id IN (SELECT id FROM users WHERE company_id = :{p})",
)

OPEN = "open"
CLOSED = "closed"


class CheckInRepository(TenantRepository):
    """Check-in logs, owned through the checked-in user's company.

    ``state`` narrows every read to open (not yet checked out) or closed
    logs.
    """

    model = CheckInLog
    alias = "ci"
    scope = VIA_USER
    updatable = ("check_out_time", "duration_hours", "billable_amount", "notes")
    order_by = ("check_in_time DESC", "id DESC")
    default_limit = 50

    def __init__(self, db: Session, state: Optional[str] = None) -> None:
        super().__init__(db)
        self.state = state

    def clause(self, company_id: int, filters: Iterable[Filter] = ()) -> Clause:
        clause = super().clause(company_id, filters)
        if self.state == OPEN:
            clause.sql += f" AND {self.col('check_out_time')} IS NULL"
        elif self.state == CLOSED:
            clause.sql += f" AND {self.col('check_out_time')} IS NOT NULL"
        return clause

    def totals(self, company_id: int, filters: Iterable[Filter] = ()) -> Dict[str, object]:
        clause = self.clause(company_id, filters)
        sql = (
            f"SELECT COUNT(*) AS entries, "
            f"COALESCE(SUM({self.col('duration_hours')}), 0) AS total_hours, "
            f"COALESCE(SUM({self.col('billable_amount')}), 0) AS total_amount "
            f"FROM {self._from()} WHERE {clause.sql}"
        )
        stmt = clause.statement(sql).columns(total_hours=Numeric(12, 2), total_amount=Numeric(18, 2))
        return dict(self.db.execute(stmt).mappings().one())

    def details(self, log_ids: Iterable[int]) -> Dict[int, Row]:
        """Worker, job and site labels keyed by log id."""
        ids = sorted({int(i) for i in log_ids})
        if not ids:
            return {}
        names = ", ".join(f":p{i + 1}" for i in range(len(ids)))
        sql = (
            "SELECT ci.id, u.first_name, u.last_name, u.email, "
            "j.name AS job_name, j.job_number, s.address AS site_address "
            "FROM check_in_logs ci "
            "JOIN users u ON u.id = ci.user_id "
            "LEFT JOIN jobs j ON j.id = ci.job_id "
            "LEFT JOIN sites s ON s.id = j.site_id "
            f"WHERE ci.id IN ({names})"
        )
        found = {}
        for row in self.db.execute(bound(sql, *ids)).mappings().all():
            name = " ".join(part for part in (row["first_name"], row["last_name"]) if part)
            found[int(row["id"])] = {
                "worker_name": name or row["email"],
                "job_name": row["job_name"],
                "job_number": row["job_number"],
                "site_address": row["site_address"],
            }
        return found


    def close(self, log_id: int, company_id: int, fields: Dict[str, object]) -> Optional[Row]:
        """Stamp the check-out of a still-open log; None if it was already closed."""
        column_types = {name: self.table.c[name].type for name in self.updatable}
        set_clause = build_set(fields, self.updatable, column_types=column_types)
        n = set_clause.next_index
        sql = (
            f"UPDATE {self.table.name} SET {set_clause.sql} "
            f"WHERE id = :{placeholder(n)} AND check_out_time IS NULL AND deleted_at IS NULL "
            f"AND {self.scope.owns(placeholder(n + 1))}"
        )
        result = self.db.execute(set_clause.statement(sql, log_id, company_id))
        if result.rowcount != 1:
            return None
        return self.find_by_id(log_id, company_id)
