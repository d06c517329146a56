from typing import Iterable, Optional, Set

from app.core.query import bound
from app.models.user import User
from app.repositories.base import Row, TenantRepository


class UserRepository(TenantRepository):
    model = User
    alias = "u"
    search_columns = ("first_name", "last_name", "email")
    updatable = (
        "email",
        "password_hash",
        "first_name",
        "last_name",
        "phone",
        "hourly_rate",
        "role",
        "is_active",
    )

    def find_by_email(self, email: str) -> Optional[Row]:
        """Live user by email across all companies (login lookup)."""
        sql = (
            f"SELECT {self._select_list()} FROM users u "
            "WHERE LOWER(u.email) = LOWER(:p1) AND u.deleted_at IS NULL "
            "ORDER BY u.id"
        )
        rows = self.db.execute(bound(sql, email).columns(*self.table.c)).mappings().all()
        return dict(rows[0]) if rows else None

    def email_taken(self, email: str, exclude_id: Optional[int] = None) -> bool:
        sql = "SELECT COUNT(*) FROM users WHERE LOWER(email) = LOWER(:p1) AND deleted_at IS NULL"
        values = [email]
        if exclude_id is not None:
            sql += " AND id <> :p2"
            values.append(exclude_id)
        return int(self.db.execute(bound(sql, *values)).scalar() or 0) > 0

    def existing_ids(self, company_id: int, user_ids: Iterable[int]) -> Set[int]:
        """Subset of ``user_ids`` that are live users of the company."""
        ids = sorted({int(i) for i in user_ids})
        if not ids:
            return set()
        names = ", ".join(f":p{i + 2}" for i in range(len(ids)))
        sql = f"SELECT id FROM users WHERE company_id = :p1 AND deleted_at IS NULL AND id IN ({names})"
        return {int(r[0]) for r in self.db.execute(bound(sql, company_id, *ids)).all()}
