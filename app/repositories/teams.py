from typing import Dict, Iterable, List, Optional

from sqlalchemy import DateTime

from app.core.query import bound
from app.models.team import Team, TeamMember
from app.repositories.base import Row, TenantRepository

_MEMBER_COLUMNS = (
    "tm.id, tm.team_id, tm.user_id, tm.role, tm.created_at, "
    "u.email AS user_email, u.first_name AS user_first_name, "
    "u.last_name AS user_last_name, u.role AS user_role"
)


class TeamRepository(TenantRepository):
    model = Team
    alias = "te"
    search_columns = ("name", "description")
    updatable = ("name", "description")

    def member_counts(self, team_ids: Iterable[int]) -> Dict[int, int]:
        ids = sorted({int(i) for i in team_ids})
        if not ids:
            return {}
        names = ", ".join(f":p{i + 1}" for i in range(len(ids)))
        sql = (
            "SELECT team_id, COUNT(*) FROM team_members "
            f"WHERE team_id IN ({names}) AND deleted_at IS NULL GROUP BY team_id"
        )
        return {int(team_id): int(n) for team_id, n in self.db.execute(bound(sql, *ids)).all()}


class TeamMemberRepository:
    """Membership rows; callers check the team's tenant first."""

    def __init__(self, db) -> None:
        self.db = db

    def list_members(self, team_id: int) -> List[Row]:
        sql = (
            f"SELECT {_MEMBER_COLUMNS} FROM team_members tm "
            "JOIN users u ON u.id = tm.user_id "
            "WHERE tm.team_id = :p1 AND tm.deleted_at IS NULL AND u.deleted_at IS NULL "
            "ORDER BY tm.created_at ASC, tm.id ASC"
        )
        stmt = bound(sql, team_id).columns(created_at=DateTime)
        return [dict(r) for r in self.db.execute(stmt).mappings().all()]

    def _find(self, team_id: int, user_id: int) -> Optional[TeamMember]:
        return (
            self.db.query(TeamMember)
            .filter(TeamMember.team_id == team_id, TeamMember.user_id == user_id)
            .populate_existing()
            .first()
        )

    def is_member(self, team_id: int, user_id: int) -> bool:
        row = self._find(team_id, user_id)
        return row is not None and row.deleted_at is None

    def add_member(self, team_id: int, user_id: int, role: str) -> None:
        """Insert, or revive a previously removed membership with the new role."""
        row = self._find(team_id, user_id)
        if row is None:
            self.db.add(TeamMember(team_id=team_id, user_id=user_id, role=role))
        else:
            row.deleted_at = None
            row.role = role
        self.db.flush()

    def update_role(self, team_id: int, user_id: int, role: str) -> bool:
        sql = (
            "UPDATE team_members SET role = :p1, updated_at = CURRENT_TIMESTAMP "
            "WHERE team_id = :p2 AND user_id = :p3 AND deleted_at IS NULL"
        )
        return self.db.execute(bound(sql, role, team_id, user_id)).rowcount == 1

    def remove_member(self, team_id: int, user_id: int) -> bool:
        sql = (
            "UPDATE team_members SET deleted_at = CURRENT_TIMESTAMP "
            "WHERE team_id = :p1 AND user_id = :p2 AND deleted_at IS NULL"
        )
        return self.db.execute(bound(sql, team_id, user_id)).rowcount == 1

    def remove_all(self, team_id: int) -> int:
        sql = (
            "UPDATE team_members SET deleted_at = CURRENT_TIMESTAMP "
            "WHERE team_id = :p1 AND deleted_at IS NULL"
        )
        return self.db.execute(bound(sql, team_id)).rowcount
