import logging
from typing import Iterable, List, Optional

from sqlalchemy.orm import Session

from app.core.errors import BadRequestError, NotFoundError
from app.database import transaction
from app.models.enums import TeamMemberRole
from app.repositories.base import Page, Row
from app.repositories.teams import TeamMemberRepository, TeamRepository
from app.repositories.users import UserRepository
from app.schemas.team import TeamCreate, TeamUpdate

logger = logging.getLogger(__name__)


def _require_team(repo: TeamRepository, team_id: int, company_id: int) -> Row:
    team = repo.find_by_id(team_id, company_id)
    if team is None:
        raise NotFoundError("Team not found")
    return team


def _verify_users(db: Session, company_id: int, user_ids: Iterable[int]) -> List[int]:
    wanted = sorted({int(u) for u in user_ids})
    found = UserRepository(db).existing_ids(company_id, wanted)
    missing = [u for u in wanted if u not in found]
    if missing:
        raise BadRequestError(
            "One or more users do not exist or do not belong to your company"
        )
    return wanted


def _with_detail(db: Session, team: Row) -> Row:
    members = TeamMemberRepository(db).list_members(team["id"])
    team["members"] = members
    team["member_count"] = len(members)
    return team


def list_teams(
    db: Session,
    company_id: int,
    *,
    search: Optional[str] = None,
    page: Optional[int] = None,
    limit: Optional[int] = None,
) -> Page:
    repo = TeamRepository(db)
    result = repo.list(company_id, [repo.search(search)], page, limit)
    counts = repo.member_counts(t["id"] for t in result.items)
    for team in result.items:
        team["member_count"] = counts.get(team["id"], 0)
    return result


def get_team(db: Session, company_id: int, team_id: int) -> Row:
    team = _require_team(TeamRepository(db), team_id, company_id)
    return _with_detail(db, team)


def create_team(db: Session, company_id: int, payload: TeamCreate) -> Row:
    repo = TeamRepository(db)
    members = TeamMemberRepository(db)

    with transaction(db):
        user_ids = _verify_users(db, company_id, payload.member_ids)
        team = repo.create(
            company_id,
            {"name": payload.name, "description": payload.description},
        )
        for user_id in user_ids:
            members.add_member(team["id"], user_id, TeamMemberRole.MEMBER.value)

    logger.info("Team created", extra={"company_id": company_id, "team_id": team["id"]})
    return _with_detail(db, team)


def update_team(db: Session, company_id: int, team_id: int, payload: TeamUpdate) -> Row:
    repo = TeamRepository(db)
    fields = payload.model_dump(exclude_unset=True)
    if "name" in fields and fields["name"] is None:
        raise BadRequestError("name cannot be null")

    with transaction(db):
        team = repo.update(team_id, company_id, fields)
        if team is None:
            raise NotFoundError("Team not found")
    return _with_detail(db, team)


def delete_team(db: Session, company_id: int, team_id: int) -> None:
    repo = TeamRepository(db)

    with transaction(db):
        if not repo.soft_delete(team_id, company_id):
            raise NotFoundError("Team not found")
        TeamMemberRepository(db).remove_all(team_id)


def list_members(db: Session, company_id: int, team_id: int) -> List[Row]:
    _require_team(TeamRepository(db), team_id, company_id)
    return TeamMemberRepository(db).list_members(team_id)


def add_members(
    db: Session,
    company_id: int,
    team_id: int,
    user_ids: Iterable[int],
    role: str = TeamMemberRole.MEMBER.value,
) -> List[Row]:
    members = TeamMemberRepository(db)

    with transaction(db):
        _require_team(TeamRepository(db), team_id, company_id)
        for user_id in _verify_users(db, company_id, user_ids):
            members.add_member(team_id, user_id, role)

    return members.list_members(team_id)


def update_member_role(db: Session, company_id: int, team_id: int, user_id: int, role: str) -> List[Row]:
    members = TeamMemberRepository(db)

    with transaction(db):
        _require_team(TeamRepository(db), team_id, company_id)
        if not members.update_role(team_id, user_id, role):
            raise NotFoundError("Team member not found")

    return members.list_members(team_id)


def remove_member(db: Session, company_id: int, team_id: int, user_id: int) -> None:
    members = TeamMemberRepository(db)

    with transaction(db):
        _require_team(TeamRepository(db), team_id, company_id)
        if not members.remove_member(team_id, user_id):
            raise NotFoundError("Team member not found")
