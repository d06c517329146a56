from typing import List, Optional

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.core.authorization import require_manager
from app.database import get_db
from app.deps.auth import CurrentUser, require_auth
from app.schemas.common import ApiResponse, PageData, ok, paged
from app.schemas.team import (
    TeamCreate,
    TeamDetailResponse,
    TeamMemberResponse,
    TeamMembersAdd,
    TeamMemberUpdate,
    TeamResponse,
    TeamUpdate,
)
from app.services import teams_service

router = APIRouter(prefix="/teams", tags=["Teams"])


@router.get("", response_model=ApiResponse[PageData[TeamResponse]])
def list_teams(
    search: Optional[str] = None,
    page: Optional[int] = None,
    limit: Optional[int] = None,
    user: CurrentUser = Depends(require_auth),
    db: Session = Depends(get_db),
):
    return ok(paged(teams_service.list_teams(db, user.company_id, search=search, page=page, limit=limit)))


@router.post("", response_model=ApiResponse[TeamDetailResponse], status_code=201)
def create_team(
    payload: TeamCreate,
    user: CurrentUser = Depends(require_manager),
    db: Session = Depends(get_db),
):
    return ok(teams_service.create_team(db, user.company_id, payload), "Team created successfully")


@router.get("/{team_id}", response_model=ApiResponse[TeamDetailResponse])
def get_team(team_id: int, user: CurrentUser = Depends(require_auth), db: Session = Depends(get_db)):
    return ok(teams_service.get_team(db, user.company_id, team_id))


@router.put("/{team_id}", response_model=ApiResponse[TeamDetailResponse])
def update_team(
    team_id: int,
    payload: TeamUpdate,
    user: CurrentUser = Depends(require_manager),
    db: Session = Depends(get_db),
):
    return ok(teams_service.update_team(db, user.company_id, team_id, payload), "Team updated successfully")


@router.delete("/{team_id}", response_model=ApiResponse[None])
def delete_team(team_id: int, user: CurrentUser = Depends(require_manager), db: Session = Depends(get_db)):
    teams_service.delete_team(db, user.company_id, team_id)
    return ok(message="Team deleted successfully")


@router.get("/{team_id}/members", response_model=ApiResponse[List[TeamMemberResponse]])
def list_members(team_id: int, user: CurrentUser = Depends(require_auth), db: Session = Depends(get_db)):
    return ok(teams_service.list_members(db, user.company_id, team_id))


@router.post("/{team_id}/members", response_model=ApiResponse[List[TeamMemberResponse]], status_code=201)
def add_members(
    team_id: int,
    payload: TeamMembersAdd,
    user: CurrentUser = Depends(require_manager),
    db: Session = Depends(get_db),
):
    members = teams_service.add_members(db, user.company_id, team_id, payload.user_ids, payload.role)
    return ok(members, "Members added successfully")


@router.put("/{team_id}/members/{user_id}", response_model=ApiResponse[List[TeamMemberResponse]])
def update_member_role(
    team_id: int,
    user_id: int,
    payload: TeamMemberUpdate,
    user: CurrentUser = Depends(require_manager),
    db: Session = Depends(get_db),
):
    members = teams_service.update_member_role(db, user.company_id, team_id, user_id, payload.role)
    return ok(members, "Member role updated")


@router.delete("/{team_id}/members/{user_id}", response_model=ApiResponse[None])
def remove_member(
    team_id: int,
    user_id: int,
    user: CurrentUser = Depends(require_manager),
    db: Session = Depends(get_db),
):
    teams_service.remove_member(db, user.company_id, team_id, user_id)
    return ok(message="Member removed successfully")
