from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from app.models.enums import TeamMemberRole
from app.schemas.common import RequestModel


class TeamCreate(RequestModel):
    name: str = Field(min_length=1, max_length=255)
    description: Optional[str] = None
    member_ids: List[int] = Field(default_factory=list)


class TeamUpdate(RequestModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=255)
    description: Optional[str] = None


class TeamMembersAdd(RequestModel):
    user_ids: List[int] = Field(min_length=1)
    role: TeamMemberRole = TeamMemberRole.MEMBER


class TeamMemberUpdate(RequestModel):
    role: TeamMemberRole


class TeamMemberResponse(BaseModel):
    id: int
    team_id: int
    user_id: int
    role: str
    created_at: datetime
    user_email: str
    user_first_name: Optional[str] = None
    user_last_name: Optional[str] = None
    user_role: str


class TeamResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    company_id: int
    name: str
    description: Optional[str] = None
    member_count: int = 0
    created_at: datetime
    updated_at: datetime


class TeamDetailResponse(TeamResponse):
    members: List[TeamMemberResponse] = Field(default_factory=list)
