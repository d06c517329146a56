from datetime import date, datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from app.models.enums import JobStatus, PriorityLevel
from app.schemas.common import RequestModel


class JobCreate(RequestModel):
    name: str = Field(min_length=1, max_length=255)
    site_id: Optional[int] = None
    job_number: Optional[str] = Field(default=None, max_length=100)
    description: Optional[str] = None
    job_type: Optional[str] = Field(default=None, max_length=100)
    status: JobStatus = JobStatus.DRAFT
    priority: Optional[PriorityLevel] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    assigned_to: Optional[int] = None
    worker_ids: List[int] = Field(default_factory=list)
    manager_ids: List[int] = Field(default_factory=list)


class JobUpdate(RequestModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=255)
    site_id: Optional[int] = None
    job_number: Optional[str] = Field(default=None, max_length=100)
    description: Optional[str] = None
    job_type: Optional[str] = Field(default=None, max_length=100)
    status: Optional[JobStatus] = None
    priority: Optional[PriorityLevel] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    assigned_to: Optional[int] = None


class AssignmentRequest(RequestModel):
    user_ids: List[int]


class JobResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    company_id: int
    site_id: Optional[int] = None
    job_number: Optional[str] = None
    name: str
    description: Optional[str] = None
    job_type: Optional[str] = None
    status: str
    priority: Optional[str] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    completed_date: Optional[datetime] = None
    assigned_to: Optional[int] = None
    created_by: Optional[int] = None
    created_at: datetime
    updated_at: datetime
    worker_ids: List[int] = Field(default_factory=list)
    manager_ids: List[int] = Field(default_factory=list)
