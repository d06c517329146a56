from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

from app.schemas.common import RequestModel
from app.schemas.user import UserResponse


class DashboardMetrics(BaseModel):
    active_sites: int
    jobs_today: int
    active_workers: int
    open_safety_incidents: int
    generated_at: datetime


class ActivityItem(BaseModel):
    type: str
    reference_id: int
    description: str
    timestamp: datetime


class WorkerProfile(UserResponse):
    company_name: Optional[str] = None


class WorkerProfileUpdate(RequestModel):
    first_name: Optional[str] = Field(default=None, max_length=100)
    last_name: Optional[str] = Field(default=None, max_length=100)
    phone: Optional[str] = Field(default=None, max_length=50)


class WorkerStatistics(BaseModel):
    total_jobs_assigned: int
    completed_jobs: int
    active_jobs: int
    safety_incidents_reported: int
    tasks_completed: int
