from datetime import date, datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from app.models.enums import PriorityLevel, TaskStatus
from app.schemas.common import RequestModel


class TaskCreate(RequestModel):
    job_id: int
    title: str = Field(min_length=1, max_length=255)
    description: Optional[str] = None
    job_unit_id: Optional[int] = None
    assigned_to: Optional[int] = None
    status: TaskStatus = TaskStatus.PENDING
    priority: PriorityLevel = PriorityLevel.MEDIUM
    due_date: Optional[date] = None


class TaskUpdate(RequestModel):
    job_id: Optional[int] = None
    title: Optional[str] = Field(default=None, min_length=1, max_length=255)
    description: Optional[str] = None
    job_unit_id: Optional[int] = None
    assigned_to: Optional[int] = None
    status: Optional[TaskStatus] = None
    priority: Optional[PriorityLevel] = None
    due_date: Optional[date] = None
    status_notes: Optional[str] = None


class TaskStatusUpdate(RequestModel):
    status: TaskStatus
    notes: Optional[str] = None


class TaskResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    job_id: int
    job_unit_id: Optional[int] = None
    assigned_to: Optional[int] = None
    title: str
    description: Optional[str] = None
    status: str
    priority: str
    due_date: Optional[date] = None
    created_by: Optional[int] = None
    created_at: datetime
    updated_at: datetime


class TaskHistoryResponse(BaseModel):
    id: int
    task_id: int
    old_status: Optional[str] = None
    new_status: str
    changed_by: int
    notes: Optional[str] = None
    changed_at: datetime
