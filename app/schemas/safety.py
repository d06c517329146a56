from datetime import datetime
from typing import Dict, Optional

from pydantic import BaseModel, ConfigDict, Field

from app.models.enums import SafetyStatus, SeverityLevel
from app.schemas.common import RequestModel


class IncidentCreate(RequestModel):
    job_id: Optional[int] = None
    site_id: Optional[int] = None
    incident_date: datetime
    description: str = Field(min_length=1)
    severity: SeverityLevel = SeverityLevel.MINOR
    status: SafetyStatus = SafetyStatus.OPEN


class IncidentUpdate(RequestModel):
    job_id: Optional[int] = None
    site_id: Optional[int] = None
    incident_date: Optional[datetime] = None
    description: Optional[str] = Field(default=None, min_length=1)
    severity: Optional[SeverityLevel] = None
    status: Optional[SafetyStatus] = None


class IncidentResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    job_id: Optional[int] = None
    site_id: Optional[int] = None
    reported_by: Optional[int] = None
    incident_date: datetime
    description: str
    severity: str
    status: str
    created_at: datetime
    updated_at: datetime


class IncidentStatistics(BaseModel):
    total: int
    by_status: Dict[str, int]
    by_severity: Dict[str, int]
