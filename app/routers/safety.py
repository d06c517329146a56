from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.core.authorization import require_manager
from app.database import get_db
from app.deps.auth import CurrentUser, require_auth
from app.models.enums import SafetyStatus, SeverityLevel
from app.schemas.common import ApiResponse, PageData, enum_value, ok, paged
from app.schemas.safety import IncidentCreate, IncidentResponse, IncidentStatistics, IncidentUpdate
from app.services import safety_service

router = APIRouter(prefix="/safety", tags=["Safety"])


@router.get("", response_model=ApiResponse[PageData[IncidentResponse]])
def list_incidents(
    search: Optional[str] = None,
    status: Optional[SafetyStatus] = None,
    severity: Optional[SeverityLevel] = None,
    job_id: Optional[int] = None,
    site_id: Optional[int] = None,
    reported_by: Optional[int] = None,
    start_date: Optional[datetime] = None,
    end_date: Optional[datetime] = None,
    page: Optional[int] = None,
    limit: Optional[int] = None,
    user: CurrentUser = Depends(require_auth),
    db: Session = Depends(get_db),
):
    result = safety_service.list_incidents(
        db,
        user.company_id,
        search=search,
        status=enum_value(status),
        severity=enum_value(severity),
        job_id=job_id,
        site_id=site_id,
        reported_by=reported_by,
        start_date=start_date,
        end_date=end_date,
        page=page,
        limit=limit,
    )
    return ok(paged(result))


@router.get("/statistics", response_model=ApiResponse[IncidentStatistics])
def incident_statistics(user: CurrentUser = Depends(require_auth), db: Session = Depends(get_db)):
    return ok(safety_service.incident_statistics(db, user.company_id))


@router.post("", response_model=ApiResponse[IncidentResponse], status_code=201)
def create_incident(
    payload: IncidentCreate,
    user: CurrentUser = Depends(require_auth),
    db: Session = Depends(get_db),
):
    incident = safety_service.create_incident(db, user.company_id, user.user_id, payload)
    return ok(incident, "Safety incident reported successfully")


@router.get("/{incident_id}", response_model=ApiResponse[IncidentResponse])
def get_incident(incident_id: int, user: CurrentUser = Depends(require_auth), db: Session = Depends(get_db)):
    return ok(safety_service.get_incident(db, user.company_id, incident_id))


@router.put("/{incident_id}", response_model=ApiResponse[IncidentResponse])
def update_incident(
    incident_id: int,
    payload: IncidentUpdate,
    user: CurrentUser = Depends(require_manager),
    db: Session = Depends(get_db),
):
    incident = safety_service.update_incident(db, user.company_id, incident_id, payload)
    return ok(incident, "Safety incident updated successfully")


@router.delete("/{incident_id}", response_model=ApiResponse[None])
def delete_incident(
    incident_id: int,
    user: CurrentUser = Depends(require_manager),
    db: Session = Depends(get_db),
):
    safety_service.delete_incident(db, user.company_id, incident_id)
    return ok(message="Safety incident deleted successfully")
