from typing import List, Optional

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.core.authorization import require_manager
from app.database import get_db
from app.deps.auth import CurrentUser
from app.models.enums import JobStatus, SafetyStatus, SeverityLevel, SiteStatus, UserRole
from app.schemas.common import ApiResponse, MobilePageData, enum_value, ok
from app.schemas.job import JobResponse
from app.schemas.mobile import ActivityItem, DashboardMetrics
from app.schemas.safety import IncidentResponse
from app.schemas.site import SiteResponse
from app.schemas.task import TaskResponse
from app.schemas.user import UserResponse
from app.services import jobs_service, mobile_service, safety_service, sites_service, tasks_service, users_service

router = APIRouter(prefix="/mobile", tags=["Mobile"])


@router.get("/dashboard/metrics", response_model=ApiResponse[DashboardMetrics])
def dashboard_metrics(user: CurrentUser = Depends(require_manager), db: Session = Depends(get_db)):
    return ok(mobile_service.dashboard_metrics(db, user.company_id))


@router.get("/dashboard/activity", response_model=ApiResponse[List[ActivityItem]])
def dashboard_activity(
    limit: int = 20,
    user: CurrentUser = Depends(require_manager),
    db: Session = Depends(get_db),
):
    return ok(mobile_service.dashboard_activity(db, user.company_id, limit))


@router.get("/jobs", response_model=ApiResponse[MobilePageData[JobResponse]])
def list_jobs(
    search: Optional[str] = None,
    status: Optional[JobStatus] = None,
    site_id: Optional[int] = None,
    page: Optional[int] = None,
    limit: Optional[int] = None,
    user: CurrentUser = Depends(require_manager),
    db: Session = Depends(get_db),
):
    result = jobs_service.list_jobs(
        db,
        user.company_id,
        search=search,
        status=enum_value(status),
        site_id=site_id,
        page=page,
        limit=limit,
    )
    return ok(mobile_service.page_payload(result))


@router.get("/jobs/{job_id}", response_model=ApiResponse[JobResponse])
def get_job(job_id: int, user: CurrentUser = Depends(require_manager), db: Session = Depends(get_db)):
    return ok(jobs_service.get_job(db, user.company_id, job_id))


@router.get("/jobs/{job_id}/tasks", response_model=ApiResponse[MobilePageData[TaskResponse]])
def job_tasks(
    job_id: int,
    page: Optional[int] = None,
    limit: Optional[int] = None,
    user: CurrentUser = Depends(require_manager),
    db: Session = Depends(get_db),
):
    jobs_service.get_job(db, user.company_id, job_id)
    result = tasks_service.list_tasks(db, user.company_id, job_id=job_id, page=page, limit=limit)
    return ok(mobile_service.page_payload(result))


@router.get("/sites", response_model=ApiResponse[MobilePageData[SiteResponse]])
def list_sites(
    search: Optional[str] = None,
    status: Optional[SiteStatus] = None,
    page: Optional[int] = None,
    limit: Optional[int] = None,
    user: CurrentUser = Depends(require_manager),
    db: Session = Depends(get_db),
):
    result = sites_service.list_sites(
        db, user.company_id, search=search, status=enum_value(status), page=page, limit=limit
    )
    return ok(mobile_service.page_payload(result))


@router.get("/sites/{site_id}", response_model=ApiResponse[SiteResponse])
def get_site(site_id: int, user: CurrentUser = Depends(require_manager), db: Session = Depends(get_db)):
    return ok(sites_service.get_site(db, user.company_id, site_id))


@router.get("/safety", response_model=ApiResponse[MobilePageData[IncidentResponse]])
def list_incidents(
    status: Optional[SafetyStatus] = None,
    severity: Optional[SeverityLevel] = None,
    job_id: Optional[int] = None,
    site_id: Optional[int] = None,
    page: Optional[int] = None,
    limit: Optional[int] = None,
    user: CurrentUser = Depends(require_manager),
    db: Session = Depends(get_db),
):
    result = safety_service.list_incidents(
        db,
        user.company_id,
        status=enum_value(status),
        severity=enum_value(severity),
        job_id=job_id,
        site_id=site_id,
        page=page,
        limit=limit,
    )
    return ok(mobile_service.page_payload(result))


@router.get("/workers", response_model=ApiResponse[MobilePageData[UserResponse]])
def list_workers(
    search: Optional[str] = None,
    role: Optional[UserRole] = None,
    page: Optional[int] = None,
    limit: Optional[int] = None,
    user: CurrentUser = Depends(require_manager),
    db: Session = Depends(get_db),
):
    result = users_service.list_users(
        db,
        user.company_id,
        search=search,
        role=enum_value(role),
        is_active=True,
        page=page,
        limit=limit,
    )
    return ok(mobile_service.page_payload(result))
