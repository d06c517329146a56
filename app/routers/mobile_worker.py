from datetime import date, datetime
from typing import List, Optional

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.core.authorization import require_worker
from app.database import get_db
from app.deps.auth import CurrentUser
from app.models.enums import JobStatus, SafetyStatus, SeverityLevel
from app.schemas.common import ApiResponse, MobilePageData, enum_value, ok
from app.schemas.job import JobResponse
from app.schemas.mobile import WorkerProfile, WorkerProfileUpdate, WorkerStatistics
from app.schemas.safety import IncidentCreate, IncidentResponse, IncidentStatistics
from app.schemas.task import TaskResponse, TaskStatusUpdate
from app.services import mobile_service, safety_service

router = APIRouter(prefix="/mobile/worker", tags=["Mobile Worker"])


@router.get("/jobs", response_model=ApiResponse[MobilePageData[JobResponse]])
def list_my_jobs(
    status: Optional[JobStatus] = None,
    site_id: Optional[int] = None,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    page: Optional[int] = None,
    limit: Optional[int] = None,
    user: CurrentUser = Depends(require_worker),
    db: Session = Depends(get_db),
):
    result = mobile_service.list_worker_jobs(
        db,
        user.company_id,
        user.user_id,
        status=enum_value(status),
        site_id=site_id,
        start_date=start_date,
        end_date=end_date,
        page=page,
        limit=limit,
    )
    return ok(mobile_service.page_payload(result))


@router.get("/jobs/{job_id}", response_model=ApiResponse[JobResponse])
def get_my_job(job_id: int, user: CurrentUser = Depends(require_worker), db: Session = Depends(get_db)):
    return ok(mobile_service.get_worker_job(db, user.company_id, user.user_id, job_id))


@router.get("/jobs/{job_id}/tasks", response_model=ApiResponse[List[TaskResponse]])
def my_job_tasks(job_id: int, user: CurrentUser = Depends(require_worker), db: Session = Depends(get_db)):
    return ok(mobile_service.worker_job_tasks(db, user.company_id, user.user_id, job_id))


@router.put("/jobs/{job_id}/tasks/{task_id}/status", response_model=ApiResponse[TaskResponse])
def update_my_task_status(
    job_id: int,
    task_id: int,
    payload: TaskStatusUpdate,
    user: CurrentUser = Depends(require_worker),
    db: Session = Depends(get_db),
):
    task = mobile_service.update_worker_task_status(
        db, user.company_id, user.user_id, job_id, task_id, payload.status, payload.notes
    )
    return ok(task, "Task status updated successfully")


@router.get("/safety", response_model=ApiResponse[MobilePageData[IncidentResponse]])
def list_my_incidents(
    severity: Optional[SeverityLevel] = None,
    status: Optional[SafetyStatus] = None,
    job_id: Optional[int] = None,
    start_date: Optional[datetime] = None,
    end_date: Optional[datetime] = None,
    page: Optional[int] = None,
    limit: Optional[int] = None,
    user: CurrentUser = Depends(require_worker),
    db: Session = Depends(get_db),
):
    result = mobile_service.list_worker_incidents(
        db,
        user.company_id,
        user.user_id,
        severity=enum_value(severity),
        status=enum_value(status),
        job_id=job_id,
        start_date=start_date,
        end_date=end_date,
        page=page,
        limit=limit,
    )
    return ok(mobile_service.page_payload(result))


@router.post("/safety", response_model=ApiResponse[IncidentResponse], status_code=201)
def report_incident(
    payload: IncidentCreate,
    user: CurrentUser = Depends(require_worker),
    db: Session = Depends(get_db),
):
    incident = safety_service.create_incident(db, user.company_id, user.user_id, payload)
    return ok(incident, "Safety incident reported successfully")


@router.get("/safety/statistics", response_model=ApiResponse[IncidentStatistics])
def my_incident_statistics(user: CurrentUser = Depends(require_worker), db: Session = Depends(get_db)):
    return ok(mobile_service.worker_incident_statistics(db, user.company_id, user.user_id))


@router.get("/safety/{incident_id}", response_model=ApiResponse[IncidentResponse])
def get_my_incident(
    incident_id: int,
    user: CurrentUser = Depends(require_worker),
    db: Session = Depends(get_db),
):
    return ok(mobile_service.get_worker_incident(db, user.company_id, user.user_id, incident_id))


@router.get("/schedule", response_model=ApiResponse[List[JobResponse]])
def my_schedule(
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    user: CurrentUser = Depends(require_worker),
    db: Session = Depends(get_db),
):
    return ok(mobile_service.worker_schedule(db, user.company_id, user.user_id, start_date, end_date))


@router.get("/schedule/today", response_model=ApiResponse[List[JobResponse]])
def my_jobs_today(user: CurrentUser = Depends(require_worker), db: Session = Depends(get_db)):
    return ok(mobile_service.todays_jobs(db, user.company_id, user.user_id))


@router.get("/schedule/week", response_model=ApiResponse[List[JobResponse]])
def my_jobs_this_week(user: CurrentUser = Depends(require_worker), db: Session = Depends(get_db)):
    return ok(mobile_service.weeks_jobs(db, user.company_id, user.user_id))


@router.get("/profile", response_model=ApiResponse[WorkerProfile])
def my_profile(user: CurrentUser = Depends(require_worker), db: Session = Depends(get_db)):
    return ok(mobile_service.worker_profile(db, user.company_id, user.user_id))


@router.put("/profile", response_model=ApiResponse[WorkerProfile])
def update_my_profile(
    payload: WorkerProfileUpdate,
    user: CurrentUser = Depends(require_worker),
    db: Session = Depends(get_db),
):
    fields = payload.model_dump(exclude_unset=True)
    profile = mobile_service.update_worker_profile(db, user.company_id, user.user_id, fields)
    return ok(profile, "Profile updated successfully")


@router.get("/statistics", response_model=ApiResponse[WorkerStatistics])
def my_statistics(user: CurrentUser = Depends(require_worker), db: Session = Depends(get_db)):
    return ok(mobile_service.worker_statistics(db, user.company_id, user.user_id))
