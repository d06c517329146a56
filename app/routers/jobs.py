from typing import List, Optional

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.core.authorization import require_manager
from app.database import get_db
from app.deps.auth import CurrentUser, require_auth
from app.models.enums import JobStatus, PriorityLevel
from app.schemas.common import ApiResponse, PageData, enum_value, ok, paged
from app.schemas.job import AssignmentRequest, JobCreate, JobResponse, JobUpdate
from app.schemas.site import StatusStatistics
from app.services import jobs_service

router = APIRouter(prefix="/jobs", tags=["Jobs"])


@router.get("", response_model=ApiResponse[PageData[JobResponse]])
def list_jobs(
    search: Optional[str] = None,
    status: Optional[JobStatus] = None,
    site_id: Optional[int] = None,
    priority: Optional[PriorityLevel] = None,
    assigned_to: Optional[int] = None,
    job_type: Optional[str] = None,
    page: Optional[int] = None,
    limit: Optional[int] = None,
    user: CurrentUser = Depends(require_auth),
    db: Session = Depends(get_db),
):
    result = jobs_service.list_jobs(
        db,
        user.company_id,
        search=search,
        status=enum_value(status),
        site_id=site_id,
        priority=enum_value(priority),
        assigned_to=assigned_to,
        job_type=job_type,
        page=page,
        limit=limit,
    )
    return ok(paged(result))


@router.get("/statistics", response_model=ApiResponse[StatusStatistics])
def job_statistics(user: CurrentUser = Depends(require_auth), db: Session = Depends(get_db)):
    return ok(jobs_service.job_statistics(db, user.company_id))


@router.get("/site/{site_id}", response_model=ApiResponse[List[JobResponse]])
def jobs_for_site(
    site_id: int,
    user: CurrentUser = Depends(require_auth),
    db: Session = Depends(get_db),
):
    return ok(jobs_service.jobs_for_site(db, user.company_id, site_id))


@router.post("", response_model=ApiResponse[JobResponse], status_code=201)
def create_job(
    payload: JobCreate,
    user: CurrentUser = Depends(require_manager),
    db: Session = Depends(get_db),
):
    return ok(jobs_service.create_job(db, user.company_id, user.user_id, payload), "Job created successfully")


@router.get("/{job_id}", response_model=ApiResponse[JobResponse])
def get_job(job_id: int, user: CurrentUser = Depends(require_auth), db: Session = Depends(get_db)):
    return ok(jobs_service.get_job(db, user.company_id, job_id))


@router.put("/{job_id}", response_model=ApiResponse[JobResponse])
def update_job(
    job_id: int,
    payload: JobUpdate,
    user: CurrentUser = Depends(require_manager),
    db: Session = Depends(get_db),
):
    return ok(jobs_service.update_job(db, user.company_id, job_id, payload), "Job updated successfully")


@router.delete("/{job_id}", response_model=ApiResponse[None])
def delete_job(job_id: int, user: CurrentUser = Depends(require_manager), db: Session = Depends(get_db)):
    jobs_service.delete_job(db, user.company_id, job_id)
    return ok(message="Job deleted successfully")


@router.post("/{job_id}/archive", response_model=ApiResponse[JobResponse])
def archive_job(job_id: int, user: CurrentUser = Depends(require_manager), db: Session = Depends(get_db)):
    return ok(jobs_service.archive_job(db, user.company_id, job_id), "Job archived successfully")


@router.post("/{job_id}/unarchive", response_model=ApiResponse[JobResponse])
def unarchive_job(job_id: int, user: CurrentUser = Depends(require_manager), db: Session = Depends(get_db)):
    return ok(jobs_service.unarchive_job(db, user.company_id, job_id), "Job unarchived successfully")


@router.put("/{job_id}/workers", response_model=ApiResponse[JobResponse])
def assign_workers(
    job_id: int,
    payload: AssignmentRequest,
    user: CurrentUser = Depends(require_manager),
    db: Session = Depends(get_db),
):
    return ok(jobs_service.assign_workers(db, user.company_id, job_id, payload.user_ids), "Workers assigned")


@router.put("/{job_id}/managers", response_model=ApiResponse[JobResponse])
def assign_managers(
    job_id: int,
    payload: AssignmentRequest,
    user: CurrentUser = Depends(require_manager),
    db: Session = Depends(get_db),
):
    return ok(jobs_service.assign_managers(db, user.company_id, job_id, payload.user_ids), "Managers assigned")
