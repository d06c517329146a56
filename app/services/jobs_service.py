import logging
from datetime import datetime, timezone
from typing import Iterable, List, Optional

from sqlalchemy.orm import Session

from app.core.errors import BadRequestError, NotFoundError
from app.core.query import Op
from app.database import transaction
from app.models.enums import JobStatus
from app.repositories.base import Page, Row
from app.repositories.jobs import JobRepository
from app.repositories.sites import SiteRepository
from app.repositories.users import UserRepository
from app.schemas.job import JobCreate, JobUpdate

logger = logging.getLogger(__name__)


def _check_site(db: Session, company_id: int, site_id: Optional[int]) -> None:
    if site_id is not None and SiteRepository(db).find_by_id(site_id, company_id) is None:
        raise BadRequestError("Site does not exist or does not belong to your company")


def _check_users(db: Session, company_id: int, user_ids: Iterable[int], detail: str) -> List[int]:
    wanted = sorted({int(u) for u in user_ids})
    if set(wanted) - UserRepository(db).existing_ids(company_id, wanted):
        raise BadRequestError(detail)
    return wanted


def _check_dates(start_date, end_date) -> None:
    if start_date is not None and end_date is not None and end_date < start_date:
        raise BadRequestError("End date must be after start date")


def _with_assignments(repo: JobRepository, job: Row) -> Row:
    job["worker_ids"] = repo.worker_ids(job["id"])
    job["manager_ids"] = repo.manager_ids(job["id"])
    return job


def _require_job(repo: JobRepository, company_id: int, job_id: int) -> Row:
    job = repo.find_by_id(job_id, company_id)
    if job is None:
        raise NotFoundError("Job not found")
    return job


def list_jobs(
    db: Session,
    company_id: int,
    *,
    search: Optional[str] = None,
    status: Optional[str] = None,
    site_id: Optional[int] = None,
    priority: Optional[str] = None,
    assigned_to: Optional[int] = None,
    job_type: Optional[str] = None,
    page: Optional[int] = None,
    limit: Optional[int] = None,
) -> Page:
    repo = JobRepository(db)
    filters = [
        repo.search(search),
        repo.filter("status", Op.EQ, status),
        repo.filter("site_id", Op.EQ, site_id),
        repo.filter("priority", Op.EQ, priority),
        repo.filter("assigned_to", Op.EQ, assigned_to),
        repo.filter("job_type", Op.EQ, job_type),
    ]
    return repo.list(company_id, filters, page, limit)


def get_job(db: Session, company_id: int, job_id: int) -> Row:
    repo = JobRepository(db)
    return _with_assignments(repo, _require_job(repo, company_id, job_id))


def create_job(db: Session, company_id: int, user_id: int, payload: JobCreate) -> Row:
    repo = JobRepository(db)
    _check_dates(payload.start_date, payload.end_date)

    with transaction(db):
        _check_site(db, company_id, payload.site_id)
        if payload.assigned_to is not None:
            _check_users(
                db,
                company_id,
                [payload.assigned_to],
                "Assigned user does not exist or does not belong to your company",
            )
        workers = _check_users(
            db, company_id, payload.worker_ids, "One or more workers do not belong to your company"
        )
        managers = _check_users(
            db, company_id, payload.manager_ids, "One or more managers do not belong to your company"
        )

        values = payload.model_dump(exclude={"worker_ids", "manager_ids"})
        values["created_by"] = user_id
        if values["status"] == JobStatus.COMPLETED.value:
            values["completed_date"] = datetime.now(timezone.utc)
        job = repo.create(company_id, values)

        if workers:
            repo.replace_workers(job["id"], workers)
        if managers:
            repo.replace_managers(job["id"], managers)

    logger.info("Job created", extra={"company_id": company_id, "job_id": job["id"]})
    return _with_assignments(repo, job)


def update_job(db: Session, company_id: int, job_id: int, payload: JobUpdate) -> Row:
    repo = JobRepository(db)
    fields = payload.model_dump(exclude_unset=True)
    for required in ("name", "status"):
        if required in fields and fields[required] is None:
            raise BadRequestError(f"{required} cannot be null")

    with transaction(db):
        current = _require_job(repo, company_id, job_id)

        if fields.get("site_id") is not None:
            _check_site(db, company_id, fields["site_id"])
        if fields.get("assigned_to") is not None:
            _check_users(
                db,
                company_id,
                [fields["assigned_to"]],
                "Assigned user does not exist or does not belong to your company",
            )
        _check_dates(
            fields.get("start_date", current["start_date"]),
            fields.get("end_date", current["end_date"]),
        )

        status = fields.get("status")
        if status == JobStatus.COMPLETED.value and current["status"] != JobStatus.COMPLETED.value:
            fields["completed_date"] = datetime.now(timezone.utc)
        elif status is not None and status != JobStatus.COMPLETED.value:
            fields["completed_date"] = None

        job = repo.update(job_id, company_id, fields)
        if job is None:
            raise NotFoundError("Job not found")
    return _with_assignments(repo, job)


def delete_job(db: Session, company_id: int, job_id: int) -> None:
    with transaction(db):
        if not JobRepository(db).soft_delete(job_id, company_id):
            raise NotFoundError("Job not found")
    logger.info("Job deleted", extra={"company_id": company_id, "job_id": job_id})


def _set_status(db: Session, company_id: int, job_id: int, status: JobStatus, expected=None) -> Row:
    repo = JobRepository(db)
    with transaction(db):
        job = _require_job(repo, company_id, job_id)
        if expected is not None and job["status"] != expected.value:
            raise BadRequestError(f"Job is not {expected.value}")
        job = repo.update(job_id, company_id, {"status": status.value})
        if job is None:
            raise NotFoundError("Job not found")
    return _with_assignments(repo, job)


def archive_job(db: Session, company_id: int, job_id: int) -> Row:
    job = get_job(db, company_id, job_id)
    if job["status"] == JobStatus.ARCHIVED.value:
        raise BadRequestError("Job is already archived")
    return _set_status(db, company_id, job_id, JobStatus.ARCHIVED)


def unarchive_job(db: Session, company_id: int, job_id: int) -> Row:
    return _set_status(db, company_id, job_id, JobStatus.DRAFT, expected=JobStatus.ARCHIVED)


def job_statistics(db: Session, company_id: int) -> dict:
    by_status = JobRepository(db).count_by(company_id, "status")
    return {"total": sum(by_status.values()), "by_status": by_status}


def jobs_for_site(db: Session, company_id: int, site_id: int) -> List[Row]:
    if SiteRepository(db).find_by_id(site_id, company_id) is None:
        raise NotFoundError("Site not found")
    repo = JobRepository(db)
    return repo.find_all(company_id, [repo.filter("site_id", Op.EQ, site_id)])


def assign_workers(db: Session, company_id: int, job_id: int, user_ids: Iterable[int]) -> Row:
    repo = JobRepository(db)
    with transaction(db):
        _require_job(repo, company_id, job_id)
        workers = _check_users(
            db, company_id, user_ids, "One or more workers do not belong to your company"
        )
        repo.replace_workers(job_id, workers)
    return get_job(db, company_id, job_id)


def assign_managers(db: Session, company_id: int, job_id: int, user_ids: Iterable[int]) -> Row:
    repo = JobRepository(db)
    with transaction(db):
        _require_job(repo, company_id, job_id)
        managers = _check_users(
            db, company_id, user_ids, "One or more managers do not belong to your company"
        )
        repo.replace_managers(job_id, managers)
    return get_job(db, company_id, job_id)
