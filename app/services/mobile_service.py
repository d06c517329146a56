"""Read models for the mobile screens.

Manager screens mostly reuse the regular services; the worker screens are
scoped to the jobs a worker is assigned to and the incidents they reported.
"""
from __future__ import annotations

import logging
from datetime import date, datetime, timedelta, timezone
from typing import List, Optional

from sqlalchemy.orm import Session

from app.core.errors import BadRequestError, ForbiddenError, NotFoundError
from app.core.query import Op
from app.database import transaction
from app.models.enums import JobStatus, SafetyStatus, SiteStatus, TaskStatus, UserRole
from app.repositories.base import Page, Row
from app.repositories.companies import CompanyRepository
from app.repositories.jobs import AssignedJobRepository, JobRepository
from app.repositories.safety import SafetyIncidentRepository
from app.repositories.sites import SiteRepository
from app.repositories.tasks import TaskRepository
from app.repositories.users import UserRepository
from app.services import safety_service, tasks_service

logger = logging.getLogger(__name__)

FIELD_ROLES = (UserRole.WORKER.value, UserRole.FOREMAN.value, UserRole.SITE_SUPERVISOR.value)
OPEN_INCIDENT_STATUSES = (SafetyStatus.OPEN.value, SafetyStatus.INVESTIGATING.value)


def page_payload(page: Page) -> dict:
    return {
        "items": page.items,
        "total": page.total,
        "page": page.page,
        "limit": page.limit,
        "has_more": (page.page - 1) * page.limit + len(page.items) < page.total,
    }


def dashboard_metrics(db: Session, company_id: int, today: Optional[date] = None) -> dict:
    today = today or datetime.now(timezone.utc).date()
    sites = SiteRepository(db)
    jobs = JobRepository(db)

    roles = UserRepository(db).count_by(
        company_id, "role", [UserRepository(db).filter("is_active", Op.EQ, True)]
    )
    incidents = SafetyIncidentRepository(db).count_by(company_id, "status")

    return {
        "active_sites": sites.count(company_id, [sites.filter("status", Op.EQ, SiteStatus.ACTIVE.value)]),
        "jobs_today": jobs.count(company_id, [jobs.filter("start_date", Op.EQ, today)]),
        "active_workers": sum(roles.get(r, 0) for r in FIELD_ROLES),
        "open_safety_incidents": sum(incidents.get(s, 0) for s in OPEN_INCIDENT_STATUSES),
        "generated_at": datetime.now(timezone.utc),
    }


def dashboard_activity(db: Session, company_id: int, limit: int = 20) -> List[dict]:
    limit = max(1, min(limit, 100))
    per_source = max(1, limit // 2)

    jobs = JobRepository(db).list(company_id, page=1, limit=per_source).items
    tasks = TaskRepository(db).list(
        company_id, page=1, limit=per_source, order="t.updated_at DESC, t.id DESC"
    ).items

    activity = [
        {
            "type": "job_created",
            "reference_id": job["id"],
            "description": f"New job created: {job['name']}",
            "timestamp": job["created_at"],
        }
        for job in jobs
    ]
    activity.extend(
        {
            "type": "task_completed" if task["status"] == TaskStatus.COMPLETED.value else "task_updated",
            "reference_id": task["id"],
            "description": f"Task {task['status'].replace('_', ' ')}: {task['title']}",
            "timestamp": task["updated_at"],
        }
        for task in tasks
    )
    activity.sort(key=lambda item: item["timestamp"], reverse=True)
    return activity[:limit]


def list_worker_jobs(
    db: Session,
    company_id: int,
    worker_id: int,
    *,
    status: Optional[str] = None,
    site_id: Optional[int] = None,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    page: Optional[int] = None,
    limit: Optional[int] = None,
) -> Page:
    repo = AssignedJobRepository(db, worker_id)
    filters = [
        repo.filter("status", Op.EQ, status),
        repo.filter("site_id", Op.EQ, site_id),
        repo.filter("start_date", Op.GTE, start_date),
        repo.filter("end_date", Op.LTE, end_date),
    ]
    return repo.list(company_id, filters, page, limit)


def _assigned_job(db: Session, company_id: int, worker_id: int, job_id: int) -> Optional[Row]:
    return AssignedJobRepository(db, worker_id).find_by_id(job_id, company_id)


def get_worker_job(db: Session, company_id: int, worker_id: int, job_id: int) -> Row:
    job = _assigned_job(db, company_id, worker_id, job_id)
    if job is None:
        raise NotFoundError("Job not found or you are not assigned to this job")
    return job


def worker_job_tasks(db: Session, company_id: int, worker_id: int, job_id: int) -> List[Row]:
    if _assigned_job(db, company_id, worker_id, job_id) is None:
        raise ForbiddenError("You are not assigned to this job")
    return TaskRepository(db).for_job(company_id, job_id)


def update_worker_task_status(
    db: Session,
    company_id: int,
    worker_id: int,
    job_id: int,
    task_id: int,
    status: str,
    notes: Optional[str] = None,
) -> Row:
    if _assigned_job(db, company_id, worker_id, job_id) is None:
        raise ForbiddenError("You are not assigned to this job")

    with transaction(db):
        task = TaskRepository(db).find_by_id(task_id, company_id)
        if task is None or task["job_id"] != job_id:
            raise NotFoundError("Task not found")
        task = tasks_service.change_status(db, company_id, task_id, worker_id, status, notes)

    logger.info(
        "Task status updated by worker",
        extra={"task_id": task_id, "worker_id": worker_id, "status": status},
    )
    return task


def list_worker_incidents(
    db: Session,
    company_id: int,
    worker_id: int,
    *,
    severity: Optional[str] = None,
    status: Optional[str] = None,
    job_id: Optional[int] = None,
    start_date: Optional[datetime] = None,
    end_date: Optional[datetime] = None,
    page: Optional[int] = None,
    limit: Optional[int] = None,
) -> Page:
    return safety_service.list_incidents(
        db,
        company_id,
        severity=severity,
        status=status,
        job_id=job_id,
        reported_by=worker_id,
        start_date=start_date,
        end_date=end_date,
        page=page,
        limit=limit,
    )


def get_worker_incident(db: Session, company_id: int, worker_id: int, incident_id: int) -> Row:
    incident = SafetyIncidentRepository(db).find_by_id(incident_id, company_id)
    if incident is None or incident["reported_by"] != worker_id:
        raise NotFoundError("Safety incident not found")
    return incident


def worker_incident_statistics(db: Session, company_id: int, worker_id: int) -> dict:
    repo = SafetyIncidentRepository(db)
    mine = [repo.filter("reported_by", Op.EQ, worker_id)]
    by_status = repo.count_by(company_id, "status", mine)
    return {
        "total": sum(by_status.values()),
        "by_status": by_status,
        "by_severity": repo.count_by(company_id, "severity", mine),
    }


def worker_schedule(
    db: Session,
    company_id: int,
    worker_id: int,
    start: Optional[date] = None,
    end: Optional[date] = None,
) -> List[Row]:
    """Assigned jobs starting in ``[start, end]``; defaults to the next 30 days."""
    start = start or datetime.now(timezone.utc).date()
    end = end or start + timedelta(days=30)
    if end < start:
        raise BadRequestError("End date must be after start date")

    repo = AssignedJobRepository(db, worker_id)
    filters = [
        repo.filter("start_date", Op.GTE, start),
        repo.filter("start_date", Op.LTE, end),
    ]
    return repo.find_all(company_id, filters, order="j.start_date ASC, j.name ASC, j.id ASC")


def todays_jobs(db: Session, company_id: int, worker_id: int, today: Optional[date] = None) -> List[Row]:
    today = today or datetime.now(timezone.utc).date()
    return worker_schedule(db, company_id, worker_id, today, today)


def weeks_jobs(db: Session, company_id: int, worker_id: int, today: Optional[date] = None) -> List[Row]:
    today = today or datetime.now(timezone.utc).date()
    # weeks start on Sunday
    start = today - timedelta(days=(today.weekday() + 1) % 7)
    return worker_schedule(db, company_id, worker_id, start, start + timedelta(days=6))


def worker_profile(db: Session, company_id: int, worker_id: int) -> Row:
    user = UserRepository(db).find_by_id(worker_id, company_id)
    if user is None:
        raise NotFoundError("Worker profile not found")
    company = CompanyRepository(db).find_by_id(company_id, company_id)
    user["company_name"] = company["name"] if company else None
    return user


def update_worker_profile(db: Session, company_id: int, worker_id: int, fields: dict) -> Row:
    allowed = {k: v for k, v in fields.items() if k in ("first_name", "last_name", "phone")}
    with transaction(db):
        if UserRepository(db).update(worker_id, company_id, allowed) is None:
            raise NotFoundError("Worker profile not found")
    return worker_profile(db, company_id, worker_id)


def worker_statistics(db: Session, company_id: int, worker_id: int) -> dict:
    jobs = AssignedJobRepository(db, worker_id)
    by_status = jobs.count_by(company_id, "status")

    tasks = TaskRepository(db)
    incidents = SafetyIncidentRepository(db)
    return {
        "total_jobs_assigned": sum(by_status.values()),
        "completed_jobs": by_status.get(JobStatus.COMPLETED.value, 0),
        "active_jobs": by_status.get(JobStatus.IN_PROGRESS.value, 0),
        "safety_incidents_reported": incidents.count(
            company_id, [incidents.filter("reported_by", Op.EQ, worker_id)]
        ),
        "tasks_completed": tasks.count(
            company_id,
            [
                tasks.filter("assigned_to", Op.EQ, worker_id),
                tasks.filter("status", Op.EQ, TaskStatus.COMPLETED.value),
            ],
        ),
    }
