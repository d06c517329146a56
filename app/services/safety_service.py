import logging
from datetime import datetime
from typing import Optional

from sqlalchemy.orm import Session

from app.core.errors import BadRequestError, NotFoundError
from app.core.query import Op
from app.database import transaction
from app.repositories.base import Page, Row
from app.repositories.jobs import JobRepository
from app.repositories.safety import SafetyIncidentRepository
from app.repositories.sites import SiteRepository
from app.schemas.safety import IncidentCreate, IncidentUpdate

logger = logging.getLogger(__name__)


def _check_links(db: Session, company_id: int, job_id: Optional[int], site_id: Optional[int]) -> None:
    if job_id is not None and JobRepository(db).find_by_id(job_id, company_id) is None:
        raise BadRequestError("Job does not exist or does not belong to your company")
    if site_id is not None and SiteRepository(db).find_by_id(site_id, company_id) is None:
        raise BadRequestError("Site does not exist or does not belong to your company")


def list_incidents(
    db: Session,
    company_id: int,
    *,
    search: Optional[str] = None,
    status: Optional[str] = None,
    severity: Optional[str] = None,
    job_id: Optional[int] = None,
    site_id: Optional[int] = None,
    reported_by: Optional[int] = None,
    start_date: Optional[datetime] = None,
    end_date: Optional[datetime] = None,
    page: Optional[int] = None,
    limit: Optional[int] = None,
) -> Page:
    repo = SafetyIncidentRepository(db)
    filters = [
        repo.search(search),
        repo.filter("status", Op.EQ, status),
        repo.filter("severity", Op.EQ, severity),
        repo.filter("job_id", Op.EQ, job_id),
        repo.filter("site_id", Op.EQ, site_id),
        repo.filter("reported_by", Op.EQ, reported_by),
        repo.filter("incident_date", Op.GTE, start_date),
        repo.filter("incident_date", Op.LTE, end_date),
    ]
    return repo.list(company_id, filters, page, limit)


def get_incident(db: Session, company_id: int, incident_id: int) -> Row:
    incident = SafetyIncidentRepository(db).find_by_id(incident_id, company_id)
    if incident is None:
        raise NotFoundError("Safety incident not found")
    return incident


def create_incident(db: Session, company_id: int, user_id: int, payload: IncidentCreate) -> Row:
    if payload.job_id is None and payload.site_id is None:
        raise BadRequestError("Either job_id or site_id is required")

    with transaction(db):
        _check_links(db, company_id, payload.job_id, payload.site_id)
        incident = SafetyIncidentRepository(db).create(
            company_id,
            dict(payload.model_dump(), reported_by=user_id),
        )

    logger.warning(
        "Safety incident reported",
        extra={
            "company_id": company_id,
            "incident_id": incident["id"],
            "severity": incident["severity"],
        },
    )
    return incident


def update_incident(db: Session, company_id: int, incident_id: int, payload: IncidentUpdate) -> Row:
    repo = SafetyIncidentRepository(db)
    fields = payload.model_dump(exclude_unset=True)
    for required in ("incident_date", "description", "severity", "status"):
        if required in fields and fields[required] is None:
            raise BadRequestError(f"{required} cannot be null")

    with transaction(db):
        current = repo.find_by_id(incident_id, company_id)
        if current is None:
            raise NotFoundError("Safety incident not found")

        job_id = fields.get("job_id", current["job_id"])
        site_id = fields.get("site_id", current["site_id"])
        if job_id is None and site_id is None:
            raise BadRequestError("Either job_id or site_id is required")
        _check_links(db, company_id, fields.get("job_id"), fields.get("site_id"))

        incident = repo.update(incident_id, company_id, fields)
        if incident is None:
            raise NotFoundError("Safety incident not found")
    return incident


def delete_incident(db: Session, company_id: int, incident_id: int) -> None:
    with transaction(db):
        if not SafetyIncidentRepository(db).soft_delete(incident_id, company_id):
            raise NotFoundError("Safety incident not found")


def incident_statistics(db: Session, company_id: int) -> dict:
    repo = SafetyIncidentRepository(db)
    by_status = repo.count_by(company_id, "status")
    by_severity = repo.count_by(company_id, "severity")
    return {
        "total": sum(by_status.values()),
        "by_status": by_status,
        "by_severity": by_severity,
    }
