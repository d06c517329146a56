import logging
from decimal import Decimal
from typing import Optional

from sqlalchemy.orm import Session

from app.core.errors import BadRequestError, NotFoundError
from app.core.query import Op
from app.database import transaction
from app.repositories.base import Page, Row
from app.repositories.sites import SiteRepository
from app.schemas.site import SiteCreate, SiteUpdate
from app.services import budgets_service

logger = logging.getLogger(__name__)


def _check_coordinates(latitude, longitude) -> None:
    if (latitude is None) != (longitude is None):
        raise BadRequestError("Both latitude and longitude must be provided together")


def list_sites(
    db: Session,
    company_id: int,
    *,
    search: Optional[str] = None,
    status: Optional[str] = None,
    page: Optional[int] = None,
    limit: Optional[int] = None,
) -> Page:
    repo = SiteRepository(db)
    filters = [repo.search(search), repo.filter("status", Op.EQ, status)]
    return repo.list(company_id, filters, page, limit)


def get_site(db: Session, company_id: int, site_id: int) -> Row:
    site = SiteRepository(db).find_by_id(site_id, company_id)
    if site is None:
        raise NotFoundError("Site not found")
    return site


def create_site(db: Session, company_id: int, user_id: int, payload: SiteCreate) -> Row:
    _check_coordinates(payload.latitude, payload.longitude)

    with transaction(db):
        site = SiteRepository(db).create(
            company_id,
            dict(payload.model_dump(), created_by=user_id),
        )

    logger.info("Site created", extra={"company_id": company_id, "site_id": site["id"]})

    # budget failures are logged, never raised
    try:
        with transaction(db):
            budgets_service.create_budget_rows(db, company_id, site["id"], Decimal("0"), user_id)
    except Exception:
        logger.warning(
            "Failed to create budget for site",
            exc_info=True,
            extra={"company_id": company_id, "site_id": site["id"]},
        )

    return site


def update_site(db: Session, company_id: int, site_id: int, payload: SiteUpdate) -> Row:
    repo = SiteRepository(db)
    fields = payload.model_dump(exclude_unset=True)
    for required in ("name", "radius", "status"):
        if required in fields and fields[required] is None:
            raise BadRequestError(f"{required} cannot be null")

    with transaction(db):
        current = repo.find_by_id(site_id, company_id)
        if current is None:
            raise NotFoundError("Site not found")

        if "latitude" in fields or "longitude" in fields:
            _check_coordinates(
                fields.get("latitude", current["latitude"]),
                fields.get("longitude", current["longitude"]),
            )

        site = repo.update(site_id, company_id, fields)
        if site is None:
            raise NotFoundError("Site not found")
    return site


def delete_site(db: Session, company_id: int, site_id: int) -> None:
    repo = SiteRepository(db)

    with transaction(db):
        if repo.find_by_id(site_id, company_id) is None:
            raise NotFoundError("Site not found")

        job_count = repo.live_job_count(site_id, company_id)
        if job_count > 0:
            raise BadRequestError(
                f"Cannot delete site with {job_count} associated job(s). "
                "Please delete or reassign the jobs first."
            )

        if not repo.soft_delete(site_id, company_id):
            raise NotFoundError("Site not found")
        budgets_service.delete_budget_for_site(db, company_id, site_id)

    logger.info("Site deleted", extra={"company_id": company_id, "site_id": site_id})


def site_statistics(db: Session, company_id: int) -> dict:
    by_status = SiteRepository(db).count_by(company_id, "status")
    return {"total": sum(by_status.values()), "by_status": by_status}
