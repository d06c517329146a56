"""Geofenced check-in and check-out against assigned jobs.

A user holds at most one open check-in. Checking out stamps the time and
derives ``duration_hours`` and ``billable_amount`` from the hourly rate
copied off the user when they checked in.
"""
import logging
import math
from datetime import date, datetime, timezone
from decimal import ROUND_HALF_UP, Decimal
from typing import Optional, Tuple

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.core.authorization import MANAGER_ROLES
from app.core.errors import BadRequestError, ConflictError, ForbiddenError, NotFoundError
from app.core.query import Op
from app.database import transaction
from app.models.enums import JobStatus
from app.repositories.base import Page, Row
from app.repositories.check_ins import CLOSED, OPEN, CheckInRepository
from app.repositories.jobs import JobRepository
from app.repositories.sites import SiteRepository
from app.repositories.users import UserRepository
from app.schemas.check_in import CheckInRequest, CheckOutRequest

logger = logging.getLogger(__name__)

EARTH_RADIUS_METERS = 6371e3
BUFFER_METERS = 25
MAX_DURATION_HOURS = Decimal("999.99")
CENTS = Decimal("0.01")

CHECK_IN_STATUSES = frozenset({JobStatus.PLANNED.value, JobStatus.IN_PROGRESS.value})

STATUS_MESSAGES = {
    JobStatus.COMPLETED.value: "This job is already completed.",
    JobStatus.CANCELLED.value: "This job has been cancelled.",
    JobStatus.ON_HOLD.value: "This job is currently on hold.",
    JobStatus.ARCHIVED.value: "This job has been archived.",
    JobStatus.DRAFT.value: "This job is still in draft status.",
}


def _utcnow() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


def _day(value: date) -> str:
    return f"{value:%b} {value.day}, {value.year}"


def _naive_utc(value: Optional[datetime]) -> Optional[datetime]:
    if value is None or value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


def distance_meters(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Great-circle (haversine) distance between two coordinates."""
    phi1 = math.radians(lat1)
    phi2 = math.radians(lat2)
    d_phi = math.radians(lat2 - lat1)
    d_lambda = math.radians(lon2 - lon1)
    a = math.sin(d_phi / 2) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(d_lambda / 2) ** 2
    return EARTH_RADIUS_METERS * 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))


def geofence_error(
    site: Optional[Row],
    latitude: float,
    longitude: float,
    accuracy: Optional[float] = None,
) -> Optional[str]:
    """Rejection message when the position is outside the site's radius.

    Sites without coordinates or a radius are not fenced. The reported GPS
    accuracy is subtracted from the distance, and a fixed buffer is added to
    the radius.
    """
    if site is None or site["latitude"] is None or site["longitude"] is None or not site["radius"]:
        return None

    radius = int(site["radius"])
    distance = distance_meters(latitude, longitude, float(site["latitude"]), float(site["longitude"]))
    effective = max(distance - accuracy, 0) if accuracy else distance
    if effective <= radius + BUFFER_METERS:
        return None

    message = (
        "You are too far from the job site. "
        f"You must be within {radius}m of the site location to check in. "
        f"Current distance: {round(distance)}m"
    )
    if accuracy and accuracy > radius:
        message += (
            f" GPS accuracy is about {round(accuracy)}m. "
            "Try improving GPS (open Maps, wait 30s, or move outdoors) and retry."
        )
    return message


def billable_for(check_in_time: datetime, check_out_time: datetime, hourly_rate) -> Tuple[Decimal, Decimal]:
    """(duration_hours, billable_amount), both rounded to cents."""
    hours = Decimal(str((check_out_time - check_in_time).total_seconds())) / Decimal(3600)
    hours = min(max(hours, Decimal(0)), MAX_DURATION_HOURS)
    rate = Decimal(str(hourly_rate)) if hourly_rate is not None else Decimal(0)
    return (
        hours.quantize(CENTS, rounding=ROUND_HALF_UP),
        (hours * rate).quantize(CENTS, rounding=ROUND_HALF_UP),
    )


def _active(db: Session, company_id: int, user_id: int) -> Optional[Row]:
    repo = CheckInRepository(db, state=OPEN)
    rows = repo.find_all(company_id, [repo.filter("user_id", Op.EQ, user_id)])
    return rows[0] if rows else None


def _check_schedule(job: Row, today: date) -> None:
    if job["start_date"] is not None and job["start_date"] > today:
        raise BadRequestError(f"This job hasn't started yet. It begins on {_day(job['start_date'])}.")
    if job["end_date"] is not None and job["end_date"] < today:
        raise BadRequestError(f"This job has expired. It ended on {_day(job['end_date'])}.")
    if job["status"] not in CHECK_IN_STATUSES:
        raise BadRequestError(
            STATUS_MESSAGES.get(job["status"], f"This job is not available (Status: {job['status']}).")
        )


def _with_details(repo: CheckInRepository, rows: list) -> list:
    details = repo.details(row["id"] for row in rows)
    for row in rows:
        row.update(details.get(row["id"], {}))
    return rows


def check_in(db: Session, company_id: int, user_id: int, payload: CheckInRequest) -> Row:
    now = _utcnow()
    jobs = JobRepository(db)
    repo = CheckInRepository(db)

    with transaction(db):
        if _active(db, company_id, user_id) is not None:
            raise ConflictError("You are already checked in. Please check out first.")

        job = jobs.find_by_id(payload.job_id, company_id)
        if job is None:
            raise NotFoundError("Job not found or does not belong to your company")
        if user_id not in jobs.worker_ids(job["id"]) and user_id not in jobs.manager_ids(job["id"]):
            raise BadRequestError("You are not assigned to this job")
        _check_schedule(job, now.date())

        site = SiteRepository(db).find_by_id(job["site_id"], company_id) if job["site_id"] else None
        problem = geofence_error(site, payload.latitude, payload.longitude, payload.accuracy)
        if problem:
            logger.warning(
                "Check-in outside geofence",
                extra={"company_id": company_id, "user_id": user_id, "job_id": job["id"]},
            )
            raise BadRequestError(problem)

        user = UserRepository(db).find_by_id(user_id, company_id)
        if user is None:
            raise NotFoundError("User not found")

        try:
            log = repo.create(
                company_id,
                {
                    "user_id": user_id,
                    "job_id": job["id"],
                    "check_in_time": now,
                    "hourly_rate": user["hourly_rate"],
                    "notes": payload.notes,
                },
            )
        except IntegrityError as exc:
            raise ConflictError("You are already checked in. Please check out first.") from exc

    logger.info(
        "User checked in",
        extra={"company_id": company_id, "user_id": user_id, "job_id": job["id"], "check_in_id": log["id"]},
    )
    log.update(job_name=job["name"], job_number=job["job_number"])
    return log


def check_out(db: Session, company_id: int, user_id: int, payload: CheckOutRequest) -> Row:
    now = _utcnow()
    repo = CheckInRepository(db)

    with transaction(db):
        active = _active(db, company_id, user_id)
        if active is None:
            raise BadRequestError("No active check-in found. Please check in first.")

        duration, amount = billable_for(active["check_in_time"], now, active["hourly_rate"])
        fields = {"check_out_time": now, "duration_hours": duration, "billable_amount": amount}
        if payload.notes is not None:
            fields["notes"] = payload.notes

        log = repo.close(active["id"], company_id, fields)
        if log is None:
            raise BadRequestError("No active check-in found. Please check in first.")

    logger.info(
        "User checked out",
        extra={
            "company_id": company_id,
            "user_id": user_id,
            "job_id": log["job_id"],
            "duration_hours": str(duration),
        },
    )
    return log


def get_active(db: Session, company_id: int, user_id: int) -> Optional[Row]:
    active = _active(db, company_id, user_id)
    if active is None:
        return None
    return _with_details(CheckInRepository(db), [active])[0]


def history(
    db: Session,
    company_id: int,
    user_id: int,
    page: Optional[int] = None,
    limit: Optional[int] = None,
) -> Page:
    repo = CheckInRepository(db)
    result = repo.list(company_id, [repo.filter("user_id", Op.EQ, user_id)], page, limit)
    _with_details(repo, result.items)
    return result


def list_check_ins(
    db: Session,
    company_id: int,
    *,
    user_id: Optional[int] = None,
    job_id: Optional[int] = None,
    start_date: Optional[datetime] = None,
    end_date: Optional[datetime] = None,
    active_only: bool = False,
    page: Optional[int] = None,
    limit: Optional[int] = None,
) -> Page:
    start_date, end_date = _naive_utc(start_date), _naive_utc(end_date)
    repo = CheckInRepository(db, state=OPEN if active_only else None)
    filters = [
        repo.filter("user_id", Op.EQ, user_id),
        repo.filter("job_id", Op.EQ, job_id),
        repo.filter("check_in_time", Op.GTE, start_date),
        repo.filter("check_in_time", Op.LTE, end_date),
    ]
    result = repo.list(company_id, filters, page, limit)
    _with_details(repo, result.items)
    return result


def billables(
    db: Session,
    company_id: int,
    requester_id: int,
    requester_role: str,
    start_date: datetime,
    end_date: datetime,
    user_id: Optional[int] = None,
) -> dict:
    """Hours and billable amount over completed check-ins in a window."""
    start_date, end_date = _naive_utc(start_date), _naive_utc(end_date)
    target = user_id if user_id is not None else requester_id
    if target != requester_id and requester_role not in MANAGER_ROLES:
        raise ForbiddenError("Insufficient permissions")
    if end_date < start_date:
        raise BadRequestError("End date must be after start date")
    if UserRepository(db).find_by_id(target, company_id) is None:
        raise NotFoundError("User not found")

    repo = CheckInRepository(db, state=CLOSED)
    totals = repo.totals(
        company_id,
        [
            repo.filter("user_id", Op.EQ, target),
            repo.filter("check_in_time", Op.GTE, start_date),
            repo.filter("check_in_time", Op.LTE, end_date),
        ],
    )
    return {
        "user_id": target,
        "start_date": start_date,
        "end_date": end_date,
        "entries": int(totals["entries"]),
        "total_hours": Decimal(str(totals["total_hours"])).quantize(CENTS),
        "total_amount": Decimal(str(totals["total_amount"])).quantize(CENTS),
    }
