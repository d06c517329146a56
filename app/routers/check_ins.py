from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.core.authorization import require_manager
from app.database import get_db
from app.deps.auth import CurrentUser, require_auth
from app.schemas.check_in import BillablesResponse, CheckInRequest, CheckInResponse, CheckOutRequest
from app.schemas.common import ApiResponse, PageData, ok, paged
from app.services import check_ins_service

router = APIRouter(prefix="/check-ins", tags=["Check-ins"])


@router.post("/check-in", response_model=ApiResponse[CheckInResponse], status_code=201)
def check_in(
    payload: CheckInRequest,
    user: CurrentUser = Depends(require_auth),
    db: Session = Depends(get_db),
):
    log = check_ins_service.check_in(db, user.company_id, user.user_id, payload)
    return ok(log, "Checked in successfully")


@router.post("/check-out", response_model=ApiResponse[CheckInResponse])
def check_out(
    payload: CheckOutRequest,
    user: CurrentUser = Depends(require_auth),
    db: Session = Depends(get_db),
):
    log = check_ins_service.check_out(db, user.company_id, user.user_id, payload)
    return ok(log, "Checked out successfully")


@router.get("/active", response_model=ApiResponse[Optional[CheckInResponse]])
def active_check_in(user: CurrentUser = Depends(require_auth), db: Session = Depends(get_db)):
    return ok(check_ins_service.get_active(db, user.company_id, user.user_id))


@router.get("/history", response_model=ApiResponse[PageData[CheckInResponse]])
def check_in_history(
    page: Optional[int] = None,
    limit: Optional[int] = None,
    user: CurrentUser = Depends(require_auth),
    db: Session = Depends(get_db),
):
    result = check_ins_service.history(db, user.company_id, user.user_id, page, limit)
    return ok(paged(result))


@router.get("/billables", response_model=ApiResponse[BillablesResponse])
def billables(
    start_date: datetime,
    end_date: datetime,
    user_id: Optional[int] = None,
    user: CurrentUser = Depends(require_auth),
    db: Session = Depends(get_db),
):
    result = check_ins_service.billables(
        db,
        user.company_id,
        user.user_id,
        user.role,
        start_date,
        end_date,
        user_id=user_id,
    )
    return ok(result)


@router.get("", response_model=ApiResponse[PageData[CheckInResponse]])
def list_check_ins(
    user_id: Optional[int] = None,
    job_id: Optional[int] = None,
    start_date: Optional[datetime] = None,
    end_date: Optional[datetime] = None,
    active_only: bool = False,
    page: Optional[int] = None,
    limit: Optional[int] = None,
    user: CurrentUser = Depends(require_manager),
    db: Session = Depends(get_db),
):
    result = check_ins_service.list_check_ins(
        db,
        user.company_id,
        user_id=user_id,
        job_id=job_id,
        start_date=start_date,
        end_date=end_date,
        active_only=active_only,
        page=page,
        limit=limit,
    )
    return ok(paged(result))
