from typing import Optional

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.core.authorization import require_manager
from app.database import get_db
from app.deps.auth import CurrentUser, require_auth
from app.models.enums import SiteStatus
from app.schemas.common import ApiResponse, PageData, enum_value, ok, paged
from app.schemas.site import SiteCreate, SiteResponse, SiteUpdate, StatusStatistics
from app.services import sites_service

router = APIRouter(prefix="/sites", tags=["Sites"])


@router.get("", response_model=ApiResponse[PageData[SiteResponse]])
def list_sites(
    search: Optional[str] = None,
    status: Optional[SiteStatus] = None,
    page: Optional[int] = None,
    limit: Optional[int] = None,
    user: CurrentUser = Depends(require_auth),
    db: Session = Depends(get_db),
):
    result = sites_service.list_sites(
        db, user.company_id, search=search, status=enum_value(status), page=page, limit=limit
    )
    return ok(paged(result))


@router.get("/statistics", response_model=ApiResponse[StatusStatistics])
def site_statistics(user: CurrentUser = Depends(require_auth), db: Session = Depends(get_db)):
    return ok(sites_service.site_statistics(db, user.company_id))


@router.post("", response_model=ApiResponse[SiteResponse], status_code=201)
def create_site(
    payload: SiteCreate,
    user: CurrentUser = Depends(require_manager),
    db: Session = Depends(get_db),
):
    return ok(sites_service.create_site(db, user.company_id, user.user_id, payload), "Site created successfully")


@router.get("/{site_id}", response_model=ApiResponse[SiteResponse])
def get_site(site_id: int, user: CurrentUser = Depends(require_auth), db: Session = Depends(get_db)):
    return ok(sites_service.get_site(db, user.company_id, site_id))


@router.put("/{site_id}", response_model=ApiResponse[SiteResponse])
def update_site(
    site_id: int,
    payload: SiteUpdate,
    user: CurrentUser = Depends(require_manager),
    db: Session = Depends(get_db),
):
    return ok(sites_service.update_site(db, user.company_id, site_id, payload), "Site updated successfully")


@router.delete("/{site_id}", response_model=ApiResponse[None])
def delete_site(site_id: int, user: CurrentUser = Depends(require_manager), db: Session = Depends(get_db)):
    sites_service.delete_site(db, user.company_id, site_id)
    return ok(message="Site deleted successfully")
