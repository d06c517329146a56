from typing import Optional

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.core.authorization import require_admin, require_manager
from app.database import get_db
from app.deps.auth import CurrentUser, require_auth
from app.models.enums import UserRole
from app.schemas.common import ApiResponse, PageData, enum_value, ok, paged
from app.schemas.user import UserCreate, UserCreatedResponse, UserResponse, UserUpdate
from app.services import users_service

router = APIRouter(prefix="/users", tags=["Users"])


@router.get("", response_model=ApiResponse[PageData[UserResponse]])
def list_users(
    search: Optional[str] = None,
    role: Optional[UserRole] = None,
    is_active: Optional[bool] = None,
    page: Optional[int] = None,
    limit: Optional[int] = None,
    user: CurrentUser = Depends(require_auth),
    db: Session = Depends(get_db),
):
    result = users_service.list_users(
        db,
        user.company_id,
        search=search,
        role=enum_value(role),
        is_active=is_active,
        page=page,
        limit=limit,
    )
    return ok(paged(result))


@router.post("", response_model=ApiResponse[UserCreatedResponse], status_code=201)
def create_user(
    payload: UserCreate,
    user: CurrentUser = Depends(require_manager),
    db: Session = Depends(get_db),
):
    return ok(users_service.create_user(db, user.company_id, payload), "Worker created successfully")


@router.get("/{user_id}", response_model=ApiResponse[UserResponse])
def get_user(user_id: int, user: CurrentUser = Depends(require_auth), db: Session = Depends(get_db)):
    return ok(users_service.get_user(db, user.company_id, user_id))


@router.put("/{user_id}", response_model=ApiResponse[UserResponse])
def update_user(
    user_id: int,
    payload: UserUpdate,
    user: CurrentUser = Depends(require_manager),
    db: Session = Depends(get_db),
):
    return ok(users_service.update_user(db, user.company_id, user_id, payload), "Worker updated successfully")


@router.delete("/{user_id}", response_model=ApiResponse[None])
def delete_user(user_id: int, user: CurrentUser = Depends(require_admin), db: Session = Depends(get_db)):
    users_service.delete_user(db, user.company_id, user_id, user.user_id)
    return ok(message="Worker deleted successfully")
