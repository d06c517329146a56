import os

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from app.database import get_db
from app.deps.auth import CurrentUser, require_auth
from app.schemas.auth import AuthResponse, LoginRequest, RegisterRequest, TokenRequest
from app.schemas.common import ApiResponse, ok
from app.services import auth_service
from app.services.auth_service import create_access_token

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/register", response_model=ApiResponse[AuthResponse], status_code=201)
def register(payload: RegisterRequest, db: Session = Depends(get_db)):
    return ok(auth_service.register(db, payload), "Registration successful")


@router.post("/login", response_model=ApiResponse[AuthResponse])
def login(payload: LoginRequest, db: Session = Depends(get_db)):
    return ok(auth_service.login(db, payload), "Login successful")


@router.get("/me")
def me(user: CurrentUser = Depends(require_auth), db: Session = Depends(get_db)):
    return ok(auth_service.me(db, user.user_id, user.company_id))


@router.post("/token")
def issue_token(payload: TokenRequest):
    env = os.getenv("ENV", "").strip().lower()
    if env not in {"dev", "local", "test"}:
        raise HTTPException(status_code=404, detail="Not Found")
    try:
        user_id = int(payload.user_id)
        token = create_access_token(
            user_id=str(user_id),
            company_id=int(payload.company_id),
            role=payload.role,
            email=payload.email,
        )
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc

    return {
        "access_token": token,
        "token_type": "bearer",
    }
