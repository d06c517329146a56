from datetime import datetime, timedelta, timezone
import logging
import os
from typing import Any, Dict, Optional

import jwt
from sqlalchemy.orm import Session

from app.core.errors import ConflictError, NotFoundError, UnauthorizedError
from app.database import transaction
from app.models.enums import UserRole
from app.repositories.companies import CompanyRepository
from app.repositories.users import UserRepository
from app.schemas.auth import LoginRequest, RegisterRequest
from app.services.passwords import hash_password, verify_password

logger = logging.getLogger(__name__)

JWT_ALGORITHM = "HS256"
DEFAULT_JWT_EXP_HOURS = 24 * 7


def _get_jwt_secret() -> str:
    secret = os.getenv("JWT_SECRET")
    if not secret:
        raise ValueError("JWT_SECRET is required")
    if len(secret) < 32:
        raise ValueError("JWT_SECRET must be at least 32 characters")
    return secret


def _get_exp_hours() -> int:
    try:
        return int(os.getenv("JWT_EXP_HOURS", DEFAULT_JWT_EXP_HOURS))
    except ValueError:
        return DEFAULT_JWT_EXP_HOURS


def create_access_token(
    user_id: str,
    company_id: int,
    role: Optional[str] = None,
    email: Optional[str] = None,
) -> str:
    now = datetime.now(timezone.utc)
    payload: Dict[str, Any] = {
        "sub": str(user_id),
        "company_id": int(company_id),
        "iat": now,
        "exp": now + timedelta(hours=_get_exp_hours()),
    }
    if role:
        payload["role"] = role
    if email:
        payload["email"] = email
    return jwt.encode(payload, _get_jwt_secret(), algorithm=JWT_ALGORITHM)


def verify_token(token: str) -> dict:
    try:
        payload = jwt.decode(token, _get_jwt_secret(), algorithms=[JWT_ALGORITHM])
    except Exception as exc:
        raise ValueError("Invalid or expired token") from exc

    if "sub" not in payload or "company_id" not in payload:
        raise ValueError("Invalid token claims")

    return payload


def _token_for(user: dict) -> str:
    return create_access_token(
        user_id=str(user["id"]),
        company_id=user["company_id"],
        role=user["role"],
        email=user["email"],
    )


def register(db: Session, payload: RegisterRequest) -> dict:
    """Create a company together with its first company_admin."""
    users = UserRepository(db)
    companies = CompanyRepository(db)

    with transaction(db):
        if users.email_taken(payload.email):
            raise ConflictError("Email already registered")

        company = companies.create_company(
            {
                "name": payload.company_name,
                "email": payload.company_email,
                "phone": payload.company_phone,
                "address": payload.company_address,
            }
        )
        user = users.create(
            company["id"],
            {
                "email": payload.email.lower(),
                "password_hash": hash_password(payload.password),
                "first_name": payload.first_name,
                "last_name": payload.last_name,
                "role": UserRole.COMPANY_ADMIN.value,
                "is_active": True,
            },
        )

    logger.info(
        "Company registered",
        extra={"company_id": company["id"], "user_id": user["id"]},
    )
    return {"token": _token_for(user), "user": user, "company": company}


def login(db: Session, payload: LoginRequest) -> dict:
    users = UserRepository(db)
    user = users.find_by_email(payload.email)

    if user is None or not verify_password(payload.password, user["password_hash"]):
        logger.info("Login failed", extra={"email": payload.email})
        raise UnauthorizedError("Invalid email or password")

    if not user["is_active"]:
        raise UnauthorizedError("Account is inactive. Please contact your administrator")

    company = CompanyRepository(db).find_by_id(user["company_id"], user["company_id"])
    return {"token": _token_for(user), "user": user, "company": company}


def me(db: Session, user_id: int, company_id: int) -> dict:
    user = UserRepository(db).find_by_id(user_id, company_id)
    if user is None:
        raise NotFoundError("User not found")
    company = CompanyRepository(db).find_by_id(company_id, company_id)
    return {"user": user, "company": company}
