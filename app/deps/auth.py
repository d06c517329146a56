from dataclasses import dataclass
from typing import Optional

from fastapi import Request

from app.core.errors import ForbiddenError, UnauthorizedError
from app.services.auth_service import verify_token


@dataclass(frozen=True)
class CurrentUser:
    user_id: int
    company_id: int
    role: str
    email: Optional[str] = None


def _parse_bearer_token(request: Request) -> str:
    auth_header = request.headers.get("Authorization")
    if not auth_header:
        raise UnauthorizedError("Missing Authorization header")

    parts = auth_header.split(" ", 1)
    if len(parts) != 2 or parts[0].lower() != "bearer" or not parts[1].strip():
        raise UnauthorizedError("Invalid Authorization header")

    return parts[1].strip()


def require_auth(request: Request) -> CurrentUser:
    token = _parse_bearer_token(request)

    try:
        claims = verify_token(token)
    except ValueError as exc:
        raise UnauthorizedError(str(exc)) from exc

    try:
        user_id = int(claims.get("sub"))
        token_company_id = int(claims.get("company_id"))
    except (TypeError, ValueError) as exc:
        raise UnauthorizedError("Invalid token claims") from exc

    header_company_id = request.headers.get("X-Company-Id")
    if header_company_id is None:
        raise ForbiddenError("Missing X-Company-Id header")

    try:
        header_company_id_int = int(header_company_id)
    except ValueError as exc:
        raise ForbiddenError("Invalid X-Company-Id header") from exc

    if header_company_id_int != token_company_id:
        raise ForbiddenError("Company mismatch")

    user = CurrentUser(
        user_id=user_id,
        company_id=token_company_id,
        role=str(claims.get("role") or "viewer").lower(),
        email=claims.get("email"),
    )

    request.state.user_id = user.user_id
    request.state.company_id = user.company_id
    request.state.role = user.role

    return user
