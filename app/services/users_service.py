import logging
import random
import secrets
from typing import Optional

from sqlalchemy.orm import Session

from app.core.errors import BadRequestError, ConflictError, ForbiddenError, NotFoundError
from app.core.query import Op
from app.database import transaction
from app.models.enums import UserRole
from app.repositories.base import Page, Row
from app.repositories.users import UserRepository
from app.schemas.user import UserCreate, UserUpdate
from app.services.passwords import generate_temporary_password, hash_password

logger = logging.getLogger(__name__)

_system_random = secrets.SystemRandom()


def list_users(
    db: Session,
    company_id: int,
    *,
    search: Optional[str] = None,
    role: Optional[str] = None,
    is_active: Optional[bool] = None,
    page: Optional[int] = None,
    limit: Optional[int] = None,
) -> Page:
    repo = UserRepository(db)
    filters = [
        repo.search(search),
        repo.filter("role", Op.EQ, role),
        repo.filter("is_active", Op.EQ, is_active),
    ]
    return repo.list(company_id, filters, page, limit)


def get_user(db: Session, company_id: int, user_id: int) -> Row:
    user = UserRepository(db).find_by_id(user_id, company_id)
    if user is None:
        raise NotFoundError("Worker not found")
    return user


def create_user(
    db: Session,
    company_id: int,
    payload: UserCreate,
    rng: random.Random = _system_random,
) -> Row:
    """Create a user; when no password is given a temporary one is generated
    and returned once under ``temporary_password``."""
    repo = UserRepository(db)
    temporary_password = None
    password = payload.password
    if not password:
        temporary_password = generate_temporary_password(rng)
        password = temporary_password

    with transaction(db):
        if repo.email_taken(payload.email):
            raise ConflictError("Email already exists")

        user = repo.create(
            company_id,
            {
                "email": payload.email.lower(),
                "password_hash": hash_password(password),
                "first_name": payload.first_name,
                "last_name": payload.last_name,
                "phone": payload.phone,
                "hourly_rate": payload.hourly_rate,
                "role": payload.role,
                "is_active": payload.is_active,
            },
        )

    logger.info("User created", extra={"company_id": company_id, "user_id": user["id"]})
    user["temporary_password"] = temporary_password
    return user


def update_user(db: Session, company_id: int, user_id: int, payload: UserUpdate) -> Row:
    repo = UserRepository(db)
    fields = payload.model_dump(exclude_unset=True)

    with transaction(db):
        if repo.find_by_id(user_id, company_id) is None:
            raise NotFoundError("Worker not found")

        if fields.get("email"):
            if repo.email_taken(fields["email"], exclude_id=user_id):
                raise ConflictError("Email already exists")
            fields["email"] = fields["email"].lower()

        for required in ("email", "role", "is_active"):
            if required in fields and fields[required] is None:
                raise BadRequestError(f"{required} cannot be null")

        user = repo.update(user_id, company_id, fields)
        if user is None:
            raise NotFoundError("Worker not found")
    return user


def delete_user(db: Session, company_id: int, user_id: int, acting_user_id: int) -> None:
    repo = UserRepository(db)

    with transaction(db):
        user = repo.find_by_id(user_id, company_id)
        if user is None:
            raise NotFoundError("Worker not found")
        if user["role"] == UserRole.SUPER_ADMIN.value:
            raise ForbiddenError("Cannot delete super admin users")
        if user_id == acting_user_id:
            raise BadRequestError("You cannot delete your own account")
        if not repo.soft_delete(user_id, company_id):
            raise NotFoundError("Worker not found")

    logger.info("User deleted", extra={"company_id": company_id, "user_id": user_id})
