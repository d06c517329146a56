from fastapi import Depends

from app.core.errors import ForbiddenError
from app.deps.auth import CurrentUser, require_auth
from app.models.enums import UserRole

ADMIN_ROLES = frozenset({UserRole.SUPER_ADMIN.value, UserRole.COMPANY_ADMIN.value})

MANAGER_ROLES = ADMIN_ROLES | {
    UserRole.PROJECT_MANAGER.value,
    UserRole.SITE_SUPERVISOR.value,
    UserRole.FOREMAN.value,
}

WORKER_ROLES = frozenset({UserRole.WORKER.value})


def require_roles(allowed: frozenset, detail: str = "Insufficient permissions"):
    def dependency(user: CurrentUser = Depends(require_auth)) -> CurrentUser:
        if user.role not in allowed:
            raise ForbiddenError(detail)
        return user

    return dependency


require_admin = require_roles(ADMIN_ROLES)
require_manager = require_roles(MANAGER_ROLES)
require_worker = require_roles(WORKER_ROLES, "This endpoint is only accessible to workers")
