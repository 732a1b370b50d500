"""
Role-based access control (RBAC) dependency factory.

Usage:
    @router.get("/admin-only")
    async def admin_endpoint(user = Depends(require_role("admin"))):
        ...

    router = APIRouter(dependencies=[Depends(require_role("worker"))])
"""
from fastapi import Depends

from complaint_tracker.core.errors import ForbiddenError
from complaint_tracker.core.security import CurrentUser, get_current_user


def require_role(*roles: str):
    """
    Dependency factory that enforces the caller's role is in *roles.
    Accepts any authenticated user when called with no role arguments.
    """

    async def _check_role(current_user: CurrentUser = Depends(get_current_user)) -> CurrentUser:
        if roles and current_user.role not in roles:
            raise ForbiddenError(f"Access denied. Required role: {' or '.join(roles)}")
        return current_user

    return _check_role
