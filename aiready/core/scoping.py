# aiready/core/scoping.py
from typing import Callable, Iterable, Optional

from fastapi import Depends

from aiready.core.auth import get_current_user
from aiready.core.errors import AuthorizationError
from aiready.models.user import User
from aiready.models.ai_system import AISystem

# ---- Role helpers ------------------------------------------------------------

ADMIN_ROLES = {"admin"}
REVIEWER_ROLES = {"admin", "compliance_officer"}


def _role(user: Optional[User]) -> str:
    return (user.role or "").strip().lower() if user else ""


def is_admin(user: User) -> bool:
    return _role(user) in ADMIN_ROLES


def is_reviewer(user: User) -> bool:
    """May approve/reject assessments and answer feedback."""
    return _role(user) in REVIEWER_ROLES


def can_delete_system(user: User, system: AISystem) -> bool:
    return is_admin(user) or (system.created_by is not None and system.created_by == user.id)


# ---- Dependencies ------------------------------------------------------------

def require_roles(roles: Iterable[str]) -> Callable[..., User]:
    allowed = {r.lower() for r in roles}

    def _dep(current_user: User = Depends(get_current_user)) -> User:
        if _role(current_user) not in allowed:
            raise AuthorizationError(details={"required_roles": sorted(allowed)})
        return current_user

    return _dep


require_reviewer = require_roles(REVIEWER_ROLES)
