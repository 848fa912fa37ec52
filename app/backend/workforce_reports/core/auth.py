"""Request identity resolution and permission helpers."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum

from fastapi import Depends, Header, HTTPException, status
from sqlalchemy import select
from sqlalchemy.orm import Session

from workforce_reports.core.config import get_settings
from workforce_reports.db.dependencies import get_db_session
from workforce_reports.models.entities import User, UserPermission

logger = logging.getLogger(__name__)


class Permission(str, Enum):
    """Permission names granted by the tenant's role administration."""

    VIEW_TIMESHEETS = "view-timesheets"
    VIEW_EXPENSES = "view-expenses"
    APPROVE_TIMESHEETS = "approve-timesheets"
    APPROVE_EXPENSES = "approve-expenses"
    VIEW_ALL_REPORTS = "view-all-reports"


@dataclass(frozen=True)
class RequestUserContext:
    """Authenticated request actor resolved from headers and DB state."""

    user_id: int
    email: str
    name: str
    role: str
    permissions: frozenset[str]

    @property
    def is_owner(self) -> bool:
        """Whether the actor holds the tenant owner role."""

        return self.role == get_settings().owner_role_name

    def has_permission(self, permission: Permission | str) -> bool:
        """Owners implicitly hold every permission."""

        if self.is_owner:
            return True
        value = permission.value if isinstance(permission, Permission) else permission
        return value in self.permissions

    def has_any_role(self, role_names: list[str] | set[str]) -> bool:
        return self.role in role_names


def _resolve_email(x_user_email: str | None) -> str:
    if x_user_email and x_user_email.strip():
        return x_user_email.strip().lower()

    settings = get_settings()
    if settings.auth_allow_dev_principal:
        return settings.auth_dev_email.strip().lower()

    raise HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Missing identity header. Expected X-USER-EMAIL or enable development principal fallback.",
    )


def load_user_context(db: Session, *, email: str) -> RequestUserContext | None:
    """Build the request context for an existing user, or ``None``.

    Utility exported for tests and background jobs that act on behalf of a user.
    """

    user = db.scalar(select(User).where(User.email == email.strip().lower()))
    if user is None:
        return None

    permissions = db.scalars(select(UserPermission.permission).where(UserPermission.user_id == user.id)).all()
    return RequestUserContext(
        user_id=user.id,
        email=user.email,
        name=user.name,
        role=user.role,
        permissions=frozenset(permissions),
    )


def get_current_user_context(
    x_user_email: str | None = Header(default=None, alias="X-USER-EMAIL"),
    db: Session = Depends(get_db_session),
) -> RequestUserContext:
    """Resolve the current request user with role and granted permissions.

    Identity is asserted by the authenticating proxy; the reporting engine only
    looks the user up and never creates one.
    """

    email = _resolve_email(x_user_email)
    context = load_user_context(db, email=email)
    if context is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Unknown user.",
        )
    return context


def ensure_permission(context: RequestUserContext, *permissions: Permission) -> None:
    """Raise 403 unless the actor holds at least one of ``permissions``."""

    if not any(context.has_permission(permission) for permission in permissions):
        logger.warning(
            "Report refused for missing permission",
            extra={"user_id": context.user_id, "required": ",".join(p.value for p in permissions)},
        )
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Insufficient permissions for this report.",
        )
