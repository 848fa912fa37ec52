"""Visibility scoping for report queries.

Owners (and holders of the tenant-wide report permission) see every technician
and project. Everyone else sees the projects they are a member of, and every
technician who is a member of at least one of those projects.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass, replace
from enum import Enum
from typing import Protocol

from workforce_reports.core.auth import RequestUserContext
from workforce_reports.core.config import get_settings
from workforce_reports.models.entities import MembershipRole

logger = logging.getLogger(__name__)


class ScopeMode(str, Enum):
    ALL = "all"
    MEMBERSHIP = "membership"


class MembershipLike(Protocol):
    project_id: int
    user_id: int
    project_role: MembershipRole
    expense_role: MembershipRole
    finance_role: MembershipRole


class TechnicianLike(Protocol):
    id: int
    user_id: int


@dataclass(frozen=True)
class ReportScope:
    """Resolved visibility for one request."""

    mode: ScopeMode
    technician_ids: frozenset[int]
    project_ids: frozenset[int]

    def allows(self, *, technician_id: int, project_id: int) -> bool:
        return technician_id in self.technician_ids and project_id in self.project_ids

    @property
    def is_empty(self) -> bool:
        return not self.technician_ids or not self.project_ids


def _is_member(row: MembershipLike) -> bool:
    return any(
        MembershipRole(role) is not MembershipRole.NONE
        for role in (row.project_role, row.expense_role, row.finance_role)
    )


def resolve_scope(
    context: RequestUserContext,
    *,
    memberships: Iterable[MembershipLike],
    technicians: Iterable[TechnicianLike],
    project_ids: Iterable[int],
) -> ReportScope:
    """Compute the technician/project sets visible to ``context``.

    ``memberships``, ``technicians`` and ``project_ids`` describe the whole
    tenant; the function does not touch storage.
    """

    technicians = list(technicians)
    if context.is_owner or context.has_permission(get_settings().tenant_wide_permission):
        return ReportScope(
            mode=ScopeMode.ALL,
            technician_ids=frozenset(technician.id for technician in technicians),
            project_ids=frozenset(project_ids),
        )

    active_rows = [row for row in memberships if _is_member(row)]
    visible_projects = frozenset(row.project_id for row in active_rows if row.user_id == context.user_id)
    peer_user_ids = {row.user_id for row in active_rows if row.project_id in visible_projects}
    visible_technicians = frozenset(technician.id for technician in technicians if technician.user_id in peer_user_ids)
    return ReportScope(
        mode=ScopeMode.MEMBERSHIP,
        technician_ids=visible_technicians,
        project_ids=visible_projects,
    )


def narrow_to_user(
    scope: ReportScope,
    user_id: int | None,
    *,
    technicians: Iterable[TechnicianLike],
) -> ReportScope:
    """Apply a caller-supplied ``user_id`` filter without widening visibility.

    Under membership scope a filter that does not intersect the visible set is
    ignored rather than producing an empty (or leaking) result.
    """

    if user_id is None:
        return scope

    owned = frozenset(technician.id for technician in technicians if technician.user_id == user_id)
    narrowed = scope.technician_ids & owned
    if scope.mode is ScopeMode.MEMBERSHIP and not narrowed:
        logger.warning(
            "Ignoring user_id filter outside membership scope",
            extra={"filter_user_id": user_id},
        )
        return scope
    return replace(scope, technician_ids=narrowed)


def narrow_to_project(scope: ReportScope, project_id: int | None) -> ReportScope:
    """Same rule as :func:`narrow_to_user`, for an explicit project filter."""

    if project_id is None:
        return scope

    narrowed = scope.project_ids & {project_id}
    if scope.mode is ScopeMode.MEMBERSHIP and not narrowed:
        logger.warning(
            "Ignoring project_id filter outside membership scope",
            extra={"filter_project_id": project_id},
        )
        return scope
    return replace(scope, project_ids=narrowed)
