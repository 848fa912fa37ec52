"""ORM model package."""

from workforce_reports.models.entities import (
    ExpenseEntry,
    ExpenseStatus,
    MembershipRole,
    Project,
    ProjectMember,
    Technician,
    TimeEntry,
    TimesheetStatus,
    User,
    UserPermission,
)

__all__ = [
    "ExpenseEntry",
    "ExpenseStatus",
    "MembershipRole",
    "Project",
    "ProjectMember",
    "Technician",
    "TimeEntry",
    "TimesheetStatus",
    "User",
    "UserPermission",
]
