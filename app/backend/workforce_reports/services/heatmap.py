"""Approval workload heatmap bucketed by creation day."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass

from workforce_reports.models.entities import ExpenseEntry, ExpenseStatus, TimeEntry, TimesheetStatus
from workforce_reports.services.summary import EXPENSE_STATUS_CLASS, TIMESHEET_STATUS_CLASS, StatusClass


@dataclass(slots=True)
class _DayCounts:
    timesheets_pending: int = 0
    timesheets_approved: int = 0
    expenses_pending: int = 0
    expenses_approved: int = 0


def build_heatmap(
    *,
    timesheets: Iterable[TimeEntry] | None,
    expenses: Iterable[ExpenseEntry] | None,
) -> dict[str, dict[str, object]]:
    """Count pending/approved items per ``created_at`` day.

    Pass ``None`` for an entity kind that is not included; it then contributes
    neither counts nor ``total_pending``. Days without a pending or approved
    item are omitted.
    """

    days: dict[str, _DayCounts] = {}

    for entry in timesheets or ():
        status_class = TIMESHEET_STATUS_CLASS[TimesheetStatus(entry.status)]
        if status_class is StatusClass.REJECTED:
            continue
        counts = days.setdefault(entry.created_at.date().isoformat(), _DayCounts())
        if status_class is StatusClass.PENDING:
            counts.timesheets_pending += 1
        else:
            counts.timesheets_approved += 1

    for entry in expenses or ():
        status_class = EXPENSE_STATUS_CLASS[ExpenseStatus(entry.status)]
        if status_class is StatusClass.REJECTED:
            continue
        counts = days.setdefault(entry.created_at.date().isoformat(), _DayCounts())
        if status_class is StatusClass.PENDING:
            counts.expenses_pending += 1
        else:
            counts.expenses_approved += 1

    return {
        day: {
            "timesheets": {"pending": counts.timesheets_pending, "approved": counts.timesheets_approved},
            "expenses": {"pending": counts.expenses_pending, "approved": counts.expenses_approved},
            "total_pending": counts.timesheets_pending + counts.expenses_pending,
        }
        for day, counts in sorted(days.items())
    }
