"""Period x dimension summaries over time and expense entries."""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from decimal import ROUND_HALF_UP, Decimal
from enum import Enum

from workforce_reports.models.entities import ExpenseEntry, ExpenseStatus, TimeEntry, TimesheetStatus
from workforce_reports.services.directory import TenantDirectory
from workforce_reports.services.periods import Period, period_key

ZERO = Decimal("0.00")
Q2 = Decimal("0.01")
MINUTES_PER_HOUR = Decimal("60")


def _q2(value: Decimal) -> Decimal:
    return value.quantize(Q2, rounding=ROUND_HALF_UP)


class StatusClass(str, Enum):
    APPROVED = "approved"
    PENDING = "pending"
    REJECTED = "rejected"


TIMESHEET_STATUS_CLASS: dict[TimesheetStatus, StatusClass] = {
    TimesheetStatus.DRAFT: StatusClass.PENDING,
    TimesheetStatus.SUBMITTED: StatusClass.PENDING,
    TimesheetStatus.APPROVED: StatusClass.APPROVED,
    TimesheetStatus.CLOSED: StatusClass.APPROVED,
    TimesheetStatus.REJECTED: StatusClass.REJECTED,
}

EXPENSE_STATUS_CLASS: dict[ExpenseStatus, StatusClass] = {
    ExpenseStatus.SUBMITTED: StatusClass.PENDING,
    ExpenseStatus.FINANCE_REVIEW: StatusClass.PENDING,
    ExpenseStatus.FINANCE_APPROVED: StatusClass.APPROVED,
    ExpenseStatus.PAID: StatusClass.APPROVED,
    ExpenseStatus.REJECTED: StatusClass.REJECTED,
}


def statuses_in_class(mapping: dict, status_class: StatusClass) -> list:
    return [status for status, klass in mapping.items() if klass is status_class]


class GroupDimension(str, Enum):
    USER = "user"
    PROJECT = "project"
    CATEGORY = "category"
    STATUS = "status"


TIMESHEET_GROUP_BY = (GroupDimension.USER, GroupDimension.PROJECT)
EXPENSE_GROUP_BY = (GroupDimension.USER, GroupDimension.PROJECT, GroupDimension.CATEGORY, GroupDimension.STATUS)


def entry_minutes(hours: Decimal) -> int:
    """Whole minutes for one entry; rounding happens per entry so sums stay exact."""

    return int((Decimal(hours) * MINUTES_PER_HOUR).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


@dataclass(slots=True)
class _MinutesBucket:
    total_minutes: int = 0
    approved_minutes: int = 0
    pending_minutes: int = 0
    rejected_minutes: int = 0
    total_entries: int = 0

    def add(self, minutes: int, status_class: StatusClass) -> None:
        self.total_minutes += minutes
        self.total_entries += 1
        if status_class is StatusClass.APPROVED:
            self.approved_minutes += minutes
        elif status_class is StatusClass.PENDING:
            self.pending_minutes += minutes
        else:
            self.rejected_minutes += minutes


@dataclass(slots=True)
class _AmountBucket:
    total_amount: Decimal = field(default=ZERO)
    approved_amount: Decimal = field(default=ZERO)
    pending_amount: Decimal = field(default=ZERO)
    rejected_amount: Decimal = field(default=ZERO)
    total_entries: int = 0

    def add(self, amount: Decimal, status_class: StatusClass) -> None:
        self.total_amount += amount
        self.total_entries += 1
        if status_class is StatusClass.APPROVED:
            self.approved_amount += amount
        elif status_class is StatusClass.PENDING:
            self.pending_amount += amount
        else:
            self.rejected_amount += amount


def _group_values(
    entry: TimeEntry | ExpenseEntry,
    group_by: Sequence[GroupDimension],
    directory: TenantDirectory,
) -> tuple[object, ...]:
    values: list[object] = []
    for dimension in group_by:
        if dimension is GroupDimension.USER:
            values.append(directory.user_id_for(entry.technician_id))
        elif dimension is GroupDimension.PROJECT:
            values.append(entry.project_id)
        elif dimension is GroupDimension.CATEGORY:
            values.append(entry.category)
        else:
            values.append(ExpenseStatus(entry.status).value)
    return tuple(values)


def _dimension_fields(
    group_by: Sequence[GroupDimension],
    values: tuple[object, ...],
    user_labels: dict[int, str],
    directory: TenantDirectory,
) -> tuple[dict[str, object], tuple[object, ...]]:
    fields: dict[str, object] = {}
    sort_parts: list[object] = []
    for dimension, value in zip(group_by, values):
        if dimension is GroupDimension.USER:
            label = user_labels.get(value, "")
            fields["user_id"] = value
            fields["user_name"] = label
            sort_parts.append((label.casefold(), value))
        elif dimension is GroupDimension.PROJECT:
            label = directory.project_label(value)
            fields["project_id"] = value
            fields["project_name"] = label
            sort_parts.append((label.casefold(), value))
        else:
            fields[dimension.value] = value
            sort_parts.append((str(value).casefold(), 0))
    return fields, tuple(sort_parts)


def summarize_time_entries(
    entries: Iterable[TimeEntry],
    *,
    group_by: Sequence[GroupDimension],
    period: Period,
    directory: TenantDirectory,
) -> list[dict[str, object]]:
    """One row per (period key, group-by tuple) present in ``entries``.

    ``approved_minutes + pending_minutes + rejected_minutes == total_minutes``
    holds for every row.
    """

    buckets: dict[tuple[str, tuple[object, ...]], _MinutesBucket] = {}
    user_labels: dict[int, str] = {}
    for entry in entries:
        values = _group_values(entry, group_by, directory)
        if GroupDimension.USER in group_by:
            user_labels.setdefault(directory.user_id_for(entry.technician_id), directory.user_label(entry.technician_id))
        key = (period_key(entry.date, period), values)
        bucket = buckets.setdefault(key, _MinutesBucket())
        bucket.add(entry_minutes(entry.hours_worked), TIMESHEET_STATUS_CLASS[TimesheetStatus(entry.status)])

    rows: list[tuple[tuple[object, ...], dict[str, object]]] = []
    for (period_value, values), bucket in buckets.items():
        fields, sort_parts = _dimension_fields(group_by, values, user_labels, directory)
        row: dict[str, object] = {"period": period_value, **fields}
        row.update(
            {
                "total_minutes": bucket.total_minutes,
                "approved_minutes": bucket.approved_minutes,
                "pending_minutes": bucket.pending_minutes,
                "rejected_minutes": bucket.rejected_minutes,
                "total_entries": bucket.total_entries,
            }
        )
        rows.append(((period_value, *sort_parts), row))

    rows.sort(key=lambda item: item[0])
    return [row for _, row in rows]


def summarize_expenses(
    entries: Iterable[ExpenseEntry],
    *,
    group_by: Sequence[GroupDimension],
    period: Period,
    directory: TenantDirectory,
) -> list[dict[str, object]]:
    """Expense counterpart of :func:`summarize_time_entries`.

    Amounts are accumulated as ``Decimal`` and only rounded when rendered.
    """

    buckets: dict[tuple[str, tuple[object, ...]], _AmountBucket] = {}
    user_labels: dict[int, str] = {}
    for entry in entries:
        values = _group_values(entry, group_by, directory)
        if GroupDimension.USER in group_by:
            user_labels.setdefault(directory.user_id_for(entry.technician_id), directory.user_label(entry.technician_id))
        key = (period_key(entry.date, period), values)
        bucket = buckets.setdefault(key, _AmountBucket())
        bucket.add(Decimal(entry.amount), EXPENSE_STATUS_CLASS[ExpenseStatus(entry.status)])

    rows: list[tuple[tuple[object, ...], dict[str, object]]] = []
    for (period_value, values), bucket in buckets.items():
        fields, sort_parts = _dimension_fields(group_by, values, user_labels, directory)
        row: dict[str, object] = {"period": period_value, **fields}
        row.update(
            {
                "total_amount": float(_q2(bucket.total_amount)),
                "approved_amount": float(_q2(bucket.approved_amount)),
                "pending_amount": float(_q2(bucket.pending_amount)),
                "rejected_amount": float(_q2(bucket.rejected_amount)),
                "total_entries": bucket.total_entries,
            }
        )
        rows.append(((period_value, *sort_parts), row))

    rows.sort(key=lambda item: item[0])
    return [row for _, row in rows]
