"""Report service: request validation, scoping and aggregation dispatch."""

from __future__ import annotations

import logging
from collections.abc import Iterator
from dataclasses import dataclass, field
from datetime import date, datetime, time, timedelta
from decimal import Decimal
from enum import Enum

from fastapi import HTTPException, status
from sqlalchemy.orm import Session

from workforce_reports.core.auth import Permission, RequestUserContext, ensure_permission
from workforce_reports.core.config import get_settings
from workforce_reports.models.entities import ExpenseEntry, ExpenseStatus, TimeEntry, TimesheetStatus
from workforce_reports.repositories.reporting_repository import ReportingRepository
from workforce_reports.services.directory import TenantDirectory
from workforce_reports.services.exports import (
    ExportFormat,
    ExportStream,
    ExportTable,
    pivot_export_table,
    render_export,
    rows_from_dicts,
)
from workforce_reports.services.heatmap import build_heatmap
from workforce_reports.services.periods import Period, span_days
from workforce_reports.services.pivot import (
    PivotFact,
    PivotInclude,
    PivotMetric,
    PivotSort,
    PivotTable,
    build_pivot,
    pivot_payload,
)
from workforce_reports.services.scoping import (
    ReportScope,
    ScopeMode,
    narrow_to_project,
    narrow_to_user,
    resolve_scope,
)
from workforce_reports.services.summary import (
    EXPENSE_GROUP_BY,
    EXPENSE_STATUS_CLASS,
    TIMESHEET_GROUP_BY,
    TIMESHEET_STATUS_CLASS,
    GroupDimension,
    StatusClass,
    entry_minutes,
    statuses_in_class,
    summarize_expenses,
    summarize_time_entries,
)

logger = logging.getLogger(__name__)

PIVOT_ROW_DIMENSIONS = ("user",)
PIVOT_COLUMN_DIMENSIONS = ("project",)

TIMESHEET_EXPORT_COLUMNS = [
    "id",
    "date",
    "technician_id",
    "technician_name",
    "user_id",
    "user_name",
    "project_id",
    "project_name",
    "task_id",
    "location_id",
    "hours_worked",
    "minutes",
    "status",
    "created_at",
]

EXPENSE_EXPORT_COLUMNS = [
    "id",
    "date",
    "technician_id",
    "technician_name",
    "user_id",
    "user_name",
    "project_id",
    "project_name",
    "category",
    "amount",
    "status",
    "description",
    "created_at",
]

HEATMAP_EXPORT_COLUMNS = [
    "date",
    "timesheets_pending",
    "timesheets_approved",
    "expenses_pending",
    "expenses_approved",
    "total_pending",
]


class ReportKind(str, Enum):
    TIMESHEETS = "timesheets"
    EXPENSES = "expenses"

    @property
    def view_permission(self) -> Permission:
        if self is ReportKind.TIMESHEETS:
            return Permission.VIEW_TIMESHEETS
        return Permission.VIEW_EXPENSES


@dataclass(slots=True)
class SummaryQuery:
    from_date: date
    to_date: date
    group_by: list[str]
    period: str
    user_id: int | None = None
    project_id: int | None = None


@dataclass(slots=True)
class PivotQuery:
    period: str
    from_date: date
    to_date: date
    rows: list[str]
    columns: list[str]
    metrics: list[str] | None = None
    include: PivotInclude = field(default_factory=PivotInclude)
    user_id: int | None = None
    project_id: int | None = None
    task_id: int | None = None
    location_id: int | None = None
    status: str | None = None
    category: str | None = None
    sort_rows: str = "name"
    sort_columns: str = "name"


@dataclass(slots=True)
class HeatmapQuery:
    from_date: date
    to_date: date
    include_timesheets: bool
    include_expenses: bool


@dataclass(slots=True)
class EntryExportQuery:
    from_date: date
    to_date: date
    user_id: int | None = None
    project_id: int | None = None
    status: str | None = None
    category: str | None = None


class FieldErrors:
    """Collects per-field validation problems and raises them together."""

    def __init__(self) -> None:
        self.items: list[dict[str, str]] = []

    def add(self, field_path: str, message: str) -> None:
        self.items.append({"field": field_path, "message": message})

    def raise_if_any(self) -> None:
        if self.items:
            raise HTTPException(status_code=422, detail=self.items)


def _parse_choice(errors: FieldErrors, enum_cls, value: str | None, field_path: str, allowed=None):
    allowed_values = [member.value for member in (allowed or enum_cls)]
    normalized = (value or "").strip().lower()
    if normalized not in allowed_values:
        errors.add(field_path, f"Unsupported value '{value}'. Allowed: {', '.join(allowed_values)}.")
        return None
    return enum_cls(normalized)


def _creation_window(from_date: date, to_date: date) -> tuple[datetime, datetime]:
    return datetime.combine(from_date, time.min), datetime.combine(to_date + timedelta(days=1), time.min)


@dataclass(slots=True)
class _PivotPlan:
    period: Period
    metrics: tuple[PivotMetric, ...]
    row_sort: PivotSort
    column_sort: PivotSort
    statuses: list | None


class ReportingService:
    """Read-only reporting over one tenant database."""

    def __init__(self, db: Session) -> None:
        self.db = db
        self.settings = get_settings()
        self.repo = ReportingRepository(db, batch_size=self.settings.repository_batch_size)

    # ---------- Access / scope ----------
    def _load_scope(
        self,
        *,
        context: RequestUserContext,
        permission: Permission,
        user_id: int | None = None,
        project_id: int | None = None,
    ) -> tuple[ReportScope, TenantDirectory]:
        ensure_permission(context, permission)

        technicians = self.repo.list_technicians()
        projects = self.repo.list_projects()
        users = self.repo.get_users({technician.user_id for technician in technicians})
        directory = TenantDirectory.build(technicians=technicians, users=users.values(), projects=projects)

        scope = resolve_scope(
            context,
            memberships=self.repo.list_memberships(),
            technicians=technicians,
            project_ids=[project.id for project in projects],
        )
        scope = narrow_to_user(scope, user_id, technicians=technicians)
        scope = narrow_to_project(scope, project_id)
        return scope, directory

    def access_scope(self, *, context: RequestUserContext, permission_name: str) -> dict[str, object]:
        errors = FieldErrors()
        permission = _parse_choice(errors, Permission, permission_name, "permission")
        errors.raise_if_any()

        scope, _ = self._load_scope(context=context, permission=permission)
        return {
            "mode": scope.mode.value,
            "technician_ids": sorted(scope.technician_ids),
            "project_ids": sorted(scope.project_ids),
        }

    # ---------- Validation ----------
    def _validate_range(
        self,
        errors: FieldErrors,
        from_date: date,
        to_date: date,
        *,
        from_field: str,
        range_field: str,
        max_days: int,
    ) -> None:
        if from_date > to_date:
            errors.add(from_field, f"{from_field} must be less than or equal to the end of the range.")
            return
        if span_days(from_date, to_date) > max_days:
            errors.add(range_field, f"range must be at most {max_days} days.")

    def _validate_group_by(
        self,
        errors: FieldErrors,
        group_by: list[str],
        allowed: tuple[GroupDimension, ...],
    ) -> list[GroupDimension]:
        if not group_by:
            errors.add("group_by", "group_by must include at least one of: " + ", ".join(d.value for d in allowed))
            return []

        parsed: list[GroupDimension] = []
        for index, value in enumerate(group_by):
            dimension = _parse_choice(errors, GroupDimension, value, f"group_by.{index}", allowed)
            if dimension is not None and dimension not in parsed:
                parsed.append(dimension)
        return parsed

    def _validate_status_filter(self, errors: FieldErrors, kind: ReportKind, value: str | None, field_path: str):
        if value is None or value == "":
            return None

        normalized = value.strip().lower()
        if kind is ReportKind.TIMESHEETS:
            mapping, enum_cls = TIMESHEET_STATUS_CLASS, TimesheetStatus
        else:
            mapping, enum_cls = EXPENSE_STATUS_CLASS, ExpenseStatus

        if normalized in {klass.value for klass in StatusClass}:
            return statuses_in_class(mapping, StatusClass(normalized))
        if normalized in {member.value for member in enum_cls}:
            return [enum_cls(normalized)]

        allowed = sorted({member.value for member in enum_cls} | {klass.value for klass in StatusClass})
        errors.add(field_path, f"Unsupported status '{value}'. Allowed: {', '.join(allowed)}.")
        return None

    def _validate_pivot(self, errors: FieldErrors, kind: ReportKind, query: PivotQuery) -> _PivotPlan:
        period = _parse_choice(errors, Period, query.period, "period")
        self._validate_range(
            errors,
            query.from_date,
            query.to_date,
            from_field="range.from",
            range_field="range",
            max_days=self.settings.report_max_days,
        )

        for axis, values, allowed in (
            ("rows", query.rows, PIVOT_ROW_DIMENSIONS),
            ("columns", query.columns, PIVOT_COLUMN_DIMENSIONS),
        ):
            if not values:
                errors.add(f"dimensions.{axis}", f"dimensions.{axis} requires exactly one dimension.")
                continue
            if len(values) > 1:
                errors.add(f"dimensions.{axis}", f"dimensions.{axis} accepts a single dimension.")
            for index, value in enumerate(values):
                if value not in allowed:
                    errors.add(
                        f"dimensions.{axis}.{index}",
                        f"Unsupported {axis[:-1]} dimension '{value}'. Allowed: {', '.join(allowed)}.",
                    )

        allowed_metric = PivotMetric.HOURS if kind is ReportKind.TIMESHEETS else PivotMetric.AMOUNT
        metrics: list[PivotMetric] = []
        for index, value in enumerate(query.metrics or [allowed_metric.value]):
            metric = _parse_choice(errors, PivotMetric, value, f"metrics.{index}", [allowed_metric])
            if metric is not None and metric not in metrics:
                metrics.append(metric)

        row_sort = _parse_choice(errors, PivotSort, query.sort_rows, "sort.rows")
        column_sort = _parse_choice(errors, PivotSort, query.sort_columns, "sort.columns")
        statuses = self._validate_status_filter(errors, kind, query.status, "filters.status")

        return _PivotPlan(
            period=period,
            metrics=tuple(metrics),
            row_sort=row_sort,
            column_sort=column_sort,
            statuses=statuses,
        )

    @staticmethod
    def _validate_format(errors: FieldErrors, format_name: str) -> ExportFormat | None:
        return _parse_choice(errors, ExportFormat, format_name, "format")

    # ---------- Summary ----------
    def _summary(
        self,
        *,
        context: RequestUserContext,
        kind: ReportKind,
        query: SummaryQuery,
        errors: FieldErrors,
    ) -> dict[str, object]:
        allowed = TIMESHEET_GROUP_BY if kind is ReportKind.TIMESHEETS else EXPENSE_GROUP_BY
        period = _parse_choice(errors, Period, query.period, "period")
        group_by = self._validate_group_by(errors, query.group_by, allowed)
        self._validate_range(
            errors,
            query.from_date,
            query.to_date,
            from_field="from",
            range_field="to",
            max_days=self.settings.report_max_days,
        )
        errors.raise_if_any()

        scope, directory = self._load_scope(
            context=context,
            permission=kind.view_permission,
            user_id=query.user_id,
            project_id=query.project_id,
        )

        if kind is ReportKind.TIMESHEETS:
            rows = summarize_time_entries(
                self.repo.iter_time_entries(
                    from_date=query.from_date,
                    to_date=query.to_date,
                    technician_ids=scope.technician_ids,
                    project_ids=scope.project_ids,
                ),
                group_by=group_by,
                period=period,
                directory=directory,
            )
        else:
            rows = summarize_expenses(
                self.repo.iter_expenses(
                    from_date=query.from_date,
                    to_date=query.to_date,
                    technician_ids=scope.technician_ids,
                    project_ids=scope.project_ids,
                ),
                group_by=group_by,
                period=period,
                directory=directory,
            )

        logger.info(
            "Summary report executed",
            extra={"report_key": f"{kind.value}_summary", "scope": scope.mode.value, "rows": len(rows)},
        )
        return {
            "meta": {
                "from": query.from_date.isoformat(),
                "to": query.to_date.isoformat(),
                "group_by": [dimension.value for dimension in group_by],
                "period": period.value,
                "scoped": scope.mode.value,
            },
            "rows": rows,
        }

    def timesheet_summary(self, *, context: RequestUserContext, query: SummaryQuery) -> dict[str, object]:
        return self._summary(context=context, kind=ReportKind.TIMESHEETS, query=query, errors=FieldErrors())

    def expense_summary(self, *, context: RequestUserContext, query: SummaryQuery) -> dict[str, object]:
        return self._summary(context=context, kind=ReportKind.EXPENSES, query=query, errors=FieldErrors())

    # ---------- Pivot ----------
    def _pivot_facts(
        self,
        kind: ReportKind,
        query: PivotQuery,
        plan: _PivotPlan,
        scope: ReportScope,
        directory: TenantDirectory,
    ) -> Iterator[PivotFact]:
        if kind is ReportKind.TIMESHEETS:
            entries = self.repo.iter_time_entries(
                from_date=query.from_date,
                to_date=query.to_date,
                technician_ids=scope.technician_ids,
                project_ids=scope.project_ids,
                statuses=plan.statuses,
                task_id=query.task_id,
                location_id=query.location_id,
            )
        else:
            entries = self.repo.iter_expenses(
                from_date=query.from_date,
                to_date=query.to_date,
                technician_ids=scope.technician_ids,
                project_ids=scope.project_ids,
                statuses=plan.statuses,
                category=query.category,
            )

        for entry in entries:
            if kind is ReportKind.TIMESHEETS:
                values = {PivotMetric.HOURS: Decimal(entry.hours_worked)}
            else:
                values = {PivotMetric.AMOUNT: Decimal(entry.amount)}
            yield PivotFact(
                row_id=directory.user_id_for(entry.technician_id),
                row_label=directory.user_label(entry.technician_id),
                column_id=entry.project_id,
                column_label=directory.project_label(entry.project_id),
                values=values,
            )

    def _build_pivot(
        self,
        *,
        context: RequestUserContext,
        kind: ReportKind,
        query: PivotQuery,
        errors: FieldErrors,
    ) -> tuple[PivotTable, ReportScope, _PivotPlan]:
        plan = self._validate_pivot(errors, kind, query)
        errors.raise_if_any()

        scope, directory = self._load_scope(
            context=context,
            permission=kind.view_permission,
            user_id=query.user_id,
            project_id=query.project_id,
        )
        table = build_pivot(
            self._pivot_facts(kind, query, plan, scope, directory),
            metrics=plan.metrics,
            row_sort=plan.row_sort,
            column_sort=plan.column_sort,
        )
        logger.info(
            "Pivot report executed",
            extra={
                "report_key": f"{kind.value}_pivot",
                "scope": scope.mode.value,
                "rows": len(table.rows),
                "columns": len(table.columns),
            },
        )
        return table, scope, plan

    def _pivot(self, *, context: RequestUserContext, kind: ReportKind, query: PivotQuery) -> dict[str, object]:
        table, scope, plan = self._build_pivot(context=context, kind=kind, query=query, errors=FieldErrors())
        payload = pivot_payload(
            table,
            include=query.include,
            row_dimension=PIVOT_ROW_DIMENSIONS[0],
            column_dimension=PIVOT_COLUMN_DIMENSIONS[0],
        )
        payload["meta"] = {
            "period": plan.period.value,
            "from": query.from_date.isoformat(),
            "to": query.to_date.isoformat(),
            "metrics": [metric.value for metric in plan.metrics],
            "scoped": scope.mode.value,
        }
        return payload

    def timesheet_pivot(self, *, context: RequestUserContext, query: PivotQuery) -> dict[str, object]:
        return self._pivot(context=context, kind=ReportKind.TIMESHEETS, query=query)

    def expense_pivot(self, *, context: RequestUserContext, query: PivotQuery) -> dict[str, object]:
        return self._pivot(context=context, kind=ReportKind.EXPENSES, query=query)

    # ---------- Heatmap ----------
    def _heatmap_days(self, *, context: RequestUserContext, query: HeatmapQuery, errors: FieldErrors):
        self._validate_range(
            errors,
            query.from_date,
            query.to_date,
            from_field="range.from",
            range_field="range",
            max_days=self.settings.heatmap_max_days,
        )
        if not query.include_timesheets and not query.include_expenses:
            errors.add("include", "At least one include.* must be true.")
        errors.raise_if_any()

        if not context.has_any_role(self.settings.approval_role_names):
            logger.warning("Approval heatmap refused", extra={"user_id": context.user_id})
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Approval authority is required for this report.",
            )

        technicians = self.repo.list_technicians()
        technician_ids = [technician.id for technician in technicians]
        project_ids = [project.id for project in self.repo.list_projects()]
        created_from, created_before = _creation_window(query.from_date, query.to_date)

        timesheets = None
        if query.include_timesheets and context.has_permission(Permission.APPROVE_TIMESHEETS):
            timesheets = self.repo.iter_time_entries_created(
                created_from=created_from,
                created_before=created_before,
                technician_ids=technician_ids,
                project_ids=project_ids,
            )
        expenses = None
        if query.include_expenses and context.has_permission(Permission.APPROVE_EXPENSES):
            expenses = self.repo.iter_expenses_created(
                created_from=created_from,
                created_before=created_before,
                technician_ids=technician_ids,
                project_ids=project_ids,
            )

        days = build_heatmap(timesheets=timesheets, expenses=expenses)
        logger.info(
            "Approval heatmap executed",
            extra={"report_key": "approvals_heatmap", "scope": ScopeMode.ALL.value, "days": len(days)},
        )
        return days

    def approval_heatmap(self, *, context: RequestUserContext, query: HeatmapQuery) -> dict[str, object]:
        days = self._heatmap_days(context=context, query=query, errors=FieldErrors())
        return {
            "meta": {
                "from": query.from_date.isoformat(),
                "to": query.to_date.isoformat(),
                "scoped": ScopeMode.ALL.value,
            },
            "days": days,
        }

    # ---------- Exports ----------
    def _render(self, table: ExportTable, *, report_key: str, from_date: date, to_date: date, export_format):
        return render_export(
            table,
            report_key=report_key,
            from_date=from_date,
            to_date=to_date,
            export_format=export_format,
            chunk_size=self.settings.export_chunk_size,
        )

    def _export_pivot(
        self,
        *,
        context: RequestUserContext,
        kind: ReportKind,
        query: PivotQuery,
        format_name: str,
    ) -> ExportStream:
        errors = FieldErrors()
        export_format = self._validate_format(errors, format_name)
        table, _, _ = self._build_pivot(context=context, kind=kind, query=query, errors=errors)
        return self._render(
            pivot_export_table(table, include=query.include, row_heading=PIVOT_ROW_DIMENSIONS[0].title()),
            report_key=f"{kind.value}_pivot",
            from_date=query.from_date,
            to_date=query.to_date,
            export_format=export_format,
        )

    def export_timesheet_pivot(self, *, context: RequestUserContext, query: PivotQuery, format_name: str):
        return self._export_pivot(context=context, kind=ReportKind.TIMESHEETS, query=query, format_name=format_name)

    def export_expense_pivot(self, *, context: RequestUserContext, query: PivotQuery, format_name: str):
        return self._export_pivot(context=context, kind=ReportKind.EXPENSES, query=query, format_name=format_name)

    def _export_summary(
        self,
        *,
        context: RequestUserContext,
        kind: ReportKind,
        query: SummaryQuery,
        format_name: str,
    ) -> ExportStream:
        errors = FieldErrors()
        export_format = self._validate_format(errors, format_name)
        payload = self._summary(context=context, kind=kind, query=query, errors=errors)

        columns = ["period"]
        for dimension in payload["meta"]["group_by"]:
            if dimension in ("user", "project"):
                columns.extend([f"{dimension}_id", f"{dimension}_name"])
            else:
                columns.append(dimension)
        if kind is ReportKind.TIMESHEETS:
            columns.extend(["total_minutes", "approved_minutes", "pending_minutes", "rejected_minutes"])
        else:
            columns.extend(["total_amount", "approved_amount", "pending_amount", "rejected_amount"])
        columns.append("total_entries")

        return self._render(
            ExportTable(columns=columns, rows=rows_from_dicts(columns, payload["rows"]), sheet_title="summary"),
            report_key=f"{kind.value}_summary",
            from_date=query.from_date,
            to_date=query.to_date,
            export_format=export_format,
        )

    def export_timesheet_summary(self, *, context: RequestUserContext, query: SummaryQuery, format_name: str):
        return self._export_summary(context=context, kind=ReportKind.TIMESHEETS, query=query, format_name=format_name)

    def export_expense_summary(self, *, context: RequestUserContext, query: SummaryQuery, format_name: str):
        return self._export_summary(context=context, kind=ReportKind.EXPENSES, query=query, format_name=format_name)

    def export_approval_heatmap(
        self,
        *,
        context: RequestUserContext,
        query: HeatmapQuery,
        format_name: str,
    ) -> ExportStream:
        errors = FieldErrors()
        export_format = self._validate_format(errors, format_name)
        days = self._heatmap_days(context=context, query=query, errors=errors)
        rows = (
            [
                day,
                counts["timesheets"]["pending"],
                counts["timesheets"]["approved"],
                counts["expenses"]["pending"],
                counts["expenses"]["approved"],
                counts["total_pending"],
            ]
            for day, counts in days.items()
        )
        return self._render(
            ExportTable(columns=HEATMAP_EXPORT_COLUMNS, rows=rows, sheet_title="heatmap"),
            report_key="approvals_heatmap",
            from_date=query.from_date,
            to_date=query.to_date,
            export_format=export_format,
        )

    def _timesheet_rows(self, entries: Iterator[TimeEntry], directory: TenantDirectory) -> Iterator[list[object]]:
        for entry in entries:
            technician = directory.technician(entry.technician_id)
            yield [
                entry.id,
                entry.date,
                entry.technician_id,
                technician.name,
                technician.user_id,
                directory.user_label(entry.technician_id),
                entry.project_id,
                directory.project_label(entry.project_id),
                entry.task_id,
                entry.location_id,
                entry.hours_worked,
                entry_minutes(entry.hours_worked),
                entry.status,
                entry.created_at,
            ]

    def _expense_rows(self, entries: Iterator[ExpenseEntry], directory: TenantDirectory) -> Iterator[list[object]]:
        for entry in entries:
            technician = directory.technician(entry.technician_id)
            yield [
                entry.id,
                entry.date,
                entry.technician_id,
                technician.name,
                technician.user_id,
                directory.user_label(entry.technician_id),
                entry.project_id,
                directory.project_label(entry.project_id),
                entry.category,
                entry.amount,
                entry.status,
                entry.description,
                entry.created_at,
            ]

    def _export_entries(
        self,
        *,
        context: RequestUserContext,
        kind: ReportKind,
        query: EntryExportQuery,
        format_name: str,
    ) -> ExportStream:
        errors = FieldErrors()
        export_format = self._validate_format(errors, format_name)
        self._validate_range(
            errors,
            query.from_date,
            query.to_date,
            from_field="filters.from",
            range_field="filters.to",
            max_days=self.settings.report_max_days,
        )
        statuses = self._validate_status_filter(errors, kind, query.status, "filters.status")
        errors.raise_if_any()

        scope, directory = self._load_scope(
            context=context,
            permission=kind.view_permission,
            user_id=query.user_id,
            project_id=query.project_id,
        )
        logger.info("Entry export started", extra={"report_key": kind.value, "scope": scope.mode.value})

        if kind is ReportKind.TIMESHEETS:
            entries = self.repo.iter_time_entries(
                from_date=query.from_date,
                to_date=query.to_date,
                technician_ids=scope.technician_ids,
                project_ids=scope.project_ids,
                statuses=statuses,
            )
            table = ExportTable(
                columns=TIMESHEET_EXPORT_COLUMNS,
                rows=self._timesheet_rows(entries, directory),
                sheet_title="timesheets",
            )
        else:
            entries = self.repo.iter_expenses(
                from_date=query.from_date,
                to_date=query.to_date,
                technician_ids=scope.technician_ids,
                project_ids=scope.project_ids,
                statuses=statuses,
                category=query.category,
            )
            table = ExportTable(
                columns=EXPENSE_EXPORT_COLUMNS,
                rows=self._expense_rows(entries, directory),
                sheet_title="expenses",
            )

        return self._render(
            table,
            report_key=kind.value,
            from_date=query.from_date,
            to_date=query.to_date,
            export_format=export_format,
        )

    def export_timesheets(self, *, context: RequestUserContext, query: EntryExportQuery, format_name: str):
        return self._export_entries(context=context, kind=ReportKind.TIMESHEETS, query=query, format_name=format_name)

    def export_expenses(self, *, context: RequestUserContext, query: EntryExportQuery, format_name: str):
        return self._export_entries(context=context, kind=ReportKind.EXPENSES, query=query, format_name=format_name)
