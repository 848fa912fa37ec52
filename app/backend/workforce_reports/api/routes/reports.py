"""Summary, pivot and approval heatmap report endpoints."""

from __future__ import annotations

from datetime import date

from fastapi import APIRouter, Depends
from pydantic import BaseModel, ConfigDict, Field
from sqlalchemy.orm import Session

from workforce_reports.core.auth import RequestUserContext, get_current_user_context
from workforce_reports.db.dependencies import get_db_session
from workforce_reports.services.pivot import PivotInclude
from workforce_reports.services.reporting_service import HeatmapQuery, PivotQuery, ReportingService, SummaryQuery

router = APIRouter(prefix="/reports", tags=["reports"])


class DateRangePayload(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    from_: date = Field(alias="from")
    to: date


class SummaryPayload(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    from_: date = Field(alias="from")
    to: date
    group_by: list[str] = Field(default_factory=list)
    period: str = "month"
    user_id: int | None = None
    project_id: int | None = None

    def to_query(self) -> SummaryQuery:
        return SummaryQuery(
            from_date=self.from_,
            to_date=self.to,
            group_by=self.group_by,
            period=self.period,
            user_id=self.user_id,
            project_id=self.project_id,
        )


class PivotDimensionsPayload(BaseModel):
    rows: list[str] = Field(default_factory=list)
    columns: list[str] = Field(default_factory=list)


class PivotIncludePayload(BaseModel):
    row_totals: bool = True
    column_totals: bool = True
    grand_total: bool = True


class PivotFiltersPayload(BaseModel):
    user_id: int | None = None
    project_id: int | None = None
    task_id: int | None = None
    location_id: int | None = None
    status: str | None = None
    category: str | None = None


class PivotSortPayload(BaseModel):
    rows: str = "name"
    columns: str = "name"


class PivotPayload(BaseModel):
    period: str
    range: DateRangePayload
    dimensions: PivotDimensionsPayload
    metrics: list[str] | None = None
    include: PivotIncludePayload = Field(default_factory=PivotIncludePayload)
    filters: PivotFiltersPayload = Field(default_factory=PivotFiltersPayload)
    sort: PivotSortPayload = Field(default_factory=PivotSortPayload)

    def to_query(self) -> PivotQuery:
        return PivotQuery(
            period=self.period,
            from_date=self.range.from_,
            to_date=self.range.to,
            rows=self.dimensions.rows,
            columns=self.dimensions.columns,
            metrics=self.metrics,
            include=PivotInclude(
                row_totals=self.include.row_totals,
                column_totals=self.include.column_totals,
                grand_total=self.include.grand_total,
            ),
            user_id=self.filters.user_id,
            project_id=self.filters.project_id,
            task_id=self.filters.task_id,
            location_id=self.filters.location_id,
            status=self.filters.status,
            category=self.filters.category,
            sort_rows=self.sort.rows,
            sort_columns=self.sort.columns,
        )


class HeatmapIncludePayload(BaseModel):
    timesheets: bool = True
    expenses: bool = True


class HeatmapPayload(BaseModel):
    range: DateRangePayload
    include: HeatmapIncludePayload = Field(default_factory=HeatmapIncludePayload)

    def to_query(self) -> HeatmapQuery:
        return HeatmapQuery(
            from_date=self.range.from_,
            to_date=self.range.to,
            include_timesheets=self.include.timesheets,
            include_expenses=self.include.expenses,
        )


def _service(db: Session) -> ReportingService:
    return ReportingService(db)


@router.post("/timesheets/summary")
def report_timesheet_summary(
    payload: SummaryPayload,
    context: RequestUserContext = Depends(get_current_user_context),
    db: Session = Depends(get_db_session),
) -> dict[str, object]:
    return _service(db).timesheet_summary(context=context, query=payload.to_query())


@router.post("/expenses/summary")
def report_expense_summary(
    payload: SummaryPayload,
    context: RequestUserContext = Depends(get_current_user_context),
    db: Session = Depends(get_db_session),
) -> dict[str, object]:
    return _service(db).expense_summary(context=context, query=payload.to_query())


@router.post("/timesheets/pivot")
def report_timesheet_pivot(
    payload: PivotPayload,
    context: RequestUserContext = Depends(get_current_user_context),
    db: Session = Depends(get_db_session),
) -> dict[str, object]:
    return _service(db).timesheet_pivot(context=context, query=payload.to_query())


@router.post("/expenses/pivot")
def report_expense_pivot(
    payload: PivotPayload,
    context: RequestUserContext = Depends(get_current_user_context),
    db: Session = Depends(get_db_session),
) -> dict[str, object]:
    return _service(db).expense_pivot(context=context, query=payload.to_query())


@router.post("/approvals/heatmap")
def report_approval_heatmap(
    payload: HeatmapPayload,
    context: RequestUserContext = Depends(get_current_user_context),
    db: Session = Depends(get_db_session),
) -> dict[str, object]:
    """Pending/approved counts per creation day across the whole tenant."""

    return _service(db).approval_heatmap(context=context, query=payload.to_query())
