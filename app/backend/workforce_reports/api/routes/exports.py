"""Streaming CSV / XLSX export endpoints for report datasets."""

from __future__ import annotations

from datetime import date

from fastapi import APIRouter, Depends
from fastapi.responses import StreamingResponse
from pydantic import BaseModel, ConfigDict, Field
from sqlalchemy.orm import Session

from workforce_reports.api.routes.reports import HeatmapPayload, PivotPayload, SummaryPayload
from workforce_reports.core.auth import RequestUserContext, get_current_user_context
from workforce_reports.db.dependencies import get_db_session
from workforce_reports.services.exports import ExportStream
from workforce_reports.services.reporting_service import EntryExportQuery, ReportingService

router = APIRouter(prefix="/reports", tags=["exports"])


class PivotExportPayload(PivotPayload):
    format: str = "csv"


class SummaryExportPayload(SummaryPayload):
    format: str = "csv"


class HeatmapExportPayload(HeatmapPayload):
    format: str = "csv"


class EntryExportFiltersPayload(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    from_: date = Field(alias="from")
    to: date
    user_id: int | None = None
    project_id: int | None = None
    status: str | None = None
    category: str | None = None


class EntryExportPayload(BaseModel):
    format: str = "csv"
    filters: EntryExportFiltersPayload

    def to_query(self) -> EntryExportQuery:
        return EntryExportQuery(
            from_date=self.filters.from_,
            to_date=self.filters.to,
            user_id=self.filters.user_id,
            project_id=self.filters.project_id,
            status=self.filters.status,
            category=self.filters.category,
        )


def _service(db: Session) -> ReportingService:
    return ReportingService(db)


def _streaming_response(exported: ExportStream) -> StreamingResponse:
    return StreamingResponse(
        exported.body,
        media_type=exported.media_type,
        headers={"Content-Disposition": exported.content_disposition},
    )


@router.post("/timesheets/pivot/export")
def export_timesheet_pivot(
    payload: PivotExportPayload,
    context: RequestUserContext = Depends(get_current_user_context),
    db: Session = Depends(get_db_session),
) -> StreamingResponse:
    exported = _service(db).export_timesheet_pivot(
        context=context,
        query=payload.to_query(),
        format_name=payload.format,
    )
    return _streaming_response(exported)


@router.post("/expenses/pivot/export")
def export_expense_pivot(
    payload: PivotExportPayload,
    context: RequestUserContext = Depends(get_current_user_context),
    db: Session = Depends(get_db_session),
) -> StreamingResponse:
    exported = _service(db).export_expense_pivot(
        context=context,
        query=payload.to_query(),
        format_name=payload.format,
    )
    return _streaming_response(exported)


@router.post("/timesheets/summary/export")
def export_timesheet_summary(
    payload: SummaryExportPayload,
    context: RequestUserContext = Depends(get_current_user_context),
    db: Session = Depends(get_db_session),
) -> StreamingResponse:
    exported = _service(db).export_timesheet_summary(
        context=context,
        query=payload.to_query(),
        format_name=payload.format,
    )
    return _streaming_response(exported)


@router.post("/expenses/summary/export")
def export_expense_summary(
    payload: SummaryExportPayload,
    context: RequestUserContext = Depends(get_current_user_context),
    db: Session = Depends(get_db_session),
) -> StreamingResponse:
    exported = _service(db).export_expense_summary(
        context=context,
        query=payload.to_query(),
        format_name=payload.format,
    )
    return _streaming_response(exported)


@router.post("/approvals/heatmap/export")
def export_approval_heatmap(
    payload: HeatmapExportPayload,
    context: RequestUserContext = Depends(get_current_user_context),
    db: Session = Depends(get_db_session),
) -> StreamingResponse:
    exported = _service(db).export_approval_heatmap(
        context=context,
        query=payload.to_query(),
        format_name=payload.format,
    )
    return _streaming_response(exported)


@router.post("/timesheets/export")
def export_timesheets(
    payload: EntryExportPayload,
    context: RequestUserContext = Depends(get_current_user_context),
    db: Session = Depends(get_db_session),
) -> StreamingResponse:
    exported = _service(db).export_timesheets(context=context, query=payload.to_query(), format_name=payload.format)
    return _streaming_response(exported)


@router.post("/expenses/export")
def export_expenses(
    payload: EntryExportPayload,
    context: RequestUserContext = Depends(get_current_user_context),
    db: Session = Depends(get_db_session),
) -> StreamingResponse:
    exported = _service(db).export_expenses(context=context, query=payload.to_query(), format_name=payload.format)
    return _streaming_response(exported)
