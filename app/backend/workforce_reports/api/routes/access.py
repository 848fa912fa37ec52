"""Access context endpoints."""

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from workforce_reports.core.auth import RequestUserContext, get_current_user_context
from workforce_reports.db.dependencies import get_db_session
from workforce_reports.services.reporting_service import ReportingService

router = APIRouter(prefix="/access", tags=["access"])


@router.get("/context")
def get_access_context(context: RequestUserContext = Depends(get_current_user_context)) -> dict[str, object]:
    """Return the resolved identity of the caller."""

    return {
        "user": {
            "id": context.user_id,
            "email": context.email,
            "name": context.name,
            "role": context.role,
        },
        "is_owner": context.is_owner,
        "permissions": sorted(context.permissions),
    }


@router.get("/scope")
def get_access_scope(
    permission: str = Query(default="view-timesheets"),
    context: RequestUserContext = Depends(get_current_user_context),
    db: Session = Depends(get_db_session),
) -> dict[str, object]:
    """Return the technicians and projects visible to the caller for ``permission``."""

    return ReportingService(db).access_scope(context=context, permission_name=permission)
