"""Read-only queries used by the reporting services."""

from __future__ import annotations

from collections.abc import Collection, Iterator
from datetime import date, datetime
from typing import TypeVar

from sqlalchemy import Select, and_, select
from sqlalchemy.orm import Session

from workforce_reports.models.entities import (
    ExpenseEntry,
    ExpenseStatus,
    Project,
    ProjectMember,
    Technician,
    TimeEntry,
    TimesheetStatus,
    User,
)

T = TypeVar("T")


class ReportingRepository:
    """Snapshot reads over the tenant database bound to ``db``."""

    def __init__(self, db: Session, *, batch_size: int = 500) -> None:
        self.db = db
        self.batch_size = batch_size

    def _stream(self, statement: Select[tuple[T]]) -> Iterator[T]:
        yield from self.db.scalars(statement.execution_options(yield_per=self.batch_size))

    # ---------- Dimensions ----------
    def list_technicians(self) -> list[Technician]:
        return self.db.scalars(select(Technician).order_by(Technician.name.asc(), Technician.id.asc())).all()

    def list_projects(self) -> list[Project]:
        return self.db.scalars(select(Project).order_by(Project.name.asc(), Project.id.asc())).all()

    def list_memberships(self) -> list[ProjectMember]:
        return self.db.scalars(
            select(ProjectMember).order_by(ProjectMember.project_id.asc(), ProjectMember.user_id.asc())
        ).all()

    def get_users(self, user_ids: Collection[int]) -> dict[int, User]:
        if not user_ids:
            return {}
        rows = self.db.scalars(select(User).where(User.id.in_(list(user_ids)))).all()
        return {row.id: row for row in rows}

    # ---------- Time entries ----------
    def iter_time_entries(
        self,
        *,
        from_date: date,
        to_date: date,
        technician_ids: Collection[int],
        project_ids: Collection[int],
        statuses: Collection[TimesheetStatus] | None = None,
        task_id: int | None = None,
        location_id: int | None = None,
    ) -> Iterator[TimeEntry]:
        """Stream entries whose business date falls in ``[from_date, to_date]``."""

        if not technician_ids or not project_ids:
            return iter(())

        conditions = [
            TimeEntry.date >= from_date,
            TimeEntry.date <= to_date,
            TimeEntry.technician_id.in_(list(technician_ids)),
            TimeEntry.project_id.in_(list(project_ids)),
        ]
        if statuses:
            conditions.append(TimeEntry.status.in_(list(statuses)))
        if task_id is not None:
            conditions.append(TimeEntry.task_id == task_id)
        if location_id is not None:
            conditions.append(TimeEntry.location_id == location_id)

        return self._stream(
            select(TimeEntry)
            .where(and_(*conditions))
            .order_by(TimeEntry.date.asc(), TimeEntry.id.asc())
        )

    def iter_time_entries_created(
        self,
        *,
        created_from: datetime,
        created_before: datetime,
        technician_ids: Collection[int],
        project_ids: Collection[int],
    ) -> Iterator[TimeEntry]:
        """Stream entries created in ``[created_from, created_before)``."""

        if not technician_ids or not project_ids:
            return iter(())

        return self._stream(
            select(TimeEntry)
            .where(
                and_(
                    TimeEntry.created_at >= created_from,
                    TimeEntry.created_at < created_before,
                    TimeEntry.technician_id.in_(list(technician_ids)),
                    TimeEntry.project_id.in_(list(project_ids)),
                )
            )
            .order_by(TimeEntry.created_at.asc(), TimeEntry.id.asc())
        )

    # ---------- Expenses ----------
    def iter_expenses(
        self,
        *,
        from_date: date,
        to_date: date,
        technician_ids: Collection[int],
        project_ids: Collection[int],
        statuses: Collection[ExpenseStatus] | None = None,
        category: str | None = None,
    ) -> Iterator[ExpenseEntry]:
        if not technician_ids or not project_ids:
            return iter(())

        conditions = [
            ExpenseEntry.date >= from_date,
            ExpenseEntry.date <= to_date,
            ExpenseEntry.technician_id.in_(list(technician_ids)),
            ExpenseEntry.project_id.in_(list(project_ids)),
        ]
        if statuses:
            conditions.append(ExpenseEntry.status.in_(list(statuses)))
        if category:
            conditions.append(ExpenseEntry.category == category)

        return self._stream(
            select(ExpenseEntry)
            .where(and_(*conditions))
            .order_by(ExpenseEntry.date.asc(), ExpenseEntry.id.asc())
        )

    def iter_expenses_created(
        self,
        *,
        created_from: datetime,
        created_before: datetime,
        technician_ids: Collection[int],
        project_ids: Collection[int],
    ) -> Iterator[ExpenseEntry]:
        if not technician_ids or not project_ids:
            return iter(())

        return self._stream(
            select(ExpenseEntry)
            .where(
                and_(
                    ExpenseEntry.created_at >= created_from,
                    ExpenseEntry.created_at < created_before,
                    ExpenseEntry.technician_id.in_(list(technician_ids)),
                    ExpenseEntry.project_id.in_(list(project_ids)),
                )
            )
            .order_by(ExpenseEntry.created_at.asc(), ExpenseEntry.id.asc())
        )
