"""ORM entities read by the reporting engine.

Rows are owned by the timesheet/expense CRUD layer; this package only maps and
reads them.
"""

from __future__ import annotations

import datetime as dt
import enum
from decimal import Decimal

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Date,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    UniqueConstraint,
)
from sqlalchemy import Enum as SQLEnum
from sqlalchemy.orm import Mapped, mapped_column

from workforce_reports.db.base import Base


class MembershipRole(str, enum.Enum):
    NONE = "none"
    MEMBER = "member"
    MANAGER = "manager"


class TimesheetStatus(str, enum.Enum):
    DRAFT = "draft"
    SUBMITTED = "submitted"
    APPROVED = "approved"
    REJECTED = "rejected"
    CLOSED = "closed"


class ExpenseStatus(str, enum.Enum):
    SUBMITTED = "submitted"
    FINANCE_REVIEW = "finance_review"
    FINANCE_APPROVED = "finance_approved"
    REJECTED = "rejected"
    PAID = "paid"


def _utcnow() -> dt.datetime:
    return dt.datetime.now(dt.timezone.utc).replace(tzinfo=None)


def _enum_column(enum_cls: type[enum.Enum], name: str) -> SQLEnum:
    return SQLEnum(
        enum_cls,
        name=name,
        values_callable=lambda members: [member.value for member in members],
        native_enum=False,
        validate_strings=True,
    )


class User(Base):
    __tablename__ = "users"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    email: Mapped[str] = mapped_column(String(320), unique=True, nullable=False)
    role: Mapped[str] = mapped_column(String(64), nullable=False, default="Technician")
    created_at: Mapped[dt.datetime] = mapped_column(DateTime, nullable=False, default=_utcnow)


class UserPermission(Base):
    __tablename__ = "user_permissions"
    __table_args__ = (
        UniqueConstraint("user_id", "permission", name="uq_user_permissions_user_permission"),
        Index("ix_user_permissions_user_id", "user_id"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(Integer, ForeignKey("users.id"), nullable=False)
    permission: Mapped[str] = mapped_column(String(128), nullable=False)


class Technician(Base):
    __tablename__ = "technicians"
    __table_args__ = (Index("ix_technicians_user_id", "user_id"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(Integer, ForeignKey("users.id"), nullable=False)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    email: Mapped[str] = mapped_column(String(320), nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)


class Project(Base):
    __tablename__ = "projects"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)


class ProjectMember(Base):
    __tablename__ = "project_members"
    __table_args__ = (
        UniqueConstraint("project_id", "user_id", name="uq_project_members_project_user"),
        Index("ix_project_members_user_id", "user_id"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    project_id: Mapped[int] = mapped_column(Integer, ForeignKey("projects.id"), nullable=False)
    user_id: Mapped[int] = mapped_column(Integer, ForeignKey("users.id"), nullable=False)
    project_role: Mapped[MembershipRole] = mapped_column(
        _enum_column(MembershipRole, "membership_role"), nullable=False, default=MembershipRole.MEMBER
    )
    expense_role: Mapped[MembershipRole] = mapped_column(
        _enum_column(MembershipRole, "membership_role"), nullable=False, default=MembershipRole.NONE
    )
    finance_role: Mapped[MembershipRole] = mapped_column(
        _enum_column(MembershipRole, "membership_role"), nullable=False, default=MembershipRole.NONE
    )


class TimeEntry(Base):
    __tablename__ = "timesheets"
    __table_args__ = (
        CheckConstraint("hours_worked >= 0", name="ck_timesheets_hours_non_negative"),
        Index("ix_timesheets_date", "date"),
        Index("ix_timesheets_created_at", "created_at"),
        Index("ix_timesheets_technician_date", "technician_id", "date"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    technician_id: Mapped[int] = mapped_column(Integer, ForeignKey("technicians.id"), nullable=False)
    project_id: Mapped[int] = mapped_column(Integer, ForeignKey("projects.id"), nullable=False)
    task_id: Mapped[int | None] = mapped_column(Integer, nullable=True)
    location_id: Mapped[int | None] = mapped_column(Integer, nullable=True)
    date: Mapped[dt.date] = mapped_column(Date, nullable=False)
    hours_worked: Mapped[Decimal] = mapped_column(Numeric(5, 2), nullable=False, default=Decimal("0.00"))
    status: Mapped[TimesheetStatus] = mapped_column(
        _enum_column(TimesheetStatus, "timesheet_status"), nullable=False, default=TimesheetStatus.DRAFT
    )
    description: Mapped[str | None] = mapped_column(String(2000), nullable=True)
    created_at: Mapped[dt.datetime] = mapped_column(DateTime, nullable=False, default=_utcnow)


class ExpenseEntry(Base):
    __tablename__ = "expenses"
    __table_args__ = (
        CheckConstraint("amount >= 0", name="ck_expenses_amount_non_negative"),
        Index("ix_expenses_date", "date"),
        Index("ix_expenses_created_at", "created_at"),
        Index("ix_expenses_technician_date", "technician_id", "date"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    technician_id: Mapped[int] = mapped_column(Integer, ForeignKey("technicians.id"), nullable=False)
    project_id: Mapped[int] = mapped_column(Integer, ForeignKey("projects.id"), nullable=False)
    date: Mapped[dt.date] = mapped_column(Date, nullable=False)
    amount: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    category: Mapped[str] = mapped_column(String(64), nullable=False)
    status: Mapped[ExpenseStatus] = mapped_column(
        _enum_column(ExpenseStatus, "expense_status"), nullable=False, default=ExpenseStatus.SUBMITTED
    )
    description: Mapped[str | None] = mapped_column(String(2000), nullable=True)
    created_at: Mapped[dt.datetime] = mapped_column(DateTime, nullable=False, default=_utcnow)
