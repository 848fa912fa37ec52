from __future__ import annotations

from collections.abc import Generator, Iterable
from datetime import date, datetime, time
from decimal import Decimal

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from workforce_reports.db.base import Base
from workforce_reports.db.dependencies import get_db_session
from workforce_reports.main import create_app
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


@pytest.fixture()
def db_session() -> Generator[Session, None, None]:
    engine = create_engine(
        "sqlite+pysqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
        future=True,
    )
    Base.metadata.create_all(bind=engine)
    TestingSessionLocal = sessionmaker(bind=engine, autoflush=False, autocommit=False, future=True)

    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture()
def client(db_session: Session) -> Generator[TestClient, None, None]:
    app = create_app()

    def override_db() -> Generator[Session, None, None]:
        yield db_session

    app.dependency_overrides[get_db_session] = override_db
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


class TenantFactory:
    """Inserts tenant rows the way the CRUD layer would leave them."""

    def __init__(self, db: Session) -> None:
        self.db = db

    def _save(self, row):
        self.db.add(row)
        self.db.commit()
        self.db.refresh(row)
        return row

    def user(self, name: str, *, role: str = "Technician", permissions: Iterable[str] = ()) -> User:
        user = self._save(User(name=name, email=f"{name.lower().replace(' ', '.')}@test.local", role=role))
        for permission in permissions:
            self.db.add(UserPermission(user_id=user.id, permission=permission))
        self.db.commit()
        return user

    def technician(self, user: User) -> Technician:
        return self._save(Technician(user_id=user.id, name=user.name, email=user.email, is_active=True))

    def project(self, name: str) -> Project:
        return self._save(Project(name=name))

    def member(
        self,
        project: Project,
        user: User,
        *,
        project_role: MembershipRole = MembershipRole.MEMBER,
        expense_role: MembershipRole = MembershipRole.NONE,
        finance_role: MembershipRole = MembershipRole.NONE,
    ) -> ProjectMember:
        return self._save(
            ProjectMember(
                project_id=project.id,
                user_id=user.id,
                project_role=project_role,
                expense_role=expense_role,
                finance_role=finance_role,
            )
        )

    def time_entry(
        self,
        technician: Technician,
        project: Project,
        day: date,
        hours: str,
        status: TimesheetStatus = TimesheetStatus.APPROVED,
        *,
        created_at: datetime | None = None,
        task_id: int | None = None,
        location_id: int | None = None,
    ) -> TimeEntry:
        return self._save(
            TimeEntry(
                technician_id=technician.id,
                project_id=project.id,
                task_id=task_id,
                location_id=location_id,
                date=day,
                hours_worked=Decimal(hours),
                status=status,
                created_at=created_at or datetime.combine(day, time(9, 0)),
            )
        )

    def expense(
        self,
        technician: Technician,
        project: Project,
        day: date,
        amount: str,
        status: ExpenseStatus = ExpenseStatus.SUBMITTED,
        *,
        category: str = "travel",
        created_at: datetime | None = None,
    ) -> ExpenseEntry:
        return self._save(
            ExpenseEntry(
                technician_id=technician.id,
                project_id=project.id,
                date=day,
                amount=Decimal(amount),
                category=category,
                status=status,
                created_at=created_at or datetime.combine(day, time(10, 0)),
            )
        )

    @staticmethod
    def headers(user: User) -> dict[str, str]:
        return {"X-USER-EMAIL": user.email}


@pytest.fixture()
def factory(db_session: Session) -> TenantFactory:
    return TenantFactory(db_session)
