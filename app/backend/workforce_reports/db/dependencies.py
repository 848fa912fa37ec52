"""Database dependencies for FastAPI endpoints."""

from collections.abc import Generator

from sqlalchemy.orm import Session

from workforce_reports.db.session import SessionLocal


def get_db_session() -> Generator[Session, None, None]:
    """Yield a session bound to the tenant database.

    Reports never write, so whatever transaction the request opened is rolled
    back rather than committed.
    """

    session = SessionLocal()
    try:
        yield session
    finally:
        session.rollback()
        session.close()
