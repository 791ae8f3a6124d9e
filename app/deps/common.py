"""Common dependencies for FastAPI dependency injection"""
from typing import Generator

from sqlalchemy.orm import Session

from core.db import SessionLocal


def get_db_session() -> Generator[Session, None, None]:
    """
    Database session dependency.

    Yields:
        Session: SQLAlchemy database session
    """
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()
