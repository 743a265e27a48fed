"""Database engine and per-request sessions for the analytics read path"""

from typing import Generator
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker, Session
from finsight_gateway.config import settings


def build_engine(database_url: str) -> Engine:
    """
    Create an engine for `database_url`.

    PostgreSQL gets a bounded pool sized from settings; SQLite (local runs and
    tests) gets a thread-shareable connection, since FastAPI runs sync
    endpoints in a threadpool.
    """
    if database_url.startswith("sqlite"):
        return create_engine(database_url, connect_args={"check_same_thread": False})

    return create_engine(
        database_url,
        pool_pre_ping=True,
        pool_size=settings.db_pool_size,
        max_overflow=settings.db_max_overflow,
        pool_recycle=settings.db_pool_recycle_seconds,
    )


engine = build_engine(settings.database_url)

# Sessions only read; nothing is flushed implicitly
SessionLocal = sessionmaker(autocommit=False, autoflush=False, expire_on_commit=False, bind=engine)


def get_db() -> Generator[Session, None, None]:
    """Dependency injection for database sessions"""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
