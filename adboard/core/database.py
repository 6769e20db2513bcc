"""
Database connection management and ORM session factory.
Supports dialect abstraction for SQLite and PostgreSQL.
"""
from typing import Any, Generator, List

from sqlalchemy import create_engine, event
from sqlalchemy.orm import Session, declarative_base, sessionmaker

from adboard.core.config import settings
from adboard.core.logger import logger

engine = create_engine(
    settings.DATABASE_URL,
    # SQLite specific: check_same_thread=False is required for FastAPI's concurrent execution model
    connect_args={"check_same_thread": False} if "sqlite" in settings.DATABASE_URL else {}
)

# Enable Write-Ahead Logging (WAL) for SQLite to handle concurrency better
if "sqlite" in settings.DATABASE_URL:
    @event.listens_for(engine, "connect")
    def set_sqlite_pragma(dbapi_connection: Any, connection_record: Any) -> None:
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA journal_mode=WAL")
        cursor.execute("PRAGMA synchronous=NORMAL")
        cursor.close()

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base = declarative_base()


def get_enum_values(enum_cls: Any) -> List[str]:
    """Helper to get values from an Enum class for SQLAlchemy."""
    return [e.value for e in enum_cls]


def get_db() -> Generator[Session, None, None]:
    """Yields a database session and guarantees it is closed afterwards."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def init_db() -> None:
    """Idempotent initialization of database schema artifacts."""
    # Register every mapped table on the metadata before create_all
    import adboard.billboards.models  # noqa: F401
    import adboard.billing.models  # noqa: F401
    import adboard.contracts.models  # noqa: F401
    import adboard.customers.models  # noqa: F401
    import adboard.expenses.models  # noqa: F401
    import adboard.installation.models  # noqa: F401
    import adboard.partnerships.models  # noqa: F401
    import adboard.pricing.models  # noqa: F401

    logger.info("Creating database tables")
    Base.metadata.create_all(bind=engine)
    logger.info("Database tables ready")
