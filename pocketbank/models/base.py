"""
Database engine, session management, and base model.

This module is the foundation for all database operations.
Every model inherits from Base. Every request gets a session
from get_db().
"""

from sqlalchemy import create_engine
from sqlalchemy.engine import make_url
from sqlalchemy.orm import sessionmaker, DeclarativeBase

from pocketbank.config import get_settings

settings = get_settings()


def _connect_args(database_url: str) -> dict:
    """
    Driver options for lock waits.

    A transfer that cannot get its row locks inside this window
    fails and rolls back instead of queueing forever.
    """
    backend = make_url(database_url).get_backend_name()
    if backend == "postgresql":
        return {"options": f"-c lock_timeout={settings.LOCK_TIMEOUT_SECONDS * 1000}"}
    if backend == "sqlite":
        return {"check_same_thread": False, "timeout": settings.LOCK_TIMEOUT_SECONDS}
    return {}


# --- Engine ---
# pool_pre_ping=True tests connections before using them,
# which handles cases where the database restarted or a
# connection went stale.
engine = create_engine(
    settings.DATABASE_URL,
    pool_pre_ping=True,
    connect_args=_connect_args(settings.DATABASE_URL),
)

# --- Session Factory ---
# autocommit=False means we explicitly control when changes
# are saved. A transfer touches several rows in several tables
# and must commit all of them or none.
SessionLocal = sessionmaker(
    bind=engine,
    autocommit=False,
    autoflush=False,
)


class Base(DeclarativeBase):
    pass


def init_db(bind=None) -> None:
    """
    Create any missing tables.

    Runs once at process start. create_all checks for each table
    first, so calling it against an up-to-date schema is a no-op.
    Money-moving code never creates tables on its own.
    """
    # Import models so every table is registered on Base.metadata
    import pocketbank.models  # noqa: F401

    Base.metadata.create_all(bind=bind or engine)


# --- Dependency for FastAPI ---
def get_db():
    """
    Provide a database session for a single request.

    The try/finally pattern ensures the session is always
    closed, preventing connection leaks.
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
