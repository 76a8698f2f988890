"""
Transaction boundary for money movements.

Every operation that changes a balance runs inside atomic():
the body does its locking, checks, and writes; atomic() commits
on success and rolls back everything on any failure. No partial
balance change survives an exception.
"""

from contextlib import contextmanager

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from pocketbank.errors import PocketBankError, Internal
from pocketbank.logging_config import get_logger

logger = get_logger("pocketbank.services")


@contextmanager
def atomic(db: Session, action: str):
    """
    Commit the session if the block succeeds, roll it back otherwise.

    Domain errors pass through unchanged. Database errors, including
    lock wait timeouts, are re-raised as Internal. The caller may
    retry the whole operation after an Internal error.
    """
    try:
        yield
        db.commit()
    except PocketBankError as e:
        db.rollback()
        logger.warning("%s rejected: %s", action, e.message)
        raise
    except SQLAlchemyError as e:
        db.rollback()
        logger.exception("%s failed with a database error", action)
        raise Internal(f"{action} failed: {e}") from e
    except Exception:
        db.rollback()
        logger.exception("%s failed unexpectedly", action)
        raise
