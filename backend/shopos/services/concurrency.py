# Overview: Locking, retry and unit-of-work helpers shared by the write services.

from __future__ import annotations

import time

from sqlalchemy import text
from sqlalchemy.exc import OperationalError, SQLAlchemyError
from sqlalchemy.orm.exc import StaleDataError

from ..extensions import db
from ..validation import PersistenceError, ShopError


def lock_for_update(query):
    """
    Apply row-level locking for critical operations.

    NOTE: SQLite ignores SELECT ... FOR UPDATE; begin_write() takes the
    database write lock there instead.
    """
    return query.with_for_update()


def begin_write() -> None:
    """
    Start the current transaction as a writer.

    On SQLite this issues BEGIN IMMEDIATE so two checkouts cannot both read
    the same IN_STOCK rows before either writes. Other databases rely on
    lock_for_update() row locks.
    """
    if db.engine.dialect.name != "sqlite":
        return
    raw = db.session.connection().connection.driver_connection
    if not raw.in_transaction:
        db.session.execute(text("BEGIN IMMEDIATE"))


def run_with_retry(func, *, attempts: int = 3, backoff_base: float = 0.1):
    """
    Execute a DB operation with retry on concurrency-related failures.

    Retries on OperationalError (deadlocks, locks) and StaleDataError
    (optimistic locking conflicts).
    """
    last_exc = None
    for attempt in range(attempts):
        try:
            return func()
        except (OperationalError, StaleDataError) as exc:
            db.session.rollback()
            last_exc = exc
            if attempt >= attempts - 1:
                raise
            time.sleep(backoff_base * (2 ** attempt))
    if last_exc:
        raise last_exc


def run_in_transaction(func, *, attempts: int = 3, backoff_base: float = 0.1):
    """
    Run func as a single all-or-nothing unit of work and commit once.

    Domain errors roll back and propagate unchanged. Lock conflicts are
    retried; anything else from the store rolls back and surfaces as
    PersistenceError.
    """
    def _op():
        try:
            begin_write()
            result = func()
            db.session.commit()
            return result
        except (OperationalError, StaleDataError):
            raise
        except ShopError:
            db.session.rollback()
            raise
        except SQLAlchemyError as exc:
            db.session.rollback()
            raise PersistenceError("Database error", details={"reason": exc.__class__.__name__}) from exc
        except Exception:
            db.session.rollback()
            raise

    try:
        return run_with_retry(_op, attempts=attempts, backoff_base=backoff_base)
    except (OperationalError, StaleDataError) as exc:
        raise PersistenceError(
            "Database is busy, please retry",
            details={"reason": exc.__class__.__name__},
        ) from exc
