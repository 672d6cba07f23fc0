# Overview: Transaction scope, row locking and retry helpers shared by all services.

from __future__ import annotations

import time
from contextlib import contextmanager

from sqlalchemy.exc import OperationalError
from sqlalchemy.orm.exc import StaleDataError

from ..extensions import db


def lock_for_update(query):
    """
    Apply row-level locking for critical operations.

    NOTE: SQLite ignores SELECT ... FOR UPDATE, but other DBs will honor it.
    """
    return query.with_for_update()


@contextmanager
def transaction():
    """
    Unit of work for one service operation.

    Commits when the block exits normally and rolls back on every exception
    path before re-raising, so no caller ever sees a half-applied change.
    """
    try:
        yield db.session
        db.session.commit()
    except BaseException:
        db.session.rollback()
        raise


def run_in_transaction(func, *, attempts: int = 3, backoff_base: float = 0.1):
    """
    Execute func inside transaction(), retrying on concurrency-related failures.

    Retries on OperationalError (deadlocks, locks) and StaleDataError
    (optimistic locking conflicts). Business errors are never retried.
    """
    for attempt in range(attempts):
        try:
            with transaction():
                return func()
        except (OperationalError, StaleDataError):
            if attempt >= attempts - 1:
                raise
            time.sleep(backoff_base * (2 ** attempt))
