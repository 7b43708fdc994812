# Overview: Transaction boundary shared by every multi-step write (checkout, payment, return, restock).

"""
Transactions.

A service builds its writes inside a closure and hands it to atomic():
the closure flushes, atomic() commits once at the end, and any exception
rolls the whole unit back. Lock and optimistic-version conflicts
(OperationalError, StaleDataError on Bill.version_id) are retried with
exponential backoff; nothing else is.
"""

from __future__ import annotations

import logging
import time

from sqlalchemy.exc import OperationalError
from sqlalchemy.orm.exc import StaleDataError

from ..extensions import db

logger = logging.getLogger(__name__)

RETRYABLE_ERRORS = (OperationalError, StaleDataError)


def lock_for_update(query):
    """SELECT ... FOR UPDATE (a no-op on SQLite, honored elsewhere)."""
    return query.with_for_update()


def run_with_retry(func, *, attempts: int = 3, backoff_base: float = 0.1):
    """
    Call func, rolling back on any failure and retrying only on
    lock/version conflicts, up to `attempts` calls in total.
    """
    attempt = 0
    while True:
        attempt += 1
        try:
            return func()
        except RETRYABLE_ERRORS as exc:
            db.session.rollback()
            if attempt >= attempts:
                raise
            delay = backoff_base * (2 ** (attempt - 1))
            logger.warning("Retrying after %s (attempt %s/%s, sleeping %.2fs)",
                           type(exc).__name__, attempt, attempts, delay)
            time.sleep(delay)
        except Exception:
            db.session.rollback()
            raise


def atomic(func, *, attempts: int = 3, backoff_base: float = 0.1):
    """Run func and commit everything it wrote as one transaction."""
    def _unit_of_work():
        result = func()
        db.session.commit()
        return result

    return run_with_retry(_unit_of_work, attempts=attempts, backoff_base=backoff_base)
