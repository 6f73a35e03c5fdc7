# Overview: Service-layer operations for concurrency; bounded retry around one atomic DB unit.

from __future__ import annotations

import time

from flask import current_app
from sqlalchemy.exc import OperationalError, SQLAlchemyError
from sqlalchemy.orm.exc import StaleDataError

from ..errors import ConflictRetryable, LedgerError, StoreUnavailable
from ..extensions import db


# Driver messages that mean "another writer holds the row", not "the store is down"
_LOCK_CONFLICT_MARKERS = (
    "database is locked",
    "deadlock",
    "could not serialize",
    "lock wait timeout",
    "could not obtain lock",
)


def lock_for_update(query):
    """
    Apply row-level locking for critical reads.

    NOTE: SQLite ignores SELECT ... FOR UPDATE, but other DBs will honor it.
    """
    return query.with_for_update()


def is_lock_conflict(exc: Exception) -> bool:
    if isinstance(exc, StaleDataError):
        return True
    if isinstance(exc, OperationalError):
        message = str(getattr(exc, "orig", exc)).lower()
        return any(marker in message for marker in _LOCK_CONFLICT_MARKERS)
    return False


def run_with_retry(func, *, attempts: int | None = None, backoff_base: float | None = None):
    """
    Execute one DB unit of work, retrying when it loses a concurrency race.

    - Lock/serialization failures and lost guard races roll back and rerun
      func() from scratch, so the precondition is re-evaluated against fresh
      state each attempt.
    - Ledger errors (validation, insufficient stock) roll back and propagate
      unchanged; they are never retried here.
    - Exhausted retries raise ConflictRetryable; any other store error raises
      StoreUnavailable. Either way nothing from the failed unit is committed.
    """
    if attempts is None:
        attempts = current_app.config.get("LEDGER_RETRY_ATTEMPTS", 3)
    if backoff_base is None:
        backoff_base = current_app.config.get("LEDGER_RETRY_BACKOFF_SECONDS", 0.05)
    attempts = max(1, int(attempts))

    last_exc = None
    for attempt in range(attempts):
        try:
            return func()
        except ConflictRetryable as exc:
            db.session.rollback()
            last_exc = exc
            if attempt >= attempts - 1:
                break
            current_app.logger.warning(
                "Ledger guard lost a race (attempt %s/%s), retrying", attempt + 1, attempts
            )
            time.sleep(backoff_base * (2 ** attempt))
        except LedgerError:
            db.session.rollback()
            raise
        except (OperationalError, StaleDataError) as exc:
            db.session.rollback()
            if not is_lock_conflict(exc):
                raise StoreUnavailable(details={"reason": exc.__class__.__name__}) from exc
            last_exc = exc
            if attempt >= attempts - 1:
                break
            current_app.logger.warning(
                "Ledger write lost a lock race (attempt %s/%s): %s", attempt + 1, attempts, exc
            )
            time.sleep(backoff_base * (2 ** attempt))
        except SQLAlchemyError as exc:
            db.session.rollback()
            raise StoreUnavailable(details={"reason": exc.__class__.__name__}) from exc
        except Exception:
            db.session.rollback()
            raise

    raise ConflictRetryable(attempts=attempts) from last_exc

