"""
Transaction Utilities for Foremade Backend
==========================================

Optimistic-concurrency helpers for the rows that many checkouts race over
(product stock, seller wallets).

No application locks are taken. Every contended write is a conditional
``UPDATE ... WHERE version = <read version>``; if another transaction got
there first the update touches zero rows and ``OptimisticLockError`` is
raised, rolling back the surrounding ``transaction.atomic`` block. The whole
unit of work is then re-run from a fresh read by ``run_atomic_with_retry``.

Usage Examples:
    # Conditional write inside an atomic block
    with transaction.atomic():
        product = Product.objects.get(pk=product_id)
        conditional_update(Product, product.pk, product.version, stock_quantity=product.stock_quantity - 1)

    # Whole unit retried on conflict
    result = run_atomic_with_retry(settle_checkout, label="settlement")
"""

import logging
import time
from typing import Any, Callable, Optional

from django.db import DatabaseError, IntegrityError, OperationalError, transaction
from django.db.models import F, Model

from .retry import bounded_retry


logger = logging.getLogger(__name__)

# Backend messages that mean "another transaction won, try again"
CONFLICT_MARKERS = (
    "database is locked",
    "database table is locked",
    "deadlock",
    "could not serialize access",
    "lock wait timeout",
)

# A concurrent insert of the same unique row (wallet get_or_create, order id) won
UNIQUE_VIOLATION_MARKERS = (
    "unique constraint",
    "duplicate key value",
    "duplicate entry",
)
UNIQUE_VIOLATION_SQLSTATE = "23505"


class TransactionError(Exception):
    """Custom exception for transaction-related errors"""

    pass


class OptimisticLockError(TransactionError):
    """Raised when a version-conditional update lost a race with another transaction"""

    def __init__(self, model_name: str, pk: Any, expected_version: int):
        self.model_name = model_name
        self.pk = pk
        self.expected_version = expected_version
        super().__init__(f"{model_name} {pk} changed since version {expected_version} was read")


class ConflictRetriesExhausted(TransactionError):
    """Raised when an atomic unit kept conflicting until its retry budget ran out"""

    def __init__(self, label: str, attempts: int, last_error: BaseException):
        self.label = label
        self.attempts = attempts
        self.last_error = last_error
        super().__init__(f"{label} gave up after {attempts} conflicting attempts: {last_error}")


class TransactionOutcomeUnknown(TransactionError):
    """Raised when the database failed in a way that does not tell whether the commit happened"""

    pass


class IntegrityViolation(TransactionError):
    """Raised when a unit broke a non-unique constraint; nothing was committed and a re-run cannot succeed"""

    pass


def is_unique_violation(exc: BaseException) -> bool:
    """True when ``exc`` is a duplicate-key error rather than some other constraint failure."""
    if not isinstance(exc, IntegrityError):
        return False
    cause = exc.__cause__
    if UNIQUE_VIOLATION_SQLSTATE in (getattr(cause, "sqlstate", None), getattr(cause, "pgcode", None)):
        return True
    message = str(exc).lower()
    return any(marker in message for marker in UNIQUE_VIOLATION_MARKERS)


def is_conflict(exc: BaseException) -> bool:
    """True when ``exc`` is a lost optimistic race that is safe to retry from scratch."""
    if isinstance(exc, OptimisticLockError) or is_unique_violation(exc):
        return True
    if isinstance(exc, OperationalError):
        message = str(exc).lower()
        return any(marker in message for marker in CONFLICT_MARKERS)
    return False


def conditional_update(model: type[Model], pk: Any, expected_version: int, **changes) -> None:
    """
    Apply ``changes`` to one row only if its version still equals ``expected_version``.

    The row's version is bumped in the same statement.

    Raises:
        OptimisticLockError: If the row changed (or vanished) since it was read
    """
    updated = model.objects.filter(pk=pk, version=expected_version).update(version=F("version") + 1, **changes)
    if updated != 1:
        raise OptimisticLockError(model.__name__, pk, expected_version)


def run_atomic_with_retry(
    func: Callable[[], Any],
    attempts: Optional[int] = None,
    base_delay: Optional[float] = None,
    timeout: Optional[float] = None,
    label: str = "atomic unit",
    on_conflict: Optional[Callable[[BaseException], None]] = None,
) -> Any:
    """
    Run ``func`` inside ``transaction.atomic`` and re-run the whole unit on conflicts.

    Args:
        func: Unit of work; must re-read everything it writes on every call
        attempts: Maximum number of attempts
        base_delay: Backoff before the first retry (doubles each retry)
        timeout: Overall deadline across attempts, in seconds
        label: Name for log lines
        on_conflict: Callback invoked with each conflict (metrics hook)

    Returns:
        Whatever ``func`` returns from the attempt that committed

    Raises:
        ConflictRetriesExhausted: Every attempt conflicted
        IntegrityViolation: A non-unique constraint failed; raised on the first attempt
        TransactionOutcomeUnknown: A non-conflict database error surfaced; the
            commit may or may not have happened
        Any non-database exception raised by ``func`` propagates unchanged
    """
    attempt_counter = {"count": 0}

    def attempt():
        attempt_counter["count"] += 1
        start_time = time.time()
        try:
            with transaction.atomic():
                result = func()
        except BaseException as e:
            if is_conflict(e):
                logger.info(f"{label} conflict on attempt {attempt_counter['count']}: {e}")
                if on_conflict is not None:
                    on_conflict(e)
            raise
        logger.debug(f"{label} committed in {time.time() - start_time:.3f}s")
        return result

    retrying = bounded_retry(is_conflict, attempts=attempts, base_delay=base_delay, timeout=timeout, label=label)

    try:
        return retrying(attempt)
    except (OptimisticLockError, IntegrityError, OperationalError) as e:
        if is_conflict(e):
            raise ConflictRetriesExhausted(label, attempt_counter["count"], e) from e
        if isinstance(e, IntegrityError):
            logger.error(f"{label} violated a database constraint: {e}")
            raise IntegrityViolation(f"{label} violated a database constraint: {e}") from e
        logger.error(f"{label} failed with database error, outcome unknown: {e}")
        raise TransactionOutcomeUnknown(f"{label} outcome unknown: {e}") from e
    except DatabaseError as e:
        logger.error(f"{label} failed with database error, outcome unknown: {e}")
        raise TransactionOutcomeUnknown(f"{label} outcome unknown: {e}") from e
