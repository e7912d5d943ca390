# Utils package for Foremade backend

from .retry import bounded_retry
from .transaction_utils import (
    ConflictRetriesExhausted,
    IntegrityViolation,
    OptimisticLockError,
    TransactionError,
    TransactionOutcomeUnknown,
    conditional_update,
    is_conflict,
    is_unique_violation,
    run_atomic_with_retry,
)


__all__ = [
    "bounded_retry",
    "ConflictRetriesExhausted",
    "IntegrityViolation",
    "OptimisticLockError",
    "TransactionError",
    "TransactionOutcomeUnknown",
    "conditional_update",
    "is_conflict",
    "is_unique_violation",
    "run_atomic_with_retry",
]
