from typing import Callable, Optional, TypeVar

from django.conf import settings
from django.db import OperationalError, transaction
from tenacity import (
    Retrying,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from .logger import get_logger

T = TypeVar("T")

logger = get_logger(__name__).bind(component="common", layer="transaction")


def _log_retry(retry_state) -> None:
    exc = retry_state.outcome.exception() if retry_state.outcome else None
    logger.warning(
        "Retrying transaction after transient database error",
        attempt=retry_state.attempt_number,
        error=str(exc),
    )


def _atomic_call(fn: Callable[[], T], using: Optional[str]) -> T:
    with transaction.atomic(using=using):
        return fn()


def run_in_transaction(
    fn: Callable[[], T],
    *,
    attempts: Optional[int] = None,
    using: Optional[str] = None,
) -> T:
    """
    Run ``fn`` inside ``transaction.atomic()``: commit when it returns, roll back
    and re-raise when it raises.

    ``OperationalError`` (deadlock, serialization failure, locked database) is
    treated as transient and the whole body is replayed in a fresh transaction,
    up to ``attempts`` times. Any other exception propagates on the first
    failure. When already inside an atomic block the call joins it as a
    savepoint and is not retried, since the outer transaction is already
    doomed.
    """
    if transaction.get_connection(using).in_atomic_block:
        return _atomic_call(fn, using)
    max_attempts = attempts or getattr(settings, "TRANSACTION_RETRY_ATTEMPTS", 3)
    retrying = Retrying(
        reraise=True,
        stop=stop_after_attempt(max_attempts),
        wait=wait_exponential(multiplier=0.05, min=0.05, max=1),
        retry=retry_if_exception_type(OperationalError),
        before_sleep=_log_retry,
    )
    return retrying(_atomic_call, fn, using)
