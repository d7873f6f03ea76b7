"""Bounded retry for operations that failed on a transient store error.

Only wrap callables whose failed attempts leave no trace, i.e. each
attempt runs in its own transaction that was fully rolled back.
"""

from __future__ import annotations

import time
from functools import wraps
from typing import Any, Callable, Optional, Tuple, Type, TypeVar

import structlog
from django.conf import settings

logger = structlog.get_logger(__name__)

F = TypeVar("F", bound=Callable[..., Any])


def retry_on(
    exceptions: Tuple[Type[BaseException], ...],
    max_attempts: Optional[int] = None,
    backoff: Optional[float] = None,
) -> Callable[[F], F]:
    """Re-run the decorated callable when it raises one of ``exceptions``.

    ``max_attempts`` / ``backoff`` default to
    ``FULFILLMENT_TRANSIENT_RETRIES`` / ``FULFILLMENT_RETRY_BACKOFF``,
    read at call time so tests can override settings.  The sleep grows
    linearly (``backoff * attempt``).  The last failure is re-raised.
    """

    def decorator(fn: F) -> F:
        @wraps(fn)
        def wrapper(*args: Any, **kwargs: Any) -> Any:
            attempts = (
                settings.FULFILLMENT_TRANSIENT_RETRIES
                if max_attempts is None
                else max_attempts
            )
            delay = settings.FULFILLMENT_RETRY_BACKOFF if backoff is None else backoff
            attempt = 0
            while True:
                attempt += 1
                try:
                    return fn(*args, **kwargs)
                except exceptions as exc:
                    if attempt >= max(attempts, 1):
                        logger.error(
                            "retry.exhausted",
                            operation=fn.__qualname__,
                            attempts=attempt,
                            error=str(exc),
                        )
                        raise
                    logger.warning(
                        "retry.scheduled",
                        operation=fn.__qualname__,
                        attempt=attempt,
                        error=str(exc),
                    )
                    if delay:
                        time.sleep(delay * attempt)

        return wrapper  # type: ignore[return-value]

    return decorator
