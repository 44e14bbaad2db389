"""Retry avec backoff exponentiel (tenacity) pour les traitements planifiés."""

import logging
from collections.abc import Callable
from typing import Any

from sqlalchemy.exc import DBAPIError
from tenacity import (
    RetryCallState,
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

logger = logging.getLogger(__name__)

# Erreurs transitoires: connexion perdue, timeout, base momentanément indisponible
TRANSIENT_ERRORS: tuple[type[Exception], ...] = (DBAPIError, ConnectionError, TimeoutError)


def _log_retry_attempt(retry_state: RetryCallState) -> None:
    exception = retry_state.outcome.exception() if retry_state.outcome else None
    logger.warning(
        f"{retry_state.fn.__name__}: tentative {retry_state.attempt_number} en échec "
        f"({exception}), nouvel essai dans {retry_state.upcoming_sleep:.1f}s"
    )


def async_retry_with_backoff(
    max_attempts: int = 3,
    min_wait_seconds: int = 1,
    max_wait_seconds: int = 10,
    exceptions: tuple[type[Exception], ...] = TRANSIENT_ERRORS,
) -> Callable[[Callable[..., Any]], Callable[..., Any]]:
    """
    Rejoue une coroutine sur les erreurs ``exceptions``.

    Les autres exceptions, et la dernière erreur une fois ``max_attempts``
    atteint, remontent telles quelles.

    Example:
        @async_retry_with_backoff(max_attempts=3, min_wait_seconds=2)
        async def scheduled_cleanup(db): ...
    """
    return retry(
        retry=retry_if_exception_type(exceptions),
        stop=stop_after_attempt(max_attempts),
        wait=wait_exponential(min=min_wait_seconds, max=max_wait_seconds),
        before_sleep=_log_retry_attempt,
        reraise=True,
    )
