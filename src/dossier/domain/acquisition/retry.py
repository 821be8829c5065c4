"""Exponential backoff around the terminal fetch of a two-phase job."""

from __future__ import annotations

import asyncio
from logging import getLogger
from typing import TYPE_CHECKING

import httpx

from dossier.domain.errors import InvalidInputError, SourceAPIError, UpstreamUnavailableError

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

log = getLogger(__name__)

# 404 covers results that are not published yet
TRANSIENT_STATUS_CODES = frozenset({404, 408, 425, 429})


class ResultNotReadyError(RuntimeError):
    """Raised by a retrieval step when the upstream has not finished the job."""


def backoff_delay(attempt: int, *, base_delay: float, max_delay: float) -> float:
    """Delay slept after failed attempt number ``attempt`` (1-based)."""
    return min(base_delay * 2 ** (attempt - 1), max_delay)


def is_transient(error: BaseException) -> bool:
    if isinstance(error, InvalidInputError):
        return False
    if isinstance(error, httpx.HTTPStatusError):
        status = error.response.status_code
        return status >= 500 or status in TRANSIENT_STATUS_CODES
    if isinstance(error, SourceAPIError):
        status = error.status_code
        return status is None or status >= 500 or status in TRANSIENT_STATUS_CODES
    return isinstance(error, (httpx.TransportError, ResultNotReadyError))


async def with_retry[T](
    fn: Callable[[], Awaitable[T]],
    *,
    max_attempts: int = 5,
    base_delay: float = 3.0,
    max_delay: float = 15.0,
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
) -> T:
    if max_attempts < 1:
        msg = "max_attempts must be at least 1"
        raise ValueError(msg)

    last_error: BaseException | None = None
    for attempt in range(1, max_attempts + 1):
        try:
            return await fn()
        except Exception as exc:
            if not is_transient(exc):
                raise
            last_error = exc
            if attempt == max_attempts:
                break
            delay = backoff_delay(attempt, base_delay=base_delay, max_delay=max_delay)
            log.info(
                "Attempt %d/%d failed (%s), retrying in %.1fs", attempt, max_attempts, exc, delay
            )
            await sleep(delay)

    msg = f"Gave up after {max_attempts} attempts: {last_error}"
    raise UpstreamUnavailableError(msg, last_error=last_error, attempts=max_attempts)
