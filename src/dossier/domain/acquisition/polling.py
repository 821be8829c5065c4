"""Waiting out submitted upstream jobs."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from logging import getLogger
from typing import TYPE_CHECKING, Any

from dossier.config.acquisition import RetrySettings
from dossier.domain.errors import UpstreamTimeoutError

from .retry import with_retry

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

    from dossier.domain.model import AsyncJob

log = getLogger(__name__)


@dataclass(slots=True)
class JobPoller:
    """Sleeps a job's fixed initial delay, then retrieves it with backoff.

    The whole phase, delay included, is bounded by ``job.timeout``.
    """

    retry: RetrySettings = field(default_factory=RetrySettings)
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep

    async def wait(
        self, job: AsyncJob, retrieve: Callable[[AsyncJob], Awaitable[Any]]
    ) -> Any:
        log.info(
            "Waiting %.1fs for job %s (deadline %.1fs)",
            job.poll_interval,
            job.submission_id,
            job.timeout,
        )
        try:
            async with asyncio.timeout(job.timeout):
                await self.sleep(job.poll_interval)
                return await with_retry(
                    lambda: retrieve(job),
                    max_attempts=min(job.max_attempts, self.retry.max_attempts),
                    base_delay=self.retry.base_delay,
                    max_delay=self.retry.max_delay,
                    sleep=self.sleep,
                )
        except TimeoutError as exc:
            msg = f"Job {job.submission_id} did not complete within {job.timeout:.0f}s"
            raise UpstreamTimeoutError(msg) from exc
