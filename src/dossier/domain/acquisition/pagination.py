"""Collecting every page of a paginated upstream search."""

from __future__ import annotations

import asyncio
from logging import getLogger
from typing import TYPE_CHECKING, Any, Protocol

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

    from dossier.domain.model import Page

log = getLogger(__name__)


class PageFetcher(Protocol):
    async def __call__(self, page: int, page_size: int) -> Page: ...


async def collect_all(
    fetch_page: PageFetcher,
    *,
    page_size: int = 20,
    page_delay: float = 0.5,
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    max_pages: int | None = None,
) -> list[Any]:
    """Fetch pages from 1 until a short page, the reported total, or ``max_pages``.

    A failure on the first page propagates. Later failures are logged and the records
    gathered so far are returned.
    """
    if page_size < 1:
        msg = "page_size must be positive"
        raise ValueError(msg)

    records: list[Any] = []
    page = 1
    while True:
        try:
            result = await fetch_page(page, page_size)
        except Exception:
            if page == 1:
                raise
            log.warning(
                "Page %d failed, returning %d records collected so far",
                page,
                len(records),
                exc_info=True,
            )
            break

        records.extend(result.records)
        if len(result.records) < page_size:
            break
        if result.total is not None and len(records) >= result.total:
            break
        if max_pages is not None and page >= max_pages:
            log.warning("Stopping after %d pages with %d records", page, len(records))
            break
        page += 1
        await sleep(page_delay)

    return records
