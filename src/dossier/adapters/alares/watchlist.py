from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime
from logging import getLogger

from dossier.domain.watchlist import WatchlistEntity

from .client import AlaresClient

log = getLogger(__name__)


def _aware(value: datetime | None) -> datetime | None:
    if value is None or value.tzinfo is not None:
        return value
    return value.replace(tzinfo=UTC)


@dataclass(slots=True)
class AlaresWatchlistFeed:
    watchlist_id: str
    client: AlaresClient = field(default_factory=AlaresClient)

    async def entities(self) -> list[WatchlistEntity]:
        payloads = await self.client.watchlist_entities(self.watchlist_id)
        entities = [
            WatchlistEntity(
                entity_id=payload.id,
                business_number=payload.abn,
                alert_count=payload.num_alerts,
                latest_report_at=_aware(payload.latest_report_at),
            )
            for payload in payloads
            if payload.abn
        ]
        log.info(
            "Watchlist %s has %d entities with a business number",
            self.watchlist_id,
            len(entities),
        )
        return entities
