"""Propagating monitoring-feed alert counts onto stored snapshots."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from logging import getLogger
from typing import TYPE_CHECKING, Protocol

from dossier.domain.model import sanitize_business_number, utcnow

if TYPE_CHECKING:
    from collections.abc import Callable, Sequence

    from dossier.domain.ports.unit_of_work import SnapshotUnitOfWork

log = getLogger(__name__)


@dataclass(frozen=True, slots=True)
class WatchlistEntity:
    entity_id: str
    business_number: str
    alert_count: int
    latest_report_at: datetime | None


class WatchlistFeed(Protocol):
    async def entities(self) -> Sequence[WatchlistEntity]: ...


@dataclass(slots=True)
class WatchlistSyncResult:
    alert_counts: dict[str, int] = field(default_factory=dict)
    entity_ids: dict[str, str] = field(default_factory=dict)
    updated: int = 0


def sync_alerts(
    entities: Sequence[WatchlistEntity],
    unit_of_work_factory: Callable[[], SnapshotUnitOfWork],
) -> WatchlistSyncResult:
    """Copy feed alert counts onto snapshots created before the feed's latest report."""
    result = WatchlistSyncResult()
    with unit_of_work_factory() as uow:
        repository = uow.repositories.snapshots
        for entity in entities:
            business_number = sanitize_business_number(entity.business_number)
            if not business_number:
                continue
            result.entity_ids[business_number] = entity.entity_id
            if entity.alert_count > 0:
                result.alert_counts[business_number] = entity.alert_count
            if entity.latest_report_at is None:
                continue

            for snapshot in repository.for_business_number(business_number):
                if entity.latest_report_at <= snapshot.created_at:
                    log.debug(
                        "Snapshot %s for %s is newer than the feed, skipping",
                        snapshot.id,
                        business_number,
                    )
                    continue
                snapshot.alert_flag = entity.alert_count > 0
                snapshot.alert_count = entity.alert_count
                snapshot.updated_at = utcnow()
                result.updated += 1
        uow.commit()
    log.info(
        "Watchlist sync: %d entities, %d snapshots updated",
        len(result.entity_ids),
        result.updated,
    )
    return result
