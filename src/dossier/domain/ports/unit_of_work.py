"""Unit-of-work boundary around the snapshot repository."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Protocol, Self

if TYPE_CHECKING:
    from types import TracebackType

    from dossier.domain.ports.persistence import SnapshotRepository


@dataclass(slots=True)
class SnapshotRepositories:
    snapshots: SnapshotRepository


class SnapshotUnitOfWork(Protocol):
    """Transaction over snapshot reads and writes.

    Nothing becomes visible to other units of work until ``commit()``; leaving the
    block with an exception rolls back.
    """

    @property
    def repositories(self) -> SnapshotRepositories: ...

    def __enter__(self) -> Self: ...

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_value: BaseException | None,
        traceback: TracebackType | None,
    ) -> bool: ...

    def commit(self) -> None: ...

    def rollback(self) -> None: ...
