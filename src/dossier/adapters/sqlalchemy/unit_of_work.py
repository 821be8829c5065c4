"""SQLAlchemy-backed unit of work for report snapshots."""

from __future__ import annotations

from logging import getLogger
from typing import TYPE_CHECKING, Literal

from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker

from dossier.adapters.sqlalchemy.mappings import start_mappers
from dossier.adapters.sqlalchemy.migrations import current_revision, upgrade_head
from dossier.adapters.sqlalchemy.repositories import SqlAlchemySnapshotRepository
from dossier.config.storage import DatabaseConfig, get_database_config
from dossier.domain.ports.unit_of_work import SnapshotRepositories

if TYPE_CHECKING:
    from types import TracebackType

    from sqlalchemy.engine import Engine

log = getLogger(__name__)


class StartupError(RuntimeError):
    """Raised when the snapshot store is used before ``startup()`` or configured twice."""


class _Store:
    engine: Engine | None = None
    sessions: sessionmaker[Session] | None = None


def _engine_for(config: DatabaseConfig) -> Engine:
    return create_engine(config.uri, echo=config.echo, future=True)


def startup(
    *,
    engine: Engine | None = None,
    database_uri: str | None = None,
    force: bool = False,
) -> None:
    """Open the snapshot store, migrate it to the latest revision and prepare sessions."""
    if _Store.engine is not None and not force:
        raise StartupError("Snapshot store already started. Pass force=True to reconfigure.")
    if engine is None:
        config = DatabaseConfig(uri=database_uri) if database_uri else get_database_config()
        engine = _engine_for(config)

    start_mappers()
    upgrade_head(engine=engine)
    if _Store.engine is not None and _Store.engine is not engine:
        _Store.engine.dispose()
    _Store.engine = engine
    # snapshots handed back to callers stay readable after the session closes
    _Store.sessions = sessionmaker(bind=engine, expire_on_commit=False)
    log.info("Snapshot store ready at revision %s", current_revision(engine))


def configured_engine() -> Engine | None:
    return _Store.engine


def is_started() -> bool:
    return _Store.engine is not None


def shutdown() -> None:
    if _Store.engine is not None:
        _Store.engine.dispose()
    _Store.engine = None
    _Store.sessions = None


class SqlAlchemyUnitOfWork:
    """One session around a block of snapshot reads and writes.

    Leaving the block without ``commit()`` discards pending changes.
    """

    def __init__(self) -> None:
        if _Store.sessions is None:
            raise StartupError(
                "Snapshot store not started. Call "
                "dossier.adapters.sqlalchemy.unit_of_work.startup() first."
            )
        self._sessions = _Store.sessions
        self._session: Session | None = None
        self._repositories: SnapshotRepositories | None = None

    def __enter__(self) -> SqlAlchemyUnitOfWork:
        if self._session is not None:
            raise StartupError("Unit of work is already open")
        self._session = self._sessions()
        self._repositories = SnapshotRepositories(
            snapshots=SqlAlchemySnapshotRepository(self._session)
        )
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_value: BaseException | None,
        traceback: TracebackType | None,
    ) -> Literal[False]:
        session = self.session
        try:
            if exc_type is not None:
                session.rollback()
        finally:
            session.close()
            self._session = None
            self._repositories = None
        return False

    @property
    def session(self) -> Session:
        if self._session is None:
            raise StartupError("Unit of work is not open")
        return self._session

    @property
    def repositories(self) -> SnapshotRepositories:
        if self._repositories is None:
            raise StartupError("Unit of work is not open")
        return self._repositories

    def commit(self) -> None:
        self.session.commit()

    def rollback(self) -> None:
        self.session.rollback()


if TYPE_CHECKING:
    from dossier.domain.ports.unit_of_work import SnapshotUnitOfWork

    _uow_check: SnapshotUnitOfWork = SqlAlchemyUnitOfWork()
