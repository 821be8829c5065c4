"""Where the snapshot database and the HTTP response cache live."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Final

from .env import env_flag

APP_DIR_NAME: Final[str] = "dossier"
DATABASE_FILENAME: Final[str] = "snapshots.db"
HTTP_CACHE_FILENAME: Final[str] = "http_cache.db"


@dataclass(frozen=True, slots=True)
class StorageConfig:
    """Data directory shared by the snapshot database and the registry lookup cache."""

    data_dir: Path

    @property
    def root(self) -> Path:
        return self.data_dir.expanduser().resolve()

    def path_for(self, filename: str, *, ensure: bool = True) -> Path:
        if ensure:
            self.root.mkdir(parents=True, exist_ok=True)
        return self.root / filename

    def database_uri(self) -> str:
        return f"sqlite+pysqlite:///{self.path_for(DATABASE_FILENAME)}"


@dataclass(frozen=True, slots=True)
class DatabaseConfig:
    uri: str
    echo: bool = False

    @property
    def is_sqlite(self) -> bool:
        return self.uri.startswith("sqlite")


def _platform_data_home() -> Path:
    if os.name == "nt":
        base = os.getenv("LOCALAPPDATA")
        return Path(base) if base else Path.home() / "AppData" / "Local"
    base = os.getenv("XDG_DATA_HOME")
    return Path(base) if base else Path.home() / ".local" / "share"


def get_storage_config() -> StorageConfig:
    override = os.getenv("DOSSIER_DATA_DIR")
    data_dir = Path(override) if override else _platform_data_home() / APP_DIR_NAME
    return StorageConfig(data_dir=data_dir)


def get_database_config(*, storage: StorageConfig | None = None) -> DatabaseConfig:
    """Database settings: ``DATABASE_URI`` wins over the SQLite file in the data directory."""
    uri = os.getenv("DATABASE_URI") or (storage or get_storage_config()).database_uri()
    return DatabaseConfig(uri=uri, echo=env_flag("DOSSIER_SQL_ECHO"))


def get_database_uri() -> str:
    return get_database_config().uri


def get_http_cache_path() -> Path:
    return get_storage_config().path_for(HTTP_CACHE_FILENAME)
