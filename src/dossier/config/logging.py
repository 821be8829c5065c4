"""Logging setup for the command line."""

from __future__ import annotations

import logging
import os

from .errors import ConfigurationError

# request lines from these drown out acquisition progress below WARNING
CHATTY_LOGGERS = ("httpx", "httpcore", "hishel", "alembic.runtime.migration")


def _level_from_env(default: int) -> int:
    raw = os.getenv("DOSSIER_LOG_LEVEL")
    if not raw:
        return default
    level = logging.getLevelNamesMapping().get(raw.strip().upper())
    if level is None:
        msg = f"Unknown DOSSIER_LOG_LEVEL: {raw!r}"
        raise ConfigurationError(msg)
    return level


def configure_logging(*, level: int | None = None, force: bool = False) -> None:
    """Initialise the root logger.

    The level is ``level`` when given, else ``DOSSIER_LOG_LEVEL``, else INFO.
    """
    effective = level if level is not None else _level_from_env(logging.INFO)
    logging.basicConfig(
        level=effective,
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
        datefmt="%H:%M:%S",
        force=force,
    )
    for name in CHATTY_LOGGERS:
        logging.getLogger(name).setLevel(max(effective, logging.WARNING))
