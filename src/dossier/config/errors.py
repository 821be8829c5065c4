"""Configuration error definitions."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Iterable


class ConfigurationError(RuntimeError):
    """Raised when a configuration value cannot be used as given."""


class MissingConfigurationError(ConfigurationError):
    """Raised when settings an upstream or the watchlist needs are absent or blank.

    ``names`` lists every missing setting so a single run reports all of them.
    """

    def __init__(self, names: Iterable[str]) -> None:
        self.names = tuple(sorted(names))
        super().__init__(f"Missing configuration for: {', '.join(self.names)}")
