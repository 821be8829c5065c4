"""Due-diligence report acquisition and caching."""

from __future__ import annotations

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("dossier")
except PackageNotFoundError:
    # source checkout without an installed distribution
    __version__ = "0.0.0+local"
