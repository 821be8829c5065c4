from __future__ import annotations

from typing import Protocol, runtime_checkable


@runtime_checkable
class CredentialProvider(Protocol):
    """Supplies bearer tokens or API keys per upstream service."""

    async def get_token(self, service: str) -> str: ...

    def invalidate(self, service: str) -> None: ...

    def refreshable(self, service: str) -> bool:
        """Whether invalidating the token for ``service`` can yield a different one."""
        ...
