"""Token acquisition and caching for authenticated upstreams."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from logging import getLogger
from typing import TYPE_CHECKING

import httpx
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from dossier.adapters.http_resilience import ResilientClient
from dossier.config.http_resilience import ResilienceConfig
from dossier.config.upstreams import ClientCredentialsGrant, JsonLoginGrant, StaticToken
from dossier.domain.errors import SourceAPIError
from dossier.domain.model import utcnow

if TYPE_CHECKING:
    from collections.abc import AsyncGenerator, Callable, Mapping

    from dossier.config.upstreams import CredentialGrant
    from dossier.domain.ports import CredentialProvider

log = getLogger(__name__)

REFRESH_MARGIN = timedelta(seconds=60)
DEFAULT_TOKEN_LIFETIME = timedelta(hours=1)


class CredentialError(SourceAPIError):
    """Raised when a token endpoint refuses or garbles a token request."""


class OAuthTokenResponse(BaseModel):
    model_config = ConfigDict(extra="ignore")

    access_token: str
    expires_in: int | None = None


class LoginTokenResponse(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    access_token: str = Field(alias="accessToken")
    # lifetime in seconds, or an absolute timestamp
    expiry: float | datetime | None = Field(default=None, alias="expiryDate")

    @field_validator("expiry")
    @classmethod
    def _assume_utc(cls, value: float | datetime | None) -> float | datetime | None:
        if isinstance(value, datetime) and value.tzinfo is None:
            return value.replace(tzinfo=UTC)
        return value


@dataclass(frozen=True, slots=True)
class IssuedToken:
    value: str
    expires_at: datetime | None

    def usable(self, now: datetime) -> bool:
        return self.expires_at is None or now < self.expires_at - REFRESH_MARGIN


def _auth_client_factory(config: ResilienceConfig) -> ResilientClient:
    return ResilientClient(config)


class TokenCache:
    """Caches one token per service and refreshes it shortly before expiry.

    Concurrent callers needing a refresh share a single token request.
    """

    def __init__(
        self,
        grants: Mapping[str, CredentialGrant],
        *,
        client_factory: Callable[[ResilienceConfig], ResilientClient] = _auth_client_factory,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self._grants = dict(grants)
        self._client_factory = client_factory
        self._clock = clock
        self._tokens: dict[str, IssuedToken] = {}
        self._locks: dict[str, asyncio.Lock] = {}

    def register(self, service: str, grant: CredentialGrant) -> None:
        self._grants[service] = grant
        self._tokens.pop(service, None)

    def refreshable(self, service: str) -> bool:
        return not isinstance(self._grants.get(service), StaticToken)

    async def get_token(self, service: str) -> str:
        cached = self._tokens.get(service)
        if cached is not None and cached.usable(self._clock()):
            return cached.value

        lock = self._locks.setdefault(service, asyncio.Lock())
        async with lock:
            cached = self._tokens.get(service)
            if cached is not None and cached.usable(self._clock()):
                return cached.value
            token = await self._issue(service)
            self._tokens[service] = token
            return token.value

    def invalidate(self, service: str) -> None:
        self._tokens.pop(service, None)

    async def _issue(self, service: str) -> IssuedToken:
        grant = self._grants.get(service)
        if grant is None:
            msg = f"no credentials configured for {service}"
            raise CredentialError(msg)

        match grant:
            case StaticToken(token=token):
                return IssuedToken(value=token, expires_at=None)
            case ClientCredentialsGrant():
                log.info("Requesting client-credentials token for %s", service)
                return await self._client_credentials(service, grant)
            case JsonLoginGrant():
                log.info("Logging in to %s", service)
                return await self._json_login(service, grant)

    async def _client_credentials(
        self, service: str, grant: ClientCredentialsGrant
    ) -> IssuedToken:
        form = {
            "grant_type": "client_credentials",
            "client_id": grant.client_id,
            "client_secret": grant.client_secret,
        }
        if grant.scope:
            form["scope"] = grant.scope
        payload = await self._post(service, grant.token_url, data=form)
        try:
            body = OAuthTokenResponse.model_validate(payload)
        except ValidationError as exc:
            msg = f"{service} token response is missing access_token"
            raise CredentialError(msg) from exc
        lifetime = (
            timedelta(seconds=body.expires_in) if body.expires_in else DEFAULT_TOKEN_LIFETIME
        )
        return IssuedToken(value=body.access_token, expires_at=self._clock() + lifetime)

    async def _json_login(self, service: str, grant: JsonLoginGrant) -> IssuedToken:
        payload = await self._post(
            service,
            grant.login_url,
            json={"clientId": grant.client_id, "clientSecret": grant.client_secret},
        )
        try:
            body = LoginTokenResponse.model_validate(payload)
        except ValidationError as exc:
            msg = f"{service} login response is missing accessToken"
            raise CredentialError(msg) from exc
        match body.expiry:
            case datetime() as expires_at:
                pass
            case int(seconds) | float(seconds):
                expires_at = self._clock() + timedelta(seconds=seconds)
            case None:
                expires_at = self._clock() + DEFAULT_TOKEN_LIFETIME
        return IssuedToken(value=body.access_token, expires_at=expires_at)

    async def _post(
        self,
        service: str,
        url: str,
        *,
        data: dict[str, str] | None = None,
        json: object = None,
    ) -> object:
        config = ResilienceConfig(name=f"{service}-auth")
        async with self._client_factory(config) as client:
            response = await client.post(url, data=data, json=json)
        if response.is_error:
            msg = f"{service} token request failed with HTTP {response.status_code}"
            raise CredentialError(msg, status_code=response.status_code)
        return response.json()


class ProviderAuth(httpx.Auth):
    """httpx auth flow attaching a provider token, retrying once after a 401."""

    def __init__(
        self,
        provider: CredentialProvider,
        service: str,
        *,
        header: str = "Authorization",
        scheme: str | None = "Bearer",
    ) -> None:
        self.provider = provider
        self.service = service
        self.header = header
        self.scheme = scheme

    def _apply(self, request: httpx.Request, token: str) -> None:
        request.headers[self.header] = f"{self.scheme} {token}" if self.scheme else token

    async def async_auth_flow(
        self, request: httpx.Request
    ) -> AsyncGenerator[httpx.Request, httpx.Response]:
        self._apply(request, await self.provider.get_token(self.service))
        response = yield request
        if response.status_code != httpx.codes.UNAUTHORIZED or not self.provider.refreshable(
            self.service
        ):
            return
        log.info("%s answered 401, refreshing token and retrying once", self.service)
        self.provider.invalidate(self.service)
        self._apply(request, await self.provider.get_token(self.service))
        yield request


def auth_for(
    provider: CredentialProvider, service: str, grant: CredentialGrant | None
) -> ProviderAuth | None:
    if grant is None:
        return None
    if isinstance(grant, StaticToken):
        return ProviderAuth(provider, service, header=grant.header, scheme=grant.scheme)
    return ProviderAuth(provider, service)
