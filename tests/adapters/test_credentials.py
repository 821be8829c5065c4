from __future__ import annotations

import asyncio
import json
from datetime import UTC, datetime, timedelta
from urllib.parse import parse_qs

import httpx
import pytest

from dossier.adapters.credentials import CredentialError, TokenCache, auth_for
from dossier.config import ClientCredentialsGrant, JsonLoginGrant, StaticToken
from dossier.domain.ports import CredentialProvider
from tests.helpers.http import Handler, mock_client_factory

NOW = datetime(2025, 6, 1, 9, 0, tzinfo=UTC)
OAUTH = ClientCredentialsGrant(
    token_url="https://auth.test/connect/token",
    client_id="client",
    client_secret="secret",
    scope="integrationaccess",
)


class Clock:
    def __init__(self) -> None:
        self.now = NOW

    def __call__(self) -> datetime:
        return self.now


class TokenEndpoint:
    def __init__(self, body: dict[str, object] | None = None, status: int = 200) -> None:
        self.body = body
        self.status = status
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        body = self.body or {"access_token": f"token-{len(self.requests)}", "expires_in": 3600}
        return httpx.Response(self.status, json=body)


def _cache(
    endpoint: TokenEndpoint, grant: object = OAUTH, clock: Clock | None = None
) -> TokenCache:
    return TokenCache(
        {"svc": grant},  # type: ignore[dict-item]
        client_factory=mock_client_factory(endpoint),
        clock=clock or Clock(),
    )


def test_client_credentials_token_is_cached_until_near_expiry() -> None:
    endpoint = TokenEndpoint()
    clock = Clock()
    cache = _cache(endpoint, clock=clock)

    async def scenario() -> list[str]:
        tokens = [await cache.get_token("svc"), await cache.get_token("svc")]
        clock.now = NOW + timedelta(minutes=59, seconds=30)
        tokens.append(await cache.get_token("svc"))
        return tokens

    tokens = asyncio.run(scenario())

    assert tokens == ["token-1", "token-1", "token-2"]
    form = parse_qs(endpoint.requests[0].content.decode())
    assert form == {
        "grant_type": ["client_credentials"],
        "client_id": ["client"],
        "client_secret": ["secret"],
        "scope": ["integrationaccess"],
    }


def test_concurrent_callers_share_one_token_request() -> None:
    endpoint = TokenEndpoint()
    cache = _cache(endpoint)

    async def scenario() -> list[str]:
        return list(await asyncio.gather(*(cache.get_token("svc") for _ in range(5))))

    assert asyncio.run(scenario()) == ["token-1"] * 5
    assert len(endpoint.requests) == 1


@pytest.mark.parametrize(
    ("expiry", "expected"),
    [
        (600, NOW + timedelta(seconds=600)),
        ("2025-06-01T12:00:00Z", datetime(2025, 6, 1, 12, tzinfo=UTC)),
        ("2025-06-01T12:00:00", datetime(2025, 6, 1, 12, tzinfo=UTC)),
        (600.5, NOW + timedelta(seconds=600.5)),
        ("600", NOW + timedelta(seconds=600)),
        (None, NOW + timedelta(hours=1)),
    ],
)
def test_json_login_reads_expiry_forms(expiry: object, expected: datetime) -> None:
    endpoint = TokenEndpoint({"accessToken": "login-token", "expiryDate": expiry})
    grant = JsonLoginGrant(login_url="https://auth.test/login", client_id="id", client_secret="s")
    cache = _cache(endpoint, grant)

    assert asyncio.run(cache.get_token("svc")) == "login-token"
    issued = cache._tokens["svc"]  # noqa: SLF001
    assert issued.expires_at == expected
    assert json.loads(endpoint.requests[0].content) == {"clientId": "id", "clientSecret": "s"}


def test_login_token_without_timezone_is_reused() -> None:
    endpoint = TokenEndpoint({"accessToken": "login-token", "expiryDate": "2025-06-01T12:00:00"})
    grant = JsonLoginGrant(login_url="https://auth.test/login", client_id="id", client_secret="s")
    cache = _cache(endpoint, grant)

    async def scenario() -> list[str]:
        return [await cache.get_token("svc"), await cache.get_token("svc")]

    assert asyncio.run(scenario()) == ["login-token", "login-token"]
    assert len(endpoint.requests) == 1


def test_refused_token_request_raises_credential_error() -> None:
    cache = _cache(TokenEndpoint({"error": "invalid_client"}, status=401))

    with pytest.raises(CredentialError) as exc:
        asyncio.run(cache.get_token("svc"))

    assert exc.value.status_code == 401


def test_token_response_without_access_token_raises() -> None:
    cache = _cache(TokenEndpoint({"token_type": "bearer"}))

    with pytest.raises(CredentialError):
        asyncio.run(cache.get_token("svc"))


def _upstream_client(cache: TokenCache, grant: object, handler: Handler) -> httpx.AsyncClient:
    auth = auth_for(cache, "svc", grant)  # type: ignore[arg-type]
    return httpx.AsyncClient(
        transport=httpx.MockTransport(handler),
        base_url="https://upstream.test",
        auth=auth,
    )


def test_unauthorised_response_refreshes_token_once() -> None:
    endpoint = TokenEndpoint()
    cache = _cache(endpoint)
    seen: list[str] = []

    def upstream(request: httpx.Request) -> httpx.Response:
        seen.append(request.headers["Authorization"])
        if request.headers["Authorization"] == "Bearer token-1":
            return httpx.Response(401)
        return httpx.Response(200, json={"ok": True})

    async def scenario() -> int:
        async with _upstream_client(cache, OAUTH, upstream) as client:
            response = await client.get("/records")
        return response.status_code

    assert asyncio.run(scenario()) == 200
    assert seen == ["Bearer token-1", "Bearer token-2"]
    assert len(endpoint.requests) == 2


def test_static_tokens_use_their_header_and_are_not_refreshed() -> None:
    grant = StaticToken(token="api-key", header="Api-Key", scheme=None)
    endpoint = TokenEndpoint()
    cache = _cache(endpoint, grant)
    seen: list[str] = []

    def upstream(request: httpx.Request) -> httpx.Response:
        seen.append(request.headers["Api-Key"])
        return httpx.Response(401)

    async def scenario() -> int:
        async with _upstream_client(cache, grant, upstream) as client:
            response = await client.get("/records")
        return response.status_code

    assert asyncio.run(scenario()) == 401
    assert seen == ["api-key"]
    assert endpoint.requests == []


def test_unknown_service_has_no_credentials() -> None:
    cache = TokenCache({}, client_factory=mock_client_factory(TokenEndpoint()))

    with pytest.raises(CredentialError):
        asyncio.run(cache.get_token("missing"))

    assert auth_for(cache, "missing", None) is None
    assert isinstance(cache, CredentialProvider)
