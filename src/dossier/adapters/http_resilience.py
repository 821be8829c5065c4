"""Rate-limited, retrying, optionally caching httpx client shared by every provider."""

from __future__ import annotations

from logging import getLogger
from typing import TYPE_CHECKING, TypedDict, Unpack

import httpx
from aiolimiter import AsyncLimiter
from hishel import AsyncSqliteStorage
from hishel.httpx import AsyncCacheClient
from httpx_retries import Retry, RetryTransport

from dossier.config.storage import get_http_cache_path

if TYPE_CHECKING:
    from collections.abc import Callable
    from types import TracebackType

    from httpx._client import UseClientDefault
    from httpx._types import (
        HeaderTypes,
        QueryParamTypes,
        RequestData,
        TimeoutTypes,
        URLTypes,
    )

    from dossier.config.http_resilience import (
        CacheConfig,
        RateLimit,
        ResilienceConfig,
        RetryPolicy,
    )

log = getLogger(__name__)


class RequestOptions(TypedDict, total=False):
    content: bytes | str | None
    data: RequestData | None
    json: object
    params: QueryParamTypes | None
    headers: HeaderTypes | None
    timeout: TimeoutTypes | UseClientDefault


class ClientOptions(TypedDict, total=False):
    base_url: str
    timeout: TimeoutTypes
    headers: HeaderTypes
    auth: httpx.Auth
    transport: httpx.AsyncBaseTransport


def build_transport(policy: RetryPolicy) -> httpx.AsyncBaseTransport:
    if not policy.enabled:
        return httpx.AsyncHTTPTransport()
    retry = Retry(
        total=policy.total,
        backoff_factor=policy.backoff_factor,
        max_backoff_wait=policy.max_backoff_wait,
        backoff_jitter=policy.backoff_jitter,
        respect_retry_after_header=policy.respect_retry_after_header,
        allowed_methods=tuple(policy.allowed_methods),
        status_forcelist=tuple(policy.status_forcelist),
        retry_on_exceptions=policy.retry_on_exceptions,
    )
    return RetryTransport(retry=retry)


def build_cache_storage(config: CacheConfig | None) -> AsyncSqliteStorage | None:
    if config is None:
        return None
    match config.backend:
        case "memory":
            database_path = ":memory:"
        case "sqlite":
            database_path = config.database_path or str(get_http_cache_path())
        case _:
            msg = f"Unsupported cache backend: {config.backend}"
            raise ValueError(msg)
    return AsyncSqliteStorage(database_path=database_path, default_ttl=config.ttl_seconds)


def _limiter(ratelimit: RateLimit | None) -> AsyncLimiter | None:
    if ratelimit is None:
        return None
    return AsyncLimiter(ratelimit.max_calls, ratelimit.per_seconds)


class ResilientClient:
    """Async HTTP client for one upstream.

    Every request waits on the upstream's rate limiter before it reaches the
    retrying transport. With a cache configured, fresh lookups are answered
    from it instead.
    """

    def __init__(self, config: ResilienceConfig, *, auth: httpx.Auth | None = None) -> None:
        self.config = config
        self._limiter = _limiter(config.ratelimit)

        options: ClientOptions = {
            "timeout": config.timeout_seconds,
            "transport": build_transport(config.retry),
        }
        if config.base_url is not None:
            options["base_url"] = config.base_url
        if config.default_headers:
            options["headers"] = dict(config.default_headers)
        if auth is not None:
            options["auth"] = auth

        storage = build_cache_storage(config.cache)
        self._client: httpx.AsyncClient
        if storage is not None:
            self._client = AsyncCacheClient(**options, storage=storage)
        else:
            self._client = httpx.AsyncClient(**options)

    @property
    def name(self) -> str:
        return self.config.name

    async def __aenter__(self) -> ResilientClient:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    async def request(
        self,
        method: str,
        url: URLTypes,
        **kwargs: Unpack[RequestOptions],
    ) -> httpx.Response:
        if self._limiter is None:
            response = await self._client.request(method, url, **kwargs)
        else:
            async with self._limiter:
                response = await self._client.request(method, url, **kwargs)
        log.debug("%s: %s %s -> %s", self.name, method, url, response.status_code)
        return response

    async def get(self, url: URLTypes, **kwargs: Unpack[RequestOptions]) -> httpx.Response:
        return await self.request("GET", url, **kwargs)

    async def post(self, url: URLTypes, **kwargs: Unpack[RequestOptions]) -> httpx.Response:
        return await self.request("POST", url, **kwargs)


def default_client_factory(
    config: ResilienceConfig, auth: httpx.Auth | None = None
) -> ResilientClient:
    return ResilientClient(config, auth=auth)


type ClientFactory = Callable[[ResilienceConfig, httpx.Auth | None], ResilientClient]
