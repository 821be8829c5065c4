"""Connection settings for the upstream data providers."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from .env import require_env_vars
from .http_resilience import CacheConfig, RateLimit, ResilienceConfig, RetryPolicy

if TYPE_CHECKING:
    from collections.abc import Mapping

ABR_BASE_URL = "https://abr.business.gov.au"
ALARES_BASE_URL = "https://alares.com.au/api"
AFSA_BASE_URL = "https://services.afsa.gov.au"
AFSA_LOGIN_PATH = "/authentication-service/api/v2/login"
PPSR_BASE_URL = "https://uat-gateway.ppsrcloud.com"
PPSR_TOKEN_PATH = "/connect/token"
COURTDATA_BASE_URL = "https://corp-api.courtdata.com.au/api"
GLOBALX_BASE_URL = "https://online.globalx.com.au/api/national-property"
CORELOGIC_BASE_URL = "https://api-sbox.corelogic.asia"
CORELOGIC_TOKEN_PATH = "/access/oauth/token"
IPAUSTRALIA_BASE_URL = (
    "https://production.api.ipaustralia.gov.au/public/australian-trade-mark-search-api/v1"
)
IPAUSTRALIA_TOKEN_URL = (
    "https://production.api.ipaustralia.gov.au/public/external-token-api/v1/access_token"
)


@dataclass(frozen=True, slots=True)
class ClientCredentialsGrant:
    """OAuth2 client-credentials grant posted as a form body."""

    token_url: str
    client_id: str
    client_secret: str
    scope: str | None = None


@dataclass(frozen=True, slots=True)
class JsonLoginGrant:
    """Vendor login endpoint taking a JSON body and returning ``accessToken``/``expiryDate``."""

    login_url: str
    client_id: str
    client_secret: str


@dataclass(frozen=True, slots=True)
class StaticToken:
    token: str
    header: str = "Authorization"
    scheme: str | None = "Bearer"


type CredentialGrant = ClientCredentialsGrant | JsonLoginGrant | StaticToken


@dataclass(frozen=True, slots=True)
class UpstreamConfig:
    name: str
    resilience: ResilienceConfig
    credentials: CredentialGrant | None = None
    options: Mapping[str, str] = field(default_factory=dict)


def _base_url(env_name: str, default: str) -> str:
    return (os.getenv(env_name) or default).rstrip("/")


def get_abr_config() -> UpstreamConfig:
    values = require_env_vars(("ABN_GUID",))
    return UpstreamConfig(
        name="abr",
        resilience=ResilienceConfig(
            name="abr",
            base_url=_base_url("ABR_BASE_URL", ABR_BASE_URL),
            ratelimit=RateLimit(max_calls=4, per_seconds=1.0),
            cache=CacheConfig(ttl_seconds=3600.0),
        ),
        options={"guid": values["ABN_GUID"]},
    )


def get_alares_config() -> UpstreamConfig:
    values = require_env_vars(("ALARES_API_TOKEN",))
    options: dict[str, str] = {}
    watchlist_id = os.getenv("ALARES_WATCHLIST_ID")
    if watchlist_id:
        options["watchlist_id"] = watchlist_id
    return UpstreamConfig(
        name="alares",
        resilience=ResilienceConfig(
            name="alares",
            base_url=_base_url("ALARES_BASE_URL", ALARES_BASE_URL),
            retry=RetryPolicy.disabled(),
        ),
        credentials=StaticToken(token=values["ALARES_API_TOKEN"]),
        options=options,
    )


def get_afsa_config() -> UpstreamConfig:
    values = require_env_vars(("AFSA_CLIENT_ID", "AFSA_CLIENT_SECRET"))
    base_url = _base_url("AFSA_BASE_URL", AFSA_BASE_URL)
    return UpstreamConfig(
        name="afsa",
        resilience=ResilienceConfig(name="afsa", base_url=base_url),
        credentials=JsonLoginGrant(
            login_url=f"{base_url}{AFSA_LOGIN_PATH}",
            client_id=values["AFSA_CLIENT_ID"],
            client_secret=values["AFSA_CLIENT_SECRET"],
        ),
    )


def get_ppsr_config() -> UpstreamConfig:
    values = require_env_vars(("PPSR_CLIENT_ID", "PPSR_CLIENT_SECRET"))
    base_url = _base_url("PPSR_BASE_URL", PPSR_BASE_URL)
    return UpstreamConfig(
        name="ppsr",
        resilience=ResilienceConfig(
            name="ppsr",
            base_url=base_url,
            retry=RetryPolicy.disabled(),
        ),
        credentials=ClientCredentialsGrant(
            token_url=f"{base_url}{PPSR_TOKEN_PATH}",
            client_id=values["PPSR_CLIENT_ID"],
            client_secret=values["PPSR_CLIENT_SECRET"],
            scope="integrationaccess",
        ),
        options={"client_reference": os.getenv("PPSR_CLIENT_REFERENCE", "Dossier Search")},
    )


def get_courtdata_config() -> UpstreamConfig:
    values = require_env_vars(("COURTDATA_API_KEY",))
    return UpstreamConfig(
        name="courtdata",
        resilience=ResilienceConfig(
            name="courtdata",
            base_url=_base_url("COURTDATA_BASE_URL", COURTDATA_BASE_URL),
            default_headers={"accept": "application/json"},
        ),
        credentials=StaticToken(token=values["COURTDATA_API_KEY"], header="Api-Key", scheme=None),
        options={"state": os.getenv("COURTDATA_STATE", "NSW")},
    )


def get_globalx_config() -> UpstreamConfig:
    values = require_env_vars(("GLOBALX_CLIENT_ID", "GLOBALX_CLIENT_SECRET", "GLOBALX_TOKEN_URL"))
    return UpstreamConfig(
        name="globalx",
        resilience=ResilienceConfig(
            name="globalx",
            base_url=_base_url("GLOBALX_BASE_URL", GLOBALX_BASE_URL),
            retry=RetryPolicy.disabled(),
        ),
        credentials=ClientCredentialsGrant(
            token_url=values["GLOBALX_TOKEN_URL"],
            client_id=values["GLOBALX_CLIENT_ID"],
            client_secret=values["GLOBALX_CLIENT_SECRET"],
        ),
        options={"order_reference": os.getenv("GLOBALX_ORDER_REFERENCE", "Dossier")},
    )


def get_corelogic_config() -> UpstreamConfig:
    values = require_env_vars(("CORELOGIC_CLIENT_ID", "CORELOGIC_CLIENT_SECRET"))
    base_url = _base_url("CORELOGIC_BASE_URL", CORELOGIC_BASE_URL)
    return UpstreamConfig(
        name="corelogic",
        resilience=ResilienceConfig(
            name="corelogic",
            base_url=base_url,
            ratelimit=RateLimit(max_calls=5, per_seconds=1.0),
        ),
        credentials=ClientCredentialsGrant(
            token_url=os.getenv("CORELOGIC_TOKEN_URL") or f"{base_url}{CORELOGIC_TOKEN_PATH}",
            client_id=values["CORELOGIC_CLIENT_ID"],
            client_secret=values["CORELOGIC_CLIENT_SECRET"],
        ),
    )


def get_ipaustralia_config() -> UpstreamConfig:
    values = require_env_vars(("IPAUSTRALIA_CLIENT_ID", "IPAUSTRALIA_CLIENT_SECRET"))
    return UpstreamConfig(
        name="ipaustralia",
        resilience=ResilienceConfig(
            name="ipaustralia",
            base_url=_base_url("IPAUSTRALIA_BASE_URL", IPAUSTRALIA_BASE_URL),
            ratelimit=RateLimit(max_calls=2, per_seconds=1.0),
        ),
        credentials=ClientCredentialsGrant(
            token_url=os.getenv("IPAUSTRALIA_TOKEN_URL") or IPAUSTRALIA_TOKEN_URL,
            client_id=values["IPAUSTRALIA_CLIENT_ID"],
            client_secret=values["IPAUSTRALIA_CLIENT_SECRET"],
        ),
    )


def get_unclaimed_money_config() -> UpstreamConfig:
    values = require_env_vars(("UNCLAIMED_MONEY_BASE_URL", "UNCLAIMED_MONEY_API_KEY"))
    return UpstreamConfig(
        name="unclaimed-money",
        resilience=ResilienceConfig(
            name="unclaimed-money",
            base_url=values["UNCLAIMED_MONEY_BASE_URL"].rstrip("/"),
            ratelimit=RateLimit(max_calls=2, per_seconds=1.0),
        ),
        credentials=StaticToken(
            token=values["UNCLAIMED_MONEY_API_KEY"], header="x-api-key", scheme=None
        ),
    )
