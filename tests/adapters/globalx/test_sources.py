from __future__ import annotations

import asyncio
import json
from typing import Any

import httpx
import pytest

from dossier.adapters.globalx import (
    GlobalXClient,
    LandTitleAddressSource,
    LandTitleOwnerSource,
    LandTitleReferenceSource,
    located_address,
)
from dossier.adapters.globalx.client import GlobalXAPIError
from dossier.config.acquisition import AcquisitionConfig
from dossier.domain.acquisition import SourceRequest
from dossier.domain.errors import InvalidInputError, UpstreamUnavailableError
from dossier.domain.model import (
    Address,
    Individual,
    Organisation,
    ReportOptions,
    ReportType,
    TitleReference,
)
from tests.helpers.globalx import FakeValuer, GlobalXUpstream, title_orders, title_payload
from tests.helpers.http import fetch_context, mock_client_factory, upstream_config
from tests.helpers.snapshots import make_snapshot


def _request(
    subject: Organisation | Individual, report_type: ReportType, **options: Any
) -> SourceRequest:
    return SourceRequest(
        subject=subject,
        report_type=report_type,
        options=ReportOptions(**options),
        subject_key="key",
    )


ACME = Organisation("51824753556", name="ACME PTY LTD")


def test_located_address_joins_first_location() -> None:
    assert located_address(title_payload("1/2")) == "10 Example St Sydney NSW 2000"
    assert located_address({"LocationSegment": []}) is None
    assert located_address(None) is None


def test_title_reference_order_waits_out_the_order(fast_config: AcquisitionConfig) -> None:
    upstream = GlobalXUpstream(pending_polls=1)
    source = LandTitleReferenceSource(orders=title_orders(upstream))
    request = _request(
        ACME,
        ReportType.LAND_TITLE_REFERENCE,
        title_reference="99/30539",
        jurisdiction="nsw",
    )
    context, sleep = fetch_context(fast_config)

    result = asyncio.run(source.fetch(request, context))

    assert result.external_id == "T-1"
    assert result.payload["cotality"] is None
    assert result.payload["titleOrder"]["TitleReference"] == "99/30539"
    created = json.loads(upstream.requests[0].content)
    assert created["OrderRequestBlock"] == {"OrderReference": "Test"}
    assert created["ServiceRequestBlock"] == {
        "Jurisdiction": "NSW",
        "TitleReference": "99/30539",
        "DontUseCachingProduct": True,
    }
    assert sleep.delays == [50.0, 3.0]


def test_stored_title_order_is_reused(fast_config: AcquisitionConfig) -> None:
    upstream = GlobalXUpstream()
    stored = make_snapshot(
        ReportType.LAND_TITLE_REFERENCE,
        "NSW:99/30539",
        document={"uuid": "T-0", "cotality": None, "titleOrder": {"TitleReference": "99/30539"}},
    )
    context, _ = fetch_context(
        fast_config,
        lookup=lambda report_type, key: stored
        if (report_type, key) == (ReportType.LAND_TITLE_REFERENCE, "NSW:99/30539")
        else None,
    )

    order_id, title_order = asyncio.run(
        title_orders(upstream).title(TitleReference("99/30539", "NSW"), context)
    )

    assert order_id is None
    assert title_order == {"TitleReference": "99/30539"}
    assert upstream.requests == []


def test_address_search_locates_then_orders_title(fast_config: AcquisitionConfig) -> None:
    upstream = GlobalXUpstream(located={"NSW": ["1/234"]})
    valuer = FakeValuer()
    source = LandTitleAddressSource(orders=title_orders(upstream), valuer=valuer)
    address = Address(street_number="10", street_name="Example", locality="Sydney", state="NSW")
    context, _ = fetch_context(fast_config)

    result = asyncio.run(
        source.fetch(
            _request(ACME, ReportType.LAND_TITLE_ADDRESS, address=address, include_valuation=True),
            context,
        )
    )

    locator = upstream.posts("locator-orders")[0]
    assert locator["Location"]["StructuredAddress"]["StreetName"] == "Example"
    assert upstream.posts("title-orders")[0]["TitleReference"] == "1/234"
    assert result.payload["titleOrder"]["TitleReference"] == "1/234"
    assert result.payload["cotality"] == {"propertyId": "P1"}
    assert valuer.addresses == ["10 Example St Sydney NSW 2000"]
    assert result.search_label == address.display()


def test_address_without_title_is_invalid(fast_config: AcquisitionConfig) -> None:
    source = LandTitleAddressSource(orders=title_orders(GlobalXUpstream()))
    address = Address(text="1 Nowhere Rd", state="WA")
    context, _ = fetch_context(fast_config)

    with pytest.raises(InvalidInputError):
        request = _request(ACME, ReportType.LAND_TITLE_ADDRESS, address=address)
        asyncio.run(source.fetch(request, context))


def test_owner_search_fans_out_over_states(fast_config: AcquisitionConfig) -> None:
    upstream = GlobalXUpstream(
        located={"NSW": ["1/234", "2/234"], "VIC": ["7/100"]}, failing_states={"QLD"}
    )
    valuer = FakeValuer(fail=True)
    source = LandTitleOwnerSource(orders=title_orders(upstream), valuer=valuer)
    context, _ = fetch_context(fast_config)
    request = _request(
        ACME,
        ReportType.LAND_TITLE_ORGANISATION,
        states=("NSW", "VIC", "QLD"),
        include_valuation=True,
    )

    result = asyncio.run(source.fetch(request, context))

    payload = result.payload
    assert payload["companyName"] == "ACME PTY LTD"
    assert payload["currentCount"] == 3
    assert payload["allCount"] == 3
    assert [item["titleReference"] for item in payload["titleOrders"]] == [
        "1/234",
        "2/234",
        "7/100",
    ]
    assert payload["storedLocatorData"]["QLD"] is None
    assert payload["storedLocatorData"]["VIC"] == [
        {"titleReference": "7/100", "jurisdiction": "VIC"}
    ]
    assert payload["cotality"] is None
    assert len(valuer.addresses) == 3
    assert {unit.subject_key for unit in result.sub_units} == {
        "NSW:1/234",
        "NSW:2/234",
        "VIC:7/100",
    }
    assert all(unit.report_type is ReportType.LAND_TITLE_REFERENCE for unit in result.sub_units)
    owners = [post["Owner"] for post in upstream.posts("locator-orders")]
    assert owners[0] == {"Organisation": {"Name": "ACME PTY LTD"}}


def test_owner_search_failing_everywhere_raises(fast_config: AcquisitionConfig) -> None:
    upstream = GlobalXUpstream(failing_states={"NSW", "VIC"})
    source = LandTitleOwnerSource(orders=title_orders(upstream))
    context, _ = fetch_context(fast_config)
    request = _request(
        Individual("Jane", "Citizen"), ReportType.LAND_TITLE_INDIVIDUAL, states=("NSW", "VIC")
    )

    with pytest.raises(httpx.HTTPStatusError):
        asyncio.run(source.fetch(request, context))


def test_owner_search_with_every_title_order_failing_raises(
    fast_config: AcquisitionConfig,
) -> None:
    upstream = GlobalXUpstream(
        located={"NSW": ["1/234", "2/234"]}, failing_titles={"1/234", "2/234"}
    )
    source = LandTitleOwnerSource(orders=title_orders(upstream))
    context, _ = fetch_context(fast_config)
    request = _request(ACME, ReportType.LAND_TITLE_ORGANISATION, states=("NSW",))

    with pytest.raises(UpstreamUnavailableError) as excinfo:
        asyncio.run(source.fetch(request, context))

    assert isinstance(excinfo.value.last_error, httpx.HTTPStatusError)
    assert len(upstream.posts("title-orders")) == 2


def test_owner_search_keeps_failed_title_orders_as_empty_entries(
    fast_config: AcquisitionConfig,
) -> None:
    upstream = GlobalXUpstream(located={"NSW": ["1/234", "2/234"]}, failing_titles={"2/234"})
    source = LandTitleOwnerSource(orders=title_orders(upstream))
    context, _ = fetch_context(fast_config)
    request = _request(ACME, ReportType.LAND_TITLE_ORGANISATION, states=("NSW",))

    result = asyncio.run(source.fetch(request, context))

    orders = {item["titleReference"]: item for item in result.payload["titleOrders"]}
    assert orders["1/234"]["titleOrder"]["TitleReference"] == "1/234"
    assert orders["2/234"]["titleOrder"] is None
    assert orders["2/234"]["orderId"] is None
    assert [unit.subject_key for unit in result.sub_units] == ["NSW:1/234"]


def test_owner_search_with_given_titles_skips_locating(fast_config: AcquisitionConfig) -> None:
    upstream = GlobalXUpstream()
    source = LandTitleOwnerSource(orders=title_orders(upstream))
    context, _ = fetch_context(fast_config)
    titles = (TitleReference("5/99", "SA"), TitleReference("5/99", "SA"))
    request = _request(
        Individual("Jane", "Citizen"), ReportType.LAND_TITLE_INDIVIDUAL, title_references=titles
    )

    result = asyncio.run(source.fetch(request, context))

    assert upstream.posts("locator-orders") == []
    assert len(upstream.posts("title-orders")) == 1
    assert result.payload["companyName"] == "Jane Citizen"
    assert result.payload["storedLocatorData"] == {}


def test_past_detail_orders_no_titles(fast_config: AcquisitionConfig) -> None:
    upstream = GlobalXUpstream(located={"NSW": ["1/234"]})
    source = LandTitleOwnerSource(orders=title_orders(upstream))
    context, _ = fetch_context(fast_config)
    request = _request(ACME, ReportType.LAND_TITLE_ORGANISATION, states=("NSW",), detail="PAST")

    result = asyncio.run(source.fetch(request, context))

    assert result.payload["currentCount"] == 1
    assert result.payload["titleOrders"] == []
    assert result.sub_units == []


def test_order_without_identifier_raises() -> None:
    def handler(request: httpx.Request) -> httpx.Response:  # noqa: ARG001
        return httpx.Response(200, json={"OrderResultBlock": {}})

    client = GlobalXClient(
        config=upstream_config("globalx"), client_factory=mock_client_factory(handler)
    )

    with pytest.raises(GlobalXAPIError):
        asyncio.run(client.create_order("title-orders", {"Jurisdiction": "NSW"}))
