import asyncio

import httpx
import pytest

from ingest.firms_client import FIRMSClientError, FirmsFeedClient, build_firms_url, format_bbox

KANCHANABURI_BBOX = (98.1817, 13.72614, 99.89221, 15.66301)


def _client(handler, map_key="abc123secret"):
    return FirmsFeedClient(
        map_key,
        base_url="https://firms.test/api/area/csv",
        transport=httpx.MockTransport(handler),
    )


def test_build_firms_url_orders_bbox_west_south_east_north():
    url = build_firms_url("KEY", "VIIRS_SNPP_NRT", KANCHANABURI_BBOX, 3, base_url="https://firms.test/csv/")
    assert url == "https://firms.test/csv/KEY/VIIRS_SNPP_NRT/98.1817,13.72614,99.89221,15.66301/3"


def test_format_bbox_trims_trailing_zeros():
    assert format_bbox((99.0, 14.5, 100.25, 16.0)) == "99,14.5,100.25,16"


def test_fetch_returns_body_and_requests_csv():
    seen = {}

    def handler(request):
        seen["url"] = str(request.url)
        seen["accept"] = request.headers.get("accept")
        return httpx.Response(200, text="latitude,longitude\n14.1,99.5\n")

    body = asyncio.run(_client(handler).fetch("MODIS_NRT", KANCHANABURI_BBOX, 2))

    assert body.startswith("latitude,longitude")
    assert seen["url"].endswith("/abc123secret/MODIS_NRT/98.1817,13.72614,99.89221,15.66301/2")
    assert seen["accept"] == "text/csv"


def test_fetch_raises_on_http_error_status():
    client = _client(lambda request: httpx.Response(503, text="unavailable"))

    with pytest.raises(FIRMSClientError, match="HTTP 503 for VIIRS_SNPP_NRT"):
        asyncio.run(client.fetch("VIIRS_SNPP_NRT", KANCHANABURI_BBOX, 1))


def test_fetch_raises_on_error_body_with_success_status():
    client = _client(lambda request: httpx.Response(200, text="Invalid MAP_KEY."))

    with pytest.raises(FIRMSClientError, match="reported an error"):
        asyncio.run(client.fetch("VIIRS_SNPP_NRT", KANCHANABURI_BBOX, 1))


def test_fetch_wraps_transport_failures():
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    with pytest.raises(FIRMSClientError, match="Failed to fetch"):
        asyncio.run(_client(handler).fetch("VIIRS_NOAA20_NRT", KANCHANABURI_BBOX, 1))


def test_fetch_wraps_invalid_url_from_map_key():
    client = _client(lambda request: httpx.Response(200, text=""), map_key="abc\n123")

    with pytest.raises(FIRMSClientError, match="Failed to fetch"):
        asyncio.run(client.fetch("MODIS_NRT", KANCHANABURI_BBOX, 1))


def test_fetch_without_map_key_never_calls_network():
    calls = []

    def handler(request):
        calls.append(request)
        return httpx.Response(200, text="")

    with pytest.raises(FIRMSClientError, match="map key"):
        asyncio.run(_client(handler, map_key="").fetch("MODIS_NRT", KANCHANABURI_BBOX, 1))
    assert calls == []
