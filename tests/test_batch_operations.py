import asyncio
import logging

import httpx
import pytest

from kbplex.errors import UnexpectedStatus
from kbplex.models import Channel, Device, Dvr
from tests.plex_helpers import _build_client

DVRS = [
    Dvr("1", [Device("101"), Device("102")]),
    Dvr("2", [Device("201")]),
    Dvr("3", []),
]


@pytest.mark.asyncio
async def test_refresh_guide_posts_in_order(request_log) -> None:
    async def handler(request: httpx.Request) -> httpx.Response:
        request_log.requests.append(request)
        return httpx.Response(200, json={})

    async with _build_client(handler) as client:
        result = await client.refresh_guide(DVRS)

    assert result is None
    assert [request.method for request in request_log.requests] == ["POST"] * 3
    assert request_log.paths == [
        "/livetv/dvrs/1/reloadGuide",
        "/livetv/dvrs/2/reloadGuide",
        "/livetv/dvrs/3/reloadGuide",
    ]


@pytest.mark.asyncio
async def test_refresh_guide_continues_after_failure(request_log, caplog) -> None:
    caplog.set_level(logging.ERROR, logger="kbplex.plex_api")

    async def handler(request: httpx.Request) -> httpx.Response:
        request_log.requests.append(request)
        if request.url.path == "/livetv/dvrs/2/reloadGuide":
            return httpx.Response(500, json={})
        return httpx.Response(200, json={})

    async with _build_client(handler) as client:
        await client.refresh_guide(DVRS)

    assert request_log.paths == [
        "/livetv/dvrs/1/reloadGuide",
        "/livetv/dvrs/2/reloadGuide",
        "/livetv/dvrs/3/reloadGuide",
    ]
    errors = [record for record in caplog.records if record.levelno == logging.ERROR]
    assert len(errors) == 1
    assert "DVR 2" in errors[0].getMessage()


@pytest.mark.asyncio
async def test_refresh_guide_continues_after_transport_error(request_log) -> None:
    async def handler(request: httpx.Request) -> httpx.Response:
        request_log.requests.append(request)
        if request.url.path == "/livetv/dvrs/1/reloadGuide":
            raise httpx.ConnectError("connection refused", request=request)
        return httpx.Response(200, json={})

    async with _build_client(handler) as client:
        await client.refresh_guide(DVRS)

    assert len(request_log.requests) == 3


@pytest.mark.asyncio
async def test_refresh_guide_continues_after_undecodable_body(request_log, caplog) -> None:
    caplog.set_level(logging.ERROR, logger="kbplex.plex_api")

    async def handler(request: httpx.Request) -> httpx.Response:
        request_log.requests.append(request)
        if request.url.path == "/livetv/dvrs/1/reloadGuide":
            return httpx.Response(
                200,
                headers={"Content-Encoding": "gzip"},
                content=b"not-gzip",
            )
        return httpx.Response(200, json={})

    async with _build_client(handler) as client:
        await client.refresh_guide(DVRS)

    assert request_log.paths == [
        "/livetv/dvrs/1/reloadGuide",
        "/livetv/dvrs/2/reloadGuide",
        "/livetv/dvrs/3/reloadGuide",
    ]
    assert "DVR 1" in caplog.text


@pytest.mark.asyncio
async def test_refresh_guide_fetches_dvrs_when_not_given(request_log, dvrs_payload) -> None:
    async def handler(request: httpx.Request) -> httpx.Response:
        request_log.requests.append(request)
        if request.url.path == "/livetv/dvrs":
            return httpx.Response(200, json=dvrs_payload)
        return httpx.Response(200, json={})

    async with _build_client(handler) as client:
        await client.refresh_guide()

    assert request_log.paths == [
        "/livetv/dvrs",
        "/livetv/dvrs/11/reloadGuide",
        "/livetv/dvrs/12/reloadGuide",
    ]


@pytest.mark.asyncio
async def test_refresh_guide_listing_failure_propagates() -> None:
    async def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(503, json={})

    async with _build_client(handler) as client:
        with pytest.raises(UnexpectedStatus):
            await client.refresh_guide()


@pytest.mark.asyncio
async def test_refresh_channels_one_put_per_device(request_log) -> None:
    async def handler(request: httpx.Request) -> httpx.Response:
        request_log.requests.append(request)
        return httpx.Response(200, json={})

    async with _build_client(handler) as client:
        result = await client.refresh_channels([Channel(7), Channel(3)], DVRS)

    assert result is None
    assert [request.method for request in request_log.requests] == ["PUT"] * 3
    assert sorted(request_log.paths) == [
        "/media/grabbers/devices/101/channelmap",
        "/media/grabbers/devices/102/channelmap",
        "/media/grabbers/devices/201/channelmap",
    ]
    for request in request_log.requests:
        assert dict(request.url.params) == {
            "channelsEnabled": "7,3",
            "channelMapping[7]": "7",
            "channelMappingByKey[7]": "7",
            "channelMapping[3]": "3",
            "channelMappingByKey[3]": "3",
        }
        assert request.headers["X-Plex-Token"] == "token-1"


@pytest.mark.asyncio
async def test_refresh_channels_issues_in_flattened_order(request_log) -> None:
    async def handler(request: httpx.Request) -> httpx.Response:
        request_log.requests.append(request)
        return httpx.Response(200, json={})

    async with _build_client(handler) as client:
        await client.refresh_channels([Channel(7)], DVRS)

    assert request_log.paths == [
        "/media/grabbers/devices/101/channelmap",
        "/media/grabbers/devices/102/channelmap",
        "/media/grabbers/devices/201/channelmap",
    ]


@pytest.mark.asyncio
async def test_refresh_channels_writes_overlap(request_log) -> None:
    all_arrived = asyncio.Event()

    async def handler(request: httpx.Request) -> httpx.Response:
        request_log.requests.append(request)
        if len(request_log.requests) == 3:
            all_arrived.set()
        await asyncio.wait_for(all_arrived.wait(), timeout=1)
        return httpx.Response(200, json={})

    async with _build_client(handler) as client:
        await client.refresh_channels([Channel(7)], DVRS)

    assert all_arrived.is_set()
    assert len(request_log.requests) == 3


@pytest.mark.asyncio
async def test_refresh_channels_fetches_dvrs_when_not_given(request_log, dvrs_payload) -> None:
    async def handler(request: httpx.Request) -> httpx.Response:
        request_log.requests.append(request)
        if request.url.path == "/livetv/dvrs":
            return httpx.Response(200, json=dvrs_payload)
        return httpx.Response(200, json={})

    async with _build_client(handler) as client:
        await client.refresh_channels([Channel(1)])

    assert request_log.paths[0] == "/livetv/dvrs"
    assert sorted(request_log.paths[1:]) == [
        "/media/grabbers/devices/101/channelmap",
        "/media/grabbers/devices/102/channelmap",
        "/media/grabbers/devices/201/channelmap",
    ]


@pytest.mark.asyncio
async def test_refresh_channels_single_failure_fails_whole_operation() -> None:
    async def handler(request: httpx.Request) -> httpx.Response:
        if request.url.path == "/media/grabbers/devices/102/channelmap":
            return httpx.Response(404, json={})
        return httpx.Response(200, json={})

    async with _build_client(handler) as client:
        with pytest.raises(UnexpectedStatus) as excinfo:
            await client.refresh_channels([Channel(7)], DVRS)

    assert excinfo.value.path == "/media/grabbers/devices/102/channelmap"
    assert excinfo.value.status_code == 404


@pytest.mark.asyncio
async def test_refresh_channels_without_devices_sends_nothing(request_log) -> None:
    async def handler(request: httpx.Request) -> httpx.Response:
        request_log.requests.append(request)
        return httpx.Response(200, json={})

    async with _build_client(handler) as client:
        await client.refresh_channels([Channel(7)], [Dvr("9", [])])

    assert request_log.requests == []
