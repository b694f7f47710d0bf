from __future__ import annotations

import asyncio
import logging
from typing import Callable, Iterable

import httpx

from auth.session import AuthSession, ClientIdentity

from .constants import (
    DEFAULT_APP_NAME,
    DEFAULT_HOST,
    DEFAULT_PORT,
    DEFAULT_PROTOCOL,
    LOGGER,
    PLEX_SIGN_IN_URL,
    REQUEST_TIMEOUT_SECONDS,
)
from .errors import PlexError, SignInRejected, TransportError, UnexpectedStatus
from .models import Channel, Device, Dvr


def build_base_url(
    protocol: str = DEFAULT_PROTOCOL,
    host: str = DEFAULT_HOST,
    port: int = DEFAULT_PORT,
) -> str:
    return f"{protocol or DEFAULT_PROTOCOL}://{host or DEFAULT_HOST}:{port or DEFAULT_PORT}"


def decode_body(response: httpx.Response) -> object:
    if not response.content:
        return None
    try:
        return response.json()
    except ValueError:
        return None


def build_channel_map_params(channels: Iterable[Channel]) -> dict[str, str]:
    numbers = [channel.number for channel in channels]
    params = {"channelsEnabled": ",".join(str(number) for number in numbers)}
    for number in numbers:
        params[f"channelMapping[{number}]"] = str(number)
        params[f"channelMappingByKey[{number}]"] = str(number)
    return params


def flatten_devices(dvrs: Iterable[Dvr]) -> list[Device]:
    return [device for dvr in dvrs for device in dvr.devices]


def _build_logging_hooks(logger: logging.Logger) -> dict[str, list]:
    async def log_request(request: httpx.Request) -> None:
        logger.info("Plex request %s %s", request.method, request.url)

    async def log_response(response: httpx.Response) -> None:
        logger.info(
            "Plex response %s %s -> %s",
            response.request.method,
            response.request.url,
            response.status_code,
        )
        if response.status_code >= 400:
            body = await response.aread()
            text = body.decode("utf-8", errors="replace")
            if len(text) > 1000:
                text = text[:1000] + "...<truncated>"
            logger.warning("Plex error body: %s", text)

    return {"request": [log_request], "response": [log_response]}


class PlexApiClient:
    def __init__(
        self,
        token: str = "",
        *,
        app_name: str = DEFAULT_APP_NAME,
        protocol: str = DEFAULT_PROTOCOL,
        host: str = DEFAULT_HOST,
        port: int = DEFAULT_PORT,
        identity: ClientIdentity | None = None,
        timeout: float = REQUEST_TIMEOUT_SECONDS,
        transport: httpx.AsyncBaseTransport | None = None,
        on_token_updated: Callable[[str], None] | None = None,
        debug: bool = False,
        logger: logging.Logger | None = None,
    ) -> None:
        self._logger = logger or LOGGER
        self.session = AuthSession(
            app_name,
            token,
            identity=identity,
            on_token_updated=on_token_updated,
        )
        self.base_url = build_base_url(protocol, host, port)
        self._http = httpx.AsyncClient(
            base_url=self.base_url,
            timeout=timeout,
            transport=transport,
            event_hooks=_build_logging_hooks(self._logger) if debug else None,
        )

    @property
    def token(self) -> str:
        return self.session.token

    async def __aenter__(self) -> "PlexApiClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._http.aclose()

    async def request(
        self,
        method: str,
        path: str,
        params: dict | None = None,
        headers: dict[str, str] | None = None,
        *,
        data: dict | None = None,
        expected_status: int = 200,
    ) -> object:
        try:
            response = await self._http.request(
                method,
                path,
                params=params,
                headers=self.session.decorate(headers),
                data=data,
            )
        except httpx.RequestError as error:
            raise TransportError(method, path, str(error) or type(error).__name__) from error

        body = decode_body(response)
        self.session.observe_response(body)

        if response.status_code != expected_status:
            raise UnexpectedStatus(path, response.status_code)
        return body

    async def get(self, path: str, headers: dict[str, str] | None = None) -> dict:
        body = await self.request("GET", path, headers=headers)
        if not isinstance(body, dict):
            return {}
        container = body.get("MediaContainer")
        return container if isinstance(container, dict) else {}

    async def put(
        self,
        path: str,
        params: dict | None = None,
        headers: dict[str, str] | None = None,
    ) -> object:
        return await self.request("PUT", path, params=params, headers=headers)

    async def post(
        self,
        path: str,
        params: dict | None = None,
        headers: dict[str, str] | None = None,
    ) -> object:
        return await self.request("POST", path, params=params, headers=headers)

    async def sign_in(self, login: str, password: str) -> str:
        try:
            await self.request(
                "POST",
                PLEX_SIGN_IN_URL,
                data={"user[login]": login, "user[password]": password},
                expected_status=201,
            )
        except UnexpectedStatus as error:
            raise SignInRejected(error.status_code) from error
        return self.session.token

    async def identity(self) -> dict:
        return await self.get("/identity")

    async def get_dvrs(self) -> list[Dvr]:
        container = await self.get("/livetv/dvrs")
        raw_dvrs = container.get("Dvr")
        if not raw_dvrs:
            return []
        return [Dvr.from_payload(payload) for payload in raw_dvrs]

    async def _resolve_dvrs(self, dvrs: Iterable[Dvr] | None) -> list[Dvr]:
        if dvrs is None:
            return await self.get_dvrs()
        return list(dvrs)

    async def refresh_guide(self, dvrs: Iterable[Dvr] | None = None) -> None:
        for dvr in await self._resolve_dvrs(dvrs):
            try:
                await self.post(f"/livetv/dvrs/{dvr.key}/reloadGuide")
            except PlexError as error:
                self._logger.error("Guide reload failed for DVR %s: %s", dvr.key, error)

    async def refresh_channels(
        self,
        channels: Iterable[Channel],
        dvrs: Iterable[Dvr] | None = None,
    ) -> None:
        resolved = await self._resolve_dvrs(dvrs)
        params = build_channel_map_params(channels)
        devices = flatten_devices(resolved)
        self._logger.info(
            "Pushing channel map (%s) to %d device(s)",
            params["channelsEnabled"],
            len(devices),
        )
        await asyncio.gather(
            *(
                self.put(f"/media/grabbers/devices/{device.key}/channelmap", params)
                for device in devices
            )
        )
