from __future__ import annotations

import asyncio
import inspect
import time
import urllib.parse
from typing import Callable

import httpx

from auth.models import PairingRequest
from auth.session import AuthSession, ClientIdentity
from kbplex.client import PlexApiClient, decode_body
from kbplex.constants import (
    DEFAULT_HOST,
    DEFAULT_PORT,
    DEFAULT_PROTOCOL,
    LOGGER,
    PAIRING_POLL_INTERVAL_SECONDS,
    PAIRING_TIMEOUT_SECONDS,
    PLEX_AUTH_APP_URL,
    PLEX_PINS_URL,
    REQUEST_TIMEOUT_SECONDS,
)
from kbplex.errors import PairingTimeout, TransportError, UnexpectedStatus


def build_auth_url(client_identifier: str, code: str, app_name: str) -> str:
    query = {
        "clientID": client_identifier,
        "code": code,
        "context[device][product]": app_name,
    }
    return f"{PLEX_AUTH_APP_URL}#?{urllib.parse.urlencode(query)}"


class OAuthPairing:
    """Links a new client to a Plex account with the plex.tv PIN handshake.

    ``begin`` asks plex.tv for a PIN, the user approves it in a browser opened
    through ``open_url``, and ``wait_for_token`` polls the PIN until plex.tv
    attaches a token or ``pairing_timeout`` runs out. ``pair`` runs all of it
    and returns a verified ``PlexApiClient``.

    Polling is a single coroutine: cancelling the task awaiting ``pair`` or
    ``wait_for_token`` stops it.
    """

    def __init__(
        self,
        open_url: Callable[[str], object],
        *,
        identity: ClientIdentity | None = None,
        protocol: str = DEFAULT_PROTOCOL,
        host: str = DEFAULT_HOST,
        port: int = DEFAULT_PORT,
        timeout: float = REQUEST_TIMEOUT_SECONDS,
        poll_interval: float = PAIRING_POLL_INTERVAL_SECONDS,
        pairing_timeout: float = PAIRING_TIMEOUT_SECONDS,
        transport: httpx.AsyncBaseTransport | None = None,
        sleep=asyncio.sleep,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.open_url = open_url
        self.identity = identity or ClientIdentity()
        self.protocol = protocol
        self.host = host
        self.port = port
        self.timeout = timeout
        self.poll_interval = poll_interval
        self.pairing_timeout = pairing_timeout
        self._transport = transport
        self._sleep = sleep
        self._clock = clock

    async def _pin_request(self, method: str, url: str, app_name: str) -> dict:
        # PIN calls never carry a token, so a throwaway session is enough.
        session = AuthSession(app_name, identity=self.identity)
        async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
            try:
                response = await client.request(method, url, headers=session.decorate())
            except httpx.RequestError as error:
                raise TransportError(method, url, str(error) or type(error).__name__) from error

        if not response.is_success:
            raise UnexpectedStatus(url, response.status_code)

        body = decode_body(response)
        if not isinstance(body, dict):
            raise RuntimeError(f"PIN response from {url} is not a JSON object.")
        return body

    async def begin(self, app_name: str) -> PairingRequest:
        payload = await self._pin_request("POST", f"{PLEX_PINS_URL}?strong=true", app_name)
        pin = PairingRequest.from_payload(payload, app_name=app_name, created_at=self._clock())
        LOGGER.info("Requested Plex PIN id=%s", pin.id)
        return pin

    def auth_url(self, pin: PairingRequest, app_name: str) -> str:
        return build_auth_url(self.identity.client_identifier, pin.code, app_name)

    async def check(self, pin: PairingRequest) -> str | None:
        payload = await self._pin_request("GET", f"{PLEX_PINS_URL}/{pin.id}", pin.app_name)
        token = payload.get("authToken")
        if isinstance(token, str) and token:
            return token
        return None

    async def wait_for_token(self, pin: PairingRequest) -> str:
        while True:
            await self._sleep(self.poll_interval)
            if self._clock() - pin.created_at >= self.pairing_timeout:
                LOGGER.warning("Plex PIN id=%s expired without approval", pin.id)
                raise PairingTimeout(pin.id, self.pairing_timeout)

            token = await self.check(pin)
            if token:
                LOGGER.info("Plex PIN id=%s approved", pin.id)
                return token

    async def pair(self, app_name: str) -> PlexApiClient:
        pin = await self.begin(app_name)

        opened = self.open_url(self.auth_url(pin, app_name))
        if inspect.isawaitable(opened):
            await opened

        token = await self.wait_for_token(pin)

        client = PlexApiClient(
            token,
            app_name=app_name,
            protocol=self.protocol,
            host=self.host,
            port=self.port,
            identity=self.identity,
            timeout=self.timeout,
            transport=self._transport,
        )
        try:
            await client.identity()
        except BaseException:
            await client.aclose()
            raise
        return client
