from __future__ import annotations

from dataclasses import dataclass
from typing import Callable

import httpx

from kbplex.constants import (
    DEFAULT_CLIENT_IDENTIFIER,
    PLEX_PLATFORM,
    PLEX_PLATFORM_VERSION,
    PLEX_VERSION,
    TOKEN_HEADER,
)


@dataclass(frozen=True)
class ClientIdentity:
    client_identifier: str = DEFAULT_CLIENT_IDENTIFIER
    version: str = PLEX_VERSION
    platform: str = PLEX_PLATFORM
    platform_version: str = PLEX_PLATFORM_VERSION


def extract_auth_token(body: object) -> str | None:
    if not isinstance(body, dict):
        return None
    user = body.get("user")
    if not isinstance(user, dict):
        return None
    token = user.get("authToken")
    if not isinstance(token, str) or not token:
        return None
    return token


class AuthSession:
    """Holds the Plex token and the identity headers sent with every request.

    The token only changes through ``observe_response``; the request primitive
    calls it for each response it receives, so a token rotated by any endpoint
    replaces the previous one.
    """

    def __init__(
        self,
        app_name: str,
        token: str = "",
        *,
        identity: ClientIdentity | None = None,
        on_token_updated: Callable[[str], None] | None = None,
    ) -> None:
        self.app_name = app_name
        self.identity = identity or ClientIdentity()
        self._token = token or ""
        self._on_token_updated = on_token_updated
        self._identity_headers = {
            "Accept": "application/json",
            "X-Plex-Device": app_name,
            "X-Plex-Device-Name": app_name,
            "X-Plex-Product": app_name,
            "X-Plex-Version": self.identity.version,
            "X-Plex-Client-Identifier": self.identity.client_identifier,
            "X-Plex-Platform": self.identity.platform,
            "X-Plex-Platform-Version": self.identity.platform_version,
        }

    @property
    def token(self) -> str:
        return self._token

    @property
    def identity_headers(self) -> dict[str, str]:
        return dict(self._identity_headers)

    def decorate(self, headers: dict[str, str] | None = None) -> httpx.Headers:
        # Header names are case-insensitive; a caller "accept" replaces "Accept".
        decorated = httpx.Headers(self._identity_headers)
        for name, value in (headers or {}).items():
            decorated[name] = value
        if self._token:
            decorated[TOKEN_HEADER] = self._token
        return decorated

    def observe_response(self, body: object) -> None:
        token = extract_auth_token(body)
        if token is None:
            return
        self._token = token
        if self._on_token_updated is not None:
            self._on_token_updated(token)
