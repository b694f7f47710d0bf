from __future__ import annotations

import logging

LOGGER = logging.getLogger("kbplex.plex_api")
APP_VERSION = "0.1.0"

DEFAULT_APP_NAME = "KbPlex"
DEFAULT_CLIENT_IDENTIFIER = "rg14zekk3pa5zp4safjwaa8z"
PLEX_VERSION = "0.1"
PLEX_PLATFORM = "Chrome"
PLEX_PLATFORM_VERSION = "80.0"

TOKEN_HEADER = "X-Plex-Token"

DEFAULT_PROTOCOL = "http"
DEFAULT_HOST = "127.0.0.1"
DEFAULT_PORT = 32400
REQUEST_TIMEOUT_SECONDS = 3.0

PLEX_TV_URL = "https://plex.tv"
PLEX_PINS_URL = f"{PLEX_TV_URL}/api/v2/pins"
PLEX_SIGN_IN_URL = f"{PLEX_TV_URL}/users/sign_in.json"
PLEX_AUTH_APP_URL = "https://app.plex.tv/auth"

PAIRING_POLL_INTERVAL_SECONDS = 2.0
PAIRING_TIMEOUT_SECONDS = 120.0
