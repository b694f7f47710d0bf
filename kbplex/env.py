from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv
from pydantic import AnyHttpUrl, ValidationError

from .client import build_base_url
from .constants import (
    DEFAULT_APP_NAME,
    DEFAULT_CLIENT_IDENTIFIER,
    DEFAULT_HOST,
    DEFAULT_PORT,
    DEFAULT_PROTOCOL,
    LOGGER,
    REQUEST_TIMEOUT_SECONDS,
)


@dataclass
class PlexSettings:
    token: str = ""
    protocol: str = DEFAULT_PROTOCOL
    host: str = DEFAULT_HOST
    port: int = DEFAULT_PORT
    app_name: str = DEFAULT_APP_NAME
    client_identifier: str = DEFAULT_CLIENT_IDENTIFIER
    timeout: float = REQUEST_TIMEOUT_SECONDS

    @property
    def base_url(self) -> str:
        return build_base_url(self.protocol, self.host, self.port)


def is_truthy(value: str | None) -> bool:
    if value is None:
        return False
    return value.strip().lower() in {"1", "true", "yes", "on"}


def _get_env_int(key: str, default: int) -> int:
    raw = os.getenv(key, "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        raise RuntimeError(f"{key} must be an integer value.")


def _get_env_float(key: str, default: float) -> float:
    raw = os.getenv(key, "").strip()
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError:
        raise RuntimeError(f"{key} must be a number.")


def load_env() -> None:
    env_path = Path(__file__).resolve().parent.parent / ".env"
    if not env_path.exists():
        return
    load_dotenv(env_path, override=True)


def load_settings() -> PlexSettings:
    return PlexSettings(
        token=os.getenv("PLEX_TOKEN", "").strip(),
        protocol=os.getenv("PLEX_PROTOCOL", DEFAULT_PROTOCOL).strip().lower(),
        host=os.getenv("PLEX_HOST", DEFAULT_HOST).strip(),
        port=_get_env_int("PLEX_PORT", DEFAULT_PORT),
        app_name=os.getenv("PLEX_APP_NAME", DEFAULT_APP_NAME).strip() or DEFAULT_APP_NAME,
        client_identifier=(
            os.getenv("PLEX_CLIENT_IDENTIFIER", "").strip() or DEFAULT_CLIENT_IDENTIFIER
        ),
        timeout=_get_env_float("PLEX_TIMEOUT", REQUEST_TIMEOUT_SECONDS),
    )


def validate_env() -> PlexSettings:
    settings = load_settings()

    if settings.protocol not in {"http", "https"}:
        raise RuntimeError("PLEX_PROTOCOL must be either http or https.")
    if not 0 < settings.port < 65536:
        raise RuntimeError("PLEX_PORT must be between 1 and 65535.")
    try:
        AnyHttpUrl(settings.base_url)
    except ValidationError as error:
        raise RuntimeError(f"Invalid Plex server URL {settings.base_url!r}.") from error

    if not settings.token:
        LOGGER.warning("PLEX_TOKEN is not set; run the pairing flow to obtain one.")
    return settings


def setup_logging() -> bool:
    debug_enabled = is_truthy(os.getenv("PLEX_API_DEBUG", "1"))
    if debug_enabled:
        logging.basicConfig(level=logging.INFO)
        LOGGER.setLevel(logging.INFO)
    return debug_enabled
