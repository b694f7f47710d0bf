from __future__ import annotations

import asyncio
import os
import webbrowser
from typing import TYPE_CHECKING

from auth.pairing import OAuthPairing
from auth.session import ClientIdentity
from kbplex.client import PlexApiClient
from kbplex.constants import LOGGER
from kbplex.env import load_env, setup_logging, validate_env
from kbplex.mcp_app import mount_health_route, register_tools

if TYPE_CHECKING:
    from fastmcp import FastMCP


def create_mcp() -> "FastMCP":
    from fastmcp import FastMCP

    load_env()
    debug_enabled = setup_logging()
    settings = validate_env()

    def log_token_update(token: str) -> None:
        del token
        LOGGER.info("Plex token rotated by server response")

    client = PlexApiClient(
        settings.token,
        app_name=settings.app_name,
        protocol=settings.protocol,
        host=settings.host,
        port=settings.port,
        identity=ClientIdentity(client_identifier=settings.client_identifier),
        timeout=settings.timeout,
        on_token_updated=log_token_update,
        debug=debug_enabled,
    )

    mcp = FastMCP(name="Plex DVR MCP")
    register_tools(mcp, client)
    mount_health_route(mcp, client)
    setattr(mcp, "_plex_client", client)
    return mcp


async def pair(open_url=webbrowser.open) -> str:
    settings = validate_env()
    pairing = OAuthPairing(
        open_url,
        identity=ClientIdentity(client_identifier=settings.client_identifier),
        protocol=settings.protocol,
        host=settings.host,
        port=settings.port,
        timeout=settings.timeout,
    )
    client = await pairing.pair(settings.app_name)
    async with client:
        return client.token


def pair_main() -> None:
    load_env()
    setup_logging()
    token = asyncio.run(pair())
    print(f"PLEX_TOKEN={token}")


def main() -> None:
    host = os.getenv("MCP_HOST", "127.0.0.1")
    port = int(os.getenv("MCP_PORT", "8000"))
    mcp = create_mcp()
    mcp.run(transport="streamable-http", host=host, port=port)


if __name__ == "__main__":
    main()
