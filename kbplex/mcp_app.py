from __future__ import annotations

from dataclasses import asdict
from typing import TYPE_CHECKING

from mcp.types import ToolAnnotations

from .client import PlexApiClient
from .constants import APP_VERSION
from .models import Channel

if TYPE_CHECKING:
    from fastmcp import FastMCP


async def list_dvrs(client: PlexApiClient) -> list[dict]:
    return [asdict(dvr) for dvr in await client.get_dvrs()]


async def refresh_guide(client: PlexApiClient) -> dict:
    dvrs = await client.get_dvrs()
    await client.refresh_guide(dvrs)
    return {"status": "ok", "dvrs": [dvr.key for dvr in dvrs]}


async def refresh_channels(client: PlexApiClient, channel_numbers: list[int]) -> dict:
    dvrs = await client.get_dvrs()
    await client.refresh_channels([Channel(number) for number in channel_numbers], dvrs)
    return {
        "status": "ok",
        "channels": list(channel_numbers),
        "devices": [device.key for dvr in dvrs for device in dvr.devices],
    }


def register_tools(mcp: "FastMCP", client: PlexApiClient) -> None:
    @mcp.tool(
        name="list_dvrs",
        description="List the DVRs configured on the Plex server with their tuner devices.",
        annotations=ToolAnnotations(
            readOnlyHint=True,
            destructiveHint=False,
            openWorldHint=False,
        ),
    )
    async def list_dvrs_tool() -> list[dict]:
        return await list_dvrs(client)

    @mcp.tool(
        name="refresh_guide",
        description="Reload the program guide of every DVR. Failures are logged and skipped.",
        annotations=ToolAnnotations(
            readOnlyHint=False,
            destructiveHint=False,
            openWorldHint=False,
        ),
    )
    async def refresh_guide_tool() -> dict:
        return await refresh_guide(client)

    @mcp.tool(
        name="refresh_channels",
        description="Enable the given channel numbers on every DVR device and map each to itself.",
        annotations=ToolAnnotations(
            readOnlyHint=False,
            destructiveHint=True,
            openWorldHint=False,
        ),
    )
    async def refresh_channels_tool(channel_numbers: list[int]) -> dict:
        return await refresh_channels(client, channel_numbers)


def mount_health_route(mcp: "FastMCP", client: PlexApiClient) -> None:
    from starlette.requests import Request
    from starlette.responses import JSONResponse, Response

    @mcp.custom_route("/health", methods=["GET"])
    async def health_route(request: Request) -> Response:
        del request
        return JSONResponse(
            {
                "status": "ok",
                "version": APP_VERSION,
                "plex_server": client.base_url,
                "authenticated": bool(client.token),
            }
        )
