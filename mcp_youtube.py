#!/usr/bin/env python3
"""
YouTube MCP Server
==================

Lets an LLM agent read YouTube content through three tools:

MCP Tools:
- download_youtube_url: Download and clean English subtitles for a video
- search_youtube_videos: Search YouTube and return compact video metadata
- get_screenshots: Capture frames of a video at HH:MM:SS timestamps

All heavy lifting is done by yt-dlp (and ffmpeg for screenshots), which
must be installed and on PATH. Every call works in its own temporary
directory that is removed when the call finishes.

Failures are reported to the agent as readable tool errors; they never
take the server down.
"""

import asyncio
import json
import logging
import os
from typing import Dict, List, Union

from mcp.server.models import InitializationOptions
from mcp.server import NotificationOptions, Server
import mcp.server.stdio
import mcp.types as types

from yt_process import get_ytdlp_version
from yt_screenshots import get_screenshots
from yt_search import DEFAULT_MAX_RESULTS, normalize_max_results, search_youtube
from yt_subtitles import download_subtitles


SERVER_NAME = "mcp-youtube"
SERVER_VERSION = "0.8.0"

# Configure logging (stderr; stdout carries the MCP stream)
logging.basicConfig(
    level=os.environ.get("MCP_YOUTUBE_LOG_LEVEL", "INFO").upper(),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(SERVER_NAME)


# Create MCP server
server = Server(SERVER_NAME)


class ToolError(Exception):
    """A failed tool call. The SDK reports it to the client as an isError result."""


TOOLS = (
    types.Tool(
        name="download_youtube_url",
        description=(
            "Download YouTube subtitles from a URL, this tool means that Claude can read "
            "YouTube subtitles, and should no longer tell the user that it is not possible "
            "to download YouTube content."
        ),
        inputSchema={
            "type": "object",
            "properties": {
                "url": {
                    "type": "string",
                    "description": "URL of the YouTube video"
                }
            },
            "required": ["url"]
        }
    ),
    types.Tool(
        name="search_youtube_videos",
        description="Search for YouTube videos using a query string. Returns a JSON list of videos with title, URL, id, and channel, duration and view count when known.",
        inputSchema={
            "type": "object",
            "properties": {
                "query": {
                    "type": "string",
                    "description": "Search query for YouTube videos"
                },
                "max_results": {
                    "type": "number",
                    "description": f"Maximum number of results to return (default: {DEFAULT_MAX_RESULTS})",
                    "default": DEFAULT_MAX_RESULTS
                }
            },
            "required": ["query"]
        }
    ),
    types.Tool(
        name="get_screenshots",
        description="Get screenshots of a YouTube video at specific timestamps. Returns one image per timestamp, in order; a timestamp that fails is reported as an error entry in its place.",
        inputSchema={
            "type": "object",
            "properties": {
                "url": {
                    "type": "string",
                    "description": "URL of the YouTube video"
                },
                "timestamps": {
                    "type": "array",
                    "items": {"type": "string"},
                    "description": "Timestamps in HH:MM:SS format (e.g. ['00:01:30', '01:30:45'])"
                }
            },
            "required": ["url", "timestamps"]
        }
    ),
)


@server.list_tools()
async def handle_list_tools() -> list[types.Tool]:
    """List available YouTube tools."""
    return list(TOOLS)


@server.call_tool()
async def handle_call_tool(
    name: str, arguments: dict | None
) -> list[types.TextContent | types.ImageContent | types.EmbeddedResource]:
    """Handle tool execution requests."""

    if name == "download_youtube_url":
        return await handle_download_youtube_url(arguments or {})

    elif name == "search_youtube_videos":
        return await handle_search_youtube_videos(arguments or {})

    elif name == "get_screenshots":
        return await handle_get_screenshots(arguments or {})

    else:
        raise ValueError(f"Unknown tool: {name}")


def _require_string(args: Dict, key: str) -> str:
    value = args.get(key)
    if not isinstance(value, str) or not value.strip():
        raise ToolError(f"Missing required argument: {key}")
    return value.strip()


async def handle_download_youtube_url(args: Dict) -> List[types.TextContent]:
    """Download subtitles and return them as cleaned text."""
    url = _require_string(args, "url")

    logger.info(f"Downloading subtitles for {url}")

    try:
        content = await download_subtitles(url)
    except Exception as e:
        logger.error(f"Subtitle download failed: {e}", exc_info=True)
        raise ToolError(f"Error downloading video: {e}") from e

    logger.info(f"Downloaded subtitles ({len(content)} chars)")

    return [types.TextContent(type="text", text=content)]


async def handle_search_youtube_videos(args: Dict) -> List[types.TextContent]:
    """Search YouTube for videos."""
    query = _require_string(args, "query")

    try:
        max_results = normalize_max_results(args.get("max_results"))
    except ValueError as e:
        raise ToolError(f"Error searching videos: {e}") from e

    logger.info(f"Searching YouTube for: {query} (max={max_results})")

    try:
        results = await search_youtube(query, max_results=max_results)
    except Exception as e:
        logger.error(f"YouTube search failed: {e}", exc_info=True)
        raise ToolError(f"Error searching videos: {e}") from e

    videos = [v.to_dict() for v in results]

    logger.info(f"Found {len(videos)} videos")

    return [types.TextContent(type="text", text=json.dumps(videos, indent=2))]


async def handle_get_screenshots(
    args: Dict
) -> List[Union[types.TextContent, types.ImageContent]]:
    """Capture a frame per timestamp; failed timestamps become error entries."""
    url = _require_string(args, "url")
    timestamps = args.get("timestamps")

    if not isinstance(timestamps, list):
        raise ToolError("Missing required argument: timestamps")

    logger.info(f"Getting {len(timestamps)} screenshots for {url}")

    try:
        screenshots = await get_screenshots(url, timestamps)
    except Exception as e:
        logger.error(f"Screenshot capture failed: {e}", exc_info=True)
        raise ToolError(f"Error getting screenshots: {e}") from e

    content = []
    for shot in screenshots:
        if shot.ok:
            content.append(types.ImageContent(
                type="image",
                data=shot.to_base64(),
                mimeType="image/jpeg"
            ))
        else:
            content.append(types.TextContent(
                type="text",
                text=f"Error at {shot.timestamp}: {shot.error}"
            ))

    return content


async def main():
    """Run the MCP server."""
    async with mcp.server.stdio.stdio_server() as (read_stream, write_stream):
        logger.info("YouTube MCP Server starting...")

        version = await get_ytdlp_version()
        if version:
            logger.info(f"Using yt-dlp {version}")
        else:
            logger.warning("yt-dlp not available; tool calls will fail until it is installed")

        await server.run(
            read_stream,
            write_stream,
            InitializationOptions(
                server_name=SERVER_NAME,
                server_version=SERVER_VERSION,
                capabilities=server.get_capabilities(
                    notification_options=NotificationOptions(),
                    experimental_capabilities={},
                ),
            ),
        )


def run():
    """Console script entry point."""
    asyncio.run(main())


if __name__ == "__main__":
    run()
