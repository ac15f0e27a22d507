#!/usr/bin/env python3
"""
Video Screenshots via yt-dlp + ffmpeg
=====================================

yt-dlp resolves a direct media URL (ffmpeg cannot read YouTube page
URLs), then ffmpeg seeks to each requested timestamp and grabs a single
JPEG frame. Nothing but the frames is written to disk.
"""

import base64
import logging
import re
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Sequence

from yt_process import (
    FFMPEG_BIN,
    YT_DLP_BIN,
    ProcessError,
    cookie_args,
    run_process,
    temp_workspace
)

logger = logging.getLogger("yt-screenshots")

# Cap resolution so ffmpeg reads less data per seek
MEDIA_FORMAT = "best[height<=720]/best"

_TIMESTAMP_RE = re.compile(r"^(\d{1,2}):(\d{2}):(\d{2}(?:\.\d{1,3})?)$")


class InvalidTimestampError(ValueError):
    """Raised for timestamps that are not HH:MM:SS."""


@dataclass
class Screenshot:
    """A frame captured at one timestamp, or the reason it couldn't be."""
    timestamp: str
    image: Optional[bytes] = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.image is not None

    def to_base64(self) -> str:
        return base64.b64encode(self.image or b"").decode("ascii")


def parse_timestamp(value: str) -> float:
    """Convert HH:MM:SS (optionally with .mmm) to seconds."""
    match = _TIMESTAMP_RE.match(value.strip()) if isinstance(value, str) else None
    if not match:
        raise InvalidTimestampError(f"Invalid timestamp {value!r}, expected HH:MM:SS")

    hours, minutes, seconds = int(match.group(1)), int(match.group(2)), float(match.group(3))
    if minutes >= 60 or seconds >= 60:
        raise InvalidTimestampError(f"Invalid timestamp {value!r}, minutes and seconds must be below 60")

    return hours * 3600 + minutes * 60 + seconds


async def resolve_media_url(url: str) -> str:
    """Ask yt-dlp for a direct playable media URL without downloading."""
    result = await run_process(
        YT_DLP_BIN,
        [
            "-g",
            "-f", MEDIA_FORMAT,
            "--no-playlist",
            "--no-warnings",
            *cookie_args(),
            url,
        ]
    )

    for line in result.stdout.splitlines():
        if line.strip():
            return line.strip()

    raise ProcessError(f"yt-dlp returned no media URL for {url}")


async def extract_frame(media_url: str, timestamp: str, output: Path) -> bytes:
    """Capture one JPEG frame at timestamp and return its bytes."""
    await run_process(
        FFMPEG_BIN,
        [
            "-hide_banner",
            "-loglevel", "error",
            "-ss", timestamp,
            "-i", media_url,
            "-frames:v", "1",
            "-q:v", "2",
            "-y",
            str(output),
        ],
        cwd=output.parent
    )

    if not output.exists() or output.stat().st_size == 0:
        raise ProcessError(f"ffmpeg produced no frame at {timestamp}")

    return output.read_bytes()


async def get_screenshots(url: str, timestamps: Sequence[str]) -> List[Screenshot]:
    """
    Capture a frame for each timestamp, in order.

    A failure to resolve the video aborts the call (ProcessError propagates);
    a failure at a single timestamp is recorded on that entry only.
    """
    if not timestamps:
        return []

    screenshots = []

    with temp_workspace("youtube-screenshot-") as workdir:
        media_url = await resolve_media_url(url)
        logger.info(f"Resolved media URL for {url}")

        # One ffmpeg process at a time
        for index, timestamp in enumerate(timestamps):
            try:
                parse_timestamp(timestamp)
                image = await extract_frame(
                    media_url, timestamp.strip(), workdir / f"frame-{index}.jpg"
                )
            except (InvalidTimestampError, ProcessError, OSError) as e:
                logger.warning(f"Screenshot at {timestamp!r} failed: {e}")
                screenshots.append(Screenshot(timestamp=str(timestamp), error=str(e)))
                continue

            screenshots.append(Screenshot(timestamp=timestamp, image=image))

    logger.info(f"Captured {sum(s.ok for s in screenshots)}/{len(screenshots)} screenshots for {url}")
    return screenshots
