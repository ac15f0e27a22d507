#!/usr/bin/env python3
"""
YouTube Search via yt-dlp
=========================

Runs a ytsearchN: query in metadata-only mode and maps the newline
delimited JSON that yt-dlp prints (one record per video) to a small
result shape.

Malformed lines are skipped, so one bad record never sinks the batch.
"""

import json
import logging
from dataclasses import dataclass
from numbers import Number
from typing import Any, Dict, List, Optional

from yt_process import YT_DLP_BIN, cookie_args, run_process, temp_workspace

logger = logging.getLogger("yt-search")

DEFAULT_MAX_RESULTS = 10
MAX_SEARCH_RESULTS = 50


@dataclass
class VideoResult:
    """Structured video search result."""
    id: str
    title: str
    url: str
    channel: Optional[str] = None
    duration: Optional[float] = None  # seconds
    view_count: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        result = {
            "id": self.id,
            "title": self.title,
            "url": self.url,
        }
        if self.channel is not None:
            result["channel"] = self.channel
        if self.duration is not None:
            result["duration"] = self.duration
        if self.view_count is not None:
            result["viewCount"] = self.view_count
        return result


def _parse_entry(entry: Dict) -> Optional[VideoResult]:
    """Parse a yt-dlp JSON record to VideoResult. Records without an id are dropped."""
    video_id = entry.get("id")
    if not video_id:
        return None

    url = entry.get("webpage_url") or entry.get("url")
    if not url or not str(url).startswith("http"):
        url = f"https://www.youtube.com/watch?v={video_id}"

    return VideoResult(
        id=video_id,
        title=entry.get("title") or "Unknown",
        url=url,
        channel=entry.get("channel") or entry.get("uploader"),
        duration=entry.get("duration"),
        view_count=entry.get("view_count")
    )


def parse_search_output(output: str) -> List[VideoResult]:
    """Parse newline-delimited JSON from `yt-dlp --dump-json`."""
    videos = []

    for line in output.splitlines():
        line = line.strip()
        if not line:
            continue
        try:
            entry = json.loads(line)
        except json.JSONDecodeError as e:
            logger.debug(f"Skipping malformed search line: {e}")
            continue
        if not isinstance(entry, dict):
            continue

        video = _parse_entry(entry)
        if video:
            videos.append(video)

    return videos


def normalize_max_results(value: Any) -> int:
    """Coerce the max_results argument to an int in [0, MAX_SEARCH_RESULTS]."""
    if value is None:
        return DEFAULT_MAX_RESULTS
    if isinstance(value, bool) or not isinstance(value, Number):
        raise ValueError(f"max_results must be a number, got {value!r}")
    return max(0, min(int(value), MAX_SEARCH_RESULTS))


async def search_youtube(query: str, max_results: int = DEFAULT_MAX_RESULTS) -> List[VideoResult]:
    """
    Search YouTube for videos.

    Args:
        query: Search query string
        max_results: Maximum results to return (default 10)

    Returns:
        List of VideoResult objects, never longer than max_results
    """
    if not query or not query.strip():
        raise ValueError("Search query must not be empty")

    max_results = normalize_max_results(max_results)
    if max_results == 0:
        return []

    # YouTube search format: ytsearchN:query
    search_url = f"ytsearch{max_results}:{query}"

    with temp_workspace("youtube-search-") as workdir:
        result = await run_process(
            YT_DLP_BIN,
            [
                search_url,
                "--dump-json",
                "--flat-playlist",
                "--skip-download",
                "--no-warnings",
                *cookie_args(),
            ],
            cwd=workdir
        )

    videos = parse_search_output(result.stdout)[:max_results]

    logger.info(f"Search '{query}' returned {len(videos)} results")
    return videos
