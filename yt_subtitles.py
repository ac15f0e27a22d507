#!/usr/bin/env python3
"""
YouTube Subtitle Download via yt-dlp
====================================

Downloads English subtitles (manual or auto-generated) as WebVTT into a
throwaway directory and reduces each cue file to plain text.
"""

import html
import logging
import re
from typing import List

from yt_process import YT_DLP_BIN, cookie_args, run_process, temp_workspace

logger = logging.getLogger("yt-subtitles")

SUBTITLE_LANG = "en"
SUBTITLE_FORMAT = "vtt"
FILE_SEPARATOR = "===================="

# Blocks that carry no spoken text
_SKIPPED_BLOCKS = ("NOTE", "STYLE", "REGION")

# <00:00:07.759>, <c>, </c>, <c.colorE5E5E5>, <i>, <v Speaker>, ...
_TAG_RE = re.compile(r"<[^>]*>")
# SRT override tags like {\an8}
_SRT_OVERRIDE_RE = re.compile(r"\{\\[^}]*\}")


def _is_timing_line(line: str) -> bool:
    return "-->" in line


def _is_settings_line(line: str) -> bool:
    stripped = line.strip()
    return bool(stripped) and all(
        token.startswith(("align:", "position:", "line:", "size:", "vertical:", "region:"))
        for token in stripped.split()
    )


def clean_cue_text(raw: str) -> str:
    """
    Strip cue syntax from a VTT/SRT document, leaving the spoken text.

    Removes the WEBVTT header, NOTE/STYLE/REGION blocks, cue identifiers
    and sequence numbers, timing lines, inline tags, and adjacent duplicate
    lines produced by rolling auto-captions.
    """
    if not raw or not raw.strip():
        return ""

    lines = raw.lstrip("\ufeff").splitlines()
    text_lines: List[str] = []
    in_skipped_block = False
    block_start = True

    i = 0
    if lines and lines[0].strip().startswith("WEBVTT"):
        # Header runs until the first blank line (Kind:, Language:, ...)
        while i < len(lines) and lines[i].strip():
            i += 1

    while i < len(lines):
        line = lines[i]
        next_line = lines[i + 1] if i + 1 < len(lines) else ""
        i += 1

        stripped = line.strip()
        if not stripped:
            in_skipped_block = False
            block_start = True
            continue
        starts_block, block_start = block_start, False
        if in_skipped_block:
            continue
        if starts_block and stripped.split(None, 1)[0] in _SKIPPED_BLOCKS:
            in_skipped_block = True
            continue

        if _is_timing_line(line) or _is_settings_line(line):
            continue
        # Cue identifier (SRT sequence number or named VTT cue)
        if _is_timing_line(next_line):
            continue

        cleaned = _TAG_RE.sub("", line)
        cleaned = _SRT_OVERRIDE_RE.sub("", cleaned)
        cleaned = html.unescape(cleaned).replace("\xa0", " ").strip()

        if cleaned:
            text_lines.append(cleaned)

    unique_lines = [
        line for index, line in enumerate(text_lines)
        if index == 0 or line != text_lines[index - 1]
    ]

    return "\n".join(unique_lines)


class NoSubtitlesError(Exception):
    """Raised when yt-dlp produced no subtitle files."""


async def download_subtitles(url: str) -> str:
    """
    Download and clean the English subtitles of a video.

    Args:
        url: YouTube video URL

    Returns:
        Cleaned text of every subtitle file, each under a filename header

    Raises:
        ProcessError: yt-dlp failed (network, invalid URL, geo-restriction...)
        NoSubtitlesError: the video has no English captions
    """
    with temp_workspace("youtube-") as workdir:
        await run_process(
            YT_DLP_BIN,
            [
                "--write-sub",
                "--write-auto-sub",
                "--sub-lang", SUBTITLE_LANG,
                "--skip-download",
                "--sub-format", SUBTITLE_FORMAT,
                *cookie_args(),
                url,
            ],
            cwd=workdir,
            detached=True
        )

        files = sorted(p for p in workdir.iterdir() if p.is_file())
        if not files:
            raise NoSubtitlesError(
                f"No subtitles found for {url} (video may not have English captions)"
            )

        sections = []
        for path in files:
            content = path.read_text(encoding="utf-8", errors="replace")
            sections.append(f"{path.name}\n{FILE_SEPARATOR}\n{clean_cue_text(content)}")

    logger.info(f"Downloaded {len(files)} subtitle file(s) for {url}")
    return "\n\n".join(sections)
