"""
Pytest fixtures for mcp-youtube tests.
"""

import json
import sys
from pathlib import Path
from unittest.mock import AsyncMock, MagicMock

import pytest

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from yt_process import ProcessResult


@pytest.fixture
def sample_vtt_content():
    """Auto-generated YouTube VTT with karaoke tags and rolling duplicates."""
    return """WEBVTT
Kind: captions
Language: en

00:00:00.000 --> 00:00:02.500 align:start position:0%

hello<00:00:00.500><c> everyone</c><00:00:01.000><c> welcome</c>

00:00:02.500 --> 00:00:02.510 align:start position:0%
hello everyone welcome


00:00:02.510 --> 00:00:05.000 align:start position:0%
hello everyone welcome
to<00:00:03.000><c> the</c><00:00:03.500><c> talk</c>

00:00:05.000 --> 00:00:05.010 align:start position:0%
to the talk

"""


@pytest.fixture
def sample_srt_content():
    """Plain SRT subtitles with sequence numbers and style tags."""
    return """1
00:00:01,000 --> 00:00:04,000
<i>Hello there</i>

2
00:00:04,500 --> 00:00:06,000
{\\an8}Tom &amp; Jerry

3
00:00:06,500 --> 00:00:08,000
The end
"""


@pytest.fixture
def search_records():
    """Records as printed by `yt-dlp --dump-json --flat-playlist`."""
    return [
        {
            "id": "video123",
            "title": "Introduction to AI",
            "url": "https://www.youtube.com/watch?v=video123",
            "channel": "Tech Channel",
            "duration": 900.0,
            "view_count": 10000
        },
        {
            "id": "video456",
            "title": "Deep Learning Tutorial",
            "url": "https://www.youtube.com/watch?v=video456",
            "uploader": "ML Expert",
            "duration": 1800
        },
        {
            "id": "video789",
            "title": "Bare Entry"
        }
    ]


@pytest.fixture
def search_output(search_records):
    """Newline-delimited JSON output with one malformed line."""
    lines = [json.dumps(record) for record in search_records]
    lines.insert(1, '{"id": "broken", "title": ')
    return "\n".join(lines) + "\n"


@pytest.fixture
def process_result():
    """Factory for ProcessResult values returned by a patched run_process."""
    def _result(stdout: str = "", returncode: int = 0, stderr: str = ""):
        return ProcessResult(args=[], returncode=returncode, stdout=stdout, stderr=stderr)
    return _result


@pytest.fixture
def mock_process():
    """Factory for fake asyncio subprocesses."""
    def _process(stdout: bytes = b"", stderr: bytes = b"", returncode: int = 0):
        process = MagicMock()
        process.returncode = returncode
        process.communicate = AsyncMock(return_value=(stdout, stderr))
        return process
    return _process


@pytest.fixture
def youtube_url():
    return "https://www.youtube.com/watch?v=dQw4w9WgXcQ"
