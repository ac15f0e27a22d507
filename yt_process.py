#!/usr/bin/env python3
"""
External Process Runner
=======================

Thin async wrapper around the external binaries the tools shell out to
(yt-dlp and ffmpeg), plus the per-call temporary workspace.

Every handler goes through run_process(), so tests can patch a single
seam instead of spawning real binaries.

Note: yt-dlp's flags and output formats are version-sensitive. The
detected version is logged at server startup (see get_ytdlp_version).
"""

import asyncio
import logging
import os
import shutil
import tempfile
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import Iterator, List, Optional, Sequence

logger = logging.getLogger("yt-process")

# Configuration - executables are resolved via PATH unless overridden
YT_DLP_BIN = os.environ.get("YT_DLP_PATH", "yt-dlp")
FFMPEG_BIN = os.environ.get("FFMPEG_PATH", "ffmpeg")

# Browser to borrow cookies from (e.g. firefox). Unset means no cookies.
YT_COOKIE_BROWSER = os.environ.get("YT_COOKIE_BROWSER", "")

STDERR_TAIL = 500


class ProcessError(Exception):
    """Raised when an external process cannot be run or exits non-zero."""

    def __init__(self, message: str, returncode: Optional[int] = None, stderr: str = ""):
        super().__init__(message)
        self.returncode = returncode
        self.stderr = stderr


@dataclass
class ProcessResult:
    """Captured output of a finished process."""
    args: List[str]
    returncode: int
    stdout: str
    stderr: str


def cookie_args() -> List[str]:
    """Extra yt-dlp flags for browser cookie authentication."""
    if YT_COOKIE_BROWSER:
        return ["--cookies-from-browser", YT_COOKIE_BROWSER]
    return []


async def run_process(
    executable: str,
    args: Sequence[str],
    cwd: Optional[os.PathLike] = None,
    detached: bool = False,
    timeout: Optional[float] = None,
    check: bool = True
) -> ProcessResult:
    """
    Run an executable to completion and capture its output.

    Args:
        executable: Program name (looked up on PATH) or path
        args: Argument list, passed without a shell
        cwd: Working directory for the child
        detached: Start the child in its own session
        timeout: Seconds to wait before killing the child (None waits forever)
        check: Raise ProcessError on a non-zero exit code

    Returns:
        ProcessResult with decoded stdout/stderr
    """
    cmd = [executable, *args]
    logger.debug(f"Running: {' '.join(cmd)}")

    try:
        process = await asyncio.create_subprocess_exec(
            *cmd,
            cwd=str(cwd) if cwd is not None else None,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
            start_new_session=detached
        )
    except FileNotFoundError:
        raise ProcessError(f"{executable} not found; is it installed and on PATH?")
    except PermissionError as e:
        raise ProcessError(f"{executable} could not be executed: {e}")

    try:
        if timeout is None:
            stdout, stderr = await process.communicate()
        else:
            stdout, stderr = await asyncio.wait_for(process.communicate(), timeout=timeout)
    except asyncio.TimeoutError:
        _kill(process)
        logger.error(f"{executable} timed out after {timeout} seconds")
        raise ProcessError(f"{executable} timed out after {timeout} seconds")
    except asyncio.CancelledError:
        _kill(process)
        raise

    result = ProcessResult(
        args=cmd,
        returncode=process.returncode,
        stdout=(stdout or b"").decode("utf-8", errors="replace"),
        stderr=(stderr or b"").decode("utf-8", errors="replace")
    )

    if check and result.returncode != 0:
        tail = result.stderr.strip()[-STDERR_TAIL:] or "no error output"
        logger.warning(f"{executable} returned {result.returncode}: {tail[:200]}")
        raise ProcessError(
            f"{executable} exited with code {result.returncode}: {tail}",
            returncode=result.returncode,
            stderr=result.stderr
        )

    return result


def _kill(process) -> None:
    try:
        process.kill()
    except ProcessLookupError:
        pass


@contextmanager
def temp_workspace(prefix: str) -> Iterator[Path]:
    """
    Create a uniquely named temporary directory and remove it on exit.

    Removal is best-effort: failures are logged, never raised.
    """
    path = Path(tempfile.mkdtemp(prefix=prefix))
    logger.debug(f"Created workspace {path}")
    try:
        yield path
    finally:
        try:
            shutil.rmtree(path)
        except OSError as e:
            logger.warning(f"Failed to remove workspace {path}: {e}")


async def get_ytdlp_version() -> Optional[str]:
    """Return the installed yt-dlp version, or None if it can't be run."""
    try:
        result = await run_process(YT_DLP_BIN, ["--version"])
    except ProcessError as e:
        logger.warning(f"Could not determine yt-dlp version: {e}")
        return None
    return result.stdout.strip() or None
