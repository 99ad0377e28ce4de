"""
Media probing with FFprobe.

Only stream dimensions are needed, to bucket videos by aspect ratio.
FFprobe is asked for JSON stream metadata and the parsing is left to
core (parse_probe_output) so it can be tested without the binary.

Why FFprobe:
- Ships with FFmpeg, available everywhere (including Docker)
- Machine-readable JSON output
- Reads the container header only, so it is fast even on large files
"""

import asyncio
import json
import logging
import subprocess
from pathlib import Path

from tubely.core.media.classifier import Probe, ProbeResult, parse_probe_output
from tubely.core.media.errors import ProbeFailureError

logger = logging.getLogger(__name__)


class FFprobeProbe:
    """Runs ffprobe against a file on disk."""

    def __init__(self, ffprobe_path: str = "ffprobe", timeout_seconds: float = 30.0) -> None:
        """
        Args:
            ffprobe_path: Path to ffprobe binary (default assumes it's in PATH)
            timeout_seconds: How long a single probe may run
        """
        self._ffprobe = ffprobe_path
        self._timeout = timeout_seconds

    def command(self, path: Path) -> list[str]:
        return [
            self._ffprobe,
            "-v", "error",
            "-print_format", "json",
            "-show_streams",
            str(path),
        ]

    async def probe(self, path: Path) -> ProbeResult:
        cmd = self.command(path)

        try:
            result = await asyncio.to_thread(
                subprocess.run,
                cmd,
                capture_output=True,
                text=True,
                timeout=self._timeout,
            )
        except FileNotFoundError as e:
            logger.error("FFprobe not found", extra={"ffprobe": self._ffprobe})
            raise ProbeFailureError() from e
        except subprocess.TimeoutExpired as e:
            logger.error(
                "FFprobe timed out",
                extra={"path": str(path), "timeout": self._timeout}
            )
            raise ProbeFailureError() from e

        if result.returncode != 0:
            logger.error(
                "FFprobe failed",
                extra={
                    "path": str(path),
                    "returncode": result.returncode,
                    "stderr": result.stderr[:500],
                }
            )
            raise ProbeFailureError()

        return parse_probe_output(result.stdout)


class StaticProbe:
    """
    Probe that reports fixed dimensions.

    For local development without FFmpeg, and for tests. Pass None for a
    dimension to simulate ffprobe output that lacks it.
    """

    def __init__(self, width: int | None = 1920, height: int | None = 1080) -> None:
        self.width = width
        self.height = height
        self.probed: list[Path] = []

    async def probe(self, path: Path) -> ProbeResult:
        self.probed.append(path)

        stream = {}
        if self.width is not None:
            stream["width"] = self.width
        if self.height is not None:
            stream["height"] = self.height

        return parse_probe_output(json.dumps({"streams": [stream]}))


def create_probe(
    mock_mode: bool = False,
    ffprobe_path: str = "ffprobe",
    timeout_seconds: float = 30.0,
) -> Probe:
    """
    Factory function for the media probe.

    Args:
        mock_mode: If True, return a static probe (no FFmpeg required)
    """
    if mock_mode:
        return StaticProbe()

    return FFprobeProbe(ffprobe_path=ffprobe_path, timeout_seconds=timeout_seconds)
