"""
Aspect ratio classification.

The classification rule is a pure function of (width, height). Getting
the dimensions out of a real file is delegated to a Probe, so the rule
can be tested without ffprobe installed.
"""

import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Protocol

from .errors import ProbeFailureError
from .models import AspectBucket

logger = logging.getLogger(__name__)

ASPECT_TOLERANCE = 0.01
LANDSCAPE_RATIO = 16 / 9
PORTRAIT_RATIO = 9 / 16


@dataclass(frozen=True)
class ProbeResult:
    """Dimensions of the first stream reported by the probe."""
    width: int
    height: int


class Probe(Protocol):
    """Anything that can report stream dimensions for a file on disk."""

    async def probe(self, path: Path) -> ProbeResult:
        ...


def classify_aspect_ratio(width: int, height: int) -> AspectBucket:
    """
    Bucket a frame size into landscape (16:9), portrait (9:16) or other.

    A ratio counts as a match when it is within ASPECT_TOLERANCE of the
    target. Landscape is checked first.
    """
    if width <= 0 or height <= 0:
        raise ValueError("Width and height must be positive")

    ratio = width / height
    if abs(ratio - LANDSCAPE_RATIO) < ASPECT_TOLERANCE:
        return AspectBucket.LANDSCAPE
    if abs(ratio - PORTRAIT_RATIO) < ASPECT_TOLERANCE:
        return AspectBucket.PORTRAIT
    return AspectBucket.OTHER


def _dimension(stream: dict[str, Any], name: str) -> int:
    value = stream.get(name)
    # bool is an int subclass; ffprobe never reports one for a dimension
    if not isinstance(value, int) or isinstance(value, bool) or value <= 0:
        raise ProbeFailureError(f"Probe output missing {name} on first stream")
    return value


def parse_probe_output(output: str | bytes) -> ProbeResult:
    """
    Pull width and height of the first stream out of ffprobe JSON.

    Expects the shape produced by ``-print_format json -show_streams``:
    ``{"streams": [{"width": 1920, "height": 1080, ...}, ...]}``.
    """
    try:
        info = json.loads(output)
    except (TypeError, ValueError) as e:
        raise ProbeFailureError("Probe output is not valid JSON") from e

    streams = info.get("streams") if isinstance(info, dict) else None
    if not isinstance(streams, list) or not streams or not isinstance(streams[0], dict):
        raise ProbeFailureError("Probe output has no streams")

    first = streams[0]
    return ProbeResult(
        width=_dimension(first, "width"),
        height=_dimension(first, "height"),
    )


class AspectClassifier:
    """Probe a staged file and classify its frame shape."""

    def __init__(self, probe: Probe) -> None:
        self._probe = probe

    async def classify(self, path: Path) -> AspectBucket:
        result = await self._probe.probe(path)
        bucket = classify_aspect_ratio(result.width, result.height)

        logger.info(
            "Classified video aspect ratio",
            extra={
                "width": result.width,
                "height": result.height,
                "bucket": bucket.value,
            }
        )

        return bucket
