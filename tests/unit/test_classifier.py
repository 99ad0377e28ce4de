"""
Unit tests for aspect ratio classification and probe output parsing.
"""

import asyncio
import json
from pathlib import Path

import pytest

from tubely.core.media.classifier import (
    AspectClassifier,
    ProbeResult,
    classify_aspect_ratio,
    parse_probe_output,
)
from tubely.core.media.errors import ProbeFailureError
from tubely.core.media.models import AspectBucket
from tubely.infrastructure.video.probe import StaticProbe


class TestClassifyAspectRatio:
    """Tests for the (width, height) -> bucket rule."""

    @pytest.mark.parametrize("width,height,expected", [
        (1920, 1080, AspectBucket.LANDSCAPE),
        (1280, 720, AspectBucket.LANDSCAPE),
        (854, 480, AspectBucket.LANDSCAPE),
        (1080, 1920, AspectBucket.PORTRAIT),
        (720, 1280, AspectBucket.PORTRAIT),
        (1000, 1000, AspectBucket.OTHER),
        (640, 480, AspectBucket.OTHER),
        (2560, 1080, AspectBucket.OTHER),
    ])
    def test_common_sizes(self, width, height, expected):
        assert classify_aspect_ratio(width, height) is expected

    @pytest.mark.parametrize("width,height,expected", [
        # 16:9 is 1.7778; matches within 0.01 either side
        (1787, 1000, AspectBucket.LANDSCAPE),
        (1788, 1000, AspectBucket.OTHER),
        (1768, 1000, AspectBucket.LANDSCAPE),
        (1767, 1000, AspectBucket.OTHER),
        # 9:16 is 0.5625
        (5715, 10000, AspectBucket.PORTRAIT),
        (5726, 10000, AspectBucket.OTHER),
        (5535, 10000, AspectBucket.PORTRAIT),
        (5524, 10000, AspectBucket.OTHER),
    ])
    def test_tolerance_boundaries(self, width, height, expected):
        assert classify_aspect_ratio(width, height) is expected

    @pytest.mark.parametrize("width,height", [(0, 1080), (1920, 0), (-1, 10)])
    def test_rejects_non_positive_dimensions(self, width, height):
        with pytest.raises(ValueError):
            classify_aspect_ratio(width, height)


class TestParseProbeOutput:
    """Tests for reading dimensions out of ffprobe JSON."""

    def test_reads_first_stream(self):
        output = json.dumps({
            "streams": [
                {"codec_type": "video", "width": 1080, "height": 1920},
                {"codec_type": "audio"},
            ]
        })

        assert parse_probe_output(output) == ProbeResult(width=1080, height=1920)

    def test_accepts_bytes(self):
        output = b'{"streams": [{"width": 640, "height": 360}]}'

        assert parse_probe_output(output) == ProbeResult(width=640, height=360)

    @pytest.mark.parametrize("output", [
        "",
        "not json",
        "[]",
        "{}",
        '{"streams": []}',
        '{"streams": ["video"]}',
        '{"streams": {"width": 1920, "height": 1080}}',
        '{"streams": "1920x1080"}',
    ])
    def test_unusable_output_is_a_probe_failure(self, output):
        with pytest.raises(ProbeFailureError):
            parse_probe_output(output)

    @pytest.mark.parametrize("stream", [
        {"width": 1920},
        {"height": 1080},
        {"width": "1920", "height": 1080},
        {"width": 1920, "height": 0},
        {"width": True, "height": 1080},
    ])
    def test_missing_or_invalid_dimension_is_a_probe_failure(self, stream):
        with pytest.raises(ProbeFailureError):
            parse_probe_output(json.dumps({"streams": [stream]}))


class TestAspectClassifier:

    def test_classifies_probed_dimensions(self):
        probe = StaticProbe(width=720, height=1280)
        classifier = AspectClassifier(probe)

        bucket = asyncio.run(classifier.classify(Path("/tmp/clip.mp4")))

        assert bucket is AspectBucket.PORTRAIT
        assert probe.probed == [Path("/tmp/clip.mp4")]

    def test_probe_failure_propagates(self):
        classifier = AspectClassifier(StaticProbe(width=1920, height=None))

        with pytest.raises(ProbeFailureError):
            asyncio.run(classifier.classify(Path("/tmp/clip.mp4")))
