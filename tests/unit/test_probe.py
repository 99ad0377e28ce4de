"""
Unit tests for the ffprobe wrapper.

subprocess.run is replaced so ffprobe doesn't need to be installed.
"""

import asyncio
import subprocess
from pathlib import Path

import pytest

from tubely.core.media.classifier import ProbeResult
from tubely.core.media.errors import ProbeFailureError
from tubely.infrastructure.video.probe import FFprobeProbe, StaticProbe, create_probe

CLIP = Path("/tmp/tubely-upload-clip.mp4")


def fake_run(returncode=0, stdout="", stderr="", raises=None):
    calls = []

    def run(cmd, **kwargs):
        calls.append((cmd, kwargs))
        if raises is not None:
            raise raises
        return subprocess.CompletedProcess(cmd, returncode, stdout=stdout, stderr=stderr)

    run.calls = calls
    return run


class TestFFprobeProbe:

    def test_command_asks_for_json_streams(self):
        probe = FFprobeProbe(ffprobe_path="/usr/bin/ffprobe")

        assert probe.command(CLIP) == [
            "/usr/bin/ffprobe",
            "-v", "error",
            "-print_format", "json",
            "-show_streams",
            str(CLIP),
        ]

    def test_parses_successful_output(self, monkeypatch):
        run = fake_run(stdout='{"streams": [{"width": 1920, "height": 1080}]}')
        monkeypatch.setattr(subprocess, "run", run)

        result = asyncio.run(FFprobeProbe(timeout_seconds=5).probe(CLIP))

        assert result == ProbeResult(width=1920, height=1080)
        _, kwargs = run.calls[0]
        assert kwargs["timeout"] == 5
        assert kwargs["capture_output"] is True

    def test_nonzero_exit_is_a_probe_failure(self, monkeypatch):
        monkeypatch.setattr(
            subprocess, "run", fake_run(returncode=1, stderr="Invalid data found")
        )

        with pytest.raises(ProbeFailureError):
            asyncio.run(FFprobeProbe().probe(CLIP))

    def test_missing_binary_is_a_probe_failure(self, monkeypatch):
        monkeypatch.setattr(subprocess, "run", fake_run(raises=FileNotFoundError("ffprobe")))

        with pytest.raises(ProbeFailureError):
            asyncio.run(FFprobeProbe().probe(CLIP))

    def test_timeout_is_a_probe_failure(self, monkeypatch):
        monkeypatch.setattr(
            subprocess, "run",
            fake_run(raises=subprocess.TimeoutExpired(cmd="ffprobe", timeout=1)),
        )

        with pytest.raises(ProbeFailureError):
            asyncio.run(FFprobeProbe(timeout_seconds=1).probe(CLIP))

    def test_output_without_height_is_a_probe_failure(self, monkeypatch):
        monkeypatch.setattr(
            subprocess, "run", fake_run(stdout='{"streams": [{"width": 1920}]}')
        )

        with pytest.raises(ProbeFailureError):
            asyncio.run(FFprobeProbe().probe(CLIP))


class TestCreateProbe:

    def test_mock_mode_returns_static_probe(self):
        probe = create_probe(mock_mode=True)

        assert isinstance(probe, StaticProbe)
        assert asyncio.run(probe.probe(CLIP)) == ProbeResult(width=1920, height=1080)

    def test_default_returns_ffprobe(self):
        assert isinstance(create_probe(), FFprobeProbe)
