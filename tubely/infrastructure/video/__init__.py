"""
Video processing infrastructure.

Handles the server-side work video uploads need before storage:
- Staging the upload to a scratch file
- Probing stream dimensions with FFprobe
"""

from .probe import FFprobeProbe, StaticProbe, create_probe
from .staging import StagedFile, stage_upload

__all__ = [
    "FFprobeProbe",
    "StaticProbe",
    "create_probe",
    "StagedFile",
    "stage_upload",
]
