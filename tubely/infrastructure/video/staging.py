"""
Temporary staging of uploaded videos.

FFprobe works on file paths, so video uploads are copied into a scratch
file for the duration of the request. The file is removed when the
context exits, on success, error or cancellation alike.
"""

import asyncio
import logging
import os
import shutil
import tempfile
from contextlib import asynccontextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import AsyncIterator, BinaryIO, Optional

logger = logging.getLogger(__name__)

STAGING_PREFIX = "tubely-upload-"


@dataclass
class StagedFile:
    """A scratch copy of an upload, rewound to the start."""
    path: Path
    file: BinaryIO
    size_bytes: int


def _copy_into(source: BinaryIO, target: BinaryIO) -> int:
    source.seek(0)
    shutil.copyfileobj(source, target)
    target.flush()
    size = target.tell()
    target.seek(0)
    return size


@asynccontextmanager
async def stage_upload(
    source: BinaryIO,
    suffix: str = ".mp4",
    directory: Optional[Path] = None,
) -> AsyncIterator[StagedFile]:
    """
    Copy an upload to a temporary file and yield it.

    Usage:
        async with stage_upload(upload.file) as staged:
            await probe.probe(staged.path)
    """
    tmp = tempfile.NamedTemporaryFile(
        prefix=STAGING_PREFIX,
        suffix=suffix,
        dir=directory,
        delete=False,
    )
    path = Path(tmp.name)

    try:
        size = await asyncio.to_thread(_copy_into, source, tmp)

        logger.debug(
            "Staged upload",
            extra={"path": str(path), "size_bytes": size}
        )

        yield StagedFile(path=path, file=tmp, size_bytes=size)

    finally:
        tmp.close()
        try:
            os.unlink(path)
        except FileNotFoundError:
            pass
        logger.debug("Removed staged upload", extra={"path": str(path)})
