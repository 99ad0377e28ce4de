"""
Multipart extraction for upload endpoints.

Uses Starlette's multipart parser directly instead of FastAPI's File()
parameters so that:
- the body size ceiling is enforced before (and while) parsing
- the in-memory threshold for file parts is configurable per request
- a missing field is a 400 with our own message, not a 422

Only the named file part is kept. Every spooled part is closed when the
context exits.
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator, AsyncIterator, Collection

from fastapi import Request
from starlette.datastructures import UploadFile
from starlette.formparsers import MultiPartParser

from ..core.media.errors import (
    MalformedMultipartError,
    MissingContentTypeError,
    UnsupportedMediaTypeError,
)
from ..core.media.models import ExtractedUpload

logger = logging.getLogger(__name__)


class BodyTooLargeError(MalformedMultipartError):
    message = "Request body too large"


def parse_media_type(content_type: str) -> str:
    """Strip parameters from a content type: 'image/PNG; q=1' -> 'image/png'."""
    return content_type.split(";", 1)[0].strip().lower()


def _check_declared_length(request: Request, max_body: int) -> None:
    declared = request.headers.get("content-length")
    if declared is None:
        return

    try:
        length = int(declared)
    except ValueError:
        raise MalformedMultipartError("Invalid Content-Length header") from None

    if length > max_body:
        logger.warning(
            "Rejected oversized upload",
            extra={"content_length": length, "max_body": max_body}
        )
        raise BodyTooLargeError()


async def _limited_stream(request: Request, max_body: int) -> AsyncGenerator[bytes, None]:
    # Content-Length can be absent (chunked) or wrong, so count as well
    received = 0
    async for chunk in request.stream():
        received += len(chunk)
        if received > max_body:
            raise BodyTooLargeError()
        yield chunk


@asynccontextmanager
async def extract_upload(
    request: Request,
    field_name: str,
    allowed_types: Collection[str],
    max_memory: int = 10 << 20,
    max_body: int = 1 << 30,
) -> AsyncIterator[ExtractedUpload]:
    """
    Parse the request body and yield the named file part.

    Args:
        request: Incoming request with a multipart/form-data body
        field_name: Form field holding the file
        allowed_types: Media types accepted for that field
        max_memory: File parts larger than this are spooled to disk
        max_body: Bodies larger than this are rejected

    Raises:
        MalformedMultipartError: body unparsable, too large, or field missing
        MissingContentTypeError: the part has no Content-Type header
        UnsupportedMediaTypeError: the part's media type isn't allowed
    """
    _check_declared_length(request, max_body)

    content_type = request.headers.get("content-type", "")
    if parse_media_type(content_type) != "multipart/form-data":
        raise MalformedMultipartError("Expected a multipart/form-data body")

    parser = MultiPartParser(
        request.headers,
        _limited_stream(request, max_body),
        max_files=10,
        max_fields=100,
    )
    parser.spool_max_size = max_memory

    try:
        form = await parser.parse()
    except MalformedMultipartError:
        raise
    except Exception as e:
        logger.warning(
            "Unable to parse multipart form",
            extra={"field": field_name, "error": str(e)}
        )
        raise MalformedMultipartError() from e

    try:
        upload = form.get(field_name)
        if not isinstance(upload, UploadFile):
            raise MalformedMultipartError(f"Missing file field '{field_name}'")

        if not upload.content_type:
            raise MissingContentTypeError()

        media_type = parse_media_type(upload.content_type)
        if media_type not in allowed_types:
            logger.info(
                "Rejected unsupported media type",
                extra={"field": field_name, "media_type": media_type}
            )
            raise UnsupportedMediaTypeError(f"Unsupported media type: {media_type}")

        upload.file.seek(0)

        logger.debug(
            "Extracted upload",
            extra={
                "field": field_name,
                "media_type": media_type,
                "upload_filename": upload.filename,
            }
        )

        yield ExtractedUpload(
            file=upload.file,
            media_type=media_type,
            field_name=field_name,
            filename=upload.filename,
        )

    finally:
        await form.close()
