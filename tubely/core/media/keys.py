"""
Storage key generation.

Keys look like ``[<aspect>/]<random><ext>``. The random segment is 32
bytes from the OS CSPRNG, base64url-encoded without padding, so keys are
never checked against what is already stored.
"""

import base64
import mimetypes
import secrets
from typing import Callable, Optional

from .models import AspectBucket

RANDOM_SEGMENT_BYTES = 32

# Canonical extension per media type. mimetypes is only consulted for
# types we don't list, because its answers vary by platform.
MEDIA_TYPE_EXTENSIONS = {
    "image/jpeg": ".jpg",
    "image/png": ".png",
    "video/mp4": ".mp4",
}

DEFAULT_EXTENSION = ".bin"


def extension_for(media_type: str) -> str:
    """Return the file extension used for keys of the given media type."""
    media_type = media_type.lower()
    if media_type in MEDIA_TYPE_EXTENSIONS:
        return MEDIA_TYPE_EXTENSIONS[media_type]

    guessed = mimetypes.guess_extension(media_type)
    return guessed or DEFAULT_EXTENSION


def random_segment(token_bytes: Callable[[int], bytes] = secrets.token_bytes) -> str:
    raw = token_bytes(RANDOM_SEGMENT_BYTES)
    return base64.urlsafe_b64encode(raw).rstrip(b"=").decode("ascii")


def generate_key(
    media_type: str,
    bucket: Optional[AspectBucket] = None,
    token_bytes: Callable[[int], bytes] = secrets.token_bytes,
) -> str:
    """
    Build a storage key for an asset.

    Args:
        media_type: Media type of the payload, without parameters
        bucket: Aspect bucket for videos; used as a path prefix
        token_bytes: Source of random bytes (tests pass a fixed one)
    """
    key = random_segment(token_bytes) + extension_for(media_type)
    if bucket is not None:
        key = f"{bucket.value}/{key}"
    return key
