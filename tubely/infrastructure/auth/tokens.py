"""
Bearer token verification.

Access tokens are HS256 JWTs whose subject is the user's UUID. Issuing
them belongs to the accounts service; create_access_token exists for
tests and local tooling.
"""

import logging
from datetime import datetime, timedelta, timezone
from typing import Mapping
from uuid import UUID

from jose import JWTError, jwt

from tubely.core.media.errors import UnauthenticatedError

logger = logging.getLogger(__name__)

ALGORITHM = "HS256"
DEFAULT_ISSUER = "tubely-access"


def get_bearer_token(headers: Mapping[str, str]) -> str:
    """Extract a Bearer token from the Authorization header (scheme is case-insensitive)."""
    auth_header = headers.get("Authorization")
    if not auth_header:
        logger.warning("Missing Authorization header")
        raise UnauthenticatedError("Couldn't find JWT")

    parts = auth_header.split()
    if len(parts) != 2 or parts[0].lower() != "bearer":
        logger.warning("Malformed Authorization header")
        raise UnauthenticatedError("Couldn't find JWT")

    return parts[1]


def validate_access_token(token: str, secret: str, issuer: str = DEFAULT_ISSUER) -> UUID:
    """Verify signature, expiry and issuer; return the user id from the subject."""
    try:
        claims = jwt.decode(
            token,
            secret,
            algorithms=[ALGORITHM],
            issuer=issuer,
        )
    except JWTError as e:
        logger.warning("Rejected access token", extra={"error": str(e)})
        raise UnauthenticatedError("Couldn't validate JWT") from e

    try:
        return UUID(str(claims.get("sub")))
    except ValueError as e:
        logger.warning("Access token subject is not a user id")
        raise UnauthenticatedError("Couldn't validate JWT") from e


def create_access_token(
    user_id: UUID,
    secret: str,
    expires_in: timedelta = timedelta(hours=1),
    issuer: str = DEFAULT_ISSUER,
) -> str:
    now = datetime.now(timezone.utc)
    claims = {
        "iss": issuer,
        "sub": str(user_id),
        "iat": now,
        "exp": now + expires_in,
    }
    return jwt.encode(claims, secret, algorithm=ALGORITHM)
