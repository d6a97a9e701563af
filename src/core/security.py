"""
Bearer token protection for the dashboard API.

The dashboard authenticates with the service's own API_KEY. The Kontent.ai
management key never leaves the server.
"""
import logging
import secrets
from typing import Optional

from fastapi import HTTPException, Security, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from src.core.config import settings

logger = logging.getLogger(__name__)

bearer_scheme = HTTPBearer(auto_error=False)

BEARER_CHALLENGE = {"WWW-Authenticate": "Bearer"}


def _token_matches(presented: str, expected: str) -> bool:
    return secrets.compare_digest(presented.encode(), expected.encode())


async def verify_api_key(
    credentials: Optional[HTTPAuthorizationCredentials] = Security(bearer_scheme)
) -> bool:
    """
    Check the dashboard's bearer token.

    Skipped entirely when REQUIRE_API_KEY is false (local development).

    Raises:
        HTTPException: 500 if no API_KEY is configured, 401 if the token is
            missing, 403 if it does not match
    """
    if not settings.REQUIRE_API_KEY:
        return True

    if not settings.API_KEY:
        logger.error("REQUIRE_API_KEY is set but API_KEY is empty; rejecting dashboard request")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="API authentication is not properly configured"
        )

    if credentials is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Bearer token is required. Provide Authorization: Bearer <token> header.",
            headers=BEARER_CHALLENGE
        )

    if not _token_matches(credentials.credentials, settings.API_KEY):
        logger.warning("Rejected dashboard request with an invalid bearer token")
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Invalid bearer token",
            headers=BEARER_CHALLENGE
        )

    return True
