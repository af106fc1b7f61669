"""
Shared dependencies for FastAPI routes.
"""

from typing import Optional

from fastapi import Header, Request

from mingle.errors import Unauthenticated
from mingle.utils.logger import get_logger

logger = get_logger(__name__)


def _bearer_token(authorization: Optional[str]) -> Optional[str]:
    if not authorization:
        return None
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        return None
    return token.strip()


async def get_current_user(
    request: Request,
    authorization: Optional[str] = Header(None),
) -> str:
    """
    Validate the bearer token and return the caller's user id.

    A token for a user that has since been deleted is rejected.
    """
    token = _bearer_token(authorization)
    if not token:
        raise Unauthenticated("Authentication required")

    principal = request.app.state.credentials.verify_token(token)
    if not request.app.state.identity.exists(principal.user_id):
        logger.warning(f"Rejected token for unknown user {principal.user_id}")
        raise Unauthenticated("User no longer exists")
    return principal.user_id


async def get_current_user_optional(
    request: Request,
    authorization: Optional[str] = Header(None),
) -> Optional[str]:
    """Optional version of get_current_user that returns None if not authenticated."""
    try:
        return await get_current_user(request, authorization)
    except Unauthenticated:
        return None
