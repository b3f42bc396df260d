"""Authentication dependencies for FastAPI."""

from typing import Annotated

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from app.core.exceptions import AuthenticationError, InvalidTokenError
from app.core.security import verify_access_token
from app.db.redis import is_redis_connected, jwt_blacklist


# JWT Bearer scheme
bearer_scheme = HTTPBearer(auto_error=False)


async def get_token_payload(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(bearer_scheme)],
) -> dict:
    """Verify the bearer JWT and return its payload."""
    if not credentials:
        raise AuthenticationError("Authorization header required")

    payload = verify_access_token(credentials.credentials)

    jti = payload.get("jti")
    if jti and is_redis_connected() and await jwt_blacklist.exists(jti):
        raise InvalidTokenError("Token has been revoked")

    return payload


async def get_current_reviewer(
    payload: Annotated[dict, Depends(get_token_payload)],
) -> dict:
    """
    Return the authenticated reviewer.

    Used to gate every dashboard endpoint.

    Returns:
        dict with reviewer_id (email) and role
    """
    reviewer_id = payload.get("sub")
    if not reviewer_id:
        raise InvalidTokenError("Invalid token payload")

    return {"reviewer_id": reviewer_id, "role": payload.get("role", "reviewer")}


# Type aliases for cleaner dependency injection
TokenPayload = Annotated[dict, Depends(get_token_payload)]
CurrentReviewer = Annotated[dict, Depends(get_current_reviewer)]
