"""
FastAPI dependencies for authentication.

Every project route depends on ``get_current_user``; the authenticated user's
id is what the core authorization checks run against.
"""

import logging
from typing import Optional

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from uptask.auth.security import verify_token
from uptask.database import get_db
from uptask.errors import UnauthorizedError
from uptask.models import User

logger = logging.getLogger(__name__)

# HTTP Bearer token scheme for JWT authentication
security = HTTPBearer(auto_error=False)

BEARER_CHALLENGE = {"WWW-Authenticate": "Bearer"}


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    db: Session = Depends(get_db),
) -> User:
    """
    Extract and validate the current user from a JWT Bearer token.

    Args:
        credentials: HTTP Bearer credentials (JWT token)
        db: Database session

    Returns:
        User object if authentication succeeds

    Raises:
        UnauthorizedError: if the token is missing, invalid, expired,
            of the wrong type, or names a user that no longer exists

    Example:
        @router.get("/api/protected")
        async def protected_route(user: User = Depends(get_current_user)):
            return {"user_id": user.id}
    """
    if credentials is None or not credentials.credentials:
        logger.info("No authentication credentials provided")
        raise UnauthorizedError("Not authenticated", headers=BEARER_CHALLENGE)

    payload = verify_token(credentials.credentials)
    if payload is None:
        raise UnauthorizedError("Invalid or expired token", headers=BEARER_CHALLENGE)

    token_type = payload.get("type")
    if token_type != "access":
        logger.info(f"Invalid token type: {token_type}")
        raise UnauthorizedError("Invalid token type", headers=BEARER_CHALLENGE)

    user_id = payload.get("sub")
    if not isinstance(user_id, str) or not user_id:
        logger.info("Token payload missing 'sub' claim")
        raise UnauthorizedError("Invalid token payload", headers=BEARER_CHALLENGE)

    user = db.query(User).filter(User.id == user_id).first()
    if user is None:
        logger.info(f"User not found for id: {user_id}")
        raise UnauthorizedError("User not found", headers=BEARER_CHALLENGE)

    logger.debug(f"User authenticated via JWT: {user.id}")
    return user
