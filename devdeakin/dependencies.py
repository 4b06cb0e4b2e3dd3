"""
FastAPI dependency injection for authentication
"""

import logging
from typing import Any, Dict, Optional

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from firebase_admin.exceptions import FirebaseError

from devdeakin.models.user import CurrentUser
from devdeakin.services.firebase_service import firebase_service

logger = logging.getLogger(__name__)

# Missing credentials are reported as 401 by the dependencies below
security = HTTPBearer(auto_error=False)


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


async def get_token_claims(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
) -> Dict[str, Any]:
    """
    Dependency returning the verified claims of the caller's Firebase ID token

    Revoked tokens are rejected, so a claim change followed by a token
    revocation takes effect immediately.

    Raises:
        HTTPException: 401 if the token is missing, invalid, expired or revoked
    """
    if credentials is None or not credentials.credentials:
        raise _unauthorized("Missing token")

    try:
        claims = await firebase_service.verify_id_token(credentials.credentials)
    except (ValueError, FirebaseError) as e:
        logger.info("ID token verification failed: %s", e)
        raise _unauthorized("Invalid token")

    if not claims or not (claims.get("uid") or claims.get("sub")):
        raise _unauthorized("Invalid token")
    return claims


async def get_current_user(claims: Dict[str, Any] = Depends(get_token_claims)) -> CurrentUser:
    return CurrentUser.from_claims(claims)


async def get_optional_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
) -> Optional[CurrentUser]:
    """Like get_current_user but anonymous callers (or bad tokens) yield None"""
    if credentials is None or not credentials.credentials:
        return None
    try:
        claims = await firebase_service.verify_id_token(credentials.credentials)
    except (ValueError, FirebaseError):
        return None
    if not claims:
        return None
    return CurrentUser.from_claims(claims)


async def require_admin(current_user: CurrentUser = Depends(get_current_user)) -> CurrentUser:
    """Require the ``admin`` custom claim"""
    if not current_user.admin:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Insufficient permissions. Admin claim required",
        )
    return current_user
