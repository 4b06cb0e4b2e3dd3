"""Token introspection endpoint"""

from typing import Any, Dict

from fastapi import APIRouter, Depends

from devdeakin.dependencies import get_token_claims
from devdeakin.schemas.account import MeResponse
from devdeakin.services.firebase_service import firebase_service

router = APIRouter(tags=["Account"])


@router.get("/me", response_model=MeResponse)
async def me(claims: Dict[str, Any] = Depends(get_token_claims)):
    """Caller's uid, premium entitlement (from the token) and stored profile"""
    uid = claims.get("uid") or claims.get("sub")
    profile = await firebase_service.get_document("profiles", uid)
    return MeResponse(uid=uid, premium=bool(claims.get("premium")), profile=profile)
