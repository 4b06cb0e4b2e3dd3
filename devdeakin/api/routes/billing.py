"""
Stripe billing endpoints

Error responses carry ``{"error": message}`` so the payment pages can show
the processor's reason directly.
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Request, status
from fastapi.responses import JSONResponse

from devdeakin.config import settings
from devdeakin.dependencies import get_current_user
from devdeakin.exceptions import BillingError
from devdeakin.models.user import CurrentUser
from devdeakin.schemas.billing import (
    ActivatePremiumRequest,
    ActivatePremiumResponse,
    CheckoutSessionResponse,
)
from devdeakin.services.billing_service import billing_service

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Billing"])


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message})


def _origin_of(request: Request) -> str:
    return (request.headers.get("origin") or settings.PUBLIC_SITE_URL).rstrip("/")


@router.post("/createCheckoutSession", response_model=CheckoutSessionResponse)
async def create_checkout_session(
    request: Request, current_user: CurrentUser = Depends(get_current_user)
):
    """
    Open a Stripe subscription Checkout session for the caller.

    Returns the session id and hosted Checkout url.
    """
    try:
        return await billing_service.create_checkout_session(
            uid=current_user.uid, email=current_user.email, origin=_origin_of(request)
        )
    except BillingError as e:
        return _error(e.status_code, str(e))


@router.post("/activatePremiumFromSession", response_model=ActivatePremiumResponse)
async def activate_premium_from_session(
    payload: Optional[ActivatePremiumRequest] = None,
    current_user: CurrentUser = Depends(get_current_user),
):
    """
    Grant the premium claim once Stripe confirms the caller's session is a paid subscription.

    - 400: missing session_id, or session unpaid / not a subscription
    - 403: session was opened for a different account
    """
    session_id = payload.session_id if payload else None
    if not session_id:
        return _error(status.HTTP_400_BAD_REQUEST, "Missing session_id")

    try:
        await billing_service.activate_premium_from_session(current_user.uid, session_id)
    except BillingError as e:
        return _error(e.status_code, str(e))
    except Exception as e:
        logger.exception("Premium activation failed for %s", current_user.uid)
        return _error(status.HTTP_500_INTERNAL_SERVER_ERROR, str(e) or "Activate error")

    return ActivatePremiumResponse(ok=True)
