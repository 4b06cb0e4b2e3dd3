"""
Stripe subscription checkout and premium entitlement activation
"""

import asyncio
import logging
from typing import Any, Dict, Optional

import stripe

from devdeakin.config import settings
from devdeakin.exceptions import (
    BillingConfigurationError,
    BillingError,
    PaymentNotCompleteError,
    SessionOwnerMismatchError,
)
from devdeakin.services.firebase_service import firebase_service

logger = logging.getLogger(__name__)

PREMIUM_CLAIM = "premium"


def _request_options() -> Dict[str, Any]:
    if not settings.STRIPE_SECRET_KEY:
        raise BillingConfigurationError("Missing STRIPE_SECRET_KEY")
    return {"api_key": settings.STRIPE_SECRET_KEY, "stripe_version": settings.STRIPE_API_VERSION}


def session_owner(session: stripe.checkout.Session) -> Optional[str]:
    """Account id a Checkout session was opened for"""
    # StripeObject raises AttributeError for absent keys
    metadata = getattr(session, "metadata", None)
    return getattr(metadata, "firebase_uid", None) or getattr(session, "client_reference_id", None)


class BillingService:
    async def create_checkout_session(
        self, uid: str, email: Optional[str], origin: str
    ) -> Dict[str, str]:
        """
        Open a subscription Checkout session scoped to ``uid``

        Args:
            uid: Firebase UID of the caller, embedded as client_reference_id and metadata
            email: Prefills the Checkout email field when known
            origin: Site origin the Checkout page redirects back to

        Returns:
            {"id": session id, "url": hosted Checkout url}
        """
        if not settings.STRIPE_PRICE_ID:
            raise BillingConfigurationError("Missing STRIPE_PRICE_ID")
        options = _request_options()

        params: Dict[str, Any] = {
            "mode": "subscription",
            "line_items": [{"price": settings.STRIPE_PRICE_ID, "quantity": 1}],
            "client_reference_id": uid,
            "metadata": {"firebase_uid": uid},
            "success_url": f"{origin}/payment/success?session_id={{CHECKOUT_SESSION_ID}}",
            "cancel_url": f"{origin}/plans",
            "allow_promotion_codes": True,
        }
        if email:
            params["customer_email"] = email

        try:
            session = await asyncio.to_thread(stripe.checkout.Session.create, **params, **options)
        except stripe.StripeError as e:
            logger.error("Stripe checkout creation failed for %s: %s", uid, e)
            raise BillingError(e.user_message or str(e) or "Stripe error") from e

        logger.info("Checkout session %s created for %s", session.id, uid)
        return {"id": session.id, "url": session.url}

    async def activate_premium_from_session(self, uid: str, session_id: str) -> None:
        """
        Grant the premium claim to ``uid`` after re-checking the session with Stripe.

        Nothing the client sends about the payment is trusted: the session is
        fetched from Stripe, must be a paid subscription, and must have been
        opened for the same account that is calling.
        """
        options = _request_options()
        try:
            session = await asyncio.to_thread(
                stripe.checkout.Session.retrieve, session_id, **options
            )
        except stripe.StripeError as e:
            logger.error("Stripe session lookup failed for %s: %s", session_id, e)
            raise BillingError(e.user_message or str(e) or "Activate error") from e

        payment_status = getattr(session, "payment_status", None)
        mode = getattr(session, "mode", None)
        if payment_status != "paid" or mode != "subscription":
            logger.warning(
                "Refusing activation for %s: session %s status=%s mode=%s",
                uid, session_id, payment_status, mode,
            )
            raise PaymentNotCompleteError("Payment not complete")

        owner = session_owner(session)
        if not owner or owner != uid:
            logger.warning(
                "Refusing activation for %s: session %s belongs to %s", uid, session_id, owner)
            raise SessionOwnerMismatchError("Wrong user")

        claims = await firebase_service.get_custom_claims(uid)
        await firebase_service.set_custom_claims(uid, {**claims, PREMIUM_CLAIM: True})
        logger.info("Premium activated for %s from session %s", uid, session_id)


billing_service = BillingService()
