"""Newsletter subscription mail relay"""

from fastapi import APIRouter
from fastapi.responses import JSONResponse

from devdeakin.exceptions import MailDeliveryError
from devdeakin.schemas.account import MessageResponse, SubscribeRequest
from devdeakin.services.mail_service import mail_service

router = APIRouter(tags=["Newsletter"])


@router.post("/subscribe", response_model=MessageResponse)
async def subscribe(payload: SubscribeRequest):
    """Send a subscription confirmation to the given address"""
    try:
        await mail_service.send_subscription_confirmation(payload.email)
    except MailDeliveryError:
        return JSONResponse(status_code=500, content={"message": "Email failed to send."})
    return MessageResponse(message="Email sent!")
