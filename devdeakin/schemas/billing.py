"""
Billing request/response schemas
"""

from typing import Optional

from pydantic import BaseModel, ConfigDict


class CheckoutSessionResponse(BaseModel):
    id: str
    url: Optional[str] = None


class ActivatePremiumRequest(BaseModel):
    # Optional so a missing id is reported as 400 rather than a validation error
    session_id: Optional[str] = None

    model_config = ConfigDict(
        json_schema_extra={"example": {"session_id": "cs_test_a1b2c3"}}
    )


class ActivatePremiumResponse(BaseModel):
    ok: bool = True
