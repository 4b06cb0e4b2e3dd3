"""
Account and newsletter schemas
"""

from typing import Any, Dict, Optional

from pydantic import BaseModel, EmailStr, ConfigDict


class MeResponse(BaseModel):
    uid: str
    premium: bool
    profile: Optional[Dict[str, Any]] = None


class SubscribeRequest(BaseModel):
    email: EmailStr

    model_config = ConfigDict(
        json_schema_extra={"example": {"email": "student@deakin.edu.au"}}
    )


class MessageResponse(BaseModel):
    message: str
