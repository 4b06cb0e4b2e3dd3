"""
Authenticated caller, built from verified Firebase ID token claims
"""

from typing import Any, Dict, Optional

from pydantic import BaseModel, Field, ConfigDict


class CurrentUser(BaseModel):
    """
    Identity of the caller for one request.

    ``admin`` and ``premium`` are custom claims set through the Admin SDK, so
    they are read from the token and never from a Firestore document.
    """

    uid: str
    email: Optional[str] = None
    display_name: Optional[str] = Field(default=None, alias="displayName")
    phone_number: Optional[str] = Field(default=None, alias="phoneNumber")
    admin: bool = False
    premium: bool = False

    model_config = ConfigDict(populate_by_name=True)

    @classmethod
    def from_claims(cls, claims: Dict[str, Any]) -> "CurrentUser":
        return cls(
            uid=claims.get("uid") or claims.get("sub"),
            email=claims.get("email"),
            display_name=claims.get("name"),
            phone_number=claims.get("phone_number"),
            admin=bool(claims.get("admin")),
            premium=bool(claims.get("premium")),
        )

    @property
    def author_display(self) -> str:
        """Name shown on content this user posts"""
        if self.display_name:
            return self.display_name
        if self.email:
            return self.email.split("@")[0]
        return "Anonymous"
