"""User account model - Pydantic version."""
from typing import Optional, Dict, Any
from datetime import datetime
from pydantic import BaseModel, Field, field_validator


USERS_COLLECTION = "users"


class UserAccount(BaseModel):
    """Account document stored under the user id in ``users``."""

    uid: str = Field(..., description="Identity provider user id")
    email: Optional[str] = Field(
        default=None,
        max_length=254,
        description="User's Email"
    )
    shop_tag: str = Field(
        ...,
        min_length=1,
        description="Shop tag, immutable once created"
    )
    created_at: datetime = Field(default_factory=datetime.now)

    model_config = {
        "str_strip_whitespace": True,
    }

    @field_validator('email')
    @classmethod
    def validate_email(cls, v: Optional[str]) -> Optional[str]:
        """Basic email validation"""
        if v and '@' not in v:
            raise ValueError('must be a valid email address')
        return v

    def to_document(self) -> Dict[str, Any]:
        return {
            "created_at": self.created_at,
            "shop_tag": self.shop_tag,
        }
