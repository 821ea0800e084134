"""Verified caller identity."""

from datetime import datetime
from typing import NewType

from pydantic import BaseModel, Field

AccessToken = NewType("AccessToken", str)


class Identity(BaseModel):
    """User identity as asserted by the external identity provider."""

    id: str = Field(..., min_length=1, description="Stable user ID assigned by the identity provider")
    email: str | None = Field(None, description="User email, if the provider returns one")


class CachedIdentity(BaseModel):
    identity: Identity
    verified_at: datetime
