"""JWT token payload schemas."""

from datetime import datetime

from pydantic import BaseModel


class TokenPayload(BaseModel):
    """JWT token payload structure."""

    sub: str  # user_id (standard JWT claim)
    email: str | None = None
    exp: datetime  # Expiration time (standard JWT claim)
