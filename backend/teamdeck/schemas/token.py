from typing import Optional

from pydantic import BaseModel, ConfigDict


class TokenPayload(BaseModel):
    """Claims read from an identity provider token."""

    model_config = ConfigDict(extra="allow")

    sub: Optional[str] = None
    exp: Optional[int] = None
    email: Optional[str] = None
