"""User and login result schemas."""

from datetime import datetime, timezone
from typing import Optional

from pydantic import BaseModel, Field

from .task import WireModel


class User(WireModel):
    """A registered account. The credential hash never leaves the process."""

    id: str
    email: str
    first_name: str = ""
    last_name: str = ""
    password_hash: str = Field(default="", exclude=True, repr=False)
    created_at: Optional[datetime] = Field(
        default_factory=lambda: datetime.now(timezone.utc)
    )


class UserRef(BaseModel):
    id: str
    email: str


class LoginResult(BaseModel):
    """Bearer token issued on login/registration."""

    access_token: str
    user: UserRef
