"""Session model: who is signed in right now."""

from typing import Optional
from uuid import UUID

from pydantic import BaseModel, Field


class UserSession(BaseModel):
    """
    An authenticated identity.

    Passed explicitly to every data-access call so that tests can inject
    a fake user without touching any global state.
    """

    user_id: UUID
    email: Optional[str] = None
    access_token: Optional[str] = Field(default=None, repr=False)
