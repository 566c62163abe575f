"""Authentication and session services."""

from cardkeeper.services.auth.session import (
    AuthError,
    AuthService,
    SessionHolder,
    to_user_session,
)

__all__ = ["AuthError", "AuthService", "SessionHolder", "to_user_session"]
