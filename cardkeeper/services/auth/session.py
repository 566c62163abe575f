"""
Session and Authentication

The SessionHolder is the single slot holding "no session" or
"signed in as user X". It is filled once at startup from the auth
provider and then kept current by the provider's state-change events
(sign-in, sign-out, token refresh).

Consumers read `holder.current` synchronously and pass the resulting
UserSession into every data-access call. Nothing else in the
application reads the auth provider directly.
"""

from typing import Any, Callable, Optional

import structlog

from cardkeeper.models.session import UserSession
from cardkeeper.services.storage.interface import UnauthenticatedError


logger = structlog.get_logger(__name__)


class AuthError(Exception):
    """The auth provider rejected a sign-in, sign-up or sign-out."""
    pass


def to_user_session(user: Any, session: Any = None) -> Optional[UserSession]:
    """Build a UserSession from the provider's user/session objects."""
    if user is None:
        return None
    return UserSession(
        user_id=user.id,
        email=getattr(user, "email", None),
        access_token=getattr(session, "access_token", None) if session else None,
    )


class SessionHolder:
    """
    Holds the current identity for one browser session.

    Lifecycle:
        holder = SessionHolder(client.auth)
        holder.start()      # restore session, subscribe to changes
        ...
        holder.close()      # detach the listener
    """

    def __init__(self, auth_client: Any):
        self._auth = auth_client
        self._current: Optional[UserSession] = None
        self._subscription: Any = None
        self._listeners: list[Callable[[Optional[UserSession]], None]] = []

    @property
    def current(self) -> Optional[UserSession]:
        return self._current

    @property
    def is_authenticated(self) -> bool:
        return self._current is not None

    @property
    def is_started(self) -> bool:
        return self._subscription is not None

    def require(self) -> UserSession:
        """Return the current session or raise UnauthenticatedError."""
        if self._current is None:
            raise UnauthenticatedError("Not signed in")
        return self._current

    def set(self, session: Optional[UserSession]) -> None:
        """Replace the slot. Listeners run only when the user changes."""
        previous = self._current.user_id if self._current else None
        changed = (session.user_id if session else None) != previous
        self._current = session
        if changed:
            for listener in list(self._listeners):
                listener(session)

    def add_listener(self, listener: Callable[[Optional[UserSession]], None]) -> None:
        """Call `listener` whenever the identity changes."""
        self._listeners.append(listener)

    def start(self) -> Optional[UserSession]:
        """
        Restore the identity from the provider and subscribe to changes.

        A provider error while restoring is treated as "no session":
        the user is sent to the login page rather than shown a crash.
        """
        if self.is_started:
            return self._current

        try:
            response = self._auth.get_user()
        except Exception as e:
            logger.warning("session_restore_failed", error=str(e))
            response = None

        user = getattr(response, "user", None) if response else None
        self.set(to_user_session(user, self._auth_session()))

        self._subscription = self._auth.on_auth_state_change(self._on_auth_change)
        logger.info("session_started", authenticated=self.is_authenticated)
        return self._current

    def _auth_session(self) -> Any:
        try:
            return self._auth.get_session()
        except Exception:
            return None

    def _on_auth_change(self, event: Any, session: Any) -> None:
        user = getattr(session, "user", None) if session else None
        new_session = to_user_session(user, session)
        logger.debug(
            "auth_state_changed",
            auth_event=str(event),
            user_id=str(new_session.user_id) if new_session else None,
        )
        self.set(new_session)

    def close(self) -> None:
        """Detach the provider listener."""
        if self._subscription is not None:
            self._subscription.unsubscribe()
            self._subscription = None
        self._listeners.clear()


class AuthService:
    """
    Sign-in, sign-up and sign-out against the hosted auth provider.

    Successful calls also update the SessionHolder directly, so the page
    that triggered them sees the new identity without waiting for the
    provider's state-change event.
    """

    def __init__(self, auth_client: Any, holder: SessionHolder):
        self._auth = auth_client
        self._holder = holder

    def sign_in(self, email: str, password: str) -> UserSession:
        try:
            response = self._auth.sign_in_with_password(
                {"email": email.strip(), "password": password}
            )
        except Exception as e:
            raise AuthError(f"Sign-in failed: {e}")

        session = to_user_session(response.user, response.session)
        if session is None:
            raise AuthError("Sign-in failed: no user returned")
        self._holder.set(session)
        return session

    def sign_up(self, email: str, password: str) -> Optional[UserSession]:
        """
        Register a new account.

        Returns None when the provider requires email confirmation before
        the first sign-in.
        """
        try:
            response = self._auth.sign_up({"email": email.strip(), "password": password})
        except Exception as e:
            raise AuthError(f"Sign-up failed: {e}")

        if response.session is None:
            return None
        session = to_user_session(response.user, response.session)
        self._holder.set(session)
        return session

    def sign_out(self) -> None:
        try:
            self._auth.sign_out()
        except Exception as e:
            raise AuthError(f"Sign-out failed: {e}")
        self._holder.set(None)

    def get_current_user(self) -> Optional[UserSession]:
        """Ask the provider who is signed in, bypassing the holder."""
        try:
            response = self._auth.get_user()
        except Exception as e:
            raise AuthError(f"Could not load current user: {e}")
        user = getattr(response, "user", None) if response else None
        return to_user_session(user)
