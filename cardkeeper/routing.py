"""
Routing

Maps URL paths to pages and gates protected pages on the session.

Paths:
    /                               dashboard (open; shows a sign-in prompt)
    /login, /register               open
    /credit-cards                   card list
    /credit-cards/add               add card
    /credit-cards/edit/{id}         edit card
    /credit-cards/{id}/statements   statements for one card
    /payment-reminders              reminder list

Every other known path requires a session. Unknown paths fall back to
the dashboard.
"""

import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional
from uuid import UUID

from cardkeeper.models.session import UserSession


class Route(str, Enum):
    DASHBOARD = "dashboard"
    LOGIN = "login"
    REGISTER = "register"
    CARDS = "cards"
    CARD_ADD = "card_add"
    CARD_EDIT = "card_edit"
    CARD_STATEMENTS = "card_statements"
    REMINDERS = "reminders"

    @property
    def is_protected(self) -> bool:
        return self not in OPEN_ROUTES

    @property
    def label(self) -> str:
        return ROUTE_LABELS[self]


OPEN_ROUTES = frozenset({Route.DASHBOARD, Route.LOGIN, Route.REGISTER})

ROUTE_LABELS = {
    Route.DASHBOARD: "Dashboard",
    Route.LOGIN: "Sign In",
    Route.REGISTER: "Create Account",
    Route.CARDS: "Credit Cards",
    Route.CARD_ADD: "Add Card",
    Route.CARD_EDIT: "Edit Card",
    Route.CARD_STATEMENTS: "Bill Statements",
    Route.REMINDERS: "Payment Reminders",
}

# Routes shown in the sidebar, in order
NAV_ROUTES = [Route.DASHBOARD, Route.CARDS, Route.REMINDERS]

_UUID = r"(?P<id>[0-9a-fA-F-]{36})"

_PATTERNS: list[tuple[re.Pattern, Route]] = [
    (re.compile(r"^/?$"), Route.DASHBOARD),
    (re.compile(r"^/login/?$"), Route.LOGIN),
    (re.compile(r"^/register/?$"), Route.REGISTER),
    (re.compile(r"^/credit-cards/?$"), Route.CARDS),
    (re.compile(r"^/credit-cards/add/?$"), Route.CARD_ADD),
    (re.compile(rf"^/credit-cards/edit/{_UUID}/?$"), Route.CARD_EDIT),
    (re.compile(rf"^/credit-cards/{_UUID}/statements/?$"), Route.CARD_STATEMENTS),
    (re.compile(r"^/payment-reminders/?$"), Route.REMINDERS),
]


@dataclass(frozen=True)
class ResolvedRoute:
    """A route plus the id captured from its path, if any."""
    route: Route
    entity_id: Optional[UUID] = None
    redirected_from: Optional[Route] = field(default=None, compare=False)

    @property
    def path(self) -> str:
        return path_for(self.route, self.entity_id)


def resolve_route(path: Optional[str]) -> ResolvedRoute:
    """Match a path to a route. Unknown or malformed paths give the dashboard."""
    path = (path or "/").split("?", 1)[0].strip()
    if not path.startswith("/"):
        path = "/" + path

    for pattern, route in _PATTERNS:
        match = pattern.match(path)
        if not match:
            continue
        raw_id = match.groupdict().get("id")
        if raw_id is None:
            return ResolvedRoute(route)
        try:
            return ResolvedRoute(route, UUID(raw_id))
        except ValueError:
            break

    return ResolvedRoute(Route.DASHBOARD)


def guard(resolved: ResolvedRoute, session: Optional[UserSession]) -> ResolvedRoute:
    """
    Apply session gating.

    - protected route, no session -> login
    - login/register with a session -> dashboard
    - anything else passes through
    """
    if resolved.route.is_protected and session is None:
        return ResolvedRoute(Route.LOGIN, redirected_from=resolved.route)
    if resolved.route in (Route.LOGIN, Route.REGISTER) and session is not None:
        return ResolvedRoute(Route.DASHBOARD, redirected_from=resolved.route)
    return resolved


def path_for(route: Route, entity_id: Optional[UUID] = None) -> str:
    """Build the path for a route. Routes with an id require one."""
    if route in (Route.CARD_EDIT, Route.CARD_STATEMENTS) and entity_id is None:
        raise ValueError(f"{route.value} requires an id")

    if route == Route.DASHBOARD:
        return "/"
    if route == Route.LOGIN:
        return "/login"
    if route == Route.REGISTER:
        return "/register"
    if route == Route.CARDS:
        return "/credit-cards"
    if route == Route.CARD_ADD:
        return "/credit-cards/add"
    if route == Route.CARD_EDIT:
        return f"/credit-cards/edit/{entity_id}"
    if route == Route.CARD_STATEMENTS:
        return f"/credit-cards/{entity_id}/statements"
    return "/payment-reminders"
