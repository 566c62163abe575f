"""
Tests for path routing and session gating.
"""

import pytest
from uuid import uuid4

from cardkeeper.routing import Route, ResolvedRoute, guard, path_for, resolve_route


class TestResolveRoute:

    @pytest.mark.parametrize("path,route", [
        ("/", Route.DASHBOARD),
        ("", Route.DASHBOARD),
        (None, Route.DASHBOARD),
        ("/login", Route.LOGIN),
        ("/register/", Route.REGISTER),
        ("/credit-cards", Route.CARDS),
        ("/credit-cards/add", Route.CARD_ADD),
        ("/payment-reminders", Route.REMINDERS),
        ("credit-cards", Route.CARDS),
    ])
    def test_static_paths(self, path, route):
        assert resolve_route(path).route == route

    def test_edit_path_captures_id(self):
        card_id = uuid4()
        resolved = resolve_route(f"/credit-cards/edit/{card_id}")
        assert resolved.route == Route.CARD_EDIT
        assert resolved.entity_id == card_id

    def test_statements_path_captures_id(self):
        card_id = uuid4()
        resolved = resolve_route(f"/credit-cards/{card_id}/statements")
        assert resolved.route == Route.CARD_STATEMENTS
        assert resolved.entity_id == card_id

    @pytest.mark.parametrize("path", [
        "/nowhere",
        "/credit-cards/edit/not-a-uuid",
        "/credit-cards/edit/",
    ])
    def test_unknown_paths_fall_back_to_dashboard(self, path):
        assert resolve_route(path).route == Route.DASHBOARD

    def test_query_string_ignored(self):
        assert resolve_route("/credit-cards?x=1").route == Route.CARDS


class TestGuard:
    """Session gating."""

    @pytest.mark.parametrize("route", [
        Route.CARDS,
        Route.CARD_ADD,
        Route.CARD_EDIT,
        Route.CARD_STATEMENTS,
        Route.REMINDERS,
    ])
    def test_protected_routes_redirect_to_login(self, route):
        resolved = guard(ResolvedRoute(route, uuid4()), None)
        assert resolved.route == Route.LOGIN
        assert resolved.redirected_from == route

    @pytest.mark.parametrize("route", [Route.DASHBOARD, Route.LOGIN, Route.REGISTER])
    def test_open_routes_pass_without_session(self, route):
        assert guard(ResolvedRoute(route), None).route == route

    def test_protected_route_with_session(self, session):
        card_id = uuid4()
        resolved = guard(ResolvedRoute(Route.CARD_EDIT, card_id), session)
        assert resolved == ResolvedRoute(Route.CARD_EDIT, card_id)

    def test_login_with_session_goes_to_dashboard(self, session):
        assert guard(ResolvedRoute(Route.LOGIN), session).route == Route.DASHBOARD


class TestPathFor:

    def test_round_trip_with_id(self):
        card_id = uuid4()
        assert path_for(Route.CARD_STATEMENTS, card_id) == f"/credit-cards/{card_id}/statements"
        assert resolve_route(path_for(Route.CARD_EDIT, card_id)).entity_id == card_id

    def test_id_required(self):
        with pytest.raises(ValueError):
            path_for(Route.CARD_EDIT)

    def test_static(self):
        assert path_for(Route.DASHBOARD) == "/"
        assert path_for(Route.REMINDERS) == "/payment-reminders"


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
