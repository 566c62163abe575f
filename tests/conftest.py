"""
Shared fixtures for Card Keeper tests.

No test talks to a real backend: the Supabase client is a MagicMock
chain and the flows run against the in-memory storages in factories.py.
"""

from unittest.mock import MagicMock

import pytest

from cardkeeper.config import AppSettings
from cardkeeper.models.session import UserSession
from tests.factories import USER_ID


@pytest.fixture(autouse=True)
def supabase_env(monkeypatch):
    """Backend settings every test can rely on."""
    monkeypatch.setenv("SUPABASE_URL", "https://example.supabase.co")
    monkeypatch.setenv("SUPABASE_ANON_KEY", "test-anon-key")


@pytest.fixture
def session() -> UserSession:
    return UserSession(user_id=USER_ID, email="asha@example.com", access_token="token")


@pytest.fixture
def app_settings() -> AppSettings:
    return AppSettings()


@pytest.fixture
def mock_supabase():
    """
    A Supabase client whose query builder returns itself, so chains like
    table().select().eq().order().execute() resolve to one result mock.
    """
    client = MagicMock()
    query = MagicMock()
    for method in ("select", "insert", "update", "delete", "eq", "order", "limit"):
        getattr(query, method).return_value = query
    query.execute.return_value = MagicMock(data=[])
    client.table.return_value = query
    client.query = query

    bucket = MagicMock()
    client.storage.from_.return_value = bucket
    client.bucket = bucket
    return client
