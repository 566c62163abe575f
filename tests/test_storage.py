"""
Tests for the Supabase storage layer.

The client is a MagicMock chain (see conftest.mock_supabase); tests check
which calls were built and how results and failures are mapped.
"""

import asyncio
import pytest
from datetime import date
from decimal import Decimal
from unittest.mock import MagicMock
from uuid import UUID, uuid4

from cardkeeper.config import SupabaseSettings
from cardkeeper.services.storage import (
    ConfigurationError,
    NotFoundError,
    StorageError,
    SupabaseCardStorage,
    SupabaseReminderStorage,
    SupabaseStatementStorage,
    UnauthenticatedError,
    UploadError,
    create_supabase_client,
    require_user,
    to_row,
)
from tests.factories import USER_ID, card_row, pdf_file, reminder_row, statement_row


def statement_storage(client) -> SupabaseStatementStorage:
    settings = SupabaseSettings(
        url="https://example.supabase.co",
        anon_key="key",
        statements_bucket="bill_statements",
    )
    return SupabaseStatementStorage(client, settings)


class TestHelpers:

    def test_require_user_without_session(self):
        with pytest.raises(UnauthenticatedError):
            require_user(None, "list cards")

    def test_require_user_returns_id(self, session):
        assert require_user(session, "list cards") == str(USER_ID)

    def test_to_row_converts_types(self):
        card_id = uuid4()
        row = to_row({
            "amount": Decimal("12.50"),
            "due_date": date(2024, 1, 25),
            "credit_card_id": card_id,
            "notes": None,
        })
        assert row == {
            "amount": 12.5,
            "due_date": "2024-01-25",
            "credit_card_id": str(card_id),
            "notes": None,
        }

    def test_client_requires_settings(self, monkeypatch):
        monkeypatch.setenv("SUPABASE_URL", "   ")
        with pytest.raises(ConfigurationError):
            create_supabase_client()


class TestCardStorage:
    """Tests for SupabaseCardStorage."""

    def test_list_cards_scoped_and_ordered(self, mock_supabase, session):
        mock_supabase.query.execute.return_value = MagicMock(data=[card_row(), card_row()])
        storage = SupabaseCardStorage(mock_supabase)

        cards = asyncio.run(storage.list_cards(session))

        assert len(cards) == 2
        mock_supabase.table.assert_called_with("credit_cards")
        mock_supabase.query.eq.assert_any_call("user_id", str(USER_ID))
        mock_supabase.query.order.assert_called_with("created_at", desc=True)

    def test_no_session_makes_no_request(self, mock_supabase):
        storage = SupabaseCardStorage(mock_supabase)
        with pytest.raises(UnauthenticatedError):
            asyncio.run(storage.list_cards(None))
        mock_supabase.table.assert_not_called()

    def test_insert_adds_user_id(self, mock_supabase, session):
        mock_supabase.query.execute.return_value = MagicMock(data=[card_row()])
        storage = SupabaseCardStorage(mock_supabase)

        asyncio.run(storage.insert_card(session, {
            "card_name": "Regalia",
            "credit_limit": Decimal("50000"),
            "bill_cycle_days": 20,
        }))

        inserted = mock_supabase.query.insert.call_args[0][0]
        assert inserted["user_id"] == str(USER_ID)
        assert inserted["credit_limit"] == 50000.0
        assert inserted["bill_cycle_days"] == 20

    def test_insert_without_row_is_error(self, mock_supabase, session):
        mock_supabase.query.execute.return_value = MagicMock(data=[])
        storage = SupabaseCardStorage(mock_supabase)
        with pytest.raises(StorageError):
            asyncio.run(storage.insert_card(session, {"card_name": "x"}))

    def test_update_missing_row(self, mock_supabase, session):
        mock_supabase.query.execute.return_value = MagicMock(data=[])
        storage = SupabaseCardStorage(mock_supabase)
        with pytest.raises(NotFoundError):
            asyncio.run(storage.update_card(session, uuid4(), {"card_name": "x"}))

    def test_get_missing_card_is_none(self, mock_supabase, session):
        storage = SupabaseCardStorage(mock_supabase)
        assert asyncio.run(storage.get_card(session, uuid4())) is None

    def test_backend_failure_wrapped(self, mock_supabase, session):
        mock_supabase.query.execute.side_effect = RuntimeError("boom")
        storage = SupabaseCardStorage(mock_supabase)
        with pytest.raises(StorageError, match="boom"):
            asyncio.run(storage.list_cards(session))

    def test_unreadable_row_is_storage_error(self, mock_supabase, session):
        mock_supabase.query.execute.return_value = MagicMock(
            data=[card_row(credit_limit="lots")]
        )
        storage = SupabaseCardStorage(mock_supabase)
        with pytest.raises(StorageError, match="unreadable credit_cards row"):
            asyncio.run(storage.list_cards(session))

    def test_delete_reports_whether_row_removed(self, mock_supabase, session):
        mock_supabase.query.execute.return_value = MagicMock(data=[card_row()])
        storage = SupabaseCardStorage(mock_supabase)
        assert asyncio.run(storage.delete_card(session, uuid4())) is True

        mock_supabase.query.execute.return_value = MagicMock(data=[])
        assert asyncio.run(storage.delete_card(session, uuid4())) is False


class TestReminderStorage:
    """Tests for SupabaseReminderStorage."""

    def test_list_ordered_by_due_date(self, mock_supabase, session):
        mock_supabase.query.execute.return_value = MagicMock(data=[reminder_row()])
        storage = SupabaseReminderStorage(mock_supabase)

        reminders = asyncio.run(storage.list_reminders(session))

        assert len(reminders) == 1
        mock_supabase.table.assert_called_with("payment_reminders")
        mock_supabase.query.order.assert_called_with("due_date", desc=False)

    def test_partial_update_sends_only_given_fields(self, mock_supabase, session):
        mock_supabase.query.execute.return_value = MagicMock(data=[reminder_row(is_paid=True)])
        storage = SupabaseReminderStorage(mock_supabase)

        reminder = asyncio.run(storage.update_reminder(session, uuid4(), {"is_paid": True}))

        mock_supabase.query.update.assert_called_once_with({"is_paid": True})
        assert reminder.is_paid is True


class TestStatementStorage:
    """Tests for statement upload, access and deletion."""

    def test_file_path_layout(self):
        path = SupabaseStatementStorage.build_file_path(str(USER_ID), UUID(int=7), "jan/feb.pdf")
        user, card, name = path.split("/")
        assert user == str(USER_ID)
        assert card == str(UUID(int=7))
        assert name.endswith("_jan_feb.pdf")

    def test_upload_stores_file_then_row(self, mock_supabase, session):
        card_id = uuid4()
        mock_supabase.query.execute.return_value = MagicMock(
            data=[statement_row(credit_card_id=str(card_id))]
        )
        storage = statement_storage(mock_supabase)

        statement = asyncio.run(storage.upload_statement(
            session, card_id, pdf_file(), date(2024, 1, 5), date(2024, 1, 25), Decimal("12000")
        ))

        assert statement.credit_card_id == card_id
        mock_supabase.storage.from_.assert_called_with("bill_statements")
        path, content = mock_supabase.bucket.upload.call_args[0][:2]
        assert path.startswith(f"{USER_ID}/{card_id}/")
        assert content == b"%PDF-1.4 statement"

        inserted = mock_supabase.query.insert.call_args[0][0]
        assert inserted["file_path"] == path
        assert inserted["bill_date"] == "2024-01-05"
        assert inserted["amount"] == 12000.0

    def test_failed_file_upload_writes_no_row(self, mock_supabase, session):
        mock_supabase.bucket.upload.side_effect = RuntimeError("bucket full")
        storage = statement_storage(mock_supabase)

        with pytest.raises(UploadError) as exc_info:
            asyncio.run(storage.upload_statement(
                session, uuid4(), pdf_file(), date(2024, 1, 5), date(2024, 1, 25), Decimal("1")
            ))

        assert exc_info.value.file_path is None
        mock_supabase.query.insert.assert_not_called()
        mock_supabase.bucket.remove.assert_not_called()

    def test_failed_row_insert_removes_file(self, mock_supabase, session):
        """The stored binary is removed when its metadata row cannot be written."""
        mock_supabase.query.execute.side_effect = RuntimeError("insert rejected")
        storage = statement_storage(mock_supabase)

        with pytest.raises(UploadError) as exc_info:
            asyncio.run(storage.upload_statement(
                session, uuid4(), pdf_file(), date(2024, 1, 5), date(2024, 1, 25), Decimal("1")
            ))

        error = exc_info.value
        uploaded_path = mock_supabase.bucket.upload.call_args[0][0]
        mock_supabase.bucket.remove.assert_called_once_with([uploaded_path])
        assert error.compensated is True
        assert error.file_path == uploaded_path
        assert "insert rejected" in str(error.original)

    def test_failed_cleanup_still_raises_original(self, mock_supabase, session):
        mock_supabase.query.execute.side_effect = RuntimeError("insert rejected")
        mock_supabase.bucket.remove.side_effect = RuntimeError("remove failed")
        storage = statement_storage(mock_supabase)

        with pytest.raises(UploadError, match="insert rejected") as exc_info:
            asyncio.run(storage.upload_statement(
                session, uuid4(), pdf_file(), date(2024, 1, 5), date(2024, 1, 25), Decimal("1")
            ))

        assert exc_info.value.compensated is False

    def test_unreadable_stored_row_is_undone(self, mock_supabase, session):
        """A row that cannot be read back is removed along with its file."""
        mock_supabase.query.execute.return_value = MagicMock(data=[{"id": "not-a-uuid"}])
        storage = statement_storage(mock_supabase)

        with pytest.raises(UploadError) as exc_info:
            asyncio.run(storage.upload_statement(
                session, uuid4(), pdf_file(), date(2024, 1, 5), date(2024, 1, 25), Decimal("1")
            ))

        error = exc_info.value
        uploaded_path = mock_supabase.bucket.upload.call_args[0][0]
        assert isinstance(error.original, StorageError)
        assert error.file_path == uploaded_path
        assert error.compensated is True
        mock_supabase.query.delete.assert_called_once()
        mock_supabase.query.eq.assert_any_call("file_path", uploaded_path)
        mock_supabase.bucket.remove.assert_called_once_with([uploaded_path])

    def test_signed_url(self, mock_supabase, session):
        mock_supabase.bucket.create_signed_url.return_value = {"signedURL": "https://signed"}
        storage = statement_storage(mock_supabase)
        path = f"{USER_ID}/card/1_jan.pdf"

        url = asyncio.run(storage.create_signed_url(session, path))

        assert url == "https://signed"
        mock_supabase.bucket.create_signed_url.assert_called_once_with(path, 3600)

    def test_signed_url_for_other_user_refused(self, mock_supabase, session):
        storage = statement_storage(mock_supabase)
        with pytest.raises(NotFoundError):
            asyncio.run(storage.create_signed_url(session, f"{uuid4()}/card/1_jan.pdf"))
        mock_supabase.bucket.create_signed_url.assert_not_called()

    def test_signed_url_missing_in_response(self, mock_supabase, session):
        mock_supabase.bucket.create_signed_url.return_value = {}
        storage = statement_storage(mock_supabase)
        with pytest.raises(StorageError):
            asyncio.run(storage.create_signed_url(session, f"{USER_ID}/card/1_jan.pdf"))

    def test_download(self, mock_supabase, session):
        mock_supabase.bucket.download.return_value = b"%PDF"
        storage = statement_storage(mock_supabase)
        data = asyncio.run(storage.download_statement(session, f"{USER_ID}/c/1_a.pdf"))
        assert data == b"%PDF"

    def test_delete_removes_file_then_row(self, mock_supabase, session):
        row = statement_row()
        mock_supabase.query.execute.return_value = MagicMock(data=[row])
        storage = statement_storage(mock_supabase)

        assert asyncio.run(storage.delete_statement(session, UUID(row["id"]))) is True
        mock_supabase.bucket.remove.assert_called_once_with([row["file_path"]])
        mock_supabase.query.delete.assert_called_once()

    def test_delete_unknown_statement(self, mock_supabase, session):
        storage = statement_storage(mock_supabase)
        with pytest.raises(NotFoundError):
            asyncio.run(storage.delete_statement(session, uuid4()))
        mock_supabase.bucket.remove.assert_not_called()


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
