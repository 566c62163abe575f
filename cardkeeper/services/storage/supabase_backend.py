"""
Supabase Storage Implementation

DESIGN DECISION: Supabase hosts everything the app persists:
1. Postgres tables for cards, reminders and statement metadata
2. Row-level security so a user only ever sees their own rows
3. An object storage bucket for statement PDFs

We still filter every query by `user_id` ourselves. Row-level security
is the guarantee; the explicit filter keeps queries readable and makes
a misconfigured policy fail closed instead of leaking rows into the UI.

TRADEOFFS:
- The supabase-py client is synchronous; the async methods here wrap it
  so flows and pages stay uniform
- No retries: a failed call is reported and the user re-triggers it
"""

import time
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Optional, TypeVar
from uuid import UUID

import structlog
from pydantic import BaseModel, ValidationError
from supabase import Client, create_client

from cardkeeper.config import SupabaseSettings, get_settings
from cardkeeper.models.card import CreditCard
from cardkeeper.models.reminder import PaymentReminder
from cardkeeper.models.session import UserSession
from cardkeeper.models.statement import BillStatement, StatementFile
from cardkeeper.services.storage.interface import (
    CardStorageInterface,
    ConfigurationError,
    NotFoundError,
    ReminderStorageInterface,
    StatementStorageInterface,
    StorageError,
    UnauthenticatedError,
    UploadError,
)


CARDS_TABLE = "credit_cards"
REMINDERS_TABLE = "payment_reminders"
STATEMENTS_TABLE = "bill_statements"

logger = structlog.get_logger(__name__)

M = TypeVar("M", bound=BaseModel)


def create_supabase_client(settings: Optional[SupabaseSettings] = None) -> Client:
    """
    Build a Supabase client from settings.

    Raises:
        ConfigurationError: If the project URL or anon key is missing or
            rejected by the client library
    """
    try:
        settings = settings or get_settings().supabase
    except ValidationError as e:
        raise ConfigurationError(
            "SUPABASE_URL and SUPABASE_ANON_KEY must both be set: "
            f"{e.error_count()} setting(s) missing or invalid"
        )

    try:
        return create_client(settings.url, settings.anon_key)
    except Exception as e:
        raise ConfigurationError(f"Failed to create Supabase client: {e}")


def require_user(session: Optional[UserSession], operation: str) -> str:
    """
    Return the session's user id as a string, or refuse the operation.

    Called before any request is built.
    """
    if session is None:
        logger.warning("unauthenticated_operation", operation=operation)
        raise UnauthenticatedError(f"Cannot {operation}: not signed in")
    return str(session.user_id)


def to_row(payload: dict[str, Any]) -> dict[str, Any]:
    """Convert Python values to what the REST API accepts as JSON."""
    row = {}
    for key, value in payload.items():
        if isinstance(value, Decimal):
            row[key] = float(value)
        elif isinstance(value, (date, datetime)):
            row[key] = value.isoformat()
        elif isinstance(value, UUID):
            row[key] = str(value)
        else:
            row[key] = value
    return row


def parse_row(model: type[M], row: dict, table: str) -> M:
    """Build a model from a backend row; a malformed row is a StorageError."""
    try:
        return model.model_validate(row)
    except ValidationError as e:
        logger.error(
            "unreadable_row",
            table=table,
            row_id=row.get("id"),
            errors=e.error_count(),
        )
        raise StorageError(
            f"Backend returned an unreadable {table} row: "
            f"{e.error_count()} invalid field(s)"
        )


class SupabaseTable:
    """
    Query helpers for one user-owned table.

    Every helper is scoped by `user_id` and wraps backend failures in
    StorageError.
    """

    def __init__(self, client: Client, table: str):
        self._client = client
        self._table = table

    def select_all(
        self,
        user_id: str,
        order_by: str,
        descending: bool,
        **filters: Any,
    ) -> list[dict]:
        try:
            query = self._client.table(self._table).select("*").eq("user_id", user_id)
            for column, value in filters.items():
                query = query.eq(column, str(value))
            response = query.order(order_by, desc=descending).execute()
        except Exception as e:
            raise StorageError(f"Failed to list {self._table}: {e}")
        return response.data or []

    def select_one(self, user_id: str, row_id: UUID) -> Optional[dict]:
        try:
            response = (
                self._client.table(self._table)
                .select("*")
                .eq("id", str(row_id))
                .eq("user_id", user_id)
                .limit(1)
                .execute()
            )
        except Exception as e:
            raise StorageError(f"Failed to get {self._table} row: {e}")
        rows = response.data or []
        return rows[0] if rows else None

    def insert(self, user_id: str, payload: dict[str, Any]) -> dict:
        row = to_row(payload)
        row["user_id"] = user_id
        try:
            response = self._client.table(self._table).insert(row).execute()
        except Exception as e:
            raise StorageError(f"Failed to insert into {self._table}: {e}")
        rows = response.data or []
        if not rows:
            raise StorageError(f"Insert into {self._table} returned no row")
        return rows[0]

    def update(self, user_id: str, row_id: UUID, payload: dict[str, Any]) -> dict:
        try:
            response = (
                self._client.table(self._table)
                .update(to_row(payload))
                .eq("id", str(row_id))
                .eq("user_id", user_id)
                .execute()
            )
        except Exception as e:
            raise StorageError(f"Failed to update {self._table} row: {e}")
        rows = response.data or []
        if not rows:
            raise NotFoundError(f"{self._table} row not found: {row_id}")
        return rows[0]

    def delete(self, user_id: str, row_id: UUID) -> bool:
        try:
            response = (
                self._client.table(self._table)
                .delete()
                .eq("id", str(row_id))
                .eq("user_id", user_id)
                .execute()
            )
        except Exception as e:
            raise StorageError(f"Failed to delete {self._table} row: {e}")
        return bool(response.data)


class SupabaseCardStorage(CardStorageInterface):
    """Cards live in `credit_cards`, one row per card."""

    def __init__(self, client: Client):
        self._rows = SupabaseTable(client, CARDS_TABLE)

    async def list_cards(self, session: Optional[UserSession]) -> list[CreditCard]:
        user_id = require_user(session, "list cards")
        rows = self._rows.select_all(user_id, order_by="created_at", descending=True)
        return [parse_row(CreditCard, row, CARDS_TABLE) for row in rows]

    async def get_card(
        self,
        session: Optional[UserSession],
        card_id: UUID,
    ) -> Optional[CreditCard]:
        user_id = require_user(session, "get card")
        row = self._rows.select_one(user_id, card_id)
        return parse_row(CreditCard, row, CARDS_TABLE) if row else None

    async def insert_card(
        self,
        session: Optional[UserSession],
        payload: dict[str, Any],
    ) -> CreditCard:
        user_id = require_user(session, "add card")
        row = self._rows.insert(user_id, payload)
        logger.info("card_inserted", card_id=row.get("id"), user_id=user_id)
        return parse_row(CreditCard, row, CARDS_TABLE)

    async def update_card(
        self,
        session: Optional[UserSession],
        card_id: UUID,
        payload: dict[str, Any],
    ) -> CreditCard:
        user_id = require_user(session, "update card")
        row = self._rows.update(user_id, card_id, payload)
        logger.info("card_updated", card_id=str(card_id), user_id=user_id)
        return parse_row(CreditCard, row, CARDS_TABLE)

    async def delete_card(self, session: Optional[UserSession], card_id: UUID) -> bool:
        user_id = require_user(session, "delete card")
        deleted = self._rows.delete(user_id, card_id)
        logger.info("card_deleted", card_id=str(card_id), user_id=user_id, deleted=deleted)
        return deleted


class SupabaseReminderStorage(ReminderStorageInterface):
    """Reminders live in `payment_reminders`."""

    def __init__(self, client: Client):
        self._rows = SupabaseTable(client, REMINDERS_TABLE)

    async def list_reminders(
        self,
        session: Optional[UserSession],
    ) -> list[PaymentReminder]:
        user_id = require_user(session, "list reminders")
        rows = self._rows.select_all(user_id, order_by="due_date", descending=False)
        return [parse_row(PaymentReminder, row, REMINDERS_TABLE) for row in rows]

    async def get_reminder(
        self,
        session: Optional[UserSession],
        reminder_id: UUID,
    ) -> Optional[PaymentReminder]:
        user_id = require_user(session, "get reminder")
        row = self._rows.select_one(user_id, reminder_id)
        return parse_row(PaymentReminder, row, REMINDERS_TABLE) if row else None

    async def insert_reminder(
        self,
        session: Optional[UserSession],
        payload: dict[str, Any],
    ) -> PaymentReminder:
        user_id = require_user(session, "add reminder")
        row = self._rows.insert(user_id, payload)
        logger.info("reminder_inserted", reminder_id=row.get("id"), user_id=user_id)
        return parse_row(PaymentReminder, row, REMINDERS_TABLE)

    async def update_reminder(
        self,
        session: Optional[UserSession],
        reminder_id: UUID,
        payload: dict[str, Any],
    ) -> PaymentReminder:
        user_id = require_user(session, "update reminder")
        row = self._rows.update(user_id, reminder_id, payload)
        logger.info(
            "reminder_updated",
            reminder_id=str(reminder_id),
            fields=sorted(payload),
            user_id=user_id,
        )
        return parse_row(PaymentReminder, row, REMINDERS_TABLE)

    async def delete_reminder(
        self,
        session: Optional[UserSession],
        reminder_id: UUID,
    ) -> bool:
        user_id = require_user(session, "delete reminder")
        return self._rows.delete(user_id, reminder_id)


class SupabaseStatementStorage(StatementStorageInterface):
    """
    Statement metadata in `bill_statements`, binaries in a storage bucket.

    Objects are keyed `{user_id}/{card_id}/{millis}_{file_name}` so the
    bucket's own policies can scope access by the first path segment.
    """

    def __init__(
        self,
        client: Client,
        settings: Optional[SupabaseSettings] = None,
    ):
        self._client = client
        self._rows = SupabaseTable(client, STATEMENTS_TABLE)
        settings = settings or get_settings().supabase
        self._bucket_name = settings.statements_bucket
        self._default_expiry = settings.signed_url_expiry_seconds

    @property
    def default_expiry(self) -> int:
        return self._default_expiry

    def _bucket(self):
        return self._client.storage.from_(self._bucket_name)

    @staticmethod
    def build_file_path(user_id: str, card_id: UUID, file_name: str) -> str:
        safe_name = file_name.replace("/", "_").replace("\\", "_")
        stamp = int(time.time() * 1000)
        return f"{user_id}/{card_id}/{stamp}_{safe_name}"

    @staticmethod
    def _check_owner(user_id: str, file_path: str) -> None:
        if not file_path.startswith(f"{user_id}/"):
            raise NotFoundError(f"Statement file not found: {file_path}")

    def _remove_object(self, file_path: str) -> bool:
        """Compensating delete. Never raises; returns whether it worked."""
        try:
            self._bucket().remove([file_path])
            return True
        except Exception as e:
            logger.error(
                "statement_compensation_failed",
                file_path=file_path,
                error=str(e),
            )
            return False

    def _remove_row(self, user_id: str, file_path: str) -> bool:
        """Compensating row delete, matched by object path. Never raises."""
        try:
            (
                self._client.table(STATEMENTS_TABLE)
                .delete()
                .eq("file_path", file_path)
                .eq("user_id", user_id)
                .execute()
            )
            return True
        except Exception as e:
            logger.error(
                "statement_compensation_failed",
                file_path=file_path,
                table=STATEMENTS_TABLE,
                error=str(e),
            )
            return False

    async def list_statements(
        self,
        session: Optional[UserSession],
        card_id: UUID,
    ) -> list[BillStatement]:
        user_id = require_user(session, "list statements")
        rows = self._rows.select_all(
            user_id,
            order_by="created_at",
            descending=True,
            credit_card_id=card_id,
        )
        return [parse_row(BillStatement, row, STATEMENTS_TABLE) for row in rows]

    async def get_statement(
        self,
        session: Optional[UserSession],
        statement_id: UUID,
    ) -> Optional[BillStatement]:
        user_id = require_user(session, "get statement")
        row = self._rows.select_one(user_id, statement_id)
        return parse_row(BillStatement, row, STATEMENTS_TABLE) if row else None

    async def upload_statement(
        self,
        session: Optional[UserSession],
        card_id: UUID,
        file: StatementFile,
        bill_date: date,
        due_date: date,
        amount: Decimal,
    ) -> BillStatement:
        user_id = require_user(session, "upload statement")
        file_path = self.build_file_path(user_id, card_id, file.file_name)
        stored_name = file_path.rsplit("/", 1)[-1]

        # Step 1: the binary
        try:
            self._bucket().upload(
                file_path,
                file.content,
                file_options={
                    "cache-control": "3600",
                    "content-type": file.mime_type,
                    "upsert": "false",
                },
            )
        except Exception as e:
            raise UploadError(
                f"Failed to store statement file: {e}",
                original=e,
            )

        # Step 2: the metadata row. On failure, remove the binary.
        try:
            row = self._rows.insert(user_id, {
                "credit_card_id": card_id,
                "file_name": stored_name,
                "file_path": file_path,
                "file_size": file.size,
                "file_type": file.mime_type,
                "bill_date": bill_date,
                "due_date": due_date,
                "amount": amount,
            })
        except StorageError as e:
            removed = self._remove_object(file_path)
            logger.warning(
                "statement_upload_compensated",
                file_path=file_path,
                removed=removed,
                error=str(e),
            )
            raise UploadError(
                f"Failed to record statement: {e}",
                original=e,
                file_path=file_path,
                compensated=removed,
            )

        # Step 3: read the row back. An unreadable row is undone like a
        # failed insert so no half-stored statement is left behind.
        try:
            statement = parse_row(BillStatement, row, STATEMENTS_TABLE)
        except StorageError as e:
            row_removed = self._remove_row(user_id, file_path)
            removed = self._remove_object(file_path) and row_removed
            logger.warning(
                "statement_upload_compensated",
                file_path=file_path,
                removed=removed,
                error=str(e),
            )
            raise UploadError(
                f"Failed to read stored statement: {e}",
                original=e,
                file_path=file_path,
                compensated=removed,
            )

        logger.info("statement_uploaded", file_path=file_path, size=file.size)
        return statement

    async def create_signed_url(
        self,
        session: Optional[UserSession],
        file_path: str,
        expires_in: Optional[int] = None,
    ) -> str:
        user_id = require_user(session, "view statement")
        self._check_owner(user_id, file_path)
        try:
            result = self._bucket().create_signed_url(
                file_path,
                expires_in or self._default_expiry,
            )
        except Exception as e:
            raise StorageError(f"Failed to create statement URL: {e}")

        url = (result or {}).get("signedURL") or (result or {}).get("signedUrl")
        if not url:
            raise StorageError("Backend returned no signed URL")
        return url

    async def download_statement(
        self,
        session: Optional[UserSession],
        file_path: str,
    ) -> bytes:
        user_id = require_user(session, "download statement")
        self._check_owner(user_id, file_path)
        try:
            return self._bucket().download(file_path)
        except Exception as e:
            raise StorageError(f"Failed to download statement: {e}")

    async def delete_statement(
        self,
        session: Optional[UserSession],
        statement_id: UUID,
    ) -> bool:
        user_id = require_user(session, "delete statement")
        row = self._rows.select_one(user_id, statement_id)
        if row is None:
            raise NotFoundError(f"Statement not found: {statement_id}")

        try:
            self._bucket().remove([row["file_path"]])
        except Exception as e:
            raise StorageError(f"Failed to delete statement file: {e}")

        return self._rows.delete(user_id, statement_id)
