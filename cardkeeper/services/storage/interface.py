"""
Abstract Storage Interface

DESIGN DECISION: Pages and flows talk to these interfaces, never to the
Supabase client directly. This allows us to:
1. Use in-memory fakes in tests
2. Keep the page code free of query-builder chains
3. Swap the hosted backend later without touching the UI

Every operation takes the caller's UserSession explicitly. There is no
ambient "current user": a call without a session fails with
UnauthenticatedError before any request is made.
"""

from abc import ABC, abstractmethod
from datetime import date
from decimal import Decimal
from typing import Any, Optional
from uuid import UUID

from cardkeeper.models.card import CreditCard
from cardkeeper.models.reminder import PaymentReminder
from cardkeeper.models.session import UserSession
from cardkeeper.models.statement import BillStatement, StatementFile


class CardStorageInterface(ABC):
    """Credit card rows belonging to the session's user."""

    @abstractmethod
    async def list_cards(self, session: Optional[UserSession]) -> list[CreditCard]:
        """
        List every card, newest first.

        Raises:
            UnauthenticatedError: If there is no session
            StorageError: If the backend call fails
        """
        pass

    @abstractmethod
    async def get_card(
        self,
        session: Optional[UserSession],
        card_id: UUID,
    ) -> Optional[CreditCard]:
        """Retrieve one card, or None if it does not exist for this user."""
        pass

    @abstractmethod
    async def insert_card(
        self,
        session: Optional[UserSession],
        payload: dict[str, Any],
    ) -> CreditCard:
        """
        Insert a card. The owning user id is added from the session.

        Returns:
            The stored row as the backend returned it
        """
        pass

    @abstractmethod
    async def update_card(
        self,
        session: Optional[UserSession],
        card_id: UUID,
        payload: dict[str, Any],
    ) -> CreditCard:
        """
        Update the given fields of a card.

        Raises:
            NotFoundError: If no card with this id belongs to the user
        """
        pass

    @abstractmethod
    async def delete_card(
        self,
        session: Optional[UserSession],
        card_id: UUID,
    ) -> bool:
        """
        Delete a card. Reminders and statements cascade in the database.

        Returns:
            True if a row was deleted
        """
        pass


class ReminderStorageInterface(ABC):
    """Payment reminder rows belonging to the session's user."""

    @abstractmethod
    async def list_reminders(
        self,
        session: Optional[UserSession],
    ) -> list[PaymentReminder]:
        """List every reminder, earliest due date first."""
        pass

    @abstractmethod
    async def get_reminder(
        self,
        session: Optional[UserSession],
        reminder_id: UUID,
    ) -> Optional[PaymentReminder]:
        pass

    @abstractmethod
    async def insert_reminder(
        self,
        session: Optional[UserSession],
        payload: dict[str, Any],
    ) -> PaymentReminder:
        pass

    @abstractmethod
    async def update_reminder(
        self,
        session: Optional[UserSession],
        reminder_id: UUID,
        payload: dict[str, Any],
    ) -> PaymentReminder:
        """
        Update only the fields present in `payload`.

        Raises:
            NotFoundError: If no reminder with this id belongs to the user
        """
        pass

    @abstractmethod
    async def delete_reminder(
        self,
        session: Optional[UserSession],
        reminder_id: UUID,
    ) -> bool:
        pass


class StatementStorageInterface(ABC):
    """
    Bill statements: a metadata row plus a binary in object storage.
    """

    @abstractmethod
    async def list_statements(
        self,
        session: Optional[UserSession],
        card_id: UUID,
    ) -> list[BillStatement]:
        """List statements for one card, newest first."""
        pass

    @abstractmethod
    async def get_statement(
        self,
        session: Optional[UserSession],
        statement_id: UUID,
    ) -> Optional[BillStatement]:
        pass

    @abstractmethod
    async def upload_statement(
        self,
        session: Optional[UserSession],
        card_id: UUID,
        file: StatementFile,
        bill_date: date,
        due_date: date,
        amount: Decimal,
    ) -> BillStatement:
        """
        Store the binary, then insert its metadata row.

        If the row insert fails, the stored binary is removed before the
        error is raised, so no orphaned object is left behind.

        Raises:
            UploadError: If either step fails
        """
        pass

    @abstractmethod
    async def create_signed_url(
        self,
        session: Optional[UserSession],
        file_path: str,
        expires_in: Optional[int] = None,
    ) -> str:
        """Generate a time-limited URL for viewing a statement."""
        pass

    @abstractmethod
    async def download_statement(
        self,
        session: Optional[UserSession],
        file_path: str,
    ) -> bytes:
        pass

    @abstractmethod
    async def delete_statement(
        self,
        session: Optional[UserSession],
        statement_id: UUID,
    ) -> bool:
        """
        Remove the binary, then the metadata row.

        Raises:
            NotFoundError: If the statement does not exist for this user
        """
        pass


class StorageError(Exception):
    """Base exception for backend data operations."""
    pass


class NotFoundError(StorageError):
    """Entity not found for this user."""
    pass


class UnauthenticatedError(StorageError):
    """A data operation was attempted without a session."""
    pass


class UploadError(StorageError):
    """
    Statement upload failed.

    `file_path` is set only when the binary had already been stored and
    a compensating remove was attempted; `compensated` tells whether that
    remove worked. `original` is the underlying error.
    """

    def __init__(
        self,
        message: str,
        original: Optional[Exception] = None,
        file_path: Optional[str] = None,
        compensated: bool = False,
    ):
        super().__init__(message)
        self.original = original
        self.file_path = file_path
        self.compensated = compensated


class ConfigurationError(Exception):
    """Required backend settings are missing or invalid."""
    pass
