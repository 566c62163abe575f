"""
Main Orchestrator for Card Keeper

This module ties together all the components and defines the flows
behind every page:
1. Session (sign in / sign up / sign out)
2. Cards (list, add, edit, delete)
3. Reminders (list, add, edit, delete, mark paid)
4. Statements (list, upload, view, download, delete)
5. Dashboard (totals and the next reminders)

DESIGN DECISION: The orchestrator enforces the boundaries:
- No write reaches the backend without passing form validation
- Derived card fields are computed here, once per submission
- The store only changes after the backend confirms a write
- Every step is audited

Flows hold no Streamlit code, so they are exercised directly in tests
with in-memory storages.
"""

from dataclasses import dataclass
from datetime import date
from typing import Any, Awaitable, Mapping, Optional, TypeVar
from uuid import UUID

from cardkeeper.audit import AuditLogger, create_correlation_id
from cardkeeper.calculations import apply_derived_fields
from cardkeeper.config import AppSettings, get_settings
from cardkeeper.models.audit import AuditEventBuilder
from cardkeeper.models.card import CreditCard
from cardkeeper.models.reminder import PaymentReminder
from cardkeeper.models.session import UserSession
from cardkeeper.models.statement import BillStatement, StatementFile
from cardkeeper.models.validation import ValidationResult
from cardkeeper.queries import DashboardSummary, build_dashboard
from cardkeeper.services.auth import AuthError, AuthService, SessionHolder
from cardkeeper.services.storage import (
    CardStorageInterface,
    NotFoundError,
    ReminderStorageInterface,
    StatementStorageInterface,
    StorageError,
    SupabaseCardStorage,
    SupabaseReminderStorage,
    SupabaseStatementStorage,
    UnauthenticatedError,
    UploadError,
    create_supabase_client,
)
from cardkeeper.store import EntityStore
from cardkeeper.validation import FormValidator


T = TypeVar("T")


def _newest_first(item: Any) -> float:
    return item.created_at.timestamp() if item.created_at else 0.0


def _user_id(session: Optional[UserSession]) -> Optional[UUID]:
    return session.user_id if session else None


class _AuditedFlow:
    """Shared plumbing: audit logger access and error auditing."""

    def __init__(self, audit_logger: Optional[AuditLogger] = None):
        self._audit_logger = audit_logger or AuditLogger()

    async def _call(
        self,
        operation: str,
        session: Optional[UserSession],
        call: Awaitable[T],
    ) -> T:
        """
        Await a storage call, auditing and re-raising its failure.

        The caller's store is untouched when this raises.
        """
        try:
            return await call
        except UnauthenticatedError:
            await self._audit_logger.log_unauthenticated(operation)
            raise
        except StorageError as e:
            await self._audit_logger.log_storage_error(
                operation=operation,
                error_message=str(e),
                user_id=_user_id(session),
            )
            raise

    async def _rejected(self, result: ValidationResult) -> None:
        await self._audit_logger.log_validation_failed(
            form=result.form,
            issues=[issue.model_dump() for issue in result.issues],
        )


# =============================================================================
# SESSION
# =============================================================================

class SessionFlow(_AuditedFlow):
    """Sign-in, sign-up and sign-out, with audit events."""

    def __init__(
        self,
        auth_service: AuthService,
        holder: SessionHolder,
        audit_logger: Optional[AuditLogger] = None,
    ):
        super().__init__(audit_logger)
        self._auth = auth_service
        self._holder = holder

    @property
    def current(self) -> Optional[UserSession]:
        return self._holder.current

    async def sign_in(self, email: str, password: str) -> UserSession:
        """
        Raises:
            AuthError: If the provider rejects the credentials
        """
        try:
            session = self._auth.sign_in(email, password)
        except AuthError as e:
            await self._audit_logger.log_auth_failed("sign in", email.strip(), str(e))
            raise
        await self._audit_logger.log_signed_in(user_id=session.user_id, email=session.email)
        return session

    async def sign_up(self, email: str, password: str) -> Optional[UserSession]:
        """Returns None when the account still needs email confirmation."""
        try:
            session = self._auth.sign_up(email, password)
        except AuthError as e:
            await self._audit_logger.log_auth_failed("sign up", email.strip(), str(e))
            raise
        await self._audit_logger.log_signed_up(email=email.strip())
        return session

    async def sign_out(self) -> None:
        current = self._holder.current
        try:
            self._auth.sign_out()
        except AuthError as e:
            email = current.email if current else None
            await self._audit_logger.log_auth_failed("sign out", email or "", str(e))
            raise
        await self._audit_logger.log_signed_out(user_id=_user_id(current))


# =============================================================================
# CARDS
# =============================================================================

class CardFlow(_AuditedFlow):
    """
    Card list, add, edit and delete.

    Flow (create/update):
    1. Validate the raw form (no network on failure)
    2. Compute bill_cycle_days and available_credit
    3. Write with the caller's session
    4. Upsert the returned row into the store
    """

    def __init__(
        self,
        storage: CardStorageInterface,
        validator: Optional[FormValidator] = None,
        audit_logger: Optional[AuditLogger] = None,
        dependent_stores: Optional[list[EntityStore]] = None,
    ):
        super().__init__(audit_logger)
        self._storage = storage
        self._validator = validator or FormValidator()
        self.store: EntityStore[CreditCard] = EntityStore(sort_key=_newest_first, reverse=True)
        # Rows that cascade away with a card in the database
        self._dependent_stores = dependent_stores or []

    async def load(self, session: Optional[UserSession]) -> list[CreditCard]:
        """Fetch every card and replace the store contents."""
        cards = await self._call("list cards", session, self._storage.list_cards(session))
        self.store.replace_all(cards)
        return self.store.values()

    async def ensure_loaded(self, session: Optional[UserSession]) -> list[CreditCard]:
        if not self.store.is_loaded:
            return await self.load(session)
        return self.store.values()

    async def get(self, session: Optional[UserSession], card_id: UUID) -> Optional[CreditCard]:
        """The card from the store, fetching it if it is not there yet."""
        card = self.store.get(card_id)
        if card is not None:
            return card
        card = await self._call("get card", session, self._storage.get_card(session, card_id))
        if card is not None:
            self.store.upsert(card)
        return card

    async def create(
        self,
        session: Optional[UserSession],
        raw: Mapping[str, Any],
    ) -> tuple[ValidationResult, Optional[CreditCard]]:
        """
        Validate and insert a new card.

        Returns:
            (validation_result, saved_card). saved_card is None when the
            form was rejected.
        """
        result = self._validator.validate_card(raw)
        if not result.is_valid:
            await self._rejected(result)
            return result, None

        payload = apply_derived_fields(result.record)
        card = await self._call(
            "create card", session, self._storage.insert_card(session, payload)
        )
        self.store.upsert(card)
        await self._audit_logger.log(AuditEventBuilder.card_saved(
            card_id=card.id,
            user_id=card.user_id,
            card_name=card.card_name,
            created=True,
        ))
        return result, card

    async def update(
        self,
        session: Optional[UserSession],
        card_id: UUID,
        raw: Mapping[str, Any],
    ) -> tuple[ValidationResult, Optional[CreditCard]]:
        """Validate and update an existing card. Derived fields are recomputed."""
        result = self._validator.validate_card(raw)
        if not result.is_valid:
            await self._rejected(result)
            return result, None

        payload = apply_derived_fields(result.record)
        card = await self._call(
            "update card", session, self._storage.update_card(session, card_id, payload)
        )
        self.store.upsert(card)
        await self._audit_logger.log(AuditEventBuilder.card_saved(
            card_id=card.id,
            user_id=card.user_id,
            card_name=card.card_name,
            created=False,
        ))
        return result, card

    async def delete(self, session: Optional[UserSession], card_id: UUID) -> bool:
        """
        Delete a card. The store entry is removed only once the backend
        confirms; on failure the error propagates and the list is unchanged.
        """
        deleted = await self._call(
            "delete card", session, self._storage.delete_card(session, card_id)
        )
        if deleted:
            self.store.remove(card_id)
            for store in self._dependent_stores:
                store.invalidate()
            await self._audit_logger.log(
                AuditEventBuilder.card_deleted(card_id=card_id, user_id=session.user_id)
            )
        return deleted


# =============================================================================
# REMINDERS
# =============================================================================

class ReminderFlow(_AuditedFlow):
    """Reminder list, add, edit, delete and the paid toggle."""

    def __init__(
        self,
        storage: ReminderStorageInterface,
        validator: Optional[FormValidator] = None,
        audit_logger: Optional[AuditLogger] = None,
    ):
        super().__init__(audit_logger)
        self._storage = storage
        self._validator = validator or FormValidator()
        self.store: EntityStore[PaymentReminder] = EntityStore(sort_key=lambda r: r.due_date)

    async def load(self, session: Optional[UserSession]) -> list[PaymentReminder]:
        reminders = await self._call(
            "list reminders", session, self._storage.list_reminders(session)
        )
        self.store.replace_all(reminders)
        return self.store.values()

    async def ensure_loaded(self, session: Optional[UserSession]) -> list[PaymentReminder]:
        if not self.store.is_loaded:
            return await self.load(session)
        return self.store.values()

    async def create(
        self,
        session: Optional[UserSession],
        raw: Mapping[str, Any],
    ) -> tuple[ValidationResult, Optional[PaymentReminder]]:
        result = self._validator.validate_reminder(raw)
        if not result.is_valid:
            await self._rejected(result)
            return result, None

        reminder = await self._call(
            "create reminder",
            session,
            self._storage.insert_reminder(session, result.record.model_dump()),
        )
        self.store.upsert(reminder)
        await self._audit_logger.log(AuditEventBuilder.reminder_saved(
            reminder_id=reminder.id,
            user_id=reminder.user_id,
            amount=str(reminder.amount),
            created=True,
        ))
        return result, reminder

    async def update(
        self,
        session: Optional[UserSession],
        reminder_id: UUID,
        raw: Mapping[str, Any],
    ) -> tuple[ValidationResult, Optional[PaymentReminder]]:
        result = self._validator.validate_reminder(raw)
        if not result.is_valid:
            await self._rejected(result)
            return result, None

        reminder = await self._call(
            "update reminder",
            session,
            self._storage.update_reminder(session, reminder_id, result.record.model_dump()),
        )
        self.store.upsert(reminder)
        await self._audit_logger.log(AuditEventBuilder.reminder_saved(
            reminder_id=reminder.id,
            user_id=reminder.user_id,
            amount=str(reminder.amount),
            created=False,
        ))
        return result, reminder

    async def delete(self, session: Optional[UserSession], reminder_id: UUID) -> bool:
        deleted = await self._call(
            "delete reminder",
            session,
            self._storage.delete_reminder(session, reminder_id),
        )
        if deleted:
            self.store.remove(reminder_id)
            await self._audit_logger.log(AuditEventBuilder.reminder_deleted(
                reminder_id=reminder_id,
                user_id=session.user_id,
            ))
        return deleted

    async def toggle_paid(
        self,
        session: Optional[UserSession],
        reminder_id: UUID,
    ) -> list[PaymentReminder]:
        """
        Flip the paid flag of one reminder, then refetch the whole list.

        Only `is_paid` is sent; the other fields are left as stored.

        Raises:
            NotFoundError: If the reminder is not in the loaded list
        """
        current = self.store.get(reminder_id)
        if current is None:
            raise NotFoundError(f"Reminder not found: {reminder_id}")

        new_value = not current.is_paid
        await self._call(
            "toggle reminder",
            session,
            self._storage.update_reminder(session, reminder_id, {"is_paid": new_value}),
        )
        await self._audit_logger.log(AuditEventBuilder.reminder_toggled(
            reminder_id=reminder_id,
            user_id=session.user_id,
            is_paid=new_value,
        ))
        return await self.load(session)


# =============================================================================
# STATEMENTS
# =============================================================================

class StatementFlow(_AuditedFlow):
    """
    Bill statements for one card at a time.

    Upload is the only two-step write in the app: the binary first, then
    its metadata row. When the row insert fails the storage layer removes
    the binary; this flow records that cleanup under the upload's
    correlation id before re-raising.
    """

    def __init__(
        self,
        storage: StatementStorageInterface,
        validator: Optional[FormValidator] = None,
        audit_logger: Optional[AuditLogger] = None,
        url_expiry_seconds: int = 3600,
    ):
        super().__init__(audit_logger)
        self._storage = storage
        self._validator = validator or FormValidator()
        self._url_expiry = url_expiry_seconds
        self._stores: dict[UUID, EntityStore[BillStatement]] = {}

    def store_for(self, card_id: UUID) -> EntityStore[BillStatement]:
        if card_id not in self._stores:
            self._stores[card_id] = EntityStore(sort_key=_newest_first, reverse=True)
        return self._stores[card_id]

    def invalidate(self) -> None:
        for store in self._stores.values():
            store.invalidate()

    async def load(
        self,
        session: Optional[UserSession],
        card_id: UUID,
    ) -> list[BillStatement]:
        statements = await self._call(
            "list statements",
            session,
            self._storage.list_statements(session, card_id),
        )
        store = self.store_for(card_id)
        store.replace_all(statements)
        return store.values()

    async def upload(
        self,
        session: Optional[UserSession],
        card_id: UUID,
        raw: Mapping[str, Any],
        file: Optional[StatementFile],
    ) -> tuple[ValidationResult, Optional[BillStatement]]:
        """
        Validate the upload dialog and store the statement.

        Raises:
            UploadError: If storing the binary or its row fails
        """
        result = self._validator.validate_statement(raw, file)
        if not result.is_valid:
            await self._rejected(result)
            return result, None

        correlation_id = create_correlation_id()
        form = result.record
        try:
            statement = await self._call(
                "upload statement",
                session,
                self._storage.upload_statement(
                    session,
                    card_id,
                    file,
                    bill_date=form.bill_date,
                    due_date=form.due_date,
                    amount=form.amount,
                ),
            )
        except UploadError as e:
            if e.file_path:
                await self._audit_logger.log_upload_compensated(
                    file_path=e.file_path,
                    user_id=session.user_id,
                    removed=e.compensated,
                    error_message=str(e.original or e),
                    correlation_id=correlation_id,
                )
            raise

        self.store_for(card_id).upsert(statement)
        await self._audit_logger.log(AuditEventBuilder.statement_uploaded(
            statement_id=statement.id,
            user_id=statement.user_id,
            file_name=statement.file_name,
            file_size=statement.file_size,
            correlation_id=correlation_id,
        ))
        return result, statement

    async def signed_url(
        self,
        session: Optional[UserSession],
        statement: BillStatement,
        expires_in: Optional[int] = None,
    ) -> str:
        """A time-limited URL for viewing the statement in a new tab."""
        expires_in = expires_in or self._url_expiry
        url = await self._call(
            "view statement",
            session,
            self._storage.create_signed_url(session, statement.file_path, expires_in),
        )
        await self._audit_logger.log(AuditEventBuilder.statement_url_issued(
            statement_id=statement.id,
            user_id=statement.user_id,
            expires_in=expires_in,
        ))
        return url

    async def download(
        self,
        session: Optional[UserSession],
        statement: BillStatement,
    ) -> bytes:
        return await self._call(
            "download statement",
            session,
            self._storage.download_statement(session, statement.file_path),
        )

    async def delete(
        self,
        session: Optional[UserSession],
        statement: BillStatement,
    ) -> bool:
        deleted = await self._call(
            "delete statement",
            session,
            self._storage.delete_statement(session, statement.id),
        )
        if deleted:
            self.store_for(statement.credit_card_id).remove(statement.id)
            await self._audit_logger.log(AuditEventBuilder.statement_deleted(
                statement_id=statement.id,
                user_id=statement.user_id,
            ))
        return deleted


# =============================================================================
# DASHBOARD
# =============================================================================

class DashboardFlow:
    """Totals over the card store plus the next unpaid reminders."""

    def __init__(
        self,
        card_flow: CardFlow,
        reminder_flow: ReminderFlow,
        app_settings: Optional[AppSettings] = None,
    ):
        self._cards = card_flow
        self._reminders = reminder_flow
        self._settings = app_settings or get_settings().app

    async def summary(
        self,
        session: Optional[UserSession],
        today: Optional[date] = None,
        refresh: bool = False,
    ) -> DashboardSummary:
        if refresh:
            cards = await self._cards.load(session)
            reminders = await self._reminders.load(session)
        else:
            cards = await self._cards.ensure_loaded(session)
            reminders = await self._reminders.ensure_loaded(session)

        return build_dashboard(
            cards,
            reminders,
            today=today,
            reminder_limit=self._settings.dashboard_reminder_limit,
            grace_days=self._settings.upcoming_window_days,
        )


# =============================================================================
# FACTORY
# =============================================================================

@dataclass
class AppComponents:
    """Everything one browser session needs."""
    client: Any
    holder: SessionHolder
    session_flow: SessionFlow
    card_flow: CardFlow
    reminder_flow: ReminderFlow
    statement_flow: StatementFlow
    dashboard_flow: DashboardFlow
    audit_logger: AuditLogger

    def invalidate(self) -> None:
        """Drop every cached list; used when the signed-in user changes."""
        self.card_flow.store.invalidate()
        self.reminder_flow.store.invalidate()
        self.statement_flow.invalidate()

    def close(self) -> None:
        self.holder.close()


def create_app_components(
    client: Any = None,
    app_settings: Optional[AppSettings] = None,
) -> AppComponents:
    """
    Factory function to create all application components.

    Args:
        client: A Supabase client. Created from settings when omitted.
        app_settings: Application settings. Loaded from the environment
                     when omitted.

    Raises:
        ConfigurationError: If the backend URL or key is missing
    """
    client = client or create_supabase_client()
    app_settings = app_settings or get_settings().app

    audit_logger = AuditLogger()
    validator = FormValidator(app_settings)

    holder = SessionHolder(client.auth)
    auth_service = AuthService(client.auth, holder)

    reminder_flow = ReminderFlow(
        SupabaseReminderStorage(client),
        validator=validator,
        audit_logger=audit_logger,
    )
    statement_storage = SupabaseStatementStorage(client)
    statement_flow = StatementFlow(
        statement_storage,
        validator=validator,
        audit_logger=audit_logger,
        url_expiry_seconds=statement_storage.default_expiry,
    )
    card_flow = CardFlow(
        SupabaseCardStorage(client),
        validator=validator,
        audit_logger=audit_logger,
        dependent_stores=[reminder_flow.store],
    )

    components = AppComponents(
        client=client,
        holder=holder,
        session_flow=SessionFlow(auth_service, holder, audit_logger),
        card_flow=card_flow,
        reminder_flow=reminder_flow,
        statement_flow=statement_flow,
        dashboard_flow=DashboardFlow(card_flow, reminder_flow, app_settings),
        audit_logger=audit_logger,
    )

    # A different identity must never see the previous one's rows
    holder.add_listener(lambda _session: components.invalidate())
    holder.start()
    return components
