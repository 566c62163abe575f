"""Services package."""

from cardkeeper.services.auth import (
    AuthError,
    AuthService,
    SessionHolder,
)
from cardkeeper.services.storage import (
    CardStorageInterface,
    ConfigurationError,
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

__all__ = [
    # Auth
    "AuthError",
    "AuthService",
    "SessionHolder",
    # Storage interfaces
    "CardStorageInterface",
    "ReminderStorageInterface",
    "StatementStorageInterface",
    # Storage exceptions
    "ConfigurationError",
    "NotFoundError",
    "StorageError",
    "UnauthenticatedError",
    "UploadError",
    # Supabase implementation
    "SupabaseCardStorage",
    "SupabaseReminderStorage",
    "SupabaseStatementStorage",
    "create_supabase_client",
]
