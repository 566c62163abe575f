"""
Storage Services Package

Provides abstract interfaces and the Supabase implementation for every
remote data operation.
"""

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
from cardkeeper.services.storage.supabase_backend import (
    CARDS_TABLE,
    REMINDERS_TABLE,
    STATEMENTS_TABLE,
    SupabaseCardStorage,
    SupabaseReminderStorage,
    SupabaseStatementStorage,
    SupabaseTable,
    create_supabase_client,
    require_user,
    to_row,
)

__all__ = [
    # Interfaces
    "CardStorageInterface",
    "ReminderStorageInterface",
    "StatementStorageInterface",
    # Exceptions
    "ConfigurationError",
    "NotFoundError",
    "StorageError",
    "UnauthenticatedError",
    "UploadError",
    # Supabase implementation
    "CARDS_TABLE",
    "REMINDERS_TABLE",
    "STATEMENTS_TABLE",
    "SupabaseCardStorage",
    "SupabaseReminderStorage",
    "SupabaseStatementStorage",
    "SupabaseTable",
    "create_supabase_client",
    "require_user",
    "to_row",
]
