"""Database models and engine helpers."""

from .engine import StoreError, DuplicateKeyError, StoreUnavailableError, create_engine, ensure_schema, to_async_dsn
from .models import TicketTable, UserTable

__all__ = [
    "DuplicateKeyError",
    "StoreError",
    "StoreUnavailableError",
    "TicketTable",
    "UserTable",
    "create_engine",
    "ensure_schema",
    "to_async_dsn",
]
