"""
Database Package

Provides SQLAlchemy async session management, the document model and the
SQL-backed document store.
"""

from .session import get_async_session, async_engine, AsyncSessionLocal, init_models
from .models import Base, StoredDocument
from .document_store import SqlDocumentStore

__all__ = [
    "get_async_session",
    "async_engine",
    "AsyncSessionLocal",
    "init_models",
    "Base",
    "StoredDocument",
    "SqlDocumentStore",
]
