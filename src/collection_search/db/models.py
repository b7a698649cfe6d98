"""
SQLAlchemy Models

Defines the database schema for searchable documents. Each row holds one
document of one collection as a JSON object.
"""

from __future__ import annotations

from typing import Any, Dict

from sqlalchemy import JSON, Index, Integer, String, UniqueConstraint
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    """Base class for all models."""
    pass


# ---------------------------------------------------------------------
# Stored Document Model
# ---------------------------------------------------------------------

class StoredDocument(Base):
    """
    A single document in a named collection.

    `id` preserves insertion order, which is the default scan order.
    """
    __tablename__ = "document"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    collection: Mapped[str] = mapped_column(String(128), nullable=False)
    doc_id: Mapped[str] = mapped_column(String(256), nullable=False)
    data: Mapped[Dict[str, Any]] = mapped_column(
        JSON().with_variant(JSONB(), "postgresql"),
        nullable=False,
        default=dict,
    )

    __table_args__ = (
        UniqueConstraint("collection", "doc_id", name="uq_document_collection_doc"),
        Index("idx_document_collection", "collection", "id"),
    )
