"""
SQL Document Store

Database-backed implementation of the `DocumentStore` capability. Field
access inside the JSON column goes through SQLAlchemy's JSON path
operators, so the same queries run on PostgreSQL and SQLite.

Sort hints order rows the way the engine compares values: missing and
null values last, numbers numerically, everything else as trimmed,
lowercased text.
"""

from __future__ import annotations

import logging
from typing import Any, Iterable, List, Mapping, Optional

from sqlalchemy import case, func, or_, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.errors import StoreError
from ..search.models import Document, SortHint
from .models import StoredDocument

logger = logging.getLogger("search.store")

# json_type() / jsonb_typeof() names for JSON numbers, per dialect
_NUMERIC_JSON_TYPES = {
    "sqlite": ("integer", "real"),
    "postgresql": ("number",),
}


def _field_path(field: str):
    return StoredDocument.data[tuple(field.split("."))]


def _field_text(field: str):
    """Text value of a dot-path inside the document JSON."""
    return _field_path(field).as_string()


def _json_type(field: str, dialect: str):
    """JSON type name of a dot-path, or None where the dialect has no such function."""
    if dialect == "sqlite":
        path = "$" + "".join(f'."{segment}"' for segment in field.split("."))
        return func.json_type(StoredDocument.data, path)
    if dialect == "postgresql":
        return func.jsonb_typeof(_field_path(field))
    return None


def _sort_keys(sort: SortHint, dialect: str) -> list:
    """
    ORDER BY expressions for a sort hint.

    Returns
    -------
    list
        Null rank (always ascending), then the numeric value of number
        fields, then the normalized text value.
    """
    text = func.lower(func.trim(_field_text(sort.field)))
    json_type = _json_type(sort.field, dialect)

    if json_type is None:
        missing = _field_text(sort.field).is_(None)
    else:
        missing = or_(json_type.is_(None), json_type == "null")

    keys = [case((missing, 1), else_=0).asc()]

    if json_type is not None:
        number = case(
            (json_type.in_(_NUMERIC_JSON_TYPES[dialect]), _field_path(sort.field).as_float()),
        )
        keys.append((number.desc() if sort.descending else number.asc()).nulls_last())

    keys.append(text.desc() if sort.descending else text.asc())
    return keys


class SqlDocumentStore:
    """
    Read-mostly document store over the `document` table.
    """

    def __init__(self, session: AsyncSession) -> None:
        """
        Initialize with an async database session.

        Parameters
        ----------
        session : AsyncSession
            SQLAlchemy async session for database operations.
        """
        self._session = session

    def _ordered(self, stmt, sort: Optional[SortHint]):
        if sort is not None:
            dialect = self._session.get_bind().dialect.name
            stmt = stmt.order_by(*_sort_keys(sort, dialect))
        return stmt.order_by(StoredDocument.id)

    async def _fetch(self, stmt) -> List[Document]:
        try:
            result = await self._session.execute(stmt)
        except SQLAlchemyError as exc:
            raise StoreError(f"Document query failed: {type(exc).__name__}") from exc

        return [
            Document(id=row.doc_id, fields=row.data or {})
            for row in result.scalars().all()
        ]

    async def scan(
        self,
        collection: str,
        limit: int,
        sort: Optional[SortHint] = None,
    ) -> List[Document]:
        stmt = select(StoredDocument).where(StoredDocument.collection == collection)
        stmt = self._ordered(stmt, sort).limit(limit)
        return await self._fetch(stmt)

    async def range_scan(
        self,
        collection: str,
        field: str,
        lower: str,
        upper: str,
        limit: int,
        sort: Optional[SortHint] = None,
    ) -> List[Document]:
        value = _field_text(field)
        stmt = select(StoredDocument).where(
            StoredDocument.collection == collection,
            value >= lower,
            value < upper,
        )
        stmt = self._ordered(stmt, sort).limit(limit)
        return await self._fetch(stmt)

    async def add_documents(
        self,
        collection: str,
        documents: Iterable[Mapping[str, Any]],
    ) -> int:
        """
        Insert documents given as mappings with an ``id`` key.

        Returns the number of documents added.
        """
        count = 0
        for doc in documents:
            fields = dict(doc)
            doc_id = str(fields.pop("id"))
            self._session.add(StoredDocument(collection=collection, doc_id=doc_id, data=fields))
            count += 1

        await self._session.flush()
        logger.debug("Added %d documents to %s", count, collection)
        return count
