"""
Document Store Capability

The search engine reads documents through this narrow interface and never
writes. Two implementations exist:

- `SqlDocumentStore` (db/document_store.py) for deployments
- `InMemoryDocumentStore` below, for local runs and tests
"""

from __future__ import annotations

from collections import defaultdict
from functools import cmp_to_key
from typing import Any, Dict, Iterable, List, Mapping, Optional, Protocol

from ..core.errors import StoreError
from .fields import get_field
from .models import Document, SortHint
from .sorting import compare_values


class DocumentStore(Protocol):
    """Read-only access to a document collection."""

    async def scan(
        self,
        collection: str,
        limit: int,
        sort: Optional[SortHint] = None,
    ) -> List[Document]:
        """Return up to `limit` documents in store (or `sort`) order."""
        ...

    async def range_scan(
        self,
        collection: str,
        field: str,
        lower: str,
        upper: str,
        limit: int,
        sort: Optional[SortHint] = None,
    ) -> List[Document]:
        """Return up to `limit` documents whose `field` lies in ``[lower, upper)``."""
        ...


class InMemoryDocumentStore:
    """
    Dictionary-backed store.

    Documents keep insertion order. `sort` hints are honoured with the same
    comparator the engine uses for results.
    """

    def __init__(self, collections: Optional[Mapping[str, Iterable[Any]]] = None) -> None:
        self._collections: Dict[str, List[Document]] = defaultdict(list)
        for name, docs in (collections or {}).items():
            for doc in docs:
                self.add(name, doc)

    def add(self, collection: str, doc: Any) -> Document:
        """
        Append a document. Accepts a `Document` or a mapping with an ``id`` key;
        the remaining keys become the document fields.
        """
        if not isinstance(doc, Document):
            fields = dict(doc)
            doc_id = str(fields.pop("id"))
            doc = Document(id=doc_id, fields=fields)
        self._collections[collection].append(doc)
        return doc

    def _ordered(self, collection: str, sort: Optional[SortHint]) -> List[Document]:
        docs = list(self._collections.get(collection, []))
        if sort is None:
            return docs

        direction = "desc" if sort.descending else "asc"
        return sorted(
            docs,
            key=_document_key(sort.field, direction),
        )

    async def scan(
        self,
        collection: str,
        limit: int,
        sort: Optional[SortHint] = None,
    ) -> List[Document]:
        return self._ordered(collection, sort)[:limit]

    async def range_scan(
        self,
        collection: str,
        field: str,
        lower: str,
        upper: str,
        limit: int,
        sort: Optional[SortHint] = None,
    ) -> List[Document]:
        if not lower or not upper:
            raise StoreError("Range bounds must be non-empty")

        selected = []
        for doc in self._ordered(collection, sort):
            value = get_field(doc.fields, field)
            if isinstance(value, str) and lower <= value < upper:
                selected.append(doc)
        return selected[:limit]


def _document_key(field: str, direction: str):
    def _compare(left: Document, right: Document) -> int:
        return compare_values(
            get_field(left.fields, field),
            get_field(right.fields, field),
            direction,
        )

    return cmp_to_key(_compare)
