"""
Document stores for imported spreadsheet rows.

- InMemoryDocumentStore: default, process-local
- RedisDocumentStore: shared store backed by redis.asyncio
"""

from typing import Optional

from recordqa.core.constants import STORE_BACKEND
from recordqa.store.base import (
    CollectionInfo,
    DocumentStore,
    Record,
    SYSTEM_FIELDS,
    INGESTED_AT_FIELD,
    ROW_NUMBER_FIELD,
)
from recordqa.store.memory import InMemoryDocumentStore
from recordqa.store.redis_store import RedisDocumentStore


def build_store(backend: Optional[str] = None) -> DocumentStore:
    """Create the store named by RECORDQA_STORE_BACKEND (memory | redis)."""
    backend = (backend or STORE_BACKEND).lower()
    if backend == "redis":
        return RedisDocumentStore()
    if backend == "memory":
        return InMemoryDocumentStore()
    raise ValueError(f"Unknown store backend: {backend}")


__all__ = [
    "CollectionInfo",
    "DocumentStore",
    "Record",
    "SYSTEM_FIELDS",
    "INGESTED_AT_FIELD",
    "ROW_NUMBER_FIELD",
    "InMemoryDocumentStore",
    "RedisDocumentStore",
    "build_store",
]
