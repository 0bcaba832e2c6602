"""
In-process document store.

Default backend for local runs and tests. Collections are kept in insertion
order so "most recently created" is well defined even when two imports share
a timestamp.
"""

from typing import Any, Dict, List, Optional, Sequence

from recordqa.core.constants import utc_now
from recordqa.nlq.errors import StorageAccessFailure
from recordqa.store.base import (
    CollectionInfo,
    DocumentStore,
    Record,
    build_record,
    clean_headers,
    sanitize_collection_name,
    values_equal,
)
from recordqa.utils.log_utils import get_logger

logger = get_logger(__name__)


class InMemoryDocumentStore(DocumentStore):
    """Keeps every collection as a list of dicts."""

    def __init__(self):
        self._collections: Dict[str, List[Record]] = {}
        self._info: Dict[str, CollectionInfo] = {}

    async def create_collection(
        self,
        source_file_name: str,
        headers: Sequence[Any],
        rows: Sequence[Sequence[Any]],
    ) -> CollectionInfo:
        collection_id = sanitize_collection_name(source_file_name)
        if not collection_id:
            raise StorageAccessFailure(f"Cannot derive a collection name from '{source_file_name}'")

        cleaned = clean_headers(headers)
        ingested_at = utc_now()
        records = [
            build_record(collection_id, source_file_name, cleaned, row, index + 1, ingested_at)
            for index, row in enumerate(rows)
        ]

        # Re-importing a file replaces its collection and makes it the newest one
        if collection_id in self._collections:
            logger.info(f"Clearing existing collection: {collection_id}")
            del self._collections[collection_id]
            del self._info[collection_id]

        info = CollectionInfo(
            collection_id=collection_id,
            source_file_name=source_file_name,
            headers=[h for h in cleaned if h],
            row_count=len(records),
            created_at=ingested_at,
        )
        self._collections[collection_id] = records
        self._info[collection_id] = info
        logger.info(f"Stored {len(records)} rows in collection {collection_id}")
        return info

    async def list_collections(self) -> List[CollectionInfo]:
        return list(reversed(list(self._info.values())))

    async def get_collection(self, collection_id: str) -> CollectionInfo:
        info = self._info.get(collection_id)
        if info is None:
            raise StorageAccessFailure(f"Collection '{collection_id}' does not exist")
        return info

    async def find(
        self,
        collection_id: str,
        equals: Optional[Dict[str, Any]] = None,
    ) -> List[Record]:
        records = self._records(collection_id)
        if not equals:
            return [dict(r) for r in records]
        return [
            dict(r) for r in records
            if all(values_equal(r.get(field), value) for field, value in equals.items())
        ]

    async def sample(self, collection_id: str, limit: int = 1) -> List[Record]:
        return [dict(r) for r in self._records(collection_id)[:limit]]

    def _records(self, collection_id: str) -> List[Record]:
        if collection_id not in self._collections:
            raise StorageAccessFailure(f"Collection '{collection_id}' does not exist")
        return self._collections[collection_id]
