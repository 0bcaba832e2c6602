"""
Redis-backed document store.

Layout (prefix defaults to "recordqa"):
- {prefix}:collections               sorted set, score = creation sequence
- {prefix}:collection_seq            counter feeding the sorted set
- {prefix}:collection:{id}:info      JSON CollectionInfo
- {prefix}:collection:{id}:records   list of JSON records in row order

An import is written in one MULTI/EXEC transaction, so a collection is either
fully replaced or left as it was. Redis has no secondary indexes here, so
equality filtering runs over the decoded list.
"""

import json
from typing import Any, Dict, List, Optional, Sequence

import redis.asyncio as redis
from redis.exceptions import RedisError

from recordqa.core.constants import REDIS_KEY_PREFIX, REDIS_URL, utc_now
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


class RedisDocumentStore(DocumentStore):
    """Stores collections as Redis lists of JSON records."""

    def __init__(
        self,
        redis_url: Optional[str] = None,
        key_prefix: Optional[str] = None,
        client: Optional[redis.Redis] = None,
    ):
        self.redis_url = redis_url or REDIS_URL
        self.key_prefix = key_prefix or REDIS_KEY_PREFIX
        self._redis = client

    def _client(self) -> redis.Redis:
        if self._redis is None:
            self._redis = redis.from_url(self.redis_url, decode_responses=True)
            logger.info(f"Connected to Redis at {self.redis_url}")
        return self._redis

    async def close(self) -> None:
        """Close the Redis connection."""
        if self._redis is not None:
            await self._redis.aclose()
            self._redis = None
            logger.info("Disconnected from Redis")

    def _collections_key(self) -> str:
        return f"{self.key_prefix}:collections"

    def _sequence_key(self) -> str:
        return f"{self.key_prefix}:collection_seq"

    def _info_key(self, collection_id: str) -> str:
        return f"{self.key_prefix}:collection:{collection_id}:info"

    def _records_key(self, collection_id: str) -> str:
        return f"{self.key_prefix}:collection:{collection_id}:records"

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
        info = CollectionInfo(
            collection_id=collection_id,
            source_file_name=source_file_name,
            headers=[h for h in cleaned if h],
            row_count=len(records),
            created_at=ingested_at,
        )

        client = self._client()
        try:
            # The sequence is reserved first; a failed import only skips a number
            sequence = await client.incr(self._sequence_key())
            async with client.pipeline(transaction=True) as pipe:
                pipe.delete(self._records_key(collection_id), self._info_key(collection_id))
                if records:
                    pipe.rpush(
                        self._records_key(collection_id),
                        *[json.dumps(r, default=str) for r in records],
                    )
                pipe.set(self._info_key(collection_id), json.dumps(info.to_dict()))
                pipe.zadd(self._collections_key(), {collection_id: sequence})
                await pipe.execute()
        except RedisError as e:
            logger.error(f"Failed to store collection {collection_id}: {e}")
            raise StorageAccessFailure(f"Could not store collection '{collection_id}': {e}") from e

        logger.info(f"Stored {len(records)} rows in collection {collection_id}")
        return info

    async def list_collections(self) -> List[CollectionInfo]:
        client = self._client()
        try:
            collection_ids = await client.zrevrange(self._collections_key(), 0, -1)
        except RedisError as e:
            raise StorageAccessFailure(f"Could not list collections: {e}") from e

        collections = []
        for collection_id in collection_ids:
            info = await self._read_info(collection_id)
            if info is None:
                logger.warning(f"Collection {collection_id} is listed but has no info key, skipping")
                continue
            collections.append(info)
        return collections

    async def get_collection(self, collection_id: str) -> CollectionInfo:
        info = await self._read_info(collection_id)
        if info is None:
            raise StorageAccessFailure(f"Collection '{collection_id}' does not exist")
        return info

    async def _read_info(self, collection_id: str) -> Optional[CollectionInfo]:
        try:
            raw = await self._client().get(self._info_key(collection_id))
        except RedisError as e:
            raise StorageAccessFailure(f"Could not read collection '{collection_id}': {e}") from e
        if raw is None:
            return None
        return CollectionInfo(**json.loads(raw))

    async def find(
        self,
        collection_id: str,
        equals: Optional[Dict[str, Any]] = None,
    ) -> List[Record]:
        records = await self._load(collection_id)
        if not equals:
            return records
        return [
            r for r in records
            if all(values_equal(r.get(field), value) for field, value in equals.items())
        ]

    async def sample(self, collection_id: str, limit: int = 1) -> List[Record]:
        if limit <= 0:
            return []
        return await self._load(collection_id, stop=limit - 1)

    async def _load(self, collection_id: str, stop: int = -1) -> List[Record]:
        await self.get_collection(collection_id)
        try:
            raw_records = await self._client().lrange(self._records_key(collection_id), 0, stop)
        except RedisError as e:
            raise StorageAccessFailure(f"Could not read collection '{collection_id}': {e}") from e
        return [json.loads(raw) for raw in raw_records]
