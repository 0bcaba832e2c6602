"""
Query Executor - runs a QueryIntent against the active collection.

Provides:
- Equality predicates pushed down to the document store
- Case-insensitive substring (contains) predicates evaluated in memory
- Client-side sort and limit applied after contains-filtering

Failures come back as an unsuccessful ExecutionResult, never as exceptions.
"""

from typing import Any, Dict, List, Optional, Tuple

from recordqa.nlq.errors import ErrorKind, StorageAccessFailure
from recordqa.nlq.models import (
    DatasetContext,
    ExecutionResult,
    Operator,
    Predicate,
    QueryIntent,
    SortOrder,
)
from recordqa.store.base import DocumentStore, Record, ROW_NUMBER_FIELD
from recordqa.utils.log_utils import get_logger

logger = get_logger(__name__)


def matches_contains(record: Record, predicate: Predicate) -> bool:
    """Case-insensitive substring test on the stringified field value."""
    value = record.get(predicate.field)
    if value is None or value == "":
        return False
    return str(predicate.value).upper() in str(value).upper()


def _sort_key(field: str):
    def key(record: Record) -> Tuple[bool, str, int]:
        value = record.get(field)
        row_number = record.get(ROW_NUMBER_FIELD) or 0
        return (value is None, "" if value is None else str(value), row_number)
    return key


class QueryExecutor:
    """
    Bridge between extracted intents and a DocumentStore.

    The store only understands equality, so execution is split in two:
    equality predicates narrow the fetch, then contains predicates, sort and
    limit run over the materialized list.
    """

    def __init__(self, store: DocumentStore):
        self.store = store

    async def execute(
        self,
        context: Optional[DatasetContext],
        intent: QueryIntent,
    ) -> ExecutionResult:
        if context is None or not context.collection_id:
            return ExecutionResult(
                success=False,
                error="No collection selected. Please import a data file first.",
                error_kind=ErrorKind.NO_ACTIVE_DATASET,
            )

        equals: Dict[str, Any] = {}
        contains: List[Predicate] = []
        for predicate in intent.filters:
            if predicate.operator == Operator.EQUALS:
                equals[predicate.field] = predicate.value
            else:
                contains.append(predicate)

        logger.debug(
            f"Executing on {context.collection_id}: "
            f"{len(equals)} equality, {len(contains)} contains predicates"
        )

        try:
            records = await self.store.find(context.collection_id, equals or None)
        except StorageAccessFailure as e:
            logger.error(f"Store access failed for {context.collection_id}: {e.message}")
            return ExecutionResult(
                success=False,
                error=e.message,
                error_kind=ErrorKind.STORAGE_ACCESS_FAILURE,
            )

        for predicate in contains:
            records = [r for r in records if matches_contains(r, predicate)]

        if intent.sort_field and records:
            records = sorted(
                records,
                key=_sort_key(intent.sort_field),
                reverse=intent.sort_order == SortOrder.DESC,
            )

        if intent.limit and intent.limit > 0:
            records = records[:intent.limit]

        logger.info(f"Query on {context.collection_id} returned {len(records)} records")
        return ExecutionResult(success=True, matches=records)
