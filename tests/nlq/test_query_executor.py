"""
Unit tests for the Query Executor.

Runs intents against the in-memory document store.
"""

import pytest

from recordqa.nlq.column_mapping import ColumnMappingRegistry
from recordqa.nlq.errors import ErrorKind, StorageAccessFailure
from recordqa.nlq.executor import QueryExecutor, matches_contains
from recordqa.nlq.models import (
    DatasetContext,
    IntentType,
    Operator,
    Predicate,
    QueryIntent,
    SortOrder,
)
from recordqa.store.memory import InMemoryDocumentStore


HEADERS = ["MMT No", "Date", "Location", "Action"]
ROWS = [
    ["1000000001", "2025-06-24", "100 MAIN STREET", "REPLACE BELT"],
    ["1000000002", "2025-06-24", "200 KING ROAD", "CLEAN AIR FILTER"],
    ["1000000003", "2025-07-01", "100 MAIN STREET", "AC NOT WORKING"],
    ["1000000004", "2025-07-02", "387 LEMON CIRCLE", "replace belt"],
]


class FailingStore(InMemoryDocumentStore):
    async def find(self, collection_id, equals=None):
        raise StorageAccessFailure("connection refused")


class TestQueryExecutor:
    """Tests for QueryExecutor.execute()."""

    def setup_method(self):
        self.store = InMemoryDocumentStore()
        self.executor = QueryExecutor(self.store)

    async def _context(self):
        info = await self.store.create_collection("maintenance.xlsx", HEADERS, ROWS)
        return DatasetContext(
            collection_id=info.collection_id,
            source_file_name=info.source_file_name,
            column_mapping=ColumnMappingRegistry(info.headers),
        )

    @pytest.mark.asyncio
    async def test_no_filters_returns_all_rows_in_order(self):
        context = await self._context()
        result = await self.executor.execute(context, QueryIntent(type=IntentType.LIST))
        assert result.success
        assert [r["MMT No"] for r in result.matches] == ["1000000001", "1000000002", "1000000003", "1000000004"]

    @pytest.mark.asyncio
    async def test_equality_predicate(self):
        context = await self._context()
        intent = QueryIntent(filters=[Predicate("Date", Operator.EQUALS, "2025-06-24")])
        result = await self.executor.execute(context, intent)
        assert [r["MMT No"] for r in result.matches] == ["1000000001", "1000000002"]

    @pytest.mark.asyncio
    async def test_contains_is_case_insensitive(self):
        context = await self._context()
        intent = QueryIntent(filters=[Predicate("Action", Operator.CONTAINS, "Replace Belt")])
        result = await self.executor.execute(context, intent)
        assert [r["MMT No"] for r in result.matches] == ["1000000001", "1000000004"]

    @pytest.mark.asyncio
    async def test_predicates_combine_with_and(self):
        context = await self._context()
        intent = QueryIntent(filters=[
            Predicate("Location", Operator.CONTAINS, "MAIN STREET"),
            Predicate("Date", Operator.EQUALS, "2025-07-01"),
        ])
        result = await self.executor.execute(context, intent)
        assert [r["MMT No"] for r in result.matches] == ["1000000003"]

    @pytest.mark.asyncio
    async def test_numeric_value_matches_string_predicate(self):
        info = await self.store.create_collection("numbers.xlsx", ["MMT No"], [[1234567890]])
        context = DatasetContext(info.collection_id, info.source_file_name, ColumnMappingRegistry(info.headers))
        intent = QueryIntent(filters=[Predicate("MMT No", Operator.EQUALS, "1234567890")])
        result = await self.executor.execute(context, intent)
        assert len(result.matches) == 1

    @pytest.mark.asyncio
    async def test_descending_sort_and_limit(self):
        context = await self._context()
        intent = QueryIntent(sort_field="_ingested_at", sort_order=SortOrder.DESC, limit=2)
        result = await self.executor.execute(context, intent)
        # Same ingestion time for the whole import, so row order breaks the tie
        assert [r["MMT No"] for r in result.matches] == ["1000000004", "1000000003"]

    @pytest.mark.asyncio
    async def test_ascending_sort(self):
        context = await self._context()
        intent = QueryIntent(sort_field="_ingested_at", sort_order=SortOrder.ASC, limit=1)
        result = await self.executor.execute(context, intent)
        assert [r["MMT No"] for r in result.matches] == ["1000000001"]

    @pytest.mark.asyncio
    async def test_limit_applies_after_contains_filtering(self):
        context = await self._context()
        intent = QueryIntent(
            filters=[Predicate("Location", Operator.CONTAINS, "main street")],
            sort_field="_ingested_at",
            sort_order=SortOrder.DESC,
            limit=1,
        )
        result = await self.executor.execute(context, intent)
        assert [r["MMT No"] for r in result.matches] == ["1000000003"]

    @pytest.mark.asyncio
    async def test_missing_context_is_a_failed_result(self):
        result = await self.executor.execute(None, QueryIntent())
        assert not result.success
        assert result.error_kind == ErrorKind.NO_ACTIVE_DATASET
        assert "No collection selected" in result.error

    @pytest.mark.asyncio
    async def test_unknown_collection_is_a_storage_failure(self):
        context = DatasetContext("missing", "missing.xlsx", ColumnMappingRegistry(HEADERS))
        result = await self.executor.execute(context, QueryIntent())
        assert not result.success
        assert result.error_kind == ErrorKind.STORAGE_ACCESS_FAILURE
        assert "missing" in result.error

    @pytest.mark.asyncio
    async def test_store_errors_are_reported_verbatim(self):
        executor = QueryExecutor(FailingStore())
        context = DatasetContext("maintenance_xlsx", "maintenance.xlsx", ColumnMappingRegistry(HEADERS))
        result = await executor.execute(context, QueryIntent())
        assert not result.success
        assert result.error == "connection refused"


class TestMatchesContains:
    """Tests for the in-memory substring predicate."""

    def test_matches_numbers_as_text(self):
        assert matches_contains({"Cost": 1250}, Predicate("Cost", Operator.CONTAINS, "125"))

    def test_missing_or_empty_field_never_matches(self):
        predicate = Predicate("Location", Operator.CONTAINS, "MAIN")
        assert not matches_contains({}, predicate)
        assert not matches_contains({"Location": ""}, predicate)
