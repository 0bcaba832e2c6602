"""
Unit tests for the in-memory document store and the record helpers.
"""

import pytest

from recordqa.nlq.errors import StorageAccessFailure
from recordqa.store import InMemoryDocumentStore, RedisDocumentStore, build_store
from recordqa.store.base import (
    build_record,
    clean_headers,
    data_fields,
    sanitize_collection_name,
    values_equal,
)


HEADERS = [" MMT No ", "Location", None, "Date"]
ROWS = [
    [1234567890, "  100 MAIN STREET ", "dropped", "2025-06-24"],
    ["1234567891", None, "dropped"],
]


class TestRecordHelpers:
    """Tests for collection naming and record construction."""

    @pytest.mark.parametrize("file_name,expected", [
        ("MMT Database.xlsx", "MMT_Database_xlsx"),
        ("maintenance.xlsx", "maintenance_xlsx"),
        ("  weird--name!!.csv", "weird_name_csv"),
        ("...", ""),
    ])
    def test_sanitize_collection_name(self, file_name, expected):
        assert sanitize_collection_name(file_name) == expected

    def test_collection_name_is_truncated(self):
        assert len(sanitize_collection_name("a" * 80 + ".xlsx")) == 50

    def test_clean_headers_keeps_positions(self):
        assert clean_headers(HEADERS) == ["MMT No", "Location", None, "Date"]

    def test_build_record(self):
        record = build_record("m_xlsx", "m.xlsx", clean_headers(HEADERS), ROWS[1], 2, "2025-06-24T00:00:00Z")
        assert record["_record_id"] == "m_xlsx_2"
        assert record["_row_number"] == 2
        assert record["Location"] == ""
        assert record["Date"] == ""
        assert data_fields(record) == ["MMT No", "Location", "Date"]

    def test_values_equal_across_types(self):
        assert values_equal(1234567890, "1234567890")
        assert not values_equal(None, "")


class TestInMemoryDocumentStore:
    """Tests for InMemoryDocumentStore."""

    def setup_method(self):
        self.store = InMemoryDocumentStore()

    @pytest.mark.asyncio
    async def test_create_collection(self):
        info = await self.store.create_collection("MMT Database.xlsx", HEADERS, ROWS)

        assert info.collection_id == "MMT_Database_xlsx"
        assert info.headers == ["MMT No", "Location", "Date"]
        assert info.row_count == 2

        records = await self.store.find(info.collection_id)
        assert records[0]["Location"] == "100 MAIN STREET"
        assert records[0]["_source_file"] == "MMT Database.xlsx"
        assert "dropped" not in records[0].values()

    @pytest.mark.asyncio
    async def test_find_with_equality(self):
        info = await self.store.create_collection("m.xlsx", HEADERS, ROWS)
        records = await self.store.find(info.collection_id, {"MMT No": "1234567890"})
        assert [r["_row_number"] for r in records] == [1]

    @pytest.mark.asyncio
    async def test_find_returns_copies(self):
        info = await self.store.create_collection("m.xlsx", HEADERS, ROWS)
        records = await self.store.find(info.collection_id)
        records[0]["Location"] = "changed"
        assert (await self.store.find(info.collection_id))[0]["Location"] == "100 MAIN STREET"

    @pytest.mark.asyncio
    async def test_reimport_replaces_and_becomes_newest(self):
        await self.store.create_collection("a.xlsx", HEADERS, ROWS)
        await self.store.create_collection("b.xlsx", HEADERS, ROWS)
        await self.store.create_collection("a.xlsx", HEADERS, ROWS[:1])

        collections = await self.store.list_collections()
        assert [c.collection_id for c in collections] == ["a_xlsx", "b_xlsx"]
        assert collections[0].row_count == 1

    @pytest.mark.asyncio
    async def test_sample(self):
        info = await self.store.create_collection("m.xlsx", HEADERS, ROWS)
        sample = await self.store.sample(info.collection_id, 1)
        assert len(sample) == 1
        assert sample[0]["_row_number"] == 1

    @pytest.mark.asyncio
    async def test_unknown_collection(self):
        with pytest.raises(StorageAccessFailure):
            await self.store.find("missing")
        with pytest.raises(StorageAccessFailure):
            await self.store.get_collection("missing")

    @pytest.mark.asyncio
    async def test_unusable_file_name(self):
        with pytest.raises(StorageAccessFailure):
            await self.store.create_collection("...", HEADERS, ROWS)


class TestBuildStore:
    """Tests for backend selection."""

    def test_memory(self):
        assert isinstance(build_store("memory"), InMemoryDocumentStore)

    def test_redis(self):
        assert isinstance(build_store("redis"), RedisDocumentStore)

    def test_unknown(self):
        with pytest.raises(ValueError):
            build_store("postgres")
