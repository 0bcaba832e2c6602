"""
Document store abstraction for imported spreadsheet rows.

A collection holds one record per imported row. Records are flat dicts keyed
by the original column header, plus a handful of system fields stamped at
ingestion time. Stores only know equality filtering; substring matching,
sorting and limiting happen in the query executor.
"""

import re
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Optional, Sequence

from recordqa.core.constants import COLLECTION_NAME_MAX_LENGTH

Record = Dict[str, Any]

RECORD_ID_FIELD = "_record_id"
SOURCE_FILE_FIELD = "_source_file"
INGESTED_AT_FIELD = "_ingested_at"
ROW_NUMBER_FIELD = "_row_number"

SYSTEM_FIELDS = frozenset({
    RECORD_ID_FIELD,
    SOURCE_FILE_FIELD,
    INGESTED_AT_FIELD,
    ROW_NUMBER_FIELD,
})


@dataclass
class CollectionInfo:
    """Metadata about one imported dataset."""
    collection_id: str
    source_file_name: str
    headers: List[str]
    row_count: int
    created_at: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "collection_id": self.collection_id,
            "source_file_name": self.source_file_name,
            "headers": list(self.headers),
            "row_count": self.row_count,
            "created_at": self.created_at,
        }


def sanitize_collection_name(file_name: str) -> str:
    """Turn a file name into a collection id: MMT Database.xlsx -> MMT_Database_xlsx."""
    name = re.sub(r"[^a-zA-Z0-9]", "_", file_name)
    name = re.sub(r"_+", "_", name)
    name = name.strip("_")
    return name[:COLLECTION_NAME_MAX_LENGTH]


def clean_value(value: Any) -> Any:
    """Normalize a spreadsheet cell: None becomes "", strings are trimmed."""
    if value is None:
        return ""
    if isinstance(value, str):
        return value.strip()
    return value


def clean_headers(headers: Iterable[Any]) -> List[Optional[str]]:
    """Trim headers, keeping positions; blank headers become None."""
    cleaned: List[Optional[str]] = []
    for header in headers:
        if header is None:
            cleaned.append(None)
            continue
        text = str(header).strip()
        cleaned.append(text or None)
    return cleaned


def build_record(
    collection_id: str,
    source_file_name: str,
    headers: Sequence[Optional[str]],
    row: Sequence[Any],
    row_number: int,
    ingested_at: str,
) -> Record:
    """Zip one spreadsheet row with its headers and stamp the system fields."""
    record: Record = {
        RECORD_ID_FIELD: f"{collection_id}_{row_number}",
        SOURCE_FILE_FIELD: source_file_name,
        INGESTED_AT_FIELD: ingested_at,
        ROW_NUMBER_FIELD: row_number,
    }
    for index, header in enumerate(headers):
        if not header:
            continue
        value = row[index] if index < len(row) else None
        record[header] = clean_value(value)
    return record


def data_fields(record: Record) -> List[str]:
    """Headers of a record in stored order, without system fields."""
    return [key for key in record.keys() if key not in SYSTEM_FIELDS]


def values_equal(stored: Any, expected: Any) -> bool:
    """Equality used by stores: 1234567890 (int) equals "1234567890"."""
    if stored is None:
        return False
    return str(stored).strip() == str(expected).strip()


class DocumentStore(ABC):
    """Abstract base class for record stores."""

    @abstractmethod
    async def create_collection(
        self,
        source_file_name: str,
        headers: Sequence[Any],
        rows: Sequence[Sequence[Any]],
    ) -> CollectionInfo:
        """Store rows under a collection derived from the file name, replacing any previous import."""
        pass

    @abstractmethod
    async def list_collections(self) -> List[CollectionInfo]:
        """All collections, most recently created first."""
        pass

    @abstractmethod
    async def get_collection(self, collection_id: str) -> CollectionInfo:
        """Metadata for one collection. Raises StorageAccessFailure if unknown."""
        pass

    @abstractmethod
    async def find(
        self,
        collection_id: str,
        equals: Optional[Dict[str, Any]] = None,
    ) -> List[Record]:
        """Records matching every field == value pair, in row order."""
        pass

    @abstractmethod
    async def sample(self, collection_id: str, limit: int = 1) -> List[Record]:
        """First `limit` records of a collection."""
        pass
