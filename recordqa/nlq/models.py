"""
Domain models for the maintenance-records query engine.

Internal types are dataclasses built fresh per query and discarded after use.
API request/response shapes are Pydantic models serialized as camelCase.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import Field

from recordqa.domain.base import CamelCaseModel
from recordqa.nlq.column_mapping import ColumnMappingRegistry
from recordqa.nlq.errors import ErrorKind
from recordqa.store.base import Record


class IntentType(str, Enum):
    """Classified purpose of a query."""
    COUNT = "count"
    SUM = "sum"
    AVERAGE = "average"
    MAX = "max"
    MIN = "min"
    TREND = "trend"
    LOCATION = "location"
    DATE = "date"
    ACTION = "action"
    IDENTIFIER = "identifier"
    LIST = "list"


AGGREGATE_INTENTS = frozenset({
    IntentType.SUM,
    IntentType.AVERAGE,
    IntentType.MAX,
    IntentType.MIN,
})

SCALAR_INTENTS = AGGREGATE_INTENTS | {IntentType.COUNT}


class Operator(str, Enum):
    """Predicate operators. EQUALS runs in the store, CONTAINS in memory."""
    EQUALS = "equals"
    CONTAINS = "contains"


class SortOrder(str, Enum):
    ASC = "asc"
    DESC = "desc"


class AnsweredBy(str, Enum):
    """Which path produced the answer."""
    PIPELINE = "pipeline"
    LLM = "llm"
    DIRECTORY = "directory"


@dataclass(frozen=True)
class Predicate:
    """A single field/operator/value filter condition."""
    field: str
    operator: Operator
    value: Any

    def describe(self) -> str:
        return f'{self.field}: {self.operator.value} "{self.value}"'

    def to_dict(self) -> Dict[str, Any]:
        return {"field": self.field, "operator": self.operator.value, "value": self.value}


@dataclass
class QueryIntent:
    """Classified intent plus the filters, ordering and limit extracted from the text."""
    type: IntentType = IntentType.LIST
    filters: List[Predicate] = field(default_factory=list)
    sort_field: Optional[str] = None
    sort_order: Optional[SortOrder] = None
    limit: Optional[int] = None
    search_terms: List[str] = field(default_factory=list)

    @property
    def search_phrase(self) -> str:
        """The literal search phrase used to narrow multi-match answers."""
        return " ".join(self.search_terms)

    def predicates_for(self, header: Optional[str], operator: Optional[Operator] = None) -> List[Predicate]:
        if not header:
            return []
        return [
            p for p in self.filters
            if p.field == header and (operator is None or p.operator == operator)
        ]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": self.type.value,
            "filters": [p.to_dict() for p in self.filters],
            "sort_field": self.sort_field,
            "sort_order": self.sort_order.value if self.sort_order else None,
            "limit": self.limit,
            "search_terms": list(self.search_terms),
        }


@dataclass(frozen=True)
class DatasetContext:
    """The active imported collection plus its column mapping."""
    collection_id: str
    source_file_name: str
    column_mapping: ColumnMappingRegistry


@dataclass
class ExecutionResult:
    """Matches returned by the query executor, or the reason there are none."""
    success: bool
    matches: List[Record] = field(default_factory=list)
    error: Optional[str] = None
    error_kind: Optional[ErrorKind] = None


@dataclass
class AggregateResult:
    """Scalar computed over a match set."""
    operation: IntentType
    value: Optional[float] = None
    field: Optional[str] = None
    sample_size: int = 0
    error: Optional[str] = None

    @property
    def success(self) -> bool:
        return self.error is None


@dataclass
class QueryResult:
    """Outcome of one submitted question. Never cached."""
    success: bool
    natural_language_answer: str
    matches: List[Record] = field(default_factory=list)
    scalar: Optional[float] = None
    intent: Optional[QueryIntent] = None
    message: Optional[str] = None
    error_kind: Optional[ErrorKind] = None
    answered_by: AnsweredBy = AnsweredBy.PIPELINE


# =============================================================================
# API models
# =============================================================================

class AskRequest(CamelCaseModel):
    """Body of POST /api/query/ask."""
    question: str


class PredicateModel(CamelCaseModel):
    field: str
    operator: Operator
    value: Any


class IntentModel(CamelCaseModel):
    type: IntentType
    filters: List[PredicateModel] = Field(default_factory=list)
    sort_field: Optional[str] = None
    sort_order: Optional[SortOrder] = None
    limit: Optional[int] = None
    search_terms: List[str] = Field(default_factory=list)


class AskResponse(CamelCaseModel):
    """What the conversational UI renders for one question."""
    success: bool
    natural_language_answer: str
    matches: List[Dict[str, Any]] = Field(default_factory=list)
    scalar: Optional[float] = None
    intent: Optional[IntentModel] = None
    message: Optional[str] = None
    answered_by: AnsweredBy = AnsweredBy.PIPELINE

    @classmethod
    def from_result(cls, result: QueryResult) -> "AskResponse":
        intent = None
        if result.intent is not None:
            intent = IntentModel(**result.intent.to_dict())
        return cls(
            success=result.success,
            natural_language_answer=result.natural_language_answer,
            matches=result.matches,
            scalar=result.scalar,
            intent=intent,
            message=result.message,
            answered_by=result.answered_by,
        )


class IngestRequest(CamelCaseModel):
    """Body of POST /api/query/datasets: rows already parsed from a spreadsheet."""
    file_name: str
    headers: List[Optional[str]]
    rows: List[List[Any]] = Field(default_factory=list)


class DatasetResponse(CamelCaseModel):
    collection_id: str
    source_file_name: str
    headers: List[str]
    row_count: int
    column_mapping: Dict[str, Optional[str]] = Field(default_factory=dict)


class StatusResponse(CamelCaseModel):
    status: str


class ValuesResponse(CamelCaseModel):
    role: str
    values: List[str]
