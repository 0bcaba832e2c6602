"""
NLQ (Natural Language Query) module for maintenance records.

Turns a free-text question into deterministic query semantics and a
conversational answer, with an optional LLM fallback for analytical questions.

Key components:
- ColumnMappingRegistry: Resolves semantic roles to the active dataset's headers
- IntentClassifier: Ordered rule table, one intent per question
- FilterExtractor: Regex-based predicates, ordering and limits
- QueryExecutor: Equality pushed to the store, contains/sort/limit in memory
- Aggregator: count/sum/average/max/min over an auto-detected numeric field
- ResponseFormatter: Natural-language answers by intent and match cardinality
- LLMFallbackBridge: Whole-dataset prompt for open-ended questions
- QueryOrchestrator: submit(question) -> QueryResult
"""

from recordqa.nlq.errors import (
    ErrorKind,
    QueryEngineError,
    NoActiveDataset,
    StorageAccessFailure,
    NoNumericField,
    ExternalModelFailure,
)
from recordqa.nlq.column_mapping import ColumnMappingRegistry, SemanticRole
from recordqa.nlq.models import (
    IntentType,
    Operator,
    SortOrder,
    AnsweredBy,
    Predicate,
    QueryIntent,
    DatasetContext,
    ExecutionResult,
    AggregateResult,
    QueryResult,
)
from recordqa.nlq.intent_classifier import IntentClassifier
from recordqa.nlq.filter_extractor import FilterExtractor
from recordqa.nlq.executor import QueryExecutor
from recordqa.nlq.aggregator import Aggregator
from recordqa.nlq.formatter import ResponseFormatter
from recordqa.nlq.llm_bridge import LLMClient, LLMFallbackBridge, OpenAICompletionClient
from recordqa.nlq.orchestrator import QueryOrchestrator

__all__ = [
    "ErrorKind",
    "QueryEngineError",
    "NoActiveDataset",
    "StorageAccessFailure",
    "NoNumericField",
    "ExternalModelFailure",
    "ColumnMappingRegistry",
    "SemanticRole",
    "IntentType",
    "Operator",
    "SortOrder",
    "AnsweredBy",
    "Predicate",
    "QueryIntent",
    "DatasetContext",
    "ExecutionResult",
    "AggregateResult",
    "QueryResult",
    "IntentClassifier",
    "FilterExtractor",
    "QueryExecutor",
    "Aggregator",
    "ResponseFormatter",
    "LLMClient",
    "LLMFallbackBridge",
    "OpenAICompletionClient",
    "QueryOrchestrator",
]
