"""
Query Orchestrator - the single entry point behind `submit(question)`.

Owns the active DatasetContext and threads it through every downstream call.
Routing:
1. Directory commands ("show all locations") are answered from distinct values.
2. The question is classified and its filters extracted.
3. Open-ended analytical questions, and list questions with nothing to filter
   on, go to the LLM bridge when one is configured.
4. Everything else runs through executor -> aggregator -> formatter.

`submit` never raises: failures come back as QueryResult(success=False) with a
complete natural-language answer.
"""

import re
from typing import Any, List, Optional, Sequence

from recordqa.nlq.aggregator import Aggregator
from recordqa.nlq.column_mapping import ColumnMappingRegistry, SemanticRole
from recordqa.nlq.errors import (
    ErrorKind,
    ExternalModelFailure,
    NoActiveDataset,
    QueryEngineError,
    StorageAccessFailure,
)
from recordqa.nlq.executor import QueryExecutor
from recordqa.nlq.filter_extractor import FilterExtractor
from recordqa.nlq.formatter import ResponseFormatter, distinct
from recordqa.nlq.intent_classifier import IntentClassifier
from recordqa.nlq.llm_bridge import LLMClient, LLMFallbackBridge
from recordqa.nlq.models import (
    AnsweredBy,
    DatasetContext,
    IntentType,
    QueryIntent,
    QueryResult,
    SCALAR_INTENTS,
)
from recordqa.store.base import DocumentStore
from recordqa.utils.log_utils import get_logger

logger = get_logger(__name__)

# Cues that the question needs reasoning over the whole dataset
ANALYTICAL_CUE_PATTERN = re.compile(
    r"\b(?:most|least|variety|patterns?|trends?|common|frequent(?:ly)?|compare|comparison"
    r"|breakdown|group(?:ed)?|distribution|why)\b"
)

DIRECTORY_PATTERN = re.compile(
    r"^\s*(?:show|list)\s+(?:me\s+)?all\s+(?:the\s+)?"
    r"(functional\s+locations|locations|actions|dates|identifiers)\b"
)

DIRECTORY_ROLES = {
    "locations": SemanticRole.LOCATION,
    "functional locations": SemanticRole.FUNCTIONAL_LOCATION,
    "actions": SemanticRole.ACTION,
    "dates": SemanticRole.DATE,
    "identifiers": SemanticRole.IDENTIFIER,
}

NO_DATASET_MESSAGE = "No data loaded. Please import a data file first."


class QueryOrchestrator:
    """Wires classifier, extractor, executor, aggregator, formatter and LLM bridge."""

    def __init__(
        self,
        store: DocumentStore,
        llm_client: Optional[LLMClient] = None,
        classifier: Optional[IntentClassifier] = None,
        extractor: Optional[FilterExtractor] = None,
        aggregator: Optional[Aggregator] = None,
        formatter: Optional[ResponseFormatter] = None,
    ):
        self.store = store
        self.executor = QueryExecutor(store)
        self.classifier = classifier or IntentClassifier()
        self.extractor = extractor or FilterExtractor()
        self.aggregator = aggregator or Aggregator()
        self.formatter = formatter or ResponseFormatter()
        self.bridge = LLMFallbackBridge(llm_client) if llm_client else None
        self._context: Optional[DatasetContext] = None

    @property
    def context(self) -> Optional[DatasetContext]:
        return self._context

    # -------------------------------------------------------------------------
    # Dataset context
    # -------------------------------------------------------------------------

    def activate(self, collection_id: str, source_file_name: str, headers: Sequence[str]) -> DatasetContext:
        """Make a collection active. The column mapping is always rebuilt."""
        self._context = DatasetContext(
            collection_id=collection_id,
            source_file_name=source_file_name,
            column_mapping=ColumnMappingRegistry(headers),
        )
        logger.info(
            f"Active dataset: {collection_id} ({source_file_name}), "
            f"mapping={self._context.column_mapping.to_dict()}"
        )
        return self._context

    async def ingest(
        self,
        source_file_name: str,
        headers: Sequence[Any],
        rows: Sequence[Sequence[Any]],
    ) -> DatasetContext:
        """Store parsed spreadsheet rows and make them the active dataset."""
        info = await self.store.create_collection(source_file_name, headers, rows)
        return self.activate(info.collection_id, info.source_file_name, info.headers)

    async def resolve_context(self) -> DatasetContext:
        """Active context, or the most recently created collection."""
        if self._context is not None:
            return self._context

        collections = await self.store.list_collections()
        if not collections:
            raise NoActiveDataset(NO_DATASET_MESSAGE)

        newest = collections[0]
        headers = newest.headers
        if not headers:
            sample = await self.store.sample(newest.collection_id, 1)
            headers = ColumnMappingRegistry.from_record(sample[0]).headers if sample else []
        logger.info(f"No active dataset, using most recent collection {newest.collection_id}")
        return self.activate(newest.collection_id, newest.source_file_name, headers)

    # -------------------------------------------------------------------------
    # Querying
    # -------------------------------------------------------------------------

    async def submit(self, query_text: Optional[str]) -> QueryResult:
        text = (query_text or "").strip()

        try:
            context = await self.resolve_context()
        except QueryEngineError as e:
            return self._failure(e)

        directory = DIRECTORY_PATTERN.search(text.lower())
        if directory:
            return await self._answer_directory(directory.group(1))

        intent_type = self.classifier.classify(text)
        intent = self.extractor.extract(text, intent_type, context.column_mapping)
        logger.info(f"Query '{text}' -> intent={intent.type.value}, filters={len(intent.filters)}")

        if self.should_delegate(text, intent):
            delegated = await self._answer_with_llm(text, context, intent)
            if delegated is not None:
                return delegated

        execution = await self.executor.execute(context, intent)
        if not execution.success:
            message = execution.error or "Query execution failed"
            return QueryResult(
                success=False,
                natural_language_answer=self.formatter.failure(message),
                intent=intent,
                message=message,
                error_kind=execution.error_kind,
            )

        matches = execution.matches
        aggregate = None
        if intent.type in SCALAR_INTENTS and matches:
            aggregate = self.aggregator.aggregate(intent.type, matches, context.column_mapping)

        answer = self.formatter.format(text, intent, matches, context.column_mapping, aggregate)

        if intent.type == IntentType.COUNT:
            return QueryResult(success=True, natural_language_answer=answer, matches=matches,
                               scalar=float(len(matches)), intent=intent)

        if aggregate is not None and not aggregate.success:
            return QueryResult(
                success=False,
                natural_language_answer=answer,
                matches=matches,
                intent=intent,
                message=aggregate.error,
                error_kind=ErrorKind.NO_NUMERIC_FIELD,
            )

        return QueryResult(
            success=True,
            natural_language_answer=answer,
            matches=matches,
            scalar=aggregate.value if aggregate is not None else None,
            intent=intent,
        )

    def should_delegate(self, text: str, intent: QueryIntent) -> bool:
        """Analytical cue, or a list question with no predicates, and an LLM is configured."""
        if self.bridge is None:
            return False
        if ANALYTICAL_CUE_PATTERN.search(text.lower()):
            return True
        return intent.type == IntentType.LIST and not intent.filters

    async def _answer_with_llm(
        self,
        text: str,
        context: DatasetContext,
        intent: QueryIntent,
    ) -> Optional[QueryResult]:
        try:
            records = await self.store.find(context.collection_id)
        except StorageAccessFailure as e:
            return self._failure(e, intent)

        # An empty dataset gets the pipeline's "No Results" diagnostic instead
        if not records:
            return None

        try:
            answer = await self.bridge.answer(text, records, context.column_mapping)
        except ExternalModelFailure as e:
            return self._failure(e, intent)

        return QueryResult(success=True, natural_language_answer=answer, intent=intent,
                           answered_by=AnsweredBy.LLM)

    async def _answer_directory(self, noun: str) -> QueryResult:
        label = " ".join(noun.split())
        try:
            values = await self.distinct_values(DIRECTORY_ROLES[label])
        except QueryEngineError as e:
            return self._failure(e)

        answer = self.formatter.directory(label, values)
        if not values:
            answer = f"{answer}\n\n{self.formatter.no_results(QueryIntent())}"
        return QueryResult(
            success=True,
            natural_language_answer=answer,
            answered_by=AnsweredBy.DIRECTORY,
        )

    def _failure(self, error: QueryEngineError, intent: Optional[QueryIntent] = None) -> QueryResult:
        logger.error(f"Query failed ({error.kind.value}): {error.message}")
        if isinstance(error, NoActiveDataset):
            answer = error.message
        else:
            answer = self.formatter.failure(error.message)
        return QueryResult(
            success=False,
            natural_language_answer=answer,
            intent=intent,
            message=error.message,
            error_kind=error.kind,
            answered_by=AnsweredBy.LLM if isinstance(error, ExternalModelFailure) else AnsweredBy.PIPELINE,
        )

    # -------------------------------------------------------------------------
    # Dataset inspection
    # -------------------------------------------------------------------------

    async def describe_dataset(self) -> str:
        """Status report: collection, file, record count, fields and a sample record."""
        context = await self.resolve_context()
        info = await self.store.get_collection(context.collection_id)
        sample = await self.store.sample(context.collection_id, 1)
        return self.formatter.status(info, sample[0] if sample else None, context.column_mapping)

    async def distinct_values(self, role: SemanticRole) -> List[str]:
        """Sorted distinct non-empty values of the header playing `role`."""
        context = await self.resolve_context()
        header = context.column_mapping.resolve(role)
        if not header:
            return []
        records = await self.store.find(context.collection_id)
        return sorted(distinct(r.get(header) for r in records))
