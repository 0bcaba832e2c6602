"""
Query Routes - HTTP surface of the query engine.

These endpoints are used by the conversational UI to:
1. Ask a question about the active dataset
2. Hand over rows parsed from an uploaded spreadsheet
3. Inspect the active dataset (status report, distinct values per role)
"""
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException

from recordqa.nlq.column_mapping import SemanticRole
from recordqa.nlq.errors import NoActiveDataset, QueryEngineError
from recordqa.nlq.llm_bridge import build_llm_client
from recordqa.nlq.models import (
    AskRequest,
    AskResponse,
    DatasetResponse,
    IngestRequest,
    StatusResponse,
    ValuesResponse,
)
from recordqa.nlq.orchestrator import QueryOrchestrator
from recordqa.store import build_store
from recordqa.utils.log_utils import get_logger

logger = get_logger(__name__)

router = APIRouter(prefix="/api/query", tags=["query"])

_orchestrator_instance: Optional[QueryOrchestrator] = None


def get_orchestrator() -> QueryOrchestrator:
    """Process-wide orchestrator built from the configured store and LLM client."""
    global _orchestrator_instance
    if _orchestrator_instance is None:
        _orchestrator_instance = QueryOrchestrator(build_store(), build_llm_client())
    return _orchestrator_instance


@router.post("/ask", response_model=AskResponse)
async def ask(request: AskRequest, orchestrator: QueryOrchestrator = Depends(get_orchestrator)):
    """
    Answer a free-text question. Failures are reported in the body
    (success=false) with a readable answer, never as an HTTP error.
    """
    result = await orchestrator.submit(request.question)
    return AskResponse.from_result(result)


@router.post("/datasets", response_model=DatasetResponse)
async def ingest_dataset(request: IngestRequest, orchestrator: QueryOrchestrator = Depends(get_orchestrator)):
    try:
        context = await orchestrator.ingest(request.file_name, request.headers, request.rows)
    except QueryEngineError as e:
        raise HTTPException(status_code=400, detail=e.message)

    info = await orchestrator.store.get_collection(context.collection_id)
    return DatasetResponse(
        collection_id=info.collection_id,
        source_file_name=info.source_file_name,
        headers=info.headers,
        row_count=info.row_count,
        column_mapping=context.column_mapping.to_dict(),
    )


@router.get("/datasets/active", response_model=StatusResponse)
async def active_dataset(orchestrator: QueryOrchestrator = Depends(get_orchestrator)):
    try:
        status = await orchestrator.describe_dataset()
    except NoActiveDataset as e:
        raise HTTPException(status_code=404, detail=e.message)
    except QueryEngineError as e:
        raise HTTPException(status_code=500, detail=e.message)
    return StatusResponse(status=status)


@router.get("/datasets/active/values/{role}", response_model=ValuesResponse)
async def active_dataset_values(role: SemanticRole, orchestrator: QueryOrchestrator = Depends(get_orchestrator)):
    try:
        values = await orchestrator.distinct_values(role)
    except NoActiveDataset as e:
        raise HTTPException(status_code=404, detail=e.message)
    except QueryEngineError as e:
        raise HTTPException(status_code=500, detail=e.message)
    return ValuesResponse(role=role.value, values=values)
