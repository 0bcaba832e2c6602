"""
LLM Fallback Bridge - hands the whole dataset to a text model.

Used for open-ended analytical questions ("which location has the most
issues?") that the rule-based pipeline cannot answer. Every call is single
shot: one prompt in, one text out, no memory between calls.
"""

from abc import ABC, abstractmethod
from datetime import date, timedelta
from typing import Any, List, Optional

from openai import AsyncOpenAI

from recordqa.core.constants import (
    LLM_MODEL_NAME,
    LLM_TEMPERATURE,
    OPENAI_API_KEY,
    OPENAI_BASE_URL,
)
from recordqa.nlq.column_mapping import ColumnMappingRegistry, SemanticRole
from recordqa.nlq.errors import ExternalModelFailure
from recordqa.store.base import Record, data_fields
from recordqa.utils.log_utils import get_logger

logger = get_logger(__name__)

NO_INFORMATION_ANSWER = "I don't have information about that in my database."

# Spreadsheet serial numbers above this are treated as dates (40000 = 2009-07-06)
EXCEL_SERIAL_THRESHOLD = 40000
EXCEL_EPOCH = date(1899, 12, 30)

PROMPT_TEMPLATE = """You are a helpful maintenance assistant with access to {record_count} maintenance records from a database.

RECORDS:
{records}

User question: {question}

INSTRUCTIONS:

IF THE USER ASKS FOR SPECIFIC INFORMATION (exact matches):
- Search for EXACT matches only
- If the user asks for a date, identifier or functional location, ONLY use records whose value matches it literally
- If NO EXACT match is found, respond exactly: "{no_information}"

IF THE USER ASKS FOR ANALYTICAL INSIGHTS (patterns, trends, variety, most, least, groupings):
- Analyze ALL records above
- Count, group and compare across {group_fields} as needed
- Provide specific numbers and name the values you counted

Provide a clear, conversational answer based on the type of question."""


def excel_serial_to_iso(value: Any) -> Any:
    """45832 -> "2025-06-24"; anything else is returned unchanged."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return value
    if value <= EXCEL_SERIAL_THRESHOLD:
        return value
    try:
        return (EXCEL_EPOCH + timedelta(days=int(value))).isoformat()
    except (OverflowError, ValueError):
        logger.warning(f"Could not convert spreadsheet date {value}, using as-is")
        return value


class LLMClient(ABC):
    """Single-shot text completion."""

    @abstractmethod
    async def complete(self, prompt: str) -> str:
        pass


class OpenAICompletionClient(LLMClient):
    """Chat-completions client for OpenAI-compatible endpoints."""

    def __init__(
        self,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        model: str = LLM_MODEL_NAME,
        temperature: float = LLM_TEMPERATURE,
    ):
        self.model = model
        self.temperature = temperature
        base_url = base_url or OPENAI_BASE_URL
        if base_url:
            self.client = AsyncOpenAI(api_key=api_key or OPENAI_API_KEY, base_url=base_url)
        else:
            self.client = AsyncOpenAI(api_key=api_key or OPENAI_API_KEY)

    async def complete(self, prompt: str) -> str:
        response = await self.client.chat.completions.create(
            model=self.model,
            messages=[{"role": "user", "content": prompt}],
            temperature=self.temperature,
        )
        return response.choices[0].message.content or ""


def build_llm_client() -> Optional[LLMClient]:
    """OpenAI client when OPENAI_API_KEY is set, else None (pipeline-only mode)."""
    if not OPENAI_API_KEY:
        logger.info("OPENAI_API_KEY not set - LLM fallback disabled")
        return None
    return OpenAICompletionClient()


class LLMFallbackBridge:
    """Serializes records into a prompt and asks the model."""

    def __init__(self, client: LLMClient):
        self.client = client

    def serialize_record(self, index: int, record: Record, mapping: ColumnMappingRegistry) -> str:
        """One compact line: 'Record 3: MMT No: 123 | Location: ... | Date: 2025-06-24'."""
        date_header = mapping.resolve(SemanticRole.DATE)
        parts = []
        for header in data_fields(record):
            value = record.get(header)
            if header == date_header:
                value = excel_serial_to_iso(value)
            if value is None or value == "":
                value = "N/A"
            parts.append(f"{header}: {value}")
        return f"Record {index}: " + " | ".join(parts)

    def build_prompt(self, question: str, records: List[Record], mapping: ColumnMappingRegistry) -> str:
        lines = [self.serialize_record(i, r, mapping) for i, r in enumerate(records, start=1)]
        group_roles = (
            SemanticRole.FUNCTIONAL_LOCATION,
            SemanticRole.LOCATION,
            SemanticRole.ACTION,
            SemanticRole.DATE,
        )
        group_fields = [mapping.resolve(role) for role in group_roles if mapping.resolve(role)]
        return PROMPT_TEMPLATE.format(
            record_count=len(records),
            records="\n".join(lines) if lines else "(no records)",
            question=question,
            no_information=NO_INFORMATION_ANSWER,
            group_fields=", ".join(group_fields) if group_fields else "any field",
        )

    async def answer(self, question: str, records: List[Record], mapping: ColumnMappingRegistry) -> str:
        prompt = self.build_prompt(question, records, mapping)
        logger.info(f"Sending question to LLM with {len(records)} records ({len(prompt)} chars)")
        try:
            answer = await self.client.complete(prompt)
        except Exception as e:
            logger.error(f"LLM completion failed: {e}")
            raise ExternalModelFailure(str(e)) from e
        return answer.strip() or NO_INFORMATION_ANSWER
