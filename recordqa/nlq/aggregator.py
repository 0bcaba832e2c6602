"""
Aggregator - count/sum/average/max/min over a match set.

The numeric column is auto-detected: the first header (in the first match's
column order) whose value parses as a number in any of the first few matches.
Identifier, sequence and date columns look numeric but are never aggregated.
"""

import math
from typing import Any, List, Optional

from recordqa.core.constants import AGGREGATE_EXCLUDE_ZERO, NUMERIC_SAMPLE_SIZE
from recordqa.nlq.column_mapping import ColumnMappingRegistry, SemanticRole
from recordqa.nlq.errors import NoNumericField
from recordqa.nlq.models import AggregateResult, IntentType
from recordqa.store.base import Record, data_fields
from recordqa.utils.log_utils import get_logger

logger = get_logger(__name__)

NON_NUMERIC_ROLES = frozenset({
    SemanticRole.IDENTIFIER,
    SemanticRole.SEQUENCE,
    SemanticRole.DATE,
})


def to_number(value: Any) -> Optional[float]:
    """Parse a cell as a number; "1,250.5" -> 1250.5, "" and "nan" -> None."""
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        number = float(value)
    elif isinstance(value, str):
        text = value.strip().replace(",", "")
        if not text:
            return None
        try:
            number = float(text)
        except ValueError:
            return None
    else:
        return None
    # Spreadsheet exports write missing cells as "nan"
    return number if math.isfinite(number) else None


class Aggregator:
    """Computes scalar aggregates. Returns failures on the result instead of raising."""

    def __init__(
        self,
        sample_size: int = NUMERIC_SAMPLE_SIZE,
        exclude_zero: bool = AGGREGATE_EXCLUDE_ZERO,
    ):
        self.sample_size = sample_size
        self.exclude_zero = exclude_zero

    def aggregate(
        self,
        intent_type: IntentType,
        matches: List[Record],
        mapping: ColumnMappingRegistry,
    ) -> AggregateResult:
        if intent_type == IntentType.COUNT:
            return AggregateResult(operation=intent_type, value=float(len(matches)), sample_size=len(matches))

        try:
            field = self.detect_numeric_field(matches, mapping)
        except NoNumericField as e:
            logger.warning(f"{intent_type.value} aggregate skipped: {e.message}")
            return AggregateResult(operation=intent_type, error=e.message)

        values = [v for v in (to_number(r.get(field)) for r in matches) if v is not None]
        # Average/min treat zero as "not recorded"
        if self.exclude_zero and intent_type in (IntentType.AVERAGE, IntentType.MIN):
            values = [v for v in values if v > 0]

        if not values:
            return AggregateResult(
                operation=intent_type,
                field=field,
                error=f"No usable values in field '{field}' for {intent_type.value} calculation",
            )

        if intent_type == IntentType.SUM:
            value = sum(values)
        elif intent_type == IntentType.AVERAGE:
            value = sum(values) / len(values)
        elif intent_type == IntentType.MAX:
            value = max(values)
        elif intent_type == IntentType.MIN:
            value = min(values)
        else:
            return AggregateResult(
                operation=intent_type,
                error=f"Unsupported aggregate: {intent_type.value}",
            )

        logger.debug(f"{intent_type.value}({field}) over {len(values)} values = {value}")
        return AggregateResult(operation=intent_type, value=value, field=field, sample_size=len(values))

    def detect_numeric_field(self, matches: List[Record], mapping: ColumnMappingRegistry) -> str:
        if not matches:
            raise NoNumericField("No numeric field found: there are no matching records")

        sample = matches[:self.sample_size]
        for header in data_fields(matches[0]):
            if mapping.role_of(header) in NON_NUMERIC_ROLES:
                continue
            if any(to_number(r.get(header)) is not None for r in sample):
                return header

        raise NoNumericField("No numeric field found for this calculation")
