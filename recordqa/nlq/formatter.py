"""
Response Formatter - turns matches and an intent into a conversational answer.

Branches on intent and on match cardinality:
- zero matches       -> intent-specific headline plus a "No Results" diagnostic
- count / aggregates -> templated sentence around the scalar
- lookups            -> one match is named verbatim; several are narrowed on
                        the literal search phrase, else summarized
- trend / list       -> counts and distinct-value summaries

Every branch returns a complete string. Record values are always read through
the ColumnMappingRegistry, never through literal header names.
"""

from collections import Counter
from typing import Any, Iterable, List, Optional

from recordqa.core.constants import NARROW_LIST_LIMIT, SUMMARY_VALUE_LIMIT
from recordqa.nlq.column_mapping import ColumnMappingRegistry, SemanticRole
from recordqa.nlq.models import AggregateResult, IntentType, Operator, QueryIntent
from recordqa.store.base import CollectionInfo, Record, data_fields
from recordqa.utils.log_utils import get_logger

logger = get_logger(__name__)

TREND_BREAKDOWN_LIMIT = 10

NO_RESULTS_SUGGESTIONS = [
    "Check spelling of location names",
    'Try different variations (e.g., "TENTH STREET" vs "10TH STREET")',
    'Use "Show all locations" to see available data',
]

AGGREGATE_LABELS = {
    IntentType.SUM: "total sum",
    IntentType.AVERAGE: "average value",
    IntentType.MAX: "highest value",
    IntentType.MIN: "lowest value",
}

LOCATION_ROLES = (SemanticRole.LOCATION, SemanticRole.FUNCTIONAL_LOCATION)


def format_number(value: float) -> str:
    """1250.0 -> "1,250", 12.345 -> "12.35"."""
    if float(value).is_integer():
        return f"{int(value):,}"
    return f"{value:,.2f}"


def distinct(values: Iterable[Any]) -> List[str]:
    """Non-empty values as strings, first occurrence order."""
    seen: List[str] = []
    for value in values:
        if value is None:
            continue
        text = str(value).strip()
        if text and text not in seen:
            seen.append(text)
    return seen


def plural(count: int, word: str, suffix: str = "s") -> str:
    return f"{count} {word}" if count == 1 else f"{count} {word}{suffix}"


class ResponseFormatter:
    """Builds natural-language answers. Never raises."""

    def __init__(
        self,
        summary_limit: int = SUMMARY_VALUE_LIMIT,
        narrow_limit: int = NARROW_LIST_LIMIT,
    ):
        self.summary_limit = summary_limit
        self.narrow_limit = narrow_limit

    def format(
        self,
        query: str,
        intent: QueryIntent,
        matches: List[Record],
        mapping: ColumnMappingRegistry,
        aggregate: Optional[AggregateResult] = None,
    ) -> str:
        text = (query or "").lower()

        if not matches:
            return f"{self._empty_headline(text, intent)}\n\n{self.no_results(intent)}"

        if intent.type == IntentType.COUNT:
            return self._format_count(text, len(matches))
        if intent.type in AGGREGATE_LABELS:
            return self._format_aggregate(intent.type, aggregate)
        if intent.type == IntentType.IDENTIFIER:
            return self._format_identifier(intent, matches, mapping)
        if intent.type == IntentType.LOCATION:
            return self._format_location(intent, matches, mapping)
        if intent.type == IntentType.DATE:
            return self._format_date(intent, matches, mapping)
        if intent.type == IntentType.ACTION:
            return self._format_action(intent, matches, mapping)
        if intent.type == IntentType.TREND:
            return self._format_trend(matches, mapping)
        return self._format_list(matches, mapping)

    # -------------------------------------------------------------------------
    # Shared helpers
    # -------------------------------------------------------------------------

    def summarize(self, values: List[str]) -> str:
        """Up to `summary_limit` values, then "and N more"."""
        if len(values) <= self.summary_limit:
            return ", ".join(values)
        shown = ", ".join(values[:self.summary_limit])
        return f"{shown} and {len(values) - self.summary_limit} more"

    def _value(self, record: Record, mapping: ColumnMappingRegistry, *roles: SemanticRole) -> str:
        for role in roles:
            header = mapping.resolve(role)
            if header:
                value = record.get(header)
                if value is not None and str(value).strip():
                    return str(value).strip()
        return ""

    def _distinct(self, records: List[Record], mapping: ColumnMappingRegistry, *roles: SemanticRole) -> List[str]:
        return distinct(self._value(r, mapping, *roles) for r in records)

    def _details(self, record: Record, mapping: ColumnMappingRegistry) -> str:
        """'"ACTION" with description: "..."' with missing parts left out."""
        action = self._value(record, mapping, SemanticRole.ACTION)
        description = self._value(record, mapping, SemanticRole.DESCRIPTION)
        if action and description:
            return f'"{action}" with description: "{description}"'
        if action:
            return f'"{action}"'
        if description:
            return f'an issue described as "{description}"'
        return "an unspecified action"

    def _identifier_note(self, record: Record, mapping: ColumnMappingRegistry) -> str:
        identifier = self._value(record, mapping, SemanticRole.IDENTIFIER)
        return f" (Identifier: {identifier})" if identifier else ""

    def _subject(self, intent: QueryIntent) -> str:
        phrase = intent.search_phrase
        return f'"{phrase}"' if phrase else "your query"

    def _narrow(
        self,
        intent: QueryIntent,
        matches: List[Record],
        mapping: ColumnMappingRegistry,
        *roles: SemanticRole,
    ) -> List[Record]:
        """Re-filter on the literal search phrase; returns matches unchanged if it narrows to nothing."""
        phrase = intent.search_phrase.upper()
        if not phrase:
            return matches
        narrowed = []
        for record in matches:
            value = self._value(record, mapping, *roles).upper()
            if value and phrase in value:
                narrowed.append(record)
        return narrowed or matches

    # -------------------------------------------------------------------------
    # Zero matches
    # -------------------------------------------------------------------------

    def _empty_headline(self, text: str, intent: QueryIntent) -> str:
        subject = self._subject(intent)
        if intent.type == IntentType.COUNT:
            return self._format_count(text, 0)
        if intent.type in AGGREGATE_LABELS:
            return f"There are no matching records to calculate the {AGGREGATE_LABELS[intent.type]} from."
        if intent.type == IntentType.IDENTIFIER:
            return f"I couldn't find any identifiers for {subject}."
        if intent.type == IntentType.LOCATION:
            return f"I couldn't find any locations for {subject}."
        if intent.type == IntentType.DATE:
            return f"I couldn't find any dates for {subject}."
        if intent.type == IntentType.ACTION:
            return f"I couldn't find any issues or actions for {subject}."
        return "I couldn't find any records matching your query."

    def no_results(self, intent: QueryIntent) -> str:
        """Diagnostic block listing applied filters and generic suggestions."""
        lines = ["**No Results**: No records found matching your query.", "", "**Applied Filters:**"]
        if intent.filters:
            lines.extend(f"- {p.describe()}" for p in intent.filters)
        else:
            lines.append("- none")
        lines.extend(["", "**Suggestions:**"])
        lines.extend(f"- {s}" for s in NO_RESULTS_SUGGESTIONS)
        return "\n".join(lines)

    # -------------------------------------------------------------------------
    # Scalars
    # -------------------------------------------------------------------------

    def _format_count(self, text: str, count: int) -> str:
        if "issue" in text or "problem" in text:
            noun, verb = "issue", "reported"
        elif "location" in text:
            noun, verb = "location", "found"
        else:
            noun, verb = "record", "found"

        if count == 0:
            return f"There are no {noun}s {verb}."
        if count == 1:
            return f"There is 1 {noun} {verb}."
        return f"There are {count} {noun}s {verb}."

    def _format_aggregate(self, intent_type: IntentType, aggregate: Optional[AggregateResult]) -> str:
        label = AGGREGATE_LABELS[intent_type]
        if aggregate is None or not aggregate.success or aggregate.value is None:
            reason = aggregate.error if aggregate and aggregate.error else "no aggregate was computed"
            return f"I couldn't calculate the {label}: {reason}."
        return f"The {label} of {aggregate.field} is {format_number(aggregate.value)}."

    # -------------------------------------------------------------------------
    # Lookups
    # -------------------------------------------------------------------------

    def _identifier_sentence(self, record: Record, mapping: ColumnMappingRegistry) -> str:
        identifier = self._value(record, mapping, SemanticRole.IDENTIFIER) or "(no identifier)"
        location = self._value(record, mapping, *LOCATION_ROLES) or "an unknown location"
        return (
            f"Identifier {identifier} is located at {location}. "
            f"The action required is {self._details(record, mapping)}."
        )

    def _format_identifier(self, intent: QueryIntent, matches: List[Record], mapping: ColumnMappingRegistry) -> str:
        if len(matches) == 1:
            return self._identifier_sentence(matches[0], mapping)

        narrowed = self._narrow(intent, matches, mapping, *LOCATION_ROLES)
        if len(narrowed) == 1:
            return self._identifier_sentence(narrowed[0], mapping)

        if len(narrowed) < len(matches) and len(narrowed) <= self.narrow_limit:
            identifiers = self._distinct(narrowed, mapping, SemanticRole.IDENTIFIER)
            locations = self._distinct(narrowed, mapping, *LOCATION_ROLES)
            return (
                f"Found {len(narrowed)} identifiers for {self._subject(intent)}: "
                f"{', '.join(identifiers)} at {', '.join(locations)}."
            )

        identifiers = self._distinct(matches, mapping, SemanticRole.IDENTIFIER)
        if len(identifiers) == 1:
            locations = self._distinct(matches, mapping, *LOCATION_ROLES)
            return f"Identifier {identifiers[0]} is located at {self.summarize(locations)}."
        if len(identifiers) <= self.summary_limit:
            return f"Found {plural(len(identifiers), 'identifier')}: {', '.join(identifiers)}."
        return f"Found {len(identifiers)} identifiers. The main ones are: {self.summarize(identifiers)}."

    def _address_filter(self, intent: QueryIntent, mapping: ColumnMappingRegistry) -> Optional[str]:
        predicates = intent.predicates_for(mapping.resolve(SemanticRole.LOCATION), Operator.CONTAINS)
        return str(predicates[0].value) if predicates else None

    def _format_location(self, intent: QueryIntent, matches: List[Record], mapping: ColumnMappingRegistry) -> str:
        address = self._address_filter(intent, mapping)

        if address:
            if len(matches) == 1:
                record = matches[0]
                location = self._value(record, mapping, *LOCATION_ROLES)
                return (
                    f"At {location}, the last action was {self._details(record, mapping)}"
                    f"{self._identifier_note(record, mapping)}."
                )
            actions = self._distinct(matches, mapping, SemanticRole.ACTION)
            return (
                f"At {address}, there were {len(matches)} maintenance activities. "
                f"The actions included: {self.summarize(actions)}."
            )

        narrowed = self._narrow(intent, matches, mapping, SemanticRole.ACTION, SemanticRole.DESCRIPTION)
        subject = self._subject(intent)
        if len(narrowed) == 1:
            record = narrowed[0]
            location = self._value(record, mapping, *LOCATION_ROLES) or "an unknown location"
            return f"The {subject} record is located at {location}{self._identifier_note(record, mapping)}."

        locations = self._distinct(narrowed, mapping, *LOCATION_ROLES)
        if len(locations) == 1:
            return f"The {subject} records are located at {locations[0]}."
        return (
            f"The {subject} records were reported at {plural(len(locations), 'location')}: "
            f"{self.summarize(locations)}."
        )

    def _format_date(self, intent: QueryIntent, matches: List[Record], mapping: ColumnMappingRegistry) -> str:
        if len(matches) == 1:
            record = matches[0]
            date = self._value(record, mapping, SemanticRole.DATE) or "an unknown date"
            location = self._value(record, mapping, *LOCATION_ROLES) or "an unknown location"
            return (
                f"On {date}, there was 1 issue logged at {location}: "
                f"{self._details(record, mapping)}{self._identifier_note(record, mapping)}."
            )

        dates = self._distinct(matches, mapping, SemanticRole.DATE)
        if len(dates) == 1:
            locations = self._distinct(matches, mapping, *LOCATION_ROLES)
            actions = self._distinct(matches, mapping, SemanticRole.ACTION)
            return (
                f"On {dates[0]}, there were {len(matches)} issues reported across "
                f"{plural(len(locations), 'location')}. The main actions required were: "
                f"{self.summarize(actions)}."
            )
        return (
            f"The {self._subject(intent)} records were reported on {plural(len(dates), 'date')}: "
            f"{self.summarize(dates)}."
        )

    def _format_action(self, intent: QueryIntent, matches: List[Record], mapping: ColumnMappingRegistry) -> str:
        subject = self._subject(intent)
        narrowed = self._narrow(intent, matches, mapping, SemanticRole.ACTION, SemanticRole.DESCRIPTION)

        if len(narrowed) == 1:
            record = narrowed[0]
            location = self._value(record, mapping, *LOCATION_ROLES) or "an unknown location"
            return (
                f"Found 1 record matching {subject}: {self._details(record, mapping)} "
                f"at {location}{self._identifier_note(record, mapping)}."
            )

        actions = self._distinct(narrowed, mapping, SemanticRole.ACTION)
        locations = self._distinct(narrowed, mapping, *LOCATION_ROLES)
        if len(actions) == 1:
            return (
                f"Found {len(narrowed)} records matching {subject}, all \"{actions[0]}\", "
                f"at {plural(len(locations), 'location')}."
            )
        return (
            f"Found {len(narrowed)} records matching {subject}. The actions included: "
            f"{self.summarize(actions)} across {plural(len(locations), 'location')}."
        )

    # -------------------------------------------------------------------------
    # Trend / list
    # -------------------------------------------------------------------------

    def _format_trend(self, matches: List[Record], mapping: ColumnMappingRegistry) -> str:
        answer = f"I found {plural(len(matches), 'record')} for trend analysis."
        if not mapping.resolve(SemanticRole.DATE):
            return f"{answer} No date column is available for a per-date breakdown."

        per_date = Counter(self._value(r, mapping, SemanticRole.DATE) or "no date" for r in matches)
        dates = sorted(per_date)
        lines = [f"- {date}: {per_date[date]}" for date in dates[:TREND_BREAKDOWN_LIMIT]]
        if len(dates) > TREND_BREAKDOWN_LIMIT:
            lines.append(f"- and {len(dates) - TREND_BREAKDOWN_LIMIT} more dates")
        return answer + "\n\n**Records per date:**\n" + "\n".join(lines)

    def _format_list(self, matches: List[Record], mapping: ColumnMappingRegistry) -> str:
        if len(matches) == 1:
            record = matches[0]
            identifier = self._value(record, mapping, SemanticRole.IDENTIFIER)
            location = self._value(record, mapping, *LOCATION_ROLES) or "an unknown location"
            subject = f"identifier {identifier}" if identifier else "a record"
            return f"I found 1 record. It's for {subject} at {location}, involving {self._details(record, mapping)}."

        actions = self._distinct(matches, mapping, SemanticRole.ACTION)
        locations = self._distinct(matches, mapping, *LOCATION_ROLES)
        answer = f"I found {len(matches)} records across {plural(len(locations), 'location')}"
        if locations:
            answer += f" ({self.summarize(locations)})"
        answer += "."
        if actions:
            answer += f" The main actions required were: {self.summarize(actions)}."
        return answer

    # -------------------------------------------------------------------------
    # Failures, directories, status
    # -------------------------------------------------------------------------

    def failure(self, message: str) -> str:
        return f"I'm sorry, I encountered an error while searching: {message}"

    def directory(self, label: str, values: List[str]) -> str:
        if not values:
            return f"No {label} found in the data."
        lines = [f"**Available {label}** ({len(values)} unique):", ""]
        lines.extend(f"{index}. {value}" for index, value in enumerate(values, start=1))
        return "\n".join(lines)

    def status(self, info: CollectionInfo, sample: Optional[Record], mapping: ColumnMappingRegistry) -> str:
        lines = [
            "**Dataset Status**",
            "",
            f"**Collection:** {info.collection_id}",
            f"**File:** {info.source_file_name}",
            f"**Records:** {info.row_count}",
        ]
        if sample:
            lines.extend(["", "**Available Fields:**"])
            lines.extend(f"- {header}" for header in data_fields(sample))
            lines.extend(["", "**Sample Record:**"])
            for role in (SemanticRole.IDENTIFIER, SemanticRole.LOCATION, SemanticRole.DATE):
                value = self._value(sample, mapping, role)
                if value:
                    lines.append(f"- {mapping.resolve(role)}: {value}")
        return "\n".join(lines)
