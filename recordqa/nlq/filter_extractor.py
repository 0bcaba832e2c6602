"""
Filter Extractor - derives predicates, ordering and limits from question text.

No LLM required - all extraction uses pattern matching. The matchers are
independent and may all fire on the same question:

- Dates (ISO, slash, dash)           -> equals   on the date role
- Functional-location codes          -> equals   on the functional-location role
- Street/address phrases             -> contains on the location role
- 10-12 digit runs                   -> equals   on the identifier role
- Known action phrases               -> contains on the action role
- Remaining keywords                 -> contains on the intent's search role
- latest/recent/last, oldest/first   -> sort on ingestion time, "last N" -> limit

A predicate whose role is not present in the dataset is dropped.
"""
import re
from typing import Dict, List, Optional, Tuple

from recordqa.nlq.column_mapping import ColumnMappingRegistry, SemanticRole
from recordqa.nlq.errors import ErrorKind
from recordqa.nlq.models import IntentType, Operator, Predicate, QueryIntent, SortOrder
from recordqa.store.base import INGESTED_AT_FIELD
from recordqa.utils.log_utils import get_logger

logger = get_logger(__name__)

# =============================================================================
# ENTITY PATTERNS (evaluated on lower-cased text)
# =============================================================================
DATE_PATTERNS = [
    re.compile(r"(?<![\d-])(\d{4}-\d{2}-\d{2})(?![\d-])"),   # 2025-06-24
    re.compile(r"(?<![\d/])(\d{1,2}/\d{1,2}/\d{4})(?![\d/])"),  # 06/24/2025
    re.compile(r"(?<![\d-])(\d{1,2}-\d{1,2}-\d{4})(?![\d-])"),  # 06-24-2025
]

# DHH-DSC-LVCR-00408: alphanumeric segments carrying a letter, then digits
_CODE_SEGMENT = r"[a-z0-9]*[a-z][a-z0-9]*"
FUNCTIONAL_LOCATION_PATTERN = re.compile(
    rf"\b({_CODE_SEGMENT}-{_CODE_SEGMENT}-{_CODE_SEGMENT}-\d+)\b"
)

IDENTIFIER_PATTERN = re.compile(r"(?<!\d)(\d{10,12})")

STREET_SUFFIXES = ("street", "avenue", "road", "circle", "lane", "court")
_SUFFIX = "(?:" + "|".join(STREET_SUFFIXES) + ")"

# Prioritized: a numbered address beats a bare street name
ADDRESS_PATTERNS = [
    re.compile(rf"\b(\d{{1,6}}\s+(?:[a-z0-9]+\s+){{1,3}}{_SUFFIX})\b"),  # 1172 eleventh street
    re.compile(rf"\b((?:[a-z0-9]+\s+){{1,2}}{_SUFFIX})\b"),              # tenth street
]

# Multi-word action phrases that must survive stop-word stripping
ACTION_PHRASES = [
    re.compile(r"\bclean\s+air\s+filter\b"),
    re.compile(r"\breplace\s+belt\b"),
    re.compile(r"\bac\s+not\s+working\b"),
    re.compile(r"\bcleaning\s+job\b"),
    re.compile(r"\bclean\s+all\s+unit\b"),
    re.compile(r"\bevent,?\s+stand\s*by\b"),
]

LAST_N_PATTERN = re.compile(r"\blast\s+(\d+)\b")
DESCENDING_PATTERN = re.compile(r"\b(?:latest|recent|last)\b")
ASCENDING_PATTERN = re.compile(r"\b(?:oldest|first)\b")

TOKEN_PATTERN = re.compile(r"[a-z0-9]+(?:[-'/][a-z0-9]+)*")

MONTH_NAMES = frozenset({
    "january", "february", "march", "april", "may", "june", "july", "august",
    "september", "october", "november", "december",
})

STOP_WORDS = frozenset({
    # question words
    "where", "when", "what", "which", "who", "why", "how", "many", "much",
    # articles, pronouns, prepositions
    "the", "an", "of", "for", "to", "with", "by", "from", "about", "at", "in", "on",
    "and", "or", "me", "you", "all", "any", "there", "this", "that", "these", "those",
    # generic verbs
    "is", "are", "was", "were", "be", "been", "has", "have", "had", "did", "does",
    "can", "could", "give", "show", "list", "find", "tell", "need", "please",
    "located", "reported", "found", "happened", "occurred", "taken", "required", "says",
    # domain nouns that name a field or the dataset rather than a value
    "issue", "issues", "problem", "problems", "action", "actions", "record", "records",
    "identifier", "identifiers", "mmt", "number", "numbers", "date", "dates",
    "location", "locations", "description", "details", "summary", "count", "total",
    "work", "done", "job", "jobs", "service", "requests", "times", "instances",
    "maintenance", "activities", "technician", "technicians", "standby",
    "latest", "recent", "last", "oldest", "first",
} | set(STREET_SUFFIXES))

# Roles searched by leftover keywords, per intent; the first resolvable role is used
SEARCH_ROLES: Dict[IntentType, Tuple[SemanticRole, ...]] = {
    IntentType.IDENTIFIER: (SemanticRole.LOCATION, SemanticRole.FUNCTIONAL_LOCATION),
    IntentType.LOCATION: (SemanticRole.ACTION, SemanticRole.DESCRIPTION),
    IntentType.ACTION: (SemanticRole.ACTION, SemanticRole.DESCRIPTION),
    IntentType.DATE: (SemanticRole.DATE,),
}


def _normalize_phrase(text: str) -> str:
    return " ".join(text.split())


def _cut(text: str, span: Tuple[int, int]) -> str:
    start, end = span
    return text[:start] + " " + text[end:]


class FilterExtractor:
    """Regex-driven predicate extraction against a dataset's column mapping."""

    def extract(
        self,
        query: str,
        intent_type: IntentType,
        mapping: ColumnMappingRegistry,
    ) -> QueryIntent:
        text = (query or "").lower()
        intent = QueryIntent(type=intent_type)
        # Text with equality-captured entities removed, fed to keyword extraction
        keyword_text = text

        date_match = self._match_date(text)
        if date_match:
            self._add(intent, mapping, SemanticRole.DATE, Operator.EQUALS, date_match.group(1))
            keyword_text = _cut(keyword_text, date_match.span(1))

        code_match = FUNCTIONAL_LOCATION_PATTERN.search(keyword_text)
        if code_match:
            code = code_match.group(1).upper()
            self._add(intent, mapping, SemanticRole.FUNCTIONAL_LOCATION, Operator.EQUALS, code)
            keyword_text = _cut(keyword_text, code_match.span(1))

        identifier_match = IDENTIFIER_PATTERN.search(keyword_text)
        if identifier_match:
            identifier = identifier_match.group(1)
            end = identifier_match.end(1)
            if end < len(keyword_text) and keyword_text[end].isdigit():
                logger.warning(
                    f"Identifier '{identifier}' is followed by more digits in '{query}'; "
                    f"the identifier may be longer than 12 digits"
                )
            self._add(intent, mapping, SemanticRole.IDENTIFIER, Operator.EQUALS, identifier)
            keyword_text = _cut(keyword_text, identifier_match.span(1))

        address = self._match_address(keyword_text)
        if address:
            self._add(intent, mapping, SemanticRole.LOCATION, Operator.CONTAINS, address.upper())

        action_phrases = self._match_action_phrases(keyword_text)
        for phrase in action_phrases:
            self._add(intent, mapping, SemanticRole.ACTION, Operator.CONTAINS, phrase.upper())

        self._apply_recency(text, intent)
        keyword_text = LAST_N_PATTERN.sub(" ", keyword_text)

        phrases = ([address] if address else []) + action_phrases
        intent.search_terms = self._search_terms(keyword_text, phrases)
        self._add_keyword_predicates(text, intent, mapping)

        logger.debug(f"Extracted {len(intent.filters)} predicates from '{query}': {intent.to_dict()}")
        return intent

    # -------------------------------------------------------------------------
    # Matchers
    # -------------------------------------------------------------------------

    def _match_date(self, text: str) -> Optional[re.Match]:
        for pattern in DATE_PATTERNS:
            match = pattern.search(text)
            if match:
                return match
        return None

    def _match_address(self, text: str) -> Optional[str]:
        for pattern in ADDRESS_PATTERNS:
            for match in pattern.finditer(text):
                words = match.group(1).split()
                while words and words[0] in STOP_WORDS and not words[0].isdigit():
                    words.pop(0)
                if len(words) < 2:
                    continue
                return " ".join(words)
        return None

    def _match_action_phrases(self, text: str) -> List[str]:
        phrases = []
        for pattern in ACTION_PHRASES:
            match = pattern.search(text)
            if match:
                phrases.append(_normalize_phrase(match.group(0)))
        return phrases

    def _apply_recency(self, text: str, intent: QueryIntent) -> None:
        if DESCENDING_PATTERN.search(text):
            intent.sort_field = INGESTED_AT_FIELD
            intent.sort_order = SortOrder.DESC
        elif ASCENDING_PATTERN.search(text):
            intent.sort_field = INGESTED_AT_FIELD
            intent.sort_order = SortOrder.ASC

        last_n = LAST_N_PATTERN.search(text)
        if last_n:
            intent.limit = int(last_n.group(1))
            intent.sort_field = INGESTED_AT_FIELD
            intent.sort_order = SortOrder.DESC

    # -------------------------------------------------------------------------
    # Keywords
    # -------------------------------------------------------------------------

    def _search_terms(self, text: str, phrases: List[str]) -> List[str]:
        """Stop-word-stripped tokens, with captured phrases re-inserted whole."""
        phrase_tokens = {token for phrase in phrases for token in TOKEN_PATTERN.findall(phrase)}
        terms: List[str] = []
        for token in TOKEN_PATTERN.findall(text):
            if len(token) <= 2 or token in STOP_WORDS or token in phrase_tokens:
                continue
            if token not in terms:
                terms.append(token)
        for phrase in phrases:
            if phrase not in terms:
                terms.append(phrase)
        return terms

    def _add_keyword_predicates(
        self,
        text: str,
        intent: QueryIntent,
        mapping: ColumnMappingRegistry,
    ) -> None:
        roles = SEARCH_ROLES.get(intent.type)
        if not roles or not intent.search_terms:
            return

        if intent.type == IntentType.ACTION and re.search(r"\bdescription\b", text):
            roles = (SemanticRole.DESCRIPTION, SemanticRole.ACTION)

        header = mapping.resolve_first(roles)
        if not header:
            logger.debug(
                f"[{ErrorKind.UNRESOLVED_FIELD.value}] no header for roles "
                f"{[r.value for r in roles]}; keywords {intent.search_terms} dropped"
            )
            return

        existing = {str(p.value).upper() for p in intent.filters}
        for term in intent.search_terms:
            if intent.type == IntentType.DATE and not self._is_date_term(term):
                continue
            value = term.upper()
            if value in existing:
                continue
            intent.filters.append(Predicate(field=header, operator=Operator.CONTAINS, value=value))
            existing.add(value)

    @staticmethod
    def _is_date_term(term: str) -> bool:
        return any(ch.isdigit() for ch in term) or term in MONTH_NAMES

    def _add(
        self,
        intent: QueryIntent,
        mapping: ColumnMappingRegistry,
        role: SemanticRole,
        operator: Operator,
        value: str,
    ) -> None:
        header = mapping.resolve(role)
        if not header:
            logger.debug(f"[{ErrorKind.UNRESOLVED_FIELD.value}] role {role.value} not in dataset; dropped '{value}'")
            return
        predicate = Predicate(field=header, operator=operator, value=value)
        if predicate not in intent.filters:
            intent.filters.append(predicate)
