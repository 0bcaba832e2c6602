"""
Intent Classifier - assigns exactly one intent to a raw question.

The classifier is a rule table, not a model. Rules are evaluated top to bottom
against the lower-cased text and the first matching pattern decides. Order
matters: the specific record-lookup intents (identifier, location, date,
action) come before the generic aggregate and list intents, so
"what is the identifier of 100 main street" is an identifier lookup and not a
list request.
"""
import re
from typing import List, Optional, Pattern, Tuple

from recordqa.nlq.models import IntentType
from recordqa.utils.log_utils import get_logger

logger = get_logger(__name__)

_MONTHS = (
    r"(?:january|february|march|april|may|june|july|august|september|october|november|december"
    r"|jan|feb|mar|apr|jun|jul|aug|sep|sept|oct|nov|dec)"
)
_STREET_SUFFIX = r"(?:street|avenue|road|circle|lane|court)"

# =============================================================================
# RULE TABLE
# Ordered (intent, patterns). The first intent with a matching pattern wins.
# =============================================================================
INTENT_RULES: List[Tuple[IntentType, List[str]]] = [
    (IntentType.IDENTIFIER, [
        r"\bidentifier\s+(?:number|no|for|of)\b",
        r"\b(?:give|show)\s+me\s+(?:the\s+)?identifier\b",
        r"\bwhat\s+is\s+(?:the\s+)?identifier\b",
        r"\bmmt\s+(?:number|no)\b",
        r"\b(?:give|show)\s+me\s+(?:the\s+)?mmt\b",
        r"\bwhat\s+is\s+(?:the\s+)?mmt\b",
        r"\bmmt\s+(?:for|of)\b",
    ]),
    (IntentType.LOCATION, [
        r"^where\b",
        r"\bwhere\s+(?:is|are|was|were)\b",
        r"\blocation\s+of\b",
        r"\blocated\s+at\b",
        rf"\bat\s+.*\b{_STREET_SUFFIX}\b",
    ]),
    (IntentType.DATE, [
        r"^when\b",
        r"\bwhen\s+(?:was|were)\b",
        r"\bdate\s+of\b",
        r"\breported\s+on\b",
        r"\bon\s+\d{1,4}[-/]\d{1,2}[-/]\d{1,4}\b",
        rf"\bon\s+(?:the\s+)?(?:\d{{1,2}}(?:st|nd|rd|th)?\s+)?{_MONTHS}\b",
    ]),
    (IntentType.ACTION, [
        r"^what\s+(?:issue|problem)\b",
        r"\bwhat\s+action\b",
        r"\bwhat\s+was\s+the\s+(?:issue|problem)\b",
        r"\bwhat\s+problem\s+occurred\b",
        r"\bfind\s+all\s+records\b",
        r"\bdescription\s+says\b",
        r"\bmaintenance\s+activities\b",
        r"\bservice\s+requests\b",
        r"\bwork\s+done\b",
        r"\binstances\s+of\b",
    ]),
    (IntentType.COUNT, [
        r"\bcount\b",
        r"\bhow\s+many\b",
        r"\btotal\s+number\b",
        r"\bnumber\s+of\b",
    ]),
    (IntentType.SUM, [
        r"\bsum\b",
        r"\btotal\b",
        r"\badd\s+up\b",
    ]),
    (IntentType.AVERAGE, [
        r"\baverage\b",
        r"\bmean\b",
        r"\bavg\b",
    ]),
    (IntentType.MAX, [
        r"\bmaximum\b",
        r"\bmax\b",
        r"\bhighest\b",
    ]),
    (IntentType.MIN, [
        r"\bminimum\b",
        r"\bmin\b",
        r"\blowest\b",
    ]),
    (IntentType.TREND, [
        r"\btrends?\b",
        r"\bover\s+time\b",
        r"\bchart\b",
    ]),
    (IntentType.LIST, [
        r"\bwhat\b",
        r"\bwhich\b",
        r"\bshow\s+me\b",
        r"\btell\s+me\b",
        r"\blist\b",
    ]),
]


class IntentClassifier:
    """Ordered-rule intent classifier. Never raises."""

    def __init__(self, rules: Optional[List[Tuple[IntentType, List[str]]]] = None):
        self.rules: List[Tuple[IntentType, List[Pattern]]] = [
            (intent, [re.compile(p) for p in patterns])
            for intent, patterns in (rules or INTENT_RULES)
        ]

    def classify(self, text: Optional[str]) -> IntentType:
        query = (text or "").lower().strip()
        if not query:
            return IntentType.LIST

        for intent, patterns in self.rules:
            for pattern in patterns:
                if pattern.search(query):
                    logger.debug(f"Intent {intent.value} matched by {pattern.pattern!r}")
                    return intent

        return IntentType.LIST
