"""
Column Mapping Registry - resolves semantic roles to the headers of a dataset.

Imported spreadsheets arrive with arbitrary headers ("MMT No", "LOCATION",
"Functional Location", ...). The query engine never hardcodes those strings;
it asks the registry for the header playing a role and gets back whichever
alias the active dataset actually uses, spelled as the dataset spells it.

A registry is a pure function of one header set. Build a new one whenever the
active dataset changes.
"""

from enum import Enum
from typing import Dict, Iterable, List, Optional, Tuple

from recordqa.store.base import Record, SYSTEM_FIELDS, data_fields


class SemanticRole(str, Enum):
    """Domain field categories the query engine understands."""
    DATE = "date"
    LOCATION = "location"
    FUNCTIONAL_LOCATION = "functional_location"
    ACTION = "action"
    DESCRIPTION = "description"
    IDENTIFIER = "identifier"
    SEQUENCE = "sequence"


# Ordered aliases per role; the first alias present in the dataset wins
ROLE_ALIASES: Dict[SemanticRole, Tuple[str, ...]] = {
    SemanticRole.DATE: ("Date", "Reported Date", "Report Date", "Reported On"),
    SemanticRole.LOCATION: ("Location", "Address", "Site"),
    SemanticRole.FUNCTIONAL_LOCATION: ("Functional Location", "Func Location", "FLOC"),
    SemanticRole.ACTION: ("Action", "Action Taken", "Action Required"),
    SemanticRole.DESCRIPTION: ("Description", "Problem Description", "Details"),
    SemanticRole.IDENTIFIER: ("Identifier", "MMT No", "MMT", "MMT Number", "Work Order", "ID"),
    SemanticRole.SEQUENCE: ("Sr. No", "Sr No", "Sr", "S.No", "Serial No"),
}


class ColumnMappingRegistry:
    """Case-insensitive role -> header lookup over one dataset's headers."""

    def __init__(
        self,
        headers: Iterable[str],
        aliases: Optional[Dict[SemanticRole, Tuple[str, ...]]] = None,
    ):
        self.aliases = aliases or ROLE_ALIASES
        self._headers: List[str] = []
        self._by_lower: Dict[str, str] = {}
        for header in headers:
            if header is None:
                continue
            text = str(header).strip()
            if not text or text in SYSTEM_FIELDS:
                continue
            self._headers.append(text)
            # First spelling wins when two headers differ only by case
            self._by_lower.setdefault(text.lower(), text)

    @classmethod
    def from_record(cls, record: Record) -> "ColumnMappingRegistry":
        """Build a registry from a sampled record's keys."""
        return cls(data_fields(record))

    @property
    def headers(self) -> List[str]:
        return list(self._headers)

    def resolve(self, role: SemanticRole) -> Optional[str]:
        """Header playing `role` in this dataset, or None."""
        for alias in self.aliases.get(role, ()):
            header = self._by_lower.get(alias.lower())
            if header:
                return header
        return None

    def resolve_first(self, roles: Iterable[SemanticRole]) -> Optional[str]:
        """First resolvable header among `roles`, in order."""
        for role in roles:
            header = self.resolve(role)
            if header:
                return header
        return None

    def role_of(self, header: str) -> Optional[SemanticRole]:
        """Reverse lookup: which role a header plays, if any."""
        for role in SemanticRole:
            if self.resolve(role) == header:
                return role
        return None

    def to_dict(self) -> Dict[str, Optional[str]]:
        return {role.value: self.resolve(role) for role in SemanticRole}

    def __repr__(self) -> str:
        return f"ColumnMappingRegistry(headers={self._headers!r})"
