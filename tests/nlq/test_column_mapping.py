"""
Unit tests for the Column Mapping Registry.

Tests role resolution against arbitrary, case-varied header sets.
"""

from recordqa.nlq.column_mapping import ColumnMappingRegistry, SemanticRole


MAINTENANCE_HEADERS = ["Sr. No", "MMT No", "Date", "Functional Location", "Location", "Action", "Description"]


class TestColumnMappingRegistry:
    """Tests for ColumnMappingRegistry.resolve()."""

    def setup_method(self):
        self.mapping = ColumnMappingRegistry(MAINTENANCE_HEADERS)

    def test_resolves_every_role_present(self):
        assert self.mapping.resolve(SemanticRole.IDENTIFIER) == "MMT No"
        assert self.mapping.resolve(SemanticRole.DATE) == "Date"
        assert self.mapping.resolve(SemanticRole.FUNCTIONAL_LOCATION) == "Functional Location"
        assert self.mapping.resolve(SemanticRole.LOCATION) == "Location"
        assert self.mapping.resolve(SemanticRole.ACTION) == "Action"
        assert self.mapping.resolve(SemanticRole.DESCRIPTION) == "Description"
        assert self.mapping.resolve(SemanticRole.SEQUENCE) == "Sr. No"

    def test_case_varied_alias_resolves_to_present_header(self):
        """An upper-case header is returned exactly as the dataset spells it."""
        mapping = ColumnMappingRegistry(["LOCATION", "ACTION"])
        assert mapping.resolve(SemanticRole.LOCATION) == "LOCATION"
        assert mapping.resolve(SemanticRole.ACTION) == "ACTION"

    def test_missing_role_resolves_to_none(self):
        mapping = ColumnMappingRegistry(["Location"])
        assert mapping.resolve(SemanticRole.DATE) is None
        assert mapping.resolve(SemanticRole.IDENTIFIER) is None

    def test_alias_order_decides_between_candidates(self):
        """'Identifier' is listed before 'ID', so it wins when both exist."""
        mapping = ColumnMappingRegistry(["ID", "Identifier"])
        assert mapping.resolve(SemanticRole.IDENTIFIER) == "Identifier"

    def test_headers_are_trimmed_and_blanks_dropped(self):
        mapping = ColumnMappingRegistry(["  Location ", "", None, "Date"])
        assert mapping.headers == ["Location", "Date"]
        assert mapping.resolve(SemanticRole.LOCATION) == "Location"

    def test_system_fields_are_ignored(self):
        mapping = ColumnMappingRegistry(["_record_id", "_ingested_at", "Location"])
        assert mapping.headers == ["Location"]

    def test_from_record_uses_data_fields(self):
        record = {
            "_record_id": "maintenance_xlsx_1",
            "_row_number": 1,
            "Work Order": "1234567890",
            "Address": "100 MAIN STREET",
        }
        mapping = ColumnMappingRegistry.from_record(record)
        assert mapping.resolve(SemanticRole.IDENTIFIER) == "Work Order"
        assert mapping.resolve(SemanticRole.LOCATION) == "Address"

    def test_resolve_first_skips_unresolvable_roles(self):
        mapping = ColumnMappingRegistry(["Functional Location"])
        header = mapping.resolve_first([SemanticRole.LOCATION, SemanticRole.FUNCTIONAL_LOCATION])
        assert header == "Functional Location"

    def test_role_of_reverse_lookup(self):
        assert self.mapping.role_of("MMT No") == SemanticRole.IDENTIFIER
        assert self.mapping.role_of("Sr. No") == SemanticRole.SEQUENCE
        assert self.mapping.role_of("Cost") is None

    def test_to_dict_lists_all_roles(self):
        mapping = ColumnMappingRegistry(["Location"])
        result = mapping.to_dict()
        assert result["location"] == "Location"
        assert result["date"] is None
        assert set(result) == {role.value for role in SemanticRole}

    def test_registries_do_not_share_state(self):
        """A registry built for one dataset never answers for another."""
        first = ColumnMappingRegistry(["Location"])
        second = ColumnMappingRegistry(["Address"])
        assert first.resolve(SemanticRole.LOCATION) == "Location"
        assert second.resolve(SemanticRole.LOCATION) == "Address"
