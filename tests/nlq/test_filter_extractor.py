"""
Unit tests for the Filter Extractor.

Tests each matcher on its own, keyword routing per intent, and recency
modifiers.
"""

import logging

import pytest

from recordqa.nlq.column_mapping import ColumnMappingRegistry
from recordqa.nlq.filter_extractor import FilterExtractor
from recordqa.nlq.models import IntentType, Operator, Predicate, SortOrder


MAINTENANCE_HEADERS = ["Sr. No", "MMT No", "Date", "Functional Location", "Location", "Action", "Description"]


def equals(field, value):
    return Predicate(field=field, operator=Operator.EQUALS, value=value)


def contains(field, value):
    return Predicate(field=field, operator=Operator.CONTAINS, value=value)


class TestEntityMatchers:
    """Tests for dates, codes, identifiers and addresses."""

    def setup_method(self):
        self.extractor = FilterExtractor()
        self.mapping = ColumnMappingRegistry(MAINTENANCE_HEADERS)

    def test_iso_date(self):
        intent = self.extractor.extract("What happened on 2025-06-24?", IntentType.DATE, self.mapping)
        assert intent.filters == [equals("Date", "2025-06-24")]

    @pytest.mark.parametrize("query,expected", [
        ("records from 6/24/2025", "6/24/2025"),
        ("records from 06-24-2025", "06-24-2025"),
    ])
    def test_slash_and_dash_dates(self, query, expected):
        intent = self.extractor.extract(query, IntentType.LIST, self.mapping)
        assert intent.filters == [equals("Date", expected)]

    def test_first_date_wins(self):
        intent = self.extractor.extract("between 2025-06-24 and 2025-07-01", IntentType.LIST, self.mapping)
        assert intent.filters == [equals("Date", "2025-06-24")]

    @pytest.mark.parametrize("digits", ["1234567890", "12345678901", "123456789012"])
    def test_identifier_run(self, digits):
        intent = self.extractor.extract(f"details for {digits}", IntentType.LIST, self.mapping)
        assert intent.filters == [equals("MMT No", digits)]

    def test_short_digit_run_is_not_an_identifier(self):
        intent = self.extractor.extract("details for 123456789", IntentType.LIST, self.mapping)
        assert intent.filters == []

    def test_identifier_under_match_is_logged(self, caplog):
        with caplog.at_level(logging.WARNING):
            intent = self.extractor.extract("details for 1234567890123", IntentType.LIST, self.mapping)
        assert intent.filters == [equals("MMT No", "123456789012")]
        assert "may be longer than 12 digits" in caplog.text

    def test_functional_location_code(self):
        intent = self.extractor.extract("issues at dhh-doc-11th-01172", IntentType.LIST, self.mapping)
        assert intent.filters == [equals("Functional Location", "DHH-DOC-11TH-01172")]

    def test_bare_street_name(self):
        intent = self.extractor.extract(
            "Give me the identifier for main street", IntentType.IDENTIFIER, self.mapping
        )
        assert intent.filters == [contains("Location", "MAIN STREET")]
        assert intent.search_terms == ["main street"]

    def test_numbered_address_beats_bare_street(self):
        intent = self.extractor.extract(
            "What is the identifier of 100 main street", IntentType.IDENTIFIER, self.mapping
        )
        assert intent.filters == [contains("Location", "100 MAIN STREET")]

    def test_suffix_alone_is_not_an_address(self):
        intent = self.extractor.extract("how many on the street", IntentType.COUNT, self.mapping)
        assert intent.filters == []

    def test_matchers_fire_together(self):
        intent = self.extractor.extract(
            "what happened on 2025-06-24 at 1234567890", IntentType.DATE, self.mapping
        )
        assert equals("Date", "2025-06-24") in intent.filters
        assert equals("MMT No", "1234567890") in intent.filters

    def test_unresolved_roles_are_dropped(self):
        mapping = ColumnMappingRegistry(["Location", "Action"])
        intent = self.extractor.extract("What happened on 2025-06-24 to 1234567890?", IntentType.DATE, mapping)
        assert intent.filters == []

    def test_malformed_text_never_raises(self):
        for query in ["", None, "???", "-- // --", "1-2-3-4-5"]:
            intent = self.extractor.extract(query, IntentType.LIST, self.mapping)
            assert intent.type == IntentType.LIST


class TestKeywordPredicates:
    """Tests for keyword routing by intent."""

    def setup_method(self):
        self.extractor = FilterExtractor()
        self.mapping = ColumnMappingRegistry(MAINTENANCE_HEADERS)

    def test_count_has_no_keyword_predicates(self):
        intent = self.extractor.extract("How many issues are there?", IntentType.COUNT, self.mapping)
        assert intent.filters == []

    def test_action_phrase_applies_to_every_intent(self):
        intent = self.extractor.extract("How many replace belt issues are there?", IntentType.COUNT, self.mapping)
        assert intent.filters == [contains("Action", "REPLACE BELT")]

    def test_action_phrase_not_repeated_as_keyword(self):
        intent = self.extractor.extract("Where is the replace belt job?", IntentType.LOCATION, self.mapping)
        assert intent.filters == [contains("Action", "REPLACE BELT")]
        assert intent.search_terms == ["replace belt"]

    def test_identifier_keywords_search_location(self):
        intent = self.extractor.extract("what is the identifier for lemon", IntentType.IDENTIFIER, self.mapping)
        assert intent.filters == [contains("Location", "LEMON")]

    def test_identifier_keywords_fall_back_to_functional_location(self):
        mapping = ColumnMappingRegistry(["MMT No", "Functional Location"])
        intent = self.extractor.extract("what is the identifier for lvcr", IntentType.IDENTIFIER, mapping)
        assert intent.filters == [contains("Functional Location", "LVCR")]

    def test_action_keywords_search_action(self):
        intent = self.extractor.extract("What action was taken for leaking?", IntentType.ACTION, self.mapping)
        assert intent.filters == [contains("Action", "LEAKING")]

    def test_description_mention_searches_description(self):
        intent = self.extractor.extract(
            "Find all records where description says worn", IntentType.ACTION, self.mapping
        )
        assert intent.filters == [contains("Description", "WORN")]

    def test_date_keywords_must_look_like_dates(self):
        intent = self.extractor.extract("When was the june pump issue reported?", IntentType.DATE, self.mapping)
        assert intent.filters == [contains("Date", "JUNE")]

    def test_location_phrase_not_repeated_for_location_intent(self):
        intent = self.extractor.extract(
            "What is the last action at 387 lemon circle?", IntentType.LOCATION, self.mapping
        )
        assert intent.filters == [contains("Location", "387 LEMON CIRCLE")]

    def test_short_tokens_and_stop_words_removed(self):
        intent = self.extractor.extract("what is the ac fault at the pump", IntentType.ACTION, self.mapping)
        assert intent.search_terms == ["fault", "pump"]


class TestRecencyModifiers:
    """Tests for sort and limit extraction."""

    def setup_method(self):
        self.extractor = FilterExtractor()
        self.mapping = ColumnMappingRegistry(MAINTENANCE_HEADERS)

    def test_latest_sorts_descending(self):
        intent = self.extractor.extract("show the latest records", IntentType.LIST, self.mapping)
        assert intent.sort_field == "_ingested_at"
        assert intent.sort_order == SortOrder.DESC
        assert intent.limit is None

    def test_oldest_sorts_ascending(self):
        intent = self.extractor.extract("show the oldest records", IntentType.LIST, self.mapping)
        assert intent.sort_order == SortOrder.ASC

    def test_last_n_sets_limit(self):
        intent = self.extractor.extract("show the last 5 records", IntentType.LIST, self.mapping)
        assert intent.limit == 5
        assert intent.sort_order == SortOrder.DESC
        assert intent.filters == []

    def test_no_modifier(self):
        intent = self.extractor.extract("show records", IntentType.LIST, self.mapping)
        assert intent.sort_field is None
        assert intent.sort_order is None
