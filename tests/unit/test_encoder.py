"""FilterEncoder 단위 테스트 (scon / fn 문법)"""

from urllib.parse import parse_qsl, urlsplit

import pytest

from partsearch.core.exceptions import InvalidFilterException
from partsearch.engine.ai_lookup import ResilientClassifier
from partsearch.engine.encoder import (
    FN_GRAMMAR,
    SCON_GRAMMAR,
    CaptionResolver,
    EncodedQuery,
    FilterDefinition,
    FilterEncoder,
)
from partsearch.utils.url import build_url
from tests.fakes import FakeClassifier, no_sleep


CERAMIC = "luCeramicCapacitorsSMD"

DEFINITIONS = {
    CERAMIC: [
        FilterDefinition("Capacitance", "ceramicCapacitors-capacitance", "range"),
        FilterDefinition("Temperature characteristics", "ceramicCapacitors-tempecharacteristicsdisp", "list"),
        FilterDefinition("Rated Voltage DC", "ceramicCapacitors-ratedVoltageDC", "range"),
    ]
}


@pytest.fixture
def encoder() -> FilterEncoder:
    return FilterEncoder("murata", SCON_GRAMMAR, DEFINITIONS)


class TestEncode:
    def test_range_and_list_become_independent_clauses(self):
        """목록 값은 원소마다 별도 절 (콤마로 합치지 않음)"""
        enc = FilterEncoder("murata", SCON_GRAMMAR)
        query = enc.encode(None, {"capacitance": {"min": 10, "max": 125}, "characteristic": ["C0G", "X7R"]})

        assert query.clauses == (
            "capacitance;10|125",
            "characteristic;C0G",
            "characteristic;X7R",
        )
        assert query.as_params() == [
            ("scon", "capacitance;10|125"),
            ("scon", "characteristic;C0G"),
            ("scon", "characteristic;X7R"),
        ]

    def test_captions_resolve_through_definition_table(self, encoder):
        query = encoder.encode(CERAMIC, {"Capacitance": {"min": 10, "max": 125}, "temperature characteristics": ["C0G"]})
        assert query.clauses == (
            "ceramicCapacitors-capacitance;10|125",
            "ceramicCapacitors-tempecharacteristicsdisp;C0G",
        )

    def test_word_order_insensitive_caption(self, encoder):
        query = encoder.encode(CERAMIC, {"DC Rated Voltage": {"max": 50}})
        assert query.clauses == ("ceramicCapacitors-ratedVoltageDC;|50",)

    def test_param_name_accepted_as_caption(self, encoder):
        query = encoder.encode(CERAMIC, {"ceramicCapacitors-capacitance": 10})
        assert query.clauses == ("ceramicCapacitors-capacitance;10",)

    def test_unmapped_caption_is_skipped_not_fatal(self, encoder):
        query = encoder.encode(CERAMIC, {"Capacitance": 10, "Colour": "red"})
        assert query.clauses == ("ceramicCapacitors-capacitance;10",)
        assert query.skipped == ("Colour",)

    def test_empty_range_emits_nothing(self, encoder):
        query = encoder.encode(CERAMIC, {"Capacitance": {"min": None, "max": None}})
        assert query.clauses == ()

    def test_empty_mapping_range_emits_nothing(self):
        query = FilterEncoder("murata", SCON_GRAMMAR).encode(None, {"capacitance": {}})
        assert query.clauses == ()
        assert query.skipped == ()

    def test_min_only_range(self, encoder):
        query = encoder.encode(CERAMIC, {"Capacitance": {"min": 10}})
        assert query.clauses == ("ceramicCapacitors-capacitance;10|",)

    def test_each_filter_field_appears_once_per_value(self, encoder):
        query = encoder.encode(CERAMIC, {"Capacitance": {"min": 1, "max": 2}, "Rated Voltage DC": 16})
        fields = [clause.split(";", 1)[0] for clause in query.clauses]
        assert sorted(set(fields)) == sorted(fields)

    def test_invalid_shape_raises(self, encoder):
        with pytest.raises(InvalidFilterException):
            encoder.encode(CERAMIC, {"Capacitance": [[1, 2]]})

    def test_fn_grammar(self):
        enc = FilterEncoder("kemet", FN_GRAMMAR)
        query = enc.encode(None, {"Capacitance": {"min": 1, "max": 10}, "Series": ["C0G", "X7R"]})
        assert query.clauses == ("Capacitance:1|10", "Series:C0G", "Series:X7R")


class TestCaptionResolver:
    def test_resolution_order(self):
        resolver = CaptionResolver(DEFINITIONS[CERAMIC])
        assert resolver.resolve("Capacitance") == "ceramicCapacitors-capacitance"
        assert resolver.resolve("CAPACITANCE") == "ceramicCapacitors-capacitance"
        assert resolver.resolve("Characteristics Temperature") == "ceramicCapacitors-tempecharacteristicsdisp"
        assert resolver.resolve("Inductance") is None
        assert resolver.resolve("---") is None


class TestEncodeDetails:
    @pytest.mark.asyncio
    async def test_ai_answer_goes_through_same_caption_path(self):
        classifier = FakeClassifier(classification={"Capacitance": {"min": 1, "max": 5}, "Colour": "red", "Rated Voltage DC": [[1]]})
        ai = ResilientClassifier(classifier, "murata", attempts=1, wait_s=0, timeout_s=1, sleep=no_sleep)
        enc = FilterEncoder("murata", SCON_GRAMMAR, DEFINITIONS, ai)

        query = await enc.encode_details(CERAMIC, "capacitance between 1 and 5 pF")

        assert query.clauses == ("ceramicCapacitors-capacitance;1|5",)
        assert set(query.skipped) == {"Colour", "Rated Voltage DC"}

    @pytest.mark.asyncio
    async def test_no_ai_configured(self, encoder):
        query = await encoder.encode_details(CERAMIC, "anything")
        assert query.clauses == ()
        assert query.skipped == ("details",)

    @pytest.mark.asyncio
    async def test_blank_details(self, encoder):
        assert await encoder.encode_details(CERAMIC, "   ") == EncodedQuery(SCON_GRAMMAR)


def test_encoded_query_string_recovers_field_names():
    filters = {"capacitance": {"min": 10, "max": 125}, "characteristic": ["C0G", "X7R"], "new": True, "size": {"max": 1}}
    query = FilterEncoder("murata", SCON_GRAMMAR).encode(None, filters)
    url = build_url("https://www.murata.com", "/webapi/PsdispRest", query.as_params())

    clauses = [v for k, v in parse_qsl(urlsplit(url).query) if k == "scon"]
    assert {c.split(";", 1)[0] for c in clauses} == set(filters)
