"""
Tests for src/api_client/parser.py.

Covers:
  - code-fence stripping and JSON extraction from prose
  - sentinel rejection and per-field validation
  - free-text fallback excerpts
  - aggregate recomputation from the grain histogram
"""

from __future__ import annotations

import json
from unittest.mock import patch

import pytest

from src.analysis import grains
from src.api_client.parser import (
    FreeTextFallback,
    StructuredResult,
    accept_coordinates,
    accept_locations,
    extract_json_candidate,
    histogram_validator,
    interpret_response,
    is_sentinel,
    make_excerpt,
    parse_model_output,
    recompute_aggregates,
    strip_code_fences,
    weighted_average_size,
)

from .conftest import ANALYSIS_ENVELOPE

DEFAULTS = {
    "soilType": "Sand",
    "estimatedLocation": None,
    "coordinates": None,
    "likelyLocations": [],
    "grainCounts": [1, 1, 1, 1, 1],
    "details": "pending",
}


# ---------------------------------------------------------------------------
# Parsing
# ---------------------------------------------------------------------------

class TestParseModelOutput:

    def test_fences_removed_content_kept(self):
        assert strip_code_fences('```json\n{"a": 1}\n```') == '{"a": 1}'

    def test_fence_without_language_tag(self):
        assert strip_code_fences('```\n{"a": 1}\n```') == '{"a": 1}'

    def test_prose_glued_to_closing_fence_kept(self):
        text = 'Result:\n```json\n{"a": 1}\n```Thanks for waiting.'
        assert strip_code_fences(text) == 'Result:\n\n{"a": 1}\nThanks for waiting.'

    def test_each_opening_fence_drops_its_tag(self):
        text = '```json\n{"a": 1}\n```Then\n```python\nx = 1\n```'
        assert strip_code_fences(text) == '{"a": 1}\nThen\n\nx = 1'

    def test_over_long_integer_falls_back_to_text(self):
        raw = '{"grainCounts": [1' + "0" * 5000 + ', 1, 1, 1, 1]}'
        outcome = parse_model_output(raw)
        assert isinstance(outcome, FreeTextFallback)
        assert outcome.text == raw

    def test_deep_nesting_falls_back_to_text(self):
        raw = '{"a": ' + "[" * 5000 + "]" * 5000 + "}"
        assert isinstance(parse_model_output(raw), FreeTextFallback)

    def test_candidate_spans_first_to_last_brace(self):
        assert extract_json_candidate('x {"a": {"b": 1}} y') == '{"a": {"b": 1}}'

    @pytest.mark.parametrize("text", ["no braces", "} backwards {", ""])
    def test_no_candidate(self, text):
        assert extract_json_candidate(text) is None

    def test_bare_json(self):
        assert parse_model_output('{"soilType": "Clay"}') == StructuredResult({"soilType": "Clay"})

    def test_fenced_json_with_prose_equals_bare_json(self):
        bare = json.dumps(ANALYSIS_ENVELOPE)
        wrapped = f"Here is the analysis you asked for:\n```json\n{bare}\n```\nHope it helps!"
        assert parse_model_output(wrapped) == parse_model_output(bare)

    def test_malformed_json_falls_back_to_text(self):
        outcome = parse_model_output('```json\n{"soilType": "Clay",}\n```')
        assert isinstance(outcome, FreeTextFallback)
        assert outcome.text == '{"soilType": "Clay",}'

    def test_json_array_is_not_structured(self):
        assert isinstance(parse_model_output("[1, 2, 3]"), FreeTextFallback)

    def test_none_input(self):
        assert parse_model_output(None) == FreeTextFallback("")


# ---------------------------------------------------------------------------
# Validators
# ---------------------------------------------------------------------------

class TestValidators:

    @pytest.mark.parametrize("value", [
        None, "", "   ", "Unknown", "unknown", "UNIDENTIFIED", " Unidentified ", [], {},
    ])
    def test_sentinels(self, value):
        assert is_sentinel(value)

    @pytest.mark.parametrize("value", ["Sandy loam", 0, 0.0, [0], {"a": 1}, False])
    def test_non_sentinels(self, value):
        assert not is_sentinel(value)

    def test_coordinates_accepted_as_floats(self):
        assert accept_coordinates({"lat": 13, "lng": 80.5}) == {"lat": 13.0, "lng": 80.5}

    @pytest.mark.parametrize("value", [
        {"lat": 91, "lng": 0},
        {"lat": 0, "lng": -181},
        {"lat": "13.0", "lng": 80},
        {"lat": True, "lng": 80},
        {"lat": 10},
        [13, 80],
    ])
    def test_bad_coordinates_rejected(self, value):
        assert accept_coordinates(value) is None

    def test_locations_drop_sentinel_names_and_bad_coordinates(self):
        accepted = accept_locations([
            {"name": "Goa", "coordinates": {"lat": 15.3, "lng": 74.1}},
            {"name": "Unknown", "coordinates": {"lat": 1, "lng": 1}},
            {"name": "Kerala", "coordinates": {"lat": 999, "lng": 0}},
            "not a mapping",
        ])
        assert accepted == [
            {"name": "Goa", "coordinates": {"lat": 15.3, "lng": 74.1}},
            {"name": "Kerala", "coordinates": None},
        ]

    def test_locations_all_rejected_keep_default(self):
        assert accept_locations([{"name": "unidentified"}]) is None

    def test_histogram_arity(self):
        accept = histogram_validator(5)
        assert accept([1, 2, 3, 4, 5]) == [1, 2, 3, 4, 5]
        assert accept([1, 2, 3, 4]) is None
        assert accept([1, 2, 3, 4, 5, 6]) is None

    def test_histogram_values(self):
        accept = histogram_validator(3)
        assert accept([1.6, 2, 0]) == [2, 2, 0]
        assert accept([1, -1, 0]) is None
        assert accept([1, "2", 0]) is None
        assert accept([1, None, 0]) is None


# ---------------------------------------------------------------------------
# Interpretation
# ---------------------------------------------------------------------------

class TestInterpretResponse:

    def test_accepted_fields_overlay_defaults(self):
        text = json.dumps({"soilType": "Volcanic", "grainCounts": [5, 5, 5, 5, 5]})
        result = interpret_response(text, DEFAULTS)
        assert result["soilType"] == "Volcanic"
        assert result["grainCounts"] == [5, 5, 5, 5, 5]
        assert result["details"] == "pending"
        assert result["parseMethod"] == "json"

    def test_defaults_not_mutated(self):
        snapshot = dict(DEFAULTS)
        interpret_response('{"soilType": "Clay"}', DEFAULTS)
        assert DEFAULTS == snapshot

    def test_sentinels_keep_defaults(self):
        text = json.dumps({
            "soilType": "Unknown",
            "estimatedLocation": "unidentified",
            "coordinates": None,
            "likelyLocations": [],
        })
        result = interpret_response(text, DEFAULTS)
        assert result["soilType"] == "Sand"
        assert result["estimatedLocation"] is None
        assert result["coordinates"] is None
        assert result["likelyLocations"] == []

    def test_wrong_arity_histogram_keeps_default(self):
        result = interpret_response('{"grainCounts": [1, 2, 3]}', DEFAULTS)
        assert result["grainCounts"] == [1, 1, 1, 1, 1]

    def test_unrecognized_fields_ignored(self):
        result = interpret_response('{"totalGrains": 5, "extra": "x"}', DEFAULTS)
        assert "totalGrains" not in result
        assert "extra" not in result

    def test_free_text_becomes_excerpt(self):
        result = interpret_response("The sample is {mostly} quartz.", DEFAULTS)
        assert result["details"] == "The sample is mostly quartz."
        assert result["parseMethod"] == "text"
        assert result["soilType"] == "Sand"

    def test_empty_text_keeps_default_details(self):
        result = interpret_response("", DEFAULTS)
        assert result["details"] == "pending"
        assert result["parseMethod"] == "text"

    @pytest.mark.parametrize("raw", [
        '{"grainCounts": [1' + "0" * 5000 + ', 1, 1, 1, 1]}',
        '{"a": ' + "[" * 5000 + "]" * 5000 + "}",
    ])
    def test_undecodable_json_keeps_defaults(self, raw):
        result = interpret_response(raw, DEFAULTS)
        assert result["parseMethod"] == "text"
        assert result["grainCounts"] == [1, 1, 1, 1, 1]
        assert result["soilType"] == "Sand"

    def test_custom_free_text_field(self):
        result = interpret_response("plain words", {}, schema={}, free_text_field="output")
        assert result == {"output": "plain words", "parseMethod": "text"}

    def test_excerpt_truncated(self):
        excerpt = make_excerpt("a" * 50, limit=10)
        assert excerpt == "a" * 10 + "…"


class TestRecomputeAggregates:

    def test_average_comes_from_shared_helper(self):
        with patch(
            "src.api_client.parser.weighted_average_size", return_value=123.456
        ) as mock_average:
            result = recompute_aggregates({"grainCounts": [1, 2, 3, 4, 5]})
        mock_average.assert_called_once_with([1, 2, 3, 4, 5], [100, 200, 300, 400, 500])
        assert result["averageSize"] == 123.46
        assert grains.weighted_average_size is weighted_average_size

    def test_model_aggregates_are_ignored(self):
        result = interpret_response(json.dumps(ANALYSIS_ENVELOPE), DEFAULTS)
        result["totalGrains"] = 999
        result["averageSize"] = 42
        recompute_aggregates(result)
        assert result["grainSizes"] == [100, 200, 300, 400, 500]
        assert result["totalGrains"] == 100
        # (15*100 + 35*200 + 25*300 + 15*400 + 10*500) / 100
        assert result["averageSize"] == 270.0

    def test_zero_total(self):
        result = recompute_aggregates({"grainCounts": [0, 0, 0, 0, 0]})
        assert result["totalGrains"] == 0
        assert result["averageSize"] == 0.0

    def test_rounding(self):
        result = recompute_aggregates({"grainCounts": [1, 1, 1, 0, 0]})
        assert result["averageSize"] == 200.0
        result = recompute_aggregates({"grainCounts": [2, 1, 0, 0, 0]})
        assert result["averageSize"] == 133.33

    def test_missing_histogram_leaves_result_unchanged(self):
        result = {"soilType": "Clay"}
        assert recompute_aggregates(result) == {"soilType": "Clay"}
