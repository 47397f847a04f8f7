"""Tests for the response sanitizer and robust parser."""

from __future__ import annotations

import json

import pytest

from ai_analysis.core.exceptions import UnparsableJSON
from ai_analysis.gateway.sanitizer import extract_content, parse_robust, repair_truncated, sanitize

# ==========================================================================
# Test: sanitize
# ==========================================================================


class TestSanitize:
    def test_fenced_block_with_trailing_comma(self):
        result = parse_robust(sanitize('```json\n{"a":1,}\n```'))
        assert result.is_ok
        assert result.value == {"a": 1}

    def test_uppercase_fence(self):
        assert sanitize('```JSON\n{"a": 1}\n```') == '{"a": 1}'

    def test_strips_surrounding_prose(self):
        raw = 'Here is your analysis:\n{"primaryStyle": "Visual"}\nHope this helps!'
        assert sanitize(raw) == '{"primaryStyle": "Visual"}'

    def test_trailing_comma_in_array(self):
        assert json.loads(sanitize('{"items": [1, 2, 3, ]}')) == {"items": [1, 2, 3]}

    def test_adjacent_objects_get_commas(self):
        text = sanitize('{"cards": [{"a": 1} {"b": 2}]}')
        assert json.loads(text) == {"cards": [{"a": 1}, {"b": 2}]}

    def test_adjacent_arrays_get_commas(self):
        text = sanitize('{"grid": [[1, 2] [3, 4]]}')
        assert json.loads(text) == {"grid": [[1, 2], [3, 4]]}

    def test_newline_before_closer_is_collapsed(self):
        assert "\n" not in sanitize('{"a": 1\n}')

    def test_fraction_fields(self):
        text = sanitize('{"score": 7/10, "maxScore": 7/10}')
        assert json.loads(text) == {"score": 7, "maxScore": 10}

    def test_custom_fraction_fields(self):
        text = sanitize('{"ratio": 3/4}', fraction_fields={"ratio": "denominator"})
        assert json.loads(text) == {"ratio": 4}

    @pytest.mark.parametrize("raw", [None, "", "   "])
    def test_empty_input(self, raw):
        assert sanitize(raw) == ""

    def test_never_raises_on_garbage(self):
        assert isinstance(sanitize("}}}{{{ nothing here"), str)

    def test_string_contents_are_untouched(self):
        raw = '```json\n{"text": "keep, ] and }{ and [1] [2]", "score": 3/5,}\n```'
        assert json.loads(sanitize(raw)) == {"text": "keep, ] and }{ and [1] [2]", "score": 3}

    def test_truncated_string_tail_is_preserved(self):
        assert sanitize('{"a": "x, ]') == '{"a": "x, ]'


# ==========================================================================
# Test: parse_robust
# ==========================================================================


class TestParseRobust:
    @pytest.mark.parametrize(
        "document",
        [
            {"a": 1},
            {"nested": {"list": [1, 2, {"x": "y"}]}, "flag": True, "none": None},
            {"text": "contains } and { and , inside", "n": -3.5e2},
            {"unicode": "Zoë ünïcode", "empty": {}},
            {"t": "a, ]"},
            {"t": "x}{y"},
            {"note": "list: [1] [2]"},
            {"quote": "she said \"score\": 7/10", "newline": "a\n}"},
        ],
    )
    def test_well_formed_json_round_trips(self, document):
        text = json.dumps(document, indent=2)
        result = parse_robust(sanitize(text))
        assert result.is_ok
        assert result.value == json.loads(text)

    def test_raw_newlines_in_strings_are_collapsed(self):
        result = parse_robust('{"analysis": "line one\nline two"}')
        assert result.is_ok
        assert result.value == {"analysis": "line one line two"}

    def test_truncated_after_first_key(self):
        full = json.dumps({"overallInterpretation": "Change is coming", "synthesis": "A long synthesis text"})
        cut = full[: full.index('"synthesis"') + len('"synthesis": "A long')]

        result = parse_robust(sanitize(cut))

        assert result.is_ok
        assert result.value["overallInterpretation"] == "Change is coming"

    def test_truncated_inside_nested_array(self):
        full = json.dumps(
            {
                "primaryStyle": "Visual",
                "scores": {"V": 5, "A": 1},
                "recommendations": ["Use diagrams", "Watch videos", "Draw maps"],
            }
        )
        cut = full[: full.index("Watch") + 3]

        result = parse_robust(sanitize(cut))

        assert result.is_ok
        assert result.value["primaryStyle"] == "Visual"
        assert result.value["scores"] == {"V": 5, "A": 1}
        assert result.value["recommendations"][0] == "Use diagrams"

    def test_truncated_after_colon(self):
        result = parse_robust('{"a": 1, "b":')
        assert result.value == {"a": 1}

    def test_truncated_mid_key(self):
        result = parse_robust('{"a": 1, "bcd')
        assert result.value == {"a": 1}

    def test_hopeless_input_is_err(self):
        result = parse_robust("not json at all", result_type="vark")
        assert not result.is_ok
        assert isinstance(result.error, UnparsableJSON)
        assert result.error.result_type == "vark"

    def test_err_unwrap_raises(self):
        with pytest.raises(UnparsableJSON):
            parse_robust("{{{{", result_type="eq").unwrap()


class TestRepairTruncated:
    def test_closes_open_structures(self):
        assert repair_truncated('{"a": [1, 2, {"b": 3') == {"a": [1, 2, {"b": 3}]}

    def test_drops_incomplete_element(self):
        assert repair_truncated('{"a": 1, "b": tru') == {"a": 1}

    def test_empty_returns_none(self):
        assert repair_truncated("") is None


class TestExtractContent:
    def test_reads_first_choice(self):
        payload = {"choices": [{"message": {"content": '{"a": 1}'}}]}
        assert extract_content(payload).unwrap() == '{"a": 1}'

    @pytest.mark.parametrize(
        "payload",
        [{}, {"choices": []}, {"choices": [{"message": {"content": None}}]}, {"choices": [{}]}],
    )
    def test_empty_content_is_err(self, payload):
        result = extract_content(payload, result_type="tarot")
        assert isinstance(result.error, UnparsableJSON)
        assert result.error.result_type == "tarot"
