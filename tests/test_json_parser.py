"""Tests for JSON array recovery from model responses."""

import pytest

from kogrammar.exceptions import AIResponseParseFailure
from kogrammar.utils.json_parser import parse_json_array, scan_top_level, strip_code_fence


class TestParseJsonArray:
    """Tests for the recovery ladder in parse_json_array."""

    def test_direct_json(self):
        assert parse_json_array('[{"a": 1}, {"a": 2}]') == [{"a": 1}, {"a": 2}]

    def test_empty_array(self):
        assert parse_json_array("[]") == []

    def test_single_object_wrapped(self):
        assert parse_json_array('{"a": 1}') == [{"a": 1}]

    def test_markdown_fence(self):
        content = '```json\n[{"correctionIndex": 0}]\n```'
        assert parse_json_array(content) == [{"correctionIndex": 0}]

    def test_unterminated_fence(self):
        content = '```json\n[{"a": 1}, {"a": 2}]'
        assert parse_json_array(content) == [{"a": 1}, {"a": 2}]

    def test_embedded_in_prose(self):
        content = '분석 결과입니다:\n[{"a": 1}]\n감사합니다.'
        assert parse_json_array(content) == [{"a": 1}]

    def test_truncated_mid_object(self):
        content = '[{"a": 1}, {"a": 2}, {"a": 3, "b": "잘린'
        assert parse_json_array(content) == [{"a": 1}, {"a": 2}]

    def test_truncated_after_comma(self):
        assert parse_json_array('[{"a": 1}, {"a": 2},') == [{"a": 1}, {"a": 2}]

    def test_braces_inside_strings_ignored(self):
        content = '[{"r": "괄호 } 포함"}, {"r": "{미완'
        assert parse_json_array(content) == [{"r": "괄호 } 포함"}]

    def test_last_top_level_comma(self):
        assert parse_json_array('[1, 2, {"a"') == [1, 2]

    def test_no_array_raises(self):
        with pytest.raises(AIResponseParseFailure) as exc_info:
            parse_json_array("죄송합니다. 분석할 수 없습니다.")
        assert exc_info.value.raw == "죄송합니다. 분석할 수 없습니다."

    def test_unrecoverable_raises(self):
        with pytest.raises(AIResponseParseFailure):
            parse_json_array('[{"a": ')


class TestHelpers:
    """Tests for the scanning helpers."""

    def test_strip_code_fence_plain(self):
        assert strip_code_fence("```\n[1]\n```") == "[1]"

    def test_strip_code_fence_without_fence(self):
        assert strip_code_fence("  [1] ") == "[1]"

    def test_scan_top_level(self):
        text = '[{"a": 1}, {"b": 2}, {"c'
        last_end, last_comma = scan_top_level(text)
        assert text[:last_end] == '[{"a": 1}, {"b": 2}'
        assert text[last_comma] == ","
        assert last_comma == len('[{"a": 1}, {"b": 2}')

    def test_scan_nested_objects(self):
        text = '[{"a": {"b": 1}}, {"c": [1, 2]'
        last_end, _ = scan_top_level(text)
        assert text[:last_end] == '[{"a": {"b": 1}}'
