"""Tests for shared text helpers."""

from kogrammar.utils.text_utils import (
    contains_hangul,
    core_word,
    find_all_positions,
    normalize_whitespace,
    overlap_length,
)


class TestCoreWord:
    """Tests for core_word."""

    def test_strips_parenthesized_suffix(self):
        assert core_word("단어(word)") == "단어"
        assert core_word("휴고 (Hugo) ") == "휴고"

    def test_strips_one_particle(self):
        assert core_word("슬랙은") == "슬랙"
        assert core_word("사과와") == "사과"

    def test_prefers_longest_particle(self):
        assert core_word("학교에서") == "학교"
        assert core_word("서울으로") == "서울"

    def test_strips_at_most_one_particle(self):
        assert core_word("사람들은도") == "사람들은"

    def test_never_strips_whole_word(self):
        assert core_word("은") == "은"
        assert core_word("안") == "안"

    def test_plain_word_unchanged(self):
        assert core_word("먹었따") == "먹었따"


class TestPositions:
    def test_find_all_positions_includes_overlapping(self):
        assert find_all_positions("aaa", "aa") == [0, 1]

    def test_find_all_positions_empty_pattern(self):
        assert find_all_positions("abc", "") == []

    def test_overlap_length(self):
        assert overlap_length(0, 3, 2, 5) == 1
        assert overlap_length(0, 3, 3, 5) == 0
        assert overlap_length(0, 10, 2, 4) == 2


class TestNormalize:
    def test_normalize_whitespace(self):
        assert normalize_whitespace("  나는 \n\t 밥을  ") == "나는 밥을"

    def test_contains_hangul(self):
        assert contains_hangul("abc 가")
        assert not contains_hangul("abc")
