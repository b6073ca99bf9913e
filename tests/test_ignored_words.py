"""Tests for ignored-word list helpers."""

from kogrammar.services.ignored_words import (
    add_ignored_word,
    add_ignored_words,
    export_ignored_words,
    import_ignored_words,
    is_word_ignored,
    merge_exception_words,
    remove_ignored_word,
    search_ignored_words,
)


class TestIgnoredWords:
    """Tests for the ignore-list helpers."""

    def test_add_sorts_and_dedupes(self):
        words = add_ignored_word(" 카카오 ", ["슬랙"])
        assert words == ["슬랙", "카카오"]
        assert add_ignored_word("슬랙", words) == words

    def test_add_blank_is_noop(self):
        assert add_ignored_word("  ", ["슬랙"]) == ["슬랙"]

    def test_input_not_mutated(self):
        original = ["슬랙"]
        add_ignored_word("카카오", original)
        assert original == ["슬랙"]

    def test_add_many(self):
        assert add_ignored_words(["B", " A", "", "B"], ["C"]) == ["A", "B", "C"]

    def test_remove(self):
        assert remove_ignored_word("슬랙 ", ["슬랙", "카카오"]) == ["카카오"]

    def test_is_ignored(self):
        assert is_word_ignored(" 슬랙", ["슬랙"])
        assert not is_word_ignored("카카오", ["슬랙"])

    def test_search_case_insensitive(self):
        words = ["GitHub", "Obsidian", "슬랙"]
        assert search_ignored_words("git", words) == ["GitHub"]
        assert search_ignored_words("", words) == sorted(words)

    def test_export_import(self):
        exported = export_ignored_words(["카카오", "슬랙"])
        assert exported == "슬랙, 카카오"
        assert import_ignored_words(exported, []) == ["슬랙", "카카오"]

    def test_import_custom_separator(self):
        assert import_ignored_words("가\n나\n", ["다"], separator="\n") == ["가", "나", "다"]

    def test_merge_exception_words(self):
        assert merge_exception_words(["슬랙", "카카오"], ["카카오"]) == ["슬랙", "카카오"]
