"""Helpers for the user's ignored-words list.

The list is plain data owned by the caller; every helper returns a new,
sorted list and never mutates its input.
"""

import logging

logger = logging.getLogger(__name__)


def is_word_ignored(word: str, ignored_words: list[str]) -> bool:
    return word.strip() in ignored_words


def add_ignored_word(word: str, ignored_words: list[str]) -> list[str]:
    word = word.strip()
    if not word or word in ignored_words:
        return sorted(ignored_words)
    return sorted([*ignored_words, word])


def add_ignored_words(words: list[str], ignored_words: list[str]) -> list[str]:
    merged = list(ignored_words)
    for word in (w.strip() for w in words):
        if word and word not in merged:
            merged.append(word)
    return sorted(merged)


def remove_ignored_word(word: str, ignored_words: list[str]) -> list[str]:
    word = word.strip()
    return sorted(w for w in ignored_words if w != word)


def search_ignored_words(query: str, ignored_words: list[str]) -> list[str]:
    """Case-insensitive substring search; an empty query returns everything."""
    query = query.strip().lower()
    return sorted(w for w in ignored_words if query in w.lower())


def export_ignored_words(ignored_words: list[str], separator: str = ", ") -> str:
    return separator.join(sorted(ignored_words))


def import_ignored_words(words_string: str, ignored_words: list[str], separator: str = ",") -> list[str]:
    return add_ignored_words(words_string.split(separator), ignored_words)


def merge_exception_words(exception_words: list[str], ignored_words: list[str]) -> list[str]:
    """Fold the exception words from a finished run into the ignore list."""
    merged = add_ignored_words(exception_words, ignored_words)
    added = len(merged) - len(set(ignored_words))
    if added:
        logger.info("Added %d exception words to the ignore list", added)
    return merged
