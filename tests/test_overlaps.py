"""Tests for overlap resolution between corrections."""

from kogrammar.core.extractor import resolve_overlaps
from kogrammar.core.morpheme_index import MorphemeTokenIndex
from kogrammar.models.correction import Correction
from kogrammar.models.morpheme import MorphemeToken


TEXT = "그는 안되는 일을 했다"


def _corrections():
    return [
        Correction(original="안되는", corrected=["안 되는"]),
        Correction(original="되는", corrected=["돼는"]),
    ]


class TestResolveOverlaps:
    """Tests for resolve_overlaps."""

    def test_longest_wins_without_index(self):
        resolved = resolve_overlaps(_corrections(), TEXT)
        assert [c.original for c in resolved] == ["안되는"]

    def test_token_boundary_beats_length(self):
        index = MorphemeTokenIndex([
            MorphemeToken("그는", 0, ("NP",)),
            MorphemeToken("되는", 4, ("VV",)),
        ])
        resolved = resolve_overlaps(_corrections(), TEXT, index)
        assert [c.original for c in resolved] == ["되는"]

    def test_token_outside_tolerance_ignored(self):
        index = MorphemeTokenIndex([MorphemeToken("되는", 9, ("VV",))])
        resolved = resolve_overlaps(_corrections(), TEXT, index)
        assert [c.original for c in resolved] == ["안되는"]

    def test_equal_length_keeps_input_order(self):
        corrections = [
            Correction(original="abc", corrected=["abx"]),
            Correction(original="bcd", corrected=["bxd"]),
        ]
        resolved = resolve_overlaps(corrections, "abcd")
        assert [c.original for c in resolved] == ["abc"]

    def test_non_overlapping_all_kept(self):
        corrections = [
            Correction(original="그는", corrected=["그가"]),
            Correction(original="했다", corrected=["한다"]),
        ]
        resolved = resolve_overlaps(corrections, TEXT)
        assert [c.original for c in resolved] == ["그는", "했다"]

    def test_touching_spans_do_not_overlap(self):
        corrections = [
            Correction(original="ab", corrected=["ax"]),
            Correction(original="cd", corrected=["cx"]),
        ]
        resolved = resolve_overlaps(corrections, "abcd")
        assert len(resolved) == 2

    def test_missing_correction_passes_through(self):
        corrections = [*_corrections(), Correction(original="없는말", corrected=["있는말"])]
        resolved = resolve_overlaps(corrections, TEXT)
        assert [c.original for c in resolved] == ["안되는", "없는말"]

    def test_group_survivor_is_a_member(self):
        corrections = [
            Correction(original="안되는", corrected=["안 되는"]),
            Correction(original="되는 일", corrected=["되는일"]),
            Correction(original="했다", corrected=["하였다"]),
        ]
        resolved = resolve_overlaps(corrections, TEXT)

        assert [c.original for c in resolved] == ["되는 일", "했다"]
        assert resolved[0] is corrections[1]

    def test_empty_input(self):
        assert resolve_overlaps([], TEXT) == []
