"""Tests for prerequisite reference normalization and resolution."""

from skilltree.resolver import (
    FuzzyMatchConfig,
    ResolverIndex,
    levenshtein,
    normalize_name,
    resolve,
)

from conftest import trick


class TestNormalize:
    def test_lowercases_and_collapses_whitespace(self):
        assert normalize_name("  Back \t  Flip\n") == "back flip"

    def test_empty(self):
        assert normalize_name("   ") == ""


class TestLevenshtein:
    def test_known_distances(self):
        assert levenshtein("kitten", "sitting") == 3
        assert levenshtein("flaw", "lawn") == 2
        assert levenshtein("front drop", "front dorp") == 2

    def test_empty_strings(self):
        assert levenshtein("", "abc") == 3
        assert levenshtein("abc", "") == 3
        assert levenshtein("", "") == 0

    def test_symmetric(self):
        assert levenshtein("barani", "brani") == levenshtein("brani", "barani") == 1


class TestFuzzyMatchConfig:
    def test_absolute_threshold(self):
        config = FuzzyMatchConfig()
        assert config.accepts(2, 1)
        assert not config.accepts(3, 3)

    def test_ratio_threshold_is_strict(self):
        config = FuzzyMatchConfig()
        # 3 / 21 < 0.2
        assert config.accepts(3, 20)
        # 3 / 15 == 0.2 is not below the ratio
        assert not config.accepts(3, 14)

    def test_thresholds_are_independent(self):
        assert not FuzzyMatchConfig(max_distance=0, max_ratio=0.0).accepts(1, 50)
        assert FuzzyMatchConfig(max_distance=0, max_ratio=0.5).accepts(1, 50)
        assert FuzzyMatchConfig(max_distance=5, max_ratio=0.0).accepts(5, 1)


class TestResolverIndex:
    def test_first_seen_name_wins(self):
        index = ResolverIndex.from_tricks(
            [trick("x", "Back Flip"), trick("y", "back  flip")]
        )
        assert index.names == {"back flip": "x"}
        assert index.ids == {"x", "y"}

    def test_closest_name_keeps_earliest_on_tie(self):
        index = ResolverIndex.from_tricks([trick("1", "ab"), trick("2", "ac")])
        assert index.closest_name("ad") == ("ab", 1)


class TestResolve:
    def setup_method(self):
        self.index = ResolverIndex.from_tricks(
            [
                trick("t-seat", "Seat Drop"),
                trick("t-front", "Front Drop"),
                trick("t-long", "a" * 20),
            ]
        )

    def test_exact_normalized_name(self):
        assert resolve("  SEAT   drop ", self.index) == "t-seat"

    def test_direct_id(self):
        assert resolve(" t-front ", self.index) == "t-front"

    def test_fuzzy_within_absolute_distance(self):
        assert resolve("Front Dorp", self.index) == "t-front"

    def test_fuzzy_within_ratio(self):
        assert resolve("a" * 17 + "bbb", self.index) == "t-long"

    def test_too_far_is_unresolved(self):
        assert resolve("Back Tuck", self.index) is None

    def test_blank_ref_is_unresolved(self):
        assert resolve("   ", self.index) is None

    def test_name_match_beats_id_match(self):
        index = ResolverIndex.from_tricks([trick("b1", "Alpha"), trick("y", "b1")])
        assert resolve("b1", index) == "y"

    def test_exact_match_never_overridden_by_fuzzy(self):
        index = ResolverIndex.from_tricks([trick("1", "bb"), trick("2", "b")])
        assert resolve("B", index) == "2"
        assert resolve("BB", index) == "1"

    def test_custom_config_rejects_typos(self):
        strict = FuzzyMatchConfig(max_distance=0, max_ratio=0.0)
        assert resolve("Front Dorp", self.index, strict) is None
        assert resolve("front drop", self.index, strict) == "t-front"

    def test_deterministic(self):
        results = {resolve("Sat Drop", self.index) for _ in range(5)}
        assert results == {"t-seat"}
