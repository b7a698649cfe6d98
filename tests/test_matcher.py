import pytest

from collection_search.search.matcher import levenshtein_distance, matches, max_typos


def test_levenshtein_known_distances():
    assert levenshtein_distance("kitten", "sitting") == 3
    assert levenshtein_distance("firebase", "firebaze") == 1
    assert levenshtein_distance("", "abc") == 3
    assert levenshtein_distance("abc", "") == 3


def test_levenshtein_is_a_metric():
    words = ["john", "jhon", "jahn", "doe", "", "johnny"]
    for a in words:
        assert levenshtein_distance(a, a) == 0
        for b in words:
            assert levenshtein_distance(a, b) == levenshtein_distance(b, a)
            for c in words:
                assert levenshtein_distance(a, c) <= (
                    levenshtein_distance(a, b) + levenshtein_distance(b, c)
                )


def test_max_typos_is_one_per_tolerance_chars():
    assert max_typos(8, 4) == 2
    assert max_typos(7, 4) == 1
    assert max_typos(3, 4) == 0


class TestExactMode:
    """Fuzzy disabled: plain substring containment."""

    def test_case_insensitive_by_default(self):
        assert matches("doe", "John Doe")

    def test_case_sensitive(self):
        assert not matches("doe", "John Doe", case_sensitive=True)
        assert matches("Doe", "John Doe", case_sensitive=True)

    def test_typos_do_not_match(self):
        assert not matches("Firebaze", "Firebase")


class TestFuzzyMode:

    @pytest.mark.parametrize("field", ["Firebaze", "Firebaes", "Fyrebaze", "firebase"])
    def test_within_two_edits_matches(self, field):
        assert matches("Firebase", field, fuzzy_enabled=True, typo_tolerance=4)

    def test_three_edits_do_not_match(self):
        assert levenshtein_distance("firebase", "fyrebazz") == 3
        assert not matches("Firebase", "Fyrebazz", fuzzy_enabled=True, typo_tolerance=4)

    def test_term_found_inside_longer_field(self):
        assert matches("konsole", "Firebase Console", fuzzy_enabled=True, typo_tolerance=4)

    def test_term_longer_than_field(self):
        assert matches("firebases", "firebase", fuzzy_enabled=True, typo_tolerance=4)
        assert not matches("firebaseconsole", "fire", fuzzy_enabled=True, typo_tolerance=4)

    def test_one_substitution_in_four_letter_term(self):
        assert matches("jahn", "John Doe", fuzzy_enabled=True, typo_tolerance=4)

    def test_transposition_in_four_letter_term_exceeds_budget(self):
        # A swap costs two edits; a 4-character term allows one.
        assert not matches("jhon", "John Doe", fuzzy_enabled=True, typo_tolerance=4)

    def test_case_sensitive_fuzzy(self):
        assert not matches("FIREBAZE", "firebase", case_sensitive=True, fuzzy_enabled=True)
        assert matches("Firebaze", "Firebase", case_sensitive=True, fuzzy_enabled=True)


@pytest.mark.parametrize(
    "term,field",
    [
        ("jon", "John Doe"),
        ("doe", "John Doe"),
        ("xyz", "xzy"),
        ("ab", "a b"),
        ("J", "john"),
    ],
)
def test_short_terms_behave_like_exact_mode(term, field):
    for case_sensitive in (True, False):
        exact = matches(term, field, case_sensitive=case_sensitive, fuzzy_enabled=False)
        fuzzy = matches(term, field, case_sensitive=case_sensitive, fuzzy_enabled=True)
        assert exact == fuzzy


@pytest.mark.parametrize(
    "term,field",
    [
        ("base", "Firebase Console"),
        ("Console", "Firebase Console"),
        ("john", "JOHN"),
    ],
)
def test_exact_substring_always_matches(term, field):
    for fuzzy in (True, False):
        assert matches(term, field, fuzzy_enabled=fuzzy, typo_tolerance=4)


def test_matching_is_deterministic():
    results = {matches("Firebaes", "Firebase", fuzzy_enabled=True) for _ in range(20)}
    assert results == {True}
