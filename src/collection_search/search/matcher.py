"""Typo-tolerant text matching.

Exact mode is plain substring containment. Fuzzy mode allows one edit per
`typo_tolerance` characters of the search term and looks for the term
anywhere inside the field value.

Rules:
- Terms of 3 characters or fewer are always matched exactly
- A term longer than the field is compared against the whole field
- Otherwise every term-sized window of the field is compared
- Fields no longer than term + allowed typos are also compared whole
"""

from __future__ import annotations

EXACT_ONLY_MAX_LENGTH = 3


def levenshtein_distance(s1: str, s2: str) -> int:
    """Calculate the Levenshtein (edit) distance between two strings.

    Unit cost for insertion, deletion and substitution.

    Examples:
        >>> levenshtein_distance("kitten", "sitting")
        3
        >>> levenshtein_distance("firebase", "firebaze")
        1
        >>> levenshtein_distance("", "abc")
        3
    """
    if not s1:
        return len(s2)
    if not s2:
        return len(s1)

    # Use shorter string as columns for space efficiency
    if len(s1) > len(s2):
        s1, s2 = s2, s1

    m, n = len(s1), len(s2)

    prev_row = list(range(m + 1))
    curr_row = [0] * (m + 1)

    for j in range(1, n + 1):
        curr_row[0] = j
        for i in range(1, m + 1):
            cost = 0 if s1[i - 1] == s2[j - 1] else 1
            curr_row[i] = min(
                prev_row[i] + 1,  # deletion
                curr_row[i - 1] + 1,  # insertion
                prev_row[i - 1] + cost,  # substitution
            )
        prev_row, curr_row = curr_row, prev_row

    return prev_row[m]


def max_typos(length: int, typo_tolerance: int) -> int:
    """Allowed edits for a term of `length` characters: one per `typo_tolerance`."""
    return length // typo_tolerance


def matches(
    search_term: str,
    field_value: str,
    case_sensitive: bool = False,
    fuzzy_enabled: bool = False,
    typo_tolerance: int = 4,
) -> bool:
    """Decide whether `field_value` matches `search_term`.

    Args:
        search_term: Non-empty query text.
        field_value: String projection of a document field.
        case_sensitive: Compare case exactly when True.
        fuzzy_enabled: Allow edits; plain containment otherwise.
        typo_tolerance: Characters per allowed edit, at least 1.

    Returns:
        True when the term is found exactly, or within the allowed number
        of edits in fuzzy mode.
    """
    term = search_term if case_sensitive else search_term.lower()
    value = field_value if case_sensitive else field_value.lower()

    if not fuzzy_enabled or len(term) <= EXACT_ONLY_MAX_LENGTH:
        return term in value

    allowed = max_typos(len(term), typo_tolerance)
    term_len = len(term)
    value_len = len(value)

    if term_len > value_len:
        return levenshtein_distance(term, value) <= allowed

    for start in range(value_len - term_len + 1):
        if levenshtein_distance(term, value[start:start + term_len]) <= allowed:
            return True

    if value_len <= term_len + allowed:
        return levenshtein_distance(term, value) <= allowed

    return False
