"""Jaro-Winkler string similarity used by stop name search."""

MATCH_THRESHOLD = 0.9
WINKLER_SCALING = 0.1
WINKLER_PREFIX_LIMIT = 4
WINKLER_BOOST_THRESHOLD = 0.7


def jaro_winkler(first: str, second: str) -> float:
    """Jaro-Winkler similarity of two strings in the range [0, 1].

    Comparison is case sensitive; callers fold case first. Empty input
    scores 0 and identical strings score 1.

    Based on https://en.wikipedia.org/wiki/Jaro%E2%80%93Winkler_distance
    """
    if not first or not second:
        return 0.0
    if first == second:
        return 1.0

    radius = max(0, max(len(first), len(second)) // 2 - 1)
    first_matched = [False] * len(first)
    second_matched = [False] * len(second)

    matches = 0
    for i, char in enumerate(first):
        low = max(0, i - radius)
        high = min(len(second), i + radius + 1)
        for j in range(low, high):
            if not second_matched[j] and second[j] == char:
                first_matched[i] = second_matched[j] = True
                matches += 1
                break

    if matches == 0:
        return 0.0

    # Matched characters in order of occurrence in each string
    first_chars = [c for c, matched in zip(first, first_matched) if matched]
    second_chars = [c for c, matched in zip(second, second_matched) if matched]
    transpositions = sum(a != b for a, b in zip(first_chars, second_chars)) / 2

    weight = (
        matches / len(first)
        + matches / len(second)
        + (matches - transpositions) / matches
    ) / 3

    if weight > WINKLER_BOOST_THRESHOLD:
        prefix = 0
        for a, b in zip(first[:WINKLER_PREFIX_LIMIT], second[:WINKLER_PREFIX_LIMIT]):
            if a != b:
                break
            prefix += 1
        weight += prefix * WINKLER_SCALING * (1 - weight)

    return weight


def similarity(first: str, second: str) -> float:
    """Case-insensitive Jaro-Winkler similarity."""
    return jaro_winkler(first.lower(), second.lower())


def is_fuzzy_equal(first: str, second: str, threshold: float = MATCH_THRESHOLD) -> bool:
    return similarity(first, second) >= threshold


def matches_query(name: str, query: str, threshold: float = MATCH_THRESHOLD) -> bool:
    """Check whether a stop name qualifies for a free-text query.

    A name qualifies when it is fuzzy-equal to the query or starts with it,
    both compared case-insensitively.
    """
    return is_fuzzy_equal(name, query, threshold) or name.lower().startswith(
        query.lower()
    )
