"""Edit-distance based string similarity."""

from __future__ import annotations

from rapidfuzz.distance import Levenshtein


def levenshtein(source: str, target: str) -> int:
    """Return the Levenshtein edit distance between two strings.

    Insertions, deletions and substitutions each cost 1.

    Args:
        source: First string.
        target: Second string.

    Returns:
        Minimum number of single-character edits turning one into the other.
    """
    return Levenshtein.distance(source, target)


def similarity(a: str | None, b: str | None) -> float:
    """Score how alike two free-text strings are.

    Both sides are case-folded and trimmed. Containment in either direction
    counts as a full match, otherwise the score is one minus the edit
    distance normalized by the longer string.

    Args:
        a: First string, may be None.
        b: Second string, may be None.

    Returns:
        Similarity in [0, 1]; 0 when either side is missing or blank.
    """
    s1 = a.casefold().strip() if isinstance(a, str) else ""
    s2 = b.casefold().strip() if isinstance(b, str) else ""
    if not s1 or not s2:
        return 0.0
    if s1 in s2 or s2 in s1:
        return 1.0

    distance = levenshtein(s1, s2)
    score = 1.0 - distance / max(len(s1), len(s2))
    return min(1.0, max(0.0, score))
