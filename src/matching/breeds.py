"""Breed name normalization, synonym lookup and visual-family matching.

Breed labels come from two very different places: classifier output
(English, sometimes comma-separated aliases) and free text typed by people
reporting a sighting (often Spanish or colloquial). Matching runs through
three tiers, any hit short-circuits:

1. Substring: one normalized label contains the other.
2. Synonyms: both labels mention the same canonical breed or one of its
   synonyms.
3. Families: both labels mention members of the same visually similar
   group, which absorbs classifier confusion between lookalike breeds.
"""

from __future__ import annotations

import unicodedata
from collections.abc import Iterable, Mapping
from types import MappingProxyType

from src.data.schemas import VisualTag

_RAW_SYNONYMS: dict[str, tuple[str, ...]] = {
    "golden retriever": ("golden", "cobrador dorado", "perro amarillo", "retriever"),
    "german shepherd": ("pastor aleman", "pastor alemán", "alsatian", "pastor"),
    "labrador retriever": ("labrador", "lab", "perro cobrador", "retriever"),
    "beagle": ("beagle", "perro sabueso"),
    "poodle": ("poodle", "caniche", "perro lanudo"),
    "chihuahua": ("chihuahua", "chihuahueño", "perro pequeño"),
    "pug": ("pug", "carlino", "mops"),
    "bulldog": ("bulldog", "bull dog"),
    "french bulldog": ("bulldog frances", "bulldog francés", "frenchie"),
    "husky": ("husky", "siberiano", "perro de nieve", "malamute"),
    "boxer": ("boxer", "bóxer"),
    "dalmatian": ("dalmata", "dálmata", "perro manchado"),
    "rottweiler": ("rottie", "rottweiler"),
    "pit bull": ("pitbull", "pit bull terrier", "staffordshire"),
    "schnauzer": ("schnauzer", "perro con barba"),
    "cocker spaniel": ("cocker", "spaniel"),
    "shih tzu": ("shih tzu", "shitzu"),
    "doberman": ("doberman", "dóberman"),
    "great dane": ("gran danes", "gran danés"),
    "border collie": ("border collie", "collie"),
    "pomeranian": ("pomerania", "pomeranian"),
    "maltese": ("maltes", "maltés"),
    "yorkshire terrier": ("yorkie", "yorkshire"),
    "dachshund": ("salchicha", "dachshund", "teckel"),
    "mixed breed": ("criollo", "mezcla", "mestizo", "sin raza"),
    "saint bernard": ("san bernardo", "st. bernard"),
}

_RAW_FAMILIES: dict[str, tuple[str, ...]] = {
    "retriever": ("golden retriever", "labrador retriever", "flat-coated retriever"),
    "shepherd": ("german shepherd", "belgian malinois", "border collie"),
    "terrier": ("pit bull", "staffordshire bull terrier", "bull terrier", "american bully"),
    "spitz": ("husky", "alaskan malamute", "samoyed", "pomeranian"),
    "small_lap": ("shih tzu", "maltese", "poodle", "bichon frise"),
}


def normalize_breed(text: str | None) -> str:
    """Lowercase, strip diacritics and trim a breed label.

    Args:
        text: Raw label, may be None.

    Returns:
        Normalized label, or an empty string for missing input.
    """
    if not isinstance(text, str):
        return ""
    decomposed = unicodedata.normalize("NFD", text.lower())
    stripped = "".join(ch for ch in decomposed if not unicodedata.combining(ch))
    return stripped.strip()


def _normalized_set(terms: Iterable[str]) -> frozenset[str]:
    return frozenset(t for t in (normalize_breed(term) for term in terms) if t)


# Canonical key -> every normalized term (key included) that identifies it.
BREED_SYNONYMS: Mapping[str, frozenset[str]] = MappingProxyType(
    {
        normalize_breed(key): _normalized_set((key, *synonyms))
        for key, synonyms in _RAW_SYNONYMS.items()
    }
)

# Family key -> normalized canonical breed keys considered visually alike.
BREED_FAMILIES: Mapping[str, frozenset[str]] = MappingProxyType(
    {family: _normalized_set(members) for family, members in _RAW_FAMILIES.items()}
)


def _mentions_any(label: str, terms: Iterable[str]) -> bool:
    return any(term in label for term in terms)


def are_similar(label_a: str | None, label_b: str | None) -> bool:
    """Decide whether two breed labels plausibly describe the same dog.

    Args:
        label_a: First label, e.g. a classifier guess.
        label_b: Second label, e.g. the breed typed on a report.

    Returns:
        True on a substring, synonym or family match. Blank labels never
        match.
    """
    a = normalize_breed(label_a)
    b = normalize_breed(label_b)
    if not a or not b:
        return False

    if a in b or b in a:
        return True

    for terms in BREED_SYNONYMS.values():
        if _mentions_any(a, terms) and _mentions_any(b, terms):
            return True

    for members in BREED_FAMILIES.values():
        if _mentions_any(a, members) and _mentions_any(b, members):
            return True

    return False


def best_similarity_score(tags: Iterable[VisualTag] | None, target_breed: str | None) -> float:
    """Return the highest probability among tags similar to ``target_breed``.

    Args:
        tags: Classifier output.
        target_breed: Breed to compare against.

    Returns:
        Best matching probability, or 0.0 when nothing matches or inputs
        are empty.
    """
    if not tags or not target_breed:
        return 0.0

    best = 0.0
    for tag in tags:
        if are_similar(tag.label, target_breed):
            best = max(best, tag.probability)
    return best


def canonical_breed(label: str | None) -> str | None:
    """Return the canonical English breed key a label refers to, if any.

    The entry with the longest matching term wins, so "labrador retriever"
    resolves to the labrador rather than to the shared "retriever" synonym.
    """
    normalized = normalize_breed(label)
    if not normalized:
        return None

    best_key = None
    best_length = 0
    for key, terms in BREED_SYNONYMS.items():
        for term in terms:
            if term in normalized and len(term) > best_length:
                best_key, best_length = key, len(term)
    return best_key
