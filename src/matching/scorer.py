"""Composite relevance scoring of a sighting against a search query.

The score is a plain sum of independent terms, accumulated in a fixed
order so that identical inputs always produce the identical float:

1. breed text similarity
2. free-text similarity against details and the typed location
3. geographic proximity
4. visual tag agreement (photo searches only)
5. a flat penalty when a confident photo guess contradicts the reported
   breed with nothing else backing the match

A missing or malformed input zeroes its own term and nothing else.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Mapping
from typing import Any

from pydantic import ValidationError

from src.data.schemas import ScoreBreakdown, SearchQuery, SightingRecord, VisualTag
from src.matching.breeds import are_similar
from src.matching.geo import distance_km, location_score, parse_geo_point
from src.matching.text_similarity import similarity

logger = logging.getLogger(__name__)

VISUAL_WEIGHTS: Mapping[str, float] = {"visual": 0.85, "location": 0.10, "breed": 0.05}
TEXTUAL_WEIGHTS: Mapping[str, float] = {"breed": 0.40, "location": 0.35, "details": 0.25}

# Details similarity is weighted the same in both modes.
DETAILS_WEIGHT = 0.1

SEARCH_TAG_SHARE = 0.8
RECORD_TAG_SHARE = 0.2

# Below this the visual term tries the reported breed instead of record tags.
BREED_FALLBACK_THRESHOLD = 0.2
BREED_FALLBACK_FACTOR = 0.9

# Tunable: a confident top guess that contradicts the reported breed.
MISMATCH_MIN_PROBABILITY = 0.6
MISMATCH_MAX_VISUAL = 0.1
MISMATCH_PENALTY = 0.5


def _coerce(model: type, value: Any) -> Any:
    if isinstance(value, model):
        return value
    if isinstance(value, Mapping):
        try:
            return model.model_validate(dict(value))
        except ValidationError as exc:
            logger.debug("Scoring %s as empty: %s", model.__name__, exc)
    elif value is not None:
        logger.debug("Scoring unsupported %s input as empty", type(value).__name__)
    return model()


def _location_term(query: SearchQuery, record: SightingRecord, weight: float) -> float:
    if query.location is None or record.location is None:
        return 0.0
    origin = parse_geo_point(query.location)
    target = parse_geo_point(record.location)
    if origin is None or target is None:
        return 0.0
    return location_score(distance_km(origin, target), weight)


def _visual_term(
    visual_tags: tuple[VisualTag, ...],
    record: SightingRecord,
    weight: float,
) -> float:
    best = 0.0
    for search_tag in visual_tags:
        for record_tag in record.ai_tags or ():
            if are_similar(search_tag.label, record_tag.label):
                match = (
                    search_tag.probability * SEARCH_TAG_SHARE
                    + record_tag.probability * RECORD_TAG_SHARE
                ) * weight
                best = max(best, match)

    if best < BREED_FALLBACK_THRESHOLD and record.breed:
        for search_tag in visual_tags:
            if are_similar(search_tag.label, record.breed):
                best = max(best, search_tag.probability * weight * BREED_FALLBACK_FACTOR)

    return best


def _mismatch_penalty(
    visual_tags: tuple[VisualTag, ...],
    record: SightingRecord,
    visual_score: float,
) -> float:
    top = visual_tags[0]
    if (
        top.probability > MISMATCH_MIN_PROBABILITY
        and record.breed
        and visual_score < MISMATCH_MAX_VISUAL
        and not are_similar(top.label, record.breed)
    ):
        return -MISMATCH_PENALTY
    return 0.0


def explain(
    query: SearchQuery | Mapping[str, Any] | None,
    record: SightingRecord | Mapping[str, Any] | None,
) -> ScoreBreakdown:
    """Score a record against a query and report every contributing term.

    Args:
        query: Search criteria, as a model or a raw mapping.
        record: Candidate sighting, as a model or a raw mapping.

    Returns:
        ScoreBreakdown whose ``total`` is the relevance score.
    """
    query = _coerce(SearchQuery, query)
    record = _coerce(SightingRecord, record)

    visual_mode = bool(query.visual_tags)
    weights = VISUAL_WEIGHTS if visual_mode else TEXTUAL_WEIGHTS
    terms: dict[str, float] = {}

    if query.breed_hint and record.breed:
        terms["breed"] = similarity(query.breed_hint, record.breed) * weights["breed"]

    if query.search_term:
        if record.details:
            terms["details"] = similarity(query.search_term, record.details) * DETAILS_WEIGHT
        if record.manual_location:
            terms["manual_location"] = (
                similarity(query.search_term, record.manual_location) * weights["location"]
            )

    terms["location"] = _location_term(query, record, weights["location"])

    if visual_mode:
        terms["visual"] = _visual_term(query.visual_tags, record, weights["visual"])
        terms["penalty"] = _mismatch_penalty(query.visual_tags, record, terms["visual"])

    total = 0.0
    for value in terms.values():
        total += value
    if not math.isfinite(total):
        logger.warning("Non-finite relevance score for record %s, using 0", record.id)
        total = 0.0

    return ScoreBreakdown(
        mode="visual" if visual_mode else "textual",
        total=max(0.0, total),
        **terms,
    )


def score(
    query: SearchQuery | Mapping[str, Any] | None,
    record: SightingRecord | Mapping[str, Any] | None,
) -> float:
    """Return the composite relevance score of ``record`` for ``query``.

    Never negative and never raises on malformed input. There is no upper
    clamp, a strong multi-signal match may exceed 1.0.
    """
    return explain(query, record).total
