"""Rank stored sightings against a search query."""

from __future__ import annotations

import logging
import math
from collections.abc import Mapping, Sequence
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime
from typing import Any

from pydantic import ValidationError

from src.config import get_config
from src.data.schemas import RankedSighting, ScoreBreakdown, SearchQuery, SightingRecord
from src.matching.breeds import canonical_breed
from src.matching.scorer import explain

logger = logging.getLogger(__name__)


class SightingRanker:
    """Score, filter and order sightings for one search.

    Scoring is independent per candidate, so with ``max_workers > 1`` the
    candidates are fanned out over a thread pool. Output order never
    depends on completion order.

    Args:
        min_score: Results at or below this are dropped when the query has
            a search term, breed hint or visual tags. Defaults to
            ``Config.search_min_score``.
        max_workers: Thread count for scoring. Defaults to
            ``Config.scoring_workers``.
    """

    def __init__(
        self,
        min_score: float | None = None,
        max_workers: int | None = None,
    ) -> None:
        config = get_config()
        self.min_score = config.search_min_score if min_score is None else min_score
        self.max_workers = config.scoring_workers if max_workers is None else max_workers

    def rank(
        self,
        query: SearchQuery | Mapping[str, Any],
        candidates: Sequence[SightingRecord | Mapping[str, Any]],
    ) -> list[RankedSighting]:
        """Rank candidates for a query.

        With no criteria at all the candidates come back newest first and
        unfiltered. Otherwise they are sorted by score descending; a query
        with a search term, breed hint or visual tags also drops weak
        matches.

        Args:
            query: Search criteria.
            candidates: Sightings already filtered by status by the caller.

        Returns:
            Ranked results with explanations.
        """
        query = _as_query(query)
        records = [r for r in (_as_record(c) for c in candidates) if r is not None]
        breakdowns = self._score_all(query, records)

        results = [
            RankedSighting(
                sighting=record,
                score=breakdown.total,
                explanation=_generate_explanation(record, breakdown),
            )
            for record, breakdown in zip(records, breakdowns, strict=True)
        ]

        if not query.has_criteria:
            return sorted(results, key=lambda r: _created_at_ms(r.sighting.created_at), reverse=True)

        if query.search_term or query.breed_hint or query.visual_tags:
            results = [r for r in results if r.score > self.min_score]

        ranked = sorted(results, key=lambda r: r.score, reverse=True)
        if query.visual_tags and ranked:
            logger.debug(
                "Top visual matches: %s",
                ", ".join(f"{r.sighting.id}={r.score:.4f}" for r in ranked[:5]),
            )
        return ranked

    def _score_all(
        self,
        query: SearchQuery,
        records: list[SightingRecord],
    ) -> list[ScoreBreakdown]:
        if self.max_workers <= 1 or len(records) < 2:
            return [explain(query, record) for record in records]

        with ThreadPoolExecutor(max_workers=self.max_workers) as pool:
            return list(pool.map(lambda record: explain(query, record), records))


def rank_sightings(
    query: SearchQuery | Mapping[str, Any],
    candidates: Sequence[SightingRecord | Mapping[str, Any]],
    min_score: float | None = None,
    max_workers: int | None = None,
) -> list[RankedSighting]:
    """Convenience wrapper around :class:`SightingRanker`."""
    return SightingRanker(min_score=min_score, max_workers=max_workers).rank(query, candidates)


def _as_query(query: SearchQuery | Mapping[str, Any]) -> SearchQuery:
    if isinstance(query, SearchQuery):
        return query
    try:
        return SearchQuery.model_validate(dict(query))
    except (ValidationError, TypeError, ValueError) as exc:
        logger.debug("Treating malformed query as empty: %s", exc)
        return SearchQuery()


def _as_record(candidate: SightingRecord | Mapping[str, Any]) -> SightingRecord | None:
    if isinstance(candidate, SightingRecord):
        return candidate
    try:
        return SightingRecord.model_validate(dict(candidate))
    except (ValidationError, TypeError, ValueError) as exc:
        logger.debug("Skipping malformed sighting: %s", exc)
        return None


def _created_at_ms(value: Any) -> float:
    """Return a sortable epoch-milliseconds value; unknown dates sort last.

    Accepts epoch milliseconds, ``{"seconds": ...}`` store timestamps,
    datetimes and ISO-8601 strings.
    """
    if isinstance(value, bool):
        return -math.inf
    if isinstance(value, (int, float)):
        return float(value) if math.isfinite(value) else -math.inf
    if isinstance(value, Mapping) and isinstance(value.get("seconds"), (int, float)):
        return float(value["seconds"]) * 1000
    if isinstance(value, str):
        try:
            value = datetime.fromisoformat(value.replace("Z", "+00:00"))
        except ValueError:
            return -math.inf
    if isinstance(value, datetime):
        return value.timestamp() * 1000
    return -math.inf


def _generate_explanation(record: SightingRecord, breakdown: ScoreBreakdown) -> str:
    """Generate human-readable explanation for a ranked sighting.

    Args:
        record: The scored sighting.
        breakdown: Per-term contributions.

    Returns:
        Explanation string.
    """
    parts = [f"Match score: {breakdown.total:.3f}", f"Mode: {breakdown.mode}"]
    if record.breed:
        canonical = canonical_breed(record.breed)
        if canonical and canonical != record.breed.lower():
            parts.append(f"Breed: {record.breed} ({canonical})")
        else:
            parts.append(f"Breed: {record.breed}")

    for name in ("breed", "details", "manual_location", "location", "visual"):
        value = getattr(breakdown, name)
        if value > 0:
            parts.append(f"{name.replace('_', ' ')} +{value:.3f}")
    if breakdown.penalty < 0:
        parts.append(f"breed mismatch {breakdown.penalty:.3f}")
    return " | ".join(parts)
