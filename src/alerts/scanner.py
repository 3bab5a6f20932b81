"""Decide whether a newly arrived sighting should trigger a saved alert."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping, Sequence
from typing import Any

from pydantic import ValidationError

from src.config import get_config
from src.data.schemas import AlertProfile, ScanResult, SearchQuery, SightingRecord
from src.matching.scorer import score

logger = logging.getLogger(__name__)


def _as_profile(profile: AlertProfile | Mapping[str, Any] | None) -> AlertProfile | None:
    if profile is None or isinstance(profile, AlertProfile):
        return profile
    try:
        return AlertProfile.model_validate(dict(profile))
    except (ValidationError, TypeError, ValueError) as exc:
        logger.debug("Ignoring malformed alert profile: %s", exc)
        return None


def _as_record(candidate: SightingRecord | Mapping[str, Any]) -> SightingRecord | None:
    if isinstance(candidate, SightingRecord):
        return candidate
    try:
        return SightingRecord.model_validate(dict(candidate))
    except (ValidationError, TypeError, ValueError) as exc:
        logger.debug("Ignoring malformed sighting: %s", exc)
        return None


def scan(
    profile: AlertProfile | Mapping[str, Any] | None,
    candidates: Sequence[SightingRecord | Mapping[str, Any]],
    notified_ids: Iterable[str | int] = (),
    threshold: float | None = None,
    history_size: int | None = None,
) -> ScanResult:
    """Check the newest sighting against an alert profile.

    Only ``candidates[0]`` is evaluated: a scan reacts to a new arrival, it
    does not sweep the backlog. The function holds no state; the caller
    persists the returned ``notified_ids`` and passes it back next time.

    Args:
        profile: Saved alert, or None when the user has none configured.
        candidates: Sightings ordered newest first.
        notified_ids: Ids already alerted on, oldest first.
        threshold: Minimum score that fires. Defaults to
            ``Config.alert_threshold``.
        history_size: How many ids to retain. Defaults to
            ``Config.alert_history_size``.

    Returns:
        ScanResult with the sighting to notify about (if any) and the id
        history to persist.
    """
    history = tuple(notified_ids)
    unchanged = ScanResult(to_notify=None, notified_ids=history)

    alert = _as_profile(profile)
    if alert is None or not candidates:
        return unchanged

    latest = _as_record(candidates[0])
    if latest is None:
        return unchanged
    if latest.id is None:
        logger.debug("Skipping sighting without id, it cannot be deduplicated")
        return unchanged
    if latest.id in history:
        return unchanged

    if threshold is None or history_size is None:
        config = get_config()
        threshold = config.alert_threshold if threshold is None else threshold
        history_size = config.alert_history_size if history_size is None else history_size

    query = SearchQuery(
        breed_hint=alert.breed_hint,
        location=alert.location,
        search_term=alert.breed_hint,
    )
    relevance = score(query, latest)
    if relevance < threshold:
        logger.debug("Sighting %s scored %.3f, below alert threshold", latest.id, relevance)
        return unchanged

    logger.info("Sighting %s matches alert profile (score %.3f)", latest.id, relevance)
    updated = (*history, latest.id)
    if history_size > 0:
        updated = updated[-history_size:]
    else:
        updated = ()
    return ScanResult(to_notify=latest, notified_ids=updated)


def alert_message(sighting: SightingRecord) -> str:
    """Build the notification text shown for a matched sighting."""
    breed = sighting.breed or "dog"
    return f"A {breed} similar to your alert has been reported nearby."
