"""Great-circle distance, distance decay and tolerant location parsing."""

from __future__ import annotations

import logging
import math
from collections.abc import Mapping
from typing import Any

from pydantic import ValidationError

from src.data.schemas import GeoPoint

logger = logging.getLogger(__name__)

EARTH_RADIUS_KM = 6371.0

# (upper bound in km, fraction of full weight), checked in order
DISTANCE_DECAY_STEPS: tuple[tuple[float, float], ...] = (
    (5.0, 1.0),
    (15.0, 0.6),
    (40.0, 0.2),
)


def distance_km(p1: GeoPoint, p2: GeoPoint) -> float:
    """Calculate haversine distance between two points.

    Args:
        p1: First coordinate.
        p2: Second coordinate.

    Returns:
        Great-circle distance in kilometers.
    """
    phi1 = math.radians(p1.latitude)
    phi2 = math.radians(p2.latitude)
    delta_phi = math.radians(p2.latitude - p1.latitude)
    delta_lambda = math.radians(p2.longitude - p1.longitude)

    a = math.sin(delta_phi / 2) ** 2 + \
        math.cos(phi1) * math.cos(phi2) * math.sin(delta_lambda / 2) ** 2
    # Rounding can push a just past 1 for antipodal points.
    a = min(1.0, max(0.0, a))
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))

    return EARTH_RADIUS_KM * c


def location_score(distance: float, full_weight: float) -> float:
    """Map a distance to a share of ``full_weight`` using a step decay.

    Args:
        distance: Distance in kilometers.
        full_weight: Contribution awarded for a very close match.

    Returns:
        ``full_weight`` under 5 km, 60% under 15 km, 20% under 40 km,
        otherwise 0. Negative or non-finite distances score 0.
    """
    if not math.isfinite(distance) or distance < 0:
        return 0.0
    for limit, fraction in DISTANCE_DECAY_STEPS:
        if distance < limit:
            return full_weight * fraction
    return 0.0


def parse_geo_point(value: Any) -> GeoPoint | None:
    """Accept a GeoPoint, a mapping or a JSON string and return a GeoPoint.

    Anything that cannot be read as a finite, in-range coordinate pair
    yields None instead of raising.
    """
    if value is None:
        return None
    if isinstance(value, GeoPoint):
        return value

    try:
        if isinstance(value, (str, bytes)):
            return GeoPoint.model_validate_json(value)
        if isinstance(value, Mapping):
            return GeoPoint.model_validate(dict(value))
    except ValidationError as exc:
        logger.debug("Location parsing error: %s", exc)
        return None

    logger.debug("Unsupported location type: %s", type(value).__name__)
    return None
