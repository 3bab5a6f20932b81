"""Pydantic models for sightings, queries, alerts and scoring results."""

from __future__ import annotations

import json
import logging
from collections.abc import Iterable, Mapping
from typing import Any, Literal

from pydantic import (
    AliasChoices,
    BaseModel,
    ConfigDict,
    Field,
    ValidationError,
    field_validator,
)
from pydantic.alias_generators import to_camel

logger = logging.getLogger(__name__)

_MODEL_CONFIG = ConfigDict(
    alias_generator=to_camel,
    populate_by_name=True,
    frozen=True,
    extra="ignore",
)


class GeoPoint(BaseModel):
    """A WGS84 coordinate in degrees."""

    model_config = ConfigDict(frozen=True, allow_inf_nan=False)

    latitude: float = Field(ge=-90.0, le=90.0)
    longitude: float = Field(ge=-180.0, le=180.0)


class VisualTag(BaseModel):
    """One classifier guess.

    The classifier emits ``className``; stored records use ``label``.
    """

    model_config = ConfigDict(frozen=True, allow_inf_nan=False)

    label: str = Field(validation_alias=AliasChoices("label", "className", "class_name"))
    probability: float = Field(ge=0.0, le=1.0)


def _optional_text(value: Any) -> str | None:
    if not isinstance(value, str) or not value.strip():
        return None
    return value


def _lenient_tags(value: Any) -> tuple[VisualTag, ...] | None:
    """Coerce a raw tag list (or its JSON string form) into VisualTags.

    Returns None when nothing usable was supplied. Malformed entries are
    dropped individually so one bad tag does not discard the rest.
    """
    if value is None:
        return None
    if isinstance(value, str):
        try:
            value = json.loads(value)
        except ValueError:
            logger.debug("Discarding unparseable tag string: %r", value[:80])
            return None
    if isinstance(value, (Mapping, str, bytes, BaseModel)) or not isinstance(value, Iterable):
        return None

    tags = []
    for item in value:
        if isinstance(item, VisualTag):
            tags.append(item)
            continue
        try:
            tags.append(VisualTag.model_validate(item))
        except ValidationError:
            logger.debug("Dropping malformed visual tag: %r", item)
    return tuple(tags)


class SearchQuery(BaseModel):
    """What a user is looking for during one scoring pass.

    ``location`` is kept as supplied (model, mapping or JSON string) and
    parsed lazily by the geolocation term.
    """

    model_config = _MODEL_CONFIG

    search_term: str | None = None
    breed_hint: str | None = Field(
        default=None,
        validation_alias=AliasChoices("breed_hint", "breedHint", "breed"),
    )
    location: Any = None
    visual_tags: tuple[VisualTag, ...] = ()

    @field_validator("search_term", "breed_hint", mode="before")
    @classmethod
    def _text(cls, value: Any) -> str | None:
        return _optional_text(value)

    @field_validator("visual_tags", mode="before")
    @classmethod
    def _tags(cls, value: Any) -> tuple[VisualTag, ...]:
        return _lenient_tags(value) or ()

    @property
    def has_criteria(self) -> bool:
        """True when the query carries any search signal at all."""
        return bool(self.search_term or self.breed_hint or self.location or self.visual_tags)


class SightingRecord(BaseModel):
    """One externally stored sighting report, read-only to the engine.

    ``created_at`` and ``status`` are carried for the caller's sorting and
    filtering and never influence the score.
    """

    model_config = _MODEL_CONFIG

    id: str | int | None = None
    breed: str | None = None
    details: str | None = None
    manual_location: str | None = None
    location: Any = None
    ai_tags: tuple[VisualTag, ...] | None = None
    created_at: Any = None
    status: str | None = None

    @field_validator("breed", "details", "manual_location", "status", mode="before")
    @classmethod
    def _text(cls, value: Any) -> str | None:
        return _optional_text(value)

    @field_validator("id", mode="before")
    @classmethod
    def _id(cls, value: Any) -> str | int | None:
        if isinstance(value, bool) or not isinstance(value, (str, int)):
            return None
        return value

    @field_validator("ai_tags", mode="before")
    @classmethod
    def _tags(cls, value: Any) -> tuple[VisualTag, ...] | None:
        return _lenient_tags(value)


class AlertProfile(BaseModel):
    """A saved alert: the breed and area a user wants to hear about."""

    model_config = _MODEL_CONFIG

    breed_hint: str | None = Field(
        default=None,
        validation_alias=AliasChoices("breed_hint", "breedHint", "breed"),
    )
    location: Any = None

    @field_validator("breed_hint", mode="before")
    @classmethod
    def _text(cls, value: Any) -> str | None:
        return _optional_text(value)


class ScoreBreakdown(BaseModel):
    """Per-term contributions of one relevance score."""

    model_config = ConfigDict(frozen=True)

    mode: Literal["visual", "textual"]
    breed: float = 0.0
    details: float = 0.0
    manual_location: float = 0.0
    location: float = 0.0
    visual: float = 0.0
    penalty: float = Field(default=0.0, description="Zero or negative")
    total: float = 0.0


class RankedSighting(BaseModel):
    """A single ranked search result."""

    sighting: SightingRecord
    score: float = Field(description="Composite relevance score")
    explanation: str = Field(default="", description="Human-readable match explanation")


class ScanResult(BaseModel):
    """Outcome of one alert scan.

    ``notified_ids`` is ordered oldest first and is the value the caller
    persists for the next scan.
    """

    model_config = ConfigDict(frozen=True)

    to_notify: SightingRecord | None = None
    notified_ids: tuple[str | int, ...] = ()
