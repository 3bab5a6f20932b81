"""Shared test fixtures for the relevance scoring test suite."""

from __future__ import annotations

import pytest

from src.data.schemas import AlertProfile, SearchQuery, SightingRecord, VisualTag

MEXICO_CITY = {"latitude": 19.4320, "longitude": -99.1330}
MEXICO_CITY_NEARBY = {"latitude": 19.4326, "longitude": -99.1332}


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep scoring thresholds at their defaults regardless of the host env."""
    for name in (
        "SEARCH_MIN_SCORE",
        "SCORING_WORKERS",
        "ALERT_THRESHOLD",
        "ALERT_HISTORY_SIZE",
        "LOG_LEVEL",
    ):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setattr("src.config.load_dotenv", lambda *a, **k: False)


@pytest.fixture
def golden_sighting() -> SightingRecord:
    """Create a sample golden retriever sighting."""
    return SightingRecord(
        id="s-100",
        breed="golden retriever",
        details="friendly dog with a red collar",
        manual_location="Parque Mexico, Condesa",
        location=MEXICO_CITY_NEARBY,
        ai_tags=[
            VisualTag(label="golden retriever", probability=0.82),
            VisualTag(label="Labrador retriever", probability=0.11),
        ],
        created_at=1_700_000_000_000,
        status="sighted",
    )


@pytest.fixture
def pomeranian_sighting() -> SightingRecord:
    """Create a sighting whose reported breed is a spitz type with no tags."""
    return SightingRecord(id="s-200", breed="Pomeranian", ai_tags=[])


@pytest.fixture
def husky_query() -> SearchQuery:
    """Create a photo-driven query with a confident husky guess."""
    return SearchQuery(visual_tags=[VisualTag(label="Husky", probability=0.9)])


@pytest.fixture
def golden_profile() -> AlertProfile:
    """Create an alert profile for a golden retriever lost downtown."""
    return AlertProfile(breed_hint="golden retriever", location=MEXICO_CITY)
