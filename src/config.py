"""Central application configuration."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field

from dotenv import load_dotenv

LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"


@dataclass(frozen=True)
class Config:
    """Central scoring configuration.

    Reads from environment variables with sensible defaults. Weights and
    penalty constants live next to the scorer; only the caller-facing
    thresholds are configurable here.
    """

    # Search
    search_min_score: float = field(
        default_factory=lambda: float(os.getenv("SEARCH_MIN_SCORE", "0.1"))
    )
    scoring_workers: int = field(
        default_factory=lambda: int(os.getenv("SCORING_WORKERS", "1"))
    )

    # Alerts
    alert_threshold: float = field(
        default_factory=lambda: float(os.getenv("ALERT_THRESHOLD", "0.7"))
    )
    alert_history_size: int = field(
        default_factory=lambda: int(os.getenv("ALERT_HISTORY_SIZE", "20"))
    )

    # Logging
    log_level: str = field(default_factory=lambda: os.getenv("LOG_LEVEL", "INFO"))


def get_config() -> Config:
    """Get application configuration.

    Values from a local ``.env`` file are loaded first; variables already
    present in the environment take precedence.

    Returns:
        Config instance with values from environment or defaults.
    """
    load_dotenv()
    return Config()


def configure_logging(level: str | int | None = None) -> None:
    """Apply the project log format to the root logger.

    Library modules only create loggers; host applications call this once.

    Args:
        level: Log level name or number. Defaults to ``Config.log_level``.
    """
    if level is None:
        level = get_config().log_level
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.INFO
    logging.basicConfig(level=level, format=LOG_FORMAT)
