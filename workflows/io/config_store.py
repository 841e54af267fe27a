"""
[Form Config Store] Environment-backed workflow settings.

Settings are read on every call so tests can patch the environment. All
accessors fall back to the defaults below when a variable is missing or
cannot be parsed.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Any, Dict

__workflow_role__ = "ConfigStore"

logger = logging.getLogger(__name__)

_DEFAULTS: Dict[str, Any] = {
    "db_path": Path(__file__).resolve().parents[2] / "conversations_database.json",
    "full_match_confidence": 0.5,  # Every candidate of a full match must reach this
    "prefill_coverage": 0.5,  # Pre-filled entities may leave half the text unexplained
    "prompt_in_start": True,  # API-started forms prompt before the first user message
}


def _get_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        value = float(raw)
    except ValueError:
        logger.warning("[FORM][CONFIG] Ignoring non-numeric %s=%r", name, raw)
        return default
    return min(max(value, 0.0), 1.0)


def get_db_path() -> Path:
    """[Form Config Store] Return the JSON conversation store location."""
    raw = os.getenv("FORM_DB_PATH")
    return Path(raw) if raw else _DEFAULTS["db_path"]


def get_full_match_confidence() -> float:
    """[Form Config Store] Return the confidence floor for a full match."""
    return _get_float("FORM_FULL_MATCH_CONFIDENCE", _DEFAULTS["full_match_confidence"])


def get_prefill_coverage() -> float:
    """[Form Config Store] Return the coverage threshold for pre-filled entities."""
    return _get_float("FORM_PREFILL_COVERAGE", _DEFAULTS["prefill_coverage"])


def prompt_in_start() -> bool:
    """[Form Config Store] True if new conversations prompt immediately."""
    raw = os.getenv("FORM_PROMPT_IN_START")
    if raw is None:
        return _DEFAULTS["prompt_in_start"]
    return raw.strip().lower() in ("1", "true", "yes", "on")


__all__ = [
    "get_db_path",
    "get_full_match_confidence",
    "get_prefill_coverage",
    "prompt_in_start",
]
