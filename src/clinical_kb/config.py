"""Environment-variable-based configuration."""

import os
from pathlib import Path


def get_log_level() -> str:
    """Return the logging level from KB_LOG_LEVEL."""
    return os.environ.get("KB_LOG_LEVEL", "WARNING").upper()


def get_snapshot_path() -> Path | None:
    """Return the JSON snapshot loaded at startup from KB_SNAPSHOT_PATH, if set."""
    raw = os.environ.get("KB_SNAPSHOT_PATH")
    if not raw:
        return None
    return Path(raw).expanduser()


def should_seed_samples() -> bool:
    """Return True if KB_SEED_SAMPLES is set to TRUE."""
    return os.environ.get("KB_SEED_SAMPLES", "").upper() == "TRUE"


def get_search_limit() -> int:
    """Return the default number of search results from KB_SEARCH_LIMIT."""
    return int(os.environ.get("KB_SEARCH_LIMIT", "10"))


def get_related_limit() -> int:
    """Return the default number of related entries from KB_RELATED_LIMIT."""
    return int(os.environ.get("KB_RELATED_LIMIT", "5"))


def get_semantic_threshold() -> float:
    """Return the minimum cosine similarity for semantic matches from KB_SEMANTIC_THRESHOLD."""
    return float(os.environ.get("KB_SEMANTIC_THRESHOLD", "0.75"))


def is_manager_mode() -> bool:
    """Return True if KB_MANAGER is set to TRUE."""
    return os.environ.get("KB_MANAGER", "").upper() == "TRUE"
