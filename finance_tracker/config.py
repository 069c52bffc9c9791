"""Configuration management for the finance tracker.

This module centralizes all configuration values including paths,
the shared category vocabulary, logging defaults and environment
variable overrides.
"""

from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import List, Optional, Union

# Base project root - assumes this file is in finance_tracker/
_PROJECT_ROOT = Path(__file__).parent.parent.resolve()

# Data directories
DATA_DIR = Path(os.getenv("FINTRACK_DATA_DIR", _PROJECT_ROOT / "data"))
SEED_DIR = DATA_DIR / "seed"

# Database
DB_PATH = Path(
    os.getenv("FINTRACK_DB_PATH", DATA_DIR / "finance.db")
).resolve()

# Mock-data seed used by the in-memory stores
SEED_PATH = Path(
    os.getenv("FINTRACK_SEED_PATH", SEED_DIR / "seed.json")
).resolve()

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"
DEFAULT_LOG_LEVEL = "INFO"

DEFAULT_CATEGORIES = (
    "Food & Dining",
    "Transportation",
    "Shopping",
    "Entertainment",
    "Bills & Utilities",
    "Health & Medical",
    "Travel",
    "Education",
    "Investments",
    "Gifts & Donations",
    "Personal Care",
    "Home & Garden",
    "Other",
)

TRANSACTION_TYPES = ("income", "expense")


def load_categories(path: Optional[Union[str, Path]] = None) -> List[str]:
    """Return the category vocabulary.

    A JSON list stored at ``path`` (or at ``$FINTRACK_CATEGORIES_FILE``)
    replaces the built-in vocabulary.  Missing files fall back to
    :data:`DEFAULT_CATEGORIES`; a file that is not a list of strings raises
    ``ValueError``.
    """
    override = path or os.getenv("FINTRACK_CATEGORIES_FILE")
    if not override:
        return list(DEFAULT_CATEGORIES)

    target = Path(override)
    if not target.exists():
        return list(DEFAULT_CATEGORIES)

    with target.open('r', encoding='utf-8') as handle:
        data = json.load(handle)

    if not isinstance(data, list) or not all(isinstance(item, str) for item in data):
        raise ValueError(f"Category file {target} must contain a JSON list of strings")
    cleaned = [item.strip() for item in data if item.strip()]
    # Preserve order, drop duplicates
    return list(dict.fromkeys(cleaned))


def configure_logging(level: Optional[str] = None) -> None:
    """Configure root logging from ``level`` or ``$FINTRACK_LOG_LEVEL``."""
    resolved = (level or os.getenv("FINTRACK_LOG_LEVEL") or DEFAULT_LOG_LEVEL).upper()
    logging.basicConfig(level=getattr(logging, resolved, logging.INFO), format=LOG_FORMAT)
