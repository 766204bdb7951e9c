"""Load bundled quote pools from JSON resources."""

from __future__ import annotations

import json
import logging
import re
from importlib import resources
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)

CONTENT_PACKAGE = "dailytype.content.sentences"
LANGUAGES: tuple[str, ...] = ("ko", "en", "ja", "es", "fr")
LANGUAGE_NAMES = {
    "en": "English",
    "ko": "한국어",
    "ja": "日本語",
    "es": "Español",
    "fr": "Français",
}

_FILE_PATTERN = re.compile(r"^sentences\.([A-Za-z][A-Za-z0-9_-]*)\.json$")


def language_name(code: str) -> str:
    """Display name for a language code."""
    return LANGUAGE_NAMES.get(code, code.upper())


def _pool_from_dict(language: str, raw: Any) -> tuple[str, ...]:
    """Build an ordered pool from one decoded sentences file."""
    if not isinstance(raw, dict):
        raise ValueError(f"Sentences file for '{language}' must contain a JSON object.")
    sentences = raw.get("sentences", [])
    if not isinstance(sentences, list):
        raise ValueError(f"Sentences file for '{language}' has a non-list 'sentences' field.")
    for position, item in enumerate(sentences):
        if not isinstance(item, str):
            raise ValueError(
                f"Sentences file for '{language}' has a non-string entry at position {position}."
            )
    pool = tuple(sentences)
    if not pool:
        logger.warning("Quote pool for '%s' is empty.", language)
    return pool


def _language_from_filename(name: str) -> str | None:
    match = _FILE_PATTERN.match(name)
    return match.group(1).lower() if match else None


def load_quote_pools() -> dict[str, tuple[str, ...]]:
    """Load bundled pools keyed by language code."""
    pools: dict[str, tuple[str, ...]] = {}
    for entry in sorted(resources.files(CONTENT_PACKAGE).iterdir(), key=lambda item: item.name):
        language = _language_from_filename(entry.name)
        if language is None:
            continue
        raw = json.loads(entry.read_text(encoding="utf-8-sig"))
        if language in pools:
            raise ValueError(f"Duplicate quote pool: {language}")
        pools[language] = _pool_from_dict(language, raw)
    return pools


def load_quote_pools_from_dir(path: Path) -> dict[str, tuple[str, ...]]:
    """Load pools from a directory of ``sentences.<lang>.json`` files."""
    pools: dict[str, tuple[str, ...]] = {}
    for file_path in sorted(path.glob("sentences.*.json")):
        language = _language_from_filename(file_path.name)
        if language is None:
            continue
        raw = json.loads(file_path.read_text(encoding="utf-8-sig"))
        if language in pools:
            raise ValueError(f"Duplicate quote pool: {language}")
        pools[language] = _pool_from_dict(language, raw)
    return pools


def load_quote_pool(language: str) -> tuple[str, ...]:
    """Load one bundled pool; unknown languages give an empty pool."""
    return load_quote_pools().get(language, ())
