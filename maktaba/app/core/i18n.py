"""Ledger wording in the shop's language.

Descriptions written into the ledger, till account names and default
categories come from ``locales/<lang>/messages.json``. The ledger keeps the
text as written, so changing ``LEDGER_LANGUAGE`` only affects new entries.
"""

from __future__ import annotations

import json
import logging
from functools import lru_cache
from pathlib import Path

from maktaba.app.core.config import settings

logger = logging.getLogger(__name__)

LOCALES_DIR = Path(__file__).resolve().parent.parent / "locales"
SUPPORTED_LANGUAGES = ("ar", "en")


class _KeepMissing(dict):
    """Leaves unknown ``{placeholders}`` in the text untouched."""

    def __missing__(self, key: str) -> str:
        return "{" + key + "}"


@lru_cache(maxsize=None)
def catalogue(lang: str) -> dict[str, str]:
    if lang not in SUPPORTED_LANGUAGES:
        logger.warning("Unsupported ledger language %r, using English", lang)
        lang = "en"
    path = LOCALES_DIR / lang / "messages.json"
    try:
        return json.loads(path.read_text(encoding="utf-8"))
    except FileNotFoundError:
        logger.error("Message catalogue missing: %s", path)
        return {}


def ledger_text(key: str, lang: str | None = None, **values: str) -> str:
    """Text for *key* in *lang* (default ``LEDGER_LANGUAGE``).

    Keys missing from the catalogue fall back to English, then to the key.
    """
    text = catalogue(lang or settings.LEDGER_LANGUAGE).get(key) or catalogue("en").get(key)
    if text is None:
        return key
    return text.format_map(_KeepMissing(values)) if values else text
