# ocrbridge/normalize.py
from __future__ import annotations

import logging
import os
import re
from typing import List

logger = logging.getLogger("ocrbridge")

# EasyOCR only accepts ch_sim together with en, so the pair is a safe default.
DEFAULT_LANGUAGES = ("ch_sim", "en")

# ASCII and full-width commas/semicolons plus any whitespace
_LANG_SEPARATORS = re.compile(r"[,，;；\s]+")


def split_languages(text: str | None) -> List[str]:
    """
    Turn a free-form language field ("en, fr", "ch_sim；en") into a list of codes.
    An empty result falls back to DEFAULT_LANGUAGES instead of failing.
    """
    tokens = [t.strip() for t in _LANG_SEPARATORS.split(text or "")]
    langs = [t for t in tokens if t]
    if not langs:
        logger.warning("No languages configured, using default %s", ", ".join(DEFAULT_LANGUAGES))
        return list(DEFAULT_LANGUAGES)
    return langs


def _home_dir() -> str | None:
    return os.environ.get("HOME") or os.environ.get("USERPROFILE")


def expand_home(path: str) -> str:
    """Expand a leading ``~`` or ``~/``; other paths (and ``~user``) pass through."""
    if not path or not path.startswith("~"):
        return path
    rest = path[1:]
    if rest and rest[0] not in ("/", "\\"):
        return path
    home = _home_dir()
    if not home:
        return path
    rest = rest.lstrip("/\\")
    return os.path.join(home, rest) if rest else home
