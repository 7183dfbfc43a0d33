# ocrbridge/config.py
from __future__ import annotations

import json
import logging
import os
import sys
from dataclasses import dataclass, asdict, fields
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Optional

from .exceptions import InvalidSettingError

logger = logging.getLogger("ocrbridge")

APP_DIR_NAME = "ocrbridge"
SETTINGS_FILE_NAME = "settings.json"

_UNIT_RANGE_FIELDS = ("text_threshold", "low_text", "link_threshold", "contrast_ths", "adjust_contrast")


class Decoder(str, Enum):
    GREEDY = "greedy"
    BEAMSEARCH = "beamsearch"
    WORDBEAMSEARCH = "wordbeamsearch"

    @property
    def label(self) -> str:
        return {
            Decoder.GREEDY: "Greedy (Fast)",
            Decoder.BEAMSEARCH: "Beam Search (Accurate)",
            Decoder.WORDBEAMSEARCH: "Word Beam Search (Most Accurate)",
        }[self]

    @classmethod
    def parse(cls, value: Any) -> "Decoder":
        if isinstance(value, Decoder):
            return value
        s = str(value or "").strip().lower().replace("_", "").replace(" ", "")
        for d in cls:
            if d.value == s or d.name.lower() == s:
                return d
        raise ValueError(f"Unknown decoder: {value!r}")


@dataclass(frozen=True)
class RecognitionConfig:
    """Immutable snapshot of every EasyOCR tunable used for one run."""
    # Comma/space separated language codes, e.g. "en,ch_sim"
    languages: str = "en"

    gpu: bool = False
    workers: int = 0                # 0 = let EasyOCR decide
    quantize: bool = True

    decoder: Decoder = Decoder.GREEDY
    beam_width: int = 5
    batch_size: int = 1

    # Detection thresholds, all in [0, 1]
    text_threshold: float = 0.7
    low_text: float = 0.4
    link_threshold: float = 0.4
    contrast_ths: float = 0.1
    adjust_contrast: float = 0.5
    add_margin: float = 0.1
    min_size: int = 20

    paragraph: bool = False

    model_storage_directory: str = ""
    easyocr_exe: str = ""

    # Seconds allowed for one availability probe (`<cmd> --help`)
    probe_timeout: float = 60.0

    def __post_init__(self):
        # frozen: coerce through object.__setattr__
        object.__setattr__(self, "decoder", Decoder.parse(self.decoder))
        for name in ("text_threshold", "low_text", "link_threshold",
                     "contrast_ths", "adjust_contrast", "add_margin", "probe_timeout"):
            object.__setattr__(self, name, float(getattr(self, name)))
        for name in ("workers", "beam_width", "batch_size", "min_size"):
            object.__setattr__(self, name, int(getattr(self, name)))
        for name in _UNIT_RANGE_FIELDS:
            value = getattr(self, name)
            if not 0.0 <= value <= 1.0:
                raise InvalidSettingError(f"{name} must be within [0, 1], got {value}")

    def to_dict(self) -> Dict[str, Any]:
        """Plain JSON-friendly dict (decoder as its string value)."""
        d = asdict(self)
        d["decoder"] = self.decoder.value
        return d

    @classmethod
    def from_dict(cls, config_dict: Optional[dict]) -> "RecognitionConfig":
        d = dict(config_dict or {})
        known = {f.name for f in fields(cls)}

        unknown = sorted(k for k in d if k not in known)
        if unknown:
            logger.debug("Ignoring unknown settings keys: %s", ", ".join(unknown))

        # explicit None means use default
        d = {k: v for k, v in d.items() if k in known and v is not None}
        return cls(**d)


# ----------------------------
# Settings persistence
# ----------------------------

def _config_root() -> Optional[Path]:
    if sys.platform.startswith("win"):
        appdata = os.environ.get("APPDATA")
        return Path(appdata) if appdata else None
    home = os.environ.get("HOME")
    if sys.platform == "darwin":
        return Path(home) / "Library" / "Application Support" if home else None
    xdg = os.environ.get("XDG_CONFIG_HOME")
    if xdg:
        return Path(xdg)
    return Path(home) / ".config" if home else None


def settings_path() -> Optional[Path]:
    root = _config_root()
    if root is None:
        return None
    return root / APP_DIR_NAME / SETTINGS_FILE_NAME


def load_settings(path: Optional[Path] = None) -> RecognitionConfig:
    """
    Load persisted settings. A missing or unreadable file yields defaults.
    """
    path = Path(path) if path else settings_path()
    if path is None or not path.exists():
        return RecognitionConfig()
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
        if not isinstance(data, dict):
            raise ValueError("settings file does not hold an object")
        return RecognitionConfig.from_dict(data)
    except (OSError, ValueError, TypeError) as e:
        logger.warning("Failed to read settings from %s, using defaults: %s", path, e)
        return RecognitionConfig()


def save_settings(config: RecognitionConfig, path: Optional[Path] = None) -> Path:
    path = Path(path) if path else settings_path()
    if path is None:
        raise OSError("cannot determine config directory")
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(config.to_dict(), indent=2, ensure_ascii=False), encoding="utf-8")
    logger.info("Settings saved to %s", path)
    return path
