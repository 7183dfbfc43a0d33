# ocrbridge/parser.py
"""
Parse the text printed by ``easyocr.cli --detail 1``.

EasyOCR prints Python reprs, one per recognized region, mixed with whatever
log lines torch and EasyOCR decide to emit. Two layouts exist:

  standard   ([[x1, y1], [x2, y2], [x3, y3], [x4, y4]], 'text', 0.9543)
  paragraph  [[[x1, y1], [x2, y2], [x3, y3], [x4, y4]], 'text']

Paragraph mode drops the per-box score, so those records get
``confidence=None``. Anything that does not match is skipped silently.
"""
from __future__ import annotations

import logging
import math
import re
from typing import List, Optional, Tuple

from .models import BBox, RecognitionRecord

logger = logging.getLogger("ocrbridge")

_QUOTES = ("'", '"')

# Newer numpy prints scalars as np.int32(70) / np.float64(0.95)
_NUMPY_SCALAR = re.compile(
    r"\b(?:np|numpy)\.(?:u?int(?:8|16|32|64)?|float(?:16|32|64)?)\(\s*([-+0-9.eE]+)\s*\)"
)
_POINT_SEPARATOR = re.compile(r"\]\s*,\s*\[")


def _to_float(token: str) -> Optional[float]:
    try:
        value = float(token.strip())
    except ValueError:
        return None
    return value if math.isfinite(value) else None


def _unwrap_numpy(s: str) -> str:
    return _NUMPY_SCALAR.sub(r"\1", s)


def _strip_quotes(text: str) -> str:
    text = text.strip()
    if len(text) >= 2 and text[0] in _QUOTES and text[-1] == text[0]:
        return text[1:-1]
    return text


def parse_bbox(s: str) -> Optional[BBox]:
    """Parse ``[[x1, y1], [x2, y2], [x3, y3], [x4, y4]]``; None unless exactly 4 numeric points."""
    s = s.strip()
    if not (s.startswith("[[") and s.endswith("]]")):
        return None
    points = _POINT_SEPARATOR.split(s[2:-2])
    if len(points) != 4:
        return None

    parsed = []
    for p in points:
        coords = p.split(",")
        if len(coords) != 2:
            return None
        x, y = _to_float(coords[0]), _to_float(coords[1])
        if x is None or y is None:
            return None
        parsed.append((x, y))
    return tuple(parsed)  # type: ignore[return-value]


def _split_confidence(rest: str) -> Tuple[str, Optional[float]]:
    idx = rest.rfind(",")
    if idx < 0:
        return rest, None
    confidence = _to_float(_unwrap_numpy(rest[idx + 1:]))
    if confidence is None:
        # the last comma belongs to the text itself
        return rest, None
    return rest[:idx], confidence


def parse_line(line: str) -> Optional[RecognitionRecord]:
    """Parse one stdout line into a record, or return None for anything else."""
    s = line.strip()
    if len(s) < 2:
        return None

    if s[0] == "(" and s[-1] == ")":
        expects_confidence = True
    elif s[0] == "[" and s[-1] == "]":
        expects_confidence = False
    else:
        return None

    inner = s[1:-1].strip()
    end = inner.find("]]")
    if end < 0:
        return None

    bbox = parse_bbox(_unwrap_numpy(inner[:end + 2]))
    if bbox is None:
        return None

    rest = inner[end + 2:].strip()
    if not rest.startswith(","):
        return None
    rest = rest[1:].strip()

    if expects_confidence:
        text, confidence = _split_confidence(rest)
    else:
        text, confidence = rest, None

    return RecognitionRecord(bbox=bbox, text=_strip_quotes(text), confidence=confidence)


def parse_output(output: str) -> List[RecognitionRecord]:
    records: List[RecognitionRecord] = []
    skipped = 0
    for raw_line in (output or "").splitlines():
        if not raw_line.strip():
            continue
        record = parse_line(raw_line)
        if record is None:
            skipped += 1
            continue
        records.append(record)

    if skipped:
        logger.debug("Skipped %d non-record lines in EasyOCR output", skipped)
    return records
