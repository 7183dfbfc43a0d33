# ocrbridge/models.py
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Iterable, Optional, Tuple

Point = Tuple[float, float]
BBox = Tuple[Point, Point, Point, Point]

NO_TEXT_MESSAGE = "No text was recognized in the image."


class AvailabilityState(Enum):
    """Whether the EasyOCR command is currently reachable."""
    CHECKING = "checking"
    AVAILABLE = "available"
    UNAVAILABLE = "unavailable"


@dataclass(frozen=True)
class RecognitionRecord:
    """One recognized text region: a 4-corner box, its text and an optional score."""
    bbox: BBox
    text: str
    # None when the output line carried no score (paragraph mode)
    confidence: Optional[float] = None

    def display(self) -> str:
        if self.confidence is None:
            return self.text
        return f"{self.text} ({self.confidence * 100:.1f}%)"

    def to_dict(self) -> dict:
        return {
            "bbox": [list(p) for p in self.bbox],
            "text": self.text,
            "confidence": self.confidence,
        }


@dataclass(frozen=True)
class RecognitionOutcome:
    """
    Final result of one recognition run.

    Holds either a non-empty tuple of records (in output line order) or a
    single diagnostic message, never both. Use the ``success`` / ``failure``
    constructors rather than building one directly.
    """
    records: Tuple[RecognitionRecord, ...] = field(default_factory=tuple)
    error: Optional[str] = None

    def __post_init__(self):
        if bool(self.records) == (self.error is not None):
            raise ValueError("RecognitionOutcome needs either records or an error message")

    @classmethod
    def success(cls, records: Iterable[RecognitionRecord]) -> "RecognitionOutcome":
        records = tuple(records)
        if not records:
            return cls.failure(NO_TEXT_MESSAGE)
        return cls(records=records)

    @classmethod
    def failure(cls, message: str) -> "RecognitionOutcome":
        return cls(error=message or "Unknown error")

    @property
    def ok(self) -> bool:
        return self.error is None

    def as_text(self) -> str:
        if self.error is not None:
            return self.error
        return "\n".join(r.display() for r in self.records)

    def to_dict(self) -> dict:
        return {
            "records": [r.to_dict() for r in self.records],
            "error": self.error,
        }
