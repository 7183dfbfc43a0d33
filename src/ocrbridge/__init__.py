# ocrbridge/__init__.py
"""Run the EasyOCR command line tool in the background and parse its results."""

from .bridge import (
    AvailabilityMonitor,
    PendingResult,
    check_availability_async,
    run_recognition_async,
)
from .config import Decoder, RecognitionConfig, load_settings, save_settings
from .exceptions import InvalidSettingError, OCRBridgeError, SpawnError, ToolExitError, ToolNotFoundError
from .models import AvailabilityState, RecognitionOutcome, RecognitionRecord
from .parser import parse_line, parse_output
from .resolver import ResolvedCommand, resolve_command
from .runner import run_recognition

__version__ = "0.3.0"

__all__ = [
    "AvailabilityMonitor",
    "AvailabilityState",
    "Decoder",
    "InvalidSettingError",
    "OCRBridgeError",
    "PendingResult",
    "RecognitionConfig",
    "RecognitionOutcome",
    "RecognitionRecord",
    "ResolvedCommand",
    "SpawnError",
    "ToolExitError",
    "ToolNotFoundError",
    "check_availability_async",
    "load_settings",
    "parse_line",
    "parse_output",
    "resolve_command",
    "run_recognition",
    "run_recognition_async",
    "save_settings",
]
