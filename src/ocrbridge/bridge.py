# ocrbridge/bridge.py
from __future__ import annotations

import logging
import os
from pathlib import Path
from queue import Empty, Queue
from threading import Thread
from typing import Callable, Generic, Optional, TypeVar, Union

from .config import RecognitionConfig
from .models import AvailabilityState, RecognitionOutcome
from .resolver import DEFAULT_PROBE_TIMEOUT, is_available
from .runner import run_recognition

logger = logging.getLogger("ocrbridge")

T = TypeVar("T")

_MISSING = object()


class PendingResult(Generic[T]):
    """
    One-shot result produced by a single background thread.

    ``poll()`` never blocks: it returns None while the worker is still
    running. If the worker raises, the error is logged and ``fallback(exc)``
    is delivered instead, so exactly one value always arrives. Dropping the
    object simply discards the result.
    """

    def __init__(self, fn: Callable[..., T], *args, fallback: Callable[[BaseException], T], name: str = "ocrbridge-worker"):
        self._queue: "Queue[T]" = Queue(maxsize=1)
        self._value = _MISSING
        self._fn = fn
        self._args = args
        self._fallback = fallback
        self._thread = Thread(target=self._work, name=name, daemon=True)
        self._thread.start()

    def _work(self) -> None:
        try:
            result = self._fn(*self._args)
        except Exception as e:
            logger.exception("Background task %s failed", self._thread.name)
            result = self._fallback(e)
        self._queue.put(result)

    def poll(self) -> Optional[T]:
        if self._value is _MISSING:
            try:
                self._value = self._queue.get_nowait()
            except Empty:
                return None
        return self._value  # type: ignore[return-value]

    def done(self) -> bool:
        return self.poll() is not None

    def wait(self, timeout: Optional[float] = None) -> Optional[T]:
        """Block up to `timeout` seconds; for callers that are allowed to block (CLI)."""
        if self._value is _MISSING:
            try:
                self._value = self._queue.get(timeout=timeout)
            except Empty:
                return None
        return self._value  # type: ignore[return-value]


def check_availability_async(
    explicit_path: Optional[str] = "",
    timeout: Optional[float] = DEFAULT_PROBE_TIMEOUT,
) -> PendingResult[bool]:
    return PendingResult(
        is_available,
        explicit_path or "",
        timeout,
        fallback=lambda e: False,
        name="ocrbridge-probe",
    )


def run_recognition_async(
    image_path: Union[str, os.PathLike],
    config: RecognitionConfig,
) -> PendingResult[RecognitionOutcome]:
    """Run recognition on a worker thread. The path and config are captured now."""
    image_path = Path(image_path)
    return PendingResult(
        run_recognition,
        image_path,
        config,
        fallback=lambda e: RecognitionOutcome.failure(f"Recognition crashed: {e}"),
        name="ocrbridge-run",
    )


class AvailabilityMonitor:
    """Tracks whether EasyOCR is reachable; state only changes when a probe finishes."""

    def __init__(self, timeout: Optional[float] = DEFAULT_PROBE_TIMEOUT):
        self.timeout = timeout
        self.state = AvailabilityState.CHECKING
        self._pending: Optional[PendingResult[bool]] = None

    def start(self, explicit_path: Optional[str] = "") -> None:
        # a probe still in flight is abandoned
        self._pending = check_availability_async(explicit_path, self.timeout)
        self.state = AvailabilityState.CHECKING

    def refresh(self) -> AvailabilityState:
        if self._pending is not None:
            result = self._pending.poll()
            if result is not None:
                self.state = AvailabilityState.AVAILABLE if result else AvailabilityState.UNAVAILABLE
                self._pending = None
        return self.state

    @property
    def checking(self) -> bool:
        return self._pending is not None
