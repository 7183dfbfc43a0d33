import threading

import pytest

from ocrbridge import bridge
from ocrbridge.bridge import AvailabilityMonitor, PendingResult
from ocrbridge.config import RecognitionConfig
from ocrbridge.models import AvailabilityState, RecognitionOutcome, RecognitionRecord

BOX = ((0.0, 0.0), (1.0, 0.0), (1.0, 1.0), (0.0, 1.0))


def test_poll_returns_none_until_worker_finishes() -> None:
    release = threading.Event()

    def work() -> str:
        release.wait(timeout=5)
        return "done"

    pending = PendingResult(work, fallback=lambda e: "failed")

    assert pending.poll() is None
    assert not pending.done()

    release.set()
    assert pending.wait(timeout=5) == "done"
    assert pending.poll() == "done"
    assert pending.done()


def test_worker_exception_delivers_fallback() -> None:
    def boom() -> str:
        raise RuntimeError("kaput")

    pending = PendingResult(boom, fallback=lambda e: f"fallback: {e}")

    assert pending.wait(timeout=5) == "fallback: kaput"


def test_wait_times_out_without_result() -> None:
    release = threading.Event()
    pending = PendingResult(release.wait, 5, fallback=lambda e: False)

    assert pending.wait(timeout=0.01) is None
    release.set()
    assert pending.wait(timeout=5) is True


def test_run_recognition_async_captures_arguments(monkeypatch: pytest.MonkeyPatch) -> None:
    seen = []
    outcome = RecognitionOutcome.success([RecognitionRecord(BOX, "hi", 0.9)])

    def fake_run(image_path, config):
        seen.append((image_path, config))
        return outcome

    monkeypatch.setattr(bridge, "run_recognition", fake_run)
    config = RecognitionConfig(languages="fr")

    pending = bridge.run_recognition_async("scan.png", config)

    assert pending.wait(timeout=5) is outcome
    assert str(seen[0][0]) == "scan.png"
    assert seen[0][1] == config


def test_run_recognition_async_turns_crash_into_failure(monkeypatch: pytest.MonkeyPatch) -> None:
    def crash(image_path, config):
        raise ValueError("unexpected")

    monkeypatch.setattr(bridge, "run_recognition", crash)

    outcome = bridge.run_recognition_async("scan.png", RecognitionConfig()).wait(timeout=5)

    assert not outcome.ok
    assert "unexpected" in outcome.error


def test_availability_monitor_transitions(monkeypatch: pytest.MonkeyPatch) -> None:
    gate = threading.Event()
    answers = {"": True, "/missing": False}

    def fake_is_available(path, timeout=None):
        gate.wait(timeout=5)
        return answers[path]

    monkeypatch.setattr(bridge, "is_available", fake_is_available)
    monitor = AvailabilityMonitor(timeout=1)

    monitor.start("")
    assert monitor.refresh() is AvailabilityState.CHECKING
    assert monitor.checking

    gate.set()
    monitor._pending.wait(timeout=5)
    assert monitor.refresh() is AvailabilityState.AVAILABLE
    assert not monitor.checking

    monitor.start("/missing")
    assert monitor.state is AvailabilityState.CHECKING
    monitor._pending.wait(timeout=5)
    assert monitor.refresh() is AvailabilityState.UNAVAILABLE
