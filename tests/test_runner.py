import os
import stat
import sys
import textwrap
from pathlib import Path
from types import SimpleNamespace

import pytest

from ocrbridge import runner
from ocrbridge.config import RecognitionConfig
from ocrbridge.exceptions import SpawnError, ToolExitError
from ocrbridge.models import NO_TEXT_MESSAGE
from ocrbridge.resolver import ResolvedCommand

TOOL_OUTPUT = "\n".join(
    [
        "Using CPU. Note: This module is much faster with a GPU.",
        "([[70, 12], [268, 12], [268, 48], [70, 48]], 'Hello World', 0.9543)",
        "([[70, 60], [268, 60], [268, 90], [70, 90]], 'second line', 0.5)",
    ]
)


def _fake_completed(returncode: int = 0, stdout: str = "", stderr: str = "") -> SimpleNamespace:
    return SimpleNamespace(returncode=returncode, stdout=stdout, stderr=stderr)


@pytest.fixture
def resolved(monkeypatch: pytest.MonkeyPatch) -> ResolvedCommand:
    command = ResolvedCommand("python3", ("-m", "easyocr.cli"))
    monkeypatch.setattr(runner, "resolve_command", lambda exe, timeout=None: command)
    return command


def test_success_parses_records(monkeypatch: pytest.MonkeyPatch, resolved: ResolvedCommand) -> None:
    seen: list[list[str]] = []

    def fake_run(argv, **kwargs):
        seen.append(argv)
        return _fake_completed(stdout=TOOL_OUTPUT)

    monkeypatch.setattr(runner.subprocess, "run", fake_run)

    outcome = runner.run_recognition("img.png", RecognitionConfig())

    assert outcome.ok
    assert [r.text for r in outcome.records] == ["Hello World", "second line"]
    assert seen[0][:5] == ["python3", "-m", "easyocr.cli", "-l", "en"]
    assert "img.png" in seen[0]


def test_non_zero_exit_reports_stderr_then_stdout(monkeypatch: pytest.MonkeyPatch, resolved: ResolvedCommand) -> None:
    monkeypatch.setattr(
        runner.subprocess,
        "run",
        lambda argv, **kwargs: _fake_completed(1, stdout="partial", stderr="ValueError: bad lang"),
    )

    outcome = runner.run_recognition("img.png", RecognitionConfig())

    assert not outcome.ok
    assert outcome.records == ()
    assert outcome.error == "EasyOCR exited with error:\nValueError: bad lang\npartial"


def test_non_zero_exit_with_empty_streams_is_still_a_message(monkeypatch: pytest.MonkeyPatch, resolved: ResolvedCommand) -> None:
    monkeypatch.setattr(runner.subprocess, "run", lambda argv, **kwargs: _fake_completed(3))

    outcome = runner.run_recognition("img.png", RecognitionConfig())

    assert outcome.error == "EasyOCR exited with error:\n\n"


def test_spawn_failure_names_program(monkeypatch: pytest.MonkeyPatch, resolved: ResolvedCommand) -> None:
    def fake_run(argv, **kwargs):
        raise FileNotFoundError(2, "No such file or directory")

    monkeypatch.setattr(runner.subprocess, "run", fake_run)

    outcome = runner.run_recognition("img.png", RecognitionConfig())

    assert not outcome.ok
    assert "python3" in outcome.error
    assert "No such file or directory" in outcome.error
    assert "pip install easyocr" in outcome.error


def test_unresolvable_command_gives_install_guidance(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(runner, "resolve_command", lambda exe, timeout=None: None)

    outcome = runner.run_recognition("img.png", RecognitionConfig(easyocr_exe="/opt/easyocr"))

    assert outcome.error.startswith("EasyOCR command not found (tried '/opt/easyocr'")
    assert "pip install easyocr" in outcome.error


def test_output_without_records_is_reported(monkeypatch: pytest.MonkeyPatch, resolved: ResolvedCommand) -> None:
    monkeypatch.setattr(runner.subprocess, "run", lambda argv, **kwargs: _fake_completed(stdout="just logs\n"))

    outcome = runner.run_recognition("img.png", RecognitionConfig())

    assert outcome.error == NO_TEXT_MESSAGE


def test_execute_raises_typed_errors(monkeypatch: pytest.MonkeyPatch) -> None:
    command = ResolvedCommand("easyocr")
    monkeypatch.setattr(runner.subprocess, "run", lambda argv, **kwargs: _fake_completed(2, "out", "err"))

    with pytest.raises(ToolExitError) as excinfo:
        runner.execute(command, ["--help"])
    assert excinfo.value.returncode == 2

    def fail(argv, **kwargs):
        raise PermissionError("denied")

    monkeypatch.setattr(runner.subprocess, "run", fail)
    with pytest.raises(SpawnError) as spawn_info:
        runner.execute(command, [])
    assert spawn_info.value.program == "easyocr"


FAKE_TOOL = """\
#!{python}
import sys

if "--help" in sys.argv:
    print("usage: easyocr")
    sys.exit(0)

args = sys.argv[1:]
image = args[args.index("-f") + 1]
if image.endswith("broken.png"):
    print("Traceback: cannot read image", file=sys.stderr)
    sys.exit(1)
print("CUDA not available - defaulting to CPU.")
print("([[1, 2], [30, 2], [30, 20], [1, 20]], 'fake text', 0.75)")
if "--paragraph" in args and args[args.index("--paragraph") + 1] == "True":
    print("[[[1, 30], [30, 30], [30, 50], [1, 50]], 'merged, paragraph']")
"""


@pytest.fixture
def fake_tool(tmp_path: Path) -> Path:
    script = tmp_path / "easyocr"
    script.write_text(FAKE_TOOL.format(python=sys.executable), encoding="utf-8")
    script.chmod(script.stat().st_mode | stat.S_IXUSR)
    return script


@pytest.mark.skipif(os.name == "nt", reason="relies on a shebang script")
def test_end_to_end_with_fake_tool(fake_tool: Path, tmp_path: Path) -> None:
    config = RecognitionConfig(easyocr_exe=str(fake_tool), paragraph=True)

    outcome = runner.run_recognition(tmp_path / "scan.png", config)

    assert outcome.ok
    assert [r.text for r in outcome.records] == ["fake text", "merged, paragraph"]
    assert outcome.records[0].confidence == pytest.approx(0.75)
    assert outcome.records[1].confidence is None


@pytest.mark.skipif(os.name == "nt", reason="relies on a shebang script")
def test_end_to_end_tool_failure(fake_tool: Path, tmp_path: Path) -> None:
    config = RecognitionConfig(easyocr_exe=str(fake_tool))

    outcome = runner.run_recognition(tmp_path / "broken.png", config)

    assert not outcome.ok
    assert "Traceback: cannot read image" in outcome.error
