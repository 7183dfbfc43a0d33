# ocrbridge/resolver.py
from __future__ import annotations

import logging
import os
import subprocess
from dataclasses import dataclass
from typing import Any, Dict, Optional, Sequence, Tuple

logger = logging.getLogger("ocrbridge")

EASYOCR_SCRIPT = "easyocr"
PYTHON_CANDIDATES = ("python3", "python")
MODULE_PREFIX = ("-m", "easyocr.cli")
HELP_FLAG = "--help"

DEFAULT_PROBE_TIMEOUT = 60.0

INSTALL_HINT = "Make sure EasyOCR is installed:\n  pip install easyocr"


@dataclass(frozen=True)
class ResolvedCommand:
    """A launchable EasyOCR command: program plus arguments that precede user args."""
    program: str
    prefix_args: Tuple[str, ...] = ()

    def argv(self, *args: str) -> list:
        return [self.program, *self.prefix_args, *args]

    def __str__(self) -> str:
        return " ".join(self.argv())


def subprocess_kwargs() -> Dict[str, Any]:
    """Extra Popen kwargs so child processes never flash a console window."""
    if os.name == "nt":
        flags = getattr(subprocess, "CREATE_NO_WINDOW", 0)
        if flags:
            return {"creationflags": flags}
    return {}


def probe_command(
    program: str,
    prefix_args: Sequence[str] = (),
    timeout: Optional[float] = DEFAULT_PROBE_TIMEOUT,
) -> bool:
    """Return True if `program [prefix_args] --help` exits with status 0."""
    cmd = [program, *prefix_args, HELP_FLAG]
    try:
        proc = subprocess.run(
            cmd,
            stdin=subprocess.DEVNULL,
            stdout=subprocess.DEVNULL,
            stderr=subprocess.DEVNULL,
            timeout=timeout,
            check=False,
            **subprocess_kwargs(),
        )
    except subprocess.TimeoutExpired:
        logger.warning("Probe timed out after %ss: %s", timeout, " ".join(cmd))
        return False
    except (OSError, ValueError) as e:
        logger.debug("Probe could not start %s: %s", " ".join(cmd), e)
        return False
    logger.debug("Probe %s exited with %s", " ".join(cmd), proc.returncode)
    return proc.returncode == 0


def _candidates(explicit_path: str):
    if explicit_path:
        # an explicit override is never mixed with system-wide installs
        yield ResolvedCommand(explicit_path)
        yield ResolvedCommand(explicit_path, MODULE_PREFIX)
        return
    yield ResolvedCommand(EASYOCR_SCRIPT)
    for python in PYTHON_CANDIDATES:
        yield ResolvedCommand(python, MODULE_PREFIX)


def resolve_command(
    explicit_path: Optional[str] = "",
    timeout: Optional[float] = DEFAULT_PROBE_TIMEOUT,
) -> Optional[ResolvedCommand]:
    """
    Find a working way to launch the EasyOCR CLI.

    With an explicit path, only that path is tried: first as the easyocr
    script itself, then as a Python interpreter running ``-m easyocr.cli``.
    Without one, the ``easyocr`` script on PATH is tried, then ``python3``
    and ``python`` with the module prefix.

    The result is never cached since EasyOCR may be installed mid-session.
    Returns None when nothing works.
    """
    explicit_path = explicit_path or ""
    for candidate in _candidates(explicit_path):
        if probe_command(candidate.program, candidate.prefix_args, timeout=timeout):
            logger.info("Resolved EasyOCR command: %s", candidate)
            return candidate
    logger.info("EasyOCR command not found (tried %s)", describe_attempts(explicit_path))
    return None


def is_available(explicit_path: Optional[str] = "", timeout: Optional[float] = DEFAULT_PROBE_TIMEOUT) -> bool:
    return resolve_command(explicit_path, timeout=timeout) is not None


def describe_attempts(explicit_path: Optional[str] = "") -> str:
    explicit_path = explicit_path or ""
    if explicit_path:
        return f"'{explicit_path}' and '{explicit_path} -m easyocr.cli'"
    return "'easyocr' and 'python -m easyocr.cli'"
