# ocrbridge/runner.py
from __future__ import annotations

import logging
import os
import subprocess
import time
from typing import Sequence, Union

from .arguments import build_arguments
from .config import RecognitionConfig
from .exceptions import SpawnError, ToolExitError
from .models import RecognitionOutcome
from .parser import parse_output
from .resolver import (
    INSTALL_HINT,
    ResolvedCommand,
    describe_attempts,
    resolve_command,
    subprocess_kwargs,
)

logger = logging.getLogger("ocrbridge")


def execute(command: ResolvedCommand, args: Sequence[str]) -> str:
    """
    Run the resolved command to completion and return its stdout.

    Blocks until the process exits; call it from a worker thread.
    Raises SpawnError if the program cannot be started and ToolExitError
    on a non-zero exit status.
    """
    argv = command.argv(*args)
    logger.debug("Running %s", " ".join(argv))
    t0 = time.perf_counter()
    try:
        proc = subprocess.run(
            argv,
            stdin=subprocess.DEVNULL,
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
            text=True,
            encoding="utf-8",
            errors="replace",
            check=False,
            **subprocess_kwargs(),
        )
    except OSError as e:
        raise SpawnError(command.program, e) from e

    logger.info("EasyOCR finished with status %s in %.2fs", proc.returncode, time.perf_counter() - t0)
    if proc.returncode != 0:
        raise ToolExitError(proc.returncode, proc.stderr, proc.stdout)
    return proc.stdout or ""


def run_recognition(image_path: Union[str, os.PathLike], config: RecognitionConfig) -> RecognitionOutcome:
    """
    Resolve EasyOCR, run it on one image and parse the result.

    Tool problems never raise; they come back as a failure outcome carrying
    a message meant for the user.
    """
    command = resolve_command(config.easyocr_exe, timeout=config.probe_timeout)
    if command is None:
        return RecognitionOutcome.failure(
            f"EasyOCR command not found (tried {describe_attempts(config.easyocr_exe)}).\n\n{INSTALL_HINT}"
        )

    args = build_arguments(config, image_path)
    try:
        stdout = execute(command, args)
    except SpawnError as e:
        logger.error("%s", e)
        return RecognitionOutcome.failure(f"{e}\n\n{INSTALL_HINT}")
    except ToolExitError as e:
        logger.error("EasyOCR exited with status %s on %s", e.returncode, image_path)
        return RecognitionOutcome.failure(e.diagnostic())

    records = parse_output(stdout)
    logger.info("Recognized %d text regions in %s", len(records), image_path)
    return RecognitionOutcome.success(records)
