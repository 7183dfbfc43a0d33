# ocrbridge/logger.py

import logging
import sys
from pathlib import Path
from queue import Queue  # thread-safe queue for the listener and the UI
from logging.handlers import QueueHandler, QueueListener, RotatingFileHandler
from typing import Union, Optional

LOGGER_NAME = "ocrbridge"

FILE_FORMAT = "%(asctime)s | %(threadName)-16s | %(levelname)-8s | %(message)s"
CONSOLE_FORMAT = "%(levelname)s: %(message)s"


# --- Custom Handlers (for the Listener) ---
class UILogHandler(logging.Handler):
    """Feeds plain text log lines to a UI queue for the log textbox."""
    def __init__(self, q: Queue):
        super().__init__()
        self.q = q
        self.setFormatter(logging.Formatter("%(message)s"))
    def emit(self, record: logging.LogRecord):
        try:
            # We only format, the UI thread will add the newline
            self.q.put(self.format(record))
        except Exception:
            self.handleError(record)


# --- Main Configuration Function ---
def setup_logging(
    log_queue: Queue,
    *,
    text_ui_queue: Optional[Queue] = None,
    level: int = logging.INFO,
    file_path: Optional[Union[str, Path]] = None,
    file_level: Optional[int] = None,
    console: bool = False,
) -> QueueListener:
    """
    Sets up the logging listener architecture.

    Args:
        log_queue: The queue that the package logger writes to.
        text_ui_queue: The thread-safe queue for the Gradio text log.
        level: The base logging level for UI and console outputs.
        file_path: Path to the persistent log file.
        file_level: The logging level for the file.
        console: Also echo records to stderr.

    Returns:
        A QueueListener instance. You must call .start() on it.
    """
    handlers = []

    if file_path:
        fp = Path(file_path)
        fp.parent.mkdir(parents=True, exist_ok=True)
        fh = RotatingFileHandler(fp, maxBytes=5*1024*1024, backupCount=2, encoding="utf-8")
        fh.setLevel(file_level if file_level is not None else level)
        fh.setFormatter(logging.Formatter(FILE_FORMAT))
        handlers.append(fh)

    if text_ui_queue is not None:
        th = UILogHandler(text_ui_queue)
        th.setLevel(level)
        handlers.append(th)

    if console:
        ch = logging.StreamHandler(sys.stderr)
        ch.setLevel(level)
        ch.setFormatter(logging.Formatter(CONSOLE_FORMAT))
        handlers.append(ch)

    configure_logging(log_queue, level=min([level, file_level or level]))
    return QueueListener(log_queue, *handlers, respect_handler_level=True)


def configure_logging(log_queue: Queue, level: int = logging.DEBUG) -> logging.Logger:
    """
    Route the package logger into `log_queue`.
    Existing handlers are removed so records are only emitted once.
    """
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(level)
    logger.handlers.clear()
    logger.addHandler(QueueHandler(log_queue))
    logger.propagate = False
    return logger


def release_logging() -> None:
    """Detach the queue handlers added by configure_logging and restore propagation."""
    logger = logging.getLogger(LOGGER_NAME)
    for handler in list(logger.handlers):
        if isinstance(handler, QueueHandler):
            logger.removeHandler(handler)
    logger.setLevel(logging.NOTSET)
    logger.propagate = True
