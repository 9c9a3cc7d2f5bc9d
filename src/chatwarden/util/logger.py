"""
Logging for chatwarden.

Each module asks for its own logger through :func:`get_logger`. Loggers do not
propagate to the root logger; every one writes to the terminal through
prompt_toolkit (so the admin prompt survives) and to one rotating log file per
bot session under ``logs/``.
"""

import logging
import os
import sys
from datetime import datetime
from logging.handlers import RotatingFileHandler
from pathlib import Path

from prompt_toolkit import print_formatted_text
from prompt_toolkit.formatted_text import ANSI

LOGS_DIR: Path = Path(os.getenv("CHATWARDEN_LOG_DIR") or Path(__file__).parents[3] / "logs").resolve()
LOGS_DIR.mkdir(parents=True, exist_ok=True)

RECORD_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s.%(funcName)s:%(lineno)d | %(message)s"
TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"
SESSION_FILE_FORMAT = "%Y-%m-%d_%H-%M-%S"
SESSION_REUSE_SECONDS = 60

ROTATE_AT_BYTES = 5 * 1024 * 1024
ROTATED_FILES_KEPT = 3

ANSI_RESET = "\033[0m"
LEVEL_STYLES = {
    logging.DEBUG: "\033[2;37m",
    logging.INFO: "\033[32m",
    logging.WARNING: "\033[33m",
    logging.ERROR: "\033[31m",
    logging.CRITICAL: "\033[1;41m",
}

# Third-party loggers that are only interesting when something breaks
QUIET_LIBRARIES = ("discord", "websockets", "aiohttp", "aiosqlite", "PIL")

_session_log: Path | None = None


class ColorFormatter(logging.Formatter):
    """Paints a whole record in the ANSI style of its level."""

    def format(self, record: logging.LogRecord) -> str:
        text = super().format(record)
        style = LEVEL_STYLES.get(record.levelno)
        return f"{style}{text}{ANSI_RESET}" if style else text


class PromptToolkitHandler(logging.Handler):
    """Terminal handler that prints above the active prompt_toolkit prompt."""

    def __init__(self, formatter: logging.Formatter | None = None):
        super().__init__()
        if formatter is not None:
            self.setFormatter(formatter)

    def emit(self, record: logging.LogRecord) -> None:
        try:
            print_formatted_text(ANSI(self.format(record)))
        except Exception:
            self.handleError(record)


def should_use_color() -> bool:
    """True when stderr is an interactive terminal."""
    isatty = getattr(sys.stderr, "isatty", None)
    try:
        return bool(isatty and isatty())
    except ValueError:
        return False


def resolve_log_level() -> int:
    """Terminal log level from ``CHATWARDEN_LOG_LEVEL`` (default INFO). File logs always keep DEBUG."""
    level = logging.getLevelName(os.getenv("CHATWARDEN_LOG_LEVEL", "INFO").strip().upper())
    return level if isinstance(level, int) else logging.INFO


def session_log_path() -> Path:
    """
    The log file shared by all loggers of this process.

    A restart re-executes the process within seconds, so a log file touched
    less than ``SESSION_REUSE_SECONDS`` ago is picked up again instead of
    starting a new one.
    """
    global _session_log

    if _session_log is not None:
        return _session_log

    now = datetime.now()
    recent = [
        path for path in LOGS_DIR.glob("*.log")
        if now.timestamp() - path.stat().st_mtime < SESSION_REUSE_SECONDS
    ]
    if recent:
        _session_log = max(recent, key=lambda path: path.stat().st_mtime)
    else:
        _session_log = LOGS_DIR / f"{now.strftime(SESSION_FILE_FORMAT)}.log"
    return _session_log


def _terminal_handler() -> logging.Handler:
    formatter_cls = ColorFormatter if should_use_color() else logging.Formatter
    handler = PromptToolkitHandler(formatter_cls(RECORD_FORMAT, datefmt=TIMESTAMP_FORMAT))
    handler.setLevel(resolve_log_level())
    return handler


def _file_handler() -> logging.Handler:
    handler = RotatingFileHandler(
        session_log_path(),
        maxBytes=ROTATE_AT_BYTES,
        backupCount=ROTATED_FILES_KEPT,
        encoding="utf-8",
    )
    handler.setLevel(logging.DEBUG)
    handler.setFormatter(logging.Formatter(RECORD_FORMAT, datefmt=TIMESTAMP_FORMAT))
    return handler


def setup_logger(logger_name: str) -> logging.Logger:
    """Attach the terminal and session-file handlers to ``logger_name``.

    Already configured loggers are returned as they are, so calling this
    repeatedly never duplicates output.
    """
    configured = logging.getLogger(logger_name)
    if configured.handlers:
        return configured

    configured.setLevel(logging.DEBUG)
    configured.propagate = False
    configured.addHandler(_terminal_handler())
    configured.addHandler(_file_handler())
    return configured


def get_logger(logger_name: str) -> logging.Logger:
    return setup_logger(logger_name)


def handle_exception(exception_type, exception_instance, exception_traceback) -> None:
    """``sys.excepthook`` that logs crashes; Ctrl+C keeps its default behavior."""
    if issubclass(exception_type, KeyboardInterrupt):
        sys.__excepthook__(exception_type, exception_instance, exception_traceback)
        return
    logging.error("Uncaught exception", exc_info=(exception_type, exception_instance, exception_traceback))


def quiet_third_party_loggers(names=QUIET_LIBRARIES) -> None:
    for name in names:
        library_logger = logging.getLogger(name)
        library_logger.setLevel(logging.ERROR)
        library_logger.propagate = False


quiet_third_party_loggers()
sys.excepthook = handle_exception
