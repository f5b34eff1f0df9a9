"""
Core logging functionality for fwbluez.

One file per log type is kept under ``config.LOG_DIR``; every record is written
raw (message only) so the files read like the console output of the tool.
"""

import logging
from pathlib import Path
from typing import Dict, Optional

from . import config

# Re-export log type constants for external modules
LOG__GENERAL = config.LOG__GENERAL
LOG__DEBUG = config.LOG__DEBUG
LOG__DISCOVERY = config.LOG__DISCOVERY

_LOG_PATHS: Dict[str, Path] = {
    LOG__GENERAL: config.LOG_DIR / "general.log",
    LOG__DEBUG: config.LOG_DIR / "debug.log",
    LOG__DISCOVERY: config.LOG_DIR / "discovery.log",
}

# Formatter identical to console output (raw message only)
_formatter = logging.Formatter("%(message)s")


def _make_handler(path: Path) -> logging.Handler:
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        handler: logging.Handler = logging.FileHandler(path, mode="a", encoding="utf-8", delay=True)
    except OSError:
        # log directory not writable
        handler = logging.NullHandler()
    handler.setFormatter(_formatter)
    return handler


_handlers: Dict[str, logging.Handler] = {
    log_type: _make_handler(path) for log_type, path in _LOG_PATHS.items()
}

# Root logger for fwbluez
_logger = logging.getLogger("fwbluez")
_logger.setLevel(logging.INFO)
for _handler in _handlers.values():
    _logger.addHandler(_handler)
del _handler


def _emit(line: str, log_type: str) -> None:
    """Route one record to the handler of *log_type* only."""
    record = logging.LogRecord(
        name=f"fwbluez.{log_type.lower()}",
        level=logging.INFO,
        pathname=__file__,
        lineno=0,
        msg=line.rstrip("\n"),
        args=(),
        exc_info=None,
    )
    _handlers.get(log_type, _handlers[LOG__GENERAL]).handle(record)


def logging__debug_log(msg: str) -> None:
    """Write to debug log."""
    _emit(msg, LOG__DEBUG)


def logging__general_log(msg: str) -> None:
    """Write to general log."""
    _emit(msg, LOG__GENERAL)


def logging__discovery_log(msg: str) -> None:
    """Write to discovery log."""
    _emit(msg, LOG__DISCOVERY)


_log_func_map = {
    LOG__GENERAL: logging__general_log,
    LOG__DEBUG: logging__debug_log,
    LOG__DISCOVERY: logging__discovery_log,
}


def logging__log_event(log_type: str, string_to_log: str) -> None:
    """Log an event to the specified log type."""
    _log_func_map.get(log_type, logging__general_log)(string_to_log)


def print_and_log(output_string: str, log_type: str = LOG__GENERAL) -> None:
    """Print to stdout and log to the specified log type.

    Debug and discovery records stay out of stdout.
    """
    if log_type not in (LOG__DEBUG, LOG__DISCOVERY):
        print(output_string)
    logging__log_event(log_type, output_string)


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """Get a logger with the specified name.

    This is the preferred way to get a logger in new code.
    """
    if name:
        if name.startswith("fwbluez."):
            name = name[len("fwbluez."):]
        return _logger.getChild(name)
    return _logger
