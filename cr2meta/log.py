"""Logging utilities -- ANSI terminal colors and timestamped log-file lines.

Provides consistent color-coded output for the CLI, plus plain-text
log-file formatting and a bridge from the ``logging`` module to the
console for decoder warnings.
"""

import logging
import sys
from datetime import datetime

# ---------------------------------------------------------------------------
# ANSI color codes
# ---------------------------------------------------------------------------

_RESET = '\033[0m'
_DIM = '\033[2m'

_GREEN = '\033[32m'
_YELLOW = '\033[33m'

_BOLD_RED = '\033[1;31m'
_BOLD_CYAN = '\033[1;36m'


def _is_tty():
    """Check if stdout is a terminal (not piped)."""
    try:
        return sys.stdout.isatty()
    except AttributeError:
        return False


# Module-level flag -- set once at import time
_USE_COLOR = _is_tty()


def set_color_enabled(enabled: bool):
    """Override automatic color detection."""
    global _USE_COLOR
    _USE_COLOR = enabled


def _c(code: str, text: str) -> str:
    """Apply ANSI code if color is enabled."""
    if _USE_COLOR:
        return f'{code}{text}{_RESET}'
    return text


# ---------------------------------------------------------------------------
# CLI formatting helpers
# ---------------------------------------------------------------------------

def cli_header(text: str) -> str:
    """Bold cyan header line."""
    return _c(_BOLD_CYAN, text)


def cli_success(text: str) -> str:
    """Green text for completed exports."""
    return _c(_GREEN, text)


def cli_warning(text: str) -> str:
    """Yellow text for skipped tags and walk warnings."""
    return _c(_YELLOW, text)


def cli_error(text: str) -> str:
    """Red text for errors."""
    return _c(_BOLD_RED, text)


def cli_dim(text: str) -> str:
    """Dim text for secondary information."""
    return _c(_DIM, text)


SEPARATOR = '─' * 60


def cli_separator() -> str:
    """A visual separator line."""
    return _c(_DIM, SEPARATOR)


# ---------------------------------------------------------------------------
# Log file formatting (always plain text with timestamps and levels)
# ---------------------------------------------------------------------------

def _timestamp() -> str:
    return datetime.now().strftime('%Y-%m-%d %H:%M:%S')


def log_info(msg: str) -> str:
    """Format a log file INFO line."""
    return f'[{_timestamp()}] [INFO]  {msg}'


def log_warn(msg: str) -> str:
    """Format a log file WARN line."""
    return f'[{_timestamp()}] [WARN]  {msg}'


def log_error(msg: str) -> str:
    """Format a log file ERROR line."""
    return f'[{_timestamp()}] [ERROR] {msg}'


class CLILogHandler(logging.Handler):
    """Routes cr2meta logger records to a callback as colored CLI lines."""

    def __init__(self, emit_line, level=logging.WARNING):
        super().__init__(level)
        self._emit_line = emit_line

    def emit(self, record: logging.LogRecord):
        try:
            msg = self.format(record)
        except Exception:
            self.handleError(record)
            return
        if record.levelno >= logging.ERROR:
            self._emit_line(cli_error(msg), log_error(msg))
        elif record.levelno >= logging.WARNING:
            self._emit_line(cli_warning(msg), log_warn(msg))
        else:
            self._emit_line(cli_dim(msg), log_info(msg))
