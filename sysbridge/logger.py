"""
Sysbridge Logging
=================

Root logger setup for the harness. Console output goes through a `rich`
handler on stderr that colours instruction names, lamport amounts and
addresses; a rotating file handler can be switched on from `.env`.

Usage:
    >>> from sysbridge.logger import get_logger
    >>> logger = get_logger(__name__)
    >>> logger.info("transfer 1,000 lamports")
"""

import logging
import logging.handlers
import re
import sys
import threading
import time
from pathlib import Path
from typing import List, Optional

from rich.console import Console
from rich.highlighter import RegexHighlighter
from rich.logging import RichHandler
from rich.theme import Theme

from .constants import (
    DEFAULT_LOG_FORMAT,
    LOG_BACKUP_COUNT,
    LOG_CONSOLE_HIGHLIGHTING,
    LOG_DATE_FORMAT,
    LOG_FILE_OUTPUT,
    LOG_FORMAT,
    LOG_LEVEL,
    LOG_MAX_FILE_SIZE,
)

LOG_FILE_PATH = Path(__file__).resolve().parent.parent / "logs" / "sysbridge.log"

SYSBRIDGE_THEME = Theme({
    "sysbridge.instruction": "bold cyan",
    "sysbridge.lamports":    "bold yellow",
    "sysbridge.pubkey":      "cyan",
    "sysbridge.evm_address": "blue",
    "sysbridge.reverted":    "bold red",
    "sysbridge.logger_name": "magenta",
})


class SysbridgeHighlighter(RegexHighlighter):
    """Highlights ledger vocabulary in console log lines."""

    base_style = "sysbridge."
    highlights = [
        r"(?P<instruction>\b(?:createAccountWithSeed|transfer|assignWithSeed|allocateWithSeed|airdrop)\b)",
        r"(?P<lamports>\b\d[\d,]*\s+lamports\b)",
        r"(?P<evm_address>\b0x[0-9a-fA-F]{40}\b)",
        r"(?P<pubkey>\b[1-9A-HJ-NP-Za-km-z]{32,44}\b)",
        r"(?P<reverted>\breverted\b)",
        r"(?P<logger_name>\bsysbridge(?:\.\w+)+)",
    ]


class SanitizingFormatter(logging.Formatter):
    """
    Formatter that drops terminal escape sequences and control characters.

    Seeds and account data end up in log messages; they are arbitrary bytes
    and must not reach the terminal as escape codes.
    """

    _unsafe = re.compile(
        r"\x1b\[[0-?]*[ -/]*[@-~]"      # CSI sequences
        r"|\x1b[@-Z\\-_]"               # two-byte escapes
        r"|[\x00-\x08\x0b-\x1f\x7f]"    # controls except tab and newline
    )

    def format(self, record: logging.LogRecord) -> str:
        return self._unsafe.sub("", super().format(record))


def _checked_format(log_format: str) -> str:
    """Return `log_format` if logging can render with it, else the default."""
    try:
        logging.Formatter(log_format).format(
            logging.makeLogRecord({"msg": "check", "levelname": "INFO", "name": "sysbridge"})
        )
    except (ValueError, KeyError, TypeError) as e:
        sys.stderr.write(f"sysbridge.logger: bad LOG_FORMAT ({e}), using default\n")
        return DEFAULT_LOG_FORMAT
    return log_format


class LogManager:
    """
    Process-wide logging setup.

    `configure` installs handlers on the root logger once; later calls are
    ignored until `reset`. `set_level` adjusts an existing setup.
    """

    _instance: Optional["LogManager"] = None
    _instance_lock = threading.Lock()

    def __new__(cls) -> "LogManager":
        with cls._instance_lock:
            if cls._instance is None:
                instance = super().__new__(cls)
                instance._lock = threading.Lock()
                instance._handlers = []
                cls._instance = instance
        return cls._instance

    @property
    def is_configured(self) -> bool:
        return bool(self._handlers)

    def configure(
        self,
        log_level: Optional[str] = None,
        log_file: Optional[Path] = None,
        console_output: bool = True,
        file_output: Optional[bool] = None,
    ) -> None:
        """
        Install console and file handlers on the root logger.

        Args:
            log_level: Level name; defaults to LOG_LEVEL from `.env`
            log_file: Rotating log file path; defaults to logs/sysbridge.log
            console_output: Attach the stderr console handler
            file_output: Attach the file handler; defaults to LOG_FILE_OUTPUT
        """
        with self._lock:
            if self._handlers:
                return

            level = _level_number(log_level or LOG_LEVEL)
            formatter = SanitizingFormatter(_checked_format(LOG_FORMAT), datefmt=LOG_DATE_FORMAT + " UTC")
            formatter.converter = time.gmtime

            handlers: List[logging.Handler] = []
            if console_output:
                handlers.append(_console_handler())
            if LOG_FILE_OUTPUT if file_output is None else file_output:
                handlers.append(_file_handler(log_file or LOG_FILE_PATH))

            root = logging.getLogger()
            root.setLevel(level)
            for handler in handlers:
                handler.setLevel(level)
                handler.setFormatter(formatter)
                root.addHandler(handler)
            self._handlers = handlers

    def reset(self) -> None:
        """Detach the handlers installed by `configure`."""
        with self._lock:
            root = logging.getLogger()
            for handler in self._handlers:
                root.removeHandler(handler)
                handler.close()
            self._handlers = []

    def set_level(self, log_level: str) -> None:
        level = _level_number(log_level)
        logging.getLogger().setLevel(level)
        for handler in self._handlers:
            handler.setLevel(level)

    def get_logger(self, name: str) -> logging.Logger:
        if not self._handlers:
            self.configure()
        return logging.getLogger(name)


def _level_number(name: str) -> int:
    level = logging.getLevelName(str(name).upper())
    return level if isinstance(level, int) else logging.INFO


def _console_handler() -> logging.Handler:
    if not LOG_CONSOLE_HIGHLIGHTING:
        return logging.StreamHandler(sys.stderr)
    # RichHandler renders only the message; time and level come from LOG_FORMAT
    return RichHandler(
        console=Console(theme=SYSBRIDGE_THEME, stderr=True, highlight=False),
        highlighter=SysbridgeHighlighter(),
        show_time=False,
        show_level=False,
        show_path=False,
        markup=False,
        rich_tracebacks=True,
        keywords=[],
    )


def _file_handler(path: Path) -> logging.Handler:
    path.parent.mkdir(parents=True, exist_ok=True)
    return logging.handlers.RotatingFileHandler(
        path,
        maxBytes=LOG_MAX_FILE_SIZE,
        backupCount=LOG_BACKUP_COUNT,
        encoding="utf-8",
    )


_manager = LogManager()


def get_logger(name: str) -> logging.Logger:
    """Logger for `name`, configuring the root logger on first use."""
    return _manager.get_logger(name)


def set_log_level(log_level: str) -> None:
    _manager.set_level(log_level)


_manager.configure()
