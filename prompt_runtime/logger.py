"""
Loguru sinks for the prompt engine.

Every engine module asks for a logger bound to its component name, so one log
file can be filtered down to, say, only the coordinator's state transitions:

    coordinator | Presenting default browser prompt (first_prompt).

The log directory and the console level can be overridden from the
environment, which is how the test suite keeps its logs out of the home
directory.
"""

from __future__ import annotations

import os
import sys
from pathlib import Path
from typing import Optional

from loguru import logger as _logger

LOG_DIR_ENV = "DEFAULT_BROWSER_PROMPT_LOG_DIR"
LOG_LEVEL_ENV = "DEFAULT_BROWSER_PROMPT_LOG_LEVEL"
DEFAULT_LOG_DIR = Path.home() / ".local" / "state" / "default-browser-prompt"
LOG_FILE_NAME = "prompt.log"
LOG_FORMAT = "{time:YYYY-MM-DD HH:mm:ss.SSS} | {level: <8} | {extra[component]} | {message}"

_configured = False


def configure(log_path: Optional[Path] = None) -> None:
    """Install the console and file sinks; later calls are no-ops."""
    global _configured
    if _configured:
        return
    target = log_path or log_file_path()
    target.parent.mkdir(parents=True, exist_ok=True)

    _logger.remove()
    _logger.configure(extra={"component": "engine"})
    if sys.stderr is not None:
        _logger.add(
            sys.stderr,
            level=os.environ.get(LOG_LEVEL_ENV, "INFO").upper(),
            format=LOG_FORMAT,
            enqueue=True,
        )
    _logger.add(
        target,
        level="DEBUG",
        format=LOG_FORMAT,
        rotation="10 MB",
        retention=5,
        encoding="utf-8",
        enqueue=True,
        backtrace=True,
        diagnose=False,
    )
    _configured = True


def get_logger(component: str = "engine"):
    """Return the shared logger bound to `component`."""
    configure()
    return _logger.bind(component=component)


def log_file_path() -> Path:
    override = os.environ.get(LOG_DIR_ENV)
    directory = Path(override) if override else DEFAULT_LOG_DIR
    return directory / LOG_FILE_NAME
