"""
Logger module for build scripts: info, warn, error, debug, trace.

Messages go to the stdlib ``lake.script`` logger, so they follow the CLI's
verbosity (``--verbose`` shows debug). ``trace`` uses level 5, below DEBUG.
"""

import logging
from typing import Any

from .base import CapabilityModule

TRACE = 5
logging.addLevelName(TRACE, "TRACE")

logger = logging.getLogger("lake.script")


def make_log_module(*, logger_instance: logging.Logger | None = None) -> CapabilityModule:
    """Build the `logger` module: info, warn, error, debug, trace."""
    log = logger_instance or logger

    def _log(level: int, msg: Any, *args: Any) -> None:
        log.log(level, str(msg), *args)

    def info(msg: str, *args: Any) -> None:
        _log(logging.INFO, msg, *args)

    def warn(msg: str, *args: Any) -> None:
        _log(logging.WARNING, msg, *args)

    def error(msg: str, *args: Any) -> None:
        _log(logging.ERROR, msg, *args)

    def debug(msg: str, *args: Any) -> None:
        _log(logging.DEBUG, msg, *args)

    def trace(msg: str, *args: Any) -> None:
        _log(TRACE, msg, *args)

    return CapabilityModule(
        "logger", {"info": info, "warn": warn, "error": error, "debug": debug, "trace": trace}
    )
