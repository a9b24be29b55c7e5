"""
Logging setup for n2n-admin.

All modules log through loguru. Standard library logging (uvicorn, httpx)
is intercepted and forwarded to the same sink so that the server produces
a single, uniformly formatted stream.

Usage:
    from n2nadmin.utils.logger import get_logger

    logger = get_logger(__name__)
    logger.info("Something happened")
"""

import logging
import sys

from loguru import logger as _logger

from n2nadmin.models.enums import LogLevel


# =============================================================================
# Format
# =============================================================================

_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | "
    "<level>{level: <8}</level> | "
    "<cyan>{extra[name]}</cyan> - <level>{message}</level>"
)

_LEVEL_MAP = {
    LogLevel.FULL: "TRACE",
    LogLevel.DEBUG: "DEBUG",
    LogLevel.INFO: "INFO",
    LogLevel.WARNING: "WARNING",
}

_logger.configure(extra={"name": "n2nadmin"})


# =============================================================================
# Standard Library Bridge
# =============================================================================


class _InterceptHandler(logging.Handler):
    """Forward standard logging records to loguru."""

    def emit(self, record: logging.LogRecord) -> None:
        try:
            level = _logger.level(record.levelname).name
        except ValueError:
            level = record.levelno

        _logger.bind(name=record.name).opt(exception=record.exc_info).log(
            level, record.getMessage()
        )


# =============================================================================
# Public API
# =============================================================================


def configure_logging(level: LogLevel = LogLevel.INFO) -> None:
    """
    Configure the global log sink.

    Args:
        level: Verbosity level. FULL also enables loguru's variable
            inspection in tracebacks.
    """
    _logger.remove()
    _logger.add(
        sys.stderr,
        level=_LEVEL_MAP.get(level, "INFO"),
        format=_FORMAT,
        backtrace=level == LogLevel.FULL,
        diagnose=level == LogLevel.FULL,
    )

    logging.basicConfig(handlers=[_InterceptHandler()], level=0, force=True)
    for name in ("uvicorn", "uvicorn.error", "uvicorn.access"):
        std_logger = logging.getLogger(name)
        std_logger.handlers = [_InterceptHandler()]
        std_logger.propagate = False


def get_logger(name: str):
    """Get a logger bound to a module name."""
    return _logger.bind(name=name)
