"""
Structured logging for the listing feed controllers.

Console output while developing, JSON lines in production so the swallowed
fetch failures (empty result sets, image fallbacks) remain searchable.

Usage:
    from listing_feed.utils.logging_config import configure_logging, get_logger

    configure_logging()
    logger = get_logger(__name__)
    logger.info("feed.page_loaded", page=2, items=12)
"""

import logging
import logging.handlers
import os
import sys
from typing import Mapping, Optional

import structlog
from structlog.types import Processor

DEFAULT_LOG_FILE = "logs/app.log"
_LOG_FILE_MAX_BYTES = 10 * 1024 * 1024
_LOG_FILE_BACKUPS = 5

# httpx logs every request at INFO; image prefetch makes that very chatty
_QUIET_LOGGERS = ("httpx", "httpcore")


def is_production(env: Mapping[str, str] = os.environ) -> bool:
    """Check whether ENV/ENVIRONMENT selects production mode."""
    value = env.get("ENV", env.get("ENVIRONMENT", "development")).lower()
    return value in ("production", "prod")


def _resolve_level(env: Mapping[str, str]) -> int:
    return getattr(logging, env.get("LOG_LEVEL", "INFO").upper(), logging.INFO)


def _pre_chain() -> list[Processor]:
    return [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
        structlog.processors.format_exc_info,
    ]


def _json_file_output(log_file: str) -> tuple[logging.Handler, Processor]:
    os.makedirs(os.path.dirname(log_file) or ".", exist_ok=True)
    handler = logging.handlers.RotatingFileHandler(
        log_file, maxBytes=_LOG_FILE_MAX_BYTES, backupCount=_LOG_FILE_BACKUPS
    )
    # Listing titles and cities are often non-ASCII
    return handler, structlog.processors.JSONRenderer(ensure_ascii=False)


def _console_output() -> tuple[logging.Handler, Processor]:
    renderer = structlog.dev.ConsoleRenderer(
        colors=True, exception_formatter=structlog.dev.plain_traceback
    )
    return logging.StreamHandler(sys.stdout), renderer


def configure_logging(
    json_format: Optional[bool] = None,
    log_level: Optional[int] = None,
    log_file: Optional[str] = None,
    env: Mapping[str, str] = os.environ,
) -> None:
    """
    Route structlog through the standard library with one handler.

    Args:
        json_format: Emit JSON lines to a rotating file. Auto-detected from ENV when None.
        log_level: Minimum level. Read from LOG_LEVEL when None.
        log_file: Target file in JSON mode (LOG_FILE, else logs/app.log).
        env: Environment mapping used for the auto-detection above.
    """
    json_format = is_production(env) if json_format is None else json_format
    log_level = _resolve_level(env) if log_level is None else log_level

    if json_format:
        handler, renderer = _json_file_output(log_file or env.get("LOG_FILE", DEFAULT_LOG_FILE))
    else:
        handler, renderer = _console_output()

    pre_chain = _pre_chain()
    structlog.configure(
        processors=[*pre_chain, structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        wrapper_class=structlog.make_filtering_bound_logger(log_level),
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(processor=renderer, foreign_pre_chain=pre_chain)
    )
    logging.basicConfig(format="%(message)s", handlers=[handler], level=log_level)

    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def get_logger(name: Optional[str] = None) -> structlog.stdlib.BoundLogger:
    """
    Get a structlog logger instance.

    Example:
        logger = get_logger(__name__)
        logger.warning("feed.load_failed", page=3, exc_info=True)
    """
    return structlog.get_logger(name)


def bind_context(**kwargs) -> None:
    """Bind values (e.g. a feed_id) that every following log line carries."""
    structlog.contextvars.bind_contextvars(**kwargs)


def clear_context() -> None:
    """Drop all values bound with bind_context."""
    structlog.contextvars.clear_contextvars()
