import logging
from typing import Any

from fastapi import Request
from rich.console import Console
from rich.logging import RichHandler

from linkguard.config.settings import LoggingConfig

logger = logging.getLogger("linkguard")


def setup_logging(logging_config: LoggingConfig) -> None:
    """Attach one console handler to the package logger"""
    if logging_config.enable_rich:
        handler: logging.Handler = RichHandler(
            console=Console(stderr=True),
            rich_tracebacks=True,
            show_path=False,
        )
    else:
        handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter(logging_config.format))

    for existing in list(logger.handlers):
        logger.removeHandler(existing)
    logger.addHandler(handler)
    logger.setLevel(logging_config.level)


def log_with_context(
    request: Request,
    level: int,
    message: str,
    **kwargs: Any
) -> None:
    """
    Log with request context.
    Automatically includes request_id for tracing.
    """
    extra = {
        "request_id": getattr(request.state, "request_id", "unknown"),
        **kwargs
    }
    logger.log(level, message, extra=extra)


def log_info(request: Request, message: str, **kwargs: Any) -> None:
    log_with_context(request, logging.INFO, message, **kwargs)


def log_debug(request: Request, message: str, **kwargs: Any) -> None:
    log_with_context(request, logging.DEBUG, message, **kwargs)
