import logging
import sys
from pathlib import Path
from typing import Any

from loguru import logger

from brokerage.config import get_settings

CONSOLE_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | "
    "<level>{level: <8}</level> | "
    "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> | "
    "<level>{message}</level> | {extra}"
)
PLAIN_FORMAT = "{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {name}:{function}:{line} | {message} | {extra}"

# Third-party loggers routed through loguru
INTERCEPTED_LOGGERS = (
    "uvicorn",
    "uvicorn.error",
    "uvicorn.access",
    "sqlalchemy.engine",
    "httpx",
    "apscheduler",
)


class InterceptHandler(logging.Handler):
    """Intercept stdlib logging and redirect to loguru."""

    def emit(self, record: logging.LogRecord) -> None:
        try:
            level: str | int = logger.level(record.levelname).name
        except ValueError:
            level = record.levelno

        # Walk out of the logging module so loguru reports the real caller
        frame, depth = logging.currentframe(), 2
        while frame and frame.f_code.co_filename == logging.__file__:
            frame = frame.f_back  # type: ignore[assignment]
            depth += 1

        logger.opt(depth=depth, exception=record.exc_info).log(level, record.getMessage())


def _health_log_filter(record: dict[str, Any]) -> bool:
    """Drop load balancer health probes below DEBUG."""
    if "/health" in record.get("message", ""):
        return bool(record["level"].no <= 10)
    return True


def setup_logging() -> None:
    """
    Configure loguru for the application.

    Debug mode logs everything to a coloured console. Otherwise INFO and
    above go to stderr for the container runtime, and a JSON copy is kept
    under log_dir with daily rotation so batch cycles can be audited by
    their bound context (setting_id, outcome, ...).
    """
    settings = get_settings()
    logger.remove()

    if settings.debug:
        logger.add(
            sys.stderr,
            level="DEBUG",
            format=CONSOLE_FORMAT,
            backtrace=True,
            diagnose=True,
        )
    else:
        logger.add(
            sys.stderr,
            level="INFO",
            format=PLAIN_FORMAT,
            filter=_health_log_filter,
            backtrace=True,
            diagnose=False,
        )
        if settings.log_dir:
            logger.add(
                Path(settings.log_dir) / "brokerage.log",
                level="INFO",
                filter=_health_log_filter,
                serialize=True,
                rotation="00:00",
                retention="14 days",
                enqueue=True,
            )

    logging.basicConfig(handlers=[InterceptHandler()], level=0, force=True)
    for name in INTERCEPTED_LOGGERS:
        logging.getLogger(name).handlers = [InterceptHandler()]


def get_logger(name: str) -> Any:
    """Get a logger bound to a name."""
    return logger.bind(name=name)
