"""
Structured logging configuration using loguru.

Records emitted through the standard ``logging`` module (uvicorn, SQLAlchemy,
aio-pika) are forwarded to the same sinks.
"""
import logging
import sys
from loguru import logger
from planner.core.config import settings

CONSOLE_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | "
    "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - <level>{message}</level>"
)
FILE_FORMAT = "{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {name}:{function}:{line} - {message}"


class InterceptHandler(logging.Handler):
    """Hands standard library log records to loguru."""

    def emit(self, record: logging.LogRecord) -> None:
        try:
            level = logger.level(record.levelname).name
        except ValueError:
            level = record.levelno
        logger.opt(depth=6, exception=record.exc_info).log(level, record.getMessage())


def _level() -> str:
    if settings.LOG_LEVEL:
        return settings.LOG_LEVEL.upper()
    return "DEBUG" if settings.ENVIRONMENT == "development" else "INFO"


# Remove default handler
logger.remove()

logger.add(sys.stdout, format=CONSOLE_FORMAT, level=_level(), colorize=True)

if settings.ENVIRONMENT == "production" or settings.LOG_FILE:
    logger.add(
        settings.LOG_FILE or "logs/planner.log",
        rotation="500 MB",
        retention="10 days",
        compression="zip",
        format=FILE_FORMAT,
        level="INFO",
    )

logging.basicConfig(handlers=[InterceptHandler()], level=logging.INFO, force=True)
for name in ("uvicorn", "uvicorn.error", "uvicorn.access"):
    logging.getLogger(name).handlers = [InterceptHandler()]
    logging.getLogger(name).propagate = False

# Export configured logger
__all__ = ["logger"]
