import sys

from loguru import logger

from finpilot.config import get_settings


def configure_logging(level: str | None = None) -> None:
    """Replace loguru's default sink with one honouring LOG_LEVEL."""
    lvl = (level or get_settings().LOG_LEVEL or "INFO").upper()
    logger.remove()
    logger.add(
        sys.stderr,
        level=lvl,
        format="<green>{time:HH:mm:ss}</green> | <level>{level: <8}</level> | {name}:{line} - {message}",
        backtrace=False,
    )
