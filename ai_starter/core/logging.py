import logging

from ai_starter.core.config import settings

_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


def _level() -> int:
    if settings.LOG_LEVEL:
        level = logging.getLevelName(settings.LOG_LEVEL.strip().upper())
        # unknown names come back as the string "Level <NAME>"
        return level if isinstance(level, int) else logging.INFO
    return logging.DEBUG if settings.is_development else logging.INFO


def get_logger(name: str) -> logging.Logger:
    logger = logging.getLogger(f"ai_starter.{name}")
    if not logger.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(_FORMAT, datefmt="%Y-%m-%d %H:%M:%S"))
        logger.addHandler(handler)
        logger.setLevel(_level())
    return logger


"""
Logging setup and it configures:
- Log format
- Log level (from LOG_LEVEL, or by APP_ENV)
- Output destination

The main purpose:
Standardized application logging.
"""
