import os
import logging
from typing import Optional

LOGGER_NAME = "chat_client"


def configure_logging(level: Optional[str] = None) -> logging.Logger:
    """Give the package logger a handler of its own.

    The root logger is left alone so host applications keep control of their
    own configuration. Calling this more than once only updates the level.
    """
    logger = logging.getLogger(LOGGER_NAME)
    level_name = (level or os.getenv("CHAT_CLIENT_LOG_LEVEL", "INFO")).upper()
    logger.setLevel(getattr(logging, level_name, logging.INFO))
    if not logger.handlers:
        handler = logging.StreamHandler()
        formatter = logging.Formatter(
            fmt="%(asctime)s %(levelname)s %(name)s: %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )
        handler.setFormatter(formatter)
        logger.addHandler(handler)
        # Avoid duplicate lines if the root logger also has a handler
        logger.propagate = False
    for handler in logger.handlers:
        handler.setLevel(logger.level)
    return logger
