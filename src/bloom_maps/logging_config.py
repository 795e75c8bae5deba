"""Centralized logging configuration."""

import logging

from bloom_maps.config import LOG_LEVEL

# Third-party loggers that should share the application format
THIRD_PARTY_LOGGERS = [
    "uvicorn",
    "uvicorn.access",
    "uvicorn.error",
    "httpx",
    "fastapi",
    "geopy",
]


def configure_logging(level: str = LOG_LEVEL) -> None:
    """
    Configure a consistent logging format for the service and its libraries.

    Args:
        level: Level name applied to the root logger (e.g. "INFO")
    """
    numeric_level = getattr(logging, level.upper(), logging.INFO)

    formatter = logging.Formatter(
        fmt="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S"
    )

    root_logger = logging.getLogger()
    root_logger.setLevel(numeric_level)

    # Drop handlers installed by earlier calls or by uvicorn
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    console_handler = logging.StreamHandler()
    console_handler.setLevel(numeric_level)
    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)

    for logger_name in THIRD_PARTY_LOGGERS:
        logger = logging.getLogger(logger_name)
        logger.setLevel(numeric_level)

        for handler in logger.handlers[:]:
            logger.removeHandler(handler)

        # Don't propagate to avoid duplicate messages
        logger.propagate = False

        handler = logging.StreamHandler()
        handler.setLevel(numeric_level)
        handler.setFormatter(formatter)
        logger.addHandler(handler)

    # httpx logs every request line at INFO
    if numeric_level <= logging.INFO:
        logging.getLogger("httpx").setLevel(logging.WARNING)
