"""
Process logging for the AutoShorts service.

Everything logs under the `autoshorts` namespace. The per-run log trail
returned to callers is built by the orchestrator and is independent of
this configuration.
"""
import logging
import sys
from typing import Optional

ROOT_LOGGER = "autoshorts"
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

# HTTP clients log every request at INFO
NOISY_LOGGERS = ("httpx", "httpcore", "openai")


def setup_logging(level: str = "INFO") -> logging.Logger:
    """Configure the `autoshorts` logger; safe to call more than once."""
    numeric_level = getattr(logging, level.upper(), logging.INFO)

    logger = logging.getLogger(ROOT_LOGGER)
    logger.setLevel(numeric_level)
    if not logger.handlers:
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        logger.addHandler(handler)
        logger.propagate = False
    else:
        for handler in logger.handlers:
            handler.setLevel(numeric_level)

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(max(numeric_level, logging.WARNING))

    return logger


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """Logger for a component, e.g. get_logger("stages.trend_source")."""
    if name:
        return logging.getLogger(f"{ROOT_LOGGER}.{name}")
    return logging.getLogger(ROOT_LOGGER)
