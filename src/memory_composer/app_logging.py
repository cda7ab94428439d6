"""Logging configuration helpers."""

import logging

_NOISY_LOGGERS = ("httpx", "openai")


def configure_logging(level: str = "INFO") -> None:
    """Configure the package logger once and quiet per-request client logs."""
    logger = logging.getLogger("memory_composer")
    logger.setLevel(level.upper())
    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
    if logger.handlers:
        return
    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter("%(levelname)s: %(name)s: %(message)s"))
    logger.addHandler(handler)
    logger.propagate = False
