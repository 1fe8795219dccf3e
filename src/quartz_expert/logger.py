"""Logging configuration for scripts and the HTTP adapter."""

import logging
import sys

NOISY_LOGGERS = ("httpx", "httpcore", "chromadb", "sentence_transformers", "urllib3")


def configure_logging(level: str | int = "INFO") -> None:
    """Install a single stdout handler on the root logger.

    Args:
        level: Root log level, as a name ("DEBUG") or a number.
    """
    root_logger = logging.getLogger()
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(
        logging.Formatter(
            "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
            datefmt="%Y-%m-%dT%H:%M:%S",
        )
    )

    root_logger.setLevel(level.upper() if isinstance(level, str) else level)
    root_logger.addHandler(handler)

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
