"""Logging configuration for the storefront backend."""

import logging


def setup_logging(level: str = "INFO") -> logging.Logger:
    """Attach a console handler to the ``storefront`` logger.

    Safe to call more than once; existing handlers are replaced.
    """
    logger = logging.getLogger("storefront")
    logger.setLevel(level)

    # Clear any existing handlers (create_app may run several times in tests)
    logger.handlers.clear()

    formatter = logging.Formatter(
        "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    handler = logging.StreamHandler()
    handler.setLevel(level)
    handler.setFormatter(formatter)
    logger.addHandler(handler)

    return logger
