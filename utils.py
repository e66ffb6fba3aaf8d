"""Shared logging helper."""
import logging

import config

_configured = False


def get_logger(name: str = "gigboard") -> logging.Logger:
    """Return a module logger, configuring the root handler on first use."""
    global _configured
    if not _configured:
        logging.basicConfig(
            format="%(asctime)s | %(levelname)-7s | %(name)s | %(message)s",
            level=getattr(logging, config.LOG_LEVEL.upper(), logging.INFO),
        )
        _configured = True
    return logging.getLogger(name)
