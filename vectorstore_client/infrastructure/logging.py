from __future__ import annotations

import logging
import os

ROOT_LOGGER = "vectorstore_client"

_package_logger = logging.getLogger(ROOT_LOGGER)
_package_logger.addHandler(logging.NullHandler())


def get_logger(name: str) -> logging.Logger:
    """Return a logger under the package namespace.

    Handlers and formatting belong to the host application; VS_LOG_LEVEL, when
    set, only adjusts the level of the package logger.
    """
    level = os.getenv("VS_LOG_LEVEL")
    if level and level.strip():
        _package_logger.setLevel(getattr(logging, level.strip().upper(), logging.NOTSET))
    if name != ROOT_LOGGER and not name.startswith(ROOT_LOGGER + "."):
        name = f"{ROOT_LOGGER}.{name}"
    return logging.getLogger(name)
