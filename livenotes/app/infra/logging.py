"""Logging helpers shared across the app."""

from __future__ import annotations

import logging
from typing import Any, Mapping

_ROOT_LOGGER_NAME = "livenotes"
_configured = False


def get_logger(name: str) -> logging.Logger:
    """Return a stdlib logger namespaced under the app root."""

    if name == _ROOT_LOGGER_NAME or name.startswith(f"{_ROOT_LOGGER_NAME}."):
        return logging.getLogger(name)
    return logging.getLogger(f"{_ROOT_LOGGER_NAME}.{name}")


def configure_logging(config: Mapping[str, Any] | None = None) -> None:
    """Install a stream handler on the app root logger once."""

    global _configured
    config = config or {}
    root = logging.getLogger(_ROOT_LOGGER_NAME)
    root.setLevel(str(config.get("level", "INFO")).upper())
    if _configured:
        return
    handler = logging.StreamHandler()
    handler.setFormatter(
        logging.Formatter(
            config.get("format", "%(asctime)s %(levelname)s %(name)s %(message)s")
        )
    )
    root.addHandler(handler)
    _configured = True
