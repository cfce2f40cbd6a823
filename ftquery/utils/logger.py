# Copyright (c) 2026 Beijing Volcano Engine Technology Co., Ltd.
# SPDX-License-Identifier: Apache-2.0
"""Logging helpers for ftquery."""

from __future__ import annotations

import logging
import os
import sys
import threading
from typing import Optional

ROOT_LOGGER_NAME = "ftquery"
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

_configured = False
_lock = threading.Lock()


def _ensure_root_handler() -> None:
    global _configured
    if _configured:
        return
    with _lock:
        if _configured:
            return
        root = logging.getLogger(ROOT_LOGGER_NAME)
        if not root.handlers:
            handler = logging.StreamHandler(sys.stderr)
            handler.setFormatter(logging.Formatter(LOG_FORMAT))
            root.addHandler(handler)
        root.setLevel(os.environ.get("FTQUERY_LOG_LEVEL", "WARNING").upper())
        _configured = True


def configure_logging(level: Optional[str] = None) -> None:
    """Set the level of the ``ftquery`` logger tree."""
    _ensure_root_handler()
    if level:
        logging.getLogger(ROOT_LOGGER_NAME).setLevel(level.upper())


def get_logger(name: str) -> logging.Logger:
    """Return a logger nested under the ``ftquery`` root logger."""
    _ensure_root_handler()
    if name != ROOT_LOGGER_NAME and not name.startswith(ROOT_LOGGER_NAME + "."):
        name = f"{ROOT_LOGGER_NAME}.{name}"
    return logging.getLogger(name)
