# Copyright (c) 2026 Beijing Volcano Engine Technology Co., Ltd.
# SPDX-License-Identifier: Apache-2.0
"""Shared utilities: logging, configuration, escaping and vector encoding."""

from .logger import configure_logging, get_logger

__all__ = ["configure_logging", "get_logger"]
