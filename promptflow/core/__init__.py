# Copyright (c) 2025 adcl.io
# All Rights Reserved.
#
# This software is proprietary and confidential. Unauthorized copying,
# distribution, or use of this software is strictly prohibited.

"""
Core utilities and shared modules for promptflow.

This package contains:
- config: Configuration management
- errors: Custom exceptions
- logging: Structured logging
"""

from promptflow.core.config import get_config, EngineConfig
from promptflow.core.errors import PromptFlowError, NotFoundError, ValidationError
from promptflow.core.logging import get_logger

__all__ = [
    "get_config",
    "EngineConfig",
    "PromptFlowError",
    "NotFoundError",
    "ValidationError",
    "get_logger",
]
