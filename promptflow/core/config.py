# Copyright (c) 2025 adcl.io
# All Rights Reserved.
#
# This software is proprietary and confidential. Unauthorized copying,
# distribution, or use of this software is strictly prohibited.

"""
promptflow Configuration - Single source of truth.
YAML is king. Env vars only for deployment overrides.

- ALL configuration in plain text (YAML)
- NO hidden state - everything inspectable via `cat`, `grep`
"""

import os
import yaml
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from promptflow.core.errors import ConfigurationError


# =============================================================================
# CONFIGURATION DATACLASS
# =============================================================================

@dataclass(frozen=True)
class EngineConfig:
    """
    Immutable engine configuration.
    All values from YAML. No hidden state.
    """

    # -- Prompt library --
    prompt_library_path: str = "./prompt-library"
    index_relative_path: str = ".promptlib/index.json"
    prefix_matching: bool = True

    # -- Workflow scheduling --
    parallel: bool = True
    max_concurrency: int = 4

    # -- Logging --
    log_level: str = "INFO"
    log_format: str = "json"

    @property
    def index_path(self) -> Path:
        return Path(self.prompt_library_path) / self.index_relative_path


# =============================================================================
# LOADER
# =============================================================================

def load_config(path: str = "configs/promptflow.yaml") -> EngineConfig:
    """
    Load configuration from YAML.
    Returns defaults if file doesn't exist.

    Raises:
        ConfigurationError: If the file exists but is not a YAML mapping,
            or holds an invalid concurrency limit
    """
    if not Path(path).exists():
        print(f"Config not found at {path}, using defaults")
        y = {}
    else:
        with open(path) as f:
            try:
                y = yaml.safe_load(f) or {}
            except yaml.YAMLError as e:
                raise ConfigurationError(f"Invalid YAML: {e}", config_file=path)

    if not isinstance(y, dict):
        raise ConfigurationError("Top-level config must be a mapping", config_file=path)

    # Helper to safely navigate nested dicts
    def get(d: dict, *keys, default=None):
        for k in keys:
            if not isinstance(d, dict):
                return default
            d = d.get(k, {})
        return d if d != {} else default

    max_concurrency = get(y, "workflow", "max_concurrency", default=4)
    if not isinstance(max_concurrency, int) or max_concurrency < 1:
        raise ConfigurationError(
            f"workflow.max_concurrency must be a positive integer, got {max_concurrency!r}",
            config_file=path
        )

    return EngineConfig(
        # Prompt library
        prompt_library_path=os.getenv("PROMPTFLOW_PROMPT_LIBRARY")
        or get(y, "prompts", "library_path") or "./prompt-library",
        index_relative_path=get(y, "prompts", "index_path") or ".promptlib/index.json",
        prefix_matching=get(y, "prompts", "prefix_matching", default=True),

        # Workflow scheduling
        parallel=get(y, "workflow", "parallel", default=True),
        max_concurrency=max_concurrency,

        # Logging
        log_level=os.getenv("PROMPTFLOW_LOG_LEVEL") or get(y, "logging", "level") or "INFO",
        log_format=get(y, "logging", "format") or "json",
    )


# =============================================================================
# GLOBAL INSTANCE
# =============================================================================

_config: Optional[EngineConfig] = None


def get_config() -> EngineConfig:
    """Get or create global config instance."""
    global _config
    if _config is None:
        config_path = os.getenv("PROMPTFLOW_CONFIG_PATH", "configs/promptflow.yaml")
        _config = load_config(config_path)
    return _config


def reload_config() -> EngineConfig:
    """Force reload configuration."""
    global _config
    _config = None
    return get_config()
