"""
Configuration management.
"""

from .config import (
    Config,
    get_config,
    setup_config,
    LogConfig,
    StreamingConfig,
)

__all__ = [
    "Config",
    "get_config",
    "setup_config",
    "LogConfig",
    "StreamingConfig",
]
