"""
Configuration management for the streaming indicator runtime.
Loads settings from environment variables with sensible defaults.

Indicator parameters (lengths, moving-average kind, input field) are always
constructor arguments. This module only carries the ambient settings:
logging, and the defaults every indicator state snapshots when it is built.
"""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv


def _env_bool(name: str, default: str) -> bool:
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes", "on")


@dataclass
class LogConfig:
    """Logging configuration."""
    level: str = "INFO"
    log_dir: Optional[str] = None  # None = console only


@dataclass
class StreamingConfig:
    """
    Defaults applied by indicator states.

    include_outputs:
        Default for update(..., include_outputs=None). Turning it off skips
        building the named-output mapping when only the primary value is
        needed.
    warn_on_clamp:
        Log a warning when a constructor clamps a length below 1.
    """
    include_outputs: bool = True
    warn_on_clamp: bool = True


class Config:
    """
    Central configuration manager.

    Loads configuration from environment variables and provides
    typed access to all settings.
    """

    _instance: Optional['Config'] = None

    def __new__(cls, *args, **kwargs):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
            cls._instance._initialized = False
        return cls._instance

    def __init__(self, env_file: str = ".env"):
        if self._initialized:
            return

        env_path = Path(env_file)
        if env_path.exists():
            load_dotenv(env_path, override=False)

        self.log = self._load_log_config()
        self.streaming = self._load_streaming_config()

        self._initialized = True

    def _load_log_config(self) -> LogConfig:
        """Load logging configuration."""
        return LogConfig(
            level=os.getenv("STREAMTA_LOG_LEVEL", "INFO"),
            log_dir=os.getenv("STREAMTA_LOG_DIR") or None,
        )

    def _load_streaming_config(self) -> StreamingConfig:
        """Load indicator defaults."""
        return StreamingConfig(
            include_outputs=_env_bool("STREAMTA_INCLUDE_OUTPUTS", "true"),
            warn_on_clamp=_env_bool("STREAMTA_WARN_ON_CLAMP", "true"),
        )

    def summary_short(self) -> str:
        """Generate a short one-line configuration summary."""
        outputs = "on" if self.streaming.include_outputs else "off"
        log_target = self.log.log_dir or "console"
        return f"streamta | log={self.log.level}@{log_target} | outputs={outputs}"


def get_config(env_file: str = ".env") -> Config:
    """Get or create the global config instance."""
    return Config(env_file)


def setup_config(env_file: str = ".env") -> Config:
    """Rebuild the global config, re-reading the environment."""
    Config._instance = None
    return Config(env_file)
