"""
Logging system for the streaming indicator runtime.
Provides human-readable console logs with optional file output.

Indicator updates run once per bar (or per tick for provisional updates), so
nothing in the hot path logs above DEBUG. Construction-time events such as
parameter clamping are logged at WARNING.
"""

import logging
from datetime import datetime
from pathlib import Path
from typing import Optional


# ANSI color codes for terminal output
class Colors:
    RESET = "\033[0m"
    RED = "\033[91m"
    GREEN = "\033[92m"
    YELLOW = "\033[93m"
    CYAN = "\033[96m"
    WHITE = "\033[97m"
    BOLD = "\033[1m"


class ColoredFormatter(logging.Formatter):
    """Custom formatter with colors for console output."""

    LEVEL_COLORS = {
        logging.DEBUG: Colors.CYAN,
        logging.INFO: Colors.GREEN,
        logging.WARNING: Colors.YELLOW,
        logging.ERROR: Colors.RED,
        logging.CRITICAL: Colors.BOLD + Colors.RED,
    }

    def format(self, record):
        # Color a copy so file handlers and other consumers see plain text
        colored = logging.makeLogRecord(record.__dict__)
        color = self.LEVEL_COLORS.get(record.levelno, Colors.WHITE)
        colored.levelname = f"{color}{record.levelname}{Colors.RESET}"
        colored.msg = f"{color}{record.getMessage()}{Colors.RESET}"
        colored.args = None
        return super().format(colored)


class IndicatorLogger:
    """
    Central logger for indicator states and rolling primitives.

    Features:
    - Console output with colors
    - Optional dated log file when a log directory is configured
    - Structured helpers for the few events worth recording
    """

    _instance: Optional['IndicatorLogger'] = None
    _initialized: bool = False

    def __new__(cls, *args, **kwargs):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __init__(self, log_dir: Optional[str] = None, log_level: str = "INFO"):
        if IndicatorLogger._initialized:
            return

        self.log_dir = Path(log_dir) if log_dir else None
        if self.log_dir is not None:
            self.log_dir.mkdir(parents=True, exist_ok=True)

        self.main_logger = self._create_logger("streamta", log_level)

        IndicatorLogger._initialized = True

    def _create_logger(self, name: str, level: str) -> logging.Logger:
        """Create a configured logger instance."""
        logger = logging.getLogger(name)
        logger.setLevel(getattr(logging, level.upper(), logging.INFO))
        logger.handlers.clear()

        console_handler = logging.StreamHandler()
        console_handler.setFormatter(ColoredFormatter(
            "%(asctime)s | %(levelname)s | %(message)s",
            datefmt="%H:%M:%S"
        ))
        logger.addHandler(console_handler)

        # File handler (plain text, no colors)
        if self.log_dir is not None:
            log_file = self.log_dir / f"streamta_{datetime.now().strftime('%Y%m%d')}.log"
            file_handler = logging.FileHandler(log_file, encoding='utf-8')
            file_handler.setFormatter(logging.Formatter(
                "%(asctime)s | %(levelname)s | %(name)s | %(message)s",
                datefmt="%Y-%m-%d %H:%M:%S"
            ))
            logger.addHandler(file_handler)

        return logger

    def info(self, msg: str, *args, **kwargs):
        """Log info message."""
        self.main_logger.info(msg, *args, **kwargs)

    def debug(self, msg: str, *args, **kwargs):
        """Log debug message."""
        self.main_logger.debug(msg, *args, **kwargs)

    def warning(self, msg: str, *args, **kwargs):
        """Log warning message."""
        self.main_logger.warning(msg, *args, **kwargs)

    def error(self, msg: str, *args, **kwargs):
        """Log error message."""
        self.main_logger.error(msg, *args, **kwargs)

    def clamp(self, owner: str, param: str, requested, resolved):
        """
        Log a constructor parameter that was clamped into range.

        Args:
            owner: Class name of the indicator or primitive
            param: Parameter name (e.g., "length")
            requested: Value the caller passed
            resolved: Value actually used
        """
        self.main_logger.warning(
            f"[CLAMP] {owner} | {param}={requested} -> {resolved}"
        )

    def state(self, action: str, owner: str, **kwargs):
        """
        Log a state lifecycle event (RESET, CREATED) at DEBUG.

        Args:
            action: Lifecycle action name
            owner: Class name of the indicator or primitive
            **kwargs: Additional context
        """
        if not self.main_logger.isEnabledFor(logging.DEBUG):
            return
        parts = [f"[STATE:{action}]", owner]
        for key, value in kwargs.items():
            parts.append(f"{key}={value}")
        self.main_logger.debug(" | ".join(parts))


# Global logger instance
_logger: Optional[IndicatorLogger] = None


def get_logger(log_dir: Optional[str] = None, log_level: Optional[str] = None) -> IndicatorLogger:
    """Get or create the global logger instance (defaults come from config)."""
    global _logger
    if _logger is None:
        if log_dir is None or log_level is None:
            from streamta.config import get_config
            log_config = get_config().log
            log_dir = log_dir if log_dir is not None else log_config.log_dir
            log_level = log_level if log_level is not None else log_config.level
        _logger = IndicatorLogger(log_dir, log_level)
    return _logger


def setup_logger(log_dir: Optional[str] = None, log_level: str = "INFO") -> IndicatorLogger:
    """Initialize the logger with custom settings."""
    global _logger
    IndicatorLogger._initialized = False
    IndicatorLogger._instance = None
    _logger = IndicatorLogger(log_dir, log_level)
    return _logger
