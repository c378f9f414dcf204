"""Centralized logging configuration for Fret Coach.

This module provides a consistent way to configure logging across the application.
"""

import logging
import sys
from typing import Optional

# Log levels for different modules
MODULE_LOG_LEVELS = {
    # Core modules
    "fret_coach": logging.INFO,
    "fret_coach.core": logging.INFO,
    "fret_coach.cli": logging.INFO,
    # Real-time pipelines, set to DEBUG for per-frame details
    "fret_coach.detection": logging.INFO,
    "fret_coach.tuning": logging.INFO,
    "fret_coach.scoring": logging.INFO,
    "fret_coach.note_matcher": logging.INFO,
    "fret_coach.services": logging.INFO,
    "fret_coach.audio": logging.WARNING,
    "fret_coach.logger": logging.WARNING,  # Logger module itself should be quiet
    # Libraries/third-party
    "aubio": logging.ERROR,
    # Root logger
    "": logging.ERROR,
}

# Shared console handler
_console_handler: Optional[logging.Handler] = None


def setup_logging(level: Optional[str] = None) -> None:
    """Set up logging configuration for the application.

    Args:
        level: If provided, override all 'fret_coach' log levels with this level (e.g., "DEBUG").
    """
    global _console_handler

    # Create a single, shared console handler if it doesn't exist
    if _console_handler is None:
        _console_handler = logging.StreamHandler(sys.stdout)
        formatter = logging.Formatter(
            "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
        )
        _console_handler.setFormatter(formatter)

    # Determine log levels
    log_levels = MODULE_LOG_LEVELS.copy()
    if level:
        numeric_level = logging.getLevelName(level.upper())
        if isinstance(numeric_level, int):
            for module_name in log_levels:
                if module_name.startswith("fret_coach"):
                    log_levels[module_name] = numeric_level
        else:
            logging.getLogger(__name__).error(f"Invalid log level: {level}")

    # Apply module-specific levels. Child loggers propagate up to these.
    for module_name, module_level in log_levels.items():
        logger = logging.getLogger(module_name if module_name else "")
        logger.setLevel(module_level)

        for handler in logger.handlers[:]:
            logger.removeHandler(handler)
        logger.addHandler(_console_handler)
        logger.propagate = False

    logging.getLogger("fret_coach").info("Logging configuration complete")
