"""
Utility modules for the LEGO hub controller.

Provides logging configuration and shared constants.
"""

from .logging_config import (
    setup_logging,
    get_logger,
    JSONFormatter,
    TextFormatter,
)

__all__ = [
    "setup_logging",
    "get_logger",
    "JSONFormatter",
    "TextFormatter",
]
