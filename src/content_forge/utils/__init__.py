"""Utility modules."""

from content_forge.utils.logging import configure_logging, get_logger

__all__ = [
    "configure_logging",
    "get_logger",
]
