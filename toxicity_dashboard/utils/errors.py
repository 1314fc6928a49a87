"""
Error sanitization helpers.

Routes log the real exception and return one of the generic messages below,
so upstream or database details never reach the client.
"""

from __future__ import annotations
import logging
from flask import current_app, has_app_context

logger = logging.getLogger(__name__)

GENERIC_MESSAGES = {
    "analysis": "Failed to analyze comment",
    "database": "Failed to save content",
    "validation": "Invalid request",
    "auth": "Not authenticated",
    "unknown": "Something went wrong. Please try again.",
}


def _logger():
    return current_app.logger if has_app_context() else logger


def log_info(message: str) -> None:
    _logger().info(message)


def sanitize_error(error: Exception, category: str = "unknown", context: str = "") -> str:
    """
    Log `error` with its context and return the generic message for `category`.
    """
    prefix = f"{context}: " if context else ""
    _logger().error(f"{prefix}{type(error).__name__}: {error}")
    return GENERIC_MESSAGES.get(category, GENERIC_MESSAGES["unknown"])
