"""
Input validation for text sent to the comment analyzer.

Checks type, length and encoding before anything leaves the server. Empty
text passes validation; the dashboard blocks it separately, while the JSON
proxy forwards it unchanged.
"""

from __future__ import annotations
from typing import Any, Tuple

DEFAULT_MAX_TEXT_LENGTH = 20000

# Error codes
INVALID_TEXT = "invalid_text"
TEXT_TOO_LONG = "text_too_long"
INVALID_ENCODING = "invalid_encoding"

ERROR_MESSAGES = {
    INVALID_TEXT: "Field 'text' is required and must be a string.",
    TEXT_TOO_LONG: "Text is too long to analyze.",
    INVALID_ENCODING: "Text contains characters that cannot be encoded as UTF-8.",
}


def validate_text(value: Any, max_len: int = DEFAULT_MAX_TEXT_LENGTH) -> Tuple[str, str | None]:
    """
    Returns (text, error_code). On success error_code is None and text is the
    input unchanged (no trimming: the analyzer scores exactly what was typed).
    """
    if not isinstance(value, str):
        return "", INVALID_TEXT
    if len(value) > max_len:
        return "", TEXT_TOO_LONG
    try:
        value.encode("utf-8")
    except UnicodeEncodeError:
        # lone surrogates from JSON escapes like "\ud800"
        return "", INVALID_ENCODING
    return value, None
