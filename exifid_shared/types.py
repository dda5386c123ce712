"""
Shared types, enums, and constants.
"""
from enum import Enum


class ErrorCode(str, Enum):
    """Standardized error codes (string enum)."""

    # Client / validation
    INVALID_INPUT = "INVALID_INPUT"
    NOT_FOUND = "NOT_FOUND"

    # Tool availability
    TOOL_MISSING = "TOOL_MISSING"
    TIMEOUT = "TIMEOUT"

    # Tool failure
    IDENTIFY_ERROR = "IDENTIFY_ERROR"
