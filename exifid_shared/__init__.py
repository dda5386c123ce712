"""Shared utilities for exifid."""
from .errors import sanitize_error_message
from .log import get_logger, log_structured, request_id_var
from .result import Result
from .time import timer
from .types import ErrorCode

__all__ = [
    "Result",
    "get_logger",
    "log_structured",
    "request_id_var",
    "timer",
    "ErrorCode",
    "sanitize_error_message",
]
