"""External tool adapters."""
from .identify import IDENTIFY_FORMAT, Identify

__all__ = ["Identify", "IDENTIFY_FORMAT"]
