"""
Moto Lap Timer - Core Application Package
"""

__version__ = "0.1.0"
__author__ = "Moto Lap Timer Team"

# Package-level imports for common utilities
from app.utils.logger import get_logger
from app.utils.time_utils import format_duration, parse_duration

__all__ = [
    "get_logger",
    "format_duration",
    "parse_duration",
]
