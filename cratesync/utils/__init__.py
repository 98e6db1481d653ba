"""
Utility functions and helpers.
"""

from cratesync.utils.logging_config import setup_logging
from cratesync.utils.http import create_session, http_get

__all__ = [
    "setup_logging",
    "create_session",
    "http_get",
]
