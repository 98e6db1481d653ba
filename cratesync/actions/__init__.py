"""
Actions run by the command-line interface.
"""

from cratesync.actions.update_lists import SourceFactory, UpdateLists

__all__ = [
    "SourceFactory",
    "UpdateLists",
]
