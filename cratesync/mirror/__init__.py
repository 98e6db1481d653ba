"""
Local mirrors of GitHub repositories.
"""

from cratesync.mirror.git_handler import GitHandler
from cratesync.mirror.manager import MirrorManager

__all__ = [
    "GitHandler",
    "MirrorManager",
]
