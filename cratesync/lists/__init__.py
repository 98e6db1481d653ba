"""
Crate list sources.

The set of sources is fixed: the curated GitHub list, the crates.io
registry and a local list file.
"""

from cratesync.lists.base import ListSource
from cratesync.lists.github import GitHubList
from cratesync.lists.registry import RegistryList
from cratesync.lists.local import LocalList

__all__ = [
    "ListSource",
    "GitHubList",
    "RegistryList",
    "LocalList",
]
