"""
Crate record storage and persistence layer.
"""

from cratesync.storage.backend import CrateStore, JSONCrateStore, StoredCrate

__all__ = [
    "CrateStore",
    "JSONCrateStore",
    "StoredCrate",
]
