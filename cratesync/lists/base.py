"""
Base class for crate list sources.

Every source turns one origin (a remote CSV, the registry, a local file)
into a sequence of crate records and writes them to a crate store.
"""

import logging
from abc import ABC, abstractmethod
from typing import List

from cratesync.crates.models import CrateRecord
from cratesync.storage.backend import CrateStore


class ListSource(ABC):
    """
    Abstract base class for crate list sources.

    ``fetch`` either returns the complete list or raises
    SourceFetchError; malformed individual entries are logged and
    skipped without failing the fetch.
    """

    NAME: str = "unknown"

    def __init__(self):
        self.logger = logging.getLogger(f"{__name__}.{self.NAME}")

    @property
    def name(self) -> str:
        """Unique identifier for this list."""
        return self.NAME

    @abstractmethod
    def fetch(self) -> List[CrateRecord]:
        """
        Fetch every crate this list currently provides.

        Returns:
            List of crate records. Order is not guaranteed.

        Raises:
            SourceFetchError: If retrieval or decoding fails.
        """
        pass

    def update(self, store: CrateStore) -> int:
        """
        Fetch the list and upsert every record into the store.

        Args:
            store: Crate store receiving the records.

        Returns:
            Number of records written.
        """
        crates = self.fetch()

        for crate in crates:
            store.upsert(crate, list_name=self.NAME)
        store.flush()

        self.logger.info(f"Loaded {len(crates)} crates from list {self.NAME}")
        return len(crates)
