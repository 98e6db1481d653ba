"""
Storage backend implementations.

Defines the crate store interface and a JSON file implementation.
Records are keyed by crate identity and upserted, so re-running a
list source simply re-asserts what it already wrote.
"""

import json
import logging
import os
import tempfile
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional

from cratesync.core.config import StorageConfig
from cratesync.core.exceptions import StorageError
from cratesync.crates.models import CrateRecord, crate_from_dict

logger = logging.getLogger(__name__)


@dataclass
class StoredCrate:
    """A crate record together with the lists that reported it."""

    crate: CrateRecord
    lists: List[str] = field(default_factory=list)
    first_seen: datetime = field(default_factory=datetime.now)
    last_seen: datetime = field(default_factory=datetime.now)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            "crate": self.crate.to_dict(),
            "lists": sorted(self.lists),
            "first_seen": self.first_seen.isoformat(),
            "last_seen": self.last_seen.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "StoredCrate":
        """Create from dictionary."""
        return cls(
            crate=crate_from_dict(data["crate"]),
            lists=list(data.get("lists", [])),
            first_seen=datetime.fromisoformat(data["first_seen"]),
            last_seen=datetime.fromisoformat(data["last_seen"]),
        )


class CrateStore(ABC):
    """Abstract interface for crate record storage."""

    @abstractmethod
    def upsert(self, crate: CrateRecord, list_name: str) -> StoredCrate:
        """Create the record if absent, update it if present."""
        pass

    @abstractmethod
    def flush(self) -> None:
        """Persist pending writes."""
        pass

    @abstractmethod
    def get(self, key: str) -> Optional[StoredCrate]:
        """Look up a record by its crate key."""
        pass

    @abstractmethod
    def list_crates(self, list_name: Optional[str] = None) -> List[StoredCrate]:
        """List stored records, optionally only those from one list."""
        pass

    def count(self) -> int:
        """Number of stored records."""
        return len(self.list_crates())


class JSONCrateStore(CrateStore):
    """
    JSON file-based crate storage.

    The whole index is kept in memory; ``flush`` rewrites it through a
    temporary file so an interrupted write never truncates the index.
    """

    def __init__(self, config: StorageConfig = None):
        self.config = config or StorageConfig()
        self.storage_dir = Path(self.config.storage_dir)
        self.storage_dir.mkdir(parents=True, exist_ok=True)
        self.index_path = self.storage_dir / self.config.index_file

        self._records: Dict[str, StoredCrate] = {}
        self._dirty = False
        self._load_index()

    def _load_index(self) -> None:
        """Load records from the index file."""
        if not self.index_path.exists():
            return

        try:
            with open(self.index_path, "r", encoding="utf-8") as f:
                data = json.load(f)
            for key, record in data.items():
                self._records[key] = StoredCrate.from_dict(record)
        except (json.JSONDecodeError, KeyError, ValueError) as e:
            raise StorageError(
                f"Failed to load crate index {self.index_path}: {e}",
                details={"path": str(self.index_path)},
            ) from e

        logger.debug(f"Loaded {len(self._records)} crates from {self.index_path}")

    def upsert(self, crate: CrateRecord, list_name: str) -> StoredCrate:
        """
        Insert or refresh a crate record.

        Args:
            crate: Record produced by a list source.
            list_name: Name of the list that reported it.

        Returns:
            The stored record.
        """
        now = datetime.now()
        record = self._records.get(crate.key)

        if record is None:
            record = StoredCrate(crate=crate, lists=[list_name], first_seen=now, last_seen=now)
            self._records[crate.key] = record
        else:
            if list_name not in record.lists:
                record.lists.append(list_name)
            record.last_seen = now

        self._dirty = True
        return record

    def flush(self) -> None:
        """Write the index to disk if anything changed."""
        if not self._dirty:
            return

        data = {key: record.to_dict() for key, record in sorted(self._records.items())}

        try:
            fd, tmp_path = tempfile.mkstemp(
                prefix=".crates-", suffix=".json", dir=self.storage_dir
            )
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(data, f, indent=2)
            os.replace(tmp_path, self.index_path)
        except OSError as e:
            raise StorageError(
                f"Failed to write crate index {self.index_path}: {e}",
                details={"path": str(self.index_path)},
            ) from e

        self._dirty = False
        logger.info(f"Saved {len(data)} crates to {self.index_path}")

    def get(self, key: str) -> Optional[StoredCrate]:
        """Get a record by crate key."""
        return self._records.get(key)

    def list_crates(self, list_name: Optional[str] = None) -> List[StoredCrate]:
        """List stored records, optionally filtered by list name."""
        records = [self._records[key] for key in sorted(self._records)]
        if list_name is None:
            return records
        return [r for r in records if list_name in r.lists]

    def get_storage_stats(self) -> Dict[str, Any]:
        """Get storage statistics."""
        per_list: Dict[str, int] = {}
        for record in self._records.values():
            for name in record.lists:
                per_list[name] = per_list.get(name, 0) + 1

        size = self.index_path.stat().st_size if self.index_path.exists() else 0

        return {
            "crate_count": len(self._records),
            "per_list": per_list,
            "total_size_bytes": size,
            "total_size_mb": size / (1024 * 1024),
            "storage_dir": str(self.storage_dir),
        }
