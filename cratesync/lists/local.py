"""
Locally supplied crate list.

One crate per line:

    # comment
    rust-lang/regex        repository on GitHub
    serde 1.0.200          registry crate and version
    serde@1.0.200          same, alternative spelling
"""

from pathlib import Path
from typing import List, Optional

from cratesync.core.config import SourcesConfig
from cratesync.core.exceptions import SourceFetchError
from cratesync.crates.models import CrateRecord, GitHubRepo, RegistryCrate, split_list_name
from cratesync.lists.base import ListSource


class LocalList(ListSource):
    """List source reading a crate list file from disk."""

    NAME = "local"

    def __init__(self, config: SourcesConfig = None, path: Optional[Path] = None):
        super().__init__()
        self.config = config or SourcesConfig()
        self.path = Path(path or self.config.local_list_path)

    def fetch(self) -> List[CrateRecord]:
        """
        Read the local list file.

        A missing file means no local crates are configured.

        Raises:
            SourceFetchError: If the file exists but cannot be read.
        """
        if not self.path.exists():
            self.logger.info(f"no local crates list at {self.path}")
            return []

        self.logger.info(f"loading local crates list from {self.path}")

        try:
            lines = self.path.read_text(encoding="utf-8").splitlines()
        except (OSError, UnicodeDecodeError) as e:
            raise SourceFetchError(
                f"failed to read local crates list {self.path}: {e}",
                source=str(self.path),
            ) from e

        crates: List[CrateRecord] = []
        for lineno, line in enumerate(lines, start=1):
            line = line.split("#", 1)[0].strip()
            if not line:
                continue

            crate = self._parse_line(line)
            if crate is None:
                self.logger.warning(f"skipping malformed entry on line {lineno}: {line}")
                continue
            crates.append(crate)

        return crates

    def _parse_line(self, line: str) -> Optional[CrateRecord]:
        if "/" in line:
            parts = split_list_name(line)
            if parts is None:
                return None
            return GitHubRepo(org=parts[0], name=parts[1])

        if "@" in line:
            name, _, version = line.partition("@")
            fields = [name.strip(), version.strip()]
        else:
            fields = line.split()

        if len(fields) != 2 or not all(fields):
            return None
        return RegistryCrate(name=fields[0], version=fields[1])
