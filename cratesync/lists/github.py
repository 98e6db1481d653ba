"""
Curated list of open-source GitHub repositories.

The list is a CSV document with one repository per row, flagged with
whether the repository ships a Cargo.toml and a Cargo.lock.
"""

import csv
import io
from dataclasses import dataclass
from typing import Dict, List, Optional

import requests

from cratesync.core.config import SourcesConfig
from cratesync.core.exceptions import SourceFetchError
from cratesync.crates.models import CrateRecord, GitHubRepo, split_list_name
from cratesync.lists.base import ListSource
from cratesync.utils.http import create_session, http_get

NAME_COLUMNS = ("full_name", "name")
FLAG_COLUMNS = ("has_cargo_toml", "has_cargo_lock")


@dataclass
class ListRepo:
    """One decoded row of the repositories CSV."""

    name: str
    has_cargo_toml: bool
    has_cargo_lock: bool

    @classmethod
    def from_row(cls, row: Dict[str, Optional[str]], name_column: str) -> "ListRepo":
        """
        Decode a CSV row.

        Raises:
            ValueError: If a column is missing or a flag is not a boolean.
        """
        name = row.get(name_column)
        if name is None:
            raise ValueError(f"missing column {name_column}")

        return cls(
            name=name.strip(),
            has_cargo_toml=_parse_bool(row, "has_cargo_toml"),
            has_cargo_lock=_parse_bool(row, "has_cargo_lock"),
        )


def _parse_bool(row: Dict[str, Optional[str]], column: str) -> bool:
    value = row.get(column)
    if value is None:
        raise ValueError(f"missing column {column}")

    value = value.strip().lower()
    if value == "true":
        return True
    if value == "false":
        return False
    raise ValueError(f"invalid boolean {value!r} in column {column}")


class GitHubList(ListSource):
    """List source backed by the curated GitHub repositories CSV."""

    NAME = "github-oss"

    def __init__(self, config: SourcesConfig = None, session: requests.Session = None):
        super().__init__()
        self.config = config or SourcesConfig()
        self.source = self.config.github_list_url
        self.session = session or create_session(self.config.user_agent)

    def fetch(self) -> List[CrateRecord]:
        """
        Download and decode the repositories list.

        Only repositories with both a Cargo.toml and a Cargo.lock are
        imported.

        Raises:
            SourceFetchError: If the download fails or a row cannot be decoded.
        """
        self.logger.info(f"loading cached GitHub list from {self.source}")

        try:
            response = http_get(self.session, self.source, timeout=self.config.http_timeout)
        except requests.exceptions.RequestException as e:
            raise SourceFetchError(
                f"failed to fetch GitHub crates list from {self.source}: {e}",
                source=self.source,
            ) from e

        return self.parse(response.text)

    def parse(self, text: str) -> List[CrateRecord]:
        """
        Decode the CSV payload into crate records.

        Raises:
            SourceFetchError: If the header or any row is malformed.
        """
        reader = csv.DictReader(io.StringIO(text))
        headers = {h.strip() for h in (reader.fieldnames or [])}

        name_column = next((c for c in NAME_COLUMNS if c in headers), None)
        missing = [c for c in FLAG_COLUMNS if c not in headers]
        if name_column is None or missing:
            missing = missing if name_column else [NAME_COLUMNS[0]] + missing
            raise SourceFetchError(
                f"GitHub crates list is missing columns: {', '.join(missing)}",
                source=self.source,
                details={"missing": missing},
            )

        crates: List[CrateRecord] = []
        try:
            for row in reader:
                row = {(k or "").strip(): v for k, v in row.items()}
                repo = ListRepo.from_row(row, name_column)

                # Only import repos with a Cargo.toml and a Cargo.lock
                if not repo.has_cargo_toml or not repo.has_cargo_lock:
                    continue

                parts = split_list_name(repo.name)
                if parts is None:
                    self.logger.warning(f"skipping malformed repo name: {repo.name}")
                    continue

                org, name = parts
                crates.append(GitHubRepo(org=org, name=name))
        except (ValueError, csv.Error) as e:
            raise SourceFetchError(
                f"failed to decode GitHub crates list from {self.source} "
                f"at line {reader.line_num}: {e}",
                source=self.source,
                details={"line": reader.line_num},
            ) from e

        return crates
