"""
Crates published on the crates.io registry.
"""

import time
from typing import Any, Dict, List, Optional

import requests

from cratesync.core.config import SourcesConfig
from cratesync.core.exceptions import SourceFetchError
from cratesync.crates.models import CrateRecord, RegistryCrate
from cratesync.lists.base import ListSource
from cratesync.utils.http import create_session, http_get


class RegistryList(ListSource):
    """
    List source enumerating every crate on crates.io.

    Pages through the registry web API in alphabetical order and keeps
    the highest published version of each crate.
    """

    NAME = "crates-io"

    def __init__(self, config: SourcesConfig = None, session: requests.Session = None):
        super().__init__()
        self.config = config or SourcesConfig()
        self.api_url = self.config.registry_api_url.rstrip("/")
        self.session = session or create_session(self.config.user_agent)

    def fetch(self) -> List[CrateRecord]:
        """
        Enumerate the registry.

        Raises:
            SourceFetchError: If a page cannot be fetched or decoded.
        """
        url = f"{self.api_url}/crates"
        self.logger.info(f"loading crates.io crates list from {url}")

        crates: List[CrateRecord] = []
        page = 1
        while True:
            entries = self._fetch_page(url, page)
            if not entries:
                break

            for entry in entries:
                crate = self._to_crate(entry)
                if crate is not None:
                    crates.append(crate)

            max_pages = self.config.registry_max_pages
            if max_pages and page >= max_pages:
                self.logger.info(f"stopping after {max_pages} registry pages")
                break

            page += 1
            if self.config.registry_page_delay > 0:
                time.sleep(self.config.registry_page_delay)

        return crates

    def _fetch_page(self, url: str, page: int) -> List[Dict[str, Any]]:
        params = {
            "page": page,
            "per_page": self.config.registry_page_size,
            "sort": "alphabetical",
        }
        self.logger.debug(f"fetching registry page {page}")

        try:
            response = http_get(
                self.session, url, timeout=self.config.http_timeout, params=params
            )
            payload = response.json()
        except requests.exceptions.RequestException as e:
            raise SourceFetchError(
                f"failed to fetch crates.io crates list from {url} (page {page}): {e}",
                source=url,
                details={"page": page},
            ) from e
        except ValueError as e:
            raise SourceFetchError(
                f"invalid JSON from {url} (page {page}): {e}",
                source=url,
                details={"page": page},
            ) from e

        if not isinstance(payload, dict) or not isinstance(payload.get("crates"), list):
            raise SourceFetchError(
                f"unexpected response from {url} (page {page}): no crates array",
                source=url,
                details={"page": page},
            )

        return payload["crates"]

    def _to_crate(self, entry: Any) -> Optional[RegistryCrate]:
        if not isinstance(entry, dict):
            self.logger.warning(f"skipping malformed registry entry: {entry!r}")
            return None

        name = entry.get("name") or entry.get("id")
        version = entry.get("max_stable_version") or entry.get("max_version")
        if not name or not version:
            self.logger.warning(f"skipping registry entry without name or version: {entry!r}")
            return None

        return RegistryCrate(name=name, version=version)
