"""
Refresh the stored crate lists.

Runs the enabled list sources in a fixed order (GitHub, then the
registry, then the local list) and stops at the first source that
fails.
"""

import logging
from dataclasses import dataclass
from typing import Callable, Optional

from cratesync.core.config import AppConfig, Config
from cratesync.lists import GitHubList, ListSource, LocalList, RegistryList
from cratesync.storage.backend import CrateStore

logger = logging.getLogger(__name__)


@dataclass
class SourceFactory:
    """Builds the list sources from configuration."""

    github: Callable[[AppConfig], ListSource] = lambda config: GitHubList(config.sources)
    registry: Callable[[AppConfig], ListSource] = lambda config: RegistryList(config.sources)
    local: Callable[[AppConfig], ListSource] = lambda config: LocalList(config.sources)


@dataclass
class UpdateLists:
    """Which list sources a sync pass runs."""

    github: bool = True
    registry: bool = True
    local: bool = True

    @classmethod
    def from_config(cls, config: AppConfig) -> "UpdateLists":
        return cls(
            github=config.sources.github_enabled,
            registry=config.sources.registry_enabled,
            local=config.sources.local_enabled,
        )

    def apply(
        self,
        store: CrateStore,
        config: Optional[AppConfig] = None,
        factory: Optional[SourceFactory] = None,
    ) -> int:
        """
        Update every enabled list.

        Args:
            store: Crate store receiving the records.
            config: Configuration; defaults to the global one.
            factory: Source builders, replaceable in tests.

        Returns:
            Total number of records written.

        Raises:
            SourceFetchError: From the first source that fails. Later
                sources are not run.
        """
        config = config or Config.get()
        factory = factory or SourceFactory()
        total = 0

        if self.github:
            logger.info("updating GitHub repositories list")
            total += factory.github(config).update(store)

        if self.registry:
            logger.info("updating crates.io crates list")
            total += factory.registry(config).update(store)

        if self.local:
            logger.info("updating local crates list")
            total += factory.local(config).update(store)

        return total
