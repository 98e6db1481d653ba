"""
Configuration management for crate list discovery.

Provides centralized configuration for list sources, repository mirrors
and storage with sensible defaults and validation.
"""

import os
import json
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

from cratesync.core.exceptions import ConfigurationError


DEFAULT_GITHUB_LIST_URL = (
    "https://raw.githubusercontent.com/rust-ops/rust-repos/master/data/github.csv"
)
DEFAULT_REGISTRY_API_URL = "https://crates.io/api/v1"
DEFAULT_USER_AGENT = "cratesync/1.0.0 (crate list discovery)"


@dataclass
class SourcesConfig:
    """Configuration for the crate list sources."""

    # Which sources a sync pass runs
    github_enabled: bool = True
    registry_enabled: bool = True
    local_enabled: bool = True

    # Curated list of GitHub repositories (CSV)
    github_list_url: str = DEFAULT_GITHUB_LIST_URL

    # crates.io web API root
    registry_api_url: str = DEFAULT_REGISTRY_API_URL

    # Crates per registry page (crates.io caps this at 100)
    registry_page_size: int = 100

    # Stop after this many registry pages (0 = no limit)
    registry_max_pages: int = 0

    # Seconds to wait between registry pages
    registry_page_delay: float = 1.0

    # Locally supplied list of crates
    local_list_path: str = "./local-crates.txt"

    # Timeout for HTTP requests (seconds)
    http_timeout: int = 60

    user_agent: str = DEFAULT_USER_AGENT


@dataclass
class MirrorConfig:
    """Configuration for local repository mirrors."""

    # Directory holding one mirror per repository
    mirrors_dir: str = "./data/gh-mirrors"

    github_base_url: str = "https://github.com"

    # Clone depth for mirrors (0 = full clone)
    clone_depth: int = 1

    # Timeout for git operations (seconds)
    git_timeout: int = 300


@dataclass
class StorageConfig:
    """Configuration for crate record storage."""

    # Base directory for storage
    storage_dir: str = "./data/crates"

    # Index file holding all crate records
    index_file: str = "crates.json"


@dataclass
class AppConfig:
    """Master configuration combining all component configurations."""

    sources: SourcesConfig = field(default_factory=SourcesConfig)
    mirror: MirrorConfig = field(default_factory=MirrorConfig)
    storage: StorageConfig = field(default_factory=StorageConfig)

    # Enable verbose logging
    verbose: bool = False

    # Working directory for prepared crates
    work_dir: str = "./data/work"


class Config:
    """
    Central configuration manager providing access to all settings.

    Supports loading from environment variables and configuration files.
    """

    _instance: Optional["Config"] = None
    _config: AppConfig = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
            cls._instance._config = AppConfig()
        return cls._instance

    @classmethod
    def get(cls) -> AppConfig:
        """Get the current configuration."""
        if cls._instance is None:
            cls()
        return cls._instance._config

    @classmethod
    def reset(cls) -> AppConfig:
        """Restore the default configuration."""
        instance = cls()
        instance._config = AppConfig()
        return instance._config

    @classmethod
    def load_from_file(cls, config_path: str) -> AppConfig:
        """
        Load configuration from a JSON file.

        Args:
            config_path: Path to the configuration file.

        Returns:
            Loaded AppConfig instance.

        Raises:
            ConfigurationError: If the file is missing or malformed.
        """
        config_path = Path(config_path)
        if not config_path.exists():
            raise ConfigurationError(
                f"Configuration file not found: {config_path}",
                details={"path": str(config_path)},
            )

        try:
            with open(config_path, "r") as f:
                data = json.load(f)
            config = cls._dict_to_config(data)
        except (json.JSONDecodeError, TypeError) as e:
            raise ConfigurationError(
                f"Invalid configuration file {config_path}: {e}",
                details={"path": str(config_path)},
            ) from e

        instance = cls()
        instance._config = config
        return instance._config

    @classmethod
    def load_from_env(cls) -> AppConfig:
        """
        Load configuration from environment variables.

        Variables are prefixed with CRATESYNC_ and may also come from a
        .env file in the working directory.

        Returns:
            AppConfig with environment overrides applied.
        """
        load_dotenv()

        instance = cls()
        config = instance._config

        for name, attr in (
            ("CRATESYNC_GITHUB", "github_enabled"),
            ("CRATESYNC_REGISTRY", "registry_enabled"),
            ("CRATESYNC_LOCAL", "local_enabled"),
        ):
            if os.getenv(name):
                setattr(config.sources, attr, _env_flag(os.getenv(name)))

        if os.getenv("CRATESYNC_GITHUB_LIST_URL"):
            config.sources.github_list_url = os.getenv("CRATESYNC_GITHUB_LIST_URL")

        if os.getenv("CRATESYNC_REGISTRY_API_URL"):
            config.sources.registry_api_url = os.getenv("CRATESYNC_REGISTRY_API_URL")

        if os.getenv("CRATESYNC_LOCAL_LIST"):
            config.sources.local_list_path = os.getenv("CRATESYNC_LOCAL_LIST")

        if os.getenv("CRATESYNC_MIRRORS_DIR"):
            config.mirror.mirrors_dir = os.getenv("CRATESYNC_MIRRORS_DIR")

        if os.getenv("CRATESYNC_STORAGE_DIR"):
            config.storage.storage_dir = os.getenv("CRATESYNC_STORAGE_DIR")

        if os.getenv("CRATESYNC_VERBOSE"):
            config.verbose = _env_flag(os.getenv("CRATESYNC_VERBOSE"))

        return config

    @staticmethod
    def _dict_to_config(data: dict) -> AppConfig:
        """Convert a dictionary to AppConfig."""
        config = AppConfig()

        if "sources" in data:
            config.sources = SourcesConfig(**data["sources"])

        if "mirror" in data:
            config.mirror = MirrorConfig(**data["mirror"])

        if "storage" in data:
            config.storage = StorageConfig(**data["storage"])

        if "verbose" in data:
            config.verbose = data["verbose"]

        if "work_dir" in data:
            config.work_dir = data["work_dir"]

        return config

    @classmethod
    def save_to_file(cls, config_path: str) -> None:
        """
        Save current configuration to a JSON file.

        Args:
            config_path: Path to save the configuration file.
        """
        config_path = Path(config_path)
        config_path.parent.mkdir(parents=True, exist_ok=True)

        with open(config_path, "w") as f:
            json.dump(asdict(cls.get()), f, indent=2)


def _env_flag(value: str) -> bool:
    return value.lower() in ("true", "1", "yes")
