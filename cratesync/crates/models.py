"""
Crate record data structures.

Provides the canonical representation of a discovered crate shared by
every list source, the storage layer and the mirror manager.
"""

from dataclasses import dataclass
from pathlib import Path
from typing import Any, ClassVar, Dict, Optional, Tuple, Union
from urllib.parse import quote

from cratesync.core.exceptions import IdentityParseError


GITHUB_BASE_URL = "https://github.com"


def _escape_component(component: str, escape_dots: bool) -> str:
    """Percent-encode a slug component for use in a directory name."""
    escaped = quote(component, safe="")
    if escape_dots:
        escaped = escaped.replace(".", "%2E")
    return escaped


def split_list_name(full_name: str) -> Optional[Tuple[str, str]]:
    """
    Split a repository name coming from a crate list.

    Only an exact ``org/name`` pair with both parts non-empty is accepted.

    Args:
        full_name: Raw name column from a list.

    Returns:
        Tuple of (org, name), or None if the name is malformed.
    """
    parts = full_name.split("/")
    if len(parts) != 2:
        return None

    org, name = parts
    if not org or not name:
        return None

    return org, name


@dataclass(frozen=True, order=True)
class GitHubRepo:
    """A crate backed by a GitHub repository."""

    KIND: ClassVar[str] = "github"

    org: str
    name: str

    @classmethod
    def from_slug(cls, text: str) -> "GitHubRepo":
        """
        Parse a user-supplied ``org/name`` string.

        The parse is anchored on the right: ``a/b/c`` yields org ``b``
        and name ``c``, so a pasted URL path still resolves.

        Raises:
            IdentityParseError: If fewer than two components are present.
        """
        components = text.split("/")
        if len(components) < 2:
            raise IdentityParseError(text)

        name = components.pop()
        org = components.pop()
        if not org or not name:
            raise IdentityParseError(text)

        return cls(org=org, name=name)

    @property
    def kind(self) -> str:
        return self.KIND

    @property
    def slug(self) -> str:
        return f"{self.org}/{self.name}"

    @property
    def key(self) -> str:
        """Storage key for this crate."""
        return self.slug

    def url(self, base_url: str = GITHUB_BASE_URL) -> str:
        """Canonical clone URL of the repository."""
        return f"{base_url.rstrip('/')}/{self.org}/{self.name}"

    @property
    def mirror_dir_name(self) -> str:
        """
        Directory name of the local mirror.

        Both components are percent-encoded and dots in the org are
        escaped too, so the first literal ``.`` always separates org
        from name and distinct repositories never share a directory.
        """
        org = _escape_component(self.org, escape_dots=True)
        name = _escape_component(self.name, escape_dots=False)
        return f"{org}.{name}"

    def mirror_dir(self, mirrors_root: Path) -> Path:
        return Path(mirrors_root) / self.mirror_dir_name

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {"kind": self.KIND, "org": self.org, "name": self.name}

    def __str__(self) -> str:
        return self.slug


@dataclass(frozen=True, order=True)
class RegistryCrate:
    """A crate published on the package registry."""

    KIND: ClassVar[str] = "registry"

    name: str
    version: str

    @property
    def kind(self) -> str:
        return self.KIND

    @property
    def key(self) -> str:
        """Storage key for this crate."""
        return f"{self.name}@{self.version}"

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {"kind": self.KIND, "name": self.name, "version": self.version}

    def __str__(self) -> str:
        return f"{self.name} {self.version}"


CrateRecord = Union[GitHubRepo, RegistryCrate]


def crate_from_dict(data: Dict[str, Any]) -> CrateRecord:
    """
    Rebuild a crate record from its serialized form.

    Raises:
        ValueError: If the kind tag is unknown.
    """
    kind = data.get("kind")
    if kind == GitHubRepo.KIND:
        return GitHubRepo(org=data["org"], name=data["name"])
    if kind == RegistryCrate.KIND:
        return RegistryCrate(name=data["name"], version=data["version"])
    raise ValueError(f"Unknown crate kind: {kind}")
