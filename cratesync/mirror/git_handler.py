"""
Git operations handler for repository mirrors.

Provides shallow clone-or-pull of a remote repository into a local
mirror directory. The mirror is only ever changed by git itself: a new
mirror is cloned beside its final location and renamed into place, and
an existing mirror is updated with fetch followed by reset, so an
interrupted or failed operation leaves the previous content usable.
"""

import logging
import os
import shutil
import subprocess
import tempfile
from pathlib import Path
from typing import List, Optional

from cratesync.core.config import MirrorConfig
from cratesync.core.exceptions import MirrorError

logger = logging.getLogger(__name__)


class GitHandler:
    """Runs the git binary to keep repository mirrors current."""

    def __init__(self, config: MirrorConfig):
        self.config = config
        self._git_available: Optional[bool] = None

    @property
    def git_available(self) -> bool:
        """Check if git is available on the system."""
        if self._git_available is None:
            try:
                result = subprocess.run(
                    ["git", "--version"],
                    capture_output=True,
                    text=True,
                    timeout=10,
                )
                self._git_available = result.returncode == 0
            except (subprocess.TimeoutExpired, FileNotFoundError):
                self._git_available = False
        return self._git_available

    def _env(self) -> dict:
        env = dict(os.environ)
        # Fail instead of asking for credentials when a repository is gone
        env["GIT_TERMINAL_PROMPT"] = "0"
        return env

    def _depth_args(self) -> List[str]:
        if self.config.clone_depth > 0:
            return ["--depth", str(self.config.clone_depth)]
        return []

    def _run(self, args: List[str], url: str, path: Path, cwd: Optional[Path] = None) -> str:
        cmd = ["git", "-c", "credential.helper="] + args
        logger.debug(f"Git command: {' '.join(cmd)}")

        try:
            result = subprocess.run(
                cmd,
                capture_output=True,
                text=True,
                cwd=cwd,
                env=self._env(),
                timeout=self.config.git_timeout,
            )
        except subprocess.TimeoutExpired as e:
            raise MirrorError(
                f"git {args[0]} timed out after {self.config.git_timeout} seconds",
                url=url,
                path=str(path),
            ) from e
        except OSError as e:
            raise MirrorError(f"failed to run git: {e}", url=url, path=str(path)) from e

        if result.returncode != 0:
            raise MirrorError(
                f"git {args[0]} of {url} failed: {result.stderr.strip()}",
                url=url,
                path=str(path),
                details={"stderr": result.stderr},
            )

        return result.stdout

    def is_mirror(self, path: Path) -> bool:
        """Check whether a directory holds a git checkout."""
        return (Path(path) / ".git").exists()

    def shallow_clone_or_pull(self, url: str, path: Path) -> None:
        """
        Make sure ``path`` holds an up-to-date shallow clone of ``url``.

        Args:
            url: Remote repository URL.
            path: Mirror directory.

        Raises:
            MirrorError: If git is missing or the remote cannot be reached.
        """
        if not self.git_available:
            raise MirrorError("Git is not available on this system", url=url, path=str(path))

        path = Path(path)
        if self.is_mirror(path):
            self.pull(url, path)
        else:
            self.clone(url, path)

    def clone(self, url: str, path: Path) -> None:
        """Clone ``url`` into ``path`` through a temporary sibling directory."""
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)

        if path.exists():
            # Leftover from a run that died before git created .git
            logger.warning(f"Removing incomplete mirror directory: {path}")
            shutil.rmtree(path)

        tmp_dir = Path(tempfile.mkdtemp(prefix=f".{path.name}-", dir=path.parent))
        clone_path = tmp_dir / "repo"

        logger.info(f"Cloning repository: {url}")
        try:
            self._run(["clone"] + self._depth_args() + [url, str(clone_path)], url, path)
            try:
                os.replace(clone_path, path)
            except OSError as e:
                raise MirrorError(
                    f"failed to move clone of {url} into {path}: {e}",
                    url=url,
                    path=str(path),
                ) from e
        finally:
            shutil.rmtree(tmp_dir, ignore_errors=True)

        logger.info(f"Repository cloned to: {path}")

    def pull(self, url: str, path: Path) -> None:
        """Update an existing mirror in place."""
        logger.info(f"Updating mirror of {url}")

        self._run(["remote", "set-url", "origin", url], url, path, cwd=path)
        self._run(["fetch"] + self._depth_args() + ["origin", "HEAD"], url, path, cwd=path)
        self._run(["reset", "--hard", "FETCH_HEAD"], url, path, cwd=path)

    def get_head_commit(self, path: Path) -> Optional[str]:
        """Return the commit a mirror is checked out at."""
        try:
            result = subprocess.run(
                ["git", "rev-parse", "HEAD"],
                capture_output=True,
                text=True,
                cwd=path,
                timeout=10,
            )
        except (subprocess.TimeoutExpired, FileNotFoundError):
            return None

        if result.returncode != 0:
            return None
        return result.stdout.strip()
