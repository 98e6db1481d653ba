"""
Repository mirror management.

Keeps one local mirror per GitHub repository and materializes working
copies from it for the build pipeline.
"""

import logging
import os
import shutil
import tempfile
import threading
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Tuple

from cratesync.core.config import MirrorConfig
from cratesync.core.exceptions import CrateSyncError, MirrorCopyError
from cratesync.crates.models import GitHubRepo
from cratesync.mirror.git_handler import GitHandler

logger = logging.getLogger(__name__)


class MirrorManager:
    """
    Maintains local mirrors of GitHub repositories.

    Calls for the same repository are serialized; calls for different
    repositories may run concurrently since their mirrors never overlap.
    """

    def __init__(self, config: MirrorConfig = None, git_handler: Optional[GitHandler] = None):
        self.config = config or MirrorConfig()
        self.mirrors_dir = Path(self.config.mirrors_dir)
        self.git_handler = git_handler or GitHandler(self.config)

        self._locks: Dict[str, threading.Lock] = {}
        self._locks_guard = threading.Lock()

    def _lock_for(self, repo: GitHubRepo) -> threading.Lock:
        with self._locks_guard:
            return self._locks.setdefault(repo.slug, threading.Lock())

    def url(self, repo: GitHubRepo) -> str:
        return repo.url(self.config.github_base_url)

    def mirror_dir(self, repo: GitHubRepo) -> Path:
        return repo.mirror_dir(self.mirrors_dir)

    def update_mirror(self, repo: GitHubRepo) -> Path:
        """
        Clone or pull the mirror of a repository.

        Returns:
            Path to the mirror.

        Raises:
            MirrorError: If the remote cannot be reached or does not exist.
        """
        url = self.url(repo)
        mirror_dir = self.mirror_dir(repo)

        with self._lock_for(repo):
            self.git_handler.shallow_clone_or_pull(url, mirror_dir)

        return mirror_dir

    def prepare(self, repo: GitHubRepo, dest: Path) -> Path:
        """
        Refresh the mirror of ``repo`` and copy it into ``dest``.

        Any existing content of ``dest`` is replaced. The copy is
        independent of the mirror, so the caller may modify ``dest`` freely.

        Args:
            repo: Repository to prepare.
            dest: Directory receiving the working tree.

        Returns:
            The destination path.

        Raises:
            MirrorError: If updating the mirror fails.
            MirrorCopyError: If the mirror cannot be copied.
        """
        dest = Path(dest)
        logger.info(f"Preparing {repo.slug} in {dest}")

        with self._lock_for(repo):
            mirror_dir = self.mirror_dir(repo)
            self.git_handler.shallow_clone_or_pull(self.url(repo), mirror_dir)
            self._copy_dir(mirror_dir, dest)

        return dest

    def prepare_many(
        self,
        repos: Iterable[Tuple[GitHubRepo, Path]],
        max_workers: int = 4,
    ) -> List[Tuple[GitHubRepo, Optional[CrateSyncError]]]:
        """
        Prepare several repositories concurrently.

        Failures do not stop the other repositories; each result pairs a
        repository with the error it hit, or None on success.
        """
        jobs = list(repos)

        def run(job: Tuple[GitHubRepo, Path]) -> Tuple[GitHubRepo, Optional[CrateSyncError]]:
            repo, dest = job
            try:
                self.prepare(repo, dest)
            except CrateSyncError as e:
                logger.error(f"Failed to prepare {repo.slug}: {e}")
                return repo, e
            return repo, None

        with ThreadPoolExecutor(max_workers=max_workers) as executor:
            return list(executor.map(run, jobs))

    def _copy_dir(self, source: Path, dest: Path) -> None:
        """Replace ``dest`` with a fresh copy of ``source``."""
        tmp_dir = None
        try:
            dest.parent.mkdir(parents=True, exist_ok=True)
            tmp_dir = Path(tempfile.mkdtemp(prefix=f".{dest.name}-", dir=dest.parent))
            staged = tmp_dir / "tree"
            shutil.copytree(source, staged, symlinks=True)

            if dest.exists():
                shutil.rmtree(dest)
            os.replace(staged, dest)
        except (OSError, shutil.Error) as e:
            raise MirrorCopyError(str(source), str(dest), str(e)) from e
        finally:
            if tmp_dir is not None:
                shutil.rmtree(tmp_dir, ignore_errors=True)

        logger.debug(f"Copied {source} to {dest}")
