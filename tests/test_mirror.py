"""
Unit tests for repository mirrors.

Tests that talk to git use throwaway local repositories served over
file:// URLs and are skipped when git is not installed.
"""

import os
import shutil
import subprocess
import tempfile
import unittest
from pathlib import Path
from unittest import mock

from cratesync.core.config import MirrorConfig
from cratesync.core.exceptions import MirrorCopyError, MirrorError
from cratesync.crates.models import GitHubRepo
from cratesync.mirror.git_handler import GitHandler
from cratesync.mirror.manager import MirrorManager

GIT_AVAILABLE = shutil.which("git") is not None


def git(*args, cwd):
    subprocess.run(
        ["git", "-c", "user.name=Test", "-c", "user.email=test@example.com", *args],
        cwd=cwd,
        check=True,
        capture_output=True,
    )


def tree_contents(root: Path) -> dict:
    """Map relative file paths to contents, ignoring git metadata."""
    return {
        str(p.relative_to(root)): p.read_text()
        for p in sorted(root.rglob("*"))
        if p.is_file() and ".git" not in p.relative_to(root).parts
    }


@unittest.skipUnless(GIT_AVAILABLE, "git is not installed")
class TestMirrorManagerWithGit(unittest.TestCase):
    """Tests for prepare() against real local repositories."""

    def setUp(self):
        self.tmpdir = Path(tempfile.mkdtemp())
        self.remotes = self.tmpdir / "remotes"
        self.config = MirrorConfig(
            mirrors_dir=str(self.tmpdir / "mirrors"),
            github_base_url=self.remotes.as_uri(),
            git_timeout=60,
        )
        self.manager = MirrorManager(self.config)
        self.repo = GitHubRepo("acme", "widget")

        self.upstream = self.remotes / "acme" / "widget"
        self.upstream.mkdir(parents=True)
        git("init", "-q", cwd=self.upstream)
        (self.upstream / "Cargo.toml").write_text('[package]\nname = "widget"\n')
        (self.upstream / "src").mkdir()
        (self.upstream / "src" / "lib.rs").write_text("pub fn widget() {}\n")
        git("add", ".", cwd=self.upstream)
        git("commit", "-q", "-m", "initial", cwd=self.upstream)

    def tearDown(self):
        shutil.rmtree(self.tmpdir)

    def test_prepare_clones_and_copies(self):
        """Test that prepare clones the mirror and copies its tree."""
        dest = self.tmpdir / "work" / "widget"

        self.manager.prepare(self.repo, dest)

        mirror = self.manager.mirror_dir(self.repo)
        self.assertEqual(mirror.name, "acme.widget")
        self.assertTrue((mirror / ".git").exists())
        self.assertEqual(
            tree_contents(dest),
            {"Cargo.toml": '[package]\nname = "widget"\n', "src/lib.rs": "pub fn widget() {}\n"},
        )

    def test_prepare_is_idempotent(self):
        """Test that preparing twice into the same directory gives the same tree."""
        os.symlink("Cargo.toml", self.upstream / "link.toml")
        git("add", ".", cwd=self.upstream)
        git("commit", "-q", "-m", "symlink", cwd=self.upstream)
        dest = self.tmpdir / "work" / "widget"

        self.manager.prepare(self.repo, dest)
        first = tree_contents(dest)
        self.manager.prepare(self.repo, dest)

        self.assertEqual(tree_contents(dest), first)
        self.assertTrue((dest / "link.toml").is_symlink())
        self.assertEqual([p.name for p in dest.parent.iterdir()], ["widget"])

    def test_prepare_replaces_stale_destination(self):
        """Test that files left in the destination are dropped on the next prepare."""
        dest = self.tmpdir / "work" / "widget"
        self.manager.prepare(self.repo, dest)
        (dest / "target").mkdir()
        (dest / "target" / "build.log").write_text("stale")

        self.manager.prepare(self.repo, dest)

        self.assertFalse((dest / "target").exists())
        self.assertTrue((dest / "Cargo.toml").exists())

    def test_prepare_picks_up_upstream_changes(self):
        """Test that prepare pulls new upstream commits."""
        self.manager.prepare(self.repo, self.tmpdir / "work" / "before")

        (self.upstream / "README.md").write_text("widget\n")
        git("add", ".", cwd=self.upstream)
        git("commit", "-q", "-m", "readme", cwd=self.upstream)

        after = self.tmpdir / "work" / "after"
        self.manager.prepare(self.repo, after)

        self.assertEqual((after / "README.md").read_text(), "widget\n")

    def test_destination_is_independent_of_mirror(self):
        """Test that changing the destination leaves the mirror untouched."""
        dest = self.tmpdir / "work" / "widget"
        self.manager.prepare(self.repo, dest)

        (dest / "src" / "lib.rs").write_text("broken")

        mirror = self.manager.mirror_dir(self.repo)
        self.assertEqual((mirror / "src" / "lib.rs").read_text(), "pub fn widget() {}\n")

    def test_missing_remote(self):
        """Test that a missing remote raises MirrorError and leaves no mirror."""
        with self.assertRaises(MirrorError) as ctx:
            self.manager.prepare(GitHubRepo("acme", "missing"), self.tmpdir / "work" / "x")

        self.assertIn("acme/missing", ctx.exception.url)
        self.assertFalse(self.manager.mirror_dir(GitHubRepo("acme", "missing")).exists())

    def test_failed_pull_keeps_mirror(self):
        """Test that a failed pull keeps the previous mirror content."""
        self.manager.prepare(self.repo, self.tmpdir / "work" / "first")
        shutil.rmtree(self.upstream)

        with self.assertRaises(MirrorError):
            self.manager.update_mirror(self.repo)

        mirror = self.manager.mirror_dir(self.repo)
        self.assertEqual((mirror / "Cargo.toml").read_text(), '[package]\nname = "widget"\n')

    def test_no_leftover_temp_dirs(self):
        """Test that cloning leaves no temporary directories behind."""
        self.manager.prepare(self.repo, self.tmpdir / "work" / "widget")

        entries = [p.name for p in Path(self.config.mirrors_dir).iterdir()]

        self.assertEqual(entries, ["acme.widget"])


class TestMirrorManager(unittest.TestCase):
    """Tests for prepare() with a stubbed git handler."""

    def setUp(self):
        self.tmpdir = Path(tempfile.mkdtemp())
        self.config = MirrorConfig(mirrors_dir=str(self.tmpdir / "mirrors"))
        self.git_handler = mock.Mock(spec=GitHandler)
        self.manager = MirrorManager(self.config, git_handler=self.git_handler)
        self.repo = GitHubRepo("acme", "widget")

    def tearDown(self):
        shutil.rmtree(self.tmpdir)

    def test_prepare_uses_url_and_mirror_dir(self):
        """Test that prepare passes the repository URL and mirror path to git."""
        mirror = self.manager.mirror_dir(self.repo)
        mirror.mkdir(parents=True)
        (mirror / "Cargo.toml").write_text("")

        self.manager.prepare(self.repo, self.tmpdir / "dest")

        self.git_handler.shallow_clone_or_pull.assert_called_once_with(
            "https://github.com/acme/widget", mirror
        )
        self.assertTrue((self.tmpdir / "dest" / "Cargo.toml").exists())

    def test_copy_failure(self):
        """Test that a missing mirror raises MirrorCopyError."""
        with self.assertRaises(MirrorCopyError) as ctx:
            self.manager.prepare(self.repo, self.tmpdir / "dest")

        self.assertEqual(
            ctx.exception.details["source"], str(self.manager.mirror_dir(self.repo))
        )

    def test_mirror_error_propagates(self):
        """Test that mirror errors propagate without touching the destination."""
        self.git_handler.shallow_clone_or_pull.side_effect = MirrorError(
            "unreachable", url="https://github.com/acme/widget"
        )

        with self.assertRaises(MirrorError):
            self.manager.prepare(self.repo, self.tmpdir / "dest")

        self.assertFalse((self.tmpdir / "dest").exists())

    def test_lock_per_repository(self):
        """Test that each repository gets its own lock."""
        same = self.manager._lock_for(GitHubRepo("acme", "widget"))
        other = self.manager._lock_for(GitHubRepo("acme", "anvil"))

        self.assertIs(same, self.manager._lock_for(self.repo))
        self.assertIsNot(same, other)

    def test_prepare_many_reports_failures(self):
        """Test that prepare_many reports failures per repository."""
        def clone_or_pull(url, path):
            if url.endswith("/broken"):
                raise MirrorError("missing", url=url, path=str(path))
            Path(path).mkdir(parents=True, exist_ok=True)

        self.git_handler.shallow_clone_or_pull.side_effect = clone_or_pull
        good = GitHubRepo("acme", "widget")
        bad = GitHubRepo("acme", "broken")

        results = self.manager.prepare_many([
            (good, self.tmpdir / "work" / "widget"),
            (bad, self.tmpdir / "work" / "broken"),
        ])

        self.assertEqual(results[0], (good, None))
        self.assertIs(results[1][0], bad)
        self.assertIsInstance(results[1][1], MirrorError)


class TestGitHandler(unittest.TestCase):
    """Tests for git command construction."""

    def setUp(self):
        self.tmpdir = Path(tempfile.mkdtemp())
        self.handler = GitHandler(MirrorConfig(clone_depth=1, git_timeout=5))
        self.handler._git_available = True

    def tearDown(self):
        shutil.rmtree(self.tmpdir)

    def test_git_missing(self):
        """Test that a missing git binary raises MirrorError."""
        self.handler._git_available = False

        with self.assertRaises(MirrorError):
            self.handler.shallow_clone_or_pull("https://github.com/a/b", self.tmpdir / "a.b")

    @mock.patch("cratesync.mirror.git_handler.subprocess.run")
    def test_existing_mirror_is_pulled(self, run):
        """Test the git commands used to update an existing mirror."""
        mirror = self.tmpdir / "a.b"
        (mirror / ".git").mkdir(parents=True)
        run.return_value = subprocess.CompletedProcess([], 0, stdout="", stderr="")

        self.handler.shallow_clone_or_pull("https://github.com/a/b", mirror)

        commands = [call[0][0] for call in run.call_args_list]
        self.assertEqual(commands[1][3:], ["fetch", "--depth", "1", "origin", "HEAD"])
        self.assertEqual(commands[2][3:], ["reset", "--hard", "FETCH_HEAD"])
        for call in run.call_args_list:
            self.assertEqual(call[1]["env"]["GIT_TERMINAL_PROMPT"], "0")
            self.assertEqual(call[1]["timeout"], 5)

    @mock.patch("cratesync.mirror.git_handler.subprocess.run")
    def test_timeout(self, run):
        """Test that a git timeout raises MirrorError and cleans up."""
        run.side_effect = subprocess.TimeoutExpired(["git"], 5)

        with self.assertRaises(MirrorError) as ctx:
            self.handler.shallow_clone_or_pull("https://github.com/a/b", self.tmpdir / "a.b")

        self.assertIn("timed out", str(ctx.exception))
        self.assertEqual(list(self.tmpdir.iterdir()), [])

    @mock.patch("cratesync.mirror.git_handler.os.replace")
    @mock.patch("cratesync.mirror.git_handler.subprocess.run")
    def test_clone_rename_failure(self, run, replace):
        """Test that a failed move of a finished clone raises MirrorError."""
        run.return_value = subprocess.CompletedProcess([], 0, stdout="", stderr="")
        replace.side_effect = OSError(39, "Directory not empty")
        mirror = self.tmpdir / "a.b"

        with self.assertRaises(MirrorError) as ctx:
            self.handler.shallow_clone_or_pull("https://github.com/a/b", mirror)

        self.assertEqual(ctx.exception.details["url"], "https://github.com/a/b")
        self.assertEqual(ctx.exception.details["path"], str(mirror))
        self.assertEqual(list(self.tmpdir.iterdir()), [])


if __name__ == "__main__":
    unittest.main()
