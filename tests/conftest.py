"""Shared fixtures for git-stats tests."""

import os
import shutil
import subprocess
from datetime import datetime, timezone
from pathlib import Path

import pytest

from git_stats.git.domain.entities import Commit
from git_stats.git.domain.value_objects import Author, CommitStats, FileChange, FileChangeType

UTC = timezone.utc


def _build_commit(
    hash: str = "abcdef1234567",
    author: str = "Alice",
    email: str = "alice@example.com",
    when: datetime = datetime(2024, 1, 15, 10, 30, tzinfo=UTC),
    message: str = "Update code",
    parents: tuple[str, ...] = ("0000000",),
    files: tuple[tuple[str, int, int], ...] = (),
) -> Commit:
    changes = tuple(
        FileChange(path=path, change_type=FileChangeType.MODIFIED, insertions=ins, deletions=dels)
        for path, ins, dels in files
    )
    return Commit(
        hash=hash,
        message=message,
        author=Author(author, email),
        committer=Author(author, email),
        author_date=when,
        committer_date=when,
        parent_hashes=parents,
        tree_hash="tree000",
        stats=CommitStats.from_files(changes),
    )


@pytest.fixture()
def make_commit():
    """Factory for Commit records with sensible defaults."""
    return _build_commit


def _git(repo: Path, *args: str, env: dict[str, str] | None = None) -> str:
    result = subprocess.run(
        ["git", *args],
        cwd=repo,
        capture_output=True,
        text=True,
        check=True,
        env={**os.environ, **(env or {})},
    )
    return result.stdout


def _commit_file(
    repo: Path, path: str, content: str, message: str, name: str, email: str, when: str
) -> None:
    target = repo / path
    target.parent.mkdir(parents=True, exist_ok=True)
    target.write_text(content)
    _git(repo, "add", path)
    _git(
        repo,
        "-c",
        "commit.gpgsign=false",
        "commit",
        "-q",
        "-m",
        message,
        env={
            "GIT_AUTHOR_NAME": name,
            "GIT_AUTHOR_EMAIL": email,
            "GIT_AUTHOR_DATE": when,
            "GIT_COMMITTER_NAME": name,
            "GIT_COMMITTER_EMAIL": email,
            "GIT_COMMITTER_DATE": when,
        },
    )


@pytest.fixture()
def empty_git_repo(tmp_path: Path) -> Path:
    """A freshly initialized repository without commits."""
    if shutil.which("git") is None:
        pytest.skip("git is not installed")
    repo = tmp_path / "empty"
    repo.mkdir()
    _git(repo, "init", "-q")
    _git(repo, "symbolic-ref", "HEAD", "refs/heads/main")
    return repo


@pytest.fixture()
def git_repo(empty_git_repo: Path) -> Path:
    """
    A repository with three commits on ``main`` and a ``feature`` branch.

    Alice adds README.md, Bob adds src/main.py, then Alice edits README.md
    with a subject containing a pipe.
    """
    repo = empty_git_repo
    _commit_file(
        repo,
        "README.md",
        "# Demo\n\nHello\n",
        "Initial commit",
        "Alice",
        "alice@example.com",
        "2024-01-10T10:00:00+00:00",
    )
    _commit_file(
        repo,
        "src/main.py",
        "import sys\n\nprint(sys.argv)\n",
        "Add main",
        "Bob",
        "bob@example.com",
        "2024-01-11T15:30:00+00:00",
    )
    _commit_file(
        repo,
        "README.md",
        "# Demo\n\nHello world\nMore\n",
        "Update README | docs",
        "Alice",
        "alice@example.com",
        "2024-01-12T09:15:00+00:00",
    )
    _git(repo, "branch", "feature")
    return repo
