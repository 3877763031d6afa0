"""In-memory Git repository, for tests and pre-parsed histories."""

from collections.abc import Iterable
from datetime import date, datetime
from pathlib import Path

from git_stats.git.domain.entities import Commit, Contributor
from git_stats.git.domain.value_objects import RepositoryInfo, earliest, latest
from git_stats.git.repositories.interfaces import GitRepository


def _on_or_after(commit: Commit, bound: date | datetime) -> bool:
    if isinstance(bound, datetime):
        bound = bound.date()
    return commit.day >= bound


def _on_or_before(commit: Commit, bound: date | datetime) -> bool:
    if isinstance(bound, datetime):
        bound = bound.date()
    return commit.day <= bound


class InMemoryGitRepository(GitRepository):
    """Answers repository queries from a fixed list of commits."""

    def __init__(
        self,
        commits: Iterable[Commit] = (),
        branches: Iterable[str] = ("main",),
        path: Path = Path("memory"),
        failing_emails: Iterable[str] = (),
    ) -> None:
        """
        Initialize InMemoryGitRepository.

        Args:
            commits: History in log order, newest first
            branches: Branch names to report
            path: Path reported in the repository info
            failing_emails: Emails whose commit lookup raises, to simulate git failures
        """
        self._commits = tuple(commits)
        self._branches = tuple(branches)
        self._path = path
        self._failing_emails = frozenset(failing_emails)

    def list_commits(
        self,
        since: date | datetime | None = None,
        until: date | datetime | None = None,
        author: str | None = None,
    ) -> tuple[Commit, ...]:
        commits = self._commits
        if since is not None:
            commits = tuple(c for c in commits if _on_or_after(c, since))
        if until is not None:
            commits = tuple(c for c in commits if _on_or_before(c, until))
        if author:
            needle = author.casefold()
            commits = tuple(
                c
                for c in commits
                if needle in c.author.name.casefold() or needle in c.author.email.casefold()
            )
        return commits

    def list_contributors(self) -> tuple[Contributor, ...]:
        counts: dict[tuple[str, str], int] = {}
        for commit in self._commits:
            key = (commit.author.name, commit.author.email)
            counts[key] = counts.get(key, 0) + 1
        ranked = sorted(counts.items(), key=lambda item: (-item[1], item[0][0]))
        return tuple(
            Contributor(name=name, email=email, total_commits=count)
            for (name, email), count in ranked
        )

    def list_contributor_commits(self, email: str) -> tuple[Commit, ...]:
        if email in self._failing_emails:
            raise RuntimeError(f"simulated failure for {email}")
        wanted = email.casefold()
        return tuple(c for c in self._commits if c.author.email.casefold() == wanted)

    def list_branches(self) -> tuple[str, ...]:
        return self._branches

    def is_valid_repository(self) -> bool:
        return True

    def get_repository_info(self) -> RepositoryInfo:
        dates = [c.author_date for c in self._commits]
        return RepositoryInfo(
            path=self._path,
            name=self._path.name,
            total_commits=len(self._commits),
            first_commit=earliest(dates),
            last_commit=latest(dates),
            branches=self._branches,
        )
