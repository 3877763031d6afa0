"""Git service for coordinating Git operations."""

import logging
from collections.abc import Iterable
from concurrent.futures import ThreadPoolExecutor, as_completed
from datetime import date, datetime

from git_stats.git.domain.entities import (
    Commit,
    Contributor,
    ContributorBuilder,
    ContributorEnhancement,
)
from git_stats.git.domain.value_objects import RepositoryInfo
from git_stats.git.repositories.interfaces import GitRepository

logger = logging.getLogger(__name__)

DEFAULT_MAX_WORKERS = 4


def merge_contributors(contributors: Iterable[Contributor]) -> list[Contributor]:
    """
    Merge shortlog entries that share an email.

    The first name seen for an email is kept and commit counts are summed.
    Order follows the first appearance of each email.
    """
    merged: dict[str, Contributor] = {}
    for contributor in contributors:
        key = contributor.email.casefold()
        existing = merged.get(key)
        if existing is None:
            merged[key] = contributor
            continue
        merged[key] = Contributor(
            name=existing.name,
            email=existing.email,
            total_commits=existing.total_commits + contributor.total_commits,
        )
    return list(merged.values())


def contributors_from_commits(commits: Iterable[Commit]) -> list[Contributor]:
    """
    Build full contributor records from an already-parsed history.

    Args:
        commits: Commits in any order

    Returns:
        Contributors keyed by email, ordered by commit count (highest first)
        then by email
    """
    builders: dict[str, ContributorBuilder] = {}
    for commit in commits:
        key = commit.author.email.casefold()
        builder = builders.get(key)
        if builder is None:
            builder = builders[key] = ContributorBuilder(commit.author.name, commit.author.email)
        builder.add_commit(commit)

    contributors = [builder.build() for builder in builders.values()]
    contributors.sort(key=lambda c: (-c.total_commits, c.email.casefold()))
    return contributors


class GitService:
    """Service for Git operations."""

    def __init__(self, git_repository: GitRepository) -> None:
        """
        Initialize GitService.

        Args:
            git_repository: Repository implementation for Git operations
        """
        self._git_repository = git_repository

    def list_commits(
        self,
        since: date | datetime | None = None,
        until: date | datetime | None = None,
        author: str | None = None,
    ) -> tuple[Commit, ...]:
        """
        List commits on all refs, newest first.

        Args:
            since: Only commits on or after this day
            until: Only commits on or before this day
            author: Author pattern as understood by ``git log --author``

        Returns:
            Tuple of commits in log order
        """
        return self._git_repository.list_commits(since=since, until=until, author=author)

    def list_branches(self) -> tuple[str, ...]:
        return self._git_repository.list_branches()

    def get_repository_info(self) -> RepositoryInfo:
        return self._git_repository.get_repository_info()

    def is_valid_repository(self) -> bool:
        return self._git_repository.is_valid_repository()

    def get_contributors(
        self, enhance: bool = True, max_workers: int = DEFAULT_MAX_WORKERS
    ) -> list[ContributorEnhancement]:
        """
        List contributors, optionally enriched with their full commit history.

        Each contributor is enhanced on a bounded worker pool. A failing
        worker does not abort the others: its slot keeps the shortlog record
        and carries the error message.

        Args:
            enhance: Fetch each contributor's commits to fill in the breakdowns
            max_workers: Upper bound on concurrent git processes

        Returns:
            One ContributorEnhancement per contributor, in shortlog order
        """
        contributors = merge_contributors(self._git_repository.list_contributors())
        if not enhance or not contributors:
            return [
                ContributorEnhancement(index=i, contributor=c)
                for i, c in enumerate(contributors)
            ]

        results: list[ContributorEnhancement | None] = [None] * len(contributors)
        workers = max(1, min(max_workers, len(contributors)))
        logger.debug("Enhancing %d contributors with %d workers", len(contributors), workers)

        with ThreadPoolExecutor(max_workers=workers) as pool:
            futures = {
                pool.submit(self._enhance, index, contributor): index
                for index, contributor in enumerate(contributors)
            }
            for future in as_completed(futures):
                result = future.result()
                results[result.index] = result

        return [result for result in results if result is not None]

    def _enhance(self, index: int, contributor: Contributor) -> ContributorEnhancement:
        try:
            commits = self._git_repository.list_contributor_commits(contributor.email)
        except Exception as e:
            logger.warning("Failed to enhance contributor %s: %s", contributor.email, e)
            return ContributorEnhancement(index=index, contributor=contributor, error=str(e))

        wanted = contributor.email.casefold()
        builder = ContributorBuilder(contributor.name, contributor.email)
        for commit in commits:
            if commit.author.email.casefold() == wanted:
                builder.add_commit(commit)
        enhanced = builder.build()
        if enhanced.total_commits == 0:
            return ContributorEnhancement(index=index, contributor=contributor)
        return ContributorEnhancement(index=index, contributor=enhanced)

    def contributors_from_commits(self, commits: Iterable[Commit]) -> list[Contributor]:
        """Build contributors from already-fetched commits without running git."""
        return contributors_from_commits(commits)
