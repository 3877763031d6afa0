"""Concrete implementation of Git repository operations."""

import logging
from datetime import date, datetime

from git_stats.git.domain.entities import Commit, Contributor
from git_stats.git.domain.errors import ExecutionError, NotARepositoryError
from git_stats.git.domain.value_objects import RepositoryInfo
from git_stats.git.repositories.interfaces import CommandExecutor, GitRepository
from git_stats.git.services.output_parser import (
    parse_branches,
    parse_commit_log,
    parse_contributors,
    parse_git_date,
)

logger = logging.getLogger(__name__)

LOG_FORMAT = "--pretty=format:%H|%an|%ae|%ad|%cn|%ce|%cd|%s|%P|%T"
LOG_ARGS: tuple[str, ...] = (LOG_FORMAT, "--date=iso", "--numstat", "--all")
DATE_ARG_FORMAT = "%Y-%m-%d"


def _date_arg(value: date | datetime) -> str:
    return value.strftime(DATE_ARG_FORMAT)


class GitRepositoryImpl(GitRepository):
    """Git repository operations through a command executor."""

    def __init__(self, executor: CommandExecutor) -> None:
        """
        Initialize GitRepositoryImpl.

        Args:
            executor: Executor bound to the repository directory
        """
        self._executor = executor

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

        Raises:
            ExecutionError: If git log fails
        """
        args = list(LOG_ARGS)
        if since is not None:
            args.append(f"--since={_date_arg(since)}")
        if until is not None:
            args.append(f"--until={_date_arg(until)}")
        if author:
            args.append(f"--author={author}")

        try:
            result = self._executor.execute("log", args)
        except ExecutionError as e:
            if self._is_empty_history(e):
                return ()
            raise
        return tuple(parse_commit_log(result.output))

    def list_contributors(self) -> tuple[Contributor, ...]:
        """
        List contributors with their commit counts, as summarized by shortlog.

        Returns:
            Tuple of contributors ordered by commit count, highest first
        """
        # shortlog reads stdin when it has no revision and stdin is not a tty.
        result = self._executor.execute("shortlog", ["-sne", "--all"])
        return tuple(parse_contributors(result.output))

    def list_contributor_commits(self, email: str) -> tuple[Commit, ...]:
        """
        List the commits authored with the given email.

        ``--author`` is a pattern, so the results are narrowed to the exact
        email afterwards.

        Args:
            email: Author email of the contributor

        Returns:
            Tuple of commits in log order
        """
        commits = self.list_commits(author=email)
        wanted = email.casefold()
        return tuple(c for c in commits if c.author.email.casefold() == wanted)

    def list_branches(self) -> tuple[str, ...]:
        """
        List local and remote branch names.

        Returns:
            Tuple of branch names, remotes as ``<remote>/<name>``
        """
        result = self._executor.execute("branch", ["-a"])
        return tuple(parse_branches(result.output))

    def is_valid_repository(self) -> bool:
        """Check that the repository can be queried."""
        try:
            self._executor.execute("rev-parse", ["--git-dir"])
        except (ExecutionError, NotARepositoryError) as e:
            logger.debug("Repository check failed: %s", e)
            return False
        return True

    def get_repository_info(self) -> RepositoryInfo:
        """
        Get repository metadata.

        Returns:
            RepositoryInfo with commit count, first/last commit date and branches
        """
        path = self._executor.working_directory
        total_commits = self._count_commits()
        first_commit = last_commit = None
        if total_commits > 0:
            first_commit = self._boundary_commit_date(oldest=True)
            last_commit = self._boundary_commit_date(oldest=False)

        return RepositoryInfo(
            path=path,
            name=path.name,
            total_commits=total_commits,
            first_commit=first_commit,
            last_commit=last_commit,
            branches=self.list_branches(),
        )

    def _count_commits(self) -> int:
        try:
            result = self._executor.execute("rev-list", ["--count", "HEAD"])
        except ExecutionError as e:
            if self._is_empty_history(e):
                return 0
            raise
        try:
            return int(result.output.strip())
        except ValueError:
            logger.debug("Unexpected rev-list output: %r", result.output)
            return 0

    def _boundary_commit_date(self, oldest: bool) -> datetime | None:
        args = ["--format=%ad", "--date=iso"]
        if oldest:
            args.extend(["--reverse", "--max-parents=0"])
        else:
            args.append("-1")
        result = self._executor.execute("log", args)
        lines = [line for line in result.output.splitlines() if line.strip()]
        if not lines:
            return None
        try:
            return parse_git_date(lines[0])
        except ValueError:
            logger.debug("Unparseable commit date: %r", lines[0])
            return None

    @staticmethod
    def _is_empty_history(error: ExecutionError) -> bool:
        # A repository without commits has no HEAD to resolve.
        stderr = error.stderr.lower()
        return (
            "does not have any commits" in stderr
            or "unknown revision" in stderr
            or "ambiguous argument 'head'" in stderr
        )
