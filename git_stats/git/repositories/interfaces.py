"""Repository interfaces for Git operations."""

from abc import ABC, abstractmethod
from collections.abc import Sequence
from datetime import date, datetime
from pathlib import Path

from git_stats.git.domain.entities import Commit, Contributor
from git_stats.git.domain.value_objects import CommandResult, RepositoryInfo


class CommandExecutor(ABC):
    """Interface for running a single git subcommand."""

    @property
    @abstractmethod
    def working_directory(self) -> Path:
        """Repository directory every command runs in."""
        ...

    @abstractmethod
    def execute(
        self, command: str, args: Sequence[str] = (), timeout: float | None = None
    ) -> CommandResult:
        """
        Run ``git <command> <args...>``.

        Args:
            command: Git subcommand, checked against the allow-list
            args: Arguments, each checked for injection safety
            timeout: Deadline in seconds. Defaults to the configured timeout

        Returns:
            CommandResult with the captured stdout

        Raises:
            CommandNotAllowedError: If the command is not allowed
            InvalidArgumentError: If an argument is unsafe
            CommandTimeoutError: If the deadline expires
            ExecutionError: If git exits non-zero or cannot be spawned
        """
        ...


class GitRepository(ABC):
    """Interface for Git repository operations."""

    @abstractmethod
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
        ...

    @abstractmethod
    def list_contributors(self) -> tuple[Contributor, ...]:
        """
        List contributors with their commit counts, as summarized by shortlog.

        Returns:
            Tuple of contributors ordered by commit count, highest first
        """
        ...

    @abstractmethod
    def list_contributor_commits(self, email: str) -> tuple[Commit, ...]:
        """
        List the commits authored with the given email.

        Args:
            email: Author email of the contributor

        Returns:
            Tuple of commits in log order
        """
        ...

    @abstractmethod
    def list_branches(self) -> tuple[str, ...]:
        """
        List local and remote branch names.

        Returns:
            Tuple of branch names, remotes as ``<remote>/<name>``
        """
        ...

    @abstractmethod
    def is_valid_repository(self) -> bool:
        """Check that the repository can be queried."""
        ...

    @abstractmethod
    def get_repository_info(self) -> RepositoryInfo:
        """
        Get repository metadata.

        Returns:
            RepositoryInfo with commit count, first/last commit date and branches
        """
        ...
