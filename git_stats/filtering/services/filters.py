"""Composable commit filters.

Per-commit filters are predicates; a chain ANDs them together and keeps the
input order. Sequence-level filters (the limit) run after every predicate, so
they always see the fully filtered history.
"""

import fnmatch
import re
from abc import ABC, abstractmethod
from collections.abc import Iterable, Iterator, Sequence
from datetime import date, datetime

from git_stats.filtering.domain.value_objects import (
    AuthorMatchType,
    FileMatchType,
    MessageMatchType,
)
from git_stats.git.domain.entities import Commit
from git_stats.git.domain.errors import ValidationError
from git_stats.git.domain.value_objects import TimeRange, is_later

DATE_FORMAT = "%Y-%m-%d"


def _compile(pattern: str, case_sensitive: bool, field: str) -> re.Pattern[str]:
    flags = 0 if case_sensitive else re.IGNORECASE
    try:
        return re.compile(pattern, flags)
    except re.error as e:
        raise ValidationError(f"invalid regular expression {pattern!r}: {e}", field=field) from e


def _case_suffix(case_sensitive: bool) -> str:
    return " (case-sensitive)" if case_sensitive else ""


class CommitFilter(ABC):
    """A predicate over commits with a human-readable description."""

    # Sequence-level filters see the whole filtered history instead of one commit.
    is_windowing: bool = False

    @abstractmethod
    def matches(self, commit: Commit) -> bool:
        """Check whether a single commit passes the filter."""
        ...

    @abstractmethod
    def describe(self) -> str:
        """Describe the filter for display."""
        ...

    def apply(self, commits: Iterable[Commit]) -> list[Commit]:
        """Keep the commits that pass, in input order."""
        return [commit for commit in commits if self.matches(commit)]

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.describe()!r})"


class DateRangeFilter(CommitFilter):
    """Inclusive author-date range.

    ``date`` bounds cover whole days. ``datetime`` bounds are compared with
    the commit's wall-clock time when naive and as instants when aware.
    """

    def __init__(
        self, since: date | datetime | None = None, until: date | datetime | None = None
    ) -> None:
        if since is not None and until is not None and is_later(since, until):
            raise ValidationError("since date cannot be after until date", field="since")
        self.since = since
        self.until = until

    def matches(self, commit: Commit) -> bool:
        return TimeRange(self.since, self.until).contains(commit.author_date)

    def describe(self) -> str:
        if self.since is not None and self.until is not None:
            return (
                f"Date range: {self.since.strftime(DATE_FORMAT)} "
                f"to {self.until.strftime(DATE_FORMAT)}"
            )
        if self.since is not None:
            return f"Since: {self.since.strftime(DATE_FORMAT)}"
        if self.until is not None:
            return f"Until: {self.until.strftime(DATE_FORMAT)}"
        return "No date filter"


class AuthorFilter(CommitFilter):
    """Matches the commit author by name and/or email."""

    def __init__(
        self,
        pattern: str,
        match_type: AuthorMatchType = AuthorMatchType.CONTAINS,
        case_sensitive: bool = False,
    ) -> None:
        """
        Initialize AuthorFilter.

        Args:
            pattern: Text to look for; an empty pattern matches every commit
            match_type: How the pattern is compared
            case_sensitive: Compare case-sensitively

        Raises:
            ValidationError: If a regex pattern does not compile
        """
        self.pattern = pattern
        self.match_type = match_type
        self.case_sensitive = case_sensitive
        self._regex = None
        if match_type is AuthorMatchType.REGEX and pattern:
            self._regex = _compile(pattern, case_sensitive, field="author")

    def _fold(self, value: str) -> str:
        return value if self.case_sensitive else value.casefold()

    def matches(self, commit: Commit) -> bool:
        if not self.pattern:
            return True

        name = commit.author.name
        email = commit.author.email
        if self._regex is not None:
            return bool(self._regex.search(name) or self._regex.search(email))

        pattern = self._fold(self.pattern)
        name, email = self._fold(name), self._fold(email)
        match self.match_type:
            case AuthorMatchType.EXACT:
                return name == pattern or email == pattern
            case AuthorMatchType.EMAIL:
                return pattern in email
            case AuthorMatchType.EMAIL_DOMAIN:
                return email.endswith("@" + pattern.lstrip("@"))
            case AuthorMatchType.NAME:
                return pattern in name
            case _:
                return pattern in name or pattern in email

    def describe(self) -> str:
        label = self.match_type.value.replace("_", " ")
        return f"Author {label} match: '{self.pattern}'{_case_suffix(self.case_sensitive)}"


class MessageFilter(CommitFilter):
    """Matches the commit subject."""

    def __init__(
        self,
        pattern: str,
        match_type: MessageMatchType = MessageMatchType.CONTAINS,
        case_sensitive: bool = False,
    ) -> None:
        """
        Initialize MessageFilter.

        Raises:
            ValidationError: If a regex pattern does not compile
        """
        self.pattern = pattern
        self.match_type = match_type
        self.case_sensitive = case_sensitive
        self._regex = None
        if match_type is MessageMatchType.REGEX and pattern:
            self._regex = _compile(pattern, case_sensitive, field="message")

    def matches(self, commit: Commit) -> bool:
        if not self.pattern:
            return True
        if self._regex is not None:
            return bool(self._regex.search(commit.message))

        message, pattern = commit.message, self.pattern
        if not self.case_sensitive:
            message, pattern = message.casefold(), pattern.casefold()
        match self.match_type:
            case MessageMatchType.STARTS_WITH:
                return message.startswith(pattern)
            case MessageMatchType.ENDS_WITH:
                return message.endswith(pattern)
            case _:
                return pattern in message

    def describe(self) -> str:
        return (
            f"Message {self.match_type.label} match: '{self.pattern}'"
            f"{_case_suffix(self.case_sensitive)}"
        )


class FileSizeFilter(CommitFilter):
    """Independent min/max bounds on insertions, deletions and files changed."""

    def __init__(
        self,
        min_insertions: int | None = None,
        max_insertions: int | None = None,
        min_deletions: int | None = None,
        max_deletions: int | None = None,
        min_files: int | None = None,
        max_files: int | None = None,
    ) -> None:
        """
        Initialize FileSizeFilter. A bound of None or 0 leaves its side open.

        Raises:
            ValidationError: If a bound is negative
        """
        bounds = {
            "min_insertions": min_insertions,
            "max_insertions": max_insertions,
            "min_deletions": min_deletions,
            "max_deletions": max_deletions,
            "min_files": min_files,
            "max_files": max_files,
        }
        for name, value in bounds.items():
            if value is not None and value < 0:
                raise ValidationError(f"{name} cannot be negative", field=name)
        self.min_insertions = min_insertions or 0
        self.max_insertions = max_insertions or 0
        self.min_deletions = min_deletions or 0
        self.max_deletions = max_deletions or 0
        self.min_files = min_files or 0
        self.max_files = max_files or 0

    def matches(self, commit: Commit) -> bool:
        stats = commit.stats
        checks = (
            (stats.insertions, self.min_insertions, self.max_insertions),
            (stats.deletions, self.min_deletions, self.max_deletions),
            (stats.files_changed, self.min_files, self.max_files),
        )
        for value, low, high in checks:
            if low and value < low:
                return False
            if high and value > high:
                return False
        return True

    def describe(self) -> str:
        parts = [
            part
            for part in (
                _bound_text("insertions", self.min_insertions, self.max_insertions),
                _bound_text("deletions", self.min_deletions, self.max_deletions),
                _bound_text("files", self.min_files, self.max_files),
            )
            if part
        ]
        if not parts:
            return "No size filter"
        return "Size filter: " + ", ".join(parts)


def _bound_text(label: str, low: int, high: int) -> str | None:
    if low and high:
        return f"{label}: {low}-{high}"
    if low:
        return f"{label}: >={low}"
    if high:
        return f"{label}: <={high}"
    return None


class MergeCommitFilter(CommitFilter):
    def __init__(self, include_merges: bool = True) -> None:
        self.include_merges = include_merges

    def matches(self, commit: Commit) -> bool:
        return self.include_merges or not commit.is_merge

    def describe(self) -> str:
        return "Include merge commits" if self.include_merges else "Exclude merge commits"


class FilePathFilter(CommitFilter):
    """Keeps commits that touch at least one file matching any pattern."""

    label = "File paths"

    def __init__(
        self,
        patterns: Sequence[str],
        match_type: FileMatchType = FileMatchType.GLOB,
        case_sensitive: bool = False,
    ) -> None:
        """
        Initialize FilePathFilter.

        Raises:
            ValidationError: If a regex pattern does not compile
        """
        self.patterns = tuple(patterns)
        self.match_type = match_type
        self.case_sensitive = case_sensitive
        self._regexes: tuple[re.Pattern[str], ...] = ()
        if match_type is FileMatchType.REGEX:
            self._regexes = tuple(
                _compile(pattern, case_sensitive, field="files") for pattern in self.patterns
            )

    def _matches_path(self, path: str) -> bool:
        if self._regexes:
            return any(regex.search(path) for regex in self._regexes)

        if not self.case_sensitive:
            path = path.casefold()
        for pattern in self.patterns:
            if not self.case_sensitive:
                pattern = pattern.casefold()
            match self.match_type:
                case FileMatchType.EXACT:
                    matched = path == pattern
                case FileMatchType.CONTAINS:
                    matched = pattern in path
                case _:
                    matched = fnmatch.fnmatchcase(path, pattern)
            if matched:
                return True
        return False

    def touches_matching_file(self, commit: Commit) -> bool:
        return any(self._matches_path(f.path) for f in commit.stats.files)

    def matches(self, commit: Commit) -> bool:
        if not self.patterns:
            return True
        return self.touches_matching_file(commit)

    def describe(self) -> str:
        return f"{self.label}: {', '.join(self.patterns)}"


class ExcludeFilePathFilter(FilePathFilter):
    """Drops commits that touch any file matching a pattern."""

    label = "Exclude file paths"

    def matches(self, commit: Commit) -> bool:
        if not self.patterns:
            return True
        return not self.touches_matching_file(commit)


class LimitFilter(CommitFilter):
    """Keeps the first N commits of its input; N <= 0 keeps everything."""

    is_windowing = True

    def __init__(self, limit: int) -> None:
        self.limit = limit

    def matches(self, commit: Commit) -> bool:
        return True

    def apply(self, commits: Iterable[Commit]) -> list[Commit]:
        commits = list(commits)
        if self.limit <= 0:
            return commits
        return commits[: self.limit]

    def describe(self) -> str:
        return f"Limit: {self.limit} commits"


class BranchFilter(CommitFilter):
    """Branch selection.

    Commits carry no branch association, so every commit passes. Branch
    scoping has to happen when the history is fetched.
    """

    def __init__(self, branches: Sequence[str]) -> None:
        self.branches = tuple(branches)

    def matches(self, commit: Commit) -> bool:
        return True

    def describe(self) -> str:
        return f"Branch filter: {', '.join(self.branches)}"


class FilterChain:
    """Ordered, AND-composed list of filters."""

    def __init__(self, filters: Iterable[CommitFilter] = ()) -> None:
        self._filters: list[CommitFilter] = list(filters)

    def add(self, commit_filter: CommitFilter) -> "FilterChain":
        self._filters.append(commit_filter)
        return self

    def clear(self) -> None:
        self._filters.clear()

    @property
    def filters(self) -> tuple[CommitFilter, ...]:
        return tuple(self._filters)

    def apply(self, commits: Iterable[Commit]) -> list[Commit]:
        """
        Apply every filter.

        Args:
            commits: History in log order

        Returns:
            The order-preserving subsequence passing every predicate, then
            narrowed by the sequence-level filters in chain order
        """
        predicates = [f for f in self._filters if not f.is_windowing]
        windows = [f for f in self._filters if f.is_windowing]

        result = [c for c in commits if all(p.matches(c) for p in predicates)]
        for window in windows:
            result = window.apply(result)
        return result

    def descriptions(self) -> list[str]:
        return [f.describe() for f in self._filters]

    def summary(self) -> str:
        if not self._filters:
            return "No filters applied"
        active = [d for d in self.descriptions() if d not in DEFAULT_DESCRIPTIONS]
        if not active:
            return "Default filters applied"
        return "Active filters: " + "; ".join(active)

    def __len__(self) -> int:
        return len(self._filters)

    def __iter__(self) -> Iterator[CommitFilter]:
        return iter(self._filters)


DEFAULT_DESCRIPTIONS: frozenset[str] = frozenset({"No date filter", "Include merge commits"})
