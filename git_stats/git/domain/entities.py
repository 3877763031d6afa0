"""Git domain entities."""

from collections import Counter
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta

from dateutil.relativedelta import relativedelta

from git_stats.git.domain.errors import ValidationError
from git_stats.git.domain.value_objects import Author, CommitStats, elapsed, is_later

MIN_HASH_LENGTH = 7
TOP_FILES_LIMIT = 10
ACTIVE_WINDOW = relativedelta(months=3)


@dataclass(frozen=True)
class Commit:
    """Commit entity."""

    hash: str
    message: str
    author: Author
    committer: Author
    author_date: datetime
    committer_date: datetime
    parent_hashes: tuple[str, ...] = ()
    tree_hash: str = ""
    stats: CommitStats = field(default_factory=CommitStats)

    @property
    def is_merge(self) -> bool:
        return len(self.parent_hashes) > 1

    @property
    def is_root(self) -> bool:
        return not self.parent_hashes

    @property
    def is_empty(self) -> bool:
        """True if the commit carries no changes."""
        return (
            self.stats.files_changed == 0
            and self.stats.insertions == 0
            and self.stats.deletions == 0
        )

    @property
    def day(self) -> date:
        """Calendar day of the author date, as parsed."""
        return self.author_date.date()

    @property
    def file_extensions(self) -> tuple[str, ...]:
        """Unique file extensions touched by this commit, sorted."""
        return tuple(sorted({f.extension for f in self.stats.files if f.extension}))

    def validate(self) -> None:
        """
        Check that the commit is a well-formed record.

        Raises:
            ValidationError: If a required field is missing or malformed
        """
        if not self.hash:
            raise ValidationError("commit hash cannot be empty", field="hash")
        if len(self.hash) < MIN_HASH_LENGTH:
            raise ValidationError(
                f"commit hash must be at least {MIN_HASH_LENGTH} characters", field="hash"
            )
        if not self.author.name:
            raise ValidationError("author name cannot be empty", field="author")
        if not self.author.email:
            raise ValidationError("author email cannot be empty", field="author")
        if self.author_date is None:
            raise ValidationError("author date cannot be empty", field="author_date")
        if self.stats.files and self.stats.files_changed != len(self.stats.files):
            raise ValidationError(
                "files_changed does not match the number of file changes", field="stats"
            )


@dataclass(frozen=True)
class ContributorSummary:
    """Lightweight view of a contributor for listings."""

    name: str
    email: str
    commits: int
    percentage: float
    first_commit: datetime | None
    last_commit: datetime | None
    is_active: bool


@dataclass(frozen=True)
class Contributor:
    """Contributor entity, identified by email."""

    name: str
    email: str
    total_commits: int = 0
    total_insertions: int = 0
    total_deletions: int = 0
    first_commit: datetime | None = None
    last_commit: datetime | None = None
    active_days: int = 0
    commits_by_day: dict[date, int] = field(default_factory=dict)
    commits_by_hour: dict[int, int] = field(default_factory=dict)
    commits_by_weekday: dict[int, int] = field(default_factory=dict)
    file_types: dict[str, int] = field(default_factory=dict)
    top_files: tuple[str, ...] = ()

    @property
    def most_active_hour(self) -> int | None:
        """Hour (0-23) with the most commits; the lowest hour wins ties."""
        return _busiest_key(self.commits_by_hour)

    @property
    def most_active_weekday(self) -> int | None:
        """Weekday (Monday=0) with the most commits; the lowest weekday wins ties."""
        return _busiest_key(self.commits_by_weekday)

    @property
    def top_file_type(self) -> str | None:
        """Most frequently touched extension; alphabetical order breaks ties."""
        return _busiest_key(self.file_types)

    @property
    def contribution_period(self) -> timedelta:
        if self.first_commit is None or self.last_commit is None:
            return timedelta(0)
        return elapsed(self.first_commit, self.last_commit)

    @property
    def average_commits_per_day(self) -> float:
        """Average commits per active day."""
        if self.active_days == 0:
            return 0.0
        return self.total_commits / self.active_days

    @property
    def activity_level(self) -> str:
        if self.total_commits == 0:
            return "inactive"
        if self.total_commits < 10:
            return "low"
        if self.total_commits < 50:
            return "medium"
        if self.total_commits < 200:
            return "high"
        return "very_high"

    def is_active_since(self, moment: datetime) -> bool:
        """True if the last commit is strictly after ``moment``."""
        if self.last_commit is None:
            return False
        return is_later(self.last_commit, moment)

    def is_active_in_period(self, start: datetime, end: datetime) -> bool:
        """True if the contribution period overlaps ``[start, end]``."""
        if self.first_commit is None or self.last_commit is None:
            return False
        return not is_later(start, self.last_commit) and not is_later(self.first_commit, end)

    def to_summary(self, total_commits: int, now: datetime | None = None) -> ContributorSummary:
        """
        Convert to a ContributorSummary.

        Args:
            total_commits: Commit count of the whole repository, for the percentage
            now: Reference time for the 3-month activity window. Defaults to now

        Returns:
            ContributorSummary for listings
        """
        now = now or datetime.now().astimezone()
        percentage = 0.0
        if total_commits > 0:
            percentage = self.total_commits / total_commits * 100
        return ContributorSummary(
            name=self.name,
            email=self.email,
            commits=self.total_commits,
            percentage=percentage,
            first_commit=self.first_commit,
            last_commit=self.last_commit,
            is_active=self.is_active_since(now - ACTIVE_WINDOW),
        )

    def validate(self) -> None:
        """
        Check the contributor record for consistency.

        Raises:
            ValidationError: If a field is missing or the totals are inconsistent
        """
        if not self.name:
            raise ValidationError("contributor name cannot be empty", field="name")
        if not self.email:
            raise ValidationError("contributor email cannot be empty", field="email")
        for name in ("total_commits", "total_insertions", "total_deletions", "active_days"):
            if getattr(self, name) < 0:
                raise ValidationError(f"{name} cannot be negative", field=name)
        if (
            self.first_commit is not None
            and self.last_commit is not None
            and is_later(self.first_commit, self.last_commit)
        ):
            raise ValidationError("first commit cannot be after last commit", field="first_commit")


def _busiest_key(counts: dict) -> object | None:
    if not counts:
        return None
    return min(counts, key=lambda key: (-counts[key], key))


class ContributorBuilder:
    """Accumulates one contributor's commits and freezes them into a Contributor."""

    def __init__(self, name: str, email: str) -> None:
        self._name = name
        self._email = email
        self._commits = 0
        self._insertions = 0
        self._deletions = 0
        self._first: datetime | None = None
        self._last: datetime | None = None
        self._by_day: Counter[date] = Counter()
        self._by_hour: Counter[int] = Counter()
        self._by_weekday: Counter[int] = Counter()
        self._file_types: Counter[str] = Counter()
        self._files: Counter[str] = Counter()

    @property
    def email(self) -> str:
        return self._email

    def add_commit(self, commit: Commit) -> "ContributorBuilder":
        """Fold one commit into the running totals."""
        moment = commit.author_date
        self._commits += 1
        self._insertions += commit.stats.insertions
        self._deletions += commit.stats.deletions
        if self._first is None or is_later(self._first, moment):
            self._first = moment
        if self._last is None or is_later(moment, self._last):
            self._last = moment
        self._by_day[moment.date()] += 1
        self._by_hour[moment.hour] += 1
        self._by_weekday[moment.weekday()] += 1
        for extension in commit.file_extensions:
            self._file_types[extension] += 1
        for file_change in commit.stats.files:
            self._files[file_change.path] += 1
        return self

    def build(self) -> Contributor:
        top_files = sorted(self._files, key=lambda path: (-self._files[path], path))
        return Contributor(
            name=self._name,
            email=self._email,
            total_commits=self._commits,
            total_insertions=self._insertions,
            total_deletions=self._deletions,
            first_commit=self._first,
            last_commit=self._last,
            active_days=len(self._by_day),
            commits_by_day=dict(sorted(self._by_day.items())),
            commits_by_hour=dict(sorted(self._by_hour.items())),
            commits_by_weekday=dict(sorted(self._by_weekday.items())),
            file_types=dict(sorted(self._file_types.items())),
            top_files=tuple(top_files[:TOP_FILES_LIMIT]),
        )


@dataclass(frozen=True)
class ContributorEnhancement:
    """Outcome of enriching one contributor with its commit history.

    On failure ``contributor`` is the un-enhanced shortlog record and
    ``error`` holds the failure message.
    """

    index: int
    contributor: Contributor
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None
