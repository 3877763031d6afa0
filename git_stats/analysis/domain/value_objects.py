"""Value objects for repository analysis."""

from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from enum import Enum

from git_stats.git.domain.entities import Commit, Contributor
from git_stats.git.domain.value_objects import RepositoryInfo, TimeRange


class ActivityTrend(str, Enum):
    """Coarse direction of recent commit volume."""

    INCREASING = "increasing"
    STABLE = "stable"
    DECREASING = "decreasing"


@dataclass(frozen=True)
class AnalysisConfig:
    """Caller options for an analysis run."""

    time_range: TimeRange | None = None
    author_filter: str | None = None  # Case-insensitive substring of name or email
    limit: int = 0
    include_merges: bool = True

    def matches_author(self, commit: Commit) -> bool:
        if not self.author_filter:
            return True
        needle = self.author_filter.casefold()
        return needle in commit.author.name.casefold() or needle in commit.author.email.casefold()

    def admits(self, commit: Commit, check_time_range: bool = True) -> bool:
        """Check a commit against the author, merge and (optionally) time-range options."""
        if not self.include_merges and commit.is_merge:
            return False
        if not self.matches_author(commit):
            return False
        if check_time_range and self.time_range is not None:
            return self.time_range.contains(commit.author_date)
        return True


@dataclass(frozen=True)
class ContributionGraph:
    """Calendar-day histogram of commits over a date range, zero-filled."""

    start_date: date
    end_date: date
    daily_commits: dict[date, int] = field(default_factory=dict)
    max_commits: int = 0
    total_commits: int = 0

    @classmethod
    def from_daily(cls, start_date: date, end_date: date, daily: dict[date, int]) -> "ContributionGraph":
        """Build a graph whose max and total are derived from ``daily``."""
        daily = dict(sorted(daily.items()))
        return cls(
            start_date=start_date,
            end_date=end_date,
            daily_commits=daily,
            max_commits=max(daily.values(), default=0),
            total_commits=sum(daily.values()),
        )


@dataclass(frozen=True)
class ContributionSummary:
    total_commits: int
    max_commits_per_day: int
    active_days: int
    total_days: int
    current_streak: int
    longest_streak: int
    average_per_day: float
    activity_levels: dict[date, int] = field(default_factory=dict)


@dataclass(frozen=True)
class MonthlyStats:
    """Commits and distinct authors of one calendar month."""

    month: date  # First day of the month
    commits: int
    authors: int


@dataclass(frozen=True)
class HealthMetrics:
    """Repository health indicators."""

    repository_age: timedelta = timedelta(0)
    commit_frequency: float = 0.0  # Commits per day
    contributor_count: int = 0
    active_contributors: int = 0
    branch_count: int = 0
    activity_trend: ActivityTrend = ActivityTrend.STABLE
    monthly_growth: tuple[MonthlyStats, ...] = ()

    @property
    def age_days(self) -> int:
        return self.repository_age.days


@dataclass(frozen=True)
class FileStats:
    path: str
    commits: int
    insertions: int
    deletions: int
    last_modified: datetime | None = None

    @property
    def lines_changed(self) -> int:
        return self.insertions + self.deletions


@dataclass(frozen=True)
class FileTypeStats:
    extension: str
    files: int
    commits: int
    lines_changed: int


@dataclass(frozen=True)
class StatsSummary:
    """General commit statistics of a history."""

    total_commits: int = 0
    total_insertions: int = 0
    total_deletions: int = 0
    files_changed: int = 0  # Distinct paths
    active_days: int = 0
    average_commits_per_day: float = 0.0  # Per active day
    commits_by_hour: dict[int, int] = field(default_factory=dict)
    commits_by_weekday: dict[int, int] = field(default_factory=dict)
    top_files: tuple[FileStats, ...] = ()
    top_file_types: tuple[FileTypeStats, ...] = ()


@dataclass(frozen=True)
class CommitFrequencyAnalysis:
    """Commit counts per day, ISO week (``YYYY-Www``) and month (``YYYY-MM``)."""

    daily: dict[date, int] = field(default_factory=dict)
    weekly: dict[str, int] = field(default_factory=dict)
    monthly: dict[str, int] = field(default_factory=dict)
    average_per_day: float = 0.0
    average_per_week: float = 0.0
    average_per_month: float = 0.0


@dataclass(frozen=True)
class TimeBasedPatterns:
    """Hourly and weekday commit distributions (Monday=0)."""

    commits_by_hour: dict[int, int] = field(default_factory=dict)
    commits_by_weekday: dict[int, int] = field(default_factory=dict)
    peak_hour: int | None = None
    peak_weekday: int | None = None
    average_per_hour: float = 0.0
    average_per_weekday: float = 0.0


@dataclass(frozen=True)
class AnalysisResult:
    """Everything one analysis run produces."""

    repository: RepositoryInfo
    summary: StatsSummary
    contributors: tuple[Contributor, ...]
    contribution_graph: ContributionGraph
    contribution_summary: ContributionSummary
    health_metrics: HealthMetrics
    health_score: int
    health_insights: tuple[str, ...]
    filters: tuple[str, ...]
    time_range: TimeRange
    contributor_errors: dict[str, str] = field(default_factory=dict)
