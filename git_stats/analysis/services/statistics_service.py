"""General commit statistics."""

from collections import Counter
from collections.abc import Sequence
from dataclasses import dataclass, field
from datetime import date, datetime

from git_stats.analysis.domain.value_objects import (
    AnalysisConfig,
    CommitFrequencyAnalysis,
    FileStats,
    FileTypeStats,
    StatsSummary,
    TimeBasedPatterns,
)
from git_stats.git.domain.entities import Commit
from git_stats.git.domain.value_objects import is_later

TOP_FILES_LIMIT = 20
TOP_FILE_TYPES_LIMIT = 15
NO_EXTENSION = "no-extension"
HOURS_PER_DAY = 24


@dataclass
class _FileAccumulator:
    commits: int = 0
    insertions: int = 0
    deletions: int = 0
    last_modified: datetime | None = None


@dataclass
class _TypeAccumulator:
    paths: set[str] = field(default_factory=set)
    commits: int = 0
    lines_changed: int = 0


def _average(total: int, buckets: int) -> float:
    return total / buckets if buckets else 0.0


class StatisticsAnalyzer:
    """Commit, file and time-pattern statistics."""

    def analyze_statistics(
        self, commits: Sequence[Commit], config: AnalysisConfig | None = None
    ) -> StatsSummary:
        """
        Summarize a history.

        Args:
            commits: History to summarize; narrowed by ``config``
            config: Author, merge and time-range options

        Returns:
            StatsSummary where ``files_changed`` counts distinct paths and
            the average is per active day
        """
        config = config or AnalysisConfig()
        selected = [commit for commit in commits if config.admits(commit)]
        if not selected:
            return StatsSummary()

        active_days = len({commit.day for commit in selected})
        by_hour, by_weekday = self.analyze_commit_patterns(selected)
        top_files, top_file_types = self.analyze_file_statistics(selected)
        return StatsSummary(
            total_commits=len(selected),
            total_insertions=sum(c.stats.insertions for c in selected),
            total_deletions=sum(c.stats.deletions for c in selected),
            files_changed=len({f.path for c in selected for f in c.stats.files}),
            active_days=active_days,
            average_commits_per_day=_average(len(selected), active_days),
            commits_by_hour=by_hour,
            commits_by_weekday=by_weekday,
            top_files=tuple(top_files),
            top_file_types=tuple(top_file_types),
        )

    def analyze_commit_patterns(
        self, commits: Sequence[Commit]
    ) -> tuple[dict[int, int], dict[int, int]]:
        """Commit counts by hour (0-23) and by weekday (Monday=0), sorted by key."""
        by_hour = Counter(commit.author_date.hour for commit in commits)
        by_weekday = Counter(commit.author_date.weekday() for commit in commits)
        return dict(sorted(by_hour.items())), dict(sorted(by_weekday.items()))

    def analyze_file_statistics(
        self, commits: Sequence[Commit]
    ) -> tuple[list[FileStats], list[FileTypeStats]]:
        """
        Rank files and file types by the number of commits touching them.

        Ties are broken by path or extension, ascending. At most 20 files and
        15 types are returned; paths without an extension are grouped under
        ``no-extension``.
        """
        files: dict[str, _FileAccumulator] = {}
        types: dict[str, _TypeAccumulator] = {}

        for commit in commits:
            for change in commit.stats.files:
                stats = files.setdefault(change.path, _FileAccumulator())
                stats.commits += 1
                stats.insertions += change.insertions
                stats.deletions += change.deletions
                if stats.last_modified is None or is_later(commit.author_date, stats.last_modified):
                    stats.last_modified = commit.author_date

                type_stats = types.setdefault(change.extension or NO_EXTENSION, _TypeAccumulator())
                type_stats.paths.add(change.path)
                type_stats.commits += 1
                type_stats.lines_changed += change.lines_changed

        top_files = [
            FileStats(
                path=path,
                commits=stats.commits,
                insertions=stats.insertions,
                deletions=stats.deletions,
                last_modified=stats.last_modified,
            )
            for path, stats in sorted(files.items(), key=lambda item: (-item[1].commits, item[0]))
        ]
        top_types = [
            FileTypeStats(
                extension=extension,
                files=len(stats.paths),
                commits=stats.commits,
                lines_changed=stats.lines_changed,
            )
            for extension, stats in sorted(
                types.items(), key=lambda item: (-item[1].commits, item[0])
            )
        ]
        return top_files[:TOP_FILES_LIMIT], top_types[:TOP_FILE_TYPES_LIMIT]

    def get_commit_frequency_analysis(self, commits: Sequence[Commit]) -> CommitFrequencyAnalysis:
        daily: Counter[date] = Counter()
        weekly: Counter[str] = Counter()
        monthly: Counter[str] = Counter()
        for commit in commits:
            day = commit.day
            year, week, _ = day.isocalendar()
            daily[day] += 1
            weekly[f"{year}-W{week:02d}"] += 1
            monthly[day.strftime("%Y-%m")] += 1

        total = len(commits)
        return CommitFrequencyAnalysis(
            daily=dict(sorted(daily.items())),
            weekly=dict(sorted(weekly.items())),
            monthly=dict(sorted(monthly.items())),
            average_per_day=_average(total, len(daily)),
            average_per_week=_average(total, len(weekly)),
            average_per_month=_average(total, len(monthly)),
        )

    def get_time_based_patterns(self, commits: Sequence[Commit]) -> TimeBasedPatterns:
        """
        Hourly and weekday distributions.

        Averages spread the commits over the calendar span of the history:
        per hour slot of each day, and per occurrence of a weekday.
        """
        if not commits:
            return TimeBasedPatterns()

        by_hour, by_weekday = self.analyze_commit_patterns(commits)
        days = [commit.day for commit in commits]
        span_days = (max(days) - min(days)).days + 1
        total = len(commits)
        return TimeBasedPatterns(
            commits_by_hour=by_hour,
            commits_by_weekday=by_weekday,
            peak_hour=min(by_hour, key=lambda hour: (-by_hour[hour], hour)),
            peak_weekday=min(by_weekday, key=lambda weekday: (-by_weekday[weekday], weekday)),
            average_per_hour=total / (span_days * HOURS_PER_DAY),
            average_per_weekday=total / span_days,
        )
