"""Contribution graph, streak and activity level analysis."""

import logging
from collections.abc import Mapping, Sequence
from datetime import date, datetime, timedelta

from dateutil.relativedelta import relativedelta

from git_stats.analysis.domain.value_objects import (
    AnalysisConfig,
    ContributionGraph,
    ContributionSummary,
)
from git_stats.git.domain.entities import Commit

logger = logging.getLogger(__name__)

DEFAULT_WINDOW = relativedelta(years=1)

# Upper bounds (inclusive) of activity levels 0-3; anything above is level 4.
ACTIVITY_LEVEL_THRESHOLDS: tuple[int, ...] = (0, 3, 9, 19)


def get_activity_level(count: int) -> int:
    """
    Bucket a day's commit count into an activity level.

    Returns:
        0 for no commits, 1 for 1-3, 2 for 4-9, 3 for 10-19, 4 for 20 or more
    """
    for level, upper in enumerate(ACTIVITY_LEVEL_THRESHOLDS):
        if count <= upper:
            return level
    return len(ACTIVITY_LEVEL_THRESHOLDS)


def _as_day(value: date | datetime) -> date:
    return value.date() if isinstance(value, datetime) else value


class ContributionAnalyzer:
    """Builds calendar-day contribution graphs."""

    def analyze_contributions(
        self,
        commits: Sequence[Commit],
        config: AnalysisConfig | None = None,
        now: datetime | None = None,
    ) -> ContributionGraph:
        """
        Count commits per calendar day over the effective window.

        The window is the configured range when both ends are given. Otherwise
        it is the past year widened to cover every commit, and a single
        configured end replaces only its own side.

        Args:
            commits: Commits to count
            config: Author, merge and time-range options
            now: Reference time for the default window. Defaults to now

        Returns:
            ContributionGraph with a zero-filled bucket for every day in the
            window, or no buckets when there are no commits
        """
        config = config or AnalysisConfig()
        start, end = self.resolve_window(commits, config, now)
        if not commits:
            return ContributionGraph.from_daily(start, end, {})

        daily: dict[date, int] = {}
        day = start
        while day <= end:
            daily[day] = 0
            day += timedelta(days=1)

        for commit in commits:
            if not config.admits(commit, check_time_range=False):
                continue
            commit_day = commit.day
            if start <= commit_day <= end:
                daily[commit_day] += 1

        graph = ContributionGraph.from_daily(start, end, daily)
        logger.debug(
            "Contribution graph %s..%s: %d commits, max %d/day",
            start,
            end,
            graph.total_commits,
            graph.max_commits,
        )
        return graph

    @staticmethod
    def resolve_window(
        commits: Sequence[Commit], config: AnalysisConfig, now: datetime | None = None
    ) -> tuple[date, date]:
        """Effective ``(start, end)`` days of the contribution graph."""
        time_range = config.time_range
        explicit_start = _as_day(time_range.start) if time_range and time_range.start else None
        explicit_end = _as_day(time_range.end) if time_range and time_range.end else None
        if explicit_start is not None and explicit_end is not None:
            return explicit_start, explicit_end

        now = now or datetime.now()
        start = (now - DEFAULT_WINDOW).date()
        end = now.date()
        if commits:
            days = [commit.day for commit in commits]
            start = min(start, min(days))
            end = max(end, max(days))

        return explicit_start or start, explicit_end or end

    def calculate_streaks(self, daily: Mapping[date, int]) -> tuple[int, int]:
        """
        Compute the current and longest streak of active days.

        A streak is a run of consecutive calendar days with at least one
        commit. The current streak counts backwards from the most recent day
        present in ``daily``, not from today.

        Returns:
            Tuple of (current, longest)
        """
        if not daily:
            return 0, 0

        days = sorted(daily)
        longest = run = 0
        previous: date | None = None
        for day in days:
            if daily[day] > 0:
                adjacent = previous is not None and day - previous == timedelta(days=1)
                run = run + 1 if adjacent and run else 1
                longest = max(longest, run)
            else:
                run = 0
            previous = day

        current = 0
        expected = days[-1]
        for day in reversed(days):
            if day != expected or daily[day] <= 0:
                break
            current += 1
            expected = day - timedelta(days=1)

        return current, longest

    def calculate_activity_levels(self, daily: Mapping[date, int]) -> dict[date, int]:
        return {day: get_activity_level(count) for day, count in sorted(daily.items())}

    def get_contribution_summary(self, graph: ContributionGraph) -> ContributionSummary:
        daily = graph.daily_commits
        current, longest = self.calculate_streaks(daily)
        total_days = len(daily)
        return ContributionSummary(
            total_commits=graph.total_commits,
            max_commits_per_day=graph.max_commits,
            active_days=sum(1 for count in daily.values() if count > 0),
            total_days=total_days,
            current_streak=current,
            longest_streak=longest,
            average_per_day=graph.total_commits / total_days if total_days else 0.0,
            activity_levels=self.calculate_activity_levels(daily),
        )
