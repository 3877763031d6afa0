"""Repository health metrics, score and insights."""

import logging
from collections import defaultdict
from collections.abc import Sequence
from datetime import date, datetime, timedelta

from git_stats.analysis.domain.value_objects import (
    ActivityTrend,
    AnalysisConfig,
    HealthMetrics,
    MonthlyStats,
)
from git_stats.git.domain.entities import ACTIVE_WINDOW, Commit, Contributor
from git_stats.git.domain.value_objects import earliest, elapsed, latest

logger = logging.getLogger(__name__)

TREND_THRESHOLD = 0.2
RECENT_MONTHS = 3
MIN_TREND_MONTHS = 3
SECONDS_PER_DAY = 86400

TREND_POINTS: dict[ActivityTrend, int] = {
    ActivityTrend.INCREASING: 20,
    ActivityTrend.STABLE: 15,
    ActivityTrend.DECREASING: 5,
}

# (minimum age in days, points), checked in order.
AGE_POINTS: tuple[tuple[int, int], ...] = ((365, 15), (90, 10), (30, 5))


def _month_of(commit: Commit) -> date:
    return commit.author_date.date().replace(day=1)


def _span(commits: Sequence[Commit]) -> timedelta:
    if len(commits) < 2:
        return timedelta(0)
    moments = [commit.author_date for commit in commits]
    return elapsed(earliest(moments), latest(moments))


class HealthAnalyzer:
    """Computes health indicators of a commit history."""

    def analyze_health(
        self,
        commits: Sequence[Commit],
        contributors: Sequence[Contributor],
        config: AnalysisConfig | None = None,
        now: datetime | None = None,
        branch_count: int = 0,
    ) -> HealthMetrics:
        """
        Compute repository health metrics.

        Args:
            commits: History to assess; narrowed by ``config``
            contributors: Contributors with their last commit dates
            config: Author, merge and time-range options
            now: Reference time for contributor activity. Defaults to now
            branch_count: Number of branches in the repository

        Returns:
            HealthMetrics; zero-valued with a stable trend when no commits remain
        """
        config = config or AnalysisConfig()
        now = now or datetime.now().astimezone()
        selected = [commit for commit in commits if config.admits(commit)]
        if not selected:
            return HealthMetrics(
                contributor_count=len(contributors),
                branch_count=branch_count,
            )

        age = _span(selected)
        age_days = max(age.total_seconds() / SECONDS_PER_DAY, 1.0)
        threshold = now - ACTIVE_WINDOW

        return HealthMetrics(
            repository_age=age,
            commit_frequency=len(selected) / age_days,
            contributor_count=len(contributors),
            active_contributors=sum(1 for c in contributors if c.is_active_since(threshold)),
            branch_count=branch_count,
            activity_trend=self.calculate_activity_trend(selected),
            monthly_growth=tuple(self.calculate_monthly_growth(selected)),
        )

    def calculate_activity_trend(self, commits: Sequence[Commit]) -> ActivityTrend:
        """
        Compare the last three months of activity with the months before.

        Needs at least three distinct months. The mean of the three most
        recent months is compared with the mean of all earlier months; a
        relative change beyond 20% either way sets the direction. With no
        earlier months, or an earlier mean of zero and no recent commits, the
        trend is stable.
        """
        monthly: dict[date, int] = defaultdict(int)
        for commit in commits:
            monthly[_month_of(commit)] += 1

        months = sorted(monthly)
        if len(months) < MIN_TREND_MONTHS:
            return ActivityTrend.STABLE

        recent = months[-RECENT_MONTHS:]
        earlier = months[:-RECENT_MONTHS]
        if not earlier:
            return ActivityTrend.STABLE

        recent_mean = sum(monthly[m] for m in recent) / len(recent)
        earlier_mean = sum(monthly[m] for m in earlier) / len(earlier)
        if earlier_mean == 0:
            return ActivityTrend.INCREASING if recent_mean > 0 else ActivityTrend.STABLE

        change = (recent_mean - earlier_mean) / earlier_mean
        if change > TREND_THRESHOLD:
            return ActivityTrend.INCREASING
        if change < -TREND_THRESHOLD:
            return ActivityTrend.DECREASING
        return ActivityTrend.STABLE

    def calculate_monthly_growth(self, commits: Sequence[Commit]) -> list[MonthlyStats]:
        """Commits and distinct author emails per calendar month, oldest first."""
        counts: dict[date, int] = defaultdict(int)
        authors: dict[date, set[str]] = defaultdict(set)
        for commit in commits:
            month = _month_of(commit)
            counts[month] += 1
            authors[month].add(commit.author.email.casefold())
        return [
            MonthlyStats(month=month, commits=counts[month], authors=len(authors[month]))
            for month in sorted(counts)
        ]

    def calculate_health_score(self, metrics: HealthMetrics) -> int:
        """
        Weighted health score in [0, 100].

        Frequency is worth up to 30 points, active contributors 25, trend 20,
        age 15 and growth consistency 10.
        """
        score = 0

        frequency = metrics.commit_frequency
        if frequency >= 1.0:
            score += 30
        elif frequency >= 0.1:
            score += int(20 + (frequency - 0.1) * 10 / 0.9)
        else:
            score += int(frequency * 200)

        active = metrics.active_contributors
        if active >= 5:
            score += 25
        elif active >= 2:
            score += 15 + (active - 2) * 3
        elif active == 1:
            score += 10

        score += TREND_POINTS.get(metrics.activity_trend, 0)

        for min_days, points in AGE_POINTS:
            if metrics.age_days >= min_days:
                score += points
                break

        if len(metrics.monthly_growth) >= MIN_TREND_MONTHS:
            score += int(self.calculate_growth_consistency(metrics.monthly_growth) * 10)

        return max(0, min(100, score))

    @staticmethod
    def calculate_growth_consistency(monthly_growth: Sequence[MonthlyStats]) -> float:
        """1 / (1 + cv^2) over monthly commit counts; 0 when undefined."""
        if len(monthly_growth) < 2:
            return 0.0
        counts = [month.commits for month in monthly_growth]
        mean = sum(counts) / len(counts)
        if mean == 0:
            return 0.0
        variance = sum((count - mean) ** 2 for count in counts) / len(counts)
        return 1.0 / (1.0 + variance / (mean * mean))

    def get_health_insights(self, metrics: HealthMetrics) -> list[str]:
        """Human-readable observations about the metrics."""
        insights: list[str] = []

        if metrics.commit_frequency >= 1.0:
            insights.append("High commit frequency indicates active development")
        elif metrics.commit_frequency < 0.1:
            insights.append("Low commit frequency may indicate inactive project")

        if metrics.active_contributors == 0:
            insights.append("No active contributors in the last 3 months")
        elif metrics.active_contributors == 1:
            insights.append("Single active contributor - consider encouraging more participation")
        elif metrics.active_contributors >= 5:
            insights.append("Good contributor diversity with multiple active developers")

        match metrics.activity_trend:
            case ActivityTrend.INCREASING:
                insights.append("Repository activity is trending upward")
            case ActivityTrend.DECREASING:
                insights.append("Repository activity is declining - may need attention")
            case _:
                insights.append("Repository activity is stable")

        if metrics.age_days < 30:
            insights.append("New repository - still establishing development patterns")
        elif metrics.age_days >= 365:
            insights.append("Mature repository with established history")

        if len(metrics.monthly_growth) >= MIN_TREND_MONTHS:
            last_month = metrics.monthly_growth[-1]
            if last_month.commits == 0:
                insights.append("No commits in the most recent month")
            elif last_month.authors == 1:
                insights.append("Recent development concentrated to single contributor")

        return insights
