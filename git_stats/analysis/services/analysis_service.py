"""End-to-end repository analysis."""

import logging
from collections.abc import Sequence
from datetime import datetime
from pathlib import Path

from git_stats.analysis.domain.value_objects import AnalysisConfig, AnalysisResult
from git_stats.analysis.services.contribution_service import ContributionAnalyzer
from git_stats.analysis.services.health_service import HealthAnalyzer
from git_stats.analysis.services.statistics_service import StatisticsAnalyzer
from git_stats.filtering.domain.value_objects import FilterOptions
from git_stats.filtering.services.filter_builder import FilterBuilder
from git_stats.filtering.services.filters import FilterChain
from git_stats.git.domain.entities import Commit, Contributor
from git_stats.git.domain.value_objects import RepositoryInfo, TimeRange, earliest, latest
from git_stats.git.services.git_service import (
    DEFAULT_MAX_WORKERS,
    GitService,
    contributors_from_commits,
)

logger = logging.getLogger(__name__)


class AnalysisService:
    """Runs fetch, filtering, contributors, graph, health and statistics in order."""

    def __init__(
        self,
        git_service: GitService,
        filter_builder: FilterBuilder | None = None,
        max_workers: int = DEFAULT_MAX_WORKERS,
    ) -> None:
        """
        Initialize AnalysisService.

        Args:
            git_service: Service used to read the repository
            filter_builder: Builder for the filter chain. Defaults to FilterBuilder()
            max_workers: Upper bound on concurrent git processes for contributors
        """
        self._git_service = git_service
        self._filter_builder = filter_builder or FilterBuilder()
        self._max_workers = max_workers
        self._contributions = ContributionAnalyzer()
        self._health = HealthAnalyzer()
        self._statistics = StatisticsAnalyzer()

    @property
    def max_workers(self) -> int:
        return self._max_workers

    def analyze(
        self,
        config: AnalysisConfig | None = None,
        options: FilterOptions | None = None,
        now: datetime | None = None,
        enhance_contributors: bool = True,
    ) -> AnalysisResult:
        """
        Analyze the repository.

        Args:
            config: Time range, author, limit and merge options
            options: Full filter options; when given they define the filter chain
                instead of ``config``
            now: Reference time. Defaults to now
            enhance_contributors: Fetch each contributor's history for the breakdowns

        Returns:
            AnalysisResult of the filtered history

        Raises:
            GitStatsError: If the repository cannot be read
        """
        config = config or AnalysisConfig()
        time_range = config.time_range or TimeRange()

        repository = self._git_service.get_repository_info()
        commits = self._git_service.list_commits(since=time_range.start, until=time_range.end)
        logger.info("Fetched %d commits from %s", len(commits), repository.path)

        enhancements = self._git_service.get_contributors(
            enhance=enhance_contributors, max_workers=self._max_workers
        )
        contributors = [enhancement.contributor for enhancement in enhancements]
        errors = {e.contributor.email: e.error for e in enhancements if e.error is not None}
        if errors:
            logger.warning("%d contributors could not be enhanced", len(errors))

        result = self.analyze_commits(
            commits,
            config=config,
            options=options,
            repository=repository,
            contributors=contributors,
            now=now,
        )
        if not errors:
            return result
        return AnalysisResult(
            repository=result.repository,
            summary=result.summary,
            contributors=result.contributors,
            contribution_graph=result.contribution_graph,
            contribution_summary=result.contribution_summary,
            health_metrics=result.health_metrics,
            health_score=result.health_score,
            health_insights=result.health_insights,
            filters=result.filters,
            time_range=result.time_range,
            contributor_errors=errors,
        )

    def build_filter_chain(
        self,
        config: AnalysisConfig,
        options: FilterOptions | None = None,
        now: datetime | None = None,
    ) -> FilterChain:
        if options is not None:
            return self._filter_builder.build(options, now)
        return self._filter_builder.build_from_analysis_config(config)

    def analyze_commits(
        self,
        commits: Sequence[Commit],
        config: AnalysisConfig | None = None,
        options: FilterOptions | None = None,
        repository: RepositoryInfo | None = None,
        contributors: Sequence[Contributor] | None = None,
        now: datetime | None = None,
    ) -> AnalysisResult:
        """
        Analyze an already-fetched history without running git.

        Args:
            commits: History in log order
            config: Time range, author, limit and merge options
            options: Full filter options; override ``config`` for filtering
            repository: Repository metadata. Defaults to a summary of ``commits``
            contributors: Contributors to report. Defaults to those built from
                the filtered history
            now: Reference time. Defaults to now

        Returns:
            AnalysisResult of the filtered history
        """
        config = config or AnalysisConfig()
        now = now or datetime.now().astimezone()

        chain = self.build_filter_chain(config, options, now)
        filtered = chain.apply(commits)
        logger.debug("%d of %d commits left after filtering", len(filtered), len(commits))

        if contributors is None:
            contributors = contributors_from_commits(filtered)
        if repository is None:
            repository = _summarize_repository(commits)

        graph = self._contributions.analyze_contributions(filtered, config, now)
        health = self._health.analyze_health(
            filtered,
            contributors,
            config,
            now=now,
            branch_count=len(repository.branches),
        )

        return AnalysisResult(
            repository=repository,
            summary=self._statistics.analyze_statistics(filtered, config),
            contributors=tuple(contributors),
            contribution_graph=graph,
            contribution_summary=self._contributions.get_contribution_summary(graph),
            health_metrics=health,
            health_score=self._health.calculate_health_score(health),
            health_insights=tuple(self._health.get_health_insights(health)),
            filters=tuple(chain.descriptions()),
            time_range=TimeRange(graph.start_date, graph.end_date),
        )


def _summarize_repository(commits: Sequence[Commit]) -> RepositoryInfo:
    dates = [commit.author_date for commit in commits]
    return RepositoryInfo(
        path=Path("."),
        name="",
        total_commits=len(commits),
        first_commit=earliest(dates),
        last_commit=latest(dates),
    )
