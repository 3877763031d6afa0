"""Builds filter chains from caller options."""

import logging
from datetime import date, datetime

from git_stats.analysis.domain.value_objects import AnalysisConfig
from git_stats.filtering.domain.value_objects import AuthorMatchType, FilterOptions
from git_stats.filtering.services.date_parsing import get_date_range, parse_date
from git_stats.filtering.services.filters import (
    AuthorFilter,
    BranchFilter,
    DateRangeFilter,
    ExcludeFilePathFilter,
    FileSizeFilter,
    FilePathFilter,
    FilterChain,
    LimitFilter,
    MergeCommitFilter,
    MessageFilter,
)
from git_stats.git.domain.errors import ValidationError

logger = logging.getLogger(__name__)


class FilterBuilder:
    """Turns FilterOptions into a FilterChain with a fixed filter order."""

    def build(self, options: FilterOptions, now: datetime | None = None) -> FilterChain:
        """
        Build a filter chain.

        Filters are added in a fixed order (date, author, included files,
        excluded files, merges, limit, branches, message, size) whatever order
        the caller set the options in. The merge filter is always present.

        Args:
            options: Requested filters
            now: Reference time for relative date expressions. Defaults to now

        Returns:
            FilterChain in construction order

        Raises:
            ValidationError: If a pattern, bound or date expression is invalid
        """
        chain = FilterChain()

        since, until = self.resolve_dates(options, now)
        if since is not None or until is not None:
            chain.add(DateRangeFilter(since, until))

        if options.author:
            chain.add(
                AuthorFilter(
                    options.author,
                    options.author_match_type,
                    options.author_case_sensitive,
                )
            )

        if options.include_files:
            chain.add(
                FilePathFilter(options.include_files, options.file_match_type, options.case_sensitive)
            )

        if options.exclude_files:
            chain.add(
                ExcludeFilePathFilter(
                    options.exclude_files, options.file_match_type, options.case_sensitive
                )
            )

        chain.add(MergeCommitFilter(options.include_merges))

        if options.limit > 0:
            chain.add(LimitFilter(options.limit))

        if options.branches:
            chain.add(BranchFilter(options.branches))

        if options.message:
            chain.add(
                MessageFilter(
                    options.message,
                    options.message_match_type,
                    options.message_case_sensitive,
                )
            )

        if options.size.is_constrained:
            size = options.size
            chain.add(
                FileSizeFilter(
                    min_insertions=size.min_insertions,
                    max_insertions=size.max_insertions,
                    min_deletions=size.min_deletions,
                    max_deletions=size.max_deletions,
                    min_files=size.min_files,
                    max_files=size.max_files,
                )
            )

        logger.debug("Built filter chain: %s", chain.descriptions())
        return chain

    def build_from_analysis_config(self, config: AnalysisConfig) -> FilterChain:
        """
        Build the chain an AnalysisConfig asks for.

        The author filter is a case-insensitive substring match on name or email.
        """
        time_range = config.time_range
        return self.build(
            FilterOptions(
                since=time_range.start if time_range else None,
                until=time_range.end if time_range else None,
                author=config.author_filter,
                author_match_type=AuthorMatchType.CONTAINS,
                include_merges=config.include_merges,
                limit=config.limit,
            )
        )

    @staticmethod
    def summary(chain: FilterChain | None) -> str:
        """Human-readable summary of the active filters."""
        if chain is None:
            return "No filters applied"
        return chain.summary()

    @staticmethod
    def resolve_dates(
        options: FilterOptions, now: datetime | None = None
    ) -> tuple[date | datetime | None, date | datetime | None]:
        """
        Resolve the date bounds of ``options`` to concrete values.

        Expressions are parsed with parse_date. A bound that falls on midnight
        with no offset becomes a plain date, so ``until="2024-01-15"`` covers
        that whole day. ``date_range`` is used only when neither bound is set;
        ``all`` means no bounds.

        Raises:
            ValidationError: If an expression cannot be parsed
        """
        since = _resolve_bound(options.since, now)
        until = _resolve_bound(options.until, now)
        if since is None and until is None and options.date_range:
            since, until = _resolve_range(options.date_range, now)
        return since, until


def _resolve_bound(
    value: date | datetime | str | None, now: datetime | None
) -> date | datetime | None:
    if not isinstance(value, str):
        return value
    moment = parse_date(value, now)
    if moment.tzinfo is None and moment.time() == datetime.min.time():
        return moment.date()
    return moment


def _resolve_range(
    name: str, now: datetime | None
) -> tuple[date | datetime | None, date | datetime | None]:
    if name.strip().lower() == "all":
        return None, None
    try:
        return get_date_range(name, now)
    except ValidationError:
        logger.debug("%r is not a named range; parsing it as a start date", name)
    try:
        return _resolve_bound(name, now), None
    except ValidationError as e:
        raise ValidationError(f"invalid date range: {name}", field="date_range") from e
