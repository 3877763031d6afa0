from datetime import datetime, timedelta, timezone

import pytest

from git_stats.git.domain.entities import Contributor, ContributorBuilder
from git_stats.git.domain.errors import ValidationError
from git_stats.git.domain.value_objects import (
    FileChange,
    FileChangeType,
    TimeRange,
    earliest,
    elapsed,
    latest,
)

UTC = timezone.utc


def test_commit_flags(make_commit):
    merge = make_commit(parents=("a", "b"))
    root = make_commit(parents=())
    plain = make_commit(files=(("src/app.py", 1, 0), ("src/util.py", 2, 2), ("Makefile", 1, 0)))

    assert merge.is_merge and not merge.is_root
    assert root.is_root and not root.is_merge
    assert root.is_empty
    assert not plain.is_empty
    assert plain.file_extensions == ("py",)


def test_commit_validate_rejects_short_hash(make_commit):
    with pytest.raises(ValidationError) as excinfo:
        make_commit(hash="abc123").validate()

    assert excinfo.value.field == "hash"


def test_commit_validate_rejects_missing_author(make_commit):
    with pytest.raises(ValidationError):
        make_commit(author="").validate()


def test_commit_validate_accepts_well_formed(make_commit):
    make_commit(files=(("a.py", 1, 1),)).validate()


@pytest.mark.parametrize(
    "path, extension",
    [("src/app.py", "py"), ("archive.tar.gz", "gz"), ("Makefile", ""), (".gitignore", "")],
)
def test_file_change_extension(path, extension):
    assert FileChange(path=path, change_type=FileChangeType.ADDED).extension == extension


def test_file_change_type_from_status():
    assert FileChangeType.from_status("R100") == FileChangeType.RENAMED
    assert FileChangeType.from_status("a") == FileChangeType.ADDED
    assert FileChangeType.from_status("?") == FileChangeType.MODIFIED
    assert FileChangeType.DELETED.code == "D"


def test_builder_accumulates_breakdowns(make_commit):
    builder = ContributorBuilder("Alice", "alice@example.com")
    # 2024-01-15 is a Monday.
    builder.add_commit(
        make_commit(when=datetime(2024, 1, 15, 9, tzinfo=UTC), files=(("a.py", 5, 1),))
    )
    builder.add_commit(
        make_commit(when=datetime(2024, 1, 15, 14, tzinfo=UTC), files=(("b.md", 1, 0),))
    )
    builder.add_commit(
        make_commit(when=datetime(2024, 1, 17, 9, tzinfo=UTC), files=(("a.py", 2, 2),))
    )

    contributor = builder.build()

    assert contributor.total_commits == 3
    assert contributor.total_insertions == 8
    assert contributor.total_deletions == 3
    assert contributor.active_days == 2
    assert contributor.most_active_hour == 9
    assert contributor.most_active_weekday == 0
    assert contributor.top_file_type == "py"
    assert contributor.top_files == ("a.py", "b.md")
    assert contributor.contribution_period == timedelta(days=2)
    assert contributor.average_commits_per_day == 1.5
    contributor.validate()


def test_busiest_key_ties_go_to_lowest():
    contributor = Contributor(
        name="A",
        email="a@example.com",
        commits_by_hour={14: 2, 9: 2},
        file_types={"py": 1, "go": 1},
    )

    assert contributor.most_active_hour == 9
    assert contributor.top_file_type == "go"
    assert Contributor(name="B", email="b@example.com").most_active_weekday is None


@pytest.mark.parametrize(
    "commits, level",
    [(0, "inactive"), (1, "low"), (10, "medium"), (50, "high"), (200, "very_high")],
)
def test_activity_level(commits, level):
    assert Contributor(name="A", email="a@x", total_commits=commits).activity_level == level


def test_activity_checks_mix_naive_and_aware():
    contributor = Contributor(
        name="A",
        email="a@example.com",
        total_commits=1,
        first_commit=datetime(2024, 1, 1, 12, tzinfo=UTC),
        last_commit=datetime(2024, 3, 1, 12, tzinfo=UTC),
    )

    assert contributor.is_active_since(datetime(2024, 2, 1))
    assert not contributor.is_active_since(datetime(2024, 3, 2))
    assert contributor.is_active_in_period(datetime(2024, 2, 1), datetime(2024, 2, 2))
    assert not contributor.is_active_in_period(datetime(2024, 4, 1), datetime(2024, 5, 1))


def test_to_summary():
    contributor = Contributor(
        name="A",
        email="a@example.com",
        total_commits=5,
        last_commit=datetime(2024, 5, 20, tzinfo=UTC),
    )

    summary = contributor.to_summary(20, now=datetime(2024, 6, 1, tzinfo=UTC))

    assert summary.percentage == 25.0
    assert summary.is_active
    assert not contributor.to_summary(20, now=datetime(2024, 12, 1, tzinfo=UTC)).is_active
    assert contributor.to_summary(0).percentage == 0.0


def test_contributor_validate_rejects_reversed_period():
    contributor = Contributor(
        name="A",
        email="a@example.com",
        first_commit=datetime(2024, 2, 1, tzinfo=UTC),
        last_commit=datetime(2024, 1, 1, tzinfo=UTC),
    )

    with pytest.raises(ValidationError):
        contributor.validate()


def test_time_range_contains_is_inclusive():
    window = TimeRange(datetime(2024, 1, 1, tzinfo=UTC), datetime(2024, 1, 31, tzinfo=UTC))

    assert window.is_bounded
    assert window.contains(datetime(2024, 1, 1, tzinfo=UTC))
    assert window.contains(datetime(2024, 1, 31, tzinfo=UTC))
    assert not window.contains(datetime(2024, 2, 1, tzinfo=UTC))
    assert TimeRange().contains(datetime(1999, 1, 1))


def test_earliest_and_latest_accept_mixed_datetimes():
    aware = datetime(2024, 1, 15, 10, 30, tzinfo=timezone(timedelta(hours=-8)))
    naive = datetime(2024, 1, 10, 9)

    assert earliest([aware, naive]) == naive
    assert latest([naive, aware]) is aware
    assert earliest([]) is None
    assert latest([]) is None
    assert elapsed(naive, aware) == timedelta(days=5, hours=1, minutes=30)


def test_builder_tracks_period_across_mixed_datetimes(make_commit):
    builder = ContributorBuilder("Alice", "alice@example.com")
    builder.add_commit(make_commit(when=datetime(2024, 1, 15, 10, tzinfo=UTC)))
    builder.add_commit(make_commit(when=datetime(2024, 1, 12, 8)))

    contributor = builder.build()

    assert contributor.first_commit == datetime(2024, 1, 12, 8)
    assert contributor.contribution_period == timedelta(days=3, hours=2)
    contributor.validate()
