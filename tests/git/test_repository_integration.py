from datetime import date, datetime, timedelta, timezone
from pathlib import Path

import pytest

from git_stats.git.domain.value_objects import ExecutorConfig, FileChangeType
from git_stats.git.repositories.implementations import GitRepositoryImpl
from git_stats.git.services.command_executor import GitCommandExecutor
from git_stats.git.services.git_service import GitService

pytestmark = pytest.mark.integration


def _repository(path: Path) -> GitRepositoryImpl:
    return GitRepositoryImpl(GitCommandExecutor(ExecutorConfig(working_directory=path)))


def test_list_commits_parses_real_log(git_repo):
    commits = _repository(git_repo).list_commits()

    assert [c.message for c in commits] == ["Update README | docs", "Add main", "Initial commit"]
    latest, middle, initial = commits
    assert latest.author.email == "alice@example.com"
    assert (latest.stats.insertions, latest.stats.deletions) == (2, 1)
    assert middle.stats.files[0].path == "src/main.py"
    assert middle.stats.files[0].change_type == FileChangeType.ADDED
    assert initial.is_root
    assert initial.author_date == datetime(2024, 1, 10, 10, 0, tzinfo=timezone.utc)
    assert initial.author_date.utcoffset() == timedelta(0)
    assert latest.parent_hashes == (middle.hash,)
    assert len(latest.tree_hash) == 40


def test_list_commits_date_bounds(git_repo):
    repository = _repository(git_repo)

    assert len(repository.list_commits(since=date(2024, 1, 1), until=date(2024, 12, 31))) == 3
    assert repository.list_commits(since=date(2025, 1, 1)) == ()


def test_list_contributors_and_commits(git_repo):
    repository = _repository(git_repo)

    contributors = repository.list_contributors()

    assert [(c.name, c.email, c.total_commits) for c in contributors] == [
        ("Alice", "alice@example.com", 2),
        ("Bob", "bob@example.com", 1),
    ]
    assert [c.message for c in repository.list_contributor_commits("bob@example.com")] == [
        "Add main"
    ]


def test_repository_info(git_repo):
    info = _repository(git_repo).get_repository_info()

    assert info.total_commits == 3
    assert info.name == git_repo.name
    assert info.first_commit == datetime(2024, 1, 10, 10, 0, tzinfo=timezone.utc)
    assert info.last_commit == datetime(2024, 1, 12, 9, 15, tzinfo=timezone.utc)
    assert set(info.branches) == {"main", "feature"}


def test_empty_repository(empty_git_repo):
    repository = _repository(empty_git_repo)

    assert repository.is_valid_repository()
    assert repository.list_commits() == ()
    info = repository.get_repository_info()
    assert info.total_commits == 0
    assert info.first_commit is None
    assert info.branches == ()


def test_git_service_enhances_real_contributors(git_repo):
    results = GitService(_repository(git_repo)).get_contributors()

    assert all(r.ok for r in results)
    alice = results[0].contributor
    assert alice.total_commits == 2
    assert alice.active_days == 2
    assert alice.file_types == {"md": 2}
