"""Factory for creating services configured from the environment."""

from pathlib import Path

from git_stats.analysis.services.analysis_service import AnalysisService
from git_stats.config.settings import Settings, configure_logging, load_settings
from git_stats.git.repositories.implementations import GitRepositoryImpl
from git_stats.git.services.command_executor import GitCommandExecutor
from git_stats.git.services.git_service import GitService


def create_git_service(path: str | Path, settings: Settings | None = None) -> GitService:
    """
    Create a GitService for the repository at ``path``.

    Args:
        path: Repository working directory
        settings: Optional settings override. If not provided, loads them
                  from the environment and ``.env``

    Returns:
        GitService backed by a GitCommandExecutor using the settings' timeout
        and output cap

    Raises:
        ValueError: If an environment variable holds an invalid value
        NotARepositoryError: If ``path`` is not inside a git repository
    """
    settings = settings or load_settings()
    executor = GitCommandExecutor(settings.executor_config(path))
    return GitService(GitRepositoryImpl(executor))


def create_analysis_service(path: str | Path, settings: Settings | None = None) -> AnalysisService:
    """
    Create an AnalysisService for the repository at ``path``.

    Applies the settings' log level to the ``git_stats`` logger and bounds the
    contributor worker pool by ``max_workers``.

    Raises:
        ValueError: If an environment variable holds an invalid value
        NotARepositoryError: If ``path`` is not inside a git repository
    """
    settings = settings or load_settings()
    configure_logging(settings.log_level)
    return AnalysisService(create_git_service(path, settings), max_workers=settings.max_workers)
