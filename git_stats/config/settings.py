"""Environment-driven settings and logging setup."""

import logging
import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

from git_stats.git.domain.value_objects import (
    DEFAULT_ALLOWED_COMMANDS,
    DEFAULT_MAX_OUTPUT_BYTES,
    DEFAULT_TIMEOUT_SECONDS,
    ExecutorConfig,
)

PACKAGE_LOGGER = "git_stats"
LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"
DEFAULT_MAX_WORKERS = 4
DEFAULT_LOG_LEVEL = "WARNING"


def _load_env_file() -> None:
    """Load environment variables from .env file."""
    # Try to find .env file in project root (parent of git_stats package)
    project_root = Path(__file__).parent.parent.parent
    env_file = project_root / ".env"
    if env_file.exists():
        load_dotenv(env_file)
    else:
        # Fallback: try current directory
        load_dotenv()


def _read_number(name: str, default: float, cast: type) -> float:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        value = cast(raw.strip())
    except ValueError as e:
        raise ValueError(f"Invalid {name}: {raw!r} is not a number") from e
    if value <= 0:
        raise ValueError(f"Invalid {name}: must be positive, got {raw!r}")
    return value


@dataclass(frozen=True)
class Settings:
    """Runtime settings."""

    timeout: float = DEFAULT_TIMEOUT_SECONDS
    max_output_bytes: int = DEFAULT_MAX_OUTPUT_BYTES
    max_workers: int = DEFAULT_MAX_WORKERS
    log_level: str = DEFAULT_LOG_LEVEL

    def executor_config(
        self, path: str | Path, allowed_commands: frozenset[str] = DEFAULT_ALLOWED_COMMANDS
    ) -> ExecutorConfig:
        """Build the executor configuration for a repository path."""
        return ExecutorConfig(
            working_directory=Path(path),
            default_timeout=self.timeout,
            max_output_bytes=self.max_output_bytes,
            allowed_commands=allowed_commands,
        )


def load_settings(load_env_file: bool = True) -> Settings:
    """
    Load settings from the environment.

    Reads ``GIT_STATS_TIMEOUT``, ``GIT_STATS_MAX_OUTPUT_BYTES``,
    ``GIT_STATS_MAX_WORKERS`` and ``GIT_STATS_LOG_LEVEL``, after loading a
    ``.env`` file when one is found.

    Args:
        load_env_file: Load a ``.env`` file before reading the environment

    Returns:
        Settings with defaults for unset variables

    Raises:
        ValueError: If a variable holds an invalid value
    """
    if load_env_file:
        _load_env_file()

    log_level = (os.getenv("GIT_STATS_LOG_LEVEL") or DEFAULT_LOG_LEVEL).strip().upper()
    if not isinstance(logging.getLevelName(log_level), int):
        raise ValueError(
            f"Invalid GIT_STATS_LOG_LEVEL: {log_level}. "
            "Supported values: 'DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL'"
        )

    return Settings(
        timeout=_read_number("GIT_STATS_TIMEOUT", DEFAULT_TIMEOUT_SECONDS, float),
        max_output_bytes=_read_number("GIT_STATS_MAX_OUTPUT_BYTES", DEFAULT_MAX_OUTPUT_BYTES, int),
        max_workers=_read_number("GIT_STATS_MAX_WORKERS", DEFAULT_MAX_WORKERS, int),
        log_level=log_level,
    )


def configure_logging(level: str | int = DEFAULT_LOG_LEVEL) -> logging.Logger:
    """
    Send git_stats log records to stderr at the given level.

    Calling it again only changes the level; a single handler is kept.
    """
    logger = logging.getLogger(PACKAGE_LOGGER)
    logger.setLevel(level.upper() if isinstance(level, str) else level)
    if not logger.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        logger.addHandler(handler)
    return logger
