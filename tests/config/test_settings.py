import logging
from pathlib import Path

import pytest

from git_stats.config.settings import Settings, configure_logging, load_settings
from git_stats.git.domain.value_objects import (
    DEFAULT_ALLOWED_COMMANDS,
    DEFAULT_MAX_OUTPUT_BYTES,
    FIXTURE_ALLOWED_COMMANDS,
)

ENV_VARS = (
    "GIT_STATS_TIMEOUT",
    "GIT_STATS_MAX_OUTPUT_BYTES",
    "GIT_STATS_MAX_WORKERS",
    "GIT_STATS_LOG_LEVEL",
)


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch):
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)


def test_defaults():
    settings = load_settings(load_env_file=False)

    assert settings == Settings()
    assert settings.timeout == 30.0
    assert settings.max_output_bytes == DEFAULT_MAX_OUTPUT_BYTES
    assert settings.max_workers == 4
    assert settings.log_level == "WARNING"


def test_reads_environment(monkeypatch):
    monkeypatch.setenv("GIT_STATS_TIMEOUT", "12.5")
    monkeypatch.setenv("GIT_STATS_MAX_OUTPUT_BYTES", "2048")
    monkeypatch.setenv("GIT_STATS_MAX_WORKERS", "8")
    monkeypatch.setenv("GIT_STATS_LOG_LEVEL", "debug")

    settings = load_settings(load_env_file=False)

    assert settings.timeout == 12.5
    assert settings.max_output_bytes == 2048
    assert settings.max_workers == 8
    assert settings.log_level == "DEBUG"


def test_empty_values_fall_back_to_defaults(monkeypatch):
    monkeypatch.setenv("GIT_STATS_TIMEOUT", "")
    monkeypatch.setenv("GIT_STATS_LOG_LEVEL", "")

    settings = load_settings(load_env_file=False)

    assert settings.timeout == 30.0
    assert settings.log_level == "WARNING"


@pytest.mark.parametrize(
    "name, value",
    [
        ("GIT_STATS_TIMEOUT", "soon"),
        ("GIT_STATS_TIMEOUT", "-1"),
        ("GIT_STATS_MAX_OUTPUT_BYTES", "1.5"),
        ("GIT_STATS_MAX_WORKERS", "0"),
        ("GIT_STATS_LOG_LEVEL", "LOUD"),
    ],
)
def test_invalid_values(monkeypatch, name, value):
    monkeypatch.setenv(name, value)

    with pytest.raises(ValueError) as excinfo:
        load_settings(load_env_file=False)

    assert name in str(excinfo.value)


def test_executor_config(tmp_path: Path):
    settings = Settings(timeout=5.0, max_output_bytes=1024)

    config = settings.executor_config(tmp_path)

    assert config.working_directory == tmp_path
    assert config.default_timeout == 5.0
    assert config.max_output_bytes == 1024
    assert config.allowed_commands == DEFAULT_ALLOWED_COMMANDS
    assert "init" not in config.allowed_commands
    assert "init" in settings.executor_config(tmp_path, FIXTURE_ALLOWED_COMMANDS).allowed_commands


def test_configure_logging_keeps_single_handler():
    logger = configure_logging("info")
    handlers = list(logger.handlers)

    again = configure_logging(logging.DEBUG)

    assert again is logger
    assert logger.name == "git_stats"
    assert logger.level == logging.DEBUG
    assert list(again.handlers) == handlers
    assert len(handlers) == 1
