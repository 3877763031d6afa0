import io
import subprocess
from pathlib import Path

import pytest

from git_stats.git.domain.errors import (
    CommandNotAllowedError,
    CommandTimeoutError,
    ExecutionError,
    InvalidArgumentError,
    NotARepositoryError,
    OutputLimitExceededError,
    ValidationError,
)
from git_stats.git.domain.value_objects import ExecutorConfig
from git_stats.git.services.command_executor import (
    READ_CHUNK_BYTES,
    GitCommandExecutor,
    get_git_version,
    is_git_available,
    validate_argument,
    validate_command,
)


class FakeProcess:
    """Minimal Popen double backed by in-memory pipes."""

    def __init__(self, argv, returncode, stdout, stderr, hangs):
        self.args = argv
        self.stdout = io.BytesIO(stdout)
        self.stderr = io.BytesIO(stderr)
        self.returncode = None
        self.killed = False
        self.wait_timeout = None
        self._exit_code = returncode
        self._hangs = hangs

    def wait(self, timeout=None):
        if self.wait_timeout is None:
            self.wait_timeout = timeout
        if self._hangs and not self.killed:
            raise subprocess.TimeoutExpired(self.args, timeout)
        self.returncode = -9 if self.killed else self._exit_code
        return self.returncode

    def kill(self):
        self.killed = True


class FakePopen:
    """Stands in for subprocess.Popen and records every spawn."""

    def __init__(self):
        self.calls = []
        self.processes = []
        self.responses = {}

    def respond(self, command, returncode=0, stdout=b"", stderr=b"", raises=None, hangs=False):
        self.responses[command] = (returncode, stdout, stderr, raises, hangs)

    def __call__(self, argv, **kwargs):
        self.calls.append((argv, kwargs))
        returncode, stdout, stderr, raises, hangs = self.responses.get(
            argv[1], (0, b"", b"", None, False)
        )
        if raises is not None:
            raise raises
        process = FakeProcess(argv, returncode, stdout, stderr, hangs)
        self.processes.append(process)
        return process


@pytest.fixture()
def fake_popen(monkeypatch):
    fake = FakePopen()
    fake.respond("rev-parse", stdout=b".git\n")
    monkeypatch.setattr(subprocess, "Popen", fake)
    return fake


@pytest.fixture()
def executor(fake_popen, tmp_path):
    return GitCommandExecutor(ExecutorConfig(working_directory=tmp_path))


def test_constructor_verifies_repository(fake_popen, tmp_path):
    executor = GitCommandExecutor(ExecutorConfig(working_directory=tmp_path))

    assert executor.working_directory == tmp_path.resolve()
    argv, kwargs = fake_popen.calls[0]
    assert argv == ["git", "rev-parse", "--git-dir"]
    assert kwargs["cwd"] == tmp_path.resolve()


def test_constructor_rejects_non_repository(fake_popen, tmp_path):
    fake_popen.respond("rev-parse", returncode=128, stderr=b"fatal: not a git repository")

    with pytest.raises(NotARepositoryError) as excinfo:
        GitCommandExecutor(ExecutorConfig(working_directory=tmp_path))

    assert "not a git repository" in str(excinfo.value)


def test_constructor_rejects_missing_directory(fake_popen, tmp_path):
    with pytest.raises(NotARepositoryError):
        GitCommandExecutor(ExecutorConfig(working_directory=tmp_path / "missing"))

    assert fake_popen.calls == []


def test_constructor_rejects_empty_path(fake_popen):
    with pytest.raises(ValidationError):
        GitCommandExecutor(ExecutorConfig(working_directory=""))


def test_execute_passes_argument_vector_and_environment(executor, fake_popen):
    fake_popen.respond("log", stdout=b"abc\n")

    result = executor.execute("log", ["--oneline", "--pretty=format:%H|%an"])

    argv, kwargs = fake_popen.calls[-1]
    assert argv == ["git", "log", "--oneline", "--pretty=format:%H|%an"]
    assert "shell" not in kwargs
    assert kwargs["stdin"] == subprocess.DEVNULL
    assert kwargs["stdout"] == subprocess.PIPE
    assert kwargs["env"]["LC_ALL"] == "C"
    assert kwargs["env"]["GIT_TERMINAL_PROMPT"] == "0"
    assert fake_popen.processes[-1].wait_timeout == 30.0
    assert result.output == "abc\n"
    assert result.exit_code == 0
    assert result.duration >= 0


def test_execute_uses_explicit_timeout(executor, fake_popen):
    executor.execute("status", timeout=2.5)

    assert fake_popen.processes[-1].wait_timeout == 2.5


def test_disallowed_command_never_spawns(executor, fake_popen):
    spawned = len(fake_popen.calls)

    with pytest.raises(CommandNotAllowedError):
        executor.execute("push", ["origin", "main"])

    assert len(fake_popen.calls) == spawned


@pytest.mark.parametrize(
    "arg",
    ["--format=%H; rm -rf /", "$(whoami)", "`id`", "a\x00b", "x" * 5000, "a && b", "out > file"],
)
def test_unsafe_argument_never_spawns(executor, fake_popen, arg):
    spawned = len(fake_popen.calls)

    with pytest.raises(InvalidArgumentError):
        executor.execute("log", ["--oneline", arg])

    assert len(fake_popen.calls) == spawned


def test_invalid_argument_reports_position(executor):
    with pytest.raises(InvalidArgumentError) as excinfo:
        executor.execute("log", ["--oneline", "--all", "a;b"])

    assert excinfo.value.position == 2


def test_timeout_kills_process(executor, fake_popen):
    fake_popen.respond("log", hangs=True)

    with pytest.raises(CommandTimeoutError) as excinfo:
        executor.execute("log", timeout=1.0)

    assert isinstance(excinfo.value, TimeoutError)
    assert excinfo.value.timeout == 1.0
    assert fake_popen.processes[-1].killed


def test_output_cap(fake_popen, tmp_path):
    executor = GitCommandExecutor(ExecutorConfig(working_directory=tmp_path, max_output_bytes=10))
    fake_popen.respond("log", stdout=b"x" * 11)

    with pytest.raises(OutputLimitExceededError) as excinfo:
        executor.execute("log")

    assert excinfo.value.limit == 10
    assert excinfo.value.size == 11
    assert fake_popen.processes[-1].killed


def test_output_cap_stops_reading_early(fake_popen, tmp_path):
    executor = GitCommandExecutor(ExecutorConfig(working_directory=tmp_path, max_output_bytes=10))
    fake_popen.respond("log", stdout=b"x" * (READ_CHUNK_BYTES * 4))

    with pytest.raises(OutputLimitExceededError) as excinfo:
        executor.execute("log")

    assert excinfo.value.size <= READ_CHUNK_BYTES
    assert fake_popen.processes[-1].killed


def test_output_at_cap_is_accepted(fake_popen, tmp_path):
    executor = GitCommandExecutor(ExecutorConfig(working_directory=tmp_path, max_output_bytes=10))
    fake_popen.respond("log", stdout=b"x" * 10)

    assert executor.execute("log").output == "x" * 10
    assert not fake_popen.processes[-1].killed


def test_nonzero_exit_maps_to_execution_error(executor, fake_popen):
    fake_popen.respond("log", returncode=128, stderr=b"fatal: bad revision\n")

    with pytest.raises(ExecutionError) as excinfo:
        executor.execute("log", ["nope"])

    assert excinfo.value.exit_code == 128
    assert "fatal: bad revision" in excinfo.value.stderr
    assert "fatal: bad revision" in str(excinfo.value)


def test_spawn_failure_maps_to_execution_error(executor, fake_popen):
    fake_popen.respond("log", raises=FileNotFoundError("git"))

    with pytest.raises(ExecutionError) as excinfo:
        executor.execute("log")

    assert excinfo.value.exit_code == -1


def test_invalid_utf8_is_replaced(executor, fake_popen):
    fake_popen.respond("log", stdout=b"caf\xe9\n")

    assert executor.execute("log").output == "caf�\n"


def test_validate_command_allows_pipe_separator():
    validate_command("log", ["--pretty=format:%H|%an|%ae", "--since=2024-01-01"])


@pytest.mark.parametrize("command", ["", "push", "log;rm", "LOG", "rev parse"])
def test_validate_command_rejects(command):
    with pytest.raises(CommandNotAllowedError):
        validate_command(command)


def test_validate_argument_rejects_non_string():
    with pytest.raises(InvalidArgumentError):
        validate_argument(42)


def test_executor_config_rejects_non_positive_limits(tmp_path):
    with pytest.raises(ValueError):
        ExecutorConfig(working_directory=tmp_path, default_timeout=0)
    with pytest.raises(ValueError):
        ExecutorConfig(working_directory=tmp_path, max_output_bytes=0)


@pytest.mark.integration
def test_real_git_log(git_repo: Path):
    executor = GitCommandExecutor(ExecutorConfig(working_directory=git_repo))

    result = executor.execute("log", ["--oneline"])

    assert len(result.output.strip().splitlines()) == 3


@pytest.mark.integration
def test_real_git_rejects_plain_directory(tmp_path: Path, monkeypatch):
    if not is_git_available():
        pytest.skip("git is not installed")
    plain = tmp_path / "plain"
    plain.mkdir()
    # A parent directory of tmp_path could itself be a repository.
    monkeypatch.setenv("GIT_CEILING_DIRECTORIES", str(tmp_path))

    with pytest.raises(NotARepositoryError):
        GitCommandExecutor(ExecutorConfig(working_directory=plain))


def test_get_git_version_maps_spawn_failure(monkeypatch):
    def missing_git(*args, **kwargs):
        raise FileNotFoundError("git")

    monkeypatch.setattr(subprocess, "run", missing_git)

    with pytest.raises(ExecutionError):
        get_git_version()


@pytest.mark.integration
def test_real_git_version():
    if not is_git_available():
        pytest.skip("git is not installed")

    assert get_git_version().startswith("git version")
