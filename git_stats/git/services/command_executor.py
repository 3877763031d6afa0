"""Hardened execution of git subcommands."""

import logging
import os
import re
import shutil
import subprocess
import threading
import time
from collections.abc import Sequence
from pathlib import Path

from git_stats.git.domain.errors import (
    CommandNotAllowedError,
    CommandTimeoutError,
    ExecutionError,
    InvalidArgumentError,
    NotARepositoryError,
    OutputLimitExceededError,
    ValidationError,
)
from git_stats.git.domain.value_objects import (
    DEFAULT_ALLOWED_COMMANDS,
    MAX_ARGUMENT_LENGTH,
    CommandResult,
    ExecutorConfig,
)
from git_stats.git.repositories.interfaces import CommandExecutor

logger = logging.getLogger(__name__)

COMMAND_PATTERN = re.compile(r"^[A-Za-z0-9_-]+$")
READ_CHUNK_BYTES = 64 * 1024

# No pipe: log format strings use it as a field separator.
DANGEROUS_CHARACTERS: tuple[str, ...] = (";", "&", "`", "$", "(", ")", "<", ">", "\\")

GIT_ENVIRONMENT: dict[str, str] = {
    "LC_ALL": "C",
    "GIT_PAGER": "",
    "GIT_EDITOR": "",
    "GIT_TERMINAL_PROMPT": "0",
    "GIT_ASKPASS": "echo",
}


def validate_command(
    command: str,
    args: Sequence[str] = (),
    allowed_commands: frozenset[str] = DEFAULT_ALLOWED_COMMANDS,
) -> None:
    """
    Check a git subcommand and its arguments before anything is spawned.

    Args:
        command: Git subcommand name
        args: Arguments that will follow the subcommand
        allowed_commands: Allow-list of subcommands

    Raises:
        CommandNotAllowedError: If the command is empty, malformed or not allowed
        InvalidArgumentError: If an argument is unsafe
    """
    if not command or not COMMAND_PATTERN.match(command) or command not in allowed_commands:
        raise CommandNotAllowedError(command)

    for position, arg in enumerate(args):
        validate_argument(arg, position)


def validate_argument(arg: str, position: int = 0) -> None:
    """
    Check a single argument for injection safety.

    Raises:
        InvalidArgumentError: If the argument holds a null byte, is too long
            or contains a shell metacharacter
    """
    if not isinstance(arg, str):
        raise InvalidArgumentError(position, f"argument must be a string, got {type(arg).__name__}")
    if "\x00" in arg:
        raise InvalidArgumentError(position, "argument contains null byte")
    if len(arg) > MAX_ARGUMENT_LENGTH:
        raise InvalidArgumentError(
            position, f"argument too long (max {MAX_ARGUMENT_LENGTH} characters): {len(arg)}"
        )
    for char in DANGEROUS_CHARACTERS:
        if char in arg:
            raise InvalidArgumentError(position, f"argument contains dangerous character {char!r}")


def is_git_available(git_binary: str = "git") -> bool:
    """Check if git is available in the system PATH."""
    return shutil.which(git_binary) is not None


def get_git_version(git_binary: str = "git") -> str:
    """
    Return the version string of the installed git.

    Raises:
        ExecutionError: If git cannot be run
    """
    try:
        result = subprocess.run(
            [git_binary, "--version"],
            capture_output=True,
            text=True,
            check=True,
            timeout=10,
        )
    except (OSError, subprocess.SubprocessError) as e:
        raise ExecutionError("--version", str(e)) from e
    return result.stdout.strip()


class _PipeReader:
    """Drains a child's stdout and stderr on background threads.

    The child is killed as soon as stdout grows past ``limit`` bytes, so at
    most one chunk beyond the cap is ever held in memory.
    """

    def __init__(self, process: subprocess.Popen, limit: int) -> None:
        self._process = process
        self._limit = limit
        self._stdout: list[bytes] = []
        self._stderr = b""
        self.size = 0
        self.overflowed = False
        self._threads = [
            threading.Thread(target=self._read_stdout, daemon=True),
            threading.Thread(target=self._read_stderr, daemon=True),
        ]
        for thread in self._threads:
            thread.start()

    def _read_stdout(self) -> None:
        for chunk in iter(lambda: self._process.stdout.read1(READ_CHUNK_BYTES), b""):
            self.size += len(chunk)
            if self.size > self._limit:
                self.overflowed = True
                self._process.kill()
                return
            self._stdout.append(chunk)

    def _read_stderr(self) -> None:
        self._stderr = self._process.stderr.read()

    def join(self) -> tuple[bytes, bytes]:
        """Wait for both readers and return ``(stdout, stderr)``."""
        for thread in self._threads:
            thread.join()
        self._process.stdout.close()
        self._process.stderr.close()
        return b"".join(self._stdout), self._stderr


class GitCommandExecutor(CommandExecutor):
    """Runs allow-listed git subcommands in a fixed repository directory."""

    def __init__(self, config: ExecutorConfig) -> None:
        """
        Initialize the executor and verify the working directory.

        Args:
            config: Executor configuration; its working directory must be a repository

        Raises:
            ValidationError: If the working directory path is empty
            NotARepositoryError: If the directory is missing or not a repository
        """
        if not str(config.working_directory).strip():
            raise ValidationError("working directory path cannot be empty", field="working_directory")

        path = Path(config.working_directory).expanduser().resolve()
        if not path.is_dir():
            raise NotARepositoryError(str(path), "directory does not exist")

        self._config = ExecutorConfig(
            working_directory=path,
            default_timeout=config.default_timeout,
            max_output_bytes=config.max_output_bytes,
            allowed_commands=config.allowed_commands,
            git_binary=config.git_binary,
        )
        self._environment = {**os.environ, **GIT_ENVIRONMENT}
        self._verify_repository()

    @property
    def config(self) -> ExecutorConfig:
        return self._config

    @property
    def working_directory(self) -> Path:
        return self._config.working_directory

    def execute(
        self, command: str, args: Sequence[str] = (), timeout: float | None = None
    ) -> CommandResult:
        """
        Run ``git <command> <args...>`` with a deadline and an output cap.

        Args:
            command: Git subcommand, checked against the allow-list
            args: Arguments, each checked for injection safety
            timeout: Deadline in seconds. Defaults to the configured timeout

        Returns:
            CommandResult with the decoded stdout

        Raises:
            CommandNotAllowedError: If the command is not allowed
            InvalidArgumentError: If an argument is unsafe
            CommandTimeoutError: If the deadline expires; the process is killed
            OutputLimitExceededError: If stdout is larger than the configured cap
            ExecutionError: If git exits non-zero or cannot be spawned
        """
        args = list(args)
        validate_command(command, args, self._config.allowed_commands)
        deadline = timeout if timeout is not None else self._config.default_timeout
        limit = self._config.max_output_bytes

        logger.debug("Running git %s %s in %s", command, " ".join(args), self.working_directory)
        started = time.monotonic()
        try:
            process = subprocess.Popen(
                [self._config.git_binary, command, *args],
                cwd=self.working_directory,
                env=self._environment,
                stdin=subprocess.DEVNULL,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
            )
        except OSError as e:
            logger.warning("Failed to spawn git %s: %s", command, e)
            raise ExecutionError(command, f"failed to spawn git: {e}") from e

        pipes = _PipeReader(process, limit)
        try:
            returncode = process.wait(timeout=deadline)
        except subprocess.TimeoutExpired as e:
            process.kill()
            process.wait()
            pipes.join()
            logger.warning("git %s timed out after %ss", command, deadline)
            raise CommandTimeoutError(command, deadline) from e
        stdout, stderr_bytes = pipes.join()
        duration = time.monotonic() - started

        if pipes.overflowed:
            logger.warning("git %s output exceeded %d bytes; process killed", command, limit)
            raise OutputLimitExceededError(command, limit, pipes.size)

        stderr = stderr_bytes.decode("utf-8", errors="replace")
        if returncode != 0:
            logger.warning("git %s exited with status %d", command, returncode)
            raise ExecutionError(
                command,
                stderr.strip() or f"exit status {returncode}",
                exit_code=returncode,
                stderr=stderr,
            )

        logger.debug("git %s finished in %.3fs with %d bytes", command, duration, len(stdout))
        return CommandResult(
            output=stdout.decode("utf-8", errors="replace"),
            exit_code=returncode,
            duration=duration,
            stderr=stderr,
        )

    def _verify_repository(self) -> None:
        try:
            self.execute("rev-parse", ["--git-dir"])
        except CommandNotAllowedError as e:
            raise NotARepositoryError(
                str(self.working_directory), "rev-parse is not in the allow-list"
            ) from e
        except ExecutionError as e:
            raise NotARepositoryError(str(self.working_directory), e.stderr.strip() or None) from e
