"""Error types raised by the git-stats core."""


class GitStatsError(Exception):
    """Base class for all git-stats errors."""

    def suggestion(self) -> str:
        """Return a short recovery hint for the user."""
        return "An unexpected error occurred. Check the error message for details."


class ValidationError(GitStatsError):
    """Invalid input: repository path, command, argument, regex or date expression."""

    def __init__(self, message: str, field: str | None = None) -> None:
        self.field = field
        self.message = message
        if field:
            super().__init__(f"validation error in field '{field}': {message}")
        else:
            super().__init__(f"validation error: {message}")

    def suggestion(self) -> str:
        return "Check the supplied options and try again."


class CommandNotAllowedError(ValidationError):
    """The git subcommand is not in the executor's allow-list."""

    def __init__(self, command: str) -> None:
        self.command = command
        super().__init__(f"command not allowed: {command!r}", field="command")

    def suggestion(self) -> str:
        return "Only read-only git commands can be executed."


class InvalidArgumentError(ValidationError):
    """A command argument failed the injection-safety checks."""

    def __init__(self, position: int, reason: str) -> None:
        self.position = position
        self.reason = reason
        super().__init__(f"invalid argument at position {position}: {reason}", field="args")


class NotARepositoryError(GitStatsError):
    """The working directory is not inside a git repository."""

    def __init__(self, path: str, detail: str | None = None) -> None:
        self.path = path
        message = f"not a git repository: {path}"
        if detail:
            message = f"{message} ({detail})"
        super().__init__(message)

    def suggestion(self) -> str:
        return (
            "Make sure you're running this inside a git repository. "
            "Use 'git init' to initialize a new repository."
        )


class ExecutionError(GitStatsError):
    """A git process exited with a non-zero status or could not be spawned."""

    def __init__(
        self,
        command: str,
        message: str,
        exit_code: int = -1,
        stderr: str = "",
    ) -> None:
        self.command = command
        self.exit_code = exit_code
        self.stderr = stderr
        super().__init__(f"git {command} failed: {message}")

    def suggestion(self) -> str:
        if self.exit_code == -1:
            return "Git is not installed or not found in PATH."
        return "Run the git command manually to inspect the failure."


class OutputLimitExceededError(ExecutionError):
    """Captured stdout grew past the configured byte cap."""

    def __init__(self, command: str, limit: int, size: int) -> None:
        self.limit = limit
        self.size = size
        super().__init__(
            command,
            f"output exceeds maximum size limit ({size} > {limit} bytes)",
            exit_code=0,
        )

    def suggestion(self) -> str:
        return "Narrow the analysis with a date range or a commit limit."


class CommandTimeoutError(GitStatsError, TimeoutError):
    """A git process did not finish before its deadline and was killed."""

    def __init__(self, command: str, timeout: float) -> None:
        self.command = command
        self.timeout = timeout
        super().__init__(f"git {command} timed out after {timeout:g}s")

    def suggestion(self) -> str:
        return "Command timed out. Try a narrower date range or a commit limit for large repositories."
