"""Value objects for Git domain."""

from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from enum import Enum
from pathlib import Path

DEFAULT_TIMEOUT_SECONDS = 30.0
DEFAULT_MAX_OUTPUT_BYTES = 100 * 1024 * 1024
MAX_ARGUMENT_LENGTH = 4096

DEFAULT_ALLOWED_COMMANDS: frozenset[str] = frozenset(
    {
        "log",
        "shortlog",
        "branch",
        "rev-list",
        "rev-parse",
        "config",
        "status",
        "version",
    }
)

# Test fixtures may need to create repositories.
FIXTURE_ALLOWED_COMMANDS: frozenset[str] = DEFAULT_ALLOWED_COMMANDS | {"init"}


class FileChangeType(str, Enum):
    """Type of file change in a commit."""

    ADDED = "added"
    MODIFIED = "modified"
    DELETED = "deleted"
    RENAMED = "renamed"
    COPIED = "copied"

    @property
    def code(self) -> str:
        """One-letter git status code."""
        return self.name[0]

    @classmethod
    def from_status(cls, status: str) -> "FileChangeType":
        """Parse a git status code (``A``, ``M``, ``R100``...) to FileChangeType."""
        status_code = status[0].upper() if status else ""
        match status_code:
            case "A":
                return cls.ADDED
            case "M":
                return cls.MODIFIED
            case "D":
                return cls.DELETED
            case "R":
                return cls.RENAMED
            case "C":
                return cls.COPIED
            case _:
                return cls.MODIFIED


@dataclass(frozen=True)
class Author:
    """Name and email of a commit author or committer."""

    name: str
    email: str

    def __str__(self) -> str:
        return f"{self.name} <{self.email}>"


@dataclass(frozen=True)
class FileChange:
    """Information about a file change in a commit."""

    path: str
    change_type: FileChangeType
    insertions: int = 0
    deletions: int = 0
    old_path: str | None = None  # For renamed/copied files
    is_binary: bool = False

    @property
    def lines_changed(self) -> int:
        return self.insertions + self.deletions

    @property
    def extension(self) -> str:
        """File extension without the dot, or an empty string."""
        name = self.path.rsplit("/", 1)[-1]
        if "." not in name.lstrip("."):
            return ""
        return name.rsplit(".", 1)[-1]


@dataclass(frozen=True)
class CommitStats:
    """Aggregate line and file statistics of a commit."""

    files_changed: int = 0
    insertions: int = 0
    deletions: int = 0
    files: tuple[FileChange, ...] = ()

    @classmethod
    def from_files(cls, files: tuple[FileChange, ...]) -> "CommitStats":
        return cls(
            files_changed=len(files),
            insertions=sum(f.insertions for f in files),
            deletions=sum(f.deletions for f in files),
            files=files,
        )


@dataclass(frozen=True)
class CommandResult:
    """Raw result of a single git invocation."""

    output: str
    exit_code: int
    duration: float
    stderr: str = ""


@dataclass(frozen=True)
class ExecutorConfig:
    """Immutable configuration of a command executor."""

    working_directory: Path
    default_timeout: float = DEFAULT_TIMEOUT_SECONDS
    max_output_bytes: int = DEFAULT_MAX_OUTPUT_BYTES
    allowed_commands: frozenset[str] = DEFAULT_ALLOWED_COMMANDS
    git_binary: str = "git"

    def __post_init__(self) -> None:
        """Validate the limits."""
        if self.default_timeout <= 0:
            raise ValueError("default_timeout must be positive")
        if self.max_output_bytes <= 0:
            raise ValueError("max_output_bytes must be positive")


def is_later(left: date | datetime, right: date | datetime) -> bool:
    """
    True if ``left`` is strictly later than ``right``.

    A plain date on either side compares by calendar day. Naive and aware
    datetimes are compared by wall-clock time.
    """
    if not isinstance(left, datetime) or not isinstance(right, datetime):
        left_day = left.date() if isinstance(left, datetime) else left
        right_day = right.date() if isinstance(right, datetime) else right
        return left_day > right_day
    left, right = _aligned(left, right)
    return left > right


def _aligned(left: datetime, right: datetime) -> tuple[datetime, datetime]:
    if (left.tzinfo is None) != (right.tzinfo is None):
        return left.replace(tzinfo=None), right.replace(tzinfo=None)
    return left, right


def elapsed(start: datetime, end: datetime) -> timedelta:
    """Time from ``start`` to ``end``; wall-clock time when naive and aware values mix."""
    start, end = _aligned(start, end)
    return end - start


def earliest(moments: Iterable[datetime]) -> datetime | None:
    """Earliest of ``moments`` in the :func:`is_later` order, or None when empty."""
    result = None
    for moment in moments:
        if result is None or is_later(result, moment):
            result = moment
    return result


def latest(moments: Iterable[datetime]) -> datetime | None:
    """Latest of ``moments`` in the :func:`is_later` order, or None when empty."""
    result = None
    for moment in moments:
        if result is None or is_later(moment, result):
            result = moment
    return result


@dataclass(frozen=True)
class TimeRange:
    """Optional analysis window; either side may be open. Both bounds are inclusive."""

    start: date | datetime | None = None
    end: date | datetime | None = None

    @property
    def is_bounded(self) -> bool:
        return self.start is not None and self.end is not None

    def contains(self, moment: datetime) -> bool:
        if self.start is not None and is_later(self.start, moment):
            return False
        if self.end is not None and is_later(moment, self.end):
            return False
        return True


@dataclass(frozen=True)
class RepositoryInfo:
    """Metadata about the analysed repository."""

    path: Path
    name: str
    total_commits: int = 0
    first_commit: datetime | None = None
    last_commit: datetime | None = None
    branches: tuple[str, ...] = field(default_factory=tuple)
