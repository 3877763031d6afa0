"""Value objects for commit filtering."""

from dataclasses import dataclass
from datetime import date, datetime
from enum import Enum


class AuthorMatchType(str, Enum):
    """How an author pattern is compared with a commit author."""

    EXACT = "exact"
    CONTAINS = "contains"
    REGEX = "regex"
    EMAIL = "email"
    EMAIL_DOMAIN = "email_domain"
    NAME = "name"

    @classmethod
    def parse(cls, value: str) -> "AuthorMatchType":
        """Parse a match type name; unknown names fall back to CONTAINS."""
        try:
            return cls(value.strip().lower().replace("-", "_"))
        except ValueError:
            return cls.CONTAINS


class MessageMatchType(str, Enum):
    """How a message pattern is compared with a commit subject."""

    CONTAINS = "contains"
    STARTS_WITH = "starts_with"
    ENDS_WITH = "ends_with"
    REGEX = "regex"

    @property
    def label(self) -> str:
        return self.value.replace("_", " ")


class FileMatchType(str, Enum):
    """How a file pattern is compared with a changed path."""

    EXACT = "exact"
    CONTAINS = "contains"
    GLOB = "glob"
    REGEX = "regex"


@dataclass(frozen=True)
class SizeBounds:
    """Optional min/max bounds on a commit's size; 0 or None means unconstrained."""

    min_insertions: int | None = None
    max_insertions: int | None = None
    min_deletions: int | None = None
    max_deletions: int | None = None
    min_files: int | None = None
    max_files: int | None = None

    @property
    def is_constrained(self) -> bool:
        return any(
            value
            for value in (
                self.min_insertions,
                self.max_insertions,
                self.min_deletions,
                self.max_deletions,
                self.min_files,
                self.max_files,
            )
        )


@dataclass(frozen=True)
class FilterOptions:
    """Everything a caller can ask the filter builder for.

    ``since`` and ``until`` may be date expressions such as ``2024-01-15`` or
    ``2 weeks ago``. ``date_range`` names a period (``last month``) or a
    relative start (``6 months ago``); explicit bounds take precedence over it.
    """

    since: date | datetime | str | None = None
    until: date | datetime | str | None = None
    date_range: str | None = None
    author: str | None = None
    author_match_type: AuthorMatchType = AuthorMatchType.CONTAINS
    author_case_sensitive: bool = False
    branches: tuple[str, ...] = ()
    message: str | None = None
    message_match_type: MessageMatchType = MessageMatchType.CONTAINS
    message_case_sensitive: bool = False
    size: SizeBounds = SizeBounds()
    include_files: tuple[str, ...] = ()
    exclude_files: tuple[str, ...] = ()
    file_match_type: FileMatchType = FileMatchType.GLOB
    case_sensitive: bool = False
    include_merges: bool = True
    limit: int = 0
