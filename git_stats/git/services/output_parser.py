"""Lenient parsers for git command output.

Every parser drops malformed input instead of raising.
"""

import logging
import re
from datetime import datetime

from git_stats.git.domain.entities import Commit, Contributor
from git_stats.git.domain.value_objects import Author, CommitStats, FileChange, FileChangeType

logger = logging.getLogger(__name__)

LOG_FIELD_SEPARATOR = "|"
LOG_FIELD_COUNT = 10
# Fields before the subject and after it are positional; the subject may contain "|".
LOG_LEADING_FIELDS = 7
LOG_TRAILING_FIELDS = 2

GIT_DATE_FORMATS: tuple[str, ...] = (
    "%Y-%m-%d %H:%M:%S %z",
    "%Y-%m-%dT%H:%M:%S%z",
    "%Y-%m-%d %H:%M:%S",
    "%Y-%m-%d",
)

NUMSTAT_PATTERN = re.compile(r"^(\d+|-)\t(\d+|-)\t(.+)$")
BRACE_RENAME_PATTERN = re.compile(r"^(?P<prefix>.*)\{(?P<old>[^{}]*) => (?P<new>[^{}]*)\}(?P<suffix>.*)$")
SHORTLOG_PATTERN = re.compile(r"^\s*(\d+)\s+(.+?)\s*<([^<>]*)>\s*$")
DIFFSTAT_FILE_PATTERN = re.compile(r"^\s*(?P<path>.+?)\s+\|\s+(?P<detail>.*)$")
DIFFSTAT_COUNT_PATTERN = re.compile(r"^(?P<count>\d+)\s*(?P<graph>[+-]*)\s*$")
DIFFSTAT_TOTAL_PATTERN = re.compile(r"^\s*(\d+) files? changed")
DIFFSTAT_INSERTIONS_PATTERN = re.compile(r"(\d+) insertions?\(\+\)")
DIFFSTAT_DELETIONS_PATTERN = re.compile(r"(\d+) deletions?\(-\)")


def parse_git_date(value: str) -> datetime:
    """
    Parse a git ``--date=iso`` timestamp, keeping its original offset.

    Args:
        value: Date such as ``2024-01-15 10:30:00 -0800``

    Returns:
        Datetime as parsed, aware when the input carries an offset

    Raises:
        ValueError: If no supported format matches
    """
    text = value.strip()
    for date_format in GIT_DATE_FORMATS:
        try:
            return datetime.strptime(text, date_format)
        except ValueError:
            continue
    raise ValueError(f"unrecognized git date: {value!r}")


def infer_change_type(insertions: int, deletions: int, renamed: bool = False) -> FileChangeType:
    """
    Guess a file's change type from its line counts.

    This is a heuristic, not diff semantics: numstat output carries no status,
    so a file with only insertions is reported as added and one with only
    deletions as deleted.
    """
    if renamed:
        return FileChangeType.RENAMED
    if insertions > 0 and deletions == 0:
        return FileChangeType.ADDED
    if insertions == 0 and deletions > 0:
        return FileChangeType.DELETED
    return FileChangeType.MODIFIED


def split_rename(path: str) -> tuple[str, str | None]:
    """
    Split numstat rename notation into ``(new_path, old_path)``.

    Handles ``old => new`` and ``dir/{old => new}/file``; other paths come
    back unchanged with no old path.
    """
    match = BRACE_RENAME_PATTERN.match(path)
    if match:
        prefix, suffix = match.group("prefix"), match.group("suffix")
        old = f"{prefix}{match.group('old')}{suffix}".replace("//", "/")
        new = f"{prefix}{match.group('new')}{suffix}".replace("//", "/")
        return new, old
    if " => " in path:
        old, new = path.split(" => ", 1)
        return new, old
    return path, None


def parse_numstat_line(line: str) -> FileChange | None:
    """Parse ``insertions<TAB>deletions<TAB>path``; ``-`` marks a binary file."""
    match = NUMSTAT_PATTERN.match(line)
    if not match:
        return None
    raw_insertions, raw_deletions, raw_path = match.groups()
    is_binary = raw_insertions == "-" or raw_deletions == "-"
    insertions = 0 if raw_insertions == "-" else int(raw_insertions)
    deletions = 0 if raw_deletions == "-" else int(raw_deletions)
    path, old_path = split_rename(raw_path.strip())
    return FileChange(
        path=path,
        change_type=infer_change_type(insertions, deletions, renamed=old_path is not None),
        insertions=insertions,
        deletions=deletions,
        old_path=old_path,
        is_binary=is_binary,
    )


def _parse_header(line: str) -> Commit | None:
    fields = line.split(LOG_FIELD_SEPARATOR)
    if len(fields) < LOG_FIELD_COUNT:
        return None
    leading = fields[:LOG_LEADING_FIELDS]
    subject = LOG_FIELD_SEPARATOR.join(fields[LOG_LEADING_FIELDS:-LOG_TRAILING_FIELDS])
    parents, tree_hash = fields[-LOG_TRAILING_FIELDS:]
    (
        commit_hash,
        author_name,
        author_email,
        author_date,
        committer_name,
        committer_email,
        committer_date,
    ) = (value.strip() for value in leading)

    if not commit_hash or " " in commit_hash:
        return None
    try:
        parsed_author_date = parse_git_date(author_date)
        parsed_committer_date = parse_git_date(committer_date)
    except ValueError:
        return None

    return Commit(
        hash=commit_hash,
        message=subject.strip(),
        author=Author(name=author_name, email=author_email),
        committer=Author(name=committer_name, email=committer_email),
        author_date=parsed_author_date,
        committer_date=parsed_committer_date,
        parent_hashes=tuple(parents.split()),
        tree_hash=tree_hash.strip(),
    )


def _with_files(commit: Commit, files: list[FileChange]) -> Commit:
    return Commit(
        hash=commit.hash,
        message=commit.message,
        author=commit.author,
        committer=commit.committer,
        author_date=commit.author_date,
        committer_date=commit.committer_date,
        parent_hashes=commit.parent_hashes,
        tree_hash=commit.tree_hash,
        stats=CommitStats.from_files(tuple(files)),
    )


def parse_commit_log(text: str) -> list[Commit]:
    """
    Parse ``git log --pretty=format:%H|%an|%ae|%ad|%cn|%ce|%cd|%s|%P|%T --numstat``.

    Args:
        text: Raw log output

    Returns:
        Commits in log order. A block whose header does not split into the
        expected fields is dropped together with its numstat lines. Other
        unrecognized lines inside a block are skipped.
    """
    commits: list[Commit] = []
    current: Commit | None = None
    files: list[FileChange] = []
    skipping = False
    # A block starts at the first line or after a blank line that ends numstat lines.
    block_start = True
    after_numstat = False

    for raw_line in text.splitlines():
        line = raw_line.rstrip("\r")
        if not line.strip():
            if after_numstat:
                block_start = True
            continue

        file_change = parse_numstat_line(line)
        if file_change is not None:
            if current is not None:
                files.append(file_change)
            elif not skipping:
                logger.debug("Dropping numstat line without a commit header: %r", line)
            after_numstat, block_start = True, False
            continue

        after_numstat = False
        header = _parse_header(line)
        if header is None and not block_start:
            logger.debug("Skipping unrecognized line in commit block: %r", line)
            continue

        block_start = False
        if current is not None:
            commits.append(_with_files(current, files))
        current, files = header, []
        skipping = current is None
        if skipping:
            logger.debug("Dropping malformed commit header: %r", line)

    if current is not None:
        commits.append(_with_files(current, files))

    logger.debug("Parsed %d commits", len(commits))
    return commits


def _split_graph(count: int, graph: str) -> tuple[int, int]:
    plus, minus = graph.count("+"), graph.count("-")
    if plus + minus == 0:
        return 0, 0
    if plus + minus == count:
        return plus, minus
    # The graph is scaled for wide changes: share the real count by its ratio.
    insertions = round(count * plus / (plus + minus))
    return insertions, count - insertions


def parse_diff_stat(text: str) -> CommitStats:
    """
    Parse ``git diff --stat`` output.

    Args:
        text: Per-file ``path | N +-`` lines and an optional totals line

    Returns:
        CommitStats whose totals are read verbatim from the totals line.
        Without a totals line the per-file lines are summed.
    """
    files: list[FileChange] = []
    totals: tuple[int, int, int] | None = None

    for line in text.splitlines():
        if not line.strip():
            continue

        total_match = DIFFSTAT_TOTAL_PATTERN.match(line)
        if total_match:
            insertions = DIFFSTAT_INSERTIONS_PATTERN.search(line)
            deletions = DIFFSTAT_DELETIONS_PATTERN.search(line)
            totals = (
                int(total_match.group(1)),
                int(insertions.group(1)) if insertions else 0,
                int(deletions.group(1)) if deletions else 0,
            )
            continue

        file_match = DIFFSTAT_FILE_PATTERN.match(line)
        if not file_match:
            logger.debug("Dropping unrecognized diffstat line: %r", line)
            continue

        path, old_path = split_rename(file_match.group("path").strip())
        detail = file_match.group("detail").strip()
        if detail.startswith("Bin"):
            files.append(
                FileChange(
                    path=path,
                    change_type=infer_change_type(0, 0, renamed=old_path is not None),
                    old_path=old_path,
                    is_binary=True,
                )
            )
            continue

        count_match = DIFFSTAT_COUNT_PATTERN.match(detail)
        if not count_match:
            logger.debug("Dropping unrecognized diffstat line: %r", line)
            continue
        insertions, deletions = _split_graph(
            int(count_match.group("count")), count_match.group("graph")
        )
        files.append(
            FileChange(
                path=path,
                change_type=infer_change_type(insertions, deletions, renamed=old_path is not None),
                insertions=insertions,
                deletions=deletions,
                old_path=old_path,
            )
        )

    if totals is None:
        return CommitStats.from_files(tuple(files))

    files_changed, insertions, deletions = totals
    return CommitStats(
        files_changed=files_changed,
        insertions=insertions,
        deletions=deletions,
        files=tuple(files),
    )


def parse_contributors(text: str) -> list[Contributor]:
    """
    Parse ``git shortlog -sne`` output.

    Args:
        text: Lines of ``<count><whitespace>Name <email>``

    Returns:
        Contributors carrying only name, email and commit count; other lines
        are skipped.
    """
    contributors: list[Contributor] = []
    for line in text.splitlines():
        match = SHORTLOG_PATTERN.match(line)
        if not match:
            if line.strip():
                logger.debug("Dropping malformed shortlog line: %r", line)
            continue
        count, name, email = match.groups()
        contributors.append(
            Contributor(name=name.strip(), email=email.strip(), total_commits=int(count))
        )
    return contributors


def parse_branches(text: str) -> list[str]:
    """
    Parse ``git branch -a`` output.

    Args:
        text: Branch listing with ``* `` marking the current branch

    Returns:
        Branch names in listing order, remotes as ``<remote>/<name>``, without
        symbolic refs, detached-HEAD markers or duplicates.
    """
    branches: list[str] = []
    seen: set[str] = set()
    for line in text.splitlines():
        name = line.strip()
        if name.startswith("* ") or name.startswith("+ "):
            name = name[2:].strip()
        if not name or " -> " in name or name.startswith("("):
            continue
        if name.startswith("remotes/"):
            name = name[len("remotes/"):]
        if name not in seen:
            seen.add(name)
            branches.append(name)
    return branches
