"""Unified-diff parser producing per-file change records.

The parser is a single pass over the diff lines with an explicit state value:

- ``NO_FILE`` -- before the first ``diff --git`` header
- ``IN_FILE`` -- inside a file header block, before its first hunk
- ``IN_HUNK`` -- collecting hunk content lines

Malformed or unrecognised lines never raise; they are either treated as hunk
content (when one is open) or skipped.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Iterable, List, Optional

from .models import ChangeType, DiffHunk, FileDiff

logger = logging.getLogger(__name__)

FILE_HEADER_RE = re.compile(r"^diff --git a/(.*) b/(.*)$")
HUNK_HEADER_RE = re.compile(r"^@@ -(\d+)(?:,(\d+))? \+(\d+)(?:,(\d+))? @@")
RENAME_FROM_PREFIX = "rename from "
RENAME_TO_PREFIX = "rename to "


class ParserState(Enum):
    NO_FILE = "no_file"
    IN_FILE = "in_file"
    IN_HUNK = "in_hunk"


@dataclass
class _HunkBuilder:
    old_start: int
    old_lines: int
    new_start: int
    new_lines: int
    content: List[str] = field(default_factory=list)
    additions: List[str] = field(default_factory=list)
    deletions: List[str] = field(default_factory=list)
    context: List[str] = field(default_factory=list)

    def freeze(self) -> DiffHunk:
        return DiffHunk(
            old_start=self.old_start,
            old_lines=self.old_lines,
            new_start=self.new_start,
            new_lines=self.new_lines,
            content=list(self.content),
            additions=list(self.additions),
            deletions=list(self.deletions),
            context=list(self.context),
        )


@dataclass
class _FileBuilder:
    path: str
    change_type: ChangeType
    old_path: Optional[str] = None
    hunks: List[DiffHunk] = field(default_factory=list)

    def freeze(self) -> FileDiff:
        old_path = self.old_path if self.change_type == ChangeType.RENAMED else None
        return FileDiff(
            path=self.path,
            change_type=self.change_type,
            old_path=old_path,
            hunks=list(self.hunks),
        )


@dataclass
class _ParseContext:
    """Everything the scan carries between lines."""

    state: ParserState = ParserState.NO_FILE
    current_file: Optional[_FileBuilder] = None
    current_hunk: Optional[_HunkBuilder] = None
    results: List[FileDiff] = field(default_factory=list)

    def close_hunk(self) -> None:
        if self.current_hunk is not None and self.current_file is not None:
            self.current_file.hunks.append(self.current_hunk.freeze())
        self.current_hunk = None
        if self.current_file is not None:
            self.state = ParserState.IN_FILE

    def close_file(self) -> None:
        self.close_hunk()
        if self.current_file is not None:
            self.results.append(self.current_file.freeze())
        self.current_file = None
        self.state = ParserState.NO_FILE


def parse_hunk_header(line: str) -> Optional[_HunkBuilder]:
    """Return an empty hunk for a ``@@ -a,b +c,d @@`` header, else None.

    Omitted line counts default to 1.
    """
    match = HUNK_HEADER_RE.match(line)
    if not match:
        return None
    old_start, old_lines, new_start, new_lines = match.groups()
    return _HunkBuilder(
        old_start=int(old_start),
        old_lines=int(old_lines) if old_lines else 1,
        new_start=int(new_start),
        new_lines=int(new_lines) if new_lines else 1,
    )


def _start_file(ctx: _ParseContext, old_path: str, new_path: str) -> None:
    ctx.close_file()
    if old_path != new_path:
        ctx.current_file = _FileBuilder(
            path=new_path, change_type=ChangeType.RENAMED, old_path=old_path,
        )
    else:
        ctx.current_file = _FileBuilder(path=new_path, change_type=ChangeType.MODIFIED)
    ctx.state = ParserState.IN_FILE


def _apply_header_marker(current: _FileBuilder, line: str) -> None:
    """Handle the extended header lines between ``diff --git`` and the first hunk."""
    if line.startswith("new file mode"):
        current.change_type = ChangeType.ADDED
        current.old_path = None
    elif line.startswith("deleted file mode"):
        current.change_type = ChangeType.DELETED
        current.old_path = None
    elif line.startswith(RENAME_FROM_PREFIX):
        if current.change_type in (ChangeType.MODIFIED, ChangeType.RENAMED):
            current.change_type = ChangeType.RENAMED
            current.old_path = line[len(RENAME_FROM_PREFIX):]
    elif line.startswith(RENAME_TO_PREFIX):
        if current.change_type in (ChangeType.MODIFIED, ChangeType.RENAMED):
            current.change_type = ChangeType.RENAMED
            current.path = line[len(RENAME_TO_PREFIX):]


def _append_content(hunk: _HunkBuilder, line: str) -> None:
    if line.startswith("+") and not line.startswith("+++"):
        hunk.content.append(line)
        hunk.additions.append(line[1:])
    elif line.startswith("-") and not line.startswith("---"):
        hunk.content.append(line)
        hunk.deletions.append(line[1:])
    elif line == "" or line.startswith(" "):
        hunk.content.append(line)
        hunk.context.append(line)


def parse_diff_string(raw_diff: str) -> List[FileDiff]:
    """Parse raw ``git diff`` output into an ordered list of :class:`FileDiff`."""
    ctx = _ParseContext()
    if not raw_diff:
        return ctx.results

    lines = raw_diff.split("\n")
    # the final newline does not open another line
    if lines[-1] == "":
        lines.pop()

    for line in lines:
        if line.endswith("\r"):
            line = line[:-1]

        file_match = FILE_HEADER_RE.match(line)
        if file_match:
            _start_file(ctx, file_match.group(1), file_match.group(2))
            continue

        if ctx.state is ParserState.NO_FILE:
            continue

        hunk = parse_hunk_header(line)
        if hunk is not None:
            ctx.close_hunk()
            ctx.current_hunk = hunk
            ctx.state = ParserState.IN_HUNK
            continue

        if ctx.state is ParserState.IN_FILE:
            assert ctx.current_file is not None
            if not ctx.current_file.hunks:
                _apply_header_marker(ctx.current_file, line)
            continue

        assert ctx.current_hunk is not None
        _append_content(ctx.current_hunk, line)

    ctx.close_file()
    logger.debug("Parsed %d file diff(s)", len(ctx.results))
    return ctx.results


def parse_changed_files(changed_files: Iterable[str]) -> List[FileDiff]:
    """Build hunkless ``modified`` entries for a bare list of changed paths."""
    return [
        FileDiff(path=path, change_type=ChangeType.MODIFIED)
        for path in changed_files
        if path
    ]
