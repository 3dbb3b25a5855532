"""Core data models shared by the diff parser, graph builder, and queries."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional


class ChangeType(str, Enum):
    ADDED = "added"
    MODIFIED = "modified"
    DELETED = "deleted"
    RENAMED = "renamed"


class Language(str, Enum):
    """Lexical family a source file belongs to."""

    TYPESCRIPT = "typescript"
    PYTHON = "python"
    UNKNOWN = "unknown"


@dataclass(frozen=True)
class DiffHunk:
    """One contiguous block of changed lines.

    ``content`` keeps the diff prefix on every line; ``additions`` and
    ``deletions`` hold the same lines with the prefix stripped. Every content
    line is exactly one of an addition, a deletion, or a context line.
    """

    old_start: int
    old_lines: int
    new_start: int
    new_lines: int
    content: List[str] = field(default_factory=list)
    additions: List[str] = field(default_factory=list)
    deletions: List[str] = field(default_factory=list)
    context: List[str] = field(default_factory=list)


@dataclass(frozen=True)
class FileDiff:
    path: str
    change_type: ChangeType
    old_path: Optional[str] = None
    hunks: List[DiffHunk] = field(default_factory=list)

    @property
    def additions(self) -> int:
        return sum(len(h.additions) for h in self.hunks)

    @property
    def deletions(self) -> int:
        return sum(len(h.deletions) for h in self.hunks)


@dataclass
class ImportRecord:
    module: str
    named_imports: List[str] = field(default_factory=list)
    default_import: Optional[str] = None
    is_type_only: bool = False
    is_relative: bool = False
    raw: str = ""
    # names as written before any ``as`` alias; filled for ``from x import ...``
    imported_names: List[str] = field(default_factory=list)


@dataclass
class ExportRecord:
    named_exports: List[str] = field(default_factory=list)
    default_export: Optional[str] = None
    re_export_from: Optional[str] = None
    raw: str = ""


@dataclass(frozen=True)
class Resolution:
    """Outcome of resolving one import specifier.

    ``kind`` is ``resolved`` (``path`` set), ``external`` (``package`` set)
    or ``unresolved``.
    """

    kind: str
    path: Optional[str] = None
    package: Optional[str] = None

    @property
    def is_resolved(self) -> bool:
        return self.kind == "resolved"

    @property
    def is_external(self) -> bool:
        return self.kind == "external"


@dataclass
class GraphNode:
    path: str
    imports: List[str] = field(default_factory=list)
    imported_by: List[str] = field(default_factory=list)
    external_deps: List[str] = field(default_factory=list)
    language: Language = Language.UNKNOWN


@dataclass
class GraphMetadata:
    built_at: str
    root_dir: str
    file_count: int


@dataclass
class DependencyGraph:
    """Flat arena of nodes keyed by canonical path."""

    nodes: Dict[str, GraphNode]
    metadata: GraphMetadata

    def get(self, path: str) -> Optional[GraphNode]:
        return self.nodes.get(path)

    def __contains__(self, path: object) -> bool:
        return path in self.nodes

    def __len__(self) -> int:
        return len(self.nodes)


@dataclass
class AffectedFiles:
    directly_affected: List[str]
    transitively_affected: List[str]
    all_affected: List[str]
