"""Dependency graph construction and its cache wire format."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Dict, Iterator, List, Mapping, Set, Tuple

from .imports import extract_imports
from .models import DependencyGraph, GraphMetadata, GraphNode, ImportRecord, Language
from .resolver import detect_language, normalize_path, resolve

logger = logging.getLogger(__name__)


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


def _submodule_targets(
    record: ImportRecord,
    path: str,
    available: Set[str],
    language: Language,
) -> List[str]:
    """Files named by ``from .pkg import mod`` when ``mod`` is itself a module."""
    if language != Language.PYTHON or not record.is_relative:
        return []
    prefix = record.module if record.module.endswith(".") else record.module + "."
    targets: List[str] = []
    for name in record.imported_names:
        resolution = resolve(prefix + name, path, available, language)
        if resolution.is_resolved:
            targets.append(resolution.path)
    return targets


def build_dependency_graph(files: Mapping[str, str], root_dir: str = "") -> DependencyGraph:
    """Build the bidirectional import graph for *files* (path -> content).

    Files in an unrecognised language get no node but still count as
    resolution targets. Node order follows *files*; ``imports`` keep
    first-seen order and ``imported_by`` the order edges are discovered.
    """
    available: Set[str] = {normalize_path(path) for path in files}
    nodes: Dict[str, GraphNode] = {}

    # Pass 1: one node per recognised file, forward edges only
    for file_path, content in files.items():
        path = normalize_path(file_path)
        language = detect_language(path)
        if language == Language.UNKNOWN:
            continue

        imports: List[str] = []
        external_deps: List[str] = []
        for record in extract_imports(content, language):
            resolution = resolve(record.module, path, available, language)
            if resolution.is_external:
                if resolution.package and resolution.package not in external_deps:
                    external_deps.append(resolution.package)
                continue

            targets = [resolution.path] if resolution.is_resolved else []
            targets.extend(_submodule_targets(record, path, available, language))
            for target in targets:
                if target != path and target not in imports:
                    imports.append(target)

        nodes[path] = GraphNode(
            path=path,
            imports=imports,
            imported_by=[],
            external_deps=external_deps,
            language=language,
        )

    # Pass 2: reverse edges
    for path, node in nodes.items():
        for target in node.imports:
            target_node = nodes.get(target)
            if target_node is not None and path not in target_node.imported_by:
                target_node.imported_by.append(path)

    graph = DependencyGraph(
        nodes=nodes,
        metadata=GraphMetadata(
            built_at=_now_iso(),
            root_dir=root_dir,
            file_count=len(nodes),
        ),
    )
    logger.info(
        "Built dependency graph: %d nodes, %d edges",
        len(nodes), sum(1 for _ in iter_edges(graph)),
    )
    return graph


def iter_edges(graph: DependencyGraph) -> Iterator[Tuple[str, str]]:
    """Yield ``(importer, imported)`` pairs in node order."""
    for path, node in graph.nodes.items():
        for target in node.imports:
            yield path, target


# ---------------------------------------------------------------------------
# Wire format
# ---------------------------------------------------------------------------

def _node_to_dict(node: GraphNode) -> Dict[str, Any]:
    return {
        "path": node.path,
        "imports": list(node.imports),
        "importedBy": list(node.imported_by),
        "externalDeps": list(node.external_deps),
        "language": node.language.value,
    }


def _node_from_dict(data: Mapping[str, Any]) -> GraphNode:
    return GraphNode(
        path=data["path"],
        imports=list(data.get("imports", [])),
        imported_by=list(data.get("importedBy", [])),
        external_deps=list(data.get("externalDeps", [])),
        language=Language(data.get("language", Language.UNKNOWN.value)),
    )


def serialize_graph(graph: DependencyGraph) -> Dict[str, Any]:
    """Convert *graph* to the JSON-ready cache structure."""
    return {
        "nodes": {path: _node_to_dict(node) for path, node in graph.nodes.items()},
        "metadata": {
            "builtAt": graph.metadata.built_at,
            "rootDir": graph.metadata.root_dir,
            "fileCount": graph.metadata.file_count,
        },
    }


def deserialize_graph(data: Mapping[str, Any]) -> DependencyGraph:
    """Inverse of :func:`serialize_graph`."""
    nodes = {path: _node_from_dict(node) for path, node in data["nodes"].items()}
    meta = data["metadata"]
    return DependencyGraph(
        nodes=nodes,
        metadata=GraphMetadata(
            built_at=meta["builtAt"],
            root_dir=meta["rootDir"],
            file_count=int(meta["fileCount"]),
        ),
    )
