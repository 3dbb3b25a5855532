"""Breadth-first reachability queries over a built dependency graph.

All traversal state is local to each call, so a single graph can be queried
from several threads at once. The graph itself is never modified.
"""

from __future__ import annotations

from collections import deque
from typing import Callable, Deque, Iterable, List, Set, Tuple

from .models import AffectedFiles, DependencyGraph, GraphNode
from .resolver import normalize_path

DEFAULT_MAX_DEPTH = 10

_TS_EXT_SUFFIXES = (".tsx", ".jsx", ".ts", ".js", ".mjs", ".cjs")


def _bfs(
    graph: DependencyGraph,
    start: str,
    max_depth: int,
    neighbours: Callable[[GraphNode], List[str]],
) -> List[str]:
    start = normalize_path(start)
    found: List[str] = []
    visited: Set[str] = {start}
    queue: Deque[Tuple[str, int]] = deque([(start, 0)])

    while queue:
        path, depth = queue.popleft()
        if depth >= max_depth:
            continue
        node = graph.nodes.get(path)
        if node is None:
            continue
        for neighbour in neighbours(node):
            if neighbour in visited:
                continue
            visited.add(neighbour)
            found.append(neighbour)
            queue.append((neighbour, depth + 1))

    return found


def find_dependents(
    graph: DependencyGraph,
    file_path: str,
    max_depth: int = DEFAULT_MAX_DEPTH,
) -> List[str]:
    """Files importing *file_path*, directly or up to *max_depth* hops away."""
    return _bfs(graph, file_path, max_depth, lambda node: node.imported_by)


def find_dependencies(
    graph: DependencyGraph,
    file_path: str,
    max_depth: int = DEFAULT_MAX_DEPTH,
) -> List[str]:
    """Files *file_path* imports, directly or up to *max_depth* hops away."""
    return _bfs(graph, file_path, max_depth, lambda node: node.imports)


def _strip_source_extension(path: str) -> str:
    for ext in _TS_EXT_SUFFIXES + (".py",):
        if path.endswith(ext):
            return path[: -len(ext)]
    return path


def find_related_tests(
    graph: DependencyGraph,
    source_file: str,
    test_files: Iterable[str],
) -> List[str]:
    """Candidate tests exercising *source_file*.

    Combines direct importers, transitive dependents, and naming conventions
    (``<base>.test``, ``<base>.spec``, ``test_<name>``).
    """
    source = normalize_path(source_file)
    candidates = list(dict.fromkeys(normalize_path(t) for t in test_files))
    candidate_set = set(candidates)
    related: List[str] = []

    def _add(path: str) -> None:
        if path not in related:
            related.append(path)

    node = graph.nodes.get(source)
    if node is not None:
        for importer in node.imported_by:
            if importer in candidate_set:
                _add(importer)

    for dependent in find_dependents(graph, source):
        if dependent in candidate_set:
            _add(dependent)

    base = _strip_source_extension(source)
    base_name = base.rsplit("/", 1)[-1]
    patterns = (f"{base}.test", f"{base}.spec", f"test_{base_name}")
    for test_path in candidates:
        if any(pattern in test_path for pattern in patterns):
            _add(test_path)

    return related


def get_affected_files(graph: DependencyGraph, changed_files: Iterable[str]) -> AffectedFiles:
    """Split the blast radius of *changed_files* into direct and transitive sets."""
    direct: List[str] = []
    for changed in changed_files:
        path = normalize_path(changed)
        if path not in direct:
            direct.append(path)

    direct_set = set(direct)
    transitive: List[str] = []
    for path in direct:
        for dependent in find_dependents(graph, path):
            if dependent not in direct_set and dependent not in transitive:
                transitive.append(dependent)

    return AffectedFiles(
        directly_affected=direct,
        transitively_affected=transitive,
        all_affected=direct + transitive,
    )
