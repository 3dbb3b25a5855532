"""Tests for dependency graph construction and its wire format."""

import json

from impactgraph_cli.graph import (
    build_dependency_graph,
    deserialize_graph,
    iter_edges,
    serialize_graph,
)
from impactgraph_cli.models import DependencyGraph, Language
from impactgraph_cli.reachability import find_dependents


class TestBuildGraph:
    """Edges, externals, and reverse edges on the sample project."""

    def test_sample_project_edges(self, sample_graph: DependencyGraph):
        edges = set(iter_edges(sample_graph))

        assert edges == {
            ("src/index.ts", "src/format.ts"),
            ("src/index.ts", "src/api.ts"),
            ("src/api.ts", "src/lib/http/index.ts"),
            ("src/api.ts", "src/types.ts"),
            ("src/format.ts", "src/types.ts"),
            ("src/format.ts", "src/utils.ts"),
            ("src/utils.test.ts", "src/utils.ts"),
            ("app/main.py", "app/helpers.py"),
        }

    def test_non_source_files_get_no_node(self, sample_graph: DependencyGraph):
        assert "README.md" not in sample_graph
        assert "src/index.ts" in sample_graph
        assert "app/__init__.py" in sample_graph

    def test_external_deps(self, sample_graph: DependencyGraph):
        assert sample_graph.nodes["src/index.ts"].external_deps == ["react"]
        assert sample_graph.nodes["src/lib/http/index.ts"].external_deps == ["axios"]
        assert sample_graph.nodes["app/main.py"].external_deps == ["os"]
        assert sample_graph.nodes["src/utils.ts"].external_deps == []

    def test_languages(self, sample_graph: DependencyGraph):
        assert sample_graph.nodes["src/api.ts"].language == Language.TYPESCRIPT
        assert sample_graph.nodes["app/helpers.py"].language == Language.PYTHON

    def test_reverse_edges_are_symmetric(self, sample_graph: DependencyGraph):
        for path, node in sample_graph.nodes.items():
            for target in node.imports:
                assert path in sample_graph.nodes[target].imported_by
            for importer in node.imported_by:
                assert path in sample_graph.nodes[importer].imports

    def test_imported_by(self, sample_graph: DependencyGraph):
        assert sorted(sample_graph.nodes["src/utils.ts"].imported_by) == [
            "src/format.ts", "src/utils.test.ts",
        ]
        assert sample_graph.nodes["src/index.ts"].imported_by == []

    def test_metadata(self, sample_graph: DependencyGraph):
        assert sample_graph.metadata.file_count == len(sample_graph.nodes)
        assert sample_graph.metadata.root_dir == "sample_project"
        assert sample_graph.metadata.built_at.endswith("Z")


class TestEdgeCases:
    def test_empty_input(self):
        graph = build_dependency_graph({})

        assert len(graph) == 0
        assert graph.metadata.file_count == 0

    def test_duplicate_imports_collapse(self):
        files = {
            "a.ts": "import { x } from './b';\nimport type { Y } from './b';\nimport z from './b.ts';\n",
            "b.ts": "export const x = 1;\n",
        }
        graph = build_dependency_graph(files)

        assert graph.nodes["a.ts"].imports == ["b.ts"]
        assert graph.nodes["b.ts"].imported_by == ["a.ts"]

    def test_self_import_is_not_an_edge(self):
        graph = build_dependency_graph({"a.ts": "import './a';\n"})

        assert graph.nodes["a.ts"].imports == []
        assert graph.nodes["a.ts"].imported_by == []

    def test_cycle(self):
        files = {
            "a.ts": "import { b } from './b';\n",
            "b.ts": "import { a } from './a';\n",
        }
        graph = build_dependency_graph(files)

        assert graph.nodes["a.ts"].imports == ["b.ts"]
        assert graph.nodes["a.ts"].imported_by == ["b.ts"]
        assert graph.nodes["b.ts"].imports == ["a.ts"]

    def test_unrecognised_file_is_a_resolution_target_only(self):
        files = {
            "src/a.ts": "import data from './data.json';\n",
            "src/data.json": "{}",
        }
        graph = build_dependency_graph(files)

        assert graph.nodes["src/a.ts"].imports == ["src/data.json"]
        assert "src/data.json" not in graph

    def test_unresolved_relative_import_is_dropped(self):
        graph = build_dependency_graph({"a.ts": "import x from './nowhere';\n"})

        assert graph.nodes["a.ts"].imports == []
        assert graph.nodes["a.ts"].external_deps == []

    def test_import_text_in_string_adds_no_edge(self):
        files = {
            "src/a.ts": "throw new Error(\"failed to import './config'\");\n",
            "src/config.ts": "",
        }
        graph = build_dependency_graph(files)

        assert graph.nodes["src/a.ts"].imports == []


class TestPythonSubmoduleImports:
    """``from <package> import <module>`` links the module file as well."""

    PACKAGE = {
        "app/__init__.py": "",
        "app/helpers.py": "",
        "app/pkg/__init__.py": "",
        "app/pkg/mod.py": "",
    }

    def test_from_dot_import_module(self):
        files = {**self.PACKAGE, "app/main.py": "from . import helpers\n"}
        graph = build_dependency_graph(files)

        assert graph.nodes["app/main.py"].imports == ["app/__init__.py", "app/helpers.py"]
        assert graph.nodes["app/helpers.py"].imported_by == ["app/main.py"]

    def test_from_subpackage_import_module_with_alias(self):
        files = {**self.PACKAGE, "app/main.py": "from .pkg import mod as m, missing\n"}
        graph = build_dependency_graph(files)

        assert graph.nodes["app/main.py"].imports == ["app/pkg/__init__.py", "app/pkg/mod.py"]

    def test_imported_attribute_adds_no_extra_edge(self):
        files = {**self.PACKAGE, "app/main.py": "from .helpers import slugify\n"}
        graph = build_dependency_graph(files)

        assert graph.nodes["app/main.py"].imports == ["app/helpers.py"]

    def test_absolute_from_import_stays_external(self):
        files = {**self.PACKAGE, "app/main.py": "from os import path\n"}
        graph = build_dependency_graph(files)

        assert graph.nodes["app/main.py"].imports == []
        assert graph.nodes["app/main.py"].external_deps == ["os"]

    def test_changed_module_reaches_importer(self):
        files = {**self.PACKAGE, "app/main.py": "from . import helpers\n"}
        graph = build_dependency_graph(files)

        assert find_dependents(graph, "app/helpers.py") == ["app/main.py"]


class TestNormalization:
    def test_paths_are_normalized(self):
        files = {
            "./src/a.ts": "import b from './b';\n",
            "./src/b.ts": "",
        }
        graph = build_dependency_graph(files)

        assert list(graph.nodes) == ["src/a.ts", "src/b.ts"]
        assert graph.nodes["src/a.ts"].imports == ["src/b.ts"]

    def test_deterministic(self, sample_files):
        first = build_dependency_graph(sample_files)
        second = build_dependency_graph(sample_files)

        assert list(first.nodes) == list(second.nodes)
        for path, node in first.nodes.items():
            assert node == second.nodes[path]


class TestWireFormat:
    """Cache serialization round trip."""

    def test_keys(self, sample_graph: DependencyGraph):
        data = serialize_graph(sample_graph)

        assert set(data) == {"nodes", "metadata"}
        assert set(data["metadata"]) == {"builtAt", "rootDir", "fileCount"}
        node = data["nodes"]["src/api.ts"]
        assert set(node) == {"path", "imports", "importedBy", "externalDeps", "language"}
        assert node["language"] == "typescript"
        assert node["importedBy"] == ["src/index.ts"]

    def test_round_trip_through_json(self, sample_graph: DependencyGraph):
        text = json.dumps(serialize_graph(sample_graph))
        restored = deserialize_graph(json.loads(text))

        assert restored.metadata == sample_graph.metadata
        assert list(restored.nodes) == list(sample_graph.nodes)
        for path, node in sample_graph.nodes.items():
            assert restored.nodes[path] == node
