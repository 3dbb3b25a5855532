"""Tests for test-file recognition."""

import pytest

from impactgraph_cli.testfile_detection import (
    detect_test_file,
    find_source_files,
    find_test_files,
    get_test_patterns,
    infer_source_file,
    is_test_file,
)


class TestDetectTestFile:
    @pytest.mark.parametrize("path, framework", [
        ("src/utils.test.ts", "jest"),
        ("src/Button.spec.tsx", "jest"),
        ("src/__tests__/Button.tsx", "jest"),
        ("src/worker.test.mjs", "jest"),
        ("src/__tests__/config.cjs", "jest"),
        ("test/server.js", "mocha"),
        ("tests/test_parser.py", "pytest"),
        ("pkg/parser_test.py", "pytest"),
        ("cmd/main_test.go", "go"),
        ("spec/models/user_spec.rb", "rspec"),
    ])
    def test_framework_detection(self, path: str, framework: str):
        detected = detect_test_file(path)

        assert detected is not None
        assert detected.framework == framework
        assert detected.path == path

    @pytest.mark.parametrize("path", [
        "src/utils.ts",
        "src/testing.ts",
        "pkg/contest.py",
        "main.go",
        "README.md",
    ])
    def test_non_test_files(self, path: str):
        assert detect_test_file(path) is None
        assert not is_test_file(path)

    def test_preferred_framework_wins_on_ambiguous_name(self):
        assert detect_test_file("src/a.test.ts").framework == "jest"
        assert detect_test_file("src/a.test.ts", "vitest").framework == "vitest"

    def test_unknown_preferred_framework_is_ignored(self):
        assert detect_test_file("src/a.test.ts", "karma").framework == "jest"


class TestInferSourceFile:
    @pytest.mark.parametrize("test_path, framework, source", [
        ("src/utils.test.ts", "jest", "src/utils.ts"),
        ("src/Button.spec.tsx", "vitest", "src/Button.tsx"),
        ("src/__tests__/Button.tsx", "jest", "src/Button.tsx"),
        ("__tests__/api.test.js", "jest", "api.js"),
        ("src/worker.test.mjs", "jest", "src/worker.mjs"),
        ("src/__tests__/config.cjs", "jest", "src/config.cjs"),
        ("pkg/test_parser.py", "pytest", "pkg/parser.py"),
        ("pkg/tests/test_parser.py", "pytest", "pkg/parser.py"),
        ("tests/test_parser.py", "pytest", "parser.py"),
        ("pkg/parser_test.py", "pytest", "pkg/parser.py"),
        ("cmd/main_test.go", "go", "cmd/main.go"),
        ("spec/models/user_spec.rb", "rspec", "models/user.rb"),
    ])
    def test_inferred_source(self, test_path: str, framework: str, source: str):
        assert infer_source_file(test_path, framework) == source

    def test_no_guess_for_plain_files(self):
        assert infer_source_file("src/utils.ts", "jest") is None
        assert infer_source_file("x.py", "pytest") is None
        assert infer_source_file("x.py", "unknown") is None


class TestBulkHelpers:
    def test_split_changed_files(self):
        changed = ["src/a.ts", "src/a.test.ts", "app/x.py", "tests/test_x.py"]

        assert [t.path for t in find_test_files(changed)] == ["src/a.test.ts", "tests/test_x.py"]
        assert find_source_files(changed) == ["src/a.ts", "app/x.py"]

    def test_detected_source_file_is_filled(self):
        [detected] = find_test_files(["src/a.test.ts"])

        assert detected.source_file == "src/a.ts"

    def test_get_test_patterns(self):
        assert len(get_test_patterns("pytest")) == 3
        assert get_test_patterns("nope") == []
