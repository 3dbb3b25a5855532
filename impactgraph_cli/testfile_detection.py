"""Recognise test files per framework and guess which source file they cover."""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional

FRAMEWORK_PATTERNS: Dict[str, List[re.Pattern]] = {
    "jest": [
        re.compile(r"\.test\.(?:[jt]sx?|[cm]js)$"),
        re.compile(r"\.spec\.(?:[jt]sx?|[cm]js)$"),
        re.compile(r"(?:^|/)__tests__/.*\.(?:[jt]sx?|[cm]js)$"),
    ],
    "vitest": [
        re.compile(r"\.test\.(?:[jt]sx?|[cm]js)$"),
        re.compile(r"\.spec\.(?:[jt]sx?|[cm]js)$"),
        re.compile(r"(?:^|/)__tests__/.*\.(?:[jt]sx?|[cm]js)$"),
    ],
    "mocha": [
        re.compile(r"\.test\.(?:[jt]sx?|[cm]js)$"),
        re.compile(r"\.spec\.(?:[jt]sx?|[cm]js)$"),
        re.compile(r"(?:^|/)test/.*\.(?:[jt]sx?|[cm]js)$"),
    ],
    "pytest": [
        re.compile(r"(?:^|/)test_[^/]*\.py$"),
        re.compile(r"_test\.py$"),
        re.compile(r"(?:^|/)tests/.*\.py$"),
    ],
    "go": [
        re.compile(r"_test\.go$"),
    ],
    "rspec": [
        re.compile(r"_spec\.rb$"),
    ],
}

_JS_TEST_RE = re.compile(r"^(.+)\.(?:test|spec)\.([jt]sx?|[cm]js)$")
_JS_TESTS_DIR_RE = re.compile(r"^(.*?)/?__tests__/(.+?)(?:\.(?:test|spec))?\.([jt]sx?|[cm]js)$")
_PY_PREFIX_RE = re.compile(r"(?:^|/)test_([^/]+)\.py$")
_PY_SUFFIX_RE = re.compile(r"([^/]+)_test\.py$")


@dataclass
class DetectedTest:
    path: str
    framework: str
    source_file: Optional[str] = None


def get_test_patterns(framework: str) -> List[re.Pattern]:
    return FRAMEWORK_PATTERNS.get(framework, [])


def _py_source_dir(test_path: str) -> str:
    directory = test_path.rsplit("/", 1)[0] if "/" in test_path else ""
    if directory.rsplit("/", 1)[-1] in ("tests", "test"):
        directory = directory.rsplit("/", 1)[0] if "/" in directory else ""
    return directory


def infer_source_file(test_path: str, framework: str) -> Optional[str]:
    """Best guess at the source file *test_path* exercises."""
    if framework in ("jest", "vitest", "mocha"):
        match = _JS_TESTS_DIR_RE.match(test_path)
        if match:
            prefix = f"{match.group(1)}/" if match.group(1) else ""
            return f"{prefix}{match.group(2)}.{match.group(3)}"
        match = _JS_TEST_RE.match(test_path)
        if match:
            return f"{match.group(1)}.{match.group(2)}"
        return None

    if framework == "pytest":
        match = _PY_PREFIX_RE.search(test_path) or _PY_SUFFIX_RE.search(test_path)
        if not match:
            return None
        directory = _py_source_dir(test_path)
        name = f"{match.group(1)}.py"
        return f"{directory}/{name}" if directory else name

    if framework == "go":
        if test_path.endswith("_test.go"):
            return test_path[: -len("_test.go")] + ".go"
        return None

    if framework == "rspec":
        if test_path.endswith("_spec.rb"):
            source = test_path[: -len("_spec.rb")] + ".rb"
            return source[len("spec/"):] if source.startswith("spec/") else source
        return None

    return None


def detect_test_file(file_path: str, preferred_framework: Optional[str] = None) -> Optional[DetectedTest]:
    """Return the framework *file_path* belongs to, or None if it is not a test.

    *preferred_framework* is checked first so that ambiguous names like
    ``utils.test.ts`` are attributed to the project's own runner.
    """
    order = list(FRAMEWORK_PATTERNS)
    if preferred_framework in FRAMEWORK_PATTERNS:
        order.remove(preferred_framework)
        order.insert(0, preferred_framework)

    for framework in order:
        if any(pattern.search(file_path) for pattern in FRAMEWORK_PATTERNS[framework]):
            return DetectedTest(
                path=file_path,
                framework=framework,
                source_file=infer_source_file(file_path, framework),
            )
    return None


def is_test_file(file_path: str) -> bool:
    return detect_test_file(file_path) is not None


def find_test_files(changed_files: Iterable[str], preferred_framework: Optional[str] = None) -> List[DetectedTest]:
    found = []
    for path in changed_files:
        detected = detect_test_file(path, preferred_framework)
        if detected is not None:
            found.append(detected)
    return found


def find_source_files(changed_files: Iterable[str], preferred_framework: Optional[str] = None) -> List[str]:
    return [
        path for path in changed_files
        if detect_test_file(path, preferred_framework) is None
    ]
