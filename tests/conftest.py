"""Pytest configuration and fixtures for ImpactGraph CLI tests."""

import shutil
import tempfile
from pathlib import Path
from typing import Dict, Generator

import pytest

from impactgraph_cli.file_reader import read_project_files
from impactgraph_cli.graph import build_dependency_graph
from impactgraph_cli.models import DependencyGraph


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for tests."""
    tmp = Path(tempfile.mkdtemp())
    yield tmp
    shutil.rmtree(tmp, ignore_errors=True)


@pytest.fixture
def sample_project_path() -> Path:
    """Get path to sample test project."""
    return Path(__file__).parent / "fixtures" / "sample_project"


@pytest.fixture
def sample_project_copy(temp_dir: Path, sample_project_path: Path) -> Path:
    """Writable copy of the sample project, so caches land in a temp dir."""
    target = temp_dir / "sample_project"
    shutil.copytree(sample_project_path, target)
    return target


@pytest.fixture
def sample_files(sample_project_path: Path) -> Dict[str, str]:
    """Path -> content mapping of the sample project."""
    return read_project_files(sample_project_path)


@pytest.fixture
def sample_graph(sample_files: Dict[str, str]) -> DependencyGraph:
    return build_dependency_graph(sample_files, root_dir="sample_project")


@pytest.fixture
def sample_diff() -> str:
    """Two files, each with one hunk of 2 additions and 1 deletion."""
    return """diff --git a/src/utils.ts b/src/utils.ts
index 83db48f..bf269f4 100644
--- a/src/utils.ts
+++ b/src/utils.ts
@@ -10,6 +10,8 @@ export function capitalize(value: string): string {
 const a = 1;
-const b = 2;
+const b = 3;
+const c = 4;
 const d = 5;
diff --git a/src/api.ts b/src/api.ts
index 1234567..89abcde 100644
--- a/src/api.ts
+++ b/src/api.ts
@@ -1,3 +1,4 @@
 import { http } from './lib/http';
-import type { User } from './types';
+import type { User, Team } from './types';
+import { log } from './log';

"""

