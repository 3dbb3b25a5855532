"""Configuration defaults and per-project overrides for ImpactGraph."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

import toml

from .reachability import DEFAULT_MAX_DEPTH

logger = logging.getLogger(__name__)

CACHE_DIR_NAME = os.environ.get("IMPACTGRAPH_CACHE_DIR", ".impactgraph")
CACHE_FILE_NAME = "graph.json"
CONFIG_FILE_NAME = "impactgraph.toml"

DEFAULT_SCAN_DEPTH = 20
# Cache without any dependency manifest to compare against expires after this.
CACHE_MAX_AGE_SECONDS = 60 * 60
GIT_TIMEOUT_SECONDS = 60

SUPPORTED_EXTENSIONS: List[str] = [".ts", ".tsx", ".js", ".jsx", ".mjs", ".cjs", ".py"]

SKIP_DIRS: List[str] = [
    "node_modules", ".git", "dist", "build", "coverage",
    "__pycache__", ".pytest_cache", ".venv", "venv", ".tox",
    ".mypy_cache", ".ruff_cache", "site-packages", ".eggs",
    ".next", ".nuxt", CACHE_DIR_NAME,
]

# A cache older than any of these files is considered stale.
MANIFEST_FILES: List[str] = [
    "package.json", "package-lock.json", "pyproject.toml", "requirements.txt",
]


@dataclass
class Settings:
    exclude: List[str] = field(default_factory=lambda: list(SKIP_DIRS))
    extensions: List[str] = field(default_factory=lambda: list(SUPPORTED_EXTENSIONS))
    max_depth: int = DEFAULT_MAX_DEPTH
    scan_depth: int = DEFAULT_SCAN_DEPTH
    test_framework: Optional[str] = None


def load_settings(root_dir: Path) -> Settings:
    """Read ``impactgraph.toml`` from *root_dir*, falling back to defaults.

    Recognised keys (all optional, under ``[impactgraph]``): ``exclude``
    (added to the built-in skip list), ``extensions``, ``max_depth``,
    ``scan_depth``, ``test_framework``.
    """
    settings = Settings()
    config_file = root_dir / CONFIG_FILE_NAME
    if not config_file.exists():
        return settings

    try:
        with open(config_file, "r", encoding="utf-8") as f:
            payload: Dict[str, Any] = toml.load(f)
    except (OSError, toml.TomlDecodeError) as exc:
        logger.warning("Ignoring unreadable %s: %s", config_file, exc)
        return settings

    section = payload.get("impactgraph", {})
    for pattern in section.get("exclude", []):
        if pattern not in settings.exclude:
            settings.exclude.append(pattern)
    if section.get("extensions"):
        settings.extensions = list(section["extensions"])
    if "max_depth" in section:
        settings.max_depth = int(section["max_depth"])
    if "scan_depth" in section:
        settings.scan_depth = int(section["scan_depth"])
    settings.test_framework = section.get("test_framework") or None
    return settings
