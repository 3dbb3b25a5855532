"""On-disk JSON cache for built dependency graphs.

The cache lives at ``<root>/.impactgraph/graph.json`` and holds exactly the
structure produced by :func:`~impactgraph_cli.graph.serialize_graph`.
"""

from __future__ import annotations

import json
import logging
import time
from pathlib import Path
from typing import Any, Dict, Iterable, Optional

from . import config
from .graph import deserialize_graph, serialize_graph
from .models import DependencyGraph

logger = logging.getLogger(__name__)


class GraphCache:
    """Load, save and age-check the cached graph of one project root."""

    def __init__(self, root_dir: Path, cache_dir_name: Optional[str] = None) -> None:
        self.root_dir = Path(root_dir)
        self.cache_dir = self.root_dir / (cache_dir_name or config.CACHE_DIR_NAME)
        self.cache_path = self.cache_dir / config.CACHE_FILE_NAME

    def exists(self) -> bool:
        return self.cache_path.exists()

    def load(self) -> Optional[DependencyGraph]:
        """Return the cached graph, or None when missing or corrupted."""
        if not self.cache_path.exists():
            return None
        try:
            payload = json.loads(self.cache_path.read_text(encoding="utf-8"))
            return deserialize_graph(payload)
        except (OSError, ValueError, KeyError, TypeError) as exc:
            logger.warning("Ignoring corrupted graph cache %s: %s", self.cache_path, exc)
            return None

    def save(self, graph: DependencyGraph) -> Path:
        self.cache_dir.mkdir(parents=True, exist_ok=True)
        self.cache_path.write_text(
            json.dumps(serialize_graph(graph), indent=2),
            encoding="utf-8",
        )
        logger.debug("Saved graph cache to %s", self.cache_path)
        return self.cache_path

    def is_stale(
        self,
        max_age_seconds: float = config.CACHE_MAX_AGE_SECONDS,
        source_files: Optional[Iterable[Path]] = None,
    ) -> bool:
        """A cache is stale when missing, older than any of *source_files* or
        a dependency manifest, or (with no manifest present) older than
        *max_age_seconds*.
        """
        if not self.cache_path.exists():
            return True
        cache_mtime = self.cache_path.stat().st_mtime

        for source in source_files or ():
            try:
                if source.stat().st_mtime > cache_mtime:
                    logger.debug("Graph cache older than %s", source)
                    return True
            except OSError as exc:
                logger.debug("Cannot stat %s: %s", source, exc)

        manifests = [self.root_dir / name for name in config.MANIFEST_FILES]
        present = [m for m in manifests if m.exists()]
        if not present:
            return cache_mtime < time.time() - max_age_seconds
        return any(m.stat().st_mtime > cache_mtime for m in present)

    def clear(self) -> bool:
        if self.cache_path.exists():
            self.cache_path.unlink()
            return True
        return False

    def metadata(self) -> Dict[str, Any]:
        """Summary used by ``ig graph info``."""
        if not self.cache_path.exists():
            return {"exists": False, "stale": True}

        age = time.time() - self.cache_path.stat().st_mtime
        try:
            payload = json.loads(self.cache_path.read_text(encoding="utf-8"))
            file_count = len(payload["nodes"])
        except (OSError, ValueError, KeyError, TypeError):
            return {"exists": True, "stale": True, "age": age}

        return {
            "exists": True,
            "stale": self.is_stale(),
            "age": age,
            "file_count": file_count,
            "built_at": payload.get("metadata", {}).get("builtAt"),
        }
