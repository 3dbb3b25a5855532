"""Collect project source files into the path -> content mapping."""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Dict, Iterable, Iterator, Optional, Sequence, Tuple

from .config import DEFAULT_SCAN_DEPTH, SKIP_DIRS, SUPPORTED_EXTENSIONS
from .models import Language
from .resolver import detect_language, normalize_path

logger = logging.getLogger(__name__)


def _is_excluded(name: str, rel_path: str, exclude: Sequence[str]) -> bool:
    parts = rel_path.split("/")
    return any(
        name == pattern or pattern in parts or rel_path.startswith(pattern.rstrip("/") + "/")
        for pattern in exclude
    )


def iter_project_files(
    root_dir: Path,
    exclude: Optional[Sequence[str]] = None,
    max_depth: int = DEFAULT_SCAN_DEPTH,
    extensions: Optional[Sequence[str]] = None,
) -> Iterator[Tuple[str, Path]]:
    """Yield ``(relative POSIX path, full path)`` for every supported source file.

    Directories are walked in sorted order and not descended past *max_depth*.
    """
    exclude = list(SKIP_DIRS) if exclude is None else list(exclude)
    extensions = list(SUPPORTED_EXTENSIONS) if extensions is None else list(extensions)
    root_dir = Path(root_dir)

    def _on_error(exc: OSError) -> None:
        logger.warning("Cannot scan %s: %s", exc.filename, exc)

    for dirpath, dirnames, filenames in os.walk(root_dir, onerror=_on_error):
        rel_dir = Path(dirpath).relative_to(root_dir)
        depth = len(rel_dir.parts)
        if depth >= max_depth:
            dirnames[:] = []
        dirnames[:] = sorted(
            d for d in dirnames
            if not _is_excluded(d, (rel_dir / d).as_posix(), exclude)
        )

        for filename in sorted(filenames):
            rel_path = normalize_path((rel_dir / filename).as_posix())
            if _is_excluded(filename, rel_path, exclude):
                continue
            if os.path.splitext(filename)[1] not in extensions:
                continue
            if detect_language(filename) == Language.UNKNOWN:
                continue
            yield rel_path, Path(dirpath) / filename


def read_project_files(
    root_dir: Path,
    exclude: Optional[Sequence[str]] = None,
    max_depth: int = DEFAULT_SCAN_DEPTH,
    extensions: Optional[Sequence[str]] = None,
) -> Dict[str, str]:
    """Read every supported source file under *root_dir*.

    Keys are POSIX paths relative to *root_dir*, in sorted walk order.
    Unreadable files and directories are skipped with a warning.
    """
    files: Dict[str, str] = {}
    for rel_path, full_path in iter_project_files(root_dir, exclude, max_depth, extensions):
        try:
            files[rel_path] = full_path.read_text(encoding="utf-8", errors="ignore")
        except OSError as exc:
            logger.warning("Skipping unreadable file %s: %s", rel_path, exc)

    logger.info("Read %d source file(s) from %s", len(files), root_dir)
    return files


def read_files(file_paths: Iterable[str], root_dir: Path) -> Dict[str, str]:
    """Read specific files; missing or unreadable ones are left out."""
    files: Dict[str, str] = {}
    for file_path in file_paths:
        full_path = Path(file_path)
        if not full_path.is_absolute():
            full_path = Path(root_dir) / file_path
        try:
            files[normalize_path(file_path)] = full_path.read_text(encoding="utf-8", errors="ignore")
        except OSError as exc:
            logger.warning("Skipping unreadable file %s: %s", file_path, exc)
    return files
