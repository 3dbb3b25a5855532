"""Thin wrapper around the ``git`` executable for changed files and diffs."""

from __future__ import annotations

import logging
import subprocess
from pathlib import Path
from typing import List, Optional, Sequence

from .config import GIT_TIMEOUT_SECONDS

logger = logging.getLogger(__name__)

# Tried in order until one succeeds.
BASE_REFS = ("origin/main...HEAD", "origin/master...HEAD", "HEAD~1")


class GitError(RuntimeError):
    """Raised when a git command cannot be run or exits non-zero."""


def _run_git(args: Sequence[str], cwd: Optional[Path] = None) -> str:
    try:
        result = subprocess.run(
            ["git", *args],
            cwd=str(cwd) if cwd else None,
            capture_output=True,
            text=True,
            timeout=GIT_TIMEOUT_SECONDS,
        )
    except (OSError, subprocess.TimeoutExpired) as exc:
        raise GitError(f"git {' '.join(args)} failed: {exc}") from exc

    if result.returncode != 0:
        raise GitError(f"git {' '.join(args)} failed: {result.stderr.strip()}")
    return result.stdout


def get_changed_files(cwd: Optional[Path] = None, base: Optional[str] = None) -> List[str]:
    """List files changed against *base*, or the first base ref that works."""
    refs = (base,) if base else BASE_REFS
    last_error: Optional[GitError] = None
    for ref in refs:
        try:
            output = _run_git(["diff", "--name-only", ref], cwd)
        except GitError as exc:
            logger.debug("git diff against %s failed: %s", ref, exc)
            last_error = exc
            continue
        return [line.strip() for line in output.splitlines() if line.strip()]

    raise GitError(f"Could not determine changed files: {last_error}")


def get_raw_diff(
    files: Optional[Sequence[str]] = None,
    cwd: Optional[Path] = None,
    base: str = "HEAD~1",
) -> str:
    """Unified diff (3 lines of context) against *base*, optionally limited to *files*."""
    args = ["diff", "--unified=3", base]
    if files:
        args += ["--", *files]
    return _run_git(args, cwd)
