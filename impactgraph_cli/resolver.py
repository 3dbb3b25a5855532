"""Resolution of import specifiers to canonical project-file keys.

Canonical keys are project-relative POSIX paths without a leading ``./``.
Each language family has its own suffix list, tried in order:

- brace family: bare module files, then directory ``index`` files
- indentation family: ``.py`` modules, then package ``__init__.py``
"""

from __future__ import annotations

import logging
import re
from typing import AbstractSet, Dict, List, Optional, Tuple

from .models import Language, Resolution

logger = logging.getLogger(__name__)

LANGUAGE_MAP: Dict[str, Language] = {
    ".ts": Language.TYPESCRIPT,
    ".tsx": Language.TYPESCRIPT,
    ".js": Language.TYPESCRIPT,
    ".jsx": Language.TYPESCRIPT,
    ".mjs": Language.TYPESCRIPT,
    ".cjs": Language.TYPESCRIPT,
    ".py": Language.PYTHON,
}

RESOLUTION_SUFFIXES: Dict[Language, Tuple[str, ...]] = {
    Language.TYPESCRIPT: (
        ".ts", ".tsx", ".js", ".jsx",
        "/index.ts", "/index.tsx", "/index.js", "/index.jsx",
    ),
    Language.PYTHON: (".py", "/__init__.py"),
}

_STRIPPABLE_EXTENSION_RE: Dict[Language, re.Pattern] = {
    Language.TYPESCRIPT: re.compile(r"\.(?:[cm]?js|jsx|tsx?)$"),
    Language.PYTHON: re.compile(r"\.py$"),
}

UNRESOLVED = Resolution(kind="unresolved")


def normalize_path(file_path: str) -> str:
    """Use forward slashes and drop a leading ``./``."""
    normalized = file_path.replace("\\", "/")
    while normalized.startswith("./"):
        normalized = normalized[2:]
    return normalized


def detect_language(file_path: str) -> Language:
    dot = file_path.rfind(".")
    if dot == -1 or "/" in file_path[dot:]:
        return Language.UNKNOWN
    return LANGUAGE_MAP.get(file_path[dot:].lower(), Language.UNKNOWN)


def is_relative_specifier(specifier: str, language: Language) -> bool:
    if language == Language.PYTHON:
        return specifier.startswith(".")
    return specifier.startswith(".") or specifier.startswith("/")


def external_package_name(specifier: str, language: Language) -> str:
    """Package an external specifier belongs to.

    ``@scope/pkg/sub`` -> ``@scope/pkg``; ``lodash/fp`` -> ``lodash``;
    Python ``os.path`` -> ``os``.
    """
    if language == Language.PYTHON:
        return specifier.split(".")[0]
    if specifier.startswith("@"):
        parts = specifier.split("/")
        return "/".join(parts[:2]) if len(parts) >= 2 else specifier
    return specifier.split("/")[0]


def _python_specifier_to_path(specifier: str) -> str:
    """Rewrite ``..pkg.mod`` to ``../pkg/mod``.

    One leading dot is the current package, each further dot one level up.
    """
    dots = len(specifier) - len(specifier.lstrip("."))
    rest = specifier[dots:].replace(".", "/")
    prefix = "./" if dots == 1 else "../" * (dots - 1)
    return prefix + rest


def resolve_import_path(specifier: str, from_path: str, language: Language = Language.TYPESCRIPT) -> str:
    """Join a relative *specifier* against the directory of *from_path*.

    Non-relative specifiers are returned unchanged.
    """
    if not is_relative_specifier(specifier, language):
        return specifier

    if language == Language.PYTHON:
        specifier = _python_specifier_to_path(specifier)

    from_path = normalize_path(from_path)
    if specifier.startswith("/"):
        base_parts: List[str] = []
    else:
        base_parts = [p for p in from_path.split("/")[:-1] if p]

    for part in specifier.split("/"):
        if part in ("", "."):
            continue
        if part == "..":
            if base_parts:
                base_parts.pop()
        else:
            base_parts.append(part)

    return "/".join(base_parts)


def _with_suffix(base: str, suffix: str) -> str:
    if not base:
        return suffix.lstrip("/")
    return base + suffix


def resolve(
    specifier: str,
    from_path: str,
    available_files: AbstractSet[str],
    language: Optional[Language] = None,
) -> Resolution:
    """Resolve *specifier* imported by *from_path* against *available_files*.

    Tries the exact candidate, then each suffix, then the candidate with its
    own extension stripped plus each suffix. The first hit wins.
    """
    if language is None:
        language = detect_language(from_path)
    if language == Language.UNKNOWN:
        language = Language.TYPESCRIPT

    if not is_relative_specifier(specifier, language):
        return Resolution(kind="external", package=external_package_name(specifier, language))

    candidate = normalize_path(resolve_import_path(specifier, from_path, language))
    suffixes = RESOLUTION_SUFFIXES[language]

    if candidate and candidate in available_files:
        return Resolution(kind="resolved", path=candidate)

    for suffix in suffixes:
        attempt = _with_suffix(candidate, suffix)
        if attempt in available_files:
            return Resolution(kind="resolved", path=attempt)

    stripped = _STRIPPABLE_EXTENSION_RE[language].sub("", candidate)
    if stripped != candidate:
        for suffix in suffixes:
            attempt = _with_suffix(stripped, suffix)
            if attempt in available_files:
                return Resolution(kind="resolved", path=attempt)

    logger.debug("Unresolved import %r from %s", specifier, from_path)
    return UNRESOLVED


def resolve_module_path(
    specifier: str,
    from_path: str,
    available_files: AbstractSet[str],
    language: Optional[Language] = None,
) -> Optional[str]:
    """Shortcut returning only the resolved key, or None."""
    return resolve(specifier, from_path, available_files, language).path
