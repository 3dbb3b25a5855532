"""Import / export extraction for the two supported lexical families.

- **Brace family** (TypeScript / JavaScript): ES ``import`` statements,
  ``import type``, and ``require()`` bindings.
- **Indentation family** (Python): ``from x import y`` and ``import x``.

This is pattern matching, not parsing. Comments (and Python triple-quoted
strings) are blanked out before matching so that commented-out or documented
imports do not produce records; unusual syntax may still be missed.
"""

from __future__ import annotations

import bisect
import logging
import re
from typing import List, Optional, Tuple

from .models import ExportRecord, ImportRecord, Language
from .resolver import external_package_name

logger = logging.getLogger(__name__)

_IDENT = r"[A-Za-z_$][\w$]*"

# ---------------------------------------------------------------------------
# Comment stripping
# ---------------------------------------------------------------------------

_TS_STRIP_RE = re.compile(
    r"""("(?:\\.|[^"\\\n])*"|'(?:\\.|[^'\\\n])*'|`(?:\\.|[^`\\])*`)"""
    r"""|(//[^\n]*|/\*[\s\S]*?\*/)"""
)
_PY_STRIP_RE = re.compile(
    r'''("""[\s\S]*?"""|\'\'\'[\s\S]*?\'\'\')'''
    r'''|("(?:\\.|[^"\\\n])*"|'(?:\\.|[^'\\\n])*')'''
    r'''|(#[^\n]*)'''
)


def _blank(text: str) -> str:
    """Replace *text* with spaces, keeping its newlines."""
    return re.sub(r"[^\n]", " ", text)


def strip_typescript_comments(content: str) -> str:
    def _sub(match: re.Match[str]) -> str:
        if match.group(1) is not None:
            return match.group(1)
        return _blank(match.group(2))

    return _TS_STRIP_RE.sub(_sub, content)


def _string_spans(text: str) -> List[Tuple[int, int]]:
    """Start/end offsets of the string literals in comment-stripped *text*."""
    return [
        match.span(1) for match in _TS_STRIP_RE.finditer(text)
        if match.group(1) is not None
    ]


def _inside_string(offset: int, spans: List[Tuple[int, int]]) -> bool:
    # spans are sorted and disjoint
    index = bisect.bisect_right(spans, (offset, float("inf"))) - 1
    return index >= 0 and spans[index][0] <= offset < spans[index][1]


def strip_python_comments(content: str) -> str:
    """Blank out ``#`` comments and triple-quoted strings."""

    def _sub(match: re.Match[str]) -> str:
        if match.group(1) is not None:
            return _blank(match.group(1))
        if match.group(2) is not None:
            return match.group(2)
        return _blank(match.group(3))

    return _PY_STRIP_RE.sub(_sub, content)


# ---------------------------------------------------------------------------
# Brace family
# ---------------------------------------------------------------------------

_TS_IMPORT_RE = re.compile(
    r"(?<![\w$.])import\s+"
    r"(type(?!\s+from\b)\s+)?"  # not a default binding named `type`
    r"(?:"
    r"(\*\s+as\s+" + _IDENT + r")"  # namespace
    r"|(\{[^}]*\})"  # named only
    r"|(" + _IDENT + r")"  # default
    r"(?:\s*,\s*(?:(\{[^}]*\})|(\*\s+as\s+" + _IDENT + r")))?"  # default + named / namespace
    r")?"
    r"\s*(?:from\s*)?"
    r"""['"]([^'"\n]+)['"]"""
)

_TS_REQUIRE_RE = re.compile(
    r"(?<![\w$.])(?:const|let|var)\s+"
    r"(?:\{([^}]*)\}|(" + _IDENT + r"))"
    r"\s*=\s*require\s*\(\s*"
    r"""['"]([^'"\n]+)['"]"""
    r"\s*\)"
)

_TS_NAMED_EXPORT_RE = re.compile(
    r"(?<![\w$.])export\s+(?:type\s+)?\{([^}]*)\}"
    r"""(?:\s*from\s*['"]([^'"\n]+)['"])?"""
)
_TS_STAR_EXPORT_RE = re.compile(
    r"(?<![\w$.])export\s+\*\s*(?:as\s+(" + _IDENT + r")\s+)?"
    r"""from\s*['"]([^'"\n]+)['"]"""
)
_TS_DEFAULT_EXPORT_RE = re.compile(
    r"(?<![\w$.])export\s+default\s+"
    r"(?:(?:abstract\s+)?class|(?:async\s+)?function\*?|const|let|var)?\s*"
    r"(" + _IDENT + r")?"
)
_TS_INLINE_EXPORT_RE = re.compile(
    r"(?<![\w$.])export\s+(?:declare\s+)?"
    r"(?:const|let|var|(?:async\s+)?function\*?|(?:abstract\s+)?class|enum|interface|type)"
    r"\s+(" + _IDENT + r")"
)

_AS_SPLIT_RE = re.compile(r"\s+as\s+")


def _split_names(
    names_part: str,
    alias_separator: re.Pattern = _AS_SPLIT_RE,
    local: bool = True,
) -> List[str]:
    """Split ``{ a, b as c }`` style lists into binding names.

    With *local* the alias is kept (``c``), otherwise the imported name (``b``).
    """
    names: List[str] = []
    for chunk in names_part.strip().strip("{}").split(","):
        chunk = chunk.strip()
        if not chunk:
            continue
        if chunk.startswith("type "):
            chunk = chunk[len("type "):].strip()
        parts = alias_separator.split(chunk)
        name = (parts[-1] if local else parts[0]).strip()
        if name and name != "*":
            names.append(name)
    return names


def _is_brace_relative(module: str) -> bool:
    return module.startswith(".") or module.startswith("/")


def parse_typescript_imports(content: str) -> List[ImportRecord]:
    """Extract ES ``import`` and ``require()`` declarations."""
    text = strip_typescript_comments(content)
    strings = _string_spans(text)
    found: List[Tuple[int, ImportRecord]] = []

    for match in _TS_IMPORT_RE.finditer(text):
        if _inside_string(match.start(), strings):
            continue
        type_only, star, named_only, default, named_after, star_after, module = match.groups()
        named = named_only or named_after
        namespace = star or star_after

        default_import: Optional[str] = default
        if default_import is None and namespace:
            default_import = re.sub(r"^\*\s+as\s+", "", namespace)

        found.append((match.start(), ImportRecord(
            module=module,
            named_imports=_split_names(named) if named else [],
            default_import=default_import,
            is_type_only=bool(type_only),
            is_relative=_is_brace_relative(module),
            raw=match.group(0),
        )))

    for match in _TS_REQUIRE_RE.finditer(text):
        if _inside_string(match.start(), strings):
            continue
        named_part, default_name, module = match.groups()
        found.append((match.start(), ImportRecord(
            module=module,
            # destructuring renames with ``a: b``
            named_imports=_split_names(named_part, re.compile(r"\s*:\s*")) if named_part else [],
            default_import=default_name,
            is_type_only=False,
            is_relative=_is_brace_relative(module),
            raw=match.group(0),
        )))

    found.sort(key=lambda item: item[0])
    return [record for _, record in found]


def parse_typescript_exports(content: str) -> List[ExportRecord]:
    """Extract named, default, inline and re-export declarations."""
    text = strip_typescript_comments(content)
    found: List[Tuple[int, ExportRecord]] = []

    for match in _TS_NAMED_EXPORT_RE.finditer(text):
        names, from_module = match.groups()
        found.append((match.start(), ExportRecord(
            named_exports=_split_names(names),
            re_export_from=from_module,
            raw=match.group(0),
        )))

    for match in _TS_STAR_EXPORT_RE.finditer(text):
        alias, from_module = match.groups()
        found.append((match.start(), ExportRecord(
            named_exports=[alias] if alias else [],
            re_export_from=from_module,
            raw=match.group(0),
        )))

    for match in _TS_DEFAULT_EXPORT_RE.finditer(text):
        found.append((match.start(), ExportRecord(
            default_export=match.group(1) or "default",
            raw=match.group(0).rstrip(),
        )))

    for match in _TS_INLINE_EXPORT_RE.finditer(text):
        found.append((match.start(), ExportRecord(
            named_exports=[match.group(1)],
            raw=match.group(0),
        )))

    found.sort(key=lambda item: item[0])
    return [record for _, record in found]


# ---------------------------------------------------------------------------
# Indentation family
# ---------------------------------------------------------------------------

_PY_FROM_IMPORT_RE = re.compile(
    r"^[ \t]*from[ \t]+(\.*[\w.]*)[ \t]+import[ \t]*(?:\(([^)]*)\)|([^\n;]+))",
    re.MULTILINE,
)
_PY_IMPORT_RE = re.compile(
    r"^[ \t]*import[ \t]+([\w.]+(?:[ \t]+as[ \t]+\w+)?"
    r"(?:[ \t]*,[ \t]*[\w.]+(?:[ \t]+as[ \t]+\w+)?)*)[ \t]*;?[ \t]*$",
    re.MULTILINE,
)


def parse_python_imports(content: str) -> List[ImportRecord]:
    """Extract ``from x import y`` and ``import x [as y]`` statements."""
    text = strip_python_comments(content).replace("\\\n", " ")
    found: List[Tuple[int, ImportRecord]] = []

    for match in _PY_FROM_IMPORT_RE.finditer(text):
        module, paren_names, inline_names = match.groups()
        dotted = module.lstrip(".")
        if not module or (dotted and not all(p.isidentifier() for p in dotted.split("."))):
            continue
        names_part = paren_names or inline_names or ""
        names = [name for name in _split_names(names_part) if name.isidentifier()]
        source_names = [
            name for name in _split_names(names_part, local=False) if name.isidentifier()
        ]
        found.append((match.start(), ImportRecord(
            module=module,
            named_imports=names,
            is_type_only=False,
            is_relative=module.startswith("."),
            raw=match.group(0).strip(),
            imported_names=source_names,
        )))

    for match in _PY_IMPORT_RE.finditer(text):
        for chunk in match.group(1).split(","):
            parts = _AS_SPLIT_RE.split(chunk.strip())
            module_path = parts[0].strip()
            if not module_path:
                continue
            found.append((match.start(), ImportRecord(
                module=module_path,
                named_imports=[],
                default_import=parts[1].strip() if len(parts) > 1 else module_path,
                is_type_only=False,
                is_relative=module_path.startswith("."),
                raw=match.group(0).strip(),
            )))

    found.sort(key=lambda item: item[0])
    return [record for _, record in found]


# ---------------------------------------------------------------------------
# Dispatch helpers
# ---------------------------------------------------------------------------

def extract_imports(content: str, language: Language) -> List[ImportRecord]:
    """Run the extractor matching *language*; unknown languages yield nothing."""
    if language == Language.TYPESCRIPT:
        return parse_typescript_imports(content)
    if language == Language.PYTHON:
        return parse_python_imports(content)
    return []


def get_relative_imports(content: str, language: Language) -> List[str]:
    return [imp.module for imp in extract_imports(content, language) if imp.is_relative]


def get_external_imports(content: str, language: Language) -> List[str]:
    """Unique external package names, in first-seen order."""
    packages: List[str] = []
    for imp in extract_imports(content, language):
        if imp.is_relative:
            continue
        name = external_package_name(imp.module, language)
        if name and name not in packages:
            packages.append(name)
    return packages
