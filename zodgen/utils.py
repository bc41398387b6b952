# File: zodgen/utils.py
"""
zodgen - Utility Functions & Helpers
=====================================
String transformation, TypeScript text helpers and file I/O used throughout
the generation pipeline.

- Case-conversion functions are cached with ``@lru_cache(maxsize=None)``;
  the same model and field names are converted many times per run.
- File writes go through a temp file + ``os.replace`` so a reader never sees
  a half-written artifact.
"""

from __future__ import annotations

import functools
import hashlib
import json
import logging
import os
import posixpath
import re
import shutil
import tempfile
import time
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Sequence, Set, Tuple

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("zodgen.utils")

# ---------------------------------------------------------------------------
# Pre-compiled regex patterns (compiled once at module load)
# ---------------------------------------------------------------------------

_NON_ALPHANUM_RE: re.Pattern[str] = re.compile(r"[^a-zA-Z0-9]")
_SPLIT_WORDS_RE: re.Pattern[str] = re.compile(
    r"[A-Z]?[a-z]+|[A-Z]+(?=[A-Z][a-z]|\d|\b)|[A-Z]|\d+"
)
_TS_IDENTIFIER_RE: re.Pattern[str] = re.compile(r"^[A-Za-z_$][A-Za-z0-9_$]*$")

GENERATED_HEADER: str = "// Generated by zodgen. Do not edit by hand."


# ---------------------------------------------------------------------------
# Cached string transformation functions
# ---------------------------------------------------------------------------


@functools.lru_cache(maxsize=None)
def to_pascal_case(name: str) -> str:
    """
    Convert any string to PascalCase.

    Examples:
        >>> to_pascal_case("blog_post")
        'BlogPost'
    """
    if not name:
        return ""
    words: Tuple[str, ...] = _extract_words(name)
    return "".join(word.capitalize() for word in words)


@functools.lru_cache(maxsize=None)
def to_camel_case(name: str) -> str:
    """
    Convert any string to camelCase.

    Examples:
        >>> to_camel_case("created_at")
        'createdAt'
        >>> to_camel_case("BlogPost")
        'blogPost'
    """
    if not name:
        return ""
    words: Tuple[str, ...] = _extract_words(name)
    if not words:
        return ""
    first: str = words[0].lower()
    rest: str = "".join(w.capitalize() for w in words[1:])
    return first + rest


@functools.lru_cache(maxsize=None)
def lower_first(name: str) -> str:
    """``UserProfile`` → ``userProfile`` without re-splitting words."""
    if not name:
        return ""
    return name[0].lower() + name[1:]


@functools.lru_cache(maxsize=None)
def _extract_words(name: str) -> Tuple[str, ...]:
    """
    Extract individual words from any casing style.

    Returns a tuple (hashable for LRU cache) of lowercase word strings.
    """
    cleaned: str = _NON_ALPHANUM_RE.sub(" ", name)
    words: List[str] = _SPLIT_WORDS_RE.findall(cleaned)
    return tuple(w.lower() for w in words if w)


# ---------------------------------------------------------------------------
# TypeScript text helpers
# ---------------------------------------------------------------------------


def ts_string(value: str) -> str:
    """Double-quoted TypeScript string literal with JSON escaping."""
    return json.dumps(value, ensure_ascii=False)


def ts_literal(value: Any) -> str:
    """
    Render a JSON-compatible Python value as a TypeScript literal.

    ``True`` → ``true``, ``None`` → ``null``, dicts and lists keep key order.
    """
    return json.dumps(value, ensure_ascii=False)


def ts_key(name: str) -> str:
    """Object key: bare when it is a valid identifier, quoted otherwise."""
    return name if _TS_IDENTIFIER_RE.match(name) else ts_string(name)


def ts_member(target: str, name: str) -> str:
    """Property access: ``target.name`` or ``target["na-me"]``."""
    if _TS_IDENTIFIER_RE.match(name):
        return f"{target}.{name}"
    return f"{target}[{ts_string(name)}]"


def ts_string_array(items: Iterable[str]) -> str:
    """``["a", "b"]`` — used for z.enum and ``as const`` tuples."""
    return "[" + ", ".join(ts_string(item) for item in items) + "]"


def jsdoc_block(text_lines: Sequence[str], indent: str = "") -> List[str]:
    """
    Format lines as a JSDoc comment.

    Returns an empty list when there is nothing to document.  Any ``*/``
    inside the text is broken up so it cannot close the comment early.
    """
    cleaned: List[str] = [line.replace("*/", "*\\/") for line in text_lines]
    if not cleaned:
        return []
    block: List[str] = [f"{indent}/**"]
    block.extend(f"{indent} * {line}".rstrip() for line in cleaned)
    block.append(f"{indent} */")
    return block


# ---------------------------------------------------------------------------
# Import statement builder
# ---------------------------------------------------------------------------


def build_import_block(imports: Dict[str, Set[str]]) -> str:
    """
    Build a sorted, de-duplicated TypeScript import block from a mapping of
    module path → set of names.

    Example:
        >>> build_import_block({"./enums": {"Role", "Plan"}})
        'import { Plan, Role } from "./enums";'
    """
    lines: List[str] = []
    for module in sorted(imports.keys()):
        names: List[str] = sorted(imports[module])
        if names:
            lines.append(f"import {{ {', '.join(names)} }} from {ts_string(module)};")
        else:
            lines.append(f"import {ts_string(module)};")
    return "\n".join(lines)


def merge_import_dicts(
    *dicts: Dict[str, Set[str]],
) -> Dict[str, Set[str]]:
    """Merge multiple import dictionaries into one, unifying sets."""
    result: Dict[str, Set[str]] = {}
    for d in dicts:
        for module, names in d.items():
            if module in result:
                result[module] |= names
            else:
                result[module] = set(names)
    return result


def relative_module(from_dir: str, to_dir: str) -> str:
    """
    Import specifier for *to_dir* as seen from a file inside *from_dir*.

        >>> relative_module("layers", "schemas")
        '../schemas'
    """
    rel: str = posixpath.relpath(to_dir.strip("/") or ".", from_dir.strip("/") or ".")
    return rel if rel.startswith(".") else "./" + rel


def build_barrel(module_names: Iterable[str]) -> str:
    """``export * from './x';`` for every module, sorted and de-duplicated."""
    lines: List[str] = [
        f"export * from './{name}';" for name in sorted(set(module_names))
    ]
    return "\n".join(lines) + "\n"


# ---------------------------------------------------------------------------
# File I/O helpers
# ---------------------------------------------------------------------------


def ensure_directory(path: Path) -> None:
    """Create directory (and parents) if it doesn't exist."""
    path.mkdir(parents=True, exist_ok=True)
    logger.debug("Ensured directory exists: %s", path)


def write_file(path: Path, content: str, atomic: bool = True) -> int:
    """
    Write *content* to *path*.

    When *atomic* is True, writes to a temporary file in the same directory
    first, then renames it over the target.

    Returns the number of bytes written.
    """
    ensure_directory(path.parent)

    encoded: bytes = content.encode("utf-8")

    if not atomic:
        path.write_bytes(encoded)
        logger.debug("Wrote %d bytes to %s", len(encoded), path)
        return len(encoded)

    fd, tmp_path = tempfile.mkstemp(
        dir=str(path.parent),
        prefix=f".{path.name}.",
        suffix=".tmp",
    )
    try:
        with os.fdopen(fd, "wb") as fh:
            fh.write(encoded)
            fh.flush()
            os.fsync(fh.fileno())
        os.replace(tmp_path, str(path))
    except BaseException:
        if os.path.exists(tmp_path):
            os.unlink(tmp_path)
        raise

    logger.debug("Wrote %d bytes to %s", len(encoded), path)
    return len(encoded)


def clean_directory(path: Path, keep_git: bool = True) -> None:
    """
    Remove all contents of a directory without removing the directory itself.

    If *keep_git* is True, ``.git``, ``.gitignore`` and ``.gitkeep`` survive.
    """
    if not path.exists():
        return

    for item in path.iterdir():
        if keep_git and item.name in {".git", ".gitignore", ".gitkeep"}:
            continue
        if item.is_dir() and not item.is_symlink():
            shutil.rmtree(item)
        else:
            item.unlink()

    logger.debug("Cleaned directory: %s (keep_git=%s)", path, keep_git)


# ---------------------------------------------------------------------------
# Checksum & metrics
# ---------------------------------------------------------------------------


def sha256_hex(content: str) -> str:
    """Return SHA-256 hex digest of a string."""
    return hashlib.sha256(content.encode("utf-8")).hexdigest()


def count_lines(content: str) -> int:
    """Count the number of lines in a string."""
    if not content:
        return 0
    return content.count("\n") + (1 if not content.endswith("\n") else 0)


# ---------------------------------------------------------------------------
# Timer context manager
# ---------------------------------------------------------------------------


class Timer:
    """
    Simple context-manager timer for profiling generation steps.

    Usage:
        with Timer("brand registry") as t:
            ...
        print(t.elapsed)
    """

    __slots__ = ("label", "start_time", "end_time", "elapsed")

    def __init__(self, label: str = "operation") -> None:
        self.label: str = label
        self.start_time: float = 0.0
        self.end_time: float = 0.0
        self.elapsed: float = 0.0

    def __enter__(self) -> "Timer":
        self.start_time = time.perf_counter()
        return self

    def __exit__(
        self,
        exc_type: Optional[type],
        exc_val: Optional[BaseException],
        exc_tb: Optional[object],
    ) -> None:
        self.end_time = time.perf_counter()
        self.elapsed = self.end_time - self.start_time
        logger.debug("Timer [%s]: %.4f seconds", self.label, self.elapsed)

    def __repr__(self) -> str:
        return f"<Timer {self.label}: {self.elapsed:.4f}s>"


# ---------------------------------------------------------------------------
# Module-level exports
# ---------------------------------------------------------------------------

__all__: List[str] = [
    "GENERATED_HEADER",
    "Timer",
    "build_barrel",
    "build_import_block",
    "clean_directory",
    "count_lines",
    "ensure_directory",
    "jsdoc_block",
    "lower_first",
    "merge_import_dicts",
    "relative_module",
    "sha256_hex",
    "to_camel_case",
    "to_pascal_case",
    "ts_key",
    "ts_literal",
    "ts_member",
    "ts_string",
    "ts_string_array",
    "write_file",
]

logger.debug("zodgen.utils loaded — %d public symbols.", len(__all__))
