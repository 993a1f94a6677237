# File: apig/utils.py
"""
apig - Utility Functions & Helpers
===================================
Naming transformations, file I/O and timing helpers used throughout the
generation pipeline.

Naming strategy:
- All string-conversion functions are decorated with ``@lru_cache(maxsize=None)``
  since the same model names are converted once per template.
- Derived names for a model (file name, route, Go variables) are bundled
  in ``ModelNames`` so that every generator agrees on them.
- File writes go through a temp file and ``os.replace`` so a target is
  either fully written or left untouched.
"""

from __future__ import annotations

import functools
import hashlib
import logging
import os
import re
import tempfile
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, FrozenSet, List, Optional, Tuple

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("apig.utils")

# ---------------------------------------------------------------------------
# Pre-compiled regex patterns (compiled once at module load)
# ---------------------------------------------------------------------------

_CAMEL_TO_SNAKE_RE1: re.Pattern[str] = re.compile(r"([A-Z]+)([A-Z][a-z])")
_CAMEL_TO_SNAKE_RE2: re.Pattern[str] = re.compile(r"([a-z0-9])([A-Z])")
_NON_ALPHANUM_RE: re.Pattern[str] = re.compile(r"[^a-zA-Z0-9]")
_MULTI_UNDERSCORE_RE: re.Pattern[str] = re.compile(r"_{2,}")
_LEADING_TRAILING_UNDERSCORE_RE: re.Pattern[str] = re.compile(r"^_+|_+$")
_SPLIT_WORDS_RE: re.Pattern[str] = re.compile(
    r"[A-Z]?[a-z]+|[A-Z]+(?=[A-Z][a-z]|\d|\b)|[A-Z]|\d+"
)

# Go keywords that cannot be used as identifiers
GO_KEYWORDS: FrozenSet[str] = frozenset({
    "break", "case", "chan", "const", "continue", "default", "defer",
    "else", "fallthrough", "for", "func", "go", "goto", "if", "import",
    "interface", "map", "package", "range", "return", "select", "struct",
    "switch", "type", "var",
})

# Locals and package names the generated controllers already use
_GO_TEMPLATE_LOCALS: FrozenSet[str] = frozenset({
    "c", "db", "dbpkg", "err", "ver", "parameter", "fields", "helper",
    "models", "version", "gin", "http", "id",
})

_IRREGULAR_PLURALS: Dict[str, str] = {
    "person": "people",
    "child": "children",
    "man": "men",
    "woman": "women",
    "mouse": "mice",
    "goose": "geese",
    "tooth": "teeth",
    "foot": "feet",
    "datum": "data",
    "index": "indices",
    "matrix": "matrices",
    "vertex": "vertices",
    "axis": "axes",
    "crisis": "crises",
    "analysis": "analyses",
    "status": "statuses",
    "address": "addresses",
    "series": "series",
    "species": "species",
}


# ---------------------------------------------------------------------------
# Cached string transformation functions
# ---------------------------------------------------------------------------


@functools.lru_cache(maxsize=None)
def to_snake_case(name: str) -> str:
    """
    Convert any string to snake_case.

    Examples:
        >>> to_snake_case("UserProfile")
        'user_profile'
        >>> to_snake_case("getHTTPResponse")
        'get_http_response'
        >>> to_snake_case("already_snake")
        'already_snake'
    """
    if not name:
        return ""
    s: str = _CAMEL_TO_SNAKE_RE1.sub(r"\1_\2", name)
    s = _CAMEL_TO_SNAKE_RE2.sub(r"\1_\2", s)
    s = _NON_ALPHANUM_RE.sub("_", s)
    s = _MULTI_UNDERSCORE_RE.sub("_", s)
    s = _LEADING_TRAILING_UNDERSCORE_RE.sub("", s)
    return s.lower()


@functools.lru_cache(maxsize=None)
def to_camel_case(name: str) -> str:
    """
    Convert any string to camelCase.

    Examples:
        >>> to_camel_case("UserProfile")
        'userProfile'
        >>> to_camel_case("APIKey")
        'apiKey'
    """
    words: Tuple[str, ...] = _extract_words(name) if name else ()
    if not words:
        return ""
    return words[0] + "".join(w.capitalize() for w in words[1:])


@functools.lru_cache(maxsize=None)
def to_plural(name: str) -> str:
    """
    Naive English pluralisation sufficient for route and variable names.

    Suffix rules plus a small irregular table; casing of the first letter is
    preserved.  Input is taken to be singular: ``Bus`` becomes ``Buses``.

    Examples:
        >>> to_plural("User")
        'Users'
        >>> to_plural("Category")
        'Categories'
        >>> to_plural("user_profile")
        'user_profiles'
    """
    if not name:
        return ""

    # Only the last word of a compound name is inflected
    match: Optional[re.Match[str]] = re.search(r"([A-Z]?[a-z]+|[A-Z]+)$", name)
    head: str = name[: match.start()] if match else ""
    word: str = match.group(0) if match else name
    lower: str = word.lower()

    if lower in _IRREGULAR_PLURALS:
        plural: str = _IRREGULAR_PLURALS[lower]
        if word[0].isupper():
            plural = plural[0].upper() + plural[1:]
        return head + plural

    if lower.endswith(("s", "sh", "ch", "x", "z")):
        return name + "es"
    if lower.endswith("y") and len(lower) > 1 and lower[-2] not in "aeiou":
        return name[:-1] + "ies"

    return name + "s"


@functools.lru_cache(maxsize=None)
def _extract_words(name: str) -> Tuple[str, ...]:
    """
    Extract individual words from any casing style.

    Returns a tuple (hashable for LRU cache) of lowercase word strings.
    """
    cleaned: str = _NON_ALPHANUM_RE.sub(" ", name)
    words: List[str] = _SPLIT_WORDS_RE.findall(cleaned)
    return tuple(w.lower() for w in words if w)


@functools.lru_cache(maxsize=None)
def go_identifier(name: str) -> str:
    """
    Ensure *name* is usable as a local Go identifier in generated code.

    Appends an underscore to Go keywords and to names the generated
    controllers already bind (``db``, ``err``, ...).
    """
    if not name:
        return "_"
    if name[0].isdigit():
        name = f"_{name}"
    if name in GO_KEYWORDS or name in _GO_TEMPLATE_LOCALS:
        return f"{name}_"
    return name


# ---------------------------------------------------------------------------
# Model naming bundle
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class ModelNames:
    """Every identifier derived from a model name, computed in one place."""

    name: str
    plural: str
    file_name: str
    route: str
    var: str
    plural_var: str


@functools.lru_cache(maxsize=None)
def model_names(name: str) -> ModelNames:
    """
    Derive file, route and variable names for a model.

    Examples:
        >>> model_names("UserProfile")
        ModelNames(name='UserProfile', plural='UserProfiles', file_name='user_profile',
                   route='user_profiles', var='userProfile', plural_var='userProfiles')
    """
    plural: str = to_plural(name)
    return ModelNames(
        name=name,
        plural=plural,
        file_name=to_snake_case(name),
        route=to_plural(to_snake_case(name)),
        var=go_identifier(to_camel_case(name)),
        plural_var=go_identifier(to_camel_case(plural)),
    )


# ---------------------------------------------------------------------------
# File I/O helpers
# ---------------------------------------------------------------------------


def ensure_directory(path: Path) -> None:
    """Create directory (and parents) if it doesn't exist."""
    path.mkdir(parents=True, exist_ok=True)
    logger.debug("Ensured directory exists: %s", path)


def write_file(path: Path, data: bytes) -> int:
    """
    Write *data* to *path* atomically.

    The bytes go to a temporary file in the target directory which is then
    renamed over *path*, so readers see either the old or the new content.
    Parent directories are created as needed.  Returns the number of bytes
    written.
    """
    ensure_directory(path.parent)

    fd, tmp_path = tempfile.mkstemp(
        dir=str(path.parent),
        prefix=f".{path.name}.",
        suffix=".tmp",
    )
    try:
        with os.fdopen(fd, "wb") as fh:
            fh.write(data)
        os.replace(tmp_path, str(path))
    except BaseException:
        if os.path.exists(tmp_path):
            os.unlink(tmp_path)
        raise

    logger.debug("Wrote %d bytes to %s", len(data), path)
    return len(data)


# ---------------------------------------------------------------------------
# Checksum & metrics
# ---------------------------------------------------------------------------


def sha256_hex(data: bytes) -> str:
    """Return SHA-256 hex digest of *data*."""
    return hashlib.sha256(data).hexdigest()


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
        with Timer("skeleton") as t:
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


__all__: List[str] = [
    "GO_KEYWORDS",
    "ModelNames",
    "Timer",
    "count_lines",
    "ensure_directory",
    "go_identifier",
    "model_names",
    "sha256_hex",
    "to_camel_case",
    "to_plural",
    "to_snake_case",
    "write_file",
]
