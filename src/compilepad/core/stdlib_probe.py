"""Heuristic detection of standard-library usage in source text.

The probe is advisory: it may upgrade a compile to include the standard
library, never the other way round.
"""

from __future__ import annotations

import re
import sys

_IMPORT_RE = re.compile(
    r"^[ \t]*(?:from[ \t]+([A-Za-z_]\w*)[\w.]*[ \t]+import\b|import[ \t]+([A-Za-z_][\w., \t]*))",
    re.MULTILINE,
)

STDLIB_MODULES: frozenset[str] = frozenset(
    name for name in sys.stdlib_module_names if not name.startswith("_")
)


def imported_modules(source: str) -> list[str]:
    """Top-level module names referenced by import statements, in order."""
    names: list[str] = []
    for match in _IMPORT_RE.finditer(source):
        if match.group(1):
            names.append(match.group(1))
            continue
        for part in match.group(2).split(","):
            words = part.strip().split()
            if words:
                names.append(words[0].split(".")[0])
    return names


def requires_stdlib(source: str) -> bool:
    """Return True when ``source`` appears to import a standard-library module."""
    return any(name in STDLIB_MODULES for name in imported_modules(source))
