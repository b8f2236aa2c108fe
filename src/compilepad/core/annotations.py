"""Diagnostic limiter and annotator.

Diagnostics are opaque strings; the only fact extracted from them is the
first parenthesized ``(line,column)`` locator, e.g. ``input.py(3,5)``.
"""

from __future__ import annotations

import re
from collections.abc import Sequence
from dataclasses import dataclass

from compilepad.core.models import Annotation, AnnotationKind

MAX_PRINTING_ERRORS = 8

_LOCATOR_RE = re.compile(r"\(\s*(\d+)\s*,\s*(\d+)\s*\)")
_CATEGORY_RE = re.compile(r"^\s*(ERROR|WARNING|INFO)\b", re.IGNORECASE)


def find_locator(text: str) -> tuple[int, int] | None:
    """Return the first (line, column) pair embedded in ``text``."""
    match = _LOCATOR_RE.search(text)
    if match is None:
        return None
    return int(match.group(1)), int(match.group(2))


def diagnostic_kind(text: str) -> AnnotationKind:
    """Category from a leading ERROR/WARNING/INFO tag; error when untagged."""
    match = _CATEGORY_RE.match(text)
    if match is None:
        return AnnotationKind.ERROR
    return AnnotationKind(match.group(1).lower())


def to_annotation(text: str, kind: AnnotationKind | None = None) -> Annotation | None:
    """Convert a diagnostic into an editor annotation.

    Args:
        text: Raw diagnostic text
        kind: Force a kind instead of reading the category tag

    Returns:
        Annotation on row ``line - 1``, or None when the diagnostic has no
        usable locator (line 0 is treated as malformed)
    """
    locator = find_locator(text)
    if locator is None:
        return None

    line, _column = locator
    if line < 1:
        return None

    return Annotation(row=line - 1, kind=kind or diagnostic_kind(text), text=text)


@dataclass(frozen=True)
class LimitedDiagnostics:
    shown: tuple[str, ...]
    annotations: tuple[Annotation, ...]
    total: int
    summary: str | None


def too_many_errors_message(total: int) -> str:
    return f"Too many errors ({total})"


def limit_diagnostics(
    diagnostics: Sequence[str], max_count: int = MAX_PRINTING_ERRORS
) -> LimitedDiagnostics:
    """Bound the diagnostics reported for one compile cycle.

    Order is preserved as returned by the compiler.

    Args:
        diagnostics: Diagnostics in compiler order
        max_count: Maximum diagnostics to report individually

    Returns:
        The first ``max_count`` diagnostics, their annotations, the true total
        and a summary message iff the total exceeds ``max_count``
    """
    shown = tuple(diagnostics[:max_count])
    annotations = tuple(a for a in (to_annotation(d) for d in shown) if a is not None)
    total = len(diagnostics)
    summary = too_many_errors_message(total) if total > max_count else None
    return LimitedDiagnostics(shown=shown, annotations=annotations, total=total, summary=summary)
