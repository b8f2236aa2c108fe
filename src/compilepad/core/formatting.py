"""Status bar and output rendering helpers."""

from __future__ import annotations

from compilepad.core.busy_state import BusyState
from compilepad.core.models import Artifact, OutputType

_SIZE_UNITS = ("B", "KB", "MB", "GB")


def status_message(state: BusyState, error_count: int) -> str:
    """Status bar text for the footer."""
    if state == BusyState.SUCCESS:
        return "Compiled successfully"
    if state == BusyState.FAILURE:
        return f"({error_count}) Error{'s' if error_count > 1 else ''}"
    return "Processing..."


def format_size(size: int) -> str:
    """Human readable size as ``"<value> <unit>"``.

    Example:
        format_size(512) -> '512 B'
        format_size(2048) -> '2.0 KB'
    """
    if size < 1024:
        return f"{size} B"

    value = float(size)
    unit = _SIZE_UNITS[0]
    for unit in _SIZE_UNITS[1:]:
        value /= 1024.0
        if value < 1024.0:
            break
    return f"{value:.1f} {unit}"


def hex_dump(data: bytes, width: int = 16) -> str:
    rows = []
    for offset in range(0, len(data), width):
        chunk = data[offset : offset + width]
        rows.append(f"{offset:08x}  {chunk.hex(' ')}")
    return "\n".join(rows)


def format_output(artifact: Artifact, output_type: OutputType | str) -> str:
    """Render the artifact for the read-only output view."""
    if OutputType(output_type) == OutputType.BINARY:
        return hex_dump(artifact.binary)
    return artifact.text
