"""Busy/success/failure status projection."""

from __future__ import annotations

from enum import StrEnum


class BusyState(StrEnum):
    BUSY = "busy"
    SUCCESS = "success"
    FAILURE = "failure"


def derive_busy_state(ready: bool, success: bool, failure: bool) -> BusyState:
    """Project orchestrator flags onto the displayed status.

    Not ready, mid-pipeline and contradictory flags all read as busy.
    """
    if ready:
        if failure and not success:
            return BusyState.FAILURE
        if success and not failure:
            return BusyState.SUCCESS
    return BusyState.BUSY


class CompileIndicator:
    """Transient "compiling" sub-state of the compile button."""

    def __init__(self) -> None:
        self.compiling = False
        self.started = 0
        self.ended = 0

    def start_compile(self) -> None:
        self.compiling = True
        self.started += 1

    def end_compile(self) -> None:
        self.compiling = False
        self.ended += 1
