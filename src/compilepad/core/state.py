"""Mutable state of one compile session."""

from __future__ import annotations

from dataclasses import dataclass, field

from compilepad.core.models import (
    Annotation,
    Artifact,
    CompilationOutcome,
    CompileMode,
    CompileOptions,
    Failure,
    InternalError,
    OutputType,
    Success,
)
from compilepad.core.notifications import DEFAULT_DISMISS_AFTER_MS, NotificationQueue


@dataclass
class SessionState:
    """Everything a session owns.

    Only the session triggers and the active pipeline's stages mutate it.
    Annotations are always replaced as a whole.
    """

    compiler: str
    options: CompileOptions
    compile_mode: CompileMode
    source: str
    last_text_input: str = ""
    dismiss_after_ms: int = DEFAULT_DISMISS_AFTER_MS

    annotations: tuple[Annotation, ...] = ()
    outcome: CompilationOutcome | None = None
    artifact: Artifact = field(default_factory=Artifact)
    error_count: int = 0
    output_type: OutputType = OutputType.TEXT

    ready: bool = False
    alive: bool = False
    compiling: bool = False
    version: str = ""
    generation: int = 0

    notifications: NotificationQueue = field(init=False)

    def __post_init__(self) -> None:
        self.notifications = NotificationQueue(lambda: self.compile_mode, self.dismiss_after_ms)

    @property
    def success(self) -> bool:
        return isinstance(self.outcome, Success)

    @property
    def failure(self) -> bool:
        return isinstance(self.outcome, (Failure, InternalError))
