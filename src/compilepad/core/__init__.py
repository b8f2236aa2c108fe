"""compilepad core - incremental compile orchestration."""

from compilepad.core.annotations import (
    MAX_PRINTING_ERRORS,
    LimitedDiagnostics,
    limit_diagnostics,
    to_annotation,
)
from compilepad.core.busy_state import BusyState, CompileIndicator, derive_busy_state
from compilepad.core.config import ConfigResolver, PlaygroundSettings
from compilepad.core.errors import (
    ArtifactDisposedError,
    ArtifactUnavailableError,
    CompileFailure,
    CompilePadError,
    CompilerError,
    CompilerNotFoundError,
    ConfigError,
    StageCrash,
)
from compilepad.core.events import EventBus
from compilepad.core.logging import VerbosityLevel, get_logger, get_verbosity, set_colors, set_verbosity
from compilepad.core.models import (
    Annotation,
    AnnotationKind,
    Artifact,
    BinaryExport,
    CompilationOutcome,
    CompileMode,
    CompileOptions,
    CompileRequest,
    Failure,
    InternalError,
    Notification,
    OutputType,
    Success,
)
from compilepad.core.notifications import NotificationQueue
from compilepad.core.pipeline import CompilePipeline, PipelineRun
from compilepad.core.scheduler import DebounceScheduler
from compilepad.core.session import DEFAULT_SOURCE, CompileSession
from compilepad.core.stdlib_probe import requires_stdlib

__all__ = [
    # Session
    "CompileSession",
    "DEFAULT_SOURCE",
    "CompilePipeline",
    "PipelineRun",
    "DebounceScheduler",
    "NotificationQueue",
    # Models
    "Annotation",
    "AnnotationKind",
    "Artifact",
    "BinaryExport",
    "CompilationOutcome",
    "CompileMode",
    "CompileOptions",
    "CompileRequest",
    "Failure",
    "InternalError",
    "Notification",
    "OutputType",
    "Success",
    # Diagnostics
    "MAX_PRINTING_ERRORS",
    "LimitedDiagnostics",
    "limit_diagnostics",
    "to_annotation",
    "requires_stdlib",
    # Status
    "BusyState",
    "CompileIndicator",
    "derive_busy_state",
    # Config
    "ConfigResolver",
    "PlaygroundSettings",
    # Errors
    "CompilePadError",
    "ConfigError",
    "CompilerError",
    "CompilerNotFoundError",
    "CompileFailure",
    "StageCrash",
    "ArtifactDisposedError",
    "ArtifactUnavailableError",
    # Events / logging
    "EventBus",
    "VerbosityLevel",
    "get_logger",
    "get_verbosity",
    "set_verbosity",
    "set_colors",
]
