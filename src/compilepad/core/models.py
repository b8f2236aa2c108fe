"""Value types shared by the compile session, pipeline and front ends."""

from __future__ import annotations

import dataclasses
from collections.abc import Callable
from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any

from compilepad.core.errors import ConfigError


class CompileMode(StrEnum):
    AUTO = "auto"
    MANUAL = "manual"
    DECOMPILE = "decompile"


class AnnotationKind(StrEnum):
    ERROR = "error"
    WARNING = "warning"
    INFO = "info"


class OutputType(StrEnum):
    TEXT = "text"
    BINARY = "binary"


@dataclass(frozen=True)
class CompileOptions:
    """Compile options with enumerated effects.

    Attributes:
        stdlib: Include the standard library surface
        validate: Run the structural validation stage
        optimize: Run the optimization stage before emission
        wide_address_mode: 8-byte pointers instead of 4-byte ones
    """

    stdlib: bool = False
    validate: bool = True
    optimize: bool = True
    wide_address_mode: bool = False

    @property
    def pointer_size(self) -> int:
        return 8 if self.wide_address_mode else 4

    @classmethod
    def keys(cls) -> list[str]:
        return [f.name for f in dataclasses.fields(cls)]

    def replace(self, key: str, value: Any) -> CompileOptions:
        """Return a copy with one option changed.

        Raises:
            ConfigError: If the key is unknown or the value is not a bool
        """
        if key not in self.keys():
            allowed = ", ".join(self.keys())
            raise ConfigError(f"Unknown compile option {key!r}. Allowed options: {allowed}")
        if not isinstance(value, bool):
            raise ConfigError(f"Compile option {key!r} must be a bool, got {type(value).__name__}")
        return dataclasses.replace(self, **{key: value})

    def to_dict(self) -> dict[str, bool]:
        return dataclasses.asdict(self)


@dataclass(frozen=True)
class CompileRequest:
    """Immutable snapshot of what to compile.

    A request is finalized once, right before its pipeline starts; the stdlib
    upgrade only ever lives on the finalized copy.
    """

    source: str
    compiler: str
    options: CompileOptions
    finalized: bool = False

    def finalize(self, probe: Callable[[str], bool]) -> CompileRequest:
        if self.finalized:
            return self

        options = self.options
        if not options.stdlib and probe(self.source):
            options = dataclasses.replace(options, stdlib=True)

        return dataclasses.replace(self, options=options, finalized=True)


@dataclass(frozen=True)
class Annotation:
    row: int
    kind: AnnotationKind
    text: str

    def to_dict(self) -> dict[str, Any]:
        return {"row": self.row, "type": self.kind.value, "text": self.text}


@dataclass(frozen=True)
class Notification:
    id: int
    key: int
    message: str
    dismiss_after_ms: int = 5000

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "key": self.key,
            "message": self.message,
            "dismiss_after_ms": self.dismiss_after_ms,
        }


@dataclass(frozen=True)
class Artifact:
    """Extracted compiler output (textual listing + binary)."""

    text: str = ""
    binary: bytes = b""


@dataclass(frozen=True)
class Success:
    text: str
    binary: bytes

    kind = "success"


@dataclass(frozen=True)
class Failure:
    diagnostics: tuple[str, ...] = field(default_factory=tuple)

    kind = "failure"


@dataclass(frozen=True)
class InternalError:
    message: str

    kind = "internal_error"


CompilationOutcome = Success | Failure | InternalError


@dataclass(frozen=True)
class BinaryExport:
    """Named octet-stream handed to the client for saving."""

    filename: str
    payload: bytes
    media_type: str = "application/octet-stream"
