"""Error handling with friendly messages."""

from __future__ import annotations

from collections.abc import Sequence


class CompilePadError(Exception):
    """Base exception for all compilepad errors."""

    def __init__(self, message: str, suggestion: str | None = None) -> None:
        self.message = message
        self.suggestion = suggestion
        super().__init__(message)

    def __str__(self) -> str:
        if self.suggestion:
            return f"{self.message}\nSuggestion: {self.suggestion}"
        return self.message


class ConfigError(CompilePadError):
    """Configuration error."""

    pass


class CompilerError(CompilePadError):
    """Compiler backend error."""

    pass


class CompilerNotFoundError(CompilerError):
    """Compiler backend not registered."""

    def __init__(self, compiler: str) -> None:
        self.compiler = compiler
        super().__init__(
            f"Compiler '{compiler}' not supported",
            "Check available compilers with: compilepad compile --help",
        )


class CompileFailure(CompilerError):
    """Structured, diagnostic-bearing rejection of the input.

    Raised by backend stages (e.g. validation) that reject the module the
    same way the compiler itself does.
    """

    def __init__(self, diagnostics: Sequence[str], message: str | None = None) -> None:
        self.diagnostics = list(diagnostics)
        super().__init__(message or f"Compilation failed with {len(self.diagnostics)} diagnostic(s)")


class StageCrash(CompilerError):
    """Unexpected exception inside a post-compile stage."""

    def __init__(self, stage: str, cause: BaseException) -> None:
        self.stage = stage
        self.cause = cause
        super().__init__(f"{stage} stage crashed: {type(cause).__name__}: {cause}")


class ArtifactDisposedError(CompilerError):
    """Compiled module used after dispose()."""

    pass


class ArtifactUnavailableError(CompilePadError):
    """No downloadable artifact for the current outcome."""

    def __init__(self) -> None:
        super().__init__(
            "No compiled binary available",
            "Fix the reported errors and compile again",
        )
