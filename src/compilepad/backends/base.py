"""Compiler call contract.

A backend is a black box to the session: it is loaded once, then asked to
compile full source texts. A ``None`` result means the input was rejected
and ``last_diagnostics()`` explains why.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from compilepad.core.models import CompileOptions


@runtime_checkable
class CompiledModule(Protocol):
    """Compiled module holding backend resources until ``dispose()``."""

    def validate(self) -> None:
        """Structural validation.

        Raises:
            CompileFailure: If the module is rejected
        """
        ...

    def optimize(self) -> None: ...

    def emit_text(self) -> str: ...

    def emit_binary(self) -> bytes: ...

    def dispose(self) -> None:
        """Release the module. Must be called exactly once."""
        ...


@runtime_checkable
class CompilerBackend(Protocol):
    """Compiler backend interface."""

    name: str
    version: str

    async def load(self) -> None:
        """Prepare the backend; the session is not ready until this returns."""
        ...

    def compile_source(self, text: str, options: CompileOptions) -> CompiledModule | None: ...

    def last_diagnostics(self) -> list[str]:
        """Diagnostics of the last rejected ``compile_source`` call."""
        ...
