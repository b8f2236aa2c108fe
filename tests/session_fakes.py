"""Scripted compiler backend for orchestrator tests."""

from __future__ import annotations

from collections.abc import Callable

from compilepad.core.config import PlaygroundSettings
from compilepad.core.errors import CompilerNotFoundError
from compilepad.core.models import CompileMode, CompileOptions
from compilepad.core.session import CompileSession


class FakeModule:
    """Compiled module whose stages can be told to raise."""

    def __init__(
        self,
        text: str = "(module)",
        binary: bytes = b"\x00asm\x01\x00\x00\x00",
        *,
        validate_error: Exception | None = None,
        optimize_error: Exception | None = None,
        emit_error: Exception | None = None,
    ) -> None:
        self.text = text
        self.binary = binary
        self.validate_error = validate_error
        self.optimize_error = optimize_error
        self.emit_error = emit_error
        self.calls: list[str] = []
        self.dispose_count = 0

    def validate(self) -> None:
        self.calls.append("validate")
        if self.validate_error is not None:
            raise self.validate_error

    def optimize(self) -> None:
        self.calls.append("optimize")
        if self.optimize_error is not None:
            raise self.optimize_error

    def emit_text(self) -> str:
        self.calls.append("emit_text")
        if self.emit_error is not None:
            raise self.emit_error
        return self.text

    def emit_binary(self) -> bytes:
        self.calls.append("emit_binary")
        return self.binary

    def dispose(self) -> None:
        self.calls.append("dispose")
        self.dispose_count += 1


class ScriptedBackend:
    """Backend returning whatever the test scripted.

    ``module_factory=None`` makes every compile a rejection carrying
    ``diagnostics``.
    """

    name = "Scripted"

    def __init__(
        self,
        *,
        module_factory: Callable[[], FakeModule] | None = FakeModule,
        diagnostics: list[str] | None = None,
        raises: Exception | None = None,
        fail_load: bool = False,
        on_compile: Callable[[], None] | None = None,
    ) -> None:
        self.version = ""
        self.module_factory = module_factory
        self.diagnostics = list(diagnostics or [])
        self.raises = raises
        self.fail_load = fail_load
        self.on_compile = on_compile
        self.calls: list[tuple[str, CompileOptions]] = []
        self.modules: list[FakeModule] = []
        self.loads = 0

    async def load(self) -> None:
        self.loads += 1
        if self.fail_load:
            raise RuntimeError("runtime script missing")
        self.version = "1.0-test"

    def compile_source(self, text: str, options: CompileOptions) -> FakeModule | None:
        self.calls.append((text, options))
        if self.on_compile is not None:
            self.on_compile()
        if self.raises is not None:
            raise self.raises
        if self.module_factory is None:
            return None
        module = self.module_factory()
        self.modules.append(module)
        return module

    def last_diagnostics(self) -> list[str]:
        return list(self.diagnostics)

    @property
    def texts(self) -> list[str]:
        return [text for text, _options in self.calls]


def build_session(
    backend: ScriptedBackend | None = None,
    *,
    mode: CompileMode = CompileMode.MANUAL,
    delay_ms: int = 20,
    options: CompileOptions | None = None,
    source: str = "x = 1\n",
    probe: Callable[[str], bool] | None = None,
    max_errors: int = 8,
    extra_backends: dict[str, ScriptedBackend] | None = None,
) -> CompileSession:
    """Build a session whose only compilers are the given scripted backends."""
    backend = backend or ScriptedBackend()
    backends = {backend.name: backend, **(extra_backends or {})}

    def factory(name: str) -> ScriptedBackend:
        if name not in backends:
            raise CompilerNotFoundError(name)
        return backends[name]

    settings = PlaygroundSettings(
        compiler=backend.name,
        compile_mode=mode,
        auto_compile_delay_ms=delay_ms,
        max_printing_errors=max_errors,
        options=options or CompileOptions(),
    )
    kwargs = {} if probe is None else {"probe": probe}
    return CompileSession(settings, source=source, backend_factory=factory, **kwargs)


def located(n: int, line: int | None = None) -> str:
    """Diagnostic number ``n`` located on ``line`` (defaults to ``n``)."""
    return f"ERROR T{n:04d}: problem {n}\n in input.py({line or n},1)"
