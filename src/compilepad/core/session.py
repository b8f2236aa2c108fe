"""Compile session - the incremental compile orchestrator.

The session owns all state of one playground: options, the debounce timer,
the loaded compiler backends and the single active pipeline. Front ends talk
to it only through its triggers:

- on_input_change(text)       debounced compile in AUTO mode
- on_compile_click(mode)      compile now
- on_compile_mode_change(m)   switch AUTO/MANUAL/DECOMPILE
- on_settings_option_change   change one compile option, compile now
- on_compiler_change(id)      switch compiler backend, compile now

Example:
    session = CompileSession()
    await session.start()            # loads the backend, first compile
    session.on_input_change("x = 1")
    await asyncio.sleep(1)
    print(session.status_message)
    session.stop()
"""

from __future__ import annotations

import asyncio
from collections.abc import Callable, Coroutine
from typing import TYPE_CHECKING, Any

from compilepad.core.busy_state import BusyState, CompileIndicator, derive_busy_state
from compilepad.core.config import PlaygroundSettings
from compilepad.core.errors import ArtifactUnavailableError, CompilerNotFoundError
from compilepad.core.events import COMPILE_SCHEDULED, EventBus
from compilepad.core.formatting import format_output, format_size, status_message
from compilepad.core.logging import get_logger
from compilepad.core.models import (
    Annotation,
    BinaryExport,
    CompilationOutcome,
    CompileMode,
    CompileRequest,
    Notification,
    OutputType,
)
from compilepad.core.pipeline import CompilePipeline
from compilepad.core.scheduler import DebounceScheduler
from compilepad.core.state import SessionState
from compilepad.core.stdlib_probe import requires_stdlib

if TYPE_CHECKING:
    from compilepad.backends.base import CompilerBackend

_logger = get_logger(__name__)

DEFAULT_SOURCE = """\
def fib(num: int) -> int:
    if num <= 1:
        return 1
    return fib(num - 1) + fib(num - 2)
"""


class CompileSession:
    """Orchestrate when and how source text gets compiled."""

    def __init__(
        self,
        settings: PlaygroundSettings | None = None,
        *,
        source: str = DEFAULT_SOURCE,
        backend_factory: Callable[[str], CompilerBackend] | None = None,
        probe: Callable[[str], bool] = requires_stdlib,
        loop: asyncio.AbstractEventLoop | None = None,
    ) -> None:
        """Initialize session.

        Args:
            settings: Resolved settings (defaults when omitted)
            source: Initial editor text
            backend_factory: Creates a backend for a compiler id
            probe: Stdlib requirement predicate
            loop: Event loop for the debounce timer (defaults to the running loop)
        """
        self.settings = settings or PlaygroundSettings()
        self.state = SessionState(
            compiler=self.settings.compiler,
            options=self.settings.options,
            compile_mode=self.settings.compile_mode,
            source=source,
            last_text_input=source.strip(),
            dismiss_after_ms=self.settings.notification_dismiss_ms,
        )
        self.events = EventBus()
        self.indicator = CompileIndicator()

        if backend_factory is None:
            from compilepad.backends import create_backend

            backend_factory = create_backend

        self._backend_factory = backend_factory
        self._backends: dict[str, CompilerBackend] = {}
        self._scheduler = DebounceScheduler(self._on_timer, loop=loop)
        self._pipeline = CompilePipeline(
            self.state,
            self._backend_for,
            indicator=self.indicator,
            events=self.events,
            probe=probe,
            max_errors=self.settings.max_printing_errors,
        )
        self._pending: CompileRequest | None = None
        self._tasks: set[asyncio.Task[Any]] = set()

    # Lifecycle

    async def start(self) -> bool:
        """Load the active compiler backend and run the first compile.

        Returns:
            True when the backend is ready
        """
        self.state.alive = True
        if not await self._load_backend(self.state.compiler):
            self.state.ready = False
            return False

        await self.compile()
        return True

    def stop(self) -> None:
        """Cancel the timer and release observers; in-flight stages stop mutating state."""
        self.state.alive = False
        self._scheduler.cancel()
        self._pending = None
        self.events.clear()
        _logger.debug("compile session stopped")

    async def wait_idle(self) -> None:
        """Wait until no timer-spawned compile is running."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks))

    async def _load_backend(self, compiler: str) -> bool:
        try:
            backend = self._backend_factory(compiler)
            await backend.load()
        except CompilerNotFoundError:
            _logger.warning(f"Compiler not supported: {compiler}")
            return False
        except Exception as e:
            _logger.error(f"Compiler '{compiler}' failed to load: {type(e).__name__}: {e}")
            return False

        self._backends[compiler] = backend
        self.state.ready = True
        self.state.version = backend.version
        _logger.info(f"{compiler} {backend.version} ready")
        return True

    def _backend_for(self, compiler: str) -> CompilerBackend:
        backend = self._backends.get(compiler)
        if backend is None:
            raise CompilerNotFoundError(compiler)
        return backend

    # Compile entry point

    def build_request(self) -> CompileRequest:
        """Snapshot the current text, compiler and session options."""
        return CompileRequest(
            source=self.state.source,
            compiler=self.state.compiler,
            options=self.state.options,
        )

    async def compile(self, request: CompileRequest | None = None) -> None:
        """Compile ``request`` (or the current state).

        While a pipeline is active the request is parked as the single
        pending request and runs right after it; an older pending request is
        discarded.
        """
        state = self.state
        if not state.alive or not state.ready:
            _logger.debug("compile ignored: session not ready")
            return

        if request is None:
            request = self.build_request()

        if state.compiling:
            if self._pending is not None:
                _logger.debug("pending compile request superseded")
            self._pending = request
            return

        state.compiling = True
        try:
            next_request: CompileRequest | None = request
            while next_request is not None and state.alive:
                await self._pipeline.run(next_request)
                next_request, self._pending = self._pending, None
        finally:
            state.compiling = False

    def _schedule_compile(self) -> None:
        delay = self.settings.auto_compile_delay_ms
        self._scheduler.schedule(delay)
        self.events.publish(COMPILE_SCHEDULED, {"delay_ms": delay})

    def _on_timer(self) -> None:
        self._spawn(self.compile())

    def _spawn(self, coro: Coroutine[Any, Any, None]) -> None:
        task = asyncio.ensure_future(coro)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    # Triggers

    def on_input_change(self, text: str) -> bool:
        """Editor text changed.

        Returns:
            True when a debounced compile was scheduled
        """
        self.state.source = text

        trimmed = text.strip()
        if trimmed == self.state.last_text_input:
            return False
        self.state.last_text_input = trimmed

        if not self.state.alive or self.state.compile_mode != CompileMode.AUTO:
            return False

        self._schedule_compile()
        return True

    async def on_compile_click(self, mode: CompileMode | str | None = None) -> None:
        self._scheduler.cancel()

        mode = CompileMode(mode) if mode is not None else self.state.compile_mode
        if mode == CompileMode.DECOMPILE:
            _logger.debug("decompile not supported yet")
            return

        await self.compile()

    def on_compile_mode_change(self, mode: CompileMode | str) -> None:
        self._scheduler.cancel()
        self.state.compile_mode = CompileMode(mode)

        if self.state.compile_mode == CompileMode.AUTO and self.state.alive:
            self._schedule_compile()

    async def on_settings_option_change(self, key: str, value: bool) -> bool:
        """Change one compile option and recompile.

        Returns:
            False when rejected because the compiler is not ready yet

        Raises:
            ConfigError: If the key or value is invalid
        """
        if not self.state.ready:
            return False

        self.state.options = self.state.options.replace(key, value)
        self._scheduler.cancel()
        await self.compile()
        return True

    async def on_compiler_change(self, compiler: str) -> bool:
        """Switch compiler, loading its backend on first use.

        Returns:
            True when the backend is available
        """
        self._scheduler.cancel()
        self.state.compiler = compiler

        available = compiler in self._backends or await self._load_backend(compiler)
        if available:
            self.state.version = self._backends[compiler].version
        await self.compile()
        return available

    def on_output_select(self, output_type: OutputType | str) -> None:
        self.state.output_type = OutputType(output_type)

    def dismiss_notification(self, key: int) -> bool:
        return self.state.notifications.dismiss(key)

    # Projections

    @property
    def busy_state(self) -> BusyState:
        return derive_busy_state(self.state.ready, self.state.success, self.state.failure)

    @property
    def status_message(self) -> str:
        return status_message(self.busy_state, self.state.error_count)

    @property
    def outcome(self) -> CompilationOutcome | None:
        return self.state.outcome

    @property
    def error_count(self) -> int:
        return self.state.error_count

    @property
    def annotations(self) -> tuple[Annotation, ...]:
        return self.state.annotations

    @property
    def notifications(self) -> tuple[Notification, ...]:
        return self.state.notifications.items

    @property
    def scheduled(self) -> bool:
        return self._scheduler.pending

    @property
    def can_download(self) -> bool:
        return self.state.ready and self.state.success and bool(self.state.artifact.binary)

    @property
    def binary_size(self) -> str:
        binary = self.state.artifact.binary
        return format_size(len(binary)) if binary else ""

    def rendered_output(self) -> str:
        return format_output(self.state.artifact, self.state.output_type)

    def editor_view(self) -> dict[str, Any]:
        return {
            "text": self.state.source,
            "annotations": [a.to_dict() for a in self.state.annotations],
        }

    def export_binary(self) -> BinaryExport:
        """Binary payload for client-side save.

        Raises:
            ArtifactUnavailableError: If download is currently disabled
        """
        if not self.can_download:
            raise ArtifactUnavailableError()
        return BinaryExport(
            filename=f"{self.state.compiler.lower()}.module.wasm",
            payload=self.state.artifact.binary,
        )

    def snapshot(self) -> dict[str, Any]:
        """JSON-ready view of everything the page renders."""
        state = self.state
        return {
            "compiler": state.compiler,
            "version": state.version,
            "ready": state.ready,
            "compiling": state.compiling,
            "compile_mode": state.compile_mode.value,
            "options": state.options.to_dict(),
            "busy_state": self.busy_state.value,
            "status_message": self.status_message,
            "error_count": state.error_count,
            "outcome": state.outcome.kind if state.outcome else None,
            "editor": self.editor_view(),
            "notifications": [n.to_dict() for n in self.notifications],
            "output_type": state.output_type.value,
            "output": self.rendered_output(),
            "binary_size": self.binary_size,
            "can_download": self.can_download,
        }
