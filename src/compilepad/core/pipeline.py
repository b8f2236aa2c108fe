"""Compile pipeline - ordered asynchronous stages.

One pipeline run compiles one finalized request:

    announce -> invoke -> reject
                       -> [validate] -> [optimize] -> emit

Every stage is preceded by a cooperative yield, so the state written by one
stage is observable before the next one starts. Whatever happens, a run ends
in exactly one outcome and leaves the "compiling" sub-state.
"""

from __future__ import annotations

import asyncio
import traceback
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Optional

from compilepad.core.annotations import MAX_PRINTING_ERRORS, limit_diagnostics
from compilepad.core.busy_state import CompileIndicator
from compilepad.core.errors import CompileFailure, StageCrash
from compilepad.core.events import (
    COMPILE_FINISHED,
    COMPILE_STARTED,
    NOTIFICATION_PUSHED,
    EventBus,
)
from compilepad.core.logging import get_logger
from compilepad.core.models import (
    Artifact,
    CompilationOutcome,
    CompileRequest,
    Failure,
    InternalError,
    Success,
)
from compilepad.core.state import SessionState

if TYPE_CHECKING:
    from compilepad.backends.base import CompiledModule, CompilerBackend

_logger = get_logger(__name__)


@dataclass
class PipelineRun:
    """Per-run scratch data; never shared between runs."""

    request: CompileRequest
    generation: int
    module: CompiledModule | None = None
    diagnostics: list[str] = field(default_factory=list)
    outcome: CompilationOutcome | None = None
    announced: bool = False
    stages: list[str] = field(default_factory=list)


Stage = Callable[[PipelineRun], Optional["Stage"]]


class CompilePipeline:
    """Run compile requests against a session's state."""

    def __init__(
        self,
        state: SessionState,
        backend_for: Callable[[str], CompilerBackend],
        *,
        indicator: CompileIndicator,
        events: EventBus,
        probe: Callable[[str], bool],
        max_errors: int = MAX_PRINTING_ERRORS,
    ) -> None:
        """Initialize pipeline.

        Args:
            state: Session state the stages write to
            backend_for: Returns the loaded backend for a compiler id
            indicator: Compile button busy sub-state
            events: Session event bus
            probe: Stdlib requirement predicate
            max_errors: Diagnostics reported individually per cycle
        """
        self._state = state
        self._backend_for = backend_for
        self._indicator = indicator
        self._events = events
        self._probe = probe
        self._max_errors = max_errors

    async def run(self, request: CompileRequest) -> PipelineRun:
        """Execute all stages for ``request``.

        Never raises for compiler problems; the outcome lands in the session
        state and on the returned run.
        """
        self._state.generation += 1
        run = PipelineRun(request=request.finalize(self._probe), generation=self._state.generation)
        if run.request.options.stdlib and not request.options.stdlib:
            _logger.verbose("source requires the standard library; stdlib enabled for this compile")

        stage: Stage | None = self._announce
        try:
            while stage is not None:
                await asyncio.sleep(0)
                if not self._state.alive:
                    _logger.debug(f"session stopped; pipeline #{run.generation} abandoned")
                    break
                run.stages.append(stage.__name__.lstrip("_"))
                stage = stage(run)
        except CompileFailure as e:
            if self._state.alive:
                self._report_failure(run, e.diagnostics)
        except Exception as e:
            if self._state.alive:
                self._report_internal_error(run, e)
        finally:
            self._release(run)
            if run.announced:
                self._indicator.end_compile()
                if self._state.alive:
                    self._events.publish(
                        COMPILE_FINISHED,
                        {
                            "generation": run.generation,
                            "outcome": run.outcome.kind if run.outcome else None,
                            "error_count": self._state.error_count,
                        },
                    )

        return run

    # Stages

    def _announce(self, run: PipelineRun) -> Stage:
        state = self._state
        state.error_count = 0
        state.outcome = None
        state.annotations = ()
        state.notifications.clear()

        self._indicator.start_compile()
        run.announced = True
        self._events.publish(
            COMPILE_STARTED,
            {"generation": run.generation, "compiler": run.request.compiler, "options": run.request.options.to_dict()},
        )
        return self._invoke

    def _invoke(self, run: PipelineRun) -> Stage:
        backend = self._backend_for(run.request.compiler)
        module = backend.compile_source(run.request.source, run.request.options)

        if module is None:
            run.diagnostics = list(backend.last_diagnostics())
            return self._reject

        run.module = module
        if run.request.options.validate:
            return self._validate
        return self._after_validate(run)

    def _reject(self, run: PipelineRun) -> None:
        self._report_failure(run, run.diagnostics)
        return None

    def _validate(self, run: PipelineRun) -> Stage:
        try:
            self._module(run).validate()
        except CompileFailure:
            raise
        except Exception as e:
            raise StageCrash("validate", e) from e
        return self._after_validate(run)

    def _after_validate(self, run: PipelineRun) -> Stage:
        if run.request.options.optimize:
            return self._optimize
        return self._emit

    def _optimize(self, run: PipelineRun) -> Stage:
        try:
            self._module(run).optimize()
        except Exception as e:
            raise StageCrash("optimize", e) from e
        return self._emit

    def _emit(self, run: PipelineRun) -> None:
        module = self._module(run)
        run.module = None
        try:
            try:
                text = module.emit_text()
                binary = bytes(module.emit_binary())
            finally:
                module.dispose()
        except Exception as e:
            raise StageCrash("emit", e) from e

        state = self._state
        state.artifact = Artifact(text=text, binary=binary)
        state.error_count = 0
        state.outcome = run.outcome = Success(text=text, binary=binary)
        _logger.verbose(f"compiled successfully ({len(binary)} bytes)")
        return None

    # Reporting

    def _report_failure(self, run: PipelineRun, diagnostics: Sequence[str]) -> None:
        state = self._state
        limited = limit_diagnostics(diagnostics, self._max_errors)

        state.outcome = run.outcome = Failure(diagnostics=tuple(diagnostics))
        state.error_count = limited.total

        for message in limited.shown:
            _logger.error(message)
            self._notify(message)

        if limited.summary is not None:
            _logger.error(limited.summary)
            self._notify(limited.summary)

        state.annotations = limited.annotations

    def _report_internal_error(self, run: PipelineRun, exc: Exception) -> None:
        state = self._state
        cause = exc.cause if isinstance(exc, StageCrash) else exc
        message = f"<{run.request.compiler}> internal error:\n{cause}"

        state.outcome = run.outcome = InternalError(message=message)
        state.error_count = 1
        state.annotations = ()

        _logger.error(message)
        _logger.debug("".join(traceback.format_exception(exc)))
        self._notify(message)

    def _notify(self, message: str) -> None:
        notification = self._state.notifications.push(message)
        if notification is not None:
            self._events.publish(NOTIFICATION_PUSHED, notification.to_dict())

    # Resources

    @staticmethod
    def _module(run: PipelineRun) -> CompiledModule:
        if run.module is None:
            raise RuntimeError("pipeline stage reached without a compiled module")
        return run.module

    def _release(self, run: PipelineRun) -> None:
        """Dispose a module left behind by a failed or abandoned run."""
        module, run.module = run.module, None
        if module is None:
            return
        try:
            module.dispose()
        except Exception as e:
            _logger.warning(f"dispose failed after pipeline #{run.generation}: {type(e).__name__}: {e}")
