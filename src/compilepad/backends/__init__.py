"""Compiler backend registry."""

from __future__ import annotations

from collections.abc import Callable

from compilepad.backends.base import CompiledModule, CompilerBackend
from compilepad.backends.cpython import CPythonBackend
from compilepad.core.errors import CompilerNotFoundError

BackendFactory = Callable[[], CompilerBackend]

_REGISTRY: dict[str, BackendFactory] = {
    CPythonBackend.name: CPythonBackend,
}


def register_backend(name: str, factory: BackendFactory) -> None:
    """Register (or replace) a backend factory under ``name``."""
    _REGISTRY[name] = factory


def unregister_backend(name: str) -> None:
    _REGISTRY.pop(name, None)


def available_backends() -> list[str]:
    return sorted(_REGISTRY)


def create_backend(name: str) -> CompilerBackend:
    """Instantiate the backend registered under ``name``.

    Raises:
        CompilerNotFoundError: If no backend is registered under that name
    """
    factory = _REGISTRY.get(name)
    if factory is None:
        raise CompilerNotFoundError(name)
    return factory()


__all__ = [
    "BackendFactory",
    "CPythonBackend",
    "CompiledModule",
    "CompilerBackend",
    "available_backends",
    "create_backend",
    "register_backend",
    "unregister_backend",
]
