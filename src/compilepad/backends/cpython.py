"""CPython bytecode backend.

Compiles source text with the running interpreter's own compiler:
- syntax errors become located diagnostics,
- with ``stdlib`` disabled, imports of standard-library modules are rejected,
- the text output is a ``dis`` listing, the binary a ``.pyc``-layout payload.
"""

from __future__ import annotations

import ast
import dis
import importlib.util
import io
import marshal
import platform
import sys
from collections.abc import Iterator
from types import CodeType

from compilepad.core.errors import ArtifactDisposedError, CompileFailure, CompilerError
from compilepad.core.models import CompileOptions
from compilepad.core.stdlib_probe import STDLIB_MODULES

SOURCE_NAME = "input.py"

CODE_SYNTAX = "CP1005"
CODE_MISSING_MODULE = "CP2307"
CODE_UNSTABLE_CODE = "CP5001"


def format_diagnostic(
    code: str,
    message: str,
    line: int | None = None,
    column: int | None = None,
    category: str = "ERROR",
) -> str:
    """Render a diagnostic the way the session expects to read it back.

    Example:
        format_diagnostic("CP1005", "invalid syntax", 3, 5)
        -> 'ERROR CP1005: invalid syntax\\n in input.py(3,5)'
    """
    text = f"{category} {code}: {message}"
    if line is not None:
        text += f"\n in {SOURCE_NAME}({line},{column or 1})"
    return text


def _syntax_diagnostic(exc: SyntaxError) -> str:
    return format_diagnostic(CODE_SYNTAX, exc.msg or "invalid syntax", exc.lineno, exc.offset)


def _walk_code(code: CodeType) -> Iterator[CodeType]:
    yield code
    for const in code.co_consts:
        if isinstance(const, CodeType):
            yield from _walk_code(const)


class CPythonModule:
    """Compiled module produced by :class:`CPythonBackend`."""

    def __init__(self, tree: ast.Module, code: CodeType, *, source_size: int, pointer_size: int) -> None:
        self._tree: ast.Module | None = tree
        self._code: CodeType | None = code
        self._source_size = source_size
        self._pointer_size = pointer_size
        self._optimized = False
        self._disposed = False

    @property
    def disposed(self) -> bool:
        return self._disposed

    def _require_code(self) -> CodeType:
        if self._disposed or self._code is None:
            raise ArtifactDisposedError("Compiled module used after dispose()")
        return self._code

    def validate(self) -> None:
        """Check that every code object survives a marshal round trip.

        Raises:
            CompileFailure: With one diagnostic per unstable code object
        """
        diagnostics = []
        for code in _walk_code(self._require_code()):
            restored = marshal.loads(marshal.dumps(code))
            if restored.co_code != code.co_code:
                diagnostics.append(
                    format_diagnostic(
                        CODE_UNSTABLE_CODE,
                        f"Code object '{code.co_qualname}' does not survive serialization",
                        code.co_firstlineno,
                        1,
                    )
                )
        if diagnostics:
            raise CompileFailure(diagnostics)

    def optimize(self) -> None:
        """Recompile with asserts and docstrings stripped."""
        self._require_code()
        if self._tree is None:
            raise ArtifactDisposedError("Compiled module used after dispose()")
        self._code = compile(self._tree, SOURCE_NAME, "exec", dont_inherit=True, optimize=2)
        self._optimized = True

    def emit_text(self) -> str:
        code = self._require_code()
        buf = io.StringIO()
        buf.write(f"; module {SOURCE_NAME}\n")
        buf.write(
            f"; target: {sys.implementation.cache_tag} uintptr={self._pointer_size} "
            f"optimized={'yes' if self._optimized else 'no'}\n"
        )
        dis.dis(code, file=buf)
        return buf.getvalue()

    def emit_binary(self) -> bytes:
        code = self._require_code()
        # PEP 552 header: magic, flags, mtime, source size.
        header = (
            importlib.util.MAGIC_NUMBER
            + (0).to_bytes(4, "little")
            + (0).to_bytes(4, "little")
            + (self._source_size & 0xFFFFFFFF).to_bytes(4, "little")
        )
        return header + marshal.dumps(code)

    def dispose(self) -> None:
        if self._disposed:
            raise ArtifactDisposedError("dispose() called more than once")
        self._tree = None
        self._code = None
        self._disposed = True


class CPythonBackend:
    """Compile source text to CPython bytecode."""

    name = "CPython"

    def __init__(self) -> None:
        self.version = ""
        self._loaded = False
        self._diagnostics: list[str] = []

    async def load(self) -> None:
        self.version = platform.python_version()
        self._loaded = True

    def last_diagnostics(self) -> list[str]:
        return list(self._diagnostics)

    def compile_source(self, text: str, options: CompileOptions) -> CPythonModule | None:
        """Compile ``text``.

        Args:
            text: Full source text
            options: Effective compile options

        Returns:
            Compiled module, or None when the input is rejected

        Raises:
            CompilerError: If the backend was never loaded
        """
        if not self._loaded:
            raise CompilerError(f"{self.name} backend is not loaded")

        self._diagnostics = []

        try:
            tree = ast.parse(text, filename=SOURCE_NAME)
        except SyntaxError as e:
            self._diagnostics = [_syntax_diagnostic(e)]
            return None

        if not options.stdlib:
            self._diagnostics = list(self._stdlib_import_diagnostics(tree))
            if self._diagnostics:
                return None

        try:
            code = compile(tree, SOURCE_NAME, "exec", dont_inherit=True)
        except SyntaxError as e:
            self._diagnostics = [_syntax_diagnostic(e)]
            return None

        return CPythonModule(
            tree,
            code,
            source_size=len(text.encode("utf-8")),
            pointer_size=options.pointer_size,
        )

    def _stdlib_import_diagnostics(self, tree: ast.Module) -> Iterator[str]:
        imports = sorted(
            (n for n in ast.walk(tree) if isinstance(n, (ast.Import, ast.ImportFrom))),
            key=lambda n: (n.lineno, n.col_offset),
        )
        for node in imports:
            if isinstance(node, ast.Import):
                names = [alias.name for alias in node.names]
            elif isinstance(node, ast.ImportFrom) and node.level == 0 and node.module:
                names = [node.module]
            else:
                continue

            for name in names:
                top = name.split(".")[0]
                if top in STDLIB_MODULES:
                    yield format_diagnostic(
                        CODE_MISSING_MODULE,
                        f"Cannot find module '{name}'. Standard library is disabled.",
                        node.lineno,
                        node.col_offset + 1,
                    )
