"""Command line front end.

Usage:
    compilepad compile FILE [--stdlib] [--no-validate] [--no-optimize] [--wide]
                            [--output text|binary] [--download DIR]
    compilepad serve [--host HOST] [--port PORT]
    compilepad compilers
"""

from __future__ import annotations

import argparse
import asyncio
import dataclasses
from pathlib import Path
from typing import Any

from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from compilepad import __version__
from compilepad.backends import available_backends
from compilepad.core.busy_state import BusyState
from compilepad.core.config import ConfigResolver, PlaygroundSettings
from compilepad.core.errors import CompilePadError, ConfigError
from compilepad.core.logging import VerbosityLevel, get_verbosity, set_colors, set_verbosity
from compilepad.core.models import CompileMode, OutputType
from compilepad.core.session import CompileSession

_STATE_STYLES = {
    BusyState.BUSY: "yellow",
    BusyState.SUCCESS: "green",
    BusyState.FAILURE: "bold red",
}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="compilepad", description="Interactive compile playground")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument("--config", type=Path, default=None, help="User config file (YAML)")
    verbosity = parser.add_mutually_exclusive_group()
    verbosity.add_argument("-v", "--verbose", action="count", default=0, help="More output (-vv for debug)")
    verbosity.add_argument("-q", "--quiet", action="store_true", help="Warnings and errors only")

    sub = parser.add_subparsers(dest="command", required=True)

    p_compile = sub.add_parser("compile", help="Compile a file once and report diagnostics")
    p_compile.add_argument("file", type=Path)
    p_compile.add_argument("--compiler", default=None)
    p_compile.add_argument("--stdlib", action="store_true", default=None, help="Include the standard library")
    p_compile.add_argument("--no-validate", dest="validate", action="store_false", default=None)
    p_compile.add_argument("--no-optimize", dest="optimize", action="store_false", default=None)
    p_compile.add_argument("--wide", dest="wide_address_mode", action="store_true", default=None, help="8-byte pointers")
    p_compile.add_argument("--output", choices=[t.value for t in OutputType], default=None, help="Print compiled output")
    p_compile.add_argument("--download", type=Path, default=None, metavar="DIR", help="Save the binary into DIR")

    p_serve = sub.add_parser("serve", help="Serve the playground HTTP API")
    p_serve.add_argument("--host", default=None)
    p_serve.add_argument("--port", type=int, default=None)

    sub.add_parser("compilers", help="List available compilers")
    return parser


def _cli_overrides(args: argparse.Namespace) -> dict[str, Any]:
    overrides: dict[str, Any] = {}
    if getattr(args, "compiler", None):
        overrides["compiler"] = args.compiler
    for key in ("stdlib", "validate", "optimize", "wide_address_mode"):
        value = getattr(args, key, None)
        if value is not None:
            overrides[f"options.{key}"] = value
    if getattr(args, "host", None):
        overrides["web.host"] = args.host
    if getattr(args, "port", None):
        overrides["web.port"] = args.port
    return overrides


def _apply_verbosity(args: argparse.Namespace, resolver: ConfigResolver) -> None:
    if args.quiet:
        set_verbosity(VerbosityLevel.QUIET)
    elif args.verbose:
        set_verbosity(min(VerbosityLevel.NORMAL + args.verbose, VerbosityLevel.DEBUG))
    else:
        set_verbosity(resolver.resolve_logging_level())
    set_colors(resolver.resolve_bool("logging.color"))


def render_session(console: Console, session: CompileSession, output: OutputType | None = None) -> None:
    """Print notifications, annotations and the status line."""
    for notification in session.notifications:
        console.print(Panel(Text(notification.message), style="white on red", expand=False))

    if session.annotations:
        table = Table(title="Annotations", show_lines=False)
        table.add_column("Line", justify="right")
        table.add_column("Kind")
        table.add_column("Message")
        for annotation in session.annotations:
            table.add_row(str(annotation.row + 1), annotation.kind.value, Text(annotation.text.splitlines()[0]))
        console.print(table)

    if output is not None and session.busy_state == BusyState.SUCCESS:
        session.on_output_select(output)
        console.print(session.rendered_output(), highlight=False, markup=False)

    state = session.busy_state
    size = f"  [dim]{session.binary_size}[/dim]" if session.can_download else ""
    console.print(f"[{_STATE_STYLES[state]}]{session.status_message}[/]{size}")


async def _compile_once(session: CompileSession) -> bool:
    try:
        return await session.start()
    finally:
        session.stop()
        await session.wait_idle()


def _cmd_compile(args: argparse.Namespace, settings: PlaygroundSettings, console: Console) -> int:
    try:
        source = args.file.read_text(encoding="utf-8")
    except OSError as e:
        console.print(f"[red]Cannot read {escape(str(args.file))}: {escape(str(e))}[/red]")
        return 2

    settings = dataclasses.replace(settings, compile_mode=CompileMode.MANUAL)
    session = CompileSession(settings, source=source)
    if not asyncio.run(_compile_once(session)):
        console.print(f"[red]Compiler '{settings.compiler}' is not available[/red]")
        return 2

    render_session(console, session, OutputType(args.output) if args.output else None)

    if args.download is not None and session.can_download:
        export = session.export_binary()
        args.download.mkdir(parents=True, exist_ok=True)
        target = args.download / export.filename
        target.write_bytes(export.payload)
        console.print(f"Saved {target}")

    return 0 if session.busy_state == BusyState.SUCCESS else 1


def _cmd_serve(resolver: ConfigResolver, settings: PlaygroundSettings) -> int:
    import uvicorn

    from compilepad.web.app import create_app, silence_uvicorn_loggers, uvicorn_log_level

    verbosity = get_verbosity()
    if verbosity <= VerbosityLevel.QUIET:
        silence_uvicorn_loggers()

    app = create_app(CompileSession(settings))
    uvicorn.run(
        app,
        host=resolver.resolve_str("web.host"),
        port=resolver.resolve_int("web.port"),
        log_level=uvicorn_log_level(verbosity),
        access_log=False,
    )
    return 0


def run(argv: list[str] | None = None) -> int:
    """Run the CLI and return the exit code."""
    args = build_parser().parse_args(argv)
    console = Console()

    if args.command == "compilers":
        for name in available_backends():
            console.print(name)
        return 0

    resolver = ConfigResolver(cli_args=_cli_overrides(args), user_config_path=args.config)
    try:
        _apply_verbosity(args, resolver)
        settings = PlaygroundSettings.from_resolver(resolver)
    except (ConfigError, KeyError) as e:
        console.print(f"[red]Configuration error:[/red] {escape(str(e))}")
        return 2

    try:
        if args.command == "compile":
            return _cmd_compile(args, settings, console)
        if args.command == "serve":
            return _cmd_serve(resolver, settings)
    except CompilePadError as e:
        console.print(f"[red]{escape(str(e))}[/red]")
        return 1
    except KeyboardInterrupt:
        console.print("\nInterrupted")
        return 130

    return 2
