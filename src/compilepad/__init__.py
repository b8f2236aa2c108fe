"""compilepad - interactive compile playground.

Compiles source text on every edit without blocking interaction and
reports diagnostics as editor annotations and notifications.
"""

__version__ = "0.1.0"


def main() -> None:
    """Main entry point for the compilepad CLI."""
    import sys

    from compilepad.cli import run

    sys.exit(run())
