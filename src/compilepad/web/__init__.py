"""HTTP front end for a compile session."""

from compilepad.web.app import create_app

__all__ = ["create_app"]
