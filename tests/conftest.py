"""Pytest configuration and fixtures."""

import os
import sys
from pathlib import Path

import pytest

# Add repo root, src and tests to path (for 'compilepad.*' and 'session_fakes' imports)
tests_dir = Path(__file__).parent
repo_root = tests_dir.parent
sys.path.insert(0, str(repo_root))
sys.path.insert(0, str(repo_root / "src"))
sys.path.insert(0, str(tests_dir))


@pytest.fixture(autouse=True)
def _reset_logging():
    """Keep global verbosity and colors from leaking between tests."""
    from compilepad.core.logging import VerbosityLevel, set_colors, set_verbosity

    set_verbosity(VerbosityLevel.NORMAL)
    set_colors(False)
    yield
    set_verbosity(VerbosityLevel.NORMAL)
    set_colors(False)


@pytest.fixture
def isolated_home(tmp_path, monkeypatch):
    """Point HOME at tmp_path and drop COMPILEPAD_* variables.

    Returns:
        Temporary home directory
    """
    monkeypatch.setenv("HOME", str(tmp_path))
    for name in list(os.environ):
        if name.startswith("COMPILEPAD_"):
            monkeypatch.delenv(name, raising=False)
    return tmp_path


@pytest.fixture
def scripted_backend():
    """Create a ScriptedBackend that hands out fresh FakeModules.

    Returns:
        ScriptedBackend instance
    """
    from session_fakes import ScriptedBackend

    return ScriptedBackend()


@pytest.fixture
def make_session():
    """Factory for sessions wired to a ScriptedBackend.

    Returns:
        Callable building a CompileSession
    """
    from session_fakes import build_session

    return build_session
