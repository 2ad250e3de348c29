"""
backend/tests/conftest.py

Purpose:
    Shared pytest bootstrap: import paths for the backend `app` package and
    the root-level `tools` scripts, plus isolation of FastAPI dependency
    overrides between router tests.
"""

from __future__ import annotations

import sys
from pathlib import Path

import pytest

_THIS_FILE = Path(__file__).resolve()
_BACKEND_DIR = _THIS_FILE.parents[1]
_REPO_ROOT = _THIS_FILE.parents[2]

for candidate in (str(_BACKEND_DIR), str(_REPO_ROOT)):
    if candidate not in sys.path:
        sys.path.insert(0, candidate)


@pytest.fixture(autouse=True)
def _clear_dependency_overrides():
    from app.main import app

    yield
    app.dependency_overrides.clear()
