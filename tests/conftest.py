"""
Pytest configuration for the open data registry test suite.

Tests import `open_data_registry...` normally. To make that work in a fresh
checkout without requiring an editable install, we add the repository root
to `sys.path`.
"""

from __future__ import annotations

import sys
from pathlib import Path


def pytest_configure() -> None:
    """
    Ensure the local `open_data_registry` package is importable for tests.

    This only affects the test runtime.
    """

    repo_root = Path(__file__).resolve().parent.parent

    if (repo_root / "open_data_registry").is_dir():
        # Prepend so local sources win over any installed copy.
        sys.path.insert(0, str(repo_root))
