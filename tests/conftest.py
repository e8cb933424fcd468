"""Pytest configuration for repository test runs."""

from __future__ import annotations

import sys
from pathlib import Path

import pytest


def pytest_sessionstart() -> None:
    """Add src directory to sys.path for test imports."""
    project_root = Path(__file__).resolve().parent.parent
    src_path = project_root / "src"
    if str(src_path) not in sys.path:
        sys.path.insert(0, str(src_path))


@pytest.fixture(autouse=True)
def _clear_refinery_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep developer REFINERY_* settings out of config-dependent tests."""
    for env_name in (
        "REFINERY_WORK_ROOT",
        "REFINERY_NUM_WORKERS",
        "REFINERY_EXECUTOR",
    ):
        monkeypatch.delenv(env_name, raising=False)
