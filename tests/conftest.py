"""Pytest configuration for issuemirror tests.

Ensures the in-repo `src` directory is on `sys.path` so the package can be
imported without an editable install, and scrubs the GitHub Actions
environment so tests behave the same locally and on a runner.
"""

from __future__ import annotations

import os
import sys
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))

pytest_plugins = ["pytest_asyncio"]

_RUNNER_VARS = (
    "GITHUB_ACTIONS",
    "GITHUB_EVENT_NAME",
    "GITHUB_EVENT_PATH",
    "GITHUB_REPOSITORY",
    "GITHUB_TOKEN",
    "GH_TOKEN",
    "ISSUEMIRROR_GITHUB_TOKEN",
    "ISSUEMIRROR_QUIET",
)


@pytest.fixture(autouse=True)
def _isolated_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in _RUNNER_VARS:
        monkeypatch.delenv(name, raising=False)
    for name in list(os.environ):
        if name.startswith("INPUT_"):
            monkeypatch.delenv(name, raising=False)
    # no real sleeping between retries
    monkeypatch.setenv("ISSUEMIRROR_RETRY_BASE", "0")
    monkeypatch.setenv("ISSUEMIRROR_RETRY_MAX_SLEEP", "0")
