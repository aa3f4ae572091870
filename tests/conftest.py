"""Pytest configuration for test isolation.

The CLI reads defaults from the environment (and from a ``.env`` in the
working directory) and installs a stderr handler on the package logger the
first time it runs. Both would leak between tests, so every test gets its own
working directory, a clean ``VENTURE_LEDGER_*`` environment and a freshly
reset package logger.
"""

from __future__ import annotations

import logging
import os
from collections.abc import Iterator
from pathlib import Path

import pytest

from venture_ledger import logging_setup

_ENV_VARS = ("VENTURE_LEDGER_DATA_DIR", "VENTURE_LEDGER_RULES", "VENTURE_LEDGER_LOG_LEVEL")


@pytest.fixture(autouse=True)
def _isolate_env(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Iterator[None]:
    """Run each test from its own temporary directory with no package env vars set."""

    for name in _ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    workdir = tmp_path / "work"
    workdir.mkdir(parents=True, exist_ok=True)
    monkeypatch.chdir(workdir)
    yield
    # ``load_dotenv`` writes straight to ``os.environ``; drop whatever it set.
    for name in _ENV_VARS:
        os.environ.pop(name, None)


@pytest.fixture(autouse=True)
def _reset_package_logger(monkeypatch: pytest.MonkeyPatch) -> Iterator[None]:
    monkeypatch.setattr(logging_setup, "_CONFIGURED", False)
    yield
    logger = logging.getLogger("venture_ledger")
    for h in list(logger.handlers):
        logger.removeHandler(h)
    logger.setLevel(logging.NOTSET)
    logger.propagate = True
