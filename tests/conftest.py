"""Shared test fixtures."""

from __future__ import annotations

import os

import pytest


@pytest.fixture(autouse=True)
def _clear_orderledger_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Drop ORDERLEDGER_* variables so a developer's .env cannot leak in.

    The CLI module calls load_dotenv() at import time.
    """
    for name in list(os.environ):
        if name.startswith("ORDERLEDGER_"):
            monkeypatch.delenv(name, raising=False)
