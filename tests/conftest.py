"""
Pytest configuration for zetsubou tests.
"""

import os

import pytest


@pytest.fixture(autouse=True)
def clean_zetsubou_env(monkeypatch):
    """Keep ZETSUBOU_* variables from the developer's shell out of the tests."""
    for name in list(os.environ):
        if name.startswith("ZETSUBOU_"):
            monkeypatch.delenv(name, raising=False)
