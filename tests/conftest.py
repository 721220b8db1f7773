"""Pytest configuration and fixtures shared across all test modules.

This file is automatically loaded by pytest before running any tests.
It pins the environment so settings resolve to their documented defaults.
"""

import os

import pytest

# CRITICAL: Set this before any imports that might load settings
os.environ["APP_ENV"] = "development"
for _key in list(os.environ):
    if _key.startswith("DEVTRACE_"):
        del os.environ[_key]


@pytest.fixture
def source_file(tmp_path):
    """Write a 100-line source file ("line1" .. "line100") and return its path."""
    path = tmp_path / "sample.py"
    path.write_text("\n".join(f"line{i}" for i in range(1, 101)), encoding="utf-8")
    return path
