"""Pytest configuration for dataknobs_validator tests."""

import sys
from pathlib import Path

import pytest

# Add the package source to path for testing
src_path = Path(__file__).parent.parent / "src"
if str(src_path) not in sys.path:
    sys.path.insert(0, str(src_path))

from dataknobs_validator import ValidatorContext, reset_default_context  # noqa: E402


@pytest.fixture
def context():
    """Isolated validation context with a fresh cache and registries."""
    return ValidatorContext()


@pytest.fixture(autouse=True)
def _reset_default_context():
    reset_default_context()
    yield
    reset_default_context()
