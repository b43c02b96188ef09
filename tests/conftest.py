"""Shared fixtures for tone_meter tests"""

import sys
from pathlib import Path

import pytest

# Add src to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from fakes import RecordingSink  # noqa: E402


@pytest.fixture
def sink():
    return RecordingSink()
