"""Shared pytest fixtures for camprobe tests."""

from __future__ import annotations

import sys
from pathlib import Path

# Add src and the repository root to sys.path for imports
_repo_root = Path(__file__).parent.parent.parent
for _path in (_repo_root / "src", _repo_root):
    if str(_path.resolve()) not in sys.path:
        sys.path.insert(0, str(_path.resolve()))

import pytest

from tests.camprobe.mocks import FakeClock, sequential_ids

FIRST_MESSAGE_ID = "uuid:00000000-0000-0000-0000-000000000001"


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock(start=100.0)


@pytest.fixture
def id_source():
    """Deterministic MessageID source; the first Probe uses FIRST_MESSAGE_ID."""
    return sequential_ids()


@pytest.fixture
def message_id() -> str:
    return FIRST_MESSAGE_ID
