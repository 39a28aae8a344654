"""Fakes and reply builders for testing."""

from tests.camprobe.mocks.clock import FakeClock
from tests.camprobe.mocks.replies import make_probe_match, sequential_ids
from tests.camprobe.mocks.transport import FakeAsyncTransport, FakeTransport

__all__ = [
    "FakeAsyncTransport",
    "FakeClock",
    "FakeTransport",
    "make_probe_match",
    "sequential_ids",
]
