"""WS-Discovery probing for ONVIF network video devices."""

from camprobe.config import DiscoveryConfig
from camprobe.errors import (
    DiscoveryError,
    DiscoveryReadError,
    DiscoverySendError,
    DiscoverySetupError,
    IncompleteReplyError,
    MalformedReplyError,
)
from camprobe.models import Device, DiscoveryRequest, DiscoveryResult
from camprobe.session import DiscoverySession, discover

__all__ = [
    "Device",
    "DiscoveryConfig",
    "DiscoveryError",
    "DiscoveryReadError",
    "DiscoveryRequest",
    "DiscoveryResult",
    "DiscoverySendError",
    "DiscoverySession",
    "DiscoverySetupError",
    "IncompleteReplyError",
    "MalformedReplyError",
    "discover",
]
