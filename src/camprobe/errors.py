"""Error hierarchy for WS-Discovery sessions."""

from __future__ import annotations


class DiscoveryError(Exception):
    """Base exception for all discovery errors.

    Compatible with error-as-value pattern: instances are returned in
    ``DiscoveryResult.error`` instead of raised. Preserves stack traces via
    exception chaining.
    """

    def __init__(self, message: str, stage: str, cause: Exception | None = None) -> None:
        super().__init__(message)
        self.stage = stage
        self.cause = cause
        self.__cause__ = cause  # Python's exception chaining


class DiscoverySetupError(DiscoveryError):
    """Multicast address resolution or UDP endpoint acquisition failed."""

    def __init__(self, message: str, cause: Exception | None = None) -> None:
        super().__init__(message, stage="setup", cause=cause)


class DiscoverySendError(DiscoveryError):
    """Probe datagram could not be sent."""

    def __init__(self, target: tuple[str, int], cause: Exception) -> None:
        super().__init__(
            f"Failed to send probe to {target[0]}:{target[1]}", stage="send", cause=cause
        )
        self.target = target


class DiscoveryReadError(DiscoveryError):
    """Receiving a reply failed for a reason other than the deadline."""

    def __init__(self, cause: Exception) -> None:
        super().__init__(f"Failed to read discovery reply: {cause}", stage="read", cause=cause)


class MalformedReplyError(DiscoveryError):
    """Reply payload is not a ProbeMatch document."""

    def __init__(self, message: str, cause: Exception | None = None) -> None:
        super().__init__(message, stage="parse", cause=cause)


class IncompleteReplyError(MalformedReplyError):
    """Correlated reply advertises no service address."""

    def __init__(self, device_id: str) -> None:
        super().__init__(f"Device {device_id or '<unknown>'} does not have any XAddr")
        self.device_id = device_id
