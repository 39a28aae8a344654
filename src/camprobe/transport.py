"""Blocking UDP multicast transport for one discovery session."""

from __future__ import annotations

import logging
import socket
from types import TracebackType
from typing import Protocol

from camprobe.clock import Clock, SystemClock
from camprobe.config import DiscoveryConfig
from camprobe.errors import DiscoveryReadError, DiscoverySendError, DiscoverySetupError

logger = logging.getLogger(__name__)


class Transport(Protocol):
    """Send-once, read-until-deadline datagram endpoint."""

    def send(self, payload: bytes) -> None: ...

    def set_deadline(self, deadline: float) -> None: ...

    def read(self) -> bytes | None: ...

    def close(self) -> None: ...

    def __enter__(self) -> Transport: ...

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None: ...


def resolve_multicast_address(group: str, port: int) -> tuple[str, int]:
    """Resolve the discovery multicast group to an IPv4 socket address.

    Raises:
        DiscoverySetupError: If the group cannot be resolved
    """
    try:
        infos = socket.getaddrinfo(group, port, socket.AF_INET, socket.SOCK_DGRAM)
    except (socket.gaierror, UnicodeError) as exc:
        raise DiscoverySetupError(
            f"Cannot resolve multicast address {group}:{port}", cause=exc
        ) from exc
    if not infos:
        raise DiscoverySetupError(f"Cannot resolve multicast address {group}:{port}")
    host, resolved_port = infos[0][4][:2]
    return str(host), int(resolved_port)


class UdpMulticastTransport:
    """UDP endpoint bound to an ephemeral port for a single Probe exchange.

    The socket is acquired in the constructor and released by ``close()``;
    use the instance as a context manager so release happens on every path.
    """

    def __init__(self, config: DiscoveryConfig | None = None, clock: Clock | None = None) -> None:
        self._config = config or DiscoveryConfig()
        self._clock = clock or SystemClock()
        self._deadline: float | None = None
        self._target = resolve_multicast_address(
            self._config.multicast_group, self._config.multicast_port
        )
        try:
            sock = socket.socket(socket.AF_INET, socket.SOCK_DGRAM, socket.IPPROTO_UDP)
        except OSError as exc:
            raise DiscoverySetupError("Cannot create UDP socket", cause=exc) from exc
        try:
            sock.setsockopt(socket.IPPROTO_IP, socket.IP_MULTICAST_TTL, self._config.ttl)
            sock.bind(("", 0))
        except OSError as exc:
            sock.close()
            raise DiscoverySetupError("Cannot bind UDP socket", cause=exc) from exc
        self._sock: socket.socket | None = sock
        logger.debug(
            "Bound discovery socket",
            extra={
                "local_port": sock.getsockname()[1],
                "target": f"{self._target[0]}:{self._target[1]}",
            },
        )

    @property
    def target(self) -> tuple[str, int]:
        return self._target

    def send(self, payload: bytes) -> None:
        sock = self._require_socket()
        try:
            sock.sendto(payload, self._target)
        except OSError as exc:
            raise DiscoverySendError(self._target, exc) from exc

    def set_deadline(self, deadline: float) -> None:
        self._deadline = deadline

    def read(self) -> bytes | None:
        """Return the next datagram, or None once the deadline has passed.

        Raises:
            DiscoveryReadError: On any socket error other than a timeout
        """
        sock = self._require_socket()
        if self._deadline is None:
            raise RuntimeError("set_deadline() must be called before read()")

        remaining = self._deadline - self._clock.now()
        if remaining <= 0:
            return None
        try:
            sock.settimeout(remaining)
            data, addr = sock.recvfrom(self._config.buffer_size)
        except TimeoutError:
            return None
        except OSError as exc:
            raise DiscoveryReadError(exc) from exc
        logger.debug("Received %d bytes from %s:%s", len(data), addr[0], addr[1])
        return data

    def close(self) -> None:
        if self._sock is None:
            return
        try:
            self._sock.close()
        finally:
            self._sock = None

    def _require_socket(self) -> socket.socket:
        if self._sock is None:
            raise RuntimeError("Transport is closed")
        return self._sock

    def __enter__(self) -> UdpMulticastTransport:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close()


__all__ = ["Transport", "UdpMulticastTransport", "resolve_multicast_address"]
