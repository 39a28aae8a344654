"""asyncio variant of the discovery session.

The read step is a single suspension point bounded by the session deadline.
The endpoint is closed in ``finally`` so it is released even when the
awaiting task is cancelled.
"""

from __future__ import annotations

import asyncio
import logging
import socket
import uuid
from typing import Protocol

from camprobe.config import DiscoveryConfig
from camprobe.errors import (
    DiscoveryError,
    DiscoveryReadError,
    DiscoverySendError,
    DiscoverySetupError,
)
from camprobe.models import DiscoveryResult
from camprobe.parser import classify_reply
from camprobe.probe import IdSource, build_probe
from camprobe.session import DeviceCollector
from camprobe.transport import resolve_multicast_address

logger = logging.getLogger(__name__)


class AsyncTransport(Protocol):
    async def send(self, payload: bytes) -> None: ...

    async def read(self, deadline: float) -> bytes | None: ...

    def close(self) -> None: ...


class _ReplyProtocol(asyncio.DatagramProtocol):
    """Queues received datagrams and receive errors for ``read()``.

    Selector transports report a failed ``sendto`` through ``error_received``
    synchronously; while ``sending`` is set such errors are kept in
    ``send_error`` instead of being queued for the reader.
    """

    def __init__(self) -> None:
        self.queue: asyncio.Queue[bytes | Exception] = asyncio.Queue()
        self.sending = False
        self.send_error: Exception | None = None

    def datagram_received(self, data: bytes, addr: tuple[str, int]) -> None:
        logger.debug("Received %d bytes from %s:%s", len(data), addr[0], addr[1])
        self.queue.put_nowait(data)

    def error_received(self, exc: Exception) -> None:
        if self.sending:
            self.send_error = exc
            return
        self.queue.put_nowait(exc)


class AsyncUdpMulticastTransport:
    """asyncio datagram endpoint bound to an ephemeral port."""

    def __init__(
        self,
        transport: asyncio.DatagramTransport,
        protocol: _ReplyProtocol,
        target: tuple[str, int],
    ) -> None:
        self._transport = transport
        self._protocol = protocol
        self._target = target

    @classmethod
    async def open(cls, config: DiscoveryConfig) -> AsyncUdpMulticastTransport:
        """Resolve the multicast group and bind the endpoint.

        Raises:
            DiscoverySetupError: If resolution or endpoint creation fails
        """
        target = resolve_multicast_address(config.multicast_group, config.multicast_port)
        loop = asyncio.get_running_loop()
        try:
            transport, protocol = await loop.create_datagram_endpoint(
                _ReplyProtocol, local_addr=("0.0.0.0", 0), family=socket.AF_INET
            )
        except OSError as exc:
            raise DiscoverySetupError("Cannot bind UDP socket", cause=exc) from exc

        sock = transport.get_extra_info("socket")
        if sock is not None:
            try:
                sock.setsockopt(socket.IPPROTO_IP, socket.IP_MULTICAST_TTL, config.ttl)
            except OSError as exc:
                transport.close()
                raise DiscoverySetupError("Cannot set multicast TTL", cause=exc) from exc
        return cls(transport, protocol, target)

    async def send(self, payload: bytes) -> None:
        protocol = self._protocol
        protocol.sending = True
        protocol.send_error = None
        try:
            self._transport.sendto(payload, self._target)
        except OSError as exc:
            raise DiscoverySendError(self._target, exc) from exc
        finally:
            protocol.sending = False
        if protocol.send_error is not None:
            failure = protocol.send_error
            protocol.send_error = None
            raise DiscoverySendError(self._target, failure) from failure

    async def read(self, deadline: float) -> bytes | None:
        """Wait for the next datagram until the loop-time ``deadline``."""
        remaining = deadline - asyncio.get_running_loop().time()
        if remaining <= 0:
            return None
        try:
            item = await asyncio.wait_for(self._protocol.queue.get(), timeout=remaining)
        except TimeoutError:
            return None
        if isinstance(item, Exception):
            raise DiscoveryReadError(item) from item
        return item

    def close(self) -> None:
        self._transport.close()


async def discover_async(
    duration_s: float | None = None,
    *,
    config: DiscoveryConfig | None = None,
    id_source: IdSource = uuid.uuid4,
    transport: AsyncTransport | None = None,
) -> DiscoveryResult:
    """Cooperative counterpart of ``camprobe.discover``.

    When ``transport`` is supplied it is used as-is and still closed on exit.
    The deadline is measured with the event loop clock (``loop.time()``);
    unlike ``discover`` there is no ``clock`` argument.
    """
    config = config or DiscoveryConfig()
    window = config.duration_s if duration_s is None else duration_s
    if window <= 0:
        raise ValueError("duration_s must be > 0")

    loop = asyncio.get_running_loop()
    started_at = loop.time()

    if transport is None:
        try:
            transport = await AsyncUdpMulticastTransport.open(config)
        except DiscoveryError as exc:
            logger.error("Discovery setup failed: %s", exc)
            return DiscoveryResult(devices=[], error=exc)

    try:
        request = build_probe(id_source)
        collector = DeviceCollector(request.message_id, dedupe=config.dedupe)
        try:
            await transport.send(request.payload)
        except DiscoveryError as exc:
            logger.error("Discovery probe failed: %s", exc)
            return DiscoveryResult(devices=[], error=exc)

        deadline = started_at + window
        error: DiscoveryError | None = None
        while True:
            try:
                raw = await transport.read(deadline)
            except DiscoveryError as exc:
                error = exc
                break
            if raw is None:
                break
            verdict = classify_reply(
                request.message_id, raw, name_scope_prefix=config.name_scope_prefix
            )
            error = collector.add(verdict)
            if error is not None:
                break

        if error is not None:
            logger.error(
                "Discovery aborted after %d device(s): %s", len(collector.devices), error
            )
        return DiscoveryResult(devices=list(collector.devices), error=error)
    finally:
        transport.close()


__all__ = ["AsyncTransport", "AsyncUdpMulticastTransport", "discover_async"]
