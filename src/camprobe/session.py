"""WS-Discovery session loop.

A session sends one Probe, then reads replies until its deadline, keeping
every device whose ProbeMatch echoes the Probe's MessageID.
"""

from __future__ import annotations

import logging
import uuid
from collections.abc import Callable
from enum import StrEnum

from camprobe.clock import Clock, SystemClock
from camprobe.config import DiscoveryConfig
from camprobe.errors import DiscoveryError
from camprobe.models import Device, DiscoveryResult
from camprobe.parser import ReplyKind, ReplyVerdict, classify_reply
from camprobe.probe import IdSource, build_probe
from camprobe.transport import Transport, UdpMulticastTransport

logger = logging.getLogger(__name__)

TransportFactory = Callable[[DiscoveryConfig, Clock], Transport]


class SessionState(StrEnum):
    IDLE = "idle"
    SENT = "sent"
    LISTENING = "listening"
    TERMINATED = "terminated"


class DeviceCollector:
    """Accumulates accepted devices and applies the reply policy.

    Returns an error for verdicts that end the session: MALFORMED aborts,
    INCOMPLETE (no XAddrs) is logged and skipped, UNCORRELATED is ignored.
    """

    def __init__(self, message_id: str, *, dedupe: bool = False) -> None:
        self.message_id = message_id
        self.devices: list[Device] = []
        self._dedupe = dedupe
        self._seen: set[tuple[str, str]] = set()

    def add(self, verdict: ReplyVerdict) -> DiscoveryError | None:
        match verdict.kind:
            case ReplyKind.ACCEPTED:
                assert verdict.device is not None
                self._append(verdict.device)
            case ReplyKind.UNCORRELATED:
                logger.debug("Ignoring reply not related to probe %s", self.message_id)
            case ReplyKind.INCOMPLETE:
                logger.warning(
                    "Skipping discovery reply: %s",
                    verdict.error,
                    extra={"message_id": self.message_id},
                )
            case ReplyKind.MALFORMED:
                return verdict.error
        return None

    def _append(self, device: Device) -> None:
        key = (device.id, device.xaddr)
        if self._dedupe and key in self._seen:
            logger.debug("Duplicate reply from %s", device.id)
            return
        self._seen.add(key)
        self.devices.append(device)
        logger.info(
            "Discovered ONVIF device %s at %s",
            device.id,
            device.xaddr,
            extra={"device_name": device.name, "message_id": self.message_id},
        )


class DiscoverySession:
    """One bounded Probe/ProbeMatch exchange over a Transport."""

    def __init__(
        self,
        transport: Transport,
        *,
        clock: Clock | None = None,
        id_source: IdSource = uuid.uuid4,
        config: DiscoveryConfig | None = None,
    ) -> None:
        self._transport = transport
        self._clock = clock or SystemClock()
        self._id_source = id_source
        self._config = config or DiscoveryConfig()
        self.state = SessionState.IDLE

    def run(self, duration_s: float) -> DiscoveryResult:
        if self.state is not SessionState.IDLE:
            raise RuntimeError("DiscoverySession can only run once")
        if duration_s <= 0:
            raise ValueError("duration_s must be > 0")

        started_at = self._clock.now()
        request = build_probe(self._id_source)
        collector = DeviceCollector(request.message_id, dedupe=self._config.dedupe)

        try:
            self._transport.send(request.payload)
        except DiscoveryError as exc:
            self.state = SessionState.TERMINATED
            logger.error("Discovery probe failed: %s", exc)
            return DiscoveryResult(devices=[], error=exc)
        self.state = SessionState.SENT
        logger.debug("Sent probe", extra={"message_id": request.message_id})

        self._transport.set_deadline(started_at + duration_s)
        self.state = SessionState.LISTENING

        error = self._listen(collector)
        self.state = SessionState.TERMINATED
        if error is not None:
            logger.error(
                "Discovery aborted after %d device(s): %s", len(collector.devices), error
            )
        else:
            logger.debug(
                "Discovery window closed",
                extra={"message_id": request.message_id, "devices": len(collector.devices)},
            )
        return DiscoveryResult(devices=list(collector.devices), error=error)

    def _listen(self, collector: DeviceCollector) -> DiscoveryError | None:
        while True:
            try:
                raw = self._transport.read()
            except DiscoveryError as exc:
                return exc
            if raw is None:
                return None

            verdict = classify_reply(
                collector.message_id, raw, name_scope_prefix=self._config.name_scope_prefix
            )
            error = collector.add(verdict)
            if error is not None:
                return error


def discover(
    duration_s: float | None = None,
    *,
    config: DiscoveryConfig | None = None,
    clock: Clock | None = None,
    id_source: IdSource = uuid.uuid4,
    transport_factory: TransportFactory | None = None,
) -> DiscoveryResult:
    """Probe for ONVIF NetworkVideoTransmitters and collect replies.

    Blocks for up to ``duration_s`` seconds. Fatal conditions are returned in
    ``DiscoveryResult.error`` together with the devices accepted before them;
    they are not raised.

    Args:
        duration_s: Listen window in seconds. Defaults to ``config.duration_s``.
        config: Discovery settings.
        clock: Time source; also used to arm the transport deadline.
        id_source: UUID factory for the Probe MessageID.
        transport_factory: Builds the Transport; defaults to UDP multicast.
    """
    config = config or DiscoveryConfig()
    clock = clock or SystemClock()
    window = config.duration_s if duration_s is None else duration_s
    if window <= 0:
        raise ValueError("duration_s must be > 0")
    factory = transport_factory or UdpMulticastTransport

    try:
        transport = factory(config, clock)
    except DiscoveryError as exc:
        logger.error("Discovery setup failed: %s", exc)
        return DiscoveryResult(devices=[], error=exc)

    with transport:
        session = DiscoverySession(transport, clock=clock, id_source=id_source, config=config)
        return session.run(window)


__all__ = ["DeviceCollector", "DiscoverySession", "SessionState", "TransportFactory", "discover"]
