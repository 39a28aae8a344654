"""Tests for WS-Discovery Probe construction."""

from __future__ import annotations

import uuid
import xml.etree.ElementTree as ET

from camprobe.probe import build_probe, new_message_id

_NS = {
    "s": "http://www.w3.org/2003/05/soap-envelope",
    "a": "http://schemas.xmlsoap.org/ws/2004/08/addressing",
    "d": "http://schemas.xmlsoap.org/ws/2005/04/discovery",
}


def test_build_probe_embeds_message_id_from_id_source(id_source, message_id: str) -> None:
    """build_probe should place the injected UUID in the MessageID header."""
    # Given: A deterministic id source

    # When: Building a probe
    request = build_probe(id_source)

    # Then: MessageID uses the uuid: scheme and is echoed in the document
    assert request.message_id == message_id
    root = ET.fromstring(request.payload)
    assert root.findtext("s:Header/a:MessageID", namespaces=_NS) == message_id


def test_build_probe_targets_network_video_transmitters() -> None:
    """build_probe should address the discovery service and ask for NVT devices."""
    # Given/When: A probe with the default id source
    request = build_probe()

    # Then: Header and body follow WS-Discovery Probe conventions
    root = ET.fromstring(request.payload)
    assert (
        root.findtext("s:Header/a:Action", namespaces=_NS)
        == "http://schemas.xmlsoap.org/ws/2005/04/discovery/Probe"
    )
    assert (
        root.findtext("s:Header/a:To", namespaces=_NS)
        == "urn:schemas-xmlsoap-org:ws:2005:04:discovery"
    )
    types = root.findtext("s:Body/d:Probe/d:Types", namespaces=_NS)
    assert types is not None
    assert types.strip() == "dp0:NetworkVideoTransmitter"


def test_build_probe_collapses_whitespace_between_tags() -> None:
    """build_probe should not transmit indentation or newlines."""
    # Given/When: A built probe
    payload = build_probe().payload.decode("utf-8")

    # Then: No newline or tag-separating whitespace remains
    assert "\n" not in payload
    assert "> <" not in payload
    assert "  " not in payload


def test_build_probe_uses_fresh_id_per_call() -> None:
    """Two probes built with the default source should never share an id."""
    # Given/When: Two probes
    first = build_probe()
    second = build_probe()

    # Then: Each carries its own MessageID
    assert first.message_id != second.message_id
    assert first.message_id.startswith("uuid:")


def test_new_message_id_formats_uuid() -> None:
    """new_message_id should prefix the UUID with the uuid: scheme."""
    value = uuid.UUID("6f1c3c0e-5f0a-4f6e-9a51-1f2c1d0a9b7e")
    assert new_message_id(lambda: value) == "uuid:6f1c3c0e-5f0a-4f6e-9a51-1f2c1d0a9b7e"
