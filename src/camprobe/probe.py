"""WS-Discovery Probe construction."""

from __future__ import annotations

import re
import uuid
from collections.abc import Callable

from camprobe.models import DiscoveryRequest

IdSource = Callable[[], uuid.UUID]

_PROBE_TEMPLATE = """<?xml version="1.0" encoding="UTF-8"?>
<s:Envelope
    xmlns:s="http://www.w3.org/2003/05/soap-envelope"
    xmlns:a="http://schemas.xmlsoap.org/ws/2004/08/addressing">
    <s:Header>
        <a:Action s:mustUnderstand="1">http://schemas.xmlsoap.org/ws/2005/04/discovery/Probe</a:Action>
        <a:MessageID>{message_id}</a:MessageID>
        <a:ReplyTo>
            <a:Address>http://schemas.xmlsoap.org/ws/2004/08/addressing/role/anonymous</a:Address>
        </a:ReplyTo>
        <a:To s:mustUnderstand="1">urn:schemas-xmlsoap-org:ws:2005:04:discovery</a:To>
    </s:Header>
    <s:Body>
        <Probe xmlns="http://schemas.xmlsoap.org/ws/2005/04/discovery">
            <d:Types
                xmlns:d="http://schemas.xmlsoap.org/ws/2005/04/discovery"
                xmlns:dp0="http://www.onvif.org/ver10/network/wsdl">dp0:NetworkVideoTransmitter</d:Types>
        </Probe>
    </s:Body>
</s:Envelope>"""

_BETWEEN_TAGS_RE = re.compile(r">\s+<")
_WHITESPACE_RE = re.compile(r"\s+")


def new_message_id(id_source: IdSource = uuid.uuid4) -> str:
    return f"uuid:{id_source()}"


def build_probe(id_source: IdSource = uuid.uuid4) -> DiscoveryRequest:
    """Build a NetworkVideoTransmitter Probe with a fresh MessageID.

    Args:
        id_source: Callable returning a UUID. Defaults to ``uuid.uuid4``;
                   tests pass a deterministic source.
    """
    message_id = new_message_id(id_source)
    document = _PROBE_TEMPLATE.format(message_id=message_id)
    document = _BETWEEN_TAGS_RE.sub("><", document)
    document = _WHITESPACE_RE.sub(" ", document)
    return DiscoveryRequest(message_id=message_id, payload=document.encode("utf-8"))


__all__ = ["IdSource", "build_probe", "new_message_id"]
