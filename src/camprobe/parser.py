"""ProbeMatch parsing and reply classification."""

from __future__ import annotations

import logging
import xml.etree.ElementTree as ET
from dataclasses import dataclass
from enum import StrEnum
from urllib.parse import unquote

from pydantic import ValidationError

from camprobe.config import ONVIF_NAME_SCOPE_PREFIX
from camprobe.errors import IncompleteReplyError, MalformedReplyError
from camprobe.models import Device, ProbeMatch, ProbeMatchEnvelope

logger = logging.getLogger(__name__)

_URN_PREFIXES = ("urn:uuid:", "urn:")


class ReplyKind(StrEnum):
    ACCEPTED = "accepted"
    UNCORRELATED = "uncorrelated"
    MALFORMED = "malformed"
    INCOMPLETE = "incomplete"


@dataclass(frozen=True, slots=True)
class ReplyVerdict:
    """Classification of one received datagram."""

    kind: ReplyKind
    device: Device | None = None
    error: MalformedReplyError | None = None


def _local_name(tag: str) -> str:
    return tag.rsplit("}", 1)[-1]


def _find_child(parent: ET.Element | None, name: str) -> ET.Element | None:
    if parent is None:
        return None
    for child in parent:
        if _local_name(child.tag) == name:
            return child
    return None


def _child_text(parent: ET.Element | None, name: str) -> str | None:
    child = _find_child(parent, name)
    if child is None:
        return None
    return child.text


def parse_probe_match(raw: bytes) -> ProbeMatchEnvelope:
    """Parse a reply datagram into a typed envelope.

    Elements are matched by local name so replies using any namespace prefix
    (or WS-Addressing 2005/08 instead of 2004/08) are accepted.

    Raises:
        MalformedReplyError: If the payload is not XML or not a SOAP envelope
    """
    try:
        root = ET.fromstring(raw)
    except ET.ParseError as exc:
        raise MalformedReplyError(f"Reply is not valid XML: {exc}", cause=exc) from exc

    if _local_name(root.tag) != "Envelope":
        raise MalformedReplyError(f"Reply root is {_local_name(root.tag)!r}, expected 'Envelope'")

    header = _find_child(root, "Header")
    body = _find_child(root, "Body")
    match_element = _find_child(_find_child(body, "ProbeMatches"), "ProbeMatch")

    probe_match: dict[str, str | None] | None = None
    if match_element is not None:
        probe_match = {
            "address": _child_text(_find_child(match_element, "EndpointReference"), "Address"),
            "types": _child_text(match_element, "Types"),
            "scopes": _child_text(match_element, "Scopes"),
            "xaddrs": _child_text(match_element, "XAddrs"),
        }

    try:
        return ProbeMatchEnvelope.model_validate(
            {
                "relates_to": _child_text(header, "RelatesTo"),
                "probe_match": probe_match,
            }
        )
    except ValidationError as exc:
        raise MalformedReplyError(
            f"Reply does not match ProbeMatch schema: {exc}", cause=exc
        ) from exc


def strip_urn_prefix(address: str) -> str:
    for prefix in _URN_PREFIXES:
        if address.lower().startswith(prefix):
            return address[len(prefix) :]
    return address


def device_name_from_scopes(
    scopes: tuple[str, ...], prefix: str = ONVIF_NAME_SCOPE_PREFIX
) -> str:
    """Return the display name advertised in the first name scope, or ''."""
    for scope in scopes:
        if scope.startswith(prefix):
            return unquote(scope[len(prefix) :]).replace("_", " ")
    return ""


def device_from_probe_match(
    probe_match: ProbeMatch, *, name_scope_prefix: str = ONVIF_NAME_SCOPE_PREFIX
) -> Device:
    """Build a Device from a ProbeMatch.

    Raises:
        IncompleteReplyError: If the ProbeMatch advertises no XAddrs
    """
    device_id = strip_urn_prefix(probe_match.address)
    if not probe_match.xaddrs:
        raise IncompleteReplyError(device_id)
    return Device(
        id=device_id,
        name=device_name_from_scopes(probe_match.scopes, name_scope_prefix),
        xaddr=probe_match.xaddrs[0],
        xaddrs=probe_match.xaddrs,
        scopes=probe_match.scopes,
        types=probe_match.types,
    )


def classify_reply(
    message_id: str,
    raw: bytes,
    *,
    name_scope_prefix: str = ONVIF_NAME_SCOPE_PREFIX,
) -> ReplyVerdict:
    """Classify a datagram against the session's MessageID.

    Correlation is checked before field completeness, so traffic answering
    other probes is always UNCORRELATED however well-formed it is.
    """
    try:
        envelope = parse_probe_match(raw)
    except MalformedReplyError as exc:
        return ReplyVerdict(kind=ReplyKind.MALFORMED, error=exc)

    if envelope.relates_to != message_id:
        return ReplyVerdict(kind=ReplyKind.UNCORRELATED)

    if envelope.probe_match is None:
        return ReplyVerdict(kind=ReplyKind.INCOMPLETE, error=IncompleteReplyError(""))

    try:
        device = device_from_probe_match(
            envelope.probe_match, name_scope_prefix=name_scope_prefix
        )
    except IncompleteReplyError as exc:
        return ReplyVerdict(kind=ReplyKind.INCOMPLETE, error=exc)
    return ReplyVerdict(kind=ReplyKind.ACCEPTED, device=device)


__all__ = [
    "ReplyKind",
    "ReplyVerdict",
    "classify_reply",
    "device_from_probe_match",
    "device_name_from_scopes",
    "parse_probe_match",
    "strip_urn_prefix",
]
