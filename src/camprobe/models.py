"""Data models for discovery requests, replies and results."""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass, field
from typing import Any

from pydantic import BaseModel, ConfigDict, field_validator

from camprobe.errors import DiscoveryError


@dataclass(frozen=True, slots=True)
class Device:
    """ONVIF device identity taken from an accepted ProbeMatch."""

    id: str
    name: str
    xaddr: str
    xaddrs: tuple[str, ...] = ()
    scopes: tuple[str, ...] = ()
    types: tuple[str, ...] = ()


@dataclass(frozen=True, slots=True)
class DiscoveryRequest:
    """Probe payload plus the MessageID replies must echo in RelatesTo."""

    message_id: str
    payload: bytes


@dataclass(frozen=True, slots=True)
class DiscoveryResult:
    """Outcome of one discovery session.

    ``error`` is None when the session ended at its deadline. On a fatal
    error ``devices`` still holds everything accepted before it. Unpacks as
    ``devices, error = result``.
    """

    devices: list[Device] = field(default_factory=list)
    error: DiscoveryError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def raise_for_error(self) -> list[Device]:
        if self.error is not None:
            raise self.error
        return self.devices

    def __iter__(self) -> Iterator[Any]:
        yield self.devices
        yield self.error


def _split_tokens(value: Any) -> Any:
    if value is None:
        return ()
    if isinstance(value, str):
        return tuple(value.split())
    return value


class ProbeMatch(BaseModel):
    """Fields of the first ProbeMatch element in a reply body."""

    model_config = ConfigDict(frozen=True)

    address: str = ""
    types: tuple[str, ...] = ()
    scopes: tuple[str, ...] = ()
    xaddrs: tuple[str, ...] = ()

    @field_validator("address", mode="before")
    @classmethod
    def _strip_address(cls, value: Any) -> Any:
        if value is None:
            return ""
        if isinstance(value, str):
            return value.strip()
        return value

    @field_validator("types", "scopes", "xaddrs", mode="before")
    @classmethod
    def _split_whitespace(cls, value: Any) -> Any:
        return _split_tokens(value)


class ProbeMatchEnvelope(BaseModel):
    """Typed view of a WS-Discovery ProbeMatches SOAP envelope."""

    model_config = ConfigDict(frozen=True)

    relates_to: str = ""
    probe_match: ProbeMatch | None = None

    @field_validator("relates_to", mode="before")
    @classmethod
    def _strip_text(cls, value: Any) -> Any:
        if value is None:
            return ""
        if isinstance(value, str):
            return value.strip()
        return value
