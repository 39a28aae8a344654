"""Discovery settings."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

WS_DISCOVERY_MULTICAST_GROUP = "239.255.255.250"
WS_DISCOVERY_PORT = 3702
ONVIF_NAME_SCOPE_PREFIX = "onvif://www.onvif.org/name/"


class DiscoveryConfig(BaseModel):
    """Settings for one WS-Discovery session."""

    model_config = ConfigDict(frozen=True)

    duration_s: float = Field(default=2.0, gt=0)
    multicast_group: str = WS_DISCOVERY_MULTICAST_GROUP
    multicast_port: int = Field(default=WS_DISCOVERY_PORT, ge=1, le=65535)
    ttl: int = Field(default=1, ge=1, le=255)
    buffer_size: int = Field(default=10 * 1024, ge=1024)
    name_scope_prefix: str = ONVIF_NAME_SCOPE_PREFIX
    dedupe: bool = False
