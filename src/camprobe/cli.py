"""CLI for ONVIF WS-Discovery."""

from __future__ import annotations

import json
import sys
from dataclasses import asdict

import fire  # type: ignore[import-untyped]
from pydantic import ValidationError

from camprobe.config import DiscoveryConfig
from camprobe.logging_setup import configure_logging
from camprobe.models import Device
from camprobe.session import discover


class CamProbeCLI:
    """Find ONVIF cameras on the local network."""

    def discover(
        self,
        duration_s: float = 2.0,
        ttl: int = 1,
        dedupe: bool = False,
        as_json: bool = False,
        log_level: str = "WARNING",
    ) -> None:
        """Multicast a WS-Discovery Probe and list the devices that answer.

        Args:
            duration_s: Seconds to listen for ProbeMatch replies
            ttl: UDP multicast time-to-live
            dedupe: Collapse repeated replies from the same device
            as_json: Print devices as a JSON array
            log_level: Logging level (DEBUG, INFO, WARNING, ERROR)
        """
        configure_logging(log_level=log_level)
        try:
            config = DiscoveryConfig(duration_s=duration_s, ttl=ttl, dedupe=dedupe)
        except ValidationError as exc:
            _exit_with_error(f"Invalid options: {exc}")
            return

        devices, error = discover(config=config)

        if as_json:
            print(json.dumps([_device_summary(device) for device in devices], indent=2))
        elif devices:
            print("Discovered ONVIF devices:")
            for device in devices:
                label = device.name or "(unnamed)"
                print(f"- {label} id={device.id} xaddr={device.xaddr}")
        elif error is None:
            print("No ONVIF devices discovered.")
            print("Tips:")
            print("- Verify ONVIF and WS-Discovery are enabled on the camera.")
            print("- Ensure this host and the camera share an L2 subnet (multicast required).")
            print("- Retry with a longer window: --duration_s 5")

        if error is not None:
            _exit_with_error(f"Discovery failed during {error.stage}: {error}")


def _device_summary(device: Device) -> dict[str, object]:
    summary = asdict(device)
    summary["xaddrs"] = list(device.xaddrs)
    summary["scopes"] = list(device.scopes)
    summary["types"] = list(device.types)
    return summary


def _exit_with_error(message: str) -> None:
    print(f"✗ {message}", file=sys.stderr)
    raise SystemExit(1)


def main() -> None:
    """camprobe CLI entrypoint."""
    fire.Fire(CamProbeCLI)


if __name__ == "__main__":
    main()
