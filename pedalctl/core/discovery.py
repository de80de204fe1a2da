"""Find connected pedal devices and open them in enumeration order."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Iterable

from pedalctl.core.device import PedalDevice
from pedalctl.core.device_match import match_descriptor
from pedalctl.core.errors import PedalctlError
from pedalctl.core.model import HidEndpoint, ModelDescriptor
from pedalctl.transports.base import Backend

LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True)
class DiscoveryDiagnostic:
    endpoint: HidEndpoint
    descriptor: ModelDescriptor
    error: PedalctlError

    @property
    def message(self) -> str:
        return f"Skipped {self.descriptor.name} ({self.descriptor.usb_id_text}) at {self.endpoint.path!r}: {self.error}"


@dataclass
class Discovery:
    """Opened devices plus the endpoints that matched but could not be used.

    Use as a context manager so every opened device is closed on exit.
    """

    devices: list[PedalDevice] = field(default_factory=list)
    diagnostics: list[DiscoveryDiagnostic] = field(default_factory=list)

    def __enter__(self) -> Discovery:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def __len__(self) -> int:
        return len(self.devices)

    def close(self) -> None:
        for device in self.devices:
            device.close()


def discover(backend: Backend, models: Iterable[ModelDescriptor]) -> Discovery:
    models = tuple(models)
    endpoints = backend.enumerate()
    LOGGER.debug("Enumerated %d HID endpoint(s)", len(endpoints))

    discovery = Discovery()
    seen_paths: set[bytes] = set()
    try:
        for endpoint in endpoints:
            descriptor = match_descriptor(endpoint, models)
            if descriptor is None or endpoint.path in seen_paths:
                continue
            seen_paths.add(endpoint.path)
            try:
                device = PedalDevice.open(backend, endpoint, descriptor, index=len(discovery.devices))
            except PedalctlError as exc:
                diagnostic = DiscoveryDiagnostic(endpoint=endpoint, descriptor=descriptor, error=exc)
                LOGGER.warning(diagnostic.message)
                discovery.diagnostics.append(diagnostic)
                continue
            LOGGER.info("Discovered %s (%s) as device %d", descriptor.name, descriptor.usb_id_text, device.index)
            discovery.devices.append(device)
    except BaseException:
        discovery.close()
        raise
    return discovery
