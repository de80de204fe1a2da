"""Service layer used by the CLI and the public API."""

from __future__ import annotations

import logging
from collections.abc import Sequence

from pedalctl.core.addressing import pedal_label, resolve
from pedalctl.core.builder import build
from pedalctl.core.device import PedalDevice
from pedalctl.core.discovery import Discovery, discover
from pedalctl.core.errors import DeviceNotFoundError, InvalidDeviceIndexError
from pedalctl.core.model import (
    DeviceReport,
    DeviceSummary,
    ModelDescriptor,
    PedalState,
    SetResult,
)
from pedalctl.core.model_loader import load_models
from pedalctl.transports.base import Backend
from pedalctl.transports.usbhid import HidapiBackend

LOGGER = logging.getLogger(__name__)


class PedalService:
    def __init__(self, *, backend: Backend | None = None) -> None:
        loaded = load_models()
        self.models = loaded.models
        self.load_warnings = loaded.warnings
        self.backend = backend or HidapiBackend()

    def list_models(self) -> list[ModelDescriptor]:
        return sorted(self.models, key=lambda d: (d.name, d.usb_id))

    def discover(self) -> Discovery:
        """Open every connected pedal; the caller must close the result."""
        return discover(self.backend, self.models)

    def list_devices(self) -> list[DeviceSummary]:
        with self.discover() as found:
            return [
                DeviceSummary(
                    index=device.index,
                    descriptor=device.descriptor,
                    path=device.path,
                    firmware=device.read_firmware(),
                )
                for device in found.devices
            ]

    def show(self, index: int) -> DeviceReport:
        with self.discover() as found:
            device = _select_device(found, index)
            firmware = device.read_firmware()
            pedals = tuple(
                PedalState(
                    slot=slot,
                    name=pedal_label(device.descriptor, slot),
                    configuration=device.read_configuration(slot),
                )
                for slot in range(device.pedal_count())
            )
            return DeviceReport(
                index=device.index,
                descriptor=device.descriptor,
                pedals=pedals,
                firmware=firmware,
            )

    def set_pedal(
        self,
        index: int,
        reference: str,
        kind: str,
        args: Sequence[str] = (),
        *,
        once: bool = False,
        invert: bool = False,
    ) -> SetResult:
        configuration = build(kind, args, once=once, invert=invert)
        with self.discover() as found:
            device = _select_device(found, index)
            slot = resolve(device.descriptor, reference)
            device.write_configuration(slot, configuration)
            confirmed = device.read_configuration(slot)

        result = SetResult(
            index=device.index,
            descriptor=device.descriptor,
            slot=slot,
            pedal_name=pedal_label(device.descriptor, slot),
            requested=configuration,
            confirmed=confirmed,
        )
        if not result.verified:
            LOGGER.warning(
                "Device %d reports '%s' for pedal %s after writing '%s'",
                result.index,
                confirmed.describe(),
                result.pedal_name,
                configuration.describe(),
            )
        return result


def _select_device(found: Discovery, index: int) -> PedalDevice:
    if not found.devices:
        raise DeviceNotFoundError("No supported pedal devices found. Use 'pedalctl models' to see supported devices.")
    if not 0 <= index < len(found.devices):
        raise InvalidDeviceIndexError(index, len(found.devices))
    return found.devices[index]
