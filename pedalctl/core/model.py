"""Core data models used across loader, device, service, and CLI."""

from __future__ import annotations

from dataclasses import dataclass

from pedalctl.core.configuration import Configuration

SHORT_RECORDS = "short-records"
TRIGGER_MODES = "trigger-modes"
KNOWN_QUIRKS = frozenset({SHORT_RECORDS, TRIGGER_MODES})


@dataclass(frozen=True)
class ModelDescriptor:
    id: str
    name: str
    vendor_id: int
    product_id: int
    pedal_count: int
    pedal_names: tuple[str, ...]
    timeout_s: float = 0.5
    report_delay_s: float = 0.0
    begin_write_delay_s: float = 0.0
    first_slot: int = 0
    interface: int | None = None
    quirks: frozenset[str] = frozenset()
    # Fourth byte of the begin-write command.
    begin_write_arg: int = 1
    # Size byte of the write header; None sends the record length.
    header_size: int | None = None

    @property
    def usb_id(self) -> tuple[int, int]:
        return (self.vendor_id, self.product_id)

    @property
    def usb_id_text(self) -> str:
        return f"{self.vendor_id:04x}:{self.product_id:04x}"

    @property
    def unknown_quirks(self) -> frozenset[str]:
        return self.quirks - KNOWN_QUIRKS

    @property
    def short_records(self) -> bool:
        """Records are sent as 8-byte reports sized by their length byte."""
        return SHORT_RECORDS in self.quirks

    @property
    def trigger_modes(self) -> bool:
        """Press/release triggering lives in a separate per-device table."""
        return TRIGGER_MODES in self.quirks


@dataclass(frozen=True)
class HidEndpoint:
    vendor_id: int
    product_id: int
    path: bytes
    interface: int | None = None
    product: str | None = None
    manufacturer: str | None = None
    serial_number: str | None = None


@dataclass(frozen=True)
class FirmwareInfo:
    model: str
    version: str


@dataclass(frozen=True)
class DeviceSummary:
    index: int
    descriptor: ModelDescriptor
    path: bytes
    firmware: FirmwareInfo | None


@dataclass(frozen=True)
class PedalState:
    slot: int
    name: str
    configuration: Configuration


@dataclass(frozen=True)
class DeviceReport:
    index: int
    descriptor: ModelDescriptor
    pedals: tuple[PedalState, ...]
    firmware: FirmwareInfo | None = None


@dataclass(frozen=True)
class SetResult:
    index: int
    descriptor: ModelDescriptor
    slot: int
    pedal_name: str
    requested: Configuration
    confirmed: Configuration

    @property
    def verified(self) -> bool:
        return self.requested == self.confirmed
