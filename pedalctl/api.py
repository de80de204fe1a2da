"""Stable public API for building tooling on top of pedalctl.

This module is the supported integration surface for third-party callers.
Avoid importing from private/internal modules unless intentionally depending on
non-stable internals.
"""

from __future__ import annotations

from collections.abc import Sequence

from pedalctl.core.addressing import resolve
from pedalctl.core.builder import build
from pedalctl.core.configuration import (
    Configuration,
    Gamepad,
    GamepadInput,
    Keyboard,
    Media,
    MediaKey,
    Modifier,
    MouseAxis,
    MouseButton,
    MouseButtons,
    Text,
    Unconfigured,
)
from pedalctl.core.discovery import Discovery
from pedalctl.core.errors import (
    DeviceDiscoveryError,
    DeviceNotFoundError,
    InvalidConfigurationArgumentError,
    InvalidDeviceIndexError,
    InvalidPedalReferenceError,
    InvalidSlotError,
    ModelLoadError,
    ModelValidationError,
    PedalctlError,
    PermissionDeniedError,
    ProtocolMismatchError,
    TextTooLongError,
    TransportError,
    TransportIOError,
    TransportTimeoutError,
    UnsupportedModelError,
)
from pedalctl.core.model import (
    DeviceReport,
    DeviceSummary,
    FirmwareInfo,
    ModelDescriptor,
    PedalState,
    SetResult,
)
from pedalctl.core.service import PedalService
from pedalctl.transports.base import Backend

__all__ = [
    "PedalctlError",
    "DeviceDiscoveryError",
    "DeviceNotFoundError",
    "InvalidDeviceIndexError",
    "PermissionDeniedError",
    "UnsupportedModelError",
    "TransportError",
    "TransportTimeoutError",
    "TransportIOError",
    "ProtocolMismatchError",
    "InvalidSlotError",
    "InvalidPedalReferenceError",
    "InvalidConfigurationArgumentError",
    "TextTooLongError",
    "ModelLoadError",
    "ModelValidationError",
    "Configuration",
    "Unconfigured",
    "Keyboard",
    "MouseButtons",
    "MouseAxis",
    "Text",
    "Media",
    "Gamepad",
    "Modifier",
    "MouseButton",
    "MediaKey",
    "GamepadInput",
    "ModelDescriptor",
    "FirmwareInfo",
    "DeviceSummary",
    "DeviceReport",
    "PedalState",
    "SetResult",
    "Discovery",
    "Client",
    "build",
    "resolve",
]


class Client:
    """Public client for interacting with pedalctl core capabilities.

    A `Client` instance wraps model loading, HID discovery, and pedal
    read/write transactions behind a stable API intended for third-party tools
    (GUI/TUI/services/scripts).
    """

    def __init__(self, *, backend: Backend | None = None) -> None:
        self._service = PedalService(backend=backend)

    @property
    def load_warnings(self) -> tuple[str, ...]:
        return self._service.load_warnings

    def list_models(self) -> list[ModelDescriptor]:
        return self._service.list_models()

    def list_devices(self) -> list[DeviceSummary]:
        return self._service.list_devices()

    def open_devices(self) -> Discovery:
        """Open every connected pedal; use the result as a context manager."""
        return self._service.discover()

    def show(self, index: int) -> DeviceReport:
        return self._service.show(index)

    def set_pedal(
        self,
        index: int,
        pedal: str,
        kind: str,
        args: Sequence[str] = (),
        *,
        once: bool = False,
        invert: bool = False,
    ) -> SetResult:
        return self._service.set_pedal(index, pedal, kind, args, once=once, invert=invert)
