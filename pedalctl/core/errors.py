"""Domain-specific errors for pedalctl."""

from __future__ import annotations


class PedalctlError(Exception):
    """Base error for pedalctl."""


class ModelValidationError(PedalctlError):
    """Raised when a model file does not conform to schema or semantics."""


class ModelLoadError(PedalctlError):
    """Raised when loading model sources fails."""


class DeviceDiscoveryError(PedalctlError):
    """Raised when HID enumeration itself fails."""


class DeviceNotFoundError(PedalctlError):
    """Raised when no supported pedal device is connected."""


class InvalidDeviceIndexError(PedalctlError):
    """Raised when a device index is outside the discovered device list."""

    def __init__(self, index: int, device_count: int) -> None:
        self.index = index
        self.device_count = device_count
        super().__init__(
            f"Device index {index} is out of range ({device_count} device(s) found). "
            "Use 'pedalctl list' to see available devices."
        )


class PermissionDeniedError(PedalctlError):
    """Raised when the OS refuses access to a HID endpoint."""


class UnsupportedModelError(PedalctlError):
    """Raised when a matched model declares a protocol quirk we do not implement."""


class TransportError(PedalctlError):
    """Base transport error."""


class TransportTimeoutError(TransportError):
    """Raised when the device does not answer within the model timeout."""


class TransportIOError(TransportError):
    """Raised on lower-level HID read/write failures."""


class ProtocolMismatchError(TransportError):
    """Raised when a received record or report has an unexpected length."""


class InvalidSlotError(PedalctlError):
    """Raised when a slot index does not exist on the device model."""

    def __init__(self, slot: int, pedal_count: int) -> None:
        self.slot = slot
        self.pedal_count = pedal_count
        super().__init__(f"Invalid pedal slot {slot} for device with {pedal_count} pedal(s)")


class InvalidPedalReferenceError(PedalctlError):
    """Raised when a user pedal reference matches neither a number nor a name."""

    def __init__(self, reference: str, valid_names: tuple[str, ...], pedal_count: int) -> None:
        self.reference = reference
        self.valid_names = valid_names
        self.pedal_count = pedal_count
        names = ", ".join(valid_names)
        super().__init__(
            f"Unknown pedal '{reference}'. Use 1-{pedal_count} or one of: {names}"
        )


class InvalidConfigurationArgumentError(PedalctlError):
    """Raised when a configuration argument cannot be parsed."""

    def __init__(self, token: str, reason: str | None = None) -> None:
        self.token = token
        message = f"Invalid configuration argument '{token}'"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)


class TextTooLongError(PedalctlError):
    """Raised when a text payload exceeds the wire capacity."""

    def __init__(self, length: int, max_length: int) -> None:
        self.length = length
        self.max_length = max_length
        super().__init__(f"Text too long ({length} characters, max {max_length})")
