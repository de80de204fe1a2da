"""USB HID transport implementation using the hidapi package."""

from __future__ import annotations

import logging
import os
from typing import Any

from pedalctl.core.errors import (
    DeviceDiscoveryError,
    PermissionDeniedError,
    TransportIOError,
    TransportTimeoutError,
)
from pedalctl.core.model import HidEndpoint

REPORT_ID = 0x00
_PERMISSION_MARKERS = ("permission", "access denied", "not permitted")
LOGGER = logging.getLogger(__name__)


def _import_hid() -> Any:
    try:
        import hid  # type: ignore
    except ImportError as exc:  # pragma: no cover - import failure path
        raise TransportIOError(
            "USB HID transport requires 'hidapi'. Install dependency and retry."
        ) from exc
    return hid


def _is_permission_error(exc: BaseException) -> bool:
    if isinstance(exc, PermissionError):
        return True
    message = str(exc).lower()
    return any(marker in message for marker in _PERMISSION_MARKERS)


def _path_accessible(path: bytes) -> bool:
    # Only Linux hidraw node paths can be checked; anything else passes.
    try:
        node = os.fsdecode(path)
    except (TypeError, ValueError):
        return True
    if not node.startswith("/dev/"):
        return True
    return not os.path.exists(node) or os.access(node, os.R_OK | os.W_OK)


def _optional_text(value: Any) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


class HidapiTransport:
    def __init__(self, device: Any, path: bytes) -> None:
        self._device = device
        self._path = path

    def write_report(self, data: bytes) -> None:
        if self._device is None:
            raise TransportIOError(f"HID device {self._path!r} is closed")
        try:
            written = self._device.write([REPORT_ID, *data])
        except (OSError, ValueError) as exc:
            raise TransportIOError(f"HID write failed: {exc}") from exc
        if written is not None and written < 0:
            raise TransportIOError(f"HID write failed: {self._device.error()}")

    def read_report(self, size: int, timeout_s: float) -> bytes:
        if self._device is None:
            raise TransportIOError(f"HID device {self._path!r} is closed")
        timeout_ms = max(1, int(timeout_s * 1000))
        try:
            data = self._device.read(size, timeout_ms)
        except (OSError, ValueError) as exc:
            raise TransportIOError(f"HID read failed: {exc}") from exc
        if not data:
            raise TransportTimeoutError(f"HID read timed out after {timeout_ms} ms")
        return bytes(data)

    def close(self) -> None:
        if self._device is None:
            return
        device, self._device = self._device, None
        try:
            device.close()
        except OSError as exc:
            LOGGER.debug("Ignoring error while closing %r: %s", self._path, exc)


class HidapiBackend:
    def enumerate(self) -> list[HidEndpoint]:
        try:
            hid = _import_hid()
        except TransportIOError as exc:
            raise DeviceDiscoveryError(str(exc)) from exc

        try:
            infos = hid.enumerate()
        except (OSError, ValueError) as exc:
            raise DeviceDiscoveryError(f"HID enumeration failed: {exc}") from exc

        endpoints: list[HidEndpoint] = []
        for info in infos:
            endpoints.append(
                HidEndpoint(
                    vendor_id=int(info["vendor_id"]),
                    product_id=int(info["product_id"]),
                    path=info["path"],
                    interface=info.get("interface_number"),
                    product=_optional_text(info.get("product_string")),
                    manufacturer=_optional_text(info.get("manufacturer_string")),
                    serial_number=_optional_text(info.get("serial_number")),
                )
            )
        return endpoints

    def open(self, endpoint: HidEndpoint) -> HidapiTransport:
        hid = _import_hid()
        device = hid.device()
        try:
            device.open_path(endpoint.path)
        except (OSError, ValueError) as exc:
            if _is_permission_error(exc) or not _path_accessible(endpoint.path):
                raise PermissionDeniedError(
                    f"Permission denied opening {endpoint.path!r}; check udev rules or run with elevated rights"
                ) from exc
            raise TransportIOError(f"Could not open HID device {endpoint.path!r}: {exc}") from exc
        return HidapiTransport(device, endpoint.path)
