"""Transport interfaces."""

from __future__ import annotations

from typing import Protocol

from pedalctl.core.model import HidEndpoint


class Transport(Protocol):
    def write_report(self, data: bytes) -> None:
        """Send one output report (without the report-id byte)."""

    def read_report(self, size: int, timeout_s: float) -> bytes:
        """Read one input report, raising a timeout error when nothing arrives."""

    def close(self) -> None:
        """Release the OS handle; safe to call more than once."""


class Backend(Protocol):
    def enumerate(self) -> list[HidEndpoint]:
        """List HID endpoints in platform order."""

    def open(self, endpoint: HidEndpoint) -> Transport:
        """Open one endpoint for exclusive report exchange."""
