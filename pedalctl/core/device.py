"""Uniform pedal device abstraction over every supported model family."""

from __future__ import annotations

import logging
import threading
import time
from typing import Callable

from pedalctl.core import codec
from pedalctl.core.configuration import Configuration
from pedalctl.core.errors import (
    ProtocolMismatchError,
    TransportError,
    TransportIOError,
    UnsupportedModelError,
)
from pedalctl.core.logs import TRACE
from pedalctl.core.model import FirmwareInfo, HidEndpoint, ModelDescriptor
from pedalctl.transports.base import Backend, Transport

FIRMWARE_TIMEOUT_S = 0.5
FIRMWARE_MAX_REPORTS = 4
LOGGER = logging.getLogger(__name__)


class FifoLock:
    """Exclusive lock handed out in arrival order (ticket lock)."""

    def __init__(self) -> None:
        self._condition = threading.Condition()
        self._next_ticket = 0
        self._now_serving = 0
        self._abandoned: set[int] = set()

    def acquire(self) -> None:
        with self._condition:
            ticket = self._next_ticket
            self._next_ticket += 1
            try:
                while ticket != self._now_serving:
                    self._condition.wait()
            except BaseException:
                # An interrupted waiter gives up its turn so later tickets still get served.
                if ticket == self._now_serving:
                    self._advance()
                else:
                    self._abandoned.add(ticket)
                raise

    def release(self) -> None:
        with self._condition:
            self._advance()

    def _advance(self) -> None:
        self._now_serving += 1
        while self._now_serving in self._abandoned:
            self._abandoned.discard(self._now_serving)
            self._now_serving += 1
        self._condition.notify_all()

    def __enter__(self) -> FifoLock:
        self.acquire()
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.release()


class PedalDevice:
    """One opened pedal device.

    Every transaction (read, write, identification) holds the device lock for
    its whole request/response exchange, so concurrent callers on the same
    device are served one at a time in arrival order. Nothing read from the
    device is cached.
    """

    def __init__(
        self,
        descriptor: ModelDescriptor,
        transport: Transport,
        *,
        index: int = 0,
        path: bytes = b"",
        sleep: Callable[[float], None] | None = None,
    ) -> None:
        self.descriptor = descriptor
        self.index = index
        self.path = path
        self._transport: Transport | None = transport
        self._sleep = sleep or time.sleep
        self._lock = FifoLock()

    @classmethod
    def open(
        cls,
        backend: Backend,
        endpoint: HidEndpoint,
        descriptor: ModelDescriptor,
        *,
        index: int = 0,
    ) -> PedalDevice:
        if descriptor.unknown_quirks:
            raise UnsupportedModelError(
                f"{descriptor.name} ({descriptor.usb_id_text}) needs unsupported protocol quirk(s): "
                f"{', '.join(sorted(descriptor.unknown_quirks))}"
            )
        transport = backend.open(endpoint)
        return cls(descriptor, transport, index=index, path=endpoint.path)

    def __repr__(self) -> str:
        return f"PedalDevice(index={self.index}, model={self.descriptor.name!r}, usb_id={self.descriptor.usb_id_text})"

    def __enter__(self) -> PedalDevice:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    @property
    def closed(self) -> bool:
        return self._transport is None

    def pedal_count(self) -> int:
        return self.descriptor.pedal_count

    def pedal_names(self) -> tuple[str, ...]:
        return self.descriptor.pedal_names

    def close(self) -> None:
        with self._lock:
            if self._transport is None:
                return
            transport, self._transport = self._transport, None
            transport.close()
            LOGGER.debug("Closed %r", self)

    def _require_transport(self) -> Transport:
        if self._transport is None:
            raise TransportIOError(f"{self!r} is closed")
        return self._transport

    def _write_report(self, transport: Transport, report: bytes) -> None:
        LOGGER.log(TRACE, "%s -> %s", self.descriptor.usb_id_text, report.hex(" "))
        transport.write_report(report)
        if self.descriptor.report_delay_s:
            self._sleep(self.descriptor.report_delay_s)

    def _read_report(self, transport: Transport, timeout_s: float) -> bytes:
        report = transport.read_report(codec.REPORT_SIZE, timeout_s)
        LOGGER.log(TRACE, "%s <- %s", self.descriptor.usb_id_text, report.hex(" "))
        if len(report) != codec.REPORT_SIZE:
            raise ProtocolMismatchError(
                f"{self.descriptor.name}: expected {codec.REPORT_SIZE}-byte report, got {len(report)} bytes"
            )
        return report

    def _read_trigger_modes(self, transport: Transport) -> tuple[bool, ...]:
        self._write_report(transport, codec.read_trigger_modes_command())
        released = codec.parse_trigger_modes(
            self._read_report(transport, self.descriptor.timeout_s), self.descriptor
        )
        LOGGER.debug("%s release flags: %s", self.descriptor.usb_id_text, released)
        return released

    def read_configuration(self, slot: int) -> Configuration:
        command = codec.read_config_command(slot, self.descriptor)
        released = False
        with self._lock:
            transport = self._require_transport()
            self._write_report(transport, command)
            first = self._read_report(transport, self.descriptor.timeout_s)
            reports = [first]
            for _ in range(codec.reports_for_record(first, self.descriptor) - 1):
                reports.append(self._read_report(transport, self.descriptor.timeout_s))
            if self.descriptor.trigger_modes:
                released = self._read_trigger_modes(transport)[slot]

        record = b"".join(reports).ljust(codec.PACKET_SIZE, b"\x00")
        LOGGER.debug("%s slot %d record: %s", self.descriptor.usb_id_text, slot, record.hex(" "))
        configuration = codec.decode(codec.Packet(slot=slot, data=record), self.descriptor)
        return codec.with_trigger(configuration, released)

    def write_configuration(self, slot: int, configuration: Configuration) -> None:
        packet = codec.encode(configuration, slot, self.descriptor)
        header = codec.write_header_command(packet, self.descriptor)
        LOGGER.debug("%s slot %d record: %s", self.descriptor.usb_id_text, slot, bytes(packet).hex(" "))
        with self._lock:
            transport = self._require_transport()
            if self.descriptor.trigger_modes:
                released = list(self._read_trigger_modes(transport))
            self._write_report(transport, codec.begin_write_command(self.descriptor))
            if self.descriptor.begin_write_delay_s:
                self._sleep(self.descriptor.begin_write_delay_s)
            self._write_report(transport, header)
            for report in codec.record_reports(packet, self.descriptor):
                self._write_report(transport, report)
            if self.descriptor.trigger_modes:
                released[slot] = codec.releases_on(configuration)
                self._write_report(transport, codec.write_trigger_modes_command())
                self._write_report(transport, codec.trigger_modes_report(released))
        LOGGER.info("Wrote slot %d of %r: %s", slot, self, configuration.describe())

    def read_firmware(self) -> FirmwareInfo | None:
        """Ask the device for its model string; ``None`` when it stays silent."""
        timeout_s = max(FIRMWARE_TIMEOUT_S, self.descriptor.timeout_s)
        response = bytearray()
        with self._lock:
            transport = self._require_transport()
            try:
                self._write_report(transport, codec.read_model_command())
                for _ in range(FIRMWARE_MAX_REPORTS):
                    try:
                        chunk = transport.read_report(codec.REPORT_SIZE, timeout_s)
                    except TransportError:
                        break
                    LOGGER.log(TRACE, "%s <- %s", self.descriptor.usb_id_text, chunk.hex(" "))
                    response.extend(chunk)
                    if len(chunk) < codec.REPORT_SIZE or b"\x00" in chunk:
                        break
            except TransportError as exc:
                LOGGER.debug("Firmware identification failed for %r: %s", self, exc)
                return None

        info = codec.parse_model_string(bytes(response))
        LOGGER.debug("Firmware for %r: %s", self, info)
        return info
