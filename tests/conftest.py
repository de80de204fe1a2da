from __future__ import annotations

import threading
from pathlib import Path

import pytest

from pedalctl.core.errors import TransportTimeoutError
from pedalctl.core.model import HidEndpoint, ModelDescriptor
from pedalctl.core.model_loader import load_models

# Firmware families by USB id, independent of the packaged model files.
SHORT_RECORD_IDS = {(0x3553, 0xB001), (0x0C45, 0x7403), (0x0C45, 0x7404), (0x413D, 0x2107), (0x5131, 0x2019)}
TRIGGER_MODE_IDS = {(0x1A86, 0xE026), (0x0426, 0x3011), (0x055A, 0x0998)}


class FakePedalTransport:
    """In-memory pedal that frames records the way its firmware family does.

    Short-record firmware answers a read with a single report, or as many as
    a text record needs, and expects writes framed the same way. Full-record
    firmware always exchanges five reports and keeps a trigger mode table.
    """

    def __init__(
        self,
        *,
        model_string: bytes = b"FS2020U1IR_V5.7",
        short_records: bool = True,
        trigger_modes: bool = False,
    ) -> None:
        self.records: dict[int, bytes] = {}
        self.writes: list[bytes] = []
        self.begin_args: list[int] = []
        self.model_string = model_string
        self.short_records = short_records
        self.modes = bytearray([1] * 8) if trigger_modes else None
        self.closed = False
        self.close_calls = 0
        self._pending: list[bytes] = []
        self._collect_target: int | str | None = None
        self._collected = bytearray()
        self._guard = threading.Lock()

    @classmethod
    def for_endpoint(cls, endpoint: HidEndpoint) -> FakePedalTransport:
        usb_id = (endpoint.vendor_id, endpoint.product_id)
        return cls(short_records=usb_id in SHORT_RECORD_IDS, trigger_modes=usb_id in TRIGGER_MODE_IDS)

    @property
    def collecting(self) -> bool:
        return self._collect_target is not None

    def _report_count(self, first: bytes) -> int:
        if not self.short_records:
            return 5
        if first[1] != 0x04:
            return 1
        return max(1, -(-min(first[0], 40) // 8))

    def _blank(self) -> bytes:
        return bytes([8]).ljust(8, b"\x00") if self.short_records else bytes(40)

    def write_report(self, data: bytes) -> None:
        with self._guard:
            assert len(data) == 8, data
            self.writes.append(bytes(data))
            if self._collect_target == "modes":
                self.modes[:] = data
                self._collect_target = None
                return
            if self._collect_target is not None:
                self._collected.extend(data)
                if len(self._collected) == 8 * self._report_count(self._collected[:8]):
                    self.records[self._collect_target] = bytes(self._collected)
                    self._collect_target = None
                return

            command = data[:2]
            if command == b"\x01\x80":
                self.begin_args.append(data[3])
            elif command == b"\x01\x81":
                self._collect_target = data[3]
                self._collected = bytearray()
            elif command == b"\x01\x82":
                record = self.records.get(data[3], self._blank())
                count = self._report_count(record[:8])
                record = record.ljust(count * 8, b"\x00")
                self._pending = [record[i : i + 8] for i in range(0, count * 8, 8)]
            elif command == b"\x01\x83" and self.model_string:
                raw = self.model_string.ljust(-(-(len(self.model_string) + 1) // 8) * 8, b"\x00")
                self._pending = [raw[i : i + 8] for i in range(0, len(raw), 8)]
            elif command == b"\x01\x86" and self.modes is not None:
                self._pending = [bytes(self.modes)]
            elif command == b"\x01\x85" and self.modes is not None:
                self._collect_target = "modes"

    def read_report(self, size: int, timeout_s: float) -> bytes:
        with self._guard:
            if not self._pending:
                raise TransportTimeoutError("no report pending")
            return self._pending.pop(0)

    def close(self) -> None:
        self.closed = True
        self.close_calls += 1

    def header_writes(self) -> list[bytes]:
        return [w for w in self.writes if w[:2] == b"\x01\x81"]


class FakeBackend:
    def __init__(self, endpoints=(), transports=None, failures=None) -> None:
        self.endpoints = list(endpoints)
        self.transports = dict(transports or {})
        self.failures = dict(failures or {})
        self.opened: list[bytes] = []

    def enumerate(self) -> list[HidEndpoint]:
        return list(self.endpoints)

    def open(self, endpoint: HidEndpoint) -> FakePedalTransport:
        if endpoint.path in self.failures:
            raise self.failures[endpoint.path]
        self.opened.append(endpoint.path)
        if endpoint.path not in self.transports:
            self.transports[endpoint.path] = FakePedalTransport.for_endpoint(endpoint)
        return self.transports[endpoint.path]


def endpoint_for(descriptor: ModelDescriptor, path: bytes, interface: int | None = 1) -> HidEndpoint:
    return HidEndpoint(
        vendor_id=descriptor.vendor_id,
        product_id=descriptor.product_id,
        path=path,
        interface=interface,
        product=descriptor.name,
    )


@pytest.fixture(autouse=True)
def isolated_xdg(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> Path:
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "cfg"))
    monkeypatch.setenv("XDG_DATA_HOME", str(tmp_path / "data"))
    monkeypatch.delenv("PEDALCTL_LOG", raising=False)
    return tmp_path


@pytest.fixture
def models() -> tuple[ModelDescriptor, ...]:
    return load_models().models


@pytest.fixture
def three_pedal(models) -> ModelDescriptor:
    return next(d for d in models if d.usb_id == (0x3553, 0xB001))


@pytest.fixture
def one_pedal(models) -> ModelDescriptor:
    return next(d for d in models if d.usb_id == (0x5131, 0x2019))


@pytest.fixture(autouse=True)
def no_settle_delays(monkeypatch: pytest.MonkeyPatch) -> list[float]:
    delays: list[float] = []
    monkeypatch.setattr("pedalctl.core.device.time.sleep", delays.append)
    return delays


@pytest.fixture
def ikkegol(models) -> ModelDescriptor:
    return next(d for d in models if d.usb_id == (0x1A86, 0xE026))
