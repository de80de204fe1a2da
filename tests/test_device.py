from __future__ import annotations

import threading
from dataclasses import replace

import pytest

from conftest import FakeBackend, FakePedalTransport, endpoint_for
from pedalctl.core.configuration import (
    Gamepad,
    GamepadInput,
    Keyboard,
    Media,
    MediaKey,
    Modifier,
    MouseAxis,
    Text,
    Unconfigured,
)
from pedalctl.core.device import FifoLock, PedalDevice
from pedalctl.core.errors import (
    InvalidConfigurationArgumentError,
    InvalidSlotError,
    ProtocolMismatchError,
    TransportIOError,
    TransportTimeoutError,
    UnsupportedModelError,
)

CTRL_C = Keyboard(modifiers=frozenset({Modifier.LCTRL}), keys=(0x06,))


def test_pcsensor_write_then_read_back(three_pedal) -> None:
    transport = FakePedalTransport()
    device = PedalDevice(three_pedal, transport)

    device.write_configuration(0, CTRL_C)

    assert transport.writes == [
        bytes.fromhex("0180080000000000"),
        bytes.fromhex("0181080100000000"),
        bytes.fromhex("0801010600000000"),
    ]
    assert device.read_configuration(0) == CTRL_C
    assert device.read_configuration(1) == Unconfigured()


def test_pcsensor_single_report_answer_decodes(three_pedal) -> None:
    transport = FakePedalTransport()
    transport.records[1] = bytes.fromhex("0801010600000000")
    device = PedalDevice(three_pedal, transport)
    assert device.read_configuration(0) == CTRL_C
    assert transport.writes == [bytes.fromhex("0182080100000000")]


def test_pcsensor_text_spans_reports(three_pedal) -> None:
    transport = FakePedalTransport()
    device = PedalDevice(three_pedal, transport)
    device.write_configuration(1, Text("hello world"))
    assert transport.header_writes() == [bytes.fromhex("0181080200000000")]
    assert len(transport.writes) == 4
    assert device.read_configuration(1) == Text("hello world")


def test_ikkegol_write_then_read_back(ikkegol) -> None:
    transport = FakePedalTransport(short_records=False, trigger_modes=True)
    device = PedalDevice(ikkegol, transport)

    device.write_configuration(0, CTRL_C)

    assert transport.writes[0] == bytes.fromhex("0186000000000000")
    assert transport.writes[1] == bytes.fromhex("0180080100000000")
    assert transport.writes[2] == bytes.fromhex("0181280100000000")
    assert transport.writes[3] == bytes.fromhex("2801010600000000")
    assert transport.writes[4:8] == [bytes(8)] * 4
    assert transport.writes[8:] == [bytes.fromhex("0185080000000000"), bytes.fromhex("0101010000000000")]
    assert device.read_configuration(0) == CTRL_C
    assert device.read_configuration(2) == Unconfigured()


def test_invert_uses_trigger_mode_table(ikkegol) -> None:
    transport = FakePedalTransport(short_records=False, trigger_modes=True)
    device = PedalDevice(ikkegol, transport)
    released = Gamepad(input=GamepadInput.DPAD_LEFT, invert=True)

    device.write_configuration(1, released)

    assert transport.records[2][1] == 0x08
    assert bytes(transport.modes[:3]) == bytes([1, 0, 1])
    assert device.read_configuration(1) == released

    device.write_configuration(1, Media(action=MediaKey.MUTE))
    assert bytes(transport.modes[:3]) == bytes([1, 1, 1])
    assert device.read_configuration(1) == Media(action=MediaKey.MUTE)


def test_trigger_mode_read_marks_release(ikkegol) -> None:
    transport = FakePedalTransport(short_records=False, trigger_modes=True)
    transport.records[3] = bytes.fromhex("2801000400000000").ljust(40, b"\x00")
    transport.modes[2] = 0
    device = PedalDevice(ikkegol, transport)
    assert device.read_configuration(2) == Keyboard(keys=(0x04,), invert=True)


def test_invert_rejected_without_trigger_modes(three_pedal) -> None:
    transport = FakePedalTransport()
    device = PedalDevice(three_pedal, transport)
    with pytest.raises(InvalidConfigurationArgumentError):
        device.write_configuration(0, Keyboard(keys=(0x04,), invert=True))
    assert transport.writes == []


def test_write_honors_model_delays(three_pedal, no_settle_delays) -> None:
    device = PedalDevice(three_pedal, FakePedalTransport())
    device.write_configuration(2, MouseAxis(dx=1, dy=2))
    assert no_settle_delays.count(three_pedal.begin_write_delay_s) == 1
    assert no_settle_delays.count(three_pedal.report_delay_s) == 3


def test_single_pedal_model_wire_index(one_pedal) -> None:
    transport = FakePedalTransport()
    device = PedalDevice(one_pedal, transport)
    device.write_configuration(0, Text("go"))
    assert transport.header_writes() == [bytes.fromhex("0181080100000000")]
    assert device.read_configuration(0) == Text("go")
    assert transport.writes[-1] == bytes.fromhex("0182080100000000")


def test_encode_errors_happen_before_io(three_pedal) -> None:
    transport = FakePedalTransport()
    device = PedalDevice(three_pedal, transport)
    with pytest.raises(InvalidSlotError):
        device.write_configuration(3, Unconfigured())
    with pytest.raises(InvalidSlotError):
        device.read_configuration(-1)
    assert transport.writes == []


def test_read_timeout_surfaces(three_pedal) -> None:
    class SilentTransport(FakePedalTransport):
        def read_report(self, size: int, timeout_s: float) -> bytes:
            raise TransportTimeoutError("no answer")

    device = PedalDevice(three_pedal, SilentTransport())
    with pytest.raises(TransportTimeoutError):
        device.read_configuration(0)


def test_short_report_is_protocol_mismatch(three_pedal) -> None:
    class ShortTransport(FakePedalTransport):
        def read_report(self, size: int, timeout_s: float) -> bytes:
            return b"\x00\x00\x00"

    device = PedalDevice(three_pedal, ShortTransport())
    with pytest.raises(ProtocolMismatchError):
        device.read_configuration(0)


def test_read_firmware(three_pedal) -> None:
    device = PedalDevice(three_pedal, FakePedalTransport(model_string=b"FOOTSWITCH_V1.3"))
    info = device.read_firmware()
    assert info is not None
    assert (info.model, info.version) == ("FOOTSWITCH", "V1.3")


def test_read_firmware_silent_device(three_pedal) -> None:
    device = PedalDevice(three_pedal, FakePedalTransport(model_string=b""))
    assert device.read_firmware() is None


def test_close_is_idempotent_and_blocks_further_use(three_pedal) -> None:
    transport = FakePedalTransport()
    with PedalDevice(three_pedal, transport) as device:
        device.read_configuration(0)
    device.close()
    assert transport.close_calls == 1
    assert device.closed
    with pytest.raises(TransportIOError):
        device.read_configuration(0)


def test_open_rejects_unknown_quirks(three_pedal) -> None:
    quirky = replace(three_pedal, quirks=frozenset({"split-header"}))
    backend = FakeBackend()
    with pytest.raises(UnsupportedModelError):
        PedalDevice.open(backend, endpoint_for(quirky, b"/dev/hidraw0"), quirky)
    assert backend.opened == []


class OverlapDetectingTransport(FakePedalTransport):
    """Counts exchanges that start while another one is still in flight."""

    def __init__(self) -> None:
        super().__init__()
        self.in_flight = False
        self.overlaps = 0
        self.exchanges = 0

    def _start(self) -> None:
        if self.in_flight:
            self.overlaps += 1
        self.in_flight = True
        threading.Event().wait(0.001)

    def _finish(self) -> None:
        self.in_flight = False
        self.exchanges += 1

    def write_report(self, data: bytes) -> None:
        collecting = self.collecting
        if not collecting and data[:2] in (b"\x01\x80", b"\x01\x82"):
            self._start()
        super().write_report(data)
        if collecting and not self.collecting:
            self._finish()

    def read_report(self, size: int, timeout_s: float) -> bytes:
        report = super().read_report(size, timeout_s)
        if not self._pending:
            self._finish()
        return report


def _hammer(device: PedalDevice, slot: int, rounds: int) -> None:
    for value in range(rounds):
        device.write_configuration(slot, MouseAxis(dx=value, dy=-value))
        device.read_configuration(slot)


def test_same_device_transactions_never_overlap(three_pedal) -> None:
    transport = OverlapDetectingTransport()
    device = PedalDevice(three_pedal, transport)
    threads = [threading.Thread(target=_hammer, args=(device, slot, 5)) for slot in range(3)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert transport.exchanges == 30
    assert transport.overlaps == 0
    for slot in range(3):
        assert device.read_configuration(slot) == MouseAxis(dx=4, dy=-4)


def test_distinct_devices_share_no_lock(three_pedal) -> None:
    first = PedalDevice(three_pedal, FakePedalTransport())
    second = PedalDevice(three_pedal, FakePedalTransport())
    first._lock.acquire()
    try:
        done = threading.Event()

        def use_second() -> None:
            second.read_configuration(0)
            done.set()

        thread = threading.Thread(target=use_second)
        thread.start()
        assert done.wait(2.0)
        thread.join()
    finally:
        first._lock.release()


def test_fifo_lock_serves_in_arrival_order() -> None:
    lock = FifoLock()
    order: list[int] = []
    lock.acquire()

    def waiter(n: int) -> None:
        with lock:
            order.append(n)

    threads = []
    for n in range(5):
        thread = threading.Thread(target=waiter, args=(n,))
        thread.start()
        # Wait until the thread holds its ticket before starting the next one.
        while lock._next_ticket < n + 2:
            threading.Event().wait(0.001)
        threads.append(thread)

    lock.release()
    for thread in threads:
        thread.join()
    assert order == [0, 1, 2, 3, 4]


def test_interrupted_waiter_does_not_block_later_callers(monkeypatch: pytest.MonkeyPatch) -> None:
    lock = FifoLock()
    lock.acquire()

    def interrupted_wait(timeout=None):
        raise KeyboardInterrupt

    with monkeypatch.context() as patched:
        patched.setattr(lock._condition, "wait", interrupted_wait)
        with pytest.raises(KeyboardInterrupt):
            lock.acquire()

    acquired = threading.Event()

    def later_caller() -> None:
        with lock:
            acquired.set()

    thread = threading.Thread(target=later_caller, daemon=True)
    thread.start()
    while lock._next_ticket < 3:
        threading.Event().wait(0.001)
    lock.release()
    assert acquired.wait(2.0)
    thread.join(2.0)
