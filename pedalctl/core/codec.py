"""Binary codec for the 40-byte pedal configuration record.

Record layout (one record per pedal slot)::

    [0]      record length, see below
    [1]      tag: action type, 0x80 marks a one-shot keyboard action
    [2:40]   action payload, zero padded

Payloads::

    keyboard  [2] modifier bits, [3:9] key codes
    mouse     [2:4] reserved, [4] button bits, [5] dx, [6] dy, [7] wheel (signed)
    text      [2:40] HID codes, zero terminated
    media     [2] media code
    gamepad   [2] gamepad code

Two framings exist. Full records (iKKEGOL, Scythe) carry length 40, or 0 when
the slot is unconfigured, and always travel as five 8-byte reports. Short
records (PCsensor) carry length 8, or ``len(text) + 2`` for text, and travel
as only as many reports as that length needs. Either way the slot is carried
by the command header, never by the record itself.

Press or release triggering is not part of the record: families that support
it keep one mode byte per pedal in a separate table.
"""

from __future__ import annotations

import dataclasses
import logging
from collections.abc import Sequence
from dataclasses import dataclass

from pedalctl.core import keymap
from pedalctl.core.configuration import (
    AXIS_MAX,
    AXIS_MIN,
    INVERT_CASES,
    MAX_KEYS,
    TEXT_MAX_LENGTH,
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
from pedalctl.core.errors import (
    InvalidConfigurationArgumentError,
    InvalidSlotError,
    ProtocolMismatchError,
    TextTooLongError,
)
from pedalctl.core.model import FirmwareInfo, ModelDescriptor

PACKET_SIZE = 40
REPORT_SIZE = 8
SHORT_RECORD_SIZE = 8
PAYLOAD_OFFSET = 2
MAX_SHORT_KEYS = SHORT_RECORD_SIZE - 3

TYPE_UNCONFIGURED = 0x00
TYPE_KEYBOARD = 0x01
TYPE_MOUSE = 0x02
TYPE_KEYBOARD_MOUSE = 0x03
TYPE_TEXT = 0x04
TYPE_KEYBOARD_MULTI = 0x06
TYPE_MEDIA = 0x07
TYPE_GAMEPAD = 0x08

FLAG_ONCE = 0x80

# Every tag the firmware understands; nothing else is ever written.
WIRE_TAGS = frozenset(
    {
        TYPE_UNCONFIGURED,
        TYPE_KEYBOARD,
        TYPE_KEYBOARD | FLAG_ONCE,
        TYPE_MOUSE,
        TYPE_TEXT,
        TYPE_KEYBOARD_MULTI,
        TYPE_KEYBOARD_MULTI | FLAG_ONCE,
        TYPE_MEDIA,
        TYPE_GAMEPAD,
    }
)

TRIGGER_RELEASE = 0
TRIGGER_PRESS = 1

_MOUSE_BUTTON_MASK = 0x1F
LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True)
class Packet:
    slot: int
    data: bytes

    def __post_init__(self) -> None:
        if len(self.data) != PACKET_SIZE:
            raise ProtocolMismatchError(
                f"Configuration record must be {PACKET_SIZE} bytes, got {len(self.data)}"
            )

    def __len__(self) -> int:
        return PACKET_SIZE

    def __bytes__(self) -> bytes:
        return self.data

    @property
    def record_length(self) -> int:
        return self.data[0]

    @property
    def tag(self) -> int:
        return self.data[1]

    def reports(self, count: int = PACKET_SIZE // REPORT_SIZE) -> list[bytes]:
        return [self.data[i : i + REPORT_SIZE] for i in range(0, count * REPORT_SIZE, REPORT_SIZE)]


def check_slot(slot: int, descriptor: ModelDescriptor) -> None:
    if not 0 <= slot < descriptor.pedal_count:
        raise InvalidSlotError(slot, descriptor.pedal_count)


def wire_index(slot: int, descriptor: ModelDescriptor) -> int:
    check_slot(slot, descriptor)
    return descriptor.first_slot + slot + 1


def _bits(members) -> int:
    value = 0
    for member in members:
        value |= int(member)
    return value


def _encode_text(content: str) -> bytes:
    if len(content) > TEXT_MAX_LENGTH:
        raise TextTooLongError(len(content), TEXT_MAX_LENGTH)
    codes = bytearray()
    for char in content:
        code = keymap.encode_char(char)
        if code is None:
            raise InvalidConfigurationArgumentError(char, "character cannot be typed by the pedal")
        codes.append(code)
    return bytes(codes)


def releases_on(configuration: Configuration) -> bool:
    return isinstance(configuration, INVERT_CASES) and configuration.invert


def check_supported(configuration: Configuration, descriptor: ModelDescriptor) -> None:
    """Reject configurations the model family cannot store."""
    if releases_on(configuration) and not descriptor.trigger_modes:
        raise InvalidConfigurationArgumentError(
            "--invert", f"{descriptor.name} cannot trigger on release"
        )
    if (
        isinstance(configuration, Keyboard)
        and descriptor.short_records
        and len(configuration.keys) > MAX_SHORT_KEYS
    ):
        raise InvalidConfigurationArgumentError(
            "+".join(keymap.display_key(k) for k in configuration.keys),
            f"{descriptor.name} holds at most {MAX_SHORT_KEYS} keys per pedal",
        )


def encode(configuration: Configuration, slot: int, descriptor: ModelDescriptor) -> Packet:
    check_slot(slot, descriptor)
    check_supported(configuration, descriptor)
    full_length = SHORT_RECORD_SIZE if descriptor.short_records else PACKET_SIZE
    record = bytearray(PACKET_SIZE)

    if isinstance(configuration, Unconfigured):
        record[0] = SHORT_RECORD_SIZE if descriptor.short_records else 0
    elif isinstance(configuration, Keyboard):
        record[0] = full_length
        action = TYPE_KEYBOARD_MULTI if len(configuration.keys) > 1 else TYPE_KEYBOARD
        record[1] = action | (FLAG_ONCE if configuration.once else 0)
        record[2] = _bits(configuration.modifiers)
        keys = configuration.keys[:MAX_KEYS]
        record[3 : 3 + len(keys)] = bytes(keys)
    elif isinstance(configuration, MouseButtons):
        record[0] = full_length
        record[1] = TYPE_MOUSE
        record[4] = _bits(configuration.buttons)
    elif isinstance(configuration, MouseAxis):
        record[0] = full_length
        record[1] = TYPE_MOUSE
        record[5] = configuration.dx & 0xFF
        record[6] = configuration.dy & 0xFF
        record[7] = configuration.wheel & 0xFF
    elif isinstance(configuration, Text):
        codes = _encode_text(configuration.content)
        record[0] = len(codes) + PAYLOAD_OFFSET if descriptor.short_records else PACKET_SIZE
        record[1] = TYPE_TEXT
        record[PAYLOAD_OFFSET : PAYLOAD_OFFSET + len(codes)] = codes
    elif isinstance(configuration, Media):
        record[0] = full_length
        record[1] = TYPE_MEDIA
        record[2] = int(configuration.action)
    elif isinstance(configuration, Gamepad):
        record[0] = full_length
        record[1] = TYPE_GAMEPAD
        record[2] = int(configuration.input)
    else:
        raise InvalidConfigurationArgumentError(
            type(configuration).__name__, "not a pedal configuration"
        )

    return Packet(slot=slot, data=bytes(record))


def _signed(byte: int) -> int:
    value = byte - 0x100 if byte & 0x80 else byte
    return max(AXIS_MIN, min(AXIS_MAX, value))


def _decode_text(record: bytes) -> Text:
    length = record[0] - PAYLOAD_OFFSET
    if not 0 <= length <= TEXT_MAX_LENGTH:
        length = TEXT_MAX_LENGTH
    payload = record[PAYLOAD_OFFSET : PAYLOAD_OFFSET + length].split(b"\x00", 1)[0]
    content = "".join(keymap.decode_char(code) for code in payload)
    if len(content) > TEXT_MAX_LENGTH:
        LOGGER.debug("Truncating decoded text %r to %d characters", content, TEXT_MAX_LENGTH)
        content = content[:TEXT_MAX_LENGTH]
    return Text(content)


def decode(packet: Packet | bytes, descriptor: ModelDescriptor) -> Configuration:
    """Decode one record; unknown tags and codes decode to ``Unconfigured``."""
    record = packet.data if isinstance(packet, Packet) else bytes(packet)
    if len(record) != PACKET_SIZE:
        raise ProtocolMismatchError(
            f"{descriptor.name}: expected a {PACKET_SIZE}-byte record, got {len(record)} bytes"
        )

    tag = record[1]
    if tag in (TYPE_KEYBOARD, TYPE_KEYBOARD_MULTI, TYPE_KEYBOARD | FLAG_ONCE, TYPE_KEYBOARD_MULTI | FLAG_ONCE):
        modifiers = frozenset(m for m in Modifier if record[2] & m)
        keys = tuple(code for code in record[3 : 3 + MAX_KEYS] if code)
        return Keyboard(modifiers=modifiers, keys=keys, once=bool(tag & FLAG_ONCE))

    if tag == TYPE_KEYBOARD_MOUSE:
        # Only the keyboard half of a combined action is kept.
        modifiers = frozenset(m for m in Modifier if record[2] & m)
        return Keyboard(modifiers=modifiers, keys=(record[3],) if record[3] else ())

    if tag == TYPE_MOUSE:
        button_bits = record[4] & _MOUSE_BUTTON_MASK
        if button_bits:
            return MouseButtons(buttons=frozenset(b for b in MouseButton if button_bits & b))
        return MouseAxis(dx=_signed(record[5]), dy=_signed(record[6]), wheel=_signed(record[7]))

    if tag == TYPE_TEXT:
        return _decode_text(record)

    if tag == TYPE_MEDIA:
        try:
            return Media(action=MediaKey(record[2]))
        except ValueError:
            LOGGER.debug("Unknown media code 0x%02x decoded as unconfigured", record[2])
            return Unconfigured()

    if tag == TYPE_GAMEPAD:
        try:
            return Gamepad(input=GamepadInput(record[2]))
        except ValueError:
            LOGGER.debug("Unknown gamepad code 0x%02x decoded as unconfigured", record[2])
            return Unconfigured()

    if tag != TYPE_UNCONFIGURED:
        LOGGER.debug("Unknown action tag 0x%02x decoded as unconfigured", tag)
    return Unconfigured()


def reports_for_record(first_report: bytes, descriptor: ModelDescriptor) -> int:
    """Number of 8-byte reports one record spans, judged from its first report."""
    if not descriptor.short_records:
        return PACKET_SIZE // REPORT_SIZE
    if first_report[1] != TYPE_TEXT:
        return 1
    length = min(first_report[0], PACKET_SIZE)
    return max(1, -(-length // REPORT_SIZE))


def record_reports(packet: Packet, descriptor: ModelDescriptor) -> list[bytes]:
    return packet.reports(reports_for_record(packet.data[:REPORT_SIZE], descriptor))


def begin_write_command(descriptor: ModelDescriptor) -> bytes:
    return bytes([0x01, 0x80, 0x08, descriptor.begin_write_arg, 0x00, 0x00, 0x00, 0x00])


def write_header_command(packet: Packet, descriptor: ModelDescriptor) -> bytes:
    size = packet.record_length if descriptor.header_size is None else descriptor.header_size
    return bytes([0x01, 0x81, size, wire_index(packet.slot, descriptor), 0x00, 0x00, 0x00, 0x00])


def read_config_command(slot: int, descriptor: ModelDescriptor) -> bytes:
    return bytes([0x01, 0x82, 0x08, wire_index(slot, descriptor), 0x00, 0x00, 0x00, 0x00])


def read_model_command() -> bytes:
    return bytes([0x01, 0x83, 0x08, 0x00, 0x00, 0x00, 0x00, 0x00])


def read_trigger_modes_command() -> bytes:
    return bytes([0x01, 0x86, 0x00, 0x00, 0x00, 0x00, 0x00, 0x00])


def write_trigger_modes_command() -> bytes:
    return bytes([0x01, 0x85, REPORT_SIZE, 0x00, 0x00, 0x00, 0x00, 0x00])


def parse_trigger_modes(report: bytes, descriptor: ModelDescriptor) -> tuple[bool, ...]:
    """Per-pedal release flags; anything but an explicit release byte means press."""
    modes = report[: descriptor.pedal_count].ljust(descriptor.pedal_count, bytes([TRIGGER_PRESS]))
    return tuple(mode == TRIGGER_RELEASE for mode in modes)


def trigger_modes_report(released: Sequence[bool]) -> bytes:
    modes = bytes(TRIGGER_RELEASE if flag else TRIGGER_PRESS for flag in released)
    return modes.ljust(REPORT_SIZE, b"\x00")


def with_trigger(configuration: Configuration, released: bool) -> Configuration:
    if not isinstance(configuration, INVERT_CASES):
        return configuration
    return dataclasses.replace(configuration, invert=released)


def parse_model_string(raw: bytes) -> FirmwareInfo | None:
    text = raw.decode("ascii", errors="replace").rstrip("\x00").strip()
    if not text:
        return None
    model, sep, version = text.rpartition("_")
    if not sep or not model:
        return FirmwareInfo(model=text, version="unknown")
    return FirmwareInfo(model=model, version=version)
