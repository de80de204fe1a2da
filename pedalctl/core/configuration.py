"""Pedal action values: what a single pedal does when it is pressed."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import IntEnum
from typing import Union

from pedalctl.core import keymap
from pedalctl.core.errors import InvalidConfigurationArgumentError, TextTooLongError

TEXT_MAX_LENGTH = 38
MAX_KEYS = 6
AXIS_MIN = -127
AXIS_MAX = 127


class Modifier(IntEnum):
    LCTRL = 0x01
    LSHIFT = 0x02
    LALT = 0x04
    LSUPER = 0x08
    RCTRL = 0x10
    RSHIFT = 0x20
    RALT = 0x40
    RSUPER = 0x80

    @property
    def label(self) -> str:
        return _MODIFIER_LABELS[self]


_MODIFIER_LABELS = {
    Modifier.LCTRL: "LCtrl",
    Modifier.RCTRL: "RCtrl",
    Modifier.LSHIFT: "LShift",
    Modifier.RSHIFT: "RShift",
    Modifier.LALT: "LAlt",
    Modifier.RALT: "RAlt",
    Modifier.LSUPER: "LSuper",
    Modifier.RSUPER: "RSuper",
}

# Display order groups each modifier with its right-hand twin.
MODIFIER_DISPLAY_ORDER = tuple(_MODIFIER_LABELS)


class MouseButton(IntEnum):
    LEFT = 0x01
    RIGHT = 0x02
    MIDDLE = 0x04
    BACK = 0x08
    FORWARD = 0x10

    @property
    def label(self) -> str:
        return self.name.lower()


class MediaKey(IntEnum):
    VOLUME_DOWN = 1
    VOLUME_UP = 2
    MUTE = 3
    PLAY_PAUSE = 4
    FAST_FORWARD = 5
    NEXT_TRACK = 6
    STOP = 7
    OPEN_PLAYER = 8
    OPEN_HOMEPAGE = 9
    STOP_WEBPAGE = 10
    BROWSER_BACK = 11
    BROWSER_FORWARD = 12
    REFRESH = 13
    OPEN_MY_COMPUTER = 14
    OPEN_MAIL = 15
    OPEN_CALCULATOR = 16
    OPEN_SEARCH = 17
    SHUTDOWN = 18
    SLEEP = 19

    @property
    def label(self) -> str:
        return _MEDIA_LABELS.get(self, self.name.replace("_", " ").title())


_MEDIA_LABELS = {
    MediaKey.PLAY_PAUSE: "Play/Pause",
    MediaKey.OPEN_CALCULATOR: "Calculator",
}


class GamepadInput(IntEnum):
    DPAD_LEFT = 1
    DPAD_RIGHT = 2
    DPAD_UP = 3
    DPAD_DOWN = 4
    BUTTON_1 = 5
    BUTTON_2 = 6
    BUTTON_3 = 7
    BUTTON_4 = 8
    BUTTON_5 = 9
    BUTTON_6 = 10
    BUTTON_7 = 11
    BUTTON_8 = 12

    @property
    def label(self) -> str:
        if self.name.startswith("DPAD_"):
            return f"D-Pad {self.name[5:].title()}"
        return f"Button {self.name[7:]}"


def _trigger_suffix(once: bool, invert: bool) -> str:
    flags = []
    if once:
        flags.append("one-shot")
    if invert:
        flags.append("on release")
    return f" [{', '.join(flags)}]" if flags else ""


@dataclass(frozen=True)
class Unconfigured:
    def describe(self) -> str:
        return "Unconfigured"


@dataclass(frozen=True)
class Keyboard:
    modifiers: frozenset[Modifier] = field(default_factory=frozenset)
    keys: tuple[int, ...] = ()
    once: bool = False
    invert: bool = False

    def __post_init__(self) -> None:
        object.__setattr__(self, "modifiers", frozenset(Modifier(m) for m in self.modifiers))
        object.__setattr__(self, "keys", tuple(self.keys))
        if len(self.keys) > MAX_KEYS:
            raise InvalidConfigurationArgumentError(
                "+".join(keymap.display_key(k) for k in self.keys),
                f"at most {MAX_KEYS} keys can be pressed together",
            )
        for code in self.keys:
            if not 0 < code <= 0xFF:
                raise InvalidConfigurationArgumentError(str(code), "key code must be within 0x01-0xff")

    @property
    def key(self) -> int | None:
        return self.keys[0] if self.keys else None

    def describe(self) -> str:
        parts = [m.label for m in MODIFIER_DISPLAY_ORDER if m in self.modifiers]
        parts.extend(keymap.display_key(code) for code in self.keys)
        return f"Keyboard: {'+'.join(parts)}{_trigger_suffix(self.once, self.invert)}"


@dataclass(frozen=True)
class MouseButtons:
    buttons: frozenset[MouseButton]
    invert: bool = False

    def __post_init__(self) -> None:
        object.__setattr__(self, "buttons", frozenset(MouseButton(b) for b in self.buttons))
        if not self.buttons:
            raise InvalidConfigurationArgumentError("", "at least one mouse button is required")

    def describe(self) -> str:
        names = "+".join(b.label for b in sorted(self.buttons))
        return f"Mouse: {names}{_trigger_suffix(False, self.invert)}"


@dataclass(frozen=True)
class MouseAxis:
    dx: int = 0
    dy: int = 0
    wheel: int = 0

    def __post_init__(self) -> None:
        for value in (self.dx, self.dy, self.wheel):
            if not AXIS_MIN <= value <= AXIS_MAX:
                raise InvalidConfigurationArgumentError(
                    str(value), f"axis values must be within [{AXIS_MIN}, {AXIS_MAX}]"
                )

    def describe(self) -> str:
        if self.wheel:
            return f"Mouse: axis({self.dx}, {self.dy}, {self.wheel})"
        return f"Mouse: axis({self.dx}, {self.dy})"


@dataclass(frozen=True)
class Text:
    content: str

    def __post_init__(self) -> None:
        if len(self.content) > TEXT_MAX_LENGTH:
            raise TextTooLongError(len(self.content), TEXT_MAX_LENGTH)
        for char in self.content:
            if keymap.encode_char(char) is None:
                raise InvalidConfigurationArgumentError(char, "character cannot be typed by the pedal")

    def describe(self) -> str:
        return f'Text: "{self.content}"'


@dataclass(frozen=True)
class Media:
    action: MediaKey
    invert: bool = False

    def __post_init__(self) -> None:
        object.__setattr__(self, "action", MediaKey(self.action))

    def describe(self) -> str:
        return f"Media: {self.action.label}{_trigger_suffix(False, self.invert)}"


@dataclass(frozen=True)
class Gamepad:
    input: GamepadInput
    invert: bool = False

    def __post_init__(self) -> None:
        object.__setattr__(self, "input", GamepadInput(self.input))

    def describe(self) -> str:
        return f"Gamepad: {self.input.label}{_trigger_suffix(False, self.invert)}"


Configuration = Union[Unconfigured, Keyboard, MouseButtons, MouseAxis, Text, Media, Gamepad]

# Cases the device can fire once per press, and cases it can fire on release.
ONCE_CASES = (Keyboard,)
INVERT_CASES = (Keyboard, MouseButtons, Media, Gamepad)
