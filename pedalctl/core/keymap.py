"""USB HID usage codes for keyboard keys and typed text.

Codes 0x84-0xb8 are the pedal firmware's shifted variants of 0x04-0x38: the
device presses Left Shift together with ``code & 0x7f`` when typing them.
"""

from __future__ import annotations

import string

_KEYMAP_TABLE: tuple[tuple[str, int], ...] = (
    *((letter, 0x04 + i) for i, letter in enumerate(string.ascii_lowercase)),
    *((digit, 0x1E + i) for i, digit in enumerate("1234567890")),
    ("enter", 0x28),
    ("return", 0x28),
    ("esc", 0x29),
    ("escape", 0x29),
    ("backspace", 0x2A),
    ("tab", 0x2B),
    (" ", 0x2C),
    ("space", 0x2C),
    ("-", 0x2D),
    ("minus", 0x2D),
    ("=", 0x2E),
    ("equal", 0x2E),
    ("[", 0x2F),
    ("]", 0x30),
    ("\\", 0x31),
    (";", 0x33),
    ("'", 0x34),
    ("`", 0x35),
    (",", 0x36),
    (".", 0x37),
    ("/", 0x38),
    ("capslock", 0x39),
    *((f"f{n}", 0x3A + n - 1) for n in range(1, 13)),
    ("printscreen", 0x46),
    ("scrolllock", 0x47),
    ("pause", 0x48),
    ("insert", 0x49),
    ("home", 0x4A),
    ("pageup", 0x4B),
    ("prior", 0x4B),
    ("delete", 0x4C),
    ("end", 0x4D),
    ("pagedown", 0x4E),
    ("next", 0x4E),
    ("right", 0x4F),
    ("left", 0x50),
    ("down", 0x51),
    ("up", 0x52),
    ("numlock", 0x53),
    ("kp_divide", 0x54),
    ("kp_multiply", 0x55),
    ("kp_subtract", 0x56),
    ("kp_add", 0x57),
    ("kp_enter", 0x58),
    ("kp_end", 0x59),
    ("kp_down", 0x5A),
    ("kp_next", 0x5B),
    ("kp_left", 0x5C),
    ("kp_begin", 0x5D),
    ("kp_right", 0x5E),
    ("kp_home", 0x5F),
    ("kp_up", 0x60),
    ("kp_prior", 0x61),
    ("kp_insert", 0x62),
    ("kp_delete", 0x63),
    ("less", 0x64),
    ("compose", 0x65),
    ("multi_key", 0x65),
    *((f"f{n}", 0x68 + n - 13) for n in range(13, 25)),
    ("mute", 0x7F),
    ("volumeup", 0x80),
    ("volumedown", 0x81),
    *((letter, 0x84 + i) for i, letter in enumerate(string.ascii_uppercase)),
    ("!", 0x9E),
    ("@", 0x9F),
    ("#", 0xA0),
    ("$", 0xA1),
    ("%", 0xA2),
    ("^", 0xA3),
    ("&", 0xA4),
    ("*", 0xA5),
    ("(", 0xA6),
    (")", 0xA7),
    ("_", 0xAD),
    ("+", 0xAE),
    ("{", 0xAF),
    ("}", 0xB0),
    ("|", 0xB1),
    (":", 0xB3),
    ('"', 0xB4),
    ("~", 0xB5),
    ("<", 0xB6),
    (">", 0xB7),
    ("?", 0xB8),
    ("lctrl", 0xE0),
    ("lshift", 0xE1),
    ("lalt", 0xE2),
    ("lsuper", 0xE3),
    ("rctrl", 0xE4),
    ("rshift", 0xE5),
    ("ralt", 0xE6),
    ("rsuper", 0xE7),
    ("playpause", 0xE8),
    ("eject", 0xE9),
    ("prevtrack", 0xEA),
    ("nexttrack", 0xEB),
    ("www", 0xF0),
    ("back", 0xF1),
    ("forward", 0xF2),
    ("sleep", 0xF8),
    ("screensaver", 0xF9),
    ("reload", 0xFA),
    ("calculator", 0xFB),
)

_NAME_TO_CODE: dict[str, int] = {}
_CODE_TO_NAME: dict[int, str] = {}

for _name, _code in _KEYMAP_TABLE:
    _NAME_TO_CODE[_name] = _code
    # The first name listed for a code is its canonical name.
    _CODE_TO_NAME.setdefault(_code, _name)

_DISPLAY_OVERRIDES = {
    " ": "Space",
    "esc": "Esc",
    "pageup": "PageUp",
    "pagedown": "PageDown",
    "printscreen": "PrintScreen",
    "scrolllock": "ScrollLock",
    "capslock": "CapsLock",
    "numlock": "NumLock",
    "volumeup": "VolumeUp",
    "volumedown": "VolumeDown",
    "playpause": "PlayPause",
    "prevtrack": "PrevTrack",
    "nexttrack": "NextTrack",
}

TEXT_CHARACTERS = frozenset(name for name, _ in _KEYMAP_TABLE if len(name) == 1)


def encode_key(name: str) -> int | None:
    """Return the HID code for a key name.

    Single letters are case-sensitive (``"A"`` is the shifted code), every
    other name is matched case-insensitively.
    """
    code = _NAME_TO_CODE.get(name)
    if code is not None:
        return code
    if len(name) == 1:
        return None
    return _NAME_TO_CODE.get(name.lower())


def decode_key(code: int) -> str | None:
    return _CODE_TO_NAME.get(code)


def encode_char(char: str) -> int | None:
    if char not in TEXT_CHARACTERS:
        return None
    return _NAME_TO_CODE[char]


def decode_char(code: int) -> str:
    """Render one text payload byte; non-character keys render as ``<name>``."""
    name = _CODE_TO_NAME.get(code)
    if name is None:
        return f"<0x{code:02x}>"
    if len(name) == 1:
        return name
    return f"<{name}>"


def display_key(code: int) -> str:
    name = _CODE_TO_NAME.get(code)
    if name is None:
        return f"0x{code:02x}"
    if name in _DISPLAY_OVERRIDES:
        return _DISPLAY_OVERRIDES[name]
    if 0x84 <= code <= 0x9D:
        return f"Shift+{name}"
    if len(name) == 1:
        return name.upper()
    if name[0] == "f" and name[1:].isdigit():
        return name.upper()
    return name.capitalize()
