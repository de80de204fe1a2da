"""Parse human-authored pedal arguments into configuration values."""

from __future__ import annotations

import logging
from typing import Callable, Sequence

from pedalctl.core import keymap
from pedalctl.core.configuration import (
    AXIS_MAX,
    AXIS_MIN,
    INVERT_CASES,
    MAX_KEYS,
    ONCE_CASES,
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
from pedalctl.core.errors import InvalidConfigurationArgumentError, TextTooLongError

LOGGER = logging.getLogger(__name__)

KINDS = ("none", "keyboard", "mouse", "axis", "text", "media", "gamepad")

_MODIFIER_ALIASES = {
    "ctrl": Modifier.LCTRL,
    "control": Modifier.LCTRL,
    "lctrl": Modifier.LCTRL,
    "lcontrol": Modifier.LCTRL,
    "rctrl": Modifier.RCTRL,
    "rcontrol": Modifier.RCTRL,
    "shift": Modifier.LSHIFT,
    "lshift": Modifier.LSHIFT,
    "rshift": Modifier.RSHIFT,
    "alt": Modifier.LALT,
    "lalt": Modifier.LALT,
    "ralt": Modifier.RALT,
    "super": Modifier.LSUPER,
    "win": Modifier.LSUPER,
    "cmd": Modifier.LSUPER,
    "lsuper": Modifier.LSUPER,
    "lwin": Modifier.LSUPER,
    "lcmd": Modifier.LSUPER,
    "rsuper": Modifier.RSUPER,
    "rwin": Modifier.RSUPER,
    "rcmd": Modifier.RSUPER,
}

_MOUSE_BUTTONS = {button.label: button for button in MouseButton}

_MEDIA_ALIASES = {
    "volume-down": MediaKey.VOLUME_DOWN,
    "volume-minus": MediaKey.VOLUME_DOWN,
    "volume-up": MediaKey.VOLUME_UP,
    "volume-plus": MediaKey.VOLUME_UP,
    "mute": MediaKey.MUTE,
    "play": MediaKey.PLAY_PAUSE,
    "play-pause": MediaKey.PLAY_PAUSE,
    "forward": MediaKey.FAST_FORWARD,
    "fast-forward": MediaKey.FAST_FORWARD,
    "next": MediaKey.NEXT_TRACK,
    "next-track": MediaKey.NEXT_TRACK,
    "skip": MediaKey.NEXT_TRACK,
    "stop": MediaKey.STOP,
    "player": MediaKey.OPEN_PLAYER,
    "open-player": MediaKey.OPEN_PLAYER,
    "home": MediaKey.OPEN_HOMEPAGE,
    "homepage": MediaKey.OPEN_HOMEPAGE,
    "open-homepage": MediaKey.OPEN_HOMEPAGE,
    "stop-page": MediaKey.STOP_WEBPAGE,
    "stop-webpage": MediaKey.STOP_WEBPAGE,
    "browser-back": MediaKey.BROWSER_BACK,
    "back-browse": MediaKey.BROWSER_BACK,
    "browser-forward": MediaKey.BROWSER_FORWARD,
    "forward-browse": MediaKey.BROWSER_FORWARD,
    "refresh": MediaKey.REFRESH,
    "reload": MediaKey.REFRESH,
    "computer": MediaKey.OPEN_MY_COMPUTER,
    "my-computer": MediaKey.OPEN_MY_COMPUTER,
    "open-my-computer": MediaKey.OPEN_MY_COMPUTER,
    "mail": MediaKey.OPEN_MAIL,
    "email": MediaKey.OPEN_MAIL,
    "open-mail": MediaKey.OPEN_MAIL,
    "calc": MediaKey.OPEN_CALCULATOR,
    "calculator": MediaKey.OPEN_CALCULATOR,
    "open-calc": MediaKey.OPEN_CALCULATOR,
    "search": MediaKey.OPEN_SEARCH,
    "open-search": MediaKey.OPEN_SEARCH,
    "shutdown": MediaKey.SHUTDOWN,
    "power-off": MediaKey.SHUTDOWN,
    "sleep": MediaKey.SLEEP,
    "suspend": MediaKey.SLEEP,
}

_GAMEPAD_ALIASES = {
    "left": GamepadInput.DPAD_LEFT,
    "dpad-left": GamepadInput.DPAD_LEFT,
    "right": GamepadInput.DPAD_RIGHT,
    "dpad-right": GamepadInput.DPAD_RIGHT,
    "up": GamepadInput.DPAD_UP,
    "dpad-up": GamepadInput.DPAD_UP,
    "down": GamepadInput.DPAD_DOWN,
    "dpad-down": GamepadInput.DPAD_DOWN,
}
for _number in range(1, 9):
    _button = GamepadInput[f"BUTTON_{_number}"]
    _GAMEPAD_ALIASES[f"button{_number}"] = _button
    _GAMEPAD_ALIASES[f"button-{_number}"] = _button
    _GAMEPAD_ALIASES[str(_number)] = _button


def _normalize_keyword(keyword: str) -> str:
    return keyword.strip().lower().replace("_", "-")


def _split_combo(combo: str) -> list[str]:
    if combo.strip() == "+":
        return ["+"]
    tokens = [token.strip() for token in combo.split("+")]
    # A trailing "+" names the plus key itself, e.g. "shift++".
    if combo.endswith("++"):
        tokens = tokens[:-2] + ["+"]
    if not tokens or any(not token for token in tokens):
        raise InvalidConfigurationArgumentError(combo, "empty key in combination")
    return tokens


def _parse_key(token: str) -> int:
    if token.lower().startswith("0x"):
        try:
            code = int(token, 16)
        except ValueError:
            raise InvalidConfigurationArgumentError(token, "not a hexadecimal key code") from None
        if not 0 < code <= 0xFF:
            raise InvalidConfigurationArgumentError(token, "key code must be within 0x01-0xff")
        return code

    # Shortcut letters name physical keys; shifted letters need "shift+".
    name = token.lower() if len(token) == 1 and token.isalpha() else token
    code = keymap.encode_key(name)
    if code is None:
        raise InvalidConfigurationArgumentError(token, "unknown key name")
    return code


def build_keyboard(combo: str, once: bool = False, invert: bool = False) -> Keyboard:
    tokens = _split_combo(combo)
    modifiers: set[Modifier] = set()
    keys: list[int] = []

    if len(tokens) == 1:
        keys.append(_parse_key(tokens[0]))
    else:
        for token in tokens:
            modifier = _MODIFIER_ALIASES.get(token.lower())
            if modifier is not None:
                modifiers.add(modifier)
                continue
            keys.append(_parse_key(token))

    if len(keys) > MAX_KEYS:
        raise InvalidConfigurationArgumentError(combo, f"at most {MAX_KEYS} keys can be pressed together")
    return Keyboard(modifiers=frozenset(modifiers), keys=tuple(keys), once=once, invert=invert)


def build_mouse_buttons(combo: str, invert: bool = False) -> MouseButtons:
    buttons: set[MouseButton] = set()
    for token in _split_combo(combo):
        button = _MOUSE_BUTTONS.get(token.lower())
        if button is None:
            raise InvalidConfigurationArgumentError(
                token, f"unknown mouse button (use {', '.join(_MOUSE_BUTTONS)})"
            )
        buttons.add(button)
    return MouseButtons(buttons=frozenset(buttons), invert=invert)


def _parse_axis(value: int | str) -> int:
    if isinstance(value, int):
        number = value
    else:
        try:
            number = int(value.strip())
        except ValueError:
            raise InvalidConfigurationArgumentError(value, "axis value must be an integer") from None
    if not AXIS_MIN <= number <= AXIS_MAX:
        raise InvalidConfigurationArgumentError(
            str(value), f"axis values must be within [{AXIS_MIN}, {AXIS_MAX}]"
        )
    return number


def build_mouse_axis(dx: int | str, dy: int | str, wheel: int | str = 0) -> MouseAxis:
    return MouseAxis(dx=_parse_axis(dx), dy=_parse_axis(dy), wheel=_parse_axis(wheel))


def build_text(content: str) -> Text:
    if len(content) > TEXT_MAX_LENGTH:
        raise TextTooLongError(len(content), TEXT_MAX_LENGTH)
    return Text(content)


def build_media(keyword: str, invert: bool = False) -> Media:
    action = _MEDIA_ALIASES.get(_normalize_keyword(keyword))
    if action is None:
        raise InvalidConfigurationArgumentError(keyword, "unknown media key")
    return Media(action=action, invert=invert)


def build_gamepad(keyword: str, invert: bool = False) -> Gamepad:
    button = _GAMEPAD_ALIASES.get(_normalize_keyword(keyword))
    if button is None:
        raise InvalidConfigurationArgumentError(keyword, "unknown gamepad input")
    return Gamepad(input=button, invert=invert)


def _expect_args(kind: str, args: Sequence[str], minimum: int, maximum: int) -> None:
    if minimum <= len(args) <= maximum:
        return
    if minimum == maximum:
        expected = f"{minimum} argument(s)"
    else:
        expected = f"{minimum}-{maximum} arguments"
    raise InvalidConfigurationArgumentError(
        " ".join(args) or kind, f"'{kind}' takes {expected}, got {len(args)}"
    )


def _build_none(args: Sequence[str], once: bool, invert: bool) -> Configuration:
    _expect_args("none", args, 0, 0)
    return Unconfigured()


def _build_keyboard(args: Sequence[str], once: bool, invert: bool) -> Configuration:
    _expect_args("keyboard", args, 1, 1)
    return build_keyboard(args[0], once=once, invert=invert)


def _build_mouse(args: Sequence[str], once: bool, invert: bool) -> Configuration:
    _expect_args("mouse", args, 1, 1)
    return build_mouse_buttons(args[0], invert=invert)


def _build_axis(args: Sequence[str], once: bool, invert: bool) -> Configuration:
    _expect_args("axis", args, 2, 3)
    return build_mouse_axis(*args)


def _build_text(args: Sequence[str], once: bool, invert: bool) -> Configuration:
    _expect_args("text", args, 1, 1)
    return build_text(args[0])


def _build_media(args: Sequence[str], once: bool, invert: bool) -> Configuration:
    _expect_args("media", args, 1, 1)
    return build_media(args[0], invert=invert)


def _build_gamepad(args: Sequence[str], once: bool, invert: bool) -> Configuration:
    _expect_args("gamepad", args, 1, 1)
    return build_gamepad(args[0], invert=invert)


_BUILDERS: dict[str, tuple[Callable[[Sequence[str], bool, bool], Configuration], type]] = {
    "none": (_build_none, Unconfigured),
    "keyboard": (_build_keyboard, Keyboard),
    "mouse": (_build_mouse, MouseButtons),
    "axis": (_build_axis, MouseAxis),
    "text": (_build_text, Text),
    "media": (_build_media, Media),
    "gamepad": (_build_gamepad, Gamepad),
}


def build(kind: str, args: Sequence[str] = (), once: bool = False, invert: bool = False) -> Configuration:
    """Build a configuration from a kind keyword and its positional arguments.

    ``once`` is only accepted for keyboard actions, ``invert`` for keyboard,
    mouse button, media and gamepad actions.
    """
    entry = _BUILDERS.get(kind.strip().lower())
    if entry is None:
        raise InvalidConfigurationArgumentError(kind, f"unknown kind (use {', '.join(KINDS)})")
    builder, case = entry
    if once and not issubclass(case, ONCE_CASES):
        raise InvalidConfigurationArgumentError("--once", f"not supported for '{kind}'")
    if invert and not issubclass(case, INVERT_CASES):
        raise InvalidConfigurationArgumentError("--invert", f"not supported for '{kind}'")

    configuration = builder(list(args), once, invert)
    LOGGER.debug("Built %s from %s %r", configuration, kind, list(args))
    return configuration
