"""
Keyboard identifiers and NES-button-to-key mapping entries.

Both tables mirror the Windows ``SendInput`` definitions: ``ScanCode`` holds PC/AT set 1
make codes and ``VirtualKey`` holds ``VK_*`` values. Members share names so a config
entry such as ``A,KEY_Z,KEY_Z`` reads naturally.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum
from typing import Type, TypeVar

from .nes_controller import BUTTON_ORDER, NESButton

E = TypeVar("E", bound=IntEnum)


class ScanCode(IntEnum):
    ESCAPE = 0x01
    KEY_1 = 0x02
    KEY_2 = 0x03
    KEY_3 = 0x04
    KEY_4 = 0x05
    KEY_5 = 0x06
    KEY_6 = 0x07
    KEY_7 = 0x08
    KEY_8 = 0x09
    KEY_9 = 0x0A
    KEY_0 = 0x0B
    OEM_MINUS = 0x0C
    OEM_PLUS = 0x0D
    BACK = 0x0E
    TAB = 0x0F
    KEY_Q = 0x10
    KEY_W = 0x11
    KEY_E = 0x12
    KEY_R = 0x13
    KEY_T = 0x14
    KEY_Y = 0x15
    KEY_U = 0x16
    KEY_I = 0x17
    KEY_O = 0x18
    KEY_P = 0x19
    OEM_4 = 0x1A
    OEM_6 = 0x1B
    RETURN = 0x1C
    LCONTROL = 0x1D
    KEY_A = 0x1E
    KEY_S = 0x1F
    KEY_D = 0x20
    KEY_F = 0x21
    KEY_G = 0x22
    KEY_H = 0x23
    KEY_J = 0x24
    KEY_K = 0x25
    KEY_L = 0x26
    OEM_1 = 0x27
    OEM_7 = 0x28
    OEM_3 = 0x29
    LSHIFT = 0x2A
    OEM_5 = 0x2B
    KEY_Z = 0x2C
    KEY_X = 0x2D
    KEY_C = 0x2E
    KEY_V = 0x2F
    KEY_B = 0x30
    KEY_N = 0x31
    KEY_M = 0x32
    OEM_COMMA = 0x33
    OEM_PERIOD = 0x34
    OEM_2 = 0x35
    RSHIFT = 0x36
    MULTIPLY = 0x37
    LMENU = 0x38
    SPACE = 0x39
    CAPITAL = 0x3A
    F1 = 0x3B
    F2 = 0x3C
    F3 = 0x3D
    F4 = 0x3E
    F5 = 0x3F
    F6 = 0x40
    F7 = 0x41
    F8 = 0x42
    F9 = 0x43
    F10 = 0x44
    NUMLOCK = 0x45
    SCROLL = 0x46
    # Arrow keys share make codes with the numpad (E0-prefixed); listed first so they are
    # the canonical names and the numpad entries become aliases.
    UP = 0x48
    LEFT = 0x4B
    RIGHT = 0x4D
    DOWN = 0x50
    NUMPAD7 = 0x47
    NUMPAD8 = 0x48
    NUMPAD9 = 0x49
    SUBTRACT = 0x4A
    NUMPAD4 = 0x4B
    NUMPAD5 = 0x4C
    NUMPAD6 = 0x4D
    ADD = 0x4E
    NUMPAD1 = 0x4F
    NUMPAD2 = 0x50
    NUMPAD3 = 0x51
    NUMPAD0 = 0x52
    DECIMAL = 0x53
    F11 = 0x57
    F12 = 0x58


class VirtualKey(IntEnum):
    BACK = 0x08
    TAB = 0x09
    RETURN = 0x0D
    LSHIFT = 0xA0
    RSHIFT = 0xA1
    LCONTROL = 0xA2
    LMENU = 0xA4
    CAPITAL = 0x14
    ESCAPE = 0x1B
    SPACE = 0x20
    LEFT = 0x25
    UP = 0x26
    RIGHT = 0x27
    DOWN = 0x28
    KEY_0 = 0x30
    KEY_1 = 0x31
    KEY_2 = 0x32
    KEY_3 = 0x33
    KEY_4 = 0x34
    KEY_5 = 0x35
    KEY_6 = 0x36
    KEY_7 = 0x37
    KEY_8 = 0x38
    KEY_9 = 0x39
    KEY_A = 0x41
    KEY_B = 0x42
    KEY_C = 0x43
    KEY_D = 0x44
    KEY_E = 0x45
    KEY_F = 0x46
    KEY_G = 0x47
    KEY_H = 0x48
    KEY_I = 0x49
    KEY_J = 0x4A
    KEY_K = 0x4B
    KEY_L = 0x4C
    KEY_M = 0x4D
    KEY_N = 0x4E
    KEY_O = 0x4F
    KEY_P = 0x50
    KEY_Q = 0x51
    KEY_R = 0x52
    KEY_S = 0x53
    KEY_T = 0x54
    KEY_U = 0x55
    KEY_V = 0x56
    KEY_W = 0x57
    KEY_X = 0x58
    KEY_Y = 0x59
    KEY_Z = 0x5A
    NUMPAD0 = 0x60
    NUMPAD1 = 0x61
    NUMPAD2 = 0x62
    NUMPAD3 = 0x63
    NUMPAD4 = 0x64
    NUMPAD5 = 0x65
    NUMPAD6 = 0x66
    NUMPAD7 = 0x67
    NUMPAD8 = 0x68
    NUMPAD9 = 0x69
    MULTIPLY = 0x6A
    ADD = 0x6B
    SUBTRACT = 0x6D
    DECIMAL = 0x6E
    F1 = 0x70
    F2 = 0x71
    F3 = 0x72
    F4 = 0x73
    F5 = 0x74
    F6 = 0x75
    F7 = 0x76
    F8 = 0x77
    F9 = 0x78
    F10 = 0x79
    F11 = 0x7A
    F12 = 0x7B
    NUMLOCK = 0x90
    SCROLL = 0x91
    OEM_1 = 0xBA
    OEM_PLUS = 0xBB
    OEM_COMMA = 0xBC
    OEM_MINUS = 0xBD
    OEM_PERIOD = 0xBE
    OEM_2 = 0xBF
    OEM_3 = 0xC0
    OEM_4 = 0xDB
    OEM_5 = 0xDC
    OEM_6 = 0xDD
    OEM_7 = 0xDE


class KeyMapError(ValueError):
    """Raised when a mapping entry names an unknown button or key."""


@dataclass(frozen=True)
class KeyMapping:
    button: NESButton
    scan_code: ScanCode
    virtual_key: VirtualKey

    def __str__(self) -> str:
        return f"{self.button.name} -> {self.scan_code.name}/{self.virtual_key.name}"


def lookup_name(enum_cls: Type[E], name: str, what: str) -> E:
    """Resolve a member name case-insensitively, raising KeyMapError if unknown."""
    wanted = name.strip().lower()
    for member_name, member in enum_cls.__members__.items():
        if member_name.lower() == wanted:
            return member
    raise KeyMapError(f"Invalid {what} name '{name.strip()}'")


def parse_button(name: str) -> NESButton:
    """Resolve a single NES button name."""
    wanted = name.strip().lower()
    for button in BUTTON_ORDER:
        if button.name.lower() == wanted:
            return button
    raise KeyMapError(f"Invalid NESButton name '{name.strip()}'")


def parse_mapping(value: str) -> KeyMapping:
    """Parse 'Button,ScanCodeName,VirtualKeyName' into a KeyMapping."""
    parts = value.split(",")
    if len(parts) != 3:
        raise KeyMapError(f"Mapping must look like 'Button,ScanCode,VirtualKey', got '{value}'")
    button = parse_button(parts[0])
    scan_code = lookup_name(ScanCode, parts[1], "ScanCode key")
    virtual_key = lookup_name(VirtualKey, parts[2], "VirtualKey key")
    return KeyMapping(button, scan_code, virtual_key)

