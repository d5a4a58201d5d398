"""
Key emulation backends.

On Windows, pynput hands ``KeyCode`` vk/scan values straight to ``SendInput``, so the
configured pair is sent as-is. The X11 and macOS backends read ``vk`` as a native keysym
or keycode, so there the virtual key is translated to a pynput ``Key`` member or a
character (US layout) instead.
"""

from __future__ import annotations

import sys
from typing import Any, Dict, Optional

from rich.console import Console

from .keymap import ScanCode, VirtualKey

KEYEVENTF_EXTENDEDKEY = 0x0001

# Arrow keys are E0-prefixed; without the flag SendInput reports the numpad key.
EXTENDED_KEYS = frozenset({VirtualKey.LEFT, VirtualKey.UP, VirtualKey.RIGHT, VirtualKey.DOWN})

# pynput ``Key`` attribute names for keys without a printable character.
NAMED_KEYS: Dict[VirtualKey, str] = {
    VirtualKey.BACK: "backspace",
    VirtualKey.TAB: "tab",
    VirtualKey.RETURN: "enter",
    VirtualKey.LSHIFT: "shift_l",
    VirtualKey.RSHIFT: "shift_r",
    VirtualKey.LCONTROL: "ctrl_l",
    VirtualKey.LMENU: "alt_l",
    VirtualKey.CAPITAL: "caps_lock",
    VirtualKey.ESCAPE: "esc",
    VirtualKey.SPACE: "space",
    VirtualKey.LEFT: "left",
    VirtualKey.UP: "up",
    VirtualKey.RIGHT: "right",
    VirtualKey.DOWN: "down",
    VirtualKey.NUMLOCK: "num_lock",
    VirtualKey.SCROLL: "scroll_lock",
}
NAMED_KEYS.update({VirtualKey[f"F{n}"]: f"f{n}" for n in range(1, 13)})

# Printable keys. Numpad keys type their character off Windows.
CHAR_KEYS: Dict[VirtualKey, str] = {
    member: name[-1].lower() for name, member in VirtualKey.__members__.items() if name.startswith("KEY_")
}
CHAR_KEYS.update({VirtualKey[f"NUMPAD{n}"]: str(n) for n in range(10)})
CHAR_KEYS.update(
    {
        VirtualKey.MULTIPLY: "*",
        VirtualKey.ADD: "+",
        VirtualKey.SUBTRACT: "-",
        VirtualKey.DECIMAL: ".",
        VirtualKey.OEM_1: ";",
        VirtualKey.OEM_PLUS: "=",
        VirtualKey.OEM_COMMA: ",",
        VirtualKey.OEM_MINUS: "-",
        VirtualKey.OEM_PERIOD: ".",
        VirtualKey.OEM_2: "/",
        VirtualKey.OEM_3: "`",
        VirtualKey.OEM_4: "[",
        VirtualKey.OEM_5: "\\",
        VirtualKey.OEM_6: "]",
        VirtualKey.OEM_7: "'",
    }
)


def resolve_key(keyboard: Any, scan_code: ScanCode, virtual_key: VirtualKey, platform: str) -> Any:
    """Build the pynput key object for a scan code / virtual key pair."""
    if platform == "win32":
        flags = KEYEVENTF_EXTENDEDKEY if virtual_key in EXTENDED_KEYS else None
        return keyboard.KeyCode.from_vk(int(virtual_key), _scan=int(scan_code), _flags=flags)
    name = NAMED_KEYS.get(virtual_key)
    if name is not None:
        return getattr(keyboard.Key, name)
    return keyboard.KeyCode.from_char(CHAR_KEYS[virtual_key])


class PynputKeyEmulator:
    """Emulate keys with ``pynput``."""

    def __init__(
        self,
        controller: Optional[Any] = None,
        keyboard: Optional[Any] = None,
        platform: Optional[str] = None,
    ) -> None:
        if keyboard is None:
            # Imported here: pynput needs a display server on Linux.
            from pynput import keyboard

        self.keyboard = keyboard
        self.platform = platform or sys.platform
        self.controller = controller or keyboard.Controller()

    def emulate_key_down(self, scan_code: ScanCode, virtual_key: VirtualKey) -> None:
        self.controller.press(resolve_key(self.keyboard, scan_code, virtual_key, self.platform))

    def emulate_key_up(self, scan_code: ScanCode, virtual_key: VirtualKey) -> None:
        self.controller.release(resolve_key(self.keyboard, scan_code, virtual_key, self.platform))


class ConsoleKeyEmulator:
    """Print key events instead of sending them (for --dry-run)."""

    def __init__(self, console: Optional[Console] = None) -> None:
        self.console = console or Console()

    def emulate_key_down(self, scan_code: ScanCode, virtual_key: VirtualKey) -> None:
        self.console.print(f"[green]down[/green] {virtual_key.name} (scan 0x{int(scan_code):02X})")

    def emulate_key_up(self, scan_code: ScanCode, virtual_key: VirtualKey) -> None:
        self.console.print(f"[yellow]up[/yellow]   {virtual_key.name} (scan 0x{int(scan_code):02X})")
