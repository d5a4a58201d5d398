"""
Python bridge from an Arduino-attached NES controller to keyboard input.

Expose the building blocks at the package root so callers can import
``nes_keyboard_bridge`` and wire their own emulator or loop.
"""

from .arduino_uart import (  # noqa: F401
    ArduinoConnectionError,
    ArduinoSerialReader,
    discover_serial_ports,
    first_serial_port,
    parse_reading,
)
from .config import BridgeSettings, ConfigError, load_settings, parse_settings  # noqa: F401
from .dispatcher import KeyDispatcher, KeyEmulator  # noqa: F401
from .key_emulator import ConsoleKeyEmulator, PynputKeyEmulator  # noqa: F401
from .keymap import KeyMapError, KeyMapping, ScanCode, VirtualKey, parse_mapping  # noqa: F401
from .nes_controller import (  # noqa: F401
    BUTTON_ORDER,
    ButtonDirection,
    ButtonTransition,
    NESButton,
    NESController,
    invert_reading,
    is_pressed,
)

__all__ = [
    "ArduinoSerialReader",
    "ArduinoConnectionError",
    "BridgeSettings",
    "ConfigError",
    "load_settings",
    "parse_settings",
    "KeyDispatcher",
    "KeyEmulator",
    "ConsoleKeyEmulator",
    "PynputKeyEmulator",
    "KeyMapping",
    "KeyMapError",
    "ScanCode",
    "VirtualKey",
    "parse_mapping",
    "NESButton",
    "NESController",
    "ButtonTransition",
    "ButtonDirection",
    "BUTTON_ORDER",
    "invert_reading",
    "is_pressed",
    "discover_serial_ports",
    "first_serial_port",
    "parse_reading",
]
