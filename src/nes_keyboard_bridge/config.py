"""
INI settings for the bridge.

Example::

    [appSettings]
    arduinoPortName = COM3
    arduinoBaudRate = 57600
    nesToKeyboardMapping1 = A,KEY_Z,KEY_Z
    nesToKeyboardMapping2 = B,KEY_X,KEY_X
    nesToKeyboardMapping3 = Start,RETURN,RETURN
"""

from __future__ import annotations

import configparser
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Tuple, Union

from .arduino_uart import DEFAULT_BAUD, DEFAULT_PORT
from .keymap import KeyMapError, KeyMapping, parse_mapping

SETTINGS_SECTION = "appSettings"
PORT_KEY = "arduinoPortName"
BAUD_KEY = "arduinoBaudRate"
MAPPING_PREFIX = "nesToKeyboardMapping"


class ConfigError(ValueError):
    """Raised when the settings file is missing or invalid."""


@dataclass(frozen=True)
class BridgeSettings:
    port: str = DEFAULT_PORT
    baudrate: int = DEFAULT_BAUD
    mappings: Tuple[KeyMapping, ...] = ()

    def with_overrides(self, port: Optional[str] = None, baudrate: Optional[int] = None) -> "BridgeSettings":
        """Return a copy with CLI overrides applied."""
        return BridgeSettings(
            port=port or self.port,
            baudrate=baudrate if baudrate is not None else self.baudrate,
            mappings=self.mappings,
        )


def parse_baud(value: str) -> int:
    try:
        baud = int(value.strip(), 10)
    except ValueError as exc:
        raise ConfigError(f"{BAUD_KEY} must be an integer, got '{value}'") from exc
    if baud <= 0:
        raise ConfigError(f"{BAUD_KEY} must be positive, got {baud}")
    return baud


def parse_settings(text: str, source: str = "<string>") -> BridgeSettings:
    """Parse settings from INI text."""
    parser = configparser.ConfigParser(inline_comment_prefixes=(";", "#"), interpolation=None)
    # Keys are matched case-sensitively, like the original app.config settings.
    parser.optionxform = str  # type: ignore[assignment]
    try:
        parser.read_string(text, source=source)
    except configparser.Error as exc:
        raise ConfigError(f"Cannot parse {source}: {exc}") from exc
    if SETTINGS_SECTION not in parser:
        raise ConfigError(f"{source} is missing the [{SETTINGS_SECTION}] section")
    section = parser[SETTINGS_SECTION]

    port = section.get(PORT_KEY, "").strip() or DEFAULT_PORT
    baud_value = section.get(BAUD_KEY)
    baudrate = parse_baud(baud_value) if baud_value is not None else DEFAULT_BAUD

    mappings = []
    for key, value in section.items():
        if not key.startswith(MAPPING_PREFIX):
            continue
        try:
            mappings.append(parse_mapping(value))
        except KeyMapError as exc:
            raise ConfigError(f"{key}: {exc}") from exc
    return BridgeSettings(port=port, baudrate=baudrate, mappings=tuple(mappings))


def load_settings(path: Union[str, Path]) -> BridgeSettings:
    """Read and parse a settings file."""
    path = Path(path).expanduser()
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise ConfigError(f"Cannot read config file {path}: {exc}") from exc
    return parse_settings(text, source=str(path))
