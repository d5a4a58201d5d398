#!/usr/bin/env python3
"""
Bridge an Arduino-attached NES controller to keyboard input.

Data flow:
  Arduino --(ASCII line)--> ArduinoSerialReader --(queue)--> invert_reading
          --> NESController.update --> KeyDispatcher --> key emulator

The reader thread only enqueues readings; inversion, state updates and key emulation
all happen on the thread that calls ``NESKeyboardBridge.run``.
"""

from __future__ import annotations

import argparse
import os
import queue
import sys
from typing import List, Optional

from rich.console import Console
from rich.markup import escape
from rich.table import Table

from .arduino_uart import ArduinoConnectionError, ArduinoSerialReader, discover_serial_ports
from .config import BridgeSettings, ConfigError, load_settings
from .dispatcher import KeyDispatcher, KeyEmulator
from .key_emulator import ConsoleKeyEmulator, PynputKeyEmulator
from .nes_controller import ButtonTransition, NESController, invert_reading

DEFAULT_CONFIG = "nes_keyboard_bridge.ini"
POLL_INTERVAL = 0.05  # seconds between quit-key checks while waiting for readings


def parse_quit_key(value: str) -> str:
    """Validate a single-character quit key (empty string disables)."""
    if value is None:
        return ""
    value = value.strip()
    if not value:
        return ""
    if len(value) != 1:
        raise argparse.ArgumentTypeError("The quit key must be a single character (or empty to disable).")
    return value


class QuitKeyMonitor:
    """Watch the terminal for the quit key without blocking the reading loop."""

    def __init__(self, console: Console, key: str) -> None:
        self.console = console
        self.key = key.lower()
        self._fd: Optional[int] = None
        self._saved_termios = None
        self._msvcrt = None
        self.active = False

    def start(self) -> bool:
        """Put the terminal in cbreak mode; return False if there is no terminal to watch."""
        if not self.key or self.active:
            return False
        if os.name == "nt":
            import msvcrt

            self._msvcrt = msvcrt
            self.active = True
            return True
        if not sys.stdin.isatty():
            self.console.print("[yellow]Quit key disabled: stdin is not a TTY.[/yellow]")
            return False
        import termios
        import tty

        self._fd = sys.stdin.fileno()
        self._saved_termios = termios.tcgetattr(self._fd)
        tty.setcbreak(self._fd)
        self.active = True
        return True

    def stop(self) -> None:
        if self._fd is not None and self._saved_termios is not None:
            import termios

            termios.tcsetattr(self._fd, termios.TCSADRAIN, self._saved_termios)
            self._saved_termios = None
        self.active = False

    def pressed(self) -> bool:
        """Consume pending keystrokes and report whether the quit key was among them."""
        if not self.active:
            return False
        hit = False
        ch = self._read_char()
        while ch:
            if ch == "\x03":
                raise KeyboardInterrupt
            hit = hit or ch.lower() == self.key
            ch = self._read_char()
        return hit

    def _read_char(self) -> Optional[str]:
        if self._msvcrt is not None:
            return self._msvcrt.getwch() if self._msvcrt.kbhit() else None
        import select

        ready, _, _ = select.select([sys.stdin], [], [], 0)
        return sys.stdin.read(1) if ready else None


class NESKeyboardBridge:
    """Consume reader output and drive the controller and dispatcher."""

    def __init__(
        self,
        reader: ArduinoSerialReader,
        controller: NESController,
        dispatcher: KeyDispatcher,
        console: Optional[Console] = None,
        verbose: bool = False,
    ) -> None:
        self.reader = reader
        self.controller = controller
        self.dispatcher = dispatcher
        self.console = console or Console()
        self.verbose = verbose
        controller.add_listener(dispatcher.on_transition)
        if verbose:
            controller.add_listener(self._print_transition)

    def _print_transition(self, transition: ButtonTransition) -> None:
        self.console.print(f"[cyan]{transition.button.name} {transition.direction.value}[/cyan]")

    def apply_reading(self, raw: int) -> List[ButtonTransition]:
        """Invert a raw reading and feed it to the controller."""
        return self.controller.update(invert_reading(raw))

    def drain(self, timeout: Optional[float] = None) -> int:
        """
        Apply queued readings on the calling thread.

        Waits up to ``timeout`` seconds for the first reading, then applies everything
        already queued. Returns the number of readings applied.
        """
        applied = 0
        try:
            raw = self.reader.readings.get(timeout=timeout)
        except queue.Empty:
            return 0
        while True:
            self.apply_reading(raw)
            applied += 1
            try:
                raw = self.reader.readings.get_nowait()
            except queue.Empty:
                return applied

    def run(self, quit_key: Optional[QuitKeyMonitor] = None) -> None:
        """Apply readings until the quit key is pressed or Ctrl+C, then stop the reader."""
        try:
            while True:
                self.drain(timeout=POLL_INTERVAL)
                if quit_key and quit_key.pressed():
                    break
        except KeyboardInterrupt:
            self.console.print("\n[yellow]Interrupted.[/yellow]")
        finally:
            self.reader.stop()


def build_arg_parser() -> argparse.ArgumentParser:
    """Construct the CLI argument parser for the bridge."""
    parser = argparse.ArgumentParser(description="Map an Arduino-attached NES controller to keyboard keys")
    parser.add_argument(
        "-c",
        "--config",
        default=DEFAULT_CONFIG,
        help=f"INI settings file with [appSettings] (default {DEFAULT_CONFIG})",
    )
    parser.add_argument("-p", "--port", help="Serial port override (e.g. COM3 or /dev/ttyACM0)")
    parser.add_argument("-b", "--baud", type=int, help="Baud rate override (must match the Arduino sketch)")
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Print key events instead of sending them to the OS.",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Print every button transition.")
    parser.add_argument(
        "--quit-key",
        type=parse_quit_key,
        default="q",
        metavar="KEY",
        help="Press this key in the terminal to quit (default: 'q'; empty string disables).",
    )
    parser.add_argument("--list-ports", action="store_true", help="List detected serial ports and exit.")
    parser.add_argument("--all-ports", action="store_true", help="Include non-USB serial ports when listing.")
    return parser


def list_ports(console: Console, include_non_usb: bool) -> None:
    ports = discover_serial_ports(include_non_usb=include_non_usb)
    if not ports:
        console.print("[yellow]No serial ports detected.[/yellow]")
        return
    table = Table(title="Serial Ports")
    table.add_column("Port")
    table.add_column("Description")
    for info in ports:
        table.add_row(info["device"], info["description"])
    console.print(table)


def print_mappings(console: Console, settings: BridgeSettings) -> None:
    table = Table(title=f"Button-To-Keyboard Map ({settings.port} @ {settings.baudrate})")
    table.add_column("NES Button")
    table.add_column("Scan Code")
    table.add_column("Virtual Key")
    for mapping in settings.mappings:
        table.add_row(mapping.button.name, mapping.scan_code.name, mapping.virtual_key.name)
    console.print(table)


def build_emulator(args: argparse.Namespace, console: Console) -> KeyEmulator:
    if args.dry_run:
        return ConsoleKeyEmulator(console)
    return PynputKeyEmulator()


def main(argv: Optional[List[str]] = None) -> int:
    """Entry point: load settings, open the Arduino, and run the bridge loop."""
    parser = build_arg_parser()
    args = parser.parse_args(argv)
    console = Console()

    if args.list_ports:
        list_ports(console, args.all_ports)
        return 0

    try:
        settings = load_settings(args.config).with_overrides(args.port, args.baud)
    except ConfigError as exc:
        console.print(f"[red]Configuration error: {escape(str(exc))}[/red]")
        return 1
    console.print("[green]Configuration loaded...[/green]")
    print_mappings(console, settings)

    emulator = build_emulator(args, console)
    reader = ArduinoSerialReader(settings.port, settings.baudrate, console=console)
    controller = NESController()
    dispatcher = KeyDispatcher(settings.mappings, emulator, console=console)
    bridge = NESKeyboardBridge(reader, controller, dispatcher, console=console, verbose=args.verbose)

    try:
        reader.start()
    except ArduinoConnectionError as exc:
        console.print(f"[red]{escape(str(exc))}[/red]")
        return 1
    console.print(f"[green]Arduino connection open on {settings.port}...[/green]")

    quit_key: Optional[QuitKeyMonitor] = None
    if args.quit_key:
        candidate = QuitKeyMonitor(console, args.quit_key)
        if candidate.start():
            quit_key = candidate
            console.print(f"[magenta]Press '{args.quit_key.upper()}' to quit[/magenta]")
    if quit_key is None:
        console.print("[magenta]Press Ctrl+C to quit[/magenta]")

    try:
        bridge.run(quit_key)
    finally:
        if quit_key:
            quit_key.stop()
    return 0


if __name__ == "__main__":
    sys.exit(main())
