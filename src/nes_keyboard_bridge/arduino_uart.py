"""
Background reader for the Arduino side of the NES bridge.

The sketch prints one line per controller sample:

  Arduino -> Host : ASCII base-10 integer, newline terminated (e.g. ``"219\\r\\n"``)

Lines that are not integers (boot banners, partial lines after a reset) are dropped.
Readings are handed to the consumer through a queue so the controller state is only
ever touched from one thread.
"""

from __future__ import annotations

import queue
import re
import threading
from typing import Any, Callable, Dict, List, Optional

import serial
from rich.console import Console
from rich.markup import escape
from serial import SerialException
from serial.tools import list_ports

DEFAULT_PORT = "COM1"
DEFAULT_BAUD = 57600

INT32_MIN = -(2 ** 31)
INT32_MAX = 2 ** 31 - 1

_READING_RE = re.compile(r"[+-]?[0-9]+")


class ArduinoConnectionError(ConnectionError):
    """Raised when the serial endpoint cannot be opened."""


def parse_reading(line: bytes) -> Optional[int]:
    """Parse one serial line into a reading, or return None if it is not an integer."""
    text = line.decode("ascii", errors="replace").strip()
    if not _READING_RE.fullmatch(text):
        return None
    value = int(text, 10)
    if value < INT32_MIN or value > INT32_MAX:
        return None
    return value


def is_usb_serial(path: str) -> bool:
    """Best-effort check for USB serial adapters when VID/PID are missing."""
    lower = path.lower()
    usb_prefixes = (
        "/dev/ttyusb",   # Linux USB serial (CH340/FTDI clones)
        "/dev/ttyacm",   # Linux CDC ACM (Uno, Leonardo)
        "/dev/cu.usb",
        "/dev/tty.usb",
    )
    return lower.startswith(usb_prefixes)


def discover_serial_ports(include_non_usb: bool = False) -> List[Dict[str, str]]:
    """List serial ports that could have an Arduino attached."""
    results: List[Dict[str, str]] = []
    for port in list_ports.comports():
        path = port.device or ""
        if not path:
            continue
        usb = getattr(port, "vid", None) is not None or is_usb_serial(path)
        if not include_non_usb and not usb:
            continue
        results.append({"device": path, "description": port.description or "Unknown"})
    return results


def first_serial_port(include_non_usb: bool = False) -> Optional[str]:
    """Return the first detected serial port path, or None."""
    ports = discover_serial_ports(include_non_usb=include_non_usb)
    return ports[0]["device"] if ports else None


class ArduinoSerialReader:
    """
    Read integer samples from the Arduino on a background thread.

    Example:
        with ArduinoSerialReader("/dev/ttyACM0", 57600) as reader:
            raw = reader.readings.get()
    """

    def __init__(
        self,
        port: str = DEFAULT_PORT,
        baudrate: int = DEFAULT_BAUD,
        console: Optional[Console] = None,
        serial_factory: Callable[..., Any] = serial.Serial,
    ) -> None:
        self.port = port
        self.baudrate = baudrate
        self.console = console or Console(stderr=True)
        self.readings: "queue.Queue[int]" = queue.Queue()
        self._serial_factory = serial_factory
        self._serial: Optional[Any] = None
        self._thread: Optional[threading.Thread] = None
        self._running = threading.Event()

    @property
    def running(self) -> bool:
        return self._running.is_set()

    def start(self) -> None:
        """Open the port and start the reader thread."""
        if self._thread is not None:
            return
        try:
            # No read timeout: the controller only reports when polled by the sketch.
            self._serial = self._serial_factory(
                port=self.port,
                baudrate=self.baudrate,
                bytesize=serial.EIGHTBITS,
                stopbits=serial.STOPBITS_ONE,
                parity=serial.PARITY_NONE,
                timeout=None,
            )
        except (SerialException, OSError, ValueError) as exc:
            self._serial = None
            raise ArduinoConnectionError(f"Cannot open {self.port} @ {self.baudrate}: {exc}") from exc

        self._running.set()
        thread = threading.Thread(target=self._read_loop, name=f"arduino-{self.port}", daemon=True)
        try:
            thread.start()
        except BaseException:
            self._running.clear()
            self._close_serial()
            raise
        self._thread = thread

    def stop(self) -> None:
        """Stop the reader thread, wait for it to exit, then close the port."""
        self._running.clear()
        ser = self._serial
        thread = self._thread
        if ser is not None and thread is not None and thread.is_alive():
            try:
                ser.cancel_read()
            except (SerialException, OSError, AttributeError):
                # Closing below still unblocks the read on platforms without cancel_read.
                self._close_serial()
        if thread is not None:
            thread.join()
            self._thread = None
        self._close_serial()

    def _close_serial(self) -> None:
        ser = self._serial
        self._serial = None
        if ser is None:
            return
        try:
            ser.close()
        except (SerialException, OSError):
            pass

    def _log_error(self, message: str, last_error: Optional[str]) -> str:
        # A run of identical faults is logged once.
        if message != last_error:
            self.console.log(f"[red]{escape(message)}[/red]")
        return message

    def _read_loop(self) -> None:
        last_error: Optional[str] = None
        while self._running.is_set():
            ser = self._serial
            if ser is None:
                break
            try:
                line = ser.readline()
                if not self._running.is_set():
                    break
                last_error = None
                value = parse_reading(line)
                if value is not None:
                    self.readings.put(value)
            except (SerialException, OSError) as exc:
                if not self._running.is_set():
                    # Interrupted by stop(); not a link fault.
                    break
                last_error = self._log_error(f"Serial read error on {self.port}: {exc}", last_error)
            except Exception as exc:
                last_error = self._log_error(f"Unexpected error reading {self.port}: {exc!r}", last_error)

    def __enter__(self) -> "ArduinoSerialReader":
        self.start()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.stop()
