import io
import queue
import threading

import pytest
from rich.console import Console


class FakeSerial:
    """In-memory stand-in for serial.Serial with a blocking readline."""

    def __init__(self, lines=(), cancel_item=b""):
        self.kwargs = {}
        self.is_open = True
        self.cancel_item = cancel_item
        self.blocked = threading.Event()
        self._lines = queue.Queue()
        for line in lines:
            self._lines.put(line)

    def __call__(self, **kwargs):
        self.kwargs = kwargs
        return self

    def feed(self, item):
        self._lines.put(item)

    def readline(self):
        if self._lines.empty():
            self.blocked.set()
        item = self._lines.get()
        if isinstance(item, BaseException):
            raise item
        return item

    def cancel_read(self):
        self._lines.put(self.cancel_item)

    def close(self):
        self.is_open = False


class RecordingEmulator:
    def __init__(self, fail_on=()):
        self.calls = []
        self.fail_on = set(fail_on)

    def emulate_key_down(self, scan_code, virtual_key):
        self.calls.append(("down", scan_code, virtual_key))
        if virtual_key in self.fail_on:
            raise RuntimeError(f"cannot press {virtual_key.name}")

    def emulate_key_up(self, scan_code, virtual_key):
        self.calls.append(("up", scan_code, virtual_key))
        if virtual_key in self.fail_on:
            raise RuntimeError(f"cannot release {virtual_key.name}")


@pytest.fixture
def log_buffer():
    return io.StringIO()


@pytest.fixture
def console(log_buffer):
    return Console(file=log_buffer, width=200, color_system=None)


@pytest.fixture
def fake_serial():
    return FakeSerial()


@pytest.fixture
def emulator():
    return RecordingEmulator()


@pytest.fixture
def make_serial():
    """Build a FakeSerial with preloaded lines or a custom cancel item."""
    return FakeSerial


@pytest.fixture
def make_emulator():
    """Build a RecordingEmulator that fails for the given virtual keys."""
    return RecordingEmulator
