import queue

import pytest
from serial import SerialException

from nes_keyboard_bridge.arduino_uart import (
    ArduinoConnectionError,
    ArduinoSerialReader,
    is_usb_serial,
    parse_reading,
)


@pytest.mark.parametrize(
    "line, expected",
    [
        (b"219\r\n", 219),
        (b"0\n", 0),
        (b"  -5 \n", -5),
        (b"+12\n", 12),
        (b"hello\n", None),
        (b"\n", None),
        (b"", None),
        (b"12.5\n", None),
        (b"1_0\n", None),
        (b"4294967296\n", None),
        (b"\xff\xfe\n", None),
    ],
)
def test_parse_reading(line, expected):
    assert parse_reading(line) == expected


def test_is_usb_serial():
    assert is_usb_serial("/dev/ttyACM0")
    assert is_usb_serial("/dev/ttyUSB1")
    assert not is_usb_serial("/dev/ttyS0")


def test_start_opens_port_without_read_timeout(fake_serial, console):
    reader = ArduinoSerialReader("/dev/ttyACM0", 57600, console=console, serial_factory=fake_serial)
    reader.start()
    try:
        assert fake_serial.kwargs["port"] == "/dev/ttyACM0"
        assert fake_serial.kwargs["baudrate"] == 57600
        assert fake_serial.kwargs["timeout"] is None
        assert reader.running
    finally:
        reader.stop()
    assert not reader.running


def test_integer_lines_become_readings_and_junk_is_dropped(fake_serial, console, log_buffer):
    fake_serial.feed(b"Arduino NES reader ready\r\n")
    fake_serial.feed(b"255\r\n")
    fake_serial.feed(b"garbage\r\n")
    fake_serial.feed(b"127\r\n")
    with ArduinoSerialReader("COM3", 57600, console=console, serial_factory=fake_serial) as reader:
        assert reader.readings.get(timeout=2) == 255
        assert reader.readings.get(timeout=2) == 127
    assert reader.readings.empty()
    assert log_buffer.getvalue() == ""


def test_open_failure_raises_connection_error(console):
    def failing_factory(**kwargs):
        raise SerialException("could not open port COM9")

    reader = ArduinoSerialReader("COM9", 57600, console=console, serial_factory=failing_factory)
    with pytest.raises(ArduinoConnectionError) as info:
        reader.start()
    assert isinstance(info.value, ConnectionError)
    assert "COM9" in str(info.value)
    reader.stop()
    assert not reader.running


def test_stop_without_start_is_safe(make_serial, console):
    reader = ArduinoSerialReader("COM1", 57600, console=console, serial_factory=make_serial())
    reader.stop()
    reader.stop()


def test_stop_while_blocked_joins_thread_and_closes_port(fake_serial, console):
    reader = ArduinoSerialReader("COM1", 57600, console=console, serial_factory=fake_serial)
    reader.start()
    thread = reader._thread
    assert fake_serial.blocked.wait(2)
    reader.stop()
    assert not thread.is_alive()
    assert not fake_serial.is_open


def test_stop_swallows_interrupted_read_error(make_serial, console, log_buffer):
    fake = make_serial(cancel_item=SerialException("read interrupted"))
    reader = ArduinoSerialReader("COM1", 57600, console=console, serial_factory=fake)
    reader.start()
    assert fake.blocked.wait(2)
    reader.stop()
    assert log_buffer.getvalue() == ""


def test_no_reading_is_queued_once_stop_begins(make_serial, console):
    fake = make_serial(cancel_item=b"42\r\n")
    reader = ArduinoSerialReader("COM1", 57600, console=console, serial_factory=fake)
    reader.start()
    assert fake.blocked.wait(2)
    reader.stop()
    with pytest.raises(queue.Empty):
        reader.readings.get_nowait()


def test_unexpected_error_is_logged_and_loop_continues(fake_serial, console, log_buffer):
    fake_serial.feed(ValueError("bad frame"))
    fake_serial.feed(b"7\n")
    with ArduinoSerialReader("COM1", 57600, console=console, serial_factory=fake_serial) as reader:
        assert reader.readings.get(timeout=2) == 7
    output = log_buffer.getvalue()
    assert "Unexpected error reading COM1" in output
    assert "bad frame" in output


def test_io_error_while_running_is_logged(fake_serial, console, log_buffer):
    fake_serial.feed(SerialException("device reports readiness to read but returned no data"))
    fake_serial.feed(b"3\n")
    with ArduinoSerialReader("COM1", 57600, console=console, serial_factory=fake_serial) as reader:
        assert reader.readings.get(timeout=2) == 3
    assert "Serial read error on COM1" in log_buffer.getvalue()


def test_repeated_identical_errors_are_logged_once(fake_serial, console, log_buffer):
    for _ in range(3):
        fake_serial.feed(SerialException("device disconnected"))
    fake_serial.feed(b"3\n")
    fake_serial.feed(SerialException("device disconnected"))
    fake_serial.feed(b"4\n")
    with ArduinoSerialReader("COM1", 57600, console=console, serial_factory=fake_serial) as reader:
        assert reader.readings.get(timeout=2) == 3
        assert reader.readings.get(timeout=2) == 4
    assert log_buffer.getvalue().count("Serial read error on COM1") == 2


def test_a_different_error_is_logged_again(fake_serial, console, log_buffer):
    fake_serial.feed(SerialException("device disconnected"))
    fake_serial.feed(SerialException("device disconnected"))
    fake_serial.feed(OSError("I/O error"))
    fake_serial.feed(b"5\n")
    with ArduinoSerialReader("COM1", 57600, console=console, serial_factory=fake_serial) as reader:
        assert reader.readings.get(timeout=2) == 5
    output = log_buffer.getvalue()
    assert output.count("device disconnected") == 1
    assert output.count("I/O error") == 1
