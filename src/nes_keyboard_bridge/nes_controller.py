"""
NES controller button state and edge detection.

The Arduino sketch shifts the controller's 4021 register out as one byte per sample,
so each reading is an 8-bit mask with a 0 bit for every held button. ``invert_reading``
flips that into the "1 = pressed" form used everywhere else in this package.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, IntFlag
from typing import Callable, List, Union

READING_MASK = 0xFF


class NESButton(IntFlag):
    # Bit positions follow the shift-register order of the controller
    NONE = 0
    Right = 1 << 0
    Left = 1 << 1
    Down = 1 << 2
    Up = 1 << 3
    Start = 1 << 4
    Select = 1 << 5
    B = 1 << 6
    A = 1 << 7


# Transitions for a single update are always reported in this order.
BUTTON_ORDER = (
    NESButton.A,
    NESButton.B,
    NESButton.Up,
    NESButton.Down,
    NESButton.Left,
    NESButton.Right,
    NESButton.Select,
    NESButton.Start,
)


class ButtonDirection(Enum):
    PRESSED = "pressed"
    RELEASED = "released"


@dataclass(frozen=True)
class ButtonTransition:
    button: NESButton
    direction: ButtonDirection

    @property
    def pressed(self) -> bool:
        return self.direction is ButtonDirection.PRESSED


TransitionListener = Callable[[ButtonTransition], None]


def is_pressed(buttons: Union[NESButton, int], mask: Union[NESButton, int]) -> bool:
    """Return True if every button in ``mask`` is set in ``buttons``."""
    return (int(buttons) & int(mask)) == int(mask)


def invert_reading(raw: int) -> NESButton:
    """Flip a raw reading (0 = pressed) into a pressed-button mask (1 = pressed)."""
    return NESButton(~int(raw) & READING_MASK)


class NESController:
    """
    Current pressed-button state of one controller.

    ``update`` is the only writer of the state. It is not reentrant: callers must feed
    masks one at a time, in the order the readings arrived.
    """

    def __init__(self, pressed: Union[NESButton, int] = NESButton.NONE) -> None:
        self._state = NESButton(int(pressed) & READING_MASK)
        self._listeners: List[TransitionListener] = []

    @property
    def state(self) -> NESButton:
        return self._state

    def is_pressed(self, mask: Union[NESButton, int]) -> bool:
        return is_pressed(self._state, mask)

    def add_listener(self, listener: TransitionListener) -> None:
        """Register a callable notified once per transition, in registration order."""
        self._listeners.append(listener)

    def update(self, buttons: Union[NESButton, int]) -> List[ButtonTransition]:
        """
        Apply a new pressed-button mask and report every button that changed.

        Returns the transitions in ``BUTTON_ORDER``. Listeners are notified after the new
        state has been stored, so a listener reading ``state`` sees the updated mask.
        """
        after = NESButton(int(buttons) & READING_MASK)
        before = self._state
        if after == before:
            return []

        transitions: List[ButtonTransition] = []
        for button in BUTTON_ORDER:
            was_pressed = is_pressed(before, button)
            if was_pressed == is_pressed(after, button):
                continue
            direction = ButtonDirection.RELEASED if was_pressed else ButtonDirection.PRESSED
            transitions.append(ButtonTransition(button, direction))

        self._state = after
        for transition in transitions:
            for listener in list(self._listeners):
                listener(transition)
        return transitions
