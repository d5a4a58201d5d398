"""Route controller button transitions to key-emulation calls."""

from __future__ import annotations

from typing import Iterable, List, Optional, Protocol, Tuple

from rich.console import Console
from rich.markup import escape

from .keymap import KeyMapping, ScanCode, VirtualKey
from .nes_controller import ButtonTransition, NESButton


class KeyEmulator(Protocol):
    def emulate_key_down(self, scan_code: ScanCode, virtual_key: VirtualKey) -> None:
        ...

    def emulate_key_up(self, scan_code: ScanCode, virtual_key: VirtualKey) -> None:
        ...


class KeyDispatcher:
    """
    Send key presses for every mapping bound to a transitioned button.

    Entries run in table order. A failing emulator call is logged and the remaining
    entries for the same transition still run.
    """

    def __init__(
        self,
        mappings: Iterable[KeyMapping],
        emulator: KeyEmulator,
        console: Optional[Console] = None,
    ) -> None:
        self.mappings: Tuple[KeyMapping, ...] = tuple(mappings)
        self.emulator = emulator
        self.console = console or Console(stderr=True)

    def mappings_for(self, button: NESButton) -> List[KeyMapping]:
        return [mapping for mapping in self.mappings if mapping.button == button]

    def on_transition(self, transition: ButtonTransition) -> None:
        """Emulate key down/up for each mapping of ``transition.button``."""
        if transition.pressed:
            emulate = self.emulator.emulate_key_down
        else:
            emulate = self.emulator.emulate_key_up
        for mapping in self.mappings_for(transition.button):
            try:
                emulate(mapping.scan_code, mapping.virtual_key)
            except Exception as exc:
                self.console.log(
                    f"[red]Key emulation failed for {mapping} ({transition.direction.value}): {escape(repr(exc))}[/red]"
                )

    __call__ = on_transition
