"""Translate physical key symbols into CHIP-8 keypad lines."""

from __future__ import annotations

from types import MappingProxyType
from typing import TYPE_CHECKING, Mapping, Optional

if TYPE_CHECKING:
    from .engine.facade import MachineFacade

KEY_BINDINGS: Mapping[str, int] = MappingProxyType(
    {symbol: int(symbol, 16) for symbol in "0123456789ABCDEF"}
)


def keypad_line(symbol: str) -> Optional[int]:
    """Return the keypad line bound to ``symbol`` or ``None`` if unbound."""

    if not isinstance(symbol, str):
        return None
    return KEY_BINDINGS.get(symbol.upper())


class KeyMapper:
    """Forward hex-keypad key events to the Machine Engine.

    Repeated key-down events while a key is held are forwarded as they
    arrive; collapsing repeats is left to the engine.
    """

    def __init__(self, machine: "MachineFacade") -> None:
        self._machine = machine

    def key_down(self, symbol: str) -> bool:
        line = keypad_line(symbol)
        if line is None:
            return False
        self._machine.set_key_down(line)
        return True

    def key_up(self, symbol: str) -> bool:
        line = keypad_line(symbol)
        if line is None:
            return False
        self._machine.set_key_up(line)
        return True

    def handle(self, symbol: str, action: str) -> bool:
        """Dispatch a ``"down"``/``"up"`` event; other actions are ignored."""

        if action == "down":
            return self.key_down(symbol)
        if action == "up":
            return self.key_up(symbol)
        return False


__all__ = ["KEY_BINDINGS", "KeyMapper", "keypad_line"]
