"""Tests for physical key to keypad translation."""

from __future__ import annotations

from unittest.mock import Mock, call

import pytest

from chip8console.keymap import KEY_BINDINGS, KeyMapper, keypad_line


def test_binding_table_covers_hex_keypad() -> None:
    assert len(KEY_BINDINGS) == 16
    assert sorted(KEY_BINDINGS.values()) == list(range(16))
    with pytest.raises(TypeError):
        KEY_BINDINGS["G"] = 16  # type: ignore[index]


@pytest.mark.parametrize("symbol,line", [("0", 0), ("9", 9), ("a", 0xA), ("F", 0xF)])
def test_keypad_line_is_case_insensitive(symbol: str, line: int) -> None:
    assert keypad_line(symbol) == line


def test_press_and_release_forwards_exactly_one_event_each() -> None:
    machine = Mock()
    mapper = KeyMapper(machine)

    assert mapper.key_down("A")
    assert mapper.key_up("A")

    assert machine.mock_calls == [call.set_key_down(0xA), call.set_key_up(0xA)]


@pytest.mark.parametrize("symbol", ["G", "g", "Shift", "Enter", " ", "", "10"])
def test_keys_outside_keypad_never_reach_machine(symbol: str) -> None:
    machine = Mock()
    mapper = KeyMapper(machine)

    assert not mapper.key_down(symbol)
    assert not mapper.key_up(symbol)
    assert machine.mock_calls == []


def test_held_key_repeats_are_forwarded() -> None:
    machine = Mock()
    mapper = KeyMapper(machine)
    for _ in range(3):
        mapper.handle("7", "down")
    assert machine.set_key_down.call_count == 3


def test_unknown_action_is_ignored() -> None:
    machine = Mock()
    assert not KeyMapper(machine).handle("1", "press")
    assert machine.mock_calls == []
