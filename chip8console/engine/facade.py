"""Machine Engine interface and borrowed views over its backing memory."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol

import numpy as np


class StaleViewError(RuntimeError):
    """A buffer view was read after its arena was reallocated."""


class MachineFault(RuntimeError):
    """The running program left the engine in an unrecoverable state."""


class MemoryArena:
    """Growable byte arena owned by a Machine Engine.

    Growing the arena replaces the underlying ``bytearray``; every
    :class:`BufferView` acquired before that point becomes stale.
    """

    def __init__(self, size: int) -> None:
        self._buffer = bytearray(size)
        self._generation = 0

    @property
    def buffer(self) -> bytearray:
        return self._buffer

    @property
    def generation(self) -> int:
        return self._generation

    def __len__(self) -> int:
        return len(self._buffer)

    def grow(self, extra: int) -> int:
        """Append ``extra`` zeroed bytes and return the offset of the new region."""

        offset = len(self._buffer)
        grown = bytearray(offset + extra)
        grown[:offset] = self._buffer
        self._buffer = grown
        self._generation += 1
        return offset

    def view(self, offset: int, length: int, dtype: str = "u1") -> "BufferView":
        itemsize = np.dtype(dtype).itemsize
        if offset < 0 or offset + length * itemsize > len(self._buffer):
            raise ValueError(
                f"view 0x{offset:X}+{length}x{itemsize} outside arena of {len(self._buffer)} bytes"
            )
        return BufferView(self, offset, length, dtype, self._generation)


@dataclass(frozen=True)
class BufferView:
    """Offset/length record into a :class:`MemoryArena`.

    The record never holds a pointer into the arena; :meth:`array`
    builds a fresh numpy view on every call after checking that the arena
    has not been reallocated since acquisition.
    """

    arena: MemoryArena
    offset: int
    length: int
    dtype: str
    generation: int

    @property
    def is_stale(self) -> bool:
        return self.generation != self.arena.generation

    def array(self) -> np.ndarray:
        if self.is_stale:
            raise StaleViewError(
                f"view at 0x{self.offset:X} acquired in generation {self.generation}, "
                f"arena is now at generation {self.arena.generation}"
            )
        arr = np.frombuffer(
            self.arena.buffer, dtype=self.dtype, count=self.length, offset=self.offset
        )
        arr.flags.writeable = False
        return arr

    def tobytes(self) -> bytes:
        return self.array().tobytes()


class MachineFacade(Protocol):
    """Surface the console drives; instruction semantics live behind it."""

    def reset(self) -> None: ...

    def init_character_sprites(self) -> None: ...

    def load_program(self, data: bytes) -> None: ...

    def tick(self) -> None: ...

    def advance_timers(self, timestamp: int) -> None: ...

    def set_key_down(self, code: int) -> None: ...

    def set_key_up(self, code: int) -> None: ...

    def get_display_view(self) -> BufferView: ...

    def get_memory_view(self) -> BufferView: ...

    def get_stack_view(self) -> BufferView: ...

    def get_gpr_view(self) -> BufferView: ...

    def get_index_register(self) -> int: ...

    def get_program_counter(self) -> int: ...

    def get_stack_pointer(self) -> int: ...

    def get_delay_timer(self) -> int: ...

    def get_sound_timer(self) -> int: ...

    def get_program_capacity(self) -> int: ...


__all__ = [
    "BufferView",
    "MachineFacade",
    "MachineFault",
    "MemoryArena",
    "StaleViewError",
]
