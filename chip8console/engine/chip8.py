"""Reference CHIP-8 Machine Engine backed by a growable arena."""

from __future__ import annotations

import logging
import random
from typing import Optional, Sequence, Tuple

from .facade import BufferView, MachineFault, MemoryArena

logger = logging.getLogger(__name__)

MEMORY_SIZE = 4096
NUM_REGISTERS = 16
STACK_DEPTH = 16
DISPLAY_WIDTH = 64
DISPLAY_HEIGHT = 32
DISPLAY_BYTES = DISPLAY_WIDTH * DISPLAY_HEIGHT * 3
PROGRAM_START = 0x200
TIMER_PERIOD_MS = 17

# Arena layout
MEMORY_OFFSET = 0
GPR_OFFSET = MEMORY_OFFSET + MEMORY_SIZE
STACK_OFFSET = GPR_OFFSET + NUM_REGISTERS
DISPLAY_OFFSET = STACK_OFFSET + STACK_DEPTH * 2
ARENA_SIZE = DISPLAY_OFFSET + DISPLAY_BYTES

PIXEL_ON: Tuple[int, int, int] = (102, 255, 102)
PIXEL_OFF: Tuple[int, int, int] = (0, 0, 0)
POWER_ON_GREY = 100

HEX_SPRITES = bytes(
    [
        0xF0, 0x90, 0x90, 0x90, 0xF0,  # 0
        0x20, 0x60, 0x20, 0x20, 0x70,  # 1
        0xF0, 0x10, 0xF0, 0x80, 0xF0,  # 2
        0xF0, 0x10, 0xF0, 0x10, 0xF0,  # 3
        0x90, 0x90, 0xF0, 0x10, 0x10,  # 4
        0xF0, 0x80, 0xF0, 0x10, 0xF0,  # 5
        0xF0, 0x80, 0xF0, 0x90, 0xF0,  # 6
        0xF0, 0x10, 0x20, 0x40, 0x40,  # 7
        0xF0, 0x90, 0xF0, 0x90, 0xF0,  # 8
        0xF0, 0x90, 0xF0, 0x10, 0xF0,  # 9
        0xF0, 0x90, 0xF0, 0x90, 0x90,  # A
        0xE0, 0x90, 0xE0, 0x90, 0xE0,  # B
        0xF0, 0x80, 0x80, 0x80, 0xF0,  # C
        0xE0, 0x90, 0x90, 0x90, 0xE0,  # D
        0xF0, 0x80, 0xF0, 0x80, 0xF0,  # E
        0xF0, 0x80, 0xF0, 0x80, 0x80,  # F
    ]
)


class Chip8Engine:
    """CHIP-8 interpreter exposing its state through :class:`BufferView` records."""

    def __init__(
        self,
        *,
        pixel_on: Sequence[int] = PIXEL_ON,
        pixel_off: Sequence[int] = PIXEL_OFF,
        rng: Optional[random.Random] = None,
    ) -> None:
        self._arena = MemoryArena(ARENA_SIZE)
        self._scratch_offset = ARENA_SIZE
        self._scratch_size = 0
        self._pixel_on = bytes(pixel_on)
        self._pixel_off = bytes(pixel_off)
        self._rng = rng or random.Random()

        self.i = 0
        self.pc = PROGRAM_START
        self.sp = 0
        self.dt = 0
        self.st = 0
        self.keyboard = 0
        self.last_tick_time = 0

        buf = self._arena.buffer
        buf[DISPLAY_OFFSET:ARENA_SIZE] = bytes([POWER_ON_GREY]) * DISPLAY_BYTES

    # ------------------------------------------------------------------ #
    # Lifecycle
    # ------------------------------------------------------------------ #

    @property
    def arena(self) -> MemoryArena:
        return self._arena

    def reset(self) -> None:
        buf = self._arena.buffer
        buf[0:ARENA_SIZE] = bytes(ARENA_SIZE)
        self.i = 0
        self.pc = PROGRAM_START
        self.sp = 0
        self.dt = 0
        self.st = 0
        self.keyboard = 0

    def init_character_sprites(self) -> None:
        self._arena.buffer[MEMORY_OFFSET : MEMORY_OFFSET + len(HEX_SPRITES)] = HEX_SPRITES

    def load_program(self, data: bytes) -> None:
        """Copy ``data`` into program memory at the current PC.

        The image is staged in a scratch region at the end of the arena
        first; a program larger than any seen before grows the arena and
        invalidates every outstanding view.
        """

        data = bytes(data)
        start = self.pc
        if start + len(data) > MEMORY_SIZE:
            raise ValueError(
                f"program of {len(data)} bytes does not fit at 0x{start:03X}"
            )
        if len(data) > self._scratch_size:
            extra = len(data) - self._scratch_size
            self._arena.grow(extra)
            self._scratch_size += extra
            logger.debug(
                "Arena grew by %d bytes (generation %d)", extra, self._arena.generation
            )
        buf = self._arena.buffer
        scratch = self._scratch_offset
        buf[scratch : scratch + len(data)] = data
        buf[MEMORY_OFFSET + start : MEMORY_OFFSET + start + len(data)] = buf[
            scratch : scratch + len(data)
        ]

    # ------------------------------------------------------------------ #
    # Views and accessors
    # ------------------------------------------------------------------ #

    def get_display_view(self) -> BufferView:
        return self._arena.view(DISPLAY_OFFSET, DISPLAY_BYTES)

    def get_memory_view(self) -> BufferView:
        return self._arena.view(MEMORY_OFFSET, MEMORY_SIZE)

    def get_stack_view(self) -> BufferView:
        return self._arena.view(STACK_OFFSET, STACK_DEPTH, "<u2")

    def get_gpr_view(self) -> BufferView:
        return self._arena.view(GPR_OFFSET, NUM_REGISTERS)

    def get_program_capacity(self) -> int:
        """Largest image that fits at the load address after a reset."""
        return MEMORY_SIZE - PROGRAM_START

    def get_index_register(self) -> int:
        return self.i

    def get_program_counter(self) -> int:
        return self.pc

    def get_stack_pointer(self) -> int:
        return self.sp

    def get_delay_timer(self) -> int:
        return self.dt

    def get_sound_timer(self) -> int:
        return self.st

    def set_key_down(self, code: int) -> None:
        self.keyboard |= 1 << code

    def set_key_up(self, code: int) -> None:
        self.keyboard &= ~(1 << code) & 0xFFFF

    # Test-support setters
    def set_memory(self, program: bytes) -> None:
        buf = self._arena.buffer
        buf[MEMORY_OFFSET : MEMORY_OFFSET + MEMORY_SIZE] = bytes(MEMORY_SIZE)
        start = MEMORY_OFFSET + PROGRAM_START
        buf[start : start + len(program)] = program

    def set_registers(self, values: Sequence[int]) -> None:
        regs = bytearray(NUM_REGISTERS)
        regs[: len(values)] = bytes(values)
        self._arena.buffer[GPR_OFFSET : GPR_OFFSET + NUM_REGISTERS] = regs

    def set_stack(self, values: Sequence[int]) -> None:
        for idx in range(STACK_DEPTH):
            self._write_stack(idx, values[idx] if idx < len(values) else 0)
        self.sp = len(values)

    def set_index_register(self, value: int) -> None:
        self.i = value & 0xFFFF

    def set_delay_timer(self, value: int) -> None:
        self.dt = value & 0xFF

    def set_keyboard(self, mask: int) -> None:
        self.keyboard = mask & 0xFFFF

    # ------------------------------------------------------------------ #
    # Execution
    # ------------------------------------------------------------------ #

    def advance_timers(self, timestamp: int) -> None:
        """Decrement DT/ST once per elapsed 17 ms since the last stamp."""

        elapsed = timestamp - self.last_tick_time
        if elapsed < 0:
            self.last_tick_time = timestamp
            return
        decrement = elapsed // TIMER_PERIOD_MS
        self.last_tick_time = timestamp - elapsed % TIMER_PERIOD_MS
        self.dt -= min(self.dt, decrement)
        self.st -= min(self.st, decrement)

    def tick(self) -> None:
        hi = self._read(self.pc)
        lo = self._read(self.pc + 1)
        self.pc = (self.pc + 2) & 0xFFFF

        op = hi >> 4
        x = hi & 0x0F
        y = lo >> 4
        n = lo & 0x0F
        nnn = (x << 8) | lo

        if hi == 0x00 and lo == 0xE0:
            self._clear_display()
        elif hi == 0x00 and lo == 0xEE:
            if self.sp == 0:
                raise MachineFault(f"stack underflow at 0x{self.pc - 2:03X}")
            self.sp -= 1
            self.pc = self._read_stack(self.sp)
        elif op == 0x1:
            self.pc = nnn
        elif op == 0x2:
            if self.sp >= STACK_DEPTH:
                raise MachineFault(f"stack overflow at 0x{self.pc - 2:03X}")
            self._write_stack(self.sp, self.pc)
            self.sp += 1
            self.pc = nnn
        elif op == 0x3:
            if self._gpr(x) == lo:
                self.pc += 2
        elif op == 0x4:
            if self._gpr(x) != lo:
                self.pc += 2
        elif op == 0x5 and n == 0x0:
            if self._gpr(x) == self._gpr(y):
                self.pc += 2
        elif op == 0x6:
            self._set_gpr(x, lo)
        elif op == 0x7:
            self._set_gpr(x, self._gpr(x) + lo)
        elif op == 0x8:
            if not self._alu(x, y, n):
                self._unknown(hi, lo)
        elif op == 0x9 and n == 0x0:
            if self._gpr(x) != self._gpr(y):
                self.pc += 2
        elif op == 0xA:
            self.i = nnn
        elif op == 0xB:
            self.pc = (self._gpr(0) + nnn) & 0xFFFF
        elif op == 0xC:
            self._set_gpr(x, self._rng.randrange(256) & lo)
        elif op == 0xD:
            self._draw(self._gpr(x), self._gpr(y), n)
        elif op == 0xE and lo == 0x9E:
            if self.keyboard & (1 << self._gpr(x)):
                self.pc += 2
        elif op == 0xE and lo == 0xA1:
            if not self.keyboard & (1 << self._gpr(x)):
                self.pc += 2
        elif op == 0xF:
            if not self._misc(x, lo):
                self._unknown(hi, lo)
        else:
            self._unknown(hi, lo)

    # ------------------------------------------------------------------ #
    # Instruction helpers
    # ------------------------------------------------------------------ #

    def _alu(self, x: int, y: int, n: int) -> bool:
        vx = self._gpr(x)
        vy = self._gpr(y)
        if n == 0x0:
            self._set_gpr(x, vy)
        elif n == 0x1:
            self._set_gpr(x, vx | vy)
        elif n == 0x2:
            self._set_gpr(x, vx & vy)
        elif n == 0x3:
            self._set_gpr(x, vx ^ vy)
        elif n == 0x4:
            self._set_gpr(x, vx + vy)
            self._set_gpr(0xF, 1 if vx + vy > 0xFF else 0)
        elif n == 0x5:
            self._set_gpr(x, vx - vy)
            self._set_gpr(0xF, 0 if vy > vx else 1)
        elif n == 0x6:
            self._set_gpr(0xF, vx & 0x01)
            self._set_gpr(x, vx >> 1)
        elif n == 0x7:
            self._set_gpr(x, vy - vx)
            self._set_gpr(0xF, 0 if vx > vy else 1)
        elif n == 0xE:
            self._set_gpr(0xF, 1 if vx & 0x80 else 0)
            self._set_gpr(x, vx << 1)
        else:
            return False
        return True

    def _misc(self, x: int, lo: int) -> bool:
        if lo == 0x07:
            self._set_gpr(x, self.dt)
        elif lo == 0x0A:
            if self.keyboard == 0:
                self.pc = (self.pc - 2) & 0xFFFF
            else:
                lowest = (self.keyboard & -self.keyboard).bit_length() - 1
                self._set_gpr(x, lowest)
        elif lo == 0x15:
            self.dt = self._gpr(x)
        elif lo == 0x18:
            self.st = self._gpr(x)
        elif lo == 0x1E:
            self.i = (self.i + self._gpr(x)) & 0xFFFF
        elif lo == 0x29:
            self.i = self._gpr(x) * 5
        elif lo == 0x33:
            value = self._gpr(x)
            self._write(self.i, value // 100)
            self._write(self.i + 1, value % 100 // 10)
            self._write(self.i + 2, value % 10)
        elif lo == 0x55:
            for idx in range(x + 1):
                self._write(self.i + idx, self._gpr(idx))
        elif lo == 0x65:
            for idx in range(x + 1):
                self._set_gpr(idx, self._read(self.i + idx))
        else:
            return False
        return True

    def _draw(self, x_origin: int, y_origin: int, rows: int) -> None:
        self._set_gpr(0xF, 0)
        buf = self._arena.buffer
        for y in range(rows):
            value = self._read(self.i + y)
            for x in range(8):
                if not value & (0x80 >> x):
                    continue
                x_pos = (x_origin + x) % DISPLAY_WIDTH
                y_pos = (y_origin + y) % DISPLAY_HEIGHT
                pixel = DISPLAY_OFFSET + (y_pos * DISPLAY_WIDTH + x_pos) * 3
                if buf[pixel] == 0:
                    buf[pixel : pixel + 3] = self._pixel_on
                else:
                    self._set_gpr(0xF, 1)
                    buf[pixel : pixel + 3] = self._pixel_off

    def _clear_display(self) -> None:
        self._arena.buffer[DISPLAY_OFFSET:ARENA_SIZE] = bytes(DISPLAY_BYTES)

    def _unknown(self, hi: int, lo: int) -> None:
        logger.debug(
            "Unknown opcode %02X%02X at 0x%03X, resetting", hi, lo, self.pc - 2
        )
        self.reset()

    def _read(self, address: int) -> int:
        return self._arena.buffer[MEMORY_OFFSET + (address & 0xFFF)]

    def _write(self, address: int, value: int) -> None:
        self._arena.buffer[MEMORY_OFFSET + (address & 0xFFF)] = value & 0xFF

    def _gpr(self, index: int) -> int:
        return self._arena.buffer[GPR_OFFSET + index]

    def _set_gpr(self, index: int, value: int) -> None:
        self._arena.buffer[GPR_OFFSET + index] = value & 0xFF

    def _read_stack(self, index: int) -> int:
        offset = STACK_OFFSET + index * 2
        return int.from_bytes(self._arena.buffer[offset : offset + 2], "little")

    def _write_stack(self, index: int, value: int) -> None:
        offset = STACK_OFFSET + index * 2
        self._arena.buffer[offset : offset + 2] = (value & 0xFFFF).to_bytes(2, "little")


__all__ = [
    "Chip8Engine",
    "MachineFault",
    "HEX_SPRITES",
    "MEMORY_SIZE",
    "PROGRAM_START",
    "DISPLAY_WIDTH",
    "DISPLAY_HEIGHT",
    "PIXEL_ON",
    "PIXEL_OFF",
]
