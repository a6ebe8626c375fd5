"""Program-counter-centred memory window for the console."""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Tuple

from ..engine.facade import BufferView

BYTES_PER_ROW = 8
ROWS_BEFORE = 7
ROWS_AFTER = 8


@dataclass(frozen=True)
class MemoryWindow:
    """Visible range ``[visible_from, visible_to)`` around ``anchor``."""

    anchor: int
    row_width: int
    visible_from: int
    visible_to: int

    @property
    def row_start(self) -> int:
        return self.anchor - self.anchor % self.row_width

    @classmethod
    def around(
        cls, pc: int, memory_size: int, row_width: int = BYTES_PER_ROW
    ) -> "MemoryWindow":
        row_start = pc - pc % row_width
        visible_from = max(row_start - ROWS_BEFORE * row_width, 0)
        visible_to = min(row_start + ROWS_AFTER * row_width, memory_size)
        return cls(pc, row_width, visible_from, visible_to)


@dataclass(frozen=True)
class MemoryRow:
    """One labelled row of the hex panel."""

    start: int
    end: int
    values: Tuple[int, ...]
    active: Tuple[bool, ...]

    @property
    def label(self) -> str:
        return f"{self.start:04x}..{self.end:04x}:"

    @property
    def hex_values(self) -> List[str]:
        return [f"{value:02x}" for value in self.values]

    def to_dict(self) -> dict:
        return {
            "label": self.label,
            "start": self.start,
            "bytes": self.hex_values,
            "active": list(self.active),
        }


@dataclass(frozen=True)
class MemoryPanel:
    window: MemoryWindow
    rows: Tuple[MemoryRow, ...]

    def to_dict(self) -> dict:
        return {
            "from": self.window.visible_from,
            "to": self.window.visible_to,
            "pc": self.window.anchor,
            "rows": [row.to_dict() for row in self.rows],
        }


class MemoryInspector:
    """Renders a bounded hex window of engine memory around the PC."""

    def __init__(self, memory: BufferView, row_width: int = BYTES_PER_ROW) -> None:
        self.memory = memory
        self.row_width = row_width

    @property
    def memory_size(self) -> int:
        return self.memory.length

    def rebind(self, memory: BufferView) -> None:
        self.memory = memory

    def window(self, pc: int) -> MemoryWindow:
        return MemoryWindow.around(pc, self.memory_size, self.row_width)

    def render(self, pc: int) -> MemoryPanel:
        window = self.window(pc)
        data = self.memory.array()
        rows = []
        for start in range(window.visible_from, window.visible_to, self.row_width):
            values = tuple(int(b) for b in data[start : start + self.row_width])
            # The current instruction spans pc and pc + 1.
            offset_pc = pc - start
            active = tuple(
                offset in (offset_pc, offset_pc + 1) for offset in range(len(values))
            )
            rows.append(
                MemoryRow(
                    start=start,
                    end=start + self.row_width - 1,
                    values=values,
                    active=active,
                )
            )
        return MemoryPanel(window, tuple(rows))

    def dump(self, pc: int) -> str:
        """Text rendering of :meth:`render`; active bytes are bracketed."""

        lines = []
        for row in self.render(pc).rows:
            cells = [
                f"[{text}]" if hot else f" {text} "
                for text, hot in zip(row.hex_values, row.active)
            ]
            lines.append(f"{row.label} {''.join(cells)}")
        return "\n".join(lines)


__all__ = ["BYTES_PER_ROW", "MemoryInspector", "MemoryPanel", "MemoryRow", "MemoryWindow"]
