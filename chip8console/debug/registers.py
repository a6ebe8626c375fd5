"""Stack, general-purpose and scalar register tables."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, List, Sequence, Tuple

from ..engine.facade import BufferView


@dataclass(frozen=True)
class ScalarRegister:
    name: str
    byte_width: int
    value: int


@dataclass(frozen=True)
class TableRow:
    label: str
    value: str

    def to_dict(self) -> dict:
        return {"label": self.label, "value": self.value}


@dataclass(frozen=True)
class RegisterPanel:
    stack: Tuple[TableRow, ...]
    gpr: Tuple[TableRow, ...]
    scalars: Tuple[TableRow, ...]

    def to_dict(self) -> dict:
        return {
            "stack": [row.to_dict() for row in self.stack],
            "gpr": [row.to_dict() for row in self.gpr],
            "scalars": [row.to_dict() for row in self.scalars],
        }


def _indexed_table(values: Sequence[int], digits: int) -> Tuple[TableRow, ...]:
    return tuple(
        TableRow(f"{index:X}", f"0x{int(value):0{digits}X}")
        for index, value in enumerate(values)
    )


def _labelled_table(registers: Sequence[ScalarRegister]) -> Tuple[TableRow, ...]:
    return tuple(
        TableRow(reg.name.upper(), f"0x{reg.value:0{reg.byte_width * 2}X}")
        for reg in registers
    )


class RegisterInspector:
    """Projects the current register state into three tables.

    Nothing is cached between renders; the tables are small and fixed.
    """

    def __init__(
        self,
        stack: BufferView,
        gpr: BufferView,
        scalars: Callable[[], List[ScalarRegister]],
    ) -> None:
        self.stack = stack
        self.gpr = gpr
        self._scalars = scalars

    def rebind(self, stack: BufferView, gpr: BufferView) -> None:
        self.stack = stack
        self.gpr = gpr

    def render(self) -> RegisterPanel:
        return RegisterPanel(
            stack=_indexed_table(self.stack.array(), 4),
            gpr=_indexed_table(self.gpr.array(), 2),
            scalars=_labelled_table(self._scalars()),
        )

    def dump(self) -> str:
        panel = self.render()
        lines = []
        for stack_row, gpr_row in zip(panel.stack, panel.gpr):
            lines.append(
                f"{stack_row.label} {stack_row.value}  {gpr_row.label} {gpr_row.value}"
            )
        lines.append(" ".join(f"{row.label}={row.value}" for row in panel.scalars))
        return "\n".join(lines)


__all__ = ["RegisterInspector", "RegisterPanel", "ScalarRegister", "TableRow"]
