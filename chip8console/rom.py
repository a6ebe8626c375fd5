"""ROM images and reading them from user-supplied sources."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import BinaryIO, Union

RomSource = Union[bytes, bytearray, memoryview, str, os.PathLike, BinaryIO]


class RomLoadError(IOError):
    """The ROM source could not be read to completion."""


@dataclass(frozen=True)
class RomBuffer:
    """Immutable program image; replaced wholesale on every load."""

    data: bytes = b""
    name: str = "<empty>"

    def __len__(self) -> int:
        return len(self.data)


EMPTY_ROM = RomBuffer()


def read_rom_source(source: RomSource, *, max_size: int) -> RomBuffer:
    """Read ``source`` into a :class:`RomBuffer`.

    ``source`` may be raw bytes, a filesystem path or a binary file object.
    Images longer than ``max_size`` are rejected; there is no other
    validation.
    """

    try:
        if isinstance(source, (bytes, bytearray, memoryview)):
            data, name = bytes(source), "<bytes>"
        elif isinstance(source, (str, os.PathLike)):
            path = Path(source)
            data, name = path.read_bytes(), path.name
        else:
            data = source.read()
            name = getattr(source, "filename", None) or getattr(source, "name", "<stream>")
            if not isinstance(data, (bytes, bytearray)):
                raise RomLoadError(f"ROM stream returned {type(data).__name__}, not bytes")
            data = bytes(data)
    except RomLoadError:
        raise
    except (OSError, ValueError) as exc:
        raise RomLoadError(f"could not read ROM: {exc}") from exc

    if len(data) > max_size:
        raise RomLoadError(
            f"ROM {name} is {len(data)} bytes; at most {max_size} bytes fit in memory"
        )
    return RomBuffer(data, str(name))


__all__ = ["EMPTY_ROM", "RomBuffer", "RomLoadError", "RomSource", "read_rom_source"]
