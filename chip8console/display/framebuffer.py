"""Dirty-flag driven upload of the engine framebuffer."""

from __future__ import annotations

from typing import Protocol

import numpy as np

from ..engine.facade import BufferView

DISPLAY_WIDTH = 64
DISPLAY_HEIGHT = 32


class PresentationTarget(Protocol):
    """Surface that receives uploaded textures and redraws them."""

    def upload(self, texture: np.ndarray) -> None: ...

    def present(self) -> object: ...


def texture_from_view(
    view: BufferView, width: int = DISPLAY_WIDTH, height: int = DISPLAY_HEIGHT
) -> np.ndarray:
    """Return an ``(height, width, 3)`` texture with row 0 at the bottom.

    The engine stores scanlines top to bottom; textures use a bottom-left
    origin, so the rows are flipped on the way out.
    """

    pixels = view.array().reshape(height, width, 3)
    return np.ascontiguousarray(np.flipud(pixels))


def ascii_frame(
    view: BufferView, width: int = DISPLAY_WIDTH, height: int = DISPLAY_HEIGHT
) -> str:
    """Render the framebuffer as text, one character per pixel."""

    pixels = view.array().reshape(height, width, 3)
    lit = pixels.any(axis=2)
    return "\n".join("".join("#" if on else "." for on in row) for row in lit)


class FramebufferView:
    """Upload the borrowed pixel buffer only when it has been marked dirty."""

    def __init__(
        self,
        view: BufferView,
        target: PresentationTarget,
        *,
        width: int = DISPLAY_WIDTH,
        height: int = DISPLAY_HEIGHT,
    ) -> None:
        if view.length != width * height * 3:
            raise ValueError(
                f"display view holds {view.length} bytes, expected {width * height * 3}"
            )
        self._view = view
        self._target = target
        self.width = width
        self.height = height
        self._dirty = False
        self.upload_count = 0

    @property
    def dirty(self) -> bool:
        return self._dirty

    @property
    def view(self) -> BufferView:
        return self._view

    def rebind(self, view: BufferView) -> None:
        self._view = view

    def set_dirty_flag(self) -> None:
        self._dirty = True

    def render(self) -> object:
        if self._dirty:
            self._target.upload(texture_from_view(self._view, self.width, self.height))
            self.upload_count += 1
            self._dirty = False
        return self._target.present()


__all__ = [
    "DISPLAY_HEIGHT",
    "DISPLAY_WIDTH",
    "FramebufferView",
    "PresentationTarget",
    "ascii_frame",
    "texture_from_view",
]
