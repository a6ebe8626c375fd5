"""Pillow-backed presentation target for the console display."""

from __future__ import annotations

import io
from typing import Optional

import numpy as np
from PIL import Image

from .framebuffer import DISPLAY_HEIGHT, DISPLAY_WIDTH


class ImageSurface:
    """Holds the last uploaded texture as a scaled RGB image."""

    def __init__(
        self,
        *,
        scale: int = 8,
        width: int = DISPLAY_WIDTH,
        height: int = DISPLAY_HEIGHT,
    ) -> None:
        self.scale = scale
        self.width = width
        self.height = height
        self.revision = 0
        self._image = Image.new("RGB", (width * scale, height * scale), (0, 0, 0))
        self._png_cache: Optional[bytes] = None
        self._png_revision = -1

    def upload(self, texture: np.ndarray) -> None:
        # Textures are bottom-up; PIL images start at the top-left corner.
        img = Image.fromarray(np.asarray(texture, dtype=np.uint8))
        img = img.transpose(Image.Transpose.FLIP_TOP_BOTTOM)
        if self.scale != 1:
            img = img.resize(
                (self.width * self.scale, self.height * self.scale), Image.NEAREST
            )
        self._image = img
        self.revision += 1

    def present(self) -> Image.Image:
        return self._image

    def to_png_bytes(self) -> bytes:
        """Encode the current image, reusing the previous encoding if unchanged."""

        if self._png_cache is None or self._png_revision != self.revision:
            buffer = io.BytesIO()
            self._image.save(buffer, format="PNG")
            self._png_cache = buffer.getvalue()
            self._png_revision = self.revision
        return self._png_cache

    def save(self, filename: str) -> None:
        self._image.save(filename)


__all__ = ["ImageSurface"]
