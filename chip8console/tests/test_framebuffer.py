"""Tests for the dirty-flag framebuffer upload and the image surface."""

from __future__ import annotations

from typing import List

import numpy as np
import pytest

from chip8console.display import FramebufferView, ImageSurface
from chip8console.engine import Chip8Engine
from chip8console.engine.facade import MemoryArena


class RecordingTarget:
    def __init__(self) -> None:
        self.uploads: List[np.ndarray] = []
        self.presents = 0

    def upload(self, texture: np.ndarray) -> None:
        self.uploads.append(texture.copy())

    def present(self) -> str:
        self.presents += 1
        return "frame"


def _lit_top_left_engine() -> Chip8Engine:
    engine = Chip8Engine()
    engine.reset()
    engine.set_memory(bytes([0xA0, 0x00, 0xD0, 0x01]))  # I=sprite "0"; draw one row at (0, 0)
    engine.init_character_sprites()
    engine.tick()
    engine.tick()
    return engine


class TestFramebufferView:
    def setup_method(self) -> None:
        self.engine = Chip8Engine()
        self.target = RecordingTarget()
        self.view = FramebufferView(self.engine.get_display_view(), self.target)

    def test_no_upload_without_dirty_flag(self) -> None:
        for _ in range(3):
            assert self.view.render() == "frame"
        assert self.target.uploads == []
        assert self.target.presents == 3

    def test_at_most_one_upload_per_dirty_flag(self) -> None:
        self.view.set_dirty_flag()
        self.view.set_dirty_flag()
        self.view.render()
        self.view.render()
        assert len(self.target.uploads) == 1
        assert not self.view.dirty

        self.view.set_dirty_flag()
        self.view.render()
        assert self.view.upload_count == 2

    def test_rebind_does_not_force_upload(self) -> None:
        self.view.rebind(self.engine.get_display_view())
        self.view.render()
        assert self.target.uploads == []

    def test_rejects_wrongly_sized_view(self) -> None:
        arena = MemoryArena(16)
        with pytest.raises(ValueError):
            FramebufferView(arena.view(0, 16), self.target)


def test_texture_rows_are_flipped_vertically() -> None:
    engine = _lit_top_left_engine()
    target = RecordingTarget()
    view = FramebufferView(engine.get_display_view(), target)
    view.set_dirty_flag()
    view.render()

    texture = target.uploads[0]
    assert texture.shape == (32, 64, 3)
    assert texture[31, 0:4].any(axis=1).all()
    assert not texture[0].any()


def test_image_surface_restores_top_left_origin() -> None:
    engine = _lit_top_left_engine()
    surface = ImageSurface(scale=2)
    view = FramebufferView(engine.get_display_view(), surface)
    view.set_dirty_flag()
    image = view.render()

    assert image.size == (128, 64)
    assert image.getpixel((0, 0)) == (102, 255, 102)
    assert image.getpixel((0, 63)) == (0, 0, 0)
    assert surface.revision == 1


def test_image_surface_caches_png_per_revision() -> None:
    surface = ImageSurface(scale=1)
    first = surface.to_png_bytes()
    assert first.startswith(b"\x89PNG")
    assert surface.to_png_bytes() is first

    surface.upload(np.zeros((32, 64, 3), dtype=np.uint8))
    assert surface.to_png_bytes() is not first
