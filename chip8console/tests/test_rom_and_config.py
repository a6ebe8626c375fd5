"""Tests for ROM reading and console configuration."""

from __future__ import annotations

import io

import pytest

from chip8console.config import ConsoleConfig
from chip8console.rom import RomLoadError, read_rom_source


class FailingStream:
    name = "broken.ch8"

    def read(self) -> bytes:
        raise OSError("device not ready")


def test_reads_bytes_paths_and_streams(tmp_path) -> None:
    path = tmp_path / "pong.ch8"
    path.write_bytes(b"\x12\x00")

    assert read_rom_source(b"\x01", max_size=10).data == b"\x01"
    from_path = read_rom_source(str(path), max_size=10)
    assert from_path.data == b"\x12\x00"
    assert from_path.name == "pong.ch8"
    assert read_rom_source(io.BytesIO(b"\x02\x03"), max_size=10).data == b"\x02\x03"


def test_empty_image_is_accepted() -> None:
    rom = read_rom_source(b"", max_size=10)
    assert len(rom) == 0


def test_stream_failure_raises_rom_load_error() -> None:
    with pytest.raises(RomLoadError, match="device not ready"):
        read_rom_source(FailingStream(), max_size=10)


def test_text_stream_is_rejected() -> None:
    with pytest.raises(RomLoadError):
        read_rom_source(io.StringIO("not bytes"), max_size=10)


def test_length_limit_enforced() -> None:
    with pytest.raises(RomLoadError, match="at most 4 bytes"):
        read_rom_source(b"12345", max_size=4)


class TestConsoleConfig:
    def test_defaults(self) -> None:
        config = ConsoleConfig()
        assert config.pacing == "frame-budget"
        assert config.ticks_per_frame == 10

    def test_save_and_load(self, tmp_path) -> None:
        path = tmp_path / "console.json"
        ConsoleConfig(pacing="rate-gated", target_rate=30).save(str(path))
        loaded = ConsoleConfig.load(str(path))
        assert loaded.pacing == "rate-gated"
        assert loaded.target_rate == 30
        assert loaded.pixel_on == (102, 255, 102)

    @pytest.mark.parametrize(
        "kwargs",
        [{"pacing": "vsync"}, {"ticks_per_frame": 0}, {"row_width": 0}, {"refresh_hz": 0}],
    )
    def test_invalid_values_rejected(self, kwargs) -> None:
        with pytest.raises(ValueError):
            ConsoleConfig(**kwargs)

    def test_from_env_overrides(self, tmp_path) -> None:
        path = tmp_path / "console.json"
        ConsoleConfig(row_width=16).save(str(path))
        config = ConsoleConfig.from_env(
            {
                "CHIP8_CONSOLE_CONFIG": str(path),
                "CHIP8_CONSOLE_PACING": "rate-gated",
                "CHIP8_CONSOLE_TICKS_PER_FRAME": "3",
            }
        )
        assert config.row_width == 16
        assert config.pacing == "rate-gated"
        assert config.ticks_per_frame == 3

    def test_unknown_keys_ignored(self) -> None:
        assert ConsoleConfig.from_dict({"pacing": "rate-gated", "extra": 1}).pacing == "rate-gated"
