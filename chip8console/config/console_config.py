"""Console configuration."""

import json
import os
from dataclasses import asdict, dataclass, fields
from typing import Optional, Tuple

PACING_POLICIES = ("frame-budget", "rate-gated")


@dataclass
class ConsoleConfig:
    """Frame pacing, inspector and display settings."""
    pacing: str = "frame-budget"
    ticks_per_frame: int = 10
    turbo_multiplier: int = 10
    target_rate: int = 10  # eligible frames per second when rate-gated
    refresh_hz: int = 60
    step_ticks: int = 1
    row_width: int = 8
    display_scale: int = 8
    pixel_on: Tuple[int, int, int] = (102, 255, 102)
    pixel_off: Tuple[int, int, int] = (0, 0, 0)

    def __post_init__(self):
        if self.pacing not in PACING_POLICIES:
            raise ValueError(f"Unknown pacing policy: {self.pacing!r}")
        if self.ticks_per_frame * self.turbo_multiplier < 1:
            raise ValueError("ticks_per_frame * turbo_multiplier must be at least 1")
        if self.row_width < 1:
            raise ValueError("row_width must be positive")
        if self.target_rate < 1 or self.refresh_hz < 1:
            raise ValueError("target_rate and refresh_hz must be positive")
        self.pixel_on = tuple(self.pixel_on)
        self.pixel_off = tuple(self.pixel_off)

    def to_dict(self) -> dict:
        data = asdict(self)
        data["pixel_on"] = list(self.pixel_on)
        data["pixel_off"] = list(self.pixel_off)
        return data

    @classmethod
    def from_dict(cls, data: dict) -> 'ConsoleConfig':
        known = {f.name for f in fields(cls)}
        values = {key: value for key, value in data.items() if key in known}
        return cls(**values)

    def save(self, path: str) -> None:
        """Save configuration to JSON file."""
        with open(path, 'w') as f:
            json.dump(self.to_dict(), f, indent=2)

    @classmethod
    def load(cls, path: str) -> 'ConsoleConfig':
        """Load configuration from JSON file."""
        with open(path, 'r') as f:
            return cls.from_dict(json.load(f))

    @classmethod
    def from_env(cls, environ: Optional[dict] = None) -> 'ConsoleConfig':
        """Build configuration from ``CHIP8_CONSOLE_*`` environment variables."""
        env = os.environ if environ is None else environ
        path = env.get("CHIP8_CONSOLE_CONFIG")
        data = cls.load(path).to_dict() if path else {}
        if env.get("CHIP8_CONSOLE_PACING"):
            data["pacing"] = env["CHIP8_CONSOLE_PACING"]
        if env.get("CHIP8_CONSOLE_TICKS_PER_FRAME"):
            data["ticks_per_frame"] = int(env["CHIP8_CONSOLE_TICKS_PER_FRAME"])
        return cls.from_dict(data)
