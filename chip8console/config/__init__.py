"""Configuration system for the CHIP-8 console."""

from .console_config import PACING_POLICIES, ConsoleConfig

__all__ = ["ConsoleConfig", "PACING_POLICIES"]
