#!/usr/bin/env python3
"""Headless runner for the CHIP-8 console."""

from __future__ import annotations

import argparse
import logging
import sys
from typing import List, Optional

from . import create_console
from .config import PACING_POLICIES, ConsoleConfig
from .display.framebuffer import ascii_frame


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="CHIP-8 console (headless)")
    parser.add_argument("--rom", type=str, help="Program image to load at 0x200")
    parser.add_argument(
        "--frames", type=int, default=60, help="Number of display frames to run"
    )
    parser.add_argument(
        "--pacing", choices=PACING_POLICIES, default=None, help="Tick pacing policy"
    )
    parser.add_argument(
        "--ticks-per-frame", type=int, default=None, help="Ticks per frame batch"
    )
    parser.add_argument("--turbo", action="store_true", help="Start with turbo on")
    parser.add_argument(
        "--refresh-hz",
        type=int,
        default=None,
        help="Simulated display refresh rate used for frame timestamps",
    )
    parser.add_argument("--config", type=str, help="JSON console configuration")
    parser.add_argument("--save-display", type=str, help="Write final display PNG")
    parser.add_argument(
        "--ascii", action="store_true", help="Print the final display as text"
    )
    parser.add_argument(
        "--dump-memory", action="store_true", help="Print the memory window"
    )
    parser.add_argument(
        "--dump-registers", action="store_true", help="Print register tables"
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    return parser


def _config_from_args(args: argparse.Namespace) -> ConsoleConfig:
    data = ConsoleConfig.load(args.config).to_dict() if args.config else {}
    if args.pacing:
        data["pacing"] = args.pacing
    if args.ticks_per_frame is not None:
        data["ticks_per_frame"] = args.ticks_per_frame
    if args.refresh_hz is not None:
        data["refresh_hz"] = args.refresh_hz
    return ConsoleConfig.from_dict(data)


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(levelname)s %(name)s: %(message)s",
    )

    config = _config_from_args(args)
    console = create_console(config)
    if args.rom and not console.load_rom(args.rom):
        print(f"error: {console.status.error}", file=sys.stderr)
        return 1
    if args.turbo:
        console.toggle_turbo()

    console.toggle_run()
    frame_ms = 1000.0 / config.refresh_hz
    for frame in range(1, args.frames + 1):
        console.on_frame(frame * frame_ms)
        if not console.schedule.running:
            break
    if console.status.error:
        print(f"stopped: {console.status.error}", file=sys.stderr)

    print(
        f"frames={console.frame_count} ticks={console.tick_count} "
        f"pc=0x{console.machine.get_program_counter():03X}"
    )
    if args.ascii:
        print(ascii_frame(console.framebuffer.view))
    if args.dump_memory:
        print(console.memory_inspector.dump(console.machine.get_program_counter()))
    if args.dump_registers:
        print(console.register_inspector.dump())
    if args.save_display:
        console.target.save(args.save_display)
    return 0


if __name__ == "__main__":
    sys.exit(main())
