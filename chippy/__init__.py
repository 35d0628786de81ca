"""CHIP-8 interpreter package."""

from chippy.state import EmulatorState, StackState, create_state, reset
from chippy.emulator import (
    execute, fetch, step, tick, tick_timers, set_key, set_keys, get_display,
    load_program, load_rom, run_n_instructions, run_frame, run_frames,
    run_batch, run_with_progress,
)
from chippy.decode import DecodedInstruction, Op, decode
from chippy.errors import (
    ChippyError, ProgramTooLargeError, MachineFault, StackOverflowError,
    StackUnderflowError, raise_for_fault,
)
from chippy.interpreter import Interpreter
from chippy.constants import *
from chippy.rendering import chip8_display_to_rgb, create_color_scheme, display_to_grid

__all__ = [
    "EmulatorState",
    "StackState",
    "create_state",
    "reset",
    "fetch",
    "execute",
    "step",
    "tick",
    "tick_timers",
    "set_key",
    "set_keys",
    "get_display",
    "load_program",
    "load_rom",
    "run_n_instructions",
    "run_frame",
    "run_frames",
    "run_batch",
    "run_with_progress",
    "DecodedInstruction",
    "Op",
    "decode",
    "ChippyError",
    "ProgramTooLargeError",
    "MachineFault",
    "StackOverflowError",
    "StackUnderflowError",
    "raise_for_fault",
    "Interpreter",
    "PROGRAM_START",
    "FONT_START",
    "SCREEN_WIDTH",
    "SCREEN_HEIGHT",
    "chip8_display_to_rgb",
    "create_color_scheme",
    "display_to_grid",
]
