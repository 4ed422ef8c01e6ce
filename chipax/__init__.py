"""CHIP-8 interpreter package."""

from chipax.state import MachineState, StackState, HaltCode, create_state, reset
from chipax.emulator import (
    StepStatus, RomTooLarge, execute, fetch, step, run_steps, tick, key_down, key_up,
    load, load_rom, get_pixel, current_opcode, halt_code
)
from chipax.decode import DecodedInstruction, decode
from chipax.instructions.display import unpack_display
from chipax.constants import *
from chipax.rendering import chip8_display_to_rgb, create_color_scheme, batch_render, save_frame

__all__ = [
    "MachineState",
    "StackState",
    "HaltCode",
    "StepStatus",
    "RomTooLarge",
    "create_state",
    "reset",
    "load",
    "load_rom",
    "fetch",
    "execute",
    "step",
    "run_steps",
    "tick",
    "key_down",
    "key_up",
    "get_pixel",
    "unpack_display",
    "current_opcode",
    "halt_code",
    "DecodedInstruction",
    "decode",
    "PROGRAM_START",
    "FONT_START",
    "MAX_ROM_SIZE",
    "SCREEN_WIDTH",
    "SCREEN_HEIGHT",
    "chip8_display_to_rgb",
    "create_color_scheme",
    "batch_render",
    "save_frame",
]
