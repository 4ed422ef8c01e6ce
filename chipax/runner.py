"""Host loops for CHIP-8 programs: a pygame window and a headless runner.

The host owns timing. Each frame it forwards key edges, runs a fixed number
of instructions, checks for a halt, then ticks the machine (timers and
vblank) and presents the display.
"""

import os

# Silence the pygame banner BEFORE importing pygame
os.environ.setdefault("PYGAME_HIDE_SUPPORT_PROMPT", "1")

import argparse
import sys
from typing import List, Optional

import jax
import pygame
from tqdm import tqdm

from chipax.constants import SCREEN_WIDTH, SCREEN_HEIGHT, TICKS_PER_SECOND
from chipax.emulator import (
    load_rom, run_steps, tick, key_down, key_up, current_opcode, halt_code, RomTooLarge
)
from chipax.logging import logger
from chipax.rendering import chip8_display_to_rgb, create_color_scheme, save_frame
from chipax.state import MachineState, HaltCode, create_state

KEY_MAP = {
    pygame.K_0: 0x0, pygame.K_KP0: 0x0,
    pygame.K_1: 0x1, pygame.K_KP1: 0x1,
    pygame.K_2: 0x2, pygame.K_KP2: 0x2,
    pygame.K_3: 0x3, pygame.K_KP3: 0x3,
    pygame.K_4: 0x4, pygame.K_KP4: 0x4,
    pygame.K_5: 0x5, pygame.K_KP5: 0x5,
    pygame.K_6: 0x6, pygame.K_KP6: 0x6,
    pygame.K_7: 0x7, pygame.K_KP7: 0x7,
    pygame.K_8: 0x8, pygame.K_KP8: 0x8,
    pygame.K_9: 0x9, pygame.K_KP9: 0x9,
    pygame.K_a: 0xA, pygame.K_b: 0xB, pygame.K_c: 0xC,
    pygame.K_d: 0xD, pygame.K_e: 0xE, pygame.K_f: 0xF,
}


def halt_report(state: MachineState) -> List[str]:
    """Register dump printed when the machine halts."""
    registers = " ".join(f"{int(v):02X}" for v in state.V)
    return [
        f"Halted [{halt_code(state).name}]",
        f"    PC: {int(state.pc):04X}",
        f"    SP: {int(state.stack.pointer):02X}",
        f"    I: {int(state.I):04X}",
        f"    V registers: {registers}",
        f"    Current instruction: {int(current_opcode(state)):04X}",
    ]


def report_halt(state: MachineState):
    for line in halt_report(state):
        logger.error(line)


def start_machine(rom_filename: str, seed: int = 0) -> Optional[MachineState]:
    """Create a machine and load the ROM, logging and returning None on failure."""
    state = create_state(jax.random.PRNGKey(seed))
    try:
        state = load_rom(state, rom_filename)
    except (OSError, RomTooLarge) as e:
        logger.error(f"Failed to load ROM: {e}")
        return None
    logger.info(f"Loaded {rom_filename}")
    return state


def run_headless(
    state: MachineState,
    frames: int,
    ipf: int = 10,
    show_progress: bool = True,
) -> MachineState:
    """Run ``frames`` frames of ``ipf`` instructions each, stopping on halt."""
    with tqdm(total=frames, desc="Running", unit="frame", disable=not show_progress) as progress:
        for _ in range(frames):
            state = run_steps(state, ipf)
            if halt_code(state) != HaltCode.NONE:
                break
            state = tick(state)
            progress.update(1)
    return state


def run_emulator(
    state: MachineState,
    scale: int = 10,
    ipf: int = 10,
    color_scheme: str = "classic",
) -> int:
    """Main emulator loop in a pygame window. Returns the process exit code."""
    on_color, off_color = create_color_scheme(color_scheme)

    pygame.init()
    screen = pygame.display.set_mode((SCREEN_WIDTH * scale, SCREEN_HEIGHT * scale))
    pygame.display.set_caption("Chip8 interpreter")
    clock = pygame.time.Clock()

    logger.info("Starting Chip8 program")
    exit_code = 0
    running = True
    try:
        while running:
            for event in pygame.event.get():
                if event.type == pygame.QUIT:
                    running = False
                elif event.type == pygame.KEYDOWN:
                    if event.key == pygame.K_ESCAPE:
                        running = False
                    elif event.key in KEY_MAP:
                        state = key_down(state, KEY_MAP[event.key])
                elif event.type == pygame.KEYUP:
                    if event.key in KEY_MAP:
                        state = key_up(state, KEY_MAP[event.key])

            state = run_steps(state, ipf)
            if halt_code(state) != HaltCode.NONE:
                pygame.display.set_caption("[HALTED]")
                report_halt(state)
                exit_code = 1
                break

            state = tick(state)

            frame = chip8_display_to_rgb(state.display, scale, on_color, off_color)
            screen.blit(pygame.surfarray.make_surface(frame.swapaxes(0, 1)), (0, 0))
            pygame.display.flip()
            clock.tick(TICKS_PER_SECOND)
    finally:
        pygame.quit()

    return exit_code


def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(description="CHIP-8 interpreter")
    parser.add_argument("rom", type=str, help="Path to the CHIP-8 ROM file")
    parser.add_argument(
        "--scale", type=int, default=10, help="Window scale factor (default: 10)"
    )
    parser.add_argument(
        "--ipf",
        type=int,
        default=10,
        help="Instructions executed per 60 Hz frame (default: 10)",
    )
    parser.add_argument(
        "--color-scheme",
        type=str,
        default="classic",
        choices=["classic", "green", "amber", "blue", "retro"],
        help="Display colors (default: classic)",
    )
    parser.add_argument(
        "--seed", type=int, default=0, help="Seed for the CXNN random source (default: 0)"
    )
    parser.add_argument(
        "--headless",
        action="store_true",
        help="Run without a window for a fixed number of frames",
    )
    parser.add_argument(
        "--frames",
        type=int,
        default=600,
        help="Frames to run in headless mode (default: 600)",
    )
    parser.add_argument(
        "--screenshot",
        type=str,
        default=None,
        help="Save the final display to this image file (headless mode)",
    )
    parser.add_argument(
        "--log-level",
        type=str,
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Minimum level of console messages (default: INFO)",
    )
    args = parser.parse_args(argv)

    logger.set_level(args.log_level)

    state = start_machine(args.rom, args.seed)
    if state is None:
        return 1

    if not args.headless:
        return run_emulator(state, scale=args.scale, ipf=args.ipf, color_scheme=args.color_scheme)

    state = run_headless(state, args.frames, ipf=args.ipf)
    if args.screenshot:
        save_frame(state.display, args.screenshot, color_scheme=args.color_scheme)
        logger.info(f"Saved display to {args.screenshot}")
    if halt_code(state) != HaltCode.NONE:
        report_halt(state)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
