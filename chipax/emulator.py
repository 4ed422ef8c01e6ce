"""Main CHIP-8 emulator execution engine."""

from enum import IntEnum
from functools import partial

import jax
import jax.lax
import jax.numpy as jnp
from chipax.state import MachineState, HaltCode, reset
from chipax.decode import decode
from chipax.constants import PROGRAM_START, MAX_ROM_SIZE, ADDRESS_MASK, SCREEN_WIDTH, SCREEN_HEIGHT
from chipax.logging import emit_diagnostics
from chipax.instructions.system import execute_system_instruction
from chipax.instructions.control_flow import (
    execute_jump, execute_call, execute_skip_if_equal_immediate,
    execute_skip_if_not_equal_immediate, execute_skip_if_equal_register,
    execute_skip_if_not_equal_register, execute_jump_with_offset, execute_skip_if_key
)
from chipax.instructions.alu import execute_alu_operation
from chipax.instructions.memory import execute_set, execute_add, execute_set_index, execute_random
from chipax.instructions.display import execute_display
from chipax.instructions.misc import execute_misc_instruction


class StepStatus(IntEnum):
    """Outcome of a single step."""
    RAN = 0
    WAIT_VBLANK = 1  # DXYN retried, no tick since the last draw
    WAIT_KEY = 2     # FX0A retried, no key held
    HALTED = 3


class RomTooLarge(ValueError):
    """ROM does not fit in program memory."""

    def __init__(self, size: int, limit: int = MAX_ROM_SIZE):
        self.size = size
        self.limit = limit
        super().__init__(f"ROM is {size} bytes, program memory holds at most {limit}")


@partial(jax.jit, static_argnames="diagnostics")
def execute(state: MachineState, instruction: int, diagnostics: bool = True) -> MachineState:
    """Execute single CHIP-8 instruction.

    With ``diagnostics`` off no host callback is compiled in. Batched runs
    should turn it off and inspect ``halt_code`` afterwards.
    """
    decoded_instruction = decode(instruction)

    new_state = jax.lax.switch(
        decoded_instruction.opcode,
        [
            execute_system_instruction,
            execute_jump,
            execute_call,
            execute_skip_if_equal_immediate,
            execute_skip_if_not_equal_immediate,
            execute_skip_if_equal_register,
            execute_set,
            execute_add,
            execute_alu_operation,
            execute_skip_if_not_equal_register,
            execute_set_index,
            execute_jump_with_offset,
            execute_random,
            execute_display,
            execute_skip_if_key,
            execute_misc_instruction,
        ],
        state, decoded_instruction
    )
    if diagnostics:
        emit_diagnostics(state.halt_code, new_state.halt_code, decoded_instruction.raw)
    return new_state


def _pack_u16(high: jnp.uint8, low: jnp.uint8) -> jnp.uint16:
    """Pack two bytes into uint16."""
    return (high.astype(jnp.uint16) << 8) | low.astype(jnp.uint16)


def current_opcode(state: MachineState) -> jnp.ndarray:
    """Opcode stored at the program counter."""
    return _pack_u16(state.memory[state.pc & ADDRESS_MASK], state.memory[(state.pc + 1) & ADDRESS_MASK])


def fetch(state: MachineState) -> tuple[MachineState, jnp.uint16]:
    """Fetch next instruction from memory and advance the program counter."""
    instruction = current_opcode(state)
    return state.replace(pc=state.pc + 2), instruction


def _status(status: StepStatus) -> jnp.ndarray:
    return jnp.asarray(int(status), dtype=jnp.uint8)


@partial(jax.jit, static_argnames="diagnostics")
def step(state: MachineState, diagnostics: bool = True) -> tuple[MachineState, jnp.ndarray]:
    """Fetch, decode and execute one instruction.

    Never raises. Halting conditions end up in ``state.halt_code`` and a
    halted machine is returned unchanged with ``StepStatus.HALTED``. An
    instruction waiting on a vblank or a key press rewinds the program
    counter, so it runs again on the next step.
    """
    def _halted(state):
        return state, _status(StepStatus.HALTED)

    def _run(state):
        next_state, instruction = fetch(state)
        next_state = execute(next_state, instruction, diagnostics=diagnostics)

        waiting_vblank = ((instruction & 0xF000) == 0xD000) & (state.vblank == 0)
        waiting_key = ((instruction & 0xF0FF) == 0xF00A) & (state.keys == 0)
        status = jnp.select(
            [next_state.halt_code != int(HaltCode.NONE), waiting_vblank, waiting_key],
            [_status(StepStatus.HALTED), _status(StepStatus.WAIT_VBLANK), _status(StepStatus.WAIT_KEY)],
            _status(StepStatus.RAN)
        )
        return next_state, status

    return jax.lax.cond(state.halt_code != int(HaltCode.NONE), _halted, _run, state)


def run_instruction(state, _, diagnostics=True):
    return step(state, diagnostics=diagnostics)


@partial(jax.jit, static_argnums=(1, 2))
def run_steps(state: MachineState, n: int, diagnostics: bool = True) -> MachineState:
    """Run ``n`` steps. Steps after a halt do nothing."""
    state, _ = jax.lax.scan(partial(run_instruction, diagnostics=diagnostics), state, length=n)
    return state


@jax.jit
def tick(state: MachineState) -> MachineState:
    """External 60 Hz signal: raise vblank and count the timers down."""
    return state.replace(
        vblank=jnp.ones((), dtype=jnp.uint8),
        delay_timer=jnp.where(state.delay_timer > 0, state.delay_timer - 1, state.delay_timer),
        sound_timer=jnp.where(state.sound_timer > 0, state.sound_timer - 1, state.sound_timer),
    )


def _key_bit(key) -> jnp.ndarray:
    return jnp.left_shift(jnp.uint16(1), jnp.astype(jnp.asarray(key), jnp.uint16) & 0xF)


def key_down(state: MachineState, key: int) -> MachineState:
    """Mark key ``key & 0xF`` as held."""
    return state.replace(keys=state.keys | _key_bit(key))


def key_up(state: MachineState, key: int) -> MachineState:
    """Mark key ``key & 0xF`` as released."""
    return state.replace(keys=state.keys & ~_key_bit(key))


def get_pixel(state: MachineState, x: int, y: int) -> jnp.ndarray:
    """Pixel at (x mod 64, y mod 32), 0 or 1."""
    address = (x % SCREEN_WIDTH) // 8 + (y % SCREEN_HEIGHT) * (SCREEN_WIDTH // 8)
    return (state.display[address] >> (7 - x % 8)) & 1


def halt_code(state: MachineState) -> HaltCode:
    """Why the machine stopped, ``HaltCode.NONE`` while running."""
    return HaltCode(int(state.halt_code))


def load(state: MachineState, rom: bytes) -> MachineState:
    """Reset the machine and copy ``rom`` into memory at 0x200.

    Raises:
        RomTooLarge: if the ROM does not fit between 0x200 and 0xFFF. The
            given state is left as it was.
    """
    if len(rom) > MAX_ROM_SIZE:
        raise RomTooLarge(len(rom))
    state = reset(state)
    rom_array = jnp.array(list(rom), dtype=jnp.uint8)
    new_memory = state.memory.at[PROGRAM_START:PROGRAM_START + len(rom)].set(rom_array)
    return state.replace(memory=new_memory)


def load_rom(state: MachineState, filename: str) -> MachineState:
    """Load ROM data from a file into CHIP-8 memory starting at 0x200."""
    with open(filename, 'rb') as f:
        rom_data = f.read()
    return load(state, rom_data)
