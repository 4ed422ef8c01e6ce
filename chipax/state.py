"""CHIP-8 machine state structures."""

from enum import IntEnum

import jax
import jax.numpy as jnp
from flax.struct import dataclass, PyTreeNode, field

from chipax.constants import (
    PROGRAM_START, FONT_START, FONT_DATA, MEMORY_SIZE, DISPLAY_SIZE, STACK_SIZE, NUM_REGISTERS
)


class HaltCode(IntEnum):
    """Reason the machine stopped executing."""
    NONE = 0
    UNKNOWN_INSTRUCTION = 1
    STACK_OVERFLOW = 2
    STACK_UNDERFLOW = 3


@dataclass
class StackState:
    """Return address stack for subroutine calls."""
    data: jnp.ndarray = field(default_factory=lambda: jnp.zeros(STACK_SIZE, dtype=jnp.uint16))
    pointer: jnp.ndarray = field(default_factory=lambda: jnp.zeros((), dtype=jnp.uint8))


class MachineState(PyTreeNode):
    """Complete CHIP-8 machine state.

    The display is packed: 256 bytes, row-major, 8 pixels per byte with the
    most significant bit as the leftmost pixel. ``keys`` is a 16-bit mask with
    bit ``n`` set while key ``n`` is held. ``vblank`` is set by each tick and
    cleared by the next draw.
    """
    rng: jax.random.PRNGKey
    memory: jnp.ndarray = field(default_factory=lambda: jnp.zeros(MEMORY_SIZE, dtype=jnp.uint8))
    display: jnp.ndarray = field(default_factory=lambda: jnp.zeros(DISPLAY_SIZE, dtype=jnp.uint8))
    stack: StackState = field(default_factory=lambda: StackState())
    V: jnp.ndarray = field(default_factory=lambda: jnp.zeros(NUM_REGISTERS, dtype=jnp.uint8))
    I: jnp.ndarray = field(default_factory=lambda: jnp.zeros((), dtype=jnp.uint16))
    pc: jnp.ndarray = field(default_factory=lambda: jnp.asarray(PROGRAM_START, dtype=jnp.uint16))
    delay_timer: jnp.ndarray = field(default_factory=lambda: jnp.zeros((), dtype=jnp.uint8))
    sound_timer: jnp.ndarray = field(default_factory=lambda: jnp.zeros((), dtype=jnp.uint8))
    keys: jnp.ndarray = field(default_factory=lambda: jnp.zeros((), dtype=jnp.uint16))
    vblank: jnp.ndarray = field(default_factory=lambda: jnp.zeros((), dtype=jnp.uint8))
    halt_code: jnp.ndarray = field(default_factory=lambda: jnp.asarray(int(HaltCode.NONE), dtype=jnp.uint8))


def create_state(rng: jax.random.PRNGKey = jax.random.PRNGKey(0)) -> MachineState:
    """Create a zeroed machine state with the font loaded."""
    state = MachineState(rng)
    font = jnp.array(FONT_DATA, dtype=jnp.uint8)
    return state.replace(memory=state.memory.at[FONT_START:FONT_START + len(FONT_DATA)].set(font))


def reset(state: MachineState) -> MachineState:
    """Return a freshly reset state, keeping only the random key."""
    return create_state(state.rng)
