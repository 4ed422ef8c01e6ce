"""CHIP-8 miscellaneous instructions (Fxxx)."""

import jax
import jax.lax
import jax.numpy as jnp
from chipax.state import MachineState
from chipax.decode import DecodedInstruction
from chipax.constants import ADDRESS_MASK, PROGRAM_START, NUM_KEYS, NUM_REGISTERS
from chipax.instructions.system import execute_unknown


def store_memory(memory: jnp.ndarray, address: jnp.ndarray, values: jnp.ndarray, mask: jnp.ndarray) -> jnp.ndarray:
    """Write ``values`` from ``address`` onwards where ``mask`` is set.

    Addresses wrap at 4 KiB. Writes into the interpreter area below 0x200 are
    dropped.
    """
    indices = (jnp.astype(address, jnp.int32) + jnp.arange(values.shape[0])) & ADDRESS_MASK
    writable = mask & (indices >= PROGRAM_START)
    return memory.at[indices].set(jnp.where(writable, values, memory[indices]))


def execute_get_delay_timer(state: MachineState, instruction: DecodedInstruction) -> MachineState:
    """FX07 - Set VX to delay timer value."""
    return state.replace(V=state.V.at[instruction.x].set(state.delay_timer))


def execute_set_delay_timer(state: MachineState, instruction: DecodedInstruction) -> MachineState:
    """FX15 - Set delay timer to VX."""
    return state.replace(delay_timer=state.V[instruction.x])


def execute_set_sound_timer(state: MachineState, instruction: DecodedInstruction) -> MachineState:
    """FX18 - Set sound timer to VX."""
    return state.replace(sound_timer=state.V[instruction.x])


def execute_add_to_index(state: MachineState, instruction: DecodedInstruction) -> MachineState:
    """FX1E - Add VX to I register. VF is not affected."""
    return state.replace(I=state.I + jnp.astype(state.V[instruction.x], jnp.uint16))


def execute_wait_for_key(state: MachineState, instruction: DecodedInstruction) -> MachineState:
    """FX0A - Wait for key press, storing the lowest held key in VX."""
    def key_pressed_action(state):
        held = (state.keys >> jnp.arange(NUM_KEYS, dtype=jnp.uint16)) & 1
        pressed_key = jnp.argmax(held)
        return state.replace(V=state.V.at[instruction.x].set(jnp.astype(pressed_key, jnp.uint8)))

    def wait_action(state):
        return state.replace(pc=state.pc - 2)

    return jax.lax.cond(state.keys != 0, key_pressed_action, wait_action, state)


def execute_font_character(state: MachineState, instruction: DecodedInstruction) -> MachineState:
    """FX29 - Font sprite lookup for digit VX.

    Loads I with the byte stored at VX * 5, not with the glyph address itself.
    This is most likely a defect, kept so ROMs behave as they always have.
    """
    glyph = jnp.astype(state.V[instruction.x], jnp.int32) * 5
    return state.replace(I=jnp.astype(state.memory[glyph & ADDRESS_MASK], jnp.uint16))


def execute_bcd_conversion(state: MachineState, instruction: DecodedInstruction) -> MachineState:
    """FX33 - Store BCD representation of VX at I, I+1, I+2."""
    value = state.V[instruction.x]

    digits = jnp.array([
        value // 100,
        (value // 10) % 10,
        value % 10
    ], dtype=jnp.uint8)

    new_memory = store_memory(state.memory, state.I, digits, jnp.ones(3, dtype=bool))
    return state.replace(memory=new_memory)


def execute_store_registers(state: MachineState, instruction: DecodedInstruction) -> MachineState:
    """FX55 - Store V0 through VX in memory starting at I, then I += X + 1."""
    register_mask = jnp.arange(NUM_REGISTERS) <= instruction.x
    new_memory = store_memory(state.memory, state.I, state.V, register_mask)
    return state.replace(memory=new_memory, I=state.I + jnp.astype(instruction.x, jnp.uint16) + 1)


def execute_load_registers(state: MachineState, instruction: DecodedInstruction) -> MachineState:
    """FX65 - Load V0 through VX from memory starting at I, then I += X + 1."""
    register_mask = jnp.arange(NUM_REGISTERS) <= instruction.x
    indices = (jnp.astype(state.I, jnp.int32) + jnp.arange(NUM_REGISTERS)) & ADDRESS_MASK
    new_V = jnp.where(register_mask, state.memory[indices], state.V)
    return state.replace(V=new_V, I=state.I + jnp.astype(instruction.x, jnp.uint16) + 1)


MISC_OPERATIONS = {
    0x07: execute_get_delay_timer,
    0x0A: execute_wait_for_key,
    0x15: execute_set_delay_timer,
    0x18: execute_set_sound_timer,
    0x1E: execute_add_to_index,
    0x29: execute_font_character,
    0x33: execute_bcd_conversion,
    0x55: execute_store_registers,
    0x65: execute_load_registers,
}

MISC_HANDLERS = list(MISC_OPERATIONS.values()) + [execute_unknown]

# Handler index for every NN byte; anything unlisted maps to execute_unknown
MISC_INDEX = jnp.full(256, len(MISC_OPERATIONS), dtype=jnp.int32).at[
    jnp.array(list(MISC_OPERATIONS.keys()))
].set(jnp.arange(len(MISC_OPERATIONS), dtype=jnp.int32))


def execute_misc_instruction(state: MachineState, instruction: DecodedInstruction) -> MachineState:
    """Dispatch FXNN instructions through the NN lookup table."""
    return jax.lax.switch(MISC_INDEX[instruction.nn], MISC_HANDLERS, state, instruction)
