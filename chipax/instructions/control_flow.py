"""CHIP-8 control flow instructions."""

import jax
import jax.lax
import jax.numpy as jnp
from chipax.state import MachineState, HaltCode
from chipax.decode import DecodedInstruction
from chipax.constants import ADDRESS_MASK, NUM_KEYS
from chipax.stack import push, is_full
from chipax.instructions.system import halt, execute_unknown


def execute_jump(state: MachineState, instruction: DecodedInstruction) -> MachineState:
    """1NNN - Jump to address NNN."""
    return state.replace(pc=jnp.astype(instruction.nnn, jnp.uint16))


def execute_call(state: MachineState, instruction: DecodedInstruction) -> MachineState:
    """2NNN - Call subroutine at NNN, halting when the stack is full."""
    def _call(state):
        state = state.replace(stack=push(state.stack, state.pc))
        return execute_jump(state, instruction)

    return jax.lax.cond(
        is_full(state.stack),
        lambda state: halt(state, HaltCode.STACK_OVERFLOW),
        _call,
        state
    )


def make_skip_instruction(condition_fn):
    """Factory for skip instructions."""
    def skip_instruction(state: MachineState, instruction: DecodedInstruction) -> MachineState:
        condition = condition_fn(state, instruction)
        return jax.lax.cond(
            condition,
            lambda s: s.replace(pc=s.pc + 2),
            lambda s: s,
            state
        )
    return skip_instruction


execute_skip_if_equal_immediate = make_skip_instruction(
    lambda state, inst: state.V[inst.x] == inst.nn
)

execute_skip_if_not_equal_immediate = make_skip_instruction(
    lambda state, inst: state.V[inst.x] != inst.nn
)

execute_skip_if_equal_register = make_skip_instruction(
    lambda state, inst: state.V[inst.x] == state.V[inst.y]
)

execute_skip_if_not_equal_register = make_skip_instruction(
    lambda state, inst: state.V[inst.x] != state.V[inst.y]
)


def execute_jump_with_offset(state: MachineState, instruction: DecodedInstruction) -> MachineState:
    """BNNN - Jump to address NNN + V0."""
    jump_address = (instruction.nnn + jnp.astype(state.V[0], jnp.uint16)) & ADDRESS_MASK
    return state.replace(pc=jnp.astype(jump_address, jnp.uint16))


def key_is_pressed(keys: jnp.ndarray, key: jnp.ndarray) -> jnp.ndarray:
    """Whether ``key`` is held in the ``keys`` mask. Keys above 0xF never are."""
    key = jnp.astype(key, jnp.uint16)
    bit = (keys >> jnp.minimum(key, NUM_KEYS - 1)) & 1
    return (key < NUM_KEYS) & (bit == 1)


def execute_skip_if_key(state: MachineState, instruction: DecodedInstruction) -> MachineState:
    """EX9E/EXA1 - Skip if key VX pressed/not pressed."""
    key_pressed = key_is_pressed(state.keys, state.V[instruction.x])
    is_not_instruction = (instruction.nn == 0xA1)
    is_known = (instruction.nn == 0x9E) | is_not_instruction

    skip_if_key = make_skip_instruction(lambda state, inst: key_pressed ^ is_not_instruction)

    return jax.lax.cond(
        is_known,
        skip_if_key,
        execute_unknown,
        state, instruction
    )
