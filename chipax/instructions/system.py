"""CHIP-8 system instructions (0x0xxx) and halting."""

import jax
import jax.lax
import jax.numpy as jnp
from chipax.state import MachineState, HaltCode
from chipax.decode import DecodedInstruction
from chipax.stack import pop, is_empty


def no_op(state: MachineState, instruction: DecodedInstruction) -> MachineState:
    """No operation."""
    return state


def halt(state: MachineState, code: HaltCode) -> MachineState:
    """Stop the machine with the given halt code."""
    return state.replace(halt_code=jnp.asarray(int(code), dtype=jnp.uint8))


def execute_unknown(state: MachineState, instruction: DecodedInstruction) -> MachineState:
    """Unrecognised opcode."""
    return halt(state, HaltCode.UNKNOWN_INSTRUCTION)


def execute_clear_screen(state: MachineState, instruction: DecodedInstruction) -> MachineState:
    """00E0 - Clear display."""
    return state.replace(display=jnp.zeros_like(state.display))


def execute_return(state: MachineState, instruction: DecodedInstruction) -> MachineState:
    """00EE - Return from subroutine, halting on an empty stack."""
    def _return(state):
        stack, address = pop(state.stack)
        return state.replace(stack=stack, pc=address)

    return jax.lax.cond(
        is_empty(state.stack),
        lambda state: halt(state, HaltCode.STACK_UNDERFLOW),
        _return,
        state
    )


def execute_system_instruction(state: MachineState, instruction: DecodedInstruction) -> MachineState:
    """Dispatch system instructions.

    Any 0NNN other than 00E0 and 00EE would call native machine code on the
    original hardware; it is skipped here.
    """
    return jax.lax.cond(
        0x00E0 == instruction.raw,
        execute_clear_screen,
        lambda state, instruction: jax.lax.cond(
            0x00EE == instruction.raw,
            execute_return,
            no_op,
            state, instruction
        ),
        state, instruction
    )
