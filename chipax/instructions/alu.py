"""CHIP-8 ALU operations (8xxx).

Each operation maps ``(vx, vy)`` to ``(result, flag)``. The result is written
to VX first and the flag to VF afterwards, so ``8FYN`` leaves the flag in VF.
"""

import jax
import jax.lax
import jax.numpy as jnp
from chipax.state import MachineState
from chipax.decode import DecodedInstruction
from chipax.constants import FLAG_REGISTER
from chipax.instructions.system import execute_unknown

_ZERO = jnp.zeros((), dtype=jnp.uint8)


def alu_set(vx: jnp.ndarray, vy: jnp.ndarray) -> tuple[jnp.ndarray, jnp.ndarray]:
    """8XY0 - Set: VX = VY. VF is left alone."""
    return vy, _ZERO


def alu_or(vx: jnp.ndarray, vy: jnp.ndarray) -> tuple[jnp.ndarray, jnp.ndarray]:
    """8XY1 - Binary OR: VX |= VY, VF = 0."""
    return vx | vy, _ZERO


def alu_and(vx: jnp.ndarray, vy: jnp.ndarray) -> tuple[jnp.ndarray, jnp.ndarray]:
    """8XY2 - Binary AND: VX &= VY, VF = 0."""
    return vx & vy, _ZERO


def alu_xor(vx: jnp.ndarray, vy: jnp.ndarray) -> tuple[jnp.ndarray, jnp.ndarray]:
    """8XY3 - Logical XOR: VX ^= VY, VF = 0."""
    return vx ^ vy, _ZERO


def alu_add(vx: jnp.ndarray, vy: jnp.ndarray) -> tuple[jnp.ndarray, jnp.ndarray]:
    """8XY4 - Add: VX += VY, set carry flag."""
    result = jnp.astype(vx, jnp.uint16) + jnp.astype(vy, jnp.uint16)
    carry = jnp.astype(result > 0xFF, jnp.uint8)
    return jnp.astype(result & 0xFF, jnp.uint8), carry


def alu_sub_xy(vx: jnp.ndarray, vy: jnp.ndarray) -> tuple[jnp.ndarray, jnp.ndarray]:
    """8XY5 - Subtract: VX -= VY, VF = 1 when there is no borrow."""
    no_borrow = jnp.astype(vx >= vy, jnp.uint8)
    return vx - vy, no_borrow


def alu_shift_right(vx: jnp.ndarray, vy: jnp.ndarray) -> tuple[jnp.ndarray, jnp.ndarray]:
    """8XY6 - Shift right: VX = VY >> 1, VF = bit shifted out."""
    return vy >> 1, vy & 1


def alu_sub_yx(vx: jnp.ndarray, vy: jnp.ndarray) -> tuple[jnp.ndarray, jnp.ndarray]:
    """8XY7 - Subtract: VX = VY - VX, VF = 1 when there is no borrow."""
    no_borrow = jnp.astype(vy >= vx, jnp.uint8)
    return vy - vx, no_borrow


def alu_shift_left(vx: jnp.ndarray, vy: jnp.ndarray) -> tuple[jnp.ndarray, jnp.ndarray]:
    """8XYE - Shift left: VX = VY << 1, VF = bit shifted out."""
    return vy << 1, (vy >> 7) & 1


def alu_undefined(vx: jnp.ndarray, vy: jnp.ndarray) -> tuple[jnp.ndarray, jnp.ndarray]:
    """Undefined ALU operation, never applied."""
    return vx, _ZERO


ALU_OPERATIONS = [
    alu_set, alu_or, alu_and, alu_xor, alu_add, alu_sub_xy, alu_shift_right, alu_sub_yx,
    alu_undefined, alu_undefined, alu_undefined, alu_undefined, alu_undefined, alu_undefined,
    alu_shift_left, alu_undefined,
]

VALID_OPERATIONS = jnp.array([1, 1, 1, 1, 1, 1, 1, 1, 0, 0, 0, 0, 0, 0, 1, 0], dtype=bool)
WRITES_FLAG = jnp.array([0, 1, 1, 1, 1, 1, 1, 1, 0, 0, 0, 0, 0, 0, 1, 0], dtype=bool)


def execute_alu_operation(state: MachineState, instruction: DecodedInstruction) -> MachineState:
    """8XYN - ALU operations dispatcher."""
    def _apply(state, instruction):
        vx = state.V[instruction.x]
        vy = state.V[instruction.y]
        result, vf = jax.lax.switch(instruction.n, ALU_OPERATIONS, vx, vy)

        new_V = state.V.at[instruction.x].set(jnp.astype(result, jnp.uint8))
        new_V = jnp.where(
            WRITES_FLAG[instruction.n],
            new_V.at[FLAG_REGISTER].set(jnp.astype(vf, jnp.uint8)),
            new_V
        )
        return state.replace(V=new_V)

    return jax.lax.cond(
        VALID_OPERATIONS[instruction.n],
        _apply,
        execute_unknown,
        state, instruction
    )
