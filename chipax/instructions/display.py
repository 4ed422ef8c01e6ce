"""CHIP-8 display operations on the packed framebuffer."""

import jax
import jax.lax
import jax.numpy as jnp
from chipax.state import MachineState
from chipax.decode import DecodedInstruction
from chipax.constants import SCREEN_WIDTH, SCREEN_HEIGHT, ADDRESS_MASK, FLAG_REGISTER

# Pre-computed coordinate grids for display operations, indexed [row, column]
yy, xx = jnp.meshgrid(jnp.arange(SCREEN_HEIGHT), jnp.arange(SCREEN_WIDTH), indexing='ij')


def unpack_display(display: jnp.ndarray) -> jnp.ndarray:
    """Packed 256-byte display to a (32, 64) boolean pixel grid."""
    return jnp.unpackbits(display).reshape(SCREEN_HEIGHT, SCREEN_WIDTH).astype(jnp.bool_)


def pack_display(pixels: jnp.ndarray) -> jnp.ndarray:
    """(32, 64) pixel grid to the packed 256-byte display, MSB leftmost."""
    return jnp.packbits(jnp.astype(pixels, jnp.uint8).reshape(-1))


def draw_sprite(state: MachineState, instruction: DecodedInstruction) -> MachineState:
    """Composite the sprite at I onto the display and set VF on erasure.

    The origin wraps around the screen, the sprite itself is clipped at the
    right and bottom edges.
    """
    sprite_x = jnp.astype(state.V[instruction.x], jnp.int32) % SCREEN_WIDTH
    sprite_y = jnp.astype(state.V[instruction.y], jnp.int32) % SCREEN_HEIGHT
    height = jnp.astype(instruction.n, jnp.int32)

    in_sprite = (xx >= sprite_x) & (xx < sprite_x + 8) & (yy >= sprite_y) & (yy < sprite_y + height)

    row_offset = yy - sprite_y
    col_offset = jnp.clip(xx - sprite_x, 0, 7)
    sprite_bytes = state.memory[(jnp.astype(state.I, jnp.int32) + row_offset) & ADDRESS_MASK]
    sprite = (((sprite_bytes >> (7 - col_offset)) & 1) == 1) & in_sprite

    before = unpack_display(state.display)
    after = before ^ sprite
    erased = jnp.any(before & sprite & ~after)

    return state.replace(
        display=pack_display(after),
        V=state.V.at[FLAG_REGISTER].set(jnp.astype(erased, jnp.uint8)),
        vblank=jnp.zeros((), dtype=jnp.uint8)
    )


def execute_display(state: MachineState, instruction: DecodedInstruction) -> MachineState:
    """DXYN - Draw sprite at (VX, VY) with height N, at most once per vblank.

    Without a pending vblank the instruction rewinds the program counter so
    it is retried on the next step.
    """
    return jax.lax.cond(
        state.vblank == 0,
        lambda state, instruction: state.replace(pc=state.pc - 2),
        draw_sprite,
        state, instruction
    )
