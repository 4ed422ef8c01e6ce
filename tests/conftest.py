"""Test configuration and fixtures for CHIP-8 interpreter tests."""

import pytest
import jax.numpy as jnp
from chipax import create_state, load


@pytest.fixture
def fresh_state():
    """Provide a fresh machine state for each test."""
    return create_state()


def program(*opcodes):
    """Big-endian ROM bytes for a sequence of opcodes."""
    return b"".join(opcode.to_bytes(2, "big") for opcode in opcodes)


def load_program(state, *opcodes):
    """Helper to load opcodes at 0x200."""
    return load(state, program(*opcodes))


def setup_sprite_in_memory(state, address, sprite_bytes):
    """Helper to put sprite data in memory."""
    return state.replace(
        memory=state.memory.at[address:address+len(sprite_bytes)].set(
            jnp.array(sprite_bytes, dtype=jnp.uint8)
        )
    )
