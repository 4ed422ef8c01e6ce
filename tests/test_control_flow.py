"""Tests for control flow instructions."""

import pytest
from chipax import execute, key_down, halt_code, HaltCode


class TestJump:
    """Test jump instructions."""

    def test_execute_jump(self, fresh_state):
        """Test 1NNN - Jump to address."""
        state = execute(fresh_state, 0x1ABC)
        assert state.pc == 0xABC

    def test_jump_with_offset(self, fresh_state):
        """BNNN - Jump to NNN + V0."""
        state = fresh_state.replace(V=fresh_state.V.at[0].set(0x10))
        state = execute(state, 0xB300)
        assert state.pc == 0x310

    def test_jump_with_offset_ignores_vx(self, fresh_state):
        """BNNN always uses V0, whatever the second nibble."""
        state = fresh_state.replace(V=fresh_state.V.at[0].set(0x02).at[3].set(0x40))
        state = execute(state, 0xB300)
        assert state.pc == 0x302

    def test_jump_with_offset_wraps_address(self, fresh_state):
        state = fresh_state.replace(V=fresh_state.V.at[0].set(0xFF))
        state = execute(state, 0xBFFF)
        assert state.pc == (0xFFF + 0xFF) & 0xFFF


class TestSkipInstructions:
    """Test all skip instruction variants."""

    def test_skip_if_equal_immediate_true(self, fresh_state):
        """3XNN - Should skip when VX == NN."""
        state = fresh_state.replace(V=fresh_state.V.at[5].set(0x42))
        initial_pc = state.pc

        state = execute(state, 0x3542)  # Skip if V5 == 0x42
        assert state.pc == initial_pc + 2

    def test_skip_if_equal_immediate_false(self, fresh_state):
        """3XNN - Should not skip when VX != NN."""
        state = fresh_state.replace(V=fresh_state.V.at[5].set(0x41))
        initial_pc = state.pc

        state = execute(state, 0x3542)
        assert state.pc == initial_pc

    def test_skip_if_not_equal_immediate_true(self, fresh_state):
        """4XNN - Should skip when VX != NN."""
        state = fresh_state.replace(V=fresh_state.V.at[3].set(0x10))
        initial_pc = state.pc

        state = execute(state, 0x4320)  # Skip if V3 != 0x20
        assert state.pc == initial_pc + 2

    def test_skip_if_not_equal_immediate_false(self, fresh_state):
        """4XNN - Should not skip when VX == NN."""
        state = fresh_state.replace(V=fresh_state.V.at[3].set(0x20))
        initial_pc = state.pc

        state = execute(state, 0x4320)
        assert state.pc == initial_pc

    def test_skip_if_equal_register_true(self, fresh_state):
        """5XY0 - Should skip when VX == VY."""
        state = fresh_state.replace(V=fresh_state.V.at[1].set(0x55).at[2].set(0x55))
        initial_pc = state.pc

        state = execute(state, 0x5120)  # Skip if V1 == V2
        assert state.pc == initial_pc + 2

    def test_skip_if_equal_register_false(self, fresh_state):
        state = fresh_state.replace(V=fresh_state.V.at[1].set(0x55).at[2].set(0x56))
        initial_pc = state.pc

        state = execute(state, 0x5120)
        assert state.pc == initial_pc

    def test_skip_if_not_equal_register_true(self, fresh_state):
        """9XY0 - Should skip when VX != VY."""
        state = fresh_state.replace(V=fresh_state.V.at[1].set(0x01).at[2].set(0x02))
        initial_pc = state.pc

        state = execute(state, 0x9120)
        assert state.pc == initial_pc + 2

    def test_skip_if_not_equal_register_false(self, fresh_state):
        state = fresh_state.replace(V=fresh_state.V.at[1].set(0x02).at[2].set(0x02))
        initial_pc = state.pc

        state = execute(state, 0x9120)
        assert state.pc == initial_pc


class TestKeySkips:
    """EX9E / EXA1 read the key mask."""

    def test_skip_if_key_pressed(self, fresh_state):
        state = key_down(fresh_state.replace(V=fresh_state.V.at[2].set(0xA)), 0xA)
        initial_pc = state.pc

        state = execute(state, 0xE29E)
        assert state.pc == initial_pc + 2

    def test_no_skip_if_key_released(self, fresh_state):
        state = key_down(fresh_state.replace(V=fresh_state.V.at[2].set(0xA)), 0xB)
        initial_pc = state.pc

        state = execute(state, 0xE29E)
        assert state.pc == initial_pc

    def test_skip_if_key_not_pressed(self, fresh_state):
        state = fresh_state.replace(V=fresh_state.V.at[2].set(0x3))
        initial_pc = state.pc

        state = execute(state, 0xE2A1)
        assert state.pc == initial_pc + 2

    def test_no_skip_if_key_not_pressed_but_held(self, fresh_state):
        state = key_down(fresh_state.replace(V=fresh_state.V.at[2].set(0x3)), 0x3)
        initial_pc = state.pc

        state = execute(state, 0xE2A1)
        assert state.pc == initial_pc

    def test_out_of_range_key_is_never_pressed(self, fresh_state):
        """VX >= 16 does not alias onto a real key."""
        state = key_down(fresh_state, 0x0)
        state = state.replace(V=state.V.at[2].set(0x10))
        initial_pc = state.pc

        assert execute(state, 0xE29E).pc == initial_pc
        assert execute(state, 0xE2A1).pc == initial_pc + 2

    @pytest.mark.parametrize("opcode", [0xE200, 0xE29F, 0xE2FF])
    def test_unknown_key_instruction_halts(self, fresh_state, opcode):
        state = execute(fresh_state, opcode)
        assert halt_code(state) == HaltCode.UNKNOWN_INSTRUCTION
