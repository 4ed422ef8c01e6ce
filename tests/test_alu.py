"""Tests for ALU operations (8xxx)."""

import pytest
from chipax import execute, halt_code, HaltCode


class TestBasicALU:
    """Test basic ALU operations."""

    def test_alu_set_basic(self, fresh_state):
        """8XY0 - Set VX = VY."""
        state = fresh_state
        state = state.replace(V=state.V.at[1].set(0x42))
        state = state.replace(V=state.V.at[2].set(0x99))

        state = execute(state, 0x8120)  # V1 = V2

        assert state.V[1] == 0x99
        assert state.V[2] == 0x99

    def test_alu_set_leaves_flag(self, fresh_state):
        """8XY0 does not touch VF."""
        state = fresh_state.replace(V=fresh_state.V.at[15].set(0x55).at[2].set(0x01))

        state = execute(state, 0x8120)

        assert state.V[15] == 0x55

    def test_alu_or_basic(self, fresh_state):
        """8XY1 - OR operation."""
        state = fresh_state
        state = state.replace(V=state.V.at[1].set(0xF0))
        state = state.replace(V=state.V.at[2].set(0x0F))

        state = execute(state, 0x8121)  # V1 |= V2

        assert state.V[1] == 0xFF
        assert state.V[15] == 0

    def test_alu_and_basic(self, fresh_state):
        """8XY2 - AND operation."""
        state = fresh_state
        state = state.replace(V=state.V.at[1].set(0xF0))
        state = state.replace(V=state.V.at[2].set(0xF1))

        state = execute(state, 0x8122)  # V1 &= V2

        assert state.V[1] == 0xF0
        assert state.V[15] == 0

    def test_alu_xor_basic(self, fresh_state):
        """8XY3 - XOR operation."""
        state = fresh_state
        state = state.replace(V=state.V.at[1].set(0xFF))
        state = state.replace(V=state.V.at[2].set(0x0F))

        state = execute(state, 0x8123)  # V1 ^= V2

        assert state.V[1] == 0xF0
        assert state.V[15] == 0

    @pytest.mark.parametrize("opcode", [0x8121, 0x8122, 0x8123])
    def test_logic_ops_clear_flag(self, fresh_state, opcode):
        """8XY1/2/3 always leave VF = 0."""
        state = fresh_state.replace(V=fresh_state.V.at[15].set(1).at[1].set(0xAA).at[2].set(0x55))

        state = execute(state, opcode)

        assert state.V[15] == 0


class TestArithmetic:
    """Test add and subtract with flags."""

    def test_add_with_carry(self, fresh_state):
        """8XY4 - 0xFF + 0x01 wraps and sets carry."""
        state = fresh_state.replace(V=fresh_state.V.at[1].set(0xFF).at[2].set(0x01))

        state = execute(state, 0x8124)

        assert state.V[1] == 0x00
        assert state.V[15] == 1

    def test_add_without_carry(self, fresh_state):
        """8XY4 - 0x01 + 0x01 has no carry."""
        state = fresh_state.replace(V=fresh_state.V.at[1].set(0x01).at[2].set(0x01).at[15].set(1))

        state = execute(state, 0x8124)

        assert state.V[1] == 0x02
        assert state.V[15] == 0

    def test_sub_xy_no_borrow(self, fresh_state):
        """8XY5 - VX >= VY sets VF."""
        state = fresh_state.replace(V=fresh_state.V.at[1].set(5).at[2].set(3))

        state = execute(state, 0x8125)

        assert state.V[1] == 2
        assert state.V[15] == 1

    def test_sub_xy_equal_operands(self, fresh_state):
        """8XY5 - equal operands count as no borrow."""
        state = fresh_state.replace(V=fresh_state.V.at[1].set(7).at[2].set(7))

        state = execute(state, 0x8125)

        assert state.V[1] == 0
        assert state.V[15] == 1

    def test_sub_xy_borrow(self, fresh_state):
        """8XY5 - borrow wraps the result and clears VF."""
        state = fresh_state.replace(V=fresh_state.V.at[1].set(3).at[2].set(5))

        state = execute(state, 0x8125)

        assert state.V[1] == 0xFE
        assert state.V[15] == 0

    def test_sub_yx(self, fresh_state):
        """8XY7 - VX = VY - VX."""
        state = fresh_state.replace(V=fresh_state.V.at[1].set(3).at[2].set(5))

        state = execute(state, 0x8127)

        assert state.V[1] == 2
        assert state.V[15] == 1

    def test_sub_yx_borrow(self, fresh_state):
        """8XY7 - borrow clears VF."""
        state = fresh_state.replace(V=fresh_state.V.at[1].set(5).at[2].set(3))

        state = execute(state, 0x8127)

        assert state.V[1] == 0xFE
        assert state.V[15] == 0

    def test_flag_register_as_destination(self, fresh_state):
        """8FY4 - the flag is written after the result."""
        state = fresh_state.replace(V=fresh_state.V.at[15].set(0x10).at[1].set(0x01))

        state = execute(state, 0x8F14)

        assert state.V[15] == 0


class TestShifts:
    """Shifts read VY and store into VX."""

    def test_shift_right_uses_vy(self, fresh_state):
        """8XY6 - VX = VY >> 1, VF = old bit 0 of VY."""
        state = fresh_state.replace(V=fresh_state.V.at[1].set(0xFF).at[2].set(0x05))

        state = execute(state, 0x8126)

        assert state.V[1] == 0x02
        assert state.V[2] == 0x05
        assert state.V[15] == 1

    def test_shift_right_even(self, fresh_state):
        state = fresh_state.replace(V=fresh_state.V.at[2].set(0x04).at[15].set(1))

        state = execute(state, 0x8126)

        assert state.V[1] == 0x02
        assert state.V[15] == 0

    def test_shift_left_uses_vy(self, fresh_state):
        """8XYE - VX = VY << 1, VF = old bit 7 of VY."""
        state = fresh_state.replace(V=fresh_state.V.at[1].set(0x00).at[2].set(0x81))

        state = execute(state, 0x812E)

        assert state.V[1] == 0x02
        assert state.V[2] == 0x81
        assert state.V[15] == 1

    def test_shift_left_no_carry(self, fresh_state):
        state = fresh_state.replace(V=fresh_state.V.at[2].set(0x41))

        state = execute(state, 0x812E)

        assert state.V[1] == 0x82
        assert state.V[15] == 0


class TestUndefinedALU:
    """Unknown 8XYN variants halt the machine."""

    @pytest.mark.parametrize("opcode", [0x8128, 0x812A, 0x812D, 0x812F])
    def test_unknown_alu_operation_halts(self, fresh_state, opcode):
        state = fresh_state.replace(V=fresh_state.V.at[1].set(0x33))

        state = execute(state, opcode)

        assert halt_code(state) == HaltCode.UNKNOWN_INSTRUCTION
        assert state.V[1] == 0x33
