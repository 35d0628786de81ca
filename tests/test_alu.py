"""Tests for ALU operations (8xxx)."""

import jax
import jax.numpy as jnp
import numpy as np
import pytest
from chippy import execute


def with_registers(state, **registers):
    """Set registers by name, e.g. ``with_registers(state, V1=0x10)``."""
    V = state.V
    for name, value in registers.items():
        V = V.at[int(name[1:], 16)].set(value)
    return state.replace(V=V)


class TestBasicALU:
    """Test basic ALU operations."""

    def test_alu_set_basic(self, fresh_state):
        """8XY0 - Set VX = VY."""
        state = with_registers(fresh_state, V1=0x42, V2=0x99)

        state = execute(state, 0x8120)  # V1 = V2

        assert state.V[1] == 0x99
        assert state.V[2] == 0x99

    def test_alu_or_basic(self, fresh_state):
        """8XY1 - OR operation."""
        state = with_registers(fresh_state, V1=0xF0, V2=0x0F)

        state = execute(state, 0x8121)  # V1 |= V2

        assert state.V[1] == 0xFF

    def test_alu_and_basic(self, fresh_state):
        """8XY2 - AND operation."""
        state = with_registers(fresh_state, V1=0xF0, V2=0xF1)

        state = execute(state, 0x8122)  # V1 &= V2

        assert state.V[1] == 0xF0

    def test_alu_xor_basic(self, fresh_state):
        """8XY3 - XOR operation."""
        state = with_registers(fresh_state, V1=0xFF, V2=0xF0)

        state = execute(state, 0x8123)  # V1 ^= V2

        assert state.V[1] == 0x0F

    @pytest.mark.parametrize("instruction", [0x8120, 0x8121, 0x8122, 0x8123])
    def test_logic_ops_leave_vf(self, fresh_state, instruction):
        """Logic ops do not touch the flag register."""
        state = with_registers(fresh_state, V1=0x0F, V2=0xF0, VF=0x07)

        state = execute(state, instruction)

        assert state.V[15] == 0x07


class TestALUArithmetic:
    """Test arithmetic ALU operations."""

    def test_alu_add_no_carry(self, fresh_state):
        """8XY4 - Add without carry."""
        state = with_registers(fresh_state, V1=0x10, V2=0x20)

        state = execute(state, 0x8124)  # V1 += V2

        assert state.V[1] == 0x30
        assert state.V[15] == 0

    def test_alu_add_with_carry(self, fresh_state):
        """8XY4 - Add with carry."""
        state = with_registers(fresh_state, V1=0xFF, V2=0x01)

        state = execute(state, 0x8124)  # V1 += V2

        assert state.V[1] == 0x00  # 256 wraps to 0
        assert state.V[15] == 1

    def test_alu_add_exactly_255(self, fresh_state):
        """8XY4 - 255 fits, no carry."""
        state = with_registers(fresh_state, V1=0xF0, V2=0x0F, VF=1)

        state = execute(state, 0x8124)

        assert state.V[1] == 0xFF
        assert state.V[15] == 0

    def test_alu_sub_xy_no_borrow(self, fresh_state):
        """8XY5 - Subtract VX - VY, no borrow."""
        state = with_registers(fresh_state, V1=0x30, V2=0x10)

        state = execute(state, 0x8125)  # V1 -= V2

        assert state.V[1] == 0x20
        assert state.V[15] == 1

    def test_alu_sub_xy_with_borrow(self, fresh_state):
        """8XY5 - Subtract VX - VY, with borrow."""
        state = with_registers(fresh_state, V3=0x10, V4=0x30)

        state = execute(state, 0x8345)  # V3 -= V4

        assert state.V[3] == 0xE0  # 16 - 48 = -32 → 224
        assert state.V[15] == 0

    def test_alu_sub_xy_equal(self, fresh_state):
        """8XY5 - Equal operands do not borrow."""
        state = with_registers(fresh_state, V3=0x42, V4=0x42)

        state = execute(state, 0x8345)

        assert state.V[3] == 0
        assert state.V[15] == 1

    def test_alu_sub_yx_no_borrow(self, fresh_state):
        """8XY7 - Subtract VY - VX, no borrow."""
        state = with_registers(fresh_state, V1=0x10, V2=0x30)

        state = execute(state, 0x8127)  # V1 = V2 - V1

        assert state.V[1] == 0x20
        assert state.V[15] == 1

    def test_alu_sub_yx_with_borrow(self, fresh_state):
        """8XY7 - Subtract VY - VX, with borrow."""
        state = with_registers(fresh_state, V1=0x30, V2=0x10)

        state = execute(state, 0x8127)

        assert state.V[1] == 0xE0
        assert state.V[15] == 0


@pytest.fixture(scope="module")
def operand_grid():
    """Every (VX, VY) byte pair, flattened."""
    a, b = np.meshgrid(np.arange(256), np.arange(256), indexing="ij")
    return a.ravel(), b.ravel()


class TestFlagsExhaustive:
    """Check flag rules for every pair of byte values at once."""

    def run_all(self, state, instruction, a, b):
        def run_one(va, vb):
            V = state.V.at[1].set(jnp.astype(va, jnp.uint8)).at[2].set(jnp.astype(vb, jnp.uint8))
            result = execute(state.replace(V=V), instruction)
            return result.V[1], result.V[15]

        results, flags = jax.jit(jax.vmap(run_one))(jnp.asarray(a), jnp.asarray(b))
        return np.asarray(results, dtype=np.int64), np.asarray(flags, dtype=np.int64)

    def test_add_all_pairs(self, fresh_state, operand_grid):
        a, b = operand_grid
        results, flags = self.run_all(fresh_state, 0x8124, a, b)

        np.testing.assert_array_equal(results, (a + b) % 256)
        np.testing.assert_array_equal(flags, (a + b > 255).astype(np.int64))

    def test_sub_all_pairs(self, fresh_state, operand_grid):
        a, b = operand_grid
        results, flags = self.run_all(fresh_state, 0x8125, a, b)

        np.testing.assert_array_equal(results, (a - b) % 256)
        np.testing.assert_array_equal(flags, (a >= b).astype(np.int64))

    def test_subn_all_pairs(self, fresh_state, operand_grid):
        a, b = operand_grid
        results, flags = self.run_all(fresh_state, 0x8127, a, b)

        np.testing.assert_array_equal(results, (b - a) % 256)
        np.testing.assert_array_equal(flags, (b >= a).astype(np.int64))


class TestALUShifts:
    """Test shift operations. VY is ignored."""

    def test_shift_right_even(self, fresh_state):
        """8XY6 - Shift right, even number."""
        state = with_registers(fresh_state, V1=0x04, V2=0xFF)

        state = execute(state, 0x8126)  # V1 >>= 1

        assert state.V[1] == 0x02
        assert state.V[15] == 0

    def test_shift_right_odd(self, fresh_state):
        """8XY6 - Shift right, odd number."""
        state = with_registers(fresh_state, V3=0x05, V4=0xFF)

        state = execute(state, 0x8346)  # V3 >>= 1

        assert state.V[3] == 0x02
        assert state.V[15] == 1

    def test_shift_left_overflow(self, fresh_state):
        """8XYE - Shift left with overflow."""
        state = with_registers(fresh_state, V3=0x81, V4=0xFF)

        state = execute(state, 0x834E)  # V3 <<= 1

        assert state.V[3] == 0x02  # 129 << 1 = 258 → 2
        assert state.V[15] == 1

    def test_shift_left_no_overflow(self, fresh_state):
        """8XYE - Shift left, high bit clear."""
        state = with_registers(fresh_state, V3=0x41, VF=1)

        state = execute(state, 0x834E)

        assert state.V[3] == 0x82
        assert state.V[15] == 0

    @pytest.mark.parametrize("value", [0x00, 0x01, 0x7F, 0x80, 0xAA, 0xFF])
    def test_shift_flags(self, fresh_state, value):
        """Both shifts report the bit that falls off."""
        state = with_registers(fresh_state, V5=value)

        right = execute(state, 0x8506)
        left = execute(state, 0x850E)

        assert right.V[15] == value & 1
        assert right.V[5] == value >> 1
        assert left.V[15] == value >> 7
        assert left.V[5] == (value << 1) & 0xFF


class TestALUEdgeCases:
    """Test edge cases and comprehensive scenarios."""

    def test_alu_undefined_operations(self, fresh_state):
        """Undefined 8XYN variants change nothing."""
        undefined_ops = [0x8, 0x9, 0xA, 0xB, 0xC, 0xD, 0xF]

        for op in undefined_ops:
            state = with_registers(fresh_state, V1=0x42, V2=0x99, VF=0x05)

            state = execute(state, 0x8120 | op)

            assert state.V[1] == 0x42, f"Undefined op {op:X} changed VX"
            assert state.V[15] == 0x05, f"Undefined op {op:X} changed VF"

    def test_alu_self_operations(self, fresh_state):
        """Test operations where VX and VY are the same register."""
        state = with_registers(fresh_state, V5=0xAA)

        state = execute(state, 0x8553)
        assert state.V[5] == 0x00, "Self XOR should result in 0"

        state = with_registers(state, V5=0x80)
        state = execute(state, 0x8554)  # V5 += V5
        assert state.V[5] == 0x00, "Self ADD should wrap on overflow"
        assert state.V[15] == 1, "Self ADD should set carry flag"

    def test_vf_register_operations(self, fresh_state):
        """VF as a source operand is read before being overwritten."""
        state = with_registers(fresh_state, VF=0x42, V1=0x10)

        state = execute(state, 0x81F4)  # V1 += VF
        assert state.V[1] == 0x52
        assert state.V[15] == 0

    def test_flag_wins_when_target_is_vf(self, fresh_state):
        """With X = F the flag overwrites the arithmetic result."""
        state = with_registers(fresh_state, VF=0xFF, V1=0x01)

        state = execute(state, 0x8F14)  # VF += V1 → 0, carry 1

        assert state.V[15] == 1
