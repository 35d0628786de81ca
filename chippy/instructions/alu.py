"""CHIP-8 ALU operations (8xxx).

Each ``alu_*`` function maps ``(vx, vy)`` to ``(result, flag)``. A ``None``
flag leaves VF untouched. The flag is written after the result, so it wins
when X is F.
"""

import jax.numpy as jnp
from chippy.state import EmulatorState
from chippy.decode import DecodedInstruction


def alu_set(vx, vy):
    """8XY0 - Set: VX = VY."""
    return vy, None


def alu_or(vx, vy):
    """8XY1 - Binary OR: VX |= VY."""
    return vx | vy, None


def alu_and(vx, vy):
    """8XY2 - Binary AND: VX &= VY."""
    return vx & vy, None


def alu_xor(vx, vy):
    """8XY3 - Logical XOR: VX ^= VY."""
    return vx ^ vy, None


def alu_add(vx, vy):
    """8XY4 - Add: VX += VY, VF = carry."""
    result = jnp.astype(vx, jnp.int32) + jnp.astype(vy, jnp.int32)
    return result & 0xFF, result > 0xFF


def alu_sub_xy(vx, vy):
    """8XY5 - Subtract: VX -= VY, VF = 0 on borrow."""
    result = jnp.astype(vx, jnp.int32) - jnp.astype(vy, jnp.int32)
    return result & 0xFF, result >= 0


def alu_shift_right(vx, vy):
    """8XY6 - Shift right: VX >>= 1, VF = bit shifted out."""
    return vx >> 1, vx & 1


def alu_sub_yx(vx, vy):
    """8XY7 - Subtract: VX = VY - VX, VF = 0 on borrow."""
    result = jnp.astype(vy, jnp.int32) - jnp.astype(vx, jnp.int32)
    return result & 0xFF, result >= 0


def alu_shift_left(vx, vy):
    """8XYE - Shift left: VX <<= 1, VF = bit shifted out."""
    result = (jnp.astype(vx, jnp.int32) << 1) & 0xFF
    return result, (vx >> 7) & 1


def make_alu_instruction(alu_fn):
    """Wrap an ``alu_*`` function into an instruction handler."""
    def alu_instruction(state: EmulatorState, instruction: DecodedInstruction) -> EmulatorState:
        vx = state.V[instruction.x]
        vy = state.V[instruction.y]
        result, flag = alu_fn(vx, vy)

        new_V = state.V.at[instruction.x].set(jnp.astype(result, jnp.uint8))
        if flag is not None:
            new_V = new_V.at[0xF].set(jnp.astype(flag, jnp.uint8))
        return state.replace(V=new_V)

    alu_instruction.__doc__ = alu_fn.__doc__
    return alu_instruction


execute_alu_set = make_alu_instruction(alu_set)
execute_alu_or = make_alu_instruction(alu_or)
execute_alu_and = make_alu_instruction(alu_and)
execute_alu_xor = make_alu_instruction(alu_xor)
execute_alu_add = make_alu_instruction(alu_add)
execute_alu_sub_xy = make_alu_instruction(alu_sub_xy)
execute_alu_shift_right = make_alu_instruction(alu_shift_right)
execute_alu_sub_yx = make_alu_instruction(alu_sub_yx)
execute_alu_shift_left = make_alu_instruction(alu_shift_left)
