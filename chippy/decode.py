"""CHIP-8 instruction decoding."""

from enum import IntEnum

import jax.numpy as jnp
from chex import dataclass


class Op(IntEnum):
    """Instruction tags, in dispatch-table order."""
    NOOP = 0
    CLEAR_SCREEN = 1
    RETURN = 2
    JUMP = 3
    CALL = 4
    SKIP_EQ_IMM = 5
    SKIP_NE_IMM = 6
    SKIP_EQ_REG = 7
    SET_IMM = 8
    ADD_IMM = 9
    MOV = 10
    OR = 11
    AND = 12
    XOR = 13
    ADD = 14
    SUB = 15
    SHR = 16
    SUBN = 17
    SHL = 18
    SKIP_NE_REG = 19
    SET_INDEX = 20
    JUMP_OFFSET = 21
    RANDOM = 22
    DRAW = 23
    SKIP_KEY_PRESSED = 24
    SKIP_KEY_RELEASED = 25
    GET_DELAY = 26
    WAIT_KEY = 27
    SET_DELAY = 28
    SET_SOUND = 29
    ADD_INDEX = 30
    FONT = 31
    BCD = 32
    STORE = 33
    LOAD = 34


# (mask, pattern, tag): an instruction matches a row when
# ``instruction & mask == pattern``. Rows are mutually exclusive.
OPCODE_TABLE = [
    (0xFFFF, 0x00E0, Op.CLEAR_SCREEN),
    (0xFFFF, 0x00EE, Op.RETURN),
    (0xF000, 0x1000, Op.JUMP),
    (0xF000, 0x2000, Op.CALL),
    (0xF000, 0x3000, Op.SKIP_EQ_IMM),
    (0xF000, 0x4000, Op.SKIP_NE_IMM),
    (0xF00F, 0x5000, Op.SKIP_EQ_REG),
    (0xF000, 0x6000, Op.SET_IMM),
    (0xF000, 0x7000, Op.ADD_IMM),
    (0xF00F, 0x8000, Op.MOV),
    (0xF00F, 0x8001, Op.OR),
    (0xF00F, 0x8002, Op.AND),
    (0xF00F, 0x8003, Op.XOR),
    (0xF00F, 0x8004, Op.ADD),
    (0xF00F, 0x8005, Op.SUB),
    (0xF00F, 0x8006, Op.SHR),
    (0xF00F, 0x8007, Op.SUBN),
    (0xF00F, 0x800E, Op.SHL),
    (0xF00F, 0x9000, Op.SKIP_NE_REG),
    (0xF000, 0xA000, Op.SET_INDEX),
    (0xF000, 0xB000, Op.JUMP_OFFSET),
    (0xF000, 0xC000, Op.RANDOM),
    (0xF000, 0xD000, Op.DRAW),
    (0xF0FF, 0xE09E, Op.SKIP_KEY_PRESSED),
    (0xF0FF, 0xE0A1, Op.SKIP_KEY_RELEASED),
    (0xF0FF, 0xF007, Op.GET_DELAY),
    (0xF0FF, 0xF00A, Op.WAIT_KEY),
    (0xF0FF, 0xF015, Op.SET_DELAY),
    (0xF0FF, 0xF018, Op.SET_SOUND),
    (0xF0FF, 0xF01E, Op.ADD_INDEX),
    (0xF0FF, 0xF029, Op.FONT),
    (0xF0FF, 0xF033, Op.BCD),
    (0xF0FF, 0xF055, Op.STORE),
    (0xF0FF, 0xF065, Op.LOAD),
]

_MASKS = jnp.array([mask for mask, _, _ in OPCODE_TABLE], dtype=jnp.uint16)
_PATTERNS = jnp.array([pattern for _, pattern, _ in OPCODE_TABLE], dtype=jnp.uint16)
_TAGS = jnp.array([int(tag) for _, _, tag in OPCODE_TABLE], dtype=jnp.int32)


@dataclass(frozen=True)
class DecodedInstruction:
    """Decoded CHIP-8 instruction with extracted operands."""
    raw: jnp.ndarray
    op: jnp.ndarray  # Op tag
    x: jnp.ndarray   # Second nibble (VX register)
    y: jnp.ndarray   # Third nibble (VY register)
    n: jnp.ndarray   # Fourth nibble (4-bit immediate)
    nn: jnp.ndarray  # Last byte (8-bit immediate)
    nnn: jnp.ndarray # Last 12 bits (12-bit address)


def decode_op(instruction) -> jnp.ndarray:
    """Map a 16-bit instruction to its ``Op`` tag, ``Op.NOOP`` when unmatched."""
    instruction = jnp.asarray(instruction, dtype=jnp.uint16)
    matches = (instruction & _MASKS) == _PATTERNS
    return jnp.where(jnp.any(matches), _TAGS[jnp.argmax(matches)], jnp.int32(Op.NOOP))


def decode(instruction) -> DecodedInstruction:
    """Decode 16-bit instruction into a tag and its operand fields."""
    instruction = jnp.asarray(instruction, dtype=jnp.uint16)
    return DecodedInstruction(
        raw=instruction,
        op=decode_op(instruction),
        x=(instruction & 0x0F00) >> 8,
        y=(instruction & 0x00F0) >> 4,
        n=instruction & 0x000F,
        nn=instruction & 0x00FF,
        nnn=instruction & 0x0FFF
    )
