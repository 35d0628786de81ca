"""CHIP-8 emulator state structures."""

import jax
import jax.numpy as jnp
from flax.struct import dataclass, field, PyTreeNode

from chippy.constants import (
    PROGRAM_START, FONT_START, FONT_DATA, FONT_SIZE, SCREEN_WIDTH, SCREEN_HEIGHT,
    STACK_SIZE, MEMORY_SIZE, NUM_REGISTERS, NUM_KEYS, FAULT_NONE,
)


@dataclass(frozen=True)
class StackState:
    """Call stack for subroutine return addresses."""
    data: jnp.ndarray = field(default_factory=lambda: jnp.zeros(STACK_SIZE, dtype=jnp.uint16))
    pointer: jnp.ndarray = field(default_factory=lambda: jnp.zeros((), dtype=jnp.uint16))


class EmulatorState(PyTreeNode):
    """Complete CHIP-8 machine state.

    The display is a flat row-major boolean buffer: pixel ``(x, y)`` lives at
    ``y * SCREEN_WIDTH + x``. ``V[15]`` doubles as the flag register.
    ``fault`` holds one of the ``FAULT_*`` codes; a nonzero value halts the
    machine.
    """
    rng: jax.random.PRNGKey
    memory: jnp.ndarray = field(default_factory=lambda: jnp.zeros(MEMORY_SIZE, dtype=jnp.uint8))
    pc: jnp.ndarray = field(default_factory=lambda: jnp.asarray(PROGRAM_START, dtype=jnp.uint16))
    display: jnp.ndarray = field(default_factory=lambda: jnp.zeros(SCREEN_WIDTH * SCREEN_HEIGHT, dtype=jnp.bool_))
    stack: StackState = field(default_factory=StackState)
    delay_timer: jnp.ndarray = field(default_factory=lambda: jnp.zeros((), dtype=jnp.uint8))
    sound_timer: jnp.ndarray = field(default_factory=lambda: jnp.zeros((), dtype=jnp.uint8))
    keypad: jnp.ndarray = field(default_factory=lambda: jnp.zeros(NUM_KEYS, dtype=jnp.bool_))
    V: jnp.ndarray = field(default_factory=lambda: jnp.zeros(NUM_REGISTERS, dtype=jnp.uint8))
    I: jnp.ndarray = field(default_factory=lambda: jnp.zeros((), dtype=jnp.uint16))
    fault: jnp.ndarray = field(default_factory=lambda: jnp.asarray(FAULT_NONE, dtype=jnp.uint8))


def create_state(rng: jax.random.PRNGKey = jax.random.PRNGKey(0)) -> EmulatorState:
    """Create initial emulator state with font data loaded."""
    state = EmulatorState(rng)
    return state.replace(memory=state.memory.at[FONT_START:FONT_START + FONT_SIZE].set(FONT_DATA))


def reset(state: EmulatorState) -> EmulatorState:
    """Return the power-on state, keeping the random key of ``state``."""
    return create_state(state.rng)


def set_fault(state: EmulatorState, code: int) -> EmulatorState:
    """Record a machine fault; every other field is left untouched."""
    return state.replace(fault=jnp.astype(code, jnp.uint8))
