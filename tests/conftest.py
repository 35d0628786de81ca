"""Test configuration and fixtures for CHIP-8 emulator tests."""

import pytest
import jax.numpy as jnp
from chippy import create_state, load_program, SCREEN_WIDTH


@pytest.fixture
def fresh_state():
    """Provide a fresh emulator state for each test."""
    return create_state()


def setup_sprite_in_memory(state, address, sprite_bytes):
    """Helper to put sprite data in memory."""
    return state.replace(
        memory=state.memory.at[address:address+len(sprite_bytes)].set(
            jnp.array(sprite_bytes, dtype=jnp.uint8)
        )
    )


def setup_program(state, instructions):
    """Helper to load a list of 16-bit instructions at 0x200."""
    data = b"".join(instruction.to_bytes(2, "big") for instruction in instructions)
    return load_program(state, data)


def pixel(state, x, y):
    """Read pixel (x, y) from the flat display buffer."""
    return bool(state.display[y * SCREEN_WIDTH + x])
