"""CHIP-8 display operations."""

import jax.numpy as jnp
from chippy.state import EmulatorState
from chippy.decode import DecodedInstruction
from chippy.constants import SCREEN_WIDTH, SCREEN_HEIGHT, MEMORY_SIZE

# A sprite is at most 15 rows of 8 pixels
SPRITE_ROWS = jnp.arange(16)
SPRITE_COLS = jnp.arange(8)


def execute_display(state: EmulatorState, instruction: DecodedInstruction) -> EmulatorState:
    """DXYN - Draw sprite at (VX, VY) with height N.

    Every pixel wraps around the screen edges on its own, so a sprite drawn
    across the right edge continues on the left. VF is set when any lit
    pixel is switched off.
    """
    sprite_x = jnp.astype(state.V[instruction.x], jnp.int32) % SCREEN_WIDTH
    sprite_y = jnp.astype(state.V[instruction.y], jnp.int32) % SCREEN_HEIGHT

    addresses = (jnp.astype(state.I, jnp.int32) + SPRITE_ROWS) % MEMORY_SIZE
    sprite_bytes = jnp.astype(state.memory[addresses], jnp.int32)
    bits = (sprite_bytes[:, None] >> (7 - SPRITE_COLS)[None, :]) & 1
    visible = (SPRITE_ROWS < instruction.n)[:, None]
    sprite_bits = (bits == 1) & visible

    xs = (sprite_x + SPRITE_COLS) % SCREEN_WIDTH
    ys = (sprite_y + SPRITE_ROWS) % SCREEN_HEIGHT
    pixel_index = ys[:, None] * SCREEN_WIDTH + xs[None, :]

    # 16 rows and 8 columns never alias after wrapping
    sprite = jnp.zeros_like(state.display).at[pixel_index.ravel()].set(sprite_bits.ravel())
    collision = jnp.any(state.display & sprite)

    return state.replace(
        display=state.display ^ sprite,
        V=state.V.at[0xF].set(jnp.astype(collision, jnp.uint8))
    )
