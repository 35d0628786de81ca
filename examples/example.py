"""Run a small built-in program headless and render what it drew."""

import jax.numpy as jnp

from chippy import create_state, load_program, run_frames
from chippy.rendering import save_frame, create_video


# Draws the glyphs 0-F in two rows of eight, then spins
HEX_DIGITS = [
    0x6000,  # 200: V0 = 0 (digit)
    0x6102,  # 202: V1 = 2 (x)
    0x6202,  # 204: V2 = 2 (y)
    0xF029,  # 206: I = glyph for V0
    0xD125,  # 208: draw at (V1, V2)
    0x7107,  # 20A: V1 += 7
    0x7001,  # 20C: V0 += 1
    0x4008,  # 20E: skip next if V0 != 8
    0x1218,  # 210: start second row
    0x3010,  # 212: skip next if V0 == 16
    0x1206,  # 214: next digit
    0x1216,  # 216: spin
    0x6102,  # 218: V1 = 2
    0x620A,  # 21A: V2 = 10
    0x1206,  # 21C: next digit
]


def build_rom(instructions):
    return b"".join(instruction.to_bytes(2, "big") for instruction in instructions)


if __name__ == "__main__":
    state = load_program(create_state(), build_rom(HEX_DIGITS))

    keys = jnp.zeros((120, 16), dtype=jnp.bool_)
    state, displays = run_frames(state, keys, 20)

    save_frame(displays[-1], "hex_digits.png", scale=8)
    print("Saved hex_digits.png")

    create_video(displays, display=True)
