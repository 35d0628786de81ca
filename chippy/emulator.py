"""Main CHIP-8 emulator execution engine."""

from functools import partial

import jax
import jax.lax
import jax.numpy as jnp
from chippy.state import EmulatorState
from chippy.decode import Op, decode
from chippy.constants import PROGRAM_START, MEMORY_SIZE, FAULT_NONE
from chippy.errors import ProgramTooLargeError
from chippy.logging import fori_loop_with_progress
from chippy.instructions.system import no_op, execute_clear_screen, execute_return
from chippy.instructions.control_flow import (
    execute_jump, execute_call, execute_skip_if_equal_immediate,
    execute_skip_if_not_equal_immediate, execute_skip_if_equal_register,
    execute_skip_if_not_equal_register, execute_jump_with_offset,
    execute_skip_if_key_pressed, execute_skip_if_key_released
)
from chippy.instructions.alu import (
    execute_alu_set, execute_alu_or, execute_alu_and, execute_alu_xor, execute_alu_add,
    execute_alu_sub_xy, execute_alu_shift_right, execute_alu_sub_yx, execute_alu_shift_left
)
from chippy.instructions.memory import execute_set, execute_add, execute_set_index, execute_random
from chippy.instructions.display import execute_display
from chippy.instructions.misc import (
    execute_get_delay_timer, execute_wait_for_key, execute_set_delay_timer,
    execute_set_sound_timer, execute_add_to_index, execute_font_character,
    execute_bcd_conversion, execute_store_registers, execute_load_registers
)


HANDLERS = {
    Op.NOOP: no_op,
    Op.CLEAR_SCREEN: execute_clear_screen,
    Op.RETURN: execute_return,
    Op.JUMP: execute_jump,
    Op.CALL: execute_call,
    Op.SKIP_EQ_IMM: execute_skip_if_equal_immediate,
    Op.SKIP_NE_IMM: execute_skip_if_not_equal_immediate,
    Op.SKIP_EQ_REG: execute_skip_if_equal_register,
    Op.SET_IMM: execute_set,
    Op.ADD_IMM: execute_add,
    Op.MOV: execute_alu_set,
    Op.OR: execute_alu_or,
    Op.AND: execute_alu_and,
    Op.XOR: execute_alu_xor,
    Op.ADD: execute_alu_add,
    Op.SUB: execute_alu_sub_xy,
    Op.SHR: execute_alu_shift_right,
    Op.SUBN: execute_alu_sub_yx,
    Op.SHL: execute_alu_shift_left,
    Op.SKIP_NE_REG: execute_skip_if_not_equal_register,
    Op.SET_INDEX: execute_set_index,
    Op.JUMP_OFFSET: execute_jump_with_offset,
    Op.RANDOM: execute_random,
    Op.DRAW: execute_display,
    Op.SKIP_KEY_PRESSED: execute_skip_if_key_pressed,
    Op.SKIP_KEY_RELEASED: execute_skip_if_key_released,
    Op.GET_DELAY: execute_get_delay_timer,
    Op.WAIT_KEY: execute_wait_for_key,
    Op.SET_DELAY: execute_set_delay_timer,
    Op.SET_SOUND: execute_set_sound_timer,
    Op.ADD_INDEX: execute_add_to_index,
    Op.FONT: execute_font_character,
    Op.BCD: execute_bcd_conversion,
    Op.STORE: execute_store_registers,
    Op.LOAD: execute_load_registers,
}

DISPATCH_TABLE = [HANDLERS[op] for op in Op]


@jax.jit
def execute(state: EmulatorState, instruction: int) -> EmulatorState:
    """Execute single CHIP-8 instruction."""
    decoded_instruction = decode(instruction)
    return jax.lax.switch(decoded_instruction.op, DISPATCH_TABLE, state, decoded_instruction)


def _pack_u16(high: jnp.uint8, low: jnp.uint8) -> jnp.uint16:
    """Pack two bytes into uint16."""
    return (high.astype(jnp.uint16) << 8) | low.astype(jnp.uint16)


def fetch(state: EmulatorState) -> tuple[EmulatorState, jnp.uint16]:
    """Fetch next instruction from memory."""
    instruction = _pack_u16(state.memory[state.pc], state.memory[state.pc + 1])
    return state.replace(pc=state.pc + 2), instruction


def step(state: EmulatorState) -> EmulatorState:
    """Fetch and execute one instruction. A faulted machine stays put."""
    def _step(state):
        state, instruction = fetch(state)
        return execute(state, instruction)

    return jax.lax.cond(state.fault == FAULT_NONE, _step, lambda s: s, state)


@jax.jit
def tick(state: EmulatorState) -> EmulatorState:
    """One fetch-decode-execute cycle."""
    return step(state)


@jax.jit
def tick_timers(state: EmulatorState) -> EmulatorState:
    """Decrement the delay and sound timers, stopping at zero."""
    return state.replace(
        delay_timer=jnp.where(state.delay_timer > 0, state.delay_timer - 1, state.delay_timer),
        sound_timer=jnp.where(state.sound_timer > 0, state.sound_timer - 1, state.sound_timer),
    )


def set_key(state: EmulatorState, index: int, pressed: bool) -> EmulatorState:
    """Set the pressed state of key ``index`` (0x0-0xF)."""
    return state.replace(keypad=state.keypad.at[index].set(pressed))


def set_keys(state: EmulatorState, keys) -> EmulatorState:
    """Overwrite the whole keypad with 16 booleans."""
    return state.replace(keypad=jnp.asarray(keys, dtype=jnp.bool_).reshape(state.keypad.shape))


def get_display(state: EmulatorState) -> jnp.ndarray:
    """Flat row-major display buffer; pixel (x, y) is at ``y * 64 + x``."""
    return state.display


def load_program(state: EmulatorState, data: bytes) -> EmulatorState:
    """Copy raw program bytes into memory starting at 0x200.

    Works on a single state or on a batch created with ``jax.vmap``.
    """
    if PROGRAM_START + len(data) > MEMORY_SIZE:
        raise ProgramTooLargeError(len(data), MEMORY_SIZE - PROGRAM_START)
    program = jnp.array(list(data), dtype=jnp.uint8)
    new_memory = state.memory.at[..., PROGRAM_START:PROGRAM_START + len(data)].set(program)
    return state.replace(memory=new_memory)


def load_rom(state: EmulatorState, filename: str) -> EmulatorState:
    """Load ROM data into CHIP-8 memory starting at 0x200."""
    with open(filename, 'rb') as f:
        rom_data = f.read()
    return load_program(state, rom_data)


def run_instruction(state, _):
    state = step(state)
    return state, None


@partial(jax.jit, static_argnums=1)
def run_n_instructions(state: EmulatorState, n: int) -> EmulatorState:
    """Run ``n`` instructions in a single compiled loop."""
    state, _ = jax.lax.scan(run_instruction, state, length=n)
    return state


@partial(jax.jit, static_argnums=2)
def run_frame(state: EmulatorState, keys: jnp.ndarray, instructions_per_frame: int) -> EmulatorState:
    """Advance one host frame: tick timers, write keys, run instructions."""
    state = set_keys(tick_timers(state), keys)
    state, _ = jax.lax.scan(run_instruction, state, length=instructions_per_frame)
    return state


@partial(jax.jit, static_argnums=2)
def run_frames(state: EmulatorState, keys: jnp.ndarray, instructions_per_frame: int):
    """Run one frame per row of ``keys`` (shape ``(num_frames, 16)``).

    Returns:
        Tuple of the final state and the display after every frame, with
        shape ``(num_frames, 64 * 32)``.
    """
    def frame(state, frame_keys):
        state = run_frame(state, frame_keys, instructions_per_frame)
        return state, state.display

    return jax.lax.scan(frame, state, keys)


@partial(jax.jit, static_argnums=1)
def run_batch(states: EmulatorState, n: int) -> EmulatorState:
    """Run ``n`` instructions on a batch of independent machines."""
    return jax.vmap(lambda state: run_n_instructions(state, n))(states)


def run_with_progress(state: EmulatorState, n: int, print_rate: int = None, desc: str = None) -> EmulatorState:
    """Like ``run_n_instructions`` but reports progress with a tqdm bar."""
    @fori_loop_with_progress(n, print_rate, desc or f"Running ({n:,} instructions)")
    def body(i, state):
        return step(state)

    return jax.jit(lambda state: jax.lax.fori_loop(0, n, body, state))(state)
