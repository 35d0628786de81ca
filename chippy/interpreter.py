"""Mutable façade over the functional CHIP-8 core.

``Interpreter`` owns one ``EmulatorState`` and exposes the in-place API a
host loop expects. Machine faults recorded by the compiled core are turned
into ``MachineFault`` exceptions here.
"""

from typing import Optional

import jax
import numpy as np

from chippy import emulator
from chippy.constants import SCREEN_WIDTH, SCREEN_HEIGHT, FAULT_NONE
from chippy.errors import MachineFault, raise_for_fault
from chippy.logging import SessionLogger
from chippy.state import EmulatorState, create_state, reset


class Interpreter:
    """A single CHIP-8 machine.

    Args:
        rng: JAX random key used by CXNN
        logger: Optional session logger; program loads, resets and faults are
            reported to it
    """

    def __init__(self, rng: jax.random.PRNGKey = None, logger: Optional[SessionLogger] = None):
        if rng is None:
            rng = jax.random.PRNGKey(0)
        self.state: EmulatorState = create_state(rng)
        self.logger = logger

    def reset(self):
        """Return the machine to its power-on state. Loaded programs are cleared."""
        self.state = reset(self.state)
        if self.logger:
            self.logger.log_reset()

    def load_program(self, data: bytes, source: str = "program"):
        self.state = emulator.load_program(self.state, data)
        if self.logger:
            self.logger.log_program_loaded(source, len(data))

    def load_rom(self, filename: str):
        with open(filename, 'rb') as f:
            rom_data = f.read()
        self.load_program(rom_data, source=filename)

    def tick(self):
        """Execute one instruction.

        Raises:
            StackOverflowError: CALL with a full stack
            StackUnderflowError: RETURN with an empty stack
        """
        was_halted = self.halted
        self.state = emulator.tick(self.state)
        self._check_fault(was_halted, 1)

    def run(self, n: int):
        """Execute ``n`` instructions in one compiled batch."""
        was_halted = self.halted
        self.state = emulator.run_n_instructions(self.state, n)
        self._check_fault(was_halted, n)

    def run_frame(self, keys, instructions_per_frame: int):
        """Tick timers, write the keypad and run one frame of instructions."""
        was_halted = self.halted
        self.state = emulator.run_frame(self.state, np.asarray(keys, dtype=np.bool_), instructions_per_frame)
        self._check_fault(was_halted, instructions_per_frame, frames=1)

    def _check_fault(self, was_halted: bool, instructions: int, frames: int = 0):
        # a machine halted before the call executed nothing
        if self.logger and not was_halted:
            self.logger.record(instructions, frames)
        try:
            raise_for_fault(self.state)
        except MachineFault as e:
            if self.logger:
                self.logger.log_fault(e)
            raise

    def tick_timers(self):
        self.state = emulator.tick_timers(self.state)

    def set_key(self, index: int, pressed: bool):
        self.state = emulator.set_key(self.state, index, pressed)

    def set_keys(self, keys):
        self.state = emulator.set_keys(self.state, keys)

    def get_display(self) -> np.ndarray:
        """Snapshot of the flat row-major display buffer."""
        return np.asarray(emulator.get_display(self.state))

    def get_display_grid(self) -> np.ndarray:
        """Display snapshot shaped ``(32, 64)``, indexed ``[y, x]``."""
        return self.get_display().reshape(SCREEN_HEIGHT, SCREEN_WIDTH)

    @property
    def halted(self) -> bool:
        return int(self.state.fault) != FAULT_NONE

    @property
    def pc(self) -> int:
        return int(self.state.pc)

    @property
    def registers(self) -> np.ndarray:
        return np.asarray(self.state.V)

    @property
    def index(self) -> int:
        return int(self.state.I)

    @property
    def delay_timer(self) -> int:
        return int(self.state.delay_timer)

    @property
    def sound_timer(self) -> int:
        return int(self.state.sound_timer)
