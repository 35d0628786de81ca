"""Tests for the mutable Interpreter façade."""

import numpy as np
import pytest
from chippy import (
    Interpreter, StackOverflowError, StackUnderflowError, MachineFault,
    PROGRAM_START, FONT_DATA,
)
from chippy.logging import SessionLogger


def program(*instructions):
    return b"".join(instruction.to_bytes(2, "big") for instruction in instructions)


@pytest.fixture
def interpreter():
    return Interpreter()


class TestLifecycle:
    """Test construction, loading and reset."""

    def test_initial_state(self, interpreter):
        assert interpreter.pc == PROGRAM_START
        assert interpreter.index == 0
        assert not interpreter.halted
        np.testing.assert_array_equal(interpreter.registers, np.zeros(16))
        np.testing.assert_array_equal(np.asarray(interpreter.state.memory[:80]), np.asarray(FONT_DATA))

    def test_add_scenario(self, interpreter):
        interpreter.load_program(program(0x6005, 0x6103, 0x8014))

        for _ in range(3):
            interpreter.tick()

        assert interpreter.registers[0] == 8
        assert interpreter.registers[15] == 0
        assert interpreter.pc == PROGRAM_START + 6

    def test_reset_clears_program(self, interpreter):
        interpreter.load_program(program(0x6005))
        interpreter.tick()

        interpreter.reset()

        assert interpreter.pc == PROGRAM_START
        assert interpreter.registers[0] == 0
        assert int(interpreter.state.memory[PROGRAM_START]) == 0

    def test_load_rom(self, interpreter, tmp_path):
        rom = tmp_path / "add.ch8"
        rom.write_bytes(program(0x6A07))

        interpreter.load_rom(str(rom))
        interpreter.tick()

        assert interpreter.registers[0xA] == 7

    def test_independent_instances(self):
        first, second = Interpreter(), Interpreter()
        first.load_program(program(0x6001))
        first.tick()

        assert first.registers[0] == 1
        assert second.registers[0] == 0
        assert second.pc == PROGRAM_START


class TestFaults:
    """Machine faults surface as exceptions."""

    def test_stack_underflow_raises(self, interpreter):
        interpreter.load_program(program(0x00EE))

        with pytest.raises(StackUnderflowError) as excinfo:
            interpreter.tick()

        assert excinfo.value.pc == PROGRAM_START
        assert interpreter.halted

    def test_stack_overflow_raises(self, interpreter):
        interpreter.load_program(program(0x2200))  # calls itself forever

        with pytest.raises(StackOverflowError) as excinfo:
            interpreter.run(20)

        assert excinfo.value.pc == PROGRAM_START
        assert int(interpreter.state.stack.pointer) == 16

    def test_faults_share_base_class(self, interpreter):
        interpreter.load_program(program(0x00EE))
        with pytest.raises(MachineFault):
            interpreter.tick()

    def test_halted_machine_keeps_raising(self, interpreter):
        interpreter.load_program(program(0x00EE))
        with pytest.raises(StackUnderflowError):
            interpreter.tick()
        with pytest.raises(StackUnderflowError):
            interpreter.tick()

    def test_reset_clears_fault(self, interpreter):
        interpreter.load_program(program(0x00EE))
        with pytest.raises(StackUnderflowError):
            interpreter.tick()

        interpreter.reset()

        assert not interpreter.halted


class TestHostSurface:
    """Keys, timers and display."""

    def test_wait_for_key(self, interpreter):
        interpreter.load_program(program(0xF20A))

        interpreter.tick()
        assert interpreter.pc == PROGRAM_START

        interpreter.set_key(9, True)
        interpreter.tick()

        assert interpreter.registers[2] == 9
        assert interpreter.pc == PROGRAM_START + 2

    def test_sound_timer(self, interpreter):
        interpreter.load_program(program(0x6002, 0xF018))
        interpreter.run(2)
        assert interpreter.sound_timer == 2

        interpreter.tick_timers()
        interpreter.tick_timers()
        interpreter.tick_timers()

        assert interpreter.sound_timer == 0

    def test_display_snapshot(self, interpreter):
        interpreter.load_program(program(0xD005))  # glyph 0 at (0, 0)
        interpreter.tick()

        grid = interpreter.get_display_grid()

        assert grid.shape == (32, 64)
        assert grid[0, :4].all()
        assert grid[1, 0] and not grid[1, 1]
        assert interpreter.get_display().sum() == 14

    def test_run_frame(self, interpreter):
        interpreter.load_program(program(0xE19E, 0x7001, 0x1200))
        keys = np.zeros(16, dtype=bool)
        keys[0] = True  # V1 == 0, so key 0 is the one tested

        interpreter.run_frame(keys, 1)

        assert interpreter.pc == PROGRAM_START + 4
        assert interpreter.registers[0] == 0
        assert interpreter.state.keypad[0]

    def test_set_keys(self, interpreter):
        keys = np.zeros(16, dtype=bool)
        keys[[1, 15]] = True

        interpreter.set_keys(keys)

        assert interpreter.state.keypad[1] and interpreter.state.keypad[15]
        assert int(interpreter.state.keypad.sum()) == 2


class TestLogging:
    """The façade reports to a session logger."""

    def test_logs_load_and_fault(self, capsys):
        logger = SessionLogger(use_colors=False, show_timestamps=False)
        interpreter = Interpreter(logger=logger)

        interpreter.load_program(program(0x00EE), source="bad.ch8")
        with pytest.raises(StackUnderflowError):
            interpreter.tick()

        out = capsys.readouterr().out
        assert "Loaded bad.ch8 (2 bytes)" in out
        assert "Stack underflow at 0x200" in out
        assert logger.instruction_count == 1

    def test_throughput_restarts_after_reset(self, capsys):
        logger = SessionLogger(stats_interval=0.0, log_level="DEBUG", use_colors=False, show_timestamps=False)
        interpreter = Interpreter(logger=logger)
        interpreter.load_program(program(0x1200))  # jump to self

        interpreter.run(10_000)
        interpreter.reset()
        interpreter.load_program(program(0x1200))
        interpreter.run(100)

        stats = [line for line in capsys.readouterr().out.splitlines() if "CPU:" in line]
        assert len(stats) == 2
        assert stats[-1].endswith("FPS: 0.0")
        assert "] 100 instructions" in stats[-1]
        assert "CPU: -" not in stats[-1]
        assert logger.instruction_count == 100

    def test_halted_machine_records_nothing(self):
        logger = SessionLogger(use_colors=False, show_timestamps=False)
        interpreter = Interpreter(logger=logger)
        interpreter.load_program(program(0x00EE))

        with pytest.raises(StackUnderflowError):
            interpreter.tick()
        with pytest.raises(StackUnderflowError):
            interpreter.run(50)
        with pytest.raises(StackUnderflowError):
            interpreter.run_frame(np.zeros(16, dtype=bool), 20)

        assert logger.instruction_count == 1
        assert logger.frame_count == 0

    def test_unknown_log_level_rejected(self):
        with pytest.raises(ValueError):
            SessionLogger(log_level="VERBOSE")
