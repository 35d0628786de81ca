"""Console logging utilities for Chippy sessions.

This module provides a small print-based logger for the interactive host and
the ``Interpreter`` façade, plus real-time progress bars for long compiled
runs using io_callback.
"""

import functools
import sys
import time
from typing import Optional, Callable, Tuple

import jax
from jax.experimental import io_callback

from tqdm import tqdm


LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR")

_LEVEL_COLORS = {
    "DEBUG": "\033[36m",
    "INFO": "\033[32m",
    "WARNING": "\033[33m",
    "ERROR": "\033[31m",
}
_RESET_COLOR = "\033[0m"


class ConsoleLogger:
    """Print-based logger with a level threshold, elapsed-time prefix and colors."""

    def __init__(
        self,
        name: str = "Chippy",
        log_level: str = "INFO",
        use_colors: bool = True,
        show_timestamps: bool = True,
    ):
        self.log_level = log_level.upper()
        if self.log_level not in LOG_LEVELS:
            raise ValueError(f"Unknown log level '{log_level}'. Available: {list(LOG_LEVELS)}")

        self.name = name
        self.use_colors = use_colors and getattr(sys.stdout, "isatty", lambda: False)()
        self.show_timestamps = show_timestamps
        self.start_time = time.time()

    def log(self, level: str, message: str):
        if LOG_LEVELS.index(level) < LOG_LEVELS.index(self.log_level):
            return

        tag = f"[{level:>8s}]"
        if self.use_colors:
            tag = f"{_LEVEL_COLORS[level]}{tag}{_RESET_COLOR}"
        stamp = f"[{time.time() - self.start_time:8.2f}s]" if self.show_timestamps else ""
        print(f"{stamp}{tag}[{self.name}] {message}", flush=True)

    def debug(self, message: str):
        self.log("DEBUG", message)

    def info(self, message: str):
        self.log("INFO", message)

    def warning(self, message: str):
        self.log("WARNING", message)

    def error(self, message: str):
        self.log("ERROR", message)


class SessionLogger(ConsoleLogger):
    """Logger for an emulator session, tracking executed instructions.

    Throughput is reported at DEBUG level at most once per ``stats_interval``
    seconds, measured since the previous report or the last reset.
    """

    def __init__(self, name: str = "Chippy", stats_interval: float = 5.0, **kwargs):
        super().__init__(name, **kwargs)
        self.stats_interval = stats_interval
        self._reset_counters()

    def _reset_counters(self):
        self.instruction_count = 0
        self.frame_count = 0
        self.last_stats_time = time.perf_counter()
        self.last_stats_instructions = 0
        self.last_stats_frames = 0

    def log_program_loaded(self, source: str, size: int):
        self.info(f"Loaded {source} ({size} bytes)")

    def log_reset(self):
        self.info("Machine reset")
        self._reset_counters()

    def log_fault(self, error: Exception):
        self.error(f"Machine halted: {error}")

    def record(self, instructions: int, frames: int = 0):
        """Count executed work and emit throughput every ``stats_interval`` seconds."""
        self.instruction_count += instructions
        self.frame_count += frames

        now = time.perf_counter()
        elapsed = now - self.last_stats_time
        if elapsed <= 0 or elapsed < self.stats_interval:
            return

        ips = (self.instruction_count - self.last_stats_instructions) / elapsed
        fps = (self.frame_count - self.last_stats_frames) / elapsed
        self.debug(
            f"{self.instruction_count:,} instructions | CPU: {ips:.0f} Hz | FPS: {fps:.1f}"
        )
        self.last_stats_time = now
        self.last_stats_instructions = self.instruction_count
        self.last_stats_frames = self.frame_count

    def log_session_end(self):
        elapsed = time.time() - self.start_time
        self.info(
            f"Session ended after {elapsed:.1f}s: "
            f"{self.instruction_count:,} instructions, {self.frame_count:,} frames"
        )


def build_tqdm_progress_bar(
    n: int,
    print_rate: Optional[int] = None,
    desc: str = None,
    **tqdm_kwargs,
) -> Tuple[Callable, Callable]:
    """Build ``(update, close)`` hooks that drive a tqdm bar from compiled code.

    ``update(i)`` opens the bar at step 0 and advances it every ``print_rate``
    steps; ``close(result, i)`` closes it after step ``n - 1`` and passes
    ``result`` through.
    """
    if print_rate is None:
        print_rate = max(1, min(n // 20, 50))
    else:
        print_rate = max(1, min(print_rate, n))
    remainder = n % print_rate
    desc = desc or f"Running ({n:,} steps)"
    bars = []

    def _open():
        bars.append(tqdm(total=n, desc=desc, unit="step", **tqdm_kwargs))

    def _advance(steps):
        if bars:
            bars[-1].update(int(steps))

    def _close():
        if bars:
            bars.pop().close()

    def _call_if(predicate, callback, *args):
        jax.lax.cond(
            predicate,
            lambda: io_callback(callback, None, *args, ordered=True),
            lambda: None,
        )

    def update(iter_num):
        _call_if(iter_num == 0, _open)
        _call_if((iter_num + 1) % print_rate == 0, _advance, print_rate)
        if remainder:
            _call_if(iter_num == n - 1, _advance, remainder)

    def close(result, iter_num):
        _call_if(iter_num == n - 1, _close)
        return result

    return update, close


def fori_loop_with_progress(
    n: int,
    print_rate: Optional[int] = None,
    desc: str = None,
    **tqdm_kwargs,
) -> Callable:
    """Decorate a ``jax.lax.fori_loop`` body so the loop reports progress."""
    update, close = build_tqdm_progress_bar(n, print_rate, desc, **tqdm_kwargs)

    def decorator(body):
        @functools.wraps(body)
        def body_with_progress(i, carry):
            update(i)
            return close(body(i, carry), i)

        return body_with_progress

    return decorator
