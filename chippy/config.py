"""Host configuration for running CHIP-8 programs."""

import dataclasses
from typing import Dict

from chippy.constants import NUM_KEYS
from chippy.logging import LOG_LEVELS
from chippy.rendering import COLOR_SCHEMES


# The keypad layout is:
#   1 2 3 C
#   4 5 6 D
#   7 8 9 E
#   A 0 B F
#
# mapped onto the left block of a QWERTY keyboard:
#   1 2 3 4
#   Q W E R
#   A S D F
#   Z X C V
DEFAULT_KEY_MAP = {
    "1": 0x1, "2": 0x2, "3": 0x3, "4": 0xC,
    "q": 0x4, "w": 0x5, "e": 0x6, "r": 0xD,
    "a": 0x7, "s": 0x8, "d": 0x9, "f": 0xE,
    "z": 0xA, "x": 0x0, "c": 0xB, "v": 0xF,
}


@dataclasses.dataclass(frozen=True)
class EmulatorConfig:
    """Settings for the interactive host.

    Attributes:
        instructions_per_frame: CHIP-8 instructions executed per rendered frame
        fps: Frame rate; timers also tick at this rate
        scale: Upscaling factor of the 64x32 display
        color_scheme: Name of a color scheme from ``chippy.rendering``
        beep_frequency: Tone played while the sound timer is nonzero, in Hz
        volume: Tone volume between 0 and 1
        key_map: Keyboard key name to CHIP-8 key index
        log_level: Console log level; DEBUG adds periodic throughput reports
    """
    instructions_per_frame: int = 20
    fps: int = 60
    scale: int = 10
    color_scheme: str = "classic"
    beep_frequency: float = 440.0
    volume: float = 0.2
    key_map: Dict[str, int] = dataclasses.field(default_factory=lambda: dict(DEFAULT_KEY_MAP))
    log_level: str = "INFO"

    def __post_init__(self):
        if self.instructions_per_frame < 1:
            raise ValueError(f"instructions_per_frame must be positive, got {self.instructions_per_frame}")
        if self.fps < 1:
            raise ValueError(f"fps must be positive, got {self.fps}")
        if self.scale < 1:
            raise ValueError(f"scale must be positive, got {self.scale}")
        if self.color_scheme not in COLOR_SCHEMES:
            raise ValueError(
                f"Unknown color scheme '{self.color_scheme}'. Available: {list(COLOR_SCHEMES.keys())}"
            )
        if not 0.0 <= self.volume <= 1.0:
            raise ValueError(f"volume must be between 0 and 1, got {self.volume}")
        bad_keys = {name: key for name, key in self.key_map.items() if not 0 <= key < NUM_KEYS}
        if bad_keys:
            raise ValueError(f"Key map entries outside 0x0-0xF: {bad_keys}")
        if self.log_level.upper() not in LOG_LEVELS:
            raise ValueError(f"Unknown log level '{self.log_level}'. Available: {list(LOG_LEVELS)}")

    @property
    def instruction_frequency(self) -> int:
        """Effective CPU speed in Hz."""
        return self.instructions_per_frame * self.fps
