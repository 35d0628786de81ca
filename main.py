"""
Interactive CHIP-8 player
"""

import sys

import numpy as np
import pygame

from chippy import Interpreter, MachineFault, SCREEN_WIDTH, SCREEN_HEIGHT
from chippy.config import EmulatorConfig
from chippy.logging import SessionLogger
from chippy.rendering import create_color_scheme


def build_key_map(config: EmulatorConfig):
    """Translate key names from the config into pygame key codes."""
    return {pygame.key.key_code(name): index for name, index in config.key_map.items()}


def build_beep(config: EmulatorConfig):
    """Square wave of one period, looped while the sound timer runs."""
    sample_rate, size, channels = pygame.mixer.get_init()
    period = int(round(sample_rate / config.beep_frequency))
    amplitude = int((2 ** (abs(size) - 1) - 1) * config.volume)
    wave = np.where(np.arange(period) < period / 2, amplitude, -amplitude).astype(np.int16)
    if channels > 1:
        wave = np.repeat(wave[:, None], channels, axis=1)
    return pygame.sndarray.make_sound(np.ascontiguousarray(wave))


def draw_display(screen, display, scale, on_color, off_color):
    screen.fill(off_color)
    for y in range(SCREEN_HEIGHT):
        for x in range(SCREEN_WIDTH):
            if display[y * SCREEN_WIDTH + x]:
                rect = pygame.Rect(x * scale, y * scale, scale, scale)
                pygame.draw.rect(screen, on_color, rect)


def run_emulator(rom_filename, config: EmulatorConfig = None):
    """Main emulator loop: one frame per 1/fps seconds."""
    config = config or EmulatorConfig()
    logger = SessionLogger(log_level=config.log_level)

    pygame.mixer.pre_init(44100, -16, 1)
    pygame.init()
    screen = pygame.display.set_mode((SCREEN_WIDTH * config.scale, SCREEN_HEIGHT * config.scale))
    pygame.display.set_caption("chippy")
    clock = pygame.time.Clock()

    key_map = build_key_map(config)
    beep = build_beep(config)
    on_color, off_color = create_color_scheme(config.color_scheme)

    interpreter = Interpreter(logger=logger)
    try:
        interpreter.load_rom(rom_filename)
    except (OSError, ValueError) as e:
        logger.error(f"Could not load {rom_filename}: {e}")
        pygame.quit()
        return

    keypad = np.zeros(16, dtype=np.bool_)
    running = True
    paused = False
    beeping = False

    logger.info("Controls: ESC=Quit, P=Pause, Backspace=Reset")

    while running:
        clock.tick(config.fps)

        for event in pygame.event.get():
            if event.type == pygame.QUIT:
                running = False
            elif event.type == pygame.KEYDOWN:
                if event.key == pygame.K_ESCAPE:
                    running = False
                elif event.key == pygame.K_p:
                    paused = not paused
                elif event.key == pygame.K_BACKSPACE:
                    interpreter.reset()
                    interpreter.load_rom(rom_filename)
                    keypad[:] = False
                    paused = False
                elif event.key in key_map:
                    keypad[key_map[event.key]] = True
            elif event.type == pygame.KEYUP:
                if event.key in key_map:
                    keypad[key_map[event.key]] = False

        if not paused:
            try:
                interpreter.run_frame(keypad, config.instructions_per_frame)
            except MachineFault:
                paused = True

        if interpreter.sound_timer > 0 and not beeping:
            beep.play(loops=-1)
            beeping = True
        elif interpreter.sound_timer == 0 and beeping:
            beep.stop()
            beeping = False

        draw_display(screen, interpreter.get_display(), config.scale, on_color, off_color)
        pygame.display.flip()

    logger.log_session_end()
    pygame.quit()


if __name__ == "__main__":
    if len(sys.argv) != 2:
        print("usage: python main.py ROM")
        sys.exit(2)
    run_emulator(sys.argv[1])
