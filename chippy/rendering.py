"""CHIP-8 rendering utilities for visualization."""
import time

import jax.numpy as jnp
import numpy as np
from typing import Tuple
import cv2

from PIL import Image

from chippy.constants import SCREEN_WIDTH, SCREEN_HEIGHT


COLOR_SCHEMES = {
    "chippy": ((179, 102, 184), (45, 25, 61)),
    "classic": ((0, 255, 0), (0, 0, 0)),  # Green on black
    "amber": ((255, 176, 0), (0, 0, 0)),  # Amber on black
    "white": ((255, 255, 255), (0, 0, 0)),  # White on black
    "blue": ((0, 255, 255), (0, 0, 64)),  # Cyan on dark blue
    "retro": ((255, 255, 0), (64, 0, 64)),  # Yellow on purple
}


def display_to_grid(display: jnp.ndarray) -> np.ndarray:
    """Reshape flat display buffer(s) to ``(..., 32, 64)`` indexed ``[y, x]``."""
    pixels = np.asarray(display, dtype=np.bool_)
    return pixels.reshape(*pixels.shape[:-1], SCREEN_HEIGHT, SCREEN_WIDTH)


def chip8_display_to_rgb(
    display: jnp.ndarray,
    scale: int = 8,
    on_color: Tuple[int, int, int] = (0, 255, 0),
    off_color: Tuple[int, int, int] = (0, 0, 0),
) -> np.ndarray:
    """Convert CHIP-8 boolean display to RGB array with optional upscaling.

    Args:
        display: Flat boolean array of 64 * 32 pixels, row-major
        scale: Upscaling factor for better visibility (default: 8x)
        on_color: RGB color for "on" pixels (default: green)
        off_color: RGB color for "off" pixels (default: black)

    Returns:
        RGB array of shape (height*scale, width*scale, 3) with uint8 values
    """
    pixels = display_to_grid(display)
    height, width = pixels.shape

    rgb_frame = np.zeros((height, width, 3), dtype=np.uint8)

    rgb_frame[pixels] = on_color
    rgb_frame[~pixels] = off_color

    # Nearest neighbor upscaling
    if scale > 1:
        rgb_frame = np.repeat(np.repeat(rgb_frame, scale, axis=0), scale, axis=1)

    return rgb_frame


def create_color_scheme(
    scheme: str = "chippy",
) -> Tuple[Tuple[int, int, int], Tuple[int, int, int]]:
    """Get predefined color schemes for CHIP-8 rendering.

    Args:
        scheme: Color scheme name ("chippy", "classic", "amber", "white", "blue", "retro")

    Returns:
        Tuple of (on_color, off_color) as RGB tuples
    """
    if scheme not in COLOR_SCHEMES:
        raise ValueError(
            f"Unknown color scheme '{scheme}'. Available: {list(COLOR_SCHEMES.keys())}"
        )

    return COLOR_SCHEMES[scheme]


def save_frame(display: jnp.ndarray, filename: str, scale: int = 8, color_scheme: str = "chippy") -> None:
    """Save a single display buffer as an image file."""
    on_color, off_color = create_color_scheme(color_scheme)
    rgb = chip8_display_to_rgb(display, scale, on_color, off_color)
    Image.fromarray(rgb).save(filename)


def create_video(
        displays: jnp.ndarray,
        filename: str = None,
        fps: float = 60.0,
        scale: int = 8,
        color_scheme: str = "chippy",
        persistence: bool = True,
        display: bool = False
) -> None:
    """Display and/or save CHIP-8 video with optional phosphor persistence.

    Args:
        displays: Display buffers of shape (N, 64 * 32), e.g. from ``run_frames``
        filename: If provided, save video to this MP4 file
        fps: Video frame rate
        scale: Upscaling factor
        color_scheme: Color scheme for rendering
        persistence: Enable phosphor screen simulation (smooth fading)
        display: If True, show video in window (press 'q' to quit, space to pause)
    """
    if filename is None and not display:
        return
    displays = np.asarray(displays)
    if displays.ndim != 2 or displays.shape[1] != SCREEN_WIDTH * SCREEN_HEIGHT:
        raise ValueError(f"Expected display shape (N, {SCREEN_WIDTH * SCREEN_HEIGHT}), got {displays.shape}")
    frames = display_to_grid(displays)

    height, width = SCREEN_HEIGHT * scale, SCREEN_WIDTH * scale
    on_color, off_color = np.array(create_color_scheme(color_scheme))

    writer = None
    if filename:
        fourcc = cv2.VideoWriter_fourcc(*'mp4v')
        writer = cv2.VideoWriter(filename, fourcc, fps, (width, height))

    if display:
        window_name = "CHIP-8 Video (q=quit, space=pause)"
        cv2.namedWindow(window_name, cv2.WINDOW_AUTOSIZE)

    # Phosphor glow buffer
    glow = np.zeros((SCREEN_HEIGHT, SCREEN_WIDTH), dtype=np.float32) if persistence else None
    decay = 0.8

    frame_delay = 1.0 / fps if display else 0
    paused = False

    try:
        for i, frame_display in enumerate(frames):
            start_time = time.time()

            if persistence:
                glow = np.clip(glow * decay + frame_display.astype(np.float32), 0.0, 1.0)
                pixel_values = glow
            else:
                pixel_values = frame_display.astype(np.float32)

            frame = np.zeros((SCREEN_HEIGHT, SCREEN_WIDTH, 3), dtype=np.uint8)
            for c in range(3):
                frame[:, :, c] = off_color[c] + pixel_values * (on_color[c] - off_color[c])

            if scale > 1:
                frame = np.repeat(np.repeat(frame, scale, axis=0), scale, axis=1)
            frame_bgr = cv2.cvtColor(frame, cv2.COLOR_RGB2BGR)

            if writer:
                writer.write(frame_bgr)

            if display:
                cv2.putText(frame_bgr, f"Frame {i + 1}/{len(frames)}",
                            (10, 25), cv2.FONT_HERSHEY_SIMPLEX, 0.7, (255, 255, 255), 2)
                cv2.imshow(window_name, frame_bgr)

                key = cv2.waitKey(1) & 0xFF
                if key == ord('q') or key == 27:  # 'q' or ESC
                    break
                elif key == ord(' '):
                    paused = not paused

                while paused:
                    key = cv2.waitKey(30) & 0xFF
                    if key == ord(' '):
                        paused = False
                    elif key == ord('q') or key == 27:
                        return

                sleep_time = frame_delay - (time.time() - start_time)
                if sleep_time > 0:
                    time.sleep(sleep_time)

    finally:
        if writer:
            writer.release()
        if display:
            cv2.destroyAllWindows()
