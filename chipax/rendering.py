"""CHIP-8 rendering utilities for visualization."""

import jax.numpy as jnp
import numpy as np
from typing import Tuple

from PIL import Image

from chipax.constants import SCREEN_WIDTH, SCREEN_HEIGHT, DISPLAY_SIZE


def display_to_pixels(display: jnp.ndarray) -> np.ndarray:
    """Packed 256-byte display to a (32, 64) boolean array."""
    packed = np.asarray(display, dtype=np.uint8)
    if packed.shape != (DISPLAY_SIZE,):
        raise ValueError(f"Expected packed display of shape ({DISPLAY_SIZE},), got {packed.shape}")
    return np.unpackbits(packed).reshape(SCREEN_HEIGHT, SCREEN_WIDTH).astype(np.bool_)


def chip8_display_to_rgb(
    display: jnp.ndarray,
    scale: int = 8,
    on_color: Tuple[int, int, int] = (255, 255, 255),
    off_color: Tuple[int, int, int] = (0, 0, 0),
) -> np.ndarray:
    """Convert the packed CHIP-8 display to an RGB array with optional upscaling.

    Args:
        display: Packed uint8 array of shape (256,), as stored in ``MachineState.display``
        scale: Upscaling factor for better visibility (default: 8x)
        on_color: RGB color for "on" pixels (default: white)
        off_color: RGB color for "off" pixels (default: black)

    Returns:
        RGB array of shape (32*scale, 64*scale, 3) with uint8 values
    """
    pixels = display_to_pixels(display)
    height, width = pixels.shape

    rgb_frame = np.zeros((height, width, 3), dtype=np.uint8)

    rgb_frame[pixels] = on_color
    rgb_frame[~pixels] = off_color

    # Apply upscaling using nearest neighbor interpolation
    if scale > 1:
        rgb_frame = np.repeat(np.repeat(rgb_frame, scale, axis=0), scale, axis=1)

    return rgb_frame


def create_color_scheme(
    scheme: str = "classic",
) -> Tuple[Tuple[int, int, int], Tuple[int, int, int]]:
    """Get predefined color schemes for CHIP-8 rendering.

    Args:
        scheme: Color scheme name ("classic", "green", "amber", "blue", "retro")

    Returns:
        Tuple of (on_color, off_color) as RGB tuples
    """
    schemes = {
        "classic": ((255, 255, 255), (0, 0, 0)),  # White on black
        "green": ((0, 255, 0), (0, 0, 0)),  # Green on black
        "amber": ((255, 176, 0), (0, 0, 0)),  # Amber on black
        "blue": ((0, 255, 255), (0, 0, 64)),  # Cyan on dark blue
        "retro": ((255, 255, 0), (64, 0, 64)),  # Yellow on purple
    }

    if scheme not in schemes:
        raise ValueError(
            f"Unknown color scheme '{scheme}'. Available: {list(schemes.keys())}"
        )

    return schemes[scheme]


def batch_render(
    displays: jnp.ndarray, scale: int = 4, color_scheme: str = "classic"
) -> np.ndarray:
    """Render the displays of several machines in a grid layout.

    Args:
        displays: Array of shape (batch_size, 256), e.g. the display of a
            vmapped ``MachineState``
        scale: Upscaling factor (smaller for batch rendering)
        color_scheme: Color scheme name

    Returns:
        RGBA array showing all displays in a grid with transparent padding
    """
    displays = np.asarray(displays)
    batch_size = displays.shape[0]
    on_color, off_color = create_color_scheme(color_scheme)

    padding = 5  # space between displays in pixels

    grid_cols = int(np.ceil(np.sqrt(batch_size)))
    grid_rows = int(np.ceil(batch_size / grid_cols))

    rendered_displays = []
    for i in range(batch_size):
        rgb = chip8_display_to_rgb(displays[i], scale, on_color, off_color)
        rgba = np.concatenate([rgb, 255 * np.ones((*rgb.shape[:2], 1), dtype=np.uint8)], axis=-1)
        rendered_displays.append(rgba)

    while len(rendered_displays) < grid_rows * grid_cols:
        rendered_displays.append(np.zeros_like(rendered_displays[0]))

    display_height, display_width = rendered_displays[0].shape[:2]
    grid_height = grid_rows * display_height + (grid_rows - 1) * padding
    grid_width = grid_cols * display_width + (grid_cols - 1) * padding
    grid_image = np.zeros((grid_height, grid_width, 4), dtype=np.uint8)  # RGBA

    for i, rendered in enumerate(rendered_displays):
        row = i // grid_cols
        col = i % grid_cols
        y_start = row * (display_height + padding)
        x_start = col * (display_width + padding)
        grid_image[y_start:y_start + display_height, x_start:x_start + display_width] = rendered

    return grid_image


def save_frame(display: jnp.ndarray, filename: str, scale: int = 8, color_scheme: str = "classic") -> None:
    """Write the current display to an image file (format from the extension)."""
    on_color, off_color = create_color_scheme(color_scheme)
    frame = chip8_display_to_rgb(display, scale, on_color, off_color)
    Image.fromarray(frame).save(filename)
