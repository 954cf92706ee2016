from typing import Tuple
import numpy as np
import cv2

from stitchgrid.config import (
    SUGGEST_BASE, SUGGEST_MAX, SUGGEST_MIN, InvalidInputError
)


def _clamp(x: int, lo: int, hi: int) -> int:
    return min(hi, max(lo, x))


def _round_half_up(x: float) -> int:
    return int(np.floor(x + 0.5))


def suggest_grid_size(
    image_width: int,
    image_height: int,
    base: int = SUGGEST_BASE,
    min_size: int = SUGGEST_MIN,
    max_size: int = SUGGEST_MAX,
) -> Tuple[int, int]:
    """
    Pick a (grid_width, grid_height) matching the image aspect ratio.
    The short side gets `base` cells, the long side is scaled up from it;
    both are clamped to [min_size, max_size].
    """
    if image_width <= 0 or image_height <= 0:
        raise InvalidInputError(f"Image dimensions must be positive, got {image_width}x{image_height}")
    aspect = image_width / image_height
    if aspect > 1:
        grid_w = _clamp(_round_half_up(base * aspect), min_size, max_size)
        grid_h = _clamp(base, min_size, max_size)
    else:
        grid_w = _clamp(base, min_size, max_size)
        grid_h = _clamp(_round_half_up(base / aspect), min_size, max_size)
    return grid_w, grid_h


def sync_dimensions(width: int, height: int, changed: str, keep_aspect: bool) -> Tuple[int, int]:
    """
    Aspect lock for interactive grid controls: when only one side changed
    and keep_aspect is on, the other side follows it.
    changed: "width", "height" or "both".
    """
    if not keep_aspect or changed == "both":
        return width, height
    if changed == "width":
        return width, width
    if changed == "height":
        return height, height
    raise ValueError(f"Unknown dimension: {changed}")


def resize_to_grid(pixels: np.ndarray, grid_width: int, grid_height: int) -> np.ndarray:
    """
    Box-downsample the buffer to one RGB sample per grid cell.
    Returns (grid_height, grid_width, 3) uint8.
    """
    if grid_width <= 0 or grid_height <= 0:
        raise InvalidInputError(f"Grid dimensions must be positive, got {grid_width}x{grid_height}")
    return cv2.resize(pixels, (grid_width, grid_height), interpolation=cv2.INTER_AREA)
