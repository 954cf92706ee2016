# stitchgrid/grid/detector.py
from __future__ import annotations
from dataclasses import dataclass
from typing import List, Sequence, Tuple
import logging
import numpy as np

from stitchgrid.config import (
    EDGE_FRACTION, EDGE_THRESHOLD, MIN_LINE_SPACING, InvalidInputError
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class GridInfo:
    """
    Cell layout found in (or configured for) a source image.
    horizontal_lines are row coordinates, vertical_lines column coordinates.
    """
    detected: bool
    grid_width: int = 0
    grid_height: int = 0
    horizontal_lines: Tuple[int, ...] = ()
    vertical_lines: Tuple[int, ...] = ()
    cell_width: int = 0
    cell_height: int = 0

    @classmethod
    def not_detected(cls) -> "GridInfo":
        return cls(detected=False)


def filter_close_lines(lines: Sequence[int], min_distance: int) -> List[int]:
    """
    Greedy 1-D suppression: walk the sorted coordinates and keep a line only
    if it is at least min_distance past the last kept one (earliest wins).
    """
    filtered: List[int] = []
    for line in lines:
        if not filtered or line - filtered[-1] >= min_distance:
            filtered.append(int(line))
    return filtered


def _edge_lines(grad: np.ndarray, axis: int, length: int) -> np.ndarray:
    # grad: per-pixel max channel gradient; count edge pixels along `axis`
    counts = (grad > EDGE_THRESHOLD).sum(axis=axis)
    return np.nonzero(counts > length * EDGE_FRACTION)[0] + 1  # +1: interior lines start at 1


def detect_horizontal_lines(pixels: np.ndarray) -> List[int]:
    """Rows whose above/below gradient marks an edge across >30% of the width."""
    h, w = pixels.shape[:2]
    if h < 3:
        return []
    px = pixels.astype(np.int16)
    grad = np.abs(px[:-2] - px[2:]).max(axis=2)  # (h-2, w)
    lines = _edge_lines(grad, axis=1, length=w)
    return filter_close_lines(lines, max(MIN_LINE_SPACING, h // 30))


def detect_vertical_lines(pixels: np.ndarray) -> List[int]:
    """Columns whose left/right gradient marks an edge across >30% of the height."""
    h, w = pixels.shape[:2]
    if w < 3:
        return []
    px = pixels.astype(np.int16)
    grad = np.abs(px[:, :-2] - px[:, 2:]).max(axis=2)  # (h, w-2)
    lines = _edge_lines(grad, axis=0, length=h)
    return filter_close_lines(lines, max(MIN_LINE_SPACING, w // 30))


def detect_grid(pixels: np.ndarray) -> GridInfo:
    """
    Look for an existing grid of solid cells. Needs at least two separator
    lines on each axis; anything less is reported as not detected.
    """
    horizontal = detect_horizontal_lines(pixels)
    vertical = detect_vertical_lines(pixels)
    logger.debug("grid lines: %d horizontal, %d vertical", len(horizontal), len(vertical))

    if len(horizontal) < 2 or len(vertical) < 2:
        return GridInfo.not_detected()

    return GridInfo(
        detected=True,
        grid_width=len(vertical) - 1,
        grid_height=len(horizontal) - 1,
        horizontal_lines=tuple(horizontal),
        vertical_lines=tuple(vertical),
        cell_width=vertical[1] - vertical[0],
        cell_height=horizontal[1] - horizontal[0],
    )


def extract_cell_colors(pixels: np.ndarray, grid: GridInfo) -> np.ndarray:
    """
    Average the interior of every detected cell (1 px inset from each
    separator, clamped to the buffer). Returns (grid_height, grid_width, 3) uint8.

    A cell with no interior pixels takes the color of the in-bounds pixel
    nearest to its inset top-left corner.
    """
    if not grid.detected:
        raise InvalidInputError("Cannot extract cell colors from an undetected grid")

    h, w = pixels.shape[:2]
    rows, cols = grid.grid_height, grid.grid_width
    out = np.empty((rows, cols, 3), dtype=np.uint8)
    fallbacks = 0

    for row in range(rows):
        y_start = grid.horizontal_lines[row] + 1
        y_end = grid.horizontal_lines[row + 1] - 1
        y0, y1 = max(y_start, 0), min(y_end, h - 1)
        for col in range(cols):
            x_start = grid.vertical_lines[col] + 1
            x_end = grid.vertical_lines[col + 1] - 1
            x0, x1 = max(x_start, 0), min(x_end, w - 1)

            if y1 < y0 or x1 < x0:
                fallbacks += 1
                out[row, col] = pixels[min(max(y_start, 0), h - 1), min(max(x_start, 0), w - 1)]
                continue

            block = pixels[y0:y1 + 1, x0:x1 + 1].reshape(-1, 3)
            mean = block.mean(axis=0, dtype=np.float64)
            out[row, col] = np.floor(mean + 0.5).astype(np.uint8)

    if fallbacks:
        logger.debug("%d empty cells filled from nearest pixel", fallbacks)
    return out
