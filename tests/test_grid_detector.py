import numpy as np
import pytest

from images import CELL_COLORS, make_cell_image
from stitchgrid.config import InvalidInputError
from stitchgrid.grid.detector import (
    GridInfo, detect_grid, detect_horizontal_lines, detect_vertical_lines,
    extract_cell_colors, filter_close_lines
)


def test_filter_close_lines_keeps_earliest():
    assert filter_close_lines([1, 2, 3, 10, 14, 20], 5) == [1, 10, 20]
    assert filter_close_lines([], 5) == []


def test_solid_image_not_detected():
    img = np.full((64, 64, 3), 128, dtype=np.uint8)
    info = detect_grid(img)
    assert not info.detected
    assert info == GridInfo.not_detected()


def test_tiny_image_not_detected():
    img = (np.random.rand(2, 2, 3) * 255).astype("uint8")
    assert detect_horizontal_lines(img) == []
    assert detect_vertical_lines(img) == []
    assert not detect_grid(img).detected


def test_detects_cell_boundaries():
    cell_image = make_cell_image()
    # boundaries at 12, 24, ... light up rows 11 and 12; the earlier one wins
    expected = [12 * k - 1 for k in range(1, 10)]
    assert detect_horizontal_lines(cell_image) == expected
    assert detect_vertical_lines(cell_image) == expected

    info = detect_grid(cell_image)
    assert info.detected
    assert (info.grid_width, info.grid_height) == (8, 8)
    assert (info.cell_width, info.cell_height) == (12, 12)


def test_line_spacing_scales_with_image_size():
    img = make_cell_image(cells=60, cell_px=8)
    # 480 px: lines closer than 480 // 30 = 16 px are merged, so every other boundary survives
    expected = [7 + 16 * j for j in range(30)]
    assert detect_horizontal_lines(img) == expected
    assert detect_vertical_lines(img) == expected

    info = detect_grid(img)
    assert (info.grid_width, info.grid_height) == (29, 29)
    assert (info.cell_width, info.cell_height) == (16, 16)


def test_weak_edges_ignored():
    img = make_cell_image()
    faint = (img // 16).astype(np.uint8)  # channel steps of at most 15 stay under the threshold
    assert not detect_grid(faint).detected


def test_extract_cell_colors_matches_cells():
    cell_image = make_cell_image()
    info = detect_grid(cell_image)
    colors = extract_cell_colors(cell_image, info)
    assert colors.shape == (8, 8, 3)
    # detected cell (r, c) is source cell (r + 1, c + 1)
    for r in range(8):
        for c in range(8):
            expected = CELL_COLORS[((r + 1) * 3 + (c + 1)) % len(CELL_COLORS)]
            assert tuple(colors[r, c]) == tuple(expected)


def test_extract_cell_colors_out_of_bounds_falls_back():
    img = (np.random.rand(20, 20, 3) * 255).astype("uint8")
    info = GridInfo(detected=True, grid_width=1, grid_height=1,
                    horizontal_lines=(500, 600), vertical_lines=(500, 600))
    colors = extract_cell_colors(img, info)
    assert tuple(colors[0, 0]) == tuple(img[19, 19])


def test_extract_cell_colors_empty_interior_falls_back():
    img = (np.random.rand(20, 20, 3) * 255).astype("uint8")
    info = GridInfo(detected=True, grid_width=1, grid_height=1,
                    horizontal_lines=(4, 5), vertical_lines=(8, 9))
    colors = extract_cell_colors(img, info)
    assert tuple(colors[0, 0]) == tuple(img[5, 9])


def test_extract_requires_detected_grid():
    img = np.zeros((10, 10, 3), dtype=np.uint8)
    with pytest.raises(InvalidInputError):
        extract_cell_colors(img, GridInfo.not_detected())
