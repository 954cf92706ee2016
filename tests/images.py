import numpy as np

# Five colors that differ by more than the edge threshold pairwise
CELL_COLORS = np.array([
    (255, 0, 0), (0, 255, 0), (0, 0, 255), (255, 255, 0), (0, 0, 0)
], dtype=np.uint8)


def make_cell_image(cells: int = 10, cell_px: int = 12) -> np.ndarray:
    """Solid cells, no separator lines; every cell differs from all 4 neighbours."""
    idx = (np.arange(cells)[:, None] * 3 + np.arange(cells)[None, :]) % len(CELL_COLORS)
    grid = CELL_COLORS[idx]
    return np.repeat(np.repeat(grid, cell_px, axis=0), cell_px, axis=1)
