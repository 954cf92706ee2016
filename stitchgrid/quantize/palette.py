# stitchgrid/quantize/palette.py
from __future__ import annotations
from dataclasses import dataclass
from typing import Iterable, List, Sequence, Tuple
import numpy as np

from stitchgrid.color.space import lab_to_rgb, rgb_to_lab

RGB = Tuple[int, int, int]
Lab = Tuple[float, float, float]


@dataclass(frozen=True)
class PaletteEntry:
    rgb: RGB
    lab: Lab
    index: int

    @property
    def hex(self) -> str:
        return "#{:02x}{:02x}{:02x}".format(*self.rgb)


def palette_from_centroids(centroids: np.ndarray) -> List[PaletteEntry]:
    """Lab centroids (k, 3) -> palette; index follows centroid order."""
    palette = []
    for i, c in enumerate(np.asarray(centroids, dtype=np.float64)):
        lab = (float(c[0]), float(c[1]), float(c[2]))
        palette.append(PaletteEntry(rgb=lab_to_rgb(*lab), lab=lab, index=i))
    return palette


def palette_from_rgb(colors: Iterable[Sequence[int]]) -> List[PaletteEntry]:
    """RGB triples -> palette; Lab recomputed from the rounded RGB value."""
    palette = []
    for i, c in enumerate(colors):
        rgb = (int(c[0]), int(c[1]), int(c[2]))
        palette.append(PaletteEntry(rgb=rgb, lab=rgb_to_lab(*rgb), index=i))
    return palette


def palette_lab_array(palette: Sequence[PaletteEntry]) -> np.ndarray:
    return np.array([p.lab for p in palette], dtype=np.float64).reshape(-1, 3)


class QuantizedGrid:
    """
    height x width grid of palette references.
    Cells store palette indices; grid[y, x] returns the PaletteEntry.
    """

    def __init__(self, indices: np.ndarray, palette: Sequence[PaletteEntry]):
        indices = np.asarray(indices, dtype=np.int32)
        if indices.ndim != 2:
            raise ValueError(f"indices must be 2-D, got shape {indices.shape}")
        if indices.size and (indices.min() < 0 or indices.max() >= len(palette)):
            raise ValueError("indices reference entries outside the palette")
        self.indices = indices
        self.palette = tuple(palette)

    @property
    def height(self) -> int:
        return self.indices.shape[0]

    @property
    def width(self) -> int:
        return self.indices.shape[1]

    def __getitem__(self, yx: Tuple[int, int]) -> PaletteEntry:
        y, x = yx
        return self.palette[int(self.indices[y, x])]

    def to_rgb(self) -> np.ndarray:
        """Render back to a (H, W, 3) uint8 image, one pixel per cell."""
        lut = np.array([p.rgb for p in self.palette], dtype=np.uint8).reshape(-1, 3)
        return lut[self.indices]

    def color_counts(self) -> List[int]:
        """Cells per palette entry, in palette order."""
        return np.bincount(self.indices.ravel(), minlength=len(self.palette)).tolist()
