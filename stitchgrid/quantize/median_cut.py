# stitchgrid/quantize/median_cut.py
from __future__ import annotations
from typing import List, Tuple
import logging
import numpy as np

from stitchgrid.color.space import lab_array_to_rgb
from stitchgrid.config import DEFAULT_MAX_COLORS, InvalidInputError

logger = logging.getLogger(__name__)


def build_histogram(colors: np.ndarray) -> Tuple[np.ndarray, np.ndarray]:
    """
    Bucket Lab colors by their per-channel rounded value.
    Returns (buckets (m, 3) float64, counts (m,)) in first-occurrence order.
    """
    colors = np.asarray(colors, dtype=np.float64).reshape(-1, 3)
    if len(colors) == 0:
        return np.zeros((0, 3)), np.zeros(0, dtype=np.int64)
    keys = np.floor(colors + 0.5)
    buckets, first, inverse = np.unique(keys, axis=0, return_index=True, return_inverse=True)
    counts = np.bincount(inverse.ravel(), minlength=len(buckets))
    order = np.argsort(first, kind="stable")
    return buckets[order], counts[order]


def _weighted_average(buckets: np.ndarray, counts: np.ndarray) -> List[np.ndarray]:
    if len(buckets) == 0:
        return []
    w = counts.astype(np.float64)
    return [(buckets * w[:, None]).sum(axis=0) / w.sum()]


def _sort_by_widest_channel(buckets: np.ndarray, counts: np.ndarray):
    ranges = buckets.max(axis=0) - buckets.min(axis=0)
    # ties favour L, then a
    if ranges[0] >= ranges[1] and ranges[0] >= ranges[2]:
        channel = 0
    elif ranges[1] >= ranges[2]:
        channel = 1
    else:
        channel = 2
    order = np.argsort(buckets[:, channel], kind="stable")
    return buckets[order], counts[order]


def median_cut(buckets: np.ndarray, counts: np.ndarray, target: int) -> List[np.ndarray]:
    """
    Split at the middle bucket (by bucket count, not population) along the
    widest channel; left half gets floor(target / 2) colors, right the rest.
    Leaves collapse to their weighted average Lab.
    """
    if len(buckets) <= 1 or target == 1:
        return _weighted_average(buckets, counts)

    buckets, counts = _sort_by_widest_channel(buckets, counts)
    mid = len(buckets) // 2
    half = target // 2
    return (
        median_cut(buckets[:mid], counts[:mid], half)
        + median_cut(buckets[mid:], counts[mid:], target - half)
    )


class MedianCutQuantizer:
    def __init__(self, max_colors: int = DEFAULT_MAX_COLORS):
        if max_colors < 1:
            raise InvalidInputError(f"max_colors must be >= 1, got {max_colors}")
        self.max_colors = max_colors

    def quantize_lab(self, colors) -> np.ndarray:
        """Lab colors (n, 3) -> at most max_colors averaged Lab colors (m, 3)."""
        buckets, counts = build_histogram(colors)
        averages = median_cut(buckets, counts, self.max_colors)
        logger.debug("median cut: %d buckets -> %d colors", len(buckets), len(averages))
        return np.array(averages, dtype=np.float64).reshape(-1, 3)

    def quantize(self, colors) -> List[Tuple[int, int, int]]:
        """Lab colors (n, 3) -> palette RGB triples, in partition-tree order."""
        rgb = lab_array_to_rgb(self.quantize_lab(colors))
        return [tuple(int(c) for c in row) for row in rgb]
