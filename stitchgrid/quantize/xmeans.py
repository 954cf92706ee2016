# stitchgrid/quantize/xmeans.py
"""
X-Means palette builder: K-means for every k in [min_k, max_k], keeping the
k with the lowest BIC score

    BIC = n * ln(SSD / n) + k * ln(n)

where SSD is the summed squared distance of every color to its centroid
under the configured metric.
"""
from __future__ import annotations
from dataclasses import dataclass
from typing import Optional, Tuple
import logging
import math
import numpy as np

from stitchgrid.config import (
    DEFAULT_MAX_COLORS, MAX_KMEANS_ITERATIONS, MIN_COLORS, InvalidInputError
)
from stitchgrid.metrics.distance import LabMetric, hyab_distance
from stitchgrid.quantize.palette import PaletteEntry, palette_from_centroids

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class XMeansResult:
    palette: Tuple[PaletteEntry, ...]
    k: int
    score: float
    centroids: np.ndarray    # (k, 3) Lab
    assignments: np.ndarray  # (n,) centroid index per input color


def unique_colors(colors: np.ndarray) -> np.ndarray:
    """Distinct rows of an (n, 3) array, in first-occurrence order."""
    if len(colors) == 0:
        return colors.reshape(0, 3)
    _, first = np.unique(colors, axis=0, return_index=True)
    return colors[np.sort(first)]


def bic_score(colors: np.ndarray, centroids: np.ndarray, assignments: np.ndarray,
              distance: LabMetric) -> float:
    n = len(colors)
    k = len(centroids)
    d = distance(colors, centroids[assignments])
    total = float((d * d).sum())
    if n == 0 or total <= 0.0:
        # zero residual: a perfect fit
        return -math.inf
    return n * math.log(total / n) + k * math.log(n)


class XMeansClusterer:
    def __init__(
        self,
        min_k: int = MIN_COLORS,
        max_k: int = DEFAULT_MAX_COLORS,
        max_iterations: int = MAX_KMEANS_ITERATIONS,
        rng: Optional[np.random.Generator] = None,
    ):
        if min_k < 1 or max_k < min_k:
            raise InvalidInputError(f"Invalid cluster range [{min_k}, {max_k}]")
        if max_iterations < 1:
            raise InvalidInputError(f"max_iterations must be >= 1, got {max_iterations}")
        self.min_k = min_k
        self.max_k = max_k
        self.max_iterations = max_iterations
        self.rng = rng if rng is not None else np.random.default_rng()

    def cluster(self, colors, distance: LabMetric = hyab_distance) -> XMeansResult:
        """
        Build a palette from Lab colors (n, 3).

        Inputs with fewer distinct colors than min_k return those distinct
        colors as the palette; max_k is capped at the distinct color count.
        """
        colors = np.asarray(colors, dtype=np.float64).reshape(-1, 3)
        distinct = unique_colors(colors)

        if len(distinct) < self.min_k:
            return self._identity(colors, distinct, distance)

        max_k = min(self.max_k, len(distinct))
        best: Optional[XMeansResult] = None
        for k in range(self.min_k, max_k + 1):
            centroids, assignments = self.kmeans(colors, k, distance)
            score = bic_score(colors, centroids, assignments, distance)
            logger.debug("k=%d BIC=%.2f", k, score)
            if best is None or score < best.score:
                best = XMeansResult(
                    palette=(), k=k, score=score, centroids=centroids, assignments=assignments
                )

        logger.info("X-Means picked k=%d (BIC %.2f)", best.k, best.score)
        return XMeansResult(
            palette=tuple(palette_from_centroids(best.centroids)),
            k=best.k,
            score=best.score,
            centroids=best.centroids,
            assignments=best.assignments,
        )

    def kmeans(self, colors: np.ndarray, k: int, distance: LabMetric) -> Tuple[np.ndarray, np.ndarray]:
        """
        Lloyd iterations from a K-means++ start. Stops when assignments stop
        changing or after max_iterations. Returns (centroids, assignments).
        """
        centroids = self.init_centroids(colors, k)
        assignments = None
        for _ in range(self.max_iterations):
            d = distance(colors[:, None, :], centroids[None, :, :])  # (n, k)
            new_assignments = d.argmin(axis=1)
            converged = assignments is not None and np.array_equal(assignments, new_assignments)
            assignments = new_assignments
            if converged:
                break
            centroids = self._recompute_centroids(colors, assignments, k)
        return centroids, assignments

    def init_centroids(self, colors: np.ndarray, k: int) -> np.ndarray:
        """
        K-means++ seeding: first centroid uniform, the rest by roulette wheel
        over squared HyAB distance to the nearest chosen centroid.
        """
        n = len(colors)
        first = colors[self.rng.integers(n)]
        chosen = [first]
        nearest = hyab_distance(colors, first)
        for _ in range(1, k):
            cumulative = np.cumsum(nearest * nearest)
            total = cumulative[-1]
            if total <= 0.0:
                idx = int(self.rng.integers(n))
            else:
                # r in (0, total] so zero-weight colors are never drawn
                r = (1.0 - self.rng.random()) * total
                idx = min(int(np.searchsorted(cumulative, r, side="left")), n - 1)
            chosen.append(colors[idx])
            nearest = np.minimum(nearest, hyab_distance(colors, colors[idx]))
        return np.array(chosen, dtype=np.float64)

    def _recompute_centroids(self, colors: np.ndarray, assignments: np.ndarray, k: int) -> np.ndarray:
        counts = np.bincount(assignments, minlength=k)
        sums = np.zeros((k, 3), dtype=np.float64)
        np.add.at(sums, assignments, colors)
        centroids = sums / np.maximum(counts, 1)[:, None]
        for i in np.nonzero(counts == 0)[0]:
            centroids[i] = colors[self.rng.integers(len(colors))]
        return centroids

    def _identity(self, colors: np.ndarray, distinct: np.ndarray, distance: LabMetric) -> XMeansResult:
        if len(colors) == 0:
            assignments = np.zeros(0, dtype=np.intp)
        else:
            assignments = distance(colors[:, None, :], distinct[None, :, :]).argmin(axis=1)
        return XMeansResult(
            palette=tuple(palette_from_centroids(distinct)),
            k=len(distinct),
            score=-math.inf,
            centroids=distinct,
            assignments=assignments,
        )
