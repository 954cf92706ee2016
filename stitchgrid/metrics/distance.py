# stitchgrid/metrics/distance.py
from __future__ import annotations
from typing import Callable, Dict
import numpy as np

# Any of the metrics below: two broadcast-compatible (..., 3) Lab arrays -> (...) distances
LabMetric = Callable[[np.ndarray, np.ndarray], np.ndarray]


def _split(lab1, lab2):
    a = np.asarray(lab1, dtype=np.float64)
    b = np.asarray(lab2, dtype=np.float64)
    return a, b


def lab_distance(lab1, lab2) -> np.ndarray:
    """Plain Euclidean distance in Lab (CIE76)."""
    a, b = _split(lab1, lab2)
    diff = a - b
    return np.sqrt((diff * diff).sum(axis=-1))


def hyab_distance(lab1, lab2) -> np.ndarray:
    """
    HyAB: |dL| + Euclidean distance on the (a, b) plane.
    Keeps lightness separate from chroma/hue; the default metric.
    """
    a, b = _split(lab1, lab2)
    dL = np.abs(a[..., 0] - b[..., 0])
    da = a[..., 1] - b[..., 1]
    db = a[..., 2] - b[..., 2]
    return dL + np.sqrt(da * da + db * db)


def delta_e2000(lab1, lab2) -> np.ndarray:
    """
    Simplified Delta E 2000 (kL = kC = kH = 1, no hue rotation term).
    Good for ranking colors, not an exact CIEDE2000 value.
    """
    a, b = _split(lab1, lab2)
    L1, a1, b1 = a[..., 0], a[..., 1], a[..., 2]
    L2, a2, b2 = b[..., 0], b[..., 1], b[..., 2]

    dL = L2 - L1
    avg_L = (L1 + L2) / 2.0

    c1 = np.sqrt(a1 * a1 + b1 * b1)
    c2 = np.sqrt(a2 * a2 + b2 * b2)
    avg_C = (c1 + c2) / 2.0
    dC = c2 - c1

    # float error can push the radicand slightly below zero
    radicand = (a2 - a1) ** 2 + (b2 - b1) ** 2 - dC * dC
    dH = np.sqrt(np.maximum(radicand, 0.0))

    sL = 1.0 + (0.015 * (avg_L - 50.0) ** 2) / np.sqrt(20.0 + (avg_L - 50.0) ** 2)
    sC = 1.0 + 0.045 * avg_C
    sH = 1.0 + 0.015 * avg_C

    return np.sqrt((dL / sL) ** 2 + (dC / sC) ** 2 + (dH / sH) ** 2)


METRICS: Dict[str, LabMetric] = {
    "lab": lab_distance,
    "hyab": hyab_distance,
    "deltae2000": delta_e2000,
}
