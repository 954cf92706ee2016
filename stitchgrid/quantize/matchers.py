from __future__ import annotations
import numpy as np

from stitchgrid.metrics.distance import LabMetric, hyab_distance


def match_to_palette(
    samples_lab: np.ndarray,   # (K, 3) float64
    palette_lab: np.ndarray,   # (N, 3) float64
    distance: LabMetric = hyab_distance,
    chunk: int = 4096,
) -> np.ndarray:
    """
    Returns the nearest palette index per sample (first index wins ties).
    Chunked over samples to bound the (k, N) distance matrix.
    """
    samples_lab = np.asarray(samples_lab, dtype=np.float64).reshape(-1, 3)
    palette_lab = np.asarray(palette_lab, dtype=np.float64).reshape(-1, 3)
    if len(palette_lab) == 0:
        raise ValueError("Cannot match against an empty palette")

    K = len(samples_lab)
    out = np.empty((K,), dtype=np.int32)
    for s in range(0, K, chunk):
        e = min(s + chunk, K)
        # (k,1,3) vs (1,N,3) -> (k,N)
        d = distance(samples_lab[s:e, None, :], palette_lab[None, :, :])
        out[s:e] = np.argmin(d, axis=1)
    return out
