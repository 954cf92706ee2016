# stitchgrid/metrics/similarity.py
from __future__ import annotations
from typing import Dict, Optional
import numpy as np
from skimage.metrics import structural_similarity as ssim


def mse(a: np.ndarray, b: np.ndarray) -> float:
    a32 = a.astype(np.float32)
    b32 = b.astype(np.float32)
    return float(np.mean((a32 - b32) ** 2))


def ssim_rgb(a: np.ndarray, b: np.ndarray) -> Optional[float]:
    """
    SSIM over RGB grids. Grids are small (one pixel per cell), so the window
    shrinks to the largest odd size that fits; below 3 cells a side there is
    no meaningful window and None is returned.
    """
    side = min(a.shape[0], a.shape[1])
    if side < 3:
        return None
    win = min(7, side if side % 2 == 1 else side - 1)
    a_f = (a.astype(np.float32) / 255.0).clip(0, 1)
    b_f = (b.astype(np.float32) / 255.0).clip(0, 1)
    val = ssim(a_f, b_f, channel_axis=2, data_range=1.0, win_size=win)
    return float(val)


def quantization_fidelity(samples_rgb: np.ndarray, quantized_rgb: np.ndarray) -> Dict[str, Optional[float]]:
    """How far the quantized grid drifted from the sampled colors."""
    return {
        "mse": mse(samples_rgb, quantized_rgb),
        "ssim": ssim_rgb(samples_rgb, quantized_rgb),
    }
