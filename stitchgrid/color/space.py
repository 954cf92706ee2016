# stitchgrid/color/space.py
"""
sRGB <-> CIELAB conversion (D65 white, XYZ on a 0..100 scale).

Every helper is written with NumPy broadcasting, so the scalar wrappers and
the (..., 3) array helpers share one implementation.
"""
from __future__ import annotations
from typing import Tuple
import numpy as np

# D65 reference white
XN, YN, ZN = 95.047, 100.000, 108.883

# CIE piecewise thresholds
EPSILON = 0.008856
KAPPA_LINEAR = 7.787

_RGB_TO_XYZ = np.array([
    [0.4124564, 0.3575761, 0.1804375],
    [0.2126729, 0.7151522, 0.0721750],
    [0.0193339, 0.1191920, 0.9503041],
])

# Expects XYZ in the 0..100 range, hence the /100 scaled coefficients.
_XYZ_TO_RGB = np.array([
    [0.032406, -0.015372, -0.004986],
    [-0.009689, 0.018758, 0.000415],
    [0.000557, -0.002040, 0.010570],
])


def _round_half_up(v: np.ndarray) -> np.ndarray:
    return np.floor(v + 0.5)


def rgb_array_to_xyz(rgb: np.ndarray) -> np.ndarray:
    """(..., 3) RGB in 0..255 -> (..., 3) XYZ in percentage range."""
    v = np.asarray(rgb, dtype=np.float64) / 255.0
    linear = np.where(v > 0.04045, ((v + 0.055) / 1.055) ** 2.4, v / 12.92)
    return (linear @ _RGB_TO_XYZ.T) * 100.0


def xyz_array_to_lab(xyz: np.ndarray) -> np.ndarray:
    t = np.asarray(xyz, dtype=np.float64) / np.array([XN, YN, ZN])
    f = np.where(t > EPSILON, np.cbrt(t), KAPPA_LINEAR * t + 16.0 / 116.0)
    fx, fy, fz = f[..., 0], f[..., 1], f[..., 2]
    L = 116.0 * fy - 16.0
    a = 500.0 * (fx - fy)
    b = 200.0 * (fy - fz)
    return np.stack([L, a, b], axis=-1)


def rgb_array_to_lab(rgb: np.ndarray) -> np.ndarray:
    """(..., 3) uint8-range RGB -> (..., 3) float64 Lab."""
    return xyz_array_to_lab(rgb_array_to_xyz(rgb))


def lab_array_to_rgb(lab: np.ndarray) -> np.ndarray:
    """
    (..., 3) Lab -> (..., 3) uint8 RGB.
    Out-of-gamut values are clamped to [0, 255] after rounding.
    """
    lab = np.asarray(lab, dtype=np.float64)
    L, a, b = lab[..., 0], lab[..., 1], lab[..., 2]
    fy = (L + 16.0) / 116.0
    fx = a / 500.0 + fy
    fz = fy - b / 200.0
    f = np.stack([fx, fy, fz], axis=-1)
    cubed = f ** 3
    t = np.where(cubed > EPSILON, cubed, (f - 16.0 / 116.0) / KAPPA_LINEAR)
    xyz = t * np.array([XN, YN, ZN])

    linear = xyz @ _XYZ_TO_RGB.T
    # clip only guards the power branch; negatives take the linear branch anyway
    gamma = np.where(
        linear > 0.0031308,
        1.055 * np.power(np.clip(linear, 0.0031308, None), 1.0 / 2.4) - 0.055,
        12.92 * linear,
    )
    return np.clip(_round_half_up(gamma * 255.0), 0, 255).astype(np.uint8)


def rgb_to_xyz(r: float, g: float, b: float) -> Tuple[float, float, float]:
    x, y, z = rgb_array_to_xyz(np.array([r, g, b]))
    return float(x), float(y), float(z)


def xyz_to_lab(x: float, y: float, z: float) -> Tuple[float, float, float]:
    L, a, b = xyz_array_to_lab(np.array([x, y, z]))
    return float(L), float(a), float(b)


def rgb_to_lab(r: float, g: float, b: float) -> Tuple[float, float, float]:
    return xyz_to_lab(*rgb_to_xyz(r, g, b))


def lab_to_rgb(L: float, a: float, b: float) -> Tuple[int, int, int]:
    r, g, b_ = lab_array_to_rgb(np.array([L, a, b]))
    return int(r), int(g), int(b_)
