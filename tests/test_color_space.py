import numpy as np
from skimage.color import rgb2lab

from stitchgrid.color.space import (
    lab_array_to_rgb, lab_to_rgb, rgb_array_to_lab, rgb_to_lab, rgb_to_xyz, xyz_to_lab
)


def _rgb_grid(step=17):
    vals = np.arange(0, 256, step)
    r, g, b = np.meshgrid(vals, vals, vals, indexing="ij")
    return np.stack([r.ravel(), g.ravel(), b.ravel()], axis=1).astype(np.uint8)


def test_round_trip_within_one_level():
    rgb = _rgb_grid()
    back = lab_array_to_rgb(rgb_array_to_lab(rgb))
    diff = np.abs(back.astype(np.int16) - rgb.astype(np.int16))
    assert diff.max() <= 1


def test_scalar_round_trip():
    for c in [(0, 0, 0), (255, 255, 255), (12, 200, 77), (255, 0, 128), (3, 4, 5)]:
        back = lab_to_rgb(*rgb_to_lab(*c))
        assert all(abs(x - y) <= 1 for x, y in zip(back, c))
        assert all(isinstance(v, int) for v in back)


def test_reference_points():
    L, a, b = rgb_to_lab(255, 255, 255)
    assert abs(L - 100.0) < 0.01 and abs(a) < 0.05 and abs(b) < 0.05
    assert np.allclose(rgb_to_lab(0, 0, 0), (0.0, 0.0, 0.0), atol=1e-9)

    x, y, z = rgb_to_xyz(255, 255, 255)
    assert abs(x - 95.047) < 0.01 and abs(y - 100.0) < 0.01 and abs(z - 108.883) < 0.01
    assert xyz_to_lab(x, y, z)[0] > 99.99


def test_matches_skimage_lab():
    rgb = _rgb_grid(step=51)
    ours = rgb_array_to_lab(rgb)
    ref = rgb2lab(rgb.reshape(1, -1, 3)).reshape(-1, 3)
    assert np.abs(ours - ref).max() < 0.5


def test_lab_to_rgb_clamps_out_of_gamut():
    for lab in [(50, 200, -200), (120, 0, 0), (-10, 0, 0), (60, -150, 150)]:
        rgb = lab_to_rgb(*lab)
        assert all(0 <= v <= 255 for v in rgb)


def test_array_shapes_preserved():
    img = (np.random.rand(5, 7, 3) * 255).astype("uint8")
    lab = rgb_array_to_lab(img)
    assert lab.shape == (5, 7, 3)
    assert lab_array_to_rgb(lab).shape == (5, 7, 3)
