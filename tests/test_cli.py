import cv2
import numpy as np

from images import make_cell_image
from scripts.stitch_guide import main


def test_cli_manual_grid(tmp_path, capsys):
    path = tmp_path / "photo.png"
    img = (np.random.rand(40, 60, 3) * 255).astype("uint8")
    cv2.imwrite(str(path), cv2.cvtColor(img, cv2.COLOR_RGB2BGR))

    code = main([str(path), "--grid-width", "8", "--grid-height", "6", "--colors", "4",
                 "--no-detect", "--seed", "1"])
    out = capsys.readouterr().out
    assert code == 0
    assert "Manual 8x6 grid" in out
    assert "Steps: 48" in out


def test_cli_square_grid_follows_given_side(tmp_path, capsys):
    path = tmp_path / "photo.png"
    img = (np.random.rand(40, 60, 3) * 255).astype("uint8")
    cv2.imwrite(str(path), cv2.cvtColor(img, cv2.COLOR_RGB2BGR))

    assert main([str(path), "--grid-width", "7", "--grid-height", "3", "--square",
                 "--colors", "3", "--no-detect", "--seed", "1"]) == 0
    out = capsys.readouterr().out
    assert "Manual 7x7 grid" in out
    assert "Steps: 49" in out

    assert main([str(path), "--grid-height", "5", "--square", "--colors", "3",
                 "--no-detect", "--seed", "1"]) == 0
    out = capsys.readouterr().out
    assert "Manual 5x5 grid" in out
    assert "Steps: 25" in out


def test_cli_detected_grid(tmp_path, capsys):
    path = tmp_path / "cells.png"
    cv2.imwrite(str(path), cv2.cvtColor(make_cell_image(), cv2.COLOR_RGB2BGR))

    assert main([str(path), "--method", "median-cut"]) == 0
    out = capsys.readouterr().out
    assert "Detected 8x8 grid" in out
    assert "Median Cut" in out


def test_cli_missing_file(tmp_path, capsys):
    assert main([str(tmp_path / "nope.png")]) == 1
    assert "Could not read image" in capsys.readouterr().out
