from pathlib import Path
from typing import Union
import cv2
import numpy as np
from PIL import Image

from stitchgrid.config import InvalidInputError

PixelSource = Union[np.ndarray, Image.Image]


def as_pixel_buffer(image: PixelSource) -> np.ndarray:
    """
    Normalize caller-supplied pixels to a (H, W, 3) uint8 RGB buffer.
    Accepts PIL images (any mode) and arrays shaped (H,W), (H,W,3) or (H,W,4).
    Alpha is dropped (pixels are assumed opaque).
    """
    if isinstance(image, Image.Image):
        arr = np.asarray(image.convert("RGB"))
    else:
        arr = np.asarray(image)
        if arr.ndim == 2:
            arr = np.repeat(arr[:, :, None], 3, axis=2)
        elif arr.ndim == 3 and arr.shape[2] in (3, 4):
            arr = arr[:, :, :3]
        else:
            raise InvalidInputError(f"Expected an (H, W[, 3|4]) pixel array, got shape {arr.shape}")

    if arr.shape[0] == 0 or arr.shape[1] == 0:
        raise InvalidInputError("Pixel buffer is empty")
    if arr.dtype != np.uint8:
        arr = np.clip(arr, 0, 255).astype(np.uint8)
    return np.ascontiguousarray(arr)


# cv2 loads BGR; convert to RGB to keep consistency across the codebase.
def load_image(path: Union[str, Path]) -> np.ndarray:
    path = Path(path)
    img_bgr = cv2.imread(str(path), cv2.IMREAD_COLOR)
    if img_bgr is None:
        raise FileNotFoundError(f"Could not read image: {path}")
    img_rgb = cv2.cvtColor(img_bgr, cv2.COLOR_BGR2RGB)
    return img_rgb
