"""
Frame and overlay image containers
Frames are uint8 numpy arrays in OpenCV channel order (BGR or BGRA)
"""

from typing import Optional

import cv2
import numpy as np


def to_bgra(pixels: np.ndarray) -> np.ndarray:
    """Convert a grayscale, BGR or BGRA uint8 array to a new BGRA array"""
    if pixels.dtype != np.uint8:
        raise ValueError(f"Expected uint8 pixels, got {pixels.dtype}")

    if pixels.ndim == 2:
        return cv2.cvtColor(pixels, cv2.COLOR_GRAY2BGRA)
    if pixels.ndim == 3 and pixels.shape[2] == 3:
        return cv2.cvtColor(pixels, cv2.COLOR_BGR2BGRA)
    if pixels.ndim == 3 and pixels.shape[2] == 4:
        return pixels.copy()

    raise ValueError(f"Unsupported pixel array shape {pixels.shape}")


class OverlayImage:
    """Immutable BGRA bitmap selected as the overlay"""

    def __init__(self, pixels: np.ndarray, name: Optional[str] = None):
        self._pixels = to_bgra(pixels)
        self._pixels.flags.writeable = False
        self.name = name

    @property
    def pixels(self) -> np.ndarray:
        return self._pixels

    @property
    def width(self) -> int:
        return self._pixels.shape[1]

    @property
    def height(self) -> int:
        return self._pixels.shape[0]

    def __repr__(self):
        return f"OverlayImage(name={self.name!r}, size={self.width}x{self.height})"
