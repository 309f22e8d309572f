"""
Transform Engine
Scales and rotates the overlay image into a canvas the size of the scaled,
unrotated image, using bilinear resampling
"""

import math
from typing import Optional, Tuple

import cv2
import numpy as np

from webcam_overlay.services.compositing.frames import OverlayImage


def scaled_size(width: int, height: int, scale: float) -> Tuple[int, int]:
    """Canvas size (width, height) for a scale factor, rounded half-up"""
    return int(math.floor(width * scale + 0.5)), int(math.floor(height * scale + 0.5))


def overlay_matrix(width: int, height: int, scale: float, rotation: float) -> np.ndarray:
    """
    2x3 forward affine matrix mapping source pixels into the canvas.

    Composed as: translate to canvas centre, rotate (clockwise, y down),
    translate back by half the scaled source extents, scale. The composition
    works on pixel edges; OpenCV addresses pixel centres, hence the half
    pixel shifts around it.
    """
    new_w, new_h = scaled_size(width, height, scale)
    theta = math.radians(rotation)
    cos_t, sin_t = math.cos(theta), math.sin(theta)

    to_centre = np.array([[1.0, 0.0, new_w / 2.0],
                          [0.0, 1.0, new_h / 2.0],
                          [0.0, 0.0, 1.0]])
    rotate = np.array([[cos_t, -sin_t, 0.0],
                       [sin_t, cos_t, 0.0],
                       [0.0, 0.0, 1.0]])
    back = np.array([[1.0, 0.0, -width * scale / 2.0],
                     [0.0, 1.0, -height * scale / 2.0],
                     [0.0, 0.0, 1.0]])
    scaling = np.array([[scale, 0.0, 0.0],
                        [0.0, scale, 0.0],
                        [0.0, 0.0, 1.0]])

    to_edges = np.array([[1.0, 0.0, 0.5],
                         [0.0, 1.0, 0.5],
                         [0.0, 0.0, 1.0]])
    to_centres = np.array([[1.0, 0.0, -0.5],
                           [0.0, 1.0, -0.5],
                           [0.0, 0.0, 1.0]])

    return (to_centres @ to_centre @ rotate @ back @ scaling @ to_edges)[:2]


def transform_overlay(overlay: Optional[OverlayImage], scale: float, rotation: float) -> Optional[np.ndarray]:
    """
    Resample the overlay at the given scale and rotation.

    Returns a BGRA array of round(h*scale) x round(w*scale) regardless of the
    rotation, so rotated corners falling outside it are clipped. Uncovered
    canvas pixels are fully transparent. Returns None when there is no overlay.
    """
    if overlay is None:
        return None

    new_w, new_h = scaled_size(overlay.width, overlay.height, scale)
    if new_w <= 0 or new_h <= 0:
        return np.zeros((max(new_h, 0), max(new_w, 0), 4), dtype=np.uint8)

    matrix = overlay_matrix(overlay.width, overlay.height, scale, rotation)
    return cv2.warpAffine(
        overlay.pixels, matrix, (new_w, new_h),
        flags=cv2.INTER_LINEAR,
        borderMode=cv2.BORDER_CONSTANT,
        borderValue=(0, 0, 0, 0)
    )


class TransformCache:
    """Keeps the last transformed bitmap, keyed on overlay identity, scale and rotation"""

    def __init__(self):
        self._overlay: Optional[OverlayImage] = None
        self._scale: Optional[float] = None
        self._rotation: Optional[float] = None
        self._result: Optional[np.ndarray] = None
        self.hits = 0
        self.misses = 0

    @property
    def is_valid(self) -> bool:
        return self._result is not None

    def invalidate(self):
        self._overlay = None
        self._scale = None
        self._rotation = None
        self._result = None

    def get(self, overlay: Optional[OverlayImage], scale: float, rotation: float) -> Optional[np.ndarray]:
        if overlay is None:
            self.invalidate()
            return None

        if (self._result is not None and overlay is self._overlay
                and scale == self._scale and rotation == self._rotation):
            self.hits += 1
            return self._result

        self.misses += 1
        result = transform_overlay(overlay, scale, rotation)
        result.flags.writeable = False

        self._overlay = overlay
        self._scale = scale
        self._rotation = rotation
        self._result = result
        return result
