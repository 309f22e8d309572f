"""
Frame Compositor
Places the transformed overlay at the centre of each base frame and blends it
with the configured mode
"""

from typing import Optional, Tuple

import numpy as np

from webcam_overlay.services.compositing.blend import blend_region, effective_alpha, to_channel
from webcam_overlay.services.compositing.frames import OverlayImage
from webcam_overlay.services.compositing.transform import TransformCache
from webcam_overlay.services.overlay_config import BlendMode, OverlayConfig


def centered_origin(frame_shape: Tuple[int, ...], overlay_shape: Tuple[int, ...]) -> Tuple[int, int]:
    """Top-left (x, y) of an overlay centred in a frame; may be negative, truncated toward zero"""
    frame_h, frame_w = frame_shape[:2]
    overlay_h, overlay_w = overlay_shape[:2]
    return int((frame_w - overlay_w) / 2), int((frame_h - overlay_h) / 2)


def _clip_footprint(frame_shape, overlay_shape, origin):
    """Intersect the overlay footprint with the frame, returns frame and overlay slices or None"""
    frame_h, frame_w = frame_shape[:2]
    overlay_h, overlay_w = overlay_shape[:2]
    x, y = origin

    x0, y0 = max(x, 0), max(y, 0)
    x1, y1 = min(x + overlay_w, frame_w), min(y + overlay_h, frame_h)
    if x0 >= x1 or y0 >= y1:
        return None

    frame_slice = (slice(y0, y1), slice(x0, x1))
    overlay_slice = (slice(y0 - y, y1 - y), slice(x0 - x, x1 - x))
    return frame_slice, overlay_slice


def _alpha_over(base: np.ndarray, overlay: np.ndarray, opacity: float) -> np.ndarray:
    """Source-over of overlay colour onto base, weighted by overlay alpha and opacity"""
    alpha = effective_alpha(overlay[..., 3], opacity)[..., None]
    b = base[..., :3].astype(np.float32)
    o = overlay[..., :3].astype(np.float32)

    result = base.copy()
    result[..., :3] = to_channel((b + (o - b) * alpha) / 255.0)
    return result


def composite(base_frame: Optional[np.ndarray], config: OverlayConfig,
              transformed: Optional[np.ndarray]) -> Optional[np.ndarray]:
    """
    Composite one tick.

    Returns None when there is no base frame, the base frame itself when
    there is no transformed overlay, otherwise a new frame of the same shape.
    """
    if base_frame is None:
        return None
    if transformed is None:
        return base_frame

    origin = centered_origin(base_frame.shape, transformed.shape)
    footprint = _clip_footprint(base_frame.shape, transformed.shape, origin)

    output = base_frame.copy()
    if footprint is None:
        return output

    frame_slice, overlay_slice = footprint
    base_region = base_frame[frame_slice]
    overlay_region = transformed[overlay_slice]

    if config.blend_mode == BlendMode.NORMAL:
        output[frame_slice] = _alpha_over(base_region, overlay_region, config.opacity)
    else:
        output[frame_slice] = blend_region(base_region, overlay_region, config.blend_mode, config.opacity)

    return output


class FrameCompositor:
    """Owns the current overlay image and its transform cache"""

    def __init__(self):
        self._overlay_image: Optional[OverlayImage] = None
        self._cache = TransformCache()

    @property
    def overlay_image(self) -> Optional[OverlayImage]:
        return self._overlay_image

    @property
    def has_overlay(self) -> bool:
        return self._overlay_image is not None

    @property
    def transform_cache(self) -> TransformCache:
        return self._cache

    def set_overlay_image(self, image: Optional[OverlayImage]):
        """Replace the overlay image; the transform cache follows on identity change"""
        if image is not self._overlay_image:
            self._overlay_image = image
            self._cache.invalidate()

    def clear_overlay_image(self):
        self.set_overlay_image(None)

    def transformed_overlay(self, config: OverlayConfig) -> Optional[np.ndarray]:
        # Read once so a concurrent image swap cannot split this tick
        image = self._overlay_image
        return self._cache.get(image, config.scale, config.rotation)

    def composite(self, base_frame: Optional[np.ndarray], config: OverlayConfig,
                  transformed: Optional[np.ndarray]) -> Optional[np.ndarray]:
        return composite(base_frame, config, transformed)

    def render(self, base_frame: Optional[np.ndarray], config: OverlayConfig) -> Optional[np.ndarray]:
        """Transform (cached) and composite the current overlay onto one base frame"""
        if base_frame is None:
            return None
        return composite(base_frame, config, self.transformed_overlay(config))
