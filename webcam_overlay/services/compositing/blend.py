"""
Blend Engine
Per-channel blend math for the overlay modes.

Channels are normalised to [0, 1]; the result is
    (1 - alpha) * base + alpha * mode(base, overlay)
with alpha = overlay_alpha / 255 * opacity, rounded back to [0, 255].
Base alpha is never modified.
"""

from typing import Sequence

import numpy as np

from webcam_overlay.services.overlay_config import BlendMode


def _multiply(b: np.ndarray, o: np.ndarray) -> np.ndarray:
    return b * o


def _add(b: np.ndarray, o: np.ndarray) -> np.ndarray:
    return np.minimum(1.0, b + o)


def _screen(b: np.ndarray, o: np.ndarray) -> np.ndarray:
    return 1.0 - (1.0 - b) * (1.0 - o)


def _normal(b: np.ndarray, o: np.ndarray) -> np.ndarray:
    return o


MODE_FUNCTIONS = {
    BlendMode.NORMAL: _normal,
    BlendMode.MULTIPLY: _multiply,
    BlendMode.ADD: _add,
    BlendMode.SCREEN: _screen,
}


def effective_alpha(overlay_alpha: np.ndarray, opacity: float) -> np.ndarray:
    """Overlay alpha (0-255) scaled by the global opacity, clamped to [0, 1]"""
    alpha = overlay_alpha.astype(np.float32) / 255.0 * np.float32(opacity)
    return np.clip(alpha, 0.0, 1.0)


def to_channel(values: np.ndarray) -> np.ndarray:
    """Normalised [0, 1] values back to uint8, rounding half up"""
    return np.clip(np.floor(values * 255.0 + 0.5), 0, 255).astype(np.uint8)


def blend_region(base: np.ndarray, overlay: np.ndarray, mode: BlendMode, opacity: float) -> np.ndarray:
    """
    Blend an overlay region into an equally sized base region.

    Args:
        base: (H, W, 3) BGR or (H, W, 4) BGRA uint8 region
        overlay: (H, W, 4) BGRA uint8 region
        mode: Blend mode
        opacity: Global overlay opacity in [0, 1]

    Returns:
        New uint8 array shaped like base
    """
    alpha = effective_alpha(overlay[..., 3], opacity)[..., None]
    b = base[..., :3].astype(np.float32) / 255.0
    o = overlay[..., :3].astype(np.float32) / 255.0

    mode_result = MODE_FUNCTIONS[mode](b, o)
    final = (1.0 - alpha) * b + alpha * mode_result

    result = base.copy()
    result[..., :3] = to_channel(final)
    return result


def blend_pixel(base: Sequence[int], overlay: Sequence[int], mode: BlendMode, opacity: float) -> np.ndarray:
    """Blend a single BGRA overlay pixel onto a single BGRA base pixel"""
    base_px = np.asarray(base, dtype=np.uint8).reshape(1, 1, 4)
    overlay_px = np.asarray(overlay, dtype=np.uint8).reshape(1, 1, 4)
    return blend_region(base_px, overlay_px, mode, opacity).reshape(4)
