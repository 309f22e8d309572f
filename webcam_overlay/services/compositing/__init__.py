"""
Compositing engines: overlay transform, blend math and per-frame compositor
"""

from .blend import blend_pixel, blend_region
from .compositor import FrameCompositor, composite
from .frames import OverlayImage
from .transform import TransformCache, transform_overlay

__all__ = [
    'blend_pixel',
    'blend_region',
    'composite',
    'FrameCompositor',
    'OverlayImage',
    'TransformCache',
    'transform_overlay'
]
