"""
Overlay configuration
Immutable snapshot of the overlay parameters and the store that replaces it
"""

import threading
from dataclasses import dataclass, replace
from enum import Enum
from typing import Callable, Optional, Union

from webcam_overlay.services.event_broker import event_aware, event_handler
from webcam_overlay.services.events import OverlayEvents
from webcam_overlay.services.logger import with_logging

MIN_SCALE = 0.1
SCALE_STEP = 0.1
ROTATION_STEP = 5.0


class BlendMode(Enum):
    """How overlay channels are combined with the base frame"""
    NORMAL = "Normal"
    MULTIPLY = "Multiply"
    ADD = "Add"
    SCREEN = "Screen"

    @classmethod
    def parse(cls, label: str) -> Optional['BlendMode']:
        """Parse a display label such as "Multiply" or a member name, None if unknown"""
        key = str(label).strip().upper()
        for mode in cls:
            if mode.name == key:
                return mode
        return None

    @classmethod
    def from_label(cls, label: str) -> 'BlendMode':
        """Like parse(), but unknown labels map to NORMAL"""
        return cls.parse(label) or cls.NORMAL

    @classmethod
    def labels(cls):
        return [mode.value for mode in cls]


@dataclass(frozen=True)
class OverlayConfig:
    opacity: float = 0.5
    scale: float = 1.0
    rotation: float = 0.0  # degrees, clockwise
    blend_mode: BlendMode = BlendMode.NORMAL


def clamp_opacity(opacity: float) -> float:
    return min(1.0, max(0.0, float(opacity)))


def clamp_scale(scale: float) -> float:
    return max(MIN_SCALE, float(scale))


@with_logging(prefix="OverlayConfigStore")
@event_aware()
class OverlayConfigStore:
    """
    Holds the current OverlayConfig snapshot.

    Every mutation builds a new frozen snapshot with one field replaced and
    swaps it in under the lock, so readers always see a complete config.
    Values are clamped here, before anything reaches the engines.
    Requests arrive either as direct calls or as OverlayEvents on the broker.
    """

    def __init__(self, initial: Optional[OverlayConfig] = None, logger: Optional[Callable] = None):
        self._lock = threading.RLock()
        initial = initial or OverlayConfig()
        self._config = replace(initial,
                               opacity=clamp_opacity(initial.opacity),
                               scale=clamp_scale(initial.scale))

    def snapshot(self) -> OverlayConfig:
        """Current configuration, read once per render tick"""
        return self._config

    def _update(self, **changes) -> OverlayConfig:
        with self._lock:
            previous = self._config
            self._config = replace(previous, **changes)
            current = self._config

        if current != previous:
            self.emit(OverlayEvents.CONFIG_CHANGED, current)
        return current

    # Direct setters

    def set_opacity(self, opacity: float) -> OverlayConfig:
        return self._update(opacity=clamp_opacity(opacity))

    def set_scale(self, scale: float) -> OverlayConfig:
        if scale < MIN_SCALE:
            self.log_debug(f"Scale {scale} clamped to {MIN_SCALE}")
        return self._update(scale=clamp_scale(scale))

    def set_rotation(self, degrees: float) -> OverlayConfig:
        return self._update(rotation=float(degrees))

    def set_blend_mode(self, mode: Union[BlendMode, str]) -> OverlayConfig:
        if not isinstance(mode, BlendMode):
            parsed = BlendMode.parse(mode)
            if parsed is None:
                self.log_warning(f"Unknown blend mode '{mode}', using {BlendMode.NORMAL.value}")
                parsed = BlendMode.NORMAL
            mode = parsed
        return self._update(blend_mode=mode)

    # Read-modify-write helpers hold the (reentrant) lock across the update

    def zoom_in(self, step: float = SCALE_STEP) -> OverlayConfig:
        with self._lock:
            return self.set_scale(self._config.scale + step)

    def zoom_out(self, step: float = SCALE_STEP) -> OverlayConfig:
        with self._lock:
            return self.set_scale(self._config.scale - step)

    def rotate_by(self, degrees: float) -> OverlayConfig:
        with self._lock:
            return self.set_rotation(self._config.rotation + degrees)

    def rotate_cw(self) -> OverlayConfig:
        return self.rotate_by(ROTATION_STEP)

    def rotate_ccw(self) -> OverlayConfig:
        return self.rotate_by(-ROTATION_STEP)

    # Requests from the parameter source

    @event_handler(OverlayEvents.OPACITY_REQUESTED)
    def _on_opacity_requested(self, opacity: float):
        self.set_opacity(opacity)

    @event_handler(OverlayEvents.SCALE_REQUESTED)
    def _on_scale_requested(self, scale: float):
        self.set_scale(scale)

    @event_handler(OverlayEvents.ZOOM_IN_REQUESTED)
    def _on_zoom_in_requested(self):
        self.zoom_in()

    @event_handler(OverlayEvents.ZOOM_OUT_REQUESTED)
    def _on_zoom_out_requested(self):
        self.zoom_out()

    @event_handler(OverlayEvents.ROTATION_REQUESTED)
    def _on_rotation_requested(self, degrees: float):
        self.set_rotation(degrees)

    @event_handler(OverlayEvents.ROTATE_BY_REQUESTED)
    def _on_rotate_by_requested(self, degrees: float):
        self.rotate_by(degrees)

    @event_handler(OverlayEvents.BLEND_MODE_REQUESTED)
    def _on_blend_mode_requested(self, mode):
        self.set_blend_mode(mode)
