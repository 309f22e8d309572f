"""
Render Loop
Ticks the frame compositor at a fixed interval and forwards overlay image
selections to it
"""

import time
from typing import Callable, Optional

import numpy as np

from webcam_overlay.services.camera_interfaces import IFrameSource
from webcam_overlay.services.compositing.compositor import FrameCompositor
from webcam_overlay.services.event_broker import event_aware, event_handler
from webcam_overlay.services.events import OverlayEvents
from webcam_overlay.services.image_library import ImageLibrary, ImageLoadError
from webcam_overlay.services.logger import with_logging
from webcam_overlay.services.overlay_config import OverlayConfigStore

DEFAULT_INTERVAL_MS = 33  # ~30 FPS

Scheduler = Callable[[int, Callable[[], None]], object]


@with_logging(prefix="RenderLoop")
@event_aware()
class RenderLoop:
    """
    Fixed-rate driver for the compositor.

    Each tick reads the latest frame and the config snapshot exactly once.
    A tick without a frame is dropped; a failing tick is logged and the loop
    keeps going. Scheduling is delegated to the host (tkinter `after`).
    """

    def __init__(self, frame_source: IFrameSource, compositor: FrameCompositor,
                 config_store: OverlayConfigStore, sink: Callable[[np.ndarray], None],
                 image_library: Optional[ImageLibrary] = None,
                 interval_ms: int = DEFAULT_INTERVAL_MS,
                 logger: Optional[Callable] = None):
        self.frame_source = frame_source
        self.compositor = compositor
        self.config_store = config_store
        self.sink = sink
        self.image_library = image_library
        self.interval_ms = interval_ms

        self._running = False
        self._schedule: Optional[Scheduler] = None
        self._stats = {
            'ticks': 0,
            'presented': 0,
            'dropped': 0,
            'errors': 0,
            'last_tick_ms': 0.0
        }

    @property
    def is_running(self) -> bool:
        return self._running

    @property
    def stats(self) -> dict:
        return self._stats.copy()

    def start(self, schedule: Scheduler):
        """Start ticking; schedule(delay_ms, callback) arms the host timer"""
        if self._running:
            return
        self._schedule = schedule
        self._running = True
        self.log_info(f"Render loop started ({self.interval_ms} ms interval)")
        self._run()

    def stop(self):
        """Stop at the next tick boundary"""
        if self._running:
            self._running = False
            self.log_info("Render loop stopped")

    def _run(self):
        if not self._running:
            return
        self.tick()
        if self._running:
            self._schedule(self.interval_ms, self._run)

    def tick(self) -> bool:
        """Composite and present one frame, returns True if a frame was presented"""
        started = time.perf_counter()
        self._stats['ticks'] += 1

        try:
            frame = self.frame_source.current_frame()
            config = self.config_store.snapshot()

            if frame is None:
                self._stats['dropped'] += 1
                return False

            output = self.compositor.render(frame, config)
            self.sink(output)
            self._stats['presented'] += 1
            return True

        except Exception as e:
            self._stats['errors'] += 1
            self.log_error(f"Error in render tick: {e}")
            return False

        finally:
            elapsed_ms = (time.perf_counter() - started) * 1000.0
            self._stats['last_tick_ms'] = elapsed_ms
            if elapsed_ms > self.interval_ms:
                self.log_debug(f"Tick exceeded interval: {elapsed_ms:.1f} ms")

    def select_image(self, name: Optional[str]) -> bool:
        """Load an image and make it the overlay; on failure the current overlay stays"""
        if not name:
            self.compositor.clear_overlay_image()
            self.emit(OverlayEvents.IMAGE_CLEARED)
            return True

        if self.image_library is None:
            self.log_warning(f"No image library, cannot load '{name}'")
            return False

        try:
            image = self.image_library.load_image(name)
        except ImageLoadError as e:
            self.log_warning(f"Keeping current overlay: {e}")
            return False

        self.compositor.set_overlay_image(image)
        return True

    @event_handler(OverlayEvents.IMAGE_REQUESTED)
    def _on_image_requested(self, name: Optional[str]):
        self.select_image(name)
