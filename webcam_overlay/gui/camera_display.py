"""
Camera Display Widget
Presents composited frames on a canvas and drives the render loop from the
tkinter timer
"""

import tkinter as tk
from typing import Callable, Optional

import cv2
import numpy as np
from PIL import Image, ImageTk

from webcam_overlay.services.compositing.compositor import FrameCompositor
from webcam_overlay.services.event_broker import event_aware, event_handler, EventPriority
from webcam_overlay.services.events import CameraEvents
from webcam_overlay.services.image_library import ImageLibrary
from webcam_overlay.services.overlay_config import OverlayConfigStore
from webcam_overlay.services.render_loop import RenderLoop, DEFAULT_INTERVAL_MS

DEFAULT_CANVAS_SIZE = (640, 480)


def frame_to_image(frame: np.ndarray) -> Image.Image:
    """Convert a BGR or BGRA frame to an RGB Pillow image"""
    if frame.ndim == 3 and frame.shape[2] == 4:
        rgb_frame = cv2.cvtColor(frame, cv2.COLOR_BGRA2RGB)
    else:
        rgb_frame = cv2.cvtColor(frame, cv2.COLOR_BGR2RGB)
    return Image.fromarray(rgb_frame)


def fit_size(width: int, height: int, canvas_width: int, canvas_height: int):
    """Largest size with the image aspect ratio that fits the canvas"""
    img_aspect = width / height
    canvas_aspect = canvas_width / canvas_height

    if img_aspect > canvas_aspect:
        return canvas_width, max(1, int(canvas_width / img_aspect))
    return max(1, int(canvas_height * img_aspect)), canvas_height


@event_aware()
class CameraDisplay:
    """Widget for displaying the composited camera feed"""

    def __init__(self, parent, camera_manager, compositor: FrameCompositor,
                 config_store: OverlayConfigStore, image_library: Optional[ImageLibrary] = None,
                 interval_ms: int = DEFAULT_INTERVAL_MS, logger: Optional[Callable] = None):
        self.parent = parent
        self.camera_manager = camera_manager
        self.logger = logger

        self.render_loop = RenderLoop(
            camera_manager, compositor, config_store, self.present,
            image_library=image_library, interval_ms=interval_ms, logger=logger
        )

        self.canvas = tk.Canvas(parent, bg='black',
                                width=DEFAULT_CANVAS_SIZE[0], height=DEFAULT_CANVAS_SIZE[1])
        self.canvas.pack(fill=tk.BOTH, expand=True, padx=5, pady=5)

    def log(self, message: str, level: str = "info"):
        """Log message if logger is available"""
        if self.logger:
            self.logger(message, level)

    @event_handler(CameraEvents.CONNECTED)
    def _on_camera_connected(self, success: bool):
        if success:
            self.start_feed()

    @event_handler(CameraEvents.DISCONNECTED, EventPriority.HIGH)
    def _on_camera_disconnected(self):
        # The render loop keeps ticking and drops frames until the camera is back
        self.log("Camera disconnected - last frame stays on screen", "info")

    def start_feed(self):
        """Start the render loop on the tkinter timer"""
        if self.render_loop.is_running:
            return
        self.log("Starting camera feed", "info")
        self.render_loop.start(self.parent.after)

    def stop_feed(self):
        """Stop the render loop and clear the canvas"""
        if self.render_loop.is_running:
            self.render_loop.stop()
            self.canvas.delete("all")
            self._show_disconnected_message()

    def _show_disconnected_message(self):
        canvas_width = self.canvas.winfo_width()
        canvas_height = self.canvas.winfo_height()

        if canvas_width > 1 and canvas_height > 1:
            self.canvas.create_text(
                canvas_width // 2,
                canvas_height // 2,
                text="Camera Disconnected",
                fill="white",
                font=("Arial", 16)
            )

    def present(self, frame: np.ndarray):
        """Presentation sink: draw one frame scaled to fit the canvas"""
        pil_image = frame_to_image(frame)

        canvas_width = self.canvas.winfo_width()
        canvas_height = self.canvas.winfo_height()
        if canvas_width <= 1 or canvas_height <= 1:
            canvas_width, canvas_height = DEFAULT_CANVAS_SIZE

        size = fit_size(pil_image.width, pil_image.height, canvas_width, canvas_height)
        if size != pil_image.size:
            pil_image = pil_image.resize(size, Image.Resampling.BILINEAR)

        photo = ImageTk.PhotoImage(pil_image)
        self.canvas.delete("all")
        self.canvas.create_image(canvas_width // 2, canvas_height // 2, image=photo)

        # Keep a reference to prevent garbage collection
        self.canvas.image = photo
