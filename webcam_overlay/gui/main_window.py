"""
Main window: control bar on top, composited camera feed below, status line
"""

import tkinter as tk
from tkinter import ttk
from typing import Callable, Optional

from webcam_overlay.gui.camera_display import CameraDisplay
from webcam_overlay.gui.panel_camera import CameraPanel
from webcam_overlay.gui.panel_overlay import OverlayPanel
from webcam_overlay.services.event_broker import event_aware, event_handler, EventBroker
from webcam_overlay.services.events import ApplicationEvents, CameraEvents, OverlayEvents
from webcam_overlay.services.render_loop import DEFAULT_INTERVAL_MS


@event_aware()
class OverlayAppGUI:
    """Main GUI window for the webcam overlay application"""

    def __init__(self, root, camera_manager, compositor, config_store, image_library,
                 interval_ms: int = DEFAULT_INTERVAL_MS, logger: Optional[Callable] = None,
                 debug_events: bool = False):
        self.root = root
        self.root.title("Webcam Overlay")

        self.camera_manager = camera_manager
        self.compositor = compositor
        self.config_store = config_store
        self.image_library = image_library
        self.logger = logger

        self.status_var = tk.StringVar(value="Ready")

        broker = EventBroker.get_default()
        broker.set_logger(self.log, enable_logging=debug_events)

        self.setup_gui(interval_ms)

        self.log("Application started", "info")
        self.emit(ApplicationEvents.STARTUP)

    def log(self, message: str, level: str = "info"):
        if self.logger:
            self.logger(message, level)
        if level in ("error", "warning"):
            self.status_var.set(message)

    def setup_gui(self, interval_ms: int):
        control_bar = ttk.Frame(self.root)
        control_bar.pack(side=tk.TOP, fill=tk.X)

        # Display first so it is subscribed before the panel connects the camera
        display_frame = ttk.Frame(self.root)
        display_frame.pack(side=tk.TOP, fill=tk.BOTH, expand=True)
        self.camera_display = CameraDisplay(
            display_frame, self.camera_manager, self.compositor, self.config_store,
            image_library=self.image_library, interval_ms=interval_ms, logger=self.log
        )

        self.camera_panel = CameraPanel(control_bar, self.camera_manager, logger=self.log)
        self.overlay_panel = OverlayPanel(control_bar, self.image_library,
                                          self.config_store.snapshot(), logger=self.log)

        ttk.Label(self.root, textvariable=self.status_var, anchor=tk.W,
                  relief=tk.SUNKEN).pack(side=tk.BOTTOM, fill=tk.X)

    def open_default_camera(self):
        """Open the selected camera at start-up, like pressing Connect"""
        self.camera_panel.connect_camera()

    @event_handler(CameraEvents.CONNECTED)
    def _on_camera_connected(self, success: bool):
        if success:
            self.status_var.set(f"Camera {self.camera_manager.camera_id} connected")
        else:
            self.log(f"Camera {self.camera_manager.camera_id} could not be opened", "error")

    @event_handler(OverlayEvents.IMAGE_LOADED)
    def _on_image_loaded(self, image):
        self.status_var.set(f"Overlay: {image.name} ({image.width}x{image.height})")

    def on_closing(self):
        """Stop rendering, release the camera and close the window"""
        self.emit(ApplicationEvents.SHUTDOWN)
        self.camera_display.stop_feed()
        self.camera_manager.disconnect()
        for component in (self.camera_display, self.camera_panel, self.overlay_panel,
                          self.camera_display.render_loop, self.config_store, self.image_library):
            component.cleanup_subscriptions()
        self.cleanup_subscriptions()
        self.root.destroy()
