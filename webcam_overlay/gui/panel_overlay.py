"""
OverlayPanel - image selection, opacity, zoom, rotation and blend mode controls
Widgets only publish request events; the config store and render loop apply them
"""

import tkinter as tk
from tkinter import ttk
from typing import Callable, Optional

from webcam_overlay.services.event_broker import event_aware, event_handler
from webcam_overlay.services.events import OverlayEvents
from webcam_overlay.services.image_library import ImageLibrary
from webcam_overlay.services.overlay_config import BlendMode, OverlayConfig, ROTATION_STEP


@event_aware()
class OverlayPanel:
    """Top bar controls for the overlay"""

    def __init__(self, parent, image_library: ImageLibrary, initial: OverlayConfig,
                 logger: Optional[Callable] = None):
        self.image_library = image_library
        self.logger = logger

        self.frame = ttk.Frame(parent)
        self.frame.pack(side=tk.LEFT, padx=5, pady=2)

        self.image_var = tk.StringVar()
        self.opacity_var = tk.IntVar(value=int(round(initial.opacity * 100)))
        self.mode_var = tk.StringVar(value=initial.blend_mode.value)
        self.transform_var = tk.StringVar()

        self._setup_widgets()
        self._show_transform(initial)
        self.refresh_images()

    def log(self, message: str, level: str = "info"):
        """Log message if logger is available"""
        if self.logger:
            self.logger(f"OverlayPanel: {message}", level)

    def _setup_widgets(self):
        ttk.Label(self.frame, text="Image:").pack(side=tk.LEFT)
        self.image_combo = ttk.Combobox(self.frame, textvariable=self.image_var,
                                        width=18, state="readonly")
        self.image_combo.pack(side=tk.LEFT, padx=(2, 8))
        self.image_combo.bind("<<ComboboxSelected>>", self._on_image_selected)

        ttk.Label(self.frame, text="Opacity:").pack(side=tk.LEFT)
        ttk.Scale(self.frame, from_=0, to=100, orient=tk.HORIZONTAL, length=120,
                  variable=self.opacity_var, command=self._on_opacity_changed).pack(side=tk.LEFT, padx=(2, 8))

        ttk.Button(self.frame, text="Zoom+", width=6,
                   command=lambda: self.emit(OverlayEvents.ZOOM_IN_REQUESTED)).pack(side=tk.LEFT)
        ttk.Button(self.frame, text="Zoom-", width=6,
                   command=lambda: self.emit(OverlayEvents.ZOOM_OUT_REQUESTED)).pack(side=tk.LEFT, padx=(0, 8))

        ttk.Button(self.frame, text="Rot+", width=5,
                   command=lambda: self.emit(OverlayEvents.ROTATE_BY_REQUESTED, ROTATION_STEP)).pack(side=tk.LEFT)
        ttk.Button(self.frame, text="Rot-", width=5,
                   command=lambda: self.emit(OverlayEvents.ROTATE_BY_REQUESTED, -ROTATION_STEP)).pack(side=tk.LEFT, padx=(0, 8))

        ttk.Label(self.frame, text="Mode:").pack(side=tk.LEFT)
        self.mode_combo = ttk.Combobox(self.frame, textvariable=self.mode_var, values=BlendMode.labels(),
                                       width=9, state="readonly")
        self.mode_combo.pack(side=tk.LEFT, padx=(2, 8))
        self.mode_combo.bind("<<ComboboxSelected>>", self._on_mode_selected)

        ttk.Label(self.frame, textvariable=self.transform_var,
                  font=("TkDefaultFont", 8)).pack(side=tk.LEFT)

    def refresh_images(self):
        """Reload the image list from the library"""
        names = self.image_library.list_images()
        self.image_combo['values'] = names
        self.log(f"{len(names)} overlay image(s) available")

    def _on_image_selected(self, event=None):
        name = self.image_var.get()
        if name:
            self.emit(OverlayEvents.IMAGE_REQUESTED, name)

    def _on_opacity_changed(self, value):
        self.emit(OverlayEvents.OPACITY_REQUESTED, float(value) / 100.0)

    def _on_mode_selected(self, event=None):
        self.emit(OverlayEvents.BLEND_MODE_REQUESTED, self.mode_var.get())

    def _show_transform(self, config: OverlayConfig):
        self.transform_var.set(f"x{config.scale:.1f} {config.rotation:+.0f}°")

    @event_handler(OverlayEvents.CONFIG_CHANGED)
    def _on_config_changed(self, config: OverlayConfig):
        self._show_transform(config)

    @event_handler(OverlayEvents.IMAGE_LOAD_FAILED)
    def _on_image_load_failed(self, name: str, message: str):
        self.log(message, "error")
