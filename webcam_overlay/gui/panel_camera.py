"""
Compact CameraPanel with camera selection and connection controls
"""

import tkinter as tk
from tkinter import ttk
from typing import Callable, List, Optional

from webcam_overlay.services.camera_manager import list_cameras
from webcam_overlay.services.event_broker import event_aware, event_handler, EventPriority
from webcam_overlay.services.events import CameraEvents


@event_aware()
class CameraPanel:
    """Camera selector with connect/disconnect buttons"""

    def __init__(self, parent, camera_manager, logger: Optional[Callable] = None,
                 probe: Callable[[], List[int]] = list_cameras):
        self.camera_manager = camera_manager
        self.logger = logger
        self._probe = probe

        self.frame = ttk.Frame(parent)
        self.frame.pack(side=tk.LEFT, padx=5, pady=2)

        self.camera_id_var = tk.StringVar(value=str(camera_manager.camera_id))
        self.camera_status_var = tk.StringVar(value="Disconnected")

        self._setup_widgets()
        self.refresh_cameras()

    def log(self, message: str, level: str = "info"):
        """Log message if logger is available"""
        if self.logger:
            self.logger(f"CameraPanel: {message}", level)
        else:
            print(f"[{level.upper()}] CameraPanel: {message}")

    def _setup_widgets(self):
        ttk.Label(self.frame, text="Webcam:").pack(side=tk.LEFT)
        self.camera_combo = ttk.Combobox(self.frame, textvariable=self.camera_id_var,
                                         width=4, state="readonly")
        self.camera_combo.pack(side=tk.LEFT, padx=(2, 0))
        self.camera_combo.bind("<<ComboboxSelected>>", self._on_camera_selected)

        self.cam_status_label = ttk.Label(self.frame, textvariable=self.camera_status_var,
                                          foreground="red", font=("TkDefaultFont", 8))
        self.cam_status_label.pack(side=tk.LEFT, padx=(5, 5))

        self.camera_connect_btn = ttk.Button(self.frame, text="Connect",
                                             command=self.connect_camera, width=8)
        self.camera_connect_btn.pack(side=tk.LEFT, padx=(0, 2))

        self.camera_disconnect_btn = ttk.Button(self.frame, text="Disconnect",
                                                command=self.disconnect_camera, width=10, state=tk.DISABLED)
        self.camera_disconnect_btn.pack(side=tk.LEFT, padx=(0, 2))

    def refresh_cameras(self):
        """Probe the available devices and fill the selector"""
        cameras = self._probe()
        self.camera_combo['values'] = [str(camera_id) for camera_id in cameras]
        if cameras and int(self.camera_id_var.get()) not in cameras:
            self.camera_id_var.set(str(cameras[0]))
        self.emit(CameraEvents.CAMERAS_LISTED, cameras)
        self.log(f"Found {len(cameras)} camera(s)")

    def _on_camera_selected(self, event=None):
        camera_id = int(self.camera_id_var.get())
        if camera_id != self.camera_manager.camera_id:
            self.log(f"Switching to camera {camera_id}")
            self.camera_manager.set_camera_id(camera_id)

    def connect_camera(self):
        """Connect to the selected camera"""
        self.camera_manager.camera_id = int(self.camera_id_var.get())
        self.camera_status_var.set("Connecting...")
        self.camera_manager.connect()

    def disconnect_camera(self):
        self.camera_manager.disconnect()

    # === EVENT HANDLERS ===

    @event_handler(CameraEvents.CONNECTED, EventPriority.HIGH)
    def _on_camera_connected(self, success: bool):
        if success:
            self.camera_status_var.set("Connected")
            self.cam_status_label.config(foreground="green")
            self.camera_connect_btn.config(state=tk.DISABLED)
            self.camera_disconnect_btn.config(state=tk.NORMAL)
        else:
            self.camera_status_var.set("Failed")
            self.cam_status_label.config(foreground="red")

    @event_handler(CameraEvents.DISCONNECTED, EventPriority.HIGH)
    def _on_camera_disconnected(self):
        self.camera_status_var.set("Disconnected")
        self.cam_status_label.config(foreground="red")
        self.camera_connect_btn.config(state=tk.NORMAL)
        self.camera_disconnect_btn.config(state=tk.DISABLED)

    @event_handler(CameraEvents.ERROR)
    def _on_camera_error(self, error_message: str):
        self.log(f"Camera error: {error_message}", "error")
