"""
GUI Package
Contains the tkinter components of the webcam overlay application
"""

from .camera_display import CameraDisplay
from .main_window import OverlayAppGUI
from .panel_camera import CameraPanel
from .panel_overlay import OverlayPanel

__all__ = [
    'OverlayAppGUI',
    'CameraDisplay',
    'CameraPanel',
    'OverlayPanel'
]
