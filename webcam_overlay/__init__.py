"""
Webcam Overlay
Blends a scaled, rotated, semi-transparent image over a live camera feed
"""

__version__ = "0.1.0"
