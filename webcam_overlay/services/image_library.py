"""
Image Library
Lists the overlay images in a directory and decodes them with Pillow
"""

from pathlib import Path
from typing import Callable, List, Optional, Union

import cv2
import numpy as np
from PIL import Image, UnidentifiedImageError

from webcam_overlay.services.compositing.frames import OverlayImage
from webcam_overlay.services.event_broker import event_aware
from webcam_overlay.services.events import OverlayEvents
from webcam_overlay.services.logger import with_logging

IMAGE_EXTENSIONS = ('.jpg', '.png', '.gif')


class ImageLoadError(Exception):
    """Raised when an overlay image cannot be read or decoded"""


def decode_image(path: Path) -> np.ndarray:
    """Decode an image file to a BGRA uint8 array (first frame for animated GIFs)"""
    with Image.open(path) as image:
        rgba = np.array(image.convert("RGBA"))
    return cv2.cvtColor(rgba, cv2.COLOR_RGBA2BGRA)


@with_logging(prefix="ImageLibrary")
@event_aware()
class ImageLibrary:
    """Overlay image provider backed by a directory"""

    def __init__(self, directory: Union[str, Path] = "images", logger: Optional[Callable] = None):
        self.directory = Path(directory)

    def list_images(self) -> List[str]:
        """File names of the supported images in the directory, sorted"""
        if not self.directory.is_dir():
            self.log_warning(f"Image directory '{self.directory}' not found")
            return []

        return sorted(
            entry.name for entry in self.directory.iterdir()
            if entry.is_file() and entry.suffix.lower() in IMAGE_EXTENSIONS
        )

    def load_image(self, name: str) -> OverlayImage:
        """
        Load an overlay image by file name

        Raises:
            ImageLoadError: the file is missing, unreadable or not an image
        """
        path = self.directory / name
        try:
            pixels = decode_image(path)
        except (OSError, UnidentifiedImageError, ValueError) as e:
            message = f"Failed to load image '{name}': {e}"
            self.log_error(message)
            self.emit(OverlayEvents.IMAGE_LOAD_FAILED, name, message)
            raise ImageLoadError(message) from e

        image = OverlayImage(pixels, name=name)
        self.log_info(f"Loaded image '{name}' ({image.width}x{image.height})")
        self.emit(OverlayEvents.IMAGE_LOADED, image)
        return image
