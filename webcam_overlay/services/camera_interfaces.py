# Segregated interfaces for the frame source
from abc import ABC, abstractmethod
from typing import Optional

import numpy as np


class ICameraConnection(ABC):
    @abstractmethod
    def connect(self) -> bool: pass

    @abstractmethod
    def disconnect(self) -> None: pass

    @property
    @abstractmethod
    def is_connected(self) -> bool: pass


class IFrameSource(ABC):
    @abstractmethod
    def current_frame(self) -> Optional[np.ndarray]:
        """Most recently captured frame, or None. Must not block."""
        pass
