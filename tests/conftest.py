"""Shared pytest fixtures for the webcam overlay test suite."""

from typing import Optional

import numpy as np
import pytest

from webcam_overlay.services.camera_interfaces import IFrameSource
from webcam_overlay.services.event_broker import EventBroker


def solid_frame(width: int, height: int, bgra=(0, 0, 0, 255)) -> np.ndarray:
    """A BGRA frame filled with one colour"""
    frame = np.empty((height, width, 4), dtype=np.uint8)
    frame[...] = bgra
    return frame


class FakeFrameSource(IFrameSource):
    """Frame source returning whatever frame the test put in"""

    def __init__(self, frame: Optional[np.ndarray] = None):
        self.frame = frame
        self.reads = 0

    def current_frame(self) -> Optional[np.ndarray]:
        self.reads += 1
        return self.frame


@pytest.fixture(autouse=True)
def clean_broker():
    """Drop subscriptions left behind by components created in a test."""
    broker = EventBroker.get_default()
    broker.unsubscribe_all()
    yield broker
    broker.unsubscribe_all()


@pytest.fixture
def silent_logger():
    """Logger callable collecting (message, level) tuples instead of printing."""
    messages = []

    def logger(message, level="info"):
        messages.append((message, level))

    logger.messages = messages
    return logger


@pytest.fixture
def black_frame():
    return solid_frame(20, 10, (0, 0, 0, 255))


@pytest.fixture
def white_pixels():
    return solid_frame(6, 4, (255, 255, 255, 255))
