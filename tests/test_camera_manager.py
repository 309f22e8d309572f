import threading
import time
from unittest import mock

import numpy as np
import pytest

from webcam_overlay.services.camera_manager import CameraManager, list_cameras
from webcam_overlay.services.events import CameraEvents


class FakeCapture:
    """Stand-in for cv2.VideoCapture producing numbered frames"""

    def __init__(self, opened=True, fail_after=None):
        self._opened = opened
        self._count = 0
        self._fail_after = fail_after
        self.released = False
        self.props = {}
        self.read_gate = threading.Event()
        self.read_gate.set()

    def isOpened(self):
        return self._opened and not self.released

    def set(self, prop, value):
        self.props[prop] = value
        return True

    def get(self, prop):
        return self.props.get(prop, 0)

    def read(self):
        self.read_gate.wait(1.0)
        if self._fail_after is not None and self._count >= self._fail_after:
            return False, None
        self._count += 1
        frame = np.full((4, 4, 3), self._count % 256, dtype=np.uint8)
        time.sleep(0.001)
        return True, frame

    def release(self):
        self.released = True


def wait_for(predicate, timeout=2.0):
    deadline = time.time() + timeout
    while time.time() < deadline:
        if predicate():
            return True
        time.sleep(0.005)
    return False


@pytest.fixture
def events(clean_broker):
    received = []
    for event_type in (CameraEvents.CONNECTED, CameraEvents.DISCONNECTED, CameraEvents.ERROR):
        clean_broker.subscribe(event_type, lambda *args, _t=event_type: received.append((_t, args)))
    return received


class TestCameraManager:

    def test_connect_publishes_latest_frame(self, events):
        capture = FakeCapture()
        with mock.patch("webcam_overlay.services.camera_manager.cv2.VideoCapture", return_value=capture):
            camera = CameraManager(camera_id=1)
            assert camera.connect() is True

            try:
                assert camera.is_connected
                assert (CameraEvents.CONNECTED, (True,)) in events
                assert camera.current_frame() is not None
                first = int(camera.current_frame()[0, 0, 0])
                assert wait_for(lambda: int(camera.current_frame()[0, 0, 0]) != first)
            finally:
                camera.disconnect()

        assert capture.released
        assert camera.current_frame() is None
        assert (CameraEvents.DISCONNECTED, ()) in events

    def test_requests_vga_view_size(self):
        capture = FakeCapture()
        with mock.patch("webcam_overlay.services.camera_manager.cv2.VideoCapture", return_value=capture):
            camera = CameraManager()
            camera.connect()
            camera.disconnect()

        assert sorted(capture.props.values()) == [480, 640]

    def test_unopened_device_fails(self, events):
        capture = FakeCapture(opened=False)
        with mock.patch("webcam_overlay.services.camera_manager.cv2.VideoCapture", return_value=capture):
            camera = CameraManager()
            assert camera.connect() is False

        assert not camera.is_connected
        assert camera.current_frame() is None
        assert (CameraEvents.CONNECTED, (False,)) in events

    def test_device_without_frames_fails(self, events):
        capture = FakeCapture(fail_after=0)
        with mock.patch("webcam_overlay.services.camera_manager.cv2.VideoCapture", return_value=capture):
            camera = CameraManager()
            assert camera.connect() is False

        assert any(event == CameraEvents.ERROR for event, _ in events)

    def test_lost_camera_is_reported_on_next_read(self, events):
        capture = FakeCapture(fail_after=3)
        with mock.patch("webcam_overlay.services.camera_manager.cv2.VideoCapture", return_value=capture):
            camera = CameraManager()
            assert camera.connect() is True

            assert wait_for(lambda: not camera.is_connected)
            assert (CameraEvents.DISCONNECTED, ()) not in events

            assert camera.current_frame() is None
            assert (CameraEvents.DISCONNECTED, ()) in events
            assert capture.released
            camera.disconnect()

        assert events.count((CameraEvents.DISCONNECTED, ())) == 1

    def test_loss_events_arrive_on_calling_thread(self, clean_broker):
        threads = []
        for event_type in (CameraEvents.ERROR, CameraEvents.DISCONNECTED):
            clean_broker.subscribe(event_type, lambda *args: threads.append(threading.current_thread().name))

        capture = FakeCapture(fail_after=2)
        with mock.patch("webcam_overlay.services.camera_manager.cv2.VideoCapture", return_value=capture):
            camera = CameraManager()
            camera.connect()
            assert wait_for(lambda: not camera.is_connected)
            assert threads == []

            camera.current_frame()

        assert threads == [threading.current_thread().name] * 2

    def test_reconnect_after_loss_releases_old_capture(self, events):
        lost = FakeCapture(fail_after=3)
        fresh = FakeCapture()
        with mock.patch("webcam_overlay.services.camera_manager.cv2.VideoCapture", side_effect=[lost, fresh]):
            camera = CameraManager()
            assert camera.connect() is True
            assert wait_for(lambda: not camera.is_connected)

            try:
                assert camera.connect() is True
                assert lost.released
                assert not fresh.released
                assert camera.cap is fresh
                assert camera.current_frame() is not None
            finally:
                camera.disconnect()

        assert fresh.released
        assert events.count((CameraEvents.CONNECTED, (True,))) == 2

    def test_current_frame_does_not_block(self):
        capture = FakeCapture()
        with mock.patch("webcam_overlay.services.camera_manager.cv2.VideoCapture", return_value=capture):
            camera = CameraManager()
            camera.connect()
            capture.read_gate.clear()  # device stalls

            try:
                started = time.perf_counter()
                frame = camera.current_frame()
                assert time.perf_counter() - started < 0.05
                assert frame is not None
            finally:
                capture.read_gate.set()
                camera.disconnect()

    def test_list_cameras_probes_indices(self):
        captures = [FakeCapture(), FakeCapture(opened=False), FakeCapture()]
        with mock.patch("webcam_overlay.services.camera_manager.cv2.VideoCapture", side_effect=captures):
            assert list_cameras(max_index=3) == [0, 2]

        assert all(capture.released for capture in captures)
