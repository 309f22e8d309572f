import threading
from typing import List, Optional

import cv2
import numpy as np

from webcam_overlay.services.camera_interfaces import ICameraConnection, IFrameSource
from webcam_overlay.services.event_broker import event_aware
from webcam_overlay.services.events import CameraEvents

VGA_SIZE = (640, 480)


def list_cameras(max_index: int = 5) -> List[int]:
    """Probe device indices and return the ones that open and deliver a frame"""
    cameras = []
    for camera_id in range(max_index):
        cap = cv2.VideoCapture(camera_id)
        try:
            if cap.isOpened():
                ret, frame = cap.read()
                if ret and frame is not None:
                    cameras.append(camera_id)
        finally:
            cap.release()
    return cameras


@event_aware()
class CameraManager(ICameraConnection, IFrameSource):
    """
    Camera frame source.

    A background grabber thread reads from the capture device and keeps only
    the latest frame, so current_frame() never waits on the device. The
    grabber never publishes events: a lost camera is flagged and reported by
    the next current_frame() or connect() call, on the caller's thread.
    """

    def __init__(self, camera_id=0, view_size=VGA_SIZE):
        self.camera_id = camera_id
        self.view_size = view_size
        self.cap = None

        self._latest_frame: Optional[np.ndarray] = None
        self._frame_lock = threading.Lock()
        self._grabber: Optional[threading.Thread] = None
        self._stop_event = threading.Event()
        self._camera_lost = threading.Event()
        self._lost_reason = ""

        # Connection state
        self._is_connected = False

        # self._event_broker is automatically available from decorator

    @property
    def is_connected(self) -> bool:
        """Check if camera is currently connected"""
        return (self._is_connected and not self._camera_lost.is_set()
                and self.cap is not None and self.cap.isOpened())

    def connect(self) -> bool:
        """Open the camera, start the grabber and emit connection event"""
        if self._camera_lost.is_set():
            self._report_lost()

        if self._is_connected:
            return True

        try:
            self.cap = cv2.VideoCapture(self.camera_id)
            success = self.cap.isOpened()

            if success:
                width, height = self.view_size
                self.cap.set(cv2.CAP_PROP_FRAME_WIDTH, width)
                self.cap.set(cv2.CAP_PROP_FRAME_HEIGHT, height)

                # Test capture to ensure camera is working
                ret, test_frame = self.cap.read()
                if not ret or test_frame is None:
                    success = False
                    self.cap.release()
                    self.cap = None
                    self.emit(CameraEvents.ERROR, "Camera connected but unable to capture frames")
                else:
                    self._store_frame(test_frame)
            else:
                self.cap.release()
                self.cap = None

            self._is_connected = success
            if success:
                self._start_grabber()

            self.emit(CameraEvents.CONNECTED, success)
            return success

        except Exception as e:
            if self.cap:
                self.cap.release()
                self.cap = None
            self.emit(CameraEvents.ERROR, f"Failed to connect to camera {self.camera_id}: {e}")
            self.emit(CameraEvents.CONNECTED, False)
            self._is_connected = False
            return False

    def disconnect(self):
        """Stop the grabber, release the camera and emit disconnection event"""
        self._stop_grabber()
        self._camera_lost.clear()

        if self.cap:
            self.cap.release()
            self.cap = None

        with self._frame_lock:
            self._latest_frame = None

        was_connected = self._is_connected
        self._is_connected = False

        if was_connected:
            self.emit(CameraEvents.DISCONNECTED)

    def current_frame(self) -> Optional[np.ndarray]:
        """Latest captured frame or None; never blocks on the device"""
        if self._camera_lost.is_set():
            self._report_lost()
            return None

        with self._frame_lock:
            return self._latest_frame

    def set_camera_id(self, camera_id: int):
        """Change camera ID, reconnecting if a camera was open"""
        was_connected = self._is_connected
        if was_connected:
            self.disconnect()

        self.camera_id = camera_id

        if was_connected:
            self.connect()

    def get_camera_info(self) -> dict:
        """Get camera information"""
        info = {
            "camera_id": self.camera_id,
            "connected": self.is_connected
        }

        if self.is_connected:
            try:
                info.update({
                    "width": int(self.cap.get(cv2.CAP_PROP_FRAME_WIDTH)),
                    "height": int(self.cap.get(cv2.CAP_PROP_FRAME_HEIGHT)),
                    "fps": self.cap.get(cv2.CAP_PROP_FPS)
                })
            except Exception as e:
                self.emit(CameraEvents.ERROR, f"Error getting camera info: {e}")

        return info

    def _report_lost(self):
        """Release a camera the grabber lost and publish the loss"""
        self.emit(CameraEvents.ERROR, self._lost_reason)
        self.disconnect()

    def _store_frame(self, frame: np.ndarray):
        with self._frame_lock:
            self._latest_frame = frame

    def _start_grabber(self):
        self._stop_event.clear()
        self._lost_reason = ""
        self._grabber = threading.Thread(target=self._grab_loop, name=f"camera-{self.camera_id}", daemon=True)
        self._grabber.start()

    def _stop_grabber(self):
        self._stop_event.set()
        if self._grabber and self._grabber is not threading.current_thread():
            self._grabber.join(timeout=1.0)
        self._grabber = None

    def _grab_loop(self):
        """Read frames until stopped; a failed read marks the camera as lost"""
        while not self._stop_event.is_set():
            cap = self.cap
            if cap is None:
                break

            try:
                ret, frame = cap.read()
            except Exception as e:
                self._lost_reason = f"Error capturing frame: {e}"
                ret, frame = False, None

            if ret and frame is not None:
                self._store_frame(frame)
                continue

            if self._stop_event.is_set():
                break

            # Camera might have been disconnected
            if not self._lost_reason:
                self._lost_reason = "Failed to capture frame - camera may be disconnected"
            with self._frame_lock:
                self._latest_frame = None
            self._camera_lost.set()
            break

