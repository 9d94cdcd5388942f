import threading
import time

import numpy as np
import pytest

import camera.capture as capture
from camera.capture import CameraCapture, list_video_devices


class _FakeVideoCapture:
    """Minimal cv2.VideoCapture double; indices in `available` open."""

    available = {0}
    instances: list = []

    def __init__(self, index):
        self.index = index
        self.released = False
        self._opened = index in self.available
        self._frame = np.full((48, 64, 3), index + 1, dtype=np.uint8)
        _FakeVideoCapture.instances.append(self)

    def isOpened(self):
        return self._opened and not self.released

    def set(self, prop, value):
        return True

    def get(self, prop):
        return 0.0

    def read(self):
        time.sleep(0.002)
        if self.released:
            return False, None
        return True, self._frame

    def release(self):
        self.released = True


@pytest.fixture
def fake_cv2(monkeypatch):
    _FakeVideoCapture.available = {0}
    _FakeVideoCapture.instances = []
    monkeypatch.setattr(capture.cv2, "VideoCapture", _FakeVideoCapture)
    return _FakeVideoCapture


class TestListVideoDevices:

    def test_lists_open_indices_and_releases(self, fake_cv2):
        fake_cv2.available = {0, 2}
        devices = list_video_devices(max_index=4)
        assert [d.index for d in devices] == [0, 2]
        assert devices[0].label == "Camera 0"
        assert len(fake_cv2.instances) == 4
        assert all(cap.released for cap in fake_cv2.instances)


class TestCameraCapture:

    def test_open_failure_releases_device(self, fake_cv2):
        cam = CameraCapture(device_index=3)
        assert cam.open() is False
        assert not cam.is_open
        assert fake_cv2.instances[0].released

    def test_frames_and_release(self, fake_cv2):
        cam = CameraCapture(device_index=0)
        assert cam.open() is True
        frame = cam.wait_for_frame(timeout=2.0)
        assert frame is not None
        assert frame.shape == (48, 64, 3)

        cam.release()
        assert not cam.is_open
        assert fake_cv2.instances[0].released
        assert cam.wait_for_frame(timeout=0.1) is None
        cam.release()  # idempotent

    def test_context_manager_releases(self, fake_cv2):
        with CameraCapture(0) as cam:
            cam.open()
        assert fake_cv2.instances[0].released
        assert not cam.is_open

    def test_waiter_woken_by_release(self, fake_cv2):
        fake_cv2.available = set()
        cam = CameraCapture(0)
        result = {}

        def wait():
            result["frame"] = cam.wait_for_frame(timeout=5.0)

        t = threading.Thread(target=wait)
        t.start()
        time.sleep(0.05)
        cam.release()
        t.join(timeout=2.0)
        assert not t.is_alive()
        assert result["frame"] is None
