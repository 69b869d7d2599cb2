"""摄像头采集线程：读取帧、做关键点检测、把结果交给回调"""

import threading
import time
from typing import Callable, Optional

import cv2
import numpy as np

from detectors.landmark_source import LandmarkSource
from models.data_models import FrameDetection


def _monotonic_ms() -> float:
    return time.monotonic() * 1000.0


class CameraStream:
    """
    单路摄像头流。

    stop() 会显式结束采集线程、释放摄像头和 MediaPipe 资源，
    保证切换摄像头时不会有两条流同时向检测器送帧。
    """

    def __init__(
        self,
        camera_index: int,
        on_frame: Callable[[np.ndarray, FrameDetection], None],
        source_factory: Callable[[], LandmarkSource] = LandmarkSource,
        capture_factory: Callable = cv2.VideoCapture,
        width: int = 640,
        height: int = 480,
        clock_ms: Callable[[], float] = _monotonic_ms,
    ):
        self.camera_index = camera_index
        self._on_frame = on_frame
        self._source_factory = source_factory
        self._capture_factory = capture_factory
        self.width = width
        self.height = height
        self._clock_ms = clock_ms

        self._cap = None
        self._source: Optional[LandmarkSource] = None
        self._stop_event = threading.Event()
        self._thread: Optional[threading.Thread] = None

    @property
    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> bool:
        """打开摄像头并启动采集线程；摄像头无法打开时返回 False。"""
        if self._thread is not None:
            return True

        cap = self._capture_factory(self.camera_index)
        if not cap.isOpened():
            cap.release()
            return False
        cap.set(cv2.CAP_PROP_FRAME_WIDTH, self.width)
        cap.set(cv2.CAP_PROP_FRAME_HEIGHT, self.height)

        self._cap = cap
        self._source = self._source_factory()
        self._stop_event.clear()
        self._thread = threading.Thread(target=self._capture_loop, daemon=True)
        self._thread.start()
        return True

    def stop(self):
        """停止采集并释放全部资源。"""
        self._stop_event.set()
        if self._thread is not None and self._thread is not threading.current_thread():
            self._thread.join(timeout=2.0)
        self._thread = None
        if self._cap is not None and self._cap.isOpened():
            self._cap.release()
        self._cap = None
        if self._source is not None:
            self._source.close()
        self._source = None

    def _capture_loop(self):
        """采集线程主循环。"""
        while not self._stop_event.is_set():
            ret, frame = self._cap.read()
            if not ret:
                time.sleep(0.01)
                continue
            detection = self._source.detect(frame, self._clock_ms())
            self._on_frame(frame, detection)
