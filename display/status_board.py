"""界面状态板：状态文字、倒计时文字、临时浮层、系统日志和最新画面

分发线程写入，Web 线程与渲染线程只读；所有读写都在锁内完成。
"""

import datetime
import threading
from typing import List, Optional, Tuple

from models.data_models import SessionState
from session.pomodoro_session import format_remaining


class StatusBoard:
    """只读观察者：接收状态变化通知，供界面和 API 读取。"""

    MAX_LOG_ENTRIES = 200

    def __init__(self):
        self._lock = threading.Lock()
        self._log_lock = threading.Lock()
        self._status = "Waiting for camera..."
        self._time_text = "25:00"
        self._overlay_text: Optional[str] = None
        self._overlay_until_ms = 0.0
        self._session = {"mode": "work", "phase": "idle", "remaining": 25 * 60}
        self._detection_paused = False
        self._muted = False
        self._present = False
        self._face_confidence = 0.0
        self._hold_progress = 0.0
        self._camera_index: Optional[int] = None
        self._camera_active = False
        self._latest_frame: Optional[bytes] = None
        self._logs: List[dict] = []

    # ---- 写入（分发线程） ----

    def set_status(self, message: str):
        with self._lock:
            self._status = message

    def update_session(self, state: SessionState):
        with self._lock:
            self._session = {
                "mode": state.mode.value,
                "phase": state.phase.value,
                "remaining": state.remaining_seconds,
            }
            self._time_text = format_remaining(state.remaining_seconds)

    def show_overlay(self, text: str, duration_ms: float, now_ms: float):
        """显示临时浮层，duration_ms 后自动隐藏"""
        with self._lock:
            self._overlay_text = text
            self._overlay_until_ms = now_ms + duration_ms

    def set_detection_paused(self, paused: bool):
        with self._lock:
            self._detection_paused = paused

    def set_muted(self, muted: bool):
        with self._lock:
            self._muted = muted

    def set_present(self, present: bool):
        with self._lock:
            self._present = present

    def set_face_confidence(self, confidence: float):
        with self._lock:
            self._face_confidence = confidence

    def set_hold_progress(self, progress: float):
        """当前手势保持进度 0.0~1.0，0 表示没有进行中的保持"""
        with self._lock:
            self._hold_progress = progress

    def set_camera(self, camera_index: Optional[int], active: bool):
        with self._lock:
            self._camera_index = camera_index
            self._camera_active = active

    def set_frame(self, jpeg: Optional[bytes]):
        with self._lock:
            self._latest_frame = jpeg

    def add_log(self, level: str, message: str):
        """添加一条系统日志。level: info / warning / danger"""
        entry = {
            "time": datetime.datetime.now().strftime("%H:%M:%S"),
            "level": level,
            "message": message,
        }
        with self._log_lock:
            self._logs.append(entry)
            if len(self._logs) > self.MAX_LOG_ENTRIES:
                self._logs = self._logs[-self.MAX_LOG_ENTRIES:]

    # ---- 读取 ----

    @property
    def status(self) -> str:
        with self._lock:
            return self._status

    @property
    def time_text(self) -> str:
        with self._lock:
            return self._time_text

    @property
    def detection_paused(self) -> bool:
        with self._lock:
            return self._detection_paused

    def overlay(self, now_ms: float) -> Optional[str]:
        """当前可见的浮层文字，已过期时返回 None"""
        with self._lock:
            if self._overlay_text is not None and now_ms < self._overlay_until_ms:
                return self._overlay_text
            return None

    def get_frame(self) -> Optional[bytes]:
        with self._lock:
            return self._latest_frame

    def get_logs(self, since: int = 0) -> Tuple[List[dict], int]:
        """获取日志，since 为起始索引。"""
        with self._log_lock:
            return self._logs[since:], len(self._logs)

    def snapshot(self, now_ms: float) -> dict:
        overlay = self.overlay(now_ms)
        with self._lock:
            return {
                "status": self._status,
                "time": self._time_text,
                "overlay": overlay,
                "mode": self._session["mode"],
                "phase": self._session["phase"],
                "remaining": self._session["remaining"],
                "detection_paused": self._detection_paused,
                "muted": self._muted,
                "present": self._present,
                "face_confidence": self._face_confidence,
                "hold_progress": self._hold_progress,
                "camera_index": self._camera_index,
                "camera_active": self._camera_active,
            }
