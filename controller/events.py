"""事件类型定义与单一事件分发通道

所有状态修改都经由 EventChannel 在同一个分发线程上顺序执行；
摄像头线程、倒计时线程、Web 请求线程和天气查询线程只负责投递事件。
"""

import queue
import threading
from dataclasses import dataclass
from typing import Callable, Dict, Optional, Type

from models.data_models import FrameDetection, WeatherReport


# ---- 事件类型 ----

@dataclass(frozen=True)
class FrameDetected:
    """摄像头送来一帧检测结果；token 为产生该帧的摄像头流的取消令牌"""
    detection: FrameDetection
    token: Optional["CancelToken"] = None


@dataclass(frozen=True)
class FaceDetected:
    timestamp_ms: float


@dataclass(frozen=True)
class FaceNotDetected:
    timestamp_ms: float


@dataclass(frozen=True)
class ThumbsUpHeld:
    timestamp_ms: float


@dataclass(frozen=True)
class ThreeFingersHeld:
    timestamp_ms: float


@dataclass(frozen=True)
class PomodoroCommand:
    """手动指令：start / pause / resume / reset"""
    action: str


@dataclass(frozen=True)
class Tick:
    """倒计时每秒一次；generation 用于丢弃已停止计时器的残留 tick"""
    generation: int


@dataclass(frozen=True)
class PauseDetection:
    """暂停检测；minutes 为 None 表示直到手动恢复"""
    minutes: Optional[float] = None


@dataclass(frozen=True)
class EnableDetection:
    """恢复检测；generation 非空时来自定时器，过期则忽略"""
    generation: Optional[int] = None


@dataclass(frozen=True)
class ToggleMute:
    pass


@dataclass(frozen=True)
class SelectCamera:
    camera_index: int


@dataclass(frozen=True)
class StopCamera:
    pass


@dataclass(frozen=True)
class WeatherFetched:
    token: "CancelToken"
    report: WeatherReport


@dataclass(frozen=True)
class WeatherFailed:
    token: "CancelToken"
    message: str


POMODORO_ACTIONS = ("start", "pause", "resume", "reset")


class CancelToken:
    """取消令牌：摄像头流被拆除时取消，持有旧令牌的异步结果将被丢弃"""

    def __init__(self):
        self._event = threading.Event()

    def cancel(self):
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()


class EventChannel:
    """每种事件类型只对应一个处理函数的 FIFO 分发通道。"""

    def __init__(self):
        self._queue: "queue.Queue" = queue.Queue()
        self._handlers: Dict[Type, Callable] = {}

    def register(self, event_type: Type, handler: Callable) -> None:
        if event_type in self._handlers:
            raise ValueError(f"handler already registered for {event_type.__name__}")
        self._handlers[event_type] = handler

    def post(self, event) -> None:
        """线程安全地投递事件，由分发线程按投递顺序处理。"""
        self._queue.put(event)

    def dispatch(self, event) -> None:
        handler = self._handlers.get(type(event))
        if handler is None:
            raise LookupError(f"no handler registered for {type(event).__name__}")
        handler(event)

    def process_pending(self) -> int:
        """处理队列中当前及处理过程中新投递的全部事件，返回处理数量。"""
        handled = 0
        while True:
            try:
                event = self._queue.get_nowait()
            except queue.Empty:
                return handled
            self.dispatch(event)
            handled += 1

    def serve(self, stop_event: threading.Event, on_error: Callable[[object, Exception], None],
              poll_interval: float = 0.1) -> None:
        """分发线程主循环；单个事件处理失败不会终止循环。"""
        while not stop_event.is_set():
            try:
                event = self._queue.get(timeout=poll_interval)
            except queue.Empty:
                continue
            try:
                self.dispatch(event)
            except Exception as e:
                on_error(event, e)
