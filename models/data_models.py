"""核心数据模型定义"""

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import List, Optional

# 单只手的关键点数量（MediaPipe Hands 约定）
HAND_LANDMARK_COUNT = 21


@dataclass(frozen=True)
class LandmarkPoint:
    """归一化关键点坐标，范围 0.0~1.0，原点在画面左上角"""
    x: float
    y: float
    z: float = 0.0


# 按解剖学约定排列的 21 个关键点
HandLandmarks = List[LandmarkPoint]


class GestureKind(Enum):
    NONE = "none"
    THUMBS_UP = "thumbs_up"
    FINGER_COUNT = "finger_count"


@dataclass(frozen=True)
class GestureEvent:
    """单帧手势分类结果"""
    kind: GestureKind
    finger_count: int = 0

    @classmethod
    def none(cls) -> "GestureEvent":
        return cls(GestureKind.NONE)

    @classmethod
    def thumbs_up(cls, finger_count: int = 1) -> "GestureEvent":
        return cls(GestureKind.THUMBS_UP, finger_count)

    @classmethod
    def fingers(cls, count: int) -> "GestureEvent":
        return cls(GestureKind.FINGER_COUNT, count)


@dataclass
class HoldTimer:
    """手势保持计时器；started_at_ms 仅在条件持续成立期间非空"""
    required_ms: int
    started_at_ms: Optional[float] = None


@dataclass
class PresenceState:
    """用户在场状态"""
    is_present: bool = False
    absent_since_ms: Optional[float] = None
    absence_grace_ms: int = 5000


class SessionMode(Enum):
    WORK = "work"
    BREAK = "break"

    def opposite(self) -> "SessionMode":
        return SessionMode.BREAK if self is SessionMode.WORK else SessionMode.WORK


class SessionPhase(Enum):
    IDLE = "idle"
    RUNNING = "running"
    PAUSED = "paused"


@dataclass
class SessionState:
    """番茄钟会话状态"""
    mode: SessionMode
    phase: SessionPhase
    remaining_seconds: int
    work_duration_seconds: int = 25 * 60
    break_duration_seconds: int = 5 * 60

    @classmethod
    def initial(cls, work_duration_seconds: int, break_duration_seconds: int) -> "SessionState":
        return cls(
            mode=SessionMode.WORK,
            phase=SessionPhase.IDLE,
            remaining_seconds=work_duration_seconds,
            work_duration_seconds=work_duration_seconds,
            break_duration_seconds=break_duration_seconds,
        )

    def duration_for(self, mode: SessionMode) -> int:
        if mode is SessionMode.WORK:
            return self.work_duration_seconds
        return self.break_duration_seconds

    def copy(self) -> "SessionState":
        return replace(self)


@dataclass
class FrameDetection:
    """单帧检测结果：人脸是否存在 + 检测到的手部关键点"""
    face_detected: bool
    hands: List[HandLandmarks] = field(default_factory=list)
    timestamp_ms: float = 0.0
    face_confidence: float = 0.0


@dataclass
class WeatherReport:
    """定位 + 天气查询结果"""
    city: str
    latitude: float
    longitude: float
    temperature: int
    description: str
    units: str = "metric"


class HeldGesture(Enum):
    """保持足够时长、视为有效指令的手势"""
    THUMBS_UP = "thumbs_up"
    THREE_FINGERS = "three_fingers"


@dataclass
class GestureUpdate:
    """手势评估结果：本帧分类、是否触发、进度提示文字、保持进度 0.0~1.0"""
    gesture: GestureEvent
    fired: Optional[HeldGesture] = None
    status: Optional[str] = None
    progress: float = 0.0
