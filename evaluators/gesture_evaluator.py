"""手势指令判断模块"""

from typing import List, Optional

from detectors.gesture_classifier import classify
from evaluators.hold_debouncer import HoldDebouncer
from models.data_models import (
    GestureEvent,
    GestureKind,
    GestureUpdate,
    HandLandmarks,
    HeldGesture,
)

THREE_FINGERS = 3


class GestureEvaluator:
    """汇总手势分类和两个保持计时器，输出被确认的手势指令。"""

    def __init__(self, thumbs_up_hold_ms: int = 1500, three_fingers_hold_ms: int = 1200):
        self.thumbs_up = HoldDebouncer(thumbs_up_hold_ms)
        self.three_fingers = HoldDebouncer(three_fingers_hold_ms)

    def evaluate(self, hands: Optional[List[HandLandmarks]], now_ms: float) -> GestureUpdate:
        """
        处理一帧手部检测结果。

        只使用第一只手；三指优先，三指帧会强制清空竖拇指计时器。

        Args:
            hands: 本帧检测到的所有手（可能为空）
            now_ms: 单调时钟时间戳（毫秒）

        Returns:
            GestureUpdate(gesture, fired, status, progress)
        """
        if not hands:
            self.reset()
            return GestureUpdate(gesture=GestureEvent.none())

        gesture = classify(hands[0])

        if gesture.kind is GestureKind.FINGER_COUNT and gesture.finger_count == THREE_FINGERS:
            self.thumbs_up.reset()
            return self._evaluate_three_fingers(gesture, now_ms)

        self.three_fingers.reset()
        return self._evaluate_thumbs_up(gesture, now_ms)

    def _evaluate_three_fingers(self, gesture: GestureEvent, now_ms: float) -> GestureUpdate:
        if self.three_fingers.feed(True, now_ms):
            return GestureUpdate(gesture=gesture, fired=HeldGesture.THREE_FINGERS)
        return GestureUpdate(
            gesture=gesture,
            status="Three fingers detected. Hold...",
            progress=self.three_fingers.progress(now_ms),
        )

    def _evaluate_thumbs_up(self, gesture: GestureEvent, now_ms: float) -> GestureUpdate:
        is_up = gesture.kind is GestureKind.THUMBS_UP
        if self.thumbs_up.feed(is_up, now_ms):
            return GestureUpdate(
                gesture=gesture,
                fired=HeldGesture.THUMBS_UP,
                status="Thumbs up 👍 detected!",
            )
        if self.thumbs_up.is_holding:
            return GestureUpdate(
                gesture=gesture,
                status="Thumbs up detected, waiting...",
                progress=self.thumbs_up.progress(now_ms),
            )
        return GestureUpdate(gesture=gesture)

    def reset(self):
        """清空两个保持计时器"""
        self.thumbs_up.reset()
        self.three_fingers.reset()
