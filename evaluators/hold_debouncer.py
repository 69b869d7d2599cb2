"""手势保持去抖模块：条件持续成立达到指定时长才触发一次"""

from typing import Optional

from models.data_models import HoldTimer


class HoldDebouncer:
    """维护单个手势的保持计时器，条件中断一帧即重新计时"""

    def __init__(self, required_ms: int):
        self._timer = HoldTimer(required_ms=required_ms)

    @property
    def required_ms(self) -> int:
        return self._timer.required_ms

    @property
    def started_at_ms(self) -> Optional[float]:
        return self._timer.started_at_ms

    @property
    def is_holding(self) -> bool:
        return self._timer.started_at_ms is not None

    def feed(self, condition: bool, now_ms: float, required_ms: Optional[int] = None) -> bool:
        """
        输入一帧条件值。

        Args:
            condition: 本帧条件是否成立
            now_ms: 单调时钟时间戳（毫秒）
            required_ms: 需要保持的时长，缺省使用构造时的值

        Returns:
            本帧是否触发；触发后计时器清零，需要重新保持才能再次触发
        """
        if required_ms is None:
            required_ms = self._timer.required_ms

        if not condition:
            self._timer.started_at_ms = None
            return False

        if self._timer.started_at_ms is None:
            self._timer.started_at_ms = now_ms
            return False

        if now_ms - self._timer.started_at_ms >= required_ms:
            self._timer.started_at_ms = None
            return True

        return False

    def progress(self, now_ms: float) -> float:
        """当前保持进度 0.0~1.0，未开始时为 0。"""
        if self._timer.started_at_ms is None or self._timer.required_ms <= 0:
            return 0.0
        elapsed = now_ms - self._timer.started_at_ms
        return max(0.0, min(1.0, elapsed / self._timer.required_ms))

    def reset(self):
        """重置计时器"""
        self._timer.started_at_ms = None
