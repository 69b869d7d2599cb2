"""在场检测模块：把逐帧人脸检测结果转换为带宽限期的在场状态"""

from enum import Enum
from typing import Optional

from models.data_models import PresenceState


class PresenceEdge(Enum):
    GAINED = "presence_gained"
    LOST = "presence_lost"


class PresenceTracker:
    """
    人脸出现立即判定在场；人脸消失超过宽限期才判定离开。

    宽限期内人脸重新出现则静默取消离开计时，用于过滤检测瞬时丢帧。
    """

    def __init__(self, absence_grace_ms: int = 5000, detection_pause=None):
        """
        Args:
            absence_grace_ms: 判定离开前的宽限期（毫秒）
            detection_pause: 可选，带 is_paused 属性的对象；暂停期间忽略所有帧
        """
        self.state = PresenceState(absence_grace_ms=absence_grace_ms)
        self._detection_pause = detection_pause

    @property
    def is_present(self) -> bool:
        return self.state.is_present

    def on_face_frame(self, detected: bool, now_ms: float) -> Optional[PresenceEdge]:
        """
        输入一帧人脸检测结果。

        Returns:
            PresenceEdge.GAINED / PresenceEdge.LOST，状态未翻转时返回 None
        """
        if self._detection_pause is not None and self._detection_pause.is_paused:
            return None

        state = self.state

        if detected:
            state.absent_since_ms = None
            if not state.is_present:
                state.is_present = True
                return PresenceEdge.GAINED
            return None

        if state.is_present and state.absent_since_ms is None:
            state.absent_since_ms = now_ms

        if (
            state.absent_since_ms is not None
            and now_ms - state.absent_since_ms > state.absence_grace_ms
        ):
            state.is_present = False
            state.absent_since_ms = None
            return PresenceEdge.LOST

        return None

    def clear_pending_absence(self):
        """丢弃进行中的离开计时，下一次未检测到人脸时重新开始宽限期"""
        self.state.absent_since_ms = None

    def reset(self):
        """恢复到初始的不在场状态"""
        self.state.is_present = False
        self.state.absent_since_ms = None
