"""手势分类模块：根据单只手的 21 个关键点判断竖拇指 / 伸出手指数量"""

import math
from typing import Optional, Sequence

from models.data_models import HAND_LANDMARK_COUNT, GestureEvent, LandmarkPoint

# 关键点索引常量
THUMB_TIP = 4
THUMB_KNUCKLE = 2

# (指尖, 指根) 索引对：拇指、食指、中指、无名指、小指
FINGER_PAIRS = [(4, 2), (8, 6), (12, 10), (16, 14), (20, 18)]

# 除拇指外的四根手指
OTHER_FINGER_TIPS = [8, 12, 16, 20]
OTHER_FINGER_BASES = [6, 10, 14, 18]

# 拇指方向角范围（度，屏幕坐标系 y 轴向下）
THUMB_ANGLE_MIN = -135.0
THUMB_ANGLE_MAX = -45.0

THREE_FINGERS = 3


def _check_landmarks(landmarks: Sequence[LandmarkPoint]) -> None:
    """关键点数量不符合 21 点约定时直接报错，避免静默误判。"""
    if len(landmarks) != HAND_LANDMARK_COUNT:
        raise ValueError(
            f"expected {HAND_LANDMARK_COUNT} hand landmarks, got {len(landmarks)}"
        )


def count_extended_fingers(landmarks: Sequence[LandmarkPoint]) -> int:
    """
    统计伸出的手指数量。

    指尖 y 小于指根 y（画面中更靠上）即视为伸出。

    Returns:
        0~5 的整数
    """
    _check_landmarks(landmarks)
    return sum(1 for tip, base in FINGER_PAIRS if landmarks[tip].y < landmarks[base].y)


def thumb_angle(landmarks: Sequence[LandmarkPoint]) -> float:
    """拇指从指节指向指尖的方向角（度）。"""
    tip = landmarks[THUMB_TIP]
    knuckle = landmarks[THUMB_KNUCKLE]
    return math.degrees(math.atan2(tip.y - knuckle.y, tip.x - knuckle.x))


def is_thumbs_up(landmarks: Sequence[LandmarkPoint]) -> bool:
    """
    竖拇指判定，三个条件须同时满足：

    1. 拇指伸出：指尖 y < 指节 y
    2. 其余四指弯曲：指尖 y > 指根 y
    3. 拇指方向角在 (-135°, -45°) 之间，即大致朝上
    """
    _check_landmarks(landmarks)
    tip = landmarks[THUMB_TIP]
    knuckle = landmarks[THUMB_KNUCKLE]

    thumb_extended = tip.y < knuckle.y
    fingers_curled = all(
        landmarks[t].y > landmarks[b].y
        for t, b in zip(OTHER_FINGER_TIPS, OTHER_FINGER_BASES)
    )
    angle = thumb_angle(landmarks)
    mostly_up = THUMB_ANGLE_MIN < angle < THUMB_ANGLE_MAX

    return thumb_extended and fingers_curled and mostly_up


def classify(landmarks: Optional[Sequence[LandmarkPoint]]) -> GestureEvent:
    """
    单帧手势分类（无时序状态）。

    三指优先于竖拇指；没有关键点时返回 NONE。
    """
    if not landmarks:
        return GestureEvent.none()

    count = count_extended_fingers(landmarks)
    if count == THREE_FINGERS:
        return GestureEvent.fingers(count)
    if is_thumbs_up(landmarks):
        return GestureEvent.thumbs_up(count)
    return GestureEvent.fingers(count)
