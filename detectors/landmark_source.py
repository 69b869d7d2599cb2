"""关键点检测模块，基于 MediaPipe Hands + Face Detection"""

from typing import List

import cv2
import mediapipe as mp
import numpy as np

from models.data_models import FrameDetection, HandLandmarks, LandmarkPoint


class LandmarkSource:
    """对单帧图像同时做人脸检测（判断在场）和手部关键点检测（识别手势）"""

    def __init__(
        self,
        max_num_hands: int = 2,
        hand_detection_confidence: float = 0.7,
        hand_tracking_confidence: float = 0.7,
        face_detection_confidence: float = 0.5,
    ):
        """初始化 MediaPipe Hands 和 FaceDetection"""
        self._hands = mp.solutions.hands.Hands(
            max_num_hands=max_num_hands,
            model_complexity=1,
            min_detection_confidence=hand_detection_confidence,
            min_tracking_confidence=hand_tracking_confidence,
        )
        self._face_detection = mp.solutions.face_detection.FaceDetection(
            model_selection=0,
            min_detection_confidence=face_detection_confidence,
        )

    def detect(self, frame: np.ndarray, timestamp_ms: float = 0.0) -> FrameDetection:
        """
        检测单帧图像。

        Args:
            frame: BGR 格式的 OpenCV 图像帧
            timestamp_ms: 该帧的单调时钟时间戳

        Returns:
            FrameDetection，hands 中每只手为 21 个归一化关键点
        """
        # BGR -> RGB
        rgb_frame = cv2.cvtColor(frame, cv2.COLOR_BGR2RGB)
        rgb_frame.flags.writeable = False

        face_results = self._face_detection.process(rgb_frame)
        hand_results = self._hands.process(rgb_frame)

        detections = face_results.detections or []
        face_confidence = 0.0
        for detection in detections:
            if detection.score:
                face_confidence = max(face_confidence, float(detection.score[0]))

        hands: List[HandLandmarks] = []
        for hand in hand_results.multi_hand_landmarks or []:
            hands.append([LandmarkPoint(lm.x, lm.y, lm.z) for lm in hand.landmark])

        return FrameDetection(
            face_detected=bool(detections),
            hands=hands,
            timestamp_ms=timestamp_ms,
            face_confidence=face_confidence,
        )

    def close(self):
        """释放 MediaPipe 资源"""
        self._hands.close()
        self._face_detection.close()
