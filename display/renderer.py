"""界面渲染模块 - 在视频帧上绘制手部关键点、倒计时、状态文字和临时浮层。"""

from typing import Optional

import cv2
import numpy as np

from models.data_models import FrameDetection


def ascii_text(text: str) -> str:
    """去掉 OpenCV 默认字体无法绘制的非 ASCII 字符。"""
    return text.encode("ascii", "ignore").decode("ascii").strip()


class DisplayRenderer:
    """在视频帧上绘制检测结果和番茄钟状态。"""

    # 模式名称映射
    _MODE_NAMES = {
        "work": "Work",
        "break": "Break",
    }

    # 阶段文字映射
    _PHASE_TEXT = {
        "idle": "Idle",
        "running": "Running",
        "paused": "Paused",
    }

    def __init__(self, font_path: str = "DejaVuSans.ttf"):
        """初始化 Unicode 字体（用于 emoji / 符号），字体不存在时回退到 OpenCV 默认字体。"""
        self._pil_font = None
        self._use_pil = False

        try:
            font = self._try_load_font(font_path)
            if font is not None:
                self._pil_font = font
                self._use_pil = True
        except Exception:
            self._use_pil = False

    @staticmethod
    def _try_load_font(font_path: str):
        """尝试加载字体文件，返回 PIL ImageFont 或 None。"""
        from PIL import ImageFont

        try:
            return ImageFont.truetype(font_path, 20)
        except (OSError, IOError):
            pass

        # 常见系统路径
        common_paths = [
            "/usr/share/fonts/truetype/dejavu/DejaVuSans.ttf",
            "/usr/share/fonts/dejavu/DejaVuSans.ttf",
            "C:\\Windows\\Fonts\\seguisym.ttf",
            "/System/Library/Fonts/Supplemental/Arial Unicode.ttf",
        ]
        for path in common_paths:
            try:
                return ImageFont.truetype(path, 20)
            except (OSError, IOError):
                continue

        return None

    def render(
        self,
        frame: np.ndarray,
        detection: Optional[FrameDetection],
        snapshot: dict,
    ) -> np.ndarray:
        """渲染到视频帧副本并返回。snapshot 为 StatusBoard.snapshot() 的结果。"""
        output = frame.copy()

        if detection is not None:
            self._draw_hands(output, detection)
            self._draw_presence(output, detection.face_detected)

        self._draw_timer(output, snapshot)
        self._draw_mode(output, snapshot)
        self._draw_status(output, snapshot.get("status") or "")

        progress = snapshot.get("hold_progress") or 0.0
        if progress > 0:
            self._draw_hold_progress(output, progress)

        if snapshot.get("detection_paused"):
            self._draw_banner(output, "DETECTION PAUSED")

        overlay = snapshot.get("overlay")
        if overlay:
            self._draw_overlay(output, overlay)

        return output

    @staticmethod
    def _draw_hands(frame: np.ndarray, detection: FrameDetection) -> None:
        """绘制手部关键点（绿色小圆点），第一只手用黄色标出。"""
        h, w = frame.shape[:2]
        for i, hand in enumerate(detection.hands):
            color = (0, 255, 255) if i == 0 else (0, 255, 0)
            for point in hand:
                cv2.circle(frame, (int(point.x * w), int(point.y * h)), 3, color, -1)

    @staticmethod
    def _draw_presence(frame: np.ndarray, face_detected: bool) -> None:
        """右下角的在场指示灯。"""
        h, w = frame.shape[:2]
        color = (0, 200, 0) if face_detected else (0, 0, 255)
        cv2.circle(frame, (w - 20, h - 20), 8, color, -1)

    def _draw_timer(self, frame: np.ndarray, snapshot: dict) -> None:
        """左上角大号倒计时 MM:SS。"""
        text = snapshot.get("time", "")
        cv2.putText(
            frame, text, (10, 50),
            cv2.FONT_HERSHEY_SIMPLEX, 1.6, (255, 255, 255), 3,
        )

    def _draw_mode(self, frame: np.ndarray, snapshot: dict) -> None:
        """在右上角绘制模式和阶段。"""
        h, w = frame.shape[:2]
        mode = self._MODE_NAMES.get(snapshot.get("mode"), snapshot.get("mode", ""))
        phase = self._PHASE_TEXT.get(snapshot.get("phase"), snapshot.get("phase", ""))
        cv2.putText(
            frame, f"{mode} / {phase}", (w - 220, 30),
            cv2.FONT_HERSHEY_SIMPLEX, 0.7, (255, 255, 0), 2,
        )

    def _draw_status(self, frame: np.ndarray, status: str) -> None:
        """底部状态文字（只绘制第一行）。"""
        h, w = frame.shape[:2]
        line = status.splitlines()[0] if status else ""
        if self._use_pil:
            self._draw_pil_lines(frame, [line], x=10, y_start=h - 40, color=(0, 255, 0))
        else:
            cv2.putText(
                frame, ascii_text(line), (10, h - 15),
                cv2.FONT_HERSHEY_SIMPLEX, 0.6, (0, 255, 0), 2,
            )

    @staticmethod
    def _draw_hold_progress(frame: np.ndarray, progress: float) -> None:
        """状态文字上方的手势保持进度条。"""
        h, w = frame.shape[:2]
        width = int((w - 20) * min(progress, 1.0))
        cv2.rectangle(frame, (10, h - 52), (w - 10, h - 46), (80, 80, 80), -1)
        cv2.rectangle(frame, (10, h - 52), (10 + width, h - 46), (0, 255, 255), -1)

    @staticmethod
    def _draw_banner(frame: np.ndarray, text: str) -> None:
        h, w = frame.shape[:2]
        (text_w, _), _ = cv2.getTextSize(text, cv2.FONT_HERSHEY_SIMPLEX, 0.8, 2)
        cv2.putText(
            frame, text, ((w - text_w) // 2, 90),
            cv2.FONT_HERSHEY_SIMPLEX, 0.8, (0, 165, 255), 2,
        )

    def _draw_overlay(self, frame: np.ndarray, text: str) -> None:
        """在画面中央显示半透明底色的多行浮层（时间 / 天气）。"""
        h, w = frame.shape[:2]
        lines = text.splitlines()

        shade = frame.copy()
        top = h // 2 - 20 * len(lines) - 20
        bottom = h // 2 + 20 * len(lines) + 20
        cv2.rectangle(shade, (0, max(0, top)), (w, min(h, bottom)), (0, 0, 0), -1)
        frame[:] = cv2.addWeighted(shade, 0.6, frame, 0.4, 0)

        if self._use_pil:
            self._draw_pil_lines(frame, lines, x=30, y_start=max(0, top) + 20, color=(255, 255, 255))
            return

        y = max(0, top) + 45
        for line in lines:
            cv2.putText(
                frame, ascii_text(line), (30, y),
                cv2.FONT_HERSHEY_SIMPLEX, 0.9, (255, 255, 255), 2,
            )
            y += 40

    def _draw_pil_lines(
        self,
        frame: np.ndarray,
        lines: list,
        x: int,
        y_start: int,
        color: tuple,
    ) -> None:
        """使用 PIL 在帧上绘制多行文字（BGR color -> RGB fill）。"""
        from PIL import Image, ImageDraw

        img_pil = Image.fromarray(cv2.cvtColor(frame, cv2.COLOR_BGR2RGB))
        draw = ImageDraw.Draw(img_pil)
        # BGR -> RGB for PIL fill
        fill = (color[2], color[1], color[0])
        y = y_start
        for line in lines:
            draw.text((x, y), line, font=self._pil_font, fill=fill)
            y += 28
        result = cv2.cvtColor(np.array(img_pil), cv2.COLOR_RGB2BGR)
        frame[:] = result
