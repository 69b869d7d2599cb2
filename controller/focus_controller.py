"""专注控制器：持有全部核心状态，并在唯一的分发线程上处理所有事件"""

import datetime
import functools
import os
import threading
import time
from dataclasses import dataclass
from typing import Callable, Optional

import cv2
import numpy as np

from commands.command_dispatcher import CommandDispatcher
from commands.speech import SpeechOutput
from commands.weather import WeatherService
from controller.detection_pause import DetectionPause
from controller.events import (
    POMODORO_ACTIONS,
    CancelToken,
    EnableDetection,
    EventChannel,
    FaceDetected,
    FaceNotDetected,
    FrameDetected,
    PauseDetection,
    PomodoroCommand,
    SelectCamera,
    StopCamera,
    ThreeFingersHeld,
    ThumbsUpHeld,
    Tick,
    ToggleMute,
    WeatherFailed,
    WeatherFetched,
)
from detectors.camera_stream import CameraStream
from detectors.landmark_source import LandmarkSource
from display.renderer import DisplayRenderer
from display.status_board import StatusBoard
from evaluators.gesture_evaluator import GestureEvaluator
from evaluators.presence_tracker import PresenceEdge, PresenceTracker
from models.data_models import FrameDetection, HeldGesture, SessionState
from session.countdown import Countdown
from session.pomodoro_session import STATUS_TEXT, PomodoroSession


def _monotonic_ms() -> float:
    return time.monotonic() * 1000.0


@dataclass
class FocusContext:
    """核心状态的唯一持有者：会话、在场、手势计时器和检测暂停开关"""
    session: PomodoroSession
    presence: PresenceTracker
    gestures: GestureEvaluator
    detection_pause: DetectionPause


class FocusController:
    """
    专注计时系统主控。

    摄像头线程、倒计时线程、Web 请求线程和天气线程只调用 post()；
    状态只在分发线程（start() 启动）或 process_pending() 的调用者线程中修改。
    """

    def __init__(
        self,
        config: dict,
        board: Optional[StatusBoard] = None,
        speech=None,
        weather_service=None,
        renderer: Optional[DisplayRenderer] = None,
        stream_factory: Optional[Callable] = None,
        countdown=None,
        timer_factory: Callable = threading.Timer,
        clock_ms: Callable[[], float] = _monotonic_ms,
        now_fn: Callable[[], datetime.datetime] = datetime.datetime.now,
        spawn: Optional[Callable] = None,
    ):
        self.config = config
        self.channel = EventChannel()
        self.board = board or StatusBoard()
        self.speech = speech or SpeechOutput(
            on_error=lambda message: self.board.add_log("warning", message),
        )
        self.renderer = renderer or DisplayRenderer()
        self._clock_ms = clock_ms
        self._stream_factory = stream_factory or self._default_stream_factory
        self.countdown = countdown or Countdown(self.channel.post)

        detection_pause = DetectionPause(self.channel.post, timer_factory)
        self.context = FocusContext(
            session=PomodoroSession(
                work_duration=config["work_duration"],
                break_duration=config["break_duration"],
                countdown=self.countdown,
                announce=self.speech.speak,
                on_change=self._on_session_change,
            ),
            presence=PresenceTracker(
                absence_grace_ms=config["face_absent_threshold_ms"],
                detection_pause=detection_pause,
            ),
            gestures=GestureEvaluator(
                thumbs_up_hold_ms=config["thumbs_up_hold_ms"],
                three_fingers_hold_ms=config["three_fingers_hold_ms"],
            ),
            detection_pause=detection_pause,
        )

        if weather_service is None:
            weather_service = WeatherService(
                api_key=config.get("weather_api_key") or os.environ.get("OPENWEATHER_API_KEY"),
                units=config["weather_units"],
                timeout=config["request_timeout"],
            )
        dispatcher_kwargs = {}
        if spawn is not None:
            dispatcher_kwargs["spawn"] = spawn
        self.commands = CommandDispatcher(
            speech=self.speech,
            board=self.board,
            weather_service=weather_service,
            post=self.channel.post,
            clock_ms=clock_ms,
            now_fn=now_fn,
            time_overlay_ms=config["time_overlay_ms"],
            weather_overlay_ms=config["weather_overlay_ms"],
            time_repeat_cooldown_ms=config["time_repeat_cooldown_ms"],
            **dispatcher_kwargs,
        )

        self.camera_index = config["camera_index"]
        self._stream = None
        self._token = CancelToken()
        self._frame_lock = threading.Lock()
        self._latest_rendered: Optional[np.ndarray] = None
        self._stop_event = threading.Event()
        self._dispatch_thread: Optional[threading.Thread] = None

        self._register_handlers()
        self.board.update_session(self.context.session.snapshot())

    # ---- 生命周期 ----

    def start(self, open_camera: bool = True):
        """启动分发线程，并按配置打开摄像头。"""
        if self._dispatch_thread is None:
            self._stop_event.clear()
            self._dispatch_thread = threading.Thread(
                target=self.channel.serve,
                args=(self._stop_event, self._on_dispatch_error),
                daemon=True,
            )
            self._dispatch_thread.start()
            self.board.add_log("info", "系统启动")
        if open_camera:
            self.select_camera(self.camera_index)

    def shutdown(self):
        """停止分发线程并释放摄像头、计时器等资源。"""
        self._stop_event.set()
        if self._dispatch_thread is not None:
            self._dispatch_thread.join(timeout=2.0)
        self._dispatch_thread = None
        self._teardown_stream()
        self.context.session.stop()
        self.context.detection_pause.close()
        self.board.add_log("info", "系统已停止")

    def post(self, event):
        self.channel.post(event)

    def process_pending(self) -> int:
        """在调用者线程中同步处理所有待处理事件。"""
        return self.channel.process_pending()

    # ---- 外部控制入口（任意线程） ----

    def start_pomodoro(self):
        self.post(PomodoroCommand("start"))

    def pause_pomodoro(self):
        self.post(PomodoroCommand("pause"))

    def resume_pomodoro(self):
        self.post(PomodoroCommand("resume"))

    def reset_pomodoro(self):
        self.post(PomodoroCommand("reset"))

    def pause_detection(self, minutes: Optional[float] = None):
        self.post(PauseDetection(minutes))

    def enable_detection(self):
        self.post(EnableDetection())

    def toggle_mute(self):
        self.post(ToggleMute())

    def select_camera(self, camera_index: int):
        self.post(SelectCamera(camera_index))

    def stop_camera(self):
        self.post(StopCamera())

    def snapshot(self) -> dict:
        """当前界面数据（/api/data 使用）"""
        return self.board.snapshot(self._clock_ms())

    def latest_frame(self) -> Optional[np.ndarray]:
        """最近一帧渲染结果（桌面窗口使用）"""
        with self._frame_lock:
            return self._latest_rendered

    @property
    def session_state(self) -> SessionState:
        return self.context.session.snapshot()

    # ---- 摄像头回调（摄像头线程） ----

    def _on_camera_frame(self, frame: np.ndarray, detection: FrameDetection,
                         token: Optional[CancelToken] = None):
        self.post(FrameDetected(detection, token))
        rendered = self.renderer.render(frame, detection, self.board.snapshot(self._clock_ms()))
        ok, jpeg = cv2.imencode(".jpg", rendered, [cv2.IMWRITE_JPEG_QUALITY, 80])
        if ok:
            self.board.set_frame(jpeg.tobytes())
        with self._frame_lock:
            self._latest_rendered = rendered

    def _default_stream_factory(self, camera_index: int, on_frame: Callable) -> CameraStream:
        source_factory = functools.partial(
            LandmarkSource,
            hand_detection_confidence=self.config["hand_detection_confidence"],
            face_detection_confidence=self.config["face_detection_confidence"],
        )
        return CameraStream(
            camera_index,
            on_frame,
            source_factory=source_factory,
            width=self.config["camera_width"],
            height=self.config["camera_height"],
            clock_ms=self._clock_ms,
        )

    # ---- 事件处理（分发线程） ----

    def _register_handlers(self):
        handlers = {
            FrameDetected: self._handle_frame,
            FaceDetected: self._handle_face_detected,
            FaceNotDetected: self._handle_face_not_detected,
            ThumbsUpHeld: self._handle_thumbs_up,
            ThreeFingersHeld: self._handle_three_fingers,
            PomodoroCommand: self._handle_command,
            Tick: self._handle_tick,
            PauseDetection: self._handle_pause_detection,
            EnableDetection: self._handle_enable_detection,
            ToggleMute: self._handle_toggle_mute,
            SelectCamera: self._handle_select_camera,
            StopCamera: self._handle_stop_camera,
            WeatherFetched: self._handle_weather_fetched,
            WeatherFailed: self._handle_weather_failed,
        }
        for event_type, handler in handlers.items():
            self.channel.register(event_type, handler)

    def _handle_frame(self, event: FrameDetected):
        """一帧检测结果拆成人脸事件和手势事件；暂停检测或来自已拆除的摄像头流时整帧忽略。"""
        if event.token is not None and event.token.cancelled:
            return
        if self.context.detection_pause.is_paused:
            return
        detection = event.detection
        ts = detection.timestamp_ms

        self.board.set_face_confidence(detection.face_confidence)
        if detection.face_detected:
            self.post(FaceDetected(ts))
        else:
            self.post(FaceNotDetected(ts))

        update = self.context.gestures.evaluate(detection.hands, ts)
        self.board.set_hold_progress(update.progress)
        if update.status:
            self.board.set_status(update.status)
        if update.fired is HeldGesture.THUMBS_UP:
            self.post(ThumbsUpHeld(ts))
        elif update.fired is HeldGesture.THREE_FINGERS:
            self.post(ThreeFingersHeld(ts))

    def _handle_face_detected(self, event: FaceDetected):
        edge = self.context.presence.on_face_frame(True, event.timestamp_ms)
        if edge is not PresenceEdge.GAINED:
            return
        self.board.set_present(True)
        self.board.add_log("info", "检测到人脸")
        self.context.session.resume()
        self.board.set_status("You are present (pomodoro running)")

    def _handle_face_not_detected(self, event: FaceNotDetected):
        edge = self.context.presence.on_face_frame(False, event.timestamp_ms)
        if edge is not PresenceEdge.LOST:
            return
        self.board.set_present(False)
        self.board.add_log("warning", "人脸丢失")
        if self.context.session.pause():
            self.board.set_status("Face not found. Pomodoro paused!")

    def _handle_thumbs_up(self, event: ThumbsUpHeld):
        self.board.add_log("info", "竖拇指：报时")
        self.commands.on_thumbs_up(event.timestamp_ms)

    def _handle_three_fingers(self, event: ThreeFingersHeld):
        self.board.add_log("info", "三指：查询天气")
        self.commands.on_three_fingers(self._token)

    def _handle_command(self, event: PomodoroCommand):
        if event.action not in POMODORO_ACTIONS:
            raise ValueError(f"unknown pomodoro action: {event.action}")
        getattr(self.context.session, event.action)()

    def _handle_tick(self, event: Tick):
        self.context.session.tick(event.generation)

    def _handle_pause_detection(self, event: PauseDetection):
        pause = self.context.detection_pause
        if event.minutes is None:
            pause.disable()
            self.board.add_log("info", "检测已暂停，直到手动恢复")
        else:
            pause.pause_for(event.minutes)
            self.board.add_log("info", f"检测已暂停 {event.minutes:g} 分钟")
        self.board.set_detection_paused(True)
        self.board.set_status("Detection paused.")

    def _handle_enable_detection(self, event: EnableDetection):
        if not self.context.detection_pause.enable(event.generation):
            return
        # 暂停前残留的保持计时和离开计时不再连续，重新开始
        self.context.gestures.reset()
        self.context.presence.clear_pending_absence()
        self.board.set_hold_progress(0.0)
        self.board.set_detection_paused(False)
        self.board.set_status("Detection resumed.")
        self.board.add_log("info", "检测已恢复")

    def _handle_toggle_mute(self, event: ToggleMute):
        muted = not self.speech.muted
        self.speech.set_muted(muted)
        self.board.set_muted(muted)
        self.board.set_status("Voice muted." if muted else "Voice unmuted.")

    def _handle_select_camera(self, event: SelectCamera):
        self._teardown_stream()
        self.camera_index = event.camera_index
        on_frame = functools.partial(self._on_camera_frame, token=self._token)
        stream = self._stream_factory(event.camera_index, on_frame)
        if not stream.start():
            self.board.set_camera(event.camera_index, False)
            self.board.set_status(f"Camera error: cannot open camera {event.camera_index}")
            self.board.add_log("danger", f"无法打开摄像头 {event.camera_index}")
            return
        self._stream = stream
        self.board.set_camera(event.camera_index, True)
        self.board.set_status("Camera started.")
        self.board.add_log("info", f"摄像头 {event.camera_index} 已开启")

    def _handle_stop_camera(self, event: StopCamera):
        self._teardown_stream()
        self.board.set_camera(self.camera_index, False)
        self.board.set_status("Camera stopped.")
        self.board.add_log("info", "摄像头已关闭")

    def _handle_weather_fetched(self, event: WeatherFetched):
        self.commands.on_weather_fetched(event, self._clock_ms())

    def _handle_weather_failed(self, event: WeatherFailed):
        self.commands.on_weather_failed(event)

    # ---- 内部 ----

    def _teardown_stream(self):
        """显式拆除当前摄像头流，并让进行中的异步查询失效。"""
        if self._stream is not None:
            self._stream.stop()
            self._stream = None
        self._token.cancel()
        self._token = CancelToken()
        self.context.gestures.reset()
        self.board.set_hold_progress(0.0)

    def _on_session_change(self, state: SessionState, reason: str):
        self.board.update_session(state)
        message = STATUS_TEXT.get(reason)
        if message:
            self.board.set_status(message)
            self.board.add_log("info", message)

    def _on_dispatch_error(self, event, error: Exception):
        message = f"处理 {type(event).__name__} 失败: {error}"
        print(f"警告: {message}")
        self.board.add_log("danger", message)
