"""手势指令执行模块：竖拇指报时，三指播报天气"""

import datetime
import threading
import time
from typing import Callable, Optional

from commands.time_announcer import compose_time_announcement, format_clock
from commands.weather import compose_weather_info, compose_weather_speech, format_temperature
from controller.events import CancelToken, WeatherFailed, WeatherFetched


def _spawn_thread(target: Callable[[], None]) -> None:
    threading.Thread(target=target, daemon=True).start()


def _monotonic_ms() -> float:
    return time.monotonic() * 1000.0


class CommandDispatcher:
    """把被确认的手势映射为带副作用的动作。"""

    def __init__(
        self,
        speech,
        board,
        weather_service,
        post: Callable[[object], None],
        clock_ms: Callable[[], float] = _monotonic_ms,
        now_fn: Callable[[], datetime.datetime] = datetime.datetime.now,
        time_overlay_ms: int = 5000,
        weather_overlay_ms: int = 7000,
        time_repeat_cooldown_ms: int = 5000,
        spawn: Callable[[Callable[[], None]], None] = _spawn_thread,
    ):
        self.speech = speech
        self.board = board
        self.weather_service = weather_service
        self._post = post
        self._clock_ms = clock_ms
        self._now_fn = now_fn
        self.time_overlay_ms = time_overlay_ms
        self.weather_overlay_ms = weather_overlay_ms
        self.time_repeat_cooldown_ms = time_repeat_cooldown_ms
        self._spawn = spawn

        self._lock = threading.Lock()
        self._last_time_spoken_ms: Optional[float] = None
        self._weather_in_flight = False

    @property
    def weather_in_flight(self) -> bool:
        return self._weather_in_flight

    # ---- 报时 ----

    def on_thumbs_up(self, now_ms: float) -> bool:
        """
        显示当前时间并播报问候语。

        Returns:
            是否真正开始播报（语音占用或冷却期内返回 False）
        """
        now = self._now_fn()
        self.board.show_overlay(format_clock(now), self.time_overlay_ms, now_ms)

        with self._lock:
            last = self._last_time_spoken_ms
        if last is not None and now_ms - last <= self.time_repeat_cooldown_ms:
            return False

        return self.speech.speak(
            compose_time_announcement(now), on_done=self._mark_time_spoken,
        )

    def _mark_time_spoken(self):
        with self._lock:
            self._last_time_spoken_ms = self._clock_ms()

    # ---- 天气 ----

    def on_three_fingers(self, token: CancelToken) -> bool:
        """启动一次定位 + 天气查询；已有查询在进行中时忽略。"""
        if self._weather_in_flight:
            return False
        self._weather_in_flight = True
        self.board.set_status("Getting weather...")
        self._spawn(lambda: self._fetch_weather(token))
        return True

    def _fetch_weather(self, token: CancelToken):
        """在工作线程中执行，结果以事件形式投递回分发线程。"""
        try:
            report = self.weather_service.fetch_report()
        except Exception as e:
            self._post(WeatherFailed(token=token, message=str(e)))
            return
        self._post(WeatherFetched(token=token, report=report))

    def on_weather_fetched(self, event: WeatherFetched, now_ms: float) -> bool:
        self._weather_in_flight = False
        if event.token.cancelled:
            self.board.add_log("info", "丢弃过期的天气结果")
            return False

        now = self._now_fn()
        info = compose_weather_info(event.report, now)
        self.board.set_status(info)
        self.board.show_overlay(info, self.weather_overlay_ms, now_ms)
        self.board.add_log("info", f"天气: {event.report.city} {format_temperature(event.report)}")
        self.speech.speak(compose_weather_speech(event.report, now))
        return True

    def on_weather_failed(self, event: WeatherFailed) -> bool:
        self._weather_in_flight = False
        if event.token.cancelled:
            return False
        self.board.set_status(f"Weather failed: {event.message}")
        self.board.add_log("warning", f"天气查询失败: {event.message}")
        return True
