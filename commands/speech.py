"""语音播报模块，基于 pyttsx3；同一时间最多只有一条语音在播放"""

import threading
from typing import Callable, Optional

import pyttsx3


def _default_engine_factory():
    return pyttsx3.init()


class SpeechOutput:
    """
    语音输出。

    正在播报时新的请求直接丢弃（不排队）；静音时所有请求都被丢弃。
    每条语音在独立线程中创建引擎并播放，播放结束后清除占用标志。
    """

    def __init__(self, engine_factory: Callable = _default_engine_factory,
                 rate: Optional[int] = None, volume: Optional[float] = None,
                 on_error: Optional[Callable[[str], None]] = None):
        self._engine_factory = engine_factory
        self._rate = rate
        self._volume = volume
        self._on_error = on_error or (lambda message: print(message))
        self._lock = threading.Lock()
        self._speaking = False
        self._muted = False
        self._thread: Optional[threading.Thread] = None

    @property
    def is_speaking(self) -> bool:
        with self._lock:
            return self._speaking

    @property
    def muted(self) -> bool:
        with self._lock:
            return self._muted

    def set_muted(self, muted: bool):
        with self._lock:
            self._muted = bool(muted)

    def speak(self, text: str, on_done: Optional[Callable[[], None]] = None) -> bool:
        """
        请求播报一段文字。

        Args:
            text: 播报内容
            on_done: 播放结束（含失败）后在播报线程中回调

        Returns:
            是否真正开始播报
        """
        with self._lock:
            if self._muted or self._speaking:
                return False
            self._speaking = True

        self._thread = threading.Thread(target=self._run, args=(text, on_done), daemon=True)
        self._thread.start()
        return True

    def wait(self, timeout: Optional[float] = None):
        """等待当前语音播完（测试与退出时使用）"""
        thread = self._thread
        if thread is not None:
            thread.join(timeout)

    def _run(self, text: str, on_done: Optional[Callable[[], None]]):
        try:
            engine = self._engine_factory()
            if self._rate is not None:
                engine.setProperty("rate", self._rate)
            if self._volume is not None:
                engine.setProperty("volume", self._volume)
            engine.say(text)
            engine.runAndWait()
        except Exception as e:
            self._on_error(f"语音播报失败: {e}")
        finally:
            with self._lock:
                self._speaking = False
            if on_done is not None:
                on_done()
