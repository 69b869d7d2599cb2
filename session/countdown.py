"""番茄钟倒计时节拍器：每秒投递一个 Tick 事件"""

import threading
import time
from typing import Callable, Optional

from controller.events import Tick


class Countdown:
    """
    固定周期节拍器。

    每次 tick 只让剩余时间减 1 秒；节拍按绝对截止时间 t0 + n*period 调度，
    调度延迟不会累积，单个 tick 最多晚一个周期。
    每次 start() 产生新的 generation，stop() 之后残留在队列里的旧 tick 会被忽略。
    """

    def __init__(self, post: Callable[[Tick], None], period_s: float = 1.0,
                 clock: Callable[[], float] = time.monotonic):
        self._post = post
        self.period_s = period_s
        self._clock = clock
        self._generation = 0
        self._stop_event: Optional[threading.Event] = None
        self._thread: Optional[threading.Thread] = None

    @property
    def generation(self) -> int:
        return self._generation

    @property
    def is_active(self) -> bool:
        return self._stop_event is not None

    def start(self):
        """启动节拍线程；已在运行时不做任何事。"""
        if self.is_active:
            return
        self._generation += 1
        self._stop_event = threading.Event()
        self._thread = threading.Thread(
            target=self._run, args=(self._generation, self._stop_event), daemon=True,
        )
        self._thread.start()

    def stop(self):
        """停止节拍线程并等待其退出。"""
        if self._stop_event is None:
            return
        self._stop_event.set()
        thread = self._thread
        self._stop_event = None
        self._thread = None
        if thread is not None and thread is not threading.current_thread():
            thread.join(timeout=self.period_s * 2)

    def accepts(self, generation: int) -> bool:
        """tick 是否来自当前正在运行的节拍器"""
        return self.is_active and generation == self._generation

    def _run(self, generation: int, stop_event: threading.Event):
        started = self._clock()
        n = 0
        while True:
            n += 1
            deadline = started + n * self.period_s
            if stop_event.wait(timeout=max(0.0, deadline - self._clock())):
                break
            self._post(Tick(generation))
