"""检测暂停开关：操作者临时关闭摄像头驱动的控制，倒计时状态不受影响"""

import threading
from typing import Callable, Optional

from controller.events import EnableDetection


class DetectionPause:
    """
    暂停检测可以限时（到时自动恢复）或无限期（直到手动恢复）。

    只在分发线程中调用；定时器只负责投递 EnableDetection(generation)，
    新的暂停会使旧定时器的 generation 失效。
    """

    def __init__(self, post: Callable[[EnableDetection], None],
                 timer_factory: Callable = threading.Timer):
        self._post = post
        self._timer_factory = timer_factory
        self._paused = False
        self._generation = 0
        self._timer: Optional[threading.Timer] = None

    @property
    def is_paused(self) -> bool:
        return self._paused

    @property
    def generation(self) -> int:
        return self._generation

    def pause_for(self, minutes: float):
        """暂停 minutes 分钟后自动恢复"""
        self._begin_pause()
        generation = self._generation
        self._timer = self._timer_factory(
            minutes * 60.0, lambda: self._post(EnableDetection(generation=generation)),
        )
        self._timer.daemon = True
        self._timer.start()

    def disable(self):
        """暂停直到手动恢复"""
        self._begin_pause()

    def enable(self, generation: Optional[int] = None) -> bool:
        """
        恢复检测。

        Args:
            generation: 来自定时器的代号；与当前暂停不符时忽略

        Returns:
            是否真正恢复
        """
        if generation is not None and (generation != self._generation or not self._paused):
            return False
        self._cancel_timer()
        was_paused = self._paused
        self._paused = False
        return was_paused

    def close(self):
        self._cancel_timer()

    def _begin_pause(self):
        self._cancel_timer()
        self._generation += 1
        self._paused = True

    def _cancel_timer(self):
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None
