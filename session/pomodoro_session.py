"""番茄钟会话状态机：工作 / 休息两种模式 × 空闲 / 运行 / 暂停三种阶段"""

from typing import Callable, Optional

from models.data_models import SessionMode, SessionPhase, SessionState

ANNOUNCE_STARTED = "Pomodoro started. Stay focused!"
ANNOUNCE_PAUSED = "Pomodoro paused."
ANNOUNCE_RESUMED = "Resuming Pomodoro."
ANNOUNCE_WORK_DONE = "Pomodoro complete. Time for a break!"
ANNOUNCE_BREAK_DONE = "Break over. Back to work!"

STATUS_TEXT = {
    "started": "Pomodoro started.",
    "paused": "Pomodoro paused.",
    "resumed": "Pomodoro resumed.",
    "reset": "Pomodoro reset.",
    "tick": None,
    "switched_to_break": "Time for a break!",
    "switched_to_work": "Back to work!",
}


def format_remaining(seconds: int) -> str:
    """剩余秒数格式化为 MM:SS"""
    seconds = max(0, int(seconds))
    return f"{seconds // 60:02d}:{seconds % 60:02d}"


class PomodoroSession:
    """
    番茄钟状态机。

    手动指令与在场检测触发的暂停 / 恢复共用同一套转换逻辑；
    不合法的转换（如运行中再次 start）是无副作用的空操作。
    """

    def __init__(
        self,
        work_duration: int = 25 * 60,
        break_duration: int = 5 * 60,
        countdown=None,
        announce: Optional[Callable[[str], None]] = None,
        on_change: Optional[Callable[[SessionState, str], None]] = None,
    ):
        """
        Args:
            work_duration: 工作时长（秒）
            break_duration: 休息时长（秒）
            countdown: 可选的节拍器，需提供 start() / stop() / accepts(generation)
            announce: 语音播报回调
            on_change: 状态变化回调 (状态快照, 原因)
        """
        self.state = SessionState.initial(work_duration, break_duration)
        self._countdown = countdown
        self._announce = announce or (lambda text: None)
        self._on_change = on_change or (lambda state, reason: None)

    # ---- 查询 ----

    @property
    def mode(self) -> SessionMode:
        return self.state.mode

    @property
    def phase(self) -> SessionPhase:
        return self.state.phase

    @property
    def remaining_seconds(self) -> int:
        return self.state.remaining_seconds

    def is_running(self) -> bool:
        return self.state.phase is SessionPhase.RUNNING

    def is_paused(self) -> bool:
        return self.state.phase is SessionPhase.PAUSED

    def is_idle(self) -> bool:
        return self.state.phase is SessionPhase.IDLE

    def snapshot(self) -> SessionState:
        return self.state.copy()

    # ---- 转换 ----

    def start(self) -> bool:
        """空闲 → 运行，剩余时间重置为当前模式时长。"""
        if not self.is_idle():
            return False
        self.state.remaining_seconds = self.state.duration_for(self.state.mode)
        self.state.phase = SessionPhase.RUNNING
        self._start_countdown()
        self._announce(ANNOUNCE_STARTED)
        self._notify("started")
        return True

    def pause(self) -> bool:
        """运行 → 暂停，剩余时间保持不变。"""
        if not self.is_running():
            return False
        self._stop_countdown()
        self.state.phase = SessionPhase.PAUSED
        self._announce(ANNOUNCE_PAUSED)
        self._notify("paused")
        return True

    def resume(self) -> bool:
        """暂停 / 空闲 → 运行，从当前剩余时间继续。"""
        if self.is_running():
            return False
        self.state.phase = SessionPhase.RUNNING
        self._start_countdown()
        self._announce(ANNOUNCE_RESUMED)
        self._notify("resumed")
        return True

    def reset(self):
        """任意状态 → (工作, 空闲, 工作时长)。"""
        self._stop_countdown()
        self.state.mode = SessionMode.WORK
        self.state.phase = SessionPhase.IDLE
        self.state.remaining_seconds = self.state.work_duration_seconds
        self._notify("reset")

    def tick(self, generation: Optional[int] = None) -> bool:
        """
        倒计时减一秒；减到 0 时切换模式并自动开始下一段。

        Args:
            generation: 节拍器代号，与当前节拍器不符的 tick 被忽略

        Returns:
            本次 tick 是否生效
        """
        if not self.is_running():
            return False
        if generation is not None and self._countdown is not None \
                and not self._countdown.accepts(generation):
            return False

        self.state.remaining_seconds = max(0, self.state.remaining_seconds - 1)
        if self.state.remaining_seconds > 0:
            self._notify("tick")
            return True

        finished = self.state.mode
        self.state.mode = finished.opposite()
        self.state.remaining_seconds = self.state.duration_for(self.state.mode)
        if finished is SessionMode.WORK:
            self._announce(ANNOUNCE_WORK_DONE)
            self._notify("switched_to_break")
        else:
            self._announce(ANNOUNCE_BREAK_DONE)
            self._notify("switched_to_work")
        return True

    def stop(self):
        """释放节拍器（程序退出时调用），不改变会话状态。"""
        self._stop_countdown()

    # ---- 内部 ----

    def _start_countdown(self):
        if self._countdown is not None:
            self._countdown.start()

    def _stop_countdown(self):
        if self._countdown is not None:
            self._countdown.stop()

    def _notify(self, reason: str):
        self._on_change(self.snapshot(), reason)
