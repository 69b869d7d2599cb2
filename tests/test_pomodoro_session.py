"""PomodoroSession 状态机单元测试"""

from hypothesis import given
from hypothesis import strategies as st

from models.data_models import SessionMode, SessionPhase
from session.pomodoro_session import (
    ANNOUNCE_BREAK_DONE,
    ANNOUNCE_PAUSED,
    ANNOUNCE_RESUMED,
    ANNOUNCE_STARTED,
    ANNOUNCE_WORK_DONE,
    PomodoroSession,
    format_remaining,
)
from helpers import FakeCountdown


def _session(work=25 * 60, brk=5 * 60):
    announced = []
    changes = []
    countdown = FakeCountdown()
    session = PomodoroSession(
        work_duration=work,
        break_duration=brk,
        countdown=countdown,
        announce=announced.append,
        on_change=lambda state, reason: changes.append((state, reason)),
    )
    return session, countdown, announced, changes


class TestFormatRemaining:
    def test_formats(self):
        assert format_remaining(1500) == "25:00"
        assert format_remaining(61) == "01:01"
        assert format_remaining(0) == "00:00"

    def test_negative_clamped(self):
        assert format_remaining(-5) == "00:00"


class TestTransitions:
    def test_initial_state(self):
        session, _, _, _ = _session()
        assert session.mode is SessionMode.WORK
        assert session.phase is SessionPhase.IDLE
        assert session.remaining_seconds == 1500

    def test_start_from_idle(self):
        session, countdown, announced, changes = _session()
        assert session.start() is True
        assert session.is_running()
        assert countdown.is_active
        assert announced == [ANNOUNCE_STARTED]
        assert changes[-1][1] == "started"

    def test_start_while_running_is_noop(self):
        session, countdown, announced, _ = _session()
        session.start()
        session.tick(countdown.generation)
        assert session.start() is False
        assert session.remaining_seconds == 1499
        assert announced == [ANNOUNCE_STARTED]

    def test_start_while_paused_is_noop(self):
        session, _, _, _ = _session()
        session.start()
        session.pause()
        assert session.start() is False
        assert session.is_paused()

    def test_pause_keeps_remaining(self):
        session, countdown, announced, _ = _session()
        session.start()
        for _ in range(10):
            session.tick(countdown.generation)
        assert session.pause() is True
        assert session.remaining_seconds == 1490
        assert not countdown.is_active
        assert announced[-1] == ANNOUNCE_PAUSED

    def test_pause_when_not_running_is_noop(self):
        session, _, announced, changes = _session()
        assert session.pause() is False
        assert announced == []
        assert changes == []

    def test_resume_from_paused(self):
        session, countdown, announced, _ = _session()
        session.start()
        session.tick(countdown.generation)
        session.pause()
        assert session.resume() is True
        assert session.is_running()
        assert session.remaining_seconds == 1499
        assert announced[-1] == ANNOUNCE_RESUMED

    def test_resume_from_idle_uses_current_remaining(self):
        session, countdown, _, _ = _session()
        assert session.resume() is True
        assert session.is_running()
        assert session.remaining_seconds == 1500
        assert countdown.is_active

    def test_resume_while_running_is_noop(self):
        session, countdown, _, _ = _session()
        session.start()
        assert session.resume() is False
        assert countdown.starts == 1

    def test_reset_from_break(self):
        session, countdown, _, changes = _session(work=2, brk=3)
        session.start()
        session.tick(countdown.generation)
        session.tick(countdown.generation)
        assert session.mode is SessionMode.BREAK
        session.reset()
        assert session.mode is SessionMode.WORK
        assert session.phase is SessionPhase.IDLE
        assert session.remaining_seconds == 2
        assert not countdown.is_active
        assert changes[-1][1] == "reset"


class TestTick:
    def test_tick_decrements_one_second(self):
        session, countdown, _, changes = _session()
        session.start()
        assert session.tick(countdown.generation) is True
        assert session.remaining_seconds == 1499
        assert changes[-1][1] == "tick"

    def test_tick_ignored_when_not_running(self):
        session, countdown, _, _ = _session()
        assert session.tick() is False
        session.start()
        session.pause()
        assert session.tick(countdown.generation) is False
        assert session.remaining_seconds == 1500

    def test_stale_generation_ignored(self):
        session, countdown, _, _ = _session()
        session.start()
        stale = countdown.generation
        session.pause()
        session.resume()
        assert session.tick(stale) is False
        assert session.remaining_seconds == 1500
        assert session.tick(countdown.generation) is True

    def test_work_completes_into_break(self):
        session, countdown, announced, changes = _session(work=3, brk=2)
        session.start()
        for _ in range(3):
            session.tick(countdown.generation)
        assert session.mode is SessionMode.BREAK
        assert session.is_running()
        assert session.remaining_seconds == 2
        assert announced[-1] == ANNOUNCE_WORK_DONE
        assert changes[-1][1] == "switched_to_break"

    def test_break_completes_into_work(self):
        session, countdown, announced, changes = _session(work=1, brk=2)
        session.start()
        session.tick(countdown.generation)
        session.tick(countdown.generation)
        session.tick(countdown.generation)
        assert session.mode is SessionMode.WORK
        assert session.is_running()
        assert session.remaining_seconds == 1
        assert announced[-1] == ANNOUNCE_BREAK_DONE
        assert changes[-1][1] == "switched_to_work"

    def test_snapshot_is_a_copy(self):
        session, countdown, _, changes = _session()
        session.start()
        snapshot = changes[-1][0]
        session.tick(countdown.generation)
        assert snapshot.remaining_seconds == 1500


commands = st.lists(
    st.sampled_from(["start", "pause", "resume", "reset", "tick"]),
    max_size=80,
)


class TestSessionProperties:
    @given(commands)
    def test_remaining_stays_within_mode_duration(self, actions):
        session, countdown, _, _ = _session(work=5, brk=3)
        for action in actions:
            if action == "tick":
                session.tick(countdown.generation)
            else:
                getattr(session, action)()
            if action == "reset":
                assert session.mode is SessionMode.WORK
                assert session.phase is SessionPhase.IDLE
                assert session.remaining_seconds == 5
                assert not countdown.is_active
            assert 0 < session.remaining_seconds <= session.state.duration_for(session.mode)
            assert countdown.is_active == session.is_running()

    @given(st.integers(min_value=0, max_value=1499))
    def test_n_ticks_subtract_n_seconds(self, n):
        session, countdown, _, _ = _session()
        session.start()
        for _ in range(n):
            session.tick(countdown.generation)
        assert session.remaining_seconds == 1500 - n
        assert session.mode is SessionMode.WORK


class TestFullCycles:
    def test_work_period_flips_after_1500_ticks(self):
        session, countdown, _, _ = _session()
        session.start()
        for _ in range(1499):
            session.tick(countdown.generation)
        assert session.mode is SessionMode.WORK
        assert session.remaining_seconds == 1
        session.tick(countdown.generation)
        assert session.mode is SessionMode.BREAK
        assert session.remaining_seconds == 300
        assert session.is_running()

    def test_pause_at_700_resumes_from_700(self):
        session, countdown, _, _ = _session()
        session.start()
        for _ in range(800):
            session.tick(countdown.generation)
        session.pause()
        assert session.remaining_seconds == 700
        for _ in range(50):
            session.tick(countdown.generation)
        session.resume()
        assert session.remaining_seconds == 700
        session.tick(countdown.generation)
        assert session.remaining_seconds == 699
