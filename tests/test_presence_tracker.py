"""PresenceTracker 单元测试"""

from evaluators.presence_tracker import PresenceEdge, PresenceTracker


class _Pause:
    def __init__(self, paused=False):
        self.is_paused = paused


class TestPresence:
    def test_initially_absent(self):
        tracker = PresenceTracker()
        assert not tracker.is_present
        assert tracker.on_face_frame(False, 0.0) is None

    def test_gain_is_immediate(self):
        tracker = PresenceTracker()
        assert tracker.on_face_frame(True, 0.0) is PresenceEdge.GAINED
        assert tracker.is_present
        assert tracker.on_face_frame(True, 30.0) is None

    def test_loss_requires_grace_period(self):
        tracker = PresenceTracker(absence_grace_ms=5000)
        tracker.on_face_frame(True, 0.0)
        assert tracker.on_face_frame(False, 1000.0) is None
        assert tracker.state.absent_since_ms == 1000.0
        assert tracker.on_face_frame(False, 6000.0) is None
        assert tracker.on_face_frame(False, 6001.0) is PresenceEdge.LOST
        assert not tracker.is_present

    def test_4999_ms_absence_keeps_presence(self):
        tracker = PresenceTracker(absence_grace_ms=5000)
        tracker.on_face_frame(True, 0.0)
        tracker.on_face_frame(False, 1000.0)
        assert tracker.on_face_frame(False, 5999.0) is None
        assert tracker.is_present

    def test_absent_since_not_moved_by_later_frames(self):
        tracker = PresenceTracker()
        tracker.on_face_frame(True, 0.0)
        tracker.on_face_frame(False, 100.0)
        tracker.on_face_frame(False, 200.0)
        assert tracker.state.absent_since_ms == 100.0

    def test_reappearing_cancels_pending_absence(self):
        tracker = PresenceTracker(absence_grace_ms=5000)
        tracker.on_face_frame(True, 0.0)
        tracker.on_face_frame(False, 1000.0)
        assert tracker.on_face_frame(True, 4000.0) is None
        assert tracker.state.absent_since_ms is None
        assert tracker.on_face_frame(False, 7000.0) is None
        assert tracker.on_face_frame(False, 11000.0) is None
        assert tracker.on_face_frame(False, 12001.0) is PresenceEdge.LOST

    def test_lost_emitted_once(self):
        tracker = PresenceTracker(absence_grace_ms=1000)
        tracker.on_face_frame(True, 0.0)
        tracker.on_face_frame(False, 10.0)
        assert tracker.on_face_frame(False, 1011.0) is PresenceEdge.LOST
        assert tracker.on_face_frame(False, 5000.0) is None

    def test_clear_pending_absence(self):
        tracker = PresenceTracker(absence_grace_ms=1000)
        tracker.on_face_frame(True, 0.0)
        tracker.on_face_frame(False, 10.0)
        tracker.clear_pending_absence()
        assert tracker.on_face_frame(False, 2000.0) is None
        assert tracker.state.absent_since_ms == 2000.0

    def test_reset(self):
        tracker = PresenceTracker()
        tracker.on_face_frame(True, 0.0)
        tracker.reset()
        assert not tracker.is_present
        assert tracker.state.absent_since_ms is None


class TestDetectionPause:
    def test_frames_ignored_while_paused(self):
        pause = _Pause(paused=True)
        tracker = PresenceTracker(detection_pause=pause)
        assert tracker.on_face_frame(True, 0.0) is None
        assert not tracker.is_present

    def test_no_loss_while_paused(self):
        pause = _Pause()
        tracker = PresenceTracker(absence_grace_ms=1000, detection_pause=pause)
        tracker.on_face_frame(True, 0.0)
        pause.is_paused = True
        assert tracker.on_face_frame(False, 100.0) is None
        assert tracker.on_face_frame(False, 60000.0) is None
        assert tracker.is_present
        assert tracker.state.absent_since_ms is None
