"""测试共用的关键点构造函数和替身对象"""

from detectors.gesture_classifier import FINGER_PAIRS
from models.data_models import LandmarkPoint, WeatherReport


# --------------- 手部关键点 ---------------

def make_hand(thumb=False, index=False, middle=False, ring=False, pinky=False,
              thumb_tip=None):
    """
    构造 21 个关键点的手。

    每根手指的指根 y=0.5，伸出时指尖 y=0.3，弯曲时指尖 y=0.7。
    thumb_tip 可覆盖拇指指尖坐标 (x, y)，用于构造横向 / 朝下的拇指。
    """
    points = [LandmarkPoint(0.5, 0.5) for _ in range(21)]
    for (tip, base), extended in zip(FINGER_PAIRS, (thumb, index, middle, ring, pinky)):
        points[base] = LandmarkPoint(0.5, 0.5)
        points[tip] = LandmarkPoint(0.5, 0.3 if extended else 0.7)
    if thumb_tip is not None:
        points[4] = LandmarkPoint(*thumb_tip)
    return points


def thumbs_up_hand():
    return make_hand(thumb=True)


def three_fingers_hand():
    return make_hand(index=True, middle=True, ring=True)


def fist_hand():
    return make_hand()


# --------------- 替身对象 ---------------

class FakeSpeech:
    """记录播报内容；busy=True 时模拟正在播报"""

    def __init__(self):
        self.spoken = []
        self.pending_done = []
        self.busy = False
        self.muted = False

    def speak(self, text, on_done=None):
        if self.muted or self.busy:
            return False
        self.spoken.append(text)
        if on_done is not None:
            self.pending_done.append(on_done)
        return True

    def set_muted(self, muted):
        self.muted = muted

    def finish(self):
        """模拟所有语音播放完毕"""
        callbacks, self.pending_done = self.pending_done, []
        for callback in callbacks:
            callback()


class FakeCountdown:
    def __init__(self):
        self.generation = 0
        self.is_active = False
        self.starts = 0
        self.stops = 0

    def start(self):
        if self.is_active:
            return
        self.generation += 1
        self.is_active = True
        self.starts += 1

    def stop(self):
        self.is_active = False
        self.stops += 1

    def accepts(self, generation):
        return self.is_active and generation == self.generation


class FakeTimer:
    """threading.Timer 替身，由测试手动 fire()"""

    def __init__(self, interval, function):
        self.interval = interval
        self.function = function
        self.daemon = False
        self.started = False
        self.cancelled = False

    def start(self):
        self.started = True

    def cancel(self):
        self.cancelled = True

    def fire(self):
        self.function()


class RecordingTimerFactory:
    def __init__(self):
        self.timers = []

    def __call__(self, interval, function):
        timer = FakeTimer(interval, function)
        self.timers.append(timer)
        return timer


class FakeWeatherService:
    def __init__(self, report=None, error=None):
        self.report = report or WeatherReport(
            city="Berlin", latitude=52.5, longitude=13.4,
            temperature=18, description="clear sky",
        )
        self.error = error
        self.calls = 0

    def fetch_report(self):
        self.calls += 1
        if self.error is not None:
            raise self.error
        return self.report


class FakeStream:
    """CameraStream 替身"""

    def __init__(self, camera_index, on_frame, opens=True):
        self.camera_index = camera_index
        self.on_frame = on_frame
        self.opens = opens
        self.started = False
        self.stopped = False

    def start(self):
        self.started = self.opens
        return self.opens

    def stop(self):
        self.stopped = True


class StreamFactory:
    def __init__(self, failing_indices=()):
        self.failing_indices = set(failing_indices)
        self.streams = []

    def __call__(self, camera_index, on_frame):
        stream = FakeStream(camera_index, on_frame, opens=camera_index not in self.failing_indices)
        self.streams.append(stream)
        return stream


class ManualClock:
    def __init__(self, now_ms=0.0):
        self.now_ms = now_ms

    def __call__(self):
        return self.now_ms


def sync_spawn(target):
    target()
