import pytest

pytest.importorskip("PyQt5")

from touchpad.contacts import Frame
from touchpad.gesture_recognizer import Direction
from touchpad.worker import SwipeWorker


class FakeTouchpad:
    def __init__(self, batches, connected=True):
        self.batches = list(batches)
        self.connected = connected
        self.on_update = None

    def connect(self):
        return self.connected

    def update(self, timeout=0.0):
        if self.on_update:
            self.on_update()
        if not self.batches:
            return []
        batch = self.batches.pop(0)
        if isinstance(batch, Exception):
            raise batch
        return batch


class FakeDispatcher:
    def __init__(self, directions):
        self.directions = list(directions)

    def on_frame(self, frame):
        return self.directions.pop(0) if self.directions else None


def run(touchpad, dispatcher):
    worker = SwipeWorker(touchpad, dispatcher, poll_timeout=0)
    seen = {"swipes": [], "errors": [], "stopped": 0}
    worker.swipe_detected.connect(seen["swipes"].append)
    worker.error.connect(seen["errors"].append)

    def on_stopped():
        seen["stopped"] += 1

    worker.stopped.connect(on_stopped)
    return worker, seen


def test_swipes_are_emitted_until_read_error():
    frames = [Frame(device="test", timestamp=1.0), Frame(device="test", timestamp=1.1)]
    touchpad = FakeTouchpad([frames, OSError("No such device")])
    worker, seen = run(touchpad, FakeDispatcher([None, Direction.LEFT]))

    worker.start_process()

    assert seen["swipes"] == [Direction.LEFT]
    assert seen["errors"] == ["Touchpad read error: No such device"]
    assert seen["stopped"] == 1
    assert not worker.is_running


def test_unexpected_exception_stops_the_worker():
    touchpad = FakeTouchpad([RuntimeError("boom")])
    worker, seen = run(touchpad, FakeDispatcher([]))

    worker.start_process()

    assert seen["errors"] == ["Worker Exception: boom"]
    assert seen["stopped"] == 1


def test_missing_touchpad_stops_the_worker():
    worker, seen = run(FakeTouchpad([], connected=False), FakeDispatcher([]))

    worker.start_process()

    assert seen["errors"] == ["No touchpad found or permission denied"]
    assert seen["stopped"] == 1


def test_requested_stop_is_quiet():
    touchpad = FakeTouchpad([])
    worker, seen = run(touchpad, FakeDispatcher([]))
    touchpad.on_update = worker.stop_process

    worker.start_process()

    assert seen["errors"] == []
    assert seen["stopped"] == 0
