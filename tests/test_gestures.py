import pytest
from touchpad.gesture_recognizer import GestureRecognizer, Direction
from touchpad.config import GestureConfig
from touchpad.contacts import Contact, Frame, TouchState


def make_frame(t, x=0.5, vel_x=0.0, fingers=3, size=0.5, state=TouchState.TOUCHING, extra=()):
    """Frame with `fingers` contacts spread around average x."""
    offsets = [(i - (fingers - 1) / 2) * 0.05 for i in range(fingers)]
    contacts = tuple(
        Contact(identifier=i, x=x + off, y=0.5, vel_x=vel_x, size=size, state=state, timestamp=t)
        for i, off in enumerate(offsets)
    ) + tuple(extra)
    return Frame(device="test", contacts=contacts, timestamp=t)


@pytest.fixture
def recognizer():
    config = GestureConfig()
    return GestureRecognizer(config)


def test_first_frame_only_anchors(recognizer):
    assert recognizer.classify(make_frame(1.0, x=0.4)) is None
    assert recognizer.state.swiping is True
    assert recognizer.state.start_x == pytest.approx(0.4)


@pytest.mark.parametrize("fingers", [0, 1, 2, 4, 5])
def test_wrong_finger_count_never_triggers(recognizer, fingers):
    t = 1.0
    for i in range(6):
        frame = make_frame(t + i * 0.01, x=0.2 + i * 0.1, vel_x=2.0, fingers=fingers)
        assert recognizer.classify(frame) is None
        assert recognizer.state.swiping is False


def test_position_swipe_right(recognizer):
    recognizer.classify(make_frame(1.0, x=0.4))
    assert recognizer.classify(make_frame(1.01, x=0.6, vel_x=0.1)) == Direction.RIGHT
    assert recognizer.state.swiping is False
    assert recognizer.state.last_event_time == 1.01


def test_position_swipe_left(recognizer):
    recognizer.classify(make_frame(1.0, x=0.6))
    assert recognizer.classify(make_frame(1.01, x=0.4, vel_x=-0.5)) == Direction.LEFT


def test_position_below_threshold_does_not_trigger(recognizer):
    recognizer.classify(make_frame(1.0, x=0.5))
    assert recognizer.classify(make_frame(1.01, x=0.6)) is None
    assert recognizer.state.swiping is True


def test_velocity_needs_two_frames(recognizer):
    recognizer.classify(make_frame(1.0, x=0.5))
    assert recognizer.classify(make_frame(1.01, x=0.5, vel_x=0.8)) is None
    assert recognizer.state.consecutive_right == 1
    assert recognizer.classify(make_frame(1.02, x=0.5, vel_x=0.8)) == Direction.RIGHT
    assert recognizer.state.consecutive_right == 0


def test_velocity_swipe_left(recognizer):
    recognizer.classify(make_frame(1.0, x=0.5))
    assert recognizer.classify(make_frame(1.01, vel_x=-0.9)) is None
    assert recognizer.classify(make_frame(1.02, vel_x=-0.9)) == Direction.LEFT


def test_velocity_takes_priority_over_position(recognizer):
    recognizer.classify(make_frame(1.0, x=0.5))
    # Far enough left to trigger by position, but moving right fast
    assert recognizer.classify(make_frame(1.01, x=0.2, vel_x=0.8)) is None
    assert recognizer.state.consecutive_right == 1


def test_opposite_velocity_resets_other_counter(recognizer):
    recognizer.classify(make_frame(1.0))
    recognizer.classify(make_frame(1.01, vel_x=-0.8))
    assert recognizer.state.consecutive_left == 1

    assert recognizer.classify(make_frame(1.02, vel_x=0.8)) is None
    assert recognizer.state.consecutive_right == 1
    assert recognizer.state.consecutive_left == 0


def test_cooldown_blocks_new_trigger(recognizer):
    recognizer.classify(make_frame(1.0, x=0.4))
    assert recognizer.classify(make_frame(1.01, x=0.7)) == Direction.RIGHT

    # Everything inside the cooldown is ignored, whatever the motion
    t = 1.02
    while t < 1.01 + 0.29:
        assert recognizer.classify(make_frame(t, x=0.9, vel_x=3.0)) is None
        assert recognizer.state.swiping is False
        t += 0.02

    # After the cooldown a new gesture has to be anchored first
    assert recognizer.classify(make_frame(1.4, x=0.4)) is None
    assert recognizer.classify(make_frame(1.41, x=0.1)) == Direction.LEFT


def test_lifting_fingers_cancels_silently(recognizer):
    recognizer.classify(make_frame(1.0, x=0.4))
    recognizer.classify(make_frame(1.01, x=0.45, vel_x=0.8))

    assert recognizer.classify(make_frame(1.02, fingers=2)) is None
    assert recognizer.state.swiping is False
    assert recognizer.state.consecutive_right == 0

    # New anchor, old start position is gone
    assert recognizer.classify(make_frame(1.03, x=0.7)) is None
    assert recognizer.state.start_x == pytest.approx(0.7)


def test_only_active_contacts_count(recognizer):
    # A resting palm / hovering finger does not make it a four finger touch
    ghost = Contact(identifier=9, x=0.0, y=0.0, vel_x=-5.0, size=0.01, timestamp=1.0)
    lifted = Contact(identifier=8, x=0.0, y=0.0, size=0.9, state=TouchState.BREAK_TOUCH, timestamp=1.0)
    recognizer.classify(make_frame(1.0, x=0.4, extra=(ghost, lifted)))
    assert recognizer.state.swiping is True
    assert recognizer.state.start_x == pytest.approx(0.4)

    assert recognizer.classify(make_frame(1.01, x=0.6, extra=(ghost,))) == Direction.RIGHT


def test_small_contacts_are_not_fingers(recognizer):
    assert recognizer.classify(make_frame(1.0, size=0.05)) is None
    assert recognizer.state.swiping is False


def test_custom_thresholds():
    rec = GestureRecognizer(GestureConfig(position_threshold=0.3, cooldown=1.0))
    rec.classify(make_frame(1.0, x=0.3))
    assert rec.classify(make_frame(1.01, x=0.5)) is None
    assert rec.classify(make_frame(1.02, x=0.65)) == Direction.RIGHT

    rec.classify(make_frame(1.5, x=0.3))
    assert rec.state.swiping is False


def test_reset_keeps_cooldown(recognizer):
    recognizer.classify(make_frame(1.0, x=0.4))
    recognizer.classify(make_frame(1.01, x=0.7))
    recognizer.reset()
    assert recognizer.state.swiping is False
    assert recognizer.state.last_event_time == 1.01


def uniform_frame(t, x=0.5, vel_x=0.0):
    """Three fingers at exactly the same x, so the average is exact."""
    contacts = tuple(
        Contact(identifier=i, x=x, y=0.5, vel_x=vel_x, size=0.5, timestamp=t)
        for i in range(3)
    )
    return Frame(device="test", contacts=contacts, timestamp=t)


def test_position_threshold_is_strict():
    rec = GestureRecognizer(GestureConfig(position_threshold=0.125))
    rec.classify(uniform_frame(1.0, x=0.25))
    assert rec.classify(uniform_frame(1.0078125, x=0.375)) is None
    assert rec.classify(uniform_frame(1.015625, x=0.125)) is None
    assert rec.state.swiping is True
    assert rec.classify(uniform_frame(1.0234375, x=0.4375)) == Direction.RIGHT


def test_velocity_threshold_is_strict(recognizer):
    recognizer.classify(uniform_frame(1.0))
    for i in range(1, 4):
        assert recognizer.classify(uniform_frame(1.0 + i / 64, vel_x=0.5)) is None
        assert recognizer.state.consecutive_right == 0
        assert recognizer.classify(uniform_frame(1.0 + i / 64, vel_x=-0.5)) is None
        assert recognizer.state.consecutive_left == 0


def test_swipe_allowed_exactly_at_cooldown_end():
    rec = GestureRecognizer(GestureConfig(cooldown=0.25))
    rec.classify(uniform_frame(1.0, x=0.25))
    assert rec.classify(uniform_frame(1.0, x=0.5)) == Direction.RIGHT

    rec.classify(uniform_frame(1.2421875, x=0.5))
    assert rec.state.swiping is False

    rec.classify(uniform_frame(1.25, x=0.5))
    assert rec.state.swiping is True
    assert rec.classify(uniform_frame(1.2578125, x=0.25)) == Direction.LEFT
