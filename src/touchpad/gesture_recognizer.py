"""
Three-finger horizontal swipe recognition from touchpad frames.
"""
import logging
from dataclasses import dataclass
from enum import Enum, auto
from typing import Optional

from .config import GestureConfig
from .contacts import Frame

logger = logging.getLogger(__name__)

SWIPE_FINGERS = 3
VELOCITY_CONFIRM_FRAMES = 2


class Direction(Enum):
    """Recognized swipe directions."""
    LEFT = auto()
    RIGHT = auto()


@dataclass
class GestureState:
    """Swipe tracking state, mutated only by GestureRecognizer."""
    swiping: bool = False
    start_x: float = 0.0
    last_event_time: float = float("-inf")
    consecutive_right: int = 0
    consecutive_left: int = 0

    def reset_tracking(self) -> None:
        self.swiping = False
        self.consecutive_right = 0
        self.consecutive_left = 0


class GestureRecognizer:
    """
    Recognizes three-finger left/right swipes.

    A swipe is anchored on the first frame with exactly three active
    contacts. Following frames trigger either by velocity (two consecutive
    frames past the velocity threshold) or by displacement from the anchor
    (a single frame past the position threshold). After a trigger, no swipe
    fires again until the cooldown has elapsed.
    """

    def __init__(self, config: Optional[GestureConfig] = None):
        """
        Initialize gesture recognizer.

        Args:
            config: Gesture detection thresholds
        """
        self._config = config or GestureConfig()
        self.state = GestureState()

    @property
    def config(self) -> GestureConfig:
        return self._config

    def classify(self, frame: Frame) -> Optional[Direction]:
        """
        Process one frame.

        Returns:
            The triggered Direction, or None if this frame did not
            complete a swipe.
        """
        state = self.state
        cfg = self._config

        active = frame.active_contacts(cfg.active_touch_threshold)

        if (len(active) != SWIPE_FINGERS
                or frame.timestamp - state.last_event_time < cfg.cooldown):
            state.reset_tracking()
            return None

        avg_x = sum(c.x for c in active) / len(active)
        avg_vel_x = sum(c.vel_x for c in active) / len(active)

        if not state.swiping:
            state.swiping = True
            state.start_x = avg_x
            state.consecutive_right = 0
            state.consecutive_left = 0
            return None

        delta = avg_x - state.start_x
        triggered: Optional[Direction] = None

        if avg_vel_x > cfg.velocity_threshold:
            state.consecutive_right += 1
            state.consecutive_left = 0
            if state.consecutive_right >= VELOCITY_CONFIRM_FRAMES:
                logger.info("Right swipe (by velocity) detected.")
                triggered = Direction.RIGHT
                state.consecutive_right = 0
        elif avg_vel_x < -cfg.velocity_threshold:
            state.consecutive_left += 1
            state.consecutive_right = 0
            if state.consecutive_left >= VELOCITY_CONFIRM_FRAMES:
                logger.info("Left swipe (by velocity) detected.")
                triggered = Direction.LEFT
                state.consecutive_left = 0
        elif delta > cfg.position_threshold:
            logger.info("Right swipe (by position) detected.")
            triggered = Direction.RIGHT
        elif delta < -cfg.position_threshold:
            logger.info("Left swipe (by position) detected.")
            triggered = Direction.LEFT

        if triggered is not None:
            state.last_event_time = frame.timestamp
            state.swiping = False

        return triggered

    def reset(self) -> None:
        """Drop any swipe in progress. The cooldown is kept."""
        self.state.reset_tracking()
        self.state.start_x = 0.0
