"""
Frame dispatch: recognize swipes and switch AeroSpace workspaces.
"""
import logging
import threading
from typing import Optional

from aerospace import AerospaceClient, TransportFault

from .config import SwipeConfig
from .contacts import Frame
from .gesture_recognizer import Direction, GestureRecognizer
from .haptic import HapticActuator

logger = logging.getLogger(__name__)


class SwipeDispatcher:
    """
    Turns touchpad frames into workspace switches.

    One lock covers classification, the IPC round trip and the haptic
    call, so frames are handled strictly one at a time even when the
    touchpad delivers them while a request is still in flight.
    """

    def __init__(
        self,
        recognizer: GestureRecognizer,
        client: Optional[AerospaceClient],
        config: Optional[SwipeConfig] = None,
        haptic: Optional[HapticActuator] = None,
    ):
        """
        Args:
            recognizer: Gesture recognizer (owned by the dispatcher)
            client: AeroSpace client, or None to only recognize swipes
            config: Swipe direction / wrap-around settings
            haptic: Actuator to fire after a successful switch
        """
        self._recognizer = recognizer
        self._client = client
        self._config = config or SwipeConfig()
        self._haptic = haptic
        self._lock = threading.Lock()

    @property
    def recognizer(self) -> GestureRecognizer:
        return self._recognizer

    def target_for(self, direction: Direction) -> str:
        if direction == Direction.RIGHT:
            return self._config.swipe_right
        return self._config.swipe_left

    def on_frame(self, frame: Frame) -> Optional[Direction]:
        """
        Handle one touchpad frame.

        Returns:
            The recognized direction, whether or not the switch succeeded
        """
        with self._lock:
            direction = self._recognizer.classify(frame)
            if direction is not None and self._client is not None:
                self._switch(direction)
            return direction

    def close(self):
        """Close the client and actuator once no frame is being handled."""
        with self._lock:
            if self._client is not None:
                self._client.close()
            if self._haptic is not None:
                self._haptic.close()

    def _switch(self, direction: Direction):
        target = self.target_for(direction)
        try:
            result = self._client.switch(
                target,
                wrap_around=self._config.wrap_around,
                exclude_empty=self._config.skip_empty,
            )
        except TransportFault as e:
            logger.error(f"Dropping {direction.name.lower()} swipe: {e}")
            return

        if not result.ok:
            logger.error(f"Failed to switch workspace to '{target}': {result.message}")
            return

        logger.info(f"Switched workspace successfully to '{target}'.")

        if self._haptic is not None:
            status = self._haptic.actuate(self._config.haptic_pattern)
            if status != 0:
                logger.warning(f"Haptic actuation failed with status {status}")
