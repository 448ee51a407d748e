"""
Haptic feedback through evdev force-feedback (FF_RUMBLE) effects.
"""
import errno
import logging
from typing import Dict, Optional, Tuple

try:
    import evdev
    from evdev import ecodes, ff, InputDevice
    EVDEV_AVAILABLE = True
except ImportError:
    EVDEV_AVAILABLE = False
    evdev = None
    ecodes = None
    ff = None

logger = logging.getLogger(__name__)

# pattern id -> (strong magnitude, weak magnitude, duration ms)
PATTERNS: Dict[int, Tuple[int, int, int]] = {
    1: (0x2000, 0x0000, 10),
    2: (0x4000, 0x0000, 15),
    3: (0x6000, 0x2000, 20),
    4: (0x8000, 0x4000, 25),
    5: (0xA000, 0x6000, 35),
    6: (0xFFFF, 0x8000, 50),
}
DEFAULT_PATTERN = 3


def find_haptic_device() -> Optional[str]:
    """Path of the first input device that supports rumble effects."""
    if not EVDEV_AVAILABLE:
        return None

    for path in evdev.list_devices():
        try:
            device = InputDevice(path)
        except (PermissionError, OSError):
            continue
        try:
            caps = device.capabilities(absinfo=False)
            if ecodes.FF_RUMBLE in caps.get(ecodes.EV_FF, []):
                logger.info(f"Found haptic device: {device.name} at {path}")
                return path
        finally:
            device.close()
    return None


class HapticActuator:
    """
    Fire-and-forget haptic feedback.

    Effects are uploaded to the device the first time a pattern is used
    and replayed afterwards.
    """

    def __init__(self, device_path: Optional[str] = None):
        self._device_path = device_path
        self._device: Optional[InputDevice] = None
        self._effects: Dict[int, int] = {}  # pattern id -> uploaded effect id

    @property
    def is_open(self) -> bool:
        return self._device is not None

    def open(self) -> bool:
        """
        Open the actuator.

        Returns:
            True if a force-feedback device was opened
        """
        if not EVDEV_AVAILABLE:
            logger.error("python-evdev not installed")
            return False

        path = self._device_path or find_haptic_device()
        if not path:
            logger.error("No force-feedback device found")
            return False

        try:
            self._device = InputDevice(path)
            self._device_path = path
        except (PermissionError, OSError) as e:
            logger.error(f"Failed to open actuator: {e}")
            return False
        return True

    def _effect_id(self, pattern_id: int) -> int:
        effect_id = self._effects.get(pattern_id)
        if effect_id is not None:
            return effect_id

        strong, weak, duration_ms = PATTERNS.get(pattern_id, PATTERNS[DEFAULT_PATTERN])
        rumble = ff.Rumble(strong_magnitude=strong, weak_magnitude=weak)
        effect = ff.Effect(
            ecodes.FF_RUMBLE, -1, 0,
            ff.Trigger(0, 0),
            ff.Replay(duration_ms, 0),
            ff.EffectType(ff_rumble_effect=rumble),
        )
        effect_id = self._device.upload_effect(effect)
        self._effects[pattern_id] = effect_id
        return effect_id

    def actuate(self, pattern_id: int = DEFAULT_PATTERN) -> int:
        """
        Play a feedback pattern.

        Returns:
            0 on success, otherwise an errno value
        """
        if self._device is None:
            return errno.ENODEV

        try:
            self._device.write(ecodes.EV_FF, self._effect_id(pattern_id), 1)
        except OSError as e:
            return e.errno or errno.EIO
        return 0

    def close(self):
        """Erase uploaded effects and release the device."""
        if self._device is None:
            return
        for effect_id in self._effects.values():
            try:
                self._device.erase_effect(effect_id)
            except OSError as e:
                logger.debug(f"Failed to erase effect {effect_id}: {e}")
        self._effects.clear()
        try:
            self._device.close()
        except OSError as e:
            logger.warning(f"Error closing actuator: {e}")
        self._device = None
