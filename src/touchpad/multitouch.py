"""
Touchpad frame source using python-evdev.

Reads a Linux multitouch (protocol B) touchpad and assembles the per-slot
event stream into Frames, one per SYN_REPORT.
"""
import logging
import select
import time
from dataclasses import dataclass
from typing import Callable, Dict, Iterable, List, Optional, Tuple

try:
    import evdev
    from evdev import ecodes, InputDevice
    EVDEV_AVAILABLE = True
except ImportError:
    EVDEV_AVAILABLE = False
    evdev = None
    ecodes = None

from .contacts import Contact, Frame, TouchState

logger = logging.getLogger(__name__)


@dataclass
class _Slot:
    """Raw state of one multitouch slot between SYN_REPORTs."""
    tracking_id: int = -1
    x: int = 0
    y: int = 0
    pressure: Optional[int] = None
    touch_major: Optional[int] = None
    lifted: bool = False

    # Previous normalized sample, for velocity
    last_x: Optional[float] = None
    last_y: Optional[float] = None
    last_time: Optional[float] = None
    vel_x: float = 0.0
    vel_y: float = 0.0

    def begin(self, tracking_id: int) -> None:
        self.tracking_id = tracking_id
        self.pressure = None
        self.touch_major = None
        self.lifted = False
        self.last_x = self.last_y = self.last_time = None
        self.vel_x = self.vel_y = 0.0


def find_touchpad() -> Optional[str]:
    """
    Auto-detect the first multitouch touchpad.

    Looks for devices with slotted MT axes that can report three fingers
    and are not direct-touch screens. Returns the device path
    (e.g., '/dev/input/event7') or None.
    """
    if not EVDEV_AVAILABLE:
        return None

    for path in evdev.list_devices():
        try:
            device = InputDevice(path)
        except (PermissionError, OSError):
            continue

        try:
            caps = device.capabilities(absinfo=False)

            abs_codes = caps.get(ecodes.EV_ABS, [])
            if ecodes.ABS_MT_SLOT not in abs_codes or ecodes.ABS_MT_POSITION_X not in abs_codes:
                continue

            if ecodes.BTN_TOOL_TRIPLETAP not in caps.get(ecodes.EV_KEY, []):
                continue

            if ecodes.INPUT_PROP_DIRECT in device.input_props():
                continue

            logger.info(f"Found touchpad: {device.name} at {path}")
            return path
        except OSError:
            continue
        finally:
            device.close()

    return None


class Touchpad:
    """
    Multitouch touchpad reader.

    Usage:
        touchpad = Touchpad()
        if touchpad.connect():
            try:
                while running:
                    for frame in touchpad.update(timeout=0.1):
                        # Process frame...
            finally:
                touchpad.disconnect()
    """

    def __init__(self, device_path: Optional[str] = None, grab: bool = False,
                 clock: Callable[[], float] = time.monotonic):
        """
        Initialize touchpad.

        Args:
            device_path: Specific device path, or None to auto-detect
            grab: Take exclusive access after connecting
            clock: Source of frame timestamps (seconds, monotonic)
        """
        self._device_path = device_path
        self._device: Optional[InputDevice] = None
        self._want_grab = grab
        self._grabbed = False

        # Axis ranges for normalization: code -> (min, max)
        self._axis_info: Dict[int, Tuple[int, int]] = {}

        self._slots: Dict[int, _Slot] = {}
        self._current_slot = 0
        self._sequence = 0
        self._clock = clock

    @property
    def connected(self) -> bool:
        return self._device is not None

    @property
    def name(self) -> str:
        return self._device.name if self._device else "No device"

    @property
    def fd(self) -> Optional[int]:
        return self._device.fd if self._device else None

    def connect(self) -> bool:
        """
        Connect to the touchpad device.

        Returns:
            True if connected successfully
        """
        if not EVDEV_AVAILABLE:
            logger.error("python-evdev not installed")
            return False

        path = self._device_path or find_touchpad()
        if not path:
            logger.error("No multitouch touchpad found")
            return False

        try:
            self._device = InputDevice(path)
            self._device_path = path

            caps = self._device.capabilities()
            for code, absinfo in caps.get(ecodes.EV_ABS, []):
                self._axis_info[code] = (absinfo.min, absinfo.max)

            logger.info(f"Connected to: {self._device.name}")
        except (PermissionError, OSError) as e:
            logger.error(f"Cannot open touchpad: {e}")
            self._device = None
            return False

        if self._want_grab:
            self.grab()
        return True

    def disconnect(self):
        """Disconnect from the touchpad."""
        if self._grabbed:
            self.ungrab()
        if self._device:
            try:
                self._device.close()
            except OSError as e:
                logger.warning(f"Error closing touchpad: {e}")
            self._device = None

    def grab(self) -> bool:
        """
        Grab exclusive access. The desktop will stop seeing the touchpad.

        Returns:
            True if grabbed successfully
        """
        if not self._device:
            return False

        try:
            self._device.grab()
            self._grabbed = True
            logger.info(f"Exclusive grab acquired on: {self._device.name}")
            return True
        except OSError as e:
            logger.error(f"Failed to grab device: {e}")
            return False

    def ungrab(self):
        """Release exclusive access."""
        if self._device and self._grabbed:
            try:
                self._device.ungrab()
            except OSError as e:
                logger.warning(f"Error releasing grab: {e}")
            self._grabbed = False

    def update(self, timeout: float = 0.0) -> List[Frame]:
        """
        Read pending events.

        Args:
            timeout: Maximum time to wait for events (0 = non-blocking)

        Returns:
            Frames completed by the events read, oldest first
        """
        if not self._device:
            return []

        r, _, _ = select.select([self._device.fd], [], [], timeout)
        if not r:
            return []

        try:
            return self.feed(self._device.read())
        except BlockingIOError:
            return []

    def feed(self, events: Iterable) -> List[Frame]:
        """Process raw evdev events and return the frames they complete."""
        frames = []
        for event in events:
            frame = self._process_event(event)
            if frame is not None:
                frames.append(frame)
        return frames

    def _slot(self) -> _Slot:
        slot = self._slots.get(self._current_slot)
        if slot is None:
            slot = self._slots[self._current_slot] = _Slot()
        return slot

    def _process_event(self, event) -> Optional[Frame]:
        """Process a single evdev event."""
        if event.type == ecodes.EV_ABS:
            self._process_axis(event.code, event.value)
        elif event.type == ecodes.EV_SYN:
            if event.code == ecodes.SYN_REPORT:
                # Event times follow the wall clock, which can step backwards,
                # so they only pace velocity
                return self._build_frame(self._clock(), event.timestamp())
            if event.code == ecodes.SYN_DROPPED:
                logger.warning("Touchpad events dropped, resetting contacts")
                self._slots.clear()
        return None

    def _process_axis(self, code: int, value: int):
        if code == ecodes.ABS_MT_SLOT:
            self._current_slot = value
        elif code == ecodes.ABS_MT_TRACKING_ID:
            slot = self._slot()
            if value < 0:
                slot.lifted = True
            else:
                slot.begin(value)
        elif code == ecodes.ABS_MT_POSITION_X:
            self._slot().x = value
        elif code == ecodes.ABS_MT_POSITION_Y:
            self._slot().y = value
        elif code == ecodes.ABS_MT_PRESSURE:
            self._slot().pressure = value
        elif code == ecodes.ABS_MT_TOUCH_MAJOR:
            self._slot().touch_major = value

    def _normalize(self, code: int, value: int) -> float:
        min_val, max_val = self._axis_info.get(code, (0, 0))
        span = max_val - min_val
        if span <= 0:
            return 0.0
        return (value - min_val) / span

    def _contact_size(self, slot: _Slot) -> float:
        # Prefer pressure, then contact size; devices reporting neither
        # count every tracked contact as fully pressed.
        if slot.pressure is not None and ecodes.ABS_MT_PRESSURE in self._axis_info:
            return self._normalize(ecodes.ABS_MT_PRESSURE, slot.pressure)
        if slot.touch_major is not None and ecodes.ABS_MT_TOUCH_MAJOR in self._axis_info:
            return self._normalize(ecodes.ABS_MT_TOUCH_MAJOR, slot.touch_major)
        return 1.0

    def _build_frame(self, timestamp: float, event_time: float) -> Frame:
        contacts = []
        for slot_id in sorted(self._slots):
            slot = self._slots[slot_id]
            if slot.tracking_id < 0:
                continue

            x = self._normalize(ecodes.ABS_MT_POSITION_X, slot.x)
            y = self._normalize(ecodes.ABS_MT_POSITION_Y, slot.y)

            if slot.last_time is not None:
                dt = event_time - slot.last_time
                if dt > 0:
                    slot.vel_x = (x - slot.last_x) / dt
                    slot.vel_y = (y - slot.last_y) / dt
            slot.last_x, slot.last_y, slot.last_time = x, y, event_time

            contacts.append(Contact(
                identifier=slot.tracking_id,
                x=x,
                y=y,
                vel_x=slot.vel_x,
                vel_y=slot.vel_y,
                size=self._contact_size(slot),
                state=TouchState.BREAK_TOUCH if slot.lifted else TouchState.TOUCHING,
                timestamp=timestamp,
            ))

            # Lifted contacts are reported once, then forgotten
            if slot.lifted:
                slot.tracking_id = -1
                slot.lifted = False

        self._sequence += 1
        return Frame(
            device=self._device_path or "",
            contacts=tuple(contacts),
            timestamp=timestamp,
            sequence=self._sequence,
        )

    def __enter__(self):
        """Context manager entry - connect (and grab if requested)."""
        self.connect()
        return self

    def __exit__(self, *args):
        """Context manager exit - ungrab and disconnect."""
        self.disconnect()
