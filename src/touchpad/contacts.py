"""
Touch contact and frame types shared by the touchpad reader and the
gesture recognizer.
"""
from dataclasses import dataclass, field
from enum import IntEnum
from typing import List, Tuple


class TouchState(IntEnum):
    """Contact lifecycle codes (MultitouchSupport numbering)."""
    NOT_TRACKING = 0
    START_IN_RANGE = 1
    HOVER_IN_RANGE = 2
    MAKE_TOUCH = 3
    TOUCHING = 4
    BREAK_TOUCH = 5
    LINGER_IN_RANGE = 6
    OUT_OF_RANGE = 7


@dataclass(frozen=True)
class Contact:
    """
    One finger on the touchpad within a single frame.

    Attributes:
        identifier: Tracking id of the finger
        x, y: Normalized position, roughly 0-1 per axis
        vel_x, vel_y: Normalized velocity (units per second)
        size: Contact size / pressure, >= 0
        state: Lifecycle state
        timestamp: Frame timestamp in seconds
    """
    identifier: int
    x: float
    y: float
    vel_x: float = 0.0
    vel_y: float = 0.0
    size: float = 0.0
    state: TouchState = TouchState.TOUCHING
    timestamp: float = 0.0

    def is_active(self, threshold: float) -> bool:
        return self.state == TouchState.TOUCHING and self.size > threshold


@dataclass(frozen=True)
class Frame:
    """All contacts sampled at the same instant."""
    device: str
    contacts: Tuple[Contact, ...] = field(default_factory=tuple)
    timestamp: float = 0.0
    sequence: int = 0

    def __len__(self) -> int:
        return len(self.contacts)

    def active_contacts(self, threshold: float) -> List[Contact]:
        """Contacts that are touching and larger than `threshold`."""
        return [c for c in self.contacts if c.is_active(threshold)]
