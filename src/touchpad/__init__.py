"""
aerospace-swipe Touchpad Module

Multitouch frame reading and three-finger swipe recognition.
The Qt worker lives in touchpad.worker and is imported on its own.
"""
from .config import Config, load_config
from .contacts import Contact, Frame, TouchState
from .gesture_recognizer import Direction, GestureRecognizer, GestureState
from .multitouch import Touchpad, find_touchpad
from .haptic import HapticActuator, find_haptic_device
from .dispatcher import SwipeDispatcher

__all__ = [
    'Config',
    'load_config',
    'Contact',
    'Frame',
    'TouchState',
    'Direction',
    'GestureRecognizer',
    'GestureState',
    'Touchpad',
    'find_touchpad',
    'HapticActuator',
    'find_haptic_device',
    'SwipeDispatcher',
]
