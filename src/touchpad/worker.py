"""
Background worker for touchpad reading and swipe dispatch.
Runs in a separate QThread so the main thread can block in the event loop.
"""
from PyQt5.QtCore import QObject, pyqtSignal

from .dispatcher import SwipeDispatcher
from .multitouch import Touchpad


class SwipeWorker(QObject):
    """
    Worker class that pulls frames from the touchpad and hands them to the
    dispatcher. Emits signals for logging/UI in the main thread.
    """
    # Signals
    swipe_detected = pyqtSignal(object)  # Emits Direction
    stopped = pyqtSignal()  # Loop ended without stop_process()
    error = pyqtSignal(str)

    def __init__(self, touchpad: Touchpad, dispatcher: SwipeDispatcher,
                 poll_timeout: float = 0.1, parent=None):
        super().__init__(parent)
        self._touchpad = touchpad
        self._dispatcher = dispatcher
        self._poll_timeout = poll_timeout
        self._is_running = False

    @property
    def is_running(self) -> bool:
        return self._is_running

    def start_process(self):
        """Main processing loop. Runs in worker thread."""
        self._is_running = True

        try:
            if not self._touchpad.connected and not self._touchpad.connect():
                self.error.emit("No touchpad found or permission denied")
                return

            while self._is_running:
                try:
                    frames = self._touchpad.update(timeout=self._poll_timeout)
                except OSError as e:
                    # Device unplugged or read failed
                    self.error.emit(f"Touchpad read error: {e}")
                    break

                for frame in frames:
                    direction = self._dispatcher.on_frame(frame)
                    if direction is not None:
                        self.swipe_detected.emit(direction)

        except Exception as e:
            self.error.emit(f"Worker Exception: {str(e)}")
        finally:
            if self._is_running:
                self.stopped.emit()
            self._is_running = False

    def stop_process(self):
        """Signal the loop to stop. The touchpad is released by its owner."""
        self._is_running = False
