"""
aerospace-swipe - Three-finger touchpad swipes for the AeroSpace window manager

Entry point for the application.
"""
import argparse
import logging
import sys
from pathlib import Path

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent / "src"))


def parse_args():
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description="aerospace-swipe - Switch AeroSpace workspaces with three-finger swipes",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )

    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="Path to config file (default: ./config.yaml, then ~/.config/aerospace-swipe/config.yaml)",
    )

    parser.add_argument(
        "--socket",
        default=None,
        help="AeroSpace server socket (default: /tmp/bobko.aerospace-<user>.sock)",
    )

    parser.add_argument(
        "--device",
        default=None,
        help="Touchpad event device (default: auto-detect)",
    )

    parser.add_argument(
        "--natural",
        action="store_true",
        help="Natural swipe direction (overrides config)",
    )

    parser.add_argument(
        "--no-wrap",
        action="store_true",
        help="Disable wrap-around at the first/last workspace (overrides config)",
    )

    parser.add_argument(
        "--haptic",
        action="store_true",
        help="Enable haptic feedback (overrides config)",
    )

    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Enable debug logging",
    )

    parser.add_argument(
        "--debug",
        action="store_true",
        help="Print detected swipes without talking to AeroSpace",
    )

    return parser.parse_args()


def setup_logging(verbose: bool = False):
    """Configure root logger for console output."""
    formatter = logging.Formatter(
        "%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%H:%M:%S",
    )
    console = logging.StreamHandler(sys.stdout)
    console.setFormatter(formatter)

    root = logging.getLogger()
    root.setLevel(logging.DEBUG if verbose else logging.INFO)
    root.addHandler(console)


def run_debug(config):
    """
    Run touchpad in debug mode - prints active fingers and detected swipes.
    Useful for tuning thresholds on a new touchpad.
    """
    from touchpad import GestureRecognizer, Touchpad

    touchpad = Touchpad(config.touchpad.device, grab=config.touchpad.grab)
    recognizer = GestureRecognizer(config.gestures)
    threshold = config.gestures.active_touch_threshold

    print("Starting touchpad debug mode...")
    print("Press Ctrl+C to quit")
    print("-" * 40)

    if not touchpad.connect():
        print("ERROR: Could not open touchpad")
        return 1

    last_active = -1
    try:
        while True:
            for frame in touchpad.update(timeout=config.touchpad.poll_timeout):
                active = len(frame.active_contacts(threshold))
                if active != last_active:
                    print(f"[{frame.sequence:6d}] active fingers: {active}")
                    last_active = active

                direction = recognizer.classify(frame)
                if direction is not None:
                    print(f"[{frame.sequence:6d}] SWIPE {direction.name}")
    except KeyboardInterrupt:
        pass
    finally:
        touchpad.disconnect()

    return 0


def run_swipe_mode(config):
    """Run the swipe daemon (touchpad worker thread + Qt event loop)."""
    import signal
    import atexit
    from PyQt5.QtCore import QCoreApplication, QThread, QTimer, Qt
    from aerospace import AerospaceClient, TransportFault
    from touchpad import GestureRecognizer, HapticActuator, SwipeDispatcher, Touchpad
    from touchpad.worker import SwipeWorker

    # Startup faults are fatal
    try:
        client = AerospaceClient(
            config.ipc.socket_path,
            buffer_size=config.ipc.buffer_size,
            max_response_size=config.ipc.max_response_size,
        )
        client.connect()
    except TransportFault as e:
        logging.error(f"Failed to initialize AeroSpace client: {e}")
        return 1

    haptic = None
    if config.swipe.haptic:
        haptic = HapticActuator()
        if not haptic.open():
            logging.error("Failed to initialize haptic actuator.")
            client.close()
            return 1

    touchpad = Touchpad(config.touchpad.device, grab=config.touchpad.grab)
    if not touchpad.connect():
        logging.error("Failed to open touchpad.")
        client.close()
        if haptic:
            haptic.close()
        return 1

    dispatcher = SwipeDispatcher(
        GestureRecognizer(config.gestures),
        client,
        config.swipe,
        haptic,
    )

    app = QCoreApplication(sys.argv)

    # Setup background worker and thread
    thread = QThread()
    worker = SwipeWorker(touchpad, dispatcher, poll_timeout=config.touchpad.poll_timeout)
    worker.moveToThread(thread)

    def cleanup():
        """Stop the worker and release the touchpad, socket and actuator."""
        print("\nCleaning up resources...")
        worker.stop_process()
        thread.quit()
        if not thread.wait(2000):
            # A hung request still holds the dispatcher; the OS reclaims
            # the socket and devices at exit
            print("Worker did not stop, skipping cleanup.")
            return
        touchpad.disconnect()
        dispatcher.close()
        print("Cleanup complete.")

    # Register cleanup for various exit scenarios
    atexit.register(cleanup)

    def signal_handler(signum, frame):
        """Handle Ctrl+C and kill signals gracefully."""
        print(f"\nReceived signal {signum}, shutting down...")
        app.quit()

    signal.signal(signal.SIGINT, signal_handler)
    signal.signal(signal.SIGTERM, signal_handler)

    # Give the interpreter a chance to run signal handlers while Qt blocks
    signal_timer = QTimer()
    signal_timer.timeout.connect(lambda: None)
    signal_timer.start(200)

    def handle_stopped():
        """The worker gave up (touchpad lost or crashed); nothing left to listen to."""
        print("Worker stopped, exiting.")
        app.exit(1)

    # Connect signals (QueuedConnection so handlers run in the main thread)
    thread.started.connect(worker.start_process)
    worker.swipe_detected.connect(
        lambda direction: logging.debug(f"Swipe handled: {direction.name}"),
        Qt.QueuedConnection,
    )
    worker.stopped.connect(handle_stopped, Qt.QueuedConnection)
    worker.error.connect(lambda msg: print(f"WORKER ERROR: {msg}"), Qt.QueuedConnection)

    # Start thread
    thread.start()
    print("Listening for three-finger swipes...")

    try:
        result = app.exec_()
    finally:
        cleanup()
        atexit.unregister(cleanup)  # Avoid double cleanup

    return result


def main():
    """Main entry point."""
    args = parse_args()
    setup_logging(args.verbose)

    # Load config
    from touchpad import load_config
    from touchpad.gesture_recognizer import SWIPE_FINGERS
    config = load_config(args.config)

    # Apply CLI overrides
    if args.socket:
        config.ipc.socket_path = args.socket
    if args.device:
        config.touchpad.device = args.device
    if args.natural:
        config.swipe.natural_swipe = True
    if args.no_wrap:
        config.swipe.wrap_around = False
    if args.haptic:
        config.swipe.haptic = True

    if config.swipe.fingers != SWIPE_FINGERS:
        logging.warning(
            f"fingers={config.swipe.fingers} is not supported, using {SWIPE_FINGERS}"
        )

    print("aerospace-swipe starting...")
    print(f"  Natural swipe: {config.swipe.natural_swipe}")
    print(f"  Wrap around: {config.swipe.wrap_around}")
    print(f"  Haptic: {config.swipe.haptic}")
    print(f"  Debug: {args.debug}")
    print()

    if args.debug:
        return run_debug(config)
    return run_swipe_mode(config)


if __name__ == "__main__":
    sys.exit(main())
