"""Keyboard input handling for the terminal UI."""

import sys
import threading
import time
from typing import Callable, Optional
import logging

logger = logging.getLogger(__name__)

# Takes a key and returns True to keep reading, False to stop.
KeyCallback = Callable[[str], bool]


class KeyboardInputHandler:
    """Reads single keypresses from a raw terminal on a background thread."""

    def __init__(self, callback: KeyCallback):
        self.callback = callback
        self.running = False
        self.thread: Optional[threading.Thread] = None

    def start(self) -> None:
        if self.running:
            return

        self.running = True
        self.thread = threading.Thread(target=self._input_loop, daemon=True)
        self.thread.name = "KeyboardInputThread"
        self.thread.start()
        logger.info("Keyboard input handler started")

    def stop(self) -> None:
        self.running = False
        if self.thread and self.thread is not threading.current_thread():
            self.thread.join(timeout=1.0)
        logger.info("Keyboard input handler stopped")

    def _input_loop(self) -> None:
        while self.running:
            key = self._get_key()
            if key:
                logger.debug(f"Key detected: {key!r}")
                if not self.callback(key):
                    break
            time.sleep(0.05)
        self.running = False
        logger.info("Keyboard input loop ended")

    def _get_key(self) -> Optional[str]:
        if sys.platform == "win32":
            return self._get_key_windows()
        return self._get_key_unix()

    def _get_key_windows(self) -> Optional[str]:
        import msvcrt
        if msvcrt.kbhit():
            return msvcrt.getch().decode('utf-8', errors='ignore').lower()
        return None

    def _get_key_unix(self) -> Optional[str]:
        import select
        import termios
        import tty

        if not select.select([sys.stdin], [], [], 0.1)[0]:
            return None
        old_settings = termios.tcgetattr(sys.stdin)
        try:
            tty.setraw(sys.stdin.fileno())
            return sys.stdin.read(1).lower()
        finally:
            termios.tcsetattr(sys.stdin, termios.TCSADRAIN, old_settings)


class SimpleInputHandler:
    """Line based fallback for terminals that cannot be put into raw mode."""

    def __init__(self, callback: KeyCallback):
        self.callback = callback
        self.running = False
        self.thread: Optional[threading.Thread] = None

    def start(self) -> None:
        if self.running:
            return

        self.running = True
        self.thread = threading.Thread(target=self._input_loop, daemon=True)
        self.thread.name = "SimpleInputThread"
        self.thread.start()
        logger.info("Simple input handler started")

    def stop(self) -> None:
        # input() cannot be interrupted, so the daemon thread is not joined.
        self.running = False
        logger.info("Simple input handler stopped")

    def _input_loop(self) -> None:
        while self.running:
            try:
                user_input = input().strip().lower()
            except (EOFError, KeyboardInterrupt):
                self.callback("q")
                break
            key = user_input[0] if user_input else " "
            if not self.callback(key):
                break
        self.running = False


def create_input_handler(callback: KeyCallback, stream=None):
    """Create the best available input handler for the current terminal.

    Args:
        callback: Function that takes a key and returns True to continue, False to quit
        stream: Input stream to inspect (defaults to sys.stdin)

    Returns:
        An input handler instance
    """
    stream = stream if stream is not None else sys.stdin
    if sys.platform != "win32":
        import termios
        try:
            termios.tcgetattr(stream)
        except (termios.error, OSError, ValueError, AttributeError) as e:
            logger.warning(f"Raw keyboard input not available: {e}")
            return SimpleInputHandler(callback)
    return KeyboardInputHandler(callback)
