"""Serial event queue standing in for the UI thread."""

import queue
import logging
import threading
from typing import Any, Callable, Dict, Optional, Type

logger = logging.getLogger(__name__)


class MainQueue:
    """Events may be posted from any thread; handlers only ever run on the draining thread."""

    def __init__(self):
        self._events: "queue.Queue[Any]" = queue.Queue()
        self._handlers: Dict[Type, Callable[[Any], None]] = {}

    def register(self, event_type: Type, handler: Callable[[Any], None]) -> None:
        self._handlers[event_type] = handler

    def post(self, event: Any) -> None:
        self._events.put(event)

    def pending(self) -> int:
        return self._events.qsize()

    def process_pending(self) -> int:
        """Handle every event queued so far, including ones posted by the handlers themselves.

        Returns:
            Number of events handled
        """
        handled = 0
        while True:
            try:
                event = self._events.get_nowait()
            except queue.Empty:
                return handled
            self._dispatch(event)
            handled += 1

    def run(self, stop_event: threading.Event, poll_interval: float = 0.05) -> None:
        """Drain the queue until ``stop_event`` is set."""
        logger.info("Main queue running")
        while not stop_event.is_set():
            try:
                event = self._events.get(timeout=poll_interval)
            except queue.Empty:
                continue
            self._dispatch(event)
        logger.info("Main queue stopped")

    def _dispatch(self, event: Any) -> None:
        handler: Optional[Callable[[Any], None]] = self._handlers.get(type(event))
        if handler is None:
            logger.warning(f"No handler registered for {type(event).__name__}")
            return
        try:
            handler(event)
        except Exception as e:
            logger.error(f"Error handling {type(event).__name__}: {e}", exc_info=True)
