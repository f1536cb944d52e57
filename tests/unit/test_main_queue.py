"""Unit tests for MainQueue."""

import logging
import threading
from dataclasses import dataclass

import pytest

from speechapp.services.main_queue import MainQueue


@dataclass(frozen=True)
class Ping:
    value: int


@dataclass(frozen=True)
class Pong:
    value: int


@pytest.mark.unit
class TestMainQueue:

    def test_events_handled_in_post_order(self):
        main_queue = MainQueue()
        seen = []
        main_queue.register(Ping, lambda event: seen.append(event.value))

        for i in range(5):
            main_queue.post(Ping(i))
        handled = main_queue.process_pending()

        assert handled == 5
        assert seen == [0, 1, 2, 3, 4]
        assert main_queue.pending() == 0

    def test_handlers_run_on_draining_thread(self):
        main_queue = MainQueue()
        threads = []
        main_queue.register(Ping, lambda event: threads.append(threading.current_thread()))

        poster = threading.Thread(target=main_queue.post, args=(Ping(1),))
        poster.start()
        poster.join()
        main_queue.process_pending()

        assert threads == [threading.current_thread()]

    def test_events_posted_by_handlers_are_drained(self):
        main_queue = MainQueue()
        seen = []
        main_queue.register(Ping, lambda event: main_queue.post(Pong(event.value + 1)))
        main_queue.register(Pong, lambda event: seen.append(event.value))

        main_queue.post(Ping(1))
        main_queue.process_pending()

        assert seen == [2]

    def test_handler_error_does_not_stop_queue(self, caplog):
        main_queue = MainQueue()
        seen = []

        def explode(event):
            raise RuntimeError("boom")

        main_queue.register(Ping, explode)
        main_queue.register(Pong, lambda event: seen.append(event.value))

        main_queue.post(Ping(1))
        main_queue.post(Pong(2))
        with caplog.at_level(logging.ERROR):
            main_queue.process_pending()

        assert seen == [2]
        assert "boom" in caplog.text

    def test_unregistered_event_is_dropped(self, caplog):
        main_queue = MainQueue()

        main_queue.post(Ping(1))
        with caplog.at_level(logging.WARNING):
            handled = main_queue.process_pending()

        assert handled == 1
        assert "No handler registered for Ping" in caplog.text

    def test_run_until_stopped(self):
        main_queue = MainQueue()
        stop_event = threading.Event()
        seen = []

        def handle(event):
            seen.append(event.value)
            stop_event.set()

        main_queue.register(Ping, handle)
        runner = threading.Thread(target=main_queue.run, args=(stop_event, 0.01), daemon=True)
        runner.start()
        main_queue.post(Ping(7))
        runner.join(timeout=2.0)

        assert not runner.is_alive()
        assert seen == [7]
