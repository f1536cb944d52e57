"""Terminal listening screen: microphone icon, transcript label and listen button."""

import threading
import logging
from typing import Callable, Optional

from pubsub import pub
from rich.align import Align
from rich.console import Console, Group
from rich.live import Live
from rich.panel import Panel
from rich.text import Text

from ..models.events import ToggleRequested
from ..models.ui import Icon, ViewState
from ..services.main_queue import MainQueue
from .keyboard_input import create_input_handler
from .view import VIEW_TOPIC

logger = logging.getLogger(__name__)

ICON_GLYPHS = {
    Icon.IDLE: ("🎙️", "bold white"),
    Icon.ACTIVE: ("🔴", "bold red"),
}
TAP_KEYS = (" ", "\r", "\n")
QUIT_KEY = "q"


class ListeningScreen:
    """Renders the published view state and turns keypresses into taps."""

    def __init__(self,
                 main_queue: MainQueue,
                 level_source: Optional[Callable[[], float]] = None,
                 console: Optional[Console] = None,
                 topic: str = VIEW_TOPIC):
        """Initialize listening screen.

        Args:
            main_queue: Queue that receives ToggleRequested events
            level_source: Returns the current input level (0.0 - 1.0) for the meter
            console: Rich console to draw on
            topic: Pub/sub topic carrying ViewState updates
        """
        self.main_queue = main_queue
        self.level_source = level_source
        self.console = console or Console()
        self.topic = topic
        self.view_state = ViewState()
        self.stop_event = threading.Event()
        pub.subscribe(self._on_view_changed, topic)

    def _on_view_changed(self, view: ViewState) -> None:
        self.view_state = view

    def on_key(self, key: str) -> bool:
        """Handle one keypress. Returns False once the user quits."""
        if key == QUIT_KEY:
            logger.info("Quit requested")
            self.stop_event.set()
            return False
        if key in TAP_KEYS:
            self.main_queue.post(ToggleRequested())
        return True

    def render(self, view: ViewState) -> Panel:
        glyph, style = ICON_GLYPHS[view.icon]
        icon = Text(f"{glyph}  {view.icon.value}", style=style)
        label = Text(view.label_text, style="white" if view.listening else "dim white")

        if view.button_enabled:
            action = "stop" if view.listening else "listen"
            button = Text.assemble(("[ SPACE ]", "bold green"), f" {action}   ",
                                   ("[ q ]", "bold red"), " quit")
        else:
            button = Text.assemble(("[ SPACE ]", "dim"), " unavailable   ",
                                   ("[ q ]", "bold red"), " quit")

        rows = [Align.center(icon), Text(""), Align.center(label)]
        if view.listening and self.level_source is not None:
            level = max(0.0, min(1.0, self.level_source()))
            rows.append(Align.center(Text(f"{'█' * int(level * 20):<20} {level:.2f}", style="green")))
        rows.extend([Text(""), Align.center(button)])

        return Panel(Group(*rows), title="SpeechApp", border_style="bright_blue")

    def __rich__(self) -> Panel:
        return self.render(self.view_state)

    def run(self) -> None:
        """Draw the screen and drive the main queue until the user quits."""
        input_handler = create_input_handler(self.on_key)
        with Live(self, console=self.console, refresh_per_second=10, screen=False):
            input_handler.start()
            try:
                self.main_queue.run(self.stop_event)
            finally:
                input_handler.stop()

    def close(self) -> None:
        self.stop_event.set()
        if pub.isSubscribed(self._on_view_changed, self.topic):
            pub.unsubscribe(self._on_view_changed, self.topic)
