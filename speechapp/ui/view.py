"""View model for the listening screen, published over pub/sub."""

import logging
from dataclasses import replace

from pubsub import pub

from ..models.ui import Icon, ViewState

logger = logging.getLogger(__name__)

VIEW_TOPIC = "ui.view"


class ListeningView:
    """Label, microphone icon and button of the listening screen.

    Every change is published on ``topic`` with the full ViewState so that
    renderers never read the view from another thread.
    """

    def __init__(self, topic: str = VIEW_TOPIC):
        self.topic = topic
        self.state = ViewState()

    @property
    def label_text(self) -> str:
        return self.state.label_text

    @label_text.setter
    def label_text(self, text: str) -> None:
        self._update(label_text=text)

    @property
    def icon(self) -> Icon:
        return self.state.icon

    @icon.setter
    def icon(self, icon: Icon) -> None:
        self._update(icon=icon)

    @property
    def button_enabled(self) -> bool:
        return self.state.button_enabled

    @button_enabled.setter
    def button_enabled(self, enabled: bool) -> None:
        self._update(button_enabled=enabled)

    @property
    def listening(self) -> bool:
        return self.state.listening

    @listening.setter
    def listening(self, listening: bool) -> None:
        self._update(listening=listening)

    def _update(self, **changes) -> None:
        self.state = replace(self.state, **changes)
        pub.sendMessage(self.topic, view=self.state)
