"""Dashboard widgets that watch a topic and publish control messages to it."""

from __future__ import annotations

import json
import re
from collections.abc import Callable
from datetime import datetime
from typing import ClassVar

from PIL import Image

from mqttscope.topics import (
    TIME_FORMAT,
    AlreadySubscribedError,
    EmptyTopicError,
    WildcardTopicError,
)

_INT_PATTERN = re.compile(r"\s*([+-]?\d+)\s*")
_INT_MIN, _INT_MAX = -(2**31), 2**31 - 1


class WidgetError(ValueError):
    """A widget cannot be placed on the dashboard."""


def _now() -> str:
    return datetime.now().strftime(TIME_FORMAT)


def _as_str(value) -> str:
    return value if isinstance(value, str) else ""


def _parse_int(text: str) -> int | None:
    match = _INT_PATTERN.fullmatch(text)
    if match is None:
        return None
    number = int(match.group(1))
    if not _INT_MIN <= number <= _INT_MAX:
        return None
    return number


class Widget:
    """Base of all dashboard widgets.

    ``explorer`` provides subscribe_topic, publish_data and set_status.
    ``on_change`` is called with the widget whenever its shown state changes.
    """

    kind: ClassVar[str] = ""

    def __init__(self, explorer) -> None:
        self.explorer = explorer
        self.name = ""
        self.topic = ""
        self.last_updated: str | None = None
        self.on_change: Callable[[Widget], None] | None = None

    def setup(self, config: dict) -> None:
        """Take the name and topic from a configuration object."""
        config = config if isinstance(config, dict) else {}
        self.name = _as_str(config.get("name"))
        self.topic = _as_str(config.get("topic"))

    def _fail(self, message: str) -> None:
        self.explorer.set_status(message)
        raise WidgetError(message)

    def activate(self) -> None:
        """Subscribe the widget's topic; raise WidgetError if it cannot be used."""
        try:
            self.explorer.subscribe_topic(self.topic)
        except WildcardTopicError:
            self._fail("Wildcard is not supported")
        except EmptyTopicError:
            self._fail("Invalid topic format")
        except AlreadySubscribedError:
            pass
        if not self.name:
            self._fail("Widget name can not be empty")

    def extract_config(self) -> dict:
        """Configuration from which the widget can be recreated."""
        return {"widget": self.kind, "name": self.name, "topic": self.topic}

    def message_received(self, topic: str, data, local: bool) -> None:
        """Handle a message seen on any topic."""
        raise NotImplementedError

    def _changed(self) -> None:
        self.last_updated = _now()
        if self.on_change is not None:
            self.on_change(self)


class LightSwitch(Widget):
    """Switch that accepts only "on" and "off" messages."""

    kind = "LightSwitch"

    def __init__(self, explorer) -> None:
        super().__init__(explorer)
        self.state = False
        self.status: str | None = None

    def toggle(self) -> None:
        """Ask the switch to change to the opposite state."""
        self.explorer.publish_data(self.topic, "off" if self.state else "on")

    def message_received(self, topic: str, data, local: bool) -> None:
        if topic != self.topic or not isinstance(data, str):
            return
        if data not in ("on", "off"):
            return
        self.status = data
        self.state = data == "on"
        self._changed()


class LcdDisplay(Widget):
    """One-line display showing every text message on its topic."""

    kind = "LcdDisplay"

    def __init__(self, explorer) -> None:
        super().__init__(explorer)
        self.screen_text: str | None = None

    def update_text(self, text: str) -> None:
        """Send new text to the display."""
        self.explorer.publish_data(self.topic, text)

    def message_received(self, topic: str, data, local: bool) -> None:
        if topic != self.topic or not isinstance(data, str):
            return
        self.screen_text = data
        self._changed()


class SecurityCamera(Widget):
    """Camera view keeping the last image received on its topic."""

    kind = "SecurityCamera"

    def __init__(self, explorer) -> None:
        super().__init__(explorer)
        self.image: Image.Image | None = None
        self.status: str | None = None

    def message_received(self, topic: str, data, local: bool) -> None:
        if topic != self.topic or not isinstance(data, Image.Image):
            return
        self.image = data
        self.status = "Working"
        self._changed()


class Thermostat(Widget):
    """Thermostat showing the last whole-number temperature on its topic."""

    kind = "Thermostat"

    def __init__(self, explorer) -> None:
        super().__init__(explorer)
        self.temperature = 25
        self.display: str | None = None

    def increase(self) -> None:
        self.temperature += 1
        self.explorer.publish_data(self.topic, str(self.temperature))

    def decrease(self) -> None:
        self.temperature -= 1
        self.explorer.publish_data(self.topic, str(self.temperature))

    def message_received(self, topic: str, data, local: bool) -> None:
        if topic != self.topic or not isinstance(data, str):
            return
        number = _parse_int(data)
        if number is None:
            return
        self.temperature = number
        self.display = data + " °C"
        self._changed()


WIDGET_TYPES: dict[str, type[Widget]] = {
    cls.kind: cls
    for cls in sorted((LcdDisplay, LightSwitch, SecurityCamera, Thermostat), key=lambda c: c.kind)
}


def create_widget(kind: str, explorer) -> Widget:
    """Create an unconfigured widget of a registered kind."""
    try:
        cls = WIDGET_TYPES[kind]
    except KeyError:
        raise WidgetError(f"unknown widget type {kind!r}") from None
    return cls(explorer)


class Dashboard:
    """The widgets placed on the dashboard, in the order they were added."""

    def __init__(self, explorer) -> None:
        self.explorer = explorer
        self.widgets: list[Widget] = []

    def __len__(self) -> int:
        return len(self.widgets)

    def __iter__(self):
        return iter(self.widgets)

    def add(self, widget: Widget) -> Widget:
        """Activate a configured widget and place it; WidgetError if it fails."""
        widget.activate()
        self.widgets.append(widget)
        return widget

    def remove(self, widget: Widget) -> None:
        if widget in self.widgets:
            self.widgets.remove(widget)

    def clear(self) -> None:
        self.widgets.clear()

    def to_json(self) -> str:
        """Dashboard configuration as a JSON document."""
        config = {"widgets": [widget.extract_config() for widget in self.widgets]}
        return json.dumps(config, indent=4, ensure_ascii=False) + "\n"

    def load_json(self, data) -> None:
        """Replace the widgets with those described by a JSON document.

        Unknown widget types are skipped. Raises ValueError if the document
        cannot be parsed and WidgetError at the first widget that fails,
        keeping the widgets loaded before it.
        """
        try:
            document = json.loads(data)
        except (TypeError, ValueError) as exc:
            raise ValueError("could not parse JSON file") from exc
        if not isinstance(document, (dict, list)):
            raise ValueError("could not parse JSON file")

        self.clear()
        entries = document.get("widgets") if isinstance(document, dict) else None
        for entry in entries if isinstance(entries, list) else []:
            entry = entry if isinstance(entry, dict) else {}
            kind = _as_str(entry.get("widget"))
            if kind not in WIDGET_TYPES:
                continue
            widget = create_widget(kind, self.explorer)
            widget.setup(entry)
            self.add(widget)

    def dispatch(self, topic: str, data, local: bool) -> None:
        """Pass a message to every widget."""
        for widget in list(self.widgets):
            widget.message_received(topic, data, local)