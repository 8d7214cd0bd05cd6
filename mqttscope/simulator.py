"""Traffic simulator that publishes random messages to configured topics."""

from __future__ import annotations

import json
import random
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Union

from mqttscope.utils import read_file

TICK_INTERVAL = 1.0
PARSE_FAILED = "Failed to parse configuration file"

SimulatorMessage = Union[str, bytes]


class ConfigurationError(ValueError):
    """The simulator configuration cannot be used."""


@dataclass
class SimulatorTopic:
    """A topic the simulator publishes to every ``period`` seconds."""

    name: str
    period: int
    messages: list[SimulatorMessage] = field(default_factory=list)
    last_send_time: datetime = field(default_factory=datetime.now)


def _as_str(value) -> str:
    return value if isinstance(value, str) else ""


def _as_int(value) -> int:
    if isinstance(value, bool):
        return 0
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    return 0


def _as_object(value) -> dict:
    return value if isinstance(value, dict) else {}


def _as_list(value) -> list:
    return value if isinstance(value, list) else []


def parse_configuration(data) -> list[SimulatorTopic]:
    """Parse the JSON configuration into topics.

    Messages of type "string" are used as they are; those of type "file"
    are replaced by the contents of the named file.
    """
    try:
        document = json.loads(data)
    except (TypeError, ValueError) as exc:
        raise ConfigurationError("configuration is not valid JSON") from exc
    if not isinstance(document, (dict, list)):
        raise ConfigurationError("configuration must be a JSON object")

    topics = []
    for item in _as_list(_as_object(document).get("topics")):
        item = _as_object(item)
        name = _as_str(item.get("name"))
        period = _as_int(item.get("period"))
        if not name or period < 1:
            raise ConfigurationError("every topic needs a name and a period of at least 1")

        topic = SimulatorTopic(name, period)
        for message in _as_list(item.get("messages")):
            message = _as_object(message)
            kind = _as_str(message.get("type"))
            content = _as_str(message.get("content"))
            if kind == "string":
                topic.messages.append(content)
            elif kind == "file":
                try:
                    topic.messages.append(read_file(content))
                except OSError as exc:
                    raise ConfigurationError(f"cannot read message file {content!r}") from exc
            else:
                raise ConfigurationError(f"unsupported message type {kind!r}")
        topics.append(topic)
    return topics


class Simulator:
    """Publishes a random message from each topic's list once per period.

    ``client`` provides connect, disconnect and publish; ``status`` receives
    messages for the user. ``tick`` is to be called every TICK_INTERVAL seconds.
    """

    def __init__(self, client, status: Callable[[str], None] | None = None) -> None:
        self.client = client
        self._status = status or (lambda message: None)
        self._random = random.Random()
        self.topics: list[SimulatorTopic] = []
        self.running = False
        self.loaded = False

    def load(self, data) -> None:
        """Replace the topics with those parsed from ``data``."""
        try:
            topics = parse_configuration(data)
        except ConfigurationError:
            self._status(PARSE_FAILED)
            raise
        self.topics = topics
        self.loaded = True

    def start(self, address: str) -> None:
        """Connect to the server and begin publishing.

        Raises RuntimeError if already running or no configuration is loaded,
        and passes on the client's error if it cannot connect.
        """
        if self.running:
            raise RuntimeError("simulator is already running")
        if not self.loaded:
            raise RuntimeError("no simulator configuration is loaded")
        try:
            self.client.connect(address)
        except (ConnectionError, ValueError, RuntimeError):
            self._status("Simulator failed to connect to the server")
            raise
        self.running = True
        self._status("Simulator started!")

    def stop(self) -> None:
        if not self.running:
            return
        self.running = False
        self.client.disconnect()
        self._status("Simulator stopped!")

    def tick(self, now: datetime | None = None) -> list[tuple[str, SimulatorMessage]]:
        """Publish to every topic whose period has passed; return what was sent."""
        if not self.running:
            return []
        now = now or datetime.now()
        sent = []
        for topic in self.topics:
            if topic.last_send_time + timedelta(seconds=topic.period) > now:
                continue
            if not topic.messages:
                continue
            message = self._random.choice(topic.messages)
            self.client.publish(topic.name, message)
            topic.last_send_time = now
            sent.append((topic.name, message))
        return sent