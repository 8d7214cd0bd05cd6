"""Tree of subscribed topics and the history of messages each one received."""

from __future__ import annotations

from collections import deque
from collections.abc import Iterator
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Union

from PIL import Image

DEFAULT_HISTORY = 10
TIME_FORMAT = "%H:%M:%S"

Payload = Union[Image.Image, str]


def _simplified(text: str) -> str:
    """Trim the text and collapse every run of whitespace to one space."""
    return " ".join(text.split())


class TopicError(ValueError):
    """A topic cannot be subscribed."""


class WildcardTopicError(TopicError):
    """The topic contains a wildcard, which is not supported."""


class EmptyTopicError(TopicError):
    """The topic has no non-empty level."""


class AlreadySubscribedError(TopicError):
    """The topic is subscribed already."""

    def __init__(self, node: TopicNode) -> None:
        super().__init__(f"topic {node.path!r} is already subscribed")
        self.node = node


@dataclass
class Message:
    """One message seen on a topic."""

    payload: Payload
    local: bool
    time: datetime = field(default_factory=datetime.now)

    def label(self) -> str:
        """Line shown in the message history."""
        prefix = self.time.strftime(TIME_FORMAT) + ": "
        if isinstance(self.payload, str):
            return prefix + _simplified(self.payload)
        return prefix + "[Image]"


@dataclass(eq=False)
class TopicNode:
    """A level in the topic tree; ``path`` is the full topic name."""

    name: str
    path: str
    history: int = DEFAULT_HISTORY
    subscribed: bool = False
    children: list[TopicNode] = field(default_factory=list)
    messages: deque = field(init=False, repr=False)

    def __post_init__(self) -> None:
        # Newest message first; the oldest falls off at the history limit.
        self.messages = deque(maxlen=self.history)

    @property
    def latest(self) -> Message | None:
        return self.messages[0] if self.messages else None

    def child(self, name: str) -> TopicNode | None:
        return next((c for c in self.children if c.name == name), None)

    def summary(self) -> str:
        """Short text describing the latest message, empty if there is none."""
        latest = self.latest
        if latest is None:
            return ""
        if isinstance(latest.payload, str):
            return _simplified(latest.payload)
        return "(Image)"


def split_topic(topic: str) -> list[str]:
    """Split a topic into its levels, dropping empty ones."""
    return [part for part in topic.split("/") if part]


class TopicTree:
    """All topics the user has subscribed to, arranged by level."""

    def __init__(self, history: int = DEFAULT_HISTORY) -> None:
        if history < 1:
            raise ValueError("history must be at least 1")
        self.history = history
        self.root = TopicNode("", "", history)

    def subscribe(self, topic: str, root: TopicNode | None = None) -> TopicNode:
        """Create the nodes for ``topic`` (under ``root`` if given) and mark it subscribed.

        Raises WildcardTopicError, EmptyTopicError or AlreadySubscribedError.
        """
        if "#" in topic:
            raise WildcardTopicError(f"wildcard in topic {topic!r} is not supported")
        parts = split_topic(topic)
        if not parts:
            raise EmptyTopicError("topic is empty")

        current = self.root if root is None else root
        for depth, part in enumerate(parts, start=1):
            child = current.child(part)
            if child is None:
                prefix = "/".join(parts[:depth])
                path = prefix if root is None else f"{root.path}/{prefix}"
                child = TopicNode(_simplified(part), path, self.history)
                current.children.append(child)
            current = child

        if current.subscribed:
            raise AlreadySubscribedError(current)
        current.subscribed = True
        return current

    def walk(self) -> Iterator[TopicNode]:
        """Yield every node in depth-first order, parents before children."""
        stack = list(reversed(self.root.children))
        while stack:
            node = stack.pop()
            yield node
            stack.extend(reversed(node.children))

    def find(self, path: str) -> TopicNode | None:
        return next((node for node in self.walk() if node.path == path), None)

    def record(self, topic: str, payload: Payload, local: bool) -> TopicNode | None:
        """Store a message on its topic; return the node, or None if it is not kept."""
        node = self.find(topic)
        if node is None or not isinstance(payload, (str, Image.Image)):
            return None
        node.messages.appendleft(Message(payload, local))
        return node

    def clear(self) -> None:
        self.root.children.clear()

    def save_state(self, directory) -> None:
        """Mirror the tree as directories, writing each topic's latest payload."""
        base = Path(directory)
        for node in self.walk():
            target = base / node.path
            target.mkdir(parents=True, exist_ok=True)
            latest = node.latest
            if latest is None:
                continue
            if isinstance(latest.payload, str):
                (target / "payload.txt").write_bytes(latest.payload.encode("utf-8"))
            else:
                image = latest.payload
                if image.mode not in ("RGB", "L", "CMYK"):
                    image = image.convert("RGB")
                image.save(target / "payload.jpg", "JPEG")