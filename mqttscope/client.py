"""MQTT connection that reports every message it receives or sends."""

from __future__ import annotations

import io
import logging
import threading
import uuid
from collections.abc import Callable
from typing import Union
from urllib.parse import urlsplit

import paho.mqtt.client as mqtt
from paho.mqtt.subscribeoptions import SubscribeOptions
from PIL import Image

log = logging.getLogger(__name__)

CONNECT_TIMEOUT = 5.0
DEFAULT_PORT = 1883

Payload = Union[Image.Image, str]
MessageCallback = Callable[[str, Payload, bool], None]

# scheme -> (transport, use TLS, default port)
_SCHEMES = {
    "tcp": ("tcp", False, DEFAULT_PORT),
    "mqtt": ("tcp", False, DEFAULT_PORT),
    "ssl": ("tcp", True, 8883),
    "mqtts": ("tcp", True, 8883),
    "ws": ("websockets", False, 80),
    "wss": ("websockets", True, 443),
}


def convert_payload(data: bytes) -> Payload:
    """Return the payload as an image if it decodes as one, otherwise as text.

    Text stops at the first NUL byte and undecodable bytes are replaced.
    """
    data = bytes(data)
    try:
        image = Image.open(io.BytesIO(data))
        image.load()
    except (OSError, ValueError, SyntaxError, EOFError):
        return data.split(b"\0", 1)[0].decode("utf-8", errors="replace")
    return image


def _parse_address(address: str) -> tuple[str, int, str, bool, str]:
    if "://" not in address:
        address = f"tcp://{address}"
    parts = urlsplit(address)
    scheme = parts.scheme.lower()
    if scheme not in _SCHEMES:
        raise ValueError(f"unsupported scheme in server address: {scheme!r}")
    if not parts.hostname:
        raise ValueError(f"server address has no host: {address!r}")
    transport, tls, default_port = _SCHEMES[scheme]
    return parts.hostname, parts.port or default_port, transport, tls, parts.path


class Client:
    """A single MQTT v5 session.

    Every message received from the server and every message published
    through this client is passed to ``on_message(topic, payload, local)``,
    where ``local`` tells whether this client sent it.
    """

    def __init__(self, on_message: MessageCallback) -> None:
        self._on_message = on_message
        self._mqtt: mqtt.Client | None = None

    @property
    def connected(self) -> bool:
        """Whether there is a session and the server link is up."""
        return self._mqtt is not None and self._mqtt.is_connected()

    def connect(self, address: str) -> None:
        """Connect to the server at ``address``.

        Raises RuntimeError if a session already exists and ConnectionError
        if the server cannot be reached or refuses the connection.
        """
        if self._mqtt is not None:
            raise RuntimeError("client is already connected")

        host, port, transport, tls, path = _parse_address(address)
        session = mqtt.Client(
            callback_api_version=mqtt.CallbackAPIVersion.VERSION2,
            client_id=str(uuid.uuid4()),
            protocol=mqtt.MQTTv5,
            transport=transport,
        )
        if tls:
            session.tls_set()
        if transport == "websockets" and path:
            session.ws_set_options(path=path)
        session.connect_timeout = CONNECT_TIMEOUT

        established = threading.Event()
        outcome = {}

        def on_connect(client, userdata, flags, reason_code, properties):
            outcome["reason"] = reason_code
            established.set()

        session.on_connect = on_connect
        session.on_message = self._handle_message
        session.on_disconnect = self._handle_disconnect

        try:
            session.connect(host, port, clean_start=False)
        except (OSError, ValueError) as exc:
            raise ConnectionError(f"could not connect to {address}") from exc

        session.loop_start()
        if not established.wait(CONNECT_TIMEOUT):
            session.loop_stop()
            raise ConnectionError(f"timed out connecting to {address}")
        if outcome["reason"].is_failure:
            session.loop_stop()
            raise ConnectionError(
                f"server at {address} refused the connection: {outcome['reason']}"
            )
        self._mqtt = session

    def disconnect(self) -> None:
        """End the session; does nothing if there is none."""
        if self._mqtt is None:
            return
        session, self._mqtt = self._mqtt, None
        if session.is_connected():
            session.disconnect()
        session.loop_stop()

    def subscribe(self, topic: str) -> None:
        """Subscribe with QoS 1, not receiving this client's own messages."""
        if not self.connected:
            return
        self._mqtt.subscribe(topic, options=SubscribeOptions(qos=1, noLocal=True))

    def unsubscribe(self, topic: str) -> None:
        if not self.connected:
            return
        self._mqtt.unsubscribe(topic)

    def publish(self, topic: str, data: str | bytes) -> None:
        """Publish text or raw bytes and report the message as local."""
        if isinstance(data, str):
            payload, shown = data, data
        elif isinstance(data, (bytes, bytearray, memoryview)):
            payload = bytes(data)
            shown = None
        else:
            raise TypeError(f"cannot publish {type(data).__name__}")
        if not self.connected:
            return
        self._mqtt.publish(topic, payload)
        self._on_message(topic, shown if shown is not None else convert_payload(payload), True)

    def _handle_message(self, client, userdata, message) -> None:
        if not self.connected:
            return
        self._on_message(message.topic, convert_payload(message.payload), False)

    def _handle_disconnect(self, client, userdata, flags, reason_code, properties) -> None:
        if client is self._mqtt:
            log.critical("Connection to server was lost: %s", reason_code)

    def __enter__(self) -> Client:
        return self

    def __exit__(self, *exc_info) -> None:
        self.disconnect()