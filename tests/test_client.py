import io
from types import SimpleNamespace

import paho.mqtt.client as mqtt
import pytest
from PIL import Image

from mqttscope.client import DEFAULT_PORT, Client, convert_payload


class FakeMqtt:
    instances = []
    reason = SimpleNamespace(is_failure=False)

    def __init__(self, *args, **kwargs):
        self.kwargs = kwargs
        self.link = False
        self.connect_args = None
        self.published = []
        self.subscriptions = []
        self.unsubscribed = []
        self.loop_running = False
        self.disconnect_calls = 0
        self.on_connect = None
        self.on_message = None
        self.on_disconnect = None
        FakeMqtt.instances.append(self)

    def tls_set(self):
        self.tls = True

    def ws_set_options(self, path):
        self.ws_path = path

    def connect(self, host, port, **kwargs):
        self.connect_args = (host, port, kwargs)

    def loop_start(self):
        self.loop_running = True
        self.link = not self.reason.is_failure
        self.on_connect(self, None, None, self.reason, None)

    def loop_stop(self):
        self.loop_running = False

    def is_connected(self):
        return self.link

    def disconnect(self):
        self.disconnect_calls += 1
        self.link = False

    def subscribe(self, topic, options=None):
        self.subscriptions.append((topic, options))

    def unsubscribe(self, topic):
        self.unsubscribed.append(topic)

    def publish(self, topic, payload=None, qos=0, retain=False, properties=None):
        self.published.append((topic, payload))


class RefusingMqtt(FakeMqtt):
    def connect(self, host, port, **kwargs):
        raise ConnectionRefusedError("refused")


class RejectingMqtt(FakeMqtt):
    reason = SimpleNamespace(is_failure=True)


ADDRESS = "tcp://broker.example.com:1884"


@pytest.fixture
def fake(monkeypatch):
    FakeMqtt.instances = []
    monkeypatch.setattr(mqtt, "Client", FakeMqtt)
    return FakeMqtt


@pytest.fixture
def received():
    return []


@pytest.fixture
def client(fake, received):
    c = Client(lambda topic, data, local: received.append((topic, data, local)))
    c.connect(ADDRESS)
    return c


def png_bytes(size=(4, 3)):
    buffer = io.BytesIO()
    Image.new("RGB", size, "red").save(buffer, "PNG")
    return buffer.getvalue()


def test_convert_payload_text():
    assert convert_payload(b"hello") == "hello"


def test_convert_payload_stops_at_nul():
    assert convert_payload(b"abc\x00def") == "abc"


def test_convert_payload_empty_is_empty_text():
    assert convert_payload(b"") == ""


def test_convert_payload_image():
    result = convert_payload(png_bytes((4, 3)))
    assert isinstance(result, Image.Image)
    assert result.size == (4, 3)


def test_connect_uses_address_and_options(client, fake):
    session = fake.instances[-1]
    host, port, kwargs = session.connect_args
    assert (host, port) == ("broker.example.com", 1884)
    assert kwargs["clean_start"] is False
    assert session.kwargs["protocol"] == mqtt.MQTTv5
    assert client.connected


def test_connect_without_scheme_uses_default_port(fake, received):
    c = Client(lambda *a: received.append(a))
    c.connect("localhost")
    assert c.connected is True
    assert fake.instances[-1].connect_args[:2] == ("localhost", DEFAULT_PORT)


def test_connect_twice_raises(client):
    with pytest.raises(RuntimeError):
        client.connect(ADDRESS)


def test_connect_unknown_scheme_raises(fake):
    with pytest.raises(ValueError):
        Client(lambda *a: None).connect("gopher://broker.example.com")


def test_connect_refused_raises(monkeypatch, received):
    monkeypatch.setattr(mqtt, "Client", RefusingMqtt)
    c = Client(lambda *a: received.append(a))
    with pytest.raises(ConnectionError):
        c.connect("tcp://localhost:1883")
    assert c.connected is False


def test_connect_rejected_by_server_raises(monkeypatch):
    monkeypatch.setattr(mqtt, "Client", RejectingMqtt)
    RejectingMqtt.instances = []
    c = Client(lambda *a: None)
    with pytest.raises(ConnectionError):
        c.connect("tcp://localhost:1883")
    assert RejectingMqtt.instances[-1].loop_running is False


def test_publish_text_reports_local(fake, received):
    c = Client(lambda topic, data, local: received.append((topic, data, local)))
    c.connect(ADDRESS)
    c.publish("home/light", "on")
    assert c.connected is True
    assert received == [("home/light", "on", True)]
    assert fake.instances[-1].published == [("home/light", "on")]


def test_publish_image_bytes_reports_image(fake, received):
    c = Client(lambda topic, data, local: received.append((topic, data, local)))
    c.connect(ADDRESS)
    c.publish("cam", png_bytes((2, 5)))
    assert c.connected is True
    assert len(received) == 1
    topic, data, local = received[0]
    assert (topic, local) == ("cam", True)
    assert data.size == (2, 5)


def test_publish_rejects_other_types(client):
    with pytest.raises(TypeError):
        client.publish("t", 12)


def test_publish_without_connection_does_nothing(received):
    c = Client(lambda *a: received.append(a))
    c.publish("t", "x")
    assert received == []


def test_incoming_message_reported_as_remote(fake, received):
    c = Client(lambda topic, data, local: received.append((topic, data, local)))
    c.connect(ADDRESS)
    session = fake.instances[-1]
    session.on_message(session, None, SimpleNamespace(topic="a/b", payload=b"42"))
    assert c.connected is True
    assert received == [("a/b", "42", False)]


def test_subscribe_uses_qos_one_without_local(fake, received):
    c = Client(lambda *a: received.append(a))
    c.connect(ADDRESS)
    c.subscribe("a/b")
    assert c.connected is True
    subscriptions = fake.instances[-1].subscriptions
    assert len(subscriptions) == 1
    topic, options = subscriptions[0]
    assert topic == "a/b"
    assert options.QoS == 1
    assert options.noLocal is True


def test_unsubscribe(fake, received):
    c = Client(lambda *a: received.append(a))
    c.connect(ADDRESS)
    c.unsubscribe("a/b")
    assert c.connected is True
    assert fake.instances[-1].unsubscribed == ["a/b"]


def test_disconnect_ends_session(client, fake):
    session = fake.instances[-1]
    client.disconnect()
    assert session.disconnect_calls == 1
    assert session.loop_running is False
    client.subscribe("a/b")
    assert session.subscriptions == []
    assert client.connected is False