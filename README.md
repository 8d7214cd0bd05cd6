# mqttscope

A desktop explorer for MQTT servers. Connect to a server, build up a tree of
topics, watch the messages that arrive on them, publish text or files, send
simulated traffic, and put a few device widgets on a dashboard.

## Installing

    pip install .

The window is built with Tkinter, which ships with most Python builds.
MQTT is spoken through `paho-mqtt` (version 2 or later) and payloads are
recognised as images with Pillow.

## Running

    mqttscope
    mqttscope --history 20
    mqttscope --version
    mqttscope --help

`-h` / `--history` sets how many messages are kept for each topic (default
10). It must be a whole number of at least 1; anything else stops the program
with "History option must contain numeric value >= 1". Note that `-h` is the
history option; help is only available as `--help`.

## Using the window

**Connecting.** Enter a server address (default `tcp://localhost:1883`) and
press *Connect*. An address without a scheme is treated as `tcp://`. Accepted
schemes are `tcp` and `mqtt` (port 1883), `ssl` and `mqtts` (TLS, port 8883),
`ws` (websockets, port 80) and `wss` (websockets over TLS, port 443); a port in
the address overrides the default, and for websockets the path is used too.
The session uses MQTT 5 with a random client id and a 5 second timeout.
Connecting clears the topic tree and the dashboard.

**Topic tree.** Type a topic such as `home/kitchen/light` and press
*Subscribe*. The topic is split on `/` into a tree; empty levels are dropped.
Subscribed topics are shown in blue. With *Relative to selected topic* ticked,
the new topic is created under the selected node. A topic containing `#` is
refused, as is an empty topic and one that is already subscribed. The selected
topic can be toggled between subscribed and unsubscribed. Subscriptions use
QoS 1 and do not echo this client's own messages back.

**Messages.** Each topic keeps its most recent messages, newest first, up to
the history limit; the tree shows the latest one beside the topic. Payloads
that decode as an image are kept as images and shown as `(Image)` /
`[Image]`; everything else is text (up to the first NUL byte, invalid UTF-8
replaced). Messages you published yourself are highlighted in yellow.
Double-click a message in the history to open it in a preview window.

**Publishing.** Publish the text typed into the editor, or the contents of a
chosen file, to the selected topic. An empty file is not published.

**Save state.** Choose a directory and the tree is written into it as
directories, one per topic. The latest message of each topic is saved as
`payload.txt` (text, UTF-8) or `payload.jpg` (image).

**Simulator.** Publishes random messages to configured topics over a second
connection to the same server. The first time it is started you pick a JSON
configuration; it is kept for later starts.

```json
{
  "topics": [
    {
      "name": "home/kitchen/temperature",
      "period": 5,
      "messages": [
        {"type": "string", "content": "21"},
        {"type": "string", "content": "22"}
      ]
    },
    {
      "name": "home/door/camera",
      "period": 10,
      "messages": [
        {"type": "file", "content": "snapshot.jpg"}
      ]
    }
  ]
}
```

Every topic needs a non-empty `name` and a whole-number `period` of at least
one second. A message `type` is either `string` (the content is sent as it is)
or `file` (the content names a file whose bytes are sent; the file is read
when the configuration is loaded). Once a second, every topic whose period has
passed gets one message from its list, chosen at random; topics without
messages are skipped.

**Dashboard.** Pick a widget kind, give it a name and a topic, and add it:

| Widget           | Shows                                  | Sends                           |
|------------------|----------------------------------------|---------------------------------|
| `LcdDisplay`     | the last text message                  | the text you enter              |
| `LightSwitch`    | `on` / `off` (other text is ignored)   | `on` / `off` when toggled       |
| `SecurityCamera` | the last image, opened on request      | nothing                         |
| `Thermostat`     | the last whole number, as `N °C`       | temperature ± 1 (starts at 25)  |

Adding a widget subscribes its topic (a topic that is already subscribed is
fine). A widget needs a name, and its topic must not be empty or contain `#`.
Widgets are laid out left to right, wrapping onto new rows. The dashboard can
be saved to and loaded from JSON:

```json
{
    "widgets": [
        {"widget": "LightSwitch", "name": "Kitchen light", "topic": "home/kitchen/light"},
        {"widget": "Thermostat", "name": "Living room", "topic": "home/living/thermostat"}
    ]
}
```

Loading replaces the current widgets. Entries with an unknown `widget` kind are
skipped; loading stops at the first widget that cannot be placed, keeping those
before it.

## Using the pieces from Python

The parts below the window can be used on their own.

```python
from mqttscope.topics import TopicTree

tree = TopicTree(history=5)
node = tree.subscribe("home/kitchen/light")
tree.record("home/kitchen/light", "on", local=False)
print(node.path, node.summary())          # home/kitchen/light on
print([n.path for n in tree.walk()])      # ['home', 'home/kitchen', 'home/kitchen/light']
```

- `mqttscope.client`: `Client(on_message)` wraps one MQTT session and calls
  `on_message(topic, payload, local)` for every message received or
  published. `connect(address)` raises `ConnectionError` if the server cannot
  be reached or refuses, `ValueError` for a bad address and `RuntimeError` if
  already connected; `subscribe`, `unsubscribe` and `publish(topic, data)`
  (text or bytes) do nothing while not connected. It is also a context manager
  that disconnects on exit. `convert_payload(data)` turns raw bytes into a
  Pillow image or text.
- `mqttscope.topics`: `TopicTree` with `subscribe(topic, root=None)`,
  `record`, `find`, `walk`, `clear` and `save_state(directory)`; `TopicNode`,
  `Message`, `split_topic`, and the errors `WildcardTopicError`,
  `EmptyTopicError` and `AlreadySubscribedError` (all `TopicError`).
- `mqttscope.simulator`: `parse_configuration(data)` (raises
  `ConfigurationError`), `SimulatorTopic`, and `Simulator(client, status)`
  with `load`, `start(address)`, `stop` and `tick(now=None)`, which returns the
  `(topic, message)` pairs it published.
- `mqttscope.widgets`: `LcdDisplay`, `LightSwitch`, `SecurityCamera`,
  `Thermostat`, `create_widget(kind, explorer)` and `Dashboard` with `add`,
  `remove`, `clear`, `to_json`, `load_json` and `dispatch`. The `explorer`
  object needs `subscribe_topic`, `publish_data` and `set_status`.
- `mqttscope.flowlayout`: `FlowLayout`, `Size` and `Rect`; `arrange(rect)`
  returns each item's place in a wrapping left-to-right layout.
- `mqttscope.utils`: `read_file`, `write_file`, and Tkinter helpers for file
  dialogs and preview windows.
- `mqttscope.explorer`: `Explorer(history, master=None)`, the window itself;
  `run()` shows it and runs until it is closed.

## What it does not do

- There is no way to log in: no user name, password or client certificate
  settings. TLS uses the system's default certificate checks.
- Only `#` is refused in topics; other MQTT wildcards are not handled
  specially.
- Messages are published with QoS 0 and without the retain flag; neither can
  be chosen.
- If the server drops the connection, this is only logged; the window does not
  reconnect or change its state by itself.
- Message history lives in memory only; nothing is kept between runs except
  what *Save state* and *Save dashboard* write out.

## Running the tests

    pip install ".[test]"
    pytest