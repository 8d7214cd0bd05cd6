"""Main window: topic explorer, message history, simulator and dashboard."""

from __future__ import annotations

import queue

from mqttscope import utils
from mqttscope.client import Client
from mqttscope.flowlayout import FlowLayout, Rect, Size
from mqttscope.simulator import TICK_INTERVAL, ConfigurationError, Simulator
from mqttscope.topics import (
    DEFAULT_HISTORY,
    AlreadySubscribedError,
    EmptyTopicError,
    TopicError,
    TopicNode,
    TopicTree,
    WildcardTopicError,
)
from mqttscope.widgets import (
    WIDGET_TYPES,
    Dashboard,
    LcdDisplay,
    LightSwitch,
    SecurityCamera,
    Thermostat,
    Widget,
    WidgetError,
    create_widget,
)

LOCAL_COLOUR = "#ffff80"
SUBSCRIBED_COLOUR = "blue"
STATUS_SECONDS = 3
POLL_MS = 50
DEFAULT_ADDRESS = "tcp://localhost:1883"
START_SIMULATOR = "Start simulator on this server"
STOP_SIMULATOR = "Stop simulator"
SUBSCRIBE_SELECTED = "Subscribe selected topic"
UNSUBSCRIBE_SELECTED = "Unsubscribe selected topic"


def status_for_subscribe_error(error: TopicError) -> str:
    """Status bar text for a topic that could not be subscribed."""
    if isinstance(error, WildcardTopicError):
        return "Wildcard in topic is not supported"
    if isinstance(error, EmptyTopicError):
        return "You must provide topic before trying to subscribe!"
    if isinstance(error, AlreadySubscribedError):
        return "This topic is already subscribed"
    return str(error)


def message_colour(local: bool) -> str:
    """Background for a message: highlighted if this client sent it, else none."""
    return LOCAL_COLOUR if local else ""


def _ignore_message(topic, data, local) -> None:
    pass


class Explorer:
    """The application: topic tree, publishing, simulator and dashboard.

    With ``master`` the window is built inside it; without, nothing is shown
    until ``run`` creates a window of its own.
    """

    def __init__(self, history: int = DEFAULT_HISTORY, master=None) -> None:
        self.history = history
        self.tree = TopicTree(history)
        self.client = Client(self._on_client_message)
        self.simulator = Simulator(Client(_ignore_message), self.set_status)
        self.dashboard = Dashboard(self)
        self.address = ""
        self.status = ""
        self._pending: queue.SimpleQueue = queue.SimpleQueue()
        self._root = None
        self._status_job = None
        self._simulator_job = None
        self._iids: dict[TopicNode, str] = {}
        self._nodes: dict[str, TopicNode] = {}
        self._views: dict[Widget, object] = {}
        self._shown: list = []
        if master is not None:
            self._build(master)

    # Public operations

    def subscribe_topic(self, topic: str, root: TopicNode | None = None) -> TopicNode:
        """Subscribe ``topic``, relative to ``root`` if given; raises TopicError."""
        node = self.tree.subscribe(topic, root)
        self.client.subscribe(node.path)
        self._refresh_tree()
        return node

    def publish_data(self, topic: str, data: str | bytes) -> None:
        self.client.publish(topic, data)

    def set_status(self, message: str, seconds: int = STATUS_SECONDS) -> None:
        """Show a status message; it disappears after ``seconds`` unless that is 0."""
        self.status = message
        if self._root is None:
            return
        if self._status_job is not None:
            self._root.after_cancel(self._status_job)
            self._status_job = None
        self._status_var.set(message)
        if seconds > 0:
            self._status_job = self._root.after(seconds * 1000, self._clear_status)

    def remove_widget(self, widget: Widget) -> None:
        self.dashboard.remove(widget)
        self._sync_dashboard()

    def run(self) -> None:
        """Show the window and process events until it is closed."""
        if self._root is None:
            import tkinter as tk

            self._build(tk.Tk())
        try:
            self._root.mainloop()
        finally:
            self.simulator.stop()
            self.client.disconnect()

    # Incoming messages

    def _on_client_message(self, topic, data, local) -> None:
        if self._root is None:
            self._receive(topic, data, local)
        else:
            self._pending.put((topic, data, local))

    def _poll(self) -> None:
        while True:
            try:
                topic, data, local = self._pending.get_nowait()
            except queue.Empty:
                break
            self._receive(topic, data, local)
        self._root.after(POLL_MS, self._poll)

    def _receive(self, topic: str, data, local: bool) -> None:
        node = self.tree.record(topic, data, local)
        if node is None:
            return
        self._refresh_tree()
        self.dashboard.dispatch(topic, data, local)
        if self._selected() is node:
            self._reload_messages()

    def _clear_status(self) -> None:
        self._status_job = None
        self.status = ""
        self._status_var.set("")

    # Window construction

    def _build(self, master) -> None:
        import tkinter as tk
        from tkinter import ttk

        self._root = master.winfo_toplevel()
        if isinstance(master, tk.Tk):
            master.title("MQTT Explorer")
            master.geometry("1000x650")

        outer = ttk.Frame(master, padding=6)
        outer.pack(fill="both", expand=True)
        outer.columnconfigure(0, weight=1)
        outer.rowconfigure(1, weight=1)

        top = ttk.Frame(outer)
        top.grid(row=0, column=0, sticky="ew", pady=(0, 6))
        ttk.Label(top, text="Server:").pack(side="left")
        self._address_var = tk.StringVar(value=DEFAULT_ADDRESS)
        self._address_entry = ttk.Entry(top, textvariable=self._address_var)
        self._address_entry.pack(side="left", fill="x", expand=True, padx=4)
        self._connect_button = ttk.Button(top, text="Connect", command=self._on_connect)
        self._connect_button.pack(side="left")
        self._disconnect_button = ttk.Button(
            top, text="Disconnect", command=self._on_disconnect, state="disabled"
        )
        self._disconnect_button.pack(side="left", padx=(4, 0))

        self._notebook = ttk.Notebook(outer)
        self._notebook.grid(row=1, column=0, sticky="nsew")
        explorer_tab = ttk.Frame(self._notebook, padding=6)
        dashboard_tab = ttk.Frame(self._notebook, padding=6)
        self._notebook.add(explorer_tab, text="Explorer")
        self._notebook.add(dashboard_tab, text="Dashboard")
        self._build_explorer_tab(explorer_tab)
        self._build_dashboard_tab(dashboard_tab)
        self._notebook.grid_remove()

        self._status_var = tk.StringVar(value=self.status)
        ttk.Label(outer, textvariable=self._status_var, anchor="w").grid(
            row=2, column=0, sticky="ew", pady=(6, 0)
        )
        self._root.after(POLL_MS, self._poll)

    def _build_explorer_tab(self, tab) -> None:
        import tkinter as tk
        from tkinter import ttk

        panes = ttk.PanedWindow(tab, orient="horizontal")
        panes.pack(fill="both", expand=True)

        left = ttk.Frame(panes)
        self._view_tree = ttk.Treeview(left, columns=("value",), show="tree headings")
        self._view_tree.heading("#0", text="Topic")
        self._view_tree.heading("value", text="Value")
        self._view_tree.tag_configure("subscribed", foreground=SUBSCRIBED_COLOUR)
        self._view_tree.tag_configure("local", background=LOCAL_COLOUR)
        self._view_tree.bind("<<TreeviewSelect>>", lambda event: self._on_topic_selected())
        tree_scroll = ttk.Scrollbar(left, command=self._view_tree.yview)
        self._view_tree.configure(yscrollcommand=tree_scroll.set)
        tree_scroll.pack(side="right", fill="y")
        self._view_tree.pack(side="left", fill="both", expand=True)
        panes.add(left, weight=3)

        right = ttk.Frame(panes, padding=(6, 0, 0, 0))
        panes.add(right, weight=2)

        subscribe_row = ttk.Frame(right)
        subscribe_row.pack(fill="x")
        self._subscribe_var = tk.StringVar()
        ttk.Entry(subscribe_row, textvariable=self._subscribe_var).pack(
            side="left", fill="x", expand=True
        )
        ttk.Button(subscribe_row, text="Subscribe", command=self._on_subscribe).pack(
            side="left", padx=(4, 0)
        )
        self._relative_var = tk.BooleanVar(value=False)
        ttk.Checkbutton(
            right, text="Relative to selected topic", variable=self._relative_var
        ).pack(anchor="w", pady=(2, 6))

        self._toggle_button = ttk.Button(
            right, text=SUBSCRIBE_SELECTED, command=self._on_toggle_subscribe, state="disabled"
        )
        self._toggle_button.pack(fill="x")

        ttk.Label(right, text="Message to publish").pack(anchor="w", pady=(6, 0))
        self._publish_text = tk.Text(right, height=4, wrap="word")
        self._publish_text.pack(fill="x")
        publish_row = ttk.Frame(right)
        publish_row.pack(fill="x", pady=(2, 6))
        self._publish_button = ttk.Button(
            publish_row, text="Publish", command=self._on_publish, state="disabled"
        )
        self._publish_button.pack(side="left", fill="x", expand=True)
        self._publish_file_button = ttk.Button(
            publish_row, text="Publish file", command=self._on_publish_file, state="disabled"
        )
        self._publish_file_button.pack(side="left", fill="x", expand=True, padx=(4, 0))

        ttk.Button(right, text="Save state", command=self._on_save_state).pack(fill="x")
        self._simulator_button = ttk.Button(
            right, text=START_SIMULATOR, command=self._on_toggle_simulator
        )
        self._simulator_button.pack(fill="x", pady=(4, 6))

        ttk.Label(right, text="Message history").pack(anchor="w")
        self._message_list = tk.Listbox(right, activestyle="none")
        self._message_list.pack(fill="both", expand=True)
        self._message_list.bind("<Double-Button-1>", self._on_message_double_clicked)

    def _build_dashboard_tab(self, tab) -> None:
        import tkinter as tk
        from tkinter import ttk

        bar = ttk.Frame(tab)
        bar.pack(fill="x", pady=(0, 6))
        kinds = list(WIDGET_TYPES)
        self._kind_var = tk.StringVar(value=kinds[0])
        ttk.Combobox(bar, textvariable=self._kind_var, values=kinds, state="readonly").pack(
            side="left"
        )
        ttk.Button(bar, text="Add widget", command=self._on_add_widget).pack(side="left", padx=4)
        ttk.Button(bar, text="Load dashboard", command=self._on_load_dashboard).pack(side="left")
        ttk.Button(bar, text="Save dashboard", command=self._on_save_dashboard).pack(
            side="left", padx=4
        )
        self._board = tk.Frame(tab)
        self._board.pack(fill="both", expand=True)
        self._board.bind("<Configure>", lambda event: self._layout_dashboard())

    # Topic tree view

    def _refresh_tree(self) -> None:
        if self._root is None:
            return
        view = self._view_tree
        live: dict[TopicNode, str] = {}

        def visit(parent_iid: str, node: TopicNode) -> None:
            iid = self._iids.get(node)
            if iid is None or not view.exists(iid):
                iid = view.insert(parent_iid, "end", text=node.name, open=True)
            live[node] = iid
            tags = []
            if node.subscribed:
                tags.append("subscribed")
            latest = node.latest
            if latest is not None and latest.local:
                tags.append("local")
            view.item(iid, values=(node.summary(),), tags=tags)
            for child in node.children:
                visit(iid, child)

        for child in self.tree.root.children:
            visit("", child)
        for node, iid in self._iids.items():
            if node not in live and view.exists(iid):
                view.delete(iid)
        self._iids = live
        self._nodes = {iid: node for node, iid in live.items()}

    def _selected(self) -> TopicNode | None:
        if self._root is None:
            return None
        selection = self._view_tree.selection()
        return self._nodes.get(selection[0]) if selection else None

    def _on_topic_selected(self) -> None:
        self._reload_toggle_button()
        self._reload_messages()

    def _reload_toggle_button(self) -> None:
        node = self._selected()
        if node is None:
            return
        self._toggle_button.configure(
            text=UNSUBSCRIBE_SELECTED if node.subscribed else SUBSCRIBE_SELECTED,
            state="normal",
        )
        self._publish_button.configure(state="normal")
        self._publish_file_button.configure(state="normal")

    def _reload_messages(self) -> None:
        if self._root is None:
            return
        self._message_list.delete(0, "end")
        node = self._selected()
        self._shown = list(node.messages) if node is not None else []
        for index, message in enumerate(self._shown):
            self._message_list.insert("end", message.label())
            colour = message_colour(message.local)
            if colour:
                self._message_list.itemconfigure(index, background=colour)

    def _on_message_double_clicked(self, event) -> None:
        selection = self._message_list.curselection()
        if not selection:
            return
        payload = self._shown[selection[0]].payload
        if isinstance(payload, str):
            utils.open_text(payload, self._root)
        else:
            utils.open_image(payload, self._root)

    # Explorer actions

    def _on_connect(self) -> None:
        self.tree.clear()
        self._refresh_tree()
        self._reload_messages()
        self.dashboard.clear()
        self._sync_dashboard()

        self.address = self._address_var.get()
        self.set_status("Connecting to server...", 0)
        self._root.update_idletasks()
        try:
            self.client.connect(self.address)
        except (ConnectionError, ValueError, RuntimeError):
            self.set_status("Could not connect to this server")
            return

        self._connect_button.configure(state="disabled")
        self._disconnect_button.configure(state="normal")
        self._address_entry.configure(state="disabled")
        self._notebook.grid()
        self.set_status("Successfully connected to server")

    def _on_disconnect(self) -> None:
        self.client.disconnect()
        self._stop_simulator()

        self._connect_button.configure(state="normal")
        self._disconnect_button.configure(state="disabled")
        self._address_entry.configure(state="normal")
        self._notebook.grid_remove()

        self._relative_var.set(False)
        self._toggle_button.configure(state="disabled")
        self._publish_file_button.configure(state="disabled")
        self._publish_button.configure(state="disabled")
        self.set_status("Successfully disconnected from server!")

    def _on_subscribe(self) -> None:
        root = None
        if self._relative_var.get():
            root = self._selected()
            if root is None:
                self.set_status("No topic is selected")
                return
        try:
            self.subscribe_topic(self._subscribe_var.get(), root)
        except TopicError as error:
            self.set_status(status_for_subscribe_error(error))
            return
        self._subscribe_var.set("")

    def _on_toggle_subscribe(self) -> None:
        node = self._selected()
        if node is None:
            return
        if node.subscribed:
            node.subscribed = False
            self.client.unsubscribe(node.path)
            self.set_status("Topic unsubscribed", 3)
        else:
            node.subscribed = True
            self.client.subscribe(node.path)
            self.set_status("Topic subscribed", 3)
        self._refresh_tree()
        self._reload_toggle_button()

    def _on_publish(self) -> None:
        node = self._selected()
        if node is None:
            return
        self.publish_data(node.path, self._publish_text.get("1.0", "end-1c"))
        self._publish_text.delete("1.0", "end")

    def _on_publish_file(self) -> None:
        node = self._selected()
        if node is None:
            return
        try:
            data = utils.load_file(self._root, "Select file")
        except OSError:
            data = None
        if not data:
            self.set_status("Failed to read file or file is empty")
            return
        self.publish_data(node.path, data)

    def _on_save_state(self) -> None:
        from tkinter import filedialog

        path = filedialog.askdirectory(parent=self._root, title="Select Directory", mustexist=True)
        if not path:
            return
        try:
            self.tree.save_state(path)
        except OSError:
            self.set_status("Failed to write to file")

    # Simulator

    def _on_toggle_simulator(self) -> None:
        if self.simulator.running:
            self._stop_simulator()
            return
        if not self.simulator.loaded:
            try:
                data = utils.load_file(self._root, "Load simulator configuration")
            except OSError:
                data = None
            try:
                self.simulator.load(data if data is not None else b"")
            except ConfigurationError:
                return
        try:
            self.simulator.start(self.address)
        except (ConnectionError, ValueError, RuntimeError):
            return
        self._simulator_button.configure(text=STOP_SIMULATOR)
        self._schedule_simulator()

    def _schedule_simulator(self) -> None:
        self._simulator_job = self._root.after(int(TICK_INTERVAL * 1000), self._simulator_tick)

    def _simulator_tick(self) -> None:
        self._simulator_job = None
        if not self.simulator.running:
            return
        self.simulator.tick()
        self._schedule_simulator()

    def _stop_simulator(self) -> None:
        if self._simulator_job is not None:
            self._root.after_cancel(self._simulator_job)
            self._simulator_job = None
        self.simulator.stop()
        if self._root is not None:
            self._simulator_button.configure(text=START_SIMULATOR)

    # Dashboard

    def _on_add_widget(self) -> None:
        kind = self._kind_var.get()
        widget = create_widget(kind, self)
        config = self._ask_widget_settings(kind)
        if config is None:
            return
        widget.setup(config)
        try:
            self.dashboard.add(widget)
        except WidgetError:
            return
        self._sync_dashboard()

    def _on_load_dashboard(self) -> None:
        try:
            data = utils.load_file(self._root, "Select dashboard configuration")
        except OSError:
            data = None
        try:
            self.dashboard.load_json(data if data is not None else b"")
        except WidgetError:
            pass
        except ValueError:
            self.set_status("Could not parse JSON file")
        self._sync_dashboard()

    def _on_save_dashboard(self) -> None:
        try:
            saved = utils.save_file(
                self._root, self.dashboard.to_json(), "Save dashboard configuration"
            )
        except OSError:
            saved = False
        if not saved:
            self.set_status("Failed to save configuration file")

    def _ask_widget_settings(self, kind: str) -> dict | None:
        import tkinter as tk
        from tkinter import ttk

        dialog = tk.Toplevel(self._root)
        dialog.title(f"{kind} settings")
        dialog.transient(self._root)
        body = ttk.Frame(dialog, padding=8)
        body.pack(fill="both", expand=True)
        name = tk.StringVar()
        topic = tk.StringVar()
        ttk.Label(body, text="Name").grid(row=0, column=0, sticky="w")
        name_entry = ttk.Entry(body, textvariable=name, width=30)
        name_entry.grid(row=0, column=1, pady=2)
        ttk.Label(body, text="Topic").grid(row=1, column=0, sticky="w")
        ttk.Entry(body, textvariable=topic, width=30).grid(row=1, column=1, pady=2)

        result: dict = {}

        def accept() -> None:
            result.update(name=name.get(), topic=topic.get())
            dialog.destroy()

        buttons = ttk.Frame(body)
        buttons.grid(row=2, column=0, columnspan=2, sticky="e", pady=(6, 0))
        ttk.Button(buttons, text="OK", command=accept).pack(side="left")
        ttk.Button(buttons, text="Cancel", command=dialog.destroy).pack(side="left", padx=(4, 0))
        dialog.bind("<Return>", lambda event: accept())
        dialog.bind("<Escape>", lambda event: dialog.destroy())

        utils.center_widget(dialog, self._root)
        name_entry.focus_set()
        dialog.wait_visibility()
        dialog.grab_set()
        dialog.wait_window()
        return result or None

    def _make_widget_view(self, widget: Widget):
        import tkinter as tk
        from tkinter import ttk

        frame = ttk.LabelFrame(self._board, text=widget.name, padding=6)
        state = tk.StringVar()
        updated = tk.StringVar(value="Last update: never")
        ttk.Label(frame, textvariable=state).pack(anchor="w")
        ttk.Label(frame, textvariable=updated).pack(anchor="w")
        controls = ttk.Frame(frame)
        controls.pack(fill="x", pady=(4, 0))
        show_button = None

        if isinstance(widget, LightSwitch):
            ttk.Button(controls, text="Toggle", command=widget.toggle).pack(side="left")

            def describe() -> str:
                return f"Status: {widget.status or 'unknown'}"

        elif isinstance(widget, LcdDisplay):
            text = tk.StringVar()
            ttk.Entry(controls, textvariable=text, width=16).pack(side="left")
            ttk.Button(
                controls, text="Update", command=lambda: widget.update_text(text.get())
            ).pack(side="left", padx=(4, 0))

            def describe() -> str:
                return widget.screen_text or ""

        elif isinstance(widget, SecurityCamera):
            show_button = ttk.Button(
                controls,
                text="Show image",
                state="disabled",
                command=lambda: utils.open_image(widget.image, self._root),
            )
            show_button.pack(side="left")

            def describe() -> str:
                return f"Status: {widget.status or 'No image yet'}"

        elif isinstance(widget, Thermostat):
            ttk.Button(controls, text="-", width=3, command=widget.decrease).pack(side="left")
            ttk.Button(controls, text="+", width=3, command=widget.increase).pack(
                side="left", padx=(4, 0)
            )

            def describe() -> str:
                return widget.display or ""

        else:

            def describe() -> str:
                return ""

        ttk.Button(controls, text="Remove", command=lambda: self.remove_widget(widget)).pack(
            side="right"
        )

        def refresh(_widget=None) -> None:
            state.set(describe())
            if widget.last_updated:
                updated.set(f"Last update: {widget.last_updated}")
            if show_button is not None:
                show_button.configure(state="normal" if widget.image is not None else "disabled")

        widget.on_change = refresh
        refresh()
        return frame

    def _sync_dashboard(self) -> None:
        if self._root is None:
            return
        current = set(self.dashboard)
        for widget in list(self._views):
            if widget not in current:
                self._views.pop(widget).destroy()
                widget.on_change = None
        for widget in self.dashboard:
            if widget not in self._views:
                self._views[widget] = self._make_widget_view(widget)
        self._board.update_idletasks()
        self._layout_dashboard()

    def _layout_dashboard(self) -> None:
        frames = [self._views[widget] for widget in self.dashboard if widget in self._views]
        layout = FlowLayout()
        for frame in frames:
            layout.add_item(Size(frame.winfo_reqwidth(), frame.winfo_reqheight()))
        area = Rect(0, 0, max(self._board.winfo_width(), 1), max(self._board.winfo_height(), 1))
        for frame, rect in zip(frames, layout.arrange(area)):
            frame.place(x=rect.x, y=rect.y, width=rect.width, height=rect.height)