import re
from unittest.mock import patch

import pytest

from mqttscope.utils import center_widget, load_file, read_file, save_file, write_file


class FakeWindow:
    def __init__(self, x, y, width, height):
        self.x, self.y, self.width, self.height = x, y, width, height
        self.placed = None

    def update_idletasks(self):
        pass

    def winfo_rootx(self):
        return self.x

    def winfo_rooty(self):
        return self.y

    def winfo_width(self):
        return self.width

    def winfo_height(self):
        return self.height

    def winfo_reqwidth(self):
        return self.width

    def winfo_reqheight(self):
        return self.height

    def geometry(self, spec):
        self.placed = spec


def test_write_then_read_round_trip(tmp_path):
    target = tmp_path / "payload.bin"
    write_file(target, b"\x00\x01binary\xff")
    assert read_file(target) == b"\x00\x01binary\xff"


def test_write_text_is_utf8(tmp_path):
    target = tmp_path / "payload.txt"
    write_file(target, "teplota °C")
    assert read_file(target) == "teplota °C".encode("utf-8")


def test_write_truncates_existing(tmp_path):
    target = tmp_path / "payload.txt"
    write_file(target, b"long old content")
    write_file(target, b"new")
    assert read_file(target) == b"new"


def test_read_missing_file_raises(tmp_path):
    with pytest.raises(FileNotFoundError):
        read_file(tmp_path / "missing")


def test_write_into_directory_raises(tmp_path):
    with pytest.raises(OSError):
        write_file(tmp_path, b"x")


def test_load_file_reads_chosen_file(tmp_path):
    target = tmp_path / "config.json"
    target.write_bytes(b'{"widgets": []}')
    with patch("tkinter.filedialog.askopenfilename", return_value=str(target)) as ask:
        result = load_file(None, "Select file")
    assert result == b'{"widgets": []}'
    assert ask.call_args.kwargs["title"] == "Select file"
    assert "parent" not in ask.call_args.kwargs


def test_load_file_passes_parent():
    parent = object()
    with patch("tkinter.filedialog.askopenfilename", return_value="") as ask:
        load_file(parent, "Select file")
    assert ask.call_args.kwargs["parent"] is parent


def test_load_file_cancelled_returns_none():
    with patch("tkinter.filedialog.askopenfilename", return_value=""):
        assert load_file(None, "Select file") is None


def test_save_file_writes_chosen_file(tmp_path):
    target = tmp_path / "dashboard.json"
    with patch("tkinter.filedialog.asksaveasfilename", return_value=str(target)):
        assert save_file(None, b"{}", "Save dashboard configuration") is True
    assert target.read_bytes() == b"{}"


def test_save_file_cancelled_returns_false(tmp_path):
    with patch("tkinter.filedialog.asksaveasfilename", return_value=""):
        assert save_file(None, b"{}", "Save dashboard configuration") is False
    assert list(tmp_path.iterdir()) == []


@pytest.mark.parametrize(
    "parent_box, size",
    [((100, 50, 400, 300), (200, 100)), ((0, 0, 801, 601), (33, 17)), ((10, 20, 50, 50), (50, 50))],
)
def test_center_widget_aligns_centres(parent_box, size):
    parent = FakeWindow(*parent_box)
    widget = FakeWindow(0, 0, *size)
    center_widget(widget, parent)
    match = re.fullmatch(r"\+(-?\d+)\+(-?\d+)", widget.placed)
    x, y = int(match.group(1)), int(match.group(2))
    assert abs((x + size[0] / 2) - (parent.x + parent.width / 2)) <= 1
    assert abs((y + size[1] / 2) - (parent.y + parent.height / 2)) <= 1


def test_center_widget_same_size_lands_on_parent():
    parent = FakeWindow(10, 20, 50, 50)
    widget = FakeWindow(0, 0, 50, 50)
    center_widget(widget, parent)
    assert widget.placed == "+10+20"