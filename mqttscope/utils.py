"""File helpers and small modal preview dialogs."""

from __future__ import annotations

from pathlib import Path

FILE_TYPES = [("All files", "*")]


def read_file(file_name) -> bytes:
    """Return the whole contents of a file."""
    return Path(file_name).read_bytes()


def write_file(file_name, data: bytes | str) -> None:
    """Replace the contents of a file; text is written as UTF-8."""
    if isinstance(data, str):
        data = data.encode("utf-8")
    Path(file_name).write_bytes(bytes(data))


def _dialog_options(parent, caption: str) -> dict:
    options = {"title": caption, "filetypes": FILE_TYPES}
    if parent is not None:
        options["parent"] = parent
    return options


def load_file(parent, caption: str) -> bytes | None:
    """Ask the user for a file and return its contents, or None if cancelled."""
    from tkinter import filedialog

    file_name = filedialog.askopenfilename(**_dialog_options(parent, caption))
    if not file_name:
        return None
    return read_file(file_name)


def save_file(parent, data: bytes | str, caption: str) -> bool:
    """Ask the user where to save ``data``; return False if cancelled."""
    from tkinter import filedialog

    file_name = filedialog.asksaveasfilename(**_dialog_options(parent, caption))
    if not file_name:
        return False
    write_file(file_name, data)
    return True


def _run_modal(dialog, parent) -> None:
    if parent is not None:
        dialog.transient(parent)
        center_widget(dialog, parent)
    dialog.wait_visibility()
    dialog.grab_set()
    dialog.wait_window()


def open_image(image, parent) -> None:
    """Show a PIL image in a modal window, scaled to the window size."""
    import tkinter as tk

    from PIL import ImageTk

    dialog = tk.Toplevel(parent)
    dialog.title("Image preview")
    dialog.geometry(f"{image.width}x{image.height}")
    dialog.pack_propagate(False)
    label = tk.Label(dialog, borderwidth=0, highlightthickness=0)
    label.pack(fill="both", expand=True)

    def fit(event):
        if event.widget is not dialog or event.width < 1 or event.height < 1:
            return
        photo = ImageTk.PhotoImage(image.resize((event.width, event.height)))
        label.configure(image=photo)
        label.image = photo

    dialog.bind("<Configure>", fit)
    _run_modal(dialog, parent)


def open_text(text: str, parent) -> None:
    """Show text in a modal read-only window."""
    import tkinter as tk

    dialog = tk.Toplevel(parent)
    dialog.title("Message preview")
    scrollbar = tk.Scrollbar(dialog)
    scrollbar.pack(side="right", fill="y")
    view = tk.Text(dialog, wrap="word", yscrollcommand=scrollbar.set)
    view.insert("1.0", text)
    view.configure(state="disabled")
    view.pack(side="left", fill="both", expand=True)
    scrollbar.configure(command=view.yview)
    _run_modal(dialog, parent)


def center_widget(widget, parent) -> None:
    """Move a top-level widget so its centre lies on the parent's centre."""
    widget.update_idletasks()
    parent_x, parent_y = parent.winfo_rootx(), parent.winfo_rooty()
    parent_width, parent_height = parent.winfo_width(), parent.winfo_height()
    width, height = widget.winfo_reqwidth(), widget.winfo_reqheight()
    x = parent_x + (parent_width - 1) // 2 - (width - 1) // 2
    y = parent_y + (parent_height - 1) // 2 - (height - 1) // 2
    widget.geometry(f"+{x}+{y}")