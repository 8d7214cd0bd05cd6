"""Flow layout: places items left to right, wrapping onto new rows."""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass

DEFAULT_MARGIN = 9
DEFAULT_SPACING = 6


@dataclass(frozen=True)
class Size:
    width: int
    height: int

    def expanded_to(self, other: Size) -> Size:
        return Size(max(self.width, other.width), max(self.height, other.height))

    def __add__(self, other: Size) -> Size:
        return Size(self.width + other.width, self.height + other.height)


@dataclass(frozen=True)
class Rect:
    """Rectangle whose ``right`` and ``bottom`` are the last pixel inside it."""

    x: int
    y: int
    width: int
    height: int

    @property
    def right(self) -> int:
        return self.x + self.width - 1

    @property
    def bottom(self) -> int:
        return self.y + self.height - 1

    @property
    def size(self) -> Size:
        return Size(self.width, self.height)

    def adjusted(self, dx1: int, dy1: int, dx2: int, dy2: int) -> Rect:
        return Rect(
            self.x + dx1,
            self.y + dy1,
            self.width - dx1 + dx2,
            self.height - dy1 + dy2,
        )


class FlowLayout:
    """Arranges item sizes in rows; negative settings select the defaults."""

    def __init__(self, margin: int = -1, h_spacing: int = -1, v_spacing: int = -1) -> None:
        self.margin = margin if margin >= 0 else DEFAULT_MARGIN
        self._h_space = h_spacing
        self._v_space = v_spacing
        self._items: list[Size] = []

    @property
    def horizontal_spacing(self) -> int:
        return self._h_space if self._h_space >= 0 else DEFAULT_SPACING

    @property
    def vertical_spacing(self) -> int:
        return self._v_space if self._v_space >= 0 else DEFAULT_SPACING

    def add_item(self, size) -> None:
        self._items.append(size if isinstance(size, Size) else Size(*size))

    def take_at(self, index: int) -> Size:
        """Remove and return the item at ``index``."""
        if not 0 <= index < len(self._items):
            raise IndexError(f"no layout item at index {index}")
        return self._items.pop(index)

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self) -> Iterator[Size]:
        return iter(self._items)

    def __getitem__(self, index: int) -> Size:
        return self._items[index]

    def arrange(self, rect: Rect) -> list[Rect]:
        """Return the geometry of every item when laid out inside ``rect``."""
        geometries, _ = self._do_layout(rect)
        return geometries

    def height_for_width(self, width: int) -> int:
        _, height = self._do_layout(Rect(0, 0, width, 0))
        return height

    def minimum_size(self) -> Size:
        size = Size(0, 0)
        for item in self._items:
            size = size.expanded_to(item)
        return size + Size(2 * self.margin, 2 * self.margin)

    size_hint = minimum_size

    def _do_layout(self, rect: Rect) -> tuple[list[Rect], int]:
        m = self.margin
        effective = rect.adjusted(m, m, -m, -m)
        x, y = effective.x, effective.y
        line_height = 0
        space_x, space_y = self.horizontal_spacing, self.vertical_spacing
        geometries = []
        for item in self._items:
            next_x = x + item.width + space_x
            if next_x - space_x > effective.right and line_height > 0:
                x = effective.x
                y += line_height + space_y
                next_x = x + item.width + space_x
                line_height = 0
            geometries.append(Rect(x, y, item.width, item.height))
            x = next_x
            line_height = max(line_height, item.height)
        return geometries, y + line_height - rect.y + m