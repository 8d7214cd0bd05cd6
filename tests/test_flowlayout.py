import pytest

from mqttscope.flowlayout import DEFAULT_MARGIN, DEFAULT_SPACING, FlowLayout, Rect, Size

SIZES = [Size(40, 20), Size(30, 35), Size(50, 10), Size(20, 25)]


def make_layout(margin=0, spacing=0, sizes=SIZES):
    layout = FlowLayout(margin, spacing, spacing)
    for size in sizes:
        layout.add_item(size)
    return layout


def test_rect_right_is_last_pixel():
    assert Rect(3, 4, 10, 5).right == 12


def test_negative_settings_use_defaults():
    layout = FlowLayout()
    assert layout.margin == DEFAULT_MARGIN
    assert layout.horizontal_spacing == DEFAULT_SPACING
    assert layout.vertical_spacing == DEFAULT_SPACING


def test_empty_layout_height_is_margins():
    margin = 7
    assert FlowLayout(margin, 0, 0).height_for_width(100) == 2 * margin


def test_add_accepts_tuples():
    layout = FlowLayout(0, 0, 0)
    layout.add_item((5, 6))
    assert list(layout) == [Size(5, 6)]


def test_take_at_removes_item():
    layout = make_layout()
    taken = layout.take_at(1)
    assert taken == SIZES[1]
    assert list(layout) == [SIZES[0], SIZES[2], SIZES[3]]
    assert len(layout) == len(SIZES) - 1


@pytest.mark.parametrize("index", [-1, len(SIZES)])
def test_take_at_out_of_range(index):
    with pytest.raises(IndexError):
        make_layout().take_at(index)


def test_wide_rect_keeps_one_row():
    spacing = 5
    rects = make_layout(spacing=spacing).arrange(Rect(0, 0, 10_000, 500))
    assert {r.y for r in rects} == {0}
    for left, right in zip(rects, rects[1:]):
        assert right.x == left.x + left.width + spacing


def test_narrow_rect_gives_one_row_per_item():
    margin = 3
    rects = make_layout(margin=margin, spacing=2).arrange(Rect(0, 0, 1, 1))
    assert all(r.x == margin for r in rects)
    ys = [r.y for r in rects]
    assert ys == sorted(ys) and len(set(ys)) == len(rects)


def test_oversized_first_item_stays_on_first_row():
    layout = make_layout(sizes=[Size(500, 10)])
    assert layout.arrange(Rect(0, 0, 100, 100)) == [Rect(0, 0, 500, 10)]


def test_item_reaching_right_edge_wraps():
    layout = make_layout(sizes=[Size(10, 10)] * 3)
    rects = layout.arrange(Rect(0, 0, 30, 30))
    assert rects[1].y == 0
    assert rects[2] == Rect(0, 10, 10, 10)


def test_items_never_overlap():
    rects = make_layout(spacing=1).arrange(Rect(0, 0, 90, 0))
    for i, a in enumerate(rects):
        for b in rects[i + 1:]:
            disjoint = a.right < b.x or b.right < a.x or a.bottom < b.y or b.bottom < a.y
            assert disjoint


@pytest.mark.parametrize("width", [1, 60, 90, 150, 1000])
def test_height_matches_arranged_bottom(width):
    margin = 4
    layout = make_layout(margin=margin, spacing=3)
    rects = layout.arrange(Rect(0, 0, width, 0))
    assert layout.height_for_width(width) == max(r.y + r.height for r in rects) + margin


def test_arrange_is_translated_with_rect():
    layout = make_layout(margin=2, spacing=3)
    base = layout.arrange(Rect(0, 0, 100, 100))
    moved = layout.arrange(Rect(10, 20, 100, 100))
    assert [(r.x + 10, r.y + 20, r.size) for r in base] == [(r.x, r.y, r.size) for r in moved]


def test_minimum_size_is_largest_item_plus_margins():
    margin = 5
    layout = make_layout(margin=margin)
    expected = Size(
        max(s.width for s in SIZES) + 2 * margin,
        max(s.height for s in SIZES) + 2 * margin,
    )
    assert layout.minimum_size() == expected