"""Tests for pneuma.tui.components -- Label and Table widget state."""

from __future__ import annotations

from pneuma.tui.components import Label, Table

HEADINGS = ["#", "Title"]


def rows(n: int) -> list[list[str]]:
    return [[str(i + 1), f"post {i + 1}"] for i in range(n)]


# ---------------------------------------------------------------------------
# Label
# ---------------------------------------------------------------------------


class TestLabel:
    def test_render(self):
        label = Label(2, 0, "Posts from the blog:")
        assert label.position == (2, 0)
        assert label.height == 1
        assert label.render(80) == ["Posts from the blog:"]

    def test_render_truncates(self):
        assert Label(0, 0, "abcdef").render(3) == ["abc"]

    def test_render_sanitizes(self):
        assert Label(0, 0, "a\nb").render(10) == ["a b"]

    def test_starts_dirty(self):
        label = Label(0, 0, "x")
        assert label.dirty
        label.dirty = False
        label.invalidate()
        assert label.dirty


# ---------------------------------------------------------------------------
# Table navigation
# ---------------------------------------------------------------------------


class TestTableNavigation:
    def test_initial_cursor(self):
        table = Table(0, 0, HEADINGS, rows(3))
        assert table.index == 0
        assert table.selected_row == ["1", "post 1"]

    def test_next_clamps_at_last_row(self):
        table = Table(0, 0, HEADINGS, rows(3))
        for _ in range(10):
            table.next_item()
        assert table.index == 2

    def test_previous_clamps_at_first_row(self):
        table = Table(0, 0, HEADINGS, rows(3))
        table.next_item()
        for _ in range(10):
            table.previous_item()
        assert table.index == 0

    def test_empty_table_is_noop(self):
        table = Table(0, 0, HEADINGS, [])
        table.dirty = False
        table.next_item()
        table.previous_item()
        assert table.index == 0
        assert table.selected_row is None
        assert not table.dirty

    def test_navigation_marks_dirty(self):
        table = Table(0, 0, HEADINGS, rows(2))
        table.dirty = False
        table.next_item()
        assert table.dirty

    def test_clamped_move_does_not_mark_dirty(self):
        table = Table(0, 0, HEADINGS, rows(2))
        table.dirty = False
        table.previous_item()
        assert not table.dirty

    def test_three_rows_scenario(self):
        table = Table(0, 0, HEADINGS, rows(3))
        table.next_item()
        table.next_item()
        assert table.index == 2
        table.next_item()
        assert table.index == 2
        table.set_content(HEADINGS, rows(1))
        assert table.index == 0


# ---------------------------------------------------------------------------
# Table content replacement
# ---------------------------------------------------------------------------


class TestTableSetContent:
    def test_cursor_preserved_when_valid(self):
        table = Table(0, 0, HEADINGS, rows(5))
        table.next_item()
        table.next_item()
        table.set_content(HEADINGS, rows(4))
        assert table.index == 2

    def test_cursor_clamped_to_last_row(self):
        table = Table(0, 0, HEADINGS, rows(5))
        for _ in range(4):
            table.next_item()
        table.set_content(HEADINGS, rows(2))
        assert table.index == 1

    def test_cursor_in_range_for_any_size(self):
        for before in range(0, 6):
            for cursor in range(0, max(1, before)):
                for after in range(0, 6):
                    table = Table(0, 0, HEADINGS, rows(before))
                    for _ in range(cursor):
                        table.next_item()
                    table.set_content(HEADINGS, rows(after))
                    assert 0 <= table.index <= max(0, after - 1)

    def test_empty_content(self):
        table = Table(0, 0, HEADINGS, rows(3))
        table.next_item()
        table.set_content(HEADINGS, [])
        assert table.index == 0
        assert len(table) == 0
        assert table.height == 1

    def test_marks_dirty(self):
        table = Table(0, 0, HEADINGS, rows(1))
        table.dirty = False
        table.set_content(HEADINGS, rows(1))
        assert table.dirty

    def test_mismatched_rows_accepted(self, caplog):
        table = Table(0, 0, HEADINGS, [["1"], ["2", "b", "extra"]])
        assert len(table) == 2
        assert "do not have 2 cells" in caplog.text
        assert table.render(80) == ["#  Title", "1       ", "2  b    "]

    def test_returns_copies(self):
        table = Table(0, 0, HEADINGS, rows(1))
        table.rows[0][1] = "changed"
        table.headings.append("x")
        assert table.rows == [["1", "post 1"]]
        assert table.headings == HEADINGS


# ---------------------------------------------------------------------------
# Table rendering
# ---------------------------------------------------------------------------


class TestTableRender:
    def test_columns_padded_to_widest_cell(self):
        table = Table(0, 0, ["#", "Date", "Title"], [
            ["1", "2024/01/02", "Hello"],
            ["10", "2023/12/31", "A longer title"],
        ])
        assert table.render(80) == [
            "#   Date        Title         ",
            "1   2024/01/02  Hello         ",
            "10  2023/12/31  A longer title",
        ]

    def test_render_truncates_to_width(self):
        table = Table(0, 0, HEADINGS, rows(1))
        assert table.render(4) == ["#  T", "1  p"]

    def test_selected_line(self):
        table = Table(0, 0, HEADINGS, rows(3))
        assert table.selected_line() == 1
        table.next_item()
        assert table.selected_line() == 2
        assert Table(0, 0, HEADINGS, []).selected_line() is None

    def test_height(self):
        assert Table(0, 0, HEADINGS, rows(3)).height == 4


class TestTableViewport:
    def test_every_row_without_viewport(self):
        table = Table(0, 0, HEADINGS, rows(10))
        assert table.max_visible is None
        assert len(table.render(80)) == 11

    def test_window_at_top(self):
        table = Table(0, 0, HEADINGS, rows(10))
        table.set_viewport(4)
        assert table.max_visible == 3
        assert table.height == 4
        lines = table.render(80)
        assert [line.split()[0] for line in lines] == ["#", "1", "2", "3"]

    def test_window_centred_on_cursor(self):
        table = Table(0, 0, HEADINGS, rows(10))
        table.set_viewport(4)
        for _ in range(6):
            table.next_item()
        lines = table.render(80)
        assert [line.split()[0] for line in lines[1:]] == ["6", "7", "8"]
        assert lines[table.selected_line()].split() == ["7", "post", "7"]

    def test_window_stops_at_last_row(self):
        table = Table(0, 0, HEADINGS, rows(10))
        table.set_viewport(4)
        for _ in range(9):
            table.next_item()
        assert table.selected_line() == 3
        assert table.render(80)[-1].split() == ["10", "post", "10"]

    def test_short_table_not_windowed(self):
        table = Table(0, 0, HEADINGS, rows(3))
        table.set_viewport(10)
        assert table.height == 4
        assert table.selected_line() == 1

    def test_at_least_one_row_visible(self):
        table = Table(0, 0, HEADINGS, rows(3))
        table.set_viewport(0)
        assert table.height == 2

    def test_change_marks_dirty(self):
        table = Table(0, 0, HEADINGS, rows(3))
        table.set_viewport(3)
        table.dirty = False
        table.set_viewport(3)
        assert not table.dirty
        table.set_viewport(5)
        assert table.dirty
