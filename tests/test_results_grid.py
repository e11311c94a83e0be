import itertools

import pytest
from rich.cells import cell_len

from core.models import Direction, QueryResult
from core.results_grid import COLUMN_GAP, ResultsGrid, display_value


def _result(n_rows: int, n_cols: int, cell: str = "v") -> QueryResult:
    columns = [f"c{i}" for i in range(n_cols)]
    rows = [tuple(f"{cell}{r}" for _ in range(n_cols)) for r in range(n_rows)]
    return QueryResult(columns=columns, rows=rows)


def _grid(n_rows: int, n_cols: int, rows: int = 3, width: int = 80) -> ResultsGrid:
    grid = ResultsGrid()
    grid.set_viewport(rows, width)
    grid.load(_result(n_rows, n_cols))
    return grid


def test_load_resets_viewport():
    grid = _grid(10, 2)
    grid.scroll(Direction.DOWN, page=True)
    assert grid.row_offset == 3
    grid.load(_result(10, 2))
    assert (grid.row_offset, grid.col_offset) == (0, 0)


def test_page_down_clamps_to_last_page():
    grid = _grid(5, 3, rows=3)
    assert (grid.row_offset, grid.col_offset) == (0, 0)
    grid.scroll(Direction.DOWN, page=True)
    assert grid.row_offset == 2
    grid.scroll(Direction.DOWN, page=True)
    assert grid.row_offset == 2


def test_single_steps_and_home():
    grid = _grid(10, 2, rows=4)
    grid.scroll(Direction.DOWN)
    grid.scroll(Direction.DOWN)
    assert grid.row_offset == 2
    grid.scroll(Direction.UP)
    assert grid.row_offset == 1
    grid.home()
    assert (grid.row_offset, grid.col_offset) == (0, 0)
    grid.scroll(Direction.UP)
    assert grid.row_offset == 0


def test_end_goes_to_last_row_and_column_pages():
    grid = _grid(20, 10, rows=5, width=20)
    grid.end()
    assert grid.row_offset == 15
    assert grid.col_offset == grid.max_col_offset
    assert grid.visible_columns()[-1] == 9


def test_offsets_stay_clamped_for_any_sizes():
    for n_rows, viewport, steps in itertools.product([0, 1, 4, 25], [1, 3, 10], [1, 7]):
        grid = _grid(n_rows, 2, rows=viewport)
        for _ in range(steps):
            grid.scroll(Direction.DOWN, page=True)
        assert 0 <= grid.row_offset <= max(0, n_rows - viewport)
        for _ in range(steps):
            grid.scroll(Direction.UP)
        assert 0 <= grid.row_offset <= max(0, n_rows - viewport)
        grid.home()
        assert (grid.row_offset, grid.col_offset) == (0, 0)


def test_shrinking_viewport_reclamps():
    grid = _grid(10, 2, rows=2)
    grid.end()
    assert grid.row_offset == 8
    grid.set_viewport(8, 80)
    assert grid.row_offset == 2


def test_column_widths_follow_longest_value_and_cap():
    result = QueryResult(
        columns=["id", "description"],
        rows=[("1", "short"), ("22", "x" * 50)],
    )
    grid = ResultsGrid(max_column_width=30)
    grid.load(result)
    assert grid.column_widths == (2, 30)
    assert grid.cell_text("x" * 50, 1) == "x" * 27 + "..."
    assert grid.cell_text("short", 1) == "short"


def test_line_breaks_and_tabs_render_on_one_line():
    note = "line one\nline two\r\nthree\tend"
    grid = ResultsGrid()
    grid.load(QueryResult(columns=["id", "note"], rows=[("1", note)]))
    assert grid.cell_text(note, 1) == "line one↵line two↵three end"
    assert grid.column_widths == (2, 27)


def test_control_characters_are_replaced():
    assert display_value("a\x00b\x1bc") == "a?b?c"


def test_wide_characters_count_two_cells():
    wide = "漢字漢字漢字"
    grid = ResultsGrid(max_column_width=10)
    grid.load(QueryResult(columns=["name"], rows=[(wide,)]))
    assert grid.column_widths == (10,)
    cut = grid.cell_text(wide, 0)
    assert cut.startswith("漢字漢")
    assert cut.endswith("...")
    assert cell_len(cut) == 10


def test_padded_cell_fills_the_column_in_cells():
    grid = ResultsGrid()
    grid.load(QueryResult(columns=["k"], rows=[("漢",), ("xyz",)]))
    assert grid.column_widths == (3,)
    assert grid.padded_cell("漢", 0) == "漢 "
    assert grid.padded_cell("xyz", 0) == "xyz"


def test_visible_columns_fit_the_width():
    # Every column is 2 wide and takes 2 + COLUMN_GAP characters
    grid = _grid(1, 10, width=(2 + COLUMN_GAP) * 3)
    assert grid.visible_columns() == [0, 1, 2]
    grid.scroll(Direction.RIGHT)
    assert grid.visible_columns() == [1, 2, 3]


def test_visible_columns_always_include_one_column():
    grid = ResultsGrid(max_column_width=30)
    grid.set_viewport(3, 5)
    grid.load(QueryResult(columns=["wide_column_name"], rows=[("x",)]))
    assert grid.visible_columns() == [0]


def test_column_page_moves_by_visible_count_and_clamps():
    grid = _grid(1, 10, width=(2 + COLUMN_GAP) * 3)
    grid.scroll(Direction.RIGHT, page=True)
    assert grid.col_offset == 3
    grid.scroll(Direction.RIGHT, page=True)
    grid.scroll(Direction.RIGHT, page=True)
    assert grid.col_offset == grid.max_col_offset == 7
    grid.scroll(Direction.LEFT, page=True)
    assert grid.col_offset == 4


def test_visible_rows_follow_row_offset():
    grid = _grid(6, 1, rows=2)
    grid.scroll(Direction.DOWN)
    assert grid.visible_rows() == [("v1",), ("v2",)]


def test_empty_grid_is_safe():
    grid = ResultsGrid()
    grid.scroll(Direction.DOWN, page=True)
    grid.scroll(Direction.RIGHT, page=True)
    grid.end()
    assert (grid.row_offset, grid.col_offset) == (0, 0)
    assert grid.visible_rows() == []
    assert grid.visible_columns() == []


def test_scroll_rejects_non_scroll_direction():
    grid = _grid(3, 1)
    with pytest.raises(ValueError):
        grid.scroll(Direction.LINE_END)
