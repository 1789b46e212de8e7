import pytest

from maffdoku_core import puzzle_from_solution
from maffdoku_session import (
    click_cell,
    commit_value,
    key_from_tk,
    new_session,
    press_key,
    reset_session,
    session_for_puzzle,
)


def type_keys(state, *keys):
    error = None
    for key in keys:
        result = press_key(state, key)
        state, error = result.state, result.error
    return state, error


def test_new_session_is_idle():
    state = new_session(3)
    assert state.mode == "idle"
    assert state.grid == [[0, 0, 0]] * 3
    # touches ignorées sans sélection
    assert press_key(state, "5").state is state


def test_click_selects_cell():
    state = click_cell(new_session(3), 1, 2).state
    assert state.mode == "selected"
    assert state.selected == (1, 2)


def test_click_out_of_bounds_is_ignored():
    state = new_session(3)
    assert click_cell(state, 3, 0).state is state


def test_3x3_digit_commits_immediately():
    state = click_cell(new_session(3), 0, 0).state
    state, error = type_keys(state, "7")
    assert error is None
    assert state.grid[0][0] == 7
    assert state.mode == "selected"


def test_3x3_zero_clears_cell():
    state = click_cell(new_session(3), 0, 0).state
    state, _ = type_keys(state, "7", "0")
    assert state.grid[0][0] == 0


def test_entry_time_uniqueness_is_grid_wide():
    state = click_cell(new_session(3), 0, 0).state
    state, _ = type_keys(state, "7")
    state = click_cell(state, 1, 1).state
    state, error = type_keys(state, "7")
    assert error == "Number 7 already exists in the grid. Each number can only appear once."
    assert state.grid == [[7, 0, 0], [0, 0, 0], [0, 0, 0]]


def test_rewriting_same_cell_with_same_value_is_allowed():
    state = click_cell(new_session(3), 0, 0).state
    state, _ = type_keys(state, "4", "4")
    assert state.grid[0][0] == 4


def test_4x4_first_digit_is_buffered():
    state = click_cell(new_session(4), 0, 0).state
    state, error = type_keys(state, "1")
    assert error is None
    assert state.mode == "buffering"
    assert state.buffer == "1"
    assert state.grid[0][0] == 0


def test_4x4_two_digits_commit():
    state = click_cell(new_session(4), 2, 3).state
    state, _ = type_keys(state, "1", "6")
    assert state.grid[2][3] == 16
    assert state.buffer == ""


def test_4x4_out_of_range_two_digits_discarded():
    state = click_cell(new_session(4), 0, 0).state
    state, error = type_keys(state, "2", "5")
    assert error == "Invalid number 25. Use 1-16 for 4x4 puzzles."
    assert state.grid[0][0] == 0
    assert state.buffer == ""


def test_4x4_enter_and_space_commit_single_digit():
    state = click_cell(new_session(4), 0, 0).state
    state, _ = type_keys(state, "5", "Enter")
    assert state.grid[0][0] == 5
    state = click_cell(state, 0, 1).state
    state, _ = type_keys(state, "3", " ")
    assert state.grid[0][1] == 3


def test_enter_without_buffer_is_a_no_op():
    state = click_cell(new_session(4), 0, 0).state
    assert press_key(state, "Enter").state is state


def test_backspace_edits_buffer_then_clears_cell():
    state = click_cell(new_session(4), 0, 0).state
    state, _ = type_keys(state, "1", "2")
    assert state.grid[0][0] == 12
    state, _ = type_keys(state, "1", "Backspace")
    assert state.buffer == ""
    assert state.grid[0][0] == 12
    state, _ = type_keys(state, "Delete")
    assert state.grid[0][0] == 0


def test_escape_discards_buffer():
    state = click_cell(new_session(4), 0, 0).state
    state, _ = type_keys(state, "9", "Escape")
    assert state.buffer == ""
    assert state.grid[0][0] == 0
    assert state.selected == (0, 0)


def test_click_flushes_pending_buffer():
    state = click_cell(new_session(4), 0, 0).state
    state, _ = type_keys(state, "9")
    state = click_cell(state, 3, 3).state
    assert state.grid[0][0] == 9
    assert state.selected == (3, 3)
    assert state.buffer == ""


def test_arrows_flush_and_move_without_wraparound():
    state = click_cell(new_session(4), 0, 0).state
    state, _ = type_keys(state, "3", "ArrowRight")
    assert state.grid[0][0] == 3
    assert state.selected == (0, 1)
    state, _ = type_keys(state, "ArrowUp")
    assert state.selected == (0, 1)
    state, _ = type_keys(state, "ArrowDown", "ArrowLeft", "ArrowLeft")
    assert state.selected == (1, 0)


def test_flush_rejected_by_uniqueness_still_moves():
    state = click_cell(new_session(4), 0, 0).state
    state, _ = type_keys(state, "3", "Enter")
    state = click_cell(state, 1, 1).state
    state, _ = type_keys(state, "3")
    result = press_key(state, "ArrowDown")
    assert "already exists" in result.error
    assert result.state.selected == (2, 1)
    assert result.state.grid[1][1] == 0


def test_unknown_keys_are_ignored():
    state = click_cell(new_session(3), 0, 0).state
    assert press_key(state, "a").state is state
    assert press_key(state, "Tab").state is state


def test_state_is_never_mutated_in_place():
    start = click_cell(new_session(3), 0, 0).state
    after = press_key(start, "8").state
    assert start.grid[0][0] == 0
    assert after.grid[0][0] == 8


def test_commit_value_range_check():
    result = commit_value(new_session(3), 0, 0, 12)
    assert result.error == "Invalid number 12. Use 1-9 for 3x3 puzzles."


def test_starter_hints_are_locked(sample_solution):
    puzzle = puzzle_from_solution(sample_solution, 3, starter_hints={(0, 0): 6})
    state = session_for_puzzle(puzzle)
    assert state.grid[0][0] == 6
    assert click_cell(state, 0, 0).state is state
    result = commit_value(state, 0, 0, 0)
    assert result.error is not None
    assert result.state.grid[0][0] == 6
    # l'indice compte pour l'unicité
    state = click_cell(state, 2, 2).state
    state, error = type_keys(state, "6")
    assert "already exists" in error


def test_session_resumes_saved_grid(sample_solution):
    puzzle = puzzle_from_solution(sample_solution, 3)
    saved = [[6, 0, 0], [0, 4, 0], [0, 0, 0]]
    state = session_for_puzzle(puzzle, saved)
    assert state.grid == saved
    saved[0][0] = 1
    assert state.grid[0][0] == 6


def test_reset_returns_to_idle_with_empty_grid(sample_solution):
    puzzle = puzzle_from_solution(sample_solution, 3, starter_hints={(1, 1): 4})
    state = click_cell(session_for_puzzle(puzzle), 0, 0).state
    state, _ = type_keys(state, "6")
    state = reset_session(state)
    assert state.mode == "idle"
    assert state.grid == [[0, 0, 0], [0, 4, 0], [0, 0, 0]]


@pytest.mark.parametrize("size", [2, 5])
def test_session_rejects_unsupported_sizes(size):
    with pytest.raises(ValueError):
        new_session(size)


@pytest.mark.parametrize("widget_class", ["Entry", "TEntry", "Text"])
def test_keys_typed_in_text_fields_do_not_reach_the_grid(widget_class):
    state = click_cell(new_session(3), 0, 0).state
    state, _ = type_keys(state, "7")
    # "150" puis retour arrière dans le champ Points
    for keysym, char in (("1", "1"), ("5", "5"), ("0", "0"), ("BackSpace", "\x08")):
        assert key_from_tk(keysym, char, widget_class) is None
    assert state.grid[0][0] == 7


def test_tk_keys_translate_to_session_keys():
    assert key_from_tk("7", "7", "Button") == "7"
    assert key_from_tk("KP_7", "7") == "7"
    assert key_from_tk("Return", "\r") == "Enter"
    assert key_from_tk("space", " ") == " "
    assert key_from_tk("BackSpace", "\x08") == "Backspace"
    assert key_from_tk("Left", "") == "ArrowLeft"
    state = click_cell(new_session(3), 0, 0).state
    state, _ = type_keys(state, key_from_tk("4", "4", "Frame"), key_from_tk("Right", ""))
    assert state.grid[0][0] == 4
    assert state.selected == (0, 1)
