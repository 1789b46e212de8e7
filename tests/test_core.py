import random

import pytest

from maffdoku_core import (
    Cell,
    PuzzleDataError,
    PuzzleDefinition,
    compute_constraints,
    decode_puzzle_data,
    default_visibility,
    generate_full_grid,
    is_filled,
    puzzle_from_solution,
    shuffled_numbers,
)


@pytest.mark.parametrize("size", [3, 4])
@pytest.mark.parametrize("mode", ["shuffle", "backtrack"])
def test_generated_grid_is_a_permutation(size, mode):
    for seed in range(50):
        grid = generate_full_grid(size, random.Random(seed), mode=mode)
        assert len(grid) == size and all(len(row) == size for row in grid)
        assert sorted(v for row in grid for v in row) == list(range(1, size * size + 1))


def test_generation_is_reproducible_with_a_seed():
    a = generate_full_grid(4, random.Random(42))
    b = generate_full_grid(4, random.Random(42))
    assert a == b


def test_generation_without_rng_still_valid():
    grid = generate_full_grid(3)
    assert sorted(v for row in grid for v in row) == list(range(1, 10))


def test_shuffle_fills_row_major():
    numbers = shuffled_numbers(3, random.Random(7))
    grid = generate_full_grid(3, random.Random(7))
    assert [v for row in grid for v in row] == numbers


@pytest.mark.parametrize("size", [2, 5])
def test_unsupported_size_rejected(size):
    with pytest.raises(ValueError):
        generate_full_grid(size)


def test_unknown_mode_rejected():
    with pytest.raises(ValueError):
        generate_full_grid(3, mode="latin")


def test_constraints_of_reference_grid(sample_solution):
    cons = compute_constraints(sample_solution, 3)
    assert cons.column_sums == [15, 8, 22]
    assert cons.row_sums == [18, 11, 16]
    assert cons.column_products == [84, 12, 360]
    assert cons.row_products == [162, 40, 56]


def test_constraints_match_brute_force(rng):
    for _ in range(20):
        grid = generate_full_grid(4, rng)
        cons = compute_constraints(grid, 4)
        for i in range(4):
            column = [grid[r][i] for r in range(4)]
            assert cons.row_sums[i] == sum(grid[i])
            assert cons.column_sums[i] == sum(column)
            prod_row, prod_col = 1, 1
            for k in range(4):
                prod_row *= grid[i][k]
                prod_col *= column[k]
            assert cons.row_products[i] == prod_row
            assert cons.column_products[i] == prod_col


def test_default_visibility_all_visible():
    vis = default_visibility(4)
    assert vis.as_dict() == {
        "columnSums": [True] * 4,
        "rowSums": [True] * 4,
        "columnProducts": [True] * 4,
        "rowProducts": [True] * 4,
    }
    assert vis.hidden_count() == 0


def test_visibility_toggle():
    vis = default_visibility(3)
    vis.toggle("rowProducts", 2)
    assert vis.row_products == [True, True, False]
    assert vis.hidden_count() == 1
    vis.toggle("rowProducts", 2)
    assert vis.hidden_count() == 0


def test_is_filled_handles_missing_rows_and_zeros():
    assert not is_filled([[1, 2, 3]], 3)
    assert not is_filled([[1, 2, 3], [4, 0, 6], [7, 8, 9]], 3)
    assert not is_filled([[1, 2, 3], [4, None, 6], [7, 8, 9]], 3)
    assert is_filled([[1, 2, 3], [4, 5, 6], [7, 8, 9]], 3)


def test_puzzle_from_solution_keeps_starter_hints(sample_solution):
    puzzle = puzzle_from_solution(sample_solution, 3, starter_hints={(0, 0): 6})
    assert puzzle.starter_hints() == {(0, 0): 6}
    assert puzzle.grid[1][1] == Cell()
    assert puzzle.constraints.row_sums == [18, 11, 16]


def test_puzzle_from_solution_rejects_wrong_hint(sample_solution):
    with pytest.raises(ValueError):
        puzzle_from_solution(sample_solution, 3, starter_hints={(0, 0): 5})


def test_puzzle_definition_round_trip(sample_solution):
    puzzle = puzzle_from_solution(sample_solution, 3, starter_hints={(2, 1): 1})
    puzzle.visibility.toggle("columnSums", 0)
    data = puzzle.as_dict()
    assert data["grid"][2][1] == {"value": 1, "isGiven": False, "isValid": True, "isStarterHint": True}
    assert PuzzleDefinition.from_dict(data) == puzzle


def test_decode_puzzle_data_dispatches_on_type(sample_solution):
    data = puzzle_from_solution(sample_solution, 3).as_dict()
    assert decode_puzzle_data("maffdoku", data).size == 3
    with pytest.raises(PuzzleDataError):
        decode_puzzle_data("wordle", data)


@pytest.mark.parametrize(
    "mutate",
    [
        lambda d: d.update(size=5),
        lambda d: d.update(grid=d["grid"][:2]),
        lambda d: d["constraints"].update(rowSums=[1, 2]),
        lambda d: d["constraints"].update(columnSums=["a", "b", "c"]),
        lambda d: d.pop("visibility"),
    ],
)
def test_decode_puzzle_data_rejects_malformed_payloads(sample_solution, mutate):
    data = puzzle_from_solution(sample_solution, 3).as_dict()
    mutate(data)
    with pytest.raises(PuzzleDataError):
        PuzzleDefinition.from_dict(data)
