import random

from maffdoku_book import book_hash_v1, build_book_pdf, chunk, constraint_labels, render_book
from maffdoku_core import Visibility, puzzle_from_solution
from maffdoku_difficulty import PROFILES, generate_puzzle
from maffdoku_hash_db import load_global_hashes


def test_constraint_labels_mark_hidden_values(sample_solution):
    vis = Visibility([True, False, True], [True] * 3, [False] * 3, [True, True, False])
    puzzle = puzzle_from_solution(sample_solution, 3, visibility=vis)
    top, left, right, bottom = constraint_labels(puzzle)
    assert top == ["15", "·", "22"]
    assert left == ["18", "11", "16"]
    assert right == ["162", "40", "·"]
    assert bottom == ["·", "·", "·"]


def test_book_hash_ignores_order():
    hashes = ["3a", "3b", "3c"]
    assert book_hash_v1(hashes) == book_hash_v1(list(reversed(hashes)))
    assert book_hash_v1(hashes) != book_hash_v1(hashes[:2])
    assert len(book_hash_v1([])) == 64


def test_chunk():
    assert list(chunk([1, 2, 3, 4, 5], 2)) == [[1, 2], [3, 4], [5]]


def test_render_book_writes_pdf(tmp_path):
    rng = random.Random(5)
    puzzles = [generate_puzzle(PROFILES["medium"], size, rng) for size in (3, 4, 3)]
    out = tmp_path / "book.pdf"
    hashes, book_hash = render_book(puzzles, str(out), title="Test")
    assert out.read_bytes().startswith(b"%PDF")
    assert len(hashes) == 3
    assert book_hash == book_hash_v1(hashes)


def test_build_book_pdf_records_hashes(tmp_path, hash_db):
    out = tmp_path / "easy.pdf"
    puzzles, hashes, book_hash = build_book_pdf(
        PROFILES["easy"], 3, str(out), n_puzzles=4, title="Maffdoku",
        rng=random.Random(9), hash_db_path=hash_db, puzzle_rows=2, puzzle_cols=2,
    )
    assert len(puzzles) == 4
    assert out.exists()
    assert load_global_hashes(hash_db) == set(hashes)
    assert book_hash == book_hash_v1(hashes)
