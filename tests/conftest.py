# tests/conftest.py
import random
import sys
from pathlib import Path

import matplotlib
import pytest

# Rendu PDF sans affichage
matplotlib.use("Agg")

# Add project root to sys.path so the maffdoku_* modules can be imported in tests
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))


@pytest.fixture
def rng():
    return random.Random(1234)


@pytest.fixture
def sample_solution():
    return [[6, 3, 9], [2, 4, 5], [7, 1, 8]]


@pytest.fixture
def hash_db(tmp_path):
    return str(tmp_path / "hashes.txt")
