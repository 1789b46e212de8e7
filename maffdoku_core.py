# maffdoku_core.py
"""
Moteur Maffdoku commun :
- grille NxN (N = 3 ou 4), valeurs 1..N² toutes distinctes
- génération d'une grille solution (mélange ou backtracking)
- calcul des contraintes (sommes / produits des lignes et colonnes)
- visibilité des contraintes
- décodage des données stockées (union étiquetée par type de puzzle)
"""

from __future__ import annotations
import random
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Tuple

Grid = List[List[int]]
Pos = Tuple[int, int]

SUPPORTED_SIZES = (3, 4)
PUZZLE_TYPE = "maffdoku"

# Ordre des champs du record stocké
CONSTRAINT_KINDS = ("columnSums", "rowSums", "columnProducts", "rowProducts")


class PuzzleDataError(ValueError):
    """Données de puzzle stockées invalides (mauvais type, taille, forme)."""


def check_size(size: int) -> int:
    if size not in SUPPORTED_SIZES:
        raise ValueError(f"Taille non supportée : {size} (attendu 3 ou 4)")
    return size


def max_number(size: int) -> int:
    """9 pour une grille 3x3, 16 pour une 4x4."""
    return size * size


def empty_grid(size: int) -> Grid:
    return [[0] * size for _ in range(size)]


def is_filled(grid: Grid, size: int) -> bool:
    for r in range(size):
        if r >= len(grid) or grid[r] is None:
            return False
        for c in range(size):
            if c >= len(grid[r]) or not grid[r][c]:
                return False
    return True


def is_permutation(grid: Grid, size: int) -> bool:
    values = sorted(v for row in grid for v in row)
    return values == list(range(1, max_number(size) + 1))


# ---------- Modèle ----------

@dataclass
class Cell:
    value: Optional[int] = None
    is_given: bool = False
    is_starter_hint: bool = False

    def as_dict(self) -> Dict[str, Any]:
        d: Dict[str, Any] = {"value": self.value, "isGiven": self.is_given, "isValid": True}
        if self.is_starter_hint:
            d["isStarterHint"] = True
        return d

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "Cell":
        value = d.get("value")
        if value is not None and not isinstance(value, int):
            raise PuzzleDataError(f"Valeur de case invalide : {value!r}")
        return cls(
            value=value or None,
            is_given=bool(d.get("isGiven", False)),
            is_starter_hint=bool(d.get("isStarterHint", False)),
        )


@dataclass
class Constraints:
    column_sums: List[int]
    row_sums: List[int]
    column_products: List[int]
    row_products: List[int]

    def as_dict(self) -> Dict[str, List[int]]:
        return {
            "columnSums": list(self.column_sums),
            "rowSums": list(self.row_sums),
            "columnProducts": list(self.column_products),
            "rowProducts": list(self.row_products),
        }

    @classmethod
    def from_dict(cls, d: Dict[str, Any], size: int) -> "Constraints":
        lists = _read_groups(d, size, "constraints")
        for kind, values in zip(CONSTRAINT_KINDS, lists):
            if not all(isinstance(v, int) and not isinstance(v, bool) for v in values):
                raise PuzzleDataError(f"constraints.{kind} doit contenir des entiers")
        return cls(*lists)


@dataclass
class Visibility:
    column_sums: List[bool]
    row_sums: List[bool]
    column_products: List[bool]
    row_products: List[bool]

    def as_dict(self) -> Dict[str, List[bool]]:
        return {
            "columnSums": list(self.column_sums),
            "rowSums": list(self.row_sums),
            "columnProducts": list(self.column_products),
            "rowProducts": list(self.row_products),
        }

    @classmethod
    def from_dict(cls, d: Dict[str, Any], size: int) -> "Visibility":
        lists = _read_groups(d, size, "visibility")
        return cls(*[[bool(v) for v in values] for values in lists])

    def group(self, kind: str) -> List[bool]:
        return getattr(self, _attr_name(kind))

    def toggle(self, kind: str, index: int) -> None:
        flags = self.group(kind)
        flags[index] = not flags[index]

    def hidden_count(self) -> int:
        return sum(1 for kind in CONSTRAINT_KINDS for v in self.group(kind) if not v)

    def check_shape(self, size: int) -> None:
        """Chaque groupe doit contenir exactement `size` valeurs."""
        _read_groups(self.as_dict(), size, "visibility")


def _attr_name(kind: str) -> str:
    """'columnSums' -> 'column_sums'."""
    if kind not in CONSTRAINT_KINDS:
        raise KeyError(kind)
    return "".join("_" + ch.lower() if ch.isupper() else ch for ch in kind)


def _read_groups(d: Dict[str, Any], size: int, label: str) -> List[List[Any]]:
    if not isinstance(d, dict):
        raise PuzzleDataError(f"{label} doit être un objet")
    lists = []
    for kind in CONSTRAINT_KINDS:
        values = d.get(kind)
        if not isinstance(values, list) or len(values) != size:
            raise PuzzleDataError(f"{label}.{kind} doit contenir {size} valeurs")
        lists.append(list(values))
    return lists


@dataclass
class PuzzleDefinition:
    size: int
    grid: List[List[Cell]]
    constraints: Constraints
    visibility: Optional[Visibility] = None

    def __post_init__(self):
        if self.visibility is None:
            self.visibility = default_visibility(self.size)

    def starter_hints(self) -> Dict[Pos, int]:
        hints: Dict[Pos, int] = {}
        for r, row in enumerate(self.grid):
            for c, cell in enumerate(row):
                if cell.is_starter_hint and cell.value:
                    hints[(r, c)] = cell.value
        return hints

    def locked_cells(self) -> Dict[Pos, int]:
        """Cases pré-remplies (données ou indices de départ), non modifiables."""
        locked: Dict[Pos, int] = {}
        for r, row in enumerate(self.grid):
            for c, cell in enumerate(row):
                if (cell.is_given or cell.is_starter_hint) and cell.value:
                    locked[(r, c)] = cell.value
        return locked

    def as_dict(self) -> Dict[str, Any]:
        return {
            "size": self.size,
            "grid": [[cell.as_dict() for cell in row] for row in self.grid],
            "constraints": self.constraints.as_dict(),
            "visibility": self.visibility.as_dict(),
        }

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "PuzzleDefinition":
        if not isinstance(d, dict):
            raise PuzzleDataError("Les données du puzzle doivent être un objet")
        size = d.get("size")
        if size not in SUPPORTED_SIZES:
            raise PuzzleDataError(f"Taille de puzzle invalide : {size!r}")
        raw_grid = d.get("grid")
        if not isinstance(raw_grid, list) or len(raw_grid) != size:
            raise PuzzleDataError(f"La grille doit avoir {size} lignes")
        grid = []
        for row in raw_grid:
            if not isinstance(row, list) or len(row) != size:
                raise PuzzleDataError(f"Chaque ligne doit avoir {size} cases")
            grid.append([Cell.from_dict(cell or {}) for cell in row])
        return cls(
            size=size,
            grid=grid,
            constraints=Constraints.from_dict(d.get("constraints"), size),
            visibility=Visibility.from_dict(d.get("visibility"), size),
        )


# ---------- Union étiquetée des données stockées ----------

PUZZLE_DATA_DECODERS: Dict[str, Callable[[Dict[str, Any]], Any]] = {
    PUZZLE_TYPE: PuzzleDefinition.from_dict,
}


def decode_puzzle_data(puzzle_type: str, data: Dict[str, Any]):
    """Valide et décode le champ `data` d'un document selon son type."""
    try:
        decoder = PUZZLE_DATA_DECODERS[puzzle_type]
    except KeyError:
        raise PuzzleDataError(f"Type de puzzle inconnu : {puzzle_type!r}") from None
    return decoder(data)


# ---------- Génération d'une grille complète ----------

def shuffled_numbers(size: int, rng: random.Random) -> List[int]:
    """Fisher–Yates explicite sur 1..size²."""
    numbers = list(range(1, max_number(size) + 1))
    for i in range(len(numbers) - 1, 0, -1):
        j = rng.randint(0, i)
        numbers[i], numbers[j] = numbers[j], numbers[i]
    return numbers


def _shuffle_and_fill(size: int, rng: random.Random) -> Grid:
    numbers = shuffled_numbers(size, rng)
    return [numbers[r * size:(r + 1) * size] for r in range(size)]


def _backtrack_fill(size: int, rng: random.Random) -> Optional[Grid]:
    grid: Grid = empty_grid(size)
    used = set()

    def backtrack(r=0, c=0) -> bool:
        if r == size:
            return True
        nr, nc = (r, c + 1) if c < size - 1 else (r + 1, 0)
        vals = list(range(1, max_number(size) + 1))
        rng.shuffle(vals)
        for v in vals:
            # unicité globale => unicité ligne/colonne
            if v in used:
                continue
            grid[r][c] = v
            used.add(v)
            if backtrack(nr, nc):
                return True
            grid[r][c] = 0
            used.discard(v)
        return False

    return grid if backtrack() else None


def generate_full_grid(size: int, rng: Optional[random.Random] = None, mode: str = "shuffle") -> Grid:
    """
    Génère une grille solution : permutation de 1..size² rangée ligne par ligne.

    mode="shuffle"   : mélange de Fisher–Yates puis remplissage.
    mode="backtrack" : placement récursif aléatoire, repli sur le mélange si échec.
    """
    check_size(size)
    rng = rng or random.Random()
    if mode == "shuffle":
        return _shuffle_and_fill(size, rng)
    if mode == "backtrack":
        grid = _backtrack_fill(size, rng)
        if grid is None:
            return _shuffle_and_fill(size, rng)
        return grid
    raise ValueError(f"Mode de génération inconnu : {mode}")


# ---------- Contraintes & visibilité ----------

def compute_constraints(grid: Grid, size: int) -> Constraints:
    column_sums = [0] * size
    row_sums = [0] * size
    column_products = [1] * size
    row_products = [1] * size
    for r in range(size):
        for c in range(size):
            v = grid[r][c]
            column_sums[c] += v
            row_sums[r] += v
            column_products[c] *= v
            row_products[r] *= v
    return Constraints(column_sums, row_sums, column_products, row_products)


def default_visibility(size: int) -> Visibility:
    return Visibility(
        column_sums=[True] * size,
        row_sums=[True] * size,
        column_products=[True] * size,
        row_products=[True] * size,
    )


def puzzle_from_solution(
    solution: Grid,
    size: int,
    visibility: Optional[Visibility] = None,
    starter_hints: Optional[Dict[Pos, int]] = None,
) -> PuzzleDefinition:
    """
    Construit la définition joueur : cases vides sauf indices de départ,
    contraintes recalculées depuis la solution.
    """
    check_size(size)
    hints = starter_hints or {}
    grid = [
        [
            Cell(value=hints[(r, c)], is_starter_hint=True) if (r, c) in hints else Cell()
            for c in range(size)
        ]
        for r in range(size)
    ]
    for (r, c), v in hints.items():
        if solution[r][c] != v:
            raise ValueError(f"Indice ({r + 1}, {c + 1}) = {v} différent de la solution")
    return PuzzleDefinition(
        size=size,
        grid=grid,
        constraints=compute_constraints(solution, size),
        visibility=visibility or default_visibility(size),
    )
