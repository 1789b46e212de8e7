# maffdoku_validation.py
"""
Vérification d'une grille joueur contre la définition d'un puzzle.

Ordre des contrôles :
  1. grille complète ? sinon retour immédiat, sans diagnostic
  2. indices de départ respectés
  3. lignes : plage 1..max et doublons
  4. colonnes : doublons
  5. contraintes (sommes puis produits, colonnes puis lignes)

Les violations sont des données (liste `errors`), jamais des exceptions.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Any, Dict, List

from maffdoku_core import Grid, PuzzleDefinition, is_filled, max_number

# Les contraintes masquées restent appliquées : la visibilité ne change
# que ce que voit le joueur, pas ce qui est noté.
ENFORCE_HIDDEN_CONSTRAINTS = True


@dataclass
class ValidationError:
    row: int
    col: int
    message: str

    def as_dict(self) -> Dict[str, Any]:
        return {"row": self.row, "col": self.col, "message": self.message}


@dataclass
class ValidationResult:
    all_cells_filled: bool
    errors: List[ValidationError] = field(default_factory=list)

    @property
    def is_correct(self) -> bool:
        return self.all_cells_filled and not self.errors

    @property
    def is_complete(self) -> bool:
        """Champ `isComplete` exposé : « rempli ET correct »."""
        return self.is_correct

    def as_dict(self) -> Dict[str, Any]:
        return {
            "isComplete": self.is_complete,
            "errors": [e.as_dict() for e in self.errors],
        }


def _product(values) -> int:
    p = 1
    for v in values:
        p *= v
    return p


def _check_constraints(
    puzzle: PuzzleDefinition,
    grid: Grid,
    enforce_hidden: bool,
    errors: List[ValidationError],
) -> None:
    size = puzzle.size
    cons = puzzle.constraints
    vis = puzzle.visibility
    columns = [[grid[r][c] for r in range(size)] for c in range(size)]

    def enforced(flags: List[bool], i: int) -> bool:
        return enforce_hidden or flags[i]

    for c in range(size):
        if not enforced(vis.column_sums, c):
            continue
        actual, expected = sum(columns[c]), cons.column_sums[c]
        if actual != expected:
            errors.append(ValidationError(0, c, f"Column {c + 1} sum is {actual}, expected {expected}"))

    for r in range(size):
        if not enforced(vis.row_sums, r):
            continue
        actual, expected = sum(grid[r][:size]), cons.row_sums[r]
        if actual != expected:
            errors.append(ValidationError(r, 0, f"Row {r + 1} sum is {actual}, expected {expected}"))

    for c in range(size):
        if not enforced(vis.column_products, c):
            continue
        actual, expected = _product(columns[c]), cons.column_products[c]
        if actual != expected:
            errors.append(
                ValidationError(size - 1, c, f"Column {c + 1} product is {actual}, expected {expected}")
            )

    for r in range(size):
        if not enforced(vis.row_products, r):
            continue
        actual, expected = _product(grid[r][:size]), cons.row_products[r]
        if actual != expected:
            errors.append(
                ValidationError(r, size - 1, f"Row {r + 1} product is {actual}, expected {expected}")
            )


def validate_solution(
    puzzle: PuzzleDefinition,
    candidate: Grid,
    enforce_hidden_constraints: bool = ENFORCE_HIDDEN_CONSTRAINTS,
) -> ValidationResult:
    size = puzzle.size

    # 1) Complétude : pas de diagnostic partiel
    if not is_filled(candidate, size):
        return ValidationResult(all_cells_filled=False)

    errors: List[ValidationError] = []
    top = max_number(size)

    # 2) Indices de départ
    for (r, c), v in sorted(puzzle.starter_hints().items()):
        if candidate[r][c] != v:
            errors.append(ValidationError(r, c, f"Cell ({r + 1}, {c + 1}) must keep starter hint {v}"))

    # 3) Lignes : plage + doublons
    for r in range(size):
        seen = set()
        for c in range(size):
            v = candidate[r][c]
            if v < 1 or v > top:
                errors.append(ValidationError(r, c, f"Invalid number {v}, must be between 1 and {top}"))
            elif v in seen:
                errors.append(ValidationError(r, c, f"Duplicate {v} in row {r + 1}"))
            else:
                seen.add(v)

    # 4) Colonnes : doublons
    for c in range(size):
        seen = set()
        for r in range(size):
            v = candidate[r][c]
            if v in seen:
                errors.append(ValidationError(r, c, f"Duplicate {v} in column {c + 1}"))
            else:
                seen.add(v)

    # 5) Contraintes
    _check_constraints(puzzle, candidate, enforce_hidden_constraints, errors)

    return ValidationResult(all_cells_filled=True, errors=errors)
