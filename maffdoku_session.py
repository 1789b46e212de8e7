# maffdoku_session.py
"""
Saisie clavier / souris d'une grille Maffdoku, sous forme d'automate.

États :
  idle       : aucune case sélectionnée
  selected   : une case sélectionnée, tampon vide
  buffering  : une case sélectionnée, chiffres en attente (4x4 : "1" peut
               devenir 1 ou 10..16)

Chaque appel reçoit un SessionState immuable et renvoie un InputResult
(nouvel état + message d'erreur éventuel). Rien n'est modifié en place.
"""

from __future__ import annotations
from dataclasses import dataclass, replace
from typing import FrozenSet, Optional, Tuple

from maffdoku_core import Grid, Pos, PuzzleDefinition, check_size, max_number

Cells = Tuple[Tuple[int, ...], ...]

ARROWS = {
    "ArrowUp": (-1, 0),
    "ArrowDown": (1, 0),
    "ArrowLeft": (0, -1),
    "ArrowRight": (0, 1),
}
CONFIRM_KEYS = ("Enter", " ")
ERASE_KEYS = ("Backspace", "Delete")

# keysym Tk -> nom de touche de la session
TK_KEYS = {
    "Return": "Enter",
    "KP_Enter": "Enter",
    "space": " ",
    "BackSpace": "Backspace",
    "Delete": "Delete",
    "Escape": "Escape",
    "Up": "ArrowUp",
    "Down": "ArrowDown",
    "Left": "ArrowLeft",
    "Right": "ArrowRight",
}
# classes Tk des champs de saisie : leurs touches ne vont pas à la grille
TEXT_WIDGET_CLASSES = ("Entry", "TEntry", "Text", "Spinbox", "TSpinbox", "TCombobox")


@dataclass(frozen=True)
class SessionState:
    size: int
    cells: Cells
    locked: FrozenSet[Pos] = frozenset()
    selected: Optional[Pos] = None
    buffer: str = ""

    @property
    def mode(self) -> str:
        if self.selected is None:
            return "idle"
        return "buffering" if self.buffer else "selected"

    @property
    def grid(self) -> Grid:
        return [list(row) for row in self.cells]

    def value_at(self, row: int, col: int) -> int:
        return self.cells[row][col]

    def in_bounds(self, row: int, col: int) -> bool:
        return 0 <= row < self.size and 0 <= col < self.size


@dataclass(frozen=True)
class InputResult:
    state: SessionState
    error: Optional[str] = None


def _freeze(grid: Grid) -> Cells:
    return tuple(tuple(row) for row in grid)


def new_session(size: int, grid: Optional[Grid] = None, locked: FrozenSet[Pos] = frozenset()) -> SessionState:
    check_size(size)
    if grid is None:
        grid = [[0] * size for _ in range(size)]
    return SessionState(size=size, cells=_freeze(grid), locked=frozenset(locked))


def session_for_puzzle(puzzle: PuzzleDefinition, grid: Optional[Grid] = None) -> SessionState:
    """Session joueur : cases verrouillées pré-remplies, reprise d'une grille sauvegardée."""
    size = puzzle.size
    locked = puzzle.locked_cells()
    start = [row[:] for row in grid] if grid else [[0] * size for _ in range(size)]
    for (r, c), v in locked.items():
        start[r][c] = v
    return new_session(size, start, frozenset(locked))


def reset_session(state: SessionState) -> SessionState:
    """Remise à zéro : idle, grille vide sauf cases verrouillées."""
    grid = [[0] * state.size for _ in range(state.size)]
    for r, c in state.locked:
        grid[r][c] = state.cells[r][c]
    return SessionState(size=state.size, cells=_freeze(grid), locked=state.locked)


# ---------- Écriture d'une case ----------

def commit_value(state: SessionState, row: int, col: int, value: int) -> InputResult:
    """
    Écrit `value` en (row, col). 0 efface la case.
    Refuse (état inchangé) : case verrouillée, hors plage, nombre déjà présent.
    """
    top = max_number(state.size)
    if (row, col) in state.locked:
        return InputResult(state, f"Cell ({row + 1}, {col + 1}) is a starter hint and cannot be changed.")
    if value != 0 and (value < 1 or value > top):
        return InputResult(
            state, f"Invalid number {value}. Use 1-{top} for {state.size}x{state.size} puzzles."
        )
    if value != 0:
        for r in range(state.size):
            for c in range(state.size):
                if (r, c) != (row, col) and state.cells[r][c] == value:
                    return InputResult(
                        state,
                        f"Number {value} already exists in the grid. Each number can only appear once.",
                    )
    grid = state.grid
    grid[row][col] = value
    return InputResult(replace(state, cells=_freeze(grid)))


def _flush(state: SessionState) -> InputResult:
    """Valide le tampon en attente sur la case sélectionnée, puis le vide."""
    if state.selected is None or not state.buffer:
        return InputResult(replace(state, buffer=""))
    num = int(state.buffer)
    cleared = replace(state, buffer="")
    if 1 <= num <= max_number(state.size):
        row, col = state.selected
        return commit_value(cleared, row, col, num)
    return InputResult(cleared)


# ---------- Transitions ----------

def click_cell(state: SessionState, row: int, col: int) -> InputResult:
    if not state.in_bounds(row, col) or (row, col) in state.locked:
        return InputResult(state)
    flushed = _flush(state)
    return InputResult(replace(flushed.state, selected=(row, col), buffer=""), flushed.error)


def _press_digit(state: SessionState, key: str) -> InputResult:
    row, col = state.selected
    if key == "0" and not state.buffer:
        return commit_value(state, row, col, 0)

    new_buffer = state.buffer + key
    num = int(new_buffer)
    cleared = replace(state, buffer="")

    if state.size == 3:
        if 1 <= num <= 9:
            return commit_value(cleared, row, col, num)
        return InputResult(cleared, f"Invalid number {num}. Use 1-9 for 3x3 puzzles.")

    if len(new_buffer) == 1:
        # 1..9 : complet, ou début de 10..16
        return InputResult(replace(state, buffer=new_buffer))
    if len(new_buffer) == 2:
        if 10 <= num <= 16:
            return commit_value(cleared, row, col, num)
        return InputResult(cleared, f"Invalid number {num}. Use 1-16 for 4x4 puzzles.")
    return InputResult(cleared, "Too many digits. Use 1-16 for 4x4 puzzles.")


def press_key(state: SessionState, key: str) -> InputResult:
    """Touche au format KeyboardEvent.key ("7", "Enter", "ArrowUp", ...)."""
    if state.selected is None:
        return InputResult(state)
    row, col = state.selected

    if len(key) == 1 and key in "0123456789":
        return _press_digit(state, key)

    if key in CONFIRM_KEYS:
        if not state.buffer:
            return InputResult(state)
        return _flush(state)

    if key in ERASE_KEYS:
        if state.buffer:
            return InputResult(replace(state, buffer=state.buffer[:-1]))
        return commit_value(state, row, col, 0)

    if key == "Escape":
        return InputResult(replace(state, buffer=""))

    if key in ARROWS:
        dr, dc = ARROWS[key]
        nr, nc = row + dr, col + dc
        if not state.in_bounds(nr, nc):
            return InputResult(state)
        flushed = _flush(state)
        return InputResult(replace(flushed.state, selected=(nr, nc), buffer=""), flushed.error)

    return InputResult(state)


def key_from_tk(keysym: str, char: str, widget_class: str = "") -> Optional[str]:
    """
    Traduit un évènement clavier Tk en touche de session.
    None si la touche a été tapée dans un champ de saisie.
    """
    if widget_class in TEXT_WIDGET_CLASSES:
        return None
    if char and len(char) == 1 and char in "0123456789":
        return char
    return TK_KEYS.get(keysym, keysym)
