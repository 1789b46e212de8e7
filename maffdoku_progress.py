# maffdoku_progress.py
"""
Progression d'un joueur sur un puzzle : une fiche par couple (joueur, puzzle),
écrasée à chaque sauvegarde (le dernier qui écrit gagne).
"""

from __future__ import annotations
import logging
import math
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

from maffdoku_catalog import PuzzleRecord, Store, utc_stamp
from maffdoku_core import Grid, empty_grid
from maffdoku_validation import ENFORCE_HIDDEN_CONSTRAINTS, ValidationResult, validate_solution

logger = logging.getLogger(__name__)

PROGRESS_KEY_PREFIX = "progress:"

NOT_STARTED = "not_started"
IN_PROGRESS = "in_progress"
COMPLETED = "completed"

MIN_SCORE = 10
HINT_PENALTY = 10


def compute_score(base_points: int, time_spent: float, hints_used: int = 0) -> int:
    """
    score = max(10, arrondi(base + bonus_temps - pénalité_indices))
    bonus_temps = max(0, base*0.5 - minutes*5)
    """
    time_bonus = max(0.0, base_points * 0.5 - (time_spent / 60) * 5)
    hint_penalty = (hints_used or 0) * HINT_PENALTY
    # arrondi "au demi supérieur" (pas l'arrondi bancaire de round())
    raw = base_points + time_bonus - hint_penalty
    return max(MIN_SCORE, int(math.floor(raw + 0.5)))


def progress_key(user_id: str, puzzle_id: str) -> str:
    return f"{PROGRESS_KEY_PREFIX}{user_id}:{puzzle_id}"


@dataclass
class ProgressRecord:
    user_id: str
    puzzle_id: str
    status: str = NOT_STARTED
    current_grid: Optional[Grid] = None
    validation: Optional[Dict[str, Any]] = None
    attempts: int = 0
    hints_used: int = 0
    time_spent: int = 0
    score: Optional[int] = None
    completed_at: Optional[str] = None
    updated_at: str = ""

    @property
    def is_completed(self) -> bool:
        return self.status == COMPLETED

    def as_dict(self) -> Dict[str, Any]:
        return {
            "userId": self.user_id,
            "puzzleId": self.puzzle_id,
            "status": self.status,
            "currentState": {
                "grid": self.current_grid,
                "validation": self.validation,
            },
            "attempts": self.attempts,
            "hintsUsed": self.hints_used,
            "timeSpent": self.time_spent,
            "score": self.score,
            "completedAt": self.completed_at,
            "updatedAt": self.updated_at,
        }

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "ProgressRecord":
        state = d.get("currentState") or {}
        return cls(
            user_id=d["userId"],
            puzzle_id=d["puzzleId"],
            status=d.get("status", NOT_STARTED),
            current_grid=state.get("grid"),
            validation=state.get("validation"),
            attempts=d.get("attempts", 0),
            hints_used=d.get("hintsUsed", 0),
            time_spent=d.get("timeSpent", 0),
            score=d.get("score"),
            completed_at=d.get("completedAt"),
            updated_at=d.get("updatedAt", ""),
        )


@dataclass
class SubmissionOutcome:
    progress: ProgressRecord
    validation: ValidationResult
    score: Optional[int] = None
    message: str = field(default="Progress saved")

    @property
    def is_completed(self) -> bool:
        return self.validation.is_complete


def load_progress(store: Store, user_id: str, puzzle_id: str) -> Optional[ProgressRecord]:
    doc = store.get(progress_key(user_id, puzzle_id))
    return ProgressRecord.from_dict(doc) if doc is not None else None


def submit_progress(
    store: Store,
    puzzle: PuzzleRecord,
    user_id: str,
    grid: Grid,
    time_spent: int = 0,
    hints_used: int = 0,
    enforce_hidden_constraints: bool = ENFORCE_HIDDEN_CONSTRAINTS,
) -> SubmissionOutcome:
    """Valide la grille, calcule le score si résolue, et écrase la fiche du joueur."""
    if not user_id:
        raise PermissionError("Authentication required")

    validation = validate_solution(puzzle.data, grid, enforce_hidden_constraints)
    completed = validation.is_complete
    score = compute_score(puzzle.points or 100, time_spent or 0, hints_used or 0) if completed else None

    previous = load_progress(store, user_id, puzzle.puzzle_id)
    now = utc_stamp()
    progress = ProgressRecord(
        user_id=user_id,
        puzzle_id=puzzle.puzzle_id,
        status=COMPLETED if completed else IN_PROGRESS,
        current_grid=[list(row) for row in grid],
        validation=validation.as_dict(),
        attempts=(previous.attempts if previous else 0) + 1,
        hints_used=hints_used or 0,
        time_spent=time_spent or 0,
        score=score,
        completed_at=now if completed else None,
        updated_at=now,
    )
    store[progress_key(user_id, puzzle.puzzle_id)] = progress.as_dict()

    if completed:
        logger.info("%s a résolu %s (score %d)", user_id, puzzle.title, score)
        message = "Puzzle completed successfully!"
    else:
        message = "Progress saved"
    return SubmissionOutcome(progress=progress, validation=validation, score=score, message=message)


def reset_progress(store: Store, puzzle: PuzzleRecord, user_id: str) -> ProgressRecord:
    """Grille vide, statut remis à zéro ; le nombre de tentatives est conservé."""
    previous = load_progress(store, user_id, puzzle.puzzle_id)
    progress = ProgressRecord(
        user_id=user_id,
        puzzle_id=puzzle.puzzle_id,
        status=NOT_STARTED,
        current_grid=empty_grid(puzzle.data.size),
        attempts=previous.attempts if previous else 0,
        updated_at=utc_stamp(),
    )
    store[progress_key(user_id, puzzle.puzzle_id)] = progress.as_dict()
    return progress
