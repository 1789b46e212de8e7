# maffdoku_catalog.py
"""
Catalogue des puzzles Maffdoku au-dessus d'un simple magasin clé/valeur
(`MutableMapping[str, dict]` : dict en mémoire, shelve, ...).

- enregistrement d'un puzzle créé par un auteur (refus des doublons par empreinte)
- numérotation "Maffdoku #N"
- lecture, liste paginée
- jeu d'exemples
"""

from __future__ import annotations
import logging
import math
import os
import re
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, Iterator, List, MutableMapping, Optional, Set

from maffdoku_core import (
    PUZZLE_TYPE,
    Grid,
    Pos,
    PuzzleDataError,
    Visibility,
    check_size,
    decode_puzzle_data,
    is_permutation,
    puzzle_from_solution,
)
from maffdoku_difficulty import PLAYER_HINTS
from maffdoku_hash_db import encode_puzzle_hash

logger = logging.getLogger(__name__)

Store = MutableMapping[str, Dict[str, Any]]

DEFAULT_STORE_PATH = os.environ.get("MAFFDOKU_STORE", "maffdoku_store")

PUZZLE_KEY_PREFIX = "puzzle:"
HASH_TAG_PREFIX = "hash:"
TITLE_RE = re.compile(r"Maffdoku #(\d+)")

DIFFICULTIES = ("easy", "medium", "hard", "expert")
POINTS_RANGE = (1, 1000)
TIME_LIMIT_RANGE = (30, 3600)


class DuplicatePuzzleError(ValueError):
    """Même grille et même visibilité déjà enregistrées."""


class PuzzleNotFound(LookupError):
    pass


def utc_stamp() -> str:
    return datetime.now(timezone.utc).isoformat()


def puzzle_key(puzzle_id: str) -> str:
    return PUZZLE_KEY_PREFIX + puzzle_id


@dataclass
class PuzzleRecord:
    puzzle_id: str
    title: str
    description: str
    difficulty: str
    data: Any  # PuzzleDefinition pour le type "maffdoku"
    solution: Grid
    points: int = 100
    time_limit: Optional[int] = None
    tags: List[str] = field(default_factory=list)
    hints: List[str] = field(default_factory=list)
    is_active: bool = True
    created_by: str = ""
    created_at: str = ""
    type: str = PUZZLE_TYPE

    @property
    def puzzle_hash(self) -> Optional[str]:
        for tag in self.tags:
            if tag.startswith(HASH_TAG_PREFIX):
                return tag[len(HASH_TAG_PREFIX):]
        return None

    def as_dict(self) -> Dict[str, Any]:
        return {
            "_id": self.puzzle_id,
            "type": self.type,
            "title": self.title,
            "description": self.description,
            "difficulty": self.difficulty,
            "data": self.data.as_dict(),
            "solution": {"grid": [row[:] for row in self.solution]},
            "points": self.points,
            "timeLimit": self.time_limit,
            "tags": list(self.tags),
            "hints": list(self.hints),
            "isActive": self.is_active,
            "createdBy": self.created_by,
            "createdAt": self.created_at,
        }

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "PuzzleRecord":
        puzzle_type = d.get("type", PUZZLE_TYPE)
        data = decode_puzzle_data(puzzle_type, d.get("data"))
        solution = (d.get("solution") or {}).get("grid")
        if not isinstance(solution, list) or len(solution) != data.size:
            raise PuzzleDataError("Solution absente ou de mauvaise taille")
        return cls(
            puzzle_id=d["_id"],
            title=d.get("title", ""),
            description=d.get("description", ""),
            difficulty=d.get("difficulty", "easy"),
            data=data,
            solution=[list(row) for row in solution],
            points=d.get("points", 100),
            time_limit=d.get("timeLimit"),
            tags=list(d.get("tags") or []),
            hints=list(d.get("hints") or []),
            is_active=d.get("isActive", True),
            created_by=d.get("createdBy", ""),
            created_at=d.get("createdAt", ""),
            type=puzzle_type,
        )


# ---------- Lecture ----------

def iter_puzzles(store: Store, difficulty: Optional[str] = None, active_only: bool = True) -> Iterator[PuzzleRecord]:
    for key in list(store.keys()):
        if not key.startswith(PUZZLE_KEY_PREFIX):
            continue
        doc = store[key]
        if doc.get("type") != PUZZLE_TYPE:
            continue
        if active_only and not doc.get("isActive", True):
            continue
        if difficulty and doc.get("difficulty") != difficulty:
            continue
        yield PuzzleRecord.from_dict(doc)


def get_puzzle(store: Store, puzzle_id: str, active_only: bool = True) -> PuzzleRecord:
    doc = store.get(puzzle_key(puzzle_id))
    if doc is None or doc.get("type") != PUZZLE_TYPE or (active_only and not doc.get("isActive", True)):
        raise PuzzleNotFound(f"Puzzle not found: {puzzle_id}")
    return PuzzleRecord.from_dict(doc)


def list_puzzles(store: Store, difficulty: Optional[str] = None, page: int = 1, limit: int = 10) -> Dict[str, Any]:
    """Puzzles actifs, les plus récents d'abord, avec pagination."""
    page = max(1, page)
    limit = max(1, limit)
    records = sorted(iter_puzzles(store, difficulty), key=lambda p: p.created_at, reverse=True)
    total = len(records)
    skip = (page - 1) * limit
    return {
        "puzzles": records[skip:skip + limit],
        "pagination": {
            "page": page,
            "limit": limit,
            "total": total,
            "pages": math.ceil(total / limit),
        },
    }


def existing_hashes(store: Store) -> Set[str]:
    return {p.puzzle_hash for p in iter_puzzles(store, active_only=False) if p.puzzle_hash}


def next_puzzle_number(store: Store) -> int:
    numbers = [0]
    for p in iter_puzzles(store, active_only=False):
        m = TITLE_RE.search(p.title)
        if m:
            numbers.append(int(m.group(1)))
    return max(numbers) + 1


# ---------- Écriture ----------

def _check_range(name: str, value: int, bounds) -> None:
    lo, hi = bounds
    if not lo <= value <= hi:
        raise ValueError(f"{name} doit être entre {lo} et {hi} (reçu {value})")


def save_puzzle(
    store: Store,
    solution: Grid,
    size: int,
    visibility: Visibility,
    difficulty: str = "easy",
    points: int = 100,
    time_limit: Optional[int] = 300,
    tags: Optional[List[str]] = None,
    created_by: str = "",
    starter_hints: Optional[Dict[Pos, int]] = None,
    hints: Optional[List[str]] = None,
) -> PuzzleRecord:
    """
    Enregistre un puzzle d'auteur :
      - la solution doit être complète (permutation de 1..size²)
      - l'empreinte (grille + visibilité) ne doit pas déjà exister
    """
    check_size(size)
    visibility.check_shape(size)
    if difficulty not in DIFFICULTIES:
        raise ValueError(f"Difficulté inconnue : {difficulty}")
    _check_range("points", points, POINTS_RANGE)
    if time_limit is not None:
        _check_range("time_limit", time_limit, TIME_LIMIT_RANGE)
    if len(solution) != size or any(len(row) != size for row in solution) or not is_permutation(solution, size):
        raise ValueError("Please complete the solution grid")

    h = encode_puzzle_hash(solution, size, visibility)
    if h in existing_hashes(store):
        logger.warning("Puzzle déjà existant : %s", h)
        raise DuplicatePuzzleError(
            "This exact puzzle configuration already exists! "
            "Try changing the grid numbers or constraint visibility."
        )

    number = next_puzzle_number(store)
    record = PuzzleRecord(
        puzzle_id=uuid.uuid4().hex,
        title=f"Maffdoku #{number}",
        description=f"{size}x{size} {difficulty.lower()} puzzle with {points} points",
        difficulty=difficulty,
        data=puzzle_from_solution(solution, size, visibility, starter_hints),
        solution=[row[:] for row in solution],
        points=points,
        time_limit=time_limit,
        tags=[t.strip().lower() for t in (tags or [])] + [HASH_TAG_PREFIX + h],
        hints=list(PLAYER_HINTS if hints is None else hints),
        created_by=created_by,
        created_at=utc_stamp(),
    )
    store[puzzle_key(record.puzzle_id)] = record.as_dict()
    logger.info("Puzzle enregistré : %s (%s)", record.title, record.puzzle_id)
    return record


def deactivate_puzzle(store: Store, puzzle_id: str) -> None:
    doc = store.get(puzzle_key(puzzle_id))
    if doc is None:
        raise PuzzleNotFound(f"Puzzle not found: {puzzle_id}")
    doc = dict(doc)
    doc["isActive"] = False
    store[puzzle_key(puzzle_id)] = doc


# ---------- Exemples ----------

SAMPLE_PUZZLES = [
    {
        "difficulty": "easy",
        "points": 50,
        "time_limit": 180,
        "solution": [[6, 3, 9], [2, 4, 5], [7, 1, 8]],
        "visibility": {
            "columnSums": [True, True, False],
            "rowSums": [True, False, True],
            "columnProducts": [False, True, True],
            "rowProducts": [True, True, False],
        },
        "tags": ["beginner", "tutorial", "3x3"],
    },
    {
        "difficulty": "medium",
        "points": 100,
        "time_limit": 300,
        "solution": [[1, 2, 3, 7], [4, 5, 6, 8], [9, 10, 11, 15], [12, 13, 14, 16]],
        "visibility": {
            "columnSums": [True, False, True, False],
            "rowSums": [False, True, False, True],
            "columnProducts": [False, False, True, True],
            "rowProducts": [True, False, False, True],
        },
        "tags": ["intermediate", "challenging", "4x4"],
    },
    {
        "difficulty": "hard",
        "points": 150,
        "time_limit": 600,
        "solution": [[8, 4, 1], [6, 5, 2], [7, 3, 9]],
        "visibility": {
            "columnSums": [False, False, True],
            "rowSums": [True, False, False],
            "columnProducts": [False, True, False],
            "rowProducts": [False, False, True],
        },
        "tags": ["expert", "hard", "3x3", "minimal-hints"],
    },
]


def seed_sample_puzzles(store: Store, created_by: str) -> List[PuzzleRecord]:
    """Ajoute les puzzles d'exemple si aucun puzzle Maffdoku n'existe encore."""
    existing = sum(1 for _ in iter_puzzles(store, active_only=False))
    if existing:
        logger.info("%d puzzle(s) Maffdoku déjà présents, pas d'exemples ajoutés", existing)
        return []
    created = []
    for sample in SAMPLE_PUZZLES:
        size = len(sample["solution"])
        created.append(
            save_puzzle(
                store,
                sample["solution"],
                size,
                Visibility.from_dict(sample["visibility"], size),
                difficulty=sample["difficulty"],
                points=sample["points"],
                time_limit=sample["time_limit"],
                tags=sample["tags"],
                created_by=created_by,
            )
        )
    logger.info("%d puzzle(s) d'exemple créés", len(created))
    return created
