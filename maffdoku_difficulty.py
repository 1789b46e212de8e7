# maffdoku_difficulty.py
"""
Profils de difficulté Maffdoku et génération par lots :
- contraintes masquées par groupe et indices de départ selon la taille
- points et temps limite par défaut
- séries sans doublon (locaux et historique global des empreintes)
"""

from __future__ import annotations
import logging
import random
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Set, Tuple

from maffdoku_core import (
    CONSTRAINT_KINDS,
    Grid,
    Pos,
    PuzzleDefinition,
    Visibility,
    check_size,
    generate_full_grid,
    puzzle_from_solution,
)
from maffdoku_hash_db import HASH_DB_FILE, encode_puzzle_hash, load_global_hashes, save_global_hashes

logger = logging.getLogger(__name__)

# Conseils affichés aux joueurs (communs à tous les niveaux)
PLAYER_HINTS = [
    "Each row and column must contain unique numbers",
    "Use the outer constraints (sums and products) to narrow down possibilities",
    "For 3x3 grids: use numbers 1-9, for 4x4 grids: use numbers 1-16",
    "Start with rows/columns that have the most constraint information visible",
    "Remember: hidden constraints still apply, even if you can't see them!",
]


# ====================================================
#   VISIBILITÉ & INDICES DE DÉPART
# ====================================================

def select_visibility(size: int, hidden_per_group: int, rng: Optional[random.Random] = None) -> Visibility:
    """
    Masque exactement `hidden_per_group` contraintes dans chacun des quatre
    groupes (sommes colonnes, sommes lignes, produits colonnes, produits lignes).
    Aucun motif n'est refusé : tout masquer est permis.
    """
    check_size(size)
    if not 0 <= hidden_per_group <= size:
        raise ValueError(f"hidden_per_group doit être entre 0 et {size}")
    rng = rng or random.Random()
    groups = []
    for _kind in CONSTRAINT_KINDS:
        hidden = set(rng.sample(range(size), hidden_per_group))
        groups.append([i not in hidden for i in range(size)])
    return Visibility(*groups)


def pick_starter_hints(solution: Grid, size: int, count: int, rng: Optional[random.Random] = None) -> Dict[Pos, int]:
    rng = rng or random.Random()
    cells = [(r, c) for r in range(size) for c in range(size)]
    chosen = rng.sample(cells, min(count, len(cells)))
    return {(r, c): solution[r][c] for (r, c) in sorted(chosen)}


# ====================================================
#   PROFILS
# ====================================================

@dataclass
class DifficultyProfile:
    name: str
    # contraintes masquées par groupe, selon la taille de grille
    hidden_per_group: Dict[int, int]
    starter_hints: Dict[int, int]
    points: int
    time_limit: int
    tags: List[str] = field(default_factory=list)

    def hidden_for(self, size: int) -> int:
        return self.hidden_per_group.get(check_size(size), 0)

    def hints_for(self, size: int) -> int:
        return self.starter_hints.get(check_size(size), 0)


# profils concrets
EASY_PROFILE = DifficultyProfile(
    "easy", hidden_per_group={3: 1, 4: 1}, starter_hints={3: 2, 4: 3},
    points=50, time_limit=180, tags=["beginner"],
)
MEDIUM_PROFILE = DifficultyProfile(
    "medium", hidden_per_group={3: 1, 4: 2}, starter_hints={3: 1, 4: 2},
    points=100, time_limit=300, tags=["intermediate"],
)
HARD_PROFILE = DifficultyProfile(
    "hard", hidden_per_group={3: 2, 4: 2}, starter_hints={3: 0, 4: 1},
    points=150, time_limit=600, tags=["hard"],
)
EXPERT_PROFILE = DifficultyProfile(
    "expert", hidden_per_group={3: 2, 4: 3}, starter_hints={3: 0, 4: 0},
    points=200, time_limit=900, tags=["expert", "minimal-hints"],
)

PROFILES: Dict[str, DifficultyProfile] = {
    EASY_PROFILE.name: EASY_PROFILE,
    MEDIUM_PROFILE.name: MEDIUM_PROFILE,
    HARD_PROFILE.name: HARD_PROFILE,
    EXPERT_PROFILE.name: EXPERT_PROFILE,
}


# ====================================================
#   GÉNÉRATION
# ====================================================

def generate_puzzle(
    profile: DifficultyProfile,
    size: int,
    rng: Optional[random.Random] = None,
    mode: str = "shuffle",
) -> Tuple[PuzzleDefinition, Grid]:
    """Retourne (puzzle, solution) pour un profil et une taille."""
    rng = rng or random.Random()
    full = generate_full_grid(size, rng, mode=mode)
    visibility = select_visibility(size, profile.hidden_for(size), rng)
    hints = pick_starter_hints(full, size, profile.hints_for(size), rng)
    return puzzle_from_solution(full, size, visibility, hints), full


def puzzle_hash(puzzle: PuzzleDefinition, solution: Grid) -> str:
    return encode_puzzle_hash(solution, puzzle.size, puzzle.visibility)


def generate_puzzles_for_profile(
    profile: DifficultyProfile,
    size: int,
    count: int,
    rng: Optional[random.Random] = None,
    hash_db_path: str = HASH_DB_FILE,
) -> List[Tuple[PuzzleDefinition, Grid]]:
    """
    Génère `count` puzzles pour un profil donné, en garantissant :
      - pas de doublons dans la génération courante
      - pas de doublons vis-à-vis de l'historique global (fichier d'empreintes)
    """
    rng = rng or random.Random()
    global_hashes = load_global_hashes(hash_db_path)

    puzzles: List[Tuple[PuzzleDefinition, Grid]] = []
    seen_local: Set[str] = set()
    tries = 0
    max_tries = count * 1000

    while len(puzzles) < count and tries < max_tries:
        if tries and tries % 500 == 0:
            logger.info("[%s] tries=%d, ok=%d/%d", profile.name, tries, len(puzzles), count)
        tries += 1

        puzzle, full = generate_puzzle(profile, size, rng)
        h = puzzle_hash(puzzle, full)

        # 1. doublon local (dans cette série)
        if h in seen_local:
            logger.debug("doublon local ignoré : %s", h)
            continue

        # 2. doublon global
        if h in global_hashes:
            logger.debug("doublon global ignoré : %s", h)
            continue

        seen_local.add(h)
        global_hashes.add(h)
        puzzles.append((puzzle, full))

    if len(puzzles) < count:
        raise RuntimeError(f"Seulement {len(puzzles)} puzzles générés pour le profil {profile.name}")

    save_global_hashes(global_hashes, hash_db_path)
    logger.info("[%s] %d puzzle(s) %dx%d générés en %d essais", profile.name, count, size, size, tries)
    return puzzles
