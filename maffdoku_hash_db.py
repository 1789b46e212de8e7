# maffdoku_hash_db.py
"""
Empreinte déterministe d'un puzzle Maffdoku (grille + visibilité) et
fichier global des empreintes déjà utilisées (toutes difficultés confondues).

Format de l'empreinte (chiffres ASCII uniquement) :
  1. taille (3 ou 4), un chiffre
  2. chaque case ligne par ligne, sur 2 chiffres ("07", "16")
  3. quatre blocs de visibilité de `taille` caractères '1'/'0', dans l'ordre
     columnSums, columnProducts, rowSums, rowProducts

Format du fichier : une empreinte par ligne.
"""

from __future__ import annotations
import os
from typing import List, NamedTuple, Set

from maffdoku_core import SUPPORTED_SIZES, Grid, Visibility, check_size

# Fichier global
HASH_DB_FILE = os.environ.get("MAFFDOKU_HASH_DB", "maffdoku_hashes_all.txt")

# Ordre de sérialisation (différent de l'ordre des champs de Constraints)
HASH_VISIBILITY_ORDER = ("columnSums", "columnProducts", "rowSums", "rowProducts")


class DecodeError(ValueError):
    """Empreinte mal formée."""


class DecodedHash(NamedTuple):
    size: int
    grid: Grid
    visibility: Visibility


def hash_length(size: int) -> int:
    return 1 + size * size * 2 + size * 4


def encode_puzzle_hash(grid: Grid, size: int, visibility: Visibility) -> str:
    check_size(size)
    if len(grid) != size or any(len(row) != size for row in grid):
        raise ValueError(f"La grille doit être {size}x{size}")
    visibility.check_shape(size)
    parts: List[str] = [str(size)]
    for r in range(size):
        for c in range(size):
            parts.append(f"{grid[r][c]:02d}")
    for kind in HASH_VISIBILITY_ORDER:
        parts.append("".join("1" if v else "0" for v in visibility.group(kind)))
    h = "".join(parts)
    # valeurs hors 0..99 : plus de 2 chiffres par case
    if len(h) != hash_length(size):
        raise ValueError(f"Empreinte de longueur {len(h)}, attendu {hash_length(size)}")
    return h


def decode_puzzle_hash(text: str) -> DecodedHash:
    if not text:
        raise DecodeError("Empreinte vide")
    if not text.isascii() or not text.isdigit():
        raise DecodeError(f"Empreinte non numérique : {text!r}")
    size = int(text[0])
    if size not in SUPPORTED_SIZES:
        raise DecodeError(f"Taille invalide dans l'empreinte : {size}")
    expected = hash_length(size)
    if len(text) != expected:
        raise DecodeError(f"Longueur {len(text)} incorrecte, attendu {expected} pour une grille {size}x{size}")

    pos = 1
    grid: Grid = []
    for _r in range(size):
        row = []
        for _c in range(size):
            row.append(int(text[pos:pos + 2]))
            pos += 2
        grid.append(row)

    blocks = {}
    for kind in HASH_VISIBILITY_ORDER:
        chunk = text[pos:pos + size]
        if set(chunk) - {"0", "1"}:
            raise DecodeError(f"Bloc de visibilité {kind} invalide : {chunk!r}")
        blocks[kind] = [ch == "1" for ch in chunk]
        pos += size

    visibility = Visibility(
        column_sums=blocks["columnSums"],
        row_sums=blocks["rowSums"],
        column_products=blocks["columnProducts"],
        row_products=blocks["rowProducts"],
    )
    return DecodedHash(size, grid, visibility)


# Charger l'ensemble des empreintes déjà utilisées
def load_global_hashes(path: str = HASH_DB_FILE) -> Set[str]:
    hashes = set()
    if os.path.exists(path):
        with open(path, "r", encoding="utf-8") as f:
            for line in f:
                h = line.strip()
                if h:
                    hashes.add(h)
    return hashes


# Sauvegarder l'ensemble des empreintes utilisées
def save_global_hashes(hashes: Set[str], path: str = HASH_DB_FILE) -> None:
    with open(path, "w", encoding="utf-8") as f:
        for h in sorted(hashes):
            f.write(h + "\n")
