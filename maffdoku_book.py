# maffdoku_book.py
"""
Génération du PDF (puzzles + solutions) pour un profil de difficulté.

Chaque puzzle est dessiné sur une grille (N+2)x(N+2) :
- ligne du haut    : sommes des colonnes
- colonne gauche   : sommes des lignes
- colonne droite   : produits des lignes
- ligne du bas     : produits des colonnes
Une contrainte masquée est dessinée par un "·".
"""

from __future__ import annotations
import hashlib
import logging
import random
from typing import List, Optional, Tuple

import matplotlib.pyplot as plt
from matplotlib.backends.backend_pdf import PdfPages

from maffdoku_core import Grid, PuzzleDefinition
from maffdoku_difficulty import DifficultyProfile, generate_puzzles_for_profile, puzzle_hash
from maffdoku_hash_db import HASH_DB_FILE

logger = logging.getLogger(__name__)

TRIM_W_DEFAULT = 6.0
TRIM_H_DEFAULT = 9.0

DEFAULT_GIVEN_COLOR = "black"
DEFAULT_ADDED_COLOR = "red"
CONSTRAINT_COLOR = "#1f4e9c"

CONSTRAINT_SHADE_COLOR = "#e9e9e9"
HIDDEN_MARK = "·"


def chunk(lst, n):
    for i in range(0, len(lst), n):
        yield lst[i : i + n]


def book_hash_v1(hashes: List[str]) -> str:
    """
    Hash d'ensemble indépendant de l'ordre :
    tri des empreintes, payload versionné, re-hash.
    """
    per = sorted(hashes)
    payload = "maffdoku-book:v1\ncount=" + str(len(per)) + "\n" + "\n".join(per) + "\n"
    return hashlib.sha256(payload.encode("utf-8")).hexdigest().lower()


def constraint_labels(puzzle: PuzzleDefinition):
    """Textes du pourtour : (haut, gauche, droite, bas), "·" si masqué."""
    cons, vis = puzzle.constraints, puzzle.visibility

    def labels(values, flags):
        return [str(v) if shown else HIDDEN_MARK for v, shown in zip(values, flags)]

    return (
        labels(cons.column_sums, vis.column_sums),
        labels(cons.row_sums, vis.row_sums),
        labels(cons.row_products, vis.row_products),
        labels(cons.column_products, vis.column_products),
    )


# ---------- Dessin d'une grille ----------

def draw_maffdoku_at(
    ax,
    puzzle: PuzzleDefinition,
    left: float,
    bottom: float,
    size: float,
    solution: Optional[Grid] = None,
    given_color: str = DEFAULT_GIVEN_COLOR,
    added_color: str = DEFAULT_ADDED_COLOR,
):
    n = puzzle.size
    outer = n + 2
    cell = size / outer
    font_pts = cell * 0.38 * 72
    small_pts = cell * 0.26 * 72

    def cell_xy(r: int, c: int):
        # (r, c) en coordonnées du pourtour : 0 et n+1 sont les contraintes
        return left + c * cell, bottom + (outer - 1 - r) * cell

    # Fond des cases de contraintes
    for i in range(1, n + 1):
        for (r, c) in ((0, i), (n + 1, i), (i, 0), (i, n + 1)):
            x, y = cell_xy(r, c)
            ax.add_patch(
                plt.Rectangle((x, y), cell, cell, facecolor=CONSTRAINT_SHADE_COLOR,
                              edgecolor="none", zorder=0)
            )

    # Cadre de la grille centrale
    ax.add_patch(
        plt.Rectangle((left + cell, bottom + cell), n * cell, n * cell,
                      fill=False, linewidth=2, color="k", zorder=3)
    )
    for i in range(2, n + 1):
        ax.plot([left + i * cell] * 2, [bottom + cell, bottom + (n + 1) * cell],
                linewidth=0.8, color="k", zorder=2)
        ax.plot([left + cell, left + (n + 1) * cell], [bottom + i * cell] * 2,
                linewidth=0.8, color="k", zorder=2)

    top, lefts, rights, bottoms = constraint_labels(puzzle)
    for i in range(n):
        for (r, c), text in (
            ((0, i + 1), top[i]),
            ((i + 1, 0), lefts[i]),
            ((i + 1, n + 1), rights[i]),
            ((n + 1, i + 1), bottoms[i]),
        ):
            x, y = cell_xy(r, c)
            ax.text(x + cell / 2, y + cell / 2, text, ha="center", va="center",
                    fontsize=small_pts, color=CONSTRAINT_COLOR, zorder=4)

    locked = puzzle.locked_cells()
    for r in range(n):
        for c in range(n):
            if solution is not None:
                val = solution[r][c]
                color = given_color if (r, c) in locked else added_color
                weight = "normal" if (r, c) in locked else "bold"
            else:
                val = locked.get((r, c), 0)
                color, weight = given_color, "normal"
            if val:
                x, y = cell_xy(r + 1, c + 1)
                ax.text(x + cell / 2, y + cell * 0.47, str(val), ha="center", va="center",
                        fontsize=font_pts, fontweight=weight, color=color, zorder=4)


def _new_page(trim_w: float, trim_h: float):
    plt.rcParams["font.family"] = "DejaVu Sans"
    fig = plt.figure(figsize=(trim_w, trim_h))
    ax = plt.gca()
    ax.set_xlim(0, trim_w)
    ax.set_ylim(0, trim_h)
    ax.axis("off")
    return fig, ax


def draw_page_figure(
    items: List[Tuple[PuzzleDefinition, Grid]],
    trim_w: float,
    trim_h: float,
    rows: int,
    cols: int,
    page_num: int,
    title: str,
    start_idx: int = 1,
    with_solutions: bool = False,
    given_color: str = DEFAULT_GIVEN_COLOR,
    added_color: str = DEFAULT_ADDED_COLOR,
):
    fig, ax = _new_page(trim_w, trim_h)

    margin_x = 0.5
    margin_y = 0.8
    cell_w = (trim_w - 2 * margin_x) / cols
    cell_h = (trim_h - 2 * margin_y) / rows
    size = min(cell_w, cell_h) * 0.90
    offset_x = (cell_w - size) / 2
    offset_y = (cell_h - size) / 2

    for idx, (puzzle, solution) in enumerate(items[: rows * cols]):
        r = idx // cols
        c = idx % cols
        left = margin_x + c * cell_w + offset_x
        bottom = margin_y + (rows - 1 - r) * cell_h + offset_y

        draw_maffdoku_at(
            ax,
            puzzle,
            left,
            bottom,
            size,
            solution=solution if with_solutions else None,
            given_color=given_color,
            added_color=added_color,
        )

        # Numérotation indépendante du numéro de page PDF
        ax.text(left + size / 2, bottom - 0.1, f"{start_idx + idx}", ha="center", va="top", fontsize=8)

    ax.text(trim_w / 2, trim_h - 0.3, title, ha="center", va="top", fontsize=12, fontweight="bold")
    ax.text(trim_w - 0.2, 0.2, str(page_num), ha="right", va="bottom", fontsize=10)
    return fig


def render_book(
    puzzles: List[Tuple[PuzzleDefinition, Grid]],
    output_path: str,
    title: str,
    trim_w: float = TRIM_W_DEFAULT,
    trim_h: float = TRIM_H_DEFAULT,
    puzzle_rows: int = 2,
    puzzle_cols: int = 1,
    solution_rows: int = 3,
    solution_cols: int = 2,
    given_color: str = DEFAULT_GIVEN_COLOR,
    added_color: str = DEFAULT_ADDED_COLOR,
) -> Tuple[List[str], str]:
    """
    Dessine les pages puzzles + solutions dans un PDF.
    Retourne (empreintes par puzzle, hash du livre).
    """
    page_no = 1
    puzzles_per_page = puzzle_rows * puzzle_cols
    solutions_per_page = solution_rows * solution_cols

    with PdfPages(output_path) as pdf:
        for page_i, page_items in enumerate(chunk(puzzles, puzzles_per_page)):
            fig = draw_page_figure(
                page_items,
                trim_w=trim_w,
                trim_h=trim_h,
                rows=puzzle_rows,
                cols=puzzle_cols,
                page_num=page_no,
                title=title,
                start_idx=page_i * puzzles_per_page + 1,
            )
            pdf.savefig(fig, bbox_inches="tight", dpi=300)
            plt.close(fig)
            page_no += 1

        for sol_i, page_items in enumerate(chunk(puzzles, solutions_per_page)):
            first = sol_i * solutions_per_page + 1
            last = first + len(page_items) - 1
            fig = draw_page_figure(
                page_items,
                trim_w=trim_w,
                trim_h=trim_h,
                rows=solution_rows,
                cols=solution_cols,
                page_num=page_no,
                title=f"Solutions {first}" if first == last else f"Solutions {first}–{last}",
                start_idx=first,
                with_solutions=True,
                given_color=given_color,
                added_color=added_color,
            )
            pdf.savefig(fig, bbox_inches="tight", dpi=300)
            plt.close(fig)
            page_no += 1

    per_puzzle_hashes = [puzzle_hash(p, s) for (p, s) in puzzles]
    return per_puzzle_hashes, book_hash_v1(per_puzzle_hashes)


PROFILE_NAME_FR = {"easy": "facile", "medium": "moyen", "hard": "difficile", "expert": "expert"}


def build_book_pdf(
    profile: DifficultyProfile,
    grid_size: int,
    output_path: str,
    n_puzzles: int,
    title: str,
    rng: Optional[random.Random] = None,
    hash_db_path: str = HASH_DB_FILE,
    **layout,
) -> Tuple[List[Tuple[PuzzleDefinition, Grid]], List[str], str]:
    """
    Génère le PDF complet pour un profil et une taille, et renvoie :
    - la liste (puzzle, solution)
    - la liste des empreintes par puzzle
    - le hash global du "livre"
    """
    puzzles = generate_puzzles_for_profile(profile, grid_size, n_puzzles, rng=rng, hash_db_path=hash_db_path)
    label_fr = PROFILE_NAME_FR.get(profile.name, profile.name)

    logger.info("Génération du PDF : %s (%d puzzles, niveau %s)", output_path, n_puzzles, label_fr)
    per_puzzle_hashes, book_hash = render_book(
        puzzles,
        output_path,
        title=f"{title} — Niveau {label_fr}",
        **layout,
    )
    return puzzles, per_puzzle_hashes, book_hash
