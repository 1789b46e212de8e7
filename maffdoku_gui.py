# maffdoku_gui.py
"""
Interface CustomTkinter d'auteur Maffdoku :
- création d'une grille solution (aléatoire ou saisie au clavier)
- masquage / affichage des contraintes en cliquant sur le pourtour
- enregistrement dans le catalogue (refus des doublons)
- génération d'un livre PDF pour un niveau de difficulté
"""

from __future__ import annotations
import logging
import os
import shelve

import customtkinter as ctk
from tkinter import messagebox

from maffdoku_book import build_book_pdf, PROFILE_NAME_FR
from maffdoku_catalog import DEFAULT_STORE_PATH, DuplicatePuzzleError, save_puzzle
from maffdoku_core import compute_constraints, default_visibility, generate_full_grid, is_filled
from maffdoku_difficulty import PROFILES
from maffdoku_session import click_cell, key_from_tk, new_session, press_key, reset_session

logger = logging.getLogger(__name__)

# Libellés FR pour l'UI
DIFF_KEY_TO_LABEL_FR = dict(PROFILE_NAME_FR)
DIFF_LABEL_FR_TO_KEY = {v: k for k, v in DIFF_KEY_TO_LABEL_FR.items()}

# Config par défaut
DEFAULT_SIZE = 3
DEFAULT_POINTS = 100
DEFAULT_TIME_LIMIT = 300
DEFAULT_N_PUZZLES = 12
DEFAULT_BOOK_TITLE = "Maffdoku"
DEFAULT_AUTHOR = "admin"


def launch_gui():
    logging.basicConfig(format="%(asctime)s - %(name)s - %(levelname)s - %(message)s", level=logging.INFO)
    ctk.set_appearance_mode("system")
    ctk.set_default_color_theme("blue")

    app = ctk.CTk()
    app.title("Maffdoku — administration")

    size_var = ctk.StringVar(value=str(DEFAULT_SIZE))
    difficulty_var = ctk.StringVar(value=DIFF_KEY_TO_LABEL_FR["easy"])
    points_var = ctk.StringVar(value=str(DEFAULT_POINTS))
    time_limit_var = ctk.StringVar(value=str(DEFAULT_TIME_LIMIT))
    tags_var = ctk.StringVar(value="")
    n_puzzles_var = ctk.StringVar(value=str(DEFAULT_N_PUZZLES))
    title_var = ctk.StringVar(value=DEFAULT_BOOK_TITLE)
    status_var = ctk.StringVar(value="Prêt.")

    # État courant de l'auteur
    current = {
        "session": new_session(DEFAULT_SIZE),
        "visibility": default_visibility(DEFAULT_SIZE),
    }

    app.grid_columnconfigure(0, weight=1)
    app.grid_columnconfigure(1, weight=1)

    # ----- Frame gauche : paramètres du puzzle -----
    frame_left = ctk.CTkFrame(app)
    frame_left.grid(row=0, column=0, padx=10, pady=10, sticky="nsew")
    frame_left.grid_columnconfigure(1, weight=1)

    ctk.CTkLabel(
        frame_left,
        text="Nouveau puzzle",
        font=ctk.CTkFont(size=16, weight="bold"),
    ).grid(row=0, column=0, columnspan=2, pady=(10, 20))

    def add_row(row, label, widget):
        ctk.CTkLabel(frame_left, text=label).grid(row=row, column=0, sticky="w", padx=5, pady=5)
        widget.grid(row=row, column=1, sticky="ew", padx=5, pady=5)

    add_row(1, "Taille", ctk.CTkOptionMenu(frame_left, values=["3", "4"], variable=size_var,
                                           command=lambda _v: on_size_change()))
    add_row(2, "Difficulté", ctk.CTkOptionMenu(frame_left, values=list(DIFF_LABEL_FR_TO_KEY),
                                               variable=difficulty_var))
    add_row(3, "Points", ctk.CTkEntry(frame_left, textvariable=points_var))
    add_row(4, "Temps limite (s)", ctk.CTkEntry(frame_left, textvariable=time_limit_var))
    add_row(5, "Tags (séparés par ,)", ctk.CTkEntry(frame_left, textvariable=tags_var))

    frame_grid = ctk.CTkFrame(frame_left)
    frame_grid.grid(row=6, column=0, columnspan=2, padx=5, pady=10)

    buttons_row = ctk.CTkFrame(frame_left)
    buttons_row.grid(row=7, column=0, columnspan=2, padx=5, pady=5, sticky="ew")
    ctk.CTkButton(buttons_row, text="Aléatoire", command=lambda: on_random()).grid(row=0, column=0, padx=5)
    ctk.CTkButton(buttons_row, text="Vider", command=lambda: on_clear()).grid(row=0, column=1, padx=5)
    ctk.CTkButton(buttons_row, text="Enregistrer", command=lambda: on_save()).grid(row=0, column=2, padx=5)

    ctk.CTkLabel(
        frame_left,
        text="Clique une case puis tape un nombre (Entrée pour valider 1..9 en 4x4).\n"
             "Clique une contrainte du pourtour pour la masquer / l'afficher.",
        justify="left",
    ).grid(row=8, column=0, columnspan=2, sticky="w", padx=5, pady=(5, 8))

    # ----- Frame droite : livre PDF -----
    frame_right = ctk.CTkFrame(app)
    frame_right.grid(row=0, column=1, padx=10, pady=10, sticky="nsew")
    frame_right.grid_columnconfigure(1, weight=1)

    ctk.CTkLabel(
        frame_right,
        text="Livre PDF",
        font=ctk.CTkFont(size=16, weight="bold"),
    ).grid(row=0, column=0, columnspan=2, pady=(10, 20))

    ctk.CTkLabel(frame_right, text="Nombre de puzzles").grid(row=1, column=0, sticky="w", padx=5, pady=5)
    ctk.CTkEntry(frame_right, textvariable=n_puzzles_var).grid(row=1, column=1, sticky="ew", padx=5, pady=5)
    ctk.CTkLabel(frame_right, text="Titre du livre").grid(row=2, column=0, sticky="w", padx=5, pady=5)
    ctk.CTkEntry(frame_right, textvariable=title_var).grid(row=2, column=1, sticky="ew", padx=5, pady=5)
    ctk.CTkButton(frame_right, text="Générer le PDF", command=lambda: on_book()).grid(
        row=3, column=0, columnspan=2, pady=10
    )

    # ----- Bas -----
    frame_bottom = ctk.CTkFrame(app)
    frame_bottom.grid(row=1, column=0, columnspan=2, padx=10, pady=(0, 10), sticky="ew")
    ctk.CTkLabel(frame_bottom, textvariable=status_var, anchor="w").grid(row=0, column=0, padx=10, pady=5, sticky="w")

    # ==========================
    #   GRILLE
    # ==========================

    def constraint_text(kind: str, index: int) -> str:
        session = current["session"]
        if not current["visibility"].group(kind)[index]:
            return "·"
        if not is_filled(session.grid, session.size):
            return "?"
        values = compute_constraints(session.grid, session.size).as_dict()[kind]
        return str(values[index])

    def redraw():
        for child in frame_grid.winfo_children():
            child.destroy()
        session = current["session"]
        n = session.size
        for i in range(n):
            for (r, c, kind) in ((0, i + 1, "columnSums"), (i + 1, 0, "rowSums"),
                                 (i + 1, n + 1, "rowProducts"), (n + 1, i + 1, "columnProducts")):
                ctk.CTkButton(
                    frame_grid, width=56, height=40, fg_color="gray40",
                    text=constraint_text(kind, i),
                    command=lambda k=kind, idx=i: on_toggle(k, idx),
                ).grid(row=r, column=c, padx=1, pady=1)
        for r in range(n):
            for c in range(n):
                val = session.value_at(r, c)
                text = str(val) if val else ""
                if session.selected == (r, c) and session.buffer:
                    text = session.buffer + "…"
                ctk.CTkButton(
                    frame_grid, width=56, height=40,
                    fg_color="#2f7d32" if session.selected == (r, c) else None,
                    text=text,
                    command=lambda rr=r, cc=c: on_cell(rr, cc),
                ).grid(row=r + 1, column=c + 1, padx=1, pady=1)

    def apply(result):
        current["session"] = result.state
        status_var.set(result.error or "Prêt.")
        redraw()

    def on_cell(r, c):
        apply(click_cell(current["session"], r, c))

    def on_key(event):
        widget = event.widget
        widget_class = widget.winfo_class() if hasattr(widget, "winfo_class") else ""
        key = key_from_tk(event.keysym, event.char, widget_class)
        if key is None:
            return
        apply(press_key(current["session"], key))

    def on_toggle(kind, index):
        current["visibility"].toggle(kind, index)
        redraw()

    def on_size_change():
        size = int(size_var.get())
        current["session"] = new_session(size)
        current["visibility"] = default_visibility(size)
        redraw()

    def on_random():
        size = int(size_var.get())
        current["session"] = new_session(size, generate_full_grid(size))
        status_var.set("Grille aléatoire générée.")
        redraw()

    def on_clear():
        current["session"] = reset_session(current["session"])
        redraw()

    def on_save():
        session = current["session"]
        try:
            points = int(points_var.get())
            time_limit = int(time_limit_var.get())
            difficulty = DIFF_LABEL_FR_TO_KEY.get(difficulty_var.get(), difficulty_var.get())
            tags = [t for t in (s.strip() for s in tags_var.get().split(",")) if t]
            with shelve.open(DEFAULT_STORE_PATH) as store:
                record = save_puzzle(
                    store,
                    session.grid,
                    session.size,
                    current["visibility"],
                    difficulty=difficulty,
                    points=points,
                    time_limit=time_limit,
                    tags=tags + [f"{session.size}x{session.size}"],
                    created_by=DEFAULT_AUTHOR,
                )
        except DuplicatePuzzleError as e:
            status_var.set("❌ Puzzle déjà existant.")
            messagebox.showwarning("Doublon", str(e))
            return
        except ValueError as e:
            status_var.set("❌ Erreur lors de l'enregistrement.")
            messagebox.showerror("Erreur", f"Une erreur est survenue : {e}")
            return
        status_var.set(f"✅ Puzzle enregistré : {record.title}")

    def on_book():
        try:
            n_puzzles = int(n_puzzles_var.get())
            if n_puzzles <= 0:
                raise ValueError("Le nombre de puzzles doit être > 0.")
            size = int(size_var.get())
            key = DIFF_LABEL_FR_TO_KEY.get(difficulty_var.get(), difficulty_var.get())
            profile = PROFILES[key]
            output_file = f"maffdoku_book_{n_puzzles}_puzzles_{size}x{size}_{profile.name}.pdf"

            status_var.set("Génération du PDF en cours...")
            app.update_idletasks()

            _puzzles, per_puzzle_hashes, book_hash = build_book_pdf(
                profile=profile,
                grid_size=size,
                output_path=output_file,
                n_puzzles=n_puzzles,
                title=title_var.get().strip() or DEFAULT_BOOK_TITLE,
            )
        except (ValueError, RuntimeError, OSError) as e:
            status_var.set("❌ Erreur lors de la génération.")
            messagebox.showerror("Erreur", f"Une erreur est survenue : {e}")
            return

        logger.info("Empreintes puzzles : %s", [h[:8] for h in per_puzzle_hashes])
        logger.info("Hash du livre (ordre-agnostique) : %s", book_hash)
        status_var.set(f"✅ PDF généré : {output_file}")
        messagebox.showinfo("Terminé", f"PDF généré :\n{os.path.abspath(output_file)}")

    app.bind("<Key>", on_key)
    redraw()
    app.mainloop()


if __name__ == "__main__":
    launch_gui()
