import logging
import os
import re
from datetime import datetime
import tkinter as tk
from tkinter import messagebox, simpledialog, ttk

import config
from analytics import generate_report
from difficulty import settings_for, tiers, to_tier
from game_logic import GameCore, GameStatus
from highscore import BestTimeStore, ScoreStoreError, format_time

logger = logging.getLogger(__name__)


class HighScorePanel:
    def __init__(self, parent, panel_bg, ui_font, score_store):
        self.score_store = score_store
        self.panel_bg = panel_bg
        self.ui_font = ui_font
        self.frame = tk.Frame(parent, bg=self.panel_bg)
        self.info_label = None
        self.tree = None
        self.build_widgets()

    def build_widgets(self):
        tk.Label(
            self.frame,
            text="Best Times",
            bg=self.panel_bg,
            fg="#111827",
            font=("Segoe UI", 14, "bold"),
        ).pack(fill=tk.X, padx=12, pady=(12, 6))

        columns = ("difficulty", "board", "time", "name", "created")
        self.tree = ttk.Treeview(self.frame, columns=columns, show="headings", height=len(tiers()))
        headings = {
            "difficulty": "Difficulty",
            "board": "Board",
            "time": "Time",
            "name": "Name",
            "created": "Timestamp",
        }
        widths = {"difficulty": 120, "board": 160, "time": 80, "name": 140, "created": 160}
        for col in columns:
            self.tree.heading(col, text=headings[col])
            anchor = tk.CENTER if col == "time" else tk.W
            self.tree.column(col, width=widths[col], anchor=anchor)
        self.tree.tag_configure("highlight", background="#FEF3C7")
        self.tree.pack(fill=tk.X, padx=12, pady=(0, 8))

        self.info_label = tk.Label(
            self.frame,
            text="No best times yet.",
            bg=self.panel_bg,
            fg="#6B7280",
            font=("Segoe UI", 10),
            anchor="w",
        )
        self.info_label.pack(fill=tk.X, padx=12, pady=(0, 6))

    def refresh(self, highlight_tier=None):
        for row in self.tree.get_children():
            self.tree.delete(row)
        try:
            best = self.score_store.load_best_times()
        except ScoreStoreError as exc:
            messagebox.showwarning("Best Times", str(exc))
            return

        highlight = to_tier(highlight_tier).value if highlight_tier else None
        for tier in tiers():
            settings = settings_for(tier)
            record = best.get(tier.value, {})
            tags = ("highlight",) if tier.value == highlight else ()
            self.tree.insert(
                "",
                "end",
                values=(
                    settings.name,
                    f"{settings.rows}x{settings.cols}, {settings.mines} mines",
                    format_time(record.get("time_seconds")),
                    record.get("name", ""),
                    record.get("created_at", ""),
                ),
                tags=tags,
            )
        self.info_label.config(text=f"{len(best)} of {len(tiers())} difficulties cleared.")


class Minesweeper:
    NUMBER_COLORS = {1: "blue", 2: "green", 3: "red", 4: "purple", 5: "brown", 6: "teal", 7: "black", 8: "gray"}

    CELL_BG = "#E5E7EB"
    REVEALED_BG = "#F3F4F6"
    BOARD_BG = "#F8FAFC"
    PANEL_BG = "#FFFFFF"

    def __init__(self, root, tier=config.DEFAULT_TIER, scores_path=config.SCORES_PATH):
        self.root = root
        self.tier = to_tier(tier)
        self.game = GameCore(self.tier)
        self.buttons = {}
        self.timer_seconds = 0
        self.timer_job = None
        self.username = "Player"
        self.last_best_tier = None

        self.score_store = BestTimeStore(scores_path)
        self.reports_dir = config.REPORTS_DIR
        os.makedirs(self.reports_dir, exist_ok=True)

        self.counter_font = ("Consolas", 14, "bold")
        self.cell_font = ("Segoe UI", 10, "bold")
        self.ui_font = ("Segoe UI", 11)

        self._build_ui()
        self._create_board()
        self._refresh_best_times()

    def _build_ui(self):
        self.root.configure(bg=self.BOARD_BG)

        bar = tk.Frame(self.root, bg=self.PANEL_BG, bd=1, relief=tk.SOLID)
        bar.pack(fill=tk.X, padx=10, pady=(10, 6))

        self.mines_label = tk.Label(bar, font=self.counter_font, bg=self.PANEL_BG, fg="#EF4444")
        self.timer_label = tk.Label(bar, font=self.counter_font, bg=self.PANEL_BG, fg="#111827")

        self.difficulty_var = tk.StringVar(value=self.tier.label)
        menu = tk.OptionMenu(bar, self.difficulty_var, *[t.label for t in tiers()], command=self._on_change_difficulty)

        controls = (
            self.mines_label,
            self.timer_label,
            menu,
            tk.Button(bar, text="New Game", font=self.ui_font, command=self.reset),
            tk.Button(bar, text="Run Analytics", font=self.ui_font, command=self.run_analytics_report),
        )
        for widget in controls:
            widget.pack(side=tk.LEFT, padx=8, pady=6)

        self.content_notebook = ttk.Notebook(self.root)
        self.content_notebook.pack(fill=tk.BOTH, expand=True, padx=10)

        self.game_tab = tk.Frame(self.content_notebook, bg=self.BOARD_BG)
        self.content_notebook.add(self.game_tab, text="Game")
        self.board_frame = tk.Frame(self.game_tab, bg=self.PANEL_BG)
        self.board_frame.pack(pady=8)

        self.highscore_panel = HighScorePanel(self.content_notebook, self.PANEL_BG, self.ui_font, self.score_store)
        self.content_notebook.add(self.highscore_panel.frame, text="Best Times")

        tk.Label(
            self.root, text="Left-click to reveal, right-click to flag, R for a new game.",
            bg=self.BOARD_BG, fg="#374151", font=self.ui_font,
        ).pack(padx=10, pady=(0, 6), anchor="w")

        self.root.bind("<r>", lambda e: self.reset())
        self.root.bind("<R>", lambda e: self.reset())

    def _create_board(self):
        for w in self.board_frame.winfo_children():
            w.destroy()
        self.buttons.clear()
        self.game.new_game(self.tier)
        self.content_notebook.select(self.game_tab)
        self._stop_timer(reset_seconds=True)
        self._update_counters()

        # expert boards need narrower cells to fit the window
        width = 2 if self.game.cols > 16 else 3
        for r in range(self.game.rows):
            for c in range(self.game.cols):
                b = tk.Button(
                    self.board_frame,
                    width=width,
                    bg=self.CELL_BG,
                    font=self.cell_font,
                    command=lambda r=r, c=c: self.reveal_cell(r, c),
                )
                for sequence in ("<Button-2>", "<Button-3>"):
                    b.bind(sequence, lambda e, r=r, c=c: self.toggle_flag(r, c))
                b.grid(row=r, column=c)
                self.buttons[(r, c)] = b

    def reveal_cell(self, r, c):
        if self.game.is_game_over:
            return
        outcome = self.game.reveal(r, c)
        if outcome.is_noop:
            return
        if self.timer_job is None:
            self._start_timer()
        self._refresh_ui()

        status = self.game.status
        if status is GameStatus.LOST:
            self._show_mines(trigger=(r, c))
            self.game_over(False)
        elif status is GameStatus.WON:
            self.game_over(True)

    def toggle_flag(self, r, c):
        if self.game.is_game_over:
            return
        self.game.toggle_flag(r, c)
        self._refresh_ui()

    def _refresh_ui(self):
        for r, c, cell in self.game.field.cells():
            btn = self.buttons[(r, c)]
            if cell.is_flagged:
                btn.config(text="\U0001F6A9", fg="#EF4444", bg=self.CELL_BG)
            elif cell.is_revealed:
                btn.config(state="disabled", relief=tk.SUNKEN, bg=self.REVEALED_BG, disabledforeground="#111827")
                if cell.is_mine:
                    btn.config(text="\U0001F4A3", bg="#FCA5A5")
                elif cell.adjacent_mines > 0:
                    btn.config(text=str(cell.adjacent_mines), disabledforeground=self.NUMBER_COLORS.get(cell.adjacent_mines, "#111827"))
                else:
                    btn.config(text="")
            else:
                btn.config(text="", bg=self.CELL_BG)

        self._update_counters()

    def _show_mines(self, trigger=None):
        for r, c in self.game.exposed_mines():
            if (r, c) == trigger:
                continue
            self.buttons[(r, c)].config(text="\U0001F4A3", bg="#FEE2E2")

    def game_over(self, won):
        self._stop_timer()
        logger.info("%s game %s after %d seconds", self.tier.label, "won" if won else "lost", self.timer_seconds)
        message = "You Win! \U0001F389" if won else "Game over! \U0001F635"
        messagebox.showinfo("Game Over", message)
        if not won:
            return

        improved = self._submit_time()
        self.last_best_tier = self.tier if improved else None
        self._refresh_best_times()
        if improved:
            self.content_notebook.select(self.highscore_panel.frame)

    def _submit_time(self):
        best = None
        try:
            best = self.score_store.best_time(self.tier)
        except ScoreStoreError as exc:
            messagebox.showwarning("Best Times", str(exc))
        if best is not None and best <= self.timer_seconds:
            return False

        prompted = self._prompt_for_name()
        if prompted:
            self.username = prompted
        try:
            return self.score_store.submit(self.tier, self.timer_seconds, self.username)
        except ScoreStoreError as exc:
            messagebox.showwarning("Best Times", str(exc))
            return False

    def _prompt_for_name(self):
        name = simpledialog.askstring(
            "New Best Time",
            f"New best time {format_time(self.timer_seconds)}! Enter your name:",
            parent=self.root,
            initialvalue=self.username,
        )
        if name is None:
            return None
        name = name.strip()
        return name or None

    def run_analytics_report(self):
        now = datetime.now()
        safe_name = re.sub(r"[^A-Za-z0-9_-]+", "_", self.username or "Player").strip("_") or "Player"
        filename = f"{safe_name}_{self.tier.value}_{int(now.timestamp())}.pdf"
        pdf_path = os.path.join(self.reports_dir, filename)
        try:
            stats = generate_report(self.tier, config.ANALYTICS_BOARDS, pdf_path, seed=config.ANALYTICS_SEED)
        except (OSError, ValueError) as exc:
            logger.exception("analytics report failed")
            messagebox.showwarning("Analytics", f"Failed to build analytics report:\n{exc}")
            return
        messagebox.showinfo(
            "Analytics",
            f"Report saved to {os.path.basename(pdf_path)}\n"
            f"{stats.first_click_wins} of {stats.boards} boards cleared by the first click.",
        )

    def _refresh_best_times(self):
        self.highscore_panel.refresh(self.last_best_tier)

    def _update_counters(self):
        self.mines_label.config(text=f"Mines: {self.game.mines_remaining:03d}")
        self.timer_label.config(text=f"Time: {format_time(self.timer_seconds)}")

    def _stop_timer(self, reset_seconds=False):
        if self.timer_job is not None:
            self.root.after_cancel(self.timer_job)
            self.timer_job = None
        if reset_seconds:
            self.timer_seconds = 0

    def _start_timer(self):
        def tick():
            self.timer_seconds += 1
            self.timer_label.config(text=f"Time: {format_time(self.timer_seconds)}")
            self.timer_job = self.root.after(1000, tick)

        if self.timer_job is None:
            self.timer_job = self.root.after(1000, tick)

    def _on_change_difficulty(self, *_):
        self.tier = to_tier(self.difficulty_var.get())
        self.last_best_tier = None
        self.reset()

    def reset(self):
        self._create_board()


def main():
    logging.basicConfig(level=config.LOG_LEVEL, format=config.LOG_FORMAT)
    root = tk.Tk()
    root.title("Minesweeper")
    Minesweeper(root)
    root.mainloop()


if __name__ == "__main__":
    main()
