import logging
import random
from dataclasses import dataclass
from enum import Enum

from difficulty import DifficultyTier, settings_for, validate_settings

logger = logging.getLogger(__name__)


class Cell:
    def __init__(self):
        self.is_mine: bool = False
        self.is_revealed: bool = False
        self.is_flagged: bool = False
        self.adjacent_mines: int = 0


class GameStatus(Enum):
    NOT_STARTED = "not_started"
    PLAYING = "playing"
    WON = "won"
    LOST = "lost"

    @property
    def is_terminal(self) -> bool:
        return self in (GameStatus.WON, GameStatus.LOST)


class RevealKind(Enum):
    ALREADY_REVEALED = "already_revealed"
    FLAGGED = "flagged"
    HIT_MINE = "hit_mine"
    REVEALED = "revealed"
    GAME_OVER = "game_over"


@dataclass(frozen=True)
class RevealOutcome:
    kind: RevealKind
    cells: frozenset = frozenset()

    @property
    def is_noop(self) -> bool:
        return self.kind in (RevealKind.ALREADY_REVEALED, RevealKind.FLAGGED, RevealKind.GAME_OVER)

    @property
    def hit_mine(self) -> bool:
        return self.kind is RevealKind.HIT_MINE


class Minefield:
    """A rows x cols grid of cells.

    A fresh field has no mines; ``place_mines`` builds the populated one once
    the first clicked cell is known. The game status is always computed from
    the cells and never stored.
    """

    def __init__(self, rows: int, cols: int, mine_count: int):
        validate_settings(rows, cols, mine_count)
        self.rows = rows
        self.cols = cols
        self.mine_count = mine_count
        self.mines_placed = False
        self.grid = [[Cell() for _ in range(self.cols)] for _ in range(self.rows)]

    def in_bounds(self, r, c) -> bool:
        return 0 <= r < self.rows and 0 <= c < self.cols

    def check_bounds(self, r, c):
        if not self.in_bounds(r, c):
            raise IndexError(f"cell ({r}, {c}) is outside the {self.rows}x{self.cols} field")

    def cell(self, r, c) -> Cell:
        self.check_bounds(r, c)
        return self.grid[r][c]

    def neighbors(self, r, c):
        neighbors_list = []
        for nr in range(max(0, r - 1), min(self.rows, r + 2)):
            for nc in range(max(0, c - 1), min(self.cols, c + 2)):
                if (nr, nc) != (r, c):
                    neighbors_list.append((nr, nc))

        return neighbors_list

    def cells(self):
        for r, row in enumerate(self.grid):
            for c, cell in enumerate(row):
                yield r, c, cell

    def mine_positions(self):
        return {(r, c) for r, c, cell in self.cells() if cell.is_mine}

    def flag_count(self) -> int:
        return sum(1 for _, _, cell in self.cells() if cell.is_flagged)

    def mines_remaining(self) -> int:
        # over-flagging drives this below zero
        return self.mine_count - self.flag_count()

    @property
    def status(self) -> GameStatus:
        if not self.mines_placed:
            return GameStatus.NOT_STARTED

        hidden_safe = False
        for _, _, cell in self.cells():
            if cell.is_mine and cell.is_revealed:
                return GameStatus.LOST
            if not cell.is_mine and not cell.is_revealed:
                hidden_safe = True
        return GameStatus.PLAYING if hidden_safe else GameStatus.WON


def in_safe_zone(r, c, safe_row, safe_col) -> bool:
    return abs(r - safe_row) <= 1 and abs(c - safe_col) <= 1


def count_adjacent_mines(field: Minefield):
    for r, c, cell in field.cells():
        if cell.is_mine:
            cell.adjacent_mines = 0
            continue

        count = 0
        for nr, nc in field.neighbors(r, c):
            if field.grid[nr][nc].is_mine:
                count += 1
        cell.adjacent_mines = count


def place_mines(rows, cols, mine_count, safe_row, safe_col, rng=None) -> Minefield:
    """Build a populated field whose first click at (safe_row, safe_col) is safe.

    Cells are drawn uniformly with ``rng.randrange`` and rejected when already
    mined or inside the 3x3 box around the safe cell, until ``mine_count``
    mines are down. ``rng`` defaults to the ``random`` module; pass a seeded
    ``random.Random`` for reproducible fields.
    """
    field = Minefield(rows, cols, mine_count)
    field.check_bounds(safe_row, safe_col)
    rng = rng or random

    placed = 0
    rejected = 0
    while placed < mine_count:
        r = rng.randrange(rows)
        c = rng.randrange(cols)
        cell = field.grid[r][c]
        if cell.is_mine or in_safe_zone(r, c, safe_row, safe_col):
            rejected += 1
            continue
        cell.is_mine = True
        placed += 1

    count_adjacent_mines(field)
    field.mines_placed = True
    logger.debug(
        "placed %d mines on %dx%d field, safe origin (%d, %d), %d samples rejected",
        mine_count, rows, cols, safe_row, safe_col, rejected,
    )
    return field


def flood_fill(field: Minefield, r, c):
    start = field.grid[r][c]
    start.is_revealed = True
    revealed = {(r, c)}

    stack = [(r, c)]
    while stack:
        cr, cc = stack.pop()
        if field.grid[cr][cc].adjacent_mines > 0:
            continue
        for nr, nc in field.neighbors(cr, cc):
            ncell = field.grid[nr][nc]
            if ncell.is_revealed or ncell.is_flagged or ncell.is_mine:
                continue
            ncell.is_revealed = True
            revealed.add((nr, nc))
            stack.append((nr, nc))
    return revealed


def reveal(field: Minefield, r, c) -> RevealOutcome:
    cell = field.cell(r, c)
    if not field.mines_placed:
        raise ValueError("mines must be placed before revealing cells")

    if field.status.is_terminal:
        return RevealOutcome(RevealKind.GAME_OVER)
    if cell.is_revealed:
        return RevealOutcome(RevealKind.ALREADY_REVEALED)
    if cell.is_flagged:
        return RevealOutcome(RevealKind.FLAGGED)

    if cell.is_mine:
        cell.is_revealed = True
        logger.info("mine hit at (%d, %d)", r, c)
        return RevealOutcome(RevealKind.HIT_MINE, frozenset({(r, c)}))

    revealed = flood_fill(field, r, c)
    logger.debug("revealed %d cells from (%d, %d)", len(revealed), r, c)

    if field.status is GameStatus.WON:
        for _, _, other in field.cells():
            if other.is_mine and not other.is_revealed:
                other.is_flagged = True
        logger.info("field cleared with %d mines", field.mine_count)
    return RevealOutcome(RevealKind.REVEALED, frozenset(revealed))


def toggle_flag(field: Minefield, r, c) -> bool:
    cell = field.cell(r, c)
    if cell.is_revealed or field.status.is_terminal:
        return cell.is_flagged
    cell.is_flagged = not cell.is_flagged
    return cell.is_flagged


class GameCore:
    """One game session: owns the field and defers mine placement to the first reveal."""

    def __init__(self, tier=DifficultyTier.BEGINNER, rng=None):
        self.rng = rng
        self.new_game(tier)

    def new_game(self, tier=None):
        if tier is not None:
            self.settings = settings_for(tier)
        self.rows = self.settings.rows
        self.cols = self.settings.cols
        self.mines = self.settings.mines
        self.field = Minefield(self.rows, self.cols, self.mines)

    def reset(self):
        self.new_game()

    @property
    def grid(self):
        return self.field.grid

    @property
    def status(self) -> GameStatus:
        return self.field.status

    @property
    def is_game_over(self) -> bool:
        return self.status.is_terminal

    @property
    def mines_placed(self) -> bool:
        return self.field.mines_placed

    @property
    def mines_remaining(self) -> int:
        return self.field.mines_remaining()

    def reveal(self, r, c) -> RevealOutcome:
        if not self.field.mines_placed:
            if self.field.cell(r, c).is_flagged:
                return RevealOutcome(RevealKind.FLAGGED)
            self.field = self._populate(r, c)
        return reveal(self.field, r, c)

    def _populate(self, r, c) -> Minefield:
        field = place_mines(self.rows, self.cols, self.mines, r, c, rng=self.rng)
        # flags planted before the first click survive it
        for fr, fc, cell in self.field.cells():
            if cell.is_flagged:
                field.grid[fr][fc].is_flagged = True
        return field

    def toggle_flag(self, r, c) -> bool:
        return toggle_flag(self.field, r, c)

    def exposed_mines(self):
        """Mine positions shown once the game is lost."""
        if self.status is not GameStatus.LOST:
            return set()
        return self.field.mine_positions()

    def white_cells(self) -> int:
        count = 0
        for _, _, cell in self.field.cells():
            if not cell.is_mine and cell.adjacent_mines == 0:
                count += 1
        return count
