import logging
import random
from dataclasses import dataclass

import numpy as np
import matplotlib.pyplot as plt
import seaborn as sns

from difficulty import DifficultySettings, settings_for
from game_logic import GameStatus, place_mines, reveal

logger = logging.getLogger(__name__)


def field_arrays(field):
    mine_mask = np.zeros((field.rows, field.cols), dtype=bool)
    numbers = np.zeros((field.rows, field.cols), dtype=np.int8)
    for r, c, cell in field.cells():
        mine_mask[r, c] = cell.is_mine
        numbers[r, c] = cell.adjacent_mines
    return mine_mask, numbers


def count_mine_clusters(field) -> int:
    """Number of 8-connected groups of mines on the field."""
    unseen = field.mine_positions()
    clusters = 0
    while unseen:
        clusters += 1
        stack = [unseen.pop()]
        while stack:
            r, c = stack.pop()
            for pos in field.neighbors(r, c):
                if pos in unseen:
                    unseen.remove(pos)
                    stack.append(pos)
    return clusters


@dataclass
class FieldStatistics:
    settings: DifficultySettings
    first_click: tuple
    opening_sizes: np.ndarray
    white_cells: np.ndarray
    value_counts: np.ndarray
    clusters: np.ndarray
    mine_frequency: np.ndarray
    first_click_wins: int

    @property
    def boards(self) -> int:
        return len(self.opening_sizes)


def simulate(tier, boards: int, seed=42, first_click=None) -> FieldStatistics:
    """Generate ``boards`` fields for ``tier`` and open each one at ``first_click``.

    ``tier`` may also be a ``DifficultySettings`` for custom boards. The first
    click defaults to the centre of the board.
    """
    settings = tier if isinstance(tier, DifficultySettings) else settings_for(tier)
    if boards <= 0:
        raise ValueError("boards must be positive")
    rows, cols, mines = settings.rows, settings.cols, settings.mines
    if first_click is None:
        first_click = (rows // 2, cols // 2)
    fr, fc = first_click

    rng = random.Random(seed)
    opening_sizes = np.zeros(boards, dtype=np.int64)
    white_cells = np.zeros(boards, dtype=np.int64)
    clusters = np.zeros(boards, dtype=np.int64)
    value_counts = np.zeros(9, dtype=np.int64)
    mine_accum = np.zeros((rows, cols), dtype=np.float64)
    wins = 0

    for i in range(boards):
        field = place_mines(rows, cols, mines, fr, fc, rng=rng)
        mine_mask, numbers = field_arrays(field)

        outcome = reveal(field, fr, fc)
        opening_sizes[i] = len(outcome.cells)
        if field.status is GameStatus.WON:
            wins += 1

        white_cells[i] = int(((~mine_mask) & (numbers == 0)).sum())
        value_counts += np.bincount(numbers[~mine_mask].ravel(), minlength=9)
        clusters[i] = count_mine_clusters(field)
        mine_accum += mine_mask

    logger.debug("simulated %d %s boards from first click %s", boards, settings.name, first_click)
    return FieldStatistics(
        settings=settings,
        first_click=(fr, fc),
        opening_sizes=opening_sizes,
        white_cells=white_cells,
        value_counts=value_counts,
        clusters=clusters,
        mine_frequency=mine_accum / float(boards),
        first_click_wins=wins,
    )


def generate_report(tier, boards: int, output_path: str, seed=42, first_click=None):
    stats = simulate(tier, boards, seed=seed, first_click=first_click)
    settings = stats.settings

    sns.set(style="whitegrid")
    fig = plt.figure(figsize=(12, 9))
    fig.suptitle(
        f"{settings.name}: {settings.rows}x{settings.cols}, {settings.mines} mines, "
        f"{stats.boards} boards, first click {stats.first_click}"
    )
    axes = fig.subplots(2, 2)

    axes[0, 0].hist(stats.opening_sizes, bins="auto", color="#4C78A8", edgecolor="black")
    axes[0, 0].set_title("Cells Opened by the First Click")
    axes[0, 0].set_xlabel("Cells revealed")
    axes[0, 0].set_ylabel("Count of boards")

    xs = np.arange(9)
    axes[0, 1].bar(xs, stats.value_counts, color="#F58518", edgecolor="black")
    axes[0, 1].set_title("Distribution of Numbers in Cells (non-mine)")
    axes[0, 1].set_xlabel("Number shown (0-8)")
    axes[0, 1].set_xticks(xs)
    axes[0, 1].set_ylabel("Cell count")

    axes[1, 0].hist(stats.clusters, bins="auto", color="#54A24B", edgecolor="black")
    axes[1, 0].set_title("Number of Mine Clusters per Board (8-connected)")
    axes[1, 0].set_xlabel("Clusters per board")
    axes[1, 0].set_ylabel("Count of boards")

    sns.heatmap(
        stats.mine_frequency,
        ax=axes[1, 1],
        cmap="magma",
        square=True,
        cbar_kws={"label": "Mine probability"},
    )
    axes[1, 1].set_title("Mine Frequency per Cell (across boards)")
    axes[1, 1].set_xlabel("Column")
    axes[1, 1].set_ylabel("Row")

    fig.tight_layout()
    fig.savefig(output_path)
    plt.close(fig)
    logger.info("analytics report written to %s", output_path)
    return stats
