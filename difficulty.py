"""Difficulty presets for the minefield."""

from dataclasses import dataclass
from enum import Enum

SAFE_ZONE_CELLS = 9


class DifficultyTier(Enum):
    BEGINNER = "beginner"
    INTERMEDIATE = "intermediate"
    EXPERT = "expert"

    @property
    def label(self) -> str:
        return self.value.capitalize()


@dataclass(frozen=True)
class DifficultySettings:
    name: str
    rows: int
    cols: int
    mines: int

    @property
    def cells(self) -> int:
        return self.rows * self.cols


DIFFICULTY_SETTINGS = {
    DifficultyTier.BEGINNER: DifficultySettings("Beginner", 9, 9, 10),
    DifficultyTier.INTERMEDIATE: DifficultySettings("Intermediate", 16, 16, 40),
    DifficultyTier.EXPERT: DifficultySettings("Expert", 16, 30, 99),
}


def tiers():
    return list(DIFFICULTY_SETTINGS)


def to_tier(tier) -> DifficultyTier:
    """Accept a tier, its value or its label ("Expert", "expert")."""
    if isinstance(tier, DifficultyTier):
        return tier
    try:
        return DifficultyTier(str(tier).strip().lower())
    except ValueError:
        raise ValueError(f"Unknown difficulty: {tier!r}") from None


def settings_for(tier) -> DifficultySettings:
    return DIFFICULTY_SETTINGS[to_tier(tier)]


def validate_settings(rows: int, cols: int, mines: int):
    if rows <= 0 or cols <= 0:
        raise ValueError("rows and cols must be positive")
    if mines < 0:
        raise ValueError("mines must be zero or positive")
    # the first click and its neighbours always stay clear; an empty board needs no room
    if mines and mines >= rows * cols - SAFE_ZONE_CELLS:
        raise ValueError(
            f"{mines} mines do not fit a {rows}x{cols} board with a safe first click"
        )
