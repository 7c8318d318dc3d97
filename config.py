"""
Paths and defaults for the minesweeper front-end.

Paths can be moved with the MINEFIELD_SCORES_PATH and MINEFIELD_REPORTS_DIR
environment variables, the log level with MINEFIELD_LOG_LEVEL.
"""

import os

from difficulty import DifficultyTier

BASE_DIR = os.path.dirname(os.path.abspath(__file__))

# Best time per difficulty, one CSV row per tier
SCORES_PATH = os.environ.get("MINEFIELD_SCORES_PATH", os.path.join(BASE_DIR, "best_times.csv"))

# Analytics PDFs land here
REPORTS_DIR = os.environ.get("MINEFIELD_REPORTS_DIR", os.path.join(BASE_DIR, "analytics_reports"))

DEFAULT_TIER = DifficultyTier.BEGINNER
ANALYTICS_BOARDS = 100
ANALYTICS_SEED = 42

LOG_LEVEL = os.environ.get("MINEFIELD_LOG_LEVEL", "INFO").upper()
LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"
