"""Best-time storage, one record per difficulty."""

import csv
import os
from datetime import datetime

from difficulty import tiers, to_tier

FIELDNAMES = [
    "difficulty",
    "time_seconds",
    "name",
    "created_at",
]


class ScoreStoreError(Exception):
    pass


def format_time(seconds):
    if seconds is None:
        return "N/A"
    mins, secs = divmod(int(seconds), 60)
    return f"{mins}:{secs:02d}"


class BestTimeStore:
    def __init__(self, path: str):
        self.path = path
        self.ensure_file()

    def ensure_file(self):
        if os.path.exists(self.path):
            return
        self.write_all({})

    def write_all(self, best: dict):
        try:
            with open(self.path, "w", newline="", encoding="utf-8") as csvfile:
                writer = csv.DictWriter(csvfile, fieldnames=FIELDNAMES)
                writer.writeheader()
                for tier in tiers():
                    record = best.get(tier.value)
                    if record:
                        writer.writerow(record)
        except OSError as exc:
            raise ScoreStoreError(f"Could not save best times: {exc}") from exc

    def load_best_times(self):
        if not os.path.exists(self.path):
            return {}
        try:
            with open(self.path, newline="", encoding="utf-8") as csvfile:
                reader = csv.DictReader(csvfile)
                rows = [self.normalise(row) for row in reader if row]
        except OSError as exc:
            raise ScoreStoreError(f"Could not read best times: {exc}") from exc

        best = {}
        for row in rows:
            if row is None:
                continue
            current = best.get(row["difficulty"])
            if current is None or row["time_seconds"] < current["time_seconds"]:
                best[row["difficulty"]] = row
        return best

    def normalise(self, row):
        try:
            difficulty = to_tier(row.get("difficulty", "")).value
            seconds = int(row.get("time_seconds"))
        except (TypeError, ValueError):
            return None
        if seconds < 0:
            return None

        return {
            "difficulty": difficulty,
            "time_seconds": seconds,
            "name": row.get("name") or "Player",
            "created_at": row.get("created_at", ""),
        }

    def best_time(self, tier):
        record = self.load_best_times().get(to_tier(tier).value)
        return record["time_seconds"] if record else None

    def submit(self, tier, seconds: int, name: str = "Player") -> bool:
        """Store ``seconds`` for ``tier`` if it beats the previous best."""
        tier = to_tier(tier)
        best = self.load_best_times()
        current = best.get(tier.value)
        if current is not None and current["time_seconds"] <= seconds:
            return False

        best[tier.value] = {
            "difficulty": tier.value,
            "time_seconds": int(seconds),
            "name": name or "Player",
            "created_at": datetime.now().strftime("%Y-%m-%d %H:%M:%S"),
        }
        self.write_all(best)
        return True
