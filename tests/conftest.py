import os
import sys

os.environ["MPLBACKEND"] = "Agg"
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

import pytest


class ScriptedRandom:
    """Stand-in for random.Random that hands out a fixed sequence of draws."""

    def __init__(self, draws):
        self.draws = list(draws)
        self.calls = 0

    def randrange(self, stop):
        value = self.draws.pop(0)
        assert 0 <= value < stop
        self.calls += 1
        return value


def mines_at(*positions):
    draws = []
    for r, c in positions:
        draws.extend((r, c))
    return ScriptedRandom(draws)


@pytest.fixture
def scripted():
    return mines_at
