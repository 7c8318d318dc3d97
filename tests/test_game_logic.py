import random

import pytest

from difficulty import DifficultyTier, settings_for
from game_logic import (
    GameStatus,
    Minefield,
    RevealKind,
    in_safe_zone,
    place_mines,
    reveal,
    toggle_flag,
)


def snapshot(field):
    return tuple(
        (cell.is_mine, cell.is_revealed, cell.is_flagged, cell.adjacent_mines)
        for _, _, cell in field.cells()
    )


def brute_force_count(field, r, c):
    count = 0
    for dr in (-1, 0, 1):
        for dc in (-1, 0, 1):
            if dr == 0 and dc == 0:
                continue
            nr, nc = r + dr, c + dc
            if 0 <= nr < field.rows and 0 <= nc < field.cols and field.grid[nr][nc].is_mine:
                count += 1
    return count


def assert_invariants(field):
    status = field.status
    cells = [cell for _, _, cell in field.cells()]
    assert not any(cell.is_revealed and cell.is_flagged for cell in cells)
    if field.mines_placed:
        assert sum(cell.is_mine for cell in cells) == field.mine_count
    if status is GameStatus.LOST:
        assert any(cell.is_mine and cell.is_revealed for cell in cells)
    if status is GameStatus.WON:
        assert all(cell.is_revealed for cell in cells if not cell.is_mine)
        assert not any(cell.is_revealed for cell in cells if cell.is_mine)


@pytest.fixture
def walled_field(scripted):
    # row 2 is solid mines; rows 0-1 and 3-4 are separate safe regions
    rng = scripted((2, 0), (2, 1), (2, 2), (2, 3), (2, 4))
    return place_mines(5, 5, 5, 0, 0, rng=rng)


@pytest.mark.parametrize("tier", list(DifficultyTier))
def test_place_mines_count_for_every_tier(tier):
    settings = settings_for(tier)
    rng = random.Random(1234)
    for _ in range(20):
        sr, sc = rng.randrange(settings.rows), rng.randrange(settings.cols)
        field = place_mines(settings.rows, settings.cols, settings.mines, sr, sc, rng=rng)
        assert len(field.mine_positions()) == settings.mines
        assert field.mines_placed
        assert field.status is GameStatus.PLAYING


def test_safe_zone_holds_for_every_origin():
    for seed in range(1000):
        rng = random.Random(seed)
        sr, sc = divmod(seed % 100, 10)
        field = place_mines(10, 10, 1, sr, sc, rng=rng)
        mines = field.mine_positions()
        assert len(mines) == 1
        for r, c in mines:
            assert not in_safe_zone(r, c, sr, sc)


def test_mine_rejected_from_first_click_and_relocated(scripted):
    rng = scripted((0, 0), (0, 1), (1, 1), (5, 5))
    field = place_mines(10, 10, 1, 0, 0, rng=rng)

    assert field.mine_positions() == {(5, 5)}
    assert rng.calls == 8


def test_duplicate_draws_are_rejected(scripted):
    rng = scripted((4, 4), (4, 4), (4, 3))
    field = place_mines(5, 5, 2, 0, 0, rng=rng)
    assert field.mine_positions() == {(4, 4), (4, 3)}


def test_adjacency_matches_brute_force():
    for seed in range(50):
        rng = random.Random(seed)
        field = place_mines(16, 30, 99, rng.randrange(16), rng.randrange(30), rng=rng)
        for r, c, cell in field.cells():
            if cell.is_mine:
                assert cell.adjacent_mines == 0
            else:
                assert cell.adjacent_mines == brute_force_count(field, r, c)


def test_densest_board_leaves_one_safe_cell_outside_zone():
    field = place_mines(5, 5, 15, 2, 2, rng=random.Random(3))
    outside = {(r, c) for r in range(5) for c in range(5) if not in_safe_zone(r, c, 2, 2)}
    mines = field.mine_positions()
    assert len(mines) == 15
    assert mines < outside

    outcome = reveal(field, 2, 2)
    assert outcome.kind is RevealKind.REVEALED
    assert len(outcome.cells) == 9
    assert field.status is GameStatus.PLAYING


def test_place_mines_rejects_overfull_board():
    with pytest.raises(ValueError):
        place_mines(5, 5, 16, 2, 2)


def test_place_mines_rejects_out_of_bounds_origin():
    with pytest.raises(IndexError):
        place_mines(5, 5, 3, 5, 0)
    with pytest.raises(IndexError):
        place_mines(5, 5, 3, 0, -1)


def test_place_mines_builds_a_new_field():
    first = place_mines(9, 9, 10, 4, 4, rng=random.Random(1))
    second = place_mines(9, 9, 10, 4, 4, rng=random.Random(2))
    assert first is not second
    assert first.grid is not second.grid


def test_same_seed_same_field():
    first = place_mines(16, 16, 40, 3, 7, rng=random.Random(99))
    second = place_mines(16, 16, 40, 3, 7, rng=random.Random(99))
    assert snapshot(first) == snapshot(second)


def test_single_mine_corner_scenario(scripted):
    field = place_mines(5, 5, 1, 0, 0, rng=scripted((4, 4)))

    for r, c, cell in field.cells():
        if (r, c) in {(3, 3), (3, 4), (4, 3)}:
            assert cell.adjacent_mines == 1
        else:
            assert cell.adjacent_mines == 0

    outcome = reveal(field, 0, 0)
    assert outcome.kind is RevealKind.REVEALED
    assert len(outcome.cells) == 24
    assert (4, 4) not in outcome.cells
    assert field.status is GameStatus.WON
    # the leftover mine is flagged on a win
    assert field.grid[4][4].is_flagged
    assert not field.grid[4][4].is_revealed
    assert_invariants(field)


def test_flood_fill_stops_at_numbered_cells(walled_field):
    outcome = reveal(walled_field, 0, 0)

    expected = {(r, c) for r in (0, 1) for c in range(5)}
    assert outcome.kind is RevealKind.REVEALED
    assert outcome.cells == expected
    assert [walled_field.grid[1][c].adjacent_mines for c in range(5)] == [2, 3, 3, 3, 2]
    assert walled_field.status is GameStatus.PLAYING


def test_revealing_numbered_cell_opens_only_that_cell(walled_field):
    reveal(walled_field, 0, 0)
    outcome = reveal(walled_field, 3, 2)
    assert outcome.cells == {(3, 2)}
    assert walled_field.status is GameStatus.PLAYING


def test_second_region_wins_and_flags_mines(walled_field):
    reveal(walled_field, 0, 0)
    outcome = reveal(walled_field, 4, 2)

    assert outcome.cells == {(r, c) for r in (3, 4) for c in range(5)}
    assert walled_field.status is GameStatus.WON
    assert all(walled_field.grid[2][c].is_flagged for c in range(5))
    assert walled_field.mines_remaining() == 0
    assert_invariants(walled_field)


def test_hit_mine_reveals_only_the_mine(walled_field):
    reveal(walled_field, 0, 0)
    before = {(r, c) for r, c, cell in walled_field.cells() if cell.is_revealed}

    outcome = reveal(walled_field, 2, 2)

    after = {(r, c) for r, c, cell in walled_field.cells() if cell.is_revealed}
    assert outcome.kind is RevealKind.HIT_MINE
    assert outcome.hit_mine
    assert outcome.cells == {(2, 2)}
    assert after - before == {(2, 2)}
    assert walled_field.status is GameStatus.LOST
    assert_invariants(walled_field)


def test_no_changes_after_loss(walled_field):
    reveal(walled_field, 0, 0)
    reveal(walled_field, 2, 2)
    before = snapshot(walled_field)

    outcome = reveal(walled_field, 4, 4)
    assert outcome.kind is RevealKind.GAME_OVER
    assert outcome.is_noop
    assert toggle_flag(walled_field, 4, 4) is False
    assert snapshot(walled_field) == before


def test_no_changes_after_win(scripted):
    field = place_mines(5, 5, 1, 0, 0, rng=scripted((4, 4)))
    reveal(field, 0, 0)
    before = snapshot(field)

    assert reveal(field, 4, 4).kind is RevealKind.GAME_OVER
    assert toggle_flag(field, 4, 4) is True
    assert snapshot(field) == before


def test_reveal_is_idempotent(walled_field):
    reveal(walled_field, 0, 0)
    before = snapshot(walled_field)

    for _ in range(2):
        outcome = reveal(walled_field, 0, 0)
        assert outcome.kind is RevealKind.ALREADY_REVEALED
        assert outcome.cells == frozenset()
        assert snapshot(walled_field) == before


def test_reveal_flagged_cell_is_noop(walled_field):
    assert toggle_flag(walled_field, 4, 4) is True
    before = snapshot(walled_field)

    outcome = reveal(walled_field, 4, 4)
    assert outcome.kind is RevealKind.FLAGGED
    assert outcome.is_noop
    assert snapshot(walled_field) == before


def test_flood_fill_does_not_cross_flags(scripted):
    field = place_mines(5, 5, 1, 0, 0, rng=scripted((4, 4)))
    # a wall of flags on column 2 splits the open board
    for r in range(5):
        toggle_flag(field, r, 2)

    outcome = reveal(field, 0, 0)

    assert outcome.cells == {(r, c) for r in range(5) for c in (0, 1)}
    assert all(field.grid[r][2].is_flagged and not field.grid[r][2].is_revealed for r in range(5))
    assert field.status is GameStatus.PLAYING

    toggle_flag(field, 0, 2)
    outcome = reveal(field, 0, 2)
    assert (0, 3) in outcome.cells
    assert (1, 2) not in outcome.cells


def test_flood_fill_region_properties():
    for seed in range(200):
        rng = random.Random(seed)
        sr, sc = rng.randrange(9), rng.randrange(9)
        field = place_mines(9, 9, 10, sr, sc, rng=rng)
        for _ in range(3):
            r, c = rng.randrange(9), rng.randrange(9)
            if not in_safe_zone(r, c, sr, sc):
                toggle_flag(field, r, c)
        flagged = {(r, c) for r, c, cell in field.cells() if cell.is_flagged}

        outcome = reveal(field, sr, sc)
        region = outcome.cells

        assert (sr, sc) in region
        assert not region & flagged
        assert not region & field.mine_positions()
        for r, c in region:
            cell = field.grid[r][c]
            if cell.adjacent_mines == 0:
                for nr, nc in field.neighbors(r, c):
                    assert field.grid[nr][nc].is_revealed or (nr, nc) in flagged
            if (r, c) != (sr, sc):
                # every opened cell was reached through an opened blank cell
                assert any(
                    (nr, nc) in region and field.grid[nr][nc].adjacent_mines == 0
                    for nr, nc in field.neighbors(r, c)
                )
        assert_invariants(field)


def test_expert_flood_fill_on_empty_board():
    field = place_mines(16, 30, 0, 8, 15)
    outcome = reveal(field, 8, 15)
    assert len(outcome.cells) == 16 * 30
    assert field.status is GameStatus.WON


def test_random_play_keeps_invariants():
    for seed in range(100):
        rng = random.Random(seed)
        field = place_mines(9, 9, 10, 4, 4, rng=rng)
        reveal(field, 4, 4)
        assert_invariants(field)

        steps = 0
        while not field.status.is_terminal and steps < 300:
            steps += 1
            r, c = rng.randrange(9), rng.randrange(9)
            if rng.random() < 0.2:
                toggle_flag(field, r, c)
            else:
                if field.grid[r][c].is_flagged:
                    toggle_flag(field, r, c)
                reveal(field, r, c)
            assert_invariants(field)

        won = field.status is GameStatus.WON
        lost = any(cell.is_mine and cell.is_revealed for _, _, cell in field.cells())
        assert not (won and lost)


def test_reveal_requires_placed_mines():
    field = Minefield(9, 9, 10)
    with pytest.raises(ValueError):
        reveal(field, 0, 0)


@pytest.mark.parametrize("r,c", [(-1, 0), (0, -1), (9, 0), (0, 9)])
def test_out_of_bounds_is_rejected(r, c):
    field = place_mines(9, 9, 10, 4, 4, rng=random.Random(0))
    with pytest.raises(IndexError):
        reveal(field, r, c)
    with pytest.raises(IndexError):
        toggle_flag(field, r, c)


def test_empty_field_is_not_started():
    field = Minefield(16, 30, 99)
    assert field.status is GameStatus.NOT_STARTED
    assert field.mine_positions() == set()
    assert field.mines_remaining() == 99


def test_toggle_flag_round_trip():
    field = place_mines(9, 9, 10, 4, 4, rng=random.Random(5))
    r, c = next((r, c) for r, c, cell in field.cells() if not cell.is_revealed)

    assert toggle_flag(field, r, c) is True
    assert field.grid[r][c].is_flagged
    assert field.mines_remaining() == 9
    assert toggle_flag(field, r, c) is False
    assert field.mines_remaining() == 10


def test_toggle_flag_on_revealed_cell_is_noop(walled_field):
    reveal(walled_field, 0, 0)
    assert toggle_flag(walled_field, 0, 0) is False
    assert not walled_field.grid[0][0].is_flagged


def test_flag_before_first_click():
    field = Minefield(9, 9, 10)
    assert toggle_flag(field, 3, 3) is True
    assert field.status is GameStatus.NOT_STARTED


def test_overflagging_goes_negative(scripted):
    field = place_mines(5, 5, 1, 0, 0, rng=scripted((4, 4)))
    for c in range(3):
        toggle_flag(field, 2, c)
    assert field.flag_count() == 3
    assert field.mines_remaining() == -2


def test_neighbors_clip_at_edges():
    field = Minefield(9, 9, 10)
    assert len(field.neighbors(0, 0)) == 3
    assert len(field.neighbors(0, 4)) == 5
    assert len(field.neighbors(4, 4)) == 8
    assert (4, 4) not in field.neighbors(4, 4)
