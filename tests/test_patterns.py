from __future__ import annotations


from eca import TileEngine, Tracker
from eca_patterns import (
    ETHER,
    GLIDER_A,
    GLIDER_A4,
    PATTERNS,
    ether_with_gliders,
    find_occurrences,
    glider_bands,
    glider_bands_initial,
    pattern_from_string,
    pattern_to_string,
    periodic_initial_state,
    replicate,
)


def test_pattern_strings():
    assert pattern_from_string("1011") == (True, False, True, True)
    assert pattern_from_string("1x 1") == (True, False, False, True)
    assert pattern_to_string(ETHER) == "11111000100110"
    assert pattern_from_string("") == ()


def test_replicate():
    assert replicate(GLIDER_A, 3) == GLIDER_A * 3
    assert replicate(GLIDER_A, 0) == ()
    assert len(GLIDER_A4) == 4 * len(GLIDER_A)


def test_periodic_initial_state():
    f = periodic_initial_state(
        pattern_from_string("10"), pattern_from_string("111"), pattern_from_string("0011")
    )
    assert [f(x) for x in range(-4, 0)] == [True, False, True, False]
    assert [f(x) for x in range(0, 3)] == [True, True, True]
    assert [f(x) for x in range(3, 11)] == [False, False, True, True] * 2


def test_periodic_initial_state_empty_center():
    f = periodic_initial_state(pattern_from_string("1"), (), pattern_from_string("01"))
    assert f(-100) is True
    assert [f(x) for x in range(4)] == [False, True, False, True]


def test_periodic_initial_state_empty_tails_are_dead():
    f = periodic_initial_state((), GLIDER_A, ())
    assert [f(x) for x in range(-20, 0)] == [False] * 20
    assert tuple(f(x) for x in range(4)) == GLIDER_A
    assert [f(x) for x in range(4, 24)] == [False] * 20

    g = periodic_initial_state((), (), ETHER)
    assert g(-1) is False
    assert tuple(g(x) for x in range(len(ETHER))) == ETHER


def test_ether_with_gliders_layout():
    f = ether_with_gliders()
    n = len(ETHER)
    assert tuple(f(x) for x in range(-n, 0)) == ETHER
    assert tuple(f(x) for x in range(0, n)) == ETHER
    assert tuple(f(x) for x in range(5 * n, 5 * n + 4)) == GLIDER_A
    core_len = 15 * n + 2 * len(GLIDER_A)
    assert tuple(f(x) for x in range(core_len, core_len + n)) == ETHER


def test_glider_bands():
    pack = 4 * len(GLIDER_A4) + (27 + 23 + 25) * len(ETHER)
    bands = glider_bands()
    assert len(bands) == 3 * pack + 2 * 649 * len(ETHER)
    assert bands[: len(GLIDER_A4)] == GLIDER_A4
    f = glider_bands_initial()
    assert tuple(f(x) for x in range(len(bands), len(bands) + len(ETHER))) == ETHER


def test_find_occurrences():
    row = pattern_from_string("0111011101")
    assert find_occurrences(row, GLIDER_A) == [1, 5]
    assert find_occurrences(row, pattern_from_string("11")) == [1, 2, 5, 6]
    assert find_occurrences(row, ()) == []
    assert find_occurrences(GLIDER_A, row) == []


def test_patterns_in_tile_rows():
    engine = TileEngine(110, tile_size=len(ETHER) * 2)
    engine.set_initial_state(periodic_initial_state(ETHER, (), ETHER))
    first = engine.get_tile(0, 0, Tracker.unlimited())[0]
    assert find_occurrences(first, PATTERNS["ether"]) == [0, len(ETHER)]
